"""IRI resolution and name escaping."""

import pytest

from n3syntax.iri import (
    encode_iri_ref,
    escape_pn_local,
    has_scheme,
    is_valid_prefix_label,
    resolve_iri_reference,
    validate_iri,
)

RFC_BASE = "http://a/b/c/d;p?q"


class TestResolve:
    @pytest.mark.parametrize(
        "reference, expected",
        [
            ("g", "http://a/b/c/g"),
            ("./g", "http://a/b/c/g"),
            ("g/", "http://a/b/c/g/"),
            ("/g", "http://a/g"),
            ("//g", "http://g"),
            ("?y", "http://a/b/c/d;p?y"),
            ("g?y", "http://a/b/c/g?y"),
            ("#s", "http://a/b/c/d;p?q#s"),
            ("g#s", "http://a/b/c/g#s"),
            (";x", "http://a/b/c/;x"),
            ("", "http://a/b/c/d;p?q"),
            (".", "http://a/b/c/"),
            ("..", "http://a/b/"),
            ("../g", "http://a/b/g"),
            ("../..", "http://a/"),
            ("../../g", "http://a/g"),
            ("../../../g", "http://a/g"),
            ("g;x=1/../y", "http://a/b/c/y"),
        ],
    )
    def test_rfc3986_examples(self, reference, expected):
        assert resolve_iri_reference(RFC_BASE, reference) == expected

    def test_absolute_reference_is_returned_unchanged(self):
        iri = "http://example.org/x/../y"
        assert resolve_iri_reference(RFC_BASE, iri) == iri
        assert resolve_iri_reference(None, iri) == iri

    def test_resolution_is_idempotent(self):
        once = resolve_iri_reference(RFC_BASE, "../g")
        assert resolve_iri_reference(RFC_BASE, once) == once

    def test_relative_reference_without_base(self):
        with pytest.raises(ValueError):
            resolve_iri_reference(None, "g")
        with pytest.raises(ValueError):
            resolve_iri_reference("relative/base", "g")

    def test_empty_fragment_is_kept(self):
        assert resolve_iri_reference("http://a/b", "#") == "http://a/b#"


class TestNames:
    def test_has_scheme(self):
        assert has_scheme("urn:isbn:1")
        assert not has_scheme("/path")
        assert not has_scheme("1a:b")

    def test_prefix_labels(self):
        assert is_valid_prefix_label("")
        assert is_valid_prefix_label("ex")
        assert is_valid_prefix_label("a.b")
        assert not is_valid_prefix_label("1a")
        assert not is_valid_prefix_label("a.")
        assert not is_valid_prefix_label("a:b")

    @pytest.mark.parametrize(
        "local, expected",
        [
            ("", ""),
            ("a.b", "a.b"),
            ("a.", "a\\."),
            ("-x", "\\-x"),
            ("1x", "1x"),
            ("a%20b", "a%20b"),
            ("a%zz", "a\\%zz"),
            ("a/b", "a\\/b"),
        ],
    )
    def test_escape_pn_local(self, local, expected):
        assert escape_pn_local(local) == expected

    def test_escape_pn_local_impossible(self):
        assert escape_pn_local("a b") is None
        assert escape_pn_local("a<b") is None

    def test_validate_and_encode(self):
        validate_iri("http://example.org/x")
        with pytest.raises(ValueError):
            validate_iri("http://example.org/a b")
        with pytest.raises(ValueError):
            validate_iri("relative", require_absolute=True)
        assert encode_iri_ref("http://x/a b") == "<http://x/a\\u0020b>"
