"""Serializer configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from .errors import InvalidIri, InvalidPrefix, InvalidSpacing
from .iri import is_valid_prefix_label, validate_iri
from .namespaces import DEFAULT_PREFIXES

MAX_INDENT = 32


@dataclass(frozen=True)
class SerializerOptions:
    """Options controlling Turtle/N3 output.

    `prefixes` are always declared, in the given order.  With `auto_prefix`
    the serializer also declares the graph's own bindings and well-known
    vocabulary prefixes, but only those the output actually uses.
    """
    prefixes: Mapping[str, str] = field(default_factory=dict)
    auto_prefix: bool = True
    indent_width: int = 4
    use_tabs: bool = False
    inline_blank_nodes: bool = True
    fold_collections: bool = True
    base: str | None = None
    spacing: int = 1

    def __post_init__(self) -> None:
        """Validate prefix bindings, the base IRI and the whitespace widths."""
        prefixes = dict(self.prefixes)
        for prefix, namespace in prefixes.items():
            if not is_valid_prefix_label(prefix):
                raise InvalidPrefix(f"invalid prefix label '{prefix}'")
            try:
                validate_iri(namespace)
            except ValueError as exc:
                raise InvalidIri(f"invalid IRI for prefix '{prefix}': {exc}") from exc
        if self.base is not None:
            try:
                validate_iri(self.base, require_absolute=True)
            except ValueError as exc:
                raise InvalidIri(f"invalid base IRI: {exc}") from exc
        if (
            isinstance(self.indent_width, bool)
            or not isinstance(self.indent_width, int)
            or not 0 <= self.indent_width <= MAX_INDENT
        ):
            raise InvalidSpacing(
                f"indent width must be between 0 and {MAX_INDENT}, got {self.indent_width!r}"
            )
        if (
            isinstance(self.spacing, bool)
            or not isinstance(self.spacing, int)
            or not 1 <= self.spacing <= MAX_INDENT
        ):
            raise InvalidSpacing(
                f"spacing must be between 1 and {MAX_INDENT}, got {self.spacing!r}"
            )
        object.__setattr__(self, "prefixes", prefixes)

    @property
    def indent(self) -> str:
        """One level of indentation."""
        if self.use_tabs:
            return "\t"
        return " " * self.indent_width

    @property
    def separator(self) -> str:
        """Whitespace written between the terms of a triple."""
        return " " * self.spacing

    def with_default_prefixes(self) -> "SerializerOptions":
        """Return a copy that also binds rdf, rdfs and xsd."""
        merged = dict(DEFAULT_PREFIXES)
        merged.update(self.prefixes)
        return replace(self, prefixes=merged)

    @classmethod
    def from_bindings(cls, bindings: Iterable[str], **kwargs) -> "SerializerOptions":
        """Build options from `PREFIX=IRI` strings."""
        return cls(prefixes=normalize_prefix_bindings(bindings), **kwargs)


def parse_prefix_binding(raw: str) -> tuple[str, str]:
    """Split a `PREFIX=IRI` binding into its label and namespace."""
    if "=" not in raw:
        raise InvalidPrefix(f"invalid prefix binding '{raw}', expected PREFIX=IRI")
    prefix, iri = raw.split("=", 1)
    if not is_valid_prefix_label(prefix):
        raise InvalidPrefix(f"invalid prefix label '{prefix}' in '{raw}'")
    try:
        validate_iri(iri)
    except ValueError as exc:
        raise InvalidIri(f"invalid IRI in prefix binding '{raw}': {exc}") from exc
    return prefix, iri


def normalize_prefix_bindings(raw_values: Iterable[str]) -> dict[str, str]:
    """Parse `PREFIX=IRI` bindings, rejecting conflicting repeats."""
    by_prefix: dict[str, str] = {}
    for raw in raw_values:
        prefix, iri = parse_prefix_binding(raw)
        existing = by_prefix.get(prefix)
        if existing is not None and existing != iri:
            raise InvalidPrefix(
                f"conflicting bindings for '{prefix}': '{existing}' vs '{iri}'"
            )
        by_prefix[prefix] = iri
    return by_prefix
