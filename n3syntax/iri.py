"""Character classes of the Turtle grammar and IRI handling helpers."""

from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import urlsplit, urlunsplit

IRI_FORBIDDEN = '<>"{}|^`\\'
PN_LOCAL_ESCAPABLE = "_~.-!$&'()*+,;=/?#@%"

_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:")


def _in_ranges(cp: int, ranges: Iterable[tuple[int, int]]) -> bool:
    """Return whether a code point falls inside any of the ranges."""
    for lo, hi in ranges:
        if lo <= cp <= hi:
            return True
    return False


PN_BASE_RANGES = (
    (0x00C0, 0x00D6),
    (0x00D8, 0x00F6),
    (0x00F8, 0x02FF),
    (0x0370, 0x037D),
    (0x037F, 0x1FFF),
    (0x200C, 0x200D),
    (0x2070, 0x218F),
    (0x2C00, 0x2FEF),
    (0x3001, 0xD7FF),
    (0xF900, 0xFDCF),
    (0xFDF0, 0xFFFD),
    (0x10000, 0xEFFFF),
)


def is_space(ch: str) -> bool:
    """Return whether a character is Turtle whitespace."""
    return ch != "" and ch in " \t\r\n"


def is_pn_chars_base(ch: str) -> bool:
    """Return whether a character is a valid `PN_CHARS_BASE` code point."""
    if len(ch) != 1:
        return False
    if "A" <= ch <= "Z" or "a" <= ch <= "z":
        return True
    return _in_ranges(ord(ch), PN_BASE_RANGES)


def is_pn_chars_u(ch: str) -> bool:
    """Return whether a character is a valid `PN_CHARS_U` code point."""
    return ch == "_" or is_pn_chars_base(ch)


def is_pn_chars(ch: str) -> bool:
    """Return whether a character is a valid `PN_CHARS` code point."""
    if len(ch) != 1:
        return False
    if is_pn_chars_u(ch) or ch in "-0123456789":
        return True
    cp = ord(ch)
    return cp == 0x00B7 or 0x0300 <= cp <= 0x036F or 0x203F <= cp <= 0x2040


def is_digit(ch: str) -> bool:
    """Return whether a character is an ASCII digit."""
    return ch != "" and "0" <= ch <= "9"


def is_hex(ch: str) -> bool:
    """Return whether a character is a hexadecimal digit."""
    return is_digit(ch) or ("A" <= ch <= "F") or ("a" <= ch <= "f")


def has_scheme(value: str) -> bool:
    """Return whether an IRI reference starts with a URI scheme."""
    return _SCHEME_RE.match(value) is not None


def validate_iri(value: str, require_absolute: bool = False) -> None:
    """Raise `ValueError` if `value` cannot be written as an IRIREF."""
    for ch in value:
        if ch in IRI_FORBIDDEN or ord(ch) <= 0x20:
            raise ValueError(f"invalid character {ch!r} in IRI {value!r}")
    if require_absolute and not has_scheme(value):
        raise ValueError(f"IRI {value!r} must be absolute")


def encode_iri_ref(value: str) -> str:
    """Encode an IRI as an `<IRIREF>` token, escaping forbidden characters."""
    out: list[str] = ["<"]
    for ch in value:
        cp = ord(ch)
        if ch in IRI_FORBIDDEN or cp <= 0x20:
            if cp <= 0xFFFF:
                out.append(f"\\u{cp:04X}")
            else:
                out.append(f"\\U{cp:08X}")
        else:
            out.append(ch)
    out.append(">")
    return "".join(out)


def _remove_dot_segments(path: str) -> str:
    """Normalize a path by removing `.` and `..` dot segments (RFC 3986 5.2.4)."""
    input_buffer = path
    output_buffer = ""

    def remove_last_segment(buf: str) -> str:
        idx = buf.rfind("/")
        if idx < 0:
            return ""
        return buf[:idx]

    while input_buffer:
        if input_buffer.startswith("../"):
            input_buffer = input_buffer[3:]
        elif input_buffer.startswith("./"):
            input_buffer = input_buffer[2:]
        elif input_buffer.startswith("/./"):
            input_buffer = "/" + input_buffer[3:]
        elif input_buffer == "/.":
            input_buffer = "/"
        elif input_buffer.startswith("/../"):
            input_buffer = "/" + input_buffer[4:]
            output_buffer = remove_last_segment(output_buffer)
        elif input_buffer == "/..":
            input_buffer = "/"
            output_buffer = remove_last_segment(output_buffer)
        elif input_buffer in (".", ".."):
            input_buffer = ""
        else:
            start = 1 if input_buffer.startswith("/") else 0
            next_slash = input_buffer.find("/", start)
            if next_slash < 0:
                output_buffer += input_buffer
                input_buffer = ""
            else:
                output_buffer += input_buffer[:next_slash]
                input_buffer = input_buffer[next_slash:]
    return output_buffer


def _merge_reference_path(base_path: str, base_has_authority: bool, ref_path: str) -> str:
    """Merge a relative reference path against the base path (RFC 3986 5.2.3)."""
    if base_has_authority and base_path == "":
        return "/" + ref_path
    slash = base_path.rfind("/")
    if slash < 0:
        return ref_path
    return base_path[: slash + 1] + ref_path


def resolve_iri_reference(base_iri: str | None, ref_iri: str) -> str:
    """Resolve an IRI reference against a base IRI.

    A reference that already carries a scheme is returned unchanged, so
    resolution is idempotent for absolute IRIs.  Raises `ValueError` when the
    reference is relative and there is no absolute base to resolve it with.
    """
    if has_scheme(ref_iri):
        return ref_iri
    if base_iri is None or not has_scheme(base_iri):
        raise ValueError(f"cannot resolve relative IRI <{ref_iri}> without a base")

    ref_parts = urlsplit(ref_iri)
    base_parts = urlsplit(base_iri)
    ref_no_fragment, _, _ = ref_iri.partition("#")
    has_query_marker = "?" in ref_no_fragment
    has_fragment_marker = "#" in ref_iri

    if ref_iri.startswith("//"):
        path = _remove_dot_segments(ref_parts.path)
        resolved = urlunsplit(
            (base_parts.scheme, ref_parts.netloc, path, ref_parts.query, ref_parts.fragment)
        )
    else:
        if ref_parts.path == "":
            path = base_parts.path
            query = ref_parts.query if has_query_marker else base_parts.query
            if not has_query_marker and "?" in base_iri.partition("#")[0]:
                has_query_marker = True
        elif ref_parts.path.startswith("/"):
            path = _remove_dot_segments(ref_parts.path)
            query = ref_parts.query
        else:
            merged = _merge_reference_path(
                base_parts.path,
                base_has_authority=bool(base_parts.netloc),
                ref_path=ref_parts.path,
            )
            path = _remove_dot_segments(merged)
            query = ref_parts.query
        resolved = urlunsplit(
            (base_parts.scheme, base_parts.netloc, path, query, ref_parts.fragment)
        )
        after_scheme = len(base_parts.scheme) + 1
        if (
            base_parts.netloc == ""
            and base_iri[after_scheme:].startswith("//")
            and not resolved[after_scheme:].startswith("//")
        ):
            # urlunsplit may drop an empty authority ("x:///path" bases).
            resolved = f"{base_parts.scheme}://{resolved[after_scheme:]}"

    # urlunsplit drops empty query/fragment markers; put them back.
    if has_query_marker and "?" not in resolved.partition("#")[0]:
        head, sep, tail = resolved.partition("#")
        resolved = f"{head}?{sep}{tail}"
    if has_fragment_marker and not resolved.endswith("#") and "#" not in resolved:
        resolved += "#"
    return resolved


def is_valid_prefix_label(prefix: str) -> bool:
    """Return whether a string is a valid Turtle prefix label (`PN_PREFIX`)."""
    if prefix == "":
        return True
    if not is_pn_chars_base(prefix[0]):
        return False
    if prefix[-1] == ".":
        return False
    return all(ch == "." or is_pn_chars(ch) for ch in prefix[1:])


def escape_pn_local(local: str) -> str | None:
    """Escape text as a `PN_LOCAL`, or return `None` if that is impossible."""
    if local == "":
        return ""
    out: list[str] = []
    endable = False
    i = 0
    while i < len(local):
        ch = local[i]
        first = i == 0
        last = i == len(local) - 1

        if ch == "%":
            if i + 2 < len(local) and is_hex(local[i + 1]) and is_hex(local[i + 2]):
                out.append(local[i : i + 3])
                endable = True
                i += 3
                continue
            out.append("\\%")
            endable = True
            i += 1
            continue

        if ch == ".":
            if first or last:
                out.append("\\.")
                endable = True
            else:
                out.append(".")
                endable = False
            i += 1
            continue

        if first and (ch == ":" or is_digit(ch) or is_pn_chars_u(ch)):
            out.append(ch)
        elif not first and (ch == ":" or is_pn_chars(ch)):
            out.append(ch)
        elif ch in PN_LOCAL_ESCAPABLE:
            out.append("\\" + ch)
        else:
            return None
        endable = True
        i += 1

    if not endable:
        return None
    return "".join(out)
