"""Exception types raised while parsing, serializing and configuring."""

from __future__ import annotations


class N3Error(Exception):
    """Base class of every error raised by this package."""


class ParseError(N3Error, ValueError):
    """Raised on deterministic syntax/semantic parse errors."""

    def __init__(
        self,
        source: str,
        line: int,
        column: int,
        message: str,
        offset: int = 0,
    ):
        """Initialize a parse error with source location details."""
        super().__init__(f"{source}:{line}:{column}: {message}")
        self.source = source
        self.line = line
        self.column = column
        self.offset = offset
        self.message = message


class LexError(ParseError):
    """Malformed token: bad escape, unterminated literal, illegal code point."""

    def __init__(self, source, line, column, message, offset=0, kind="LexError"):
        super().__init__(source, line, column, message, offset)
        self.kind = kind


class N3SyntaxError(ParseError):
    """A token was read but is grammatically unexpected."""

    def __init__(
        self, source, line, column, message, offset=0, kind="UnexpectedToken"
    ):
        super().__init__(source, line, column, message, offset)
        self.kind = kind


class UndefinedPrefix(ParseError):
    """A prefixed name uses a prefix that has not been declared."""

    def __init__(self, source, line, column, message, offset=0, prefix=""):
        super().__init__(source, line, column, message, offset)
        self.prefix = prefix


class UnresolvableIri(ParseError):
    """A relative IRI reference appeared with no base IRI in scope."""

    def __init__(self, source, line, column, message, offset=0, reference=""):
        super().__init__(source, line, column, message, offset)
        self.reference = reference


class UnsupportedConstruct(ParseError):
    """Valid N3 that this engine deliberately does not implement."""


class NestingTooDeep(ParseError):
    """Nested brackets, collections or formulas exceeded the depth limit."""


class SerializeError(N3Error, ValueError):
    """A graph could not be rendered as Turtle/N3 text."""


class UnresolvableTerm(SerializeError):
    """A term holds a relative IRI and cannot be written unambiguously."""


class CyclicBlankStructure(SerializeError):
    """An `rdf:rest` chain loops back onto itself."""


class ConfigError(N3Error, ValueError):
    """Invalid serializer configuration."""


class InvalidPrefix(ConfigError):
    """A prefix label is not a valid `PN_PREFIX`."""


class InvalidIri(ConfigError):
    """A namespace or base IRI contains characters Turtle cannot express."""


class InvalidSpacing(ConfigError):
    """Indentation width outside the supported range."""
