"""Turtle and Notation3 parser and serializer."""

from __future__ import annotations

import logging

from .config import MAX_INDENT, SerializerOptions
from .errors import (
    ConfigError,
    CyclicBlankStructure,
    InvalidIri,
    InvalidPrefix,
    InvalidSpacing,
    LexError,
    N3Error,
    N3SyntaxError,
    NestingTooDeep,
    ParseError,
    SerializeError,
    UndefinedPrefix,
    UnresolvableIri,
    UnresolvableTerm,
    UnsupportedConstruct,
)
from .graph import Graph
from .parser import Parser, parse, parse_graph, parse_n3, parse_results, parse_turtle
from .serializer import StreamSerializer, TurtleSerializer, serialize, serialize_to_string, stream_serialize
from .terms import IRI, BNode, Formula, Literal, Node, Triple, Variable

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BNode",
    "ConfigError",
    "CyclicBlankStructure",
    "Formula",
    "Graph",
    "IRI",
    "InvalidIri",
    "InvalidPrefix",
    "InvalidSpacing",
    "LexError",
    "Literal",
    "MAX_INDENT",
    "N3Error",
    "N3SyntaxError",
    "NestingTooDeep",
    "Node",
    "ParseError",
    "Parser",
    "SerializeError",
    "SerializerOptions",
    "StreamSerializer",
    "Triple",
    "TurtleSerializer",
    "UndefinedPrefix",
    "UnresolvableIri",
    "UnresolvableTerm",
    "UnsupportedConstruct",
    "Variable",
    "parse",
    "parse_graph",
    "parse_n3",
    "parse_results",
    "parse_turtle",
    "serialize",
    "serialize_to_string",
    "stream_serialize",
]
