"""RDF and N3 term model.

Every value the parser produces and the serializer consumes is one of
:class:`IRI`, :class:`BNode`, :class:`Literal`, :class:`Variable` or
:class:`Formula`.  Consumers dispatch on these five classes and treat any
other object as a programming error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Union

from .namespaces import RDF_LANG_STRING_IRI, XSD_STRING_IRI


@dataclass(frozen=True)
class IRI:
    """Absolute IRI node."""
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BNode:
    """Blank node identified by a label within a scope."""
    label: str
    scope: str = ""

    def __str__(self) -> str:
        return f"_:{self.label}"


@dataclass(frozen=True)
class Literal:
    """RDF literal value with either a language tag or a datatype."""
    value: str
    lang: str | None = None
    datatype: str = XSD_STRING_IRI

    def __post_init__(self) -> None:
        """Normalize the language tag and enforce the lang/datatype exclusion."""
        if self.lang is None:
            if self.datatype == RDF_LANG_STRING_IRI:
                raise ValueError("rdf:langString literal requires a language tag")
            return
        if not self.lang:
            raise ValueError("language tag must not be empty")
        if self.datatype not in (XSD_STRING_IRI, RDF_LANG_STRING_IRI):
            raise ValueError(
                "a literal cannot carry both a language tag and a datatype"
            )
        object.__setattr__(self, "lang", self.lang.lower())
        object.__setattr__(self, "datatype", RDF_LANG_STRING_IRI)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Variable:
    """N3 quantified variable.

    Quick variables (``?x``) only have a name.  Variables introduced with
    ``@forAll``/``@forSome`` keep the IRI they were declared as, so two
    declarations with the same local name never collide.
    """
    name: str
    existential: bool = False
    iri: str | None = None

    def __str__(self) -> str:
        return f"?{self.name}"


@dataclass(frozen=True, eq=False)
class Formula:
    """Immutable N3 formula: a quoted graph usable as a term."""
    triples: tuple["Triple", ...] = field(default=())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Formula):
            return NotImplemented
        return frozenset(self.triples) == frozenset(other.triples)

    def __hash__(self) -> int:
        return hash(frozenset(self.triples))

    def __len__(self) -> int:
        return len(self.triples)

    def __iter__(self) -> Iterator["Triple"]:
        return iter(self.triples)

    @property
    def graph(self):
        """Return a mutable copy of the formula contents as a `Graph`."""
        from .graph import Graph

        return Graph(self.triples)


Node = Union[IRI, BNode, Literal, Variable, Formula]
Subject = Union[IRI, BNode, Variable, Formula]
Predicate = Union[IRI, Variable]
Triple = tuple[Subject, Predicate, Node]


def is_subject(node: Node) -> bool:
    """Return whether a term may appear in subject position."""
    return isinstance(node, (IRI, BNode, Variable, Formula))


def is_predicate(node: Node) -> bool:
    """Return whether a term may appear in predicate position."""
    return isinstance(node, (IRI, Variable))


def has_n3_terms(triples: Iterable[Triple]) -> bool:
    """Return whether any triple uses a Variable or Formula term."""
    for triple in triples:
        for node in triple:
            if isinstance(node, (Variable, Formula)):
                return True
    return False
