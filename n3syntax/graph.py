"""In-memory graph model."""

from __future__ import annotations

from typing import Iterable, Iterator

from .errors import CyclicBlankStructure
from .namespaces import RDF_FIRST_IRI, RDF_NIL_IRI, RDF_REST_IRI
from .terms import IRI, BNode, Formula, Node, Predicate, Subject, Triple

TriplePattern = tuple["Subject | None", "Predicate | None", "Node | None"]


class Graph:
    """Insertion-ordered set of triples plus namespace bindings.

    Duplicate triples collapse.  Iteration follows insertion order so a graph
    filled by the parser replays the statements in document order.
    """

    def __init__(
        self,
        triples: Iterable[Triple] = (),
        prefixes: dict[str, str] | None = None,
    ):
        """Initialize the graph with optional triples and prefix bindings."""
        self._triples: dict[Triple, None] = {}
        self.prefixes: dict[str, str] = dict(prefixes or {})
        self.update(triples)

    def __len__(self) -> int:
        return len(self._triples)

    def __iter__(self) -> Iterator[Triple]:
        return iter(list(self._triples))

    def __contains__(self, triple: object) -> bool:
        return triple in self._triples

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return self._triples.keys() == other._triples.keys()

    def __repr__(self) -> str:
        return f"<Graph with {len(self)} triples>"

    def add(self, triple: Triple) -> None:
        """Add one triple; adding an existing triple is a no-op."""
        if len(triple) != 3:
            raise ValueError(f"expected a 3-tuple, got {triple!r}")
        self._triples[tuple(triple)] = None

    def update(self, triples: Iterable[Triple]) -> None:
        """Add every triple from an iterable."""
        for triple in triples:
            self.add(triple)

    def discard(self, triple: Triple) -> None:
        """Remove a triple if present."""
        self._triples.pop(tuple(triple), None)

    def bind(self, prefix: str, namespace: str) -> None:
        """Record a namespace binding used when the graph is serialized."""
        self.prefixes[prefix] = namespace

    def triples(self, pattern: TriplePattern = (None, None, None)) -> Iterator[Triple]:
        """Yield triples matching a pattern; `None` matches any term."""
        s, p, o = pattern
        for triple in list(self._triples):
            if s is not None and triple[0] != s:
                continue
            if p is not None and triple[1] != p:
                continue
            if o is not None and triple[2] != o:
                continue
            yield triple

    def subjects(self, predicate: Predicate | None = None, obj: Node | None = None) -> Iterator[Subject]:
        """Yield distinct subjects, optionally filtered by predicate and object."""
        seen: set[Subject] = set()
        for s, _, _ in self.triples((None, predicate, obj)):
            if s not in seen:
                seen.add(s)
                yield s

    def objects(self, subject: Subject | None = None, predicate: Predicate | None = None) -> Iterator[Node]:
        """Yield objects of the triples matching subject and predicate."""
        for _, _, o in self.triples((subject, predicate, None)):
            yield o

    def predicate_objects(self, subject: Subject) -> Iterator[tuple[Predicate, Node]]:
        """Yield `(predicate, object)` pairs of a subject."""
        for _, p, o in self.triples((subject, None, None)):
            yield p, o

    def value(self, subject: Subject, predicate: Predicate) -> Node | None:
        """Return one object for `subject`/`predicate`, or `None`."""
        return next(self.objects(subject, predicate), None)

    def collection(self, head: Node) -> list[Node]:
        """Read an RDF collection starting at `head` into a Python list."""
        items: list[Node] = []
        visited: set[Node] = set()
        node = head
        while node != IRI(RDF_NIL_IRI):
            if not isinstance(node, (BNode, IRI)):
                raise ValueError(f"{node!r} is not a list node")
            if node in visited:
                raise CyclicBlankStructure(f"rdf:rest chain cycles back to {node}")
            visited.add(node)
            firsts = list(self.objects(node, IRI(RDF_FIRST_IRI)))
            rests = list(self.objects(node, IRI(RDF_REST_IRI)))
            if len(firsts) != 1 or len(rests) != 1:
                raise ValueError(f"{node} is not a well-formed list node")
            items.append(firsts[0])
            node = rests[0]
        return items

    def freeze(self) -> Formula:
        """Return the graph contents as an immutable N3 formula term."""
        return Formula(tuple(self._triples))

    def copy(self) -> "Graph":
        return Graph(self._triples, self.prefixes)

    @classmethod
    def parse(cls, source, base_iri: str | None = None, dialect: str = "n3",
              source_name: str = "<string>") -> "Graph":
        """Parse Turtle/N3 text into a new graph."""
        from .parser import parse_graph

        return parse_graph(source, base_iri=base_iri, dialect=dialect, source_name=source_name)

    def serialize(self, options=None) -> str:
        """Serialize the graph to Turtle (N3 when it holds N3 terms)."""
        from .serializer import serialize_to_string

        return serialize_to_string(self, options)
