"""Helpers shared by the test modules."""

from __future__ import annotations

import random

from n3syntax import IRI, BNode, Graph, Literal, parse
from n3syntax.namespaces import (
    RDF_FIRST_IRI,
    RDF_NIL_IRI,
    RDF_REST_IRI,
    RDF_TYPE_IRI,
    XSD_BOOLEAN_IRI,
    XSD_DECIMAL_IRI,
    XSD_DOUBLE_IRI,
    XSD_INTEGER_IRI,
)

EX = "http://example.org/"
OTHER = "http://other.test/ns#"
BASE = "http://base.test/doc/"


def ex(local: str) -> IRI:
    return IRI(EX + local)


def parse_list(text, **kwargs) -> list:
    """Parse everything eagerly."""
    kwargs.setdefault("base_iri", BASE)
    return list(parse(text, **kwargs))


def b(local: str) -> IRI:
    """IRI relative to the default test base."""
    return IRI(BASE + local)


def make_list(graph: Graph, items: list, new_node) -> IRI | BNode:
    """Add an RDF collection to `graph` and return its head."""
    if not items:
        return IRI(RDF_NIL_IRI)
    head = new_node()
    current = head
    for idx, item in enumerate(items):
        graph.add((current, IRI(RDF_FIRST_IRI), item))
        if idx == len(items) - 1:
            graph.add((current, IRI(RDF_REST_IRI), IRI(RDF_NIL_IRI)))
        else:
            nxt = new_node()
            graph.add((current, IRI(RDF_REST_IRI), nxt))
            current = nxt
    return head


def blank_chain(length: int) -> Graph:
    """`ex:root` followed by `length` blank nodes, each the only object of the one before."""
    graph = Graph(prefixes={"ex": EX})
    previous = ex("root")
    for idx in range(length):
        node = BNode(f"c{idx}")
        graph.add((previous, ex("next"), node))
        previous = node
    graph.add((previous, ex("value"), Literal("end")))
    return graph


def nested_lists(depth: int) -> Graph:
    """`ex:root ex:items ( ( ( ... ex:leaf ... ) ) )` nested `depth` lists deep."""
    graph = Graph(prefixes={"ex": EX})
    counter = [0]

    def new_node() -> BNode:
        counter[0] += 1
        return BNode(f"l{counter[0]}")

    item = ex("leaf")
    for _ in range(depth):
        item = make_list(graph, [item], new_node)
    graph.add((ex("root"), ex("items"), item))
    return graph


LOCAL_NAMES = ["a", "b", "thing", "b.c", "1x", "with-dash", "x%20y", "trail.", "a~b", "_u", ""]
STRINGS = [
    "plain",
    "",
    'say "hi"',
    "it's",
    "both ' and \"",
    "line\nbreak",
    "ends with quote\"",
    "back\\slash",
    "tab\there",
    "café \U0001F600",
    "ctrl\x01char",
    "cr\rlf",
]


def random_graph(seed: int, size: int = 15) -> Graph:
    """Build a reproducible graph mixing IRIs, blank nodes, literals and lists."""
    rnd = random.Random(seed)
    graph = Graph()
    counter = [0]

    def new_node() -> BNode:
        counter[0] += 1
        return BNode(f"n{counter[0]}")

    bnodes = [new_node() for _ in range(rnd.randint(0, 4))]

    def iri() -> IRI:
        namespace = rnd.choice([EX, OTHER, "http://plain.test/"])
        return IRI(namespace + rnd.choice(LOCAL_NAMES))

    def literal() -> Literal:
        kind = rnd.randrange(7)
        if kind == 0:
            return Literal(str(rnd.randint(-50, 50)), datatype=XSD_INTEGER_IRI)
        if kind == 1:
            return Literal(f"{rnd.randint(0, 99)}.{rnd.randint(0, 9)}", datatype=XSD_DECIMAL_IRI)
        if kind == 2:
            return Literal(f"{rnd.randint(1, 9)}.5E{rnd.randint(-3, 3)}", datatype=XSD_DOUBLE_IRI)
        if kind == 3:
            return Literal(rnd.choice(["true", "false"]), datatype=XSD_BOOLEAN_IRI)
        if kind == 4:
            return Literal(rnd.choice(STRINGS), lang=rnd.choice(["en", "de-AT"]))
        if kind == 5:
            return Literal(rnd.choice(STRINGS), datatype=EX + "dt")
        return Literal(rnd.choice(STRINGS))

    def subject():
        if bnodes and rnd.random() < 0.4:
            return rnd.choice(bnodes)
        return iri()

    def obj():
        roll = rnd.random()
        if roll < 0.3:
            return literal()
        if roll < 0.5 and bnodes:
            return rnd.choice(bnodes)
        if roll < 0.6:
            items = [rnd.choice([iri(), literal()]) for _ in range(rnd.randint(0, 3))]
            return make_list(graph, items, new_node)
        return iri()

    for _ in range(size):
        predicate = IRI(RDF_TYPE_IRI) if rnd.random() < 0.1 else iri()
        graph.add((subject(), predicate, obj()))
    return graph
