"""Conversion between :class:`~n3syntax.graph.Graph` and ``rdflib.Graph``.

Requires the ``rdflib`` extra.  Only plain RDF crosses the boundary:
formulas and variables have no rdflib counterpart here and are rejected.
"""

from __future__ import annotations

import rdflib

from .graph import Graph
from .namespaces import XSD_STRING_IRI
from .terms import IRI, BNode, Literal, Node, has_n3_terms


def to_rdflib(graph: Graph) -> rdflib.Graph:
    """Copy a graph, with its prefix bindings, into a new `rdflib.Graph`."""
    if has_n3_terms(graph):
        raise ValueError("formulas and variables cannot be exported to rdflib")
    rdflib_graph = rdflib.Graph()
    for prefix, namespace in graph.prefixes.items():
        rdflib_graph.bind(prefix, rdflib.URIRef(namespace), override=True)

    blank_nodes: dict[BNode, rdflib.BNode] = {}

    def convert(node: Node) -> rdflib.term.Node:
        if isinstance(node, IRI):
            return rdflib.URIRef(node.value)
        if isinstance(node, BNode):
            if node not in blank_nodes:
                blank_nodes[node] = rdflib.BNode()
            return blank_nodes[node]
        if isinstance(node, Literal):
            if node.lang is not None:
                return rdflib.Literal(node.value, lang=node.lang, normalize=False)
            if node.datatype == XSD_STRING_IRI:
                return rdflib.Literal(node.value, normalize=False)
            return rdflib.Literal(
                node.value, datatype=rdflib.URIRef(node.datatype), normalize=False
            )
        raise TypeError(f"unsupported node type: {type(node)!r}")

    for subject, predicate, obj in graph:
        rdflib_graph.add((convert(subject), convert(predicate), convert(obj)))
    return rdflib_graph


def from_rdflib(rdflib_graph: rdflib.Graph, prefixes: bool = True) -> Graph:
    """Copy an `rdflib.Graph` into a new graph."""
    blank_nodes: dict[rdflib.BNode, BNode] = {}

    def convert(node: rdflib.term.Node) -> Node:
        if isinstance(node, rdflib.URIRef):
            return IRI(str(node))
        if isinstance(node, rdflib.BNode):
            if node not in blank_nodes:
                blank_nodes[node] = BNode(str(node))
            return blank_nodes[node]
        if isinstance(node, rdflib.Literal):
            if node.language is not None:
                return Literal(str(node), lang=node.language)
            if node.datatype is None:
                return Literal(str(node))
            return Literal(str(node), datatype=str(node.datatype))
        raise TypeError(f"unsupported node type: {type(node)!r}")

    graph = Graph()
    if prefixes:
        for prefix, namespace in rdflib_graph.namespaces():
            graph.bind(prefix, str(namespace))
    for subject, predicate, obj in rdflib_graph:
        graph.add((convert(subject), convert(predicate), convert(obj)))
    return graph
