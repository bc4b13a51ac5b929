"""Conversion to and from rdflib graphs."""

import pytest

from n3syntax import IRI, BNode, Formula, Graph, Literal, Variable
from n3syntax.namespaces import XSD_INTEGER_IRI

from .fixture import EX, ex

rdflib = pytest.importorskip("rdflib")

from n3syntax.rdflib_compat import from_rdflib, to_rdflib  # noqa: E402


class TestToRdflib:
    def test_terms(self):
        node = BNode("n")
        graph = Graph(
            [
                (ex("a"), ex("p"), node),
                (node, ex("q"), Literal("chat", lang="fr")),
                (node, ex("r"), Literal("7", datatype=XSD_INTEGER_IRI)),
                (node, ex("s"), Literal("plain")),
            ],
            prefixes={"ex": EX},
        )
        converted = to_rdflib(graph)
        assert len(converted) == 4
        blank = converted.value(rdflib.URIRef(EX + "a"), rdflib.URIRef(EX + "p"))
        assert isinstance(blank, rdflib.BNode)
        assert converted.value(blank, rdflib.URIRef(EX + "q")) == rdflib.Literal("chat", lang="fr")
        assert converted.value(blank, rdflib.URIRef(EX + "r")) == rdflib.Literal(
            "7", datatype=rdflib.XSD.integer
        )
        assert converted.value(blank, rdflib.URIRef(EX + "s")).datatype is None
        assert ("ex", rdflib.URIRef(EX)) in set(converted.namespaces())

    def test_lexical_form_is_preserved(self):
        graph = Graph([(ex("a"), ex("p"), Literal("007", datatype=XSD_INTEGER_IRI))])
        (_, _, obj), = to_rdflib(graph)
        assert str(obj) == "007"

    @pytest.mark.parametrize("node", [Variable("x"), Formula()])
    def test_n3_terms_are_rejected(self, node):
        with pytest.raises(ValueError):
            to_rdflib(Graph([(node, ex("p"), ex("o"))]))


class TestFromRdflib:
    def test_terms(self):
        source = rdflib.Graph()
        source.bind("ex", rdflib.URIRef(EX))
        blank = rdflib.BNode()
        source.add((rdflib.URIRef(EX + "a"), rdflib.URIRef(EX + "p"), blank))
        source.add((blank, rdflib.URIRef(EX + "q"), rdflib.Literal("hi", lang="en")))
        source.add((blank, rdflib.URIRef(EX + "r"), rdflib.Literal("x")))

        graph = from_rdflib(source)
        assert graph.prefixes["ex"] == EX
        (node,) = graph.objects(ex("a"), ex("p"))
        assert isinstance(node, BNode)
        assert graph.value(node, ex("q")) == Literal("hi", lang="en")
        assert graph.value(node, ex("r")) == Literal("x")

    def test_without_prefixes(self):
        source = rdflib.Graph()
        source.add((rdflib.URIRef(EX + "a"), rdflib.URIRef(EX + "p"), rdflib.URIRef(EX + "b")))
        graph = from_rdflib(source, prefixes=False)
        assert graph.prefixes == {}
        assert list(graph) == [(ex("a"), ex("p"), IRI(EX + "b"))]
