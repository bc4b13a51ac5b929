"""Parsing Turtle documents."""

import io

import pytest

from n3syntax import (
    IRI,
    BNode,
    Graph,
    Literal,
    N3SyntaxError,
    NestingTooDeep,
    ParseError,
    UndefinedPrefix,
    UnresolvableIri,
    parse,
    parse_graph,
    parse_results,
    parse_turtle,
)
from n3syntax.namespaces import (
    RDF_FIRST_IRI,
    RDF_NIL_IRI,
    RDF_REST_IRI,
    RDF_TYPE_IRI,
    XSD_BOOLEAN_IRI,
    XSD_DECIMAL_IRI,
    XSD_DOUBLE_IRI,
    XSD_INTEGER_IRI,
    XSD_STRING_IRI,
)

from .fixture import BASE, b

FIRST = IRI(RDF_FIRST_IRI)
REST = IRI(RDF_REST_IRI)
NIL = IRI(RDF_NIL_IRI)


def turtle(text, base_iri=BASE):
    return list(parse_turtle(text, base_iri))


def syntax_error(text, **kwargs) -> N3SyntaxError:
    with pytest.raises(N3SyntaxError) as excinfo:
        list(parse(text, BASE, dialect="turtle", **kwargs))
    return excinfo.value


class TestBasicStatements:
    def test_object_list(self):
        triples = turtle("@prefix ex: <http://ex.org/> . ex:a ex:b ex:c, ex:d .")
        a, p = IRI("http://ex.org/a"), IRI("http://ex.org/b")
        assert triples == [(a, p, IRI("http://ex.org/c")), (a, p, IRI("http://ex.org/d"))]

    def test_blank_node_property_list_as_statement(self):
        triples = turtle("[ <p> <o> ] .")
        assert len(triples) == 1
        subject, predicate, obj = triples[0]
        assert isinstance(subject, BNode)
        assert (predicate, obj) == (b("p"), b("o"))

    def test_collection(self):
        triples = turtle("<a> <b> ( 1 2 ) .")
        one = Literal("1", datatype=XSD_INTEGER_IRI)
        two = Literal("2", datatype=XSD_INTEGER_IRI)
        head = triples[0][2]
        second = triples[2][2]
        assert triples == [
            (b("a"), b("b"), head),
            (head, FIRST, one),
            (head, REST, second),
            (second, FIRST, two),
            (second, REST, NIL),
        ]
        assert head != second

    def test_missing_terminator(self):
        results = list(parse_results("<a> <b> <c>", BASE, dialect="turtle"))
        assert len(results) == 1
        err = results[0]
        assert isinstance(err, N3SyntaxError)
        assert err.kind == "ExpectedStatementEnd"
        assert (err.line, err.column) == (1, 12)
        assert str(err).startswith("<string>:1:12:")

    def test_typed_and_bare_integer_are_equal(self):
        triples = turtle('<a> <b> "5"^^<http://www.w3.org/2001/XMLSchema#integer>, 5 .')
        assert triples[0][2] == triples[1][2] == Literal("5", datatype=XSD_INTEGER_IRI)


class TestStreaming:
    def test_earlier_statements_survive_a_later_error(self):
        results = list(parse_results("<a> <b> <c> . <d> <e> <f>", BASE))
        assert results[0] == (b("a"), b("b"), b("c"))
        assert isinstance(results[1], ParseError)
        assert len(results) == 2

    def test_failing_statement_yields_nothing(self):
        it = parse_turtle("<a> <b> <c> . <d> <e> [ <f> <g> ] <h> .", BASE)
        assert next(it) == (b("a"), b("b"), b("c"))
        with pytest.raises(N3SyntaxError):
            next(it)

    def test_parse_is_lazy(self):
        it = parse_turtle("<a> <b> <c> . <d> <e> <f> .", BASE)
        assert next(it) == (b("a"), b("b"), b("c"))
        assert next(it) == (b("d"), b("e"), b("f"))
        with pytest.raises(StopIteration):
            next(it)

    def test_file_like_source(self):
        triples = list(parse_turtle(io.StringIO("<a> <b> <c> ."), BASE))
        assert triples == [(b("a"), b("b"), b("c"))]

    def test_bytes_source(self):
        triples = list(parse_turtle('<a> <b> "café" .'.encode("utf-8"), BASE))
        assert triples[0][2] == Literal("café")


class TestDirectives:
    def test_base_and_relative_base(self):
        triples = turtle("@base <http://a/b/> . <c> <p> <o> . @base <d/> . <e> <p> <o> .", None)
        assert triples[0][0] == IRI("http://a/b/c")
        assert triples[1][0] == IRI("http://a/b/d/e")

    def test_sparql_style_directives(self):
        triples = turtle("BASE <http://a/> PREFIX ex: <http://e/> ex:s <p> ex:o .", None)
        assert triples == [(IRI("http://e/s"), IRI("http://a/p"), IRI("http://e/o"))]

    def test_sparql_keywords_are_case_insensitive(self):
        triples = turtle("prefix ex: <http://e/> ex:s ex:p ex:o .")
        assert triples[0][0] == IRI("http://e/s")

    def test_prefix_is_not_retroactive(self):
        with pytest.raises(UndefinedPrefix):
            turtle("ex:a ex:b ex:c . @prefix ex: <http://e/> .")

    def test_prefix_redefinition(self):
        triples = turtle(
            "@prefix ex: <http://one/> . ex:a ex:b ex:c . "
            "@prefix ex: <http://two/> . ex:a ex:b ex:c ."
        )
        assert triples[0][0] == IRI("http://one/a")
        assert triples[1][0] == IRI("http://two/a")

    def test_relative_prefix_namespace(self):
        triples = turtle("@prefix x: <ns#> . x:a x:b x:c .")
        assert triples[0][0] == IRI(BASE + "ns#a")

    def test_version_directive_is_ignored(self):
        assert turtle('@version "1.2" . VERSION "1.2" <a> <b> <c> .') == [
            (b("a"), b("b"), b("c"))
        ]

    def test_prefix_directive_requires_dot(self):
        assert syntax_error("@prefix ex: <http://e/> ex:a ex:b ex:c .").kind == "MalformedDirective"

    def test_prefix_directive_requires_namespace_name(self):
        assert syntax_error("@prefix ex:a <http://e/> .").kind == "MalformedDirective"


class TestResolutionErrors:
    def test_undefined_prefix(self):
        with pytest.raises(UndefinedPrefix) as excinfo:
            turtle("<a> <b> ex:c .")
        assert excinfo.value.prefix == "ex"
        assert (excinfo.value.line, excinfo.value.column) == (1, 9)

    def test_undefined_empty_prefix(self):
        with pytest.raises(UndefinedPrefix) as excinfo:
            turtle(":a :b :c .")
        assert excinfo.value.prefix == ""

    def test_relative_iri_without_base(self):
        with pytest.raises(UnresolvableIri) as excinfo:
            turtle("<http://a/s> <p> <http://a/o> .", None)
        assert excinfo.value.reference == "p"

    def test_relative_base_argument_is_rejected(self):
        with pytest.raises(ValueError):
            parse_turtle("<a> <b> <c> .", "relative/")

    def test_relative_base_is_rejected_before_collecting_results(self):
        with pytest.raises(ValueError):
            parse_results("<a> <b> <c> .", "relative/")

    def test_unknown_dialect_is_rejected_before_collecting_results(self):
        with pytest.raises(ValueError):
            parse_results("<a> <b> <c> .", BASE, dialect="ntriples")


class TestTerms:
    def test_blank_node_labels_are_stable(self):
        triples = turtle("_:x <p> _:y . _:y <q> _:x .")
        assert triples[0][0] == triples[1][2]
        assert triples[0][2] == triples[1][0]
        assert triples[0][0] != triples[0][2]

    def test_anonymous_blank_nodes_are_fresh(self):
        triples = turtle("<s> <p> [], [] .")
        assert triples[0][2] != triples[1][2]

    def test_nested_property_lists(self):
        triples = turtle("<s> <p> [ <q> [ <r> <o> ] ] .")
        outer, inner = triples[0][2], triples[1][2]
        assert triples == [
            (b("s"), b("p"), outer),
            (outer, b("q"), inner),
            (inner, b("r"), b("o")),
        ]

    def test_property_list_subject_with_predicates(self):
        triples = turtle("[ <p> <o> ] <q> <r> .")
        node = triples[0][0]
        assert triples == [(node, b("p"), b("o")), (node, b("q"), b("r"))]

    def test_empty_collection_is_nil(self):
        assert turtle("<s> <p> () .") == [(b("s"), b("p"), NIL)]

    def test_nested_collection(self):
        triples = turtle("<s> <p> ( ( 1 ) ) .")
        graph = Graph(triples)
        outer = graph.value(b("s"), b("p"))
        (inner,) = graph.collection(outer)
        assert graph.collection(inner) == [Literal("1", datatype=XSD_INTEGER_IRI)]

    def test_rdf_type_keyword(self):
        assert turtle("<s> a <C> .") == [(b("s"), IRI(RDF_TYPE_IRI), b("C"))]

    def test_literals(self):
        triples = turtle(
            '<s> <p> "x", \'y\', """multi\nline""", "chat"@FR, '
            '"1"^^<http://www.w3.org/2001/XMLSchema#decimal>, '
            "true, false, -1.5, 2e10, +7 ."
        )
        objects = [obj for _, _, obj in triples]
        assert objects == [
            Literal("x"),
            Literal("y"),
            Literal("multi\nline"),
            Literal("chat", lang="fr"),
            Literal("1", datatype=XSD_DECIMAL_IRI),
            Literal("true", datatype=XSD_BOOLEAN_IRI),
            Literal("false", datatype=XSD_BOOLEAN_IRI),
            Literal("-1.5", datatype=XSD_DECIMAL_IRI),
            Literal("2e10", datatype=XSD_DOUBLE_IRI),
            Literal("+7", datatype=XSD_INTEGER_IRI),
        ]
        assert objects[0].datatype == XSD_STRING_IRI

    def test_language_tag_is_case_insensitive(self):
        first, second = turtle('<s> <p> "a"@EN-gb . <s> <p> "a"@en-GB .')
        assert first == second

    def test_prefixed_datatype(self):
        triples = turtle('@prefix xsd: <http://www.w3.org/2001/XMLSchema#> . <s> <p> "1"^^xsd:integer .')
        assert triples[0][2] == Literal("1", datatype=XSD_INTEGER_IRI)


class TestSyntaxErrors:
    def test_lang_and_datatype(self):
        err = syntax_error('<s> <p> "x"@en^^<http://www.w3.org/2001/XMLSchema#string> .')
        assert err.kind == "LangAndDatatype"

    def test_literal_subject(self):
        assert syntax_error('"x" <p> <o> .').kind == "IllegalSubject"

    def test_literal_predicate(self):
        assert syntax_error('<s> "p" <o> .').kind == "IllegalPredicate"

    def test_blank_node_predicate(self):
        assert syntax_error("<s> _:p <o> .").kind == "IllegalPredicate"

    def test_missing_object(self):
        assert syntax_error("<s> <p> .").kind == "UnexpectedToken"

    def test_unclosed_bracket(self):
        assert syntax_error("<s> <p> [ <q> <r> .").kind == "UnexpectedToken"

    @pytest.mark.parametrize(
        "text",
        [
            "{ <a> <b> <c> } <p> <o> .",
            "?x <p> <o> .",
            "<a> = <b> .",
            "<a> => <b> .",
            "<a> has <p> <b> .",
            "<a> is <p> of <b> .",
            "<a>!<p> <q> <r> .",
            "@forAll <x> .",
        ],
    )
    def test_n3_constructs_are_rejected(self, text):
        assert syntax_error(text).kind == "N3Construct"

    def test_empty_brackets_need_predicates(self):
        assert syntax_error("[] .").kind == "IllegalPredicate"


class TestSeparators:
    def test_repeated_and_trailing_semicolons(self):
        triples = turtle("<s> <p> <o> ; ; <q> <o2> ; .")
        assert triples == [(b("s"), b("p"), b("o")), (b("s"), b("q"), b("o2"))]

    def test_trailing_comma(self):
        assert turtle("<s> <p> <o> , .") == [(b("s"), b("p"), b("o"))]

    def test_trailing_semicolon_in_brackets(self):
        triples = turtle("<s> <p> [ <q> <r> ; ] .")
        assert len(triples) == 2


class TestNesting:
    def test_depth_limit(self):
        text = "<s> <p> " + "( " * 4 + "1" + " )" * 4 + " ."
        with pytest.raises(NestingTooDeep):
            list(parse(text, BASE, dialect="turtle", max_depth=3))
        assert len(list(parse(text, BASE, dialect="turtle", max_depth=4))) == 9

    def test_default_depth_limit(self):
        text = "<s> <p> " + "[ <p> " * 70 + "<o>" + " ]" * 70 + " ."
        with pytest.raises(NestingTooDeep):
            turtle(text)


class TestParseGraph:
    def test_graph_keeps_document_prefixes(self):
        graph = parse_graph("@prefix ex: <http://e/> . ex:a ex:b ex:c, ex:c .", dialect="turtle")
        assert len(graph) == 1
        assert graph.prefixes == {"ex": "http://e/"}

    def test_graph_parse_classmethod(self):
        graph = Graph.parse("<a> <b> <c> .", base_iri=BASE, dialect="turtle")
        assert (b("a"), b("b"), b("c")) in graph
