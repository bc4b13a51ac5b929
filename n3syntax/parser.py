"""Recursive-descent parser for Turtle and Notation3.

The parser pulls tokens from :class:`~n3syntax.lexer.Lexer` and produces
triples lazily.  A top-level statement is parsed completely before any of
its triples is handed out, so a statement that fails contributes nothing,
and the triples of one statement always come out together.  Nothing beyond
the statement being parsed is buffered.

The ``"turtle"`` dialect rejects every N3 extension; the ``"n3"`` dialect
accepts formulas, variables, quantifier declarations, path expressions and
the extra N3 verbs.  N3 rules are parsed into formulas and never evaluated.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Union

from .context import ResolutionContext
from .errors import (
    N3SyntaxError,
    NestingTooDeep,
    ParseError,
    UndefinedPrefix,
    UnresolvableIri,
    UnsupportedConstruct,
)
from .graph import Graph
from .iri import has_scheme
from .lexer import (
    AT_KEYWORD,
    BLANK_NODE_LABEL,
    DECIMAL,
    DOUBLE,
    EOF,
    INTEGER,
    IRIREF,
    LANGTAG,
    NAME,
    PNAME,
    PUNCT,
    STRING,
    VARIABLE,
    Lexer,
    Source,
    Token,
)
from .namespaces import (
    LOG_IMPLIES_IRI,
    OWL_SAME_AS_IRI,
    RDF_FIRST_IRI,
    RDF_NIL_IRI,
    RDF_REST_IRI,
    RDF_TYPE_IRI,
    XSD_BOOLEAN_IRI,
    XSD_DECIMAL_IRI,
    XSD_DOUBLE_IRI,
    XSD_INTEGER_IRI,
)
from .terms import (
    IRI,
    BNode,
    Formula,
    Literal,
    Node,
    Predicate,
    Subject,
    Triple,
    Variable,
    is_predicate,
    is_subject,
)

logger = logging.getLogger(__name__)

TURTLE = "turtle"
N3 = "n3"
DIALECTS = (TURTLE, N3)

DEFAULT_MAX_DEPTH = 64

NUMERIC_DATATYPES = {
    INTEGER: XSD_INTEGER_IRI,
    DECIMAL: XSD_DECIMAL_IRI,
    DOUBLE: XSD_DOUBLE_IRI,
}

OBJECT_LIST_END = (".", ";", "]", "}")


class Parser:
    """Pull parser for one Turtle or N3 document."""

    def __init__(
        self,
        source: Source,
        base_iri: str | None = None,
        dialect: str = N3,
        source_name: str = "<string>",
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """Initialize the parser; nothing is read until iteration starts."""
        if dialect not in DIALECTS:
            raise ValueError(f"unsupported dialect: {dialect!r}")
        if base_iri is not None and not has_scheme(base_iri):
            raise ValueError(f"base IRI must be absolute, got {base_iri!r}")
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.lexer = Lexer(source, source_name)
        self.context = ResolutionContext(base_iri)
        self.dialect = dialect
        self.max_depth = max_depth
        self.statements = 0
        self._sink: list[Triple | None] = []
        self._depth = 0

    @property
    def prefixes(self) -> dict[str, str]:
        """Prefix bindings declared at document level so far."""
        return self.context.frames[0].prefixes

    def __iter__(self) -> Iterator[Triple]:
        return self.triples()

    def triples(self) -> Iterator[Triple]:
        """Parse the document and yield its triples statement by statement."""
        logger.debug("parsing %s as %s", self.lexer.source_name, self.dialect)
        while True:
            if self.lexer.peek().kind == EOF:
                break
            if self._parse_directive_if_present():
                continue
            self._sink = []
            self._parse_triples_statement()
            self._expect_statement_end()
            self.statements += 1
            pending, self._sink = self._sink, []
            yield from pending
        logger.debug(
            "parsed %d statements from %s", self.statements, self.lexer.source_name
        )

    # -- helpers ---------------------------------------------------------

    def _error(self, cls: type[ParseError], token: Token, message: str, **extra) -> ParseError:
        """Build a positioned parse error for `token`."""
        return cls(
            self.lexer.source_name,
            token.line,
            token.column,
            message,
            offset=token.offset,
            **extra,
        )

    def _unexpected(self, token: Token, expected: str, kind: str = "UnexpectedToken") -> ParseError:
        return self._error(
            N3SyntaxError, token, f"{expected}, found {token.describe()}", kind=kind
        )

    def _is_punct(self, token: Token, *values: str) -> bool:
        return token.kind == PUNCT and token.value in values

    def _accept(self, punct: str) -> bool:
        """Consume the punctuation token `punct` if it is next."""
        if self._is_punct(self.lexer.peek(), punct):
            self.lexer.next_token()
            return True
        return False

    def _expect(self, punct: str, message: str, kind: str = "UnexpectedToken") -> Token:
        token = self.lexer.peek()
        if not self._is_punct(token, punct):
            raise self._unexpected(token, message, kind)
        return self.lexer.next_token()

    def _require_n3(self, token: Token, what: str) -> None:
        """Reject an N3-only construct when parsing Turtle."""
        if self.dialect == TURTLE:
            raise self._error(
                N3SyntaxError, token, f"{what} are not allowed in Turtle", kind="N3Construct"
            )

    @staticmethod
    def _keyword(token: Token) -> str | None:
        """Return the word of a bare-word or `@word` token."""
        if token.kind in (NAME, AT_KEYWORD):
            return token.value
        return None

    def _emit(self, triple: Triple) -> None:
        self._sink.append(triple)

    @contextmanager
    def _nested(self, token: Token):
        """Track nesting of brackets, collections and formulas."""
        if self._depth >= self.max_depth:
            raise self._error(
                NestingTooDeep,
                token,
                f"nesting deeper than {self.max_depth} levels",
            )
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    # -- directives ------------------------------------------------------

    def _parse_directive_if_present(self) -> bool:
        """Parse a directive if one starts at the next token."""
        token = self.lexer.peek()
        if token.kind == AT_KEYWORD:
            word = token.value
            if word == "prefix":
                self.lexer.next_token()
                self._parse_prefix_body(token)
                self._expect_directive_end("@prefix")
                return True
            if word == "base":
                self.lexer.next_token()
                self._parse_base_body(token)
                self._expect_directive_end("@base")
                return True
            if word == "version":
                self.lexer.next_token()
                self._parse_version_body()
                self._expect_directive_end("@version")
                return True
            if word in ("forAll", "forSome"):
                self._require_n3(token, "quantifier declarations")
                self.lexer.next_token()
                self._parse_quantifier_body(existential=(word == "forSome"))
                self._expect_directive_end(f"@{word}")
                return True
            if word == "keywords":
                raise self._error(
                    UnsupportedConstruct, token, "@keywords is not supported"
                )
            return False
        if token.kind == NAME:
            word = token.value.upper()
            if word == "PREFIX":
                self.lexer.next_token()
                self._parse_prefix_body(token)
                return True
            if word == "BASE":
                self.lexer.next_token()
                self._parse_base_body(token)
                return True
            if word == "VERSION":
                self.lexer.next_token()
                self._parse_version_body()
                return True
        return False

    def _expect_directive_end(self, directive: str) -> None:
        """Consume the '.' ending an @-directive; inside a formula '}' also ends it."""
        token = self.lexer.peek()
        if self.context.depth and self._is_punct(token, "}"):
            return
        if not self._is_punct(token, "."):
            raise self._unexpected(
                token, f"expected '.' after {directive}", kind="MalformedDirective"
            )
        self.lexer.next_token()

    def _parse_prefix_body(self, directive: Token) -> None:
        """Parse `PNAME_NS IRIREF` of a prefix directive."""
        token = self.lexer.next_token()
        if token.kind != PNAME or token.value[1] != "":
            raise self._unexpected(token, "expected prefix name ending in ':'", kind="MalformedDirective")
        prefix = token.value[0]
        iri_token = self.lexer.next_token()
        if iri_token.kind != IRIREF:
            raise self._unexpected(iri_token, "expected IRI in prefix directive", kind="MalformedDirective")
        try:
            namespace = self.context.bind_prefix(prefix, iri_token.value)
        except ValueError as exc:
            raise self._error(UnresolvableIri, iri_token, str(exc), reference=iri_token.value) from exc
        logger.debug("prefix %s: <%s> (depth %d)", prefix, namespace, self.context.depth)

    def _parse_base_body(self, directive: Token) -> None:
        """Parse the IRIREF of a base directive."""
        token = self.lexer.next_token()
        if token.kind != IRIREF:
            raise self._unexpected(token, "expected IRI in base directive", kind="MalformedDirective")
        try:
            base = self.context.set_base(token.value)
        except ValueError as exc:
            raise self._error(UnresolvableIri, token, str(exc), reference=token.value) from exc
        logger.debug("base <%s> (depth %d)", base, self.context.depth)

    def _parse_version_body(self) -> str:
        """Parse the version string of a version directive."""
        token = self.lexer.next_token()
        if token.kind != STRING or token.text.startswith(('"""', "'''")):
            raise self._unexpected(token, "expected version string", kind="MalformedDirective")
        return token.value

    def _parse_quantifier_body(self, existential: bool) -> None:
        """Parse the comma separated IRIs of `@forAll` / `@forSome`."""
        while True:
            token = self.lexer.next_token()
            if token.kind == IRIREF:
                iri = self._resolve_iriref(token)
            elif token.kind == PNAME:
                iri = self._expand_pname(token)
            else:
                raise self._unexpected(token, "expected IRI in quantifier", kind="MalformedDirective")
            variable = self.context.declare_variable(iri, existential)
            logger.debug("declared %s (depth %d)", variable, self.context.depth)
            if not self._accept(","):
                return

    # -- statements ------------------------------------------------------

    def _expect_statement_end(self) -> None:
        token = self.lexer.peek()
        if not self._is_punct(token, "."):
            raise self._unexpected(
                token, "expected '.' to end statement", kind="ExpectedStatementEnd"
            )
        self.lexer.next_token()

    def _parse_triples_statement(self) -> None:
        """Parse `subject predicateObjectList` or `[ ... ] predicateObjectList?`."""
        token = self.lexer.peek()
        if self._is_punct(token, "["):
            self.lexer.next_token()
            subject, has_properties = self._parse_bracket_body(token)
            subject = self._parse_path_tail(subject)
            if has_properties and not self._can_start_verb():
                return
        else:
            subject = self._parse_expression()
        if not is_subject(subject):
            raise self._error(
                N3SyntaxError, token, "a literal cannot be a subject", kind="IllegalSubject"
            )
        self._parse_predicate_object_list(subject)

    def _can_start_verb(self) -> bool:
        """Return whether the next token can begin a verb."""
        token = self.lexer.peek()
        if token.kind in (IRIREF, PNAME, VARIABLE, BLANK_NODE_LABEL):
            return True
        if self._keyword(token) in ("a", "has", "is"):
            return True
        return self._is_punct(token, "=", "=>", "<=", "[", "(", "{")

    def _parse_predicate_object_list(self, subject: Subject) -> None:
        """Parse `verb objectList (';' (verb objectList)?)*`."""
        self._parse_verb_objects(subject)
        while self._accept(";"):
            while self._accept(";"):
                pass
            if not self._can_start_verb():
                return
            self._parse_verb_objects(subject)

    def _parse_verb_objects(self, subject: Subject) -> None:
        predicate, reverse = self._parse_verb()
        self._parse_object_list(subject, predicate, reverse)

    def _parse_verb(self) -> tuple[Predicate, bool]:
        """Parse a verb; the flag tells whether subject and object swap roles."""
        token = self.lexer.peek()
        word = self._keyword(token)
        if word == "a" and (token.kind == NAME or self.dialect == N3):
            self.lexer.next_token()
            return IRI(RDF_TYPE_IRI), False
        if word == "has":
            self._require_n3(token, "'has' verbs")
            self.lexer.next_token()
            return self._parse_predicate_expression(), False
        if word == "is":
            self._require_n3(token, "'is ... of' verbs")
            self.lexer.next_token()
            predicate = self._parse_predicate_expression()
            closing = self.lexer.next_token()
            if self._keyword(closing) != "of":
                raise self._unexpected(closing, "expected 'of' after 'is' verb")
            return predicate, True
        if token.kind == PUNCT and token.value in ("=", "=>", "<="):
            self._require_n3(token, f"'{token.value}' verbs")
            self.lexer.next_token()
            if token.value == "=":
                return IRI(OWL_SAME_AS_IRI), False
            return IRI(LOG_IMPLIES_IRI), token.value == "<="
        if self.dialect == TURTLE and token.kind not in (IRIREF, PNAME):
            raise self._unexpected(token, "expected predicate", kind="IllegalPredicate")
        return self._parse_predicate_expression(), False

    def _parse_predicate_expression(self) -> Predicate:
        token = self.lexer.peek()
        predicate = self._parse_expression()
        if not is_predicate(predicate):
            raise self._error(
                N3SyntaxError,
                token,
                "predicate must be an IRI or a variable",
                kind="IllegalPredicate",
            )
        return predicate

    def _parse_object_list(self, subject: Subject, predicate: Predicate, reverse: bool) -> None:
        """Parse `object (',' object)*` and emit one triple per object.

        The statement's own triple is placed before the triples produced
        while parsing the object (blank-node property lists, collections).
        """
        while True:
            token = self.lexer.peek()
            slot = len(self._sink)
            self._sink.append(None)
            obj = self._parse_expression()
            if reverse:
                if not is_subject(obj):
                    raise self._error(
                        N3SyntaxError, token, "a literal cannot be a subject", kind="IllegalSubject"
                    )
                self._sink[slot] = (obj, predicate, subject)
            else:
                self._sink[slot] = (subject, predicate, obj)
            if not self._accept(","):
                return
            if self._is_punct(self.lexer.peek(), *OBJECT_LIST_END):
                return

    # -- terms -----------------------------------------------------------

    def _parse_expression(self) -> Node:
        """Parse a term, including N3 path expressions."""
        return self._parse_path_tail(self._parse_path_item())

    def _parse_path_tail(self, node: Node) -> Node:
        """Desugar `!` and `^` path steps following `node`."""
        while True:
            token = self.lexer.peek()
            if not self._is_punct(token, "!", "^"):
                return node
            self._require_n3(token, "path expressions")
            self.lexer.next_token()
            predicate_token = self.lexer.peek()
            predicate = self._parse_path_item()
            if not is_predicate(predicate):
                raise self._error(
                    N3SyntaxError,
                    predicate_token,
                    "path step must be an IRI or a variable",
                    kind="IllegalPredicate",
                )
            fresh = self.context.fresh_blank_node()
            if token.value == "!":
                if not is_subject(node):
                    raise self._error(
                        N3SyntaxError, token, "a literal cannot be a subject", kind="IllegalSubject"
                    )
                self._emit((node, predicate, fresh))
            else:
                self._emit((fresh, predicate, node))
            node = fresh

    def _parse_path_item(self) -> Node:
        """Parse a single term without path steps."""
        token = self.lexer.peek()
        kind = token.kind
        if kind == IRIREF:
            self.lexer.next_token()
            return self.context.term_for_iri(self._resolve_iriref(token))
        if kind == PNAME:
            self.lexer.next_token()
            return self.context.term_for_iri(self._expand_pname(token))
        if kind == BLANK_NODE_LABEL:
            self.lexer.next_token()
            return self.context.blank_node(token.value)
        if kind == STRING:
            return self._parse_literal()
        if kind in NUMERIC_DATATYPES:
            self.lexer.next_token()
            return Literal(token.value, datatype=NUMERIC_DATATYPES[kind])
        if kind == VARIABLE:
            self._require_n3(token, "variables")
            self.lexer.next_token()
            return Variable(token.value)
        if kind == NAME and token.value in ("true", "false"):
            self.lexer.next_token()
            return Literal(token.value, datatype=XSD_BOOLEAN_IRI)
        if kind == PUNCT:
            if token.value == "[":
                self.lexer.next_token()
                node, _ = self._parse_bracket_body(token)
                return node
            if token.value == "(":
                return self._parse_collection()
            if token.value == "{":
                return self._parse_formula()
        raise self._unexpected(token, "expected a term")

    def _resolve_iriref(self, token: Token) -> str:
        try:
            return self.context.resolve(token.value)
        except ValueError as exc:
            raise self._error(UnresolvableIri, token, str(exc), reference=token.value) from exc

    def _expand_pname(self, token: Token) -> str:
        prefix, local = token.value
        try:
            return self.context.expand(prefix, local)
        except KeyError:
            raise self._error(
                UndefinedPrefix, token, f"undeclared prefix '{prefix}:'", prefix=prefix
            ) from None

    def _parse_literal(self) -> Literal:
        """Parse a quoted string with an optional language tag or datatype."""
        token = self.lexer.next_token()
        suffix = self.lexer.peek()
        try:
            if suffix.kind == LANGTAG:
                self.lexer.next_token()
                if self._is_punct(self.lexer.peek(), "^^"):
                    raise self._error(
                        N3SyntaxError,
                        self.lexer.peek(),
                        "a literal cannot have both a language tag and a datatype",
                        kind="LangAndDatatype",
                    )
                return Literal(token.value, lang=suffix.value)
            if self._is_punct(suffix, "^^"):
                self.lexer.next_token()
                datatype_token = self.lexer.next_token()
                if datatype_token.kind == IRIREF:
                    datatype = self._resolve_iriref(datatype_token)
                elif datatype_token.kind == PNAME:
                    datatype = self._expand_pname(datatype_token)
                else:
                    raise self._unexpected(datatype_token, "expected datatype IRI after '^^'")
                return Literal(token.value, datatype=datatype)
            return Literal(token.value)
        except ValueError as exc:
            if isinstance(exc, ParseError):
                raise
            raise self._error(N3SyntaxError, token, str(exc), kind="InvalidLiteral") from exc

    def _parse_bracket_body(self, open_token: Token) -> tuple[BNode, bool]:
        """Parse after '[': `]` or `predicateObjectList ]`."""
        with self._nested(open_token):
            node = self.context.fresh_blank_node()
            if self._accept("]"):
                return node, False
            self._parse_predicate_object_list(node)
            self._expect("]", "expected ']' to close blank node property list")
            return node, True

    def _parse_collection(self) -> Node:
        """Parse `( item* )` into an rdf:first/rdf:rest chain."""
        open_token = self.lexer.next_token()
        with self._nested(open_token):
            items: list[Node] = []
            while not self._accept(")"):
                if self.lexer.peek().kind == EOF:
                    raise self._unexpected(self.lexer.peek(), "expected ')' to close collection")
                items.append(self._parse_expression())
        if not items:
            return IRI(RDF_NIL_IRI)

        head = self.context.fresh_blank_node()
        current = head
        for idx, item in enumerate(items):
            self._emit((current, IRI(RDF_FIRST_IRI), item))
            if idx == len(items) - 1:
                self._emit((current, IRI(RDF_REST_IRI), IRI(RDF_NIL_IRI)))
            else:
                nxt = self.context.fresh_blank_node()
                self._emit((current, IRI(RDF_REST_IRI), nxt))
                current = nxt
        return head

    def _parse_formula(self) -> Formula:
        """Parse `{ statements }` into a formula term with its own scope."""
        open_token = self.lexer.peek()
        self._require_n3(open_token, "formulas")
        self.lexer.next_token()
        with self._nested(open_token):
            self.context.push_formula()
            outer_sink = self._sink
            self._sink = []
            logger.debug("enter formula (depth %d)", self.context.depth)
            try:
                while True:
                    token = self.lexer.peek()
                    if self._is_punct(token, "}"):
                        self.lexer.next_token()
                        break
                    if token.kind == EOF:
                        raise self._unexpected(token, "expected '}' to close formula")
                    if self._parse_directive_if_present():
                        continue
                    self._parse_triples_statement()
                    token = self.lexer.peek()
                    if self._is_punct(token, "."):
                        self.lexer.next_token()
                    elif not self._is_punct(token, "}"):
                        raise self._unexpected(
                            token, "expected '.' or '}' after statement", kind="ExpectedStatementEnd"
                        )
                formula = Formula(tuple(dict.fromkeys(self._sink)))
            finally:
                self._sink = outer_sink
                self.context.pop_formula()
            logger.debug("leave formula with %d triples", len(formula))
        return formula


ParseResult = Union[Triple, ParseError]


def parse(
    source: Source,
    base_iri: str | None = None,
    *,
    dialect: str = N3,
    source_name: str = "<string>",
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Iterator[Triple]:
    """Lazily parse Turtle/N3 text and yield triples.

    The first error is raised from the iterator after every triple of the
    preceding statements has been yielded.
    """
    parser = Parser(
        source,
        base_iri=base_iri,
        dialect=dialect,
        source_name=source_name,
        max_depth=max_depth,
    )
    return iter(parser)


def parse_turtle(source: Source, base_iri: str | None = None, source_name: str = "<string>") -> Iterator[Triple]:
    """Lazily parse Turtle text and yield triples."""
    return parse(source, base_iri, dialect=TURTLE, source_name=source_name)


def parse_n3(source: Source, base_iri: str | None = None, source_name: str = "<string>") -> Iterator[Triple]:
    """Lazily parse Notation3 text and yield triples."""
    return parse(source, base_iri, dialect=N3, source_name=source_name)


def parse_results(
    source: Source,
    base_iri: str | None = None,
    *,
    dialect: str = N3,
    source_name: str = "<string>",
) -> Iterator[ParseResult]:
    """Yield triples and, if parsing fails, the error as the final item.

    Invalid arguments such as a relative `base_iri` raise `ValueError` from
    this call, before any result is produced.
    """
    return _results(parse(source, base_iri, dialect=dialect, source_name=source_name))


def _results(triples: Iterator[Triple]) -> Iterator[ParseResult]:
    try:
        yield from triples
    except ParseError as exc:
        yield exc


def parse_graph(
    source: Source,
    base_iri: str | None = None,
    *,
    dialect: str = N3,
    source_name: str = "<string>",
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Graph:
    """Parse a whole document into a `Graph` carrying its prefix bindings."""
    parser = Parser(
        source,
        base_iri=base_iri,
        dialect=dialect,
        source_name=source_name,
        max_depth=max_depth,
    )
    graph = Graph(parser)
    graph.prefixes.update(parser.prefixes)
    return graph
