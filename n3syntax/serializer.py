"""Graph to Turtle / N3 text.

The serializer plans the whole graph first (collection folding, blank-node
inlining, prefix selection) and then yields the text lazily: one chunk for
the directives, then one chunk per top-level statement.  Graphs that hold
N3 terms come out as N3; everything else is plain Turtle.

`StreamSerializer` skips the planning and writes triples as they arrive.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from itertools import chain
from typing import Iterable, Iterator

from .config import SerializerOptions
from .errors import CyclicBlankStructure, UnresolvableTerm
from .graph import Graph
from .iri import encode_iri_ref, escape_pn_local, has_scheme, is_valid_prefix_label, validate_iri
from .namespaces import (
    KNOWN_PREFIXES,
    RDF_FIRST_IRI,
    RDF_LANG_STRING_IRI,
    RDF_NIL_IRI,
    RDF_REST_IRI,
    RDF_TYPE_IRI,
    XSD_BOOLEAN_IRI,
    XSD_DECIMAL_IRI,
    XSD_DOUBLE_IRI,
    XSD_INTEGER_IRI,
    XSD_STRING_IRI,
)
from .parser import DEFAULT_MAX_DEPTH
from .terms import IRI, BNode, Formula, Literal, Node, Predicate, Subject, Triple, Variable

logger = logging.getLogger(__name__)

RDF_TYPE = IRI(RDF_TYPE_IRI)
RDF_FIRST = IRI(RDF_FIRST_IRI)
RDF_REST = IRI(RDF_REST_IRI)
RDF_NIL = IRI(RDF_NIL_IRI)

# Nodes nested deeper than this are written as labelled statements.
MAX_NESTING = DEFAULT_MAX_DEPTH // 2

BARE_LITERAL_PATTERNS = {
    XSD_INTEGER_IRI: re.compile(r"[+-]?[0-9]+\Z"),
    XSD_DECIMAL_IRI: re.compile(r"[+-]?[0-9]*\.[0-9]+\Z"),
    XSD_DOUBLE_IRI: re.compile(r"[+-]?([0-9]+\.[0-9]*|\.[0-9]+|[0-9]+)[eE][+-]?[0-9]+\Z"),
    XSD_BOOLEAN_IRI: re.compile(r"(true|false)\Z"),
}


def split_iri_for_prefix(iri: str) -> tuple[str, str] | None:
    """Split an IRI into a candidate namespace/local-name pair."""
    scheme_sep = iri.find(":")
    if scheme_sep < 0:
        return None
    cut = -1
    for idx, ch in enumerate(iri):
        if ch in "#/" or (ch == ":" and idx > scheme_sep):
            cut = idx
    if cut < 0:
        return None
    return iri[: cut + 1], iri[cut + 1 :]


def format_bare_literal(literal: Literal) -> str | None:
    """Return the unquoted form of a numeric or boolean literal, if it has one."""
    pattern = BARE_LITERAL_PATTERNS.get(literal.datatype)
    if pattern is None or literal.lang is not None:
        return None
    if pattern.match(literal.value) is None:
        return None
    return literal.value


def escape_string_value(value: str, quote: str, long_form: bool) -> str:
    """Escape string text for the given quote character and quoting form."""
    out: list[str] = []
    for idx, ch in enumerate(value):
        cp = ord(ch)
        if ch == "\\":
            out.append("\\\\")
        elif ch == quote:
            if not long_form or idx == len(value) - 1 or value[idx + 1] == quote:
                out.append("\\" + ch)
            else:
                out.append(ch)
        elif ch == "\n":
            out.append("\n" if long_form else "\\n")
        elif ch == "\r":
            out.append("\\r")
        elif ch == "\t":
            out.append("\\t")
        elif ch == "\b":
            out.append("\\b")
        elif ch == "\f":
            out.append("\\f")
        elif cp < 0x20 or cp == 0x7F:
            out.append(f"\\u{cp:04X}")
        else:
            out.append(ch)
    return "".join(out)


def quote_string(value: str) -> str:
    """Quote string text using the shortest safe quoting form."""
    has_double = '"' in value
    has_single = "'" in value
    if "\n" in value or "\r" in value or (has_double and has_single):
        return '"""' + escape_string_value(value, '"', long_form=True) + '"""'
    if has_double:
        return "'" + escape_string_value(value, "'", long_form=False) + "'"
    return '"' + escape_string_value(value, '"', long_form=False) + '"'


def collect_list_compaction(
    triples: list[Triple],
    excluded: Iterable[BNode] = (),
) -> tuple[dict[BNode, list[Node]], set[int]]:
    """Find `rdf:first`/`rdf:rest` chains that can be written as `( ... )`.

    Returns the folded list heads with their items and the indices of the
    triples the folding absorbs.  Raises `CyclicBlankStructure` when the
    `rdf:rest` chain of a referenced head loops.
    """
    excluded = set(excluded)
    by_subject: dict[BNode, dict[Predicate, list[tuple[Node, int]]]] = {}
    incoming_total: dict[BNode, int] = {}
    incoming_rest: dict[BNode, int] = {}

    for idx, (subject, predicate, obj) in enumerate(triples):
        if isinstance(subject, BNode):
            pred_map = by_subject.setdefault(subject, {})
            pred_map.setdefault(predicate, []).append((obj, idx))
        if isinstance(obj, BNode):
            incoming_total[obj] = incoming_total.get(obj, 0) + 1
            if predicate == RDF_REST:
                incoming_rest[obj] = incoming_rest.get(obj, 0) + 1

    compacted_heads: dict[BNode, list[Node]] = {}
    removed_indices: set[int] = set()

    for head in by_subject:
        if head in excluded:
            continue
        non_rest_refs = incoming_total.get(head, 0) - incoming_rest.get(head, 0)
        if non_rest_refs != 1:
            continue

        items: list[Node] = []
        chain_indices: list[int] = []
        visited: set[BNode] = set()
        current: BNode = head
        # A node reached through rdf:rest is the middle of another chain.
        valid = not incoming_rest.get(head)

        while True:
            if current in visited:
                raise CyclicBlankStructure(
                    f"rdf:rest chain starting at {head} loops back to {current}"
                )
            visited.add(current)

            current_pred_map = by_subject.get(current)
            if current_pred_map is None or set(current_pred_map) != {RDF_FIRST, RDF_REST}:
                valid = False
                break
            first_entries = current_pred_map[RDF_FIRST]
            rest_entries = current_pred_map[RDF_REST]
            if len(first_entries) != 1 or len(rest_entries) != 1:
                valid = False
                break

            first_obj, first_idx = first_entries[0]
            rest_obj, rest_idx = rest_entries[0]
            items.append(first_obj)
            chain_indices.extend([first_idx, rest_idx])

            if current != head and (
                incoming_total.get(current, 0) != 1 or incoming_rest.get(current, 0) != 1
            ):
                # Keep walking so a loop further down is still reported.
                valid = False

            if rest_obj == RDF_NIL:
                break
            if not isinstance(rest_obj, BNode):
                valid = False
                break
            current = rest_obj

        if not valid:
            continue
        if any(idx in removed_indices for idx in chain_indices):
            continue

        compacted_heads[head] = items
        removed_indices.update(chain_indices)

    return compacted_heads, removed_indices


def group_by_subject(triples: Iterable[Triple]) -> dict[Subject, dict[Predicate, list[Node]]]:
    """Group triples by subject, then predicate, in first-appearance order."""
    grouped: dict[Subject, dict[Predicate, list[Node]]] = {}
    for subject, predicate, obj in triples:
        grouped.setdefault(subject, {}).setdefault(predicate, []).append(obj)
    return grouped


def _find_unreachable(
    grouped: dict[Subject, dict[Predicate, list[Node]]],
    list_heads: dict[BNode, list[Node]],
    inline: set[BNode],
) -> BNode | None:
    """Return the first nested node no top-level statement would print."""
    reached: set[BNode] = set()
    stack: list[Node] = [subject for subject in grouped if subject not in inline]
    while stack:
        node = stack.pop()
        if node in list_heads:
            children = list_heads[node]
        else:
            children = [obj for objects in grouped.get(node, {}).values() for obj in objects]
        for child in children:
            if not isinstance(child, BNode) or child in reached:
                continue
            if child in list_heads or child in inline:
                reached.add(child)
                stack.append(child)
    for subject in grouped:
        if subject in inline and subject not in reached:
            return subject
    for head in list_heads:
        if head not in reached:
            return head
    return None


def _find_too_deep(
    grouped: dict[Subject, dict[Predicate, list[Node]]],
    list_heads: dict[BNode, list[Node]],
    inline: set[BNode],
    anonymous: set[BNode],
    limit: int,
) -> set[BNode]:
    """Return nested nodes that would open a bracket deeper than `limit`."""
    too_deep: set[BNode] = set()
    seen: set[Node] = set()
    stack: list[tuple[Node, int]] = [
        (subject, 1 if subject in anonymous else 0)
        for subject in grouped
        if subject not in inline
    ]
    while stack:
        node, depth = stack.pop()
        if node in list_heads:
            children = list_heads[node]
        else:
            children = [obj for objects in grouped.get(node, {}).values() for obj in objects]
        for child in children:
            if not isinstance(child, BNode) or child in seen:
                continue
            if child not in list_heads and child not in inline:
                continue
            seen.add(child)
            if depth + 1 > limit:
                # It becomes a statement of its own, so its contents start over.
                too_deep.add(child)
                stack.append((child, 0))
            else:
                stack.append((child, depth + 1))
    return too_deep


@dataclass
class ScopePlan:
    """Layout decisions for the document or for one formula."""
    grouped: dict[Subject, dict[Predicate, list[Node]]]
    list_heads: dict[BNode, list[Node]] = field(default_factory=dict)
    inline: set[BNode] = field(default_factory=set)
    anonymous: set[BNode] = field(default_factory=set)
    variables: list[Variable] = field(default_factory=list)


class TurtleSerializer:
    """Writes a graph as compact Turtle, or N3 when it holds N3 terms."""

    def __init__(self, graph: Graph | Iterable[Triple], options: SerializerOptions | None = None):
        """Initialize the serializer; nothing is rendered until iteration."""
        self.graph = graph if isinstance(graph, Graph) else Graph(graph)
        self.options = options or SerializerOptions()
        self.prefixes: dict[str, str] = {}
        self._plans: dict[Formula | None, ScopePlan] = {}
        self._labels: dict[BNode, str] = {}
        self._shared: set[BNode] = set()
        self._iri_cache: dict[str, str] = {}

    def __iter__(self) -> Iterator[str]:
        return self.serialize()

    def serialize(self) -> Iterator[str]:
        """Yield the directives chunk, then one chunk per statement."""
        triples = list(self.graph)
        self._plans = {}
        self._labels = {}
        self._iri_cache = {}
        self._shared = self._shared_blank_nodes(triples)
        root = self._plan_scope(None, triples, frozenset())
        self.prefixes = self._choose_prefixes()
        logger.debug(
            "serializing %d triples with %d prefixes, %d folded collections",
            len(triples),
            len(self.prefixes),
            sum(len(plan.list_heads) for plan in self._plans.values()),
        )

        preamble = self._preamble(root)
        if preamble:
            yield preamble
        for subject in root.grouped:
            if subject in root.inline:
                continue
            yield self._render_statement(root, subject, 0) + "\n"

    # -- planning --------------------------------------------------------

    @staticmethod
    def _shared_blank_nodes(triples: list[Triple]) -> set[BNode]:
        """Return blank nodes that occur in more than one formula scope."""
        scopes: dict[BNode, set] = {}
        seen: set[Formula] = set()
        pending: list[tuple[Formula | None, Iterable[Triple]]] = [(None, triples)]
        while pending:
            key, scope_triples = pending.pop()
            for triple in scope_triples:
                for node in triple:
                    if isinstance(node, BNode):
                        scopes.setdefault(node, set()).add(key)
                    elif isinstance(node, Formula) and node not in seen:
                        seen.add(node)
                        pending.append((node, node.triples))
        return {node for node, keys in scopes.items() if len(keys) > 1}

    def _plan_scope(
        self,
        key: Formula | None,
        triples: list[Triple],
        inherited: frozenset[Variable],
    ) -> ScopePlan:
        """Decide folding, inlining and declarations for one scope."""
        opts = self.options
        excluded: set[BNode] = set()
        labelled: set[BNode] = set()
        while True:
            if opts.fold_collections:
                list_heads, removed = collect_list_compaction(triples, excluded)
            else:
                list_heads, removed = {}, set()
            grouped = group_by_subject(
                triple for idx, triple in enumerate(triples) if idx not in removed
            )
            inline, anonymous = self._inline_candidates(triples, grouped, list_heads, labelled)
            orphan = _find_unreachable(grouped, list_heads, inline)
            if orphan is not None:
                # Break the reference cycle by writing this node on its own.
                if orphan in list_heads:
                    excluded.add(orphan)
                else:
                    labelled.add(orphan)
                continue
            too_deep = _find_too_deep(grouped, list_heads, inline, anonymous, MAX_NESTING)
            if not too_deep:
                break
            logger.debug("labelling %d blank nodes nested past depth %d", len(too_deep), MAX_NESTING)
            excluded.update(node for node in too_deep if node in list_heads)
            labelled.update(too_deep)

        variables: list[Variable] = []
        for triple in triples:
            for node in triple:
                if (
                    isinstance(node, Variable)
                    and node.iri is not None
                    and node not in inherited
                    and node not in variables
                ):
                    variables.append(node)

        plan = ScopePlan(grouped, list_heads, inline, anonymous, variables)
        self._plans[key] = plan

        in_scope = inherited | frozenset(variables)
        for triple in triples:
            for node in triple:
                if isinstance(node, Formula) and node not in self._plans:
                    self._plan_scope(node, list(node.triples), in_scope)
        return plan

    def _inline_candidates(
        self,
        triples: list[Triple],
        grouped: dict[Subject, dict[Predicate, list[Node]]],
        list_heads: dict[BNode, list[Node]],
        labelled: set[BNode],
    ) -> tuple[set[BNode], set[BNode]]:
        """Return nodes written `[ ... ]` at their use, and unreferenced subjects."""
        if not self.options.inline_blank_nodes:
            return set(), set()
        refs: dict[BNode, int] = {}
        for _, _, obj in triples:
            if isinstance(obj, BNode):
                refs[obj] = refs.get(obj, 0) + 1
        inline = {
            node
            for node, count in refs.items()
            if count == 1
            and node not in list_heads
            and node not in labelled
            and node not in self._shared
        }
        anonymous = {
            subject
            for subject in grouped
            if isinstance(subject, BNode)
            and subject not in refs
            and subject not in self._shared
        }
        return inline, anonymous

    # -- prefixes --------------------------------------------------------

    def _node_iris(self, node: Node) -> Iterator[str]:
        """Yield the IRIs that appear in the written form of a node."""
        if isinstance(node, IRI):
            if node == RDF_NIL and self.options.fold_collections:
                return
            yield node.value
        elif isinstance(node, Literal):
            if format_bare_literal(node) is None and node.datatype not in (
                XSD_STRING_IRI,
                RDF_LANG_STRING_IRI,
            ):
                yield node.datatype
        elif isinstance(node, Variable):
            if node.iri is not None:
                yield node.iri
        elif isinstance(node, (BNode, Formula)):
            # Formula contents are covered by the formula's own plan.
            return
        else:
            raise TypeError(f"unsupported node type: {type(node)!r}")

    def _plan_iris(self, plan: ScopePlan) -> Iterator[tuple[str, bool]]:
        """Yield `(iri, is_predicate)` for every IRI one scope will contain."""
        for variable in plan.variables:
            yield variable.iri, False
        for subject, predicates in plan.grouped.items():
            for iri in self._node_iris(subject):
                yield iri, False
            for predicate, objects in predicates.items():
                if predicate != RDF_TYPE:
                    for iri in self._node_iris(predicate):
                        yield iri, True
                for obj in objects:
                    for iri in self._node_iris(obj):
                        yield iri, False
        for items in plan.list_heads.values():
            for item in items:
                for iri in self._node_iris(item):
                    yield iri, False

    def _iter_written_iris(self) -> Iterator[tuple[str, bool]]:
        """Yield `(iri, is_predicate)` for every IRI the output will contain."""
        for plan in self._plans.values():
            yield from self._plan_iris(plan)

    def _optional_prefixes(self, manual: dict[str, str]) -> dict[str, str]:
        """Graph and well-known bindings that do not clash with manual ones."""
        pool: dict[str, str] = {}
        taken = set(manual.values())
        candidates = list(self.graph.prefixes.items())
        if self.options.auto_prefix:
            candidates.extend((label, ns) for ns, label in KNOWN_PREFIXES.items())
        for label, namespace in candidates:
            if label in manual or label in pool or namespace in taken:
                continue
            if not is_valid_prefix_label(label):
                logger.debug("skipping invalid prefix label %r", label)
                continue
            try:
                validate_iri(namespace)
            except ValueError:
                logger.debug("skipping prefix %r with unusable namespace %r", label, namespace)
                continue
            pool[label] = namespace
            taken.add(namespace)
        return pool

    def _choose_prefixes(self) -> dict[str, str]:
        """Select the prefix declarations for the output."""
        manual = dict(self.options.prefixes)
        optional = self._optional_prefixes(manual)
        table = {**manual, **optional}
        used: set[str] = set()
        stats: dict[str, dict[str, int]] = {}

        for iri, is_predicate in self._iter_written_iris():
            if not has_scheme(iri):
                raise UnresolvableTerm(f"IRI <{iri}> is relative and has no base to resolve it")
            match = compact_iri(iri, table)
            if match is not None:
                used.add(match[0])
                continue
            split = split_iri_for_prefix(iri)
            if split is None or escape_pn_local(split[1]) is None:
                continue
            stat = stats.setdefault(split[0], {"count": 0, "pred_count": 0})
            stat["count"] += 1
            if is_predicate:
                stat["pred_count"] += 1

        chosen = dict(manual)
        for label in sorted(label for label in optional if label in used):
            chosen[label] = optional[label]

        if self.options.auto_prefix:
            dynamic = [
                ns for ns, stat in stats.items() if stat["pred_count"] > 0 or stat["count"] >= 2
            ]
            dynamic.sort(key=lambda ns: (-stats[ns]["pred_count"], -stats[ns]["count"], ns))
            serial = 1
            for namespace in dynamic:
                while f"ns{serial}" in chosen or f"ns{serial}" in optional:
                    serial += 1
                chosen[f"ns{serial}"] = namespace
                serial += 1
        logger.debug("chosen prefixes: %s", ", ".join(chosen) or "none")
        return chosen

    # -- rendering -------------------------------------------------------

    def _preamble(self, root: ScopePlan) -> str:
        lines: list[str] = []
        if self.options.base is not None:
            lines.append(f"@base {encode_iri_ref(self.options.base)} .")
        for prefix, namespace in self.prefixes.items():
            lines.append(f"@prefix {prefix}: {encode_iri_ref(namespace)} .")
        lines.extend(self._quantifier_lines(root, 0))
        if not lines:
            return ""
        separator = "\n" if root.grouped else ""
        return "\n".join(lines) + "\n" + separator

    def _quantifier_lines(self, plan: ScopePlan, level: int) -> list[str]:
        indent = self.options.indent * level
        lines: list[str] = []
        for existential, keyword in ((False, "@forAll"), (True, "@forSome")):
            names = [
                self._format_iri(variable.iri)
                for variable in plan.variables
                if variable.existential == existential
            ]
            if names:
                lines.append(f"{indent}{keyword} {', '.join(names)} .")
        return lines

    def _format_iri(self, iri: str) -> str:
        text = self._iri_cache.get(iri)
        if text is None:
            match = compact_iri(iri, self.prefixes)
            text = f"{match[0]}:{match[1]}" if match else encode_iri_ref(iri)
            self._iri_cache[iri] = text
        return text

    def _label(self, node: BNode) -> str:
        label = self._labels.get(node)
        if label is None:
            label = f"_:b{len(self._labels) + 1}"
            self._labels[node] = label
        return label

    def _format_literal(self, literal: Literal) -> str:
        bare = format_bare_literal(literal)
        if bare is not None:
            return bare
        text = quote_string(literal.value)
        if literal.lang is not None:
            return f"{text}@{literal.lang}"
        if literal.datatype == XSD_STRING_IRI:
            return text
        return f"{text}^^{self._format_iri(literal.datatype)}"

    def _render_predicate(self, plan: ScopePlan, predicate: Predicate, level: int) -> str:
        if predicate == RDF_TYPE:
            return "a"
        if isinstance(predicate, IRI):
            return self._format_iri(predicate.value)
        return self._render_node(plan, predicate, level)

    def _render_node(self, plan: ScopePlan, node: Node, level: int) -> str:
        """Render one term as it appears in a statement."""
        if isinstance(node, IRI):
            if node == RDF_NIL and self.options.fold_collections:
                return "()"
            return self._format_iri(node.value)
        if isinstance(node, BNode):
            if node in plan.list_heads:
                items = " ".join(
                    self._render_node(plan, item, level) for item in plan.list_heads[node]
                )
                return f"( {items} )"
            if node in plan.inline:
                return self._render_property_list(plan, node, level)
            return self._label(node)
        if isinstance(node, Literal):
            return self._format_literal(node)
        if isinstance(node, Variable):
            if node.iri is not None:
                return self._format_iri(node.iri)
            return f"?{node.name}"
        if isinstance(node, Formula):
            return self._render_formula(node, level)
        raise TypeError(f"unsupported node type: {type(node)!r}")

    def _predicate_parts(self, plan: ScopePlan, subject: Subject, level: int) -> list[str]:
        sep = self.options.separator
        parts: list[str] = []
        for predicate, objects in plan.grouped.get(subject, {}).items():
            predicate_text = self._render_predicate(plan, predicate, level)
            object_text = ("," + sep).join(self._render_node(plan, obj, level) for obj in objects)
            parts.append(f"{predicate_text}{sep}{object_text}")
        return parts

    def _render_property_list(self, plan: ScopePlan, node: BNode, level: int) -> str:
        parts = self._predicate_parts(plan, node, level)
        if not parts:
            return "[]"
        return "[ " + " ; ".join(parts) + " ]"

    def _render_statement(self, plan: ScopePlan, subject: Subject, level: int) -> str:
        """Render all triples of one subject as a single statement."""
        indent = self.options.indent
        if subject in plan.anonymous:
            return f"{indent * level}{self._render_property_list(plan, subject, level)} ."
        subject_text = self._render_node(plan, subject, level)
        parts = self._predicate_parts(plan, subject, level)
        block = f"{indent * level}{subject_text}{self.options.separator}{parts[0]}"
        for part in parts[1:]:
            block += f"\n{indent * (level + 1)}; {part}"
        return block + " ."

    def _render_formula(self, formula: Formula, level: int) -> str:
        plan = self._plans[formula]
        if not plan.grouped:
            return "{}"
        lines = ["{"]
        lines.extend(self._quantifier_lines(plan, level + 1))
        for subject in plan.grouped:
            if subject in plan.inline:
                continue
            lines.append(self._render_statement(plan, subject, level + 1))
        lines.append(f"{self.options.indent * level}}}")
        return "\n".join(lines)


class StreamSerializer(TurtleSerializer):
    """Writes triples in arrival order without collecting the graph.

    Consecutive triples with the same subject share a statement, and those
    that also share the predicate share an object list.  Blank nodes are
    always written as labels and only the configured prefixes are declared.
    """

    def __init__(self, triples: Iterable[Triple], options: SerializerOptions | None = None):
        """Initialize the serializer; the triples are consumed during iteration."""
        self.triples = triples
        self.options = options or SerializerOptions()
        self.prefixes: dict[str, str] = dict(self.options.prefixes)
        self._plans: dict[Formula | None, ScopePlan] = {}
        self._labels: dict[BNode, str] = {}
        self._shared: set[BNode] = set()
        self._iri_cache: dict[str, str] = {}
        self._declared: set[Variable] = set()
        self._undeclared: list[Variable] = []

    def serialize(self) -> Iterator[str]:
        """Yield the directives chunk, then one chunk per run of a subject."""
        self._plans = {}
        self._labels = {}
        self._iri_cache = {}
        self._declared = set()
        self._undeclared = []
        sep = self.options.separator
        indent = self.options.indent

        triples = iter(self.triples)
        first = next(triples, None)
        directives = self._directives()
        if directives:
            yield directives + ("\n" if first is not None else "")
        if first is None:
            return

        block: list[str] = []
        current: tuple[Subject, Predicate] | None = None
        count = statements = 0
        for subject, predicate, obj in chain((first,), triples):
            count += 1
            if current is not None and subject == current[0]:
                if predicate == current[1]:
                    block.append(f",{sep}{self._stream_term(obj)}")
                else:
                    predicate_text = self._stream_term(predicate, as_predicate=True)
                    block.append(f"\n{indent}; {predicate_text}{sep}{self._stream_term(obj)}")
            else:
                if block:
                    statements += 1
                    yield self._finish_block(block)
                subject_text = self._stream_term(subject)
                predicate_text = self._stream_term(predicate, as_predicate=True)
                block = [f"{subject_text}{sep}{predicate_text}{sep}{self._stream_term(obj)}"]
            current = (subject, predicate)
        statements += 1
        yield self._finish_block(block)
        logger.debug("streamed %d triples in %d statements", count, statements)

    def _directives(self) -> str:
        lines: list[str] = []
        if self.options.base is not None:
            lines.append(f"@base {encode_iri_ref(self.options.base)} .")
        for prefix, namespace in self.prefixes.items():
            lines.append(f"@prefix {prefix}: {encode_iri_ref(namespace)} .")
        return "\n".join(lines) + "\n" if lines else ""

    def _finish_block(self, block: list[str]) -> str:
        """Close a statement, preceded by declarations of variables it introduces."""
        text = "".join(block) + " .\n"
        if self._undeclared:
            lines = self._quantifier_lines(ScopePlan({}, variables=self._undeclared), 0)
            text = "\n".join(lines) + "\n" + text
            self._undeclared = []
        return text

    def _inline_candidates(
        self,
        triples: list[Triple],
        grouped: dict[Subject, dict[Predicate, list[Node]]],
        list_heads: dict[BNode, list[Node]],
        labelled: set[BNode],
    ) -> tuple[set[BNode], set[BNode]]:
        # A later triple may still refer to any blank node.
        return set(), set()

    def _stream_term(self, node: Node, as_predicate: bool = False) -> str:
        """Render one term of an incoming triple."""
        for iri in self._node_iris(node):
            if not has_scheme(iri):
                raise UnresolvableTerm(f"IRI <{iri}> is relative and has no base to resolve it")
        if isinstance(node, Variable) and node.iri is not None and node not in self._declared:
            self._declared.add(node)
            self._undeclared.append(node)
        if isinstance(node, Formula):
            return self._stream_formula(node)
        if as_predicate:
            return self._render_predicate(ScopePlan({}), node, 0)
        return self._render_node(ScopePlan({}), node, 0)

    def _stream_formula(self, formula: Formula) -> str:
        self._plan_scope(formula, list(formula.triples), frozenset(self._declared))
        try:
            for plan in self._plans.values():
                for iri, _ in self._plan_iris(plan):
                    if not has_scheme(iri):
                        raise UnresolvableTerm(
                            f"IRI <{iri}> is relative and has no base to resolve it"
                        )
            return self._render_formula(formula, 0)
        finally:
            self._plans = {}


def compact_iri(iri: str, prefixes: dict[str, str]) -> tuple[str, str] | None:
    """Return `(prefix, local)` for the longest namespace that can abbreviate `iri`."""
    best: tuple[str, str] | None = None
    best_len = -1
    for prefix, namespace in prefixes.items():
        if len(namespace) <= best_len or not iri.startswith(namespace):
            continue
        local = escape_pn_local(iri[len(namespace) :])
        if local is None:
            continue
        best = (prefix, local)
        best_len = len(namespace)
    return best


def serialize(graph: Graph | Iterable[Triple], options: SerializerOptions | None = None) -> Iterator[str]:
    """Lazily serialize a graph, yielding text chunks."""
    return iter(TurtleSerializer(graph, options))


def serialize_to_string(graph: Graph | Iterable[Triple], options: SerializerOptions | None = None) -> str:
    """Serialize a graph to a single string."""
    return "".join(serialize(graph, options))


def stream_serialize(triples: Iterable[Triple], options: SerializerOptions | None = None) -> Iterator[str]:
    """Serialize triples as they arrive, grouping runs of a subject."""
    return iter(StreamSerializer(triples, options))
