"""Parse-time name resolution state.

A :class:`ResolutionContext` lives for exactly one parse call.  It is a stack
of :class:`Frame` objects: the bottom frame belongs to the document and one
frame is pushed for every open N3 formula.  Prefix maps, the base IRI and
quantifier declarations are inherited by copy when a frame is pushed, so a
redefinition inside a formula never leaks out of it.  Blank-node labels are
never inherited: every frame starts with an empty label table and its own
scope id.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from .iri import resolve_iri_reference
from .terms import IRI, BNode, Variable


@dataclass
class Frame:
    """Resolution state of the document or of one formula."""
    scope: str
    base: str | None
    prefixes: dict[str, str] = field(default_factory=dict)
    bnodes: dict[str, BNode] = field(default_factory=dict)
    variables: dict[str, Variable] = field(default_factory=dict)


class ResolutionContext:
    """Prefix map, base IRI and blank-node scope stack of one parse."""

    def __init__(self, base_iri: str | None = None):
        """Create the document frame with an optional initial base IRI."""
        self._scope_root = uuid.uuid4().hex[:12]
        self._scope_serial = 0
        self._anon_counter = 0
        self.frames: list[Frame] = [Frame(scope=self._scope_root, base=base_iri)]

    @property
    def current(self) -> Frame:
        return self.frames[-1]

    @property
    def depth(self) -> int:
        """Number of open formulas."""
        return len(self.frames) - 1

    @property
    def base(self) -> str | None:
        return self.current.base

    @property
    def prefixes(self) -> dict[str, str]:
        return self.current.prefixes

    def push_formula(self) -> Frame:
        """Open a formula scope inheriting prefixes, base and declarations."""
        self._scope_serial += 1
        parent = self.current
        frame = Frame(
            scope=f"{self._scope_root}.{self._scope_serial}",
            base=parent.base,
            prefixes=dict(parent.prefixes),
            variables=dict(parent.variables),
        )
        self.frames.append(frame)
        return frame

    def pop_formula(self) -> Frame:
        """Close the innermost formula scope."""
        if len(self.frames) == 1:
            raise RuntimeError("no formula scope is open")
        return self.frames.pop()

    def resolve(self, reference: str) -> str:
        """Resolve an IRI reference against the current base.

        Raises `ValueError` when the reference is relative and no base is set.
        """
        return resolve_iri_reference(self.current.base, reference)

    def set_base(self, reference: str) -> str:
        """Apply a base directive; relative values resolve against the old base."""
        self.current.base = self.resolve(reference)
        return self.current.base

    def bind_prefix(self, prefix: str, reference: str) -> str:
        """Apply a prefix directive and return the namespace IRI it binds."""
        namespace = self.resolve(reference)
        self.current.prefixes[prefix] = namespace
        return namespace

    def expand(self, prefix: str, local: str) -> str:
        """Expand a prefixed name; raises `KeyError` for undeclared prefixes."""
        return self.current.prefixes[prefix] + local

    def term_for_iri(self, iri: str) -> IRI | Variable:
        """Return the quantified variable bound to `iri`, or the IRI itself."""
        variable = self.current.variables.get(iri)
        if variable is not None:
            return variable
        return IRI(iri)

    def declare_variable(self, iri: str, existential: bool) -> Variable:
        """Declare `iri` as a quantified variable of the current formula."""
        name = iri.rstrip("/#")
        for sep in "#/:":
            if sep in name:
                name = name.rsplit(sep, 1)[1]
        variable = Variable(name or "v", existential=existential, iri=iri)
        self.current.variables[iri] = variable
        return variable

    def _mint(self, scope: str) -> BNode:
        label = f"genid{self._anon_counter}"
        self._anon_counter += 1
        return BNode(label, scope)

    def blank_node(self, label: str) -> BNode:
        """Return the blank node for `_:label` in the innermost scope."""
        frame = self.current
        node = frame.bnodes.get(label)
        if node is None:
            node = self._mint(frame.scope)
            frame.bnodes[label] = node
        return node

    def fresh_blank_node(self) -> BNode:
        """Mint a new anonymous blank node in the innermost scope."""
        return self._mint(self.current.scope)
