"""Resolve every reference to a ref object or reactive variable.

Two independent extractors share this module:

RefObjectReferenceExtractor follows the runtime factories (`ref(0)`,
`computed(...)`, `toRefs(state)`, ...). It records where the resulting ref
object is read (`count.value`) or written, following it through plain
re-bindings like `const b = a`.

ReactiveVariableReferenceExtractor follows the reactivity-transform macros
(`let count = $ref(0)`). Those variables are used without `.value`, so every
occurrence matters; occurrences passed to the `$$()` escape hint are flagged
because there the raw ref object is meant.

Results are computed once per program and cached on the AnalysisContext.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Union
import networkx as nx

from .context import AnalysisContext
from .definitions import (
    DefinitionSite,
    iterate_define_reactive_variables,
    iterate_define_refs,
    iterate_escape_hint_calls,
)
from .estree import Node
from .property_references import define_property_reference_extractor
from .scope import Definition, Reference, Scope, find_variable


REF_OBJECT_CACHE_KEY = 'ref-object-references'
REACTIVE_VARIABLE_CACHE_KEY = 'reactive-variable-references'


@dataclass(frozen=True)
class RefObjectReferenceForIdentifier:
    """A read or write of a variable holding a ref object."""
    node: Node  # Identifier
    type: str  # 'expression' (read) or 'pattern' (write)
    method: str
    definition_site: DefinitionSite
    owner_declaration: Optional[Node]  # VariableDeclaration, or None
    kind: str = 'identifier'


@dataclass(frozen=True)
class RefObjectReferenceForExpression:
    """A ref object produced by an expression with no named binding.

    Either the factory call itself (`foo(ref(0))`) or a member read of a
    `toRefs` result (`refs.count`).
    """
    node: Node  # CallExpression or MemberExpression
    method: str
    definition_site: DefinitionSite
    type: str = 'expression'
    kind: str = 'expression'


@dataclass(frozen=True)
class RefObjectReferenceForPattern:
    """An object pattern destructuring a whole ref object (`const { value } = ref(1)`)."""
    node: Node  # ObjectPattern
    method: str
    definition_site: DefinitionSite
    type: str = 'pattern'
    kind: str = 'pattern'


RefObjectReference = Union[
    RefObjectReferenceForIdentifier,
    RefObjectReferenceForExpression,
    RefObjectReferenceForPattern,
]


@dataclass(frozen=True)
class ReactiveVariableReference:
    """An occurrence of a variable declared with a reactivity macro."""
    node: Node  # Identifier
    escape: bool  # inside a `$$()` escape hint
    method: str
    definition_site: DefinitionSite
    owner_declaration: Node  # VariableDeclaration


def extract_identifiers(pattern: Optional[Node]) -> Iterator[Node]:
    """Yield every Identifier bound by a destructuring pattern.

    Member expression targets bind nothing and are skipped.
    """
    if pattern is None:
        return
    kind = pattern.type
    if kind == 'Identifier':
        yield pattern
    elif kind == 'ObjectPattern':
        for prop in pattern.properties:
            if prop.type == 'Property':
                yield from extract_identifiers(prop.value)
            elif prop.type == 'RestElement':
                yield from extract_identifiers(prop)
    elif kind == 'ArrayPattern':
        for element in pattern.elements:
            if element is not None:
                yield from extract_identifiers(element)
    elif kind == 'AssignmentPattern':
        yield from extract_identifiers(pattern.left)
    elif kind == 'RestElement':
        yield from extract_identifiers(pattern.argument)


def _single_variable_definition(reference: Reference) -> Optional[Definition]:
    """The variable's definition if it has exactly one and it is a plain variable."""
    variable = reference.resolved
    if variable is not None and len(variable.defs) == 1 and variable.defs[0].type == 'Variable':
        return variable.defs[0]
    return None


def _iterate_identifier_references(identifier: Node, global_scope: Scope) -> Iterator[Reference]:
    variable = find_variable(global_scope, identifier)
    if variable is None:
        return
    yield from list(variable.references)


class RefObjectReferences:
    """Query surface over the ref-object references of one program."""

    def __init__(self, references: Dict[Node, RefObjectReference], graph: nx.DiGraph):
        self._references = references
        self.graph = graph

    def get(self, node: Node) -> Optional[RefObjectReference]:
        """Return the record for node, or None if it is not a ref-object reference."""
        return self._references.get(node)

    def chain(self, node: Node) -> List[Node]:
        """Return the derivation path from the defining call to node.

        The path runs through every binding the value passed on its way, e.g.
        for `const a = ref(1); const b = a; b.value` querying the last `b`
        gives [ref(1), a, a (read), b, b (read)].

        Returns:
            List of nodes starting at the definition call, empty if node is unknown
        """
        record = self._references.get(node)
        if record is None:
            return []
        source = record.definition_site.node
        try:
            return nx.shortest_path(self.graph, source, node)
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return [source, node]

    def __iter__(self) -> Iterator[RefObjectReference]:
        return iter(self._references.values())

    def __len__(self) -> int:
        return len(self._references)

    def __contains__(self, node: Node) -> bool:
        return node in self._references


class ReactiveVariableReferences:
    """Query surface over the reactive-variable references of one program."""

    def __init__(self, references: Dict[Node, ReactiveVariableReference]):
        self._references = references

    def get(self, node: Node) -> Optional[ReactiveVariableReference]:
        """Return the record for an Identifier, or None."""
        return self._references.get(node)

    def __iter__(self) -> Iterator[ReactiveVariableReference]:
        return iter(self._references.values())

    def __len__(self) -> int:
        return len(self._references)

    def __contains__(self, node: Node) -> bool:
        return node in self._references


class RefObjectReferenceExtractor:
    """Single pass collecting ref-object references."""

    def __init__(self, context: AnalysisContext):
        self.context = context
        self.references: Dict[Node, RefObjectReference] = {}
        # edges point from where a value came from to where it went
        self.graph = nx.DiGraph()
        self._processed_ids: Set[Node] = set()

    def process_define_ref(self, site: DefinitionSite) -> None:
        """Start from one factory call."""
        node = site.node
        method = site.method
        parent = node.parent
        self.graph.add_node(node, method=method)

        if parent is not None and parent.type == 'VariableDeclarator' and parent.init is node:
            pattern = parent.id
        elif parent is not None and parent.type == 'AssignmentExpression' and parent.operator == '=':
            pattern = parent.left
        else:
            # inline use: the call itself is the only handle on the ref
            if method != 'toRefs':
                self.references[node] = RefObjectReferenceForExpression(
                    node=node, method=method, definition_site=site)
            return

        if method == 'toRefs':
            extractor = define_property_reference_extractor(self.context)
            property_references = extractor.extract_from_pattern(pattern)
            for name in property_references.all_properties():
                for nest in property_references.get_nest_nodes(name):
                    if nest.type == 'expression':
                        self.process_member_expression(nest.node, site, node)
                    elif nest.type == 'pattern':
                        self.process_pattern(nest.node, site, node)
        else:
            self.process_pattern(pattern, site, node)

    def process_expression(self, node: Node, site: DefinitionSite) -> bool:
        """Follow node into the binding it initializes, if any.

        Returns:
            True when node was re-bound (`x = node` / `const x = node`)
        """
        parent = node.parent
        if parent is None:
            return False
        if parent.type == 'AssignmentExpression':
            if parent.operator == '=' and parent.right is node:
                self.process_pattern(parent.left, site, node)
                return True
        elif parent.type == 'VariableDeclarator' and parent.init is node:
            self.process_pattern(parent.id, site, node)
            return True
        return False

    def process_member_expression(self, node: Node, site: DefinitionSite, source: Node) -> None:
        self.graph.add_edge(source, node)
        if self.process_expression(node, site):
            return
        self.references[node] = RefObjectReferenceForExpression(
            node=node, method=site.method, definition_site=site)

    def process_pattern(self, node: Optional[Node], site: DefinitionSite, source: Node) -> None:
        if node is None:
            return
        if node.type == 'Identifier':
            self.graph.add_edge(source, node)
            self.process_identifier_pattern(node, site)
        elif node.type == 'ObjectPattern':
            self.graph.add_edge(source, node)
            self.references[node] = RefObjectReferenceForPattern(
                node=node, method=site.method, definition_site=site)
        elif node.type == 'AssignmentPattern':
            self.process_pattern(node.left, site, source)
        # ArrayPattern, RestElement and MemberExpression targets are not tracked

    def process_identifier_pattern(self, node: Node, site: DefinitionSite) -> None:
        if node in self._processed_ids:
            return
        self._processed_ids.add(node)

        for reference in _iterate_identifier_references(node, self.context.global_scope):
            identifier = reference.identifier
            definition = _single_variable_definition(reference)
            if definition is not None and definition.name is identifier:
                continue
            if identifier is not node:
                self.graph.add_edge(node, identifier)
            if reference.is_read() and self.process_expression(identifier, site):
                continue
            self.references[identifier] = RefObjectReferenceForIdentifier(
                node=identifier,
                type='pattern' if reference.is_write() else 'expression',
                method=site.method,
                definition_site=site,
                owner_declaration=definition.parent if definition is not None else None,
            )


class ReactiveVariableReferenceExtractor:
    """Single pass collecting reactive-variable references."""

    def __init__(self, context: AnalysisContext):
        self.context = context
        self.references: Dict[Node, ReactiveVariableReference] = {}
        self._processed_ids: Set[Node] = set()
        self.escape_hints = EscapeHintDetector(context.global_scope)

    def process_define_reactive_variable(self, site: DefinitionSite) -> None:
        """Start from one macro call; only `let/const x = $macro()` declares anything."""
        parent = site.node.parent
        if parent is None or parent.type != 'VariableDeclarator' or parent.init is not site.node:
            return
        pattern = parent.id

        if site.method == '$':
            for identifier in extract_identifiers(pattern):
                self.process_identifier_pattern(identifier, site)
        elif pattern is not None and pattern.type == 'Identifier':
            self.process_identifier_pattern(pattern, site)

    def process_identifier_pattern(self, node: Node, site: DefinitionSite) -> None:
        if node in self._processed_ids:
            return
        self._processed_ids.add(node)

        for reference in _iterate_identifier_references(node, self.context.global_scope):
            identifier = reference.identifier
            definition = _single_variable_definition(reference)
            if definition is None or definition.name is identifier:
                continue
            self.references[identifier] = ReactiveVariableReference(
                node=identifier,
                escape=self.escape_hints.within_escape_hint(identifier),
                method=site.method,
                definition_site=site,
                owner_declaration=definition.parent,
            )


class EscapeHintDetector:
    """Decide whether an identifier is passed to `$$()`."""

    # Literal containers that hand their members through unchanged
    TRANSPARENT_PARENTS = {'ArrayExpression', 'SpreadElement'}

    def __init__(self, global_scope: Scope):
        self.escape_hint_calls: Set[Node] = set(iterate_escape_hint_calls(global_scope))

    def within_escape_hint(self, node: Node) -> bool:
        """Check whether node is an argument of `$$()`, possibly nested in literals.

        `$$(a)`, `$$([a])`, `$$({ key: a })` and `$$(...[a])` all count;
        `$$(a + 1)` or `$$(fn(a))` do not.
        """
        target = node
        parent = target.parent
        while parent is not None:
            if parent.type == 'CallExpression':
                return target in parent.arguments and parent in self.escape_hint_calls
            if ((parent.type == 'Property' and parent.value is target)
                    or (parent.type == 'ObjectExpression' and target in parent.properties)
                    or parent.type in self.TRANSPARENT_PARENTS):
                target = parent
                parent = target.parent
            else:
                return False
        return False


def extract_ref_object_references(context: AnalysisContext) -> RefObjectReferences:
    """Return all ref-object references of the context's program.

    Args:
        context: Analysis context of one parsed program

    Returns:
        RefObjectReferences (the same instance on every call for this program)
    """
    def compute() -> RefObjectReferences:
        extractor = RefObjectReferenceExtractor(context)
        for site in iterate_define_refs(context.global_scope, context.options):
            extractor.process_define_ref(site)
        return RefObjectReferences(extractor.references, extractor.graph)

    return context.cache.get_or_compute(REF_OBJECT_CACHE_KEY, context.program, compute)


def extract_reactive_variable_references(context: AnalysisContext) -> ReactiveVariableReferences:
    """Return all reactive-variable references of the context's program.

    Args:
        context: Analysis context of one parsed program

    Returns:
        ReactiveVariableReferences (the same instance on every call for this program)
    """
    def compute() -> ReactiveVariableReferences:
        extractor = ReactiveVariableReferenceExtractor(context)
        for site in iterate_define_reactive_variables(context.global_scope):
            extractor.process_define_reactive_variable(site)
        return ReactiveVariableReferences(extractor.references)

    return context.cache.get_or_compute(REACTIVE_VARIABLE_CACHE_KEY, context.program, compute)
