"""Trace-map driven tracking of library API usage through the scope graph.

A trace map is a nested dict describing the library surface to follow, e.g.

    {
        'vue': {
            ReferenceTracker.ESM: True,
            'ref': {ReferenceTracker.CALL: True},
        },
    }

Walking it against a program yields every node where a traced path is read,
called or constructed, however the binding got there: named or aliased
imports, namespace imports, `const r = ref`, `const { ref } = Vue` and so on.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .estree import Node
from .scope import Scope, Variable, find_variable


class TraceKind:
    """Marker key inside a trace map."""

    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"ReferenceTracker.{self.name}"


# Node types that forward their value unchanged to the parent expression
PASS_THROUGH_TYPES = {'TSAsExpression', 'TSNonNullExpression', 'ChainExpression'}


@dataclass
class TrackedReference:
    """A node where a traced path is used."""
    node: Node  # the Identifier / MemberExpression read, or the Call/NewExpression
    path: Tuple[str, ...]  # e.g. ('vue', 'ref')
    type: TraceKind
    info: Any


def get_static_property_name(node: Node) -> Optional[str]:
    """Return the static name of a MemberExpression or Property key.

    Computed keys count only when they are string/number literals or template
    literals without substitutions.

    Args:
        node: MemberExpression, Property, MethodDefinition or PropertyDefinition

    Returns:
        The property name, or None when it cannot be known statically
    """
    if node.type == 'MemberExpression':
        key = node.property
    elif node.type in ('Property', 'MethodDefinition', 'PropertyDefinition'):
        key = node.key
    else:
        return None
    if key is None:
        return None

    if not node.computed:
        if key.type in ('Identifier', 'PrivateIdentifier'):
            return key.name
    if key.type == 'Literal':
        if key.value is None or isinstance(key.value, bool):
            return key.raw
        return str(key.value)
    if key.type == 'TemplateLiteral' and key.cooked is not None:
        return key.cooked
    return None


def is_modified_global(variable: Optional[Variable]) -> bool:
    """Check whether the program assigns to a global (or shadows it)."""
    if variable is None:
        return False
    return bool(variable.defs) or any(ref.is_write() for ref in variable.references)


class ReferenceTracker:
    """Follow library bindings through imports, aliases and globals."""

    READ = TraceKind('READ')
    CALL = TraceKind('CALL')
    CONSTRUCT = TraceKind('CONSTRUCT')
    ESM = TraceKind('ESM')

    def __init__(self, global_scope: Scope):
        """Initialize tracker.

        Args:
            global_scope: The program's global scope
        """
        self.global_scope = global_scope
        self._variable_stack: List[Variable] = []

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def iterate_esm_references(self, trace_map: Dict) -> Iterator[TrackedReference]:
        """Yield usages of the traced modules reached through ESM imports.

        Only top-level import declarations are considered. Without the ESM
        marker a module is treated as CommonJS-interop: its default import is
        the module object itself.
        """
        program = self.global_scope.block
        for node in program.body:
            if node.type != 'ImportDeclaration' or node.source is None:
                continue
            module_id = node.source.value
            if module_id not in trace_map:
                continue
            next_trace_map = trace_map[module_id]
            path = (module_id,)
            if next_trace_map.get(self.READ):
                yield TrackedReference(node, path, self.READ, next_trace_map[self.READ])

            is_esm = bool(next_trace_map.get(self.ESM))
            specifier_map = next_trace_map if is_esm else {'default': next_trace_map}
            for specifier in node.specifiers:
                yield from self._iterate_import_references(specifier, path, specifier_map)

    def iterate_global_references(self, trace_map: Dict) -> Iterator[TrackedReference]:
        """Yield usages of traced global objects (e.g. the `Vue` CDN build).

        Both declared globals and unresolved references with the traced name
        are followed; a global the program re-declares or assigns is skipped.
        """
        for key, next_trace_map in trace_map.items():
            if not isinstance(key, str):
                continue
            path = (key,)
            variable = self.global_scope.set.get(key)
            if is_modified_global(variable):
                continue
            if variable is not None:
                yield from self._iterate_variable_references(variable, path, next_trace_map, True)

            for reference in self.global_scope.through:
                if reference.identifier.name != key or not reference.is_read():
                    continue
                if next_trace_map.get(self.READ):
                    yield TrackedReference(reference.identifier, path, self.READ,
                                           next_trace_map[self.READ])
                yield from self._iterate_property_references(reference.identifier, path, next_trace_map)

    # ------------------------------------------------------------------
    # Walkers
    # ------------------------------------------------------------------

    def _iterate_import_references(self, specifier: Node, path: Tuple[str, ...],
                                   trace_map: Dict) -> Iterator[TrackedReference]:
        if specifier.type in ('ImportSpecifier', 'ImportDefaultSpecifier'):
            if specifier.type == 'ImportDefaultSpecifier':
                key = 'default'
            else:
                imported = specifier.imported
                key = imported.name if imported.type == 'Identifier' else imported.value
            if key not in trace_map:
                return
            path = path + (key,)
            next_trace_map = trace_map[key]
            if next_trace_map.get(self.READ):
                yield TrackedReference(specifier, path, self.READ, next_trace_map[self.READ])
            variable = find_variable(self.global_scope, specifier.local)
            if variable is not None:
                yield from self._iterate_variable_references(variable, path, next_trace_map, False)
        elif specifier.type == 'ImportNamespaceSpecifier':
            variable = find_variable(self.global_scope, specifier.local)
            if variable is not None:
                yield from self._iterate_variable_references(variable, path, trace_map, False)

    def _iterate_variable_references(self, variable: Variable, path: Tuple[str, ...],
                                     trace_map: Dict, should_report: bool) -> Iterator[TrackedReference]:
        # CRITICAL: aliases can form cycles (`a = b; b = a`)
        if variable in self._variable_stack:
            return
        self._variable_stack.append(variable)
        try:
            for reference in variable.references:
                if not reference.is_read():
                    continue
                node = reference.identifier
                if should_report and trace_map.get(self.READ):
                    yield TrackedReference(node, path, self.READ, trace_map[self.READ])
                yield from self._iterate_property_references(node, path, trace_map)
        finally:
            self._variable_stack.pop()

    def _iterate_property_references(self, root: Node, path: Tuple[str, ...],
                                     trace_map: Dict) -> Iterator[TrackedReference]:
        node = root
        while node.parent is not None and node.parent.type in PASS_THROUGH_TYPES:
            node = node.parent
        parent = node.parent
        if parent is None:
            return

        if parent.type == 'MemberExpression':
            if parent.object is node:
                key = get_static_property_name(parent)
                if key is None or key not in trace_map:
                    return
                path = path + (key,)
                next_trace_map = trace_map[key]
                if next_trace_map.get(self.READ):
                    yield TrackedReference(parent, path, self.READ, next_trace_map[self.READ])
                yield from self._iterate_property_references(parent, path, next_trace_map)
            return

        if parent.type == 'CallExpression':
            if parent.callee is node and trace_map.get(self.CALL):
                yield TrackedReference(parent, path, self.CALL, trace_map[self.CALL])
            return

        if parent.type == 'NewExpression':
            if parent.callee is node and trace_map.get(self.CONSTRUCT):
                yield TrackedReference(parent, path, self.CONSTRUCT, trace_map[self.CONSTRUCT])
            return

        if parent.type == 'AssignmentExpression':
            if parent.right is node:
                yield from self._iterate_lhs_references(parent.left, path, trace_map)
                yield from self._iterate_property_references(parent, path, trace_map)
            return

        if parent.type == 'AssignmentPattern':
            if parent.right is node:
                yield from self._iterate_lhs_references(parent.left, path, trace_map)
            return

        if parent.type == 'VariableDeclarator':
            if parent.init is node:
                yield from self._iterate_lhs_references(parent.id, path, trace_map)

    def _iterate_lhs_references(self, pattern: Optional[Node], path: Tuple[str, ...],
                                trace_map: Dict) -> Iterator[TrackedReference]:
        if pattern is None:
            return
        if pattern.type == 'Identifier':
            variable = find_variable(self.global_scope, pattern)
            if variable is not None:
                yield from self._iterate_variable_references(variable, path, trace_map, False)
        elif pattern.type == 'ObjectPattern':
            for prop in pattern.properties:
                if prop.type != 'Property':
                    continue
                key = get_static_property_name(prop)
                if key is None or key not in trace_map:
                    continue
                next_path = path + (key,)
                next_trace_map = trace_map[key]
                if next_trace_map.get(self.READ):
                    yield TrackedReference(prop, next_path, self.READ, next_trace_map[self.READ])
                yield from self._iterate_lhs_references(prop.value, next_path, next_trace_map)
        elif pattern.type == 'AssignmentPattern':
            yield from self._iterate_lhs_references(pattern.left, path, trace_map)
