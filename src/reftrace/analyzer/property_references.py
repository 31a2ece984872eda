"""Which properties of an object value does the program read?

Used to follow `toRefs(state)`: every property of the returned object is a ref,
so the engine needs the places those properties are read, whether through
destructuring (`const { a } = toRefs(s)`) or member access (`refs.a`).

When the set of accessed properties cannot be known statically (computed keys,
rest elements, the object escaping into a call) the result is ANY, which the
caller treats as "nothing can be tracked".
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Set

from .estree import Node
from .reference_tracker import get_static_property_name
from .scope import Variable, find_variable

if TYPE_CHECKING:
    from .context import AnalysisContext


@dataclass(frozen=True)
class NestNode:
    """Where one property is consumed.

    type is 'expression' for a MemberExpression reading the property, or
    'pattern' for the binding pattern that receives it.
    """
    type: str
    node: Node


class PropertyReferences:
    """Properties read from one object value."""

    def all_properties(self) -> Dict[str, List[Node]]:
        """Map each property name to the nodes that read it."""
        return {}

    def get_nest_nodes(self, name: str) -> Iterator[NestNode]:
        """Yield the places where property `name` flows next."""
        return iter(())

    def is_any(self) -> bool:
        return False


class _AnyPropertyReferences(PropertyReferences):
    """Properties are accessed in a way that cannot be tracked."""

    def is_any(self) -> bool:
        return True

    def __repr__(self) -> str:
        return "PropertyReferences.ANY"


class _NeverPropertyReferences(PropertyReferences):
    """No property is ever read."""

    def __repr__(self) -> str:
        return "PropertyReferences.NEVER"


ANY = _AnyPropertyReferences()
NEVER = _NeverPropertyReferences()


class PatternPropertyReferences(PropertyReferences):
    """Properties named by an ObjectPattern."""

    def __init__(self, pattern: Node):
        self.pattern = pattern
        self._properties: Dict[str, List[Node]] = {}
        for prop in pattern.properties:
            name = get_static_property_name(prop)
            self._properties.setdefault(name, []).append(prop)

    def all_properties(self) -> Dict[str, List[Node]]:
        return self._properties

    def get_nest_nodes(self, name: str) -> Iterator[NestNode]:
        for prop in self._properties.get(name, []):
            yield NestNode('pattern', prop.value)


class MemberPropertyReferences(PropertyReferences):
    """Properties read as `obj.name`."""

    def __init__(self):
        self._properties: Dict[str, List[Node]] = {}

    def add(self, name: str, member: Node) -> None:
        self._properties.setdefault(name, []).append(member)

    def all_properties(self) -> Dict[str, List[Node]]:
        return self._properties

    def get_nest_nodes(self, name: str) -> Iterator[NestNode]:
        for member in self._properties.get(name, []):
            yield NestNode('expression', member)


class MergedPropertyReferences(PropertyReferences):
    """Union of several results."""

    def __init__(self, parts: List[PropertyReferences]):
        self.parts = parts

    def all_properties(self) -> Dict[str, List[Node]]:
        merged: Dict[str, List[Node]] = {}
        for part in self.parts:
            for name, nodes in part.all_properties().items():
                merged.setdefault(name, []).extend(nodes)
        return merged

    def get_nest_nodes(self, name: str) -> Iterator[NestNode]:
        for part in self.parts:
            yield from part.get_nest_nodes(name)


def merge_property_references(parts: List[PropertyReferences]) -> PropertyReferences:
    """Combine results; any ANY part poisons the whole."""
    parts = [part for part in parts if part is not NEVER]
    if any(part.is_any() for part in parts):
        return ANY
    if not parts:
        return NEVER
    if len(parts) == 1:
        return parts[0]
    return MergedPropertyReferences(parts)


class PropertyReferenceExtractor:
    """Extract property reads for patterns and expressions of one program."""

    def __init__(self, context: 'AnalysisContext'):
        self.context = context
        self._pattern_cache: Dict[Node, PropertyReferences] = {}
        self._expression_cache: Dict[Node, PropertyReferences] = {}
        self._visited_variables: Set[Variable] = set()

    def extract_from_pattern(self, pattern: Optional[Node]) -> PropertyReferences:
        """Return the properties read from the value bound to pattern.

        Args:
            pattern: Identifier, ObjectPattern, AssignmentPattern, ...

        Returns:
            PropertyReferences (ANY when untrackable)
        """
        if pattern is None:
            return NEVER
        cached = self._pattern_cache.get(pattern)
        if cached is not None:
            return cached
        result = self._extract_from_pattern(pattern)
        self._pattern_cache[pattern] = result
        return result

    def _extract_from_pattern(self, pattern: Node) -> PropertyReferences:
        while pattern.type == 'AssignmentPattern':
            pattern = pattern.left

        if pattern.type == 'ObjectPattern':
            for prop in pattern.properties:
                if prop.type != 'Property' or get_static_property_name(prop) is None:
                    return ANY
            return PatternPropertyReferences(pattern)

        if pattern.type == 'Identifier':
            variable = find_variable(self.context.global_scope, pattern)
            if variable is None:
                return NEVER
            return self._extract_from_variable(variable)

        # ArrayPattern, RestElement, MemberExpression targets
        return ANY

    def _extract_from_variable(self, variable: Variable) -> PropertyReferences:
        if variable in self._visited_variables:
            return NEVER
        self._visited_variables.add(variable)
        parts = []
        for reference in variable.references:
            if not reference.is_read():
                continue
            parts.append(self.extract_from_expression(reference.identifier))
        return merge_property_references(parts)

    def extract_from_expression(self, node: Node) -> PropertyReferences:
        """Return the properties read from the value of expression node.

        Args:
            node: Expression whose consumers are inspected

        Returns:
            PropertyReferences (ANY when untrackable)
        """
        cached = self._expression_cache.get(node)
        if cached is not None:
            return cached
        result = self._extract_from_expression(node)
        self._expression_cache[node] = result
        return result

    def _extract_from_expression(self, node: Node) -> PropertyReferences:
        parent = node.parent
        if parent is None:
            return ANY

        if parent.type == 'MemberExpression' and parent.object is node:
            name = get_static_property_name(parent)
            if name is None:
                return ANY
            result = MemberPropertyReferences()
            result.add(name, parent)
            return result

        if parent.type == 'AssignmentExpression' and parent.operator == '=' and parent.right is node:
            return self.extract_from_pattern(parent.left)

        if parent.type == 'VariableDeclarator' and parent.init is node:
            return self.extract_from_pattern(parent.id)

        if parent.type in ('TSAsExpression', 'TSNonNullExpression'):
            return self.extract_from_expression(parent)

        return ANY


def define_property_reference_extractor(context: 'AnalysisContext') -> PropertyReferenceExtractor:
    """Create a property-reference extractor bound to context's program."""
    return PropertyReferenceExtractor(context)
