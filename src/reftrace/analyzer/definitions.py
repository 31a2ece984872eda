"""Find the calls that create reactive bindings.

Two vocabularies are recognized:
- factory calls imported from the Vue runtime (`ref`, `computed`, ...), found
  through the library reference tracker so aliased and namespace imports work
- compiler macros (`$ref`, `$computed`, ..., `$`) and the `$$` escape hint,
  which are ambient: they are never imported, so they show up either as
  declared globals or as unresolved references
"""
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from .estree import Node
from .reference_tracker import ReferenceTracker
from .scope import Scope
from ..config import AnalysisOptions


REF_FACTORIES = ('ref', 'computed', 'toRef', 'customRef', 'shallowRef', 'toRefs')
REF_MACROS = ('$ref', '$computed', '$shallowRef', '$customRef', '$toRef', '$')
ESCAPE_HINT = '$$'


@dataclass(frozen=True, eq=False)
class DefinitionSite:
    """A call that creates a reactive binding."""
    node: Node  # CallExpression
    method: str  # canonical factory or macro name

    @property
    def line(self) -> int:
        return self.node.line


def build_factory_trace_map(options: Optional[AnalysisOptions] = None) -> Dict:
    """Trace map for the factory functions of every configured library module."""
    modules = options.library_modules if options else ('vue', '@vue/composition-api')
    factory_map = {ReferenceTracker.ESM: True}
    for name in REF_FACTORIES:
        factory_map[name] = {ReferenceTracker.CALL: True}
    return {module: factory_map for module in modules}


def iterate_define_refs(global_scope: Scope,
                        options: Optional[AnalysisOptions] = None) -> Iterator[DefinitionSite]:
    """Yield every factory call in the program.

    Args:
        global_scope: Global scope of the analyzed program
        options: Trace mode and library names; defaults trace ESM imports of vue

    Yields:
        DefinitionSite for each call, method being the canonical factory name
    """
    trace_mode = options.trace_mode if options else 'esm'
    tracker = ReferenceTracker(global_scope)
    seen = set()

    if trace_mode in ('esm', 'all'):
        trace_map = build_factory_trace_map(options)
        for tracked in tracker.iterate_esm_references(trace_map):
            if tracked.node.type == 'CallExpression' and tracked.node not in seen:
                seen.add(tracked.node)
                yield DefinitionSite(tracked.node, tracked.path[-1])

    if trace_mode in ('global', 'all'):
        factory_map = build_factory_trace_map(options)
        module_map = next(iter(factory_map.values()), {})
        objects = options.global_objects if options else ('Vue',)
        trace_map = {name: module_map for name in objects}
        for tracked in tracker.iterate_global_references(trace_map):
            if tracked.node.type == 'CallExpression' and tracked.node not in seen:
                seen.add(tracked.node)
                yield DefinitionSite(tracked.node, tracked.path[-1])


def _iterate_ambient_calls(global_scope: Scope, names: List[str]) -> Iterator[DefinitionSite]:
    """Yield calls to ambient (never imported) functions with the given names.

    Both declared-global references and unresolved references count; only
    occurrences in callee position of a call are kept.
    """
    wanted = set(names)
    references = []
    for name in names:
        variable = global_scope.set.get(name)
        if variable is not None:
            references.extend(variable.references)
    references.extend(ref for ref in global_scope.through if ref.identifier.name in wanted)

    for reference in references:
        identifier = reference.identifier
        parent = identifier.parent
        if parent is not None and parent.type == 'CallExpression' and parent.callee is identifier:
            yield DefinitionSite(parent, identifier.name)


def iterate_define_reactive_variables(global_scope: Scope) -> Iterator[DefinitionSite]:
    """Yield every reactivity-transform macro call (`$ref(0)`, `$(obj)`, ...)."""
    yield from _iterate_ambient_calls(global_scope, list(REF_MACROS))


def iterate_escape_hint_calls(global_scope: Scope) -> Iterator[Node]:
    """Yield every `$$(...)` call node."""
    for site in _iterate_ambient_calls(global_scope, [ESCAPE_HINT]):
        yield site.node
