"""Tests for trace-map driven library reference tracking."""
import pytest

from reftrace.analyzer.reference_tracker import ReferenceTracker, get_static_property_name

CALL = ReferenceTracker.CALL
READ = ReferenceTracker.READ

VUE_MAP = {
    'vue': {
        ReferenceTracker.ESM: True,
        'ref': {CALL: True},
        'computed': {CALL: True},
        'version': {READ: True},
    },
}


def tracked(context, trace_map=VUE_MAP, mode='esm'):
    tracker = ReferenceTracker(context.global_scope)
    if mode == 'esm':
        return list(tracker.iterate_esm_references(trace_map))
    return list(tracker.iterate_global_references(trace_map))


def test_named_import_call(analyze):
    context = analyze("import { ref } from 'vue'\nref(1)\n")
    results = tracked(context)
    assert len(results) == 1
    assert results[0].path == ('vue', 'ref')
    assert results[0].type is CALL
    assert results[0].node is context.program.body[1].expression


def test_alias_through_variable(analyze):
    context = analyze("""
import { ref } from 'vue'
const make = ref
make(1)
""")
    results = tracked(context)
    assert [r.path for r in results] == [('vue', 'ref')]
    assert results[0].node is context.program.body[2].expression


def test_namespace_destructuring(analyze):
    context = analyze("""
import * as V from 'vue'
const { computed } = V
computed(() => 1)
V.ref(0)
""")
    paths = sorted(r.path for r in tracked(context))
    assert paths == [('vue', 'computed'), ('vue', 'ref')]


def test_property_read(analyze):
    context = analyze("import * as V from 'vue'\nconsole.log(V.version)\n")
    results = tracked(context)
    assert [(r.path, r.type) for r in results] == [(('vue', 'version'), READ)]


def test_untraced_names_are_ignored(analyze):
    context = analyze("import { reactive, ref } from 'vue'\nreactive({})\nref\n")
    assert tracked(context) == [], "reading ref without calling it is not a CALL"


def test_commonjs_style_default_import(analyze):
    trace_map = {'lib': {'build': {CALL: True}}}
    context = analyze("import lib from 'lib'\nlib.build()\n")
    results = tracked(context, trace_map)
    assert [r.path for r in results] == [('lib', 'default', 'build')]


def test_alias_cycle_terminates(analyze):
    context = analyze("""
import { ref } from 'vue'
let a = ref
let b = a
a = b
b(0)
""")
    assert len(tracked(context)) == 1


class TestGlobalReferences:
    """Tracing a library exposed as a global object."""

    TRACE_MAP = {'Vue': {'ref': {CALL: True}}}

    def test_unresolved_global(self, analyze):
        context = analyze("const c = Vue.ref(0)", source_type='script')
        results = tracked(context, self.TRACE_MAP, mode='global')
        assert [r.path for r in results] == [('Vue', 'ref')]

    def test_declared_global(self, analyze):
        context = analyze("Vue.ref(0)", source_type='script', globals=('Vue',))
        assert len(tracked(context, self.TRACE_MAP, mode='global')) == 1

    def test_destructured_global(self, analyze):
        context = analyze("const { ref } = Vue\nref(0)\n", source_type='script')
        assert len(tracked(context, self.TRACE_MAP, mode='global')) == 1

    def test_shadowed_global_is_skipped(self, analyze):
        context = analyze("var Vue = {}\nVue.ref(0)\n", source_type='script')
        assert tracked(context, self.TRACE_MAP, mode='global') == []


@pytest.mark.parametrize('code, expected', [
    ("a.b", 'b'),
    ("a['c']", 'c'),
    ("a[0]", '0'),
    ("a[`t`]", 't'),
    ("a[key]", None),
    ("a[`${key}`]", None),
])
def test_static_property_name(analyze, code, expected):
    context = analyze(code)
    member = context.program.body[0].expression
    assert member.type == 'MemberExpression'
    assert get_static_property_name(member) == expected
