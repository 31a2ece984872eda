"""Tests for reactivity-transform macros ($ref, $computed, $, ...) and the $$ escape hint."""
import pytest

from reftrace.analyzer.ref_object_references import (
    EscapeHintDetector,
    ReactiveVariableReference,
    extract_identifiers,
    extract_reactive_variable_references,
)


def test_macro_variable_occurrences(analyze, identifiers):
    context = analyze("""
let count = $ref(0)
count++
console.log(count)
""")
    references = extract_reactive_variable_references(context)
    declaration, update, log = identifiers(context, 'count')

    assert references.get(declaration) is None, "declaration name slot must not be recorded"
    for occurrence in (update, log):
        record = references.get(occurrence)
        assert isinstance(record, ReactiveVariableReference)
        assert record.method == '$ref'
        assert record.escape is False
        assert record.definition_site.node is declaration.parent.init
        assert record.owner_declaration is declaration.parent.parent
    assert len(references) == 2


@pytest.mark.parametrize('macro', ['$ref', '$computed', '$shallowRef', '$customRef', '$toRef'])
def test_every_macro_is_recognized(analyze, identifiers, macro):
    context = analyze(f"""
const value = {macro}(source)
use(value)
""")
    references = extract_reactive_variable_references(context)
    _, read = identifiers(context, 'value')
    assert references.get(read).method == macro


def test_dollar_destructuring(analyze, identifiers):
    """`const { x, y: { z } } = $(obj)` tracks both x and z."""
    context = analyze("""
const { x, y: { z } } = $(useFoo())
console.log(x, z)
""")
    references = extract_reactive_variable_references(context)
    _, x_read = identifiers(context, 'x')
    _, z_read = identifiers(context, 'z')

    assert references.get(x_read).method == '$'
    assert references.get(z_read).method == '$'
    assert not identifiers(context, 'y'), "`y` is only a property key"
    assert len(references) == 2


def test_destructuring_requires_dollar_macro(analyze):
    context = analyze("""
const { a } = $ref(obj)
console.log(a)
""")
    assert len(extract_reactive_variable_references(context)) == 0


def test_only_declarations_define_reactive_variables(analyze):
    context = analyze("""
let a
a = $ref(0)
console.log(a)
foo($computed(() => 1))
""")
    assert len(extract_reactive_variable_references(context)) == 0


def test_declared_globals_are_followed(analyze, identifiers):
    context = analyze("""
let count = $ref(0)
const raw = $$(count)
""", globals=('$ref', '$$'))
    references = extract_reactive_variable_references(context)
    _, escaped = identifiers(context, 'count')
    assert references.get(escaped).escape is True


def test_same_instance_on_repeated_calls(analyze):
    context = analyze("let a = $ref(0)\na\n")
    assert extract_reactive_variable_references(context) is extract_reactive_variable_references(context)


class TestEscapeHint:
    """Which occurrences count as passed to `$$()`."""

    CODE = """
let ref1 = $ref(0)
const direct = $$(ref1)
const nested = $$([ref1, { a: ref1 }])
const spread = $$([...ref1])
const wrapped = foo($$(ref1))
const binary = $$(ref1 + 1)
const called = $$(bar(ref1))
console.log(ref1)
"""

    @pytest.fixture
    def occurrences(self, analyze, identifiers):
        context = analyze(self.CODE)
        references = extract_reactive_variable_references(context)
        return [references.get(node) for node in identifiers(context, 'ref1')]

    def test_declaration_is_not_recorded(self, occurrences):
        assert occurrences[0] is None

    def test_direct_argument(self, occurrences):
        assert occurrences[1].escape is True

    def test_nested_in_array_and_object_literals(self, occurrences):
        assert occurrences[2].escape is True
        assert occurrences[3].escape is True

    def test_spread_element(self, occurrences):
        assert occurrences[4].escape is True

    def test_escape_hint_inside_other_call(self, occurrences):
        """`foo($$(ref1))` escapes ref1.

        The walk stops at the nearest enclosing call, which is `$$` here, so the
        outer `foo` never comes into play. Contrast with `$$(bar(ref1))` below.
        """
        assert occurrences[5].escape is True

    def test_computed_argument_is_not_escaped(self, occurrences):
        assert occurrences[6].escape is False

    def test_nearest_call_must_be_the_escape_hint(self, occurrences):
        assert occurrences[7].escape is False

    def test_plain_read(self, occurrences):
        assert occurrences[8].escape is False
        assert len(occurrences) == 9

    def test_detector_collects_escape_calls(self, analyze):
        context = analyze(self.CODE)
        detector = EscapeHintDetector(context.global_scope)
        assert len(detector.escape_hint_calls) == 6


def test_extract_identifiers_walks_nested_patterns(analyze):
    context = analyze("const { a, b: [c, , { d = 1 }], ...e } = $(obj)")
    pattern = context.program.body[0].declarations[0].id
    assert [node.name for node in extract_identifiers(pattern)] == ['a', 'c', 'd', 'e']


def test_jsx_tag_names_are_not_reads(analyze, identifiers):
    context = analyze("""
let a = $ref(0)
const el = <a href={a}>x</a>
""")
    references = extract_reactive_variable_references(context)
    _, href = identifiers(context, 'a')

    assert references.get(href).method == '$ref'
    assert [(record.node.line, record.node.column) for record in references] == [(3, 20)]


def test_enum_member_name_is_not_a_read(analyze):
    context = analyze("""
let a = $ref(0)
enum E { a = 1 }
""", language='typescript')
    assert len(extract_reactive_variable_references(context)) == 0
