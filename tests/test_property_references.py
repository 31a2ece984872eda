"""Tests for the property-reference extractor used by toRefs tracking."""
from reftrace.analyzer.property_references import (
    ANY,
    NEVER,
    NestNode,
    define_property_reference_extractor,
)


def declared_pattern(context, index=0):
    return context.program.body[index].declarations[0].id


def test_object_pattern_lists_its_keys(analyze):
    context = analyze("const { a, b: c, 'd': e = 1 } = source")
    extractor = define_property_reference_extractor(context)
    references = extractor.extract_from_pattern(declared_pattern(context))

    assert set(references.all_properties()) == {'a', 'b', 'd'}
    nests = list(references.get_nest_nodes('b'))
    assert len(nests) == 1
    assert nests[0].type == 'pattern'
    assert nests[0].node.type == 'Identifier' and nests[0].node.name == 'c'
    # defaults are kept on the nest node; the resolver unwraps them
    assert next(references.get_nest_nodes('d')).node.type == 'AssignmentPattern'


def test_member_reads_through_identifier(analyze):
    context = analyze("""
const obj = source
obj.a
obj.b.c
""")
    extractor = define_property_reference_extractor(context)
    references = extractor.extract_from_pattern(declared_pattern(context))

    assert set(references.all_properties()) == {'a', 'b'}
    nest = next(references.get_nest_nodes('a'))
    assert nest == NestNode('expression', context.program.body[1].expression)


def test_rebinding_is_followed(analyze):
    context = analyze("""
const obj = source
const { p } = obj
let other
other = obj
other.q
""")
    extractor = define_property_reference_extractor(context)
    references = extractor.extract_from_pattern(declared_pattern(context))
    assert set(references.all_properties()) == {'p', 'q'}


def test_dynamic_access_is_any(analyze):
    context = analyze("""
const obj = source
obj[key]
""")
    extractor = define_property_reference_extractor(context)
    references = extractor.extract_from_pattern(declared_pattern(context))
    assert references is ANY
    assert references.all_properties() == {}


def test_escaping_value_is_any(analyze):
    context = analyze("""
const obj = source
consume(obj)
""")
    extractor = define_property_reference_extractor(context)
    assert extractor.extract_from_pattern(declared_pattern(context)).is_any()


def test_rest_element_is_any(analyze):
    context = analyze("const { a, ...rest } = source")
    extractor = define_property_reference_extractor(context)
    assert extractor.extract_from_pattern(declared_pattern(context)) is ANY


def test_unused_binding_is_never(analyze):
    context = analyze("const obj = source")
    extractor = define_property_reference_extractor(context)
    references = extractor.extract_from_pattern(declared_pattern(context))
    assert references is NEVER
    assert list(references.get_nest_nodes('a')) == []


def test_results_are_memoized_per_pattern(analyze):
    context = analyze("const { a } = source")
    extractor = define_property_reference_extractor(context)
    pattern = declared_pattern(context)
    assert extractor.extract_from_pattern(pattern) is extractor.extract_from_pattern(pattern)
