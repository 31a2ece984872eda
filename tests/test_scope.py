"""Tests for lexical scope analysis."""
from reftrace.analyzer.parser import LanguageParser
from reftrace.analyzer.estree import build_estree
from reftrace.analyzer.scope import analyze_scope, find_variable


def build(code: str, source_type: str = 'module', globals=()):
    source = code.encode('utf-8')
    tree = LanguageParser('javascript').parse_source(source)
    program = build_estree(tree, source, source_type)
    return program, analyze_scope(program, source_type, globals)


def test_module_scope_holds_top_level_bindings():
    program, manager = build("const a = 1\na\n")
    global_scope = manager.global_scope
    module_scope = global_scope.child_scopes[0]

    assert module_scope.type == 'module'
    assert 'a' in module_scope.set
    assert 'a' not in global_scope.set

    variable = module_scope.set['a']
    assert len(variable.defs) == 1 and variable.defs[0].type == 'Variable'
    assert variable.defs[0].kind == 'const'
    assert [ref.is_write() for ref in variable.references] == [True, False]
    assert variable.references[0].init is True


def test_script_mode_declares_in_global_scope():
    program, manager = build("var a = 1", source_type='script')
    assert 'a' in manager.global_scope.set


def test_unresolved_references_go_through():
    program, manager = build("console.log(value)")
    names = {ref.identifier.name for ref in manager.global_scope.through}
    assert names == {'console', 'value'}


def test_configured_globals_resolve():
    program, manager = build("$ref(0)", globals=['$ref'])
    variable = manager.global_scope.set['$ref']
    assert len(variable.references) == 1
    assert not variable.defs
    assert not manager.global_scope.through


def test_function_declarations_are_hoisted():
    program, manager = build("run()\nfunction run() {}\n")
    assert find_variable(manager.global_scope, 'run') is None, "name lookups start at the global scope"
    variable = find_variable(manager.scopes[1], 'run')
    assert variable.defs[0].type == 'FunctionName'
    assert len(variable.references) == 1


def test_var_hoists_out_of_blocks():
    program, manager = build("""
function f() {
  { var x = 1 }
  return x
}
""")
    function_scope = next(scope for scope in manager.scopes if scope.type == 'function')
    assert 'x' in function_scope.set
    assert len(function_scope.set['x'].references) == 2


def test_let_is_block_scoped():
    program, manager = build("{ let y = 1 }\ny\n")
    assert [ref.identifier.name for ref in manager.global_scope.through] == ['y']


def test_compound_assignment_is_read_write():
    program, manager = build("let n = 0\nn += 1\nn++\n")
    references = manager.scopes[1].set['n'].references
    assert references[1].is_read_write()
    assert references[2].is_read_write()


def test_find_variable_uses_innermost_scope():
    program, manager = build("""
const v = 1
function f(v) {
  return v
}
""")
    function = program.body[1]
    inner_read = function.body.body[0].argument
    variable = find_variable(manager.global_scope, inner_read)
    assert variable.defs[0].type == 'Parameter'
    assert find_variable(manager.global_scope, program.body[0].declarations[0].id).defs[0].type == 'Variable'


def test_catch_parameter():
    program, manager = build("try { risky() } catch (err) { report(err) }")
    catch_scope = next(scope for scope in manager.scopes if scope.type == 'catch')
    assert catch_scope.set['err'].defs[0].type == 'CatchClause'
    assert len(catch_scope.set['err'].references) == 1


def test_import_bindings():
    program, manager = build("import Vue, { ref as r } from 'vue'\nr(0)\n")
    module_scope = manager.scopes[1]
    assert module_scope.set['r'].defs[0].type == 'ImportBinding'
    assert module_scope.set['Vue'].defs[0].parent is program.body[0]
    assert len(module_scope.set['r'].references) == 1


def test_enum_members_bind_in_enum_scope():
    source = b"const a = 1\nenum E { a = 2, b = a }\nE\n"
    tree = LanguageParser('typescript').parse_source(source)
    program = build_estree(tree, source)
    manager = analyze_scope(program)
    module_scope = manager.global_scope.child_scopes[0]
    enum_scope = module_scope.child_scopes[0]

    assert enum_scope.type == 'tsEnum'
    assert set(enum_scope.set) == {'a', 'b'}
    assert enum_scope.set['a'].references, "`b = a` reads the member"
    assert [ref.is_write() for ref in module_scope.set['a'].references] == [True]
    assert module_scope.set['E'].defs[0].type == 'TSEnumName'
    assert len(module_scope.set['E'].references) == 1


def test_jsx_names_create_no_references():
    program, manager = build("const a = 1\nconst el = <a a={a} />\n")
    variable = manager.global_scope.child_scopes[0].set['a']
    assert [ref.is_write() for ref in variable.references] == [True, False]
