"""Lexical scope analysis over ESTree nodes.

Builds the scope graph the reference extractors consume: every scope with its
declared variables, every read/write occurrence of an identifier, and the
references that could not be resolved inside the program (`through`).

Resolution is deferred until a scope closes, so hoisted declarations
(`var`, function declarations) resolve correctly regardless of source order.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Union

from .estree import Node


READ = 0x1
WRITE = 0x2
READ_WRITE = READ | WRITE

# Scopes that own `var` declarations
VARIABLE_SCOPE_TYPES = {'global', 'module', 'function', 'class-static-block'}


@dataclass(eq=False)
class Definition:
    """Where and how a variable was declared."""
    type: str  # 'Variable', 'FunctionName', 'ClassName', 'Parameter', 'ImportBinding', 'CatchClause', 'TSEnumName', ...
    name: Node  # the declaring Identifier
    node: Node  # VariableDeclarator, function, class, import specifier, catch clause
    parent: Optional[Node] = None  # VariableDeclaration or ImportDeclaration
    kind: Optional[str] = None  # 'var' / 'let' / 'const' for Variable definitions


@dataclass(eq=False)
class Variable:
    """A named binding in one scope."""
    name: str
    scope: 'Scope'
    identifiers: List[Node] = field(default_factory=list)
    references: List['Reference'] = field(default_factory=list)
    defs: List[Definition] = field(default_factory=list)


@dataclass(eq=False)
class Reference:
    """One occurrence of an identifier that reads and/or writes a variable."""
    identifier: Node
    from_scope: 'Scope'
    flag: int
    resolved: Optional[Variable] = None
    write_expr: Optional[Node] = None
    init: bool = False

    def is_read(self) -> bool:
        return bool(self.flag & READ)

    def is_write(self) -> bool:
        return bool(self.flag & WRITE)

    def is_read_only(self) -> bool:
        return self.flag == READ

    def is_write_only(self) -> bool:
        return self.flag == WRITE

    def is_read_write(self) -> bool:
        return self.flag == READ_WRITE


class Scope:
    """A lexical scope: its block node, variables and references."""

    def __init__(self, type: str, block: Node, upper: Optional['Scope']):
        self.type = type
        self.block = block
        self.upper = upper
        self.child_scopes: List['Scope'] = []
        self.variables: List[Variable] = []
        self.set: Dict[str, Variable] = {}
        self.references: List[Reference] = []
        self.through: List[Reference] = []
        self._left: List[Reference] = []

        if upper is not None:
            upper.child_scopes.append(self)
        if type in VARIABLE_SCOPE_TYPES or upper is None:
            self.variable_scope = self
        else:
            self.variable_scope = upper.variable_scope

    def __repr__(self) -> str:
        return f"<Scope {self.type} {self.block!r}>"

    def add_variable(self, name: str) -> Variable:
        """Return the variable called name, creating it if needed."""
        variable = self.set.get(name)
        if variable is None:
            variable = Variable(name=name, scope=self)
            self.set[name] = variable
            self.variables.append(variable)
        return variable

    def define(self, definition: Definition) -> Variable:
        variable = self.add_variable(definition.name.name)
        variable.identifiers.append(definition.name)
        variable.defs.append(definition)
        return variable

    def add_reference(self, reference: Reference) -> None:
        self.references.append(reference)
        self._left.append(reference)

    def close(self) -> None:
        """Resolve pending references here or hand them to the upper scope."""
        for reference in self._left:
            variable = self.set.get(reference.identifier.name)
            if variable is not None:
                reference.resolved = variable
                variable.references.append(reference)
            else:
                self.through.append(reference)
                if self.upper is not None:
                    self.upper._left.append(reference)
        self._left = []


class ScopeManager:
    """All scopes of one program."""

    def __init__(self):
        self.scopes: List[Scope] = []
        self.global_scope: Optional[Scope] = None
        self._by_block: Dict[Node, List[Scope]] = {}

    def add(self, scope: Scope) -> None:
        self.scopes.append(scope)
        self._by_block.setdefault(scope.block, []).append(scope)
        if scope.type == 'global':
            self.global_scope = scope

    def acquire(self, node: Node, inner: bool = False) -> Optional[Scope]:
        """Return the scope created by node (innermost if inner=True)."""
        scopes = self._by_block.get(node)
        if not scopes:
            return None
        return scopes[-1] if inner else scopes[0]


def get_innermost_scope(initial_scope: Scope, node: Node) -> Scope:
    """Find the innermost scope below initial_scope whose block contains node."""
    location = node.range[0]
    scope = initial_scope
    found = True
    while found:
        found = False
        for child in scope.child_scopes:
            start, end = child.block.range
            if start <= location < end:
                scope = child
                found = True
                break
    return scope


def find_variable(initial_scope: Scope, name_or_node: Union[str, Node]) -> Optional[Variable]:
    """Find the variable a name (or identifier node) refers to.

    A node is looked up from the innermost scope that contains it; a plain name
    is looked up from initial_scope. The lookup walks outward through upper
    scopes.

    Args:
        initial_scope: Scope to start from (usually the global scope)
        name_or_node: Variable name or Identifier node

    Returns:
        The Variable, or None when the name is not declared anywhere
    """
    if isinstance(name_or_node, str):
        name = name_or_node
        scope: Optional[Scope] = initial_scope
    else:
        name = name_or_node.name
        scope = get_innermost_scope(initial_scope, name_or_node)

    while scope is not None:
        variable = scope.set.get(name)
        if variable is not None:
            return variable
        scope = scope.upper
    return None


class ScopeAnalyzer:
    """Walk a Program and build its ScopeManager."""

    def __init__(self, source_type: str = 'module', globals: Iterable[str] = ()):
        """Initialize analyzer.

        Args:
            source_type: 'module' adds a module scope below the global scope
            globals: Names declared as globals (no definitions, resolvable)
        """
        self.source_type = source_type
        self.globals = tuple(globals)
        self.manager = ScopeManager()
        self.scope: Optional[Scope] = None

    def analyze(self, program: Node) -> ScopeManager:
        self.visit(program)
        return self.manager

    # ------------------------------------------------------------------
    # Scope bookkeeping
    # ------------------------------------------------------------------

    def _open(self, type: str, block: Node) -> Scope:
        self.scope = Scope(type, block, self.scope)
        self.manager.add(self.scope)
        return self.scope

    def _close(self) -> None:
        self.scope.close()
        self.scope = self.scope.upper

    def _reference(self, identifier: Node, flag: int,
                   write_expr: Optional[Node] = None, init: bool = False) -> None:
        self.scope.add_reference(Reference(identifier=identifier, from_scope=self.scope,
                                           flag=flag, write_expr=write_expr, init=init))

    # ------------------------------------------------------------------
    # Generic traversal
    # ------------------------------------------------------------------

    def visit(self, node: Optional[Node]) -> None:
        if node is None:
            return
        visitor = getattr(self, 'visit_' + node.type, None)
        if visitor is not None:
            visitor(node)
        else:
            self.visit_children(node)

    def visit_children(self, node: Node) -> None:
        for child in node.children():
            self.visit(child)

    def visit_pattern(self, pattern: Optional[Node], on_identifier: Callable[[Node], None]) -> None:
        """Walk a binding pattern, calling on_identifier for each bound name.

        Default values and computed keys are visited as expressions; member
        expression targets are visited as reads of their object.
        """
        if pattern is None:
            return
        kind = pattern.type
        if kind == 'Identifier':
            on_identifier(pattern)
        elif kind == 'ObjectPattern':
            for prop in pattern.properties:
                if prop.type == 'Property':
                    if prop.computed:
                        self.visit(prop.key)
                    self.visit_pattern(prop.value, on_identifier)
                else:
                    self.visit_pattern(prop, on_identifier)
        elif kind == 'ArrayPattern':
            for element in pattern.elements:
                self.visit_pattern(element, on_identifier)
        elif kind == 'AssignmentPattern':
            self.visit_pattern(pattern.left, on_identifier)
            self.visit(pattern.right)
        elif kind == 'RestElement':
            self.visit_pattern(pattern.argument, on_identifier)
        else:
            self.visit(pattern)

    def _write_target(self, write_expr: Optional[Node]) -> Callable[[Node], None]:
        return lambda identifier: self._reference(identifier, WRITE, write_expr=write_expr)

    # ------------------------------------------------------------------
    # Program, blocks and declarations
    # ------------------------------------------------------------------

    def visit_Program(self, node: Node) -> None:
        global_scope = self._open('global', node)
        for name in self.globals:
            global_scope.add_variable(name)
        if self.source_type == 'module':
            self._open('module', node)
        for statement in node.body:
            self.visit(statement)
        if self.source_type == 'module':
            self._close()
        self._close()

    def visit_BlockStatement(self, node: Node) -> None:
        self._open('block', node)
        for statement in node.body:
            self.visit(statement)
        self._close()

    def visit_StaticBlock(self, node: Node) -> None:
        self._open('class-static-block', node)
        for statement in node.body:
            self.visit(statement)
        self._close()

    def visit_SwitchBody(self, node: Node) -> None:
        self._open('switch', node)
        self.visit_children(node)
        self._close()

    def visit_VariableDeclaration(self, node: Node) -> None:
        target = self.scope.variable_scope if node.kind == 'var' else self.scope
        in_for_loop = (node.parent is not None
                       and node.parent.type in ('ForInStatement', 'ForOfStatement')
                       and node.parent.left is node)
        for declarator in node.declarations:
            def define(identifier: Node, declarator: Node = declarator) -> None:
                target.define(Definition(type='Variable', name=identifier, node=declarator,
                                         parent=node, kind=node.kind))
                if declarator.init is not None or in_for_loop:
                    self._reference(identifier, WRITE, write_expr=declarator.init, init=True)
            self.visit_pattern(declarator.id, define)
            self.visit(declarator.init)

    def visit_ImportDeclaration(self, node: Node) -> None:
        for specifier in node.specifiers:
            self.scope.define(Definition(type='ImportBinding', name=specifier.local,
                                         node=specifier, parent=node))

    def visit_ExportNamedDeclaration(self, node: Node) -> None:
        if node.declaration is not None:
            self.visit(node.declaration)
        elif node.source is None:
            for specifier in node.specifiers:
                if specifier.local.type == 'Identifier':
                    self._reference(specifier.local, READ)

    def visit_ExportAllDeclaration(self, node: Node) -> None:
        pass

    # ------------------------------------------------------------------
    # Functions and classes
    # ------------------------------------------------------------------

    def visit_FunctionDeclaration(self, node: Node) -> None:
        if node.id is not None:
            self.scope.define(Definition(type='FunctionName', name=node.id, node=node))
        self._visit_function(node)

    def visit_FunctionExpression(self, node: Node) -> None:
        self._visit_function(node)

    def visit_ArrowFunctionExpression(self, node: Node) -> None:
        self._visit_function(node)

    def _visit_function(self, node: Node) -> None:
        scope = self._open('function', node)
        if node.type == 'FunctionExpression' and node.id is not None:
            scope.define(Definition(type='FunctionName', name=node.id, node=node))
        if node.type != 'ArrowFunctionExpression':
            scope.add_variable('arguments')

        for param in node.params:
            self.visit_pattern(param, lambda identifier: scope.define(
                Definition(type='Parameter', name=identifier, node=node)))

        body = node.body
        if body is not None and body.type == 'BlockStatement':
            # the function scope doubles as the body's block scope
            for statement in body.body:
                self.visit(statement)
        else:
            self.visit(body)
        self._close()

    def visit_ClassDeclaration(self, node: Node) -> None:
        if node.id is not None:
            self.scope.define(Definition(type='ClassName', name=node.id, node=node))
        self._visit_class(node)

    def visit_ClassExpression(self, node: Node) -> None:
        self._visit_class(node)

    def _visit_class(self, node: Node) -> None:
        self.visit(node.superClass)
        scope = self._open('class', node)
        if node.type == 'ClassExpression' and node.id is not None:
            scope.define(Definition(type='ClassName', name=node.id, node=node))
        for member in node.body.body:
            self.visit(member)
        self._close()

    def visit_MethodDefinition(self, node: Node) -> None:
        if node.computed:
            self.visit(node.key)
        self.visit(node.value)

    def visit_PropertyDefinition(self, node: Node) -> None:
        if node.computed:
            self.visit(node.key)
        self.visit(node.value)

    # ------------------------------------------------------------------
    # TypeScript declarations
    # ------------------------------------------------------------------

    def visit_TSEnumDeclaration(self, node: Node) -> None:
        if node.id is not None:
            self.scope.define(Definition(type='TSEnumName', name=node.id, node=node))
        scope = self._open('tsEnum', node)
        for member in node.members:
            if member.id is not None and member.id.type == 'Identifier':
                scope.define(Definition(type='TSEnumMember', name=member.id, node=member))
        for member in node.members:
            self.visit(member.initializer)
        self._close()

    def visit_TSModuleDeclaration(self, node: Node) -> None:
        if node.id is not None:
            self.scope.define(Definition(type='TSModuleName', name=node.id, node=node))
        self.visit(node.body)

    # ------------------------------------------------------------------
    # Control flow with their own scopes
    # ------------------------------------------------------------------

    def visit_ForStatement(self, node: Node) -> None:
        lexical = (node.init is not None and node.init.type == 'VariableDeclaration'
                   and node.init.kind != 'var')
        if lexical:
            self._open('for', node)
        self.visit(node.init)
        self.visit(node.test)
        self.visit(node.update)
        self.visit(node.body)
        if lexical:
            self._close()

    def visit_ForInStatement(self, node: Node) -> None:
        self.visit(node.right)
        left = node.left
        lexical = left.type == 'VariableDeclaration' and left.kind != 'var'
        if lexical:
            self._open('for', node)
        if left.type == 'VariableDeclaration':
            self.visit(left)
        else:
            self.visit_pattern(left, self._write_target(node.right))
        self.visit(node.body)
        if lexical:
            self._close()

    visit_ForOfStatement = visit_ForInStatement

    def visit_CatchClause(self, node: Node) -> None:
        scope = self._open('catch', node)
        self.visit_pattern(node.param, lambda identifier: scope.define(
            Definition(type='CatchClause', name=identifier, node=node)))
        self.visit(node.body)
        self._close()

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def visit_Identifier(self, node: Node) -> None:
        self._reference(node, READ)

    def visit_AssignmentExpression(self, node: Node) -> None:
        if node.operator == '=':
            self.visit_pattern(node.left, self._write_target(node.right))
        elif node.left is not None and node.left.type == 'Identifier':
            self._reference(node.left, READ_WRITE, write_expr=node.right)
        else:
            self.visit(node.left)
        self.visit(node.right)

    def visit_UpdateExpression(self, node: Node) -> None:
        if node.argument is not None and node.argument.type == 'Identifier':
            self._reference(node.argument, READ_WRITE)
        else:
            self.visit(node.argument)

    def visit_MemberExpression(self, node: Node) -> None:
        self.visit(node.object)
        if node.computed:
            self.visit(node.property)

    def visit_Property(self, node: Node) -> None:
        if node.computed:
            self.visit(node.key)
        self.visit(node.value)

    def _visit_stray_pattern(self, node: Node) -> None:
        self.visit_pattern(node, self._write_target(None))

    visit_ObjectPattern = _visit_stray_pattern
    visit_ArrayPattern = _visit_stray_pattern
    visit_AssignmentPattern = _visit_stray_pattern
    visit_RestElement = _visit_stray_pattern


def analyze_scope(program: Node, source_type: str = 'module', globals: Iterable[str] = ()) -> ScopeManager:
    """Build the scope graph for a Program node.

    Args:
        program: Program node from the ESTree builder
        source_type: 'module' or 'script'
        globals: Names to declare in the global scope

    Returns:
        Populated ScopeManager
    """
    return ScopeAnalyzer(source_type=source_type, globals=globals).analyze(program)
