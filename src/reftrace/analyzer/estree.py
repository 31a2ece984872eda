"""ESTree-shaped syntax tree built from tree-sitter parse trees.

tree-sitter hands out fresh wrapper objects every time a node is visited, so
they cannot serve as dictionary keys for analysis results. This module converts
the concrete syntax tree once into plain Node objects with ESTree type names,
parent links and stable identity.

Conversion rules worth knowing about:
- parentheses disappear, `(a)` becomes the inner expression
- `a.b` and `a[b]` both become MemberExpression (computed for the latter)
- shorthand properties (`{ a }`) get distinct key and value Identifier nodes
- comments and type-only TypeScript constructs are dropped
- JSX tag and attribute names become JSXIdentifier, never Identifier, so only
  `{expression}` containers can reference variables
- enum member names stay Identifier but are bound inside the enum's own scope
- anything without a dedicated rule becomes a generic node whose children
  (the `nodes` field) are treated as expressions by later passes
"""
from typing import Any, Iterator, List, Optional, Tuple
from tree_sitter import Node as TSNode, Tree


# Nodes that never carry runtime bindings or values
SKIPPED_TYPES = {
    'comment', 'html_comment', 'hash_bang_line',
    'type_annotation', 'type_arguments', 'type_parameters', 'asserts_annotation',
    'interface_declaration', 'type_alias_declaration', 'ambient_declaration',
    'accessibility_modifier', 'override_modifier', 'implements_clause',
    'optional_chain', 'index_signature', 'abstract_method_signature',
    'method_signature', 'function_signature',
}

LOGICAL_OPERATORS = {'&&', '||', '??'}


class Node:
    """A syntax node with ESTree names, a parent link and source position.

    Fields are plain attributes (node.callee, node.arguments, ...); their names
    are remembered so children() can walk them in source order.
    """

    def __init__(self, type: str, range: Tuple[int, int], loc: Tuple[int, int], **fields: Any):
        self.type = type
        self.range = range
        self.loc = loc  # (line, column) - line is 1-based, column is a byte offset
        self.parent: Optional['Node'] = None
        self._field_names = tuple(fields)
        self.__dict__.update(fields)

    @property
    def line(self) -> int:
        return self.loc[0]

    @property
    def column(self) -> int:
        return self.loc[1]

    def children(self) -> Iterator['Node']:
        """Yield direct child nodes in field order."""
        for name in self._field_names:
            value = getattr(self, name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item

    def __repr__(self) -> str:
        label = f" {self.name}" if self.type == 'Identifier' else ''
        return f"<{self.type}{label} @{self.line}:{self.column}>"


def iter_nodes(root: Node) -> Iterator[Node]:
    """Depth-first, source-order iteration over root and all its descendants."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(list(node.children())))


def node_text(node: Node, source_code: bytes) -> str:
    """Return the source text covered by node."""
    return source_code[node.range[0]:node.range[1]].decode('utf-8', errors='replace')


def _camel(ts_type: str) -> str:
    return ''.join(part.capitalize() for part in ts_type.split('_'))


class ESTreeBuilder:
    """Convert a tree-sitter JavaScript/TypeScript tree into ESTree Nodes."""

    def __init__(self, source_code: bytes, source_type: str = 'module'):
        """Initialize builder.

        Args:
            source_code: The exact bytes the tree was parsed from
            source_type: 'module' or 'script', recorded on the Program node
        """
        self.source = source_code
        self.source_type = source_type
        self._handlers = {
            'program': self._program,
            'expression_statement': self._expression_statement,
            'lexical_declaration': self._declaration,
            'variable_declaration': self._declaration,
            'identifier': self._identifier,
            'shorthand_property_identifier': self._identifier,
            'undefined': self._identifier,
            'property_identifier': self._identifier,
            'private_property_identifier': self._private_identifier,
            'this': self._this,
            'super': self._super,
            'string': self._string,
            'number': self._number,
            'true': self._boolean,
            'false': self._boolean,
            'null': self._null,
            'regex': self._regex,
            'template_string': self._template_string,
            'template_substitution': self._unwrap,
            'parenthesized_expression': self._unwrap,
            'else_clause': self._unwrap,
            'member_expression': self._member_expression,
            'subscript_expression': self._subscript_expression,
            'call_expression': self._call_expression,
            'new_expression': self._new_expression,
            'assignment_expression': self._assignment_expression,
            'augmented_assignment_expression': self._augmented_assignment_expression,
            'update_expression': self._update_expression,
            'binary_expression': self._binary_expression,
            'unary_expression': self._unary_expression,
            'ternary_expression': self._ternary_expression,
            'sequence_expression': self._sequence_expression,
            'await_expression': self._await_expression,
            'yield_expression': self._yield_expression,
            'object': self._object,
            'array': self._array,
            'spread_element': self._spread_element,
            'function_declaration': self._function,
            'generator_function_declaration': self._function,
            'function_expression': self._function,
            'function': self._function,
            'generator_function': self._function,
            'arrow_function': self._arrow_function,
            'statement_block': self._statement_block,
            'return_statement': self._return_statement,
            'if_statement': self._if_statement,
            'for_statement': self._for_statement,
            'for_in_statement': self._for_in_statement,
            'while_statement': self._while_statement,
            'do_statement': self._do_statement,
            'try_statement': self._try_statement,
            'catch_clause': self._catch_clause,
            'class_declaration': self._class,
            'abstract_class_declaration': self._class,
            'class': self._class,
            'import_statement': self._import_statement,
            'export_statement': self._export_statement,
            'as_expression': self._ts_as_expression,
            'satisfies_expression': self._ts_as_expression,
            'non_null_expression': self._ts_non_null_expression,
            'enum_declaration': self._ts_enum_declaration,
            'internal_module': self._ts_module_declaration,
            'module': self._ts_module_declaration,
            'jsx_element': self._jsx_element,
            'jsx_self_closing_element': self._jsx_self_closing_element,
            'jsx_opening_element': self._jsx_opening_element,
            'jsx_closing_element': self._jsx_closing_element,
            'jsx_attribute': self._jsx_attribute,
            'jsx_expression': self._jsx_expression,
            'jsx_text': self._jsx_text,
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def build(self, tree: Tree) -> Node:
        """Convert a parsed tree and link parents.

        Args:
            tree: tree-sitter Tree parsed from self.source

        Returns:
            The Program node
        """
        program = self.convert(tree.root_node)
        link_parents(program)
        return program

    def convert(self, ts: Optional[TSNode]) -> Optional[Node]:
        """Convert a node in expression/statement position."""
        if ts is None or ts.type in SKIPPED_TYPES:
            return None
        handler = self._handlers.get(ts.type)
        if handler is not None:
            return handler(ts)
        return self._generic(ts)

    def pattern(self, ts: Optional[TSNode]) -> Optional[Node]:
        """Convert a node in binding/assignment-target position."""
        if ts is None or ts.type in SKIPPED_TYPES:
            return None
        kind = ts.type
        if kind in ('identifier', 'shorthand_property_identifier_pattern',
                    'shorthand_property_identifier', 'undefined'):
            return self._identifier(ts)
        if kind in ('object_pattern', 'object'):
            return self._object_pattern(ts)
        if kind in ('array_pattern', 'array'):
            return self._make(ts, 'ArrayPattern',
                              elements=[self.pattern(c) for c in self._named(ts)])
        if kind in ('assignment_pattern', 'assignment_expression'):
            return self._make(ts, 'AssignmentPattern',
                              left=self.pattern(ts.child_by_field_name('left')),
                              right=self.convert(ts.child_by_field_name('right')))
        if kind in ('rest_pattern', 'spread_element'):
            return self._make(ts, 'RestElement', argument=self.pattern(self._first_named(ts)))
        if kind == 'parenthesized_expression':
            return self.pattern(self._first_named(ts))
        return self.convert(ts)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _make(self, ts: TSNode, type: str, **fields: Any) -> Node:
        return Node(type, (ts.start_byte, ts.end_byte),
                    (ts.start_point[0] + 1, ts.start_point[1]), **fields)

    def _text(self, ts: TSNode) -> str:
        return self.source[ts.start_byte:ts.end_byte].decode('utf-8', errors='replace')

    @staticmethod
    def _named(ts: TSNode) -> List[TSNode]:
        return [c for c in ts.named_children if c.type not in SKIPPED_TYPES]

    def _first_named(self, ts: TSNode) -> Optional[TSNode]:
        named = self._named(ts)
        return named[0] if named else None

    @staticmethod
    def _has_token(ts: TSNode, token: str) -> bool:
        return any(not c.is_named and c.type == token for c in ts.children)

    def _convert_all(self, nodes: List[TSNode]) -> List[Node]:
        converted = [self.convert(c) for c in nodes]
        return [c for c in converted if c is not None]

    def _generic(self, ts: TSNode) -> Node:
        return self._make(ts, _camel(ts.type), nodes=self._convert_all(self._named(ts)))

    # ------------------------------------------------------------------
    # Program and statements
    # ------------------------------------------------------------------

    def _program(self, ts: TSNode) -> Node:
        return Node('Program', (0, max(len(self.source), ts.end_byte)), (1, 0),
                    body=self._convert_all(self._named(ts)), sourceType=self.source_type)

    def _expression_statement(self, ts: TSNode) -> Node:
        return self._make(ts, 'ExpressionStatement', expression=self.convert(self._first_named(ts)))

    def _declaration(self, ts: TSNode) -> Node:
        kind_node = ts.child_by_field_name('kind')
        kind = self._text(kind_node) if kind_node is not None else 'var'
        declarators = [self._declarator(c) for c in ts.named_children
                       if c.type == 'variable_declarator']
        return self._make(ts, 'VariableDeclaration', kind=kind, declarations=declarators)

    def _declarator(self, ts: TSNode) -> Node:
        return self._make(ts, 'VariableDeclarator',
                          id=self.pattern(ts.child_by_field_name('name')),
                          init=self.convert(ts.child_by_field_name('value')))

    def _statement_block(self, ts: TSNode) -> Node:
        return self._make(ts, 'BlockStatement', body=self._convert_all(self._named(ts)))

    def _return_statement(self, ts: TSNode) -> Node:
        return self._make(ts, 'ReturnStatement', argument=self.convert(self._first_named(ts)))

    def _if_statement(self, ts: TSNode) -> Node:
        return self._make(ts, 'IfStatement',
                          test=self.convert(ts.child_by_field_name('condition')),
                          consequent=self.convert(ts.child_by_field_name('consequence')),
                          alternate=self.convert(ts.child_by_field_name('alternative')))

    def _for_clause(self, ts: Optional[TSNode]) -> Optional[Node]:
        # for (init; test; update) slots may be wrapped in statements
        if ts is None or ts.type == 'empty_statement':
            return None
        if ts.type == 'expression_statement':
            return self.convert(self._first_named(ts))
        return self.convert(ts)

    def _for_statement(self, ts: TSNode) -> Node:
        return self._make(ts, 'ForStatement',
                          init=self._for_clause(ts.child_by_field_name('initializer')),
                          test=self._for_clause(ts.child_by_field_name('condition')),
                          update=self.convert(ts.child_by_field_name('increment')),
                          body=self.convert(ts.child_by_field_name('body')))

    def _for_in_statement(self, ts: TSNode) -> Node:
        left_ts = ts.child_by_field_name('left')
        kind_node = ts.child_by_field_name('kind')
        operator = ts.child_by_field_name('operator')
        if kind_node is not None:
            declarator = self._make(left_ts, 'VariableDeclarator', id=self.pattern(left_ts), init=None)
            left = self._make(left_ts, 'VariableDeclaration',
                              kind=self._text(kind_node), declarations=[declarator])
        else:
            left = self.pattern(left_ts)
        is_of = operator is not None and self._text(operator) == 'of'
        return self._make(ts, 'ForOfStatement' if is_of else 'ForInStatement',
                          left=left,
                          right=self.convert(ts.child_by_field_name('right')),
                          body=self.convert(ts.child_by_field_name('body')))

    def _while_statement(self, ts: TSNode) -> Node:
        return self._make(ts, 'WhileStatement',
                          test=self.convert(ts.child_by_field_name('condition')),
                          body=self.convert(ts.child_by_field_name('body')))

    def _do_statement(self, ts: TSNode) -> Node:
        return self._make(ts, 'DoWhileStatement',
                          body=self.convert(ts.child_by_field_name('body')),
                          test=self.convert(ts.child_by_field_name('condition')))

    def _try_statement(self, ts: TSNode) -> Node:
        finalizer = ts.child_by_field_name('finalizer')
        return self._make(ts, 'TryStatement',
                          block=self.convert(ts.child_by_field_name('body')),
                          handler=self.convert(ts.child_by_field_name('handler')),
                          finalizer=self.convert(finalizer.child_by_field_name('body'))
                          if finalizer is not None else None)

    def _catch_clause(self, ts: TSNode) -> Node:
        return self._make(ts, 'CatchClause',
                          param=self.pattern(ts.child_by_field_name('parameter')),
                          body=self.convert(ts.child_by_field_name('body')))

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    def _module_name(self, ts: TSNode) -> Node:
        if ts.type == 'string':
            return self._string(ts)
        return self._identifier(ts)

    def _import_statement(self, ts: TSNode) -> Node:
        specifiers = []
        clause = next((c for c in ts.named_children if c.type == 'import_clause'), None)
        if clause is not None:
            for child in clause.named_children:
                if child.type == 'identifier':
                    specifiers.append(self._make(child, 'ImportDefaultSpecifier',
                                                 local=self._identifier(child)))
                elif child.type == 'namespace_import':
                    local = self._first_named(child)
                    specifiers.append(self._make(child, 'ImportNamespaceSpecifier',
                                                 local=self._identifier(local)))
                elif child.type == 'named_imports':
                    for spec in child.named_children:
                        if spec.type != 'import_specifier':
                            continue
                        name = spec.child_by_field_name('name')
                        alias = spec.child_by_field_name('alias')
                        specifiers.append(self._make(
                            spec, 'ImportSpecifier',
                            imported=self._module_name(name),
                            local=self._identifier(alias if alias is not None else name)))
        source = ts.child_by_field_name('source')
        return self._make(ts, 'ImportDeclaration', specifiers=specifiers,
                          source=self._string(source) if source is not None else None)

    def _export_statement(self, ts: TSNode) -> Node:
        source_ts = ts.child_by_field_name('source')
        source = self._string(source_ts) if source_ts is not None else None
        declaration = ts.child_by_field_name('declaration')
        if self._has_token(ts, 'default'):
            target = declaration if declaration is not None else ts.child_by_field_name('value')
            return self._make(ts, 'ExportDefaultDeclaration', declaration=self.convert(target))
        if self._has_token(ts, '*'):
            return self._make(ts, 'ExportAllDeclaration', source=source)

        specifiers = []
        clause = next((c for c in ts.named_children if c.type == 'export_clause'), None)
        if clause is not None:
            for spec in clause.named_children:
                if spec.type != 'export_specifier':
                    continue
                name = spec.child_by_field_name('name')
                alias = spec.child_by_field_name('alias')
                specifiers.append(self._make(
                    spec, 'ExportSpecifier',
                    local=self._module_name(name),
                    exported=self._module_name(alias if alias is not None else name)))
        return self._make(ts, 'ExportNamedDeclaration',
                          declaration=self.convert(declaration),
                          specifiers=specifiers, source=source)

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def _identifier(self, ts: TSNode) -> Node:
        return self._make(ts, 'Identifier', name=self._text(ts))

    def _private_identifier(self, ts: TSNode) -> Node:
        return self._make(ts, 'PrivateIdentifier', name=self._text(ts).lstrip('#'))

    def _this(self, ts: TSNode) -> Node:
        return self._make(ts, 'ThisExpression')

    def _super(self, ts: TSNode) -> Node:
        return self._make(ts, 'Super')

    def _string(self, ts: TSNode) -> Node:
        raw = self._text(ts)
        return self._make(ts, 'Literal', value=raw[1:-1], raw=raw)

    def _number(self, ts: TSNode) -> Node:
        raw = self._text(ts)
        cleaned = raw.replace('_', '').rstrip('n')
        try:
            value: Any = int(cleaned, 0)
        except ValueError:
            try:
                value = float(cleaned)
            except ValueError:
                value = raw
        return self._make(ts, 'Literal', value=value, raw=raw)

    def _boolean(self, ts: TSNode) -> Node:
        return self._make(ts, 'Literal', value=ts.type == 'true', raw=ts.type)

    def _null(self, ts: TSNode) -> Node:
        return self._make(ts, 'Literal', value=None, raw='null')

    def _regex(self, ts: TSNode) -> Node:
        return self._make(ts, 'Literal', value=None, raw=self._text(ts))

    def _template_string(self, ts: TSNode) -> Node:
        substitutions = [c for c in ts.named_children if c.type == 'template_substitution']
        raw = self._text(ts)
        return self._make(ts, 'TemplateLiteral',
                          expressions=self._convert_all(substitutions),
                          cooked=None if substitutions else raw[1:-1])

    def _unwrap(self, ts: TSNode) -> Optional[Node]:
        return self.convert(self._first_named(ts))

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _member_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'MemberExpression',
                          object=self.convert(ts.child_by_field_name('object')),
                          property=self.convert(ts.child_by_field_name('property')),
                          computed=False,
                          optional=ts.child_by_field_name('optional_chain') is not None)

    def _subscript_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'MemberExpression',
                          object=self.convert(ts.child_by_field_name('object')),
                          property=self.convert(ts.child_by_field_name('index')),
                          computed=True,
                          optional=ts.child_by_field_name('optional_chain') is not None)

    def _arguments(self, ts: Optional[TSNode]) -> List[Node]:
        if ts is None:
            return []
        return self._convert_all(self._named(ts))

    def _call_expression(self, ts: TSNode) -> Node:
        callee = self.convert(ts.child_by_field_name('function'))
        args = ts.child_by_field_name('arguments')
        if args is not None and args.type == 'template_string':
            return self._make(ts, 'TaggedTemplateExpression', tag=callee,
                              quasi=self._template_string(args))
        return self._make(ts, 'CallExpression', callee=callee,
                          arguments=self._arguments(args),
                          optional=ts.child_by_field_name('optional_chain') is not None)

    def _new_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'NewExpression',
                          callee=self.convert(ts.child_by_field_name('constructor')),
                          arguments=self._arguments(ts.child_by_field_name('arguments')))

    def _assignment_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'AssignmentExpression', operator='=',
                          left=self.pattern(ts.child_by_field_name('left')),
                          right=self.convert(ts.child_by_field_name('right')))

    def _augmented_assignment_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'AssignmentExpression',
                          operator=self._text(ts.child_by_field_name('operator')),
                          left=self.pattern(ts.child_by_field_name('left')),
                          right=self.convert(ts.child_by_field_name('right')))

    def _update_expression(self, ts: TSNode) -> Node:
        operator = ts.child_by_field_name('operator')
        argument = ts.child_by_field_name('argument')
        return self._make(ts, 'UpdateExpression', operator=self._text(operator),
                          prefix=operator.start_byte < argument.start_byte,
                          argument=self.convert(argument))

    def _binary_expression(self, ts: TSNode) -> Node:
        operator = self._text(ts.child_by_field_name('operator'))
        kind = 'LogicalExpression' if operator in LOGICAL_OPERATORS else 'BinaryExpression'
        return self._make(ts, kind, left=self.convert(ts.child_by_field_name('left')),
                          operator=operator,
                          right=self.convert(ts.child_by_field_name('right')))

    def _unary_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'UnaryExpression',
                          operator=self._text(ts.child_by_field_name('operator')),
                          prefix=True,
                          argument=self.convert(ts.child_by_field_name('argument')))

    def _ternary_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'ConditionalExpression',
                          test=self.convert(ts.child_by_field_name('condition')),
                          consequent=self.convert(ts.child_by_field_name('consequence')),
                          alternate=self.convert(ts.child_by_field_name('alternative')))

    def _sequence_expression(self, ts: TSNode) -> Node:
        # older grammars nest sequences as left/right pairs
        expressions = []

        def flatten(current: TSNode) -> None:
            for child in self._named(current):
                if child.type == 'sequence_expression':
                    flatten(child)
                else:
                    expressions.append(child)

        flatten(ts)
        return self._make(ts, 'SequenceExpression', expressions=self._convert_all(expressions))

    def _await_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'AwaitExpression', argument=self.convert(self._first_named(ts)))

    def _yield_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'YieldExpression', argument=self.convert(self._first_named(ts)),
                          delegate=self._has_token(ts, '*'))

    def _spread_element(self, ts: TSNode) -> Node:
        return self._make(ts, 'SpreadElement', argument=self.convert(self._first_named(ts)))

    def _ts_as_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'TSAsExpression', expression=self.convert(self._first_named(ts)))

    def _ts_non_null_expression(self, ts: TSNode) -> Node:
        return self._make(ts, 'TSNonNullExpression', expression=self.convert(self._first_named(ts)))

    def _array(self, ts: TSNode) -> Node:
        return self._make(ts, 'ArrayExpression', elements=self._convert_all(self._named(ts)))

    # ------------------------------------------------------------------
    # Objects and patterns
    # ------------------------------------------------------------------

    def _property_key(self, ts: TSNode) -> Tuple[Optional[Node], bool]:
        """Return (key node, computed) for a property name node."""
        if ts.type == 'computed_property_name':
            return self.convert(self._first_named(ts)), True
        if ts.type in ('string', 'number'):
            return self.convert(ts), False
        if ts.type == 'private_property_identifier':
            return self._private_identifier(ts), False
        return self._identifier(ts), False

    def _shorthand_property(self, ts: TSNode) -> Node:
        return self._make(ts, 'Property', key=self._identifier(ts), value=self._identifier(ts),
                          computed=False, shorthand=True, method=False, kind='init')

    def _object(self, ts: TSNode) -> Node:
        properties = []
        for child in self._named(ts):
            if child.type == 'pair':
                key, computed = self._property_key(child.child_by_field_name('key'))
                properties.append(self._make(child, 'Property', key=key,
                                             value=self.convert(child.child_by_field_name('value')),
                                             computed=computed, shorthand=False,
                                             method=False, kind='init'))
            elif child.type == 'shorthand_property_identifier':
                properties.append(self._shorthand_property(child))
            elif child.type == 'method_definition':
                key, computed = self._property_key(child.child_by_field_name('name'))
                properties.append(self._make(child, 'Property', key=key,
                                             value=self._method_function(child),
                                             computed=computed, shorthand=False,
                                             method=True, kind=self._accessor_kind(child, 'init')))
            else:
                converted = self.convert(child)
                if converted is not None:
                    properties.append(converted)
        return self._make(ts, 'ObjectExpression', properties=properties)

    def _object_pattern(self, ts: TSNode) -> Node:
        properties = []
        for child in self._named(ts):
            kind = child.type
            if kind in ('pair_pattern', 'pair'):
                key, computed = self._property_key(child.child_by_field_name('key'))
                properties.append(self._make(child, 'Property', key=key,
                                             value=self.pattern(child.child_by_field_name('value')),
                                             computed=computed, shorthand=False,
                                             method=False, kind='init'))
            elif kind in ('shorthand_property_identifier_pattern', 'shorthand_property_identifier'):
                properties.append(self._shorthand_property(child))
            elif kind == 'object_assignment_pattern':
                left = child.child_by_field_name('left')
                is_shorthand = left.type in ('shorthand_property_identifier_pattern', 'identifier')
                value = self._make(child, 'AssignmentPattern', left=self.pattern(left),
                                   right=self.convert(child.child_by_field_name('right')))
                properties.append(self._make(child, 'Property',
                                             key=self._identifier(left) if is_shorthand else None,
                                             value=value, computed=False, shorthand=True,
                                             method=False, kind='init'))
            elif kind in ('rest_pattern', 'spread_element'):
                properties.append(self.pattern(child))
        return self._make(ts, 'ObjectPattern', properties=properties)

    # ------------------------------------------------------------------
    # Functions and classes
    # ------------------------------------------------------------------

    def _param(self, ts: TSNode) -> Optional[Node]:
        if ts.type in ('required_parameter', 'optional_parameter'):
            target = ts.child_by_field_name('pattern')
            if target is None or target.type == 'this':
                return None
            value = ts.child_by_field_name('value')
            if value is None:
                return self.pattern(target)
            return self._make(ts, 'AssignmentPattern', left=self.pattern(target),
                              right=self.convert(value))
        return self.pattern(ts)

    def _params(self, ts: Optional[TSNode]) -> List[Node]:
        if ts is None:
            return []
        params = [self._param(c) for c in self._named(ts)]
        return [p for p in params if p is not None]

    def _function(self, ts: TSNode) -> Node:
        name = ts.child_by_field_name('name')
        declaration = ts.type.endswith('_declaration')
        return self._make(ts, 'FunctionDeclaration' if declaration else 'FunctionExpression',
                          id=self._identifier(name) if name is not None else None,
                          params=self._params(ts.child_by_field_name('parameters')),
                          body=self.convert(ts.child_by_field_name('body')),
                          generator='generator' in ts.type,
                          is_async=self._has_token(ts, 'async'))

    def _arrow_function(self, ts: TSNode) -> Node:
        single = ts.child_by_field_name('parameter')
        if single is not None:
            params = [self.pattern(single)]
        else:
            params = self._params(ts.child_by_field_name('parameters'))
        body_ts = ts.child_by_field_name('body')
        return self._make(ts, 'ArrowFunctionExpression', id=None, params=params,
                          body=self.convert(body_ts),
                          expression=body_ts is not None and body_ts.type != 'statement_block',
                          is_async=self._has_token(ts, 'async'))

    def _method_function(self, ts: TSNode) -> Node:
        return self._make(ts, 'FunctionExpression', id=None,
                          params=self._params(ts.child_by_field_name('parameters')),
                          body=self.convert(ts.child_by_field_name('body')),
                          generator=self._has_token(ts, '*'),
                          is_async=self._has_token(ts, 'async'))

    def _accessor_kind(self, ts: TSNode, default: str) -> str:
        for token in ('get', 'set'):
            if self._has_token(ts, token):
                return token
        return default

    def _class(self, ts: TSNode) -> Node:
        name = ts.child_by_field_name('name')
        super_class = None
        heritage = next((c for c in ts.named_children if c.type == 'class_heritage'), None)
        if heritage is not None:
            for child in self._named(heritage):
                if child.type == 'extends_clause':
                    value = child.child_by_field_name('value') or self._first_named(child)
                    super_class = self.convert(value)
                else:
                    super_class = self.convert(child)
        body_ts = ts.child_by_field_name('body')
        members = []
        if body_ts is not None:
            for member in self._named(body_ts):
                converted = self._class_member(member)
                if converted is not None:
                    members.append(converted)
        declaration = ts.type != 'class'
        return self._make(ts, 'ClassDeclaration' if declaration else 'ClassExpression',
                          id=self._identifier(name) if name is not None else None,
                          superClass=super_class,
                          body=self._make(body_ts or ts, 'ClassBody', body=members))

    def _class_member(self, ts: TSNode) -> Optional[Node]:
        is_static = self._has_token(ts, 'static')
        if ts.type == 'method_definition':
            key, computed = self._property_key(ts.child_by_field_name('name'))
            kind = self._accessor_kind(ts, 'method')
            if not computed and key is not None and getattr(key, 'name', None) == 'constructor':
                kind = 'constructor'
            return self._make(ts, 'MethodDefinition', key=key, computed=computed,
                              value=self._method_function(ts), kind=kind, static=is_static)
        if ts.type in ('field_definition', 'public_field_definition'):
            key_ts = ts.child_by_field_name('property') or ts.child_by_field_name('name')
            key, computed = self._property_key(key_ts)
            return self._make(ts, 'PropertyDefinition', key=key, computed=computed,
                              value=self.convert(ts.child_by_field_name('value')),
                              static=is_static)
        if ts.type == 'class_static_block':
            body = ts.child_by_field_name('body')
            statements = self._convert_all(self._named(body)) if body is not None else []
            return self._make(ts, 'StaticBlock', body=statements)
        return self.convert(ts)

    # ------------------------------------------------------------------
    # TypeScript declarations
    # ------------------------------------------------------------------

    def _ts_enum_declaration(self, ts: TSNode) -> Node:
        name = ts.child_by_field_name('name')
        body = ts.child_by_field_name('body')
        members = []
        for child in self._named(body) if body is not None else []:
            if child.type == 'enum_assignment':
                key_ts = child.child_by_field_name('name') or self._first_named(child)
                key, _ = self._property_key(key_ts)
                members.append(self._make(child, 'TSEnumMember', id=key,
                                          initializer=self.convert(child.child_by_field_name('value'))))
            else:
                key, _ = self._property_key(child)
                members.append(self._make(child, 'TSEnumMember', id=key, initializer=None))
        return self._make(ts, 'TSEnumDeclaration',
                          id=self._identifier(name) if name is not None else None,
                          members=members, const=self._has_token(ts, 'const'))

    def _ts_module_declaration(self, ts: TSNode) -> Node:
        # `namespace A.B {}` and `module 'x' {}` bind nothing a reference could resolve to
        name = ts.child_by_field_name('name')
        bound = name is not None and name.type == 'identifier'
        return self._make(ts, 'TSModuleDeclaration',
                          id=self._identifier(name) if bound else None,
                          body=self.convert(ts.child_by_field_name('body')))

    # ------------------------------------------------------------------
    # JSX
    # ------------------------------------------------------------------

    def _jsx_name(self, ts: Optional[TSNode]) -> Optional[Node]:
        """Convert a tag or attribute name; these never reference variables."""
        if ts is None:
            return None
        if ts.type in ('member_expression', 'nested_identifier'):
            obj = ts.child_by_field_name('object')
            prop = ts.child_by_field_name('property')
            if obj is None or prop is None:
                named = self._named(ts)
                obj, prop = named[0], named[-1]
            return self._make(ts, 'JSXMemberExpression',
                              object=self._jsx_name(obj), property=self._jsx_name(prop))
        if ts.type == 'jsx_namespace_name':
            named = self._named(ts)
            return self._make(ts, 'JSXNamespacedName',
                              namespace=self._jsx_name(named[0]), name=self._jsx_name(named[-1]))
        return self._make(ts, 'JSXIdentifier', name=self._text(ts))

    def _jsx_attributes(self, ts: TSNode, name: Optional[TSNode]) -> List[Node]:
        attributes = []
        for child in self._named(ts):
            if name is not None and child.start_byte == name.start_byte:
                continue
            converted = self.convert(child)
            if converted is not None:
                attributes.append(converted)
        return attributes

    def _jsx_opening_element(self, ts: TSNode) -> Node:
        name = ts.child_by_field_name('name')
        return self._make(ts, 'JSXOpeningElement', name=self._jsx_name(name),
                          attributes=self._jsx_attributes(ts, name),
                          selfClosing=ts.type == 'jsx_self_closing_element')

    def _jsx_closing_element(self, ts: TSNode) -> Node:
        return self._make(ts, 'JSXClosingElement',
                          name=self._jsx_name(ts.child_by_field_name('name')))

    def _jsx_self_closing_element(self, ts: TSNode) -> Node:
        return self._make(ts, 'JSXElement', openingElement=self._jsx_opening_element(ts),
                          nodes=[], closingElement=None)

    def _jsx_element(self, ts: TSNode) -> Node:
        opening = closing = None
        children = []
        for child in self._named(ts):
            if child.type == 'jsx_opening_element':
                opening = self._jsx_opening_element(child)
            elif child.type == 'jsx_closing_element':
                closing = self._jsx_closing_element(child)
            else:
                converted = self.convert(child)
                if converted is not None:
                    children.append(converted)
        return self._make(ts, 'JSXElement', openingElement=opening,
                          nodes=children, closingElement=closing)

    def _jsx_attribute(self, ts: TSNode) -> Node:
        named = self._named(ts)
        return self._make(ts, 'JSXAttribute',
                          name=self._jsx_name(named[0]) if named else None,
                          value=self.convert(named[1]) if len(named) > 1 else None)

    def _jsx_expression(self, ts: TSNode) -> Node:
        inner = self._first_named(ts)
        if inner is not None and inner.type == 'spread_element':
            return self._make(ts, 'JSXSpreadAttribute',
                              argument=self.convert(self._first_named(inner)))
        return self._make(ts, 'JSXExpressionContainer', expression=self.convert(inner))

    def _jsx_text(self, ts: TSNode) -> Node:
        return self._make(ts, 'JSXText', value=self._text(ts))


def link_parents(root: Node) -> None:
    """Point every descendant's parent at the node that owns it."""
    stack = [root]
    while stack:
        node = stack.pop()
        for child in node.children():
            child.parent = node
            stack.append(child)


def build_estree(tree: Tree, source_code: bytes, source_type: str = 'module') -> Node:
    """Convert a tree-sitter tree into an ESTree Program node.

    Args:
        tree: Parsed tree-sitter Tree
        source_code: Bytes the tree was parsed from
        source_type: 'module' or 'script'

    Returns:
        Program node with parent links populated
    """
    return ESTreeBuilder(source_code, source_type).build(tree)
