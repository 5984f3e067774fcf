"""Parser for the Ember language.

This module implements a two-stage pipeline:

1. **Parsing**: a recursive-descent `Parser` consumes the token list
   produced by `ember.lexer.tokenize` and builds the AST of
   `ember.ast`. Every mismatch raises `ParseError` with the expected
   token(s), the token found and its position.

2. **Resolution**: once all declarations are known, duplicate
   declarations and constructors are rejected in every declaration
   scope (the program and each local `begin ... in ... end` block), and references to
   declared constructors (`Nil`, `Cons(x, xs)`) are rewritten from
   variables and calls into `Construct` nodes. Declarations may appear in
   any order, so this cannot happen while parsing.

The `parse_program` function is the public entry point and returns a
`Program` AST node representing the entire source text.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Union

from .ast import (
    Node, Program, ExternDecl, DataDecl, ConstructorDecl, TypeDecl, FunDecl, Param,
    Literal, UnitLiteral, Var, Call, IntrinsicCall, DirectiveCall, Construct,
    Case, Arm, Let, Seq, Lambda, Block,
    Pattern, PatternVar, PatternWild, PatternLit, PatternCtor, walk,
)
from .constructors import ConstructorTable
from .errors import DuplicateDeclarationError, NestingDepthError, ParseError
from .lexer import Token, tokenize
from .recursion import DEFAULT_MAX_FRAMES, recursion_limit
from .types import TypeSpec


# Tokens that may begin an expression.
EXPRESSION_START = ('INT', 'REAL', 'CHAR', 'true', 'false', 'IDENT', 'INTRINSIC', 'DIRECTIVE', '(',
                    'case', 'let', 'fn', 'begin')

# Declarations allowed inside a local block; externs are program-wide.
LOCAL_DECLARATIONS = ('data', 'type', 'fun')

CHAR_ESCAPES = {'n': '\n', 'r': '\r', 't': '\t', '0': '\0', '\\': '\\', "'": "'"}


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.peek()
        if token.type != 'EOF':
            self.pos += 1
        return token

    def match(self, expected: Union[str, Sequence[str]]) -> bool:
        token = self.peek()
        if isinstance(expected, str):
            return token.type == expected
        return token.type in expected

    def consume(self, expected: Union[str, Sequence[str]]) -> Token:
        if not self.match(expected):
            self.error(expected)
        return self.advance()

    def error(self, expected: Union[str, Sequence[str]]):
        token = self.peek()
        raise ParseError(expected, token.describe(), token.position)

    def at_expression_start(self) -> bool:
        return self.match(EXPRESSION_START)

    # Program and declarations

    def parse_program(self) -> Program:
        start = self.consume('begin')
        declarations: List[Node] = []
        while not self.match('in'):
            declarations.append(self.parse_declaration())
        self.consume('in')
        body = self.parse_sequence()
        self.consume('end')
        self.consume('EOF')
        program = Program(declarations, body, position=start.position)
        return resolve_program(program)

    def parse_declaration(self) -> Node:
        token = self.peek()
        if token.type == 'extern':
            return self.parse_extern_decl()
        if token.type == 'data':
            return self.parse_data_decl()
        if token.type == 'type':
            return self.parse_type_decl()
        if token.type == 'fun':
            return self.parse_fun_decl()
        self.error(('extern', 'data', 'type', 'fun', 'in'))

    def parse_extern_decl(self) -> ExternDecl:
        start = self.consume('extern')
        name = self.consume('IDENT').value
        type_params = self.parse_type_params()
        self.consume(':')
        if not self.match('fun'):
            self.error('fun')
        signature = self.parse_type()
        self.consume(';')
        return ExternDecl(name, list(signature.param_types), signature.result_type,
                          type_params, position=start.position)

    def parse_data_decl(self) -> DataDecl:
        start = self.consume('data')
        name = self.consume('IDENT').value
        type_params = self.parse_type_params()
        self.consume('=')
        if self.match('|'):
            self.consume('|')
        constructors = [self.parse_constructor_decl()]
        while self.match('|'):
            self.consume('|')
            constructors.append(self.parse_constructor_decl())
        self.consume('end')
        if self.match(';'):
            self.consume(';')
        return DataDecl(name, type_params, constructors, position=start.position)

    def parse_type_decl(self) -> TypeDecl:
        start = self.consume('type')
        name = self.consume('IDENT').value
        type_params = self.parse_type_params()
        self.consume('=')
        type_spec = self.parse_type()
        self.consume(';')
        return TypeDecl(name, type_params, type_spec, position=start.position)

    def parse_constructor_decl(self) -> ConstructorDecl:
        name_token = self.consume('IDENT')
        field_types: List[TypeSpec] = []
        # Fields may be written Cons(T, List[T]) or Cons[T, List[T]].
        for open_, close in (('(', ')'), ('[', ']')):
            if self.match(open_):
                self.consume(open_)
                field_types.append(self.parse_type())
                while self.match(','):
                    self.consume(',')
                    field_types.append(self.parse_type())
                self.consume(close)
                break
        return ConstructorDecl(name_token.value, field_types, position=name_token.position)

    def parse_fun_decl(self) -> FunDecl:
        start = self.consume('fun')
        name = self.consume('IDENT').value
        type_params = self.parse_type_params()
        self.consume('(')
        params: List[Param] = []
        if not self.match(')'):
            params.append(self.parse_param())
            while self.match(','):
                self.consume(',')
                params.append(self.parse_param())
        self.consume(')')
        return_type: Optional[TypeSpec] = None
        if self.match(('->', ':')):
            self.advance()
            return_type = self.parse_type()
        if self.match('=>'):
            self.consume('=>')
            body = self.parse_braced_sequence()
        else:
            self.consume(('=>', '='))
            body = self.parse_expression()
        if self.match(';'):
            self.consume(';')
        return FunDecl(name, params, body, return_type, type_params, position=start.position)

    def parse_param(self) -> Param:
        name_token = self.consume('IDENT')
        type_spec: Optional[TypeSpec] = None
        if self.match(':'):
            self.consume(':')
            type_spec = self.parse_type()
        return Param(name_token.value, type_spec, position=name_token.position)

    def parse_type_params(self) -> List[str]:
        names: List[str] = []
        if self.match('['):
            self.consume('[')
            names.append(self.consume('IDENT').value)
            while self.match(','):
                self.consume(',')
                names.append(self.consume('IDENT').value)
            self.consume(']')
        return names

    def parse_type(self) -> TypeSpec:
        # IDENT ["[" type ("," type)* "]"] | "(" ")" | "fun" "(" [types] ")" "->" type
        if self.match('fun'):
            self.consume('fun')
            self.consume('(')
            params: List[TypeSpec] = []
            if not self.match(')'):
                params.append(self.parse_type())
                while self.match(','):
                    self.consume(',')
                    params.append(self.parse_type())
            self.consume(')')
            self.consume('->')
            return TypeSpec.function(tuple(params), self.parse_type())
        if self.match('('):
            self.consume('(')
            self.consume(')')
            return TypeSpec.unit()
        kind = self.consume('IDENT').value
        args: List[TypeSpec] = []
        if self.match('['):
            self.consume('[')
            args.append(self.parse_type())
            while self.match(','):
                self.consume(',')
                args.append(self.parse_type())
            self.consume(']')
        return TypeSpec(kind, tuple(args))

    # Expressions

    def parse_sequence(self) -> Node:
        """item (";" item)* [";"], where a `let` item scopes over the rest."""
        if self.match('let'):
            return self.parse_let()
        first = self.parse_expression()
        if self.match(';'):
            semi = self.consume(';')
            if self.at_expression_start():
                return Seq(first, self.parse_sequence(), position=semi.position)
        return first

    def parse_braced_sequence(self) -> Node:
        self.consume('{')
        body = self.parse_sequence()
        self.consume('}')
        return body

    def parse_expression(self) -> Node:
        node = self.parse_primary()
        while self.match('('):
            start = self.peek()
            args = self.parse_arguments()
            node = Call(node, args, position=node.position or start.position)
        return node

    def parse_arguments(self) -> List[Node]:
        self.consume('(')
        args: List[Node] = []
        if not self.match(')'):
            args.append(self.parse_expression())
            while self.match(','):
                self.consume(',')
                args.append(self.parse_expression())
        self.consume(')')
        return args

    def parse_primary(self) -> Node:
        token = self.peek()
        if token.type in ('INT', 'REAL', 'CHAR', 'true', 'false'):
            self.advance()
            value, kind = literal_value(token)
            return Literal(value, kind, position=token.position)
        if token.type == 'IDENT':
            self.advance()
            return Var(token.value, position=token.position)
        if token.type == 'INTRINSIC':
            self.advance()
            return IntrinsicCall(token.value[1:], self.parse_arguments(), position=token.position)
        if token.type == 'DIRECTIVE':
            self.advance()
            return DirectiveCall(token.value[1:], self.parse_arguments(), position=token.position)
        if token.type == '(':
            self.advance()
            if self.match(')'):
                self.consume(')')
                return UnitLiteral(position=token.position)
            expr = self.parse_expression()
            self.consume(')')
            return expr
        if token.type == 'case':
            return self.parse_case()
        if token.type == 'let':
            return self.parse_let()
        if token.type == 'fn':
            return self.parse_lambda()
        if token.type == 'begin':
            if self.peek(1).type in LOCAL_DECLARATIONS + ('in',):
                return self.parse_block()
            self.advance()
            body = self.parse_sequence()
            self.consume('end')
            return body
        self.error('expression')

    def parse_block(self) -> Block:
        start = self.consume('begin')
        declarations: List[Node] = []
        while not self.match('in'):
            if not self.match(LOCAL_DECLARATIONS):
                self.error(LOCAL_DECLARATIONS + ('in',))
            declarations.append(self.parse_declaration())
        self.consume('in')
        body = self.parse_sequence()
        self.consume('end')
        return Block(declarations, body, position=start.position)

    def parse_let(self) -> Let:
        start = self.consume('let')
        name = self.consume('IDENT').value
        type_spec: Optional[TypeSpec] = None
        if self.match(':'):
            self.consume(':')
            type_spec = self.parse_type()
        self.consume('=')
        value = self.parse_expression()
        self.consume(';')
        body = self.parse_sequence()
        return Let(name, value, body, type_spec, position=start.position)

    def parse_lambda(self) -> Lambda:
        start = self.consume('fn')
        self.consume('(')
        params: List[str] = []
        if not self.match(')'):
            params.append(self.parse_param().name)
            while self.match(','):
                self.consume(',')
                params.append(self.parse_param().name)
        self.consume(')')
        self.consume('=>')
        if self.match('{'):
            body = self.parse_braced_sequence()
        else:
            body = self.parse_expression()
        return Lambda(params, body, position=start.position)

    def parse_case(self) -> Case:
        start = self.consume('case')
        scrutinee = self.parse_expression()
        self.consume('of')
        if not self.match('|'):
            self.error('|')
        arms: List[Arm] = []
        while self.match('|'):
            bar = self.consume('|')
            pattern = self.parse_pattern()
            self.consume('=>')
            if self.match('{'):
                body = self.parse_braced_sequence()
            else:
                body = self.parse_expression()
            arms.append(Arm(pattern, body, position=bar.position))
        self.consume('end')
        return Case(scrutinee, arms, position=start.position)

    def parse_pattern(self) -> Pattern:
        token = self.peek()
        if token.type in ('INT', 'REAL', 'CHAR', 'true', 'false'):
            self.advance()
            value, kind = literal_value(token)
            return PatternLit(value, kind, position=token.position)
        name = self.consume('IDENT').value
        if name == '_':
            return PatternWild(position=token.position)
        if self.match('('):
            self.consume('(')
            args: List[Pattern] = []
            if not self.match(')'):
                args.append(self.parse_pattern())
                while self.match(','):
                    self.consume(',')
                    args.append(self.parse_pattern())
            self.consume(')')
            return PatternCtor(name, args, position=token.position)
        return PatternVar(name, position=token.position)


###############################################################################
# Declaration checks and constructor resolution
###############################################################################


def literal_value(token: Token):
    """The Python value and literal kind of a literal token."""
    if token.type == 'INT':
        return int(token.value), 'Int'
    if token.type == 'REAL':
        return float(token.value), 'Real'
    if token.type == 'CHAR':
        text = token.value[1:-1]
        if text.startswith('\\'):
            text = CHAR_ESCAPES[text[1]]
        return text, 'Char'
    return token.type == 'true', 'Bool'


def check_program(program: Program) -> ConstructorTable:
    """Check every declaration scope and build the constructor table.

    Constructors of local `data` declarations join the one program-wide
    table, so constructor names are unique across the whole program.
    """
    scopes: List[Sequence[Node]] = [program.declarations]
    scopes.extend(node.declarations for node in walk(program) if isinstance(node, Block))
    table = ConstructorTable.from_declarations(
        decl for scope in scopes for decl in scope if isinstance(decl, DataDecl))
    for scope in scopes:
        check_declarations(scope, table)
    return table


def check_declarations(declarations: Sequence[Node], table: ConstructorTable):
    """Reject duplicate names within one declaration scope.

    Data types, type aliases, functions and externs share one namespace,
    and no declaration other than a data type may reuse a constructor name.
    """
    seen: Dict[str, Node] = {}
    for decl in declarations:
        if decl.name in seen or (not isinstance(decl, DataDecl) and decl.name in table):
            raise DuplicateDeclarationError(decl.name, decl.position)
        seen[decl.name] = decl


def resolve_program(program: Program) -> Program:
    table = check_program(program)
    declarations = [resolve_declaration(decl, table) for decl in program.declarations]
    body = resolve_constructors(program.body, table)
    return Program(declarations, body, position=program.position)


def resolve_declaration(decl: Node, table: ConstructorTable) -> Node:
    if isinstance(decl, FunDecl):
        return FunDecl(decl.name, decl.params, resolve_constructors(decl.body, table),
                       decl.return_type, decl.type_params, position=decl.position)
    return decl


def resolve_constructors(node: Node, table: ConstructorTable) -> Node:
    """Rewrite constructor references into `Construct` nodes.

    Resolution is lexical and constructor-first: a name that is a
    declared constructor always denotes the constructor, even where a
    local binding of the same name is in scope.
    """
    def resolve(n: Node) -> Node:
        return resolve_constructors(n, table)

    if isinstance(node, Var):
        if node.name in table:
            return Construct(node.name, [], position=node.position)
        return node
    if isinstance(node, Call):
        args = [resolve(a) for a in node.args]
        if isinstance(node.callee, Var) and node.callee.name in table:
            return Construct(node.callee.name, args, position=node.position)
        return Call(resolve(node.callee), args, position=node.position)
    if isinstance(node, Construct):
        return Construct(node.constructor, [resolve(a) for a in node.args], position=node.position)
    if isinstance(node, IntrinsicCall):
        return IntrinsicCall(node.op, [resolve(a) for a in node.args], position=node.position)
    if isinstance(node, DirectiveCall):
        return DirectiveCall(node.name, [resolve(a) for a in node.args], position=node.position)
    if isinstance(node, Case):
        arms = [Arm(arm.pattern, resolve(arm.body), position=arm.position) for arm in node.arms]
        return Case(resolve(node.scrutinee), arms, position=node.position)
    if isinstance(node, Let):
        return Let(node.name, resolve(node.value), resolve(node.body), node.type_spec, position=node.position)
    if isinstance(node, Seq):
        return Seq(resolve(node.first), resolve(node.rest), position=node.position)
    if isinstance(node, Lambda):
        return Lambda(node.params, resolve(node.body), position=node.position)
    if isinstance(node, Block):
        declarations = [resolve_declaration(decl, table) for decl in node.declarations]
        return Block(declarations, resolve(node.body), position=node.position)
    return node


def parse_program(source: str, max_frames: int = DEFAULT_MAX_FRAMES) -> Program:
    """Parse Ember source code into a resolved `Program` AST.

    Raises `LexError`, `ParseError`, `DuplicateDeclarationError` or
    `DuplicateConstructorError`; nothing is evaluated. Nesting deeper
    than `max_frames` Python frames allow raises `NestingDepthError`.
    """
    tokens = tokenize(source)
    parser = Parser(tokens)
    with recursion_limit(max_frames):
        try:
            return parser.parse_program()
        except RecursionError:
            raise NestingDepthError(parser.peek().position) from None
