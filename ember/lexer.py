"""Tokenizer for the Ember language.

The token rules are written as a Lark terminal grammar and run through
Lark's basic lexer in a single forward pass. Keywords and punctuation
are reported with their own text as the token type (`'begin'`, `'=>'`),
so the parser can match on types alone. The token list always ends with
an `EOF` token carrying the position just past the input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from lark import Lark
from lark.exceptions import UnexpectedCharacters

from .errors import LexError, SourcePosition


KEYWORDS = ('extern', 'data', 'type', 'fun', 'fn', 'case', 'of', 'let', 'in', 'begin',
            'end', 'true', 'false')

# Token types whose value is significant; every other token's type is its text.
VALUE_TOKENS = ('IDENT', 'INT', 'REAL', 'CHAR', 'INTRINSIC', 'DIRECTIVE')


EMBER_TOKENS = r"""
    start: token*
    ?token: IDENT | INT | REAL | CHAR | INTRINSIC | DIRECTIVE | keyword | punct
    ?keyword: EXTERN | DATA | TYPE | FUN | FN | CASE | OF | LET | IN | BEGIN | END
            | TRUE | FALSE
    ?punct: FAT_ARROW | ARROW | BAR | COMMA | LPAR | RPAR | LSQB | RSQB
          | LBRACE | RBRACE | COLON | EQUAL | SEMICOLON

    EXTERN: "extern"
    DATA: "data"
    TYPE: "type"
    FUN: "fun"
    FN: "fn"
    CASE: "case"
    OF: "of"
    LET: "let"
    IN: "in"
    BEGIN: "begin"
    END: "end"
    TRUE: "true"
    FALSE: "false"

    FAT_ARROW: "=>"
    ARROW: "->"
    BAR: "|"
    COMMA: ","
    LPAR: "("
    RPAR: ")"
    LSQB: "["
    RSQB: "]"
    LBRACE: "{"
    RBRACE: "}"
    COLON: ":"
    EQUAL: "="
    SEMICOLON: ";"

    IDENT: /[A-Za-z_][A-Za-z0-9_']*/
    INT: /-?[0-9]+/
    REAL.2: /-?[0-9]+(\.[0-9]+([eE][-+]?[0-9]+)?|[eE][-+]?[0-9]+)/
    CHAR: /'([^'\\\n]|\\[nrt0\\'])'/
    INTRINSIC: /@[A-Za-z_][A-Za-z0-9_]*/
    DIRECTIVE: /#[A-Za-z_][A-Za-z0-9_]*/

    LINE_COMMENT: /\/\/[^\n]*/
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore LINE_COMMENT
    %ignore BLOCK_COMMENT
"""


EMBER_LEXER = Lark(
    EMBER_TOKENS,
    parser='lalr',
    lexer='basic',
    propagate_positions=True,
    maybe_placeholders=False,
)


@dataclass(frozen=True)
class Token:
    type: str
    value: str
    line: int
    column: int

    @property
    def position(self) -> SourcePosition:
        return SourcePosition(self.line, self.column)

    def describe(self) -> str:
        """Short form used in parse error messages."""
        if self.type == 'EOF':
            return 'end of input'
        if self.type in VALUE_TOKENS:
            return f"{self.type} {self.value!r}"
        return repr(self.value)


def tokenize(source: str) -> List[Token]:
    """Convert source code into a list of tokens ending with `EOF`.

    Raises `LexError` with the offending character and its position when
    no token rule matches.
    """
    tokens: List[Token] = []
    try:
        for tok in EMBER_LEXER.lex(source):
            if tok.type in VALUE_TOKENS:
                kind = tok.type
            else:
                kind = str(tok)
            tokens.append(Token(kind, str(tok), tok.line, tok.column))
    except UnexpectedCharacters as e:
        char = source[e.pos_in_stream] if e.pos_in_stream < len(source) else ''
        raise LexError(char, SourcePosition(e.line, e.column)) from None
    line, column = _end_position(source)
    tokens.append(Token('EOF', '', line, column))
    return tokens


def _end_position(source: str):
    line = source.count('\n') + 1
    last_newline = source.rfind('\n')
    column = len(source) - last_newline
    return line, column
