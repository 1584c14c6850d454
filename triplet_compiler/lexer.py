"""
Lexer / Tokenizer for the tripcc statement language.

Converts one statement line into a stream of tokens for the parser and the
constant-folding optimizer. Handles the three type keywords, ``while``,
identifiers, integer/float/string literals, arithmetic, relational and
logical operators, and punctuation.

Input is line oriented: every statement lives on its own line, so the
lexer tracks a column only and takes the line number from the caller.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Dict, List


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    # Literals
    INT_LITERAL = "INT_LITERAL"
    FLOAT_LITERAL = "FLOAT_LITERAL"
    STRING_LITERAL = "STRING_LITERAL"

    # Identifier
    IDENT = "IDENT"

    # Keywords
    KW_INTEGER = "IntegerType"
    KW_FLOAT = "FloatType"
    KW_STRING = "StringType"
    KW_WHILE = "while"

    # Arithmetic
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    ASSIGN = "="

    # Relational
    EQ = "=="
    NEQ = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="

    # Logical
    AND = "&&"
    OR = "||"

    # Punctuation
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    SEMI = ";"
    COMMA = ","

    # Special
    EOF = "EOF"


# ──────────────────────────────────────────────
# Token data class
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int
    col: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.col})"

    @property
    def text(self) -> str:
        """Source spelling of the token (string literals keep their quotes)."""
        if self.type == TokenType.STRING_LITERAL:
            return f'"{self.value}"'
        return self.value


# ──────────────────────────────────────────────
# Keyword and operator maps
# ──────────────────────────────────────────────

KEYWORDS: Dict[str, TokenType] = {
    "IntegerType": TokenType.KW_INTEGER,
    "FloatType": TokenType.KW_FLOAT,
    "StringType": TokenType.KW_STRING,
    "while": TokenType.KW_WHILE,
}

TYPE_KEYWORDS = (TokenType.KW_INTEGER, TokenType.KW_FLOAT, TokenType.KW_STRING)

# Longest match first
MULTI_CHAR_OPS = [
    ("<=", TokenType.LE),
    (">=", TokenType.GE),
    ("==", TokenType.EQ),
    ("!=", TokenType.NEQ),
    ("&&", TokenType.AND),
    ("||", TokenType.OR),
]

SINGLE_CHAR_OPS: Dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "=": TokenType.ASSIGN,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ";": TokenType.SEMI,
    ",": TokenType.COMMA,
}

ARITHMETIC_OPS = (TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH)
RELATIONAL_OPS = (TokenType.EQ, TokenType.NEQ, TokenType.LT,
                  TokenType.GT, TokenType.LE, TokenType.GE)
NUMERIC_LITERALS = (TokenType.INT_LITERAL, TokenType.FLOAT_LITERAL)
LITERALS = NUMERIC_LITERALS + (TokenType.STRING_LITERAL,)


# ──────────────────────────────────────────────
# Lexer
# ──────────────────────────────────────────────

class LexerError(Exception):
    def __init__(self, message: str, line: int, col: int):
        self.line = line
        self.col = col
        super().__init__(f"Lexer error at L{line}:{col}: {message}")


class Lexer:
    """Tokenizes a single statement line into a list of Tokens."""

    def __init__(self, source: str, line: int = 1):
        self.source = source
        self.line = line
        self.pos = 0
        self.tokens: List[Token] = []

    @property
    def col(self) -> int:
        return self.pos + 1

    def _peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.source[i] if i < len(self.source) else "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        return ch

    def _read_number(self) -> Token:
        start_col = self.col
        start_pos = self.pos
        while self.pos < len(self.source) and self.source[self.pos].isdigit():
            self._advance()

        # Fractional part: digits '.' digits
        if self._peek() == "." and self._peek(1).isdigit():
            self._advance()  # '.'
            while self.pos < len(self.source) and self.source[self.pos].isdigit():
                self._advance()
            return Token(TokenType.FLOAT_LITERAL, self.source[start_pos:self.pos],
                         self.line, start_col)

        return Token(TokenType.INT_LITERAL, self.source[start_pos:self.pos],
                     self.line, start_col)

    def _read_string_literal(self) -> Token:
        start_col = self.col
        self._advance()  # opening "
        chars: List[str] = []
        while self.pos < len(self.source) and self._peek() != '"':
            chars.append(self._advance())
        if self.pos >= len(self.source):
            raise LexerError("Unterminated string literal", self.line, start_col)
        self._advance()  # closing "
        return Token(TokenType.STRING_LITERAL, "".join(chars), self.line, start_col)

    def _read_identifier_or_keyword(self) -> Token:
        start_col = self.col
        start_pos = self.pos
        while self.pos < len(self.source) and (self.source[self.pos].isalnum() or self.source[self.pos] == "_"):
            self._advance()
        text = self.source[start_pos:self.pos]
        ttype = KEYWORDS.get(text, TokenType.IDENT)
        return Token(ttype, text, self.line, start_col)

    def tokenize(self) -> List[Token]:
        """Tokenize the whole line, appending a trailing EOF token."""
        while self.pos < len(self.source):
            ch = self.source[self.pos]

            if ch in " \t\r\n":
                self._advance()
                continue

            if ch.isdigit():
                self.tokens.append(self._read_number())
                continue

            if ch.isalpha() or ch == "_":
                self.tokens.append(self._read_identifier_or_keyword())
                continue

            if ch == '"':
                self.tokens.append(self._read_string_literal())
                continue

            start_col = self.col
            for op_text, op_type in MULTI_CHAR_OPS:
                if self.source.startswith(op_text, self.pos):
                    self.pos += len(op_text)
                    self.tokens.append(Token(op_type, op_text, self.line, start_col))
                    break
            else:
                if ch in SINGLE_CHAR_OPS:
                    self._advance()
                    self.tokens.append(Token(SINGLE_CHAR_OPS[ch], ch, self.line, start_col))
                else:
                    raise LexerError(f"Unexpected character {ch!r}", self.line, start_col)

        self.tokens.append(Token(TokenType.EOF, "", self.line, self.col))
        return self.tokens


def tokenize(source: str, line: int = 1) -> List[Token]:
    """Convenience wrapper: tokenize one line."""
    return Lexer(source, line).tokenize()
