"""
Lexical / semantic validator for tripcc source lines.

Builds the symbol table (every lexeme seen, with its category or declared
type) and an error table, line by line:

  - declarations: known type keyword, identifier pattern, duplicates
  - assignments:  target and operands declared, types compatible
  - loop headers: every identifier in the condition declared

The validator never raises. It is an optional pre-pass: the optimizer,
triplet generator and assembly lowering do not depend on it.
"""

from __future__ import annotations
import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .lexer import (Lexer, LexerError, Token, TokenType, ARITHMETIC_OPS, RELATIONAL_OPS,
                    TYPE_KEYWORDS)

log = logging.getLogger("tripcc.validator")

DEFAULT_IDENTIFIER_PATTERN = r"[A-Za-z_][A-Za-z0-9_]*"


class ErrorKind(enum.Enum):
    INVALID_TYPE = "Invalid_Type"
    INVALID_IDENTIFIER = "Invalid_Identifier"
    DUPLICATE_DECLARATION = "Duplicate_Declaration"
    UNDECLARED_VARIABLE = "Undeclared_Variable"
    TYPE_MISMATCH = "Type_Mismatch"
    SYNTAX_ERROR = "Syntax_Error"


ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_TYPE: "Type must be IntegerType, FloatType, or StringType",
    ErrorKind.INVALID_IDENTIFIER: "Identifier must match pattern {pattern}",
    ErrorKind.DUPLICATE_DECLARATION: "Variable already declared",
    ErrorKind.UNDECLARED_VARIABLE: "Variable must be declared before use",
    ErrorKind.TYPE_MISMATCH: "Cannot assign {value} value to {type} variable",
    ErrorKind.SYNTAX_ERROR: "{detail}",
}

# Literal spellings each declared type accepts
VALUE_PATTERNS: Dict[str, re.Pattern] = {
    "IntegerType": re.compile(r"^-?\d+$"),
    "FloatType": re.compile(r"^-?\d*\.?\d+$"),
    "StringType": re.compile(r'^".*"$'),
}

COMPATIBLE_TYPES: Dict[str, tuple] = {
    "IntegerType": ("IntegerType", "FloatType"),
    "FloatType": ("IntegerType", "FloatType"),
    "StringType": ("StringType",),
}

LITERAL_TYPES = {
    TokenType.INT_LITERAL: "IntegerType",
    TokenType.FLOAT_LITERAL: "FloatType",
    TokenType.STRING_LITERAL: "StringType",
}

# Symbol table categories
RESERVED_WORD = "Reserved Word"
DELIMITER = "Delimiter"
ASSIGNMENT_OPERATOR = "Assignment Operator"
ARITHMETIC_OPERATOR = "Arithmetic Operator"
RELATIONAL_OPERATOR = "Relational Operator"
LOGICAL_OPERATOR = "Logical Operator"
UNDEFINED = "Undefined"


@dataclass(frozen=True)
class ValidationError:
    kind: ErrorKind
    lexeme: str
    line: int
    message: str

    def __str__(self) -> str:
        return f"L{self.line}: {self.kind.value}: {self.lexeme}: {self.message}"


@dataclass
class ValidationReport:
    symbols: Dict[str, str] = field(default_factory=dict)      # lexeme -> category/type
    declared: Dict[str, str] = field(default_factory=dict)     # identifier -> type
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def rejected_lines(self) -> Set[int]:
        return {e.line for e in self.errors}


class Validator:
    """Checks statement lines and fills the symbol and error tables."""

    def __init__(self, identifier_pattern: str = DEFAULT_IDENTIFIER_PATTERN):
        self.identifier_pattern = identifier_pattern
        self._ident_re = re.compile(identifier_pattern)
        self.report = ValidationReport()

    # ── Table helpers ─────────────────────────

    def _symbol(self, lexeme: str, category: str):
        self.report.symbols.setdefault(lexeme, category)

    def _error(self, kind: ErrorKind, lexeme: str, line: int, **fmt):
        message = ERROR_MESSAGES[kind].format(**fmt)
        err = ValidationError(kind, lexeme, line, message)
        log.debug("%s", err)
        self.report.errors.append(err)

    def _valid_identifier(self, name: str) -> bool:
        return self._ident_re.fullmatch(name) is not None

    # ── Entry point ───────────────────────────

    def validate(self, lines: Iterable[str]) -> ValidationReport:
        self.report = ValidationReport()
        for number, text in enumerate(lines, start=1):
            stripped = text.strip()
            if not stripped:
                continue
            try:
                tokens = Lexer(stripped, number).tokenize()
            except LexerError as e:
                self._error(ErrorKind.SYNTAX_ERROR, stripped, number, detail=str(e))
                continue
            self._validate_line(tokens[:-1], number)   # drop EOF

        if self.report.errors:
            log.info("Validation found %d error(s)", len(self.report.errors))
        return self.report

    def _validate_line(self, tokens: List[Token], line: int):
        first = tokens[0]
        if first.type in TYPE_KEYWORDS:
            self._validate_declaration(tokens, line)
        elif first.type == TokenType.KW_WHILE:
            self._validate_loop_header(tokens, line)
        elif first.type in (TokenType.LBRACE, TokenType.RBRACE):
            self._symbol(first.value, DELIMITER)
        elif first.type == TokenType.IDENT and len(tokens) > 1 and tokens[1].type == TokenType.ASSIGN:
            self._validate_assignment(tokens, line)
        elif first.type == TokenType.IDENT and len(tokens) > 1 and tokens[1].type == TokenType.IDENT:
            # Looks like a declaration with an unknown type name
            self._error(ErrorKind.INVALID_TYPE, first.value, line)
        else:
            self._error(ErrorKind.SYNTAX_ERROR, first.value, line,
                        detail="Expected a declaration, assignment, loop header or '}'")

    # ── Declarations ──────────────────────────

    def _validate_declaration(self, tokens: List[Token], line: int):
        type_name = tokens[0].value
        self._symbol(type_name, RESERVED_WORD)
        expect_name = True
        for tok in tokens[1:]:
            if tok.type == TokenType.SEMI:
                self._symbol(";", DELIMITER)
                break
            if expect_name:
                if tok.type != TokenType.IDENT or not self._valid_identifier(tok.value):
                    self._error(ErrorKind.INVALID_IDENTIFIER, tok.value, line,
                                pattern=self.identifier_pattern)
                elif tok.value in self.report.declared:
                    self._error(ErrorKind.DUPLICATE_DECLARATION, tok.value, line)
                else:
                    self.report.declared[tok.value] = type_name
                    self._symbol(tok.value, type_name)
                expect_name = False
            elif tok.type == TokenType.COMMA:
                self._symbol(",", DELIMITER)
                expect_name = True
            else:
                self._error(ErrorKind.SYNTAX_ERROR, tok.value, line,
                            detail="Expected ',' or ';' in declaration")
                break
        if expect_name:
            self._error(ErrorKind.SYNTAX_ERROR, type_name, line,
                        detail="Expected identifier in declaration")

    # ── Assignments ───────────────────────────

    def _operand_type(self, tok: Token, line: int) -> Optional[str]:
        """Type of an operand token, recording it in the symbol table."""
        if tok.type == TokenType.IDENT:
            declared = self.report.declared.get(tok.value)
            if declared is None:
                self._error(ErrorKind.UNDECLARED_VARIABLE, tok.value, line)
                self._symbol(tok.value, UNDEFINED)
            return declared
        literal_type = LITERAL_TYPES.get(tok.type)
        if literal_type is not None:
            self._symbol(tok.text, literal_type)
        return literal_type

    def _validate_assignment(self, tokens: List[Token], line: int):
        target = tokens[0].value
        target_type = self.report.declared.get(target)
        if target_type is None:
            self._error(ErrorKind.UNDECLARED_VARIABLE, target, line)
            self._symbol(target, UNDEFINED)
        self._symbol("=", ASSIGNMENT_OPERATOR)

        rhs = [t for t in tokens[2:] if t.type != TokenType.SEMI]
        if not rhs:
            self._error(ErrorKind.SYNTAX_ERROR, target, line,
                        detail="Missing value after assignment operator")
            return

        for i, tok in enumerate(rhs):
            if tok.type in ARITHMETIC_OPS:
                self._symbol(tok.value, ARITHMETIC_OPERATOR)
                continue
            operand_type = self._operand_type(tok, line)
            if operand_type is None or target_type is None:
                continue
            if tok.type == TokenType.IDENT:
                compatible = operand_type in COMPATIBLE_TYPES[target_type]
                shown = operand_type
            else:
                signed = "-" + tok.text if i > 0 and rhs[i - 1].type == TokenType.MINUS else tok.text
                compatible = VALUE_PATTERNS[target_type].match(signed) is not None
                shown = tok.text
            if not compatible:
                self._error(ErrorKind.TYPE_MISMATCH, tok.text, line, value=shown, type=target_type)
                return

    # ── Loop headers ──────────────────────────

    def _validate_loop_header(self, tokens: List[Token], line: int):
        self._symbol("while", RESERVED_WORD)
        for tok in tokens[1:]:
            if tok.type in (TokenType.LPAREN, TokenType.RPAREN, TokenType.LBRACE):
                self._symbol(tok.value, DELIMITER)
            elif tok.type in RELATIONAL_OPS:
                self._symbol(tok.value, RELATIONAL_OPERATOR)
            elif tok.type in (TokenType.AND, TokenType.OR):
                self._symbol(tok.value, LOGICAL_OPERATOR)
            elif tok.type == TokenType.MINUS:
                continue
            else:
                self._operand_type(tok, line)


def validate(lines: Iterable[str], identifier_pattern: str = DEFAULT_IDENTIFIER_PATTERN) -> ValidationReport:
    """Module-level shortcut around Validator().validate()."""
    return Validator(identifier_pattern).validate(lines)
