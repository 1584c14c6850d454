"""
Line parser for the tripcc compiler.

Parses one statement line (via the Lexer) into a Statement:

  - Declarations:   IntegerType a, b;
  - Assignments:    a = b * 2 + 1;
  - Loop headers:   while (a < 10 && b != 0 || c > 1) {
  - Block close:    }

Expressions have one precedence level above + and -: * and / chains are
kept together in a Term. No parentheses. Conditions are kept in
disjunctive form (|| of && chains).
"""

from __future__ import annotations
import logging
from typing import Iterable, List, Optional, Tuple, Union

from .lexer import (Lexer, LexerError, Token, TokenType, TYPE_KEYWORDS,
                    NUMERIC_LITERALS, LITERALS, RELATIONAL_OPS)
from .statements import (Assignment, BlockClose, Comparison, Condition, Declaration,
                         Diagnostic, Expression, Literal, LoopHeader, SourceOperand,
                         Statement, Term, Variable)

log = logging.getLogger("tripcc.parser")


class ParseError(Exception):
    def __init__(self, message: str, token: Token):
        self.token = token
        loc = f"L{token.line}:{token.col}"
        super().__init__(f"Parse error at {loc}: {message} (got {token.type.name} = {token.value!r})")


class Parser:
    """Recursive descent parser producing one Statement from a token line."""

    def __init__(self, tokens: List[Token], source: str = ""):
        self.tokens = tokens
        self.source = source
        self.pos = 0

    # ── Helpers ─────────────────────────────

    def _cur(self) -> Token:
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        i = self.pos + offset
        if i < len(self.tokens):
            return self.tokens[i]
        return self.tokens[-1]  # EOF

    def _at(self, *types: TokenType) -> bool:
        return self._cur().type in types

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _expect(self, ttype: TokenType, msg: str = "") -> Token:
        if self._cur().type != ttype:
            if not msg:
                msg = f"Expected {ttype.value!r}"
            raise ParseError(msg, self._cur())
        return self._advance()

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._cur().type in types:
            return self._advance()
        return None

    def _expect_end(self, *optional: TokenType):
        """Consume optional trailing punctuation, then require end of line."""
        for ttype in optional:
            self._match(ttype)
        self._expect(TokenType.EOF, "Unexpected trailing tokens")

    # ── Statements ────────────────────────────

    def parse(self) -> Statement:
        line = self._cur().line
        if self._at(*TYPE_KEYWORDS):
            return self._parse_declaration(line)
        if self._at(TokenType.KW_WHILE):
            return self._parse_loop_header(line)
        if self._at(TokenType.RBRACE):
            self._advance()
            self._expect_end(TokenType.SEMI)
            return BlockClose(line=line, text=self.source)
        if self._at(TokenType.IDENT) and self._peek(1).type == TokenType.ASSIGN:
            return self._parse_assignment(line)
        raise ParseError("Expected a declaration, assignment, loop header or '}'", self._cur())

    def _parse_declaration(self, line: int) -> Declaration:
        type_tok = self._advance()
        names = [self._expect(TokenType.IDENT, "Expected identifier in declaration").value]
        while self._match(TokenType.COMMA):
            names.append(self._expect(TokenType.IDENT, "Expected identifier after ','").value)
        self._expect_end(TokenType.SEMI)
        return Declaration(line=line, text=self.source, type_name=type_tok.value, names=tuple(names))

    def _parse_assignment(self, line: int) -> Assignment:
        target = self._advance().value
        self._expect(TokenType.ASSIGN)
        if self._at(TokenType.SEMI, TokenType.EOF):
            raise ParseError("Missing value after assignment operator", self._cur())
        expr = self._parse_expression()
        self._expect_end(TokenType.SEMI)
        return Assignment(line=line, text=self.source, target=target, expression=expr)

    def _parse_loop_header(self, line: int) -> LoopHeader:
        self._advance()  # while
        self._expect(TokenType.LPAREN)
        cond = self._parse_condition()
        self._expect(TokenType.RPAREN)
        self._expect_end(TokenType.LBRACE)
        return LoopHeader(line=line, text=self.source, condition=cond)

    # ── Expressions ───────────────────────────

    def _parse_expression(self) -> Expression:
        # A leading sign belongs to the first term, not to a boundary
        negated = bool(self._match(TokenType.MINUS))
        if not negated:
            self._match(TokenType.PLUS)
        terms = [self._parse_term(negated)]
        while self._at(TokenType.PLUS, TokenType.MINUS):
            negated = self._advance().type == TokenType.MINUS
            terms.append(self._parse_term(negated))
        return Expression(tuple(terms))

    def _parse_term(self, negated: bool) -> Term:
        factors = [self._parse_operand()]
        operators = []
        while self._at(TokenType.STAR, TokenType.SLASH):
            operators.append(self._advance().value)
            factors.append(self._parse_operand())
        return Term(factors=tuple(factors), operators=tuple(operators), negated=negated)

    def _parse_operand(self) -> SourceOperand:
        # '-' directly before a number folds into a negative literal
        if self._at(TokenType.MINUS) and self._peek(1).type in NUMERIC_LITERALS:
            self._advance()
            return Literal("-" + self._advance().value)
        if self._at(TokenType.IDENT):
            return Variable(self._advance().value)
        if self._at(*LITERALS):
            return Literal(self._advance().text)
        raise ParseError("Expected identifier or literal", self._cur())

    # ── Conditions ────────────────────────────

    def _parse_condition(self) -> Condition:
        disjuncts = [self._parse_and_chain()]
        while self._match(TokenType.OR):
            disjuncts.append(self._parse_and_chain())
        return Condition(tuple(disjuncts))

    def _parse_and_chain(self) -> Tuple[Comparison, ...]:
        chain = [self._parse_comparison()]
        while self._match(TokenType.AND):
            chain.append(self._parse_comparison())
        return tuple(chain)

    def _parse_comparison(self) -> Comparison:
        left = self._parse_operand()
        if not self._at(*RELATIONAL_OPS):
            raise ParseError("Expected relational operator", self._cur())
        op = self._advance().value
        right = self._parse_operand()
        return Comparison(left=left, op=op, right=right)


# ──────────────────────────────────────────────
# Entry points
# ──────────────────────────────────────────────

def parse_line(text: str, line: int = 1) -> Statement:
    """Parse one statement line. Raises LexerError or ParseError."""
    tokens = Lexer(text, line).tokenize()
    return Parser(tokens, text).parse()


def parse_program(lines: Iterable[Union[str, Statement]]) -> Tuple[List[Statement], List[Diagnostic]]:
    """Parse every non-blank line; never raises.

    Lines that fail to lex or parse are left out of the statement list and
    reported as Diagnostics. Already-parsed Statements pass through.
    """
    statements: List[Statement] = []
    diagnostics: List[Diagnostic] = []
    for number, item in enumerate(lines, start=1):
        if isinstance(item, Statement):
            statements.append(item)
            continue
        if not item.strip():
            continue
        try:
            statements.append(parse_line(item, number))
        except (LexerError, ParseError) as e:
            diag = Diagnostic(line=number, text=item, message=str(e))
            log.warning("Skipping line %d: %s", number, e)
            diagnostics.append(diag)
    return statements, diagnostics
