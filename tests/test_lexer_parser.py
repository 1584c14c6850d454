"""
Front-end tests for tripcc: lexer and line parser.

Tests cover:
  - Token types for keywords, literals and operators
  - Lexer errors (bad characters, unterminated strings)
  - Statement shapes produced by parse_line
  - Expression terms (signs, * / chains, negative literals)
  - Conditions in disjunctive form
  - parse_program diagnostics
"""

import pytest
from triplet_compiler.lexer import Lexer, LexerError, TokenType, tokenize
from triplet_compiler.parser import ParseError, parse_line, parse_program
from triplet_compiler.statements import (Assignment, BlockClose, Declaration, Literal,
                                         LoopHeader, Variable)


def _types(source: str) -> list:
    return [t.type for t in tokenize(source)]


# ─── Lexer ────────────────────────────────

class TestLexer:
    def test_declaration_tokens(self):
        assert _types("IntegerType a, b;") == [
            TokenType.KW_INTEGER, TokenType.IDENT, TokenType.COMMA,
            TokenType.IDENT, TokenType.SEMI, TokenType.EOF,
        ]

    def test_type_keywords(self):
        assert _types("FloatType StringType while")[:3] == [
            TokenType.KW_FLOAT, TokenType.KW_STRING, TokenType.KW_WHILE,
        ]

    def test_int_and_float_literals(self):
        toks = tokenize("12 3.75")
        assert toks[0].type == TokenType.INT_LITERAL and toks[0].value == "12"
        assert toks[1].type == TokenType.FLOAT_LITERAL and toks[1].value == "3.75"

    def test_trailing_dot_is_not_float(self):
        with pytest.raises(LexerError):
            tokenize("3.")

    def test_string_literal_keeps_quotes_in_text(self):
        tok = tokenize('"hi there"')[0]
        assert tok.type == TokenType.STRING_LITERAL
        assert tok.value == "hi there"
        assert tok.text == '"hi there"'

    def test_multi_char_operators(self):
        assert _types("<= >= == != && ||")[:6] == [
            TokenType.LE, TokenType.GE, TokenType.EQ,
            TokenType.NEQ, TokenType.AND, TokenType.OR,
        ]

    def test_less_than_then_assign_is_two_tokens(self):
        assert _types("a < = b")[1:3] == [TokenType.LT, TokenType.ASSIGN]

    def test_columns_are_one_based(self):
        toks = Lexer("a = 1;", line=7).tokenize()
        assert (toks[0].line, toks[0].col) == (7, 1)
        assert toks[2].col == 5

    def test_unexpected_character(self):
        with pytest.raises(LexerError) as exc:
            tokenize("a = 1 @ 2;")
        assert exc.value.col == 7

    def test_unterminated_string(self):
        with pytest.raises(LexerError):
            tokenize('s = "open;')


# ─── Statements ───────────────────────────

class TestParseStatements:
    def test_declaration(self):
        stmt = parse_line("FloatType x, y, z;", line=3)
        assert isinstance(stmt, Declaration)
        assert stmt.type_name == "FloatType"
        assert stmt.names == ("x", "y", "z")
        assert stmt.line == 3

    def test_declaration_semicolon_optional(self):
        assert parse_line("IntegerType a").names == ("a",)

    def test_simple_assignment(self):
        stmt = parse_line("a = 10;")
        assert isinstance(stmt, Assignment)
        assert stmt.target == "a"
        assert stmt.expression.is_simple
        assert stmt.expression.terms[0].factors == (Literal("10"),)

    def test_loop_header(self):
        stmt = parse_line("while (a < 20) {")
        assert isinstance(stmt, LoopHeader)
        assert stmt.condition.is_simple
        cmp = stmt.condition.comparisons[0]
        assert (cmp.left, cmp.op, cmp.right) == (Variable("a"), "<", Literal("20"))

    def test_block_close(self):
        assert isinstance(parse_line("}"), BlockClose)

    def test_text_is_kept(self):
        assert parse_line("a = b + 1;").text == "a = b + 1;"

    @pytest.mark.parametrize("line", [
        "a = ;",
        "a b c",
        "IntegerType ;",
        "IntegerType a b;",
        "while (a) {",
        "while a < 1 {",
        "a = b + ;",
        "a = (b);",
        "} }",
    ])
    def test_malformed_lines_raise(self, line):
        with pytest.raises(ParseError):
            parse_line(line)


# ─── Expressions ──────────────────────────

class TestParseExpressions:
    def test_products_bind_tighter(self):
        expr = parse_line("x = a + b * c - d / 2;").expression
        assert len(expr.terms) == 3
        assert not expr.terms[0].is_product
        assert expr.terms[1].operators == ("*",)
        assert expr.terms[2].negated
        assert expr.terms[2].factors == (Variable("d"), Literal("2"))

    def test_leading_minus_negates_first_term(self):
        expr = parse_line("x = -b + 1;").expression
        assert expr.terms[0].negated
        assert expr.terms[0].factors == (Variable("b"),)
        assert not expr.is_simple

    def test_minus_after_operator_is_negative_literal(self):
        term = parse_line("x = b * -2;").expression.terms[0]
        assert term.factors == (Variable("b"), Literal("-2"))

    def test_string_literal_operand(self):
        term = parse_line('s = "abc";').expression.terms[0]
        assert term.factors == (Literal('"abc"'),)

    def test_expression_str(self):
        assert str(parse_line("x = -a * 2 + b - 3;").expression) == "-a * 2 + b - 3"


# ─── Conditions ───────────────────────────

class TestParseConditions:
    def test_and_chain(self):
        cond = parse_line("while (a < 20 && a > 0) {").condition
        assert len(cond.disjuncts) == 1
        assert [c.op for c in cond.disjuncts[0]] == ["<", ">"]

    def test_or_splits_disjuncts(self):
        cond = parse_line("while (a > 5 || a < 0) {").condition
        assert len(cond.disjuncts) == 2
        assert not cond.is_simple

    def test_and_binds_tighter_than_or(self):
        cond = parse_line("while (a > 0 && b > 0 || c > 0) {").condition
        assert [len(chain) for chain in cond.disjuncts] == [2, 1]
        assert str(cond) == "a > 0 && b > 0 || c > 0"

    def test_negative_literal_in_comparison(self):
        cmp = parse_line("while (a >= -3) {").condition.comparisons[0]
        assert cmp.right == Literal("-3")


# ─── parse_program ────────────────────────

class TestParseProgram:
    def test_blank_lines_skipped(self):
        statements, diagnostics = parse_program(["IntegerType a;", "", "   ", "a = 1;"])
        assert len(statements) == 2
        assert diagnostics == []

    def test_bad_lines_reported_not_raised(self):
        statements, diagnostics = parse_program(["a = 1;", "a = ;", "x @ y", "}"])
        assert len(statements) == 2
        assert [d.line for d in diagnostics] == [2, 3]
        assert "a = ;" in str(diagnostics[0])

    def test_line_numbers_follow_input(self):
        statements, _ = parse_program(["", "a = 1;"])
        assert statements[0].line == 2

    def test_statements_pass_through(self):
        stmt = parse_line("a = 1;")
        statements, _ = parse_program([stmt])
        assert statements == [stmt]
