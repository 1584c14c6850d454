"""
Triplet generator tests for tripcc.

Tests cover:
  - Assignment lowering (temporaries, precedence, leading minus)
  - Relational tests and the && / || short-circuit layout
  - Backpatching of loop exits (single point, nested loops)
  - Structural properties: no unresolved rows, valid targets, one end row
  - InstructionList resolve-exactly-once
  - Diagnostics for skipped lines
"""

import pytest
from triplet_compiler.statements import Flag, Temporary, Variable
from triplet_compiler.triplets import (Address, BackpatchError, Instruction, InstructionList,
                                       Opcode, TripletGenerator, UNRESOLVED, generate)


def _rows(lines) -> list:
    """Generate triplets and return (object, source, operator) text rows."""
    return generate(lines).rows()


def _check_structure(instructions: InstructionList):
    rows = list(instructions)
    assert rows[-1].is_end
    assert sum(1 for r in rows if r.is_end) == 1
    assert instructions.unresolved() == []
    for instr in rows:
        if instr.is_branch:
            assert isinstance(instr.operator, Address)
            assert 1 <= instr.operator.value <= len(instructions)


LOOP_AND = [
    "IntegerType a;",
    "while (a<20 && a>0) {",
    "a = a+1;",
    "}",
]

LOOP_OR = [
    "IntegerType a;",
    "while (a>5 || a<0) {",
    "a = a-1;",
    "}",
]


# ─── Assignments ──────────────────────────

class TestAssignments:
    def test_literal_assignment(self):
        assert _rows(["IntegerType a;", "a = 10;"]) == [
            ("T1", "10", "="),
            ("a", "T1", "="),
            ("", "end", ""),
        ]

    def test_product_then_sum(self):
        assert _rows(["a = 2*3+1;"]) == [
            ("T1", "2", "="),
            ("T1", "3", "*"),
            ("T1", "1", "+"),
            ("a", "T1", "="),
            ("", "end", ""),
        ]

    def test_products_lowered_before_sum(self):
        assert _rows(["x = a + b * c - d / 2;"])[:-1] == [
            ("T1", "b", "="),
            ("T1", "c", "*"),
            ("T2", "d", "="),
            ("T2", "2", "/"),
            ("T3", "a", "="),
            ("T3", "T1", "+"),
            ("T3", "T2", "-"),
            ("x", "T3", "="),
        ]

    def test_leading_minus(self):
        assert _rows(["a = -b + c;"])[:-1] == [
            ("T1", "0", "="),
            ("T1", "b", "-"),
            ("T1", "c", "+"),
            ("a", "T1", "="),
        ]

    def test_leading_minus_on_product(self):
        assert _rows(["a = -b * 2;"])[:-1] == [
            ("T1", "b", "="),
            ("T1", "2", "*"),
            ("T2", "0", "="),
            ("T2", "T1", "-"),
            ("a", "T2", "="),
        ]

    def test_chained_product(self):
        assert _rows(["a = b * c / 4;"])[:-1] == [
            ("T1", "b", "="),
            ("T1", "c", "*"),
            ("T1", "4", "/"),
            ("a", "T1", "="),
        ]

    def test_temporaries_restart_per_statement(self):
        rows = _rows(["a = 1 + 2;", "b = 3 + 4;"])
        assert rows[0][0] == "T1"
        assert rows[3] == ("T1", "3", "=")

    def test_last_row_stores_target(self):
        rows = _rows(["total = a * 2 - b * 3 + 7;"])
        assert rows[-2][0] == "total"

    def test_declarations_emit_nothing(self):
        assert _rows(["IntegerType a, b;", "StringType s;"]) == [("", "end", "")]


# ─── Conditions ───────────────────────────

class TestConditions:
    def test_simple_condition_layout(self):
        rows = _rows(["while (a < 10) {", "}"])
        assert rows == [
            ("T1", "10", "="),
            ("T2", "a", "="),
            ("T2", "T1", "<"),
            ("TR1", "true", "6"),
            ("TR1", "false", "7"),
            ("", "JMP", "1"),
            ("", "end", ""),
        ]

    def test_and_condition(self):
        rows = _rows(LOOP_AND)
        assert rows[:10] == [
            ("T1", "20", "="),
            ("T2", "a", "="),
            ("T2", "T1", "<"),
            ("TR1", "true", "6"),
            ("TR1", "false", "15"),
            ("T3", "0", "="),
            ("T4", "a", "="),
            ("T4", "T3", ">"),
            ("TR2", "true", "11"),
            ("TR2", "false", "15"),
        ]

    def test_or_condition_true_branch_resolved_to_body(self):
        instructions = generate(LOOP_OR)
        first_true = instructions.at(4)
        assert first_true.obj == Flag(1)
        assert first_true.source == Opcode.TRUE
        assert first_true.operator == Address(11)
        assert str(first_true) == "(TR1,true,11)"
        # first test failing falls into the second test
        assert instructions.at(5).operator == Address(6)
        assert instructions.at(10).operator == Address(15)
        assert instructions.at(11) == Instruction(Temporary(1), Variable("a"), "=")

    def test_mixed_and_or(self):
        rows = _rows([
            "while (a > 0 && b > 0 || c > 0) {",
            "c = c - 1;",
            "}",
        ])
        assert rows[3] == ("TR1", "true", "6")
        assert rows[4] == ("TR1", "false", "11")    # next disjunct
        assert rows[8] == ("TR2", "true", "16")     # body
        assert rows[9] == ("TR2", "false", "11")
        assert rows[10:13] == [("T5", "0", "="), ("T6", "c", "="), ("T6", "T5", ">")]
        assert rows[13] == ("TR3", "true", "16")
        assert rows[14] == ("TR3", "false", "20")
        assert rows[18] == ("", "JMP", "1")
        assert rows[19] == ("", "end", "")

    def test_two_or_disjuncts_both_reach_body(self):
        instructions = generate([
            "while (a == 1 || b == 2 || c == 3) {",
            "a = 0;",
            "}",
        ])
        _check_structure(instructions)
        body = 16
        assert instructions.at(4).operator == Address(body)
        assert instructions.at(9).operator == Address(body)
        assert instructions.at(14).operator == Address(body)


# ─── Backpatching ─────────────────────────

class TestBackpatching:
    def test_single_backpatch_event(self):
        gen = TripletGenerator()
        instructions = gen.generate(LOOP_AND)
        assert gen.backpatch_events == 1
        jmp = instructions.at(14)
        assert jmp.source == Opcode.JMP and jmp.operator == Address(1)
        # every exit lands right after the back jump
        assert instructions.at(5).operator == instructions.at(10).operator == Address(15)
        assert instructions.at(15).is_end

    def test_stray_close_brace_is_diagnosed(self):
        gen = TripletGenerator()
        instructions = gen.generate(LOOP_AND + ["}"])
        assert len(instructions) == 15
        assert gen.backpatch_events == 1
        assert len(gen.diagnostics) == 1
        assert gen.diagnostics[0].line == 5

    def test_nested_loops(self):
        rows = _rows([
            "while (a < 10) {",
            "while (b < 5) {",
            "b = b + 1;",
            "}",
            "a = a + 1;",
            "}",
        ])
        assert rows[4] == ("TR1", "false", "19")
        assert rows[9] == ("TR1", "false", "15")
        assert rows[13] == ("", "JMP", "6")
        assert rows[17] == ("", "JMP", "1")
        assert rows[18] == ("", "end", "")

    def test_sequential_loops(self):
        instructions = generate([
            "while (a < 3) {", "a = a + 1;", "}",
            "while (b < 3) {", "b = b + 1;", "}",
        ])
        _check_structure(instructions)
        assert instructions.at(5).operator == Address(10)
        assert instructions.at(14).operator == Address(19)
        assert instructions.at(18).operator == Address(10)

    def test_unclosed_loop_exits_to_end(self):
        gen = TripletGenerator()
        instructions = gen.generate(["while (a < 1) {", "a = a + 1;"])
        _check_structure(instructions)
        assert instructions.at(5).operator == Address(len(instructions))
        assert gen.diagnostics[0].message == "Loop is never closed"


# ─── Structural properties ────────────────

PROGRAMS = [
    ["IntegerType a;", "a = 10;"],
    LOOP_AND,
    LOOP_OR,
    ["while (a > 0 && b > 0 || c > 0 && d > 0) {", "a = a - 1;", "}"],
    ["while (a < 10) {", "while (b < 5) {", "b = b + 1;", "}", "}"],
    ["while (x != 0) {", "x = x - 1;"],
    [],
]


class TestStructure:
    @pytest.mark.parametrize("lines", PROGRAMS)
    def test_no_unresolved_and_valid_targets(self, lines):
        _check_structure(generate(lines))

    def test_empty_program_is_just_end(self):
        assert _rows([]) == [("", "end", "")]

    def test_generator_is_reusable(self):
        gen = TripletGenerator()
        first = gen.generate(LOOP_OR).rows()
        gen.generate(LOOP_AND)
        second = gen.generate(LOOP_OR).rows()
        assert first == second
        assert gen.backpatch_events == 1

    def test_bad_lines_are_skipped_with_diagnostics(self):
        gen = TripletGenerator()
        rows = gen.generate(["a = ;", "a = 1;", "while (a) {"]).rows()
        assert rows == [("T1", "1", "="), ("a", "T1", "="), ("", "end", "")]
        assert [d.line for d in gen.diagnostics] == [1, 3]


# ─── InstructionList ──────────────────────

class TestInstructionList:
    def _list_with_branch(self):
        instructions = InstructionList()
        instructions.append(Instruction(Temporary(1), Variable("a"), "="))
        instructions.append(Instruction(Flag(1), Opcode.FALSE, UNRESOLVED))
        return instructions

    def test_addresses_are_positions(self):
        instructions = self._list_with_branch()
        assert len(instructions) == 2
        assert instructions.next_address == 3
        assert instructions.unresolved() == [2]
        assert str(instructions.at(2)) == "(TR1,false,?)"

    def test_resolve_once(self):
        instructions = self._list_with_branch()
        instructions.resolve(2, 7)
        assert instructions.at(2).operator == Address(7)
        assert instructions.unresolved() == []

    def test_resolve_twice_raises(self):
        instructions = self._list_with_branch()
        instructions.resolve(2, 7)
        with pytest.raises(BackpatchError) as exc:
            instructions.resolve(2, 8)
        assert exc.value.address == 2

    def test_resolve_non_branch_raises(self):
        instructions = self._list_with_branch()
        with pytest.raises(BackpatchError):
            instructions.resolve(1, 3)

    @pytest.mark.parametrize("address", [0, 3, -1])
    def test_out_of_range(self, address):
        with pytest.raises(IndexError):
            self._list_with_branch().at(address)
