"""
Pseudo-assembly lowering for the tripcc compiler.

Re-walks the optimized statement lines and emits a symbolic two-register
listing. Independent of the triplet generator.

Register usage convention:
  - AX: primary accumulator, holds every intermediate result
  - BX: secondary operand register for MUL / DIV

Layout:
  - Every declared variable is zero-initialized first, in declaration
    order (MOV AX, 0 / MOV var, AX)
  - Products are computed in AX; when they feed an add/subtract chain
    they are spilled to a generated temporary (_t1, _t2, ...)
  - Loops: WHILEn: <tests> <body> JMP WHILEn / ENDWHILEn:
    Each && test branches to ENDWHILEn when it fails. With || every
    disjunct but the last fails over to ORn_k and succeeds with
    JMP BODYn.
"""

from __future__ import annotations
import logging
from typing import Iterable, List, Tuple, Union

from .parser import parse_program
from .statements import (Assignment, BlockClose, Condition, Declaration, Diagnostic,
                         LoopHeader, Statement, Term)

log = logging.getLogger("tripcc.codegen")

REG_PRIMARY = "AX"
REG_SECONDARY = "BX"

# Branch taken when the comparison FAILS
NEGATED_BRANCH = {
    "<": "JGE",
    ">": "JLE",
    "==": "JNE",
    "!=": "JE",
    "<=": "JG",
    ">=": "JL",
}

ADDITIVE = {"+": "ADD", "-": "SUB"}
MULTIPLICATIVE = {"*": "MUL", "/": "DIV"}


class AssemblyLowering:
    """Generates pseudo-assembly text from optimized statement lines."""

    def __init__(self):
        self._reset()

    def _reset(self):
        self._code_lines: List[str] = []
        self._label_counter = 0
        self._temp_counter = 0
        self._loops: List[Tuple[str, str, int]] = []
        self.diagnostics: List[Diagnostic] = []

    # ── Output helpers ────────────────────────

    def _emit(self, mnemonic: str, operands: str = ""):
        """Emit one instruction."""
        line = f"{mnemonic:<8}{operands}" if operands else mnemonic
        self._code_lines.append(f"        {line}")

    def _emit_label(self, label: str):
        self._code_lines.append(f"{label}:")

    def _new_temp(self) -> str:
        self._temp_counter += 1
        return f"_t{self._temp_counter}"

    def _new_loop_id(self) -> int:
        self._label_counter += 1
        return self._label_counter

    # ── Main entry point ──────────────────────

    def lower(self, lines: Iterable[Union[str, Statement]]) -> str:
        """Return the assembly listing for the given lines."""
        self._reset()
        statements, diagnostics = parse_program(lines)
        self.diagnostics.extend(diagnostics)

        for stmt in statements:
            if isinstance(stmt, Declaration):
                for name in stmt.names:
                    self._emit("MOV", f"{REG_PRIMARY}, 0")
                    self._emit("MOV", f"{name}, {REG_PRIMARY}")

        for stmt in statements:
            self._gen_statement(stmt)

        while self._loops:
            top, end, line = self._loops.pop()
            log.warning("L%d: loop %s is never closed", line, top)
            self.diagnostics.append(Diagnostic(line, top, "Loop is never closed"))
            self._emit("JMP", top)
            self._emit_label(end)

        log.info("Lowered to %d assembly line(s)", len(self._code_lines))
        return "\n".join(self._code_lines)

    def _gen_statement(self, stmt: Statement):
        if isinstance(stmt, Declaration):
            return
        elif isinstance(stmt, Assignment):
            self._gen_assignment(stmt)
        elif isinstance(stmt, LoopHeader):
            self._gen_loop_header(stmt)
        elif isinstance(stmt, BlockClose):
            self._gen_block_close(stmt)

    # ── Assignments ───────────────────────────

    def _gen_product(self, term: Term):
        """AX = f0 op f1 op f2 ... using BX for each right operand."""
        self._emit("MOV", f"{REG_PRIMARY}, {term.factors[0]}")
        for op, factor in zip(term.operators, term.factors[1:]):
            self._emit("MOV", f"{REG_SECONDARY}, {factor}")
            self._emit(MULTIPLICATIVE[op], REG_SECONDARY)

    def _gen_assignment(self, stmt: Assignment):
        terms = stmt.expression.terms

        # A lone product is stored straight from AX
        if len(terms) == 1 and terms[0].is_product and not terms[0].negated:
            self._gen_product(terms[0])
            self._emit("MOV", f"{stmt.target}, {REG_PRIMARY}")
            return

        values: List[str] = []
        for term in terms:
            if term.is_product:
                self._gen_product(term)
                temp = self._new_temp()
                self._emit("MOV", f"{temp}, {REG_PRIMARY}")
                values.append(temp)
            else:
                values.append(str(term.factors[0]))

        if terms[0].negated:
            self._emit("MOV", f"{REG_PRIMARY}, 0")
            self._emit("SUB", f"{REG_PRIMARY}, {values[0]}")
        else:
            self._emit("MOV", f"{REG_PRIMARY}, {values[0]}")

        for term, value in zip(terms[1:], values[1:]):
            self._emit(ADDITIVE["-" if term.negated else "+"], f"{REG_PRIMARY}, {value}")

        self._emit("MOV", f"{stmt.target}, {REG_PRIMARY}")

    # ── Loops ─────────────────────────────────

    def _gen_condition(self, cond: Condition, loop_id: int, end_label: str):
        body_label = f"BODY{loop_id}"
        for d, chain in enumerate(cond.disjuncts):
            last = d == len(cond.disjuncts) - 1
            fail_label = end_label if last else f"OR{loop_id}_{d + 1}"
            for cmp in chain:
                self._emit("MOV", f"{REG_PRIMARY}, {cmp.left}")
                self._emit("CMP", f"{REG_PRIMARY}, {cmp.right}")
                self._emit(NEGATED_BRANCH[cmp.op], fail_label)
            if not last:
                self._emit("JMP", body_label)
                self._emit_label(fail_label)
        if len(cond.disjuncts) > 1:
            self._emit_label(body_label)

    def _gen_loop_header(self, stmt: LoopHeader):
        loop_id = self._new_loop_id()
        top_label = f"WHILE{loop_id}"
        end_label = f"ENDWHILE{loop_id}"
        self._loops.append((top_label, end_label, stmt.line))

        self._emit_label(top_label)
        self._gen_condition(stmt.condition, loop_id, end_label)

    def _gen_block_close(self, stmt: BlockClose):
        if not self._loops:
            log.warning("L%d: '}' without an open loop", stmt.line)
            self.diagnostics.append(Diagnostic(stmt.line, stmt.text, "'}' without an open loop"))
            return
        top_label, end_label, _ = self._loops.pop()
        self._emit("JMP", top_label)
        self._emit_label(end_label)


def lower(lines: Iterable[Union[str, Statement]]) -> str:
    """Module-level shortcut around AssemblyLowering().lower()."""
    return AssemblyLowering().lower(lines)
