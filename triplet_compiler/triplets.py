"""
Triplet (three-address code) generator for the tripcc compiler.

Walks the optimized statement lines and emits an ordered list of
(object, source, operator) instructions. The address of an instruction is
its 1-based position in the list; the list is append-only so addresses
never move once handed out.

Control flow:
  - A loop header records where its condition starts and lays out one
    compare + true/false branch pair per relational test.
  - False branches that leave the loop are emitted with an UNRESOLVED
    target and queued on the loop's pending list.
  - The closing brace emits the back-jump and resolves every pending
    branch of that loop to the address right after it (the single
    backpatch point).
  - Short-circuit branches whose target is only known a few rows later
    (|| true-branches to the body, && false-branches to the next ||
    disjunct) are resolved as soon as that address exists.

Row layout of one relational test starting at address p:

    p     Ta  right  =
    p+1   Tb  left   =
    p+2   Tb  Ta     <op>
    p+3   TRk true   <address>
    p+4   TRk false  <address>
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .parser import parse_program
from .statements import (Assignment, BlockClose, Comparison, Condition, Declaration,
                         Diagnostic, Flag, Literal, LoopHeader, Operand, Statement,
                         Temporary, Term, Variable)

log = logging.getLogger("tripcc.triplets")


# ──────────────────────────────────────────────
# Instruction model
# ──────────────────────────────────────────────

class Opcode(enum.Enum):
    """Source-column keywords of control rows."""
    TRUE = "true"
    FALSE = "false"
    JMP = "JMP"
    END = "end"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Address:
    """A resolved 1-based instruction address."""
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Unresolved:
    """Placeholder target of a branch still waiting for backpatching."""

    def __str__(self) -> str:
        return "?"


UNRESOLVED = Unresolved()

Target = Union[Address, Unresolved]


@dataclass(frozen=True)
class Instruction:
    """One triplet row: (object, source, operator).

    ``operator`` is an operator string for data rows, a Target for branch
    rows and None for the end marker.
    """
    obj: Optional[Operand]
    source: Union[Operand, Opcode]
    operator: Union[str, Target, None] = None

    @property
    def is_branch(self) -> bool:
        return self.source in (Opcode.TRUE, Opcode.FALSE, Opcode.JMP)

    @property
    def is_end(self) -> bool:
        return self.source == Opcode.END

    def columns(self) -> Tuple[str, str, str]:
        """(object, source, operator) as display text."""
        obj = "" if self.obj is None else str(self.obj)
        op = "" if self.operator is None else str(self.operator)
        return obj, str(self.source), op

    def __str__(self) -> str:
        return "({},{},{})".format(*self.columns())


class BackpatchError(Exception):
    """Raised when a row is resolved twice or is not a branch."""

    def __init__(self, message: str, address: int):
        self.address = address
        super().__init__(f"Backpatch error at row {address}: {message}")


class InstructionList:
    """Append-only triplet arena with position-derived addresses."""

    def __init__(self):
        self._rows: List[Instruction] = []

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._rows)

    def __repr__(self) -> str:
        return f"InstructionList({len(self._rows)} rows)"

    @property
    def next_address(self) -> int:
        """Address the next appended instruction will get."""
        return len(self._rows) + 1

    def at(self, address: int) -> Instruction:
        if not 1 <= address <= len(self._rows):
            raise IndexError(f"No instruction at address {address}")
        return self._rows[address - 1]

    def append(self, instr: Instruction) -> int:
        """Append and return the new instruction's address."""
        self._rows.append(instr)
        return len(self._rows)

    def resolve(self, address: int, target: int):
        """Fill the target of an unresolved branch, exactly once."""
        instr = self.at(address)
        if not instr.is_branch:
            raise BackpatchError(f"{instr} is not a branch", address)
        if not isinstance(instr.operator, Unresolved):
            raise BackpatchError(f"{instr} is already resolved", address)
        self._rows[address - 1] = Instruction(instr.obj, instr.source, Address(target))

    def unresolved(self) -> List[int]:
        return [i for i, instr in enumerate(self._rows, start=1)
                if isinstance(instr.operator, Unresolved)]

    def rows(self) -> List[Tuple[str, str, str]]:
        return [instr.columns() for instr in self._rows]


# ──────────────────────────────────────────────
# Generator
# ──────────────────────────────────────────────

@dataclass
class LoopContext:
    start: int                      # address where the condition begins
    line: int = 0
    pending: List[int] = field(default_factory=list)


class TripletGenerator:
    """Generates triplet code from optimized statement lines.

    Reusable: every call to generate() starts from a clean state.
    """

    def __init__(self):
        self._reset()

    def _reset(self):
        self.instructions = InstructionList()
        self.diagnostics: List[Diagnostic] = []
        self.backpatch_events = 0
        self._loops: List[LoopContext] = []
        self._temp_counter = 0

    # ── Output helpers ────────────────────────

    def _emit(self, obj: Optional[Operand], source, operator=None) -> int:
        return self.instructions.append(Instruction(obj, source, operator))

    def _new_temp(self) -> Temporary:
        self._temp_counter += 1
        return Temporary(self._temp_counter)

    def _skip(self, stmt: Statement, message: str):
        log.warning("L%d: %s", stmt.line, message)
        self.diagnostics.append(Diagnostic(stmt.line, stmt.text, message))

    # ── Main generation entry point ───────────

    def generate(self, lines: Iterable[Union[str, Statement]]) -> InstructionList:
        """Generate the triplet program, terminated by an ``end`` row."""
        self._reset()
        statements, diagnostics = parse_program(lines)
        self.diagnostics.extend(diagnostics)

        for stmt in statements:
            self._gen_statement(stmt)

        # Unclosed loops exit to the end marker
        while self._loops:
            ctx = self._loops.pop()
            self.diagnostics.append(Diagnostic(ctx.line, "", "Loop is never closed"))
            log.warning("L%d: loop is never closed, exits resolved to end", ctx.line)
            self._backpatch(ctx, self.instructions.next_address)

        self._emit(None, Opcode.END)
        log.info("Generated %d triplets (%d backpatch event(s), %d skipped line(s))",
                 len(self.instructions), self.backpatch_events, len(self.diagnostics))
        return self.instructions

    def _gen_statement(self, stmt: Statement):
        if isinstance(stmt, Declaration):
            return
        elif isinstance(stmt, Assignment):
            self._gen_assignment(stmt)
        elif isinstance(stmt, LoopHeader):
            self._gen_loop_header(stmt)
        elif isinstance(stmt, BlockClose):
            self._gen_block_close(stmt)
        else:
            self._skip(stmt, f"Unhandled statement type {type(stmt).__name__}")

    # ── Assignments ───────────────────────────

    def _gen_product(self, term: Term) -> Temporary:
        """Lower a * / chain into a fresh temporary."""
        temp = self._new_temp()
        self._emit(temp, term.factors[0], "=")
        for op, factor in zip(term.operators, term.factors[1:]):
            self._emit(temp, factor, op)
        return temp

    def _gen_assignment(self, stmt: Assignment):
        self._temp_counter = 0
        terms = stmt.expression.terms

        # Higher precedence first: every product becomes a single operand
        values: List[Operand] = [
            self._gen_product(term) if term.is_product else term.factors[0]
            for term in terms
        ]

        first = terms[0]
        if isinstance(values[0], Temporary) and not first.negated:
            acc = values[0]
        else:
            acc = self._new_temp()
            if first.negated:
                self._emit(acc, Literal("0"), "=")
                self._emit(acc, values[0], "-")
            else:
                self._emit(acc, values[0], "=")

        for term, value in zip(terms[1:], values[1:]):
            self._emit(acc, value, "-" if term.negated else "+")

        self._emit(Variable(stmt.target), acc, "=")

    # ── Loops ─────────────────────────────────

    def _gen_loop_header(self, stmt: LoopHeader):
        ctx = LoopContext(start=self.instructions.next_address, line=stmt.line)
        self._loops.append(ctx)
        self._gen_condition(stmt.condition, ctx)

    def _gen_comparison(self, cmp: Comparison, index: int):
        right_temp = Temporary(2 * index - 1)
        left_temp = Temporary(2 * index)
        self._emit(right_temp, cmp.right, "=")
        self._emit(left_temp, cmp.left, "=")
        self._emit(left_temp, right_temp, cmp.op)

    def _gen_condition(self, cond: Condition, ctx: LoopContext):
        """Lay out the short-circuit branches of an || of && chains."""
        body_jumps: List[int] = []
        index = 0
        for d, chain in enumerate(cond.disjuncts):
            last_disjunct = d == len(cond.disjuncts) - 1
            next_disjunct_jumps: List[int] = []

            for c, cmp in enumerate(chain):
                index += 1
                last_conjunct = c == len(chain) - 1
                flag = Flag(index)
                self._gen_comparison(cmp, index)

                if last_conjunct and last_disjunct:
                    # Whole condition true: fall into the body two rows on
                    body_start = self.instructions.next_address + 2
                    self._emit(flag, Opcode.TRUE, Address(body_start))
                    ctx.pending.append(self._emit(flag, Opcode.FALSE, UNRESOLVED))
                elif last_conjunct:
                    # This disjunct holds: body start is not laid out yet
                    body_jumps.append(self._emit(flag, Opcode.TRUE, UNRESOLVED))
                    self._emit(flag, Opcode.FALSE, Address(self.instructions.next_address + 1))
                else:
                    self._emit(flag, Opcode.TRUE, Address(self.instructions.next_address + 2))
                    false_at = self._emit(flag, Opcode.FALSE, UNRESOLVED)
                    if last_disjunct:
                        ctx.pending.append(false_at)
                    else:
                        next_disjunct_jumps.append(false_at)

            for address in next_disjunct_jumps:
                self.instructions.resolve(address, self.instructions.next_address)

        body_start = self.instructions.next_address
        for address in body_jumps:
            self.instructions.resolve(address, body_start)

    def _gen_block_close(self, stmt: BlockClose):
        if not self._loops:
            self._skip(stmt, "'}' without an open loop")
            return
        ctx = self._loops.pop()
        self._emit(None, Opcode.JMP, Address(ctx.start))
        self._backpatch(ctx, self.instructions.next_address)

    def _backpatch(self, ctx: LoopContext, address: int):
        """Resolve every pending exit of one loop to ``address``."""
        resolved = 0
        while ctx.pending:
            self.instructions.resolve(ctx.pending.pop(), address)
            resolved += 1
        self.backpatch_events += 1
        log.debug("Backpatched %d exit(s) of loop at %d -> %d", resolved, ctx.start, address)


def generate(lines: Iterable[Union[str, Statement]]) -> InstructionList:
    """Module-level shortcut around TripletGenerator().generate()."""
    return TripletGenerator().generate(lines)
