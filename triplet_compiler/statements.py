"""
Statement and operand definitions for the tripcc compiler.

Defines the immutable statement model produced by the parser from the
optimizer's output and consumed by both the triplet generator and the
assembly lowering. Each statement is one logical source line.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple, Union


# ──────────────────────────────────────────────
# Operands
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Literal:
    """A numeric or string literal, kept in its source spelling."""
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Variable:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Temporary:
    """Compiler temporary, rendered as T<index>."""
    index: int

    def __str__(self) -> str:
        return f"T{self.index}"


@dataclass(frozen=True)
class Flag:
    """Condition result register, rendered as TR<index>."""
    index: int

    def __str__(self) -> str:
        return f"TR{self.index}"


Operand = Union[Literal, Variable, Temporary, Flag]
SourceOperand = Union[Literal, Variable]


# ──────────────────────────────────────────────
# Expressions
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Term:
    """One additive term: an optional leading minus and a */÷ chain.

    ``factors[0] operators[0] factors[1] operators[1] ...``
    """
    factors: Tuple[SourceOperand, ...]
    operators: Tuple[str, ...] = ()
    negated: bool = False

    @property
    def is_product(self) -> bool:
        return bool(self.operators)

    def __str__(self) -> str:
        parts = [str(self.factors[0])]
        for op, factor in zip(self.operators, self.factors[1:]):
            parts.append(op)
            parts.append(str(factor))
        return " ".join(parts)


@dataclass(frozen=True)
class Expression:
    """Right-hand side of an assignment, split on top-level + and -."""
    terms: Tuple[Term, ...]

    @property
    def is_simple(self) -> bool:
        """True for a bare operand with no operator at all."""
        return len(self.terms) == 1 and not self.terms[0].is_product and not self.terms[0].negated

    def __str__(self) -> str:
        out = []
        for i, term in enumerate(self.terms):
            if i == 0:
                out.append(f"-{term}" if term.negated else str(term))
            else:
                out.append(f"{'-' if term.negated else '+'} {term}")
        return " ".join(out)


# ──────────────────────────────────────────────
# Conditions
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Comparison:
    left: SourceOperand
    op: str                     # "<", ">", "==", "!=", "<=", ">="
    right: SourceOperand

    def __str__(self) -> str:
        return f"{self.left} {self.op} {self.right}"


@dataclass(frozen=True)
class Condition:
    """Loop condition in disjunctive form.

    ``disjuncts`` is split on ``||``; each disjunct is an ``&&`` chain of
    comparisons, so ``&&`` binds tighter than ``||``.
    """
    disjuncts: Tuple[Tuple[Comparison, ...], ...]

    @property
    def comparisons(self) -> Tuple[Comparison, ...]:
        return tuple(c for chain in self.disjuncts for c in chain)

    @property
    def is_simple(self) -> bool:
        return len(self.comparisons) == 1

    def __str__(self) -> str:
        return " || ".join(" && ".join(str(c) for c in chain) for chain in self.disjuncts)


# ──────────────────────────────────────────────
# Statements
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Statement:
    """Base class for all statements."""
    line: int = 0
    text: str = ""


@dataclass(frozen=True)
class Declaration(Statement):
    """``IntegerType a, b;``"""
    type_name: str = "IntegerType"
    names: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Assignment(Statement):
    """``target = expression;``"""
    target: str = ""
    expression: Expression = Expression(())


@dataclass(frozen=True)
class LoopHeader(Statement):
    """``while (condition) {``"""
    condition: Condition = Condition(())


@dataclass(frozen=True)
class BlockClose(Statement):
    """``}``"""


# ──────────────────────────────────────────────
# Diagnostics
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Diagnostic:
    """A line the pipeline skipped, and why."""
    line: int
    text: str
    message: str

    def __str__(self) -> str:
        return f"L{self.line}: {self.message}: {self.text.strip()!r}"
