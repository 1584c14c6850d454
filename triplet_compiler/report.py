"""
Text reports for the tripcc artifacts.

  - triplet table:  fixed-column listing, one row per instruction
  - dual listing:   input lines, then the optimizer's output
  - symbol / error tables from the validator
"""

from __future__ import annotations
from typing import Iterable, List, Sequence

from .triplets import Instruction
from .validator import ValidationReport

TRIPLET_HEADER = f"{'Line':<8} {'Data Object':<15} {'Data Source':<15} {'Operator':<10}"
TRIPLET_RULE = "-" * 50
LISTING_RULE = "=" * 50


def format_triplet_table(instructions: Iterable[Instruction]) -> str:
    """Header, separator, then ``line object source operator`` rows."""
    lines = [TRIPLET_HEADER, TRIPLET_RULE]
    for number, instr in enumerate(instructions, start=1):
        obj, source, op = instr.columns()
        lines.append(f"{number:<8d} {obj:<15} {source:<15} {op:<10}".rstrip())
    return "\n".join(lines) + "\n"


def format_dual_listing(source_lines: Sequence[str], optimized_lines: Sequence[str]) -> str:
    """Input lines verbatim, then the optimized code."""
    lines: List[str] = ["; Source", LISTING_RULE]
    lines.extend(source_lines)
    lines.append("")
    lines.append("; Optimized")
    lines.append(LISTING_RULE)
    lines.extend(line for line in optimized_lines if line.strip())
    return "\n".join(lines) + "\n"


def format_symbol_table(report: ValidationReport) -> str:
    lines = [f"{'Lexeme':<20} {'Type':<20}", "-" * 41]
    for lexeme, category in report.symbols.items():
        lines.append(f"{lexeme:<20} {category:<20}".rstrip())
    return "\n".join(lines) + "\n"


def format_error_table(report: ValidationReport) -> str:
    lines = [f"{'Token':<24} {'Lexeme':<16} {'Line':<6} Description", "-" * 80]
    for err in report.errors:
        lines.append(f"{err.kind.value:<24} {err.lexeme:<16} {err.line:<6d} {err.message}")
    return "\n".join(lines) + "\n"
