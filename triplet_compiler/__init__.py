"""
tripcc: triplet and pseudo-assembly compiler
=============================================
Lowers a small statement language (typed declarations, arithmetic
assignments, while loops with && / || conditions) into three-address
"triplet" code with resolved jump addresses, and into a two-register
pseudo-assembly listing.

Architecture:
    ┌──────────┐    ┌───────────┐    ┌──────────────────┐
    │  Source  │───>│ Optimizer │───>│ TripletGenerator │──> triplet table
    │  lines   │    │ (lines)   │    └──────────────────┘
    └──────────┘    └───────────┘    ┌──────────────────┐
         │                     └────>│ AssemblyLowering │──> assembly text
         v                           └──────────────────┘
    ┌───────────┐
    │ Validator │  (optional: symbol table + error table)
    └───────────┘

    - lexer.py:      Token stream for one statement line
    - parser.py:     Line -> Statement (Declaration, Assignment, LoopHeader, BlockClose)
    - optimizer.py:  Literal constant-subexpression reuse on source lines
    - triplets.py:   Append-only triplet list, short-circuit layout, backpatching
    - codegen.py:    AX/BX pseudo-assembly with labels
    - validator.py:  Declarations, identifiers, type compatibility
    - report.py:     Fixed-column text artifacts
    - pipeline.py:   Orchestration and artifact writing
"""

__version__ = "0.3.0"

from .lexer import Lexer, LexerError, Token, TokenType
from .statements import *
from .parser import ParseError, parse_line, parse_program
from .optimizer import ConstantFoldingOptimizer
from .triplets import (Address, BackpatchError, Instruction, InstructionList, Opcode,
                       TripletGenerator, UNRESOLVED)
from .codegen import AssemblyLowering
from .validator import ValidationReport, Validator
from .pipeline import PROFILES, CompileResult, compile_lines, write_artifacts


def compile_source(source: str, *, profile: str = "generic", optimize: bool = True,
                   validate: bool = False, output: str = "triplet") -> str:
    """Compile source text and return one artifact as text.

    Full pipeline: Optimizer -> TripletGenerator / AssemblyLowering.

    Args:
        source: Statement lines separated by newlines.
        profile: Identifier profile ('generic' or 'jsj'), used by validation.
        optimize: Run the constant-subexpression pass first.
        validate: Run the validator (errors are logged, not raised).
        output: 'triplet' (default), 'asm', or 'listing'.
    """
    result = compile_lines(source.splitlines(), profile=profile,
                           optimize=optimize, validate=validate)
    if output == 'asm':
        return result.assembly
    elif output == 'listing':
        return result.listing
    return result.triplet_table
