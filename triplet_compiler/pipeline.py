"""
Compilation pipeline: validate (optional) -> optimize -> triplets + assembly.

Both back ends read the same optimized line list; neither sees the
other's output. write_artifacts() persists the three text files.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .codegen import AssemblyLowering
from .optimizer import ConstantFoldingOptimizer
from .report import (format_dual_listing, format_error_table, format_symbol_table,
                     format_triplet_table)
from .statements import Diagnostic
from .triplets import InstructionList, TripletGenerator
from .validator import DEFAULT_IDENTIFIER_PATTERN, ValidationReport, Validator

log = logging.getLogger("tripcc.pipeline")


# ──────────────────────────────────────────────
# Profiles
# ──────────────────────────────────────────────

PROFILES = {
    "generic": {
        "identifier": DEFAULT_IDENTIFIER_PATTERN,
        "description": "Any C-style identifier",
    },
    "jsj": {
        "identifier": r"JSJ[a-z][0-9]+",
        "description": "Classroom identifiers: JSJ, one lowercase letter, digits (JSJa1)",
    },
}

DEFAULT_ARTIFACTS = {
    "triplet": "triplet.txt",
    "listing": "optimized.txt",
    "assembly": "assembly.asm",
    "symbols": "symbols.txt",
    "errors": "errors.txt",
}


@dataclass
class CompileResult:
    source_lines: List[str]
    optimized_lines: List[str]
    instructions: InstructionList
    assembly: str
    diagnostics: List[Diagnostic] = field(default_factory=list)
    validation: Optional[ValidationReport] = None

    @property
    def triplet_table(self) -> str:
        return format_triplet_table(self.instructions)

    @property
    def listing(self) -> str:
        return format_dual_listing(self.source_lines, self.optimized_lines)


def compile_lines(lines: Sequence[str], *, profile: str = "generic",
                  optimize: bool = True, validate: bool = False) -> CompileResult:
    """Run the whole pipeline over statement lines."""
    source_lines = list(lines)
    settings = PROFILES.get(profile, PROFILES["generic"])

    report = None
    if validate:
        report = Validator(settings["identifier"]).validate(source_lines)
        for err in report.errors:
            log.warning("%s", err)

    optimized = ConstantFoldingOptimizer().optimize(source_lines) if optimize else list(source_lines)

    triplet_gen = TripletGenerator()
    instructions = triplet_gen.generate(optimized)
    lowering = AssemblyLowering()
    assembly = lowering.lower(optimized)

    return CompileResult(
        source_lines=source_lines,
        optimized_lines=optimized,
        instructions=instructions,
        assembly=assembly,
        diagnostics=list(triplet_gen.diagnostics),
        validation=report,
    )


def write_artifacts(result: CompileResult, out_dir: Path,
                    names: Optional[Dict[str, str]] = None,
                    tables: bool = False) -> Dict[str, Path]:
    """Write triplet table, dual listing and assembly; return their paths."""
    names = {**DEFAULT_ARTIFACTS, **(names or {})}
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    contents = {
        "triplet": result.triplet_table,
        "listing": result.listing,
        "assembly": result.assembly + "\n",
    }
    if tables and result.validation is not None:
        contents["symbols"] = format_symbol_table(result.validation)
        contents["errors"] = format_error_table(result.validation)

    written: Dict[str, Path] = {}
    for key, text in contents.items():
        path = out_dir / names[key]
        path.write_text(text, encoding="utf-8")
        written[key] = path
        log.info("Wrote %s", path)
    return written
