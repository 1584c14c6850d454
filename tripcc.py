#!/usr/bin/env python3
"""
tripcc: triplet / pseudo-assembly compiler CLI

Usage:
    python tripcc.py <input.src> [-o OUTDIR] [--profile generic|jsj]
                     [--no-optimize] [--validate] [--strict] [--tables]
                     [--print triplet|asm|listing] [--verbose] [--log-dir DIR]

Writes three artifacts into OUTDIR (default: current directory):
    triplet.txt    triplet table (line, object, source, operator)
    optimized.txt  source listing followed by the optimized lines
    assembly.asm   pseudo-assembly listing

Examples:
    python tripcc.py loop.src
    python tripcc.py loop.src -o build --validate --tables
    python tripcc.py loop.src --profile jsj --strict --print triplet
"""

import argparse
import logging
import os
import sys

# Allow running from project root or as module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from triplet_compiler import __version__
from triplet_compiler.log_setup import setup_logging
from triplet_compiler.pipeline import PROFILES, compile_lines, write_artifacts
from triplet_compiler.report import format_error_table


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="tripcc",
        description="Triplet and pseudo-assembly compiler",
        epilog="Profiles: " + ", ".join(PROFILES.keys()),
    )
    parser.add_argument("input", help="Input source file (one statement per line)")
    parser.add_argument("-o", "--output-dir", default=".",
                        help="Directory for the generated artifacts (default: .)")
    parser.add_argument("--profile", default="generic",
                        choices=list(PROFILES.keys()),
                        help="Identifier profile used by validation (default: generic)")
    parser.add_argument("--no-optimize", action="store_true",
                        help="Skip the constant-subexpression pass")
    parser.add_argument("--validate", action="store_true",
                        help="Check declarations, identifiers and types first")
    parser.add_argument("--strict", action="store_true",
                        help="Exit with status 1 on validation errors (implies --validate)")
    parser.add_argument("--tables", action="store_true",
                        help="Also write the symbol and error tables")
    parser.add_argument("--print", dest="print_artifact",
                        choices=["triplet", "asm", "listing"], default=None,
                        help="Echo one artifact to stdout")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log compilation details to stderr")
    parser.add_argument("--log-dir", default=None,
                        help="Also write a DEBUG log file into this directory")
    parser.add_argument("--version", action="version",
                        version=f"tripcc {__version__}")

    args = parser.parse_args(argv)
    log = setup_logging(
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
        log_dir=args.log_dir,
    )

    # Read input
    try:
        with open(args.input, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return 1

    validate = args.validate or args.strict or args.tables
    log.debug("Input: %s (%d lines), profile %s", args.input, len(lines), args.profile)

    try:
        result = compile_lines(lines, profile=args.profile,
                               optimize=not args.no_optimize, validate=validate)

        if args.strict and result.validation is not None and not result.validation.ok:
            print(format_error_table(result.validation), file=sys.stderr, end="")
            return 1

        written = write_artifacts(result, args.output_dir, tables=args.tables)

        if args.print_artifact == "triplet":
            print(result.triplet_table, end="")
        elif args.print_artifact == "asm":
            print(result.assembly)
        elif args.print_artifact == "listing":
            print(result.listing, end="")

        for diag in result.diagnostics:
            print(f"warning: {diag}", file=sys.stderr)
        if args.verbose:
            for key, path in written.items():
                log.info("%s -> %s", key, path)
            log.info("Generated %d triplets", len(result.instructions))

    except OSError as e:
        print(f"Error writing artifacts: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal compiler error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
