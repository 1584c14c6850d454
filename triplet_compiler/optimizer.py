"""
Constant-subexpression optimizer for the tripcc compiler.

Works on source statement lines before they are parsed. Every assignment
whose right-hand side is a pure literal expression (numbers and + - * /,
at least one operator) binds that expression to its target. Later
assignments that contain the same token sequence get it replaced by the
bound variable.

A replacement is only made where it cannot change the value:
  - the occurrence is not next to a * or / token
  - an occurrence preceded by '-' must not contain a top-level + or -
  - a subexpression that starts with a sign only matches at the start
  - the bound variable is assigned exactly once, before the use, and
    (if the binding is inside a loop) the use is in that same loop

Candidates are tried longest first, occurrences left to right, until no
candidate matches. If nothing changed the input list is returned as is.
"""

from __future__ import annotations
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .lexer import Lexer, LexerError, Token, TokenType, ARITHMETIC_OPS, NUMERIC_LITERALS

log = logging.getLogger("tripcc.optimizer")

_MULDIV = ("*", "/")
_ADDSUB = ("+", "-")
_OPERATOR_TEXTS = frozenset(t.value for t in ARITHMETIC_OPS)


def _indent(line: str) -> str:
    return line[:len(line) - len(line.lstrip())]


def _is_pure_constant(tokens: List[Token]) -> bool:
    """Numbers and arithmetic operators only, with at least one operator."""
    has_op = False
    for tok in tokens:
        if tok.type in ARITHMETIC_OPS:
            has_op = True
        elif tok.type not in NUMERIC_LITERALS:
            return False
    return has_op and any(tok.type in NUMERIC_LITERALS for tok in tokens)


def _has_additive(texts: Sequence[str]) -> bool:
    """True when the token run has a binary (not sign) + or -."""
    for i, text in enumerate(texts):
        if text in _ADDSUB and i > 0 and texts[i - 1] not in _OPERATOR_TEXTS:
            return True
    return False


def _render(texts: Sequence[str]) -> str:
    """Join expression tokens, spacing binary operators and attaching signs."""
    out: List[str] = []
    prev: Optional[str] = None
    for text in texts:
        if text in _OPERATOR_TEXTS and prev is not None and prev not in _OPERATOR_TEXTS:
            out.append(f" {text} ")
        else:
            out.append(text)
        prev = text
    return "".join(out)


@dataclass
class _Line:
    """Scan result for one input line."""
    index: int
    text: str
    loop_id: Optional[int]
    target: Optional[str] = None
    rhs: Optional[List[str]] = None
    pure: bool = False


@dataclass(frozen=True)
class _Binding:
    expr: tuple
    var: str
    index: int
    loop_id: Optional[int]


class ConstantFoldingOptimizer:
    """Reuses variables that already hold a literal subexpression."""

    def __init__(self):
        self.replacements = 0

    def optimize(self, lines: Sequence[str]) -> List[str]:
        """Return the optimized lines (a copy of the input when nothing changed)."""
        self.replacements = 0
        scanned = self._scan(lines)
        bindings = self._collect_bindings(scanned)

        changed = False
        result: List[str] = []
        for entry in scanned:
            if entry.rhs is None:
                result.append(entry.text)
                continue
            new_rhs = self._rewrite(entry, bindings)
            if new_rhs == entry.rhs:
                result.append(entry.text)
                continue
            changed = True
            new_line = f"{_indent(entry.text)}{entry.target} = {_render(new_rhs)};"
            log.debug("L%d: %r -> %r", entry.index + 1, entry.text.strip(), new_line.strip())
            result.append(new_line)

        if not changed:
            return list(lines)
        log.info("Constant folding: %d replacement(s)", self.replacements)
        return result

    # ── Pass 0: tokenize and classify ─────────

    def _scan(self, lines: Sequence[str]) -> List[_Line]:
        scanned: List[_Line] = []
        loop_stack: List[int] = []
        loop_counter = 0
        for index, text in enumerate(lines):
            entry = _Line(index=index, text=text,
                          loop_id=loop_stack[-1] if loop_stack else None)
            scanned.append(entry)
            if not text.strip():
                continue
            try:
                tokens = Lexer(text, index + 1).tokenize()
            except LexerError as e:
                log.debug("L%d left untouched: %s", index + 1, e)
                continue

            first = tokens[0].type
            if first == TokenType.KW_WHILE:
                loop_counter += 1
                loop_stack.append(loop_counter)
            elif first == TokenType.RBRACE:
                if loop_stack:
                    loop_stack.pop()
            elif (first == TokenType.IDENT and len(tokens) > 2
                    and tokens[1].type == TokenType.ASSIGN):
                rhs_tokens = [t for t in tokens[2:] if t.type not in (TokenType.SEMI, TokenType.EOF)]
                if not rhs_tokens:
                    continue
                entry.target = tokens[0].value
                entry.rhs = [t.text for t in rhs_tokens]
                entry.pure = _is_pure_constant(rhs_tokens)
        return scanned

    # ── Pass 1: record constant expressions ───

    def _collect_bindings(self, scanned: List[_Line]) -> Dict[tuple, List[_Binding]]:
        assign_counts = Counter(e.target for e in scanned if e.target is not None)
        bindings: Dict[tuple, List[_Binding]] = {}
        for entry in scanned:
            if not entry.pure or assign_counts[entry.target] != 1:
                continue
            key = tuple(entry.rhs)
            bindings.setdefault(key, []).append(
                _Binding(expr=key, var=entry.target, index=entry.index, loop_id=entry.loop_id))
        return bindings

    # ── Pass 2: replace occurrences ───────────

    @staticmethod
    def _usable(binding: _Binding, entry: _Line) -> bool:
        if binding.var == entry.target or binding.index >= entry.index:
            return False
        return binding.loop_id is None or binding.loop_id == entry.loop_id

    def _candidates(self, entry: _Line, bindings: Dict[tuple, List[_Binding]]) -> List[_Binding]:
        found = []
        for options in bindings.values():
            for binding in options:
                if self._usable(binding, entry):
                    found.append(binding)
                    break
        # Longest expression first; ties go to the earliest binding
        found.sort(key=lambda b: (-len(b.expr), b.index))
        return found

    @staticmethod
    def _safe_at(rhs: List[str], start: int, expr: tuple) -> bool:
        end = start + len(expr)
        before = rhs[start - 1] if start > 0 else None
        after = rhs[end] if end < len(rhs) else None
        if before in _MULDIV or after in _MULDIV:
            return False
        if expr[0] in _OPERATOR_TEXTS and start != 0:
            return False
        if before == "-" and _has_additive(expr):
            return False
        return True

    def _find(self, rhs: List[str], expr: tuple) -> int:
        n = len(expr)
        for start in range(len(rhs) - n + 1):
            if tuple(rhs[start:start + n]) == expr and self._safe_at(rhs, start, expr):
                return start
        return -1

    def _rewrite(self, entry: _Line, bindings: Dict[tuple, List[_Binding]]) -> List[str]:
        rhs = list(entry.rhs)
        candidates = self._candidates(entry, bindings)
        replaced = True
        while replaced:
            replaced = False
            for binding in candidates:
                start = self._find(rhs, binding.expr)
                if start < 0:
                    continue
                rhs[start:start + len(binding.expr)] = [binding.var]
                self.replacements += 1
                replaced = True
                break
        return rhs


def optimize(lines: Sequence[str]) -> List[str]:
    """Module-level shortcut: run the constant folding pass once."""
    return ConstantFoldingOptimizer().optimize(lines)
