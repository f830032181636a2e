"""
Syntax Validator for the tape language.

Scans program text once and reports every character outside the
eight-operator alphabet as a (position, character) pair. Never raises and
never stops early. Bracket balance is a structural property and is left
to the compiler.
"""

from __future__ import annotations
from typing import List, NamedTuple

OPERATORS = frozenset("><+-.,[]")

MOVE_RIGHT = ">"
MOVE_LEFT = "<"
INCREMENT = "+"
DECREMENT = "-"
OUTPUT = "."
INPUT = ","
LOOP_OPEN = "["
LOOP_CLOSE = "]"


class SyntaxViolation(NamedTuple):
    position: int
    char: str

    def __str__(self):
        return f"pos {self.position}: '{self.char}'"


def check_syntax(program: str) -> List[SyntaxViolation]:
    """Return every non-operator character with its zero-based position."""
    return [SyntaxViolation(i, ch) for i, ch in enumerate(program)
            if ch not in OPERATORS]


def count_operators(program: str) -> int:
    """Number of legal operator characters in ``program``."""
    return sum(1 for ch in program if ch in OPERATORS)


def format_violations(violations: List[SyntaxViolation], limit: int = 200) -> str:
    """Human-readable syntax report (at most ``limit`` entries listed)."""
    if not violations:
        return "No syntax errors detected."
    lines = [f"Found {len(violations)} issue(s):"]
    lines.extend(str(v) for v in violations[:limit])
    return "\n".join(lines)
