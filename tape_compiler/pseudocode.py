"""
Pseudocode generator for the tape language.

Tree-walk style emitter over the raw text: one output line per operator,
loop operators open and close an indentation level. This is a pure
translation; nothing is executed and the pointer values shown next to
``pointer++`` / ``pointer--`` are a static running count, not the result
of any pointer policy.
"""

from __future__ import annotations
from typing import List

INDENT = "  "

_CELL_BEHAVIOR = {
    "WRAP": "wrap around (0-255)",
    "UNLIMITED": "unlimited range",
    "ERROR": "error on overflow/underflow",
}

# (increment suffix, decrement suffix) per cell policy
_ARITH_SUFFIX = {
    "WRAP": ("(mod 256)", "(mod 256)"),
    "UNLIMITED": ("(unlimited)", "(unlimited)"),
    "ERROR": ("(0-255, error on overflow)", "(0-255, error on underflow)"),
}


def _policy_key(cell_policy) -> str:
    # accepts a CellPolicy member or its name
    return getattr(cell_policy, "name", str(cell_policy)).upper()


def describe(program: str, memory_size: int = 30000, cell_policy="WRAP",
             pointer: int = 0) -> str:
    """Translate ``program`` into indented, line-per-operator pseudocode."""
    key = _policy_key(cell_policy)
    inc_suffix, dec_suffix = _ARITH_SUFFIX.get(key, _ARITH_SUFFIX["WRAP"])

    lines: List[str] = [
        f"Program loaded with {len(program)} characters.",
        f"Memory initialized with {memory_size} cells.",
        f"Pointer initialized at position {pointer}.",
        f"pointer = {pointer}",
        "",
        f"Cell behavior: {_CELL_BEHAVIOR.get(key, _CELL_BEHAVIOR['WRAP'])}",
        "",
    ]

    depth = 0
    position = 0
    for ch in program:
        pad = INDENT * depth
        if ch == ">":
            position += 1
            lines.append(f"{pad}pointer++ ({position})")
        elif ch == "<":
            position -= 1
            lines.append(f"{pad}pointer-- ({position})")
        elif ch == "+":
            lines.append(f"{pad}memory[pointer] += 1 {inc_suffix}")
        elif ch == "-":
            lines.append(f"{pad}memory[pointer] -= 1 {dec_suffix}")
        elif ch == ".":
            lines.append(f"{pad}print(char(memory[pointer]))")
        elif ch == ",":
            lines.append(f"{pad}memory[pointer] = input_char()")
        elif ch == "[":
            lines.append(f"{pad}while memory[pointer] != 0:")
            depth += 1
        elif ch == "]":
            depth = max(0, depth - 1)
            lines.append(f"{INDENT * depth}end while")

    return "\n".join(lines) + "\n"
