"""
Run-length Optimizer for the tape language compiler.

Pointer moves and cell arithmetic are the only operators that can be
merged: nothing observes the intermediate pointer or cell value between
two identical ``>``/``<``/``+``/``-`` in a row, so a run of N collapses
into one instruction with magnitude N without changing behaviour. ``.``
and ``,`` are individually observable and are never merged.

Also produces the compile report shown to users: how many operators the
source had, how many instructions came out, and how many were saved.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .validator import count_operators

if TYPE_CHECKING:
    from .compiler import CompiledProgram

MERGEABLE = frozenset("><+-")


def run_length(program: str, start: int) -> int:
    """Length of the run of ``program[start]`` beginning at ``start``."""
    cmd = program[start]
    end = start + 1
    while end < len(program) and program[end] == cmd:
        end += 1
    return end - start


@dataclass
class CompileReport:
    original_ops: int
    compiled_ops: int
    saved_ops: int
    listing: str

    @property
    def efficiency(self) -> float:
        """Percentage of source operators removed by merging."""
        if self.original_ops == 0:
            return 0.0
        return self.saved_ops * 100.0 / self.original_ops

    def render(self) -> str:
        lines = [
            f"Original operations: {self.original_ops}",
            f"Compiled operations: {self.compiled_ops}",
            f"Operations saved by optimization: {self.saved_ops}",
            f"Efficiency improvement: {self.efficiency:.1f}%",
            "",
            "Compiled instructions:",
            "-" * 40,
        ]
        if self.listing:
            lines.append(self.listing)
        return "\n".join(lines)


def analyze(program: str, compiled: "CompiledProgram") -> CompileReport:
    """Summarize what run-length merging did to ``program``."""
    saved = sum(instr.arg - 1 for instr in compiled
                if instr.op in MERGEABLE and instr.arg > 1)
    return CompileReport(
        original_ops=count_operators(program),
        compiled_ops=len(compiled),
        saved_ops=saved,
        listing=compiled.listing(),
    )
