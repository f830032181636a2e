"""
Bytecode Compiler for the tape language.

Turns validated program text into a flat instruction list with every loop
jump already resolved, so the fast executors never scan for brackets.

How it works:
  1. Refuse the whole program if the validator reports any character
     outside the operator alphabet (nothing is emitted).
  2. Scan left to right keeping a stack of pending ``[`` slots.
       ``[``   push the current output length, emit a placeholder whose
               target is UNRESOLVED
       ``]``   pop the matching slot, emit ``]`` pointing back at it, and
               back-patch the ``[`` to point at this ``]``
       ``> < + -``  merge a maximal run of the same operator into one
               instruction carrying the run length
       ``. ,``  one instruction each, never merged
  3. A non-empty stack at the end means an unmatched ``[``.

Invariant: for every pair, program[open].arg == close and
program[close].arg == open. Targets are fixed once compile() returns.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from collections.abc import Sequence
from typing import Iterator, List

from .validator import (
    SyntaxViolation, check_syntax,
    LOOP_OPEN, LOOP_CLOSE, INPUT, OUTPUT,
)
from .optimizer import MERGEABLE, run_length

__all__ = [
    'Instruction', 'CompiledProgram', 'CompileError', 'SyntaxViolationError',
    'UnmatchedBracketError', 'compile_program', 'UNRESOLVED',
]

log = logging.getLogger(__name__)

UNRESOLVED = -1


class CompileError(Exception):
    """Raised when a program cannot be compiled. No bytecode is produced."""


class SyntaxViolationError(CompileError):
    """Program contains characters outside the operator alphabet."""
    def __init__(self, violations: Sequence[SyntaxViolation]):
        self.violations = list(violations)
        pairs = " ".join(f"({v.position}, '{v.char}')" for v in self.violations)
        super().__init__(f"Syntax errors found: {pairs}")


class UnmatchedBracketError(CompileError):
    """A ``[`` without a closing ``]`` or a ``]`` without an opening ``[``.

    ``bracket`` is the offending character, ``position`` its offset in the
    program text.
    """
    def __init__(self, bracket: str, position: int = -1):
        self.bracket = bracket
        self.position = position
        super().__init__(f"Unmatched '{bracket}' found.")


# ──────────────────────────────────────────────
# Instruction stream
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """One compiled unit.

    ``arg`` is the merged magnitude for ``> < + -``, 0 for ``. ,`` and the
    index of the partner bracket for ``[`` / ``]``.
    """
    op: str
    arg: int = 0

    def __iter__(self):
        # unpacks as (op, arg)
        yield self.op
        yield self.arg

    def __str__(self):
        if self.op in (OUTPUT, INPUT):
            return self.op
        return f"{self.op} {self.arg}"


class CompiledProgram(Sequence):
    """Immutable, fully resolved instruction list."""

    def __init__(self, instructions: Sequence[Instruction] = ()):
        self._instructions = tuple(instructions)

    def __getitem__(self, index):
        return self._instructions[index]

    def __len__(self) -> int:
        return len(self._instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions)

    def __eq__(self, other):
        if isinstance(other, CompiledProgram):
            return self._instructions == other._instructions
        if isinstance(other, (list, tuple)):
            return list(self._instructions) == [
                i if isinstance(i, Instruction) else Instruction(*i) for i in other]
        return NotImplemented

    def __repr__(self):
        return f"CompiledProgram({len(self)} instructions)"

    def listing(self) -> str:
        """One ``"  i: op arg"`` line per instruction."""
        return "\n".join(f"{i:3d}: {instr}" for i, instr in enumerate(self._instructions))


# ──────────────────────────────────────────────
# Compiler
# ──────────────────────────────────────────────

def compile_program(program: str) -> CompiledProgram:
    """Compile ``program`` into a resolved CompiledProgram.

    Raises:
        SyntaxViolationError: any character outside the operator alphabet.
        UnmatchedBracketError: unbalanced ``[`` / ``]``.
    """
    violations = check_syntax(program)
    if violations:
        raise SyntaxViolationError(violations)

    out: List[Instruction] = []
    pending: List[int] = []       # slot indices of unresolved '['
    positions: List[int] = []     # text offsets of those '[' for diagnostics
    pc = 0
    length = len(program)

    while pc < length:
        cmd = program[pc]

        if cmd == LOOP_OPEN:
            pending.append(len(out))
            positions.append(pc)
            out.append(Instruction(LOOP_OPEN, UNRESOLVED))
            pc += 1
        elif cmd == LOOP_CLOSE:
            if not pending:
                raise UnmatchedBracketError(LOOP_CLOSE, pc)
            start = pending.pop()
            positions.pop()
            end = len(out)
            out.append(Instruction(LOOP_CLOSE, start))
            out[start] = Instruction(LOOP_OPEN, end)
            pc += 1
        elif cmd in MERGEABLE:
            count = run_length(program, pc)
            out.append(Instruction(cmd, count))
            pc += count
        else:  # '.' or ','
            out.append(Instruction(cmd, 0))
            pc += 1

    if pending:
        raise UnmatchedBracketError(LOOP_OPEN, positions[-1])

    log.debug("compiled %d chars into %d instructions", length, len(out))
    return CompiledProgram(out)
