"""
Tape Language Front End
=======================
Validator, bytecode compiler and diagnostic translators for the
eight-operator tape language ``> < + - . , [ ]``.

Architecture:
    ┌──────────┐    ┌───────────┐    ┌──────────┐    ┌───────────────┐
    │ Program  │───>│ Validator │───>│ Compiler │───>│CompiledProgram│
    │ (text)   │    │ (report)  │    │ (+merge) │    │ (resolved)    │
    └──────────┘    └───────────┘    └──────────┘    └───────────────┘

    - validator.py:  per-character alphabet check, never raises
    - compiler.py:   bracket stack + back-patching, atomic failure
    - optimizer.py:  run-length merging helper and compile report
    - pseudocode.py: line-per-operator description of a program

The front end holds no state; the VM in ``tape_emulator`` owns execution.
"""

__version__ = "0.3.0"

from .validator import (
    OPERATORS, SyntaxViolation, check_syntax, count_operators, format_violations,
)
from .compiler import (
    Instruction, CompiledProgram, CompileError, SyntaxViolationError,
    UnmatchedBracketError, compile_program, UNRESOLVED,
)
from .optimizer import CompileReport, analyze
from .pseudocode import describe


def compile_source(program: str, *, output: str = "bytecode"):
    """Validate and compile ``program``.

    Args:
        program: program text.
        output: 'bytecode' (default) returns the CompiledProgram,
                'listing' returns the instruction listing text,
                'report' returns the CompileReport.
    """
    compiled = compile_program(program)
    if output == "listing":
        return compiled.listing()
    if output == "report":
        return analyze(program, compiled)
    return compiled
