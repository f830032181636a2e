"""
Tape VM — Runtime Fault Types

Faults raised by the execution engines when an ERROR policy is active.

The mutation primitives in mem/tape.py never raise: they *return* one of
these objects (or None on success) and leave the tape untouched. The
engine that called the primitive clears the running flag and raises the
returned fault, so the host sees an ordinary exception with tape and
pointer frozen at the last successful instruction.
"""

from __future__ import annotations


class VMError(Exception):
    """Base class for all runtime faults raised by the VM."""


class PointerOverflow(VMError):
    """Pointer moved outside [0, size-1] under PointerPolicy.ERROR.

    ``kind`` is "underflow" (below 0) or "overflow" (at or above size).
    """
    def __init__(self, message: str, kind: str = "overflow", target: int = 0):
        self.kind = kind
        self.target = target
        super().__init__(message)


class CellOverflow(VMError):
    """Cell value left [0, 255] under CellPolicy.ERROR.

    Raised for arithmetic and for out-of-range input values.
    """
    def __init__(self, message: str, kind: str = "overflow", value: int = 0):
        self.kind = kind
        self.value = value
        super().__init__(message)


class ConfigError(ValueError):
    """Invalid VM configuration (unknown policy/profile, bad memory size)."""
