# Tape VM — virtual machine for the eight-operator tape language
# Part of the tapevm toolchain (front end lives in tape_compiler)
#
# Layout mirrors a small hardware emulator:
#   mem/tape.py        memory tape + policy-governed pointer
#   periph/stream.py   input queue and output log
#   emu.py             the VM and its three execution engines
"""Tape-language virtual machine."""

from .errors import VMError, PointerOverflow, CellOverflow, ConfigError
from .policies import PointerPolicy, CellPolicy
from .config import VMConfig, PROFILES
from .emu import TapeVM, StopReason, VMSnapshot

__all__ = [
    'TapeVM', 'StopReason', 'VMSnapshot',
    'PointerPolicy', 'CellPolicy',
    'VMError', 'PointerOverflow', 'CellOverflow', 'ConfigError',
    'VMConfig', 'PROFILES',
]
