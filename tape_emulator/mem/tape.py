"""
Tape VM — Memory Tape with Policy-Governed Pointer

Memory model:
  cells[0 .. size-1]   integer cells, all zero after reset
  pointer              index of the current cell

The tape exposes exactly two mutation primitives used by every operator:

  move_pointer(delta, policy)   ``>`` / ``<``
  modify_cell(delta, policy)    ``+`` / ``-``

plus ``store()`` for the ``,`` operator. None of them raise. Each returns
None on success, or the fault object (PointerOverflow / CellOverflow)
describing why the mutation was refused. A refused mutation leaves the
tape exactly as it was, so the caller can halt with state frozen at the
last successful instruction.

Cells are plain Python ints rather than a bytearray because the UNLIMITED
cell policy allows values outside 0..255 (including negatives).
"""

from __future__ import annotations
from typing import List, Optional, Union

from ..errors import PointerOverflow, CellOverflow
from ..policies import PointerPolicy, CellPolicy

Fault = Union[PointerOverflow, CellOverflow]

CELL_MIN = 0
CELL_MAX = 255
ROW_WIDTH = 16


class Tape:
    """Fixed-capacity cell array plus the data pointer."""

    def __init__(self, size: int = 30000):
        if size <= 0:
            raise ValueError(f"Memory size must be positive, got {size}")
        self.size = size
        self.cells: List[int] = [0] * size
        self.pointer = 0

    def reset(self):
        """Zero every cell and move the pointer back to 0."""
        self.cells = [0] * self.size
        self.pointer = 0

    # --- Mutation primitives ---

    def move_pointer(self, delta: int, policy: PointerPolicy) -> Optional[PointerOverflow]:
        target = self.pointer + delta

        if policy is PointerPolicy.CLAMP:
            self.pointer = max(0, min(target, self.size - 1))
        elif policy is PointerPolicy.WRAP:
            # Python's % is already non-negative for a positive modulus
            self.pointer = target % self.size
        else:
            if target < 0:
                return PointerOverflow(
                    f"Pointer underflow: attempted to move to {target}",
                    kind="underflow", target=target)
            if target >= self.size:
                return PointerOverflow(
                    f"Pointer overflow: attempted to move to {target} "
                    f"(max: {self.size - 1})",
                    kind="overflow", target=target)
            self.pointer = target
        return None

    def modify_cell(self, delta: int, policy: CellPolicy) -> Optional[CellOverflow]:
        value = self.cells[self.pointer] + delta

        if policy is CellPolicy.WRAP:
            self.cells[self.pointer] = value % 256
        elif policy is CellPolicy.UNLIMITED:
            self.cells[self.pointer] = value
        else:
            if value < CELL_MIN:
                return CellOverflow(
                    f"Cell underflow: attempted to set cell {self.pointer} to {value}",
                    kind="underflow", value=value)
            if value > CELL_MAX:
                return CellOverflow(
                    f"Cell overflow: attempted to set cell {self.pointer} to {value}",
                    kind="overflow", value=value)
            self.cells[self.pointer] = value
        return None

    def store(self, value: int, policy: CellPolicy) -> Optional[CellOverflow]:
        """Write an input value into the current cell.

        ERROR refuses values outside 0..255, WRAP reduces them modulo 256
        and UNLIMITED stores them exactly as received.
        """
        if policy is CellPolicy.ERROR and not CELL_MIN <= value <= CELL_MAX:
            kind = "underflow" if value < CELL_MIN else "overflow"
            return CellOverflow(
                f"Input value {value} out of range (0-255)", kind=kind, value=value)
        if policy is CellPolicy.WRAP:
            value %= 256
        self.cells[self.pointer] = value
        return None

    def emit_value(self, policy: CellPolicy) -> int:
        """Byte value the ``.`` operator writes for the current cell.

        UNLIMITED cells outside 0..255 are clamped for output only; the
        stored value is left as-is.
        """
        value = self.cells[self.pointer]
        if policy is CellPolicy.UNLIMITED and not CELL_MIN <= value <= CELL_MAX:
            return max(CELL_MIN, min(CELL_MAX, value))
        return value % 256

    # --- Inspection ---

    @property
    def current(self) -> int:
        return self.cells[self.pointer]

    def snapshot(self) -> List[int]:
        return list(self.cells)

    def window(self, center: Optional[int] = None, rows: int = 32) -> range:
        """Row indices of a ROW_WIDTH-column grid window centred on ``center``.

        Matches what a memory grid shows: up to ``rows`` rows, the row of
        the pointer in the middle, pinned to the ends of the tape.
        """
        if center is None:
            center = self.pointer
        total_rows = (self.size + ROW_WIDTH - 1) // ROW_WIDTH
        visible = min(rows, total_rows)
        start = max(0, center // ROW_WIDTH - visible // 2)
        end = min(total_rows, start + visible)
        if end - start < visible:
            start = max(0, end - visible)
        return range(start, end)

    def hexdump(self, start: int = 0, length: int = 256) -> str:
        """Address-labelled rows of 16 cells (decimal values).

        The current cell is bracketed, e.g. ``[72]``.
        """
        start = max(0, start)
        stop = min(self.size, start + length)
        lines = []
        for row_addr in range(start - start % ROW_WIDTH, stop, ROW_WIDTH):
            cells = []
            for addr in range(row_addr, row_addr + ROW_WIDTH):
                if addr >= self.size:
                    cells.append("   --")
                elif addr == self.pointer:
                    cells.append(f"[{self.cells[addr]}]".rjust(5))
                else:
                    cells.append(f"{self.cells[addr]:>4} ")
            lines.append(f"{row_addr:04X}  " + "".join(cells).rstrip())
        return "\n".join(lines)
