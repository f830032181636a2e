"""
Tape VM — Main Virtual Machine Class

Integrates:
  - Memory tape + pointer (mem/tape.py)
  - Overflow policies (policies.py)
  - Input queue / output log (periph/stream.py)
  - Bytecode compiler (tape_compiler)

Three execution engines share one operator table but differ in how they
keep their cursor and how they handle loops:

  step()           Single-Step Interpreter. Walks the raw text one
                   character per call. A taken ``[``/``]`` branch scans
                   character by character for the partner bracket while
                   tracking nesting depth. Every operator,
                   including the loop test, is one inspectable transition.
  run_fast()       Bulk Compiled Runner. Runs the compiled program from
                   position 0 until it ends or the step budget is spent.
                   Loop jumps are O(1) lookups of precomputed targets.
  run_chunk()      Chunked Interruptible Runner. Same semantics as
                   run_fast() but stops after a bounded slice and keeps its
                   cursor (fast_pc, fast_steps) for the next call, so a
                   single-threaded host can interleave execution with other
                   work. Returns True while more work remains.

Termination / faults:
  - The step interpreter clears ``running`` when the cursor passes the end
    of the text.
  - PointerOverflow / CellOverflow (ERROR policies only) and an unmatched
    bracket found by the step scan clear ``running`` and propagate to the
    caller. Tape and pointer stay exactly as the last successful
    instruction left them.

Usage:
    vm = TapeVM()
    vm.load("++++++++[>++++++++<-]>+.")
    vm.run_fast()
    print(vm.output)            # b"A"
"""

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from tape_compiler import describe as describe_program
from tape_compiler.compiler import (
    CompiledProgram, CompileError, UnmatchedBracketError, compile_program,
)
from tape_compiler.validator import SyntaxViolation, check_syntax

from .config import DEFAULT_MEMORY_SIZE, DEFAULT_MAX_STEPS, DEFAULT_CHUNK_SIZE
from .errors import VMError
from .mem.tape import Tape, Fault
from .periph.stream import InputQueue, InputSource, OutputLog, PullCallback
from .policies import PointerPolicy, CellPolicy

log = logging.getLogger(__name__)


class StopReason(enum.Enum):
    DONE = 'DONE'         # program text exhausted
    BREAK = 'BREAK'       # breakpoint position reached
    TIMEOUT = 'TIMEOUT'   # step budget spent while still running


@dataclass
class VMSnapshot:
    """Everything a front end needs to render the VM."""
    pointer: int
    pc: int
    fast_pc: int
    fast_steps: int
    running: bool
    output: bytes
    memory: List[int] = field(repr=False, default_factory=list)

    @property
    def current_cell(self) -> int:
        return self.memory[self.pointer]


class TapeVM:
    """Tape-language virtual machine.

    Owns its tape, pointer, program text, compiled program, input queue
    and output log. Not thread-safe: callers serialize access.
    """

    def __init__(self, memory_size: int = DEFAULT_MEMORY_SIZE):
        self.tape = Tape(memory_size)
        self.pointer_policy = PointerPolicy.CLAMP
        self.cell_policy = CellPolicy.WRAP

        self.input = InputQueue()
        self.output_log = OutputLog()
        self._input_callback: Optional[PullCallback] = None

        self.program = ""
        self._compiled: Optional[CompiledProgram] = None

        # Step interpreter cursor (raw text position)
        self.pc = 0
        self.running = False

        # Chunked runner cursor (bytecode position + cumulative steps)
        self.fast_pc = 0
        self.fast_steps = 0
        self.last_run_steps = 0

        # Raw-text positions that pause run_until_end()
        self.breakpoints: Set[int] = set()
        self.stop_reason: Optional[StopReason] = None

        self.trace = False
        self.trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Configuration / lifecycle
    # ══════════════════════════════════════════════

    def configure(self, pointer_policy, cell_policy):
        """Select overflow policies. Accepts enum members or their names."""
        self.pointer_policy = PointerPolicy.parse(pointer_policy)
        self.cell_policy = CellPolicy.parse(cell_policy)
        log.debug("configured pointer=%s cell=%s",
                  self.pointer_policy.name, self.cell_policy.name)

    def reset(self):
        """Return every piece of mutable state to its initial value.

        Memory size, policies, input callback and breakpoints are kept.
        """
        self.tape.reset()
        self.program = ""
        self.pc = 0
        self.output_log.clear()
        self.input.clear()
        self.running = False
        self._compiled = None
        self.fast_pc = 0
        self.fast_steps = 0
        self.last_run_steps = 0
        self.stop_reason = None
        self.trace_output.clear()
        log.debug("reset (%d cells)", self.tape.size)

    def load(self, program: str, input_data: InputSource = ""):
        """Install program text and preloaded input; mark the VM runnable.

        The tape is not cleared; call reset() first for a fresh run.
        """
        self.program = program
        self.pc = 0
        self.output_log.clear()
        self.input.clear()
        self.input.feed(input_data)
        self.running = True
        self._compiled = None
        self.fast_pc = 0
        self.fast_steps = 0
        self.stop_reason = None
        log.debug("loaded %d chars, %d input values", len(program), len(self.input))

    def set_input_callback(self, callback: Optional[PullCallback]):
        """Zero-argument callable returning more input text when the queue is dry."""
        self._input_callback = callback

    # ══════════════════════════════════════════════
    # Diagnostics
    # ══════════════════════════════════════════════

    def check_syntax(self) -> List[SyntaxViolation]:
        return check_syntax(self.program)

    def compile(self) -> CompiledProgram:
        """Compile the loaded program and keep it for the fast engines."""
        if not self.program:
            raise CompileError("No program loaded to compile.")
        self._compiled = compile_program(self.program)
        return self._compiled

    @property
    def compiled(self) -> Optional[CompiledProgram]:
        return self._compiled

    def describe(self) -> str:
        """Pseudocode for the loaded program. Does not touch VM state."""
        return describe_program(self.program, self.tape.size, self.cell_policy,
                                pointer=self.tape.pointer)

    # ══════════════════════════════════════════════
    # Observable state
    # ══════════════════════════════════════════════

    @property
    def pointer(self) -> int:
        return self.tape.pointer

    @property
    def memory(self) -> List[int]:
        return self.tape.snapshot()

    @property
    def memory_size(self) -> int:
        return self.tape.size

    @property
    def output(self) -> bytes:
        return self.output_log.data

    @property
    def output_text(self) -> str:
        return self.output_log.text()

    def snapshot(self) -> VMSnapshot:
        return VMSnapshot(
            pointer=self.tape.pointer,
            pc=self.pc,
            fast_pc=self.fast_pc,
            fast_steps=self.fast_steps,
            running=self.running,
            output=self.output_log.data,
            memory=self.tape.snapshot(),
        )

    def status_line(self, mode: str = "Debug") -> str:
        parts = [
            f"[{mode}]",
            f"pc={self.pc}",
            f"ptr={self.tape.pointer}",
            f"mem[ptr]={self.tape.current}",
            f"running={'yes' if self.running else 'no'}",
            f"steps={self.fast_steps}",
            f"ptr-mode={self.pointer_policy.name}",
            f"cell-mode={self.cell_policy.name}",
        ]
        return "  ".join(parts)

    def dump(self, start: Optional[int] = None, length: int = 256) -> str:
        """Hex-addressed dump of the tape, centred on the pointer by default."""
        if start is None:
            rows = self.tape.window(rows=max(1, length // 16))
            start = rows.start * 16
        return self.tape.hexdump(start, length)

    # ══════════════════════════════════════════════
    # Operator table
    # ══════════════════════════════════════════════
    #
    # Handler signature: handler(magnitude) -> Optional[Fault]
    # Loop operators are not here: each engine implements its own.

    def _build_dispatch(self) -> Dict[str, Callable[[int], Optional[Fault]]]:
        return {
            '>': self._op_right,
            '<': self._op_left,
            '+': self._op_inc,
            '-': self._op_dec,
            '.': self._op_output,
            ',': self._op_input,
        }

    def _op_right(self, n):
        return self.tape.move_pointer(n, self.pointer_policy)

    def _op_left(self, n):
        return self.tape.move_pointer(-n, self.pointer_policy)

    def _op_inc(self, n):
        return self.tape.modify_cell(n, self.cell_policy)

    def _op_dec(self, n):
        return self.tape.modify_cell(-n, self.cell_policy)

    def _op_output(self, n):
        self.output_log.append(self.tape.emit_value(self.cell_policy))
        return None

    def _op_input(self, n):
        value = self.input.next_value(self._input_callback)
        if value is None:
            # host has no more input
            value = 0
        return self.tape.store(value, self.cell_policy)

    def _fail(self, fault: VMError):
        self.running = False
        log.warning("halted: %s", fault)
        raise fault

    # ══════════════════════════════════════════════
    # Engine 1: single-step interpreter (raw text)
    # ══════════════════════════════════════════════

    def step(self) -> bool:
        """Execute one character of the program text.

        Returns False (and clears ``running``) when there is nothing left
        to execute, True after a transition.
        """
        if not self.running or self.pc >= len(self.program):
            self.running = False
            return False

        ch = self.program[self.pc]

        if self.trace:
            self.trace_output.append(
                f"pc={self.pc} op={ch} ptr={self.tape.pointer} cell={self.tape.current}")

        if ch == '[':
            if self.tape.current == 0:
                self.pc = self._scan_forward(self.pc)
        elif ch == ']':
            if self.tape.current != 0:
                self.pc = self._scan_backward(self.pc)
        else:
            handler = self._dispatch.get(ch)
            if handler is not None:
                fault = handler(1)
                if fault is not None:
                    self._fail(fault)
            # anything else is a comment character: consumes a step, no effect

        self.pc += 1
        if self.pc >= len(self.program):
            self.running = False
        return True

    def _scan_forward(self, start: int) -> int:
        """Position of the ``]`` matching the ``[`` at ``start``."""
        depth = 1
        pos = start
        while depth > 0:
            pos += 1
            if pos >= len(self.program):
                self.running = False
                raise UnmatchedBracketError('[', start)
            if self.program[pos] == '[':
                depth += 1
            elif self.program[pos] == ']':
                depth -= 1
        return pos

    def _scan_backward(self, start: int) -> int:
        """Position of the ``[`` matching the ``]`` at ``start``."""
        depth = 1
        pos = start
        while depth > 0:
            pos -= 1
            if pos < 0:
                self.running = False
                raise UnmatchedBracketError(']', start)
            if self.program[pos] == ']':
                depth += 1
            elif self.program[pos] == '[':
                depth -= 1
        return pos

    def run_until_end(self, max_steps: int = DEFAULT_MAX_STEPS) -> int:
        """Single-step until the program ends, a breakpoint or the budget.

        A breakpoint at the position the call starts from is ignored so a
        paused run can be resumed by calling again. ``stop_reason`` tells
        which condition ended the call. Returns the number of steps taken.
        """
        steps = 0
        while self.running and steps < max_steps:
            if steps > 0 and self.pc in self.breakpoints:
                self.stop_reason = StopReason.BREAK
                return steps
            if not self.step():
                break
            steps += 1
        self.stop_reason = StopReason.TIMEOUT if self.running else StopReason.DONE
        return steps

    # ══════════════════════════════════════════════
    # Engines 2 + 3: compiled bytecode
    # ══════════════════════════════════════════════

    def _ensure_compiled(self) -> CompiledProgram:
        if self._compiled is None:
            self.compile()
        return self._compiled

    def _run_bytecode(self, pc: int, limit: int):
        """Execute compiled instructions from ``pc`` for at most ``limit`` steps.

        Returns (pc, steps, fault). On a fault ``pc`` is the position of
        the instruction that failed.
        """
        code = self._compiled
        end = len(code)
        tape = self.tape
        dispatch = self._dispatch
        steps = 0

        while pc < end and steps < limit:
            instr = code[pc]
            op = instr.op
            if op == '[':
                if tape.cells[tape.pointer] == 0:
                    pc = instr.arg
            elif op == ']':
                if tape.cells[tape.pointer] != 0:
                    pc = instr.arg
            else:
                fault = dispatch[op](instr.arg)
                if fault is not None:
                    return pc, steps, fault
            pc += 1
            steps += 1

        return pc, steps, None

    def run_fast(self, max_steps: int = DEFAULT_MAX_STEPS) -> int:
        """Run the compiled program from the start. Returns steps executed."""
        self._ensure_compiled()
        pc, steps, fault = self._run_bytecode(0, max_steps)
        self.running = False
        self.last_run_steps = steps
        if fault is not None:
            self._fail(fault)
        if pc < len(self._compiled):
            log.info("step budget of %d reached at instruction %d", max_steps, pc)
        return steps

    def run_chunk(self, steps_per_chunk: int = DEFAULT_CHUNK_SIZE,
                  max_steps: int = DEFAULT_MAX_STEPS) -> bool:
        """Run one bounded slice of the compiled program.

        Returns True while more work remains. Returns False once the
        program has ended or ``max_steps`` cumulative steps were spent;
        the cursor is then rewound to 0 and ``running`` cleared.
        """
        if steps_per_chunk < 1:
            raise ValueError(f"steps_per_chunk must be >= 1, got {steps_per_chunk}")
        self._ensure_compiled()

        limit = min(steps_per_chunk, max(0, max_steps - self.fast_steps))
        pc, steps, fault = self._run_bytecode(self.fast_pc, limit)
        self.fast_pc = pc
        self.fast_steps += steps

        if fault is not None:
            self._fail(fault)

        if pc >= len(self._compiled) or self.fast_steps >= max_steps:
            log.debug("chunked run finished after %d steps", self.fast_steps)
            self.last_run_steps = self.fast_steps
            self.running = False
            self.fast_pc = 0
            self.fast_steps = 0
            return False

        return True
