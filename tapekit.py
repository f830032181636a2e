#!/usr/bin/env python3
"""
tapekit — Tape Language Toolkit
===============================

One CLI for everything:
    tapekit run      — Execute a program (fast, chunked or single-step)
    tapekit check    — Report characters outside the operator alphabet
    tapekit compile  — Compile and show the optimized instruction listing
    tapekit pseudo   — Print a line-by-line pseudocode description
    tapekit profiles — List the named policy profiles

Usage:
    python tapekit.py <command> [options]
    python tapekit.py <command> --help

Examples:
    python tapekit.py run hello.b
    python tapekit.py run echo.b --input "abc" --profile strict
    python tapekit.py run loop.b --mode chunked --chunk 50000 --max-steps 10000000
    python tapekit.py run prog.b --mode debug --break 12 --dump
    python tapekit.py compile hello.b -o hello.lst
    python tapekit.py pseudo hello.b --cell unlimited
"""

import argparse
import logging
import os
import sys

# Allow running from project root without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rich.console import Console
from rich.logging import RichHandler

from tape_compiler import (
    CompileError, OPERATORS, check_syntax, compile_source, describe, format_violations,
)
from tape_emulator import (
    ConfigError, PROFILES, StopReason, VMConfig, VMError,
)
from tape_emulator.config import DEFAULT_CHUNK_SIZE, HOST_CHUNK_SIZE
from tape_emulator.policies import CELL_POLICY_NAMES, POINTER_POLICY_NAMES

__version__ = "0.3.0"

log = logging.getLogger("tapekit")

FILE_FMT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"

LOGGER_NAMES = ("tapekit", "tape_compiler", "tape_emulator")

_installed = []


def setup_logging(verbose: bool = False, log_file: str = None) -> logging.Logger:
    """Attach a rich console handler (stderr) to the toolkit's loggers.

    Console shows WARNING+ by default, everything with --verbose. An
    optional log file captures DEBUG+ regardless. Calling again replaces
    the handlers installed by the previous call.
    """
    for logger, handler in _installed:
        logger.removeHandler(handler)
        handler.close()
    _installed.clear()

    console_level = logging.DEBUG if verbose else logging.WARNING
    handlers = []

    ch = RichHandler(
        level=console_level,
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    ch.setLevel(console_level)
    handlers.append(ch)

    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FMT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(fh)

    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        for handler in handlers:
            logger.addHandler(handler)
            _installed.append((logger, handler))

    return log


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tapekit",
        description="Tape language toolkit — run, check, compile, describe",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Profiles: " + ", ".join(PROFILES),
    )
    parser.add_argument("--version", action="version", version=f"tapekit {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show debug log records on stderr")
    parser.add_argument("--log-file", help="Also write a DEBUG log to this file")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Execute a program")
    p_run.add_argument("input", help="Program file (plain operator text)")
    p_run.add_argument("--input", dest="data", default="",
                       help="Preloaded input text")
    p_run.add_argument("--interactive", action="store_true",
                       help="Read more input lines from stdin when the queue runs dry")
    p_run.add_argument("--mode", choices=["fast", "chunked", "debug"], default="fast",
                       help="Execution engine (default: fast)")
    p_run.add_argument("--chunk", type=int, default=None,
                       help=f"Steps per slice in chunked mode (default: {HOST_CHUNK_SIZE})")
    p_run.add_argument("--break", dest="breakpoints", type=int, action="append", default=[],
                       help="Breakpoint text position (debug mode, repeatable)")
    p_run.add_argument("--dump", action="store_true",
                       help="Print status line and memory around the pointer to stderr")
    p_run.add_argument("--filter", action="store_true",
                       help="Drop every non-operator character before loading")
    _add_config_args(p_run)

    # ── check ────────────────────────────────────────────────────────────
    p_chk = sub.add_parser("check", help="Report non-operator characters")
    p_chk.add_argument("input", help="Program file")

    # ── compile ──────────────────────────────────────────────────────────
    p_cc = sub.add_parser("compile", help="Compile and print the instruction listing")
    p_cc.add_argument("input", help="Program file")
    p_cc.add_argument("-o", "--output", help="Write the report here instead of stdout")
    p_cc.add_argument("--filter", action="store_true",
                      help="Drop every non-operator character before compiling")

    # ── pseudo ───────────────────────────────────────────────────────────
    p_ps = sub.add_parser("pseudo", help="Describe a program as pseudocode")
    p_ps.add_argument("input", help="Program file")
    p_ps.add_argument("-o", "--output", help="Write the description here instead of stdout")
    _add_config_args(p_ps)

    # ── profiles ─────────────────────────────────────────────────────────
    sub.add_parser("profiles", help="List named policy profiles")

    return parser


def _add_config_args(p):
    p.add_argument("--profile", default=None, choices=list(PROFILES),
                   help="Named policy profile (default: standard)")
    p.add_argument("--pointer", default=None,
                   choices=["clamp", "wrap", "error"], help="Pointer policy override")
    p.add_argument("--cell", default=None,
                   choices=["wrap", "unlimited", "error"], help="Cell policy override")
    p.add_argument("--memory", type=int, default=None, help="Number of tape cells")
    p.add_argument("--max-steps", type=int, default=None, help="Absolute step budget")
    p.add_argument("--config", default=None, help="JSON config file")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    if not args.command:
        parser.print_help()
        return 0

    handler = COMMANDS[args.command]
    try:
        return handler(args)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1
    except CompileError as e:
        print(f"Compile error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def _read_program(path, drop_comments=False):
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    if drop_comments:
        return "".join(ch for ch in text if ch in OPERATORS)
    return text.strip()


def _load_config(args) -> VMConfig:
    overrides = {
        "pointer_policy": args.pointer,
        "cell_policy": args.cell,
        "memory_size": args.memory,
        "max_steps": args.max_steps,
    }
    if getattr(args, "chunk", None) is not None:
        overrides["chunk_size"] = args.chunk
    if args.config:
        data = VMConfig.from_json(args.config).to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return VMConfig.from_dict(data)
    return VMConfig.from_profile(args.profile or "standard", **overrides)


def _stdin_line():
    return sys.stdin.readline()


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args):
    program = _read_program(args.input, args.filter)
    config = _load_config(args)
    if args.mode == "chunked" and args.chunk is None:
        config.chunk_size = HOST_CHUNK_SIZE

    vm = config.build_vm()
    vm.load(program, args.data)
    if args.interactive:
        vm.set_input_callback(_stdin_line)
    vm.breakpoints.update(args.breakpoints)

    log.debug("run %s mode=%s %s", args.input, args.mode, config.to_dict())
    mode_name = {"fast": "Fast", "chunked": "Fast", "debug": "Debug"}[args.mode]

    try:
        if args.mode == "fast":
            steps = vm.run_fast(config.max_steps)
        elif args.mode == "chunked":
            chunks = 1
            while vm.run_chunk(config.chunk_size, config.max_steps):
                chunks += 1
            steps = vm.last_run_steps
            log.debug("%d chunk(s) of up to %d steps", chunks, config.chunk_size)
        else:
            steps = vm.run_until_end(config.max_steps)
            if vm.stop_reason is StopReason.BREAK:
                print(f"\nPaused at breakpoint (pc={vm.pc})", file=sys.stderr)
            elif vm.stop_reason is StopReason.TIMEOUT:
                print(f"\nStep budget of {config.max_steps} reached", file=sys.stderr)
    except VMError as e:
        _write_output(vm.output)
        print(f"\nRuntime error: {e}", file=sys.stderr)
        print(vm.status_line(mode_name), file=sys.stderr)
        return 1

    _write_output(vm.output)
    log.debug("%d steps, %d output bytes", steps, len(vm.output))

    if args.dump:
        print(file=sys.stderr)
        print(vm.status_line(mode_name), file=sys.stderr)
        print(vm.dump(), file=sys.stderr)
    return 0


def _write_output(data: bytes):
    sys.stdout.buffer.write(data)
    sys.stdout.flush()


# ── check ────────────────────────────────────────────────────────────────
def cmd_check(args):
    program = _read_program(args.input)
    violations = check_syntax(program)
    print(format_violations(violations))
    return 1 if violations else 0


# ── compile ──────────────────────────────────────────────────────────────
def cmd_compile(args):
    program = _read_program(args.input, args.filter)
    report = compile_source(program, output="report")
    text = report.render()
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        print(f"Compiled {args.input} -> {args.output} "
              f"({report.compiled_ops} instructions)")
    else:
        print(text)
    return 0


# ── pseudo ───────────────────────────────────────────────────────────────
def cmd_pseudo(args):
    program = _read_program(args.input)
    config = _load_config(args)
    text = describe(program, config.memory_size, config.cell_policy)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Pseudocode for {args.input} -> {args.output}")
    else:
        print(text, end="")
    return 0


# ── profiles ─────────────────────────────────────────────────────────────
def cmd_profiles(args):
    for name, profile in PROFILES.items():
        print(f"{name:<10} pointer={POINTER_POLICY_NAMES[profile['pointer_policy']]:<18} "
              f"cells={CELL_POLICY_NAMES[profile['cell_policy']]:<18} "
              f"{profile['description']}")
    print(f"\nDefault chunk size: {DEFAULT_CHUNK_SIZE} (host slice: {HOST_CHUNK_SIZE})")
    return 0


COMMANDS = {
    "run": cmd_run,
    "check": cmd_check,
    "compile": cmd_compile,
    "pseudo": cmd_pseudo,
    "profiles": cmd_profiles,
}


if __name__ == "__main__":
    sys.exit(main())
