"""
Test suite for the tape language front end.

Tests cover:
  - Syntax validator (complete violation list, positions, report text)
  - Bracket resolution (matching targets, unmatched [ and ])
  - Run-length merging (magnitudes, I/O never merged)
  - Atomic failure on syntax violations
  - Instruction listing and compile report
  - Pseudocode translation
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from tape_compiler import (
    Instruction, CompiledProgram, SyntaxViolationError, UnmatchedBracketError,
    CompileError, check_syntax, compile_program, compile_source, count_operators,
    describe, format_violations,
)


def _ops(program: str) -> list:
    """Compile and return (op, arg) pairs."""
    return [tuple(instr) for instr in compile_program(program)]


def _body(text: str) -> list:
    """Pseudocode lines after the 7-line header."""
    return text.splitlines()[7:]


# ─── Syntax validator ─────────────────────

class TestValidator:
    def test_clean_program(self):
        assert check_syntax("+-<>[].,") == []

    def test_reports_every_violation(self):
        errors = check_syntax("+a-b c")
        assert errors == [(1, "a"), (3, "b"), (4, " "), (5, "c")]

    def test_violation_unpacks_as_pair(self):
        (pos, ch), = check_syntax("++x")
        assert pos == 2
        assert ch == "x"

    def test_brackets_not_checked(self):
        assert check_syntax("[[[") == []
        assert check_syntax("]") == []

    def test_count_operators_ignores_comments(self):
        assert count_operators("+ + hello [-]") == 5

    def test_format_no_errors(self):
        assert format_violations([]) == "No syntax errors detected."

    def test_format_report(self):
        text = format_violations(check_syntax("+x+y"))
        assert text == "Found 2 issue(s):\npos 1: 'x'\npos 3: 'y'"

    def test_format_report_limit(self):
        text = format_violations(check_syntax("abc"), limit=1)
        assert text.startswith("Found 3 issue(s):")
        assert "pos 1" not in text


# ─── Bracket resolution ─────────────────────

class TestBrackets:
    def test_simple_pair(self):
        code = compile_program("[]")
        assert code[0] == Instruction("[", 1)
        assert code[1] == Instruction("]", 0)

    def test_nested_targets(self):
        code = compile_program("+[>[-]<-]")
        assert _ops("+[>[-]<-]") == [
            ("+", 1), ("[", 8), (">", 1), ("[", 5), ("-", 1),
            ("]", 3), ("<", 1), ("-", 1), ("]", 1),
        ]
        for i, instr in enumerate(code):
            if instr.op in "[]":
                partner = code[instr.arg]
                assert partner.arg == i
                assert partner.op != instr.op

    def test_unmatched_open(self):
        with pytest.raises(UnmatchedBracketError) as exc:
            compile_program("[[]")
        assert exc.value.bracket == "["
        assert exc.value.position == 0
        assert "Unmatched '['" in str(exc.value)

    def test_unmatched_close(self):
        with pytest.raises(UnmatchedBracketError) as exc:
            compile_program("[]]")
        assert exc.value.bracket == "]"
        assert exc.value.position == 2
        assert "Unmatched ']'" in str(exc.value)

    def test_unmatched_is_compile_error(self):
        with pytest.raises(CompileError):
            compile_program("+[")


# ─── Run-length merging ─────────────────────

class TestMerging:
    def test_runs_merge(self):
        assert _ops("+++>>-<<<<") == [("+", 3), (">", 2), ("-", 1), ("<", 4)]

    def test_io_never_merged(self):
        assert _ops("..,,") == [(".", 0), (".", 0), (",", 0), (",", 0)]

    def test_alternating_ops_not_merged(self):
        assert _ops("+-+-") == [("+", 1), ("-", 1), ("+", 1), ("-", 1)]

    def test_runs_split_by_brackets(self):
        assert _ops("++[]++") == [("+", 2), ("[", 2), ("]", 1), ("+", 2)]

    def test_empty_program(self):
        assert len(compile_program("")) == 0


# ─── Atomic failure ─────────────────────

class TestSyntaxFailure:
    def test_syntax_error_lists_all_pairs(self):
        with pytest.raises(SyntaxViolationError) as exc:
            compile_program("+a+b")
        assert exc.value.violations == [(1, "a"), (3, "b")]
        assert str(exc.value) == "Syntax errors found: (1, 'a') (3, 'b')"

    def test_syntax_checked_before_brackets(self):
        # both problems present: the syntax report wins, nothing is emitted
        with pytest.raises(SyntaxViolationError):
            compile_program("]x")


# ─── Listing and report ─────────────────────

class TestListing:
    def test_listing_format(self):
        assert compile_program("+++.[-]").listing() == (
            "  0: + 3\n"
            "  1: .\n"
            "  2: [ 4\n"
            "  3: - 1\n"
            "  4: ] 2"
        )

    def test_compiled_program_equality(self):
        code = compile_program("++.")
        assert code == [("+", 2), (".", 0)]
        assert code == CompiledProgram([Instruction("+", 2), Instruction(".", 0)])

    def test_report_statistics(self):
        report = compile_source("+++>>.", output="report")
        assert report.original_ops == 6
        assert report.compiled_ops == 3
        assert report.saved_ops == 3
        assert report.efficiency == pytest.approx(50.0)

    def test_report_render(self):
        text = compile_source("++", output="report").render()
        assert "Original operations: 2" in text
        assert "Efficiency improvement: 50.0%" in text
        assert text.endswith("  0: + 2")

    def test_report_empty_program(self):
        report = compile_source("", output="report")
        assert report.efficiency == 0.0

    def test_compile_source_outputs(self):
        assert isinstance(compile_source("+"), CompiledProgram)
        assert compile_source("+", output="listing") == "  0: + 1"


# ─── Pseudocode ─────────────────────

class TestPseudocode:
    def test_header(self):
        lines = describe("+-", 300, "UNLIMITED").splitlines()
        assert lines[0] == "Program loaded with 2 characters."
        assert lines[1] == "Memory initialized with 300 cells."
        assert lines[2] == "Pointer initialized at position 0."
        assert lines[3] == "pointer = 0"
        assert lines[5] == "Cell behavior: unlimited range"

    def test_loop_indentation(self):
        assert _body(describe("+[>.<-]")) == [
            "memory[pointer] += 1 (mod 256)",
            "while memory[pointer] != 0:",
            "  pointer++ (1)",
            "  print(char(memory[pointer]))",
            "  pointer-- (0)",
            "  memory[pointer] -= 1 (mod 256)",
            "end while",
        ]

    def test_nested_loops(self):
        body = _body(describe("[[,]]"))
        assert body == [
            "while memory[pointer] != 0:",
            "  while memory[pointer] != 0:",
            "    memory[pointer] = input_char()",
            "  end while",
            "end while",
        ]

    def test_policy_suffixes(self):
        from tape_emulator import CellPolicy
        body = _body(describe("+-", cell_policy=CellPolicy.ERROR))
        assert body == [
            "memory[pointer] += 1 (0-255, error on overflow)",
            "memory[pointer] -= 1 (0-255, error on underflow)",
        ]

    def test_comments_skipped(self):
        assert _body(describe("say hi .")) == ["print(char(memory[pointer]))"]

    def test_stray_close_does_not_underflow_indent(self):
        assert _body(describe("]+")) == ["end while", "memory[pointer] += 1 (mod 256)"]
