"""Tests for the fasm code generator."""

import re

import pytest

from bfc.codegen import CodeGenerator, generate_assembly
from bfc.resolver import parse
from bfc.run_types import PointerPolicy, TapeConfig

WRAPPING = TapeConfig(policy=PointerPolicy.WRAPPING)
WRAPPING_POW2 = TapeConfig(policy=PointerPolicy.WRAPPING, length=32768)
BOUNDED = TapeConfig(policy=PointerPolicy.BOUNDED)


def _compile(source, config=BOUNDED, annotate=False):
    return generate_assembly(parse(source), config, annotate=annotate)


def _main_body(listing: str) -> list[str]:
    """Non-blank stripped lines between ``main:`` and the exit syscall."""
    lines = [line.strip() for line in listing.splitlines()]
    start = lines.index("main:") + 1
    end = lines.index("mov eax, SYS_exit", start)
    return [line for line in lines[start:end] if line]


def _defined_labels(listing: str) -> list[str]:
    return re.findall(r"^(\w+):$", listing, flags=re.MULTILINE)


class TestListingLayout:
    def test_header_and_entry(self):
        listing = _compile("")
        assert listing.startswith("format ELF64 executable 3\n")
        assert "entry main" in listing
        assert "segment readable executable" in listing
        assert "segment readable writeable" in listing

    def test_tape_is_reserved_with_configured_size(self):
        listing = _compile("", TapeConfig(length=4096))
        assert "TAPE_SIZE = 4096" in listing
        assert "TAPE rb TAPE_SIZE" in listing

    def test_main_sets_up_registers(self):
        assert _main_body(_compile(""))[:2] == ["mov rbx, TAPE", "xor r12, r12"]

    def test_program_exits_successfully(self):
        listing = _compile("+")
        assert "mov edi, EXIT_SUCCESS" in listing
        assert "EXIT_SUCCESS = 0" in listing

    def test_io_helpers_present(self):
        listing = _compile(".,")
        assert "WRITE_CELL:" in listing
        assert "READ_CELL:" in listing
        body = _main_body(listing)
        assert "call WRITE_CELL" in body
        assert "call READ_CELL" in body

    def test_read_stores_zero_on_end_of_input(self):
        listing = _compile(",")
        read_routine = listing[listing.index("READ_CELL:") :]
        assert "jg @f" in read_routine
        assert "mov byte [rbx + r12], 0" in read_routine


class TestLoops:
    def test_loop_shape_tests_before_first_iteration(self):
        body = _main_body(_compile("[-]", WRAPPING))
        assert body[2:] == [
            "loop_0:",
            "cmp byte [rbx + r12], 0",
            "je loop_0_end",
            "dec byte [rbx + r12]",
            "jmp loop_0",
            "loop_0_end:",
        ]

    def test_labels_unique_per_loop_instance(self):
        listing = _compile("[][[]][[[]]]")
        labels = _defined_labels(listing)
        loop_labels = [lbl for lbl in labels if lbl.startswith("loop_")]
        assert len(loop_labels) == 2 * 6
        assert len(set(loop_labels)) == len(loop_labels)

    def test_nested_loop_closes_inner_first(self):
        body = _main_body(_compile("[[]]", WRAPPING))
        assert body.index("jmp loop_1") < body.index("loop_1_end:")
        assert body.index("loop_1_end:") < body.index("jmp loop_0")

    def test_label_counter_resets_between_listings(self):
        generator = CodeGenerator(BOUNDED)
        program = parse("[[-]]")
        assert generator.generate(program) == generator.generate(program)

    def test_independent_generators_do_not_share_counters(self):
        first = CodeGenerator(BOUNDED)
        second = CodeGenerator(BOUNDED)
        first.generate(parse("[][][]"))
        listing = second.generate(parse("[]"))
        assert "loop_0:" in listing
        assert "loop_3:" not in listing

    def test_very_deep_nesting(self):
        depth = 3000
        listing = _compile("[" * depth + "]" * depth)
        assert f"loop_{depth - 1}_end:" in listing


class TestBoundedPolicy:
    def test_increment_checks_overflow_with_instruction_index(self):
        body = _main_body(_compile(">+"))
        idx = body.index("mov r13, 1")
        assert body[idx : idx + 4] == [
            "mov r13, 1",
            "cmp byte [rbx + r12], 255",
            "je CELL_OVERFLOW",
            "inc byte [rbx + r12]",
        ]

    def test_decrement_checks_underflow(self):
        body = _main_body(_compile("-"))
        assert body[2:] == [
            "mov r13, 0",
            "cmp byte [rbx + r12], 0",
            "je CELL_UNDERFLOW",
            "dec byte [rbx + r12]",
        ]

    def test_move_right_checks_upper_bound(self):
        body = _main_body(_compile(">"))
        assert body[2:] == [
            "mov r13, 0",
            "cmp r12, TAPE_SIZE - 1",
            "jae POINTER_OVERFLOW",
            "inc r12",
        ]

    def test_move_left_checks_zero(self):
        body = _main_body(_compile("<"))
        assert body[2:] == [
            "mov r13, 0",
            "test r12, r12",
            "jz POINTER_UNDERFLOW",
            "dec r12",
        ]

    def test_fault_messages_match_interpreter_wording(self):
        listing = _compile("+")
        assert "MSG_POINTER_UNDERFLOW db 'pointer moved below zero at instruction '" in listing
        assert "MSG_POINTER_OVERFLOW db 'pointer moved past upper bound at instruction '" in listing
        assert "MSG_CELL_UNDERFLOW db 'cell decremented below zero at instruction '" in listing
        assert "MSG_CELL_OVERFLOW db 'cell incremented past 255 at instruction '" in listing

    def test_fault_reporter_exits_with_fault_status(self):
        listing = _compile("+")
        reporter = listing[listing.index("FAULT:") :]
        assert "mov edi, STDERR" in reporter
        assert "mov edi, EXIT_FAULT" in reporter
        assert "EXIT_FAULT = 1" in listing

    def test_every_fault_routine_defined_once(self):
        labels = _defined_labels(_compile("+-<>"))
        for name in (
            "POINTER_UNDERFLOW",
            "POINTER_OVERFLOW",
            "CELL_UNDERFLOW",
            "CELL_OVERFLOW",
            "FAULT",
        ):
            assert labels.count(name) == 1


class TestWrappingPolicy:
    def test_cell_arithmetic_has_no_checks(self):
        body = _main_body(_compile("+-", WRAPPING))
        assert body[2:] == ["inc byte [rbx + r12]", "dec byte [rbx + r12]"]

    def test_power_of_two_tape_uses_mask(self):
        body = _main_body(_compile("><", WRAPPING_POW2))
        assert body[2:] == [
            "inc r12",
            "and r12, TAPE_SIZE - 1",
            "dec r12",
            "and r12, TAPE_SIZE - 1",
        ]

    def test_other_lengths_use_conditional_moves(self):
        body = _main_body(_compile("><", WRAPPING))
        assert body[2:] == [
            "inc r12",
            "xor eax, eax",
            "cmp r12, TAPE_SIZE",
            "cmove r12, rax",
            "mov eax, TAPE_SIZE",
            "test r12, r12",
            "cmovz r12, rax",
            "dec r12",
        ]

    def test_no_fault_routines_emitted(self):
        listing = _compile("+-<>", WRAPPING)
        assert "FAULT:" not in listing
        assert "jmp FAULT" not in listing
        assert "r13" not in listing


class TestAnnotate:
    def test_comments_name_instruction_and_index(self):
        listing = _compile("+[.]", annotate=True)
        assert "; + (instruction 0)" in listing
        assert "; loop 1..3" in listing
        assert "; . (instruction 2)" in listing

    def test_no_comments_by_default(self):
        body = _main_body(_compile("+[.]"))
        assert not any(line.startswith(";") for line in body)


@pytest.mark.parametrize("policy", list(PointerPolicy))
def test_same_program_same_listing(policy):
    config = TapeConfig(policy=policy)
    assert _compile("+[>,.<-]", config) == _compile("+[>,.<-]", config)
