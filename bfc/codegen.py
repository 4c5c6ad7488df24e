"""Code generator — resolved tree to x86-64 flat assembler (fasm) source.

The listing targets ``format ELF64 executable`` on Linux and talks to the
kernel through raw syscalls. Register roles are fixed:

    rbx  tape base address
    r12  pointer (index into the tape)
    r13  instruction index of the most recent bounds-checked site

Faults write the same message the interpreter raises to stderr, followed by
a newline, and exit with status 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from textwrap import dedent
from typing import Callable

from . import constants
from .ir import Instruction, Loop, Node, Op, Program
from .run_types import TapeConfig

logger = logging.getLogger(__name__)

_CELL = f"byte [{constants.TAPE_BASE_REG} + {constants.POINTER_REG}]"
_PTR = constants.POINTER_REG
_IDX = constants.FAULT_INDEX_REG

# (fault routine label, message data label, message prefix)
_FAULT_ROUTINES: tuple[tuple[str, str, str], ...] = (
    ("POINTER_UNDERFLOW", "MSG_POINTER_UNDERFLOW", constants.POINTER_UNDERFLOW_MESSAGE),
    ("POINTER_OVERFLOW", "MSG_POINTER_OVERFLOW", constants.POINTER_OVERFLOW_MESSAGE),
    ("CELL_UNDERFLOW", "MSG_CELL_UNDERFLOW", constants.CELL_UNDERFLOW_MESSAGE),
    ("CELL_OVERFLOW", "MSG_CELL_OVERFLOW", constants.CELL_OVERFLOW_MESSAGE),
)

_HEADER = dedent(
    """\
    format ELF64 executable 3

    SYS_read = {sys_read}
    SYS_write = {sys_write}
    SYS_exit = {sys_exit}

    STDIN = {stdin}
    STDOUT = {stdout}
    STDERR = {stderr}

    EXIT_SUCCESS = {exit_success}
    EXIT_FAULT = {exit_fault}

    TAPE_SIZE = {tape_size}

    segment readable executable
    entry main

    main:
        mov {base}, TAPE
        xor {ptr}, {ptr}
    """
)

_EPILOGUE = dedent(
    """\
        mov eax, SYS_exit
        mov edi, EXIT_SUCCESS
        syscall

    WRITE_CELL:
        mov eax, SYS_write
        mov edi, STDOUT
        lea rsi, {cell_addr}
        mov edx, 1
        syscall
        ret

    READ_CELL:
        mov eax, SYS_read
        mov edi, STDIN
        lea rsi, {cell_addr}
        mov edx, 1
        syscall
        test rax, rax
        jg @f
        mov {cell}, {eof_value}
    @@:
        ret
    """
)

_FAULT_ROUTINE = dedent(
    """\

    {label}:
        mov rsi, {message}
        mov edx, {message}_LEN
        jmp FAULT
    """
)

# Writes the message in rsi/rdx, then r13 in decimal and a newline, to stderr.
_FAULT_REPORTER = dedent(
    """\

    FAULT:
        mov eax, SYS_write
        mov edi, STDERR
        syscall
        lea rsi, [DIGITS + 20]
        mov byte [rsi], 10
        mov rax, {idx}
        mov ecx, 10
    @@:
        xor edx, edx
        div rcx
        add dl, '0'
        dec rsi
        mov [rsi], dl
        test rax, rax
        jnz @b
        mov rdx, DIGITS + 21
        sub rdx, rsi
        mov eax, SYS_write
        mov edi, STDERR
        syscall
        mov eax, SYS_exit
        mov edi, EXIT_FAULT
        syscall
    """
)

_DATA_SEGMENT = dedent(
    """\

    segment readable writeable
    """
)


def _fasm_string(text: str) -> str:
    """Quote *text* as a fasm string literal."""
    return "'" + text.replace("'", "''") + "'"


@dataclass
class _Frame:
    body: tuple[Node, ...]
    labels: tuple[str, str] | None = None
    pos: int = 0


class CodeGenerator:
    """Emits one assembly listing per ``generate`` call.

    The loop label counter belongs to the instance and is reset at the start
    of every ``generate`` call, so labels are unique within a listing and
    independent generators never interfere.
    """

    def __init__(self, config: TapeConfig = TapeConfig(), annotate: bool = False):
        self.config = config
        self.annotate = annotate
        self._label_counter: int = 0
        self._lines: list[str] = []
        self._EMITTERS: dict[Op, Callable[[Instruction], None]] = {
            Op.MOVE_LEFT: self._emit_move_left,
            Op.MOVE_RIGHT: self._emit_move_right,
            Op.INCREMENT: self._emit_increment,
            Op.DECREMENT: self._emit_decrement,
            Op.OUTPUT: lambda inst: self._emit("call WRITE_CELL"),
            Op.INPUT: lambda inst: self._emit("call READ_CELL"),
        }

    # ── helpers ──────────────────────────────────────────────────

    def _fresh_loop_labels(self) -> tuple[str, str]:
        n = self._label_counter
        self._label_counter += 1
        head = f"{constants.LOOP_LABEL_PREFIX}_{n}"
        return head, f"{head}_{constants.LOOP_END_LABEL_SUFFIX}"

    def _emit(self, line: str):
        self._lines.append(f"    {line}")

    def _emit_label(self, label: str):
        self._lines.append(f"{label}:")

    # ── entry point ──────────────────────────────────────────────

    def generate(self, program: Program) -> str:
        """Return the full assembly listing for *program*."""
        self._label_counter = 0
        self._lines = []
        self._emit_body(program.body)
        listing = "".join(
            [
                self._header(),
                "\n".join(self._lines) + ("\n" if self._lines else ""),
                self._epilogue(),
                self._fault_routines(),
                self._data_segment(),
            ]
        )
        logger.debug(
            "Generated %d body lines, %d loops (policy=%s)",
            len(self._lines),
            self._label_counter,
            self.config.policy.value,
        )
        return listing

    # ── tree walk ────────────────────────────────────────────────

    def _emit_body(self, body: tuple[Node, ...]):
        """Walk the tree with an explicit stack so nesting depth is unbounded."""
        frames: list[_Frame] = [_Frame(body)]
        while frames:
            frame = frames[-1]
            if frame.pos >= len(frame.body):
                frames.pop()
                if frame.labels is not None:
                    head, end = frame.labels
                    self._emit(f"jmp {head}")
                    self._emit_label(end)
                continue

            node = frame.body[frame.pos]
            frame.pos += 1
            if isinstance(node, Loop):
                labels = self._open_loop(node)
                frames.append(_Frame(node.body, labels=labels))
                continue
            self._emit_primitive(node)

    def _open_loop(self, loop: Loop) -> tuple[str, str]:
        head, end = self._fresh_loop_labels()
        if self.annotate:
            self._emit(f"; loop {loop.open_index}..{loop.close_index}")
        self._emit_label(head)
        self._emit(f"cmp {_CELL}, 0")
        self._emit(f"je {end}")
        return head, end

    def _emit_primitive(self, inst: Instruction):
        if self.annotate:
            self._emit(f"; {inst.op.symbol} (instruction {inst.index})")
        self._EMITTERS[inst.op](inst)

    # ── primitives ───────────────────────────────────────────────

    def _emit_increment(self, inst: Instruction):
        if not self.config.wraps:
            self._emit(f"mov {_IDX}, {inst.index}")
            self._emit(f"cmp {_CELL}, {constants.CELL_MAX}")
            self._emit("je CELL_OVERFLOW")
        self._emit(f"inc {_CELL}")

    def _emit_decrement(self, inst: Instruction):
        if not self.config.wraps:
            self._emit(f"mov {_IDX}, {inst.index}")
            self._emit(f"cmp {_CELL}, 0")
            self._emit("je CELL_UNDERFLOW")
        self._emit(f"dec {_CELL}")

    def _emit_move_right(self, inst: Instruction):
        if not self.config.wraps:
            self._emit(f"mov {_IDX}, {inst.index}")
            self._emit(f"cmp {_PTR}, TAPE_SIZE - 1")
            self._emit("jae POINTER_OVERFLOW")
            self._emit(f"inc {_PTR}")
        elif self.config.length_is_power_of_two:
            self._emit(f"inc {_PTR}")
            self._emit(f"and {_PTR}, TAPE_SIZE - 1")
        else:
            self._emit(f"inc {_PTR}")
            self._emit("xor eax, eax")
            self._emit(f"cmp {_PTR}, TAPE_SIZE")
            self._emit(f"cmove {_PTR}, rax")

    def _emit_move_left(self, inst: Instruction):
        if not self.config.wraps:
            self._emit(f"mov {_IDX}, {inst.index}")
            self._emit(f"test {_PTR}, {_PTR}")
            self._emit("jz POINTER_UNDERFLOW")
            self._emit(f"dec {_PTR}")
        elif self.config.length_is_power_of_two:
            self._emit(f"dec {_PTR}")
            self._emit(f"and {_PTR}, TAPE_SIZE - 1")
        else:
            self._emit("mov eax, TAPE_SIZE")
            self._emit(f"test {_PTR}, {_PTR}")
            self._emit(f"cmovz {_PTR}, rax")
            self._emit(f"dec {_PTR}")

    # ── fixed sections ───────────────────────────────────────────

    def _header(self) -> str:
        return _HEADER.format(
            sys_read=constants.SYS_READ,
            sys_write=constants.SYS_WRITE,
            sys_exit=constants.SYS_EXIT,
            stdin=constants.STDIN_FD,
            stdout=constants.STDOUT_FD,
            stderr=constants.STDERR_FD,
            exit_success=constants.EXIT_SUCCESS,
            exit_fault=constants.EXIT_FAULT,
            tape_size=self.config.length,
            base=constants.TAPE_BASE_REG,
            ptr=_PTR,
        )

    def _epilogue(self) -> str:
        return "\n" + _EPILOGUE.format(
            cell_addr=f"[{constants.TAPE_BASE_REG} + {_PTR}]",
            cell=_CELL,
            eof_value=constants.EOF_CELL_VALUE,
        )

    def _fault_routines(self) -> str:
        if self.config.wraps:
            return ""
        routines = [
            _FAULT_ROUTINE.format(label=label, message=message)
            for label, message, _text in _FAULT_ROUTINES
        ]
        return "".join(routines) + _FAULT_REPORTER.format(idx=_IDX)

    def _data_segment(self) -> str:
        lines = [_DATA_SEGMENT]
        if not self.config.wraps:
            for _label, message, text in _FAULT_ROUTINES:
                lines.append(f"{message} db {_fasm_string(text + ' at instruction ')}\n")
                lines.append(f"{message}_LEN = $ - {message}\n")
            lines.append("DIGITS rb 21\n")
        lines.append("TAPE rb TAPE_SIZE\n")
        return "".join(lines)


def generate_assembly(
    program: Program, config: TapeConfig = TapeConfig(), annotate: bool = False
) -> str:
    """Convenience wrapper: one-shot CodeGenerator."""
    return CodeGenerator(config, annotate=annotate).generate(program)
