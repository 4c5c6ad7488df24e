"""Tree-walking interpreter over the resolved program."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

from . import constants
from .ir import Instruction, Loop, Node, Op, Program
from .run_types import ExecutionStats, TapeConfig
from .tape import Tape

logger = logging.getLogger(__name__)

StepHook = Callable[[Instruction, Tape], None]


@dataclass
class _Frame:
    body: tuple[Node, ...]
    loop: Optional[Loop] = None
    pos: int = 0


class Interpreter:
    """Executes a Program against a fresh Tape.

    Loops are driven by an explicit frame stack rather than recursion, so
    nesting depth is limited by memory only. A loop tests the current cell
    on entry and again each time its body is exhausted.

    Args:
        program: The resolved tree.
        config: Tape length and pointer policy.
        stdin: Binary stream read one byte per input instruction. ``None``
            behaves as an empty stream.
        stdout: Binary stream receiving output bytes as they are produced.
            Output is also collected in ``self.output``.
        on_step: Called after every executed primitive instruction.
    """

    def __init__(
        self,
        program: Program,
        config: TapeConfig = TapeConfig(),
        stdin: Optional[BinaryIO] = None,
        stdout: Optional[BinaryIO] = None,
        on_step: Optional[StepHook] = None,
    ):
        self.program = program
        self.config = config
        self.tape = Tape(config)
        self.output = bytearray()
        self.stats = ExecutionStats()
        self._stdin = stdin
        self._stdout = stdout
        self._on_step = on_step
        self._dispatch: dict[Op, Callable[[Instruction], None]] = {
            Op.MOVE_LEFT: lambda inst: self.tape.move(-1, inst.index),
            Op.MOVE_RIGHT: lambda inst: self.tape.move(1, inst.index),
            Op.INCREMENT: lambda inst: self.tape.add(1, inst.index),
            Op.DECREMENT: lambda inst: self.tape.add(-1, inst.index),
            Op.OUTPUT: self._output,
            Op.INPUT: self._input,
        }

    def run(self) -> ExecutionStats:
        """Execute the whole program.

        Raises:
            TapeFault: a bounded-policy violation. Output written before the
                fault has already reached ``stdout``.
        """
        logger.debug(
            "Interpreting %d instructions (policy=%s, tape=%d)",
            self.program.instruction_count,
            self.config.policy.value,
            self.config.length,
        )
        tape = self.tape
        frames: list[_Frame] = [_Frame(self.program.body)]

        while frames:
            frame = frames[-1]
            if frame.pos >= len(frame.body):
                if frame.loop is not None and tape.read():
                    frame.pos = 0
                    self.stats.loop_iterations += 1
                else:
                    frames.pop()
                continue

            node = frame.body[frame.pos]
            frame.pos += 1
            if isinstance(node, Loop):
                if tape.read():
                    frames.append(_Frame(node.body, loop=node))
                    self.stats.loop_iterations += 1
                continue

            self._dispatch[node.op](node)
            self.stats.steps += 1
            if self._on_step is not None:
                self._on_step(node, tape)

        self.stats.final_pointer = tape.pointer
        logger.debug(
            "Interpretation finished: %d steps, %d bytes written",
            self.stats.steps,
            self.stats.bytes_written,
        )
        return self.stats

    def _output(self, inst: Instruction):
        byte = bytes((self.tape.read(),))
        self.output += byte
        self.stats.bytes_written += 1
        if self._stdout is not None:
            self._stdout.write(byte)

    def _input(self, inst: Instruction):
        data = self._stdin.read(1) if self._stdin is not None else b""
        if not data:
            self.tape.write(constants.EOF_CELL_VALUE)
            return
        self.stats.bytes_read += 1
        self.tape.write(data[0])
