"""Composable API functions for the interpret and compile pipelines.

Only source text crosses this boundary inbound; output bytes, assembly text,
rendered listings, or a fault cross it outbound.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Optional

from .codegen import CodeGenerator
from .ir import Instruction
from .lexer import lex
from .resolver import parse
from .run_types import InterpretResult, TapeConfig
from .tape import Tape
from .trace_types import ExecutionTrace, TraceStep
from .tree_stats import count_ops
from .vm import Interpreter

logger = logging.getLogger(__name__)


def interpret(
    source: str,
    config: TapeConfig = TapeConfig(),
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
) -> InterpretResult:
    """Parse and interpret a program.

    Args:
        source: The program text.
        config: Tape length and pointer policy.
        stdin: Binary stream supplying input bytes; ``None`` means no input,
            so every read stores 0.
        stdout: Optional binary stream receiving output as it is produced.

    Returns:
        An InterpretResult with all output bytes and execution metrics.

    Raises:
        StructuralError: unbalanced loop delimiters.
        TapeFault: bounded-policy violation; bytes written before it have
            already reached *stdout*.
    """
    program = parse(source)
    interpreter = Interpreter(program, config, stdin=stdin, stdout=stdout)
    stats = interpreter.run()
    return InterpretResult(output=bytes(interpreter.output), stats=stats)


def compile_source(
    source: str,
    config: TapeConfig = TapeConfig(),
    annotate: bool = False,
) -> str:
    """Parse a program and return its fasm assembly listing.

    Args:
        source: The program text.
        config: Tape length and pointer policy baked into the listing.
        annotate: Emit a comment before each instruction's code.

    Returns:
        The assembly listing as text.
    """
    logger.info("Compiling source (policy=%s, tape=%d)", config.policy.value, config.length)
    program = parse(source)
    return CodeGenerator(config, annotate=annotate).generate(program)


def dump_program(source: str) -> str:
    """Parse a program and return its resolved tree as an indented listing.

    Args:
        source: The program text.

    Returns:
        A multi-line string, one node per line, loop bodies indented.
    """
    return parse(source).render()


def tree_stats(source: str) -> dict[str, int]:
    """Lex a program and return op frequency counts.

    Args:
        source: The program text.

    Returns:
        A dict mapping op name strings to their occurrence counts.
    """
    return count_ops(lex(source))


def execute_traced(
    source: str,
    config: TapeConfig = TapeConfig(),
    stdin: Optional[BinaryIO] = None,
) -> ExecutionTrace:
    """Interpret a program while recording every executed instruction.

    A runtime fault still propagates; no partial trace is returned.

    Args:
        source: The program text.
        config: Tape length and pointer policy.
        stdin: Binary input stream (``None`` = empty).

    Returns:
        An ExecutionTrace with one TraceStep per executed primitive.
    """
    steps: list[TraceStep] = []

    def record(inst: Instruction, tape: Tape):
        steps.append(
            TraceStep(
                step_index=len(steps),
                instruction=inst,
                pointer=tape.pointer,
                cell=tape.read(),
            )
        )

    logger.info("execute_traced: policy=%s, tape=%d", config.policy.value, config.length)
    program = parse(source)
    interpreter = Interpreter(program, config, stdin=stdin, on_step=record)
    stats = interpreter.run()
    return ExecutionTrace(steps=steps, stats=stats, output=bytes(interpreter.output))
