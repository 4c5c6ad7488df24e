"""Orchestrator — run() entry point."""

from __future__ import annotations

import logging
import time
from typing import BinaryIO, Optional

from .codegen import CodeGenerator
from .lexer import lex
from .resolver import resolve
from .run_types import Mode, PipelineStats, RunResult, TapeConfig
from .tree_stats import loop_count, max_depth
from .vm import Interpreter

logger = logging.getLogger(__name__)


def run(
    source: str,
    mode: Mode = Mode.INTERPRET,
    config: TapeConfig = TapeConfig(),
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
    annotate: bool = False,
    verbose: bool = False,
) -> RunResult:
    """End-to-end: lex → resolve → interpret or generate code.

    Args:
        source: Raw program text.
        mode: ``Mode.INTERPRET`` or ``Mode.COMPILE``.
        config: Tape length and pointer policy shared by both back ends.
        stdin: Binary input stream for interpretation (``None`` = empty).
        stdout: Binary output stream for interpretation.
        annotate: Emit per-instruction comments in the assembly listing.
        verbose: Print the resolved tree and pipeline statistics.

    Raises:
        StructuralError: unbalanced loop delimiters.
        TapeFault: bounded-policy violation while interpreting.
    """
    mode = Mode(mode)
    pipeline_start = time.perf_counter()
    stats = PipelineStats(
        source_bytes=len(source.encode("utf-8")),
        source_lines=source.count("\n")
        + (1 if source and not source.endswith("\n") else 0),
        mode=mode.value,
        policy=config.policy.value,
    )

    # 1. Lex
    t0 = time.perf_counter()
    instructions = lex(source)
    stats.lex_time = time.perf_counter() - t0
    stats.instruction_count = len(instructions)

    # 2. Resolve
    t0 = time.perf_counter()
    program = resolve(instructions)
    stats.resolve_time = time.perf_counter() - t0
    stats.loop_count = loop_count(program)
    stats.max_depth = max_depth(program)
    logger.info(
        "Front end produced %d instructions, %d loops in %.1fms",
        stats.instruction_count,
        stats.loop_count,
        (stats.lex_time + stats.resolve_time) * 1000,
    )

    if verbose:
        print("═══ Program ═══")
        print(program.render())
        print()

    # 3. Back end
    result = RunResult(mode=mode, pipeline=stats)
    t0 = time.perf_counter()
    if mode == Mode.COMPILE:
        result.assembly = CodeGenerator(config, annotate=annotate).generate(program)
        stats.assembly_lines = result.assembly.count("\n")
    else:
        interpreter = Interpreter(program, config, stdin=stdin, stdout=stdout)
        result.stats = interpreter.run()
        stats.execution_steps = result.stats.steps
        stats.bytes_written = result.stats.bytes_written
        result.output = bytes(interpreter.output)
    stats.backend_time = time.perf_counter() - t0
    stats.total_time = time.perf_counter() - pipeline_start

    logger.info(
        "%s finished in %.1fms", mode.value.capitalize(), stats.total_time * 1000
    )
    if verbose:
        print(stats.report())

    return result
