"""Trace data types for step-by-step execution replay."""

from __future__ import annotations

from dataclasses import dataclass, field

from .ir import Instruction
from .run_types import ExecutionStats


@dataclass(frozen=True)
class TraceStep:
    """A single executed primitive instruction.

    ``pointer`` and ``cell`` are the tape state after the instruction ran.
    """

    step_index: int
    instruction: Instruction
    pointer: int
    cell: int


@dataclass(frozen=True)
class ExecutionTrace:
    """Complete trace of an interpretation run."""

    steps: list[TraceStep] = field(default_factory=list)
    stats: ExecutionStats = field(default_factory=ExecutionStats)
    output: bytes = b""
