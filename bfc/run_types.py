"""Run pipeline data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from . import constants


class PointerPolicy(str, Enum):
    """How pointer and cell arithmetic behave at the edges."""

    WRAPPING = "wrapping"
    BOUNDED = "bounded"


class Mode(str, Enum):
    """Which back end consumes the resolved tree."""

    INTERPRET = constants.MODE_INTERPRET
    COMPILE = constants.MODE_COMPILE


@dataclass(frozen=True)
class TapeConfig:
    """Tape geometry and edge policy, fixed for the whole run.

    Both back ends receive the same TapeConfig; it is the only source of
    truth for wrap-vs-fault behaviour.
    """

    policy: PointerPolicy = PointerPolicy.BOUNDED
    length: int = constants.DEFAULT_TAPE_LENGTH

    def __post_init__(self):
        if not isinstance(self.length, int) or self.length < 1:
            raise ValueError(f"Tape length must be a positive integer, got {self.length!r}")
        if self.length > constants.MAX_TAPE_LENGTH:
            raise ValueError(
                f"Tape length must not exceed {constants.MAX_TAPE_LENGTH}, got {self.length}"
            )
        object.__setattr__(self, "policy", PointerPolicy(self.policy))

    @property
    def wraps(self) -> bool:
        return self.policy == PointerPolicy.WRAPPING

    @property
    def length_is_power_of_two(self) -> bool:
        return self.length & (self.length - 1) == 0


@dataclass
class ExecutionStats:
    """Returned execution metrics from Interpreter.run."""

    steps: int = 0
    loop_iterations: int = 0
    bytes_read: int = 0
    bytes_written: int = 0
    final_pointer: int = 0


@dataclass
class InterpretResult:
    """Output bytes and metrics of a completed interpretation."""

    output: bytes = b""
    stats: ExecutionStats = field(default_factory=ExecutionStats)


@dataclass
class RunResult:
    """What ``run`` hands back: assembly text or interpretation output."""

    mode: Mode
    output: bytes = b""
    assembly: str = ""
    stats: ExecutionStats | None = None
    pipeline: PipelineStats | None = None


@dataclass
class PipelineStats:
    """Timing and size statistics for each pipeline stage."""

    source_bytes: int = 0
    source_lines: int = 0
    mode: str = ""
    policy: str = ""

    # Stage timings (seconds)
    lex_time: float = 0.0
    resolve_time: float = 0.0
    backend_time: float = 0.0
    total_time: float = 0.0

    # Output sizes
    instruction_count: int = 0
    loop_count: int = 0
    max_depth: int = 0
    assembly_lines: int = 0

    # Execution stats
    execution_steps: int = 0
    bytes_written: int = 0

    def report(self) -> str:
        lines = [
            "═══ Pipeline Statistics ═══",
            f"  Source: {self.source_lines} lines, {self.source_bytes} bytes ({self.mode}, {self.policy})",
            "",
            f"  {'Stage':<20} {'Time':>10}  {'Output':>30}",
            f"  {'─' * 20} {'─' * 10}  {'─' * 30}",
        ]

        if self.mode == constants.MODE_COMPILE:
            backend_stage = ("Generate code", f"{self.assembly_lines} assembly lines")
        else:
            backend_stage = (
                "Interpret",
                f"{self.execution_steps} steps, {self.bytes_written} bytes out",
            )
        stages = [
            ("Lex", self.lex_time, f"{self.instruction_count} instructions"),
            (
                "Resolve",
                self.resolve_time,
                f"{self.loop_count} loops, depth {self.max_depth}",
            ),
            (backend_stage[0], self.backend_time, backend_stage[1]),
        ]
        for name, t, output in stages:
            time_str = f"{t * 1000:>8.1f}ms"
            lines.append(f"  {name:<20} {time_str:>10}  {output:>30}")

        lines.append(f"  {'─' * 20} {'─' * 10}  {'─' * 30}")
        lines.append(f"  {'Total':<20} {self.total_time * 1000:>8.1f}ms")
        return "\n".join(lines)
