"""Shared helpers for the interpreter / compiled-binary parity suite."""

import io
import logging
import platform
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

from bfc import constants
from bfc.api import compile_source, interpret
from bfc.errors import TapeFault
from bfc.run_types import TapeConfig

logger = logging.getLogger(__name__)

FASM = shutil.which("fasm")

CAN_RUN_NATIVE = (
    FASM is not None
    and sys.platform.startswith("linux")
    and platform.machine().lower() in ("x86_64", "amd64")
)

requires_native = pytest.mark.skipif(
    not CAN_RUN_NATIVE, reason="needs fasm on x86-64 Linux"
)

NATIVE_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class Outcome:
    """Observable behaviour of one run: bytes written and the fault message, if any."""

    stdout: bytes
    fault: str | None


def interpret_outcome(source: str, config: TapeConfig, stdin: bytes) -> Outcome:
    """Run *source* through the interpreter and capture its outcome."""
    sink = io.BytesIO()
    try:
        interpret(source, config, stdin=io.BytesIO(stdin), stdout=sink)
    except TapeFault as exc:
        return Outcome(stdout=sink.getvalue(), fault=str(exc))
    return Outcome(stdout=sink.getvalue(), fault=None)


def assemble(source: str, config: TapeConfig, workdir: Path) -> Path:
    """Compile *source*, assemble it with fasm, and return the binary path."""
    asm_path = workdir / "program.asm"
    binary_path = workdir / "program"
    asm_path.write_text(compile_source(source, config))
    completed = subprocess.run(
        [FASM, str(asm_path), str(binary_path)],
        capture_output=True,
        text=True,
    )
    assert completed.returncode == 0, f"fasm failed:\n{completed.stdout}{completed.stderr}"
    binary_path.chmod(0o755)
    return binary_path


def native_outcome(source: str, config: TapeConfig, stdin: bytes, workdir: Path) -> Outcome:
    """Compile, assemble and execute *source*, capturing its outcome."""
    binary = assemble(source, config, workdir)
    completed = subprocess.run(
        [str(binary)],
        input=stdin,
        capture_output=True,
        timeout=NATIVE_TIMEOUT_SECONDS,
    )
    logger.debug("native run exited %d", completed.returncode)
    assert completed.returncode in (constants.EXIT_SUCCESS, constants.EXIT_FAULT)
    if completed.returncode == constants.EXIT_FAULT:
        return Outcome(
            stdout=completed.stdout,
            fault=completed.stderr.decode("utf-8").rstrip("\n"),
        )
    assert completed.stderr == b""
    return Outcome(stdout=completed.stdout, fault=None)
