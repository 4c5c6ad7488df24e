"""Structural and runtime faults.

Every fault renders as ``"<description> at instruction <N>"``. Runtime fault
messages are byte-for-byte what a compiled binary writes to stderr before
exiting, so callers can compare both back ends on the message alone.
"""

from __future__ import annotations

from . import constants


class BfcError(Exception):
    """Base class for all faults raised by the core."""

    description: str = "fault"

    def __init__(self, index: int):
        self.index = index
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return f"{self.description} at instruction {self.index}"

    def __str__(self) -> str:
        return self.message


class StructuralError(BfcError):
    """Raised during structure resolution, before any execution begins."""


class UnmatchedLoopOpen(StructuralError):
    description = constants.UNMATCHED_OPEN_MESSAGE

    @property
    def message(self) -> str:
        return f"{super().message}: no corresponding loop-close found"


class UnmatchedLoopClose(StructuralError):
    description = constants.UNMATCHED_CLOSE_MESSAGE


class TapeFault(BfcError):
    """A bounded-policy violation detected while executing."""

    def __init__(self, index: int, pointer: int):
        self.pointer = pointer
        super().__init__(index)


class PointerUnderflow(TapeFault):
    description = constants.POINTER_UNDERFLOW_MESSAGE


class PointerOverflow(TapeFault):
    description = constants.POINTER_OVERFLOW_MESSAGE


class CellUnderflow(TapeFault):
    description = constants.CELL_UNDERFLOW_MESSAGE


class CellOverflow(TapeFault):
    description = constants.CELL_OVERFLOW_MESSAGE
