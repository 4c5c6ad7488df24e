"""Tape model — the memory both back ends agree on."""

from __future__ import annotations

import logging

from . import constants
from .errors import CellOverflow, CellUnderflow, PointerOverflow, PointerUnderflow
from .run_types import TapeConfig

logger = logging.getLogger(__name__)


class Tape:
    """Fixed-length byte tape with a single pointer.

    Under the wrapping policy the pointer wraps modulo the tape length and
    cells wrap modulo 256. Under the bounded policy any operation that would
    leave those ranges raises a TapeFault and leaves the tape untouched.
    ``index`` arguments are the instruction index reported by the fault.
    """

    def __init__(self, config: TapeConfig = TapeConfig()):
        self.config = config
        self.cells = bytearray(config.length)
        self.pointer = 0

    def __len__(self) -> int:
        return len(self.cells)

    def read(self) -> int:
        return self.cells[self.pointer]

    def write(self, value: int):
        self.cells[self.pointer] = value & constants.CELL_MAX

    def move(self, delta: int, index: int = 0):
        target = self.pointer + delta
        if self.config.wraps:
            self.pointer = target % len(self.cells)
            return
        if target < 0:
            logger.debug("Pointer underflow at instruction %d (pointer %d)", index, self.pointer)
            raise PointerUnderflow(index, self.pointer)
        if target >= len(self.cells):
            logger.debug("Pointer overflow at instruction %d (pointer %d)", index, self.pointer)
            raise PointerOverflow(index, self.pointer)
        self.pointer = target

    def add(self, delta: int, index: int = 0):
        value = self.cells[self.pointer] + delta
        if self.config.wraps:
            self.cells[self.pointer] = value % constants.CELL_MODULUS
            return
        if value < 0:
            logger.debug("Cell underflow at instruction %d (pointer %d)", index, self.pointer)
            raise CellUnderflow(index, self.pointer)
        if value > constants.CELL_MAX:
            logger.debug("Cell overflow at instruction %d (pointer %d)", index, self.pointer)
            raise CellOverflow(index, self.pointer)
        self.cells[self.pointer] = value

    def snapshot(self, start: int = 0, stop: int | None = None) -> bytes:
        """Copy of the cells in ``[start, stop)``."""
        return bytes(self.cells[start:stop])
