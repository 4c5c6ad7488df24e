"""IR Design — lexed instructions and the resolved loop tree."""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict


class Op(str, Enum):
    # Pointer movement
    MOVE_LEFT = "<"
    MOVE_RIGHT = ">"
    # Cell arithmetic
    INCREMENT = "+"
    DECREMENT = "-"
    # I/O
    OUTPUT = "."
    INPUT = ","
    # Loop delimiters (never appear inside a resolved tree)
    LOOP_OPEN = "["
    LOOP_CLOSE = "]"

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def is_delimiter(self) -> bool:
        return self in (Op.LOOP_OPEN, Op.LOOP_CLOSE)


class Instruction(BaseModel):
    """One lexed instruction.

    ``index`` is the position in the lexed instruction sequence and is what
    every fault message reports; ``offset`` is the character offset in the
    original source text.
    """

    model_config = ConfigDict(frozen=True)

    op: Op
    index: int
    offset: int = 0

    def __str__(self) -> str:
        return f"{self.op.symbol}  # {self.index}@{self.offset}"


class Loop(BaseModel):
    """A resolved loop owning its body outright."""

    model_config = ConfigDict(frozen=True)

    body: tuple[Node, ...] = ()
    open_index: int
    close_index: int

    def __str__(self) -> str:
        return f"[  # {self.open_index}..{self.close_index}"


Node = Union[Instruction, Loop]

Loop.model_rebuild()


class Program(BaseModel):
    """Root of the resolved tree."""

    model_config = ConfigDict(frozen=True)

    body: tuple[Node, ...] = ()
    instruction_count: int = 0

    def render(self, indent: str = "  ") -> str:
        """Return an indented, one-node-per-line listing of the tree."""
        lines: list[str] = []
        stack: list[tuple[tuple[Node, ...], int, int]] = [(self.body, 0, 0)]
        while stack:
            body, pos, depth = stack.pop()
            if pos >= len(body):
                if depth > 0:
                    lines.append(f"{indent * (depth - 1)}]")
                continue
            node = body[pos]
            stack.append((body, pos + 1, depth))
            lines.append(f"{indent * depth}{node}")
            if isinstance(node, Loop):
                stack.append((node.body, 0, depth + 1))
        return "\n".join(lines)
