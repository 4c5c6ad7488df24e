"""Lexer/filter — source text to instruction sequence."""

from __future__ import annotations

import logging

from .ir import Instruction, Op

logger = logging.getLogger(__name__)

_SYMBOLS: dict[str, Op] = {op.symbol: op for op in Op}


def lex(source: str) -> list[Instruction]:
    """Map each instruction character of *source* to an Instruction.

    Every other character is a comment and is dropped. Empty input yields an
    empty list.
    """
    instructions: list[Instruction] = []
    for offset, char in enumerate(source):
        op = _SYMBOLS.get(char)
        if op is None:
            continue
        instructions.append(Instruction(op=op, index=len(instructions), offset=offset))
    logger.debug(
        "Lexed %d instructions from %d source characters",
        len(instructions),
        len(source),
    )
    return instructions


def strip_comments(source: str) -> str:
    """Return *source* reduced to its instruction characters."""
    return "".join(char for char in source if char in _SYMBOLS)
