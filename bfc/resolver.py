"""Structure resolver — matches loop delimiters into an owning tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .errors import UnmatchedLoopClose, UnmatchedLoopOpen
from .ir import Instruction, Loop, Node, Op, Program
from .lexer import lex

logger = logging.getLogger(__name__)


@dataclass
class _OpenBody:
    open_index: int
    nodes: list[Node] = field(default_factory=list)


def resolve(instructions: list[Instruction]) -> Program:
    """Build the resolved tree in a single stack-based pass.

    The stack starts with an implicit root body. A loop-open pushes a new
    body; a loop-close pops the top body and appends it, as a Loop, to the
    body below it.

    Raises:
        UnmatchedLoopClose: a loop-close arrives with only the root open.
        UnmatchedLoopOpen: bodies other than the root are still open at end
            of input. The reported index is the innermost open delimiter.
    """
    root = _OpenBody(open_index=-1)
    stack: list[_OpenBody] = [root]

    for inst in instructions:
        if inst.op == Op.LOOP_OPEN:
            stack.append(_OpenBody(open_index=inst.index))
        elif inst.op == Op.LOOP_CLOSE:
            if len(stack) == 1:
                logger.debug("Unmatched loop-close at instruction %d", inst.index)
                raise UnmatchedLoopClose(inst.index)
            closed = stack.pop()
            stack[-1].nodes.append(
                Loop(
                    body=tuple(closed.nodes),
                    open_index=closed.open_index,
                    close_index=inst.index,
                )
            )
        else:
            stack[-1].nodes.append(inst)

    if len(stack) > 1:
        logger.debug(
            "%d loop(s) left open; innermost at instruction %d",
            len(stack) - 1,
            stack[-1].open_index,
        )
        raise UnmatchedLoopOpen(stack[-1].open_index)

    return Program(body=tuple(root.nodes), instruction_count=len(instructions))


def parse(source: str) -> Program:
    """Lex and resolve *source* in one step."""
    return resolve(lex(source))
