"""Pure functions for computing statistics over instruction lists and trees."""

from __future__ import annotations

from collections import Counter
from typing import Iterator

from .ir import Instruction, Loop, Node, Program


def count_ops(instructions: list[Instruction]) -> dict[str, int]:
    """Return a frequency map of op names in the given instruction list.

    Args:
        instructions: A list of lexed instructions.

    Returns:
        A dict mapping op name strings to their occurrence counts.
        Empty dict for an empty input list.
    """
    return dict(Counter(inst.op.name for inst in instructions))


def iter_nodes(program: Program) -> Iterator[tuple[Node, int]]:
    """Yield every node in the tree with its loop nesting depth, pre-order."""
    stack: list[tuple[Node, int]] = [(node, 0) for node in reversed(program.body)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        if isinstance(node, Loop):
            stack.extend((child, depth + 1) for child in reversed(node.body))


def primitive_count(program: Program) -> int:
    """Number of non-delimiter instructions held in the tree."""
    return sum(1 for node, _ in iter_nodes(program) if not isinstance(node, Loop))


def loop_count(program: Program) -> int:
    return sum(1 for node, _ in iter_nodes(program) if isinstance(node, Loop))


def max_depth(program: Program) -> int:
    """Deepest loop nesting; 0 for a program without loops."""
    return max(
        (depth + 1 for node, depth in iter_nodes(program) if isinstance(node, Loop)),
        default=0,
    )
