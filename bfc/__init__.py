"""Tape-language interpreter and x86-64 compiler."""

from .run import run  # noqa: F401
from .api import (  # noqa: F401
    interpret,
    compile_source,
    dump_program,
    tree_stats,
    execute_traced,
)
from .lexer import strip_comments  # noqa: F401
from .run_types import Mode, PointerPolicy, TapeConfig  # noqa: F401
from .errors import (  # noqa: F401
    BfcError,
    StructuralError,
    TapeFault,
)
