"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

DEFAULT_TAPE_LENGTH = 30000
# Pointer comparisons and masks in the listing take the length as a signed
# 32-bit immediate.
MAX_TAPE_LENGTH = (1 << 31) - 1

CELL_BITS = 8
CELL_MODULUS = 1 << CELL_BITS
CELL_MAX = CELL_MODULUS - 1

# End-of-input on a read stores this value in the current cell.
EOF_CELL_VALUE = 0

LOOP_LABEL_PREFIX = "loop"
LOOP_END_LABEL_SUFFIX = "end"

EXIT_SUCCESS = 0
EXIT_FAULT = 1

SYS_READ = 0
SYS_WRITE = 1
SYS_EXIT = 60

STDIN_FD = 0
STDOUT_FD = 1
STDERR_FD = 2

# Register roles in generated code
TAPE_BASE_REG = "rbx"
POINTER_REG = "r12"
FAULT_INDEX_REG = "r13"

# Fault message prefixes shared by the interpreter and the generated binary.
# The full message is "<prefix> at instruction <N>".
POINTER_UNDERFLOW_MESSAGE = "pointer moved below zero"
POINTER_OVERFLOW_MESSAGE = "pointer moved past upper bound"
CELL_UNDERFLOW_MESSAGE = "cell decremented below zero"
CELL_OVERFLOW_MESSAGE = f"cell incremented past {CELL_MAX}"

UNMATCHED_OPEN_MESSAGE = "unmatched loop-open"
UNMATCHED_CLOSE_MESSAGE = "unmatched loop-close"

MODE_INTERPRET = "interpret"
MODE_COMPILE = "compile"
