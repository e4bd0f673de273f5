"""Generator for the LR35902 decoder, execution routines and conformance tests.

Inputs are the upstream opcode table, the family grouping in ``data/`` and
the authored semantics in :mod:`lr35902.semantics`; :func:`pipeline.generate`
turns them into three text blocks that :mod:`splice` writes into the marked
regions of the emulator and its test module.
"""

from .errors import (
    AuthoringGap,
    CodegenError,
    DataInconsistency,
    FlagSpecViolation,
    TestFixtureMissing,
)

__all__ = [
    "AuthoringGap",
    "CodegenError",
    "DataInconsistency",
    "FlagSpecViolation",
    "TestFixtureMissing",
]
