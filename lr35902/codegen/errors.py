from __future__ import annotations

from typing import Iterable, Optional, Tuple


def format_opcode(opcode: int, prefix: Optional[int] = None) -> str:
    if prefix is None:
        return f"0x{opcode:02X}"
    return f"0x{prefix:02X}/0x{opcode:02X}"


class CodegenError(Exception):
    """Base class for generation faults.

    `subject` identifies the offending family or opcode(s) so that the
    message can be traced back to the input tables.
    """

    def __init__(self, subject: str, message: str) -> None:
        super().__init__(f"{subject}: {message}")
        self.subject = subject
        self.message = message


class DataInconsistency(CodegenError):
    """Table/grouping data contradicts itself (duplicate or divergent opcodes)."""

    def __init__(
        self, subject: str, message: str, opcodes: Iterable[str] = ()
    ) -> None:
        super().__init__(subject, message)
        self.opcodes: Tuple[str, ...] = tuple(opcodes)


class AuthoringGap(CodegenError):
    """A family has no hand-authored semantics."""


class FlagSpecViolation(CodegenError):
    """A computed flag has no way of being produced by the emitted routine."""


class TestFixtureMissing(CodegenError):
    """A declared flag case has no test scenario."""

    __test__ = False


__all__ = [
    "AuthoringGap",
    "CodegenError",
    "DataInconsistency",
    "FlagSpecViolation",
    "TestFixtureMissing",
    "format_opcode",
]
