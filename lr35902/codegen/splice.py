"""Replacement of generated regions inside hand-maintained files."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .errors import CodegenError


@dataclass(frozen=True, slots=True)
class Region:
    start: str
    end: str


DECODING_REGION = Region("__OPCODES_DECODING_REPLACEMENT_START__", "__OPCODES_DECODING_REPLACEMENT_END__")
EXECUTION_REGION = Region("__OPCODES_EXECUTION_REPLACEMENT_START__", "__OPCODES_EXECUTION_REPLACEMENT_END__")
TESTS_REGION = Region("__TESTS_REPLACEMENT_START__", "__TESTS_REPLACEMENT_END__")


class SpliceError(CodegenError):
    """The target text does not hold exactly one well-formed region."""


def _marker_line(lines: List[str], marker: str, subject: str) -> int:
    matches = [index for index, line in enumerate(lines) if line.strip() == f"# {marker}"]
    if len(matches) != 1:
        raise SpliceError(subject, f"expected one {marker} line, found {len(matches)}")
    return matches[0]


def splice(text: str, region: Region, content: str, subject: str = "<text>") -> str:
    """Return ``text`` with the lines between the region markers replaced by ``content``."""

    lines = text.splitlines(keepends=True)
    start = _marker_line(lines, region.start, subject)
    end = _marker_line(lines, region.end, subject)
    if end < start:
        raise SpliceError(subject, f"{region.end} precedes {region.start}")

    if content and not content.endswith("\n"):
        content += "\n"
    return "".join(lines[: start + 1]) + content + "".join(lines[end:])


__all__ = [
    "DECODING_REGION",
    "EXECUTION_REGION",
    "Region",
    "SpliceError",
    "TESTS_REGION",
    "splice",
]
