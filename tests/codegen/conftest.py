from __future__ import annotations

from typing import Any, Dict, Sequence

import pytest

from lr35902.codegen.pipeline import build_descriptors, load_table_files, parse_opcode_filter
from lr35902.semantics import SEMANTICS


def _operand(token: str) -> Dict[str, Any]:
    indirect = token.startswith("(") and token.endswith(")")
    name = token[1:-1] if indirect else token
    return {"name": name, "immediate": not indirect}


def make_entry(
    mnemonic: str,
    *operands: str,
    length: int = 1,
    cycles: Sequence[int] = (4,),
    flags: str = "----",
) -> Dict[str, Any]:
    """Opcode table entry in the upstream layout; ``(X)`` marks an indirect operand."""

    return {
        "mnemonic": mnemonic,
        "bytes": length,
        "cycles": list(cycles),
        "operands": [_operand(token) for token in operands],
        "immediate": True,
        "flags": dict(zip("ZNHC", flags)),
    }


@pytest.fixture
def entry():
    return make_entry


@pytest.fixture(scope="session")
def bundled_table():
    return load_table_files()


@pytest.fixture
def descriptors_for(bundled_table):
    """Descriptors of the bundled table narrowed to an opcode filter such as ``"06,CB37"``."""

    def build(only: str):
        descriptors, _ = build_descriptors(bundled_table, SEMANTICS, only=parse_opcode_filter(only))
        return descriptors

    return build
