"""Hand-authored behavior of the LR35902 mnemonic families.

Each module contributes ``ENTRIES``; ``SEMANTICS`` maps a family name, as
spelled in the family grouping, to its :class:`Semantics`.
"""

from __future__ import annotations

from typing import Dict

from . import alu, bits, control, loads, misc
from .model import Semantics, register_semantics

SEMANTICS: Dict[str, Semantics] = {}
register_semantics(
    SEMANTICS,
    *loads.ENTRIES,
    *alu.ENTRIES,
    *misc.ENTRIES,
    *bits.ENTRIES,
    *control.ENTRIES,
)

__all__ = ["SEMANTICS", "Semantics"]
