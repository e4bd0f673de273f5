from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Mapping, Optional, Tuple, Union


class FlagName(str, Enum):
    Z = "Z"
    N = "N"
    H = "H"
    C = "C"

    @property
    def expectation_key(self) -> str:
        return f"{self.value.lower()}f"


# Canonical order, shared by the emitted flag blocks and test assertions.
FLAG_ORDER: Tuple[FlagName, ...] = (FlagName.Z, FlagName.N, FlagName.H, FlagName.C)

CARRY_BIT_WIDTHS = frozenset({4, 8, 12, 16})


@dataclass(frozen=True, slots=True)
class FixedFalse:
    pass


@dataclass(frozen=True, slots=True)
class FixedTrue:
    pass


@dataclass(frozen=True, slots=True)
class Unaffected:
    pass


@dataclass(frozen=True, slots=True)
class Computed:
    carry_bits: Optional[int] = None

    def __post_init__(self) -> None:
        if self.carry_bits is not None and self.carry_bits not in CARRY_BIT_WIDTHS:
            raise ValueError(f"Unsupported carry bit width: {self.carry_bits}")


FlagEffect = Union[FixedFalse, FixedTrue, Unaffected, Computed]


def is_fixed(effect: FlagEffect) -> bool:
    return isinstance(effect, (FixedFalse, FixedTrue))


def fixed_value(effect: FlagEffect) -> bool:
    if isinstance(effect, FixedTrue):
        return True
    if isinstance(effect, FixedFalse):
        return False
    raise TypeError(f"Flag effect is not fixed: {effect!r}")


def parse_flag_state(flag: FlagName, state: str) -> FlagEffect:
    """Map a table flag state ("0", "1", "-", or the flag's own letter)."""

    if state == "0":
        return FixedFalse()
    if state == "1":
        return FixedTrue()
    if state == "-":
        return Unaffected()
    if state == flag.value:
        return Computed()
    raise ValueError(f"Invalid state {state!r} for flag {flag.value}")


@dataclass(frozen=True, slots=True)
class FlagSpec:
    z: FlagEffect
    n: FlagEffect
    h: FlagEffect
    c: FlagEffect

    @classmethod
    def from_table(cls, raw: Mapping[str, str]) -> "FlagSpec":
        effects = {}
        for flag in FLAG_ORDER:
            if flag.value not in raw:
                raise ValueError(f"Missing flag {flag.value}")
            effects[flag.value.lower()] = parse_flag_state(flag, str(raw[flag.value]))
        return cls(**effects)

    def get(self, flag: FlagName) -> FlagEffect:
        return getattr(self, flag.value.lower())

    def items(self) -> Iterator[Tuple[FlagName, FlagEffect]]:
        for flag in FLAG_ORDER:
            yield flag, self.get(flag)

    def computed(self) -> Tuple[FlagName, ...]:
        return tuple(flag for flag, effect in self.items() if isinstance(effect, Computed))

    def fixed(self) -> Tuple[Tuple[FlagName, bool], ...]:
        return tuple(
            (flag, fixed_value(effect)) for flag, effect in self.items() if is_fixed(effect)
        )

    def with_effect(self, flag: FlagName, effect: FlagEffect) -> "FlagSpec":
        values = {name.value.lower(): current for name, current in self.items()}
        values[flag.value.lower()] = effect
        return FlagSpec(**values)


__all__ = [
    "CARRY_BIT_WIDTHS",
    "Computed",
    "FLAG_ORDER",
    "FixedFalse",
    "FixedTrue",
    "FlagEffect",
    "FlagName",
    "FlagSpec",
    "Unaffected",
    "fixed_value",
    "is_fixed",
    "parse_flag_state",
]
