from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Union

from ..codegen.flags import CARRY_BIT_WIDTHS, FlagName

# Register/memory expectations are either literal values or Python
# expressions evaluated inside the generated test body.
ExpectedValue = Union[int, str]
ExpectedBytes = Union[Sequence[int], str]


@dataclass(frozen=True, slots=True)
class Baseline:
    pass


@dataclass(frozen=True, slots=True)
class FlagCase:
    flag: FlagName


ScenarioKind = Union[Baseline, FlagCase]


def kind_name(kind: ScenarioKind) -> str:
    if isinstance(kind, Baseline):
        return "base"
    if isinstance(kind, FlagCase):
        return f"flag_{kind.flag.value.lower()}"
    raise TypeError(f"Unknown scenario kind: {kind!r}")


@dataclass(frozen=True)
class TestScenario:
    """One conformance case for a concrete opcode.

    ``label`` distinguishes several scenarios of the same kind (e.g. a
    wraparound variant of the baseline).  ``registers`` keeps the authored
    order; it may hold 8-bit names, register pairs, ``SP`` and ``PC``.
    """

    __test__ = False

    kind: ScenarioKind
    label: str = ""
    extra_bytes: Tuple[int, ...] = ()
    presets: Tuple[str, ...] = ()
    registers: Mapping[str, ExpectedValue] = field(default_factory=dict)
    flags: Mapping[FlagName, bool] = field(default_factory=dict)
    memory: Mapping[int, ExpectedBytes] = field(default_factory=dict)
    branch_taken: Optional[bool] = None
    skip: bool = False

    @property
    def name(self) -> str:
        base = kind_name(self.kind)
        if not self.label:
            return base
        return f"{base}__{self.label}"


def baseline(label: str = "", **kwargs) -> TestScenario:
    return TestScenario(kind=Baseline(), label=label, **kwargs)


def flag_case(flag: FlagName, label: str = "", **kwargs) -> TestScenario:
    return TestScenario(kind=FlagCase(flag), label=label, **kwargs)


def skipped(flag: Optional[FlagName] = None) -> TestScenario:
    kind: ScenarioKind = Baseline() if flag is None else FlagCase(flag)
    return TestScenario(kind=kind, skip=True)


_REGISTERS_8 = frozenset({"A", "F", "B", "C", "D", "E", "H", "L"})


def preset_register(name: str, value: int) -> str:
    if name in _REGISTERS_8:
        return f"cpu[Reg8.{name}] = 0x{value:02X}"
    return f"cpu[Reg16.{name}] = 0x{value:04X}"


def preset_memory(address: int, value: int) -> str:
    return f"cpu.memory[0x{address:04X}] = 0x{value:02X}"


def preset_flag(flag: FlagName, value: bool) -> str:
    return f"cpu.set_flag(Flag.{flag.value}, {value})"


FixtureGenerator = Callable[..., List[TestScenario]]


@dataclass(frozen=True)
class Semantics:
    """Hand-authored behavior of one mnemonic family.

    ``operation`` is a Python statement block executed inside the generated
    ``Cpu.execute_<family>`` method.  ``fixtures`` receives the opcode's
    register, condition, bit index and restart vector operand names
    (immediates excluded) and returns the test scenarios for that opcode.

    ``carry_bits`` names, per computed half-carry/carry flag, the bit tested
    by ``Cpu.compute_carry_flag``; flags listed in ``self_managed`` are set by
    the fragment itself.
    """

    family: str
    operation: str
    fixtures: FixtureGenerator
    carry_bits: Mapping[FlagName, int] = field(default_factory=dict)
    self_managed: FrozenSet[FlagName] = frozenset()
    result_bits: int = 8

    def __post_init__(self) -> None:
        for flag, width in self.carry_bits.items():
            if width not in CARRY_BIT_WIDTHS:
                raise ValueError(f"{self.family}: unsupported carry bit width {width} for {flag.value}")
        if self.result_bits not in (8, 16):
            raise ValueError(f"{self.family}: unsupported result width {self.result_bits}")

    def scenarios(self, operand_names: Sequence[str]) -> List[TestScenario]:
        return list(self.fixtures(*operand_names))


def register_semantics(registry: Dict[str, Semantics], *entries: Semantics) -> None:
    for entry in entries:
        if entry.family in registry:
            raise ValueError(f"Semantics for {entry.family!r} registered twice")
        registry[entry.family] = entry


__all__ = [
    "Baseline",
    "ExpectedBytes",
    "ExpectedValue",
    "FixtureGenerator",
    "FlagCase",
    "ScenarioKind",
    "Semantics",
    "TestScenario",
    "baseline",
    "flag_case",
    "kind_name",
    "preset_flag",
    "preset_memory",
    "preset_register",
    "register_semantics",
    "skipped",
]
