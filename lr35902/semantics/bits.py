"""CB-prefixed rotates, shifts, SWAP and the single-bit operations."""

from __future__ import annotations

from typing import Dict, List, Tuple

from ..codegen.flags import FlagName
from .alu import BASE, SCRATCH_ADDRESS, Case, single_operand_fixtures
from .model import FlagCase, ScenarioKind, Semantics, TestScenario, preset_memory, preset_register

Z, C = FlagName.Z, FlagName.C

# Each core reads ``value`` and binds ``result`` (unmasked) and ``carry``.
_CORES: Dict[str, str] = {
    "RLC": """
        carry = (value & 0x80) != 0
        result = (value << 1) | (value >> 7)
    """,
    "RRC": """
        carry = (value & 0x01) != 0
        result = (value >> 1) | ((value & 0x01) << 7)
    """,
    "RL": """
        carry = (value & 0x80) != 0
        result = (value << 1) | int(self.get_flag(Flag.C))
    """,
    "RR": """
        carry = (value & 0x01) != 0
        result = (value >> 1) | (int(self.get_flag(Flag.C)) << 7)
    """,
    "SLA": """
        carry = (value & 0x80) != 0
        result = value << 1
    """,
    "SRA": """
        carry = (value & 0x01) != 0
        result = (value >> 1) | (value & 0x80)
    """,
    "SRL": """
        carry = (value & 0x01) != 0
        result = value >> 1
    """,
    "SWAP": """
        result = ((value & 0x0F) << 4) | (value >> 4)
    """,
}

_ZERO = Case(FlagCase(Z), 0x00, 0, 0x00, {Z: True})

_CASES: Dict[str, Tuple[Case, ...]] = {
    "RLC": (Case(BASE, 0x21, 0, 0x42), _ZERO, Case(FlagCase(C), 0x85, 0, 0x0B, {C: True})),
    "RRC": (Case(BASE, 0x42, 0, 0x21), _ZERO, Case(FlagCase(C), 0x85, 0, 0xC2, {C: True})),
    "RL": (
        Case(BASE, 0x21, 0, 0x42),
        Case(BASE, 0x21, 0, 0x43, {C: False}, label="carry_set", carry_in=True),
        _ZERO,
        Case(FlagCase(C), 0x85, 0, 0x0A, {C: True}),
    ),
    "RR": (
        Case(BASE, 0x42, 0, 0x21),
        Case(BASE, 0x42, 0, 0xA1, {C: False}, label="carry_set", carry_in=True),
        _ZERO,
        Case(FlagCase(C), 0x85, 0, 0x42, {C: True}),
    ),
    "SLA": (Case(BASE, 0x21, 0, 0x42), _ZERO, Case(FlagCase(C), 0x85, 0, 0x0A, {C: True})),
    "SRA": (Case(BASE, 0x84, 0, 0xC2), _ZERO, Case(FlagCase(C), 0x85, 0, 0xC2, {C: True})),
    "SRL": (Case(BASE, 0x84, 0, 0x42), _ZERO, Case(FlagCase(C), 0x85, 0, 0x42, {C: True})),
    "SWAP": (Case(BASE, 0x21, 0, 0x12), _ZERO),
}


def _operation(core: str, indirect: bool, sets_carry: bool) -> str:
    if indirect:
        lines = ["address = self[dst_register]", "value = memory[address]"]
    else:
        lines = ["value = self[dst_register]"]
    lines.extend(line.strip() for line in core.strip().splitlines())
    lines.append("memory[address] = result & 0xFF" if indirect else "self[dst_register] = result")
    if sets_carry:
        lines.append("self.set_flag(Flag.C, carry)")
    return "\n".join(lines)


def _entries() -> List[Semantics]:
    entries: List[Semantics] = []
    for mnemonic, core in _CORES.items():
        sets_carry = mnemonic != "SWAP"
        for operand, indirect in (("r", False), ("(HL)", True)):
            entries.append(
                Semantics(
                    family=f"{mnemonic} {operand}",
                    operation=_operation(core, indirect, sets_carry),
                    fixtures=single_operand_fixtures(_CASES[mnemonic]),
                    self_managed=frozenset({C}) if sets_carry else frozenset(),
                )
            )
    return entries


# BIT/SET/RES ---------------------------------------------------------------

_TARGETS = {"r": "self[dst_register]", "(HL)": "memory[self[dst_register]]"}


def _bit_scenario(
    kind: ScenarioKind, register: str, before: int, after: int, label: str = "", **kwargs
) -> TestScenario:
    if register == "HL":
        presets = (preset_register("HL", SCRATCH_ADDRESS), preset_memory(SCRATCH_ADDRESS, before))
        expected = {"memory": {SCRATCH_ADDRESS: [after]}}
    else:
        presets = (preset_register(register, before),)
        expected = {"registers": {register: after}}
    return TestScenario(kind=kind, label=label, presets=presets, **expected, **kwargs)


def _bit_fixtures(bit: str, register: str) -> List[TestScenario]:
    mask = 1 << int(bit)
    return [
        _bit_scenario(BASE, register, mask, mask, flags={Z: False}),
        _bit_scenario(FlagCase(Z), register, 0xFF ^ mask, 0xFF ^ mask, flags={Z: True}),
    ]


def _set_fixtures(bit: str, register: str) -> List[TestScenario]:
    mask = 1 << int(bit)
    return [
        _bit_scenario(BASE, register, 0x00, mask),
        _bit_scenario(BASE, register, 0xFF ^ mask, 0xFF, label="others_kept"),
    ]


def _res_fixtures(bit: str, register: str) -> List[TestScenario]:
    mask = 1 << int(bit)
    return [
        _bit_scenario(BASE, register, 0xFF, 0xFF ^ mask),
        _bit_scenario(BASE, register, mask, 0x00, label="only_bit_set"),
    ]


def _bit_entries() -> List[Semantics]:
    entries: List[Semantics] = []
    for operand, target in _TARGETS.items():
        entries.extend(
            [
                Semantics(
                    family=f"BIT n, {operand}",
                    operation=f"result = {target} & (1 << bit)",
                    fixtures=_bit_fixtures,
                ),
                Semantics(
                    family=f"RES n, {operand}",
                    operation=f"{target} &= ~(1 << bit)",
                    fixtures=_res_fixtures,
                ),
                Semantics(
                    family=f"SET n, {operand}",
                    operation=f"{target} |= 1 << bit",
                    fixtures=_set_fixtures,
                ),
            ]
        )
    return entries


ENTRIES = (*_entries(), *_bit_entries())

__all__ = ["ENTRIES"]
