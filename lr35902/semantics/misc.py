"""Accumulator adjustments, carry flag control and the accumulator rotates."""

from __future__ import annotations

from typing import List

from ..codegen.flags import FlagName
from .alu import BASE, Case
from .model import FlagCase, Semantics, TestScenario, baseline, flag_case, preset_flag, preset_register

Z, N, C = FlagName.Z, FlagName.N, FlagName.C


def _nop(*_: str) -> List[TestScenario]:
    return [baseline()]


def _daa(*_: str) -> List[TestScenario]:
    # The baseline presets H, which DAA clears, so it exercises the low digit fixup.
    return [
        baseline(presets=(preset_register("A", 0x11),), registers={"A": 0x17}),
        baseline(
            label="subtraction",
            presets=(preset_register("A", 0x0F), preset_flag(N, True)),
            registers={"A": 0x09},
        ),
        flag_case(Z, presets=(preset_register("A", 0x9A),), registers={"A": 0x00}, flags={Z: True, C: True}),
        flag_case(C, presets=(preset_register("A", 0xB5),), registers={"A": 0x15}, flags={C: True}),
    ]


def _cpl(*_: str) -> List[TestScenario]:
    return [baseline(presets=(preset_register("A", 0x35),), registers={"A": 0xCA})]


def _scf(*_: str) -> List[TestScenario]:
    return [baseline()]


def _ccf(*_: str) -> List[TestScenario]:
    return [
        baseline(presets=(preset_flag(C, True),), flags={C: False}),
        flag_case(C, flags={C: True}),
    ]


def _accumulator_rotate(*cases: Case):
    def fixtures(*_: str) -> List[TestScenario]:
        scenarios = []
        for case in cases:
            presets = [preset_register("A", case.operand1)]
            if case.carry_in:
                presets.append(preset_flag(C, True))
            scenarios.append(
                TestScenario(
                    kind=case.kind,
                    label=case.label,
                    presets=tuple(presets),
                    registers={"A": case.result},
                    flags=dict(case.flags),
                )
            )
        return scenarios

    return fixtures


ENTRIES = (
    Semantics(family="NOP", operation="", fixtures=_nop),
    Semantics(
        family="DAA",
        operation="""
            result = self[Reg8.A]
            subtract = self.get_flag(Flag.N)
            carry = self.get_flag(Flag.C)
            correction = 0
            if self.get_flag(Flag.H) or (not subtract and (result & 0x0F) > 0x09):
                correction |= 0x06
            if carry or (not subtract and result > 0x99):
                correction |= 0x60
                carry = True
            result = result - correction if subtract else result + correction
            self[Reg8.A] = result
            self.set_flag(Flag.C, carry)
        """,
        fixtures=_daa,
        self_managed=frozenset({C}),
    ),
    Semantics(family="CPL", operation="self[Reg8.A] = ~self[Reg8.A]", fixtures=_cpl),
    Semantics(family="SCF", operation="", fixtures=_scf),
    Semantics(
        family="CCF",
        operation="self.set_flag(Flag.C, not self.get_flag(Flag.C))",
        fixtures=_ccf,
        self_managed=frozenset({C}),
    ),
    Semantics(
        family="RLCA",
        operation="""
            value = self[Reg8.A]
            self[Reg8.A] = (value << 1) | (value >> 7)
            self.set_flag(Flag.C, (value & 0x80) != 0)
        """,
        fixtures=_accumulator_rotate(
            Case(BASE, 0x21, 0, 0x42),
            Case(FlagCase(C), 0x85, 0, 0x0B, {C: True}),
        ),
        self_managed=frozenset({C}),
    ),
    Semantics(
        family="RRCA",
        operation="""
            value = self[Reg8.A]
            self[Reg8.A] = (value >> 1) | ((value & 0x01) << 7)
            self.set_flag(Flag.C, (value & 0x01) != 0)
        """,
        fixtures=_accumulator_rotate(
            Case(BASE, 0x42, 0, 0x21),
            Case(FlagCase(C), 0x85, 0, 0xC2, {C: True}),
        ),
        self_managed=frozenset({C}),
    ),
    Semantics(
        family="RLA",
        operation="""
            value = self[Reg8.A]
            self[Reg8.A] = (value << 1) | int(self.get_flag(Flag.C))
            self.set_flag(Flag.C, (value & 0x80) != 0)
        """,
        fixtures=_accumulator_rotate(
            Case(BASE, 0x21, 0, 0x42),
            Case(BASE, 0x21, 0, 0x43, {C: False}, label="carry_set", carry_in=True),
            Case(FlagCase(C), 0x85, 0, 0x0A, {C: True}),
        ),
        self_managed=frozenset({C}),
    ),
    Semantics(
        family="RRA",
        operation="""
            value = self[Reg8.A]
            self[Reg8.A] = (value >> 1) | (int(self.get_flag(Flag.C)) << 7)
            self.set_flag(Flag.C, (value & 0x01) != 0)
        """,
        fixtures=_accumulator_rotate(
            Case(BASE, 0x42, 0, 0x21),
            Case(BASE, 0x42, 0, 0xA1, {C: False}, label="carry_set", carry_in=True),
            Case(FlagCase(C), 0x85, 0, 0x42, {C: True}),
        ),
        self_managed=frozenset({C}),
    ),
)

__all__ = ["ENTRIES"]
