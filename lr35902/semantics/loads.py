"""8-bit and 16-bit loads, and the stack transfers."""

from __future__ import annotations

from typing import Dict, List, Optional

from ..codegen.flags import FlagName
from .model import (
    Baseline,
    FlagCase,
    ScenarioKind,
    Semantics,
    TestScenario,
    baseline,
    preset_memory,
    preset_register,
    skipped,
)


def _ld_r_n(register: str) -> List[TestScenario]:
    return [baseline(extra_bytes=(0x21,), registers={register: 0x21})]


def _ld_r1_r2(register1: str, register2: str) -> List[TestScenario]:
    return [
        baseline(
            presets=(preset_register(register2, 0x21),),
            registers={register1: 0x21},
        )
    ]


def _ld_r1_irr2(register1: str, register2: str) -> List[TestScenario]:
    return [
        baseline(
            presets=(preset_memory(0x0CAF, 0x21), preset_register(register2, 0x0CAF)),
            registers={register1: 0x21},
        )
    ]


def _ld_irr1_r2(register1: str, register2: str) -> List[TestScenario]:
    # When r2 is a half of rr1, the address preset overwrites it; the stored
    # byte is whatever r2 holds right before execution.
    return [
        baseline(
            presets=(
                preset_register(register2, 0x21),
                preset_register(register1, 0x0CAF),
                f"expected_value = cpu[Reg8.{register2}]",
            ),
            memory={0x0CAF: "[expected_value]"},
        )
    ]


def _ld_ihl_n(*_: str) -> List[TestScenario]:
    return [
        baseline(
            extra_bytes=(0x21,),
            presets=(preset_register("HL", 0x0CAF),),
            memory={0x0CAF: [0x21]},
        )
    ]


def _ld_a_inn(*_: str) -> List[TestScenario]:
    return [
        baseline(
            extra_bytes=(0xAF, 0x0C),
            presets=(preset_memory(0x0CAF, 0x21),),
            registers={"A": 0x21},
        )
    ]


def _ld_inn_a(*_: str) -> List[TestScenario]:
    return [
        baseline(
            extra_bytes=(0xAF, 0x0C),
            presets=(preset_register("A", 0x21),),
            memory={0x0CAF: [0x21]},
        )
    ]


def _ld_a_ic(*_: str) -> List[TestScenario]:
    return [
        baseline(
            presets=(preset_register("C", 0x13), preset_memory(0xFF13, 0x21)),
            registers={"A": 0x21},
        )
    ]


def _ld_ic_a(*_: str) -> List[TestScenario]:
    return [
        baseline(
            presets=(preset_register("A", 0x21), preset_register("C", 0x13)),
            memory={0xFF13: [0x21]},
        )
    ]


def _ldd_a_ihl(*_: str) -> List[TestScenario]:
    return [
        baseline(
            presets=(preset_register("HL", 0x0000), preset_memory(0x0000, 0x21)),
            registers={"A": 0x21, "HL": 0xFFFF},
        )
    ]


def _ldd_ihl_a(*_: str) -> List[TestScenario]:
    return [
        baseline(
            presets=(preset_register("A", 0x21), preset_register("HL", 0x0000)),
            registers={"HL": 0xFFFF},
            memory={0x0000: [0x21]},
        )
    ]


def _ldi_a_ihl(*_: str) -> List[TestScenario]:
    return [
        baseline(
            presets=(preset_register("HL", 0xFFFF), preset_memory(0xFFFF, 0x21)),
            registers={"A": 0x21, "HL": 0x0000},
        )
    ]


def _ldi_ihl_a(*_: str) -> List[TestScenario]:
    return [
        baseline(
            presets=(preset_register("A", 0x21), preset_register("HL", 0xFFFF)),
            registers={"HL": 0x0000},
            memory={0xFFFF: [0x21]},
        )
    ]


def _ldh_in_a(*_: str) -> List[TestScenario]:
    return [
        baseline(
            extra_bytes=(0x13,),
            presets=(preset_register("A", 0x21),),
            memory={0xFF13: [0x21]},
        )
    ]


def _ldh_a_in(*_: str) -> List[TestScenario]:
    return [
        baseline(
            extra_bytes=(0x13,),
            presets=(preset_memory(0xFF13, 0x21),),
            registers={"A": 0x21},
        )
    ]


def _ld_rr_nn(register: str) -> List[TestScenario]:
    return [baseline(extra_bytes=(0xFE, 0xCA), registers={register: 0xCAFE})]


def _ld_sp_hl(*_: str) -> List[TestScenario]:
    return [baseline(presets=(preset_register("HL", 0xCAFE),), registers={"SP": 0xCAFE})]


def _ldhl_sp_n(*_: str) -> List[TestScenario]:
    def case(
        kind: ScenarioKind,
        label: str,
        sp: int,
        offset: int,
        result: int,
        flags: Optional[Dict[FlagName, bool]] = None,
    ) -> TestScenario:
        return TestScenario(
            kind=kind,
            label=label,
            extra_bytes=(offset,),
            presets=(preset_register("SP", sp),),
            registers={"HL": result},
            flags=flags or {},
        )

    half_carry = FlagCase(FlagName.H)
    carry = FlagCase(FlagName.C)
    return [
        case(Baseline(), "", 0xCA00, 0x21, 0xCA21),
        case(Baseline(), "negative", 0xCA00, 0xFF, 0xC9FF),
        case(half_carry, "", 0xCA0F, 0x01, 0xCA10, {FlagName.H: True}),
        case(half_carry, "negative", 0xCA01, 0xFF, 0xCA00, {FlagName.H: True, FlagName.C: True}),
        case(carry, "", 0xCAF0, 0x10, 0xCB00, {FlagName.C: True}),
        case(carry, "negative", 0xCAF0, 0xF0, 0xCAE0, {FlagName.C: True}),
    ]


def _ld_inn_sp(*_: str) -> List[TestScenario]:
    return [
        baseline(
            extra_bytes=(0xFE, 0xCA),
            presets=(preset_register("SP", 0xBEEF),),
            memory={0xCAFE: [0xEF, 0xBE]},
        )
    ]


def _push_rr(register: str) -> List[TestScenario]:
    # The low nibble of F always reads as zero.
    low = 0xE0 if register == "AF" else 0xEF
    return [
        baseline(
            presets=(preset_register(register, 0xBEEF), preset_register("SP", 0xCAFE)),
            registers={"SP": 0xCAFC},
            memory={0xCAFC: [low, 0xBE]},
        ),
        baseline(
            label="wraparound",
            presets=(preset_register(register, 0xBEEF),),
            registers={"SP": 0xFFFE},
            memory={0xFFFE: [low, 0xBE]},
        ),
    ]


def _pop_rr(register: str) -> List[TestScenario]:
    return [
        baseline(
            presets=(
                preset_register("SP", 0xCAFE),
                preset_memory(0xCAFE, 0xEF),
                preset_memory(0xCAFF, 0xBE),
            ),
            registers={register: 0xBEEF, "SP": 0xCB00},
        ),
        baseline(
            label="wraparound",
            presets=(
                preset_register("SP", 0xFFFE),
                preset_memory(0xFFFE, 0xEF),
                preset_memory(0xFFFF, 0xBE),
            ),
            registers={register: 0xBEEF, "SP": 0x0000},
        ),
    ]


def _pop_af(*_: str) -> List[TestScenario]:
    # The baseline already pins every flag, per-flag cases add nothing.
    return [
        baseline(
            presets=(
                preset_register("SP", 0xCAFE),
                preset_memory(0xCAFE, 0xFF),
                preset_memory(0xCAFF, 0xBE),
            ),
            registers={"A": 0xBE, "SP": 0xCB00},
            flags={flag: True for flag in FlagName},
        ),
        skipped(FlagName.Z),
        skipped(FlagName.N),
        skipped(FlagName.H),
        skipped(FlagName.C),
    ]


_COPY = "self[dst_register] = self[src_register]"

ENTRIES = (
    Semantics(
        family="LD r, n",
        operation="self[dst_register] = immediate",
        fixtures=_ld_r_n,
    ),
    Semantics(family="LD r1, r2", operation=_COPY, fixtures=_ld_r1_r2),
    Semantics(
        family="LD r1, (rr2)",
        operation="self[dst_register] = memory[self[src_register]]",
        fixtures=_ld_r1_irr2,
    ),
    Semantics(
        family="LD (rr1), r2",
        operation="memory[self[dst_register]] = self[src_register]",
        fixtures=_ld_irr1_r2,
    ),
    Semantics(
        family="LD (HL), n",
        operation="memory[self[dst_register]] = immediate",
        fixtures=_ld_ihl_n,
    ),
    Semantics(
        family="LD A, (nn)",
        operation="self[dst_register] = memory[immediate]",
        fixtures=_ld_a_inn,
    ),
    Semantics(
        family="LD (nn), A",
        operation="memory[immediate] = self[src_register]",
        fixtures=_ld_inn_a,
    ),
    Semantics(
        family="LD A, (C)",
        operation="self[dst_register] = memory[0xFF00 + self[src_register]]",
        fixtures=_ld_a_ic,
    ),
    Semantics(
        family="LD (C), A",
        operation="memory[0xFF00 + self[dst_register]] = self[src_register]",
        fixtures=_ld_ic_a,
    ),
    Semantics(
        family="LDD A, (HL)",
        operation="""
            self[dst_register] = memory[self[src_register]]
            self[src_register] -= 1
        """,
        fixtures=_ldd_a_ihl,
    ),
    Semantics(
        family="LDD (HL), A",
        operation="""
            memory[self[dst_register]] = self[src_register]
            self[dst_register] -= 1
        """,
        fixtures=_ldd_ihl_a,
    ),
    Semantics(
        family="LDI A, (HL)",
        operation="""
            self[dst_register] = memory[self[src_register]]
            self[src_register] += 1
        """,
        fixtures=_ldi_a_ihl,
    ),
    Semantics(
        family="LDI (HL), A",
        operation="""
            memory[self[dst_register]] = self[src_register]
            self[dst_register] += 1
        """,
        fixtures=_ldi_ihl_a,
    ),
    Semantics(
        family="LDH (n), A",
        operation="memory[0xFF00 + immediate] = self[src_register]",
        fixtures=_ldh_in_a,
    ),
    Semantics(
        family="LDH A, (n)",
        operation="self[dst_register] = memory[0xFF00 + immediate]",
        fixtures=_ldh_a_in,
    ),
    Semantics(
        family="LD rr, nn",
        operation="self[dst_register] = immediate",
        fixtures=_ld_rr_nn,
    ),
    Semantics(
        family="LD SP, nn",
        operation="self[dst_register] = immediate",
        fixtures=_ld_rr_nn,
    ),
    Semantics(family="LD SP, HL", operation=_COPY, fixtures=_ld_sp_hl),
    Semantics(
        family="LDHL SP, n",
        operation="""
            operand1 = self[src_register]
            operand2 = self.sign_extend8(immediate)
            result = operand1 + operand2
            self[dst_register] = result
        """,
        fixtures=_ldhl_sp_n,
        carry_bits={FlagName.H: 4, FlagName.C: 8},
    ),
    Semantics(
        family="LD (nn), SP",
        operation="""
            value = self[src_register]
            memory[immediate] = value & 0xFF
            memory[(immediate + 1) & 0xFFFF] = value >> 8
        """,
        fixtures=_ld_inn_sp,
    ),
    Semantics(
        family="PUSH rr",
        operation="self.push_word(self[dst_register])",
        fixtures=_push_rr,
    ),
    Semantics(
        family="POP rr",
        operation="self[dst_register] = self.pop_word()",
        fixtures=_pop_rr,
    ),
    Semantics(
        family="POP AF",
        operation="self[dst_register] = self.pop_word()",
        fixtures=_pop_af,
        self_managed=frozenset(FlagName),
    ),
)

__all__ = ["ENTRIES"]
