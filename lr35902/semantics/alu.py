"""8-bit accumulator arithmetic/logic, increments and 16-bit arithmetic."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..codegen.flags import FlagName
from .model import (
    Baseline,
    FlagCase,
    ScenarioKind,
    Semantics,
    TestScenario,
    preset_flag,
    preset_memory,
    preset_register,
)

Z, H, C = FlagName.Z, FlagName.H, FlagName.C
BASE = Baseline()

# Scratch address for (HL) operands.
SCRATCH_ADDRESS = 0xCAFE


@dataclass(frozen=True)
class Case:
    """One row of an operand/result table.

    ``same_operands`` rows only apply when the source operand is the
    destination itself; other rows with differing operands are skipped there.
    """

    kind: ScenarioKind
    operand1: int
    operand2: int
    result: Optional[int]
    flags: Dict[FlagName, bool] = field(default_factory=dict)
    label: str = ""
    carry_in: bool = False
    same_operands: bool = False


def _skip(case: Case, aliased: bool) -> bool:
    if aliased:
        return case.operand1 != case.operand2
    return case.same_operands


# Accumulator operations ----------------------------------------------------

_SOURCES = {
    "r": "self[src_register]",
    "(HL)": "memory[self[src_register]]",
    "n": "immediate",
}

_OPERATIONS = {
    "ADD": """
        operand1 = self[dst_register]
        operand2 = {source}
        result = operand1 + operand2
        self[dst_register] = result
    """,
    "ADC": """
        carry = int(self.get_flag(Flag.C))
        operand1 = self[dst_register]
        operand2 = {source}
        result = operand1 + operand2 + carry
        self[dst_register] = result
        self.set_flag(Flag.H, (operand1 & 0x0F) + (operand2 & 0x0F) + carry > 0x0F)
        self.set_flag(Flag.C, result > 0xFF)
    """,
    "SUB": """
        operand1 = self[dst_register]
        operand2 = {source}
        result = operand1 - operand2
        self[dst_register] = result
    """,
    "SBC": """
        carry = int(self.get_flag(Flag.C))
        operand1 = self[dst_register]
        operand2 = {source}
        result = operand1 - operand2 - carry
        self[dst_register] = result
        self.set_flag(Flag.H, (operand1 & 0x0F) - (operand2 & 0x0F) - carry < 0)
        self.set_flag(Flag.C, result < 0)
    """,
    "AND": """
        result = self[dst_register] & {source}
        self[dst_register] = result
    """,
    "XOR": """
        result = self[dst_register] ^ {source}
        self[dst_register] = result
    """,
    "OR": """
        result = self[dst_register] | {source}
        self[dst_register] = result
    """,
    "CP": """
        operand1 = self[dst_register]
        operand2 = {source}
        result = operand1 - operand2
    """,
}

_ADD_CASES = (
    Case(BASE, 0x21, 0x30, 0x51),
    Case(BASE, 0x21, 0x21, 0x42, label="A", same_operands=True),
    Case(FlagCase(Z), 0x00, 0x00, 0x00, {Z: True}),
    Case(FlagCase(H), 0x18, 0x18, 0x30, {H: True}),
    Case(FlagCase(C), 0x90, 0x90, 0x20, {C: True}),
)

_SUB_CASES = (
    Case(BASE, 0x51, 0x30, 0x21),
    Case(BASE, 0x21, 0x21, 0x00, {Z: True, H: False, C: False}, label="A", same_operands=True),
    Case(FlagCase(Z), 0x21, 0x21, 0x00, {Z: True}),
    Case(FlagCase(H), 0x10, 0x01, 0x0F, {H: True}),
    Case(FlagCase(C), 0x10, 0x20, 0xF0, {C: True}),
)

_CASES: Dict[str, Tuple[Case, ...]] = {
    "ADD": _ADD_CASES,
    # 0xFF + 0xFF + 1 also checks that the incoming carry is not dropped.
    "ADC": _ADD_CASES
    + (Case(BASE, 0xFF, 0xFF, 0xFF, {H: True, C: True}, label="carry_set", carry_in=True),),
    "SUB": _SUB_CASES,
    "SBC": _SUB_CASES
    + (
        Case(BASE, 0x51, 0x30, 0x20, {C: False}, label="carry_set", carry_in=True),
        Case(
            BASE,
            0x21,
            0x21,
            0xFF,
            {Z: False, H: True, C: True},
            label="A_carry_set",
            carry_in=True,
            same_operands=True,
        ),
    ),
    "AND": (
        Case(BASE, 0x31, 0x13, 0x11),
        Case(BASE, 0x21, 0x21, 0x21, label="A", same_operands=True),
        Case(FlagCase(Z), 0xF0, 0x0F, 0x00, {Z: True}),
        Case(FlagCase(Z), 0x00, 0x00, 0x00, {Z: True}, label="A", same_operands=True),
    ),
    "XOR": (
        Case(BASE, 0x31, 0x13, 0x22),
        Case(BASE, 0x21, 0x21, 0x00, {Z: True}, label="A", same_operands=True),
        Case(FlagCase(Z), 0x21, 0x21, 0x00, {Z: True}),
    ),
    "OR": (
        Case(BASE, 0x30, 0x03, 0x33),
        Case(BASE, 0x21, 0x21, 0x21, label="A", same_operands=True),
        Case(FlagCase(Z), 0x00, 0x00, 0x00, {Z: True}),
    ),
    "CP": tuple(replace(case, result=None) for case in _SUB_CASES),
}


def _accumulator_scenario(case: Case, source: Optional[str]) -> TestScenario:
    presets: List[str] = [preset_register("A", case.operand1)]
    extra_bytes: Tuple[int, ...] = ()
    if source is None:
        extra_bytes = (case.operand2,)
    elif source == "HL":
        presets.append(preset_register("HL", SCRATCH_ADDRESS))
        presets.append(preset_memory(SCRATCH_ADDRESS, case.operand2))
    elif source != "A":
        presets.append(preset_register(source, case.operand2))
    if case.carry_in:
        presets.append(preset_flag(C, True))

    return TestScenario(
        kind=case.kind,
        label=case.label,
        extra_bytes=extra_bytes,
        presets=tuple(presets),
        registers={} if case.result is None else {"A": case.result},
        flags=dict(case.flags),
        skip=_skip(case, source == "A"),
    )


def _accumulator_fixtures(cases: Sequence[Case]) -> Callable[..., List[TestScenario]]:
    def fixtures(_accumulator: str, source: Optional[str] = None) -> List[TestScenario]:
        return [_accumulator_scenario(case, source) for case in cases]

    return fixtures


def _accumulator_entries() -> List[Semantics]:
    entries: List[Semantics] = []
    for mnemonic, template in _OPERATIONS.items():
        flags = {H: 4, C: 8} if mnemonic in ("ADD", "SUB", "CP") else {}
        self_managed = frozenset({H, C}) if mnemonic in ("ADC", "SBC") else frozenset()
        for operand, source in _SOURCES.items():
            entries.append(
                Semantics(
                    family=f"{mnemonic} A, {operand}",
                    operation=template.format(source=source),
                    fixtures=_accumulator_fixtures(_CASES[mnemonic]),
                    carry_bits=flags,
                    self_managed=self_managed,
                )
            )
    return entries


# INC/DEC ---------------------------------------------------------------------

_INC_CASES = (
    Case(BASE, 0x21, 1, 0x22),
    Case(FlagCase(Z), 0xFF, 1, 0x00, {Z: True, H: True}),
    Case(FlagCase(H), 0x0F, 1, 0x10, {H: True}),
)

_DEC_CASES = (
    Case(BASE, 0x22, 1, 0x21),
    Case(FlagCase(Z), 0x01, 1, 0x00, {Z: True}),
    Case(FlagCase(H), 0x10, 1, 0x0F, {H: True}),
)


def single_operand_fixtures(cases: Sequence[Case]) -> Callable[[str], List[TestScenario]]:
    """Fixtures for opcodes whose only operand is a register or ``(HL)``.

    ``operand1`` is the value before execution; ``operand2`` is unused.
    """

    def fixtures(register: str) -> List[TestScenario]:
        scenarios = []
        for case in cases:
            if register == "HL":
                presets = [
                    preset_register("HL", SCRATCH_ADDRESS),
                    preset_memory(SCRATCH_ADDRESS, case.operand1),
                ]
                expected = {"memory": {SCRATCH_ADDRESS: [case.result]}}
            else:
                presets = [preset_register(register, case.operand1)]
                expected = {"registers": {register: case.result}}
            if case.carry_in:
                presets.append(preset_flag(C, True))
            scenarios.append(
                TestScenario(
                    kind=case.kind,
                    label=case.label,
                    presets=tuple(presets),
                    flags=dict(case.flags),
                    **expected,
                )
            )
        return scenarios

    return fixtures


def _step_register(operator: str) -> str:
    return f"""
        operand1 = self[dst_register]
        operand2 = 1
        result = operand1 {operator} operand2
        self[dst_register] = result
    """


def _step_memory(operator: str) -> str:
    return f"""
        address = self[dst_register]
        operand1 = memory[address]
        operand2 = 1
        result = operand1 {operator} operand2
        memory[address] = result & 0xFF
    """


# 16-bit arithmetic -------------------------------------------------------------

_ADD_HL_CASES = (
    Case(BASE, 0x1234, 0x1111, 0x2345),
    Case(BASE, 0x1234, 0x1234, 0x2468, label="HL", same_operands=True),
    Case(FlagCase(H), 0x0800, 0x0800, 0x1000, {H: True}),
    Case(FlagCase(C), 0x8000, 0x8000, 0x0000, {C: True}),
)


def _add_hl_fixtures(_destination: str, source: str) -> List[TestScenario]:
    scenarios = []
    for case in _ADD_HL_CASES:
        presets = [preset_register("HL", case.operand1)]
        if source != "HL":
            presets.append(preset_register(source, case.operand2))
        scenarios.append(
            TestScenario(
                kind=case.kind,
                label=case.label,
                presets=tuple(presets),
                registers={"HL": case.result},
                flags=dict(case.flags),
                skip=_skip(case, source == "HL"),
            )
        )
    return scenarios


_ADD_SP_CASES = (
    Case(BASE, 0xCA00, 0x21, 0xCA21),
    Case(BASE, 0xCA00, 0xFF, 0xC9FF, label="negative"),
    Case(FlagCase(H), 0xCA0F, 0x01, 0xCA10, {H: True}),
    Case(FlagCase(C), 0xCAF0, 0x10, 0xCB00, {C: True}),
    # 0xE1 and 0xE0 sign-extend to -0x1F and -0x20.
    Case(FlagCase(H), 0xCA0F, 0xE1, 0xC9F0, {H: True, C: False}, label="negative"),
    Case(FlagCase(C), 0xCA2F, 0xE0, 0xCA0F, {H: False, C: True}, label="negative"),
)


def _add_sp_n(*_: str) -> List[TestScenario]:
    return [
        TestScenario(
            kind=case.kind,
            label=case.label,
            extra_bytes=(case.operand2,),
            presets=(preset_register("SP", case.operand1),),
            registers={"SP": case.result},
            flags=dict(case.flags),
        )
        for case in _ADD_SP_CASES
    ]


def _inc_rr(register: str) -> List[TestScenario]:
    return [
        TestScenario(kind=BASE, presets=(preset_register(register, 0x1234),), registers={register: 0x1235}),
        TestScenario(
            kind=BASE,
            label="wraparound",
            presets=(preset_register(register, 0xFFFF),),
            registers={register: 0x0000},
        ),
    ]


def _dec_rr(register: str) -> List[TestScenario]:
    return [
        TestScenario(kind=BASE, presets=(preset_register(register, 0x1235),), registers={register: 0x1234}),
        TestScenario(kind=BASE, label="wraparound", registers={register: 0xFFFF}),
    ]


_ADD_WIDE = """
    operand1 = self[dst_register]
    operand2 = self[src_register]
    result = operand1 + operand2
    self[dst_register] = result
"""

ENTRIES = (
    *_accumulator_entries(),
    Semantics(
        family="INC r",
        operation=_step_register("+"),
        fixtures=single_operand_fixtures(_INC_CASES),
        carry_bits={H: 4},
    ),
    Semantics(
        family="INC (HL)",
        operation=_step_memory("+"),
        fixtures=single_operand_fixtures(_INC_CASES),
        carry_bits={H: 4},
    ),
    Semantics(
        family="DEC r",
        operation=_step_register("-"),
        fixtures=single_operand_fixtures(_DEC_CASES),
        carry_bits={H: 4},
    ),
    Semantics(
        family="DEC (HL)",
        operation=_step_memory("-"),
        fixtures=single_operand_fixtures(_DEC_CASES),
        carry_bits={H: 4},
    ),
    Semantics(
        family="ADD HL, rr",
        operation=_ADD_WIDE,
        fixtures=_add_hl_fixtures,
        carry_bits={H: 12, C: 16},
        result_bits=16,
    ),
    Semantics(
        family="ADD HL, SP",
        operation=_ADD_WIDE,
        fixtures=_add_hl_fixtures,
        carry_bits={H: 12, C: 16},
        result_bits=16,
    ),
    Semantics(
        family="ADD SP, n",
        operation="""
            operand1 = self[dst_register]
            operand2 = self.sign_extend8(immediate)
            result = operand1 + operand2
            self[dst_register] = result
        """,
        fixtures=_add_sp_n,
        carry_bits={H: 4, C: 8},
    ),
    Semantics(family="INC rr", operation="self[dst_register] += 1", fixtures=_inc_rr),
    Semantics(family="INC SP", operation="self[dst_register] += 1", fixtures=_inc_rr),
    Semantics(family="DEC rr", operation="self[dst_register] -= 1", fixtures=_dec_rr),
    Semantics(family="DEC SP", operation="self[dst_register] -= 1", fixtures=_dec_rr),
)

__all__ = ["Case", "ENTRIES", "SCRATCH_ADDRESS", "single_operand_fixtures"]
