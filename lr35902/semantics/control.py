"""Jumps, calls, returns and restarts."""

from __future__ import annotations

from typing import Dict, List, Tuple

from ..codegen.flags import FlagName
from .model import Semantics, TestScenario, baseline, preset_flag, preset_memory, preset_register

# Condition name -> (flag, value it must hold for the branch to be taken).
_CONDITIONS: Dict[str, Tuple[FlagName, bool]] = {
    "NZ": (FlagName.Z, False),
    "Z": (FlagName.Z, True),
    "NC": (FlagName.C, False),
    "C": (FlagName.C, True),
}

_TAKEN = "taken = self.get_flag(flag) == flag_condition"


def _branch(condition: str, taken: TestScenario, not_taken: TestScenario) -> List[TestScenario]:
    """Pin the condition flag so that ``taken`` branches and ``not_taken`` falls through."""

    flag, value = _CONDITIONS[condition]
    return [
        baseline(
            label="taken",
            presets=(preset_flag(flag, value), *taken.presets),
            extra_bytes=taken.extra_bytes,
            registers=taken.registers,
            memory=taken.memory,
            branch_taken=True,
        ),
        baseline(
            label="not_taken",
            presets=(preset_flag(flag, not value), *not_taken.presets),
            extra_bytes=not_taken.extra_bytes,
            registers=not_taken.registers,
            memory=not_taken.memory,
            branch_taken=False,
        ),
    ]


def _jp_nn(*_: str) -> TestScenario:
    return baseline(extra_bytes=(0xFE, 0xCA), registers={"PC": 0xCAFE})


def _jp_hl(*_: str) -> List[TestScenario]:
    return [baseline(presets=(preset_register("HL", 0xCAFE),), registers={"PC": 0xCAFE})]


def _jr_n(*_: str) -> List[TestScenario]:
    # Offsets are relative to the address following the instruction (0x23).
    return [
        baseline(label="forward", extra_bytes=(0x10,), registers={"PC": 0x0033}),
        baseline(label="backward", extra_bytes=(0xF0,), registers={"PC": 0x0013}),
    ]


def _call_nn(*_: str) -> TestScenario:
    return baseline(
        extra_bytes=(0xFE, 0xCA),
        presets=(preset_register("SP", 0xFFFE),),
        registers={"SP": 0xFFFC, "PC": 0xCAFE},
        memory={0xFFFC: [0x24, 0x00]},
    )


def _ret(*_: str) -> TestScenario:
    return baseline(
        presets=(
            preset_register("SP", 0xFFFC),
            preset_memory(0xFFFC, 0xFE),
            preset_memory(0xFFFD, 0xCA),
        ),
        registers={"SP": 0xFFFE, "PC": 0xCAFE},
    )


def _rst(vector: str) -> List[TestScenario]:
    # The pushed return address follows the one-byte instruction at 0x21.
    return [
        baseline(
            presets=(preset_register("SP", 0xFFFE),),
            registers={"SP": 0xFFFC, "PC": int(vector.lstrip("$"), 16)},
            memory={0xFFFC: [0x22, 0x00]},
        )
    ]


def _jp_cc_nn(condition: str) -> List[TestScenario]:
    return _branch(condition, _jp_nn(), baseline(extra_bytes=(0xFE, 0xCA)))


def _jr_cc_n(condition: str) -> List[TestScenario]:
    return _branch(
        condition,
        baseline(extra_bytes=(0x10,), registers={"PC": 0x0033}),
        baseline(extra_bytes=(0x10,)),
    )


def _call_cc_nn(condition: str) -> List[TestScenario]:
    return _branch(
        condition,
        _call_nn(),
        baseline(extra_bytes=(0xFE, 0xCA), presets=(preset_register("SP", 0xFFFE),)),
    )


def _ret_cc(condition: str) -> List[TestScenario]:
    return _branch(condition, _ret(), baseline(presets=(preset_register("SP", 0xFFFC),)))


ENTRIES = (
    Semantics(
        family="JP nn",
        operation="self[Reg16.PC] = immediate",
        fixtures=lambda *names: [_jp_nn(*names)],
    ),
    Semantics(
        family="JP cc, nn",
        operation=f"""
            {_TAKEN}
            if taken:
                self[Reg16.PC] = immediate
        """,
        fixtures=_jp_cc_nn,
    ),
    Semantics(family="JP HL", operation="self[Reg16.PC] = self[dst_register]", fixtures=_jp_hl),
    Semantics(
        family="JR n",
        operation="self[Reg16.PC] += self.sign_extend8(immediate)",
        fixtures=_jr_n,
    ),
    Semantics(
        family="JR cc, n",
        operation=f"""
            {_TAKEN}
            if taken:
                self[Reg16.PC] += self.sign_extend8(immediate)
        """,
        fixtures=_jr_cc_n,
    ),
    Semantics(
        family="CALL nn",
        operation="""
            self.push_word(self[Reg16.PC])
            self[Reg16.PC] = immediate
        """,
        fixtures=lambda *names: [_call_nn(*names)],
    ),
    Semantics(
        family="CALL cc, nn",
        operation=f"""
            {_TAKEN}
            if taken:
                self.push_word(self[Reg16.PC])
                self[Reg16.PC] = immediate
        """,
        fixtures=_call_cc_nn,
    ),
    Semantics(
        family="RET",
        operation="self[Reg16.PC] = self.pop_word()",
        fixtures=lambda *names: [_ret(*names)],
    ),
    Semantics(
        family="RET cc",
        operation=f"""
            {_TAKEN}
            if taken:
                self[Reg16.PC] = self.pop_word()
        """,
        fixtures=_ret_cc,
    ),
    Semantics(
        family="RST n",
        operation="""
            self.push_word(self[Reg16.PC])
            self[Reg16.PC] = vector
        """,
        fixtures=_rst,
    ),
)

__all__ = ["ENTRIES"]
