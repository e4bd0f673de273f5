import pytest

from lr35902.codegen.flags import FlagName
from lr35902.semantics import SEMANTICS
from lr35902.semantics.model import (
    Baseline,
    FlagCase,
    Semantics,
    baseline,
    flag_case,
    kind_name,
    preset_flag,
    preset_memory,
    preset_register,
    register_semantics,
    skipped,
)


def _fixtures(*_: str):
    return [baseline()]


def test_scenario_names() -> None:
    assert baseline().name == "base"
    assert baseline(label="wraparound").name == "base__wraparound"
    assert flag_case(FlagName.H).name == "flag_h"
    assert flag_case(FlagName.C, "negative").name == "flag_c__negative"


def test_kind_name() -> None:
    assert kind_name(Baseline()) == "base"
    assert kind_name(FlagCase(FlagName.Z)) == "flag_z"
    with pytest.raises(TypeError):
        kind_name("base")


def test_skipped() -> None:
    assert skipped().skip and isinstance(skipped().kind, Baseline)
    assert skipped(FlagName.N).kind == FlagCase(FlagName.N)


def test_presets() -> None:
    assert preset_register("A", 0x5) == "cpu[Reg8.A] = 0x05"
    assert preset_register("SP", 0xFFFE) == "cpu[Reg16.SP] = 0xFFFE"
    assert preset_memory(0xFF13, 0x21) == "cpu.memory[0xFF13] = 0x21"
    assert preset_flag(FlagName.C, True) == "cpu.set_flag(Flag.C, True)"


def test_semantics_validation() -> None:
    with pytest.raises(ValueError, match="carry bit width"):
        Semantics(family="X", operation="", fixtures=_fixtures, carry_bits={FlagName.H: 5})
    with pytest.raises(ValueError, match="result width"):
        Semantics(family="X", operation="", fixtures=_fixtures, result_bits=12)


def test_register_semantics_rejects_duplicates() -> None:
    registry = {}
    entry = Semantics(family="NOP", operation="", fixtures=_fixtures)
    register_semantics(registry, entry)

    with pytest.raises(ValueError, match="registered twice"):
        register_semantics(registry, entry)


def test_fixtures_receive_register_and_condition_names() -> None:
    scenarios = SEMANTICS["JP cc, nn"].scenarios(["NC"])

    assert [scenario.name for scenario in scenarios] == ["base__taken", "base__not_taken"]
    assert scenarios[0].presets[0] == "cpu.set_flag(Flag.C, False)"
    assert scenarios[0].branch_taken is True


def test_aliased_operand_rows_are_skipped() -> None:
    scenarios = SEMANTICS["ADD A, r"].scenarios(["A", "A"])
    active = [scenario.name for scenario in scenarios if not scenario.skip]

    assert active == ["base__A", "flag_z", "flag_h", "flag_c"]
