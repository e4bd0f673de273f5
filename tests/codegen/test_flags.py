import pytest

from lr35902.codegen.flags import (
    Computed,
    FixedFalse,
    FixedTrue,
    FlagName,
    FlagSpec,
    Unaffected,
    parse_flag_state,
)


def test_parse_flag_state() -> None:
    assert parse_flag_state(FlagName.Z, "0") == FixedFalse()
    assert parse_flag_state(FlagName.N, "1") == FixedTrue()
    assert parse_flag_state(FlagName.H, "-") == Unaffected()
    assert parse_flag_state(FlagName.C, "C") == Computed()


def test_letter_of_another_flag_is_invalid() -> None:
    with pytest.raises(ValueError, match="Invalid state"):
        parse_flag_state(FlagName.Z, "C")


def test_from_table_requires_every_flag() -> None:
    with pytest.raises(ValueError, match="Missing flag"):
        FlagSpec.from_table({"Z": "Z", "N": "0", "H": "H"})


def test_spec_queries() -> None:
    spec = FlagSpec.from_table({"Z": "Z", "N": "1", "H": "H", "C": "-"})

    assert spec.computed() == (FlagName.Z, FlagName.H)
    assert spec.fixed() == ((FlagName.N, True),)
    assert [flag for flag, _ in spec.items()] == [FlagName.Z, FlagName.N, FlagName.H, FlagName.C]


def test_with_effect_returns_a_new_spec() -> None:
    spec = FlagSpec.from_table({"Z": "Z", "N": "0", "H": "H", "C": "C"})
    widened = spec.with_effect(FlagName.H, Computed(4))

    assert widened.get(FlagName.H) == Computed(4)
    assert spec.get(FlagName.H) == Computed()
    assert widened != spec


def test_unsupported_carry_width() -> None:
    with pytest.raises(ValueError, match="carry bit width"):
        Computed(7)
