import pytest

from lr35902.codegen.errors import CodegenError, TestFixtureMissing
from lr35902.codegen.flags import FlagName
from lr35902.codegen.test_emitter import (
    class_description,
    class_name,
    emit_class,
    emit_tests,
    operand_names,
)
from lr35902.semantics.model import baseline, flag_case, skipped


def _single(descriptors_for, opcode: str):
    (descriptor,) = descriptors_for(opcode)
    (record,) = descriptor.members
    return descriptor, record


def test_class_naming(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "CB37")
    assert class_name(descriptor, record) == "Test_SWAP_r__0xCB37__A"
    assert class_description(descriptor, record) == "SWAP r [0xCB/0x37: A]"

    descriptor, record = _single(descriptors_for, "7E")
    assert class_name(descriptor, record) == "Test_LD_r1_Irr2__0x7E__A_IHL"
    assert operand_names(record) == ("A", "HL")

    descriptor, record = _single(descriptors_for, "C3")
    assert class_name(descriptor, record) == "Test_JP_nn__0xC3"
    assert class_description(descriptor, record) == "JP nn [0xC3]"


def test_swap_class(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "CB37")

    lines = emit_class(descriptor, record)

    assert lines[:12] == [
        "class Test_SWAP_r__0xCB37__A:",
        '    """SWAP r [0xCB/0x37: A]"""',
        "",
        "    def test_base(self) -> None:",
        "        cpu = Cpu()",
        "        instruction_bytes = [0xCB, 0x37]",
        "        cpu[Reg16.PC] = 0x0021",
        "        cpu[Reg8.A] = 0x21",
        "        cpu.set_flag(Flag.N, True)",
        "        cpu.set_flag(Flag.H, True)",
        "        cpu.set_flag(Flag.C, True)",
        "",
    ]
    assert lines[12:22] == [
        "        assert_cpu_execute(",
        "            cpu,",
        "            instruction_bytes,",
        "            A=0x12,",
        "            PC=0x0023,",
        "            nf=False,",
        "            hf=False,",
        "            cf=False,",
        "            cycles=8,",
        "        )",
    ]
    assert "    def test_flag_z(self) -> None:" in lines
    assert "            zf=True," in lines


def test_conditional_cycles_follow_branch_taken(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "C0")
    text = "\n".join(emit_class(descriptor, record))

    assert "def test_base__taken(self)" in text
    assert "def test_base__not_taken(self)" in text
    assert "            cycles=20," in text
    assert "            cycles=8," in text
    assert "            PC=0x0022," in text


def test_conditional_scenarios_must_state_the_branch(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "C0")

    with pytest.raises(CodegenError, match="branch_taken"):
        emit_class(descriptor, record, [baseline()])


def test_missing_baseline(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "04")

    with pytest.raises(TestFixtureMissing, match="baseline"):
        emit_class(descriptor, record, [flag_case(FlagName.Z), flag_case(FlagName.H)])


def test_missing_flag_case(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "04")

    with pytest.raises(TestFixtureMissing, match="computed flag H"):
        emit_class(descriptor, record, [baseline(), flag_case(FlagName.Z)])


def test_skipped_scenarios_cover_but_are_not_emitted(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "04")

    lines = emit_class(descriptor, record, [baseline(), skipped(FlagName.Z), skipped(FlagName.H)])

    assert [line for line in lines if "def test_" in line] == ["    def test_base(self) -> None:"]


def test_duplicate_scenario_names(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "00")

    with pytest.raises(CodegenError, match="duplicate"):
        emit_class(descriptor, record, [baseline(), baseline()])


def test_fixed_flags_cannot_be_contradicted(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "CB37")
    scenarios = [baseline(flags={FlagName.N: True}), flag_case(FlagName.Z)]

    with pytest.raises(CodegenError, match="fixed"):
        emit_class(descriptor, record, scenarios)


def test_scenarios_are_ordered_by_kind(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "04")
    scenarios = [
        flag_case(FlagName.H),
        flag_case(FlagName.Z),
        baseline(label="second"),
        baseline(),
    ]

    lines = emit_class(descriptor, record, scenarios)

    assert [line.strip() for line in lines if "def test_" in line] == [
        "def test_base__second(self) -> None:",
        "def test_base(self) -> None:",
        "def test_flag_z(self) -> None:",
        "def test_flag_h(self) -> None:",
    ]


def test_memory_and_expression_expectations(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "74")
    text = "\n".join(emit_class(descriptor, record))

    assert "        expected_value = cpu[Reg8.H]" in text
    assert "            mem={0x0CAF: [expected_value]}," in text


def test_emit_tests_separates_classes(descriptors_for) -> None:
    text = emit_tests(descriptors_for("00,06"))

    assert "\n\n\nclass Test_LD_r_n__0x06__B:\n" in text
    assert text.startswith("class Test_NOP__0x00:\n")


def test_bit_class(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "CB46")
    assert class_name(descriptor, record) == "Test_BIT_n_IHL__0xCB46__0_IHL"
    assert operand_names(record) == ("0", "HL")

    lines = emit_class(descriptor, record)

    assert lines[3:11] == [
        "    def test_base(self) -> None:",
        "        cpu = Cpu()",
        "        instruction_bytes = [0xCB, 0x46]",
        "        cpu[Reg16.PC] = 0x0021",
        "        cpu[Reg16.HL] = 0xCAFE",
        "        cpu.memory[0xCAFE] = 0x01",
        "        cpu.set_flag(Flag.N, True)",
        "        cpu.set_flag(Flag.H, False)",
    ]
    assert lines[12:22] == [
        "        assert_cpu_execute(",
        "            cpu,",
        "            instruction_bytes,",
        "            PC=0x0023,",
        "            zf=False,",
        "            nf=False,",
        "            hf=True,",
        "            mem={0xCAFE: [0x01]},",
        "            cycles=12,",
        "        )",
    ]
    assert "    def test_flag_z(self) -> None:" in lines


def test_rst_class(descriptors_for) -> None:
    descriptor, record = _single(descriptors_for, "FF")
    assert class_name(descriptor, record) == "Test_RST_n__0xFF__38"
    assert class_description(descriptor, record) == "RST n [0xFF: $38]"

    lines = emit_class(descriptor, record)

    assert "        cpu[Reg16.SP] = 0xFFFE" in lines
    assert lines[-6:] == [
        "            instruction_bytes,",
        "            SP=0xFFFC,",
        "            PC=0x0038,",
        "            mem={0xFFFC: [0x22, 0x00]},",
        "            cycles=16,",
        "        )",
    ]
