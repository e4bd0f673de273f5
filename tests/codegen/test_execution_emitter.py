import dataclasses

import pytest

from lr35902.codegen.errors import CodegenError, FlagSpecViolation
from lr35902.codegen.execution_emitter import (
    bound_names,
    emit_execution,
    emit_routine,
    parameters,
)


def _routine(descriptors_for, opcode: str) -> str:
    (descriptor,) = descriptors_for(opcode)
    return "\n".join(emit_routine(descriptor))


def test_inc_r_routine(descriptors_for) -> None:
    assert _routine(descriptors_for, "04") == "\n".join(
        [
            "    def execute_INC_r(self, dst_register: Reg8) -> None:",
            '        """INC r"""',
            "        self[Reg16.PC] += 1",
            "",
            "        operand1 = self[dst_register]",
            "        operand2 = 1",
            "        result = operand1 + operand2",
            "        self[dst_register] = result",
            "",
            "        self.set_flag(Flag.Z, (result & 0xFF) == 0)",
            "        self.set_flag(Flag.N, False)",
            "        self.set_flag(Flag.H, self.compute_carry_flag(operand1, operand2, result, 4))",
        ]
    )


def test_conditional_routine_returns_taken(descriptors_for) -> None:
    text = _routine(descriptors_for, "20")

    assert text.splitlines()[0] == (
        "    def execute_JR_cc_n(self, flag: Flag, flag_condition: bool, immediate: int) -> bool:"
    )
    assert "        taken = self.get_flag(flag) == flag_condition" in text
    assert text.endswith("        return taken")


def test_self_managed_flags_are_left_to_the_fragment(descriptors_for) -> None:
    text = _routine(descriptors_for, "CB37")
    assert "self.set_flag(Flag.C, False)" in text

    text = _routine(descriptors_for, "CB07")
    assert text.count("self.set_flag(Flag.C") == 1
    assert "self.set_flag(Flag.C, carry)" in text


def test_aliasing_comment(descriptors_for) -> None:
    assert "# Operands can overlap" in _routine(descriptors_for, "40")
    assert "# Operands can overlap" not in _routine(descriptors_for, "06")


def test_memory_parameter_type(descriptors_for) -> None:
    (load,) = descriptors_for("F2")
    (store,) = descriptors_for("E2")

    assert parameters(load) == ["self", "memory: memoryview", "dst_register: Reg8", "src_register: Reg8"]
    assert parameters(store) == ["self", "memory: bytearray", "dst_register: Reg8", "src_register: Reg8"]


def test_sixteen_bit_zero_mask(descriptors_for) -> None:
    (descriptor,) = descriptors_for("04")
    semantics = dataclasses.replace(descriptor.semantics, result_bits=16)
    text = "\n".join(emit_routine(dataclasses.replace(descriptor, semantics=semantics)))

    assert "self.set_flag(Flag.Z, (result & 0xFFFF) == 0)" in text


def test_missing_bindings_are_reported(descriptors_for) -> None:
    (descriptor,) = descriptors_for("04")
    semantics = dataclasses.replace(descriptor.semantics, operation="self[dst_register] += 1")

    with pytest.raises(FlagSpecViolation, match="operand1, operand2, result"):
        emit_routine(dataclasses.replace(descriptor, semantics=semantics))


def test_conditional_fragment_must_bind_taken(descriptors_for) -> None:
    (descriptor,) = descriptors_for("20")
    semantics = dataclasses.replace(descriptor.semantics, operation="pass")

    with pytest.raises(FlagSpecViolation, match="taken"):
        emit_routine(dataclasses.replace(descriptor, semantics=semantics))


def test_unparsable_fragment(descriptors_for) -> None:
    (descriptor,) = descriptors_for("00")
    semantics = dataclasses.replace(descriptor.semantics, operation="self[ = 1")

    with pytest.raises(CodegenError, match="does not parse"):
        emit_routine(dataclasses.replace(descriptor, semantics=semantics))


def test_bound_names() -> None:
    fragment = "a = 1\nb += 2\n(c, d) = 3, 4\nfor e in range(2):\n    pass\nif (f := 5):\n    pass\nx[0] = 1"
    assert bound_names(fragment) == {"a", "b", "c", "d", "e", "f"}


def test_routines_are_separated_by_blank_lines(descriptors_for) -> None:
    text = emit_execution(descriptors_for("00,06"))

    assert "    def execute_NOP(self) -> None:\n" in text
    assert '        self[Reg16.PC] += 1\n\n    def execute_LD_r_n' in text


def test_bit_routine(descriptors_for) -> None:
    assert _routine(descriptors_for, "CB40") == "\n".join(
        [
            "    def execute_BIT_n_r(self, bit: int, dst_register: Reg8) -> None:",
            '        """BIT n, r"""',
            "        self[Reg16.PC] += 2",
            "",
            "        result = self[dst_register] & (1 << bit)",
            "",
            "        self.set_flag(Flag.Z, (result & 0xFF) == 0)",
            "        self.set_flag(Flag.N, False)",
            "        self.set_flag(Flag.H, True)",
        ]
    )


def test_literal_operands_do_not_take_register_slots(descriptors_for) -> None:
    (res,) = descriptors_for("CB86")
    (rst,) = descriptors_for("C7")

    assert parameters(res) == ["self", "memory: bytearray", "bit: int", "dst_register: Reg16"]
    assert parameters(rst) == ["self", "vector: int"]
    assert "        self.push_word(self[Reg16.PC])" in _routine(descriptors_for, "C7")
