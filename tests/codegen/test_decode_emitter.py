from lr35902.codegen.decode_emitter import emit_arm, emit_decoding


def _arm(descriptors_for, opcode: str) -> str:
    (descriptor,) = descriptors_for(opcode)
    (record,) = descriptor.members
    return "\n".join(emit_arm(descriptor, record))


def test_immediate8_arm(descriptors_for) -> None:
    assert _arm(descriptors_for, "06") == (
        "            case [0x06, immediate, *_]:\n"
        "                self.execute_LD_r_n(Reg8.B, immediate)\n"
        "                return 8"
    )


def test_conditional_immediate16_arm(descriptors_for) -> None:
    assert _arm(descriptors_for, "C2") == (
        "            case [0xC2, immediate_low, immediate_high, *_]:\n"
        "                immediate = immediate_low | (immediate_high << 8)\n"
        "                return 16 if self.execute_JP_cc_nn(Flag.Z, False, immediate) else 12"
    )


def test_memory_arguments(descriptors_for) -> None:
    assert "self.execute_LD_A_IC(self.readonly_memory, Reg8.A, Reg8.C)" in _arm(descriptors_for, "F2")
    assert "self.execute_LD_IC_A(self.memory, Reg8.C, Reg8.A)" in _arm(descriptors_for, "E2")
    assert "self.execute_INC_IHL(self.memory, Reg16.HL)" in _arm(descriptors_for, "34")


def test_prefixed_arm(descriptors_for) -> None:
    assert _arm(descriptors_for, "CB37").splitlines()[0] == "            case [0xCB, 0x37, *_]:"


def test_stack_pointer_is_a_16_bit_register(descriptors_for) -> None:
    assert "self.execute_LDHL_SP_n(Reg16.HL, Reg16.SP, immediate)" in _arm(descriptors_for, "F8")


def test_emit_decoding_keeps_family_then_table_order(descriptors_for) -> None:
    text = emit_decoding(descriptors_for("3E,06,CB37"))
    cases = [line.strip() for line in text.splitlines() if line.strip().startswith("case")]

    assert cases == [
        "case [0x06, immediate, *_]:",
        "case [0x3E, immediate, *_]:",
        "case [0xCB, 0x37, *_]:",
    ]
    assert text.endswith("\n")


def test_bit_index_is_a_literal_argument(descriptors_for) -> None:
    assert _arm(descriptors_for, "CB40") == (
        "            case [0xCB, 0x40, *_]:\n"
        "                self.execute_BIT_n_r(0, Reg8.B)\n"
        "                return 8"
    )
    assert "self.execute_BIT_n_IHL(self.memory, 7, Reg16.HL)" in _arm(descriptors_for, "CB7E")
    assert _arm(descriptors_for, "CBC6").splitlines()[1:] == [
        "                self.execute_SET_n_IHL(self.memory, 0, Reg16.HL)",
        "                return 16",
    ]


def test_restart_vector_is_a_literal_argument(descriptors_for) -> None:
    assert _arm(descriptors_for, "EF") == (
        "            case [0xEF, *_]:\n"
        "                self.execute_RST_n(0x28)\n"
        "                return 16"
    )
