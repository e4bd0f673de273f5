from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple


class OperandType(str, Enum):
    REG8 = "Reg8"
    REG16 = "Reg16"
    REG_SP = "RegSP"
    IMM8 = "Imm8"
    IMM16 = "Imm16"
    COND = "Cond"
    BIT = "Bit"
    VECTOR = "Vector"


IMMEDIATE_TYPES = frozenset({OperandType.IMM8, OperandType.IMM16})
REGISTER_TYPES = frozenset({OperandType.REG8, OperandType.REG16, OperandType.REG_SP})
# Operands fixed by the opcode itself; they reach the routine as literal arguments.
LITERAL_TYPES = frozenset({OperandType.BIT, OperandType.VECTOR})

_IMM8_TOKENS = frozenset({"n8", "d8", "a8", "e8", "r8"})
_IMM16_TOKENS = frozenset({"n16", "d16", "a16"})
REGISTERS_8 = ("A", "B", "C", "D", "E", "H", "L")
REGISTERS_16 = ("AF", "BC", "DE", "HL")
CONDITIONS = ("NZ", "Z", "NC", "C")
BIT_INDICES = tuple(str(bit) for bit in range(8))
RESTART_VECTORS = tuple(f"${vector:02X}" for vector in range(0, 0x40, 8))
_BRANCH_MNEMONICS = frozenset({"JP", "JR", "CALL", "RET"})
_BIT_MNEMONICS = frozenset({"BIT", "RES", "SET"})


@dataclass(frozen=True, slots=True)
class RawOperand:
    """Operand exactly as the upstream table spells it."""

    name: str
    immediate: bool
    bytes: Optional[int] = None

    @classmethod
    def from_table(cls, raw: Mapping[str, Any]) -> "RawOperand":
        return cls(
            name=str(raw["name"]),
            immediate=bool(raw["immediate"]),
            bytes=raw.get("bytes"),
        )


@dataclass(frozen=True, slots=True)
class OperandDescriptor:
    name: str
    type: OperandType
    indirect: bool

    @property
    def shape(self) -> Tuple[OperandType, bool]:
        return (self.type, self.indirect)

    def describe(self) -> str:
        return f"({self.name})" if self.indirect else self.name

    @property
    def literal(self) -> int:
        """Value of a bit index or restart vector operand."""

        if self.type is OperandType.BIT:
            return int(self.name)
        if self.type is OperandType.VECTOR:
            return int(self.name[1:], 16)
        raise TypeError(f"{self.type.value} operand {self.name!r} has no literal value")


@dataclass(frozen=True, slots=True)
class ClassifiedOperands:
    operands: Tuple[OperandDescriptor, ...]
    aliasing: bool


def classify_operand(mnemonic: str, position: int, raw: RawOperand) -> OperandDescriptor:
    # The upstream "immediate" attribute is inverted: it is false exactly when the
    # operand is dereferenced.
    indirect = not raw.immediate
    name = raw.name

    if position == 0 and mnemonic in _BRANCH_MNEMONICS and name in CONDITIONS:
        op_type = OperandType.COND
    elif position == 0 and mnemonic in _BIT_MNEMONICS and name in BIT_INDICES:
        op_type = OperandType.BIT
    elif position == 0 and mnemonic == "RST" and name in RESTART_VECTORS:
        op_type = OperandType.VECTOR
    elif name in _IMM8_TOKENS:
        op_type = OperandType.IMM8
    elif name in _IMM16_TOKENS:
        op_type = OperandType.IMM16
    elif name in REGISTERS_8:
        op_type = OperandType.REG8
    elif name in REGISTERS_16:
        op_type = OperandType.REG16
    elif name == "SP":
        op_type = OperandType.REG_SP
    else:
        raise ValueError(f"Unsupported operand {name!r}")

    return OperandDescriptor(name=name, type=op_type, indirect=indirect)


def detect_aliasing(operands: Iterable[OperandDescriptor]) -> bool:
    registers_8: List[str] = []
    registers_16: List[str] = []
    for operand in operands:
        if operand.type not in REGISTER_TYPES:
            continue
        if operand.type is OperandType.REG8:
            registers_8.append(operand.name)
        else:
            registers_16.append(operand.name)

    if len(set(registers_8)) != len(registers_8):
        return True
    if len(set(registers_16)) != len(registers_16):
        return True
    return any(
        register_8 in register_16
        for register_8 in registers_8
        for register_16 in registers_16
    )


def classify_operands(mnemonic: str, raw_operands: Iterable[RawOperand]) -> ClassifiedOperands:
    operands = tuple(
        classify_operand(mnemonic, position, raw)
        for position, raw in enumerate(raw_operands)
    )
    types = {operand.type for operand in operands}
    if OperandType.IMM8 in types and OperandType.IMM16 in types:
        raise ValueError("Operands mix 8-bit and 16-bit immediates")
    if sum(1 for operand in operands if operand.type in IMMEDIATE_TYPES) > 1:
        raise ValueError("More than one immediate operand")
    return ClassifiedOperands(operands=operands, aliasing=detect_aliasing(operands))


__all__ = [
    "BIT_INDICES",
    "CONDITIONS",
    "ClassifiedOperands",
    "IMMEDIATE_TYPES",
    "LITERAL_TYPES",
    "OperandDescriptor",
    "OperandType",
    "REGISTERS_16",
    "REGISTERS_8",
    "REGISTER_TYPES",
    "RESTART_VECTORS",
    "RawOperand",
    "classify_operand",
    "classify_operands",
    "detect_aliasing",
]
