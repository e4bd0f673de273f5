from __future__ import annotations

from typing import Iterable, List

from .descriptors import InstructionDescriptor
from .opcode_table import OpcodeRecord
from .operands import OperandDescriptor, OperandType

# Arms land inside ``match`` in ``Cpu.execute``.
ARM_INDENT = " " * 12
BODY_INDENT = " " * 16

# Condition name -> (flag, value the flag must have for the branch to be taken).
CONDITION_FLAGS = {
    "NZ": ("Z", False),
    "Z": ("Z", True),
    "NC": ("C", False),
    "C": ("C", True),
}


def pattern(descriptor: InstructionDescriptor, record: OpcodeRecord) -> str:
    items = [f"0x{byte:02X}" for byte in record.opcode_bytes]
    immediate_type = descriptor.immediate_type
    if immediate_type is OperandType.IMM8:
        items.append("immediate")
    elif immediate_type is OperandType.IMM16:
        items.extend(["immediate_low", "immediate_high"])
    items.append("*_")
    return f"[{', '.join(items)}]"


def operand_arguments(operand: OperandDescriptor) -> List[str]:
    if operand.type is OperandType.REG8:
        return [f"Reg8.{operand.name}"]
    if operand.type in (OperandType.REG16, OperandType.REG_SP):
        return [f"Reg16.{operand.name}"]
    if operand.type in (OperandType.IMM8, OperandType.IMM16):
        return ["immediate"]
    if operand.type is OperandType.COND:
        flag, value = CONDITION_FLAGS[operand.name]
        return [f"Flag.{flag}", str(value)]
    if operand.type is OperandType.BIT:
        return [str(operand.literal)]
    if operand.type is OperandType.VECTOR:
        return [f"0x{operand.literal:02X}"]
    raise TypeError(f"Unsupported operand type: {operand.type}")


def call_arguments(descriptor: InstructionDescriptor, record: OpcodeRecord) -> List[str]:
    arguments: List[str] = []
    if descriptor.uses_memory:
        arguments.append("self.memory" if descriptor.destination_indirect else "self.readonly_memory")
    for operand in record.operands:
        arguments.extend(operand_arguments(operand))
    return arguments


def emit_arm(descriptor: InstructionDescriptor, record: OpcodeRecord) -> List[str]:
    lines = [f"{ARM_INDENT}case {pattern(descriptor, record)}:"]
    if descriptor.immediate_type is OperandType.IMM16:
        lines.append(f"{BODY_INDENT}immediate = immediate_low | (immediate_high << 8)")

    call = f"self.execute_{descriptor.encoded}({', '.join(call_arguments(descriptor, record))})"
    if descriptor.conditional:
        taken, not_taken = record.cycles
        lines.append(f"{BODY_INDENT}return {taken} if {call} else {not_taken}")
    else:
        lines.append(f"{BODY_INDENT}{call}")
        lines.append(f"{BODY_INDENT}return {record.cycles[0]}")
    return lines


def emit_decoding(descriptors: Iterable[InstructionDescriptor]) -> str:
    """Render one ``case`` arm per member opcode, in family then table order."""

    lines: List[str] = []
    for descriptor in descriptors:
        for record in descriptor.members:
            lines.extend(emit_arm(descriptor, record))
    return "".join(f"{line}\n" for line in lines)


__all__ = [
    "ARM_INDENT",
    "CONDITION_FLAGS",
    "call_arguments",
    "emit_arm",
    "emit_decoding",
    "operand_arguments",
    "pattern",
]
