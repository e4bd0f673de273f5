"""Rendering of the per-family ``Cpu.execute_<family>`` methods.

Each method advances PC, runs the authored fragment, then updates the flags
as the merged flag spec dictates.  Synthesized flag code reads the locals
``result``, ``operand1`` and ``operand2``; conditional families must also
bind ``taken``.  The fragment is parsed so that a missing binding is caught
here rather than as a ``NameError`` inside the emulator.
"""

from __future__ import annotations

import ast
import textwrap
from typing import Iterable, List, Set

from .descriptors import InstructionDescriptor
from .errors import CodegenError, FlagSpecViolation
from .flags import Computed, FixedFalse, FixedTrue, FlagName, Unaffected
from .operands import OperandType

METHOD_INDENT = " " * 4
BODY_INDENT = " " * 8

_POSITION_NAMES = ("dst", "src", "aux")


def parameters(descriptor: InstructionDescriptor) -> List[str]:
    params = ["self"]
    if descriptor.uses_memory:
        memory_type = "bytearray" if descriptor.destination_indirect else "memoryview"
        params.append(f"memory: {memory_type}")
    # A bit index or restart vector does not take a destination/source slot.
    position = 0
    for op_type in descriptor.operand_types:
        if op_type is OperandType.BIT:
            params.append("bit: int")
            continue
        if op_type is OperandType.VECTOR:
            params.append("vector: int")
            continue
        if op_type is OperandType.REG8:
            params.append(f"{_POSITION_NAMES[position]}_register: Reg8")
        elif op_type in (OperandType.REG16, OperandType.REG_SP):
            params.append(f"{_POSITION_NAMES[position]}_register: Reg16")
        elif op_type in (OperandType.IMM8, OperandType.IMM16):
            params.append("immediate: int")
        elif op_type is OperandType.COND:
            params.append("flag: Flag")
            params.append("flag_condition: bool")
        else:
            raise TypeError(f"Unsupported operand type: {op_type}")
        position += 1
    return params


def bound_names(fragment: str) -> Set[str]:
    """Names the fragment assigns (plain, augmented, unpacked, loop or walrus targets)."""

    tree = ast.parse(fragment)
    return {
        node.id
        for node in ast.walk(tree)
        if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Store)
    }


def _required_names(descriptor: InstructionDescriptor) -> Set[str]:
    required: Set[str] = set()
    for flag, effect in descriptor.flags.items():
        if not isinstance(effect, Computed) or flag in descriptor.semantics.self_managed:
            continue
        required.add("result")
        if effect.carry_bits is not None:
            required.update({"operand1", "operand2"})
    if descriptor.conditional:
        required.add("taken")
    return required


def flag_statements(descriptor: InstructionDescriptor) -> List[str]:
    statements: List[str] = []
    self_managed = descriptor.semantics.self_managed
    for flag, effect in descriptor.flags.items():
        if isinstance(effect, FixedFalse):
            statements.append(f"self.set_flag(Flag.{flag.value}, False)")
        elif isinstance(effect, FixedTrue):
            statements.append(f"self.set_flag(Flag.{flag.value}, True)")
        elif isinstance(effect, Unaffected):
            continue
        elif isinstance(effect, Computed):
            if flag in self_managed:
                continue
            if flag is FlagName.Z:
                mask = (1 << descriptor.semantics.result_bits) - 1
                statements.append(f"self.set_flag(Flag.Z, (result & 0x{mask:X}) == 0)")
            elif effect.carry_bits is not None:
                statements.append(
                    f"self.set_flag(Flag.{flag.value}, "
                    f"self.compute_carry_flag(operand1, operand2, result, {effect.carry_bits}))"
                )
            else:
                raise FlagSpecViolation(
                    descriptor.family,
                    f"computed flag {flag.value} has neither a carry bit width nor a self-managed declaration",
                )
        else:
            raise TypeError(f"Unknown flag effect: {effect!r}")
    return statements


def emit_routine(descriptor: InstructionDescriptor) -> List[str]:
    fragment = textwrap.dedent(descriptor.semantics.operation).strip("\n")
    try:
        bound = bound_names(fragment)
    except SyntaxError as exc:
        raise CodegenError(descriptor.family, f"operation fragment does not parse: {exc}") from exc

    flag_block = flag_statements(descriptor)
    missing = sorted(_required_names(descriptor) - bound)
    if missing:
        raise FlagSpecViolation(
            descriptor.family, f"operation fragment never binds {', '.join(missing)}"
        )

    returns = "bool" if descriptor.conditional else "None"
    lines = [
        f"{METHOD_INDENT}def execute_{descriptor.encoded}({', '.join(parameters(descriptor))}) -> {returns}:",
        f'{BODY_INDENT}"""{descriptor.family}"""',
    ]
    if descriptor.aliasing:
        lines.append(f"{BODY_INDENT}# Operands can overlap; both are addressed through register ids.")
    lines.append(f"{BODY_INDENT}self[Reg16.PC] += {descriptor.length}")

    if fragment:
        lines.append("")
        for statement in fragment.splitlines():
            lines.append(f"{BODY_INDENT}{statement}" if statement.strip() else "")

    if flag_block:
        lines.append("")
        lines.extend(f"{BODY_INDENT}{statement}" for statement in flag_block)

    if descriptor.conditional:
        lines.append("")
        lines.append(f"{BODY_INDENT}return taken")
    return lines


def emit_execution(descriptors: Iterable[InstructionDescriptor]) -> str:
    chunks: List[str] = []
    for descriptor in descriptors:
        chunks.append("".join(f"{line}\n" for line in emit_routine(descriptor)))
    return "\n".join(chunks)


__all__ = [
    "bound_names",
    "emit_execution",
    "emit_routine",
    "flag_statements",
    "parameters",
]
