from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..semantics.model import Semantics
from .errors import DataInconsistency, FlagSpecViolation
from .flags import Computed, FlagName, FlagSpec
from .opcode_table import FamilyGroup, OpcodeRecord
from .operands import IMMEDIATE_TYPES, LITERAL_TYPES, OperandType


@dataclass(frozen=True)
class InstructionDescriptor:
    """Shared shape of every opcode in one mnemonic family."""

    family: str
    encoded: str
    prefixed: bool
    operand_shape: Tuple[Tuple[OperandType, bool], ...]
    flags: FlagSpec
    length: int
    aliasing: bool
    conditional: bool
    semantics: Semantics
    members: Tuple[OpcodeRecord, ...]

    @property
    def operand_types(self) -> Tuple[OperandType, ...]:
        return tuple(op_type for op_type, _ in self.operand_shape)

    @property
    def immediate_type(self) -> Optional[OperandType]:
        for op_type in self.operand_types:
            if op_type in IMMEDIATE_TYPES:
                return op_type
        return None

    @property
    def uses_memory(self) -> bool:
        return any(indirect for _, indirect in self.operand_shape)

    @property
    def destination_indirect(self) -> bool:
        """Whether the first operand after any bit index or restart vector is dereferenced."""

        for op_type, indirect in self.operand_shape:
            if op_type not in LITERAL_TYPES:
                return indirect
        return False

    @property
    def self_managed(self) -> Tuple[FlagName, ...]:
        return tuple(flag for flag, _ in self.flags.items() if flag in self.semantics.self_managed)


def _fold_semantics(subject: str, flags: FlagSpec, semantics: Semantics) -> FlagSpec:
    for flag, width in semantics.carry_bits.items():
        if flag is FlagName.Z:
            raise FlagSpecViolation(subject, "the zero flag takes no carry bit width")
        if not isinstance(flags.get(flag), Computed):
            raise FlagSpecViolation(
                subject, f"carry bit width declared for {flag.value}, which the table does not compute"
            )
        if flag in semantics.self_managed:
            raise FlagSpecViolation(
                subject, f"flag {flag.value} is both self-managed and width-synthesized"
            )
        flags = flags.with_effect(flag, Computed(width))

    for flag in semantics.self_managed:
        if not isinstance(flags.get(flag), Computed):
            raise FlagSpecViolation(
                subject, f"flag {flag.value} is declared self-managed but is not computed"
            )
    return flags


def merge_family(
    group: FamilyGroup, members: Sequence[OpcodeRecord], semantics: Semantics
) -> InstructionDescriptor:
    """Fold the member opcodes of a family into one descriptor."""

    if not members:
        raise DataInconsistency(group.name, "family has no member opcodes")

    shapes: Dict[Tuple[FlagSpec, int, Tuple[Tuple[OperandType, bool], ...]], List[str]] = {}
    arities: Dict[int, List[str]] = {}
    for record in members:
        shape = tuple(operand.shape for operand in record.operands)
        shapes.setdefault((record.flags, record.length, shape), []).append(record.label)
        arities.setdefault(len(record.cycles), []).append(record.label)

    if len(shapes) != 1:
        labels = [record.label for record in members]
        raise DataInconsistency(
            group.name,
            f"member opcodes diverge in flags, length or operand types ({len(shapes)} distinct shapes)",
            labels,
        )
    if len(arities) != 1:
        labels = [record.label for record in members]
        raise DataInconsistency(
            group.name, "member opcodes disagree on conditional cycle counts", labels
        )

    ((flags, length, shape),) = shapes
    (arity,) = arities
    return InstructionDescriptor(
        family=group.name,
        encoded=group.encoded,
        prefixed=group.prefixed,
        operand_shape=shape,
        flags=_fold_semantics(group.name, flags, semantics),
        length=length,
        aliasing=any(record.aliasing for record in members),
        conditional=arity == 2,
        semantics=semantics,
        members=tuple(members),
    )


__all__ = ["InstructionDescriptor", "merge_family"]
