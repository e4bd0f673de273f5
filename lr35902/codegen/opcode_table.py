"""Opcode table loading.

The upstream table (gbdev ``Opcodes.json`` layout) is keyed by hex opcode
strings inside an ``unprefixed`` and a ``prefixed`` partition.  A separate
grouping file assigns opcodes to mnemonic families; only grouped opcodes are
classified, so the complete upstream table can be loaded even though it holds
operand syntaxes (bit indices, restart vectors) that no family uses.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import DataInconsistency, format_opcode
from .flags import FlagSpec
from .operands import OperandDescriptor, OperandType, RawOperand, classify_operands

logger = logging.getLogger(__name__)

PREFIX_BYTE = 0xCB

# Partition name -> prefix byte.
PARTITIONS: Dict[str, Optional[int]] = {
    "unprefixed": None,
    "prefixed": PREFIX_BYTE,
    "cbprefixed": PREFIX_BYTE,
}

OpcodeKey = Tuple[Optional[int], int]

_INDIRECT_NAME = re.compile(r"\((\w+)\)")
_SEPARATOR = re.compile(r",? ")


def parse_opcode_key(key: str) -> int:
    text = key.strip()
    if text.lower().startswith("0x"):
        text = text[2:]
    try:
        value = int(text, 16)
    except ValueError:
        raise ValueError(f"Invalid opcode key {key!r}") from None
    if not 0 <= value <= 0xFF:
        raise ValueError(f"Opcode key {key!r} out of range")
    return value


def encode_family(family: str) -> str:
    """Turn a family id into an identifier fragment: ``LD r1, (rr2)`` -> ``LD_r1_Irr2``."""

    encoded = _SEPARATOR.sub("_", _INDIRECT_NAME.sub(r"I\1", family))
    if not encoded.isidentifier():
        raise ValueError(f"Family {family!r} does not encode to an identifier")
    return encoded


@dataclass(frozen=True, slots=True)
class TableEntry:
    opcode: int
    prefix: Optional[int]
    mnemonic: str
    raw_operands: Tuple[RawOperand, ...]
    flags: FlagSpec
    length: int
    cycles: Tuple[int, ...]

    @property
    def label(self) -> str:
        return format_opcode(self.opcode, self.prefix)


@dataclass(frozen=True, slots=True)
class OpcodeRecord:
    opcode: int
    prefix: Optional[int]
    family: str
    mnemonic: str
    operands: Tuple[OperandDescriptor, ...]
    aliasing: bool
    flags: FlagSpec
    length: int
    cycles: Tuple[int, ...]

    @property
    def key(self) -> OpcodeKey:
        return (self.prefix, self.opcode)

    @property
    def label(self) -> str:
        return format_opcode(self.opcode, self.prefix)

    @property
    def conditional(self) -> bool:
        return len(self.cycles) == 2

    @property
    def operand_types(self) -> Tuple[OperandType, ...]:
        return tuple(operand.type for operand in self.operands)

    @property
    def operand_names(self) -> Tuple[str, ...]:
        return tuple(operand.name for operand in self.operands)

    @property
    def opcode_bytes(self) -> Tuple[int, ...]:
        if self.prefix is None:
            return (self.opcode,)
        return (self.prefix, self.opcode)


@dataclass(frozen=True, slots=True)
class FamilyGroup:
    name: str
    prefixed: bool
    opcodes: Tuple[int, ...]

    @property
    def encoded(self) -> str:
        return encode_family(self.name)

    @property
    def prefix(self) -> Optional[int]:
        return PREFIX_BYTE if self.prefixed else None

    def keys(self) -> Iterator[OpcodeKey]:
        for opcode in self.opcodes:
            yield (self.prefix, opcode)


def _parse_cycles(raw: Any) -> Tuple[int, ...]:
    values = raw if isinstance(raw, list) else [raw]
    cycles = tuple(int(value) for value in values)
    if len(cycles) not in (1, 2):
        raise ValueError(f"Expected one or two cycle counts, got {len(cycles)}")
    return cycles


def _parse_entry(opcode: int, prefix: Optional[int], raw: Mapping[str, Any]) -> TableEntry:
    return TableEntry(
        opcode=opcode,
        prefix=prefix,
        mnemonic=str(raw["mnemonic"]),
        raw_operands=tuple(RawOperand.from_table(item) for item in raw.get("operands", [])),
        flags=FlagSpec.from_table(raw["flags"]),
        length=int(raw["bytes"]),
        cycles=_parse_cycles(raw["cycles"]),
    )


def load_table(raw: Mapping[str, Any]) -> Dict[OpcodeKey, TableEntry]:
    """Parse both partitions, in canonical order (unprefixed first, ascending bytes)."""

    entries: Dict[OpcodeKey, TableEntry] = {}
    seen_keys: Dict[OpcodeKey, str] = {}
    for partition, prefix in PARTITIONS.items():
        section = raw.get(partition)
        if section is None:
            continue
        for key, item in section.items():
            subject = f"{partition}[{key!r}]"
            try:
                opcode = parse_opcode_key(key)
            except ValueError as exc:
                raise DataInconsistency(subject, str(exc)) from exc
            opcode_key = (prefix, opcode)
            if opcode_key in seen_keys:
                label = format_opcode(opcode, prefix)
                raise DataInconsistency(
                    label,
                    f"defined by both {seen_keys[opcode_key]} and {subject}",
                    [label],
                )
            seen_keys[opcode_key] = subject
            try:
                entries[opcode_key] = _parse_entry(opcode, prefix, item)
            except (KeyError, TypeError, ValueError) as exc:
                raise DataInconsistency(
                    format_opcode(opcode, prefix), f"malformed table entry: {exc}"
                ) from exc

    if not entries:
        raise DataInconsistency("opcode table", "no opcode partitions found")
    ordered = sorted(entries, key=lambda item: (item[0] is not None, item[1]))
    logger.debug("Loaded %d opcode table entries", len(ordered))
    return {key: entries[key] for key in ordered}


def load_families(raw: Mapping[str, Any]) -> Tuple[FamilyGroup, ...]:
    """Parse the grouping and enforce opcode uniqueness within each prefix class."""

    groups: List[FamilyGroup] = []
    owners: Dict[OpcodeKey, str] = {}
    for name, item in raw.items():
        try:
            encode_family(name)
            prefixed = bool(item.get("prefixed", False))
            opcodes = tuple(parse_opcode_key(str(code)) for code in item["opcodes"])
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise DataInconsistency(name, f"malformed family grouping: {exc}") from exc
        if not opcodes:
            raise DataInconsistency(name, "family has no opcodes")
        if not prefixed and PREFIX_BYTE in opcodes:
            raise DataInconsistency(name, "0xCB is the prefix byte, not an unprefixed opcode")

        group = FamilyGroup(name=name, prefixed=prefixed, opcodes=opcodes)
        for key in group.keys():
            if key in owners:
                label = format_opcode(key[1], key[0])
                raise DataInconsistency(
                    label,
                    f"assigned to both {owners[key]!r} and {name!r}",
                    [label],
                )
            owners[key] = name
        groups.append(group)
    return tuple(groups)


def build_record(entry: TableEntry, family: str) -> OpcodeRecord:
    try:
        classified = classify_operands(entry.mnemonic, entry.raw_operands)
    except ValueError as exc:
        raise DataInconsistency(entry.label, str(exc), [entry.label]) from exc
    return OpcodeRecord(
        opcode=entry.opcode,
        prefix=entry.prefix,
        family=family,
        mnemonic=entry.mnemonic,
        operands=classified.operands,
        aliasing=classified.aliasing,
        flags=entry.flags,
        length=entry.length,
        cycles=entry.cycles,
    )


@dataclass(frozen=True)
class OpcodeTable:
    """Grouped opcode records, ready for merging."""

    families: Tuple[FamilyGroup, ...]
    records: Tuple[OpcodeRecord, ...]

    def members(self, family: str) -> Tuple[OpcodeRecord, ...]:
        return tuple(record for record in self.records if record.family == family)

    def family(self, name: str) -> FamilyGroup:
        for group in self.families:
            if group.name == name:
                return group
        raise KeyError(name)


def load_opcode_table(
    table_raw: Mapping[str, Any], families_raw: Mapping[str, Any]
) -> OpcodeTable:
    entries = load_table(table_raw)
    families = load_families(families_raw)

    family_of: Dict[OpcodeKey, str] = {}
    for group in families:
        for key in group.keys():
            if key not in entries:
                label = format_opcode(key[1], key[0])
                raise DataInconsistency(
                    group.name, f"opcode {label} is not in the opcode table", [label]
                )
            family_of[key] = group.name

    records = tuple(
        build_record(entry, family_of[key])
        for key, entry in entries.items()
        if key in family_of
    )
    logger.debug(
        "Grouped %d opcodes into %d families", len(records), len(families)
    )
    return OpcodeTable(families=families, records=records)


def read_json(path: Union[str, Path]) -> Any:
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


__all__ = [
    "FamilyGroup",
    "OpcodeKey",
    "OpcodeRecord",
    "OpcodeTable",
    "PARTITIONS",
    "PREFIX_BYTE",
    "TableEntry",
    "build_record",
    "encode_family",
    "load_families",
    "load_opcode_table",
    "load_table",
    "parse_opcode_key",
    "read_json",
]
