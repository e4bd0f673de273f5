from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, FrozenSet, List, Mapping, Optional, Tuple, Union

from ..semantics.model import Semantics
from .decode_emitter import emit_decoding
from .descriptors import InstructionDescriptor, merge_family
from .errors import AuthoringGap, CodegenError, DataInconsistency, format_opcode
from .execution_emitter import emit_execution
from .opcode_table import (
    PREFIX_BYTE,
    OpcodeKey,
    OpcodeTable,
    load_opcode_table,
    parse_opcode_key,
    read_json,
)
from .test_emitter import emit_tests

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_OPCODES_PATH = DATA_DIR / "opcodes.json"
DEFAULT_FAMILIES_PATH = DATA_DIR / "families.json"


@dataclass(frozen=True)
class GeneratedArtifacts:
    decoding: str
    execution: str
    tests: str
    families: Tuple[str, ...]
    skipped: Tuple[str, ...]


def parse_opcode_filter(text: str) -> FrozenSet[OpcodeKey]:
    """Parse an allow-list such as ``06,3C,CB37`` (``0x`` prefixes accepted)."""

    keys = set()
    for chunk in text.split(","):
        token = chunk.strip().upper()
        if token.startswith("0X"):
            token = token[2:]
        if not token:
            continue
        if len(token) == 4 and token.startswith(f"{PREFIX_BYTE:02X}"):
            keys.add((PREFIX_BYTE, parse_opcode_key(token[2:])))
        elif len(token) <= 2:
            keys.add((None, parse_opcode_key(token)))
        else:
            raise ValueError(f"Invalid opcode in filter: {chunk.strip()!r}")
    if not keys:
        raise ValueError("Empty opcode filter")
    return frozenset(keys)


def _check_registry(table: OpcodeTable, semantics: Mapping[str, Semantics]) -> None:
    known = {group.name for group in table.families}
    for family, entry in semantics.items():
        if entry.family != family:
            raise DataInconsistency(family, f"semantics registered under {entry.family!r}")
        if family not in known:
            raise DataInconsistency(family, "semantics given for a family missing from the grouping")


def _check_filter(table: OpcodeTable, only: Collection[OpcodeKey]) -> None:
    grouped = {record.key for record in table.records}
    unknown = sorted(
        (key for key in only if key not in grouped),
        key=lambda key: (key[0] is not None, key[1]),
    )
    if unknown:
        labels = [format_opcode(opcode, prefix) for prefix, opcode in unknown]
        raise CodegenError("opcode filter", f"not grouped in any family: {', '.join(labels)}")


def build_descriptors(
    table: OpcodeTable,
    semantics: Mapping[str, Semantics],
    only: Optional[Collection[OpcodeKey]] = None,
    strict: bool = False,
) -> Tuple[List[InstructionDescriptor], List[str]]:
    """Merge every authored family; return the descriptors to emit and the skipped families.

    Merging always covers every member so the whole table is validated;
    the filter only narrows which members get emitted.
    """

    _check_registry(table, semantics)
    if only is not None:
        _check_filter(table, only)

    descriptors: List[InstructionDescriptor] = []
    skipped: List[str] = []
    for group in table.families:
        members = table.members(group.name)
        selected = members if only is None else tuple(r for r in members if r.key in only)
        entry = semantics.get(group.name)

        if entry is None:
            if only is not None and selected:
                labels = [record.label for record in selected]
                raise AuthoringGap(group.name, f"no semantics for filtered opcodes {', '.join(labels)}")
            if strict:
                raise AuthoringGap(group.name, "no semantics authored")
            if selected:
                logger.warning("Skipping %s: no semantics authored", group.name)
                skipped.append(group.name)
            continue

        descriptor = merge_family(group, members, entry)
        if not selected:
            continue
        if len(selected) != len(members):
            descriptor = dataclasses.replace(descriptor, members=selected)
        descriptors.append(descriptor)

    return descriptors, skipped


def generate(
    table: OpcodeTable,
    semantics: Mapping[str, Semantics],
    only: Optional[Collection[OpcodeKey]] = None,
    strict: bool = False,
) -> GeneratedArtifacts:
    """Produce the decoding, execution and test texts; nothing is returned on failure."""

    descriptors, skipped = build_descriptors(table, semantics, only=only, strict=strict)
    decoding = emit_decoding(descriptors)
    execution = emit_execution(descriptors)
    tests = emit_tests(descriptors)
    logger.info(
        "Generated %d families (%d opcodes), skipped %d",
        len(descriptors),
        sum(len(descriptor.members) for descriptor in descriptors),
        len(skipped),
    )
    return GeneratedArtifacts(
        decoding=decoding,
        execution=execution,
        tests=tests,
        families=tuple(descriptor.family for descriptor in descriptors),
        skipped=tuple(skipped),
    )


def load_table_files(
    opcodes_path: Union[str, Path] = DEFAULT_OPCODES_PATH,
    families_path: Union[str, Path] = DEFAULT_FAMILIES_PATH,
) -> OpcodeTable:
    logger.debug("Reading opcode table from %s", opcodes_path)
    return load_opcode_table(read_json(opcodes_path), read_json(families_path))


__all__ = [
    "DEFAULT_FAMILIES_PATH",
    "DEFAULT_OPCODES_PATH",
    "GeneratedArtifacts",
    "build_descriptors",
    "generate",
    "load_table_files",
    "parse_opcode_filter",
]
