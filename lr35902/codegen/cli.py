"""Command line entry point: ``python -m lr35902.codegen``."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import requests

from ..semantics import SEMANTICS
from .config import load_codegen_config
from .errors import CodegenError
from .fetch import fetch_opcode_table
from .pipeline import (
    DEFAULT_FAMILIES_PATH,
    DEFAULT_OPCODES_PATH,
    GeneratedArtifacts,
    generate,
    load_table_files,
    parse_opcode_filter,
)
from .splice import DECODING_REGION, EXECUTION_REGION, TESTS_REGION, splice

logger = logging.getLogger(__name__)

_PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CPU_FILE = _PACKAGE_ROOT / "emulator" / "cpu.py"
DEFAULT_TESTS_FILE = _PACKAGE_ROOT.parent / "tests" / "emulator" / "test_cpu.py"


def write_files(updates: Sequence[Tuple[Path, str]]) -> None:
    """Stage every file beside its target, then swap them all in.

    A failure while staging leaves every target untouched.
    """

    staged: List[Tuple[Path, Path]] = []
    try:
        for path, text in updates:
            partial = path.with_name(path.name + ".partial")
            staged.append((partial, path))
            partial.write_text(text, encoding="utf-8")
    except OSError:
        for partial, _ in staged:
            partial.unlink(missing_ok=True)
        raise
    for partial, path in staged:
        partial.replace(path)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m lr35902.codegen",
        description="Generate the LR35902 decoder, execution routines and conformance tests",
    )
    parser.add_argument(
        "--only",
        type=str,
        help="Comma separated opcodes to generate, e.g. 06,3C,CB37",
    )
    parser.add_argument(
        "--opcodes", type=Path, default=None, help="Opcode table (defaults to the bundled one)"
    )
    parser.add_argument(
        "--families", type=Path, default=DEFAULT_FAMILIES_PATH, help="Family grouping file"
    )
    parser.add_argument("--cpu-file", type=Path, default=DEFAULT_CPU_FILE, help="CPU source to update")
    parser.add_argument(
        "--tests-file", type=Path, default=DEFAULT_TESTS_FILE, help="Conformance test module to update"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Exit with status 1 when the files are out of date, without writing them",
    )
    parser.add_argument(
        "--fetch",
        action="store_true",
        help="Use the upstream table, downloading it into the cache if needed",
    )
    parser.add_argument(
        "--refresh", action="store_true", help="With --fetch, download even if cached"
    )
    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Treat families without semantics as errors (default: LR35902_CODEGEN_STRICT)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def render_files(
    artifacts: GeneratedArtifacts, cpu_source: str, tests_source: str
) -> Tuple[str, str]:
    cpu_source = splice(cpu_source, DECODING_REGION, artifacts.decoding, "cpu file")
    cpu_source = splice(cpu_source, EXECUTION_REGION, artifacts.execution, "cpu file")
    tests_source = splice(tests_source, TESTS_REGION, artifacts.tests, "tests file")
    return cpu_source, tests_source


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_codegen_config(strict=args.strict)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        only = parse_opcode_filter(args.only) if args.only else None
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    try:
        opcodes_path = args.opcodes or DEFAULT_OPCODES_PATH
        if args.fetch:
            opcodes_path = fetch_opcode_table(
                config.opcodes_url, config.opcodes_cache, force=args.refresh
            )
        table = load_table_files(opcodes_path, args.families)
        artifacts = generate(table, SEMANTICS, only=only, strict=config.strict)

        cpu_source = args.cpu_file.read_text(encoding="utf-8")
        tests_source = args.tests_file.read_text(encoding="utf-8")
        new_cpu, new_tests = render_files(artifacts, cpu_source, tests_source)
    except CodegenError as exc:
        logger.error("%s", exc)
        return 1
    except (OSError, requests.RequestException) as exc:
        logger.error("I/O failure: %s", exc)
        return 1

    stale: List[Path] = []
    if new_cpu != cpu_source:
        stale.append(args.cpu_file)
    if new_tests != tests_source:
        stale.append(args.tests_file)

    if args.check:
        for path in stale:
            logger.error("%s is out of date", path)
        return 1 if stale else 0

    updates = [
        (path, text)
        for path, text in ((args.cpu_file, new_cpu), (args.tests_file, new_tests))
        if path in stale
    ]
    try:
        write_files(updates)
    except OSError as exc:
        logger.error("I/O failure: %s", exc)
        return 1
    for path, _ in updates:
        logger.info("Updated %s", path)
    return 0


__all__ = ["build_parser", "main", "render_files", "write_files"]
