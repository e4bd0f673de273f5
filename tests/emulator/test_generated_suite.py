"""Generates the full decoder, routines and conformance suite, then runs them.

The shipped emulator and test module keep their generated regions empty, so
this is where the authored semantics meet their fixtures.
"""

from __future__ import annotations

import random
import sys
import types
from typing import Dict, List, Tuple

import pytest

import lr35902.emulator.cpu
from lr35902.codegen.cli import DEFAULT_CPU_FILE, DEFAULT_TESTS_FILE, render_files
from lr35902.codegen.pipeline import generate, load_table_files
from lr35902.semantics import SEMANTICS

CPU_MODULE = "lr35902.emulator.cpu"


def _exec_module(name: str, source: str, filename: str) -> types.ModuleType:
    module = types.ModuleType(name)
    module.__file__ = filename
    exec(compile(source, filename, "exec"), module.__dict__)
    return module


@pytest.fixture(scope="module")
def generated() -> Tuple[types.ModuleType, types.ModuleType]:
    artifacts = generate(load_table_files(), SEMANTICS)
    cpu_source, tests_source = render_files(
        artifacts,
        DEFAULT_CPU_FILE.read_text(encoding="utf-8"),
        DEFAULT_TESTS_FILE.read_text(encoding="utf-8"),
    )

    cpu_module = _exec_module(CPU_MODULE, cpu_source, "<generated cpu>")
    # The conformance module imports Cpu by its package path.
    original = sys.modules[CPU_MODULE]
    sys.modules[CPU_MODULE] = cpu_module
    try:
        tests_module = _exec_module("generated_test_cpu", tests_source, "<generated tests>")
    finally:
        sys.modules[CPU_MODULE] = original
    return cpu_module, tests_module


def test_shipped_regions_are_empty() -> None:
    assert not hasattr(lr35902.emulator.cpu.Cpu, "execute_NOP")


def test_every_authored_family_has_a_routine(generated) -> None:
    cpu_module, _ = generated
    routines = {name for name in vars(cpu_module.Cpu) if name.startswith("execute_")}

    assert len(routines) == len(SEMANTICS)


def test_generated_conformance_suite(generated) -> None:
    _, tests_module = generated
    classes = {name: value for name, value in vars(tests_module).items() if name.startswith("Test_")}
    assert classes

    failures: List[str] = []
    executed = 0
    for class_name, cls in classes.items():
        for method_name in sorted(vars(cls)):
            if not method_name.startswith("test_"):
                continue
            executed += 1
            try:
                getattr(cls(), method_name)()
            except AssertionError as exc:
                failures.append(f"{class_name}.{method_name}: {exc}")

    assert not failures, "\n".join(failures)
    assert executed > len(classes)


def test_generated_cpu_runs_a_loop(generated) -> None:
    cpu_module, _ = generated
    cpu = cpu_module.Cpu(random.Random(1))
    program = [
        0x3E, 0x05,  # LD A, 5
        0x3D,        # DEC A
        0x20, 0xFD,  # JR NZ, -3
    ]
    cpu.memory[0x0100 : 0x0100 + len(program)] = bytes(program)
    cpu[cpu_module.Reg16.PC] = 0x0100

    cycles = 0
    visited: Dict[int, int] = {}
    while cpu[cpu_module.Reg16.PC] != 0x0105:
        pc = cpu[cpu_module.Reg16.PC]
        visited[pc] = visited.get(pc, 0) + 1
        cycles += cpu.step()

    assert cpu[cpu_module.Reg8.A] == 0
    assert cpu.get_flag(cpu_module.Flag.Z)
    assert cpu.get_flag(cpu_module.Flag.N)
    assert visited == {0x0100: 1, 0x0102: 5, 0x0103: 5}
    assert cycles == 8 + 5 * 4 + 4 * 12 + 8


def test_unsupported_instruction(generated) -> None:
    cpu_module, _ = generated
    cpu = cpu_module.Cpu()

    with pytest.raises(ValueError, match="0x76"):
        cpu.execute([0x76])
