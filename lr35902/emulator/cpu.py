"""Sharp LR35902 CPU core.

Decoding arms and ``execute_<family>`` methods are generated by
``python -m lr35902.codegen`` into the marked regions below.
"""

from __future__ import annotations

import logging
import random
from enum import IntEnum
from typing import Optional, Sequence, Union

logger = logging.getLogger(__name__)

ADDRESS_SPACE_SIZE = 0x10000
ADDRESS_MASK = ADDRESS_SPACE_SIZE - 1


class Reg8(IntEnum):
    """8-bit registers, by index into the register storage."""

    A = 0
    F = 1
    B = 2
    C = 3
    D = 4
    E = 5
    H = 6
    L = 7


class Reg16(IntEnum):
    """16-bit registers, by index of their high byte (big-endian pairs)."""

    AF = 0
    BC = 2
    DE = 4
    HL = 6
    SP = 8
    PC = 10


class Flag(IntEnum):
    """Bit positions of the flags in F."""

    Z = 7
    N = 6
    H = 5
    C = 4


Register = Union[Reg8, Reg16]


class Cpu:
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.registers = bytearray(12)
        # Memory content is undefined at power-on.
        source = rng if rng is not None else random.Random()
        self.memory = bytearray(source.randbytes(ADDRESS_SPACE_SIZE))
        self.readonly_memory = memoryview(self.memory).toreadonly()

    def __getitem__(self, register: Register) -> int:
        if isinstance(register, Reg16):
            index = int(register)
            return (self.registers[index] << 8) | self.registers[index + 1]
        if isinstance(register, Reg8):
            return self.registers[register]
        raise TypeError(f"Unsupported register: {register!r}")

    def __setitem__(self, register: Register, value: int) -> None:
        if isinstance(register, Reg16):
            value &= 0xFFFF
            if register is Reg16.AF:
                value &= 0xFFF0
            index = int(register)
            self.registers[index] = value >> 8
            self.registers[index + 1] = value & 0xFF
        elif isinstance(register, Reg8):
            value &= 0xFF
            if register is Reg8.F:
                value &= 0xF0
            self.registers[register] = value
        else:
            raise TypeError(f"Unsupported register: {register!r}")

    def get_flag(self, flag: Flag) -> bool:
        return bool(self.registers[Reg8.F] & (1 << flag))

    def set_flag(self, flag: Flag, value: bool) -> None:
        if value:
            self.registers[Reg8.F] |= 1 << flag
        else:
            self.registers[Reg8.F] &= ~(1 << flag) & 0xFF

    @staticmethod
    def compute_carry_flag(operand1: int, operand2: int, result: int, position: int) -> bool:
        """True when the addition or subtraction carried into (borrowed from) bit ``position``."""

        return ((operand1 ^ operand2 ^ result) & (1 << position)) != 0

    @staticmethod
    def sign_extend8(value: int) -> int:
        value &= 0xFF
        return value - 0x100 if value & 0x80 else value

    def read_word(self, address: int) -> int:
        low = self.memory[address & ADDRESS_MASK]
        high = self.memory[(address + 1) & ADDRESS_MASK]
        return (high << 8) | low

    def write_word(self, address: int, value: int) -> None:
        self.memory[address & ADDRESS_MASK] = value & 0xFF
        self.memory[(address + 1) & ADDRESS_MASK] = (value >> 8) & 0xFF

    def push_word(self, value: int) -> None:
        self[Reg16.SP] -= 2
        self.write_word(self[Reg16.SP], value)

    def pop_word(self) -> int:
        value = self.read_word(self[Reg16.SP])
        self[Reg16.SP] += 2
        return value

    def step(self) -> int:
        """Execute the instruction at PC and return the cycles it took."""

        pc = self[Reg16.PC]
        window = [self.memory[(pc + offset) & ADDRESS_MASK] for offset in range(3)]
        logger.debug("PC=0x%04X bytes=%s", pc, " ".join(f"{byte:02X}" for byte in window))
        return self.execute(window)

    def execute(self, instruction_bytes: Sequence[int]) -> int:
        """Execute one instruction located at PC and return the cycles it took.

        ``instruction_bytes`` are stored at PC first, so that the instruction
        is also visible in memory.
        """

        pc = self[Reg16.PC]
        for offset, byte in enumerate(instruction_bytes):
            self.memory[(pc + offset) & ADDRESS_MASK] = byte

        match list(instruction_bytes):
            # __OPCODES_DECODING_REPLACEMENT_START__
            # __OPCODES_DECODING_REPLACEMENT_END__
            case _:
                raise ValueError(
                    "Unsupported instruction: " + " ".join(f"0x{byte:02X}" for byte in instruction_bytes)
                )

    # __OPCODES_EXECUTION_REPLACEMENT_START__
    # __OPCODES_EXECUTION_REPLACEMENT_END__


__all__ = ["ADDRESS_SPACE_SIZE", "Cpu", "Flag", "Reg16", "Reg8", "Register"]
