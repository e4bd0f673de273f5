from .cpu import Cpu, Flag, Reg16, Reg8

__all__ = ["Cpu", "Flag", "Reg16", "Reg8"]
