"""Instruction set of the 8-bit demonstration CPU."""

from __future__ import annotations

from enum import IntEnum
from typing import FrozenSet, Optional


class Opcode(IntEnum):
    NOOP = 0
    LOAD_A_VAL = 1  # A := immediate
    LOAD_B_VAL = 2  # B := immediate
    LOAD_A_MEM = 3  # A := mem[operand]
    LOAD_B_MEM = 4  # B := mem[operand]
    STORE_A = 5
    STORE_B = 6
    ADD = 7  # A := (A + B) & 0xFF
    HALT = 8
    ENABLE_INTERRUPTS = 9
    IRET = 10
    JMP = 11
    PUSH_A = 12
    POP_A = 13
    PUSH_B = 14
    POP_B = 15


# Opcodes followed by a single operand byte.
TWO_BYTE_OPCODES: FrozenSet[Opcode] = frozenset(
    {
        Opcode.LOAD_A_VAL,
        Opcode.LOAD_B_VAL,
        Opcode.LOAD_A_MEM,
        Opcode.LOAD_B_MEM,
        Opcode.STORE_A,
        Opcode.STORE_B,
        Opcode.JMP,
    }
)

# Opcodes whose operand is a memory address rather than a value.
ADDRESS_OPERAND_OPCODES: FrozenSet[Opcode] = frozenset(
    {
        Opcode.LOAD_A_MEM,
        Opcode.LOAD_B_MEM,
        Opcode.STORE_A,
        Opcode.STORE_B,
        Opcode.JMP,
    }
)

UNKNOWN_MNEMONIC = "DATA"


def decode(value: int) -> Optional[Opcode]:
    """Return the opcode for ``value`` or ``None`` for bytes outside the set."""

    try:
        return Opcode(value)
    except ValueError:
        return None


def mnemonic(value: int) -> str:
    opcode = decode(value)
    if opcode is None:
        return UNKNOWN_MNEMONIC
    return opcode.name


def instruction_length(value: int) -> int:
    opcode = decode(value)
    if opcode is not None and opcode in TWO_BYTE_OPCODES:
        return 2
    return 1


__all__ = [
    "ADDRESS_OPERAND_OPCODES",
    "Opcode",
    "TWO_BYTE_OPCODES",
    "UNKNOWN_MNEMONIC",
    "decode",
    "instruction_length",
    "mnemonic",
]
