"""Demonstration program: two counting loops plus a TIMER service routine."""

from __future__ import annotations

from typing import Dict, List

from fdxsim.cpu.cpu import CPU
from fdxsim.cpu.interrupts import VECTOR_TABLE_BASE
from fdxsim.cpu.opcodes import Opcode
from fdxsim.memory import Memory
from fdxsim.program.listing import ListingLine, build_listing

MAIN_PROGRAM_START = 0x20
MAIN_LOOP_START = MAIN_PROGRAM_START + 9
ISR_START = 0x80

COUNTER_ADDRESS = 0xF0  # incremented by the ISR
VALUE_1_ADDRESS = 0xF1
RESULT_ADDRESS = 0xF4  # first main-loop counter
INCREMENT_VALUE_ADDRESS = 0xF5
RESULT_ADDRESS_2 = 0xF6  # second main-loop counter
INCREMENT_VALUE_2_ADDRESS = 0xF7

VECTOR_TABLE: List[int] = [0x00, ISR_START]

MAIN_PROGRAM: List[int] = [
    # setup
    Opcode.LOAD_A_VAL, 0,
    Opcode.STORE_A, RESULT_ADDRESS,
    Opcode.LOAD_A_VAL, 0,
    Opcode.STORE_A, RESULT_ADDRESS_2,
    Opcode.ENABLE_INTERRUPTS,
    # loop: first counter += mem[INCREMENT_VALUE_ADDRESS]
    Opcode.LOAD_A_MEM, RESULT_ADDRESS,
    Opcode.LOAD_B_MEM, INCREMENT_VALUE_ADDRESS,
    Opcode.ADD,
    Opcode.STORE_A, RESULT_ADDRESS,
    # second counter += mem[INCREMENT_VALUE_2_ADDRESS]
    Opcode.LOAD_A_MEM, RESULT_ADDRESS_2,
    Opcode.LOAD_B_MEM, INCREMENT_VALUE_2_ADDRESS,
    Opcode.ADD,
    Opcode.STORE_A, RESULT_ADDRESS_2,
    Opcode.JMP, MAIN_LOOP_START,
]

ISR_PROGRAM: List[int] = [
    Opcode.PUSH_A,
    Opcode.PUSH_B,
    Opcode.LOAD_A_MEM, COUNTER_ADDRESS,
    Opcode.LOAD_B_MEM, VALUE_1_ADDRESS,
    Opcode.ADD,
    Opcode.STORE_A, COUNTER_ADDRESS,
    Opcode.POP_B,
    Opcode.POP_A,
    Opcode.IRET,
]

INITIAL_DATA: Dict[int, int] = {
    COUNTER_ADDRESS: 0,
    VALUE_1_ADDRESS: 1,
    RESULT_ADDRESS: 0,
    INCREMENT_VALUE_ADDRESS: 1,
    RESULT_ADDRESS_2: 0,
    INCREMENT_VALUE_2_ADDRESS: 2,
}


def create_demo_cpu(capacity: int = Memory.DEFAULT_CAPACITY) -> CPU:
    """Return a CPU with the vector table, main loop, ISR and data loaded."""

    cpu = CPU(capacity)
    cpu.load_program(VECTOR_TABLE, VECTOR_TABLE_BASE)
    cpu.load_program(MAIN_PROGRAM, MAIN_PROGRAM_START)
    cpu.load_program(ISR_PROGRAM, ISR_START)
    for address, value in INITIAL_DATA.items():
        cpu.memory.store8(address, value)
    cpu.registers.program_counter = MAIN_PROGRAM_START
    return cpu


def demo_listing() -> List[ListingLine]:
    return build_listing(
        [
            (None, MAIN_PROGRAM, MAIN_PROGRAM_START),
            ("--- ISR ---", ISR_PROGRAM, ISR_START),
        ]
    )


__all__ = [
    "COUNTER_ADDRESS",
    "INCREMENT_VALUE_2_ADDRESS",
    "INCREMENT_VALUE_ADDRESS",
    "INITIAL_DATA",
    "ISR_PROGRAM",
    "ISR_START",
    "MAIN_LOOP_START",
    "MAIN_PROGRAM",
    "MAIN_PROGRAM_START",
    "RESULT_ADDRESS",
    "RESULT_ADDRESS_2",
    "VALUE_1_ADDRESS",
    "VECTOR_TABLE",
    "create_demo_cpu",
    "demo_listing",
]
