"""CPU core: register file, executor, interrupts."""

from fdxsim.cpu.cpu import CPU, CPURegisters, CPUState, make_cpu
from fdxsim.cpu.interrupts import Interrupt, InterruptQueue, VECTOR_TABLE_BASE
from fdxsim.cpu.opcodes import Opcode

__all__ = [
    "CPU",
    "CPURegisters",
    "CPUState",
    "Interrupt",
    "InterruptQueue",
    "Opcode",
    "VECTOR_TABLE_BASE",
    "make_cpu",
]
