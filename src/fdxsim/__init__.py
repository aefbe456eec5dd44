"""Step-by-step 8-bit CPU simulator with a vectored interrupt."""

from fdxsim.cpu import CPU, CPURegisters, CPUState, Interrupt, Opcode
from fdxsim.memory import Memory

__all__ = ["CPU", "CPURegisters", "CPUState", "Interrupt", "Memory", "Opcode"]

__version__ = "0.1.0"
