"""Host-side driving of the CPU core."""

from fdxsim.system.computer import Computer, EventQueue, default_clock_hz

__all__ = ["Computer", "EventQueue", "default_clock_hz"]
