"""Headless execution helpers for fdxsim programs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Sequence

from fdxsim.cpu.cpu import CPU
from fdxsim.cpu.interrupts import Interrupt
from fdxsim.program.sample import create_demo_cpu


@dataclass(frozen=True)
class InterruptEvent:
    """Interrupt request delivered once ``tick`` ticks have run."""

    tick: int
    code: int = int(Interrupt.TIMER)


def run_program(
    *,
    total_ticks: int,
    events: Sequence[InterruptEvent] | None = None,
    factory: Callable[[], CPU] = create_demo_cpu,
) -> tuple[CPU, List[int]]:
    """Tick a CPU ``total_ticks`` times and capture the PC after each tick."""

    cpu = factory()
    scheduled = sorted(events or [], key=lambda evt: evt.tick)
    index = 0
    pc_history: List[int] = []

    for tick in range(total_ticks):
        while index < len(scheduled) and scheduled[index].tick <= tick:
            cpu.request_interrupt(scheduled[index].code)
            index += 1
        cpu.tick()
        pc_history.append(cpu.registers.program_counter)

    return cpu, pc_history
