from __future__ import annotations

from typing import List

import pytest

from fdxsim.cpu.cpu import CPU, CPUState
from fdxsim.cpu.interrupts import Interrupt
from fdxsim.cpu.opcodes import Opcode
from fdxsim.program.sample import ISR_START, MAIN_PROGRAM_START, create_demo_cpu
from fdxsim.system.computer import Computer, default_clock_hz


def halting_cpu() -> CPU:
    cpu = CPU()
    cpu.load_program([Opcode.NOOP, Opcode.NOOP, Opcode.HALT])
    return cpu


def test_step_ticks_once_even_when_stopped() -> None:
    computer = Computer(halting_cpu, clock_hz=4.0)

    computer.step()

    assert computer.get_running_status() == computer.STATUS_STOPPED
    assert computer.tick_count == 1
    assert computer.cpu.registers.program_counter == 1


def test_run_requires_power_on_and_stops_on_halt() -> None:
    computer = Computer(halting_cpu, clock_hz=4.0)
    assert computer.run(10) == 0

    computer.power_on()
    executed = computer.run(10)

    assert executed == 3
    assert computer.halted is True


def test_pause_and_resume_controls_execution() -> None:
    computer = Computer(create_demo_cpu, clock_hz=4.0)
    computer.power_on()
    computer.run(2)

    computer.pause()
    assert computer.run(5) == 0
    assert computer.tick_count == 2

    computer.resume()
    assert computer.run(5) == 5


def test_toggle_pause_starts_a_stopped_computer() -> None:
    computer = Computer(create_demo_cpu, clock_hz=4.0)

    computer.toggle_pause()
    assert computer.running is True

    computer.toggle_pause()
    assert computer.running is False


def test_advance_converts_seconds_to_ticks() -> None:
    computer = Computer(create_demo_cpu, clock_hz=4.0)
    computer.power_on()

    assert computer.advance(0.5) == 2
    assert computer.advance(0.1) == 0
    assert computer.advance(0.2) == 1
    assert computer.tick_count == 3


def test_scheduled_interrupt_delivered_between_ticks() -> None:
    computer = Computer(create_demo_cpu, clock_hz=4.0)
    computer.power_on()
    computer.run(5)  # setup done, interrupts enabled

    computer.request_interrupt(Interrupt.TIMER, delay_ticks=2)
    assert computer.pending_events() == ["interrupt:1"]

    computer.run(2)
    assert computer.cpu.interrupt_queue.pending() == (Interrupt.TIMER,)
    assert computer.cpu.registers.program_counter != ISR_START

    computer.run(1)
    assert computer.cpu.registers.program_counter == ISR_START


def test_reset_rebuilds_cpu_and_pauses() -> None:
    computer = Computer(create_demo_cpu, clock_hz=4.0)
    computer.power_on()
    computer.run(6)
    computer.request_interrupt(Interrupt.TIMER, delay_ticks=10)
    old_cpu = computer.cpu

    computer.reset()

    assert computer.cpu is not old_cpu
    assert computer.tick_count == 0
    assert computer.cpu.registers.program_counter == MAIN_PROGRAM_START
    assert computer.pending_events() == []
    assert computer.get_running_status() == computer.STATUS_PAUSED


def test_listeners_receive_snapshots() -> None:
    computer = Computer(halting_cpu, clock_hz=4.0)
    states: List[CPUState] = []
    computer.add_listener(states.append)

    computer.step()
    computer.step()

    assert [state.registers.program_counter for state in states] == [1, 2]

    computer.remove_listener(states.append)
    computer.step()
    assert len(states) == 2


def test_power_off_discards_events() -> None:
    computer = Computer(create_demo_cpu, clock_hz=4.0)
    computer.power_on()
    computer.request_interrupt(Interrupt.TIMER, delay_ticks=3)

    computer.power_off()

    assert computer.get_running_status() == computer.STATUS_STOPPED
    assert computer.pending_events() == []


def test_clock_frequency_validation() -> None:
    computer = Computer(create_demo_cpu, clock_hz=4.0)
    computer.set_clock_frequency(10.0)
    assert computer.get_clock_frequency() == 10.0

    with pytest.raises(ValueError):
        computer.set_clock_frequency(0)
    with pytest.raises(ValueError):
        Computer(create_demo_cpu, clock_hz=-1.0)


def test_default_clock_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("FDXSIM_CLOCK_HZ", "12")
    assert default_clock_hz() == 12.0
    assert Computer(create_demo_cpu).clock_hz == 12.0

    monkeypatch.setenv("FDXSIM_CLOCK_HZ", "fast")
    assert default_clock_hz() == 4.0

    monkeypatch.delenv("FDXSIM_CLOCK_HZ")
    assert default_clock_hz() == 4.0


def test_save_and_load_state_round_trip() -> None:
    computer = Computer(create_demo_cpu, clock_hz=8.0)
    computer.power_on()
    computer.run(3)
    data: dict[str, object] = {}
    computer.save_state(data)

    restored = Computer(create_demo_cpu, clock_hz=1.0)
    restored.load_state(data)

    assert restored.tick_count == 3
    assert restored.clock_hz == 8.0
    assert restored.running is True
