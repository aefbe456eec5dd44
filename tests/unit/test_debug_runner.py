from __future__ import annotations

import pytest

from fdxsim import debug_runner
from fdxsim.cpu.interrupts import Interrupt
from fdxsim.memory import Memory


def test_parse_hex_accepts_prefixed_and_plain() -> None:
    assert debug_runner._parse_hex("0x20") == 0x20
    assert debug_runner._parse_hex("f0") == 0xF0


@pytest.mark.parametrize("value", ["", "0x100", "xyz", "-1"])
def test_parse_hex_rejects_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        debug_runner._parse_hex(value)


def test_parse_range_and_merge() -> None:
    rng = debug_runner._parse_range("10:1F")
    assert rng.start == 0x10
    assert rng.end == 0x1F
    merged = debug_runner._merge_ranges(
        [debug_runner.DumpRange(0x00, 0x0F), debug_runner.DumpRange(0x10, 0x15)],
        256,
    )
    assert merged == [debug_runner.DumpRange(0x00, 0x15)]


def test_merge_ranges_defaults_to_full_memory() -> None:
    assert debug_runner._merge_ranges([], 256) == [debug_runner.DumpRange(0x00, 0xFF)]


def test_parse_interrupt_variants() -> None:
    assert debug_runner._parse_interrupt("12") == debug_runner.ScheduledInterrupt(12, int(Interrupt.TIMER))
    assert debug_runner._parse_interrupt("3:timer") == debug_runner.ScheduledInterrupt(3, int(Interrupt.TIMER))
    assert debug_runner._parse_interrupt("4:0x08") == debug_runner.ScheduledInterrupt(4, 0x08)


@pytest.mark.parametrize("value", ["-1", "x", "2:nope"])
def test_parse_interrupt_rejects_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        debug_runner._parse_interrupt(value)


def test_format_hex_dump_renders_expected_table() -> None:
    memory = Memory()
    memory.store8(0x00, 0x12)
    memory.store8(0x01, 0x34)
    memory.store8(0x10, 0xCD)

    dump = debug_runner._format_hex_dump(memory, [debug_runner.DumpRange(0x00, 0x10)])
    lines = dump.splitlines()

    assert lines[0].startswith("ADDR")
    assert lines[1].startswith("00   12 34")
    assert lines[2].startswith("10   CD 00")
    assert len(lines) == 3


def test_setup_cpu_defaults_to_demo_program() -> None:
    cpu = debug_runner._setup_cpu([], None)
    assert cpu.registers.program_counter == 0x20

    cpu = debug_runner._setup_cpu([], 0x29)
    assert cpu.registers.program_counter == 0x29
