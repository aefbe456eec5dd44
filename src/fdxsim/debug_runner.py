"""Headless runner for stepping programs and dumping the resulting state."""

from __future__ import annotations

import argparse
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from fdxsim.cpu.cpu import CPU
from fdxsim.cpu.interrupts import Interrupt, interrupt_name
from fdxsim.memory import Memory
from fdxsim.program.image import ImageLoadError, ImageSpec, load_images, parse_image_spec
from fdxsim.program.sample import create_demo_cpu
from fdxsim.system.computer import Computer

DEFAULT_MAX_TICKS = 1000
ENV_TRACE = "FDXSIM_TRACE"
ADDRESS_MASK = 0xFF

EXIT_OK = 0
EXIT_LOAD_FAILED = 1
EXIT_TICK_LIMIT = 2


@dataclass(frozen=True)
class DumpRange:
    """Inclusive memory range used for dumping."""

    start: int
    end: int

    def iter_addresses(self) -> Iterable[int]:
        for address in range(self.start, self.end + 1):
            yield address


@dataclass(frozen=True)
class ScheduledInterrupt:
    tick: int
    code: int


def _parse_hex(value: str, *, limit: int = ADDRESS_MASK) -> int:
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text:
        raise ValueError("empty hexadecimal value")
    result = int(text, 16)
    if not (0 <= result <= limit):
        raise ValueError("hex value out of range")
    return result


def _parse_range(spec: str) -> DumpRange:
    start_str, sep, end_str = spec.partition(":")
    if not sep:
        raise ValueError("range specification must contain ':'")
    start = _parse_hex(start_str)
    end = _parse_hex(end_str)
    if end < start:
        raise ValueError("range end must be >= start")
    return DumpRange(start, end)


def _parse_interrupt(spec: str) -> ScheduledInterrupt:
    tick_str, sep, code_str = spec.partition(":")
    tick = int(tick_str)
    if tick < 0:
        raise ValueError("tick must not be negative")
    if not sep:
        return ScheduledInterrupt(tick, int(Interrupt.TIMER))
    name = code_str.strip().upper()
    if name in Interrupt.__members__:
        return ScheduledInterrupt(tick, int(Interrupt[name]))
    return ScheduledInterrupt(tick, _parse_hex(code_str))


def _merge_ranges(ranges: Sequence[DumpRange], capacity: int) -> List[DumpRange]:
    if not ranges:
        return [DumpRange(0x00, capacity - 1)]
    ordered = sorted(ranges, key=lambda r: (r.start, r.end))
    merged: List[DumpRange] = []
    for current in ordered:
        if not merged:
            merged.append(current)
            continue
        last = merged[-1]
        if current.start <= last.end + 1:
            merged[-1] = DumpRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def _format_hex_dump(memory: Memory, dump_ranges: Sequence[DumpRange]) -> str:
    lines: List[str] = []
    header = "ADDR " + " ".join(f"+{offset:X}" for offset in range(16))
    for index, dump_range in enumerate(dump_ranges):
        if index:
            lines.append("")
        lines.append(header)
        start_line = dump_range.start & ~0x0F
        end_line = dump_range.end | 0x0F
        for base in range(start_line, end_line + 1, 16):
            row = [f"{base:02X}  "]
            for offset in range(16):
                row.append(f"{memory.load8(base + offset):02X}")
            lines.append(" ".join(row))
    return "\n".join(lines)


def _format_registers(cpu: CPU) -> str:
    regs = cpu.registers
    pending = ",".join(interrupt_name(code) for code in cpu.interrupt_queue) or "-"
    return (
        f"PC={regs.program_counter:02X} IR={regs.instruction:02X} MAR={regs.address_latch:02X} "
        f"SP={regs.stack_pointer:02X} A={regs.acc_a} B={regs.acc_b} IE={regs.interrupt_enable} "
        f"HALT={int(cpu.halted)} IRQ={pending}"
    )


def _write_dump(memory: Memory, dump_ranges: Sequence[DumpRange], *, target: Path | None, fmt: str) -> None:
    ranges = _merge_ranges(dump_ranges, memory.capacity)
    if fmt == "bin":
        data = bytearray()
        for dump_range in ranges:
            for address in dump_range.iter_addresses():
                data.append(memory.load8(address))
        if target is None:
            sys.stdout.buffer.write(bytes(data))
            return
        target.write_bytes(bytes(data))
        return

    text = _format_hex_dump(memory, ranges)
    if target is None:
        print(text)
    else:
        target.write_text(text + "\n")


def _setup_cpu(images: Sequence[ImageSpec], start_address: Optional[int]) -> CPU:
    if not images:
        cpu = create_demo_cpu()
        if start_address is not None:
            cpu.registers.program_counter = start_address
        return cpu
    cpu = CPU()
    load_images(cpu, images, entry=start_address)
    return cpu


def _execute_program(
    computer: Computer,
    *,
    max_ticks: int | None,
    interrupts: Sequence[ScheduledInterrupt],
    breakpoints: Sequence[int],
    clock_hz: float | None,
    trace: bool,
) -> Tuple[int, bool, bool]:
    for request in interrupts:
        computer.request_interrupt(request.code, delay_ticks=request.tick)

    break_set = set(breakpoints)
    break_hit = False
    tick_limit_hit = False
    interval = 1.0 / clock_hz if clock_hz else None
    executed = 0

    computer.power_on()
    if computer.cpu.registers.program_counter in break_set:
        return executed, True, False
    while not computer.halted:
        if max_ticks is not None and executed >= max_ticks:
            tick_limit_hit = True
            break
        computer.step()
        executed += 1
        if trace:
            print(f"{computer.tick_count:6d} {computer.cpu.status}")
        if computer.cpu.registers.program_counter in break_set:
            break_hit = True
            break
        if interval is not None:
            time.sleep(interval)

    return executed, break_hit, tick_limit_hit


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fdxsim-debug-runner",
        description="Headless fetch-decode-execute runner for program diagnostics.",
    )
    parser.add_argument(
        "--image",
        action="append",
        default=[],
        help="Program image PATH[@HEXADDR] (.bin/.img raw, .hex/.txt hex text). Repeatable; defaults to the demo program",
    )
    parser.add_argument("--start", type=str, default=None, help="Hex entry point for PC (e.g. 0x20)")
    parser.add_argument(
        "--ticks",
        type=int,
        default=DEFAULT_MAX_TICKS,
        help="Maximum ticks to execute (0 or negative runs until HALT)",
    )
    parser.add_argument(
        "--interrupt",
        action="append",
        default=[],
        help="Request an interrupt before tick N as N[:CODE] (CODE is a name or hex, default TIMER). Repeatable",
    )
    parser.add_argument(
        "--break-pc",
        action="append",
        default=[],
        help="Break when PC is at the given hex address, including the entry point (repeatable)",
    )
    parser.add_argument("--hz", type=float, default=None, help="Throttle execution to this many ticks per second")
    parser.add_argument(
        "--trace",
        action="store_true",
        default=bool(os.getenv(ENV_TRACE)),
        help=f"Print the CPU status after every tick (also enabled by {ENV_TRACE})",
    )
    parser.add_argument("--dump", type=str, default=None, help="File path for memory dump (defaults to stdout)")
    parser.add_argument(
        "--dump-range",
        action="append",
        default=[],
        help="Memory range to dump in START:END hex form (inclusive). Repeat to add multiple ranges.",
    )
    parser.add_argument(
        "--dump-format",
        choices=("hex", "bin"),
        default="hex",
        help="Dump format (hex table or raw binary)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    start_address: Optional[int] = None
    if args.start is not None:
        try:
            start_address = _parse_hex(args.start)
        except ValueError as exc:
            parser.error(f"invalid start address: {exc}")

    images: List[ImageSpec] = []
    for spec in args.image:
        try:
            images.append(parse_image_spec(spec))
        except ValueError as exc:
            parser.error(f"invalid image '{spec}': {exc}")

    interrupts: List[ScheduledInterrupt] = []
    for spec in args.interrupt:
        try:
            interrupts.append(_parse_interrupt(spec))
        except ValueError as exc:
            parser.error(f"invalid interrupt '{spec}': {exc}")

    breakpoints: List[int] = []
    for spec in args.break_pc:
        try:
            breakpoints.append(_parse_hex(spec))
        except ValueError as exc:
            parser.error(f"invalid breakpoint address '{spec}': {exc}")

    dump_ranges: List[DumpRange] = []
    for spec in args.dump_range:
        try:
            dump_ranges.append(_parse_range(spec))
        except ValueError as exc:
            parser.error(f"invalid dump range '{spec}': {exc}")

    if args.hz is not None and args.hz <= 0:
        parser.error("--hz must be positive")

    try:
        cpu = _setup_cpu(images, start_address)
    except (OSError, ImageLoadError) as exc:
        print(f"Failed to load image: {exc}", file=sys.stderr)
        return EXIT_LOAD_FAILED

    computer = Computer(lambda: cpu, clock_hz=args.hz)
    tick_limit = args.ticks if args.ticks > 0 else None

    _, break_hit, tick_limit_hit = _execute_program(
        computer,
        max_ticks=tick_limit,
        interrupts=interrupts,
        breakpoints=breakpoints,
        clock_hz=args.hz,
        trace=args.trace,
    )

    if args.dump_format == "hex" or args.dump is not None:
        print(_format_registers(cpu))
    dump_target = Path(args.dump) if args.dump is not None else None
    _write_dump(cpu.memory, dump_ranges, target=dump_target, fmt=args.dump_format)

    if break_hit:
        return EXIT_OK
    if tick_limit_hit:
        print("Execution stopped: tick limit reached", file=sys.stderr)
        return EXIT_TICK_LIMIT
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
