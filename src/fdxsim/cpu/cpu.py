"""Fetch-decode-execute core with a single-level vectored interrupt."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, Optional, Tuple

from fdxsim.cpu.interrupts import InterruptQueue, interrupt_name, vector_address
from fdxsim.cpu.opcodes import Opcode, decode, mnemonic
from fdxsim.memory import Memory


@dataclass
class CPURegisters:
    """Register file: accumulators, latches, PC, SP and the IE flag."""

    acc_a: int = 0
    acc_b: int = 0
    instruction: int = 0
    address_latch: int = 0
    data_latch: int = 0
    program_counter: int = 0
    stack_pointer: int = 0
    interrupt_enable: int = 0


@dataclass(frozen=True)
class CPUState:
    """Immutable view of everything an observer may read after a tick."""

    registers: CPURegisters
    memory: bytes
    halted: bool
    pending_interrupts: Tuple[int, ...]
    status: str


class CPU:
    """Single-core 8-bit CPU.

    ``tick()`` either services one pending interrupt (when IE is set) or
    performs one fetch followed by one decode-and-execute. Nothing in here
    raises while running: unknown opcodes are reported through ``status``
    and skipped, out-of-range stores are dropped, and the stack pointer
    saturates at the ends of memory.
    """

    STATUS_IDLE = "Waiting to start..."

    def __init__(self, capacity: int = Memory.DEFAULT_CAPACITY) -> None:
        self.memory = Memory(capacity)
        self.registers = CPURegisters(stack_pointer=capacity - 1)
        self.interrupt_queue = InterruptQueue()
        self.halted: bool = False
        self.status: str = self.STATUS_IDLE
        self._debug: bool = False
        self._opcode_table: Dict[Opcode, Callable[[], None]] = {}
        self._init_opcode_table()

    @property
    def capacity(self) -> int:
        return self.memory.capacity

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------
    def load_program(self, program: Iterable[int], start_address: int = 0) -> None:
        self.memory.load_image(program, start_address)
        self.registers.program_counter = start_address
        self._set_status("Program loaded. Ready to run.")

    def request_interrupt(self, code: int) -> None:
        if self.interrupt_queue.request(code):
            self._set_status(f"Interrupt request {interrupt_name(code)} received.")

    def tick(self) -> None:
        if self.halted:
            self._set_status("CPU halted.")
            return

        if self.registers.interrupt_enable == 1 and self.interrupt_queue:
            self._service_interrupt()
            return

        self._fetch()
        self._decode_and_execute()

    def snapshot(self) -> CPUState:
        return CPUState(
            registers=replace(self.registers),
            memory=self.memory.dump(),
            halted=self.halted,
            pending_interrupts=self.interrupt_queue.pending(),
            status=self.status,
        )

    def enable_debug(self, enabled: bool) -> None:
        self._debug = enabled

    # ------------------------------------------------------------------
    # Stack
    # ------------------------------------------------------------------
    def push(self, value: int) -> None:
        self.memory.store8(self.registers.stack_pointer, value)
        if self.registers.stack_pointer > 0:
            self.registers.stack_pointer -= 1

    def pop(self) -> int:
        if self.registers.stack_pointer < self.capacity - 1:
            self.registers.stack_pointer += 1
        return self.memory.load8(self.registers.stack_pointer)

    # ------------------------------------------------------------------
    # Interrupts
    # ------------------------------------------------------------------
    def _service_interrupt(self) -> None:
        code = self.interrupt_queue.pop()
        self.registers.interrupt_enable = 0
        self.push(self.registers.program_counter)
        isr_address = self.memory.load8(vector_address(code))
        self.registers.program_counter = isr_address
        self._set_status(f"Interrupt {interrupt_name(code)}! Jumping to ISR @0x{isr_address:02x}.")

    # ------------------------------------------------------------------
    # Fetch / decode / execute
    # ------------------------------------------------------------------
    def _fetch(self) -> None:
        self.registers.address_latch = self.registers.program_counter
        self.registers.instruction = self.memory.load8(self.registers.address_latch)
        self.registers.program_counter += 1
        self._set_status(
            f"FETCH: {mnemonic(self.registers.instruction)} from @0x{self.registers.address_latch:02x}"
        )

    def _fetch_operand8(self) -> int:
        value = self.memory.load8(self.registers.program_counter)
        self.registers.program_counter += 1
        return value

    def _decode_and_execute(self) -> None:
        opcode = decode(self.registers.instruction)
        if opcode is None:
            self._set_status(f"Unknown instruction: {self.registers.instruction}")
            return
        self._opcode_table[opcode]()

    def _init_opcode_table(self) -> None:
        self._opcode_table.clear()
        self._register_opcode(Opcode.NOOP, self._opcode_noop)
        self._register_opcode(Opcode.LOAD_A_VAL, self._opcode_load_a_val)
        self._register_opcode(Opcode.LOAD_B_VAL, self._opcode_load_b_val)
        self._register_opcode(Opcode.LOAD_A_MEM, self._opcode_load_a_mem)
        self._register_opcode(Opcode.LOAD_B_MEM, self._opcode_load_b_mem)
        self._register_opcode(Opcode.STORE_A, self._opcode_store_a)
        self._register_opcode(Opcode.STORE_B, self._opcode_store_b)
        self._register_opcode(Opcode.ADD, self._opcode_add)
        self._register_opcode(Opcode.HALT, self._opcode_halt)
        self._register_opcode(Opcode.ENABLE_INTERRUPTS, self._opcode_enable_interrupts)
        self._register_opcode(Opcode.IRET, self._opcode_iret)
        self._register_opcode(Opcode.JMP, self._opcode_jmp)
        self._register_opcode(Opcode.PUSH_A, self._opcode_push_a)
        self._register_opcode(Opcode.POP_A, self._opcode_pop_a)
        self._register_opcode(Opcode.PUSH_B, self._opcode_push_b)
        self._register_opcode(Opcode.POP_B, self._opcode_pop_b)
        missing = [opcode.name for opcode in Opcode if opcode not in self._opcode_table]
        if missing:
            raise RuntimeError("no handler registered for " + ", ".join(missing))

    def _register_opcode(self, opcode: Opcode, handler: Callable[[], None]) -> None:
        self._opcode_table[opcode] = handler

    def _opcode_noop(self) -> None:
        return

    def _opcode_load_a_val(self) -> None:
        self.registers.acc_a = self._fetch_operand8()

    def _opcode_load_b_val(self) -> None:
        self.registers.acc_b = self._fetch_operand8()

    def _opcode_load_a_mem(self) -> None:
        address = self._fetch_operand8()
        self.registers.acc_a = self.memory.load8(address)

    def _opcode_load_b_mem(self) -> None:
        address = self._fetch_operand8()
        self.registers.acc_b = self.memory.load8(address)

    def _opcode_store_a(self) -> None:
        address = self._fetch_operand8()
        self.memory.store8(address, self.registers.acc_a)

    def _opcode_store_b(self) -> None:
        address = self._fetch_operand8()
        self.memory.store8(address, self.registers.acc_b)

    def _opcode_add(self) -> None:
        self.registers.acc_a = (self.registers.acc_a + self.registers.acc_b) & 0xFF

    def _opcode_halt(self) -> None:
        self.halted = True
        self._set_status("HALT: execution finished.")

    def _opcode_enable_interrupts(self) -> None:
        self.registers.interrupt_enable = 1
        self._set_status("Interrupts enabled.")

    def _opcode_iret(self) -> None:
        self.registers.program_counter = self.pop()
        self.registers.interrupt_enable = 1
        self._set_status(
            f"IRET: returning to @0x{self.registers.program_counter:02x}. Interrupts re-enabled."
        )

    def _opcode_jmp(self) -> None:
        self.registers.program_counter = self.memory.load8(self.registers.program_counter)

    def _opcode_push_a(self) -> None:
        self.push(self.registers.acc_a)

    def _opcode_pop_a(self) -> None:
        self.registers.acc_a = self.pop()

    def _opcode_push_b(self) -> None:
        self.push(self.registers.acc_b)

    def _opcode_pop_b(self) -> None:
        self.registers.acc_b = self.pop()

    # ------------------------------------------------------------------
    def _set_status(self, message: str) -> None:
        self.status = message
        if self._debug:
            print(f"[pc={self.registers.program_counter:02X}] {message}")


def make_cpu(program: Optional[Iterable[int]] = None, *, start_address: int = 0, capacity: int = Memory.DEFAULT_CAPACITY) -> CPU:
    """Build a CPU and optionally load ``program`` at ``start_address``."""

    cpu = CPU(capacity)
    if program is not None:
        cpu.load_program(program, start_address)
    return cpu


__all__ = ["CPU", "CPURegisters", "CPUState", "make_cpu"]
