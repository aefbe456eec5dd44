"""pygame view of registers, memory and the program listing."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from fdxsim.cpu.cpu import CPUState
from fdxsim.cpu.interrupts import VECTOR_TABLE_BASE, Interrupt
from fdxsim.program.listing import ListingLine, format_line
from fdxsim.program import sample
from fdxsim.system.computer import Computer

Color = Tuple[int, int, int]

BACKGROUND: Color = (17, 24, 39)
PANEL: Color = (31, 41, 55)
TITLE: Color = (34, 211, 238)
TEXT: Color = (230, 230, 230)
DIM: Color = (156, 163, 175)
LOG: Color = (253, 224, 71)
HIGHLIGHT: Color = (34, 197, 94)

CELL_COLORS: Dict[str, Color] = {
    "pc": (34, 197, 94),
    "sp": (234, 179, 8),
    "vector": (153, 27, 27),
    "result": (147, 51, 234),
    "result2": (13, 148, 136),
    "counter": (79, 70, 229),
    "plain": (31, 41, 55),
}

MIN_CLOCK_HZ = 1.0
MAX_CLOCK_HZ = 50.0


def cell_role(address: int, state: CPUState, vector_entries: int = len(sample.VECTOR_TABLE)) -> str:
    """Colour class of a memory cell; PC wins over SP, SP over fixed regions."""

    if address == state.registers.program_counter:
        return "pc"
    if address == state.registers.stack_pointer:
        return "sp"
    if VECTOR_TABLE_BASE <= address < VECTOR_TABLE_BASE + vector_entries:
        return "vector"
    if address == sample.RESULT_ADDRESS:
        return "result"
    if address == sample.RESULT_ADDRESS_2:
        return "result2"
    if address == sample.COUNTER_ADDRESS:
        return "counter"
    return "plain"


def register_lines(state: CPUState) -> List[str]:
    regs = state.registers
    return [
        f"PC 0x{regs.program_counter:02x}   IR {regs.instruction:02d}   SP 0x{regs.stack_pointer:02x}",
        f"A  {regs.acc_a:02d}     B  {regs.acc_b:02d}   IE {regs.interrupt_enable}",
        f"MAR 0x{regs.address_latch:02x}  MDR {regs.data_latch:02d}",
    ]


class CPUViewer:
    """Renders a Computer's CPU and maps keys onto driver controls."""

    COLS = 16
    CELL_WIDTH = 40
    CELL_HEIGHT = 30
    CELL_GAP = 2
    LEFT_WIDTH = 320
    MARGIN = 12
    CONTROLS = "SPACE run/pause  N step  R reset  I interrupt  +/- clock  Q quit"

    def __init__(self, computer: Computer, listing: Optional[Sequence[ListingLine]] = None) -> None:
        self.computer = computer
        self.listing: List[ListingLine] = list(listing if listing is not None else sample.demo_listing())
        self.quit_requested: bool = False
        self._font = None
        self._line_height = 0

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------
    def apply_action(self, action: str) -> None:
        computer = self.computer
        if action == "toggle":
            computer.toggle_pause()
        elif action == "step":
            if not computer.running:
                computer.step()
        elif action == "reset":
            computer.reset()
        elif action == "interrupt":
            computer.request_interrupt(Interrupt.TIMER)
        elif action == "faster":
            computer.set_clock_frequency(min(computer.clock_hz + 1.0, MAX_CLOCK_HZ))
        elif action == "slower":
            computer.set_clock_frequency(max(computer.clock_hz - 1.0, MIN_CLOCK_HZ))
        elif action == "quit":
            self.quit_requested = True
        else:
            raise ValueError(f"unknown action: {action}")

    def handle_event(self, event) -> bool:
        import pygame  # type: ignore

        if event.type == pygame.QUIT:
            self.apply_action("quit")
            return True
        if event.type != pygame.KEYDOWN:
            return False
        key_actions = {
            pygame.K_SPACE: "toggle",
            pygame.K_n: "step",
            pygame.K_r: "reset",
            pygame.K_i: "interrupt",
            pygame.K_PLUS: "faster",
            pygame.K_EQUALS: "faster",
            pygame.K_KP_PLUS: "faster",
            pygame.K_MINUS: "slower",
            pygame.K_KP_MINUS: "slower",
            pygame.K_q: "quit",
            pygame.K_ESCAPE: "quit",
        }
        action = key_actions.get(event.key)
        if action is None:
            return False
        self.apply_action(action)
        return True

    # ------------------------------------------------------------------
    # Text content
    # ------------------------------------------------------------------
    def header_line(self) -> str:
        status = self.computer.get_running_status()
        if status == Computer.STATUS_RUNNING:
            state = "RUN"
        elif status == Computer.STATUS_STOPPED:
            state = "STOP"
        else:
            state = "PAUSE"
        if self.computer.halted:
            state = "HALT"
        return f"[{state}] {self.computer.clock_hz:.0f} Hz  tick {self.computer.tick_count}"

    def listing_lines(self, state: CPUState) -> List[Tuple[str, bool]]:
        pc = state.registers.program_counter
        return [
            (format_line(line), not line.is_separator and line.address == pc)
            for line in self.listing
        ]

    def window_size(self) -> Tuple[int, int]:
        rows = -(-self.computer.cpu.capacity // self.COLS)
        grid_width = self.COLS * (self.CELL_WIDTH + self.CELL_GAP)
        grid_height = rows * (self.CELL_HEIGHT + self.CELL_GAP)
        width = self.MARGIN * 3 + self.LEFT_WIDTH + grid_width
        height = self.MARGIN * 2 + 72 + max(grid_height, 560)
        return width, height

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render(self, screen) -> None:
        self._ensure_font()
        state = self.computer.cpu.snapshot()
        screen.fill(BACKGROUND)

        x = self.MARGIN
        y = self.MARGIN
        y = self._render_text(screen, x, y, [self.header_line(), self.CONTROLS], DIM)
        y = self._render_text(screen, x, y, ["LOG: " + state.status], LOG) + self.MARGIN

        top = y
        y = self._render_section(screen, x, y, "Registers", register_lines(state))
        self._render_listing(screen, x, y + self.MARGIN, state)
        self._render_memory(screen, x + self.LEFT_WIDTH + self.MARGIN, top, state)

    def _ensure_font(self) -> None:
        if self._font is not None:
            return
        import pygame  # type: ignore

        pygame.font.init()
        self._font = pygame.font.SysFont("Courier", 14)
        self._line_height = self._font.get_linesize()

    def _render_text(self, surface, x: int, y: int, lines: Iterable[str], color: Color) -> int:
        for line in lines:
            surface.blit(self._font.render(line, True, color), (x, y))
            y += self._line_height
        return y

    def _render_section(self, surface, x: int, y: int, title: str, lines: Iterable[str]) -> int:
        surface.blit(self._font.render(title, True, TITLE), (x, y))
        return self._render_text(surface, x, y + self._line_height, lines, TEXT)

    def _render_listing(self, surface, x: int, y: int, state: CPUState) -> int:
        import pygame  # type: ignore

        surface.blit(self._font.render("Program", True, TITLE), (x, y))
        y += self._line_height
        for text, current in self.listing_lines(state):
            if current:
                pygame.draw.rect(surface, HIGHLIGHT, (x - 2, y, self.LEFT_WIDTH - 8, self._line_height))
            color = BACKGROUND if current else TEXT
            surface.blit(self._font.render(text, True, color), (x, y))
            y += self._line_height
        return y

    def _render_memory(self, surface, x: int, y: int, state: CPUState) -> None:
        import pygame  # type: ignore

        surface.blit(self._font.render("Memory", True, TITLE), (x, y))
        y += self._line_height
        for address, value in enumerate(state.memory):
            row, col = divmod(address, self.COLS)
            cell_x = x + col * (self.CELL_WIDTH + self.CELL_GAP)
            cell_y = y + row * (self.CELL_HEIGHT + self.CELL_GAP)
            role = cell_role(address, state)
            pygame.draw.rect(surface, CELL_COLORS[role], (cell_x, cell_y, self.CELL_WIDTH, self.CELL_HEIGHT))
            color = BACKGROUND if role in ("pc", "sp") else TEXT
            label = self._font.render(f"{value}", True, color)
            surface.blit(label, (cell_x + 4, cell_y + (self.CELL_HEIGHT - self._line_height) // 2))


__all__ = ["CELL_COLORS", "CPUViewer", "cell_role", "register_lines"]
