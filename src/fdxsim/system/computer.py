"""Host-side driver ticking a CPU at a configurable clock rate."""

from __future__ import annotations

from dataclasses import dataclass, field
import heapq
import os
from typing import Callable, List, Optional

from fdxsim.cpu.cpu import CPU, CPUState

ENV_CLOCK_HZ = "FDXSIM_CLOCK_HZ"
DEFAULT_CLOCK_HZ = 4.0


def default_clock_hz() -> float:
    value = os.getenv(ENV_CLOCK_HZ)
    if not value:
        return DEFAULT_CLOCK_HZ
    try:
        hz = float(value)
    except ValueError:
        return DEFAULT_CLOCK_HZ
    return hz if hz > 0 else DEFAULT_CLOCK_HZ


@dataclass(order=True)
class _ComputerEvent:
    tick: int
    order: int
    handler: Callable[["Computer"], None] = field(compare=False)
    name: str = field(default="", compare=False)

    def apply(self, computer: "Computer") -> None:
        self.handler(computer)


class EventQueue:
    """Events ordered by the tick they become due, then by insertion."""

    def __init__(self) -> None:
        self._heap: List[_ComputerEvent] = []

    def add(self, event: _ComputerEvent) -> None:
        heapq.heappush(self._heap, event)

    def pop_ready(self, tick: int) -> List[_ComputerEvent]:
        ready: List[_ComputerEvent] = []
        while self._heap and self._heap[0].tick <= tick:
            ready.append(heapq.heappop(self._heap))
        return ready

    def names(self) -> List[str]:
        return [event.name for event in sorted(self._heap)]

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)


class Computer:
    """Drives one CPU: run/pause/step/reset and scheduled interrupt requests.

    Events (interrupt requests, pause, resume) are only applied between
    ticks, so the CPU always observes them at a tick boundary.
    """

    STATUS_RUNNING = 0
    STATUS_PAUSED = 1
    STATUS_STOPPED = 2

    def __init__(self, cpu_factory: Callable[[], CPU], *, clock_hz: Optional[float] = None) -> None:
        self._cpu_factory = cpu_factory
        self.cpu: CPU = cpu_factory()
        self.clock_hz: float = default_clock_hz() if clock_hz is None else clock_hz
        if self.clock_hz <= 0:
            raise ValueError("clock frequency must be positive")
        self.tick_count: int = 0
        self._running_status: int = self.STATUS_STOPPED
        self._event_queue = EventQueue()
        self._event_counter = 0
        self._tick_remainder: float = 0.0
        self._listeners: List[Callable[[CPUState], None]] = []

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def step(self) -> None:
        """Advance the CPU by exactly one tick, whatever the run status."""

        self._process_events()
        self.cpu.tick()
        self.tick_count += 1
        self._notify()
        self._process_events()

    def run(self, ticks: int) -> int:
        """Step up to ``ticks`` times while running and not halted."""

        executed = 0
        while executed < ticks:
            self._process_events()
            if self._running_status != self.STATUS_RUNNING or self.cpu.halted:
                break
            self.step()
            executed += 1
        return executed

    def advance(self, seconds: float) -> int:
        """Run as many ticks as ``seconds`` of wall time is worth at ``clock_hz``."""

        if seconds <= 0 or self._running_status != self.STATUS_RUNNING:
            return 0
        budget = seconds * self.clock_hz + self._tick_remainder
        ticks = int(budget)
        self._tick_remainder = budget - ticks
        return self.run(ticks)

    @property
    def halted(self) -> bool:
        return self.cpu.halted

    # ------------------------------------------------------------------
    # Interrupts
    # ------------------------------------------------------------------
    def request_interrupt(self, code: int, delay_ticks: int = 0) -> None:
        self._schedule_event(
            lambda comp: comp.cpu.request_interrupt(code),
            delay_ticks,
            name=f"interrupt:{int(code)}",
        )

    def pending_events(self) -> List[str]:
        return self._event_queue.names()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_listener(self, listener: Callable[[CPUState], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[CPUState], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.cpu.snapshot()
        for listener in list(self._listeners):
            listener(state)

    # ------------------------------------------------------------------
    # Control lifecycle
    # ------------------------------------------------------------------
    def power_on(self) -> None:
        self._running_status = self.STATUS_RUNNING

    def power_off(self) -> None:
        if self._running_status == self.STATUS_STOPPED:
            return
        self._schedule_event(lambda comp: comp._apply_power_off(), name="powerOff")

    def pause(self) -> None:
        if self._running_status != self.STATUS_RUNNING:
            return
        self._schedule_event(lambda comp: comp._apply_pause(), name="pause")

    def resume(self) -> None:
        if self._running_status != self.STATUS_PAUSED:
            return
        self._schedule_event(lambda comp: comp._apply_resume(), name="resume")

    def toggle_pause(self) -> None:
        if self._running_status == self.STATUS_RUNNING:
            self.pause()
        else:
            self._schedule_event(lambda comp: comp._apply_resume(), name="resume")

    def reset(self) -> None:
        """Replace the CPU with a fresh one; pending events are discarded."""

        self._event_queue.clear()
        self.cpu = self._cpu_factory()
        self.tick_count = 0
        self._tick_remainder = 0.0
        if self._running_status == self.STATUS_RUNNING:
            self._running_status = self.STATUS_PAUSED
        self._notify()

    @property
    def running(self) -> bool:
        return self._running_status == self.STATUS_RUNNING

    def get_running_status(self) -> int:
        return self._running_status

    def get_clock_frequency(self) -> float:
        return self.clock_hz

    def set_clock_frequency(self, frequency: float) -> None:
        if frequency <= 0:
            raise ValueError("frequency must be positive")
        self.clock_hz = frequency
        self._tick_remainder = 0.0

    # ------------------------------------------------------------------
    # Event dispatch helpers
    # ------------------------------------------------------------------
    def _process_events(self) -> None:
        for event in self._event_queue.pop_ready(self.tick_count):
            event.apply(self)

    def _schedule_event(self, handler: Callable[["Computer"], None], delay_ticks: int = 0, *, name: str = "") -> None:
        event_tick = self.tick_count + max(delay_ticks, 0)
        event = _ComputerEvent(event_tick, self._event_counter, handler, name)
        self._event_counter += 1
        self._event_queue.add(event)
        if event_tick <= self.tick_count:
            self._process_events()

    def _apply_pause(self) -> None:
        if self._running_status != self.STATUS_RUNNING:
            return
        self._running_status = self.STATUS_PAUSED

    def _apply_resume(self) -> None:
        self._running_status = self.STATUS_RUNNING
        self._tick_remainder = 0.0

    def _apply_power_off(self) -> None:
        self._running_status = self.STATUS_STOPPED
        self._event_queue.clear()

    # ------------------------------------------------------------------
    # State persistence helpers
    # ------------------------------------------------------------------
    def save_state(self, out: dict[str, object]) -> None:
        out["computer.tickCount"] = int(self.tick_count)
        out["computer.clockHz"] = float(self.clock_hz)
        out["computer.runningStatus"] = int(self._running_status)

    def load_state(self, data: dict[str, object]) -> None:
        self.tick_count = int(data.get("computer.tickCount", 0))
        self.clock_hz = float(data.get("computer.clockHz", self.clock_hz))
        status = int(data.get("computer.runningStatus", self.STATUS_STOPPED))
        if status not in (self.STATUS_RUNNING, self.STATUS_PAUSED, self.STATUS_STOPPED):
            raise ValueError("invalid status")
        self._running_status = status
