"""Pending interrupt bookkeeping and vector table layout."""

from __future__ import annotations

from collections import deque
from enum import IntEnum
from typing import Deque, Dict, Iterator, Tuple

VECTOR_TABLE_BASE = 0x00


class Interrupt(IntEnum):
    TIMER = 0x01


INTERRUPT_NAMES: Dict[int, str] = {member.value: member.name for member in Interrupt}


def interrupt_name(code: int) -> str:
    return INTERRUPT_NAMES.get(int(code), f"IRQ{int(code):02X}")


def vector_address(code: int) -> int:
    """Address of the vector-table byte holding the service routine for ``code``."""

    return VECTOR_TABLE_BASE + int(code)


class InterruptQueue:
    """FIFO of pending interrupt codes holding at most one entry per code."""

    def __init__(self) -> None:
        self._pending: Deque[int] = deque()

    def request(self, code: int) -> bool:
        code = int(code)
        if code in self._pending:
            return False
        self._pending.append(code)
        return True

    def pop(self) -> int:
        return self._pending.popleft()

    def pending(self) -> Tuple[int, ...]:
        return tuple(self._pending)

    def clear(self) -> None:
        self._pending.clear()

    def __len__(self) -> int:
        return len(self._pending)

    def __bool__(self) -> bool:
        return bool(self._pending)

    def __contains__(self, code: object) -> bool:
        return code in self._pending

    def __iter__(self) -> Iterator[int]:
        return iter(tuple(self._pending))


__all__ = [
    "INTERRUPT_NAMES",
    "Interrupt",
    "InterruptQueue",
    "VECTOR_TABLE_BASE",
    "interrupt_name",
    "vector_address",
]
