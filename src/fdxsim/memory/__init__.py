"""Byte-addressed memory array shared by the CPU and its stack."""

from __future__ import annotations

from typing import Iterable, List


class Memory:
    """Fixed-capacity block of unsigned 8-bit cells starting at address 0."""

    DEFAULT_CAPACITY = 256

    capacity: int
    data: List[int]

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("invalid memory capacity")
        self.capacity = capacity
        self.data = [0x00] * capacity

    def __len__(self) -> int:
        return self.capacity

    def contains(self, address: int) -> bool:
        return 0 <= address < self.capacity

    def load8(self, address: int) -> int:
        # Out-of-range reads yield NOOP so a runaway PC keeps stepping.
        if not self.contains(address):
            return 0x00
        return self.data[address] & 0xFF

    def store8(self, address: int, value: int) -> None:
        if not self.contains(address):
            return
        self.data[address] = value & 0xFF

    read = load8
    write = store8

    def load_image(self, image: Iterable[int], base: int = 0) -> int:
        """Copy ``image`` to consecutive addresses from ``base``.

        Bytes that would land past the end of memory are dropped. Returns the
        number of bytes actually written.
        """

        written = 0
        for offset, value in enumerate(image):
            address = base + offset
            if not self.contains(address):
                if address >= self.capacity:
                    break
                continue
            self.data[address] = value & 0xFF
            written += 1
        return written

    def dump(self, start: int = 0, end: int | None = None) -> bytes:
        """Return a copy of ``[start, end)`` as bytes (whole memory by default)."""

        if end is None:
            end = self.capacity
        start = max(start, 0)
        end = min(end, self.capacity)
        return bytes(self.data[start:end])


__all__ = ["Memory"]
