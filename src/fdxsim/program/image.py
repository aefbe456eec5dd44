"""Loading program images from disk into a CPU."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from fdxsim.cpu.cpu import CPU

BINARY_SUFFIXES = {".bin", ".img"}
HEX_SUFFIXES = {".hex", ".txt"}
COMMENT_PREFIX = "#"


class ImageLoadError(RuntimeError):
    """Raised when a program image cannot be read."""


@dataclass(frozen=True)
class ImageSpec:
    path: Path
    base: int = 0


def _parse_address(text: str) -> int:
    value = text.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    if not value:
        raise ValueError("empty address")
    result = int(value, 16)
    if result < 0:
        raise ValueError("address must not be negative")
    return result


def parse_image_spec(spec: str) -> ImageSpec:
    """Parse ``PATH`` or ``PATH@ADDR`` (hex address)."""

    path, sep, address = spec.rpartition("@")
    if not sep:
        return ImageSpec(Path(spec))
    if not path:
        raise ValueError("image path is empty")
    return ImageSpec(Path(path), _parse_address(address))


def _parse_hex_text(text: str, source: Path) -> List[int]:
    data: List[int] = []
    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.split(COMMENT_PREFIX, 1)[0]
        for token in line.split():
            try:
                value = int(token, 16)
            except ValueError as exc:
                raise ImageLoadError(f"{source}:{line_no}: invalid byte '{token}'") from exc
            if not 0 <= value <= 0xFF:
                raise ImageLoadError(f"{source}:{line_no}: byte out of range '{token}'")
            data.append(value)
    return data


def read_image(path: str | Path) -> List[int]:
    """Read a raw binary (``.bin``/``.img``) or hex text (``.hex``/``.txt``) image."""

    file_path = Path(path)
    suffix = file_path.suffix.lower()
    if suffix in BINARY_SUFFIXES:
        return list(file_path.read_bytes())
    if suffix in HEX_SUFFIXES:
        try:
            text = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ImageLoadError(f"{file_path}: not valid UTF-8 text") from exc
        return _parse_hex_text(text, file_path)
    raise ImageLoadError(f"unsupported image format: {file_path.suffix}")


def load_images(cpu: CPU, specs: Sequence[ImageSpec], *, entry: Optional[int] = None) -> None:
    """Load each image in order.

    ``load_program`` moves PC to every image's base, so without ``entry``
    execution starts at the last image loaded.
    """

    for spec in specs:
        cpu.load_program(read_image(spec.path), spec.base)
    if entry is not None:
        cpu.registers.program_counter = entry


__all__ = [
    "ImageLoadError",
    "ImageSpec",
    "load_images",
    "parse_image_spec",
    "read_image",
]
