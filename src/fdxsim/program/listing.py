"""Static disassembly of program sections for display."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from fdxsim.cpu.opcodes import ADDRESS_OPERAND_OPCODES, TWO_BYTE_OPCODES, decode, mnemonic


@dataclass(frozen=True)
class ListingLine:
    address: Optional[int]
    mnemonic: str
    operand: Optional[int] = None
    opcode: Optional[int] = None
    is_separator: bool = False

    @classmethod
    def separator(cls, label: str) -> "ListingLine":
        return cls(address=None, mnemonic=label, is_separator=True)


def disassemble(section: Sequence[int], start_address: int) -> List[ListingLine]:
    """Walk ``section`` as code, one line per instruction.

    A two-byte instruction cut short by the end of the section is listed
    with no operand but still occupies two addresses.
    """

    lines: List[ListingLine] = []
    index = 0
    address = start_address
    while index < len(section):
        value = section[index]
        opcode = decode(value)
        operand: Optional[int] = None
        size = 1
        if opcode is not None and opcode in TWO_BYTE_OPCODES:
            if index + 1 < len(section):
                operand = section[index + 1]
            size = 2
        lines.append(ListingLine(address, mnemonic(value), operand, value))
        index += size
        address += size
    return lines


def format_operand(opcode: Optional[int], operand: int) -> str:
    decoded = decode(opcode) if opcode is not None else None
    if decoded is not None and decoded in ADDRESS_OPERAND_OPCODES:
        return f"@0x{operand:02x}"
    return str(operand)


def format_line(line: ListingLine) -> str:
    if line.is_separator:
        return line.mnemonic
    text = f"0x{line.address:02x}: {line.mnemonic}"
    if line.operand is not None:
        text += " " + format_operand(line.opcode, line.operand)
    return text


def build_listing(sections: Iterable[Tuple[Optional[str], Sequence[int], int]]) -> List[ListingLine]:
    """Concatenate ``(label, bytes, start)`` sections.

    A separator line carrying ``label`` precedes each section that has one.
    """

    lines: List[ListingLine] = []
    for label, section, start in sections:
        if label:
            lines.append(ListingLine.separator(label))
        lines.extend(disassemble(section, start))
    return lines


def line_index_for_address(lines: Sequence[ListingLine], address: int) -> Optional[int]:
    for index, line in enumerate(lines):
        if not line.is_separator and line.address == address:
            return index
    return None


__all__ = [
    "ListingLine",
    "build_listing",
    "disassemble",
    "format_line",
    "format_operand",
    "line_index_for_address",
]
