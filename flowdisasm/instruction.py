"""Representation utilities for FlowScript instruction slots."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .opcodes import Opcode, lookup_opcode


SLOT_SIZE = 4

_SLOT = struct.Struct("<I")
_HALVES = struct.Struct("<HH")
_INT = struct.Struct("<i")
_FLOAT = struct.Struct("<f")


@dataclass(frozen=True)
class Instruction:
    """A single 32-bit slot of the instruction stream.

    The slot is laid out as a little-endian ``(opcode, operand)`` pair of
    16-bit halves.  Slots that follow ``PUSHI``/``PUSHF`` are not instructions
    of their own; their full 32 bits are reinterpreted through
    :attr:`operand_int` or :attr:`operand_float` instead.
    """

    raw: int

    def __post_init__(self) -> None:
        if not 0 <= self.raw <= 0xFFFFFFFF:
            raise ValueError(f"instruction slot {self.raw:#x} does not fit in 32 bits")

    @classmethod
    def create(cls, opcode: int, operand: int = 0) -> "Instruction":
        if not 0 <= opcode <= 0xFFFF:
            raise ValueError(f"opcode {opcode} does not fit in 16 bits")
        if not 0 <= operand <= 0xFFFF:
            raise ValueError(f"short operand {operand} does not fit in 16 bits")
        return cls(_SLOT.unpack(_HALVES.pack(int(opcode), operand))[0])

    @classmethod
    def from_int(cls, value: int) -> "Instruction":
        return cls(_SLOT.unpack(_INT.pack(value))[0])

    @classmethod
    def from_float(cls, value: float) -> "Instruction":
        return cls(_SLOT.unpack(_FLOAT.pack(value))[0])

    @property
    def opcode(self) -> int:
        return self.raw & 0xFFFF

    @property
    def operand_short(self) -> int:
        return (self.raw >> 16) & 0xFFFF

    @property
    def operand_int(self) -> int:
        return _INT.unpack(_SLOT.pack(self.raw))[0]

    @property
    def operand_float(self) -> float:
        return _FLOAT.unpack(_SLOT.pack(self.raw))[0]

    def known_opcode(self) -> Optional[Opcode]:
        return lookup_opcode(self.opcode)

    def mnemonic(self) -> str:
        known = self.known_opcode()
        return known.name if known is not None else f"op_{self.opcode:04X}"


def read_instructions(data: bytes) -> Tuple[List[Instruction], int]:
    """Decode a raw text section into instruction slots.

    Trailing bytes that do not form a whole slot are left undecoded; their
    count is returned next to the slots so callers can report it.
    """

    remainder = len(data) % SLOT_SIZE
    usable = len(data) - remainder
    instructions = [Instruction(raw) for (raw,) in _SLOT.iter_unpack(data[:usable])]
    return instructions, remainder
