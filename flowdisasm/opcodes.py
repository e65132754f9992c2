"""FlowScript opcode table and operand classification."""

from __future__ import annotations

from enum import Enum, IntEnum, auto
from typing import Dict, Optional


class Opcode(IntEnum):
    """Opcode values as stored in the low half of an instruction slot."""

    PUSHI = 0
    PUSHF = 1
    PUSHIX = 2
    PUSHIF = 3
    PUSHREG = 4
    POPIX = 5
    POPFX = 6
    PROC = 7
    COMM = 8
    END = 9
    JUMP = 10
    CALL = 11
    RUN = 12
    GOTO = 13
    ADD = 14
    SUB = 15
    MUL = 16
    DIV = 17
    MINUS = 18
    NOT = 19
    OR = 20
    AND = 21
    EQ = 22
    NEQ = 23
    S = 24
    L = 25
    SE = 26
    LE = 27
    IF = 28
    PUSHIS = 29
    PUSHLIX = 30
    PUSHLFX = 31
    POPLIX = 32
    POPLFX = 33
    PUSHSTR = 34


class OperandKind(Enum):
    """Shape of the operand an opcode carries.

    The kind decides both how the instruction is rendered and whether the
    following slot belongs to it.  ``EXTENDED_INT`` and ``EXTENDED_FLOAT`` are
    the only kinds that consume a companion slot.
    """

    NONE = auto()
    SHORT = auto()
    EXTENDED_INT = auto()
    EXTENDED_FLOAT = auto()
    STRING_REF = auto()
    JUMP_LABEL_REF = auto()
    PROCEDURE_LABEL_REF = auto()
    COMM_REF = auto()

    @property
    def extended(self) -> bool:
        return self in (OperandKind.EXTENDED_INT, OperandKind.EXTENDED_FLOAT)


OPCODE_OPERANDS: Dict[Opcode, OperandKind] = {
    Opcode.PUSHI: OperandKind.EXTENDED_INT,
    Opcode.PUSHF: OperandKind.EXTENDED_FLOAT,
    Opcode.PUSHIX: OperandKind.SHORT,
    Opcode.PUSHIF: OperandKind.SHORT,
    Opcode.PUSHREG: OperandKind.NONE,
    Opcode.POPIX: OperandKind.SHORT,
    Opcode.POPFX: OperandKind.SHORT,
    Opcode.PROC: OperandKind.PROCEDURE_LABEL_REF,
    Opcode.COMM: OperandKind.COMM_REF,
    Opcode.END: OperandKind.NONE,
    Opcode.JUMP: OperandKind.JUMP_LABEL_REF,
    Opcode.CALL: OperandKind.PROCEDURE_LABEL_REF,
    Opcode.RUN: OperandKind.SHORT,
    Opcode.GOTO: OperandKind.JUMP_LABEL_REF,
    Opcode.ADD: OperandKind.NONE,
    Opcode.SUB: OperandKind.NONE,
    Opcode.MUL: OperandKind.NONE,
    Opcode.DIV: OperandKind.NONE,
    Opcode.MINUS: OperandKind.NONE,
    Opcode.NOT: OperandKind.NONE,
    Opcode.OR: OperandKind.NONE,
    Opcode.AND: OperandKind.NONE,
    Opcode.EQ: OperandKind.NONE,
    Opcode.NEQ: OperandKind.NONE,
    Opcode.S: OperandKind.NONE,
    Opcode.L: OperandKind.NONE,
    Opcode.SE: OperandKind.NONE,
    Opcode.LE: OperandKind.NONE,
    Opcode.IF: OperandKind.JUMP_LABEL_REF,
    Opcode.PUSHIS: OperandKind.SHORT,
    Opcode.PUSHLIX: OperandKind.SHORT,
    Opcode.PUSHLFX: OperandKind.SHORT,
    Opcode.POPLIX: OperandKind.SHORT,
    Opcode.POPLFX: OperandKind.SHORT,
    Opcode.PUSHSTR: OperandKind.STRING_REF,
}


def lookup_opcode(value: int) -> Optional[Opcode]:
    """Return the :class:`Opcode` for ``value`` or ``None`` when unknown."""

    try:
        return Opcode(value)
    except ValueError:
        return None


def parse_mnemonic(text: str) -> Opcode:
    """Resolve a case-insensitive mnemonic such as ``"pushi"``."""

    try:
        return Opcode[text.strip().upper()]
    except KeyError:
        raise ValueError(f"unknown opcode mnemonic {text!r}") from None


def is_extended(opcode: int) -> bool:
    """Return ``True`` when ``opcode`` consumes the following slot."""

    known = lookup_opcode(opcode)
    if known is None:
        return False
    return OPCODE_OPERANDS[known].extended


__all__ = [
    "OPCODE_OPERANDS",
    "Opcode",
    "OperandKind",
    "is_extended",
    "lookup_opcode",
    "parse_mnemonic",
]
