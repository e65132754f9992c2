"""Per-operand-shape rendering of single FlowScript instructions.

Every ``format_*`` helper returns exactly one line of text (mnemonic, then the
rendered operand separated by a single space) and never writes output itself.
The walker in :mod:`flowdisasm.disassembler` decides where the line goes.
Problems that do not affect the rendered text, such as a stray operand on an
operand-less opcode, are reported through :mod:`logging`.
"""

from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Optional, Sequence

from .errors import (
    LabelReferenceError,
    StringReferenceError,
    TruncatedOperandError,
    UnknownOpcodeError,
)
from .instruction import Instruction
from .opcodes import OPCODE_OPERANDS, OperandKind
from .program import Label, Program


logger = logging.getLogger(__name__)


FLOAT_SIGNIFICANT_DIGITS = 7
FLOAT_MIN_FRACTION_DIGITS = 2
FLOAT_MAX_FRACTION_DIGITS = 7

_SIGNIFICANT_CONTEXT = Context(prec=FLOAT_SIGNIFICANT_DIGITS, rounding=ROUND_HALF_UP)
_FLOAT_QUANTUM = Decimal(1).scaleb(-FLOAT_MAX_FRACTION_DIGITS)
# float32 magnitudes stay below 1e39, so 64 digits cover integer and fraction.
_FLOAT_CONTEXT = Context(prec=64, rounding=ROUND_HALF_UP)


def _location(index: Optional[int]) -> str:
    return f" at instruction {index}" if index is not None else ""


# ---------------------------------------------------------------------------
# operand shapes
# ---------------------------------------------------------------------------


def format_no_operand(instruction: Instruction, *, index: Optional[int] = None) -> str:
    mnemonic = instruction.mnemonic()
    if instruction.operand_short != 0:
        logger.warning(
            "%s should not have any operands (operand=%d)%s",
            mnemonic,
            instruction.operand_short,
            _location(index),
        )
    return mnemonic


def format_short_operand(instruction: Instruction) -> str:
    return f"{instruction.mnemonic()} {instruction.operand_short}"


def format_comm_reference(instruction: Instruction) -> str:
    # The communicate table lives outside the script; only the index is known.
    return f"{instruction.mnemonic()} {instruction.operand_short}"


def format_int_operand(instruction: Instruction, operand: Instruction) -> str:
    return f"{instruction.mnemonic()} {operand.operand_int}"


def format_float_operand(instruction: Instruction, operand: Instruction) -> str:
    return f"{instruction.mnemonic()} {format_float(operand.operand_float)}f"


def format_string_reference(
    instruction: Instruction,
    strings: bytes,
    *,
    strict: bool = False,
    index: Optional[int] = None,
) -> str:
    """Render a ``PUSHSTR`` with the NUL-terminated string at its offset.

    The short operand is a byte offset into ``strings``, not a string index.
    Offsets past the end of the table raise :class:`StringReferenceError` when
    ``strict`` is set and are otherwise logged and rendered as ``""``.
    """

    offset = instruction.operand_short
    if offset >= len(strings):
        message = (
            f"string offset {offset} is outside of the string table "
            f"({len(strings)} bytes)"
        )
        if strict:
            raise StringReferenceError(message, index=index, opcode=instruction.opcode)
        logger.warning("%s%s", message, _location(index))

    end = strings.find(b"\0", offset)
    if end < 0:
        end = len(strings)
    value = strings[offset:end].decode("latin-1")
    return f'{instruction.mnemonic()} "{value}"'


def format_label_reference(
    instruction: Instruction,
    labels: Sequence[Label],
    *,
    table: str = "jump",
    index: Optional[int] = None,
) -> str:
    """Render a branch/call with the name of the label it references.

    The short operand is the position of the label in ``labels``; it is never
    compared against label instruction indices.
    """

    reference = instruction.operand_short
    if reference >= len(labels):
        raise LabelReferenceError(
            f"no {table} label for reference id {reference} "
            f"({len(labels)} {table} label(s) present)",
            index=index,
            opcode=instruction.opcode,
        )
    return f"{instruction.mnemonic()} {labels[reference].name}"


# ---------------------------------------------------------------------------
# float rendering
# ---------------------------------------------------------------------------


def format_float(value: float) -> str:
    """Render a float32 the way the ``0.00#####`` pattern does.

    The value is first rounded to seven significant digits, the precision a
    float32 carries, and only then padded or trimmed to two to seven fraction
    digits.  Both roundings are half away from zero.
    """

    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    significant = _SIGNIFICANT_CONTEXT.create_decimal(value)
    rounded = significant.quantize(_FLOAT_QUANTUM, context=_FLOAT_CONTEXT)
    integer, _, fraction = f"{rounded:f}".partition(".")
    fraction = fraction.rstrip("0").ljust(FLOAT_MIN_FRACTION_DIGITS, "0")
    return f"{integer}.{fraction}"


# ---------------------------------------------------------------------------
# dispatch
# ---------------------------------------------------------------------------


def format_instruction(
    instruction: Instruction,
    companion: Optional[Instruction],
    program: Program,
    *,
    index: Optional[int] = None,
    strict_strings: bool = False,
) -> str:
    """Render ``instruction`` according to its operand kind.

    ``companion`` is the slot following the instruction, or ``None`` at the
    end of the stream.  It is only read for extended opcodes.
    """

    opcode = instruction.known_opcode()
    if opcode is None:
        raise UnknownOpcodeError(
            f"unknown opcode {instruction.opcode}", index=index, opcode=instruction.opcode
        )

    kind = OPCODE_OPERANDS[opcode]
    if kind.extended and companion is None:
        raise TruncatedOperandError(
            f"{opcode.name} requires an extended operand but the instruction stream ends",
            index=index,
            opcode=instruction.opcode,
        )

    if kind is OperandKind.NONE:
        return format_no_operand(instruction, index=index)
    if kind is OperandKind.SHORT:
        return format_short_operand(instruction)
    if kind is OperandKind.EXTENDED_INT:
        return format_int_operand(instruction, companion)
    if kind is OperandKind.EXTENDED_FLOAT:
        return format_float_operand(instruction, companion)
    if kind is OperandKind.STRING_REF:
        return format_string_reference(
            instruction, program.strings, strict=strict_strings, index=index
        )
    if kind is OperandKind.JUMP_LABEL_REF:
        return format_label_reference(
            instruction, program.jump_labels, table="jump", index=index
        )
    if kind is OperandKind.PROCEDURE_LABEL_REF:
        return format_label_reference(
            instruction, program.procedure_labels, table="procedure", index=index
        )
    if kind is OperandKind.COMM_REF:
        return format_comm_reference(instruction)
    raise UnknownOpcodeError(
        f"opcode {opcode.name} has no renderer for operand kind {kind.name}",
        index=index,
        opcode=instruction.opcode,
    )


__all__ = [
    "FLOAT_MAX_FRACTION_DIGITS",
    "FLOAT_MIN_FRACTION_DIGITS",
    "FLOAT_SIGNIFICANT_DIGITS",
    "format_comm_reference",
    "format_float",
    "format_float_operand",
    "format_instruction",
    "format_int_operand",
    "format_label_reference",
    "format_no_operand",
    "format_short_operand",
    "format_string_reference",
]
