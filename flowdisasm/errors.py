"""Exceptions raised while disassembling FlowScript programs."""

from __future__ import annotations

from typing import Optional


class DisassemblyError(ValueError):
    """Base class for conditions that abort a disassembly pass.

    ``index`` is the position of the offending slot in the instruction stream
    and ``opcode`` its raw opcode value, when either is known.
    """

    def __init__(
        self,
        message: str,
        *,
        index: Optional[int] = None,
        opcode: Optional[int] = None,
    ) -> None:
        self.index = index
        self.opcode = opcode
        if index is not None:
            message = f"instruction {index}: {message}"
        super().__init__(message)


class UnknownOpcodeError(DisassemblyError):
    """The opcode value is not part of the FlowScript instruction set."""


class TruncatedOperandError(DisassemblyError):
    """An extended opcode is the last slot of the stream."""


class LabelReferenceError(DisassemblyError):
    """A jump or procedure reference points past the end of its label table."""


class StringReferenceError(DisassemblyError):
    """A string reference points past the end of the string table."""


class OutputError(DisassemblyError):
    """The output sink could not be opened or written."""


class OutputClosedError(OutputError):
    """Text was written to an output that has already been released."""


__all__ = [
    "DisassemblyError",
    "LabelReferenceError",
    "OutputClosedError",
    "OutputError",
    "StringReferenceError",
    "TruncatedOperandError",
    "UnknownOpcodeError",
]
