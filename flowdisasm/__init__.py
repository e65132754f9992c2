"""Public package exports for the FlowScript disassembler."""

from .disassembler import DEFAULT_HEADER, FlowScriptDisassembler, disassemble_to_string
from .errors import (
    DisassemblyError,
    LabelReferenceError,
    OutputClosedError,
    OutputError,
    StringReferenceError,
    TruncatedOperandError,
    UnknownOpcodeError,
)
from .instruction import Instruction, read_instructions
from .opcodes import Opcode, OperandKind
from .output import BinaryStreamOutput, FileOutput, StreamOutput, StringOutput, TextOutput
from .program import Label, Program

__all__ = [
    "DEFAULT_HEADER",
    "FlowScriptDisassembler",
    "disassemble_to_string",
    "DisassemblyError",
    "LabelReferenceError",
    "OutputClosedError",
    "OutputError",
    "StringReferenceError",
    "TruncatedOperandError",
    "UnknownOpcodeError",
    "Instruction",
    "read_instructions",
    "Opcode",
    "OperandKind",
    "BinaryStreamOutput",
    "FileOutput",
    "StreamOutput",
    "StringOutput",
    "TextOutput",
    "Label",
    "Program",
]
