"""In-memory FlowScript program model and its JSON interchange form."""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence, Tuple

from .instruction import Instruction, read_instructions
from .opcodes import parse_mnemonic


@dataclass(frozen=True)
class Label:
    """Named marker addressing a position in the instruction stream."""

    name: str
    instruction_index: int

    @classmethod
    def from_json(cls, entry: Mapping[str, Any]) -> "Label":
        try:
            name = entry["name"]
            index = entry["index"]
        except (KeyError, TypeError):
            raise ValueError(f"label entry {entry!r} requires 'name' and 'index'") from None
        if not isinstance(name, str) or not name:
            raise ValueError(f"label name must be a non-empty string, got {name!r}")
        if not isinstance(index, int) or isinstance(index, bool) or index < 0:
            raise ValueError(f"label {name!r} has invalid instruction index {index!r}")
        return cls(name, index)


@dataclass(frozen=True)
class Program:
    """A fully loaded FlowScript.

    The disassembler only borrows the program for the duration of a pass, so
    every section is stored as an immutable sequence.
    """

    instructions: Tuple[Instruction, ...] = ()
    jump_labels: Tuple[Label, ...] = ()
    procedure_labels: Tuple[Label, ...] = ()
    strings: bytes = b""
    message_data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "instructions", tuple(self.instructions))
        object.__setattr__(self, "jump_labels", tuple(self.jump_labels))
        object.__setattr__(self, "procedure_labels", tuple(self.procedure_labels))
        object.__setattr__(self, "strings", bytes(self.strings))
        object.__setattr__(self, "message_data", bytes(self.message_data))

    def describe(self) -> Dict[str, int]:
        return {
            "instructions": len(self.instructions),
            "jump_labels": len(self.jump_labels),
            "procedure_labels": len(self.procedure_labels),
            "strings": len(self.strings),
            "message_data": len(self.message_data),
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Program":
        """Build a program from its JSON interchange document."""

        if not isinstance(payload, Mapping):
            raise ValueError("program document must be a JSON object")

        if "text" in payload:
            instructions, remainder = read_instructions(_json_hex(payload, "text"))
            if remainder:
                raise ValueError(
                    f"program 'text' has {remainder} trailing byte(s) that do not form a slot"
                )
        else:
            instructions = [
                _instruction_from_json(position, entry)
                for position, entry in enumerate(_json_list(payload, "instructions"))
            ]
        jump_labels = [Label.from_json(entry) for entry in _json_list(payload, "jump_labels")]
        procedure_labels = [
            Label.from_json(entry) for entry in _json_list(payload, "procedure_labels")
        ]
        return cls(
            instructions=tuple(instructions),
            jump_labels=tuple(jump_labels),
            procedure_labels=tuple(procedure_labels),
            strings=_json_hex(payload, "strings"),
            message_data=_json_hex(payload, "message_data"),
        )

    @classmethod
    def load(cls, path: Path) -> "Program":
        data = json.loads(path.read_text("utf-8"))
        return cls.from_json(data)


def _json_list(payload: Mapping[str, Any], key: str) -> Sequence[Any]:
    value = payload.get(key, [])
    if not isinstance(value, list):
        raise ValueError(f"program '{key}' must be a list")
    return value


def _json_hex(payload: Mapping[str, Any], key: str) -> bytes:
    value = payload.get(key, "")
    if not isinstance(value, str):
        raise ValueError(f"program '{key}' must be a hex string")
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise ValueError(f"program '{key}' is not valid hex") from None


def _instruction_from_json(position: int, entry: Any) -> Instruction:
    if not isinstance(entry, Mapping):
        raise ValueError(f"instruction {position} must be a JSON object")

    try:
        if "opcode" in entry:
            opcode = entry["opcode"]
            if isinstance(opcode, str):
                opcode = parse_mnemonic(opcode)
            return Instruction.create(int(opcode), int(entry.get("operand", 0)))
        if "int" in entry:
            return Instruction.from_int(int(entry["int"]))
        if "float" in entry:
            return Instruction.from_float(float(entry["float"]))
        if "raw" in entry:
            return Instruction(int(entry["raw"]))
    except (TypeError, ValueError, OverflowError, struct.error) as exc:
        raise ValueError(f"instruction {position}: {exc}") from None
    raise ValueError(
        f"instruction {position} needs one of 'opcode', 'int', 'float' or 'raw'"
    )
