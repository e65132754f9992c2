"""FlowScript text disassembly."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Sequence, TextIO, Union

from .errors import OutputError
from .formatting import format_instruction
from .instruction import Instruction
from .opcodes import Opcode, is_extended
from .output import BinaryStreamOutput, FileOutput, StreamOutput, StringOutput, TextOutput
from .program import Label, Program


logger = logging.getLogger(__name__)


DEFAULT_HEADER = "This file was generated by AtlusScriptLib"

TEXT_SECTION = ".text"
MESSAGE_SECTION = ".msgdata raw"


class FlowScriptDisassembler:
    """Render :class:`Program` instances into FlowScript assembly text.

    The disassembler owns its :class:`TextOutput` and releases it when used as
    a context manager or when :meth:`close` is called, including when a pass
    is aborted by a :class:`~flowdisasm.errors.DisassemblyError`.
    """

    def __init__(
        self,
        output: TextOutput,
        *,
        header: str = DEFAULT_HEADER,
        strict_strings: bool = False,
    ) -> None:
        self.output = output
        self.header = header
        self.strict_strings = strict_strings

    # ------------------------------------------------------------------
    # construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def to_buffer(cls, **options) -> "FlowScriptDisassembler":
        return cls(StringOutput(), **options)

    @classmethod
    def to_stream(cls, stream: TextIO, **options) -> "FlowScriptDisassembler":
        return cls(StreamOutput(stream), **options)

    @classmethod
    def to_binary_stream(cls, stream: BinaryIO, **options) -> "FlowScriptDisassembler":
        return cls(BinaryStreamOutput(stream), **options)

    @classmethod
    def to_path(cls, path: Union[str, Path], **options) -> "FlowScriptDisassembler":
        return cls(FileOutput(path), **options)

    # ------------------------------------------------------------------
    # lifetime
    # ------------------------------------------------------------------
    def close(self) -> None:
        self.output.close()

    def __enter__(self) -> "FlowScriptDisassembler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is None:
            self.close()
            return
        # Keep the error that aborted the pass as the one that propagates.
        try:
            self.close()
        except OutputError as close_error:
            logger.error("failed to release output after aborted pass: %s", close_error)

    # ------------------------------------------------------------------
    # disassembly
    # ------------------------------------------------------------------
    def disassemble(self, program: Program) -> None:
        if program is None:
            raise TypeError("program must not be None")

        self._put_header()
        self._put_text_section(program)
        self._put_message_data(program)
        logger.debug("disassembled program %s", program.describe())

    def _put_header(self) -> None:
        self.output.put_comment_line(self.header)
        self.output.put_newline()

    def _put_text_section(self, program: Program) -> None:
        output = self.output
        instructions = program.instructions
        labels_by_index = _index_labels(program.jump_labels)

        output.put_line(TEXT_SECTION)

        index = 0
        while index < len(instructions):
            for label in labels_by_index.get(index, ()):
                output.put_line(f"{label.name}:")

            instruction = instructions[index]
            extended = is_extended(instruction.opcode)
            following = _peek(instructions, index)
            line = format_instruction(
                instruction,
                following if extended else None,
                program,
                index=index,
                strict_strings=self.strict_strings,
            )
            output.put_line(line)

            if instruction.opcode == Opcode.END:
                if following is not None and following.opcode != Opcode.END:
                    output.put_newline()

            index += 2 if extended else 1

        output.put_newline()

    def _put_message_data(self, program: Program) -> None:
        self.output.put_line(MESSAGE_SECTION)
        self.output.put(program.message_data.hex().upper())


def _peek(instructions: Sequence[Instruction], index: int) -> Optional[Instruction]:
    """Return the slot after ``index`` or ``None`` at the end of the stream."""

    if index + 1 < len(instructions):
        return instructions[index + 1]
    return None


def _index_labels(labels: Sequence[Label]) -> Dict[int, List[Label]]:
    indexed: Dict[int, List[Label]] = {}
    for label in labels:
        indexed.setdefault(label.instruction_index, []).append(label)
    return indexed


def disassemble_to_string(program: Program, **options) -> str:
    """Disassemble ``program`` into a string."""

    output = StringOutput()
    with FlowScriptDisassembler(output, **options) as disassembler:
        disassembler.disassemble(program)
    return output.getvalue()


__all__ = [
    "DEFAULT_HEADER",
    "FlowScriptDisassembler",
    "MESSAGE_SECTION",
    "TEXT_SECTION",
    "disassemble_to_string",
]
