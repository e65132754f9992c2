import io
import logging
from pathlib import Path

import pytest

from flowdisasm import (
    FlowScriptDisassembler,
    Instruction,
    Label,
    LabelReferenceError,
    Opcode,
    Program,
    StringOutput,
    TruncatedOperandError,
    UnknownOpcodeError,
    disassemble_to_string,
)


def _op(opcode: Opcode, operand: int = 0) -> Instruction:
    return Instruction.create(opcode, operand)


def _sample_program() -> Program:
    instructions = [
        _op(Opcode.PROC, 0),
        _op(Opcode.PUSHI),
        Instruction.from_int(-12345),
        _op(Opcode.PUSHF),
        Instruction.from_float(1.5),
        _op(Opcode.PUSHSTR, 0),
        _op(Opcode.COMM, 2),
        _op(Opcode.IF, 0),
        _op(Opcode.END),
        _op(Opcode.PROC, 1),
        _op(Opcode.END),
        _op(Opcode.END),
    ]
    return Program(
        instructions=instructions,
        jump_labels=[Label("L0", 3)],
        procedure_labels=[Label("main", 0), Label("sub", 9)],
        strings=b"hello\0world\0",
        message_data=bytes([0x0A, 0xFF]),
    )


EXPECTED_SAMPLE = (
    "; This file was generated by AtlusScriptLib\n"
    "\n"
    ".text\n"
    "PROC main\n"
    "PUSHI -12345\n"
    "L0:\n"
    "PUSHF 1.50f\n"
    'PUSHSTR "hello"\n'
    "COMM 2\n"
    "IF L0\n"
    "END\n"
    "\n"
    "PROC sub\n"
    "END\n"
    "END\n"
    "\n"
    ".msgdata raw\n"
    "0AFF"
)


def test_full_listing_layout() -> None:
    assert disassemble_to_string(_sample_program()) == EXPECTED_SAMPLE


def test_listing_is_deterministic() -> None:
    program = _sample_program()
    first = disassemble_to_string(program, header="custom")
    second = disassemble_to_string(program, header="custom")

    assert first == second
    assert first.startswith("; custom\n\n.text\n")


def test_empty_program_dumps_message_data() -> None:
    listing = disassemble_to_string(Program(message_data=bytes([0x0A, 0xFF])))

    assert listing.endswith(".text\n\n.msgdata raw\n0AFF")
    assert listing.split(".msgdata raw\n", 1)[1] == "0AFF"


def test_jump_label_is_emitted_before_its_instruction_only() -> None:
    program = Program(
        instructions=[_op(Opcode.ADD), _op(Opcode.SUB), _op(Opcode.MUL), _op(Opcode.DIV)],
        jump_labels=[Label("L0", 3)],
    )

    lines = disassemble_to_string(program).splitlines()

    assert lines.count("L0:") == 1
    assert lines[lines.index("L0:") + 1] == "DIV"


def test_labels_sharing_an_index_keep_table_order() -> None:
    program = Program(
        instructions=[_op(Opcode.NOT)],
        jump_labels=[Label("first", 0), Label("second", 0)],
    )

    lines = disassemble_to_string(program).splitlines()

    assert lines[3:6] == ["first:", "second:", "NOT"]


def test_procedure_labels_are_not_emitted_inline() -> None:
    program = Program(
        instructions=[_op(Opcode.PROC, 0), _op(Opcode.END)],
        procedure_labels=[Label("main", 0)],
    )

    assert "main:" not in disassemble_to_string(program).splitlines()


def test_label_inside_extended_operand_slot_is_skipped() -> None:
    program = Program(
        instructions=[_op(Opcode.PUSHI), Instruction.from_int(7), _op(Opcode.END)],
        jump_labels=[Label("hidden", 1), Label("after", 2)],
    )

    lines = disassemble_to_string(program).splitlines()

    assert "hidden:" not in lines
    assert lines[3:6] == ["PUSHI 7", "after:", "END"]


def test_extended_companion_that_looks_like_end_is_not_an_instruction() -> None:
    program = Program(
        instructions=[_op(Opcode.PUSHI), Instruction.from_int(int(Opcode.END)), _op(Opcode.END)],
    )

    lines = disassemble_to_string(program).splitlines()

    assert lines[3:5] == ["PUSHI 9", "END"]


@pytest.mark.parametrize(
    "second,expected",
    [
        (Opcode.END, ["END", "END", ""]),
        (Opcode.PUSHREG, ["END", "", "PUSHREG", ""]),
    ],
)
def test_blank_line_after_end(second, expected) -> None:
    program = Program(instructions=[_op(Opcode.END), _op(second)])

    lines = disassemble_to_string(program).splitlines()

    assert lines[3:3 + len(expected)] == expected


def test_trailing_end_adds_no_extra_blank() -> None:
    program = Program(instructions=[_op(Opcode.PUSHREG), _op(Opcode.END)])

    assert disassemble_to_string(program).endswith("PUSHREG\nEND\n\n.msgdata raw\n")


def test_label_reference_out_of_range_aborts() -> None:
    program = Program(instructions=[_op(Opcode.GOTO, 4)], jump_labels=[Label("L0", 0)])

    with pytest.raises(LabelReferenceError, match="instruction 0"):
        disassemble_to_string(program)


def test_truncated_extended_operand_aborts() -> None:
    program = Program(instructions=[_op(Opcode.END), _op(Opcode.PUSHF)])

    with pytest.raises(TruncatedOperandError) as excinfo:
        disassemble_to_string(program)

    assert excinfo.value.index == 1


def test_unknown_opcode_aborts_without_partial_line(tmp_path: Path) -> None:
    output_path = tmp_path / "out.flowasm"
    program = Program(instructions=[_op(Opcode.PUSHREG), Instruction.create(0x55, 1)])

    with pytest.raises(UnknownOpcodeError):
        with FlowScriptDisassembler.to_path(output_path) as disassembler:
            disassembler.disassemble(program)

    assert disassembler.output.closed
    text = output_path.read_text("utf-8")
    assert text.endswith(".text\nPUSHREG\n")
    assert ".msgdata raw" not in text


def test_stream_sink_is_left_open() -> None:
    stream = io.StringIO()

    with FlowScriptDisassembler.to_stream(stream, header="stream") as disassembler:
        disassembler.disassemble(Program(instructions=[_op(Opcode.END)]))

    assert not stream.closed
    assert stream.getvalue() == "; stream\n\n.text\nEND\n\n.msgdata raw\n"


def test_binary_stream_sink_receives_utf8() -> None:
    stream = io.BytesIO()

    with FlowScriptDisassembler.to_binary_stream(stream, header="bin") as disassembler:
        disassembler.disassemble(Program(message_data=b"\x01"))

    assert not stream.closed
    assert stream.getvalue() == b"; bin\n\n.text\n\n.msgdata raw\n01"


def test_same_instance_can_run_two_passes() -> None:
    output = StringOutput()
    program = Program(instructions=[_op(Opcode.END)])

    with FlowScriptDisassembler(output) as disassembler:
        disassembler.disassemble(program)
        first = output.getvalue()
        disassembler.disassemble(program)

    assert output.getvalue() == first + first


def test_program_is_required() -> None:
    with FlowScriptDisassembler.to_buffer() as disassembler:
        with pytest.raises(TypeError):
            disassembler.disassemble(None)


class _FailingFlushStream(io.StringIO):
    def flush(self) -> None:
        raise OSError("device gone")

    def close(self) -> None:
        pass


def test_release_failure_does_not_mask_abort_reason(caplog) -> None:
    program = Program(instructions=[_op(Opcode.PUSHREG), Instruction.create(0x55)])

    with caplog.at_level(logging.ERROR, logger="flowdisasm.disassembler"):
        with pytest.raises(UnknownOpcodeError):
            with FlowScriptDisassembler.to_stream(_FailingFlushStream()) as disassembler:
                disassembler.disassemble(program)

    assert disassembler.output.closed
    assert "device gone" in caplog.text
