import io
from pathlib import Path

import pytest

from flowdisasm.errors import OutputClosedError, OutputError
from flowdisasm.output import BinaryStreamOutput, FileOutput, StreamOutput, StringOutput


def test_string_output_primitives() -> None:
    output = StringOutput()
    output.put_comment_line("header")
    output.put_newline()
    output.put_line(".text")
    output.put("AB")
    output.put("CD")

    assert output.getvalue() == "; header\n\n.text\nABCD"


def test_close_is_idempotent_and_blocks_writes() -> None:
    output = StringOutput()
    output.put_line("kept")
    output.close()
    output.close()

    assert output.closed
    assert output.getvalue() == "kept\n"
    with pytest.raises(OutputClosedError):
        output.put_line("late")


def test_stream_output_flushes_but_does_not_close() -> None:
    stream = io.StringIO()
    with StreamOutput(stream) as output:
        output.put_line("x")

    assert not stream.closed
    assert stream.getvalue() == "x\n"


def test_binary_stream_output_detaches_on_close() -> None:
    stream = io.BytesIO()
    with BinaryStreamOutput(stream) as output:
        output.put_line("é")

    assert not stream.closed
    assert stream.getvalue() == "é\n".encode("utf-8")


def test_file_output_owns_its_handle(tmp_path: Path) -> None:
    path = tmp_path / "listing.flowasm"
    output = FileOutput(path)
    output.put_line("line")
    output.close()

    assert path.read_bytes() == b"line\n"
    with pytest.raises(OutputClosedError):
        output.put("more")


def test_file_output_reports_unwritable_destination(tmp_path: Path) -> None:
    with pytest.raises(OutputError, match="cannot open"):
        FileOutput(tmp_path / "missing" / "listing.flowasm")


class _BrokenStream(io.StringIO):
    def write(self, text: str) -> int:
        raise OSError("disk full")


def test_sink_failures_are_wrapped() -> None:
    output = StreamOutput(_BrokenStream())

    with pytest.raises(OutputError, match="disk full"):
        output.put_line("x")
