"""Text sinks used by the disassembler.

A :class:`TextOutput` exposes the handful of operations the walker needs
(raw text, lines, blank lines and comment lines) on top of a backing sink.
Outputs are context managers; :meth:`TextOutput.close` releases whatever the
output opened itself exactly once, and later calls are no-ops.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO, Optional, TextIO, Union

from .errors import OutputClosedError, OutputError


NEWLINE = "\n"
COMMENT_PREFIX = "; "


class TextOutput:
    """Base class for disassembly text sinks."""

    comment_prefix = COMMENT_PREFIX

    def __init__(self) -> None:
        self._closed = False

    # ------------------------------------------------------------------
    # emission helpers
    # ------------------------------------------------------------------
    def put(self, text: str) -> None:
        """Append ``text`` without a line terminator."""

        if self._closed:
            raise OutputClosedError("cannot write to a closed output")
        try:
            self._write(text)
        except OSError as exc:
            raise OutputError(f"failed to write disassembly output: {exc}") from exc

    def put_line(self, text: str) -> None:
        self.put(text + NEWLINE)

    def put_newline(self) -> None:
        self.put(NEWLINE)

    def put_comment_line(self, text: str) -> None:
        self.put_line(f"{self.comment_prefix}{text}")

    # ------------------------------------------------------------------
    # lifetime
    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._release()
        except OSError as exc:
            raise OutputError(f"failed to release disassembly output: {exc}") from exc

    def __enter__(self) -> "TextOutput":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # backend hooks
    # ------------------------------------------------------------------
    def _write(self, text: str) -> None:
        raise NotImplementedError

    def _release(self) -> None:
        pass


class StringOutput(TextOutput):
    """Collect the disassembly in memory."""

    def __init__(self, buffer: Optional[io.StringIO] = None) -> None:
        super().__init__()
        self._buffer = buffer if buffer is not None else io.StringIO()

    def _write(self, text: str) -> None:
        self._buffer.write(text)

    def getvalue(self) -> str:
        # The buffer is never closed so the text stays readable after release.
        return self._buffer.getvalue()


class StreamOutput(TextOutput):
    """Write to a text stream owned by the caller.

    The stream is flushed on release but left open.
    """

    def __init__(self, stream: TextIO) -> None:
        super().__init__()
        self._stream = stream

    def _write(self, text: str) -> None:
        self._stream.write(text)

    def _release(self) -> None:
        self._stream.flush()


class BinaryStreamOutput(TextOutput):
    """Encode the disassembly as UTF-8 onto a caller-owned binary stream."""

    def __init__(self, stream: BinaryIO, *, encoding: str = "utf-8") -> None:
        super().__init__()
        self._wrapper = io.TextIOWrapper(stream, encoding=encoding, newline="")

    def _write(self, text: str) -> None:
        self._wrapper.write(text)

    def _release(self) -> None:
        self._wrapper.flush()
        # Detaching keeps the caller's stream open once the wrapper goes away.
        self._wrapper.detach()


class FileOutput(TextOutput):
    """Open ``path`` for writing and own the resulting file handle."""

    def __init__(self, path: Union[str, Path], *, encoding: str = "utf-8") -> None:
        super().__init__()
        self.path = Path(path)
        try:
            self._handle = self.path.open("w", encoding=encoding, newline="")
        except OSError as exc:
            raise OutputError(f"cannot open {self.path} for writing: {exc}") from exc

    def _write(self, text: str) -> None:
        self._handle.write(text)

    def _release(self) -> None:
        self._handle.close()


__all__ = [
    "BinaryStreamOutput",
    "COMMENT_PREFIX",
    "FileOutput",
    "StreamOutput",
    "StringOutput",
    "TextOutput",
]
