# src/idfactor/sinks/stream_sink.py
"""Sink for an already-open text stream (stdout, io.StringIO, ...)."""

from __future__ import annotations

import hashlib
import io
from typing import IO

import structlog

from idfactor.contracts.errors import SinkWriteError
from idfactor.contracts.results import ArtifactDescriptor
from idfactor.sinks.base import ArtifactSink

logger = structlog.get_logger(__name__)


class StreamSink(ArtifactSink):
    """Buffer an artifact in memory and write it to a text stream on commit.

    The wrapped stream should not translate newlines (open files with
    newline=""), or platform line terminators get doubled on Windows.

    A stream cannot take back bytes once written: discard() after commit()
    only logs that the artifact could not be retracted.

    Args:
        stream: Destination text stream. Not closed by the sink.
        name: Label used in descriptors and error messages
        encoding: Encoding used to compute the content hash and size
    """

    def __init__(self, stream: IO[str], *, name: str | None = None, encoding: str = "utf-8") -> None:
        self._stream = stream
        self._name = name or getattr(stream, "name", None) or type(stream).__name__
        self._encoding = encoding
        self._buffer: io.StringIO | None = None
        self._committed = False

    @property
    def target(self) -> str:
        return str(self._name)

    def open(self) -> IO[str]:
        if self._buffer is not None or self._committed:
            raise RuntimeError(f"StreamSink {self.target} was already opened")
        self._buffer = io.StringIO(newline="")
        return self._buffer

    def commit(self) -> ArtifactDescriptor:
        if self._buffer is None:
            raise RuntimeError(f"StreamSink {self.target} has nothing staged - call open() first")
        payload = self._buffer.getvalue()
        try:
            self._stream.write(payload)
            self._stream.flush()
        except (OSError, ValueError) as e:
            # ValueError: the stream was already closed
            raise SinkWriteError(self.target, f"cannot write stream: {e}") from e
        finally:
            self._buffer = None
        self._committed = True

        encoded = payload.encode(self._encoding)
        return ArtifactDescriptor.for_stream(
            name=self.target,
            content_hash=hashlib.sha256(encoded).hexdigest(),
            size_bytes=len(encoded),
        )

    def discard(self) -> None:
        self._buffer = None
        if self._committed:
            logger.warning("stream_not_retractable", target=self.target)
            self._committed = False

    def finalize(self) -> None:
        self._committed = False
