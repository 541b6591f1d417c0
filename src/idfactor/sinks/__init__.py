"""Artifact sinks: staged, all-or-nothing output targets."""

from idfactor.sinks.base import ArtifactSink
from idfactor.sinks.file_sink import FileSink
from idfactor.sinks.stream_sink import StreamSink

__all__ = [
    "ArtifactSink",
    "FileSink",
    "StreamSink",
]
