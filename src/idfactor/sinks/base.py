# src/idfactor/sinks/base.py
"""Base class for artifact sinks.

A sink stages output and publishes it in one step, so a fragment store is
either fully present at its target or not present at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO

from idfactor.contracts.results import ArtifactDescriptor


class ArtifactSink(ABC):
    """Staged output target for one artifact.

    Subclass and implement open(), commit(), discard(). Override finalize()
    when commit() keeps anything around to make discard() possible.

    Lifecycle:

        1. open()     -- begin staging, returns a text handle for writing
        2. commit()   -- flush, verify and publish; returns a descriptor
        3. discard()  -- drop staged output, or retract a committed artifact
                         and restore whatever it replaced
        4. finalize() -- keep the committed artifact for good

    Guarantees:
        - Nothing written to the handle from open() is visible at the
          target before commit() returns.
        - discard() is safe to call in any state and more than once.
        - discard() after finalize() leaves the artifact in place.
        - Handles are text streams opened without newline translation;
          writers choose the line terminator.

    Example:
        sink = FileSink(out_dir / "ssn_elements.psv")
        handle = sink.open()
        handle.write("ssn_id|ssn\\n")
        artifact = sink.commit()
        sink.finalize()
    """

    @property
    @abstractmethod
    def target(self) -> str:
        """Human-readable description of where the artifact goes."""
        ...

    @abstractmethod
    def open(self) -> IO[str]:
        """Begin staging and return the handle to write into.

        Raises:
            SinkWriteError: If the staging area cannot be created
        """
        ...

    @abstractmethod
    def commit(self) -> ArtifactDescriptor:
        """Publish staged output.

        Raises:
            SinkWriteError: If flushing or publishing fails
        """
        ...

    @abstractmethod
    def discard(self) -> None:
        """Drop staged output and retract a committed artifact where possible."""
        ...

    def finalize(self) -> None:
        """Make a committed artifact permanent; discard() no longer retracts it."""
        return None
