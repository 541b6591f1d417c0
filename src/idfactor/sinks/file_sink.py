# src/idfactor/sinks/file_sink.py
"""Atomic file sink.

Stages into a temporary file next to the target and publishes it with
os.replace() after fsync, so readers never observe a half-written store.

A file already at the target is moved aside to a hidden backup on commit.
discard() puts it back; finalize() deletes it once the whole run is kept.
"""

from __future__ import annotations

import contextlib
import hashlib
import os
import tempfile
from pathlib import Path
from typing import IO

import structlog

from idfactor.contracts.errors import SinkWriteError
from idfactor.contracts.results import ArtifactDescriptor
from idfactor.sinks.base import ArtifactSink

logger = structlog.get_logger(__name__)


class FileSink(ArtifactSink):
    """Write one artifact to a file, atomically.

    The staging file is created with mkstemp(), which makes it readable by
    the owner only; the published file keeps that mode.

    Args:
        path: Final location of the artifact. Its directory must exist.
        encoding: Text encoding of the file (default: "utf-8")
    """

    def __init__(self, path: Path | str, *, encoding: str = "utf-8") -> None:
        self._path = Path(path)
        self._encoding = encoding
        self._staging: IO[str] | None = None
        self._staging_path: Path | None = None
        self._backup_path: Path | None = None
        self._committed = False

    @property
    def target(self) -> str:
        return str(self._path)

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> IO[str]:
        if self._staging is not None or self._committed:
            raise RuntimeError(f"FileSink for {self._path} was already opened")
        try:
            fd, name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=self._path.parent,
            )
        except OSError as e:
            raise SinkWriteError(self.target, f"cannot create staging file: {e}") from e
        self._staging_path = Path(name)
        # newline="" - the csv writer emits the platform line terminator itself
        self._staging = os.fdopen(fd, "w", encoding=self._encoding, newline="")
        return self._staging

    def commit(self) -> ArtifactDescriptor:
        staging = self._staging
        staging_path = self._staging_path
        if staging is None or staging_path is None:
            raise RuntimeError(f"FileSink for {self._path} has nothing staged - call open() first")
        try:
            staging.flush()
            os.fsync(staging.fileno())
            staging.close()
            self._move_existing_aside()
            os.replace(staging_path, self._path)
        except OSError as e:
            self._remove_staging()
            self._restore_backup()
            raise SinkWriteError(self.target, f"cannot publish file: {e}") from e
        self._staging = None
        self._staging_path = None
        self._committed = True

        try:
            content_hash = self._compute_file_hash()
            size_bytes = self._path.stat().st_size
        except OSError as e:
            raise SinkWriteError(self.target, f"cannot verify published file: {e}") from e
        return ArtifactDescriptor.for_file(
            path=str(self._path),
            content_hash=content_hash,
            size_bytes=size_bytes,
        )

    def discard(self) -> None:
        self._remove_staging()
        if self._committed:
            if self._backup_path is not None:
                self._restore_backup()
            else:
                try:
                    self._path.unlink(missing_ok=True)
                except OSError as e:
                    logger.warning("discard_failed", target=self.target, error=str(e))
            self._committed = False

    def finalize(self) -> None:
        self._committed = False
        backup = self._backup_path
        if backup is None:
            return
        self._backup_path = None
        try:
            backup.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("finalize_failed", target=self.target, backup=str(backup), error=str(e))

    def _move_existing_aside(self) -> None:
        """Rename a file already at the target to a hidden backup next to it."""
        if not self._path.exists():
            return
        fd, name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".bak",
            dir=self._path.parent,
        )
        os.close(fd)
        backup = Path(name)
        try:
            os.replace(self._path, backup)
        except OSError:
            backup.unlink(missing_ok=True)
            raise
        self._backup_path = backup

    def _restore_backup(self) -> None:
        backup = self._backup_path
        if backup is None:
            return
        try:
            os.replace(backup, self._path)
        except OSError as e:
            logger.warning("restore_failed", target=self.target, backup=str(backup), error=str(e))
            return
        self._backup_path = None

    def _remove_staging(self) -> None:
        if self._staging is not None:
            # Already failing or aborting; a close error adds nothing
            with contextlib.suppress(OSError):
                self._staging.close()
            self._staging = None
        if self._staging_path is not None:
            try:
                self._staging_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("discard_failed", target=str(self._staging_path), error=str(e))
            self._staging_path = None

    def _compute_file_hash(self) -> str:
        """Compute SHA-256 hash of the file contents."""
        sha256 = hashlib.sha256()
        with open(self._path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
        return sha256.hexdigest()
