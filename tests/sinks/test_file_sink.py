# tests/sinks/test_file_sink.py
"""Tests for the atomic file sink."""

import hashlib
from pathlib import Path

import pytest


class TestFileSinkCommit:
    """Staged content becomes visible only on commit."""

    def test_nothing_visible_before_commit(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        target = tmp_path / "ssn_elements.psv"
        sink = FileSink(target)
        handle = sink.open()
        handle.write("ssn_id|ssn\n")
        handle.flush()

        assert not target.exists()

    def test_commit_publishes_content(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        target = tmp_path / "ssn_elements.psv"
        sink = FileSink(target)
        sink.open().write("ssn_id|ssn\n")
        sink.commit()

        assert target.read_text(encoding="utf-8") == "ssn_id|ssn\n"

    def test_commit_leaves_no_staging_files(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        sink = FileSink(tmp_path / "ssn_elements.psv")
        sink.open().write("ssn_id|ssn\n")
        sink.commit()

        assert [p.name for p in tmp_path.iterdir()] == ["ssn_elements.psv"]

    def test_descriptor_hash_and_size(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        target = tmp_path / "ssn_elements.psv"
        content = "ssn_id|ssn\nabc|111-22-3333\n"
        sink = FileSink(target)
        sink.open().write(content)

        artifact = sink.commit()

        encoded = content.encode("utf-8")
        assert artifact.artifact_type == "file"
        assert artifact.path_or_uri == f"file://{target}"
        assert artifact.content_hash == hashlib.sha256(encoded).hexdigest()
        assert artifact.size_bytes == len(encoded)

    def test_no_newline_translation(self, tmp_path: Path) -> None:
        """The writer's line terminator reaches the file unchanged."""
        from idfactor.sinks.file_sink import FileSink

        target = tmp_path / "out.psv"
        sink = FileSink(target)
        sink.open().write("a|b\r\n")
        sink.commit()

        assert target.read_bytes() == b"a|b\r\n"

    def test_replaces_existing_file(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        target = tmp_path / "out.psv"
        target.write_text("old\n")
        sink = FileSink(target)
        sink.open().write("new\n")
        sink.commit()

        assert target.read_text() == "new\n"

    def test_encoding_is_honoured(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        target = tmp_path / "out.psv"
        sink = FileSink(target, encoding="latin-1")
        sink.open().write("Zoë\n")
        artifact = sink.commit()

        assert target.read_bytes() == "Zoë\n".encode("latin-1")
        assert artifact.size_bytes == 4


class TestFileSinkDiscard:
    """discard() leaves nothing behind, in any state."""

    def test_discard_staged(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        sink = FileSink(tmp_path / "out.psv")
        sink.open().write("partial")
        sink.discard()

        assert list(tmp_path.iterdir()) == []

    def test_discard_committed_retracts_file(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        target = tmp_path / "out.psv"
        sink = FileSink(target)
        sink.open().write("data\n")
        sink.commit()

        sink.discard()

        assert not target.exists()

    def test_discard_committed_restores_replaced_file(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        target = tmp_path / "out.psv"
        target.write_text("previous run\n")
        sink = FileSink(target)
        sink.open().write("new run\n")
        sink.commit()

        sink.discard()

        assert target.read_text() == "previous run\n"
        assert [p.name for p in tmp_path.iterdir()] == ["out.psv"]

    def test_replaced_file_kept_aside_until_finalize(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        target = tmp_path / "out.psv"
        target.write_text("previous run\n")
        sink = FileSink(target)
        sink.open().write("new run\n")
        sink.commit()

        backups = [p for p in tmp_path.iterdir() if p.name.endswith(".bak")]
        assert len(backups) == 1
        assert backups[0].read_text() == "previous run\n"

        sink.finalize()

        assert [p.name for p in tmp_path.iterdir()] == ["out.psv"]
        assert target.read_text() == "new run\n"

    def test_discard_after_finalize_keeps_file(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        target = tmp_path / "out.psv"
        sink = FileSink(target)
        sink.open().write("data\n")
        sink.commit()
        sink.finalize()

        sink.discard()

        assert target.read_text() == "data\n"

    def test_discard_before_open_is_noop(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        FileSink(tmp_path / "out.psv").discard()
        assert list(tmp_path.iterdir()) == []

    def test_discard_is_idempotent(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        sink = FileSink(tmp_path / "out.psv")
        sink.open().write("partial")
        sink.discard()
        sink.discard()

        assert list(tmp_path.iterdir()) == []


class TestFileSinkErrors:
    def test_missing_directory_raises_sink_write_error(self, tmp_path: Path) -> None:
        from idfactor.contracts.errors import SinkWriteError
        from idfactor.sinks.file_sink import FileSink

        sink = FileSink(tmp_path / "missing" / "out.psv")
        with pytest.raises(SinkWriteError) as exc_info:
            sink.open()
        assert "out.psv" in exc_info.value.target

    def test_commit_without_open_raises(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        with pytest.raises(RuntimeError, match="nothing staged"):
            FileSink(tmp_path / "out.psv").commit()

    def test_open_twice_raises(self, tmp_path: Path) -> None:
        from idfactor.sinks.file_sink import FileSink

        sink = FileSink(tmp_path / "out.psv")
        sink.open()
        try:
            with pytest.raises(RuntimeError, match="already opened"):
                sink.open()
        finally:
            sink.discard()

    def test_publish_failure_removes_staging(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A failed os.replace leaves neither target nor staging file."""
        import os

        from idfactor.contracts.errors import SinkWriteError
        from idfactor.sinks.file_sink import FileSink

        def broken_replace(src: object, dst: object) -> None:
            raise OSError("read-only file system")

        monkeypatch.setattr(os, "replace", broken_replace)

        sink = FileSink(tmp_path / "out.psv")
        sink.open().write("data\n")
        with pytest.raises(SinkWriteError, match="read-only"):
            sink.commit()

        assert list(tmp_path.iterdir()) == []

    def test_publish_failure_keeps_existing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """The file a failed commit was about to replace is put back."""
        import os

        from idfactor.contracts.errors import SinkWriteError
        from idfactor.sinks.file_sink import FileSink

        real_replace = os.replace

        def replace_failing_on_publish(src: str, dst: str) -> None:
            if str(src).endswith(".tmp"):
                raise OSError("read-only file system")
            real_replace(src, dst)

        monkeypatch.setattr(os, "replace", replace_failing_on_publish)

        target = tmp_path / "out.psv"
        target.write_text("previous run\n")
        sink = FileSink(target)
        sink.open().write("data\n")
        with pytest.raises(SinkWriteError, match="read-only"):
            sink.commit()

        assert [p.name for p in tmp_path.iterdir()] == ["out.psv"]
        assert target.read_text() == "previous run\n"
