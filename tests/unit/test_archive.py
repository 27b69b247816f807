"""Unit tests for the in-memory archive and its sinks."""

import io
import zipfile
from pathlib import Path

import pytest

from edimap_archive_builder.core.archive import Archive, DirectorySink, ZipStreamSink, check_entry_path
from edimap_archive_builder.core.exceptions import InvalidArgumentError, SinkWriteError


class _TrackingStream(io.BytesIO):
    """close() の回数と、クローズ時点の内容を記録する BytesIO."""

    def __init__(self) -> None:
        super().__init__()
        self.close_count = 0
        self.data = b""

    def close(self) -> None:
        self.close_count += 1
        if not self.closed:
            self.data = self.getvalue()
        super().close()


def _sample_archive() -> Archive:
    archive = Archive()
    archive.add_entry("urn/model/ORDERS.xml", "<x/>")
    archive.add_entry("META-INF/mapping-models.urn", "urn:model")
    archive.add_entry("META-INF/interchange.properties", b"k=v\n")
    return archive


class TestArchive:
    """Archive（メモリ上のエントリ集合）のテスト."""

    def test_add_entry_encodes_text(self) -> None:
        """文字列は UTF-8 で格納される."""
        archive = Archive()
        archive.add_entry("a.txt", "ü")
        assert archive.get_entry("a.txt") == "ü".encode("utf-8")
        assert "a.txt" in archive
        assert archive.get_entry("missing") is None

    def test_insertion_order_and_replace(self) -> None:
        """同じパスの再追加は内容のみ置き換え、位置は保つ."""
        archive = Archive()
        archive.add_entry("b", "1")
        archive.add_entry("a", "2")
        archive.add_entry("b", "3")
        assert list(archive) == ["b", "a"]
        assert archive.get_entry("b") == b"3"
        assert len(archive) == 2


class TestCheckEntryPath:
    """check_entry_path のテスト."""

    def test_plain_path(self) -> None:
        """通常の相対パスは区間に分割される."""
        assert check_entry_path("urn/model/ORDERS.xml") == ["urn", "model", "ORDERS.xml"]

    @pytest.mark.parametrize("path", ["a//b", "/abs.txt", "a/", "../evil.txt", "a/./b", ""])
    def test_rejected_paths(self, path: str) -> None:
        """空・絶対・"." / ".." を含むパスは拒否する."""
        with pytest.raises(InvalidArgumentError):
            check_entry_path(path)


class TestZipStreamSink:
    """ZipStreamSink のテスト."""

    def test_writes_zip_and_closes_stream(self) -> None:
        """エントリを書き込み、close() でストリームを1回クローズする."""
        stream = _TrackingStream()
        sink = ZipStreamSink(stream)
        _sample_archive().write_to(sink)
        sink.close()

        assert stream.close_count == 1
        with zipfile.ZipFile(io.BytesIO(stream.data)) as zf:
            assert zf.namelist() == [
                "urn/model/ORDERS.xml",
                "META-INF/mapping-models.urn",
                "META-INF/interchange.properties",
            ]
            assert zf.read("META-INF/mapping-models.urn") == b"urn:model"
            assert zf.getinfo("urn/model/ORDERS.xml").date_time == (1980, 1, 1, 0, 0, 0)

    def test_close_is_idempotent(self) -> None:
        """close() を重ねてもストリームのクローズは1回."""
        stream = _TrackingStream()
        sink = ZipStreamSink(stream)
        sink.close()
        sink.close()
        assert stream.close_count == 1
        assert stream.data == b""

    def test_write_after_close_raises(self) -> None:
        """クローズ後の書き込みは SinkWriteError."""
        sink = ZipStreamSink(_TrackingStream())
        sink.close()
        with pytest.raises(SinkWriteError):
            sink.write_entry("a", b"x")

    def test_rejects_empty_segments(self) -> None:
        """空の区間を含むパス（a//b）は zip にも書かない."""
        stream = _TrackingStream()
        sink = ZipStreamSink(stream)
        with pytest.raises(InvalidArgumentError):
            sink.write_entry("a//b", b"x")
        sink.close()
        assert stream.data == b""

    def test_finalize_failure_still_closes_stream(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """zip の確定処理が失敗しても、ストリームは1回だけクローズされる."""

        def failing_end_record(self: zipfile.ZipFile) -> None:
            raise OSError("disk full")

        stream = _TrackingStream()
        sink = ZipStreamSink(stream)
        sink.write_entry("a.txt", b"x")

        monkeypatch.setattr(zipfile.ZipFile, "_write_end_record", failing_end_record)
        with pytest.raises(SinkWriteError) as exc_info:
            sink.close()

        assert exc_info.value.path is None
        assert stream.close_count == 1
        assert sink.closed is True

        sink.close()
        assert stream.close_count == 1

    def test_identical_archives_are_byte_identical(self) -> None:
        """同じ内容なら同じバイト列になる."""
        outputs = []
        for _ in range(2):
            stream = _TrackingStream()
            with ZipStreamSink(stream) as sink:
                _sample_archive().write_to(sink)
            outputs.append(stream.data)
        assert outputs[0] == outputs[1]


class TestDirectorySink:
    """DirectorySink のテスト."""

    def test_writes_files(self, tmp_path: Path) -> None:
        """エントリごとにファイルを書き出す."""
        out = tmp_path / "out"
        with DirectorySink(out) as sink:
            _sample_archive().write_to(sink)

        assert (out / "urn" / "model" / "ORDERS.xml").read_bytes() == b"<x/>"
        assert (out / "META-INF" / "interchange.properties").read_bytes() == b"k=v\n"

    def test_rejects_escaping_paths(self, tmp_path: Path) -> None:
        """出力先の外を指すパスは拒否する."""
        sink = DirectorySink(tmp_path / "out")
        with pytest.raises(InvalidArgumentError):
            sink.write_entry("../evil.txt", b"x")
        with pytest.raises(InvalidArgumentError):
            sink.write_entry("/abs.txt", b"x")

    def test_rejects_empty_segments(self, tmp_path: Path) -> None:
        """空の区間を含むパス（a//b）は zip と同じく拒否する."""
        sink = DirectorySink(tmp_path / "out")
        with pytest.raises(InvalidArgumentError):
            sink.write_entry("a//b", b"x")
        assert not (tmp_path / "out").exists()

    def test_write_failure_raises_sink_error(self, tmp_path: Path) -> None:
        """書き込み失敗は SinkWriteError（エントリパス付き）."""
        blocker = tmp_path / "out"
        blocker.write_text("not a directory", encoding="utf-8")
        sink = DirectorySink(blocker)
        with pytest.raises(SinkWriteError) as exc_info:
            sink.write_entry("a/b.txt", b"x")
        assert exc_info.value.path == "a/b.txt"
