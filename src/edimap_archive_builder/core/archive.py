"""In-memory archive and the sinks it is written to.

The archive is assembled completely in memory and handed to a sink in one pass.
Both sinks produce the same set of entry paths and contents.
"""

from __future__ import annotations

import zipfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from loguru import logger

from .exceptions import InvalidArgumentError, SinkWriteError

# 固定タイムスタンプ（同一入力から同一バイト列の zip を作るため）
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def check_entry_path(path: str) -> list[str]:
    """Split an entry path into its segments, rejecting paths the two sinks would store differently.

    Absolute paths, empty segments ("a//b") and "." / ".." segments are refused.

    Raises:
        InvalidArgumentError: The path is not a plain relative path
    """
    parts = path.split("/")
    if any(part in ("", ".", "..") for part in parts):
        raise InvalidArgumentError("path", f"not a plain relative entry path: {path!r}")
    return parts


class Archive:
    """Ordered set of ``path -> bytes`` entries.

    Adding a path twice replaces the earlier content but keeps its position.
    """

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}

    def add_entry(self, path: str, content: str | bytes) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._entries[path] = content

    def get_entry(self, path: str) -> bytes | None:
        return self._entries.get(path)

    @property
    def entries(self) -> dict[str, bytes]:
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def write_to(self, sink: ArchiveSink) -> None:
        """Write every entry to ``sink`` in insertion order (does not close it)."""
        for path, content in self._entries.items():
            sink.write_entry(path, content)


class ArchiveSink(ABC):
    """Destination of an archive.

    Sinks are closed exactly once; further close() calls are ignored.
    """

    def __init__(self) -> None:
        self.closed = False

    @abstractmethod
    def write_entry(self, path: str, content: bytes) -> None:
        """Write one entry.

        Raises:
            SinkWriteError: The entry could not be written
        """
        ...

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._finish()

    @abstractmethod
    def _finish(self) -> None:
        """Flush and release the underlying target."""
        ...

    def __enter__(self) -> ArchiveSink:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ZipStreamSink(ArchiveSink):
    """Writes a zip archive to a binary stream and closes the stream on close().

    Args:
        stream: Writable binary stream (file, BytesIO, socket file, ...)
    """

    def __init__(self, stream: BinaryIO, compression: int = zipfile.ZIP_DEFLATED) -> None:
        super().__init__()
        self.stream = stream
        self.compression = compression
        self._zip: zipfile.ZipFile | None = None

    def write_entry(self, path: str, content: bytes) -> None:
        if self.closed:
            raise SinkWriteError("Sink already closed", path=path)
        check_entry_path(path)
        try:
            if self._zip is None:
                self._zip = zipfile.ZipFile(self.stream, mode="w", compression=self.compression)
            info = zipfile.ZipInfo(path, date_time=ZIP_EPOCH)
            info.compress_type = self.compression
            info.external_attr = 0o644 << 16
            self._zip.writestr(info, content)
        except OSError as e:
            raise SinkWriteError(f"Failed to write zip entry: {e}", path=path) from e

    def _finish(self) -> None:
        try:
            if self._zip is not None:
                self._zip.close()
        except OSError as e:
            raise SinkWriteError(f"Failed to finalize zip archive: {e}") from e
        finally:
            self.stream.close()


class DirectorySink(ArchiveSink):
    """Writes each entry as a file below ``folder``.

    Args:
        folder: Output directory (created if missing)
    """

    def __init__(self, folder: Path | str) -> None:
        super().__init__()
        self.folder = Path(folder)

    def _target(self, path: str) -> Path:
        return self.folder.joinpath(*check_entry_path(path))

    def write_entry(self, path: str, content: bytes) -> None:
        if self.closed:
            raise SinkWriteError("Sink already closed", path=path)
        target = self._target(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise SinkWriteError(f"Failed to write file: {e}", path=path) from e

    def _finish(self) -> None:
        logger.debug(f"[Archive] Directory sink closed: {self.folder}")
