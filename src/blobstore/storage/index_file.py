import logging
from collections.abc import Mapping
from pathlib import Path

from blobstore.errors import CorruptIndexError, StorageError

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index"
SEPARATOR = " => "


def format_line(key: str, digest: str) -> str:
    return f"{key}{SEPARATOR}{digest}\n"


def parse_line(line: str, *, path: Path, line_number: int) -> tuple[str, str]:
    # Digests never contain the separator, so split on its last occurrence.
    key, sep, digest = line.rpartition(SEPARATOR)
    if not sep:
        raise CorruptIndexError(path, line_number, "missing separator")
    if not key or not digest:
        raise CorruptIndexError(path, line_number, "empty key or digest")
    return key, digest


class IndexFile:
    """Line-oriented ``key => digest`` file mirroring the in-memory index."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> dict[str, str]:
        """Parse every line; later lines for the same key win."""
        try:
            raw = self.path.read_bytes()
        except OSError as exc:
            raise StorageError(
                "Error while reading from the index file", details={"path": str(self.path)}
            ) from exc
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptIndexError(self.path, 0, "not valid UTF-8") from exc

        entries: dict[str, str] = {}
        for line_number, line in enumerate(text.split("\n"), start=1):
            if not line:
                continue
            key, digest = parse_line(line, path=self.path, line_number=line_number)
            entries[key] = digest
        return entries

    def append(self, key: str, digest: str) -> None:
        try:
            with self.path.open("a", encoding="utf-8", newline="\n") as handle:
                handle.write(format_line(key, digest))
        except OSError as exc:
            raise StorageError(
                "Could not append to the index file", details={"path": str(self.path), "key": key}
            ) from exc

    def rewrite(self, entries: Mapping[str, str]) -> None:
        """Delete the file, then write one line per entry."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError("Could not delete the index file", details={"path": str(self.path)}) from exc
        if not entries:
            logger.debug("Index %s is now empty", self.path)
            return
        try:
            with self.path.open("a", encoding="utf-8", newline="\n") as handle:
                for key, digest in entries.items():
                    handle.write(format_line(key, digest))
        except OSError as exc:
            # The previous file is already gone; only the in-memory index is intact.
            raise StorageError("Could not rewrite the index file", details={"path": str(self.path)}) from exc
        logger.debug("Rewrote index %s with %d entries", self.path, len(entries))
