"""Content-addressable blob store with a durable ``key => digest`` index.

Blobs are gzip-compressed and stored under the hex digest of their
uncompressed content, directly inside the working directory. Identical
payloads share one blob file. The index is held in memory and mirrored to an
append-only text file, which is rewritten whenever entries are dropped.

A store instance is meant for a single thread of a single process; ``put``
always writes through the same temporary file.
"""

from __future__ import annotations

import gzip
import hashlib
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import BinaryIO

from blobstore.errors import ConfigurationError, StorageError
from blobstore.storage.index_file import INDEX_FILENAME, IndexFile
from blobstore.storage.streaming import DEFAULT_CHUNK_SIZE, compress_and_digest, open_decompressed

logger = logging.getLogger(__name__)

TEMP_FILENAME = "TEMP"


class BlobStore:
    def __init__(
        self,
        working_dir: str | Path,
        *,
        digest_algorithm: str = "sha1",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        compress_level: int = 9,
    ) -> None:
        # shake_* digests need an explicit length and cannot name a blob.
        if digest_algorithm.startswith("shake_"):
            raise ConfigurationError(
                "Unsupported digest algorithm", details={"algorithm": digest_algorithm}
            )
        try:
            hashlib.new(digest_algorithm)
        except ValueError as exc:
            raise ConfigurationError(
                "Unsupported digest algorithm", details={"algorithm": digest_algorithm}
            ) from exc
        self.root = Path(working_dir)
        self.digest_algorithm = digest_algorithm
        self.chunk_size = chunk_size
        self.compress_level = compress_level
        self._ensure_working_dir()

        self._index_file = IndexFile(self.root / INDEX_FILENAME)
        self._index: dict[str, str] = {}
        if self._index_file.exists():
            self._index = self._index_file.load()
            logger.debug("Loaded %d index entries from %s", len(self._index), self._index_file.path)

    def _ensure_working_dir(self) -> None:
        if self.root.exists() and not self.root.is_dir():
            raise ConfigurationError(
                "Path exists and is not a directory", details={"path": str(self.root.absolute())}
            )
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError("Could not create working directory", details={"path": str(self.root)}) from exc

    def _blob_path(self, digest: str) -> Path:
        return self.root / digest

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def list_index(self) -> Mapping[str, str]:
        """Return a read-only live view of the ``key -> digest`` index."""
        return MappingProxyType(self._index)

    def put(self, key: str, source: BinaryIO) -> str:
        """Store the content of ``source`` under ``key`` and return its digest.

        Any previous digest for ``key`` is replaced. The index is only touched
        once the blob file is in place.
        """
        _validate_key(key)
        temp_path = self.root / TEMP_FILENAME
        blob_path: Path | None = None
        blob_existed = False

        try:
            with temp_path.open("wb") as handle:
                digest, size = compress_and_digest(
                    source,
                    handle,
                    algorithm=self.digest_algorithm,
                    chunk_size=self.chunk_size,
                    compress_level=self.compress_level,
                )
                handle.flush()
                os.fsync(handle.fileno())

            blob_path = self._blob_path(digest)
            blob_existed = blob_path.exists()
            if blob_existed:
                logger.debug("Blob %s already stored, discarding temporary file", digest)
                temp_path.unlink()
            else:
                temp_path.replace(blob_path)
                logger.debug("Stored blob %s (%d bytes uncompressed)", digest, size)
        except OSError as exc:
            self._cleanup_failed_put(temp_path, None if blob_existed else blob_path)
            raise StorageError("Could not store blob", details={"key": key}) from exc
        except Exception:
            self._cleanup_failed_put(temp_path, None if blob_existed else blob_path)
            raise

        self._index[key] = digest
        self._index_file.append(key, digest)
        return digest

    def _cleanup_failed_put(self, temp_path: Path, blob_path: Path | None) -> None:
        for path in (temp_path, blob_path):
            if path is None:
                continue
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not clean up %s after a failed put", path, exc_info=True)

    def get(self, key: str) -> gzip.GzipFile | None:
        """Open the blob stored under ``key`` as a decompressing stream.

        Returns None when the key is unknown, or when its blob file has
        disappeared, in which case the stale entry is dropped from the index.
        The caller is responsible for closing the stream.
        """
        digest = self._index.get(key)
        if digest is None:
            return None

        blob_path = self._blob_path(digest)
        try:
            return open_decompressed(blob_path)
        except FileNotFoundError:
            logger.info("Blob %s for key %r is missing, dropping it from the index", digest, key)
            del self._index[key]
            self._index_file.rewrite(self._index)
            return None
        except (OSError, EOFError) as exc:
            raise StorageError("Could not read blob", details={"key": key, "digest": digest}) from exc

    def remove(self, key: str) -> None:
        """Drop ``key`` from the index; unknown keys are ignored.

        The blob file is deleted only when no other key references its digest.
        """
        digest = self._index.pop(key, None)
        if digest is None:
            return

        if digest not in self._index.values():
            blob_path = self._blob_path(digest)
            try:
                blob_path.unlink(missing_ok=True)
            except OSError as exc:
                raise StorageError("Could not delete blob", details={"key": key, "digest": digest}) from exc
            logger.info("Deleted blob %s", digest)
        else:
            logger.debug("Blob %s is still referenced, keeping it", digest)

        self._index_file.rewrite(self._index)


def _validate_key(key: str) -> None:
    if not key:
        raise ValueError("key must be a non-empty string")
    if "\n" in key:
        raise ValueError("key must not contain line breaks")
