import gzip
import hashlib
import os
from pathlib import Path
from typing import BinaryIO

DEFAULT_CHUNK_SIZE = 64 * 1024


def compress_and_digest(
    source: BinaryIO,
    target: BinaryIO,
    *,
    algorithm: str = "sha1",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    compress_level: int = 9,
) -> tuple[str, int]:
    """Hash and gzip ``source`` into ``target`` in a single pass.

    Returns the hex digest of the uncompressed bytes and their count.
    ``target`` is left open.
    """
    digest = hashlib.new(algorithm)
    total = 0
    # Empty filename and zero mtime keep the output stable for identical input.
    with gzip.GzipFile(
        filename="",
        mode="wb",
        compresslevel=compress_level,
        fileobj=target,
        mtime=0,
    ) as compressor:
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                break
            digest.update(chunk)
            compressor.write(chunk)
            total += len(chunk)
    return digest.hexdigest(), total


def open_decompressed(path: Path) -> gzip.GzipFile:
    """Open a gzip blob for reading, failing early on a bad header."""
    stream = gzip.open(path, "rb")
    try:
        # A stored payload, even an empty one, always has a gzip header and trailer.
        if os.fstat(stream.fileno()).st_size == 0:
            raise gzip.BadGzipFile(f"Empty blob file: {path}")
        stream.peek(1)
    except (OSError, EOFError):
        stream.close()
        raise
    return stream
