import gzip
import hashlib
import io
from pathlib import Path

import pytest

from blobstore.storage.streaming import compress_and_digest, open_decompressed


def test_compress_and_digest_single_pass() -> None:
    payload = b"Hello world!" * 1000
    target = io.BytesIO()

    digest, size = compress_and_digest(io.BytesIO(payload), target, chunk_size=13)

    assert digest == hashlib.sha1(payload).hexdigest()
    assert size == len(payload)
    assert gzip.decompress(target.getvalue()) == payload
    assert not target.closed


def test_identical_input_gives_identical_output() -> None:
    first, second = io.BytesIO(), io.BytesIO()
    compress_and_digest(io.BytesIO(b"same"), first)
    compress_and_digest(io.BytesIO(b"same"), second)
    assert first.getvalue() == second.getvalue()


def test_open_decompressed(tmp_path: Path) -> None:
    path = tmp_path / "blob"
    path.write_bytes(gzip.compress(b"payload"))
    with open_decompressed(path) as stream:
        assert stream.read() == b"payload"


def test_open_decompressed_rejects_garbage(tmp_path: Path) -> None:
    path = tmp_path / "blob"
    path.write_bytes(b"garbage!")
    with pytest.raises(OSError):
        open_decompressed(path)


def test_open_decompressed_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        open_decompressed(tmp_path / "missing")


def test_open_decompressed_rejects_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "blob"
    path.write_bytes(b"")
    with pytest.raises(gzip.BadGzipFile):
        open_decompressed(path)
