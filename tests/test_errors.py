from pathlib import Path

from blobstore.errors import BlobStoreError, CorruptIndexError, StorageError


def test_message_without_details() -> None:
    assert str(StorageError("Could not store blob")) == "Could not store blob"


def test_details_are_appended() -> None:
    error = StorageError("Could not read blob", details={"key": "k", "digest": "abc"})
    assert str(error) == "Could not read blob [key='k' digest='abc']"
    assert error.details == {"key": "k", "digest": "abc"}
    assert isinstance(error, BlobStoreError)


def test_corrupt_index_error_carries_location(tmp_path: Path) -> None:
    error = CorruptIndexError(tmp_path / "index", 4, "missing separator")
    assert error.line_number == 4
    assert "Corrupt index file: missing separator" in str(error)
    assert "line=4" in str(error)
