from pathlib import Path

import pytest
from pydantic import ValidationError

from blobstore.settings import AppSettings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_BLOB_DIR", "APP_DIGEST_ALGORITHM", "APP_CHUNK_SIZE", "APP_COMPRESS_LEVEL", "APP_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = AppSettings(_env_file=None)
    assert settings.app_blob_dir == Path("./blobs")
    assert settings.app_digest_algorithm == "sha1"
    assert settings.app_log_level == "WARNING"


def test_env_overrides_and_normalization(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_BLOB_DIR", "~/store")
    monkeypatch.setenv("APP_DIGEST_ALGORITHM", "SHA256")
    monkeypatch.setenv("APP_LOG_LEVEL", "debug")
    settings = AppSettings(_env_file=None)
    assert settings.app_blob_dir == Path("~/store").expanduser()
    assert settings.app_digest_algorithm == "sha256"
    assert settings.app_log_level == "DEBUG"


def test_rejects_bad_compress_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_COMPRESS_LEVEL", "11")
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None)


def test_open_store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_BLOB_DIR", str(tmp_path / "blobs"))
    monkeypatch.setenv("APP_CHUNK_SIZE", "1024")
    store = AppSettings(_env_file=None).open_store()
    assert store.root == tmp_path / "blobs"
    assert store.chunk_size == 1024
    assert (tmp_path / "blobs").is_dir()


def test_rejects_unknown_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_LOG_LEVEL", "loud")
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None)
