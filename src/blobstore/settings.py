from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from blobstore.storage.blob_store import BlobStore

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_blob_dir: Path = Field(default=Path("./blobs"), alias="APP_BLOB_DIR")
    app_digest_algorithm: str = Field(default="sha1", alias="APP_DIGEST_ALGORITHM")
    app_chunk_size: int = Field(default=64 * 1024, gt=0, alias="APP_CHUNK_SIZE")
    app_compress_level: int = Field(default=9, ge=0, le=9, alias="APP_COMPRESS_LEVEL")
    app_log_level: LogLevel = Field(default="WARNING", alias="APP_LOG_LEVEL")

    @field_validator("app_log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def normalize(self) -> "AppSettings":
        self.app_blob_dir = self.app_blob_dir.expanduser()
        self.app_digest_algorithm = self.app_digest_algorithm.lower()
        return self

    def open_store(self) -> BlobStore:
        return BlobStore(
            self.app_blob_dir,
            digest_algorithm=self.app_digest_algorithm,
            chunk_size=self.app_chunk_size,
            compress_level=self.app_compress_level,
        )
