"""
LitSpark Uploads — Application Configuration
===============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading, validated once on startup.
How:   `Settings` reads environment variables (or .env), `UploadConfig` takes an
       immutable snapshot of the upload-related values for the services.
Who:   `settings` is imported by the app factory and service singletons;
       services themselves only ever see an `UploadConfig`.
When:  Loaded once at module import time.

Design Decision:
    Allow-lists arrive as comma-separated strings (that's how the deployment
    scripts set them), so they are kept as `str` fields and split by
    properties, the same way `cors_origins` is handled.

    Services receive a frozen `UploadConfig` in their constructor instead of
    reading `settings` directly. Tests build their own config with a temporary
    upload directory and never have to patch module globals.
"""

import logging
import os
from typing import Any, List, Tuple

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# 5MB: the ceiling used when MAX_FILE_SIZE is missing or unusable
DEFAULT_MAX_FILE_SIZE = 5_242_880

DEFAULT_FILE_TYPES = "image/jpeg,image/png,image/gif,application/pdf"
DEFAULT_IMAGE_TYPES = "image/jpeg,image/png,image/gif,image/webp,image/svg+xml"
DEFAULT_DOCUMENT_TYPES = (
    "application/pdf,application/msword,"
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)
DEFAULT_FILE_EXTENSIONS = ".jpg,.jpeg,.png,.gif,.webp,.svg,.pdf,.doc,.docx"


def coerce_max_file_size(value: Any) -> int:
    """
    Turn a configured maximum file size into a usable positive integer.

    A non-numeric or non-positive value falls back to DEFAULT_MAX_FILE_SIZE
    rather than rejecting every upload (0) or accepting them unbounded.
    """
    try:
        size = int(str(value).strip())
    except (TypeError, ValueError):
        logger.warning(
            "Invalid max file size %r, falling back to %d bytes",
            value,
            DEFAULT_MAX_FILE_SIZE,
        )
        return DEFAULT_MAX_FILE_SIZE
    if size <= 0:
        logger.warning(
            "Non-positive max file size %d, falling back to %d bytes",
            size,
            DEFAULT_MAX_FILE_SIZE,
        )
        return DEFAULT_MAX_FILE_SIZE
    return size


def split_csv(value: str) -> List[str]:
    """Split a comma-separated setting, dropping blanks and surrounding spaces."""
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development.
    """

    # ── File Storage ──────────────────────────────────────────────────────
    # What: Root directory for uploads; the partitions default to subfolders
    upload_dir: str = Field(default="./uploads")
    public_upload_dir: str = Field(default="")
    private_upload_dir: str = Field(default="")

    # What: Maximum accepted size of a single file, in bytes
    # Note: Unusable values are coerced to the 5MB default (see validator)
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE)

    # What: Upper bound on files accepted by one multi-file request
    max_files_per_upload: int = Field(default=10, ge=1, le=100)
    max_documents_per_upload: int = Field(default=5, ge=1, le=100)

    # ── Allow-lists (comma-separated) ─────────────────────────────────────
    allowed_file_types: str = Field(default=DEFAULT_FILE_TYPES)
    allowed_image_types: str = Field(default=DEFAULT_IMAGE_TYPES)
    allowed_document_types: str = Field(default=DEFAULT_DOCUMENT_TYPES)
    allowed_file_extensions: str = Field(default=DEFAULT_FILE_EXTENSIONS)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        return split_csv(self.cors_origins)

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=9876, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("max_file_size", mode="before")
    @classmethod
    def validate_max_file_size(cls, v: Any) -> int:
        return coerce_max_file_size(v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @property
    def public_dir(self) -> str:
        return self.public_upload_dir or os.path.join(self.upload_dir, "public")

    @property
    def private_dir(self) -> str:
        return self.private_upload_dir or os.path.join(self.upload_dir, "private")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


class UploadConfig(BaseModel):
    """
    Immutable snapshot of everything the upload pipeline needs.

    Constructed once (usually via `from_settings`) and handed to the
    validators, the storage engine and the upload gateway.
    """

    public_dir: str
    private_dir: str
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_files_per_upload: int = 10
    max_documents_per_upload: int = 5
    allowed_file_types: Tuple[str, ...] = tuple(split_csv(DEFAULT_FILE_TYPES))
    allowed_image_types: Tuple[str, ...] = tuple(split_csv(DEFAULT_IMAGE_TYPES))
    allowed_document_types: Tuple[str, ...] = tuple(split_csv(DEFAULT_DOCUMENT_TYPES))
    allowed_file_extensions: Tuple[str, ...] = tuple(split_csv(DEFAULT_FILE_EXTENSIONS))

    model_config = {"frozen": True}

    @field_validator("max_file_size", mode="before")
    @classmethod
    def validate_max_file_size(cls, v: Any) -> int:
        return coerce_max_file_size(v)

    @field_validator("allowed_file_extensions", mode="after")
    @classmethod
    def normalize_extensions(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        # ".JPG" and "jpg" both mean ".jpg"
        return tuple(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v
        )

    @classmethod
    def from_settings(cls, source: Settings) -> "UploadConfig":
        return cls(
            public_dir=source.public_dir,
            private_dir=source.private_dir,
            max_file_size=source.max_file_size,
            max_files_per_upload=source.max_files_per_upload,
            max_documents_per_upload=source.max_documents_per_upload,
            allowed_file_types=tuple(split_csv(source.allowed_file_types)),
            allowed_image_types=tuple(split_csv(source.allowed_image_types)),
            allowed_document_types=tuple(split_csv(source.allowed_document_types)),
            allowed_file_extensions=tuple(split_csv(source.allowed_file_extensions)),
        )


# Singleton instances imported by the app factory and service singletons
settings = Settings()
upload_config = UploadConfig.from_settings(settings)
