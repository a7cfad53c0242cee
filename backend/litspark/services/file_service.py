"""
LitSpark Uploads — File Storage Service
==========================================

What:  Writes, reads, describes and deletes uploaded files in one of two
       partitions (public, private).
Why:   Centralizes all file system operations behind one path-safety rule.
How:   Stored names are "{sanitized-stem}-{token}{extension}", written with
       exclusive create; a caller-supplied filename is only joined to a
       partition root if sanitizing it would leave it unchanged.
Who:   Called by the upload gateway (store) and the upload routes
       (retrieve, describe, remove).

Security Model:
    1. Sanitized names: the stem and extension come only from `sanitize_filename`
    2. Random token:    8 hex chars from uuid4, so no caller-chosen name is reused
    3. Exclusive create: "xb" mode refuses to overwrite; a collision draws a new token
    4. Root check:      resolved paths must sit directly inside their partition root

    Stored names are fixed points of the sanitizer, so a caller passing back
    a name it received from `store` always resolves to the same file, while
    "../../etc/passwd" or a case-changed alias of a stored name 404s.

Directory Structure:
    uploads/
    ├── public/
    │   ├── my-photo-1a2b3c4d.jpg
    │   └── logo-9f8e7d6c.png
    └── private/
        └── report-5e6f7a8b.pdf
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from litspark.config import UploadConfig, upload_config
from litspark.exceptions import FileStorageError, InvalidInputError, NotFoundError
from litspark.schemas.upload import (
    FileInfo,
    Partition,
    RetrievedFile,
    UploadedFile,
)
from litspark.services.filenames import mime_type_for, sanitize_filename, split_extension

logger = logging.getLogger(__name__)

TOKEN_LENGTH = 8
MAX_NAME_ATTEMPTS = 5

# Stem used when a name sanitizes down to its extension ("@@@.png" → ".png")
FALLBACK_STEM = "file"


def generate_token() -> str:
    return uuid.uuid4().hex[:TOKEN_LENGTH]


def build_stored_filename(original_name: str, token: str) -> str:
    """
    "My Photo.JPG" + "1a2b3c4d" → "my-photo-1a2b3c4d.jpg"

    Raises:
        InvalidInputError if the name has nothing left after sanitization.
    """
    sanitized = sanitize_filename(original_name)
    if not sanitized:
        raise InvalidInputError(
            message="Invalid filename",
            context={"original_name": original_name},
        )
    stem, extension = split_extension(sanitized)
    return f"{stem or FALLBACK_STEM}-{token}{extension}"


async def read_payload(file: UploadedFile) -> bytes:
    """In-memory content, or the spooled file read through aiofiles."""
    if file.content is not None:
        return file.content
    if file.path:
        async with aiofiles.open(file.path, "rb") as f:
            return await f.read()
    return b""


class FileService:
    """
    Storage engine for the public and private upload partitions.

    Lifecycle of a stored file:
        1. store()     → bytes written under a fresh unique name
        2. retrieve()  → bytes + MIME type derived from the extension
        3. describe()  → size, extension, timestamps
        4. remove()    → bytes deleted; later calls 404

    Partition directories are created on first write (idempotent, safe to
    race), never in the constructor, so a rejected request leaves no trace.
    """

    def __init__(self, config: Optional[UploadConfig] = None):
        self.config = config or upload_config
        self.public_root = Path(self.config.public_dir).resolve()
        self.private_root = Path(self.config.private_dir).resolve()
        logger.info(
            "FileService initialized with public_root=%s private_root=%s",
            self.public_root,
            self.private_root,
        )

    def root_for(self, is_private: bool) -> Path:
        return self.private_root if is_private else self.public_root

    def ensure_partitions(self) -> None:
        """Create both partition roots (startup hook)."""
        for root in (self.public_root, self.private_root):
            root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, filename: str, is_private: bool) -> Path:
        """
        Map a caller-supplied filename to a path inside the partition.

        Only exact stored names resolve: a name the sanitizer would change
        ("../x.jpg", "MY-PHOTO-1a2b3c4d.JPG") was never produced by `store`.

        Raises:
            InvalidInputError for an empty filename.
            NotFoundError for anything that is not a stored-name shape.
        """
        if not filename:
            raise InvalidInputError(message="No filename provided")

        root = self.root_for(is_private)
        if sanitize_filename(filename) != filename:
            raise NotFoundError(resource="File", resource_id=filename)
        path = (root / filename).resolve()
        if path.parent != root:
            raise NotFoundError(resource="File", resource_id=filename)
        return path

    async def _existing(self, filename: str, is_private: bool) -> Path:
        path = self._resolve(filename, is_private)
        if not await aiofiles.os.path.isfile(path):
            raise NotFoundError(
                resource="File",
                resource_id=filename,
                context={"partition": Partition.of(is_private).value},
            )
        return path

    async def store(self, file: Optional[UploadedFile], is_private: Optional[bool] = None) -> str:
        """
        Persist an upload and return its stored filename.

        `is_private` defaults to the flag carried by the file itself.

        Raises:
            InvalidInputError if no file (or no usable filename) is given.
            FileStorageError if the partition can't be created or the write fails;
            a partially written file is removed before raising.
        """
        if file is None:
            raise InvalidInputError(message="No file provided")
        if is_private is None:
            is_private = file.is_private

        # Reject unusable names before touching the filesystem
        if not sanitize_filename(file.original_name):
            raise InvalidInputError(
                message="Invalid filename",
                context={"original_name": file.original_name},
            )

        root = self.root_for(is_private)
        try:
            await aiofiles.os.makedirs(root, exist_ok=True)
            content = await read_payload(file)
        except OSError as e:
            logger.error("Failed to prepare upload into %s: %s", root, str(e))
            raise FileStorageError(
                message="Error storing file",
                context={"path": str(root), "os_error": str(e)},
            ) from e

        for _ in range(MAX_NAME_ATTEMPTS):
            filename = build_stored_filename(file.original_name, generate_token())
            path = root / filename
            try:
                async with aiofiles.open(path, "xb") as f:
                    await f.write(content)
            except FileExistsError:
                logger.warning("Stored filename collision on %s, drawing a new token", filename)
                continue
            except OSError as e:
                logger.error("Failed to store file at %s: %s", path, str(e))
                await self._discard(path)
                raise FileStorageError(
                    message="Error storing file",
                    context={"path": str(path), "os_error": str(e)},
                ) from e

            logger.info(
                "File stored: %s (%d bytes, %s)",
                filename,
                len(content),
                Partition.of(is_private).value,
            )
            return filename

        raise FileStorageError(
            message="Error storing file",
            context={"original_name": file.original_name, "reason": "name collisions"},
        )

    async def _discard(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove partial file %s: %s", path, str(e))

    async def retrieve(self, filename: str, is_private: bool = False) -> RetrievedFile:
        """
        Read a stored file back.

        Raises:
            NotFoundError if it doesn't exist in the requested partition.
            FileStorageError if it exists but can't be read.
        """
        path = await self._existing(filename, is_private)
        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except OSError as e:
            logger.error("Failed to read file %s: %s", path, str(e))
            raise FileStorageError(
                message="Error retrieving file",
                context={"path": str(path), "os_error": str(e)},
            ) from e

        return RetrievedFile(
            data=data,
            filename=path.name,
            mime_type=mime_type_for(path.name),
            size=len(data),
            is_private=is_private,
        )

    async def remove(self, filename: str, is_private: bool = False) -> bool:
        path = await self._existing(filename, is_private)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError as e:
            # Lost a race with another delete
            raise NotFoundError(resource="File", resource_id=filename) from e
        except OSError as e:
            logger.error("Failed to delete file %s: %s", path, str(e))
            raise FileStorageError(
                message="Error deleting file",
                context={"path": str(path), "os_error": str(e)},
            ) from e

        logger.info("File deleted: %s (%s)", path.name, Partition.of(is_private).value)
        return True

    async def describe(self, filename: str, is_private: bool = False) -> FileInfo:
        path = await self._existing(filename, is_private)
        try:
            stats = await aiofiles.os.stat(path)
        except FileNotFoundError as e:
            raise NotFoundError(resource="File", resource_id=filename) from e
        except OSError as e:
            raise FileStorageError(
                message="Error reading file information",
                context={"path": str(path), "os_error": str(e)},
            ) from e

        # st_birthtime only exists on some platforms
        created = getattr(stats, "st_birthtime", stats.st_ctime)
        return FileInfo(
            filename=path.name,
            size=stats.st_size,
            extension=os.path.splitext(path.name)[1].lstrip("."),
            mime_type=mime_type_for(path.name),
            created_at=datetime.fromtimestamp(created, tz=timezone.utc),
            modified_at=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
            partition=Partition.of(is_private),
            is_private=is_private,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
