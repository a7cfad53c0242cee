"""
LitSpark Uploads — Upload Gateway
====================================

What:  Request-facing side of the upload pipeline: reads multipart bodies,
       filters files against the allow-lists, stores accepted files and
       derives their accessibility metadata.
Why:   Routes stay thin; every rule about what may be uploaded lives here.
How:   Composes FileValidator, FileService and MetadataService.
Who:   Called by the upload routes; `translate_error` is used by the
       exception handlers in main.py.

Per-file flow (one pass, no retries):
    Received ──read_form──▶ size/count/field limits ──check──▶ Validated ──store──▶ Stored
                    │                                    │
                    └──────────── UploadLimitError       └── ValidationError (Rejected)

    All files of a request are validated before the first one is stored, so
    a rejected file never leaves its siblings half-uploaded.

Upload kinds:
    GENERAL   → ALLOWED_FILE_TYPES + ALLOWED_FILE_EXTENSIONS   (public or private routes)
    IMAGE     → ALLOWED_IMAGE_TYPES + their extensions
    DOCUMENT  → ALLOWED_DOCUMENT_TYPES + their extensions
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as FormFile
from starlette.requests import Request

from litspark.config import UploadConfig, upload_config
from litspark.exceptions import (
    INVALID_FILE_EXTENSION,
    INVALID_FILE_TYPE,
    LIMIT_FILE_COUNT,
    LIMIT_FILE_SIZE,
    LIMIT_UNEXPECTED_FILE,
    InvalidInputError,
    UploadLimitError,
    ValidationError,
)
from litspark.schemas.upload import (
    AccessibilityMetadata,
    Partition,
    StoredFile,
    UploadErrorPayload,
    UploadedFile,
)
from litspark.services.file_service import FileService, file_service
from litspark.services.filenames import MIME_TYPES, extension_of, mime_type_for
from litspark.services.metadata_service import MetadataService, metadata_service
from litspark.services.validators import FileValidator

logger = logging.getLogger(__name__)


class UploadKind(str, Enum):
    GENERAL = "general"
    IMAGE = "image"
    DOCUMENT = "document"


_KIND_LABELS = {
    UploadKind.GENERAL: "types",
    UploadKind.IMAGE: "image types",
    UploadKind.DOCUMENT: "document types",
}


class FileCheck(BaseModel):
    """Outcome of the three validators for one file; nothing short-circuits."""

    type_ok: bool
    extension_ok: bool
    size_ok: bool

    @property
    def ok(self) -> bool:
        return self.type_ok and self.extension_ok and self.size_ok

    @property
    def reasons(self) -> List[str]:
        reasons = []
        if not self.type_ok:
            reasons.append(INVALID_FILE_TYPE)
        if not self.extension_ok:
            reasons.append(INVALID_FILE_EXTENSION)
        if not self.size_ok:
            reasons.append(LIMIT_FILE_SIZE)
        return reasons


class UploadForm(BaseModel):
    """Files found under the expected field, plus the form's text fields."""

    files: List[UploadedFile]
    fields: Dict[str, str]


class UploadResult(BaseModel):
    stored: StoredFile
    metadata: AccessibilityMetadata
    declared_mime_type: Optional[str] = None


def format_megabytes(size: int) -> str:
    return f"{size / (1024 * 1024):g}MB"


class UploadGateway:
    """
    Multipart ingestion for the upload routes.

    The validators return booleans; this class is the only place that turns
    them into exceptions and user-facing messages.
    """

    def __init__(
        self,
        config: UploadConfig,
        storage: FileService,
        metadata: MetadataService,
        validator: Optional[FileValidator] = None,
    ):
        self.config = config
        self.storage = storage
        self.metadata = metadata
        self.validator = validator or FileValidator(config)

    # ── Allow-lists ───────────────────────────────────────────────────────

    def allowed_types(self, kind: UploadKind) -> Tuple[str, ...]:
        if kind == UploadKind.IMAGE:
            return self.config.allowed_image_types
        if kind == UploadKind.DOCUMENT:
            return self.config.allowed_document_types
        return self.config.allowed_file_types

    def allowed_extensions(self, kind: UploadKind) -> Tuple[str, ...]:
        """
        Extensions accepted for an upload kind.

        General uploads use ALLOWED_FILE_EXTENSIONS. Image and document uploads
        accept every extension whose MIME type is on the kind's type allow-list,
        so ".webp" is accepted exactly when "image/webp" is.
        """
        if kind == UploadKind.GENERAL:
            return self.config.allowed_file_extensions
        types = self.allowed_types(kind)
        return tuple(ext for ext, mime_type in MIME_TYPES.items() if mime_type in types)

    def max_files(self, kind: UploadKind) -> int:
        if kind == UploadKind.DOCUMENT:
            return self.config.max_documents_per_upload
        return self.config.max_files_per_upload

    def type_rejection_message(self, kind: UploadKind) -> str:
        return (
            f"File type not allowed. Allowed {_KIND_LABELS[kind]}: "
            f"{', '.join(self.allowed_types(kind))}"
        )

    def size_rejection_message(self) -> str:
        return f"File too large. Maximum size allowed is {format_megabytes(self.config.max_file_size)}"

    # ── Filtering ─────────────────────────────────────────────────────────

    def check(self, file: UploadedFile, kind: UploadKind = UploadKind.GENERAL) -> FileCheck:
        return FileCheck(
            type_ok=self.validator.is_valid_type(file, self.allowed_types(kind)),
            extension_ok=self.validator.is_valid_extension(file, self.allowed_extensions(kind)),
            size_ok=self.validator.is_valid_size(file),
        )

    def accept(self, file: UploadedFile, kind: UploadKind = UploadKind.GENERAL) -> None:
        """
        Raise a ValidationError naming every failed check, or return quietly.
        """
        result = self.check(file, kind)
        if result.ok:
            return

        messages = []
        if not result.type_ok:
            messages.append(self.type_rejection_message(kind))
        if not result.extension_ok:
            extension = extension_of(file.original_name) or "none"
            messages.append(
                f"File extension '{extension}' not allowed. "
                f"Allowed extensions: {', '.join(self.allowed_extensions(kind))}"
            )
        if not result.size_ok:
            messages.append(self.size_rejection_message())

        logger.info(
            "Rejected upload %s (%s): %s",
            file.original_name,
            file.mime_type,
            ", ".join(result.reasons),
        )
        raise ValidationError(
            message=" ".join(messages),
            field="file",
            reasons=result.reasons,
            context={
                "original_name": file.original_name,
                "mime_type": file.mime_type,
                "allowed_types": list(self.allowed_types(kind)),
                "allowed_extensions": list(self.allowed_extensions(kind)),
                "max_file_size": self.config.max_file_size,
            },
        )

    # ── Multipart ingestion ───────────────────────────────────────────────

    async def read_form(self, request: Request, field: str, max_count: int) -> UploadForm:
        """
        Parse a multipart body, enforcing field name, file count and file size.

        Raises:
            UploadLimitError with LIMIT_UNEXPECTED_FILE, LIMIT_FILE_COUNT or
            LIMIT_FILE_SIZE.
        """
        form = await request.form()
        try:
            parts: List[FormFile] = []
            fields: Dict[str, str] = {}
            for key, value in form.multi_items():
                if isinstance(value, FormFile):
                    if key != field:
                        raise UploadLimitError(
                            LIMIT_UNEXPECTED_FILE,
                            "Unexpected field name in form data",
                            field=key,
                            context={"expected_field": field},
                        )
                    parts.append(value)
                else:
                    fields[key] = value

            if len(parts) > max_count:
                raise UploadLimitError(
                    LIMIT_FILE_COUNT,
                    f"Too many files. Maximum {max_count} files allowed per upload",
                    field=field,
                    context={"max_files": max_count, "received": len(parts)},
                )

            files = [await self._read_part(part, field) for part in parts]
        finally:
            await form.close()

        return UploadForm(files=files, fields=fields)

    async def _read_part(self, part: FormFile, field: str) -> UploadedFile:
        limit = self.config.max_file_size
        # One byte past the limit is enough to know it's too large
        content = await part.read(limit + 1)
        if len(content) > limit:
            raise UploadLimitError(
                LIMIT_FILE_SIZE,
                self.size_rejection_message(),
                field=field,
                context={"original_name": part.filename, "max_file_size": limit},
            )
        return UploadedFile(
            original_name=part.filename or "",
            content=content,
            mime_type=part.content_type,
            size=len(content),
        )

    async def ingest(
        self,
        files: List[UploadedFile],
        kind: UploadKind = UploadKind.GENERAL,
        is_private: bool = False,
    ) -> List[UploadResult]:
        """
        Validate every file, then store each and extract its metadata.

        Raises:
            InvalidInputError if `files` is empty.
            ValidationError for the first rejected file (nothing is stored).
            FileStorageError if a write fails.
        """
        if not files:
            raise InvalidInputError(message="No file uploaded")

        for file in files:
            self.accept(file, kind)

        results = []
        for file in files:
            filename = await self.storage.store(file, is_private)
            metadata = await run_in_threadpool(self.metadata.extract, file)
            results.append(
                UploadResult(
                    stored=StoredFile(
                        filename=filename,
                        original_name=file.original_name,
                        partition=Partition.of(is_private),
                        size=file.size,
                        mime_type=mime_type_for(filename),
                    ),
                    metadata=metadata,
                    declared_mime_type=file.mime_type,
                )
            )
        return results

    # ── Error normalization ───────────────────────────────────────────────

    def translate_error(self, exc: BaseException) -> Optional[UploadErrorPayload]:
        """
        Map upload rejections to a user-presentable payload.

        Returns None for anything that isn't a reason-carrying ValidationError,
        leaving it to the generic error handlers.
        """
        if isinstance(exc, ValidationError) and exc.reason:
            return UploadErrorPayload(
                message=exc.message,
                reason=exc.reason,
                details=dict(exc.context),
            )
        return None


# ── Singleton Instance ────────────────────────────────────────────────────
upload_gateway = UploadGateway(upload_config, file_service, metadata_service)
