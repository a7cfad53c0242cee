"""
LitSpark Uploads — Upload Domain Types and API Schemas
=========================================================

What:  Pydantic models for the files moving through the upload pipeline and
       for the request/response contract of the upload endpoints.
Why:   One place that defines what an upload, a stored file and its
       accessibility metadata look like; FastAPI uses the response models for
       serialization and OpenAPI docs.

Two groups of models:
    Domain types (immutable, passed between services):
        UploadedFile, AccessibilityMetadata, StoredFile, RetrievedFile, FileInfo
    API contract (returned by routes):
        UploadResponse, MultiUploadResponse, DeleteResponse, FileInfoResponse,
        UploadErrorPayload, ErrorResponse, HealthResponse
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class Partition(str, Enum):
    """Storage root a file lives under. Chosen by the route, never changed."""

    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def of(cls, is_private: bool) -> "Partition":
        return cls.PRIVATE if is_private else cls.PUBLIC


# ══════════════════════════════════════════════════════════════════════════
# Domain Types
# ══════════════════════════════════════════════════════════════════════════


class UploadedFile(BaseModel):
    """
    A single file received in an upload request.

    `original_name` and `mime_type` come from the client and are untrusted:
    the name is only ever used after sanitization and the MIME type only as
    an advisory filter input. The payload is either in memory (`content`)
    or spooled to disk (`path`).
    """

    original_name: str
    content: Optional[bytes] = None
    path: Optional[str] = None
    mime_type: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)
    is_private: bool = False

    model_config = {"frozen": True}

    def read_bytes(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.path:
            return Path(self.path).read_bytes()
        return b""


class AccessibilityMetadata(BaseModel):
    """Descriptive text for assistive technology, derived once at upload time."""

    title: str = Field(description="Human-readable title")
    description: str = Field(default="", description="Short description or subject")
    keywords: List[str] = Field(default_factory=list, description="Ordered keywords")
    alt_text: Optional[str] = Field(default=None, description="Alternative text for images")
    author: Optional[str] = Field(default=None, description="Document author, if known")

    model_config = {"frozen": True}


class StoredFile(BaseModel):
    """Result of a successful store: where the bytes went and what they are."""

    filename: str = Field(description="Collision-resistant stored filename")
    original_name: str = Field(description="Filename as supplied by the client")
    partition: Partition
    size: int
    mime_type: str = Field(description="MIME type derived from the stored extension")

    model_config = {"frozen": True}


class RetrievedFile(BaseModel):
    data: bytes
    filename: str
    mime_type: str
    size: int
    is_private: bool


class FileInfo(BaseModel):
    """
    What:  Filesystem facts about a stored file.
    Who:   Returned by GET /api/uploads/{filename}/info.
    """

    filename: str
    size: int = Field(description="Size in bytes")
    extension: str = Field(description="Extension without the leading dot")
    mime_type: str
    created_at: datetime
    modified_at: datetime
    partition: Partition
    is_private: bool


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UploadedFileResponse(BaseModel):
    original_name: str
    filename: str
    size: int
    mime_type: Optional[str] = Field(
        default=None, description="MIME type declared by the client"
    )
    is_private: bool
    uploaded_at: datetime
    alt_text: str = Field(description="Provided alt text, or one generated from the filename")
    metadata: AccessibilityMetadata


class AccessibilitySummary(BaseModel):
    alt_text_provided: bool
    description_provided: bool
    generated_alt_text: bool


class MultiAccessibilitySummary(BaseModel):
    alt_texts_provided: bool
    descriptions_provided: bool
    missing_alt_texts: int


class UploadResponse(BaseModel):
    """
    What:  Response after a single-file upload.
    Who:   Returned by POST /api/uploads and POST /api/uploads/private (HTTP 201).
    """

    success: bool = True
    message: str = "File uploaded successfully"
    file: UploadedFileResponse
    accessibility: AccessibilitySummary


class MultiUploadResponse(BaseModel):
    """
    What:  Response after a multi-file upload.
    Who:   Returned by POST /api/uploads/{multiple,images,documents} (HTTP 201).
    """

    success: bool = True
    message: str = "Files uploaded successfully"
    files: List[UploadedFileResponse]
    count: int
    accessibility: MultiAccessibilitySummary


class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "File deleted successfully"
    filename: str


class FileInfoResponse(BaseModel):
    success: bool = True
    file: FileInfo


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models
# ══════════════════════════════════════════════════════════════════════════


class UploadErrorPayload(BaseModel):
    """
    What:  User-presentable description of a rejected upload.
    Why:   `reason` is stable and machine-checkable (LIMIT_FILE_SIZE,
           LIMIT_FILE_COUNT, LIMIT_UNEXPECTED_FILE, INVALID_FILE_TYPE, ...);
           `message` is for humans and lists what would have been accepted.
    """

    success: bool = False
    message: str
    reason: str
    details: dict = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "success": false,
            "error": "not_found",
            "message": "File 'report-1a2b3c4d.pdf' not found",
            "request_id": "a1b2c3d4"
        }
    """

    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    reason: Optional[str] = Field(default=None, description="Machine-checkable rejection reason")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    public_storage: str = Field(description="Public partition: writable, unavailable")
    private_storage: str = Field(description="Private partition: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
