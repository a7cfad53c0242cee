"""
LitSpark Uploads — Upload Route Handlers
===========================================

What:  HTTP endpoints for uploading, downloading, inspecting and deleting files.
Why:   Entry point for the upload pipeline; each route picks a form field,
       an upload kind (allow-list) and a partition, then delegates.
How:   Multipart bodies go through `upload_gateway`; stored files are served
       and managed through `file_service`.

Route Inventory:
    POST   /api/uploads                        field "file",      general,  public
    POST   /api/uploads/multiple               field "files",     general,  public
    POST   /api/uploads/images                 field "images",    images,   public
    POST   /api/uploads/documents              field "documents", documents, private
    POST   /api/uploads/private                field "file",      general,  private
    GET    /api/uploads/{filename}             download (public)
    GET    /api/uploads/{filename}/info        file information (public)
    DELETE /api/uploads/{filename}             delete (public)
    ...and the same three under /api/uploads/private/{filename}

Access control for the private routes is enforced in front of this service.

Accessibility fields (multipart text fields):
    alt_text, description          single-file uploads
    alt_texts, descriptions        multi-file uploads, JSON object keyed by
                                   file index ("0", "1", ...) or original name
"""

import json
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response

from litspark.exceptions import InvalidInputError, ValidationError
from litspark.schemas.upload import (
    AccessibilitySummary,
    DeleteResponse,
    ErrorResponse,
    FileInfoResponse,
    MultiAccessibilitySummary,
    MultiUploadResponse,
    UploadedFileResponse,
    UploadResponse,
)
from litspark.services.file_service import file_service
from litspark.services.filenames import generate_alt_text
from litspark.services.upload_service import UploadKind, UploadResult, upload_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Uploads"])

_ERROR_RESPONSES = {
    400: {"description": "Rejected upload or invalid input", "model": ErrorResponse},
    500: {"description": "Storage failure", "model": ErrorResponse},
}
_NOT_FOUND = {404: {"description": "File not found", "model": ErrorResponse}}


def _parse_mapping(raw: Optional[str], field: str) -> Dict[str, str]:
    """
    Parse a JSON object (or array) of per-file texts into a str-keyed dict.

    Raises:
        ValidationError if the value is not valid JSON of the right shape.
    """
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(
            message=f"'{field}' must be a JSON object keyed by file index or filename",
            field=field,
        ) from e
    if isinstance(value, list):
        value = dict(enumerate(value))
    if not isinstance(value, dict):
        raise ValidationError(
            message=f"'{field}' must be a JSON object keyed by file index or filename",
            field=field,
        )
    return {str(key): str(text) for key, text in value.items() if text}


def _file_response(
    result: UploadResult, alt_text: str, description: str, is_private: bool
) -> UploadedFileResponse:
    stored = result.stored
    # Provided alt text, then the caller's description, then what the file carried
    resolved_alt_text = (
        alt_text
        or (description and generate_alt_text(stored.original_name, description))
        or result.metadata.alt_text
        or generate_alt_text(stored.original_name)
    )
    return UploadedFileResponse(
        original_name=stored.original_name,
        filename=stored.filename,
        size=stored.size,
        mime_type=result.declared_mime_type,
        is_private=is_private,
        uploaded_at=datetime.now(timezone.utc),
        alt_text=resolved_alt_text,
        metadata=result.metadata,
    )


async def _single_upload(request: Request, is_private: bool) -> UploadResponse:
    form = await upload_gateway.read_form(request, "file", max_count=1)
    if not form.files:
        raise InvalidInputError(message="No file uploaded")

    results = await upload_gateway.ingest(form.files, UploadKind.GENERAL, is_private)

    alt_text = form.fields.get("alt_text", "").strip()
    description = form.fields.get("description", "").strip()
    return UploadResponse(
        file=_file_response(results[0], alt_text, description, is_private),
        accessibility=AccessibilitySummary(
            alt_text_provided=bool(alt_text),
            description_provided=bool(description),
            generated_alt_text=not alt_text and not description,
        ),
    )


async def _multi_upload(
    request: Request, field: str, kind: UploadKind, is_private: bool
) -> MultiUploadResponse:
    form = await upload_gateway.read_form(request, field, upload_gateway.max_files(kind))
    if not form.files:
        raise InvalidInputError(message="No files uploaded")

    # Parsed before storing so a malformed field doesn't leave files behind
    descriptions = _parse_mapping(form.fields.get("descriptions"), "descriptions")
    alt_texts = _parse_mapping(form.fields.get("alt_texts"), "alt_texts")

    results = await upload_gateway.ingest(form.files, kind, is_private)

    files: List[UploadedFileResponse] = []
    for index, result in enumerate(results):
        name = result.stored.original_name
        description = descriptions.get(str(index)) or descriptions.get(name) or ""
        alt_text = alt_texts.get(str(index)) or alt_texts.get(name) or ""
        files.append(_file_response(result, alt_text, description, is_private))

    logger.info("Stored %d files from field '%s' (%s)", len(files), field, kind.value)
    return MultiUploadResponse(
        files=files,
        count=len(files),
        accessibility=MultiAccessibilitySummary(
            alt_texts_provided=bool(alt_texts),
            descriptions_provided=bool(descriptions),
            missing_alt_texts=sum(1 for f in files if not f.alt_text),
        ),
    )


# ══════════════════════════════════════════════════════════════════════════
# Uploads
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "/uploads",
    status_code=201,
    response_model=UploadResponse,
    responses=_ERROR_RESPONSES,
    summary="Upload a single public file",
)
async def upload_file(request: Request) -> UploadResponse:
    return await _single_upload(request, is_private=False)


@router.post(
    "/uploads/multiple",
    status_code=201,
    response_model=MultiUploadResponse,
    responses=_ERROR_RESPONSES,
    summary="Upload several public files",
)
async def upload_multiple_files(request: Request) -> MultiUploadResponse:
    return await _multi_upload(request, "files", UploadKind.GENERAL, is_private=False)


@router.post(
    "/uploads/images",
    status_code=201,
    response_model=MultiUploadResponse,
    responses=_ERROR_RESPONSES,
    summary="Upload images",
)
async def upload_images(request: Request) -> MultiUploadResponse:
    return await _multi_upload(request, "images", UploadKind.IMAGE, is_private=False)


@router.post(
    "/uploads/documents",
    status_code=201,
    response_model=MultiUploadResponse,
    responses=_ERROR_RESPONSES,
    summary="Upload documents (stored privately)",
)
async def upload_documents(request: Request) -> MultiUploadResponse:
    return await _multi_upload(request, "documents", UploadKind.DOCUMENT, is_private=True)


@router.post(
    "/uploads/private",
    status_code=201,
    response_model=UploadResponse,
    responses=_ERROR_RESPONSES,
    summary="Upload a single private file",
)
async def upload_private_file(request: Request) -> UploadResponse:
    return await _single_upload(request, is_private=True)


# ══════════════════════════════════════════════════════════════════════════
# Stored files
# Private routes are declared first so "private" is never read as a filename.
# ══════════════════════════════════════════════════════════════════════════


async def _download(filename: str, is_private: bool) -> Response:
    stored = await file_service.retrieve(filename, is_private)
    return Response(
        content=stored.data,
        media_type=stored.mime_type,
        headers={"Content-Disposition": f'inline; filename="{stored.filename}"'},
    )


@router.get("/uploads/private/{filename}/info", response_model=FileInfoResponse, responses=_NOT_FOUND)
async def get_private_file_info(filename: str) -> FileInfoResponse:
    return FileInfoResponse(file=await file_service.describe(filename, is_private=True))


@router.get("/uploads/private/{filename}", responses=_NOT_FOUND)
async def download_private_file(filename: str) -> Response:
    return await _download(filename, is_private=True)


@router.delete("/uploads/private/{filename}", response_model=DeleteResponse, responses=_NOT_FOUND)
async def delete_private_file(filename: str) -> DeleteResponse:
    await file_service.remove(filename, is_private=True)
    return DeleteResponse(filename=filename)


@router.get("/uploads/{filename}/info", response_model=FileInfoResponse, responses=_NOT_FOUND)
async def get_file_info(filename: str) -> FileInfoResponse:
    return FileInfoResponse(file=await file_service.describe(filename, is_private=False))


@router.get("/uploads/{filename}", responses=_NOT_FOUND)
async def download_file(filename: str) -> Response:
    return await _download(filename, is_private=False)


@router.delete("/uploads/{filename}", response_model=DeleteResponse, responses=_NOT_FOUND)
async def delete_file(filename: str) -> DeleteResponse:
    await file_service.remove(filename, is_private=False)
    return DeleteResponse(filename=filename)
