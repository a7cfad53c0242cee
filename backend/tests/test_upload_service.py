"""
LitSpark Uploads — Upload Gateway Tests
==========================================

What:  Tests for UploadGateway filtering, ingestion and error normalization.
Why:   The gateway is the only place predicate results become rejections;
       its messages must tell the caller exactly what would be accepted.

Test Strategy:
    ✅ check() evaluates every predicate and reports every failed reason
    ✅ accept() messages enumerate the allow-list / size limit
    ✅ ingest() validates the whole batch before storing anything
    ✅ translate_error() only handles reason-carrying validation errors
"""

import pytest

from litspark.config import UploadConfig
from litspark.exceptions import (
    INVALID_FILE_EXTENSION,
    INVALID_FILE_TYPE,
    LIMIT_FILE_COUNT,
    LIMIT_FILE_SIZE,
    InvalidInputError,
    NotFoundError,
    UploadLimitError,
    ValidationError,
)
from litspark.schemas.upload import Partition, UploadedFile
from litspark.services.file_service import FileService
from litspark.services.metadata_service import MetadataService
from litspark.services.upload_service import UploadGateway, UploadKind, format_megabytes


def make_upload(name, mime_type, content=b"data", size=None):
    return UploadedFile(
        original_name=name,
        mime_type=mime_type,
        content=content,
        size=len(content) if size is None else size,
    )


class TestCheckAndAccept:
    """Filtering against the general, image and document allow-lists."""

    def setup_method(self):
        self.config = UploadConfig(
            public_dir="/tmp/litspark-unused/public",
            private_dir="/tmp/litspark-unused/private",
            allowed_file_types=("image/jpeg", "image/png", "application/pdf"),
        )
        self.gateway = UploadGateway(self.config, FileService(self.config), MetadataService())

    def test_executable_rejected_with_allow_list(self):
        """"virus.exe" (application/exe) fails and the message names all three types."""
        file = make_upload("virus.exe", "application/exe")

        result = self.gateway.check(file)
        assert result.type_ok is False
        assert not result.ok

        with pytest.raises(ValidationError) as exc_info:
            self.gateway.accept(file)

        message = exc_info.value.message
        assert "Allowed types: image/jpeg, image/png, application/pdf" in message
        assert exc_info.value.reason == INVALID_FILE_TYPE
        assert exc_info.value.context["allowed_types"] == [
            "image/jpeg",
            "image/png",
            "application/pdf",
        ]

    def test_all_failures_are_reported(self):
        file = make_upload("virus.exe", "application/exe", size=self.config.max_file_size + 1)

        result = self.gateway.check(file)

        assert result.reasons == [INVALID_FILE_TYPE, INVALID_FILE_EXTENSION, LIMIT_FILE_SIZE]
        with pytest.raises(ValidationError) as exc_info:
            self.gateway.accept(file)
        assert exc_info.value.reasons == result.reasons
        assert "File extension '.exe' not allowed" in exc_info.value.message
        assert "Maximum size allowed is 5MB" in exc_info.value.message

    def test_mismatched_extension_only(self):
        file = make_upload("photo.gif.exe", "image/jpeg")

        with pytest.raises(ValidationError) as exc_info:
            self.gateway.accept(file)

        assert exc_info.value.reasons == [INVALID_FILE_EXTENSION]

    def test_valid_file_is_accepted(self):
        assert self.gateway.accept(make_upload("photo.jpg", "image/jpeg")) is None

    def test_image_kind_uses_image_allow_list(self):
        file = make_upload("doc.pdf", "application/pdf")

        assert self.gateway.check(file, UploadKind.GENERAL).ok
        with pytest.raises(ValidationError, match="Allowed image types: image/jpeg"):
            self.gateway.accept(file, UploadKind.IMAGE)

    def test_document_kind_uses_document_allow_list(self):
        file = make_upload("photo.jpg", "image/jpeg")

        with pytest.raises(ValidationError, match="Allowed document types: application/pdf"):
            self.gateway.accept(file, UploadKind.DOCUMENT)

    def test_webp_accepted_through_image_kind(self):
        """Every type on the image allow-list can be uploaded to the images route."""
        file = make_upload("pic.webp", "image/webp")

        assert "image/webp" in self.config.allowed_image_types
        assert self.gateway.check(file, UploadKind.IMAGE).ok
        assert self.gateway.accept(file, UploadKind.IMAGE) is None

    def test_svg_accepted_through_image_kind(self):
        assert self.gateway.check(make_upload("logo.svg", "image/svg+xml"), UploadKind.IMAGE).ok

    def test_docx_accepted_through_document_kind(self):
        file = make_upload(
            "brief.docx",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        )

        assert self.gateway.check(file, UploadKind.DOCUMENT).ok

    def test_extensions_follow_kind_allow_list(self):
        assert self.gateway.allowed_extensions(UploadKind.IMAGE) == (
            ".jpg",
            ".jpeg",
            ".png",
            ".gif",
            ".webp",
            ".svg",
        )
        assert self.gateway.allowed_extensions(UploadKind.DOCUMENT) == (".pdf", ".doc", ".docx")
        assert (
            self.gateway.allowed_extensions(UploadKind.GENERAL)
            == self.config.allowed_file_extensions
        )

    def test_image_extension_rejection_lists_image_extensions(self):
        file = make_upload("photo.bmp", "image/jpeg")

        with pytest.raises(ValidationError) as exc_info:
            self.gateway.accept(file, UploadKind.IMAGE)

        assert exc_info.value.reasons == [INVALID_FILE_EXTENSION]
        assert "Allowed extensions: .jpg, .jpeg, .png, .gif, .webp, .svg" in exc_info.value.message
        assert exc_info.value.context["allowed_extensions"][-1] == ".svg"

    def test_webp_still_needs_general_type(self):
        """The general route keeps its own, narrower type allow-list."""
        result = self.gateway.check(make_upload("pic.webp", "image/webp"), UploadKind.GENERAL)

        assert result.extension_ok
        assert result.reasons == [INVALID_FILE_TYPE]

    def test_max_files_per_kind(self):
        assert self.gateway.max_files(UploadKind.GENERAL) == 10
        assert self.gateway.max_files(UploadKind.IMAGE) == 10
        assert self.gateway.max_files(UploadKind.DOCUMENT) == 5

    @pytest.mark.parametrize(
        "size, expected",
        [(5 * 1024 * 1024, "5MB"), (1024 * 1024 + 512 * 1024, "1.5MB"), (1048576, "1MB")],
    )
    def test_format_megabytes(self, size, expected):
        assert format_megabytes(size) == expected


class TestIngest:
    """Storing accepted batches."""

    @pytest.mark.asyncio
    async def test_ingest_stores_and_extracts(self, gateway, storage, sample_pdf_bytes):
        file = make_upload("Proposal.pdf", "application/pdf", content=sample_pdf_bytes)

        results = await gateway.ingest([file], UploadKind.DOCUMENT, is_private=True)

        assert len(results) == 1
        stored = results[0].stored
        assert stored.original_name == "Proposal.pdf"
        assert stored.partition == Partition.PRIVATE
        assert stored.mime_type == "application/pdf"
        assert stored.size == len(sample_pdf_bytes)
        assert results[0].metadata.title == "Important Document"
        assert results[0].declared_mime_type == "application/pdf"
        assert (storage.private_root / stored.filename).read_bytes() == sample_pdf_bytes

    @pytest.mark.asyncio
    async def test_text_file_metadata(self, gateway):
        results = await gateway.ingest([make_upload("notes.txt", "text/plain", b"hi")])

        metadata = results[0].metadata
        assert metadata.title == "Notes"
        assert metadata.description == "Text file"
        assert metadata.keywords == ["text"]
        assert metadata.alt_text == "notes"

    @pytest.mark.asyncio
    async def test_rejected_file_stores_nothing(self, gateway, storage, sample_jpeg_bytes):
        files = [
            make_upload("photo.jpg", "image/jpeg", content=sample_jpeg_bytes),
            make_upload("virus.exe", "application/exe"),
        ]

        with pytest.raises(ValidationError):
            await gateway.ingest(files)

        assert not storage.public_root.exists()

    @pytest.mark.asyncio
    async def test_empty_batch(self, gateway):
        with pytest.raises(InvalidInputError, match="No file uploaded"):
            await gateway.ingest([])


class TestTranslateError:
    """Error normalization for the HTTP layer."""

    def setup_method(self):
        config = UploadConfig(public_dir="/tmp/litspark-unused/public", private_dir="/tmp/litspark-unused/private")
        self.gateway = UploadGateway(config, FileService(config), MetadataService())

    def test_limit_error(self):
        exc = UploadLimitError(
            LIMIT_FILE_COUNT,
            "Too many files. Maximum 10 files allowed per upload",
            field="files",
            context={"max_files": 10, "received": 11},
        )

        payload = self.gateway.translate_error(exc)

        assert payload.success is False
        assert payload.reason == LIMIT_FILE_COUNT
        assert payload.message == "Too many files. Maximum 10 files allowed per upload"
        assert payload.details["max_files"] == 10
        assert payload.details["received"] == 11
        assert payload.details["reasons"] == [LIMIT_FILE_COUNT]

    def test_validation_error_uses_first_reason(self):
        exc = ValidationError(
            message="bad",
            field="file",
            reasons=[INVALID_FILE_EXTENSION, LIMIT_FILE_SIZE],
        )

        assert self.gateway.translate_error(exc).reason == INVALID_FILE_EXTENSION

    def test_validation_error_without_reason(self):
        assert self.gateway.translate_error(ValidationError(message="bad json")) is None

    def test_other_errors_pass_through(self):
        assert self.gateway.translate_error(NotFoundError(resource_id="x.jpg")) is None
        assert self.gateway.translate_error(RuntimeError("boom")) is None
