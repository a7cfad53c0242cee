"""
LitSpark Uploads — Accessibility Metadata Tests
==================================================

What:  Tests for MetadataService.extract, its native readers and the
       filename-based defaults.
Why:   Metadata is advisory: extraction must always return a complete
       AccessibilityMetadata, whatever the payload looks like.
How:   Real JPEG/PNG/PDF payloads are generated with Pillow and PyPDF2 in
       conftest.py; failure paths use corrupt bytes or patched readers.

Test Strategy:
    ✅ EXIF (ImageDescription + XPTitle) and PNG text chunks
    ✅ PDF info dictionary (title, subject, keywords, author)
    ✅ Default path for text and unknown types
    ✅ Corrupt payloads and exploding parsers degrade to defaults
"""

from unittest.mock import patch

import pytest

from litspark.schemas.upload import AccessibilityMetadata, UploadedFile
from litspark.services.metadata_service import (
    MetadataService,
    RawMetadata,
    read_image_metadata,
    read_pdf_metadata,
    split_keywords,
)


def make_upload(name, mime_type, content=b"") -> UploadedFile:
    return UploadedFile(original_name=name, mime_type=mime_type, content=content, size=len(content))


class TestDefaultMetadata:
    """Files with no readable embedded metadata."""

    def setup_method(self):
        self.service = MetadataService()

    def test_text_file(self):
        metadata = self.service.extract(make_upload("notes.txt", "text/plain", b"hello"))

        assert metadata == AccessibilityMetadata(
            title="Notes",
            description="Text file",
            keywords=["text"],
            alt_text="notes",
        )

    def test_unknown_type(self):
        metadata = self.service.extract(make_upload("blob.bin", None, b"\x00\x01"))

        assert metadata.title == "Blob"
        assert metadata.description == "File"
        assert metadata.keywords == ["unknown"]
        assert metadata.alt_text == "blob"

    @pytest.mark.parametrize("mime_type", ["/x", " /plain", "", "  "])
    def test_malformed_type_counts_as_unknown(self, mime_type):
        metadata = self.service.extract(make_upload("blob.bin", mime_type, b"\x00"))

        assert metadata.description == "File"
        assert metadata.keywords == ["unknown"]

    def test_video_file(self):
        metadata = self.service.extract(make_upload("holidayClip.mp4", "video/mp4", b"..."))

        assert metadata.title == "HolidayClip"
        assert metadata.description == "Video file"
        assert metadata.keywords == ["video"]
        assert metadata.alt_text == "holiday clip"

    def test_no_file(self):
        metadata = self.service.extract(None)

        assert metadata.title == ""
        assert metadata.description == ""
        assert metadata.keywords == []
        assert metadata.alt_text == ""

    def test_image_without_metadata_uses_defaults(self, sample_jpeg_bytes):
        metadata = self.service.extract(make_upload("beach_day.jpg", "image/jpeg", sample_jpeg_bytes))

        assert metadata.title == "Beach_day"
        assert metadata.description == "Image file"
        assert metadata.keywords == ["image"]
        assert metadata.alt_text == "beach day"

    def test_payload_on_disk(self, tmp_path, sample_pdf_bytes):
        """Spooled uploads are read from their path."""
        spooled = tmp_path / "upload.tmp"
        spooled.write_bytes(sample_pdf_bytes)
        file = UploadedFile(
            original_name="proposal.pdf",
            mime_type="application/pdf",
            path=str(spooled),
            size=len(sample_pdf_bytes),
        )

        assert self.service.extract(file).title == "Important Document"


class TestImageMetadata:
    """EXIF and PNG text chunks."""

    def setup_method(self):
        self.service = MetadataService()

    def test_exif_description_and_title(self, exif_jpeg_bytes):
        metadata = self.service.extract(make_upload("IMG_0001.jpg", "image/jpeg", exif_jpeg_bytes))

        assert metadata.title == "Mountain View"
        assert metadata.alt_text == "A beautiful landscape"
        assert metadata.description == ""
        assert metadata.keywords == []

    def test_png_text_chunks(self, titled_png_bytes):
        metadata = self.service.extract(make_upload("company_logo.png", "image/png", titled_png_bytes))

        assert metadata.title == "Company Logo"
        assert metadata.keywords == ["logo", "brand"]
        assert metadata.alt_text == "company logo"

    def test_reader_returns_none_without_fields(self, sample_jpeg_bytes):
        assert read_image_metadata(sample_jpeg_bytes) is None

    def test_full_mapping(self):
        """subject → description, description → alt text, keywords split in order."""
        raw = RawMetadata(
            kind="image",
            title="Sunset",
            subject="Evening sky",
            keywords="mountains, landscape;nature",
            description="Orange sky over hills",
            author="Jane",
        )
        file = make_upload("sunset.jpg", "image/jpeg")

        with patch.object(self.service, "read_native", return_value=raw):
            metadata = self.service.extract(file)

        assert metadata.title == "Sunset"
        assert metadata.description == "Evening sky"
        assert metadata.keywords == ["mountains", "landscape", "nature"]
        assert metadata.alt_text == "Orange sky over hills"
        assert metadata.author == "Jane"

    def test_missing_title_uses_capitalized_stem(self):
        raw = RawMetadata(kind="image", keywords="a,b")
        file = make_upload("sunset.jpg", "image/jpeg")

        with patch.object(self.service, "read_native", return_value=raw):
            metadata = self.service.extract(file)

        assert metadata.title == "Sunset"
        assert metadata.alt_text == "sunset"


class TestPdfMetadata:
    """PDF document information dictionary."""

    def setup_method(self):
        self.service = MetadataService()

    def test_info_dictionary(self, sample_pdf_bytes):
        metadata = self.service.extract(make_upload("proposal.pdf", "application/pdf", sample_pdf_bytes))

        assert metadata.title == "Important Document"
        assert metadata.description == "Business proposal"
        assert metadata.keywords == ["business", "proposal", "contract"]
        assert metadata.author == "John Doe"
        assert metadata.alt_text is None

    def test_reader_fields(self, sample_pdf_bytes):
        raw = read_pdf_metadata(sample_pdf_bytes)

        assert raw is not None
        assert raw.kind == "pdf"
        assert raw.keywords == "business,proposal,contract"


class TestExtractionFailures:
    """extract() degrades to the default path instead of raising."""

    def setup_method(self):
        self.service = MetadataService()

    def test_corrupt_image(self):
        metadata = self.service.extract(make_upload("broken.jpg", "image/jpeg", b"not an image"))

        assert metadata.title == "Broken"
        assert metadata.description == "Image file"
        assert metadata.keywords == ["image"]
        assert metadata.alt_text == "broken"

    def test_corrupt_pdf(self):
        metadata = self.service.extract(make_upload("broken.pdf", "application/pdf", b"%PDF-garbage"))

        assert metadata.title == "Broken"
        assert metadata.description == "Application file"
        assert metadata.keywords == ["application"]

    def test_image_parser_exception(self, exif_jpeg_bytes):
        with patch("litspark.services.metadata_service.Image.open", side_effect=RuntimeError("boom")):
            metadata = self.service.extract(make_upload("photo.jpg", "image/jpeg", exif_jpeg_bytes))

        assert metadata.description == "Image file"
        assert metadata.alt_text == "photo"

    def test_pdf_parser_exception(self, sample_pdf_bytes):
        with patch("litspark.services.metadata_service.PdfReader", side_effect=ValueError("encrypted")):
            metadata = self.service.extract(make_upload("report.pdf", "application/pdf", sample_pdf_bytes))

        assert metadata.title == "Report"
        assert metadata.keywords == ["application"]

    def test_unreadable_spooled_payload(self, tmp_path):
        file = UploadedFile(
            original_name="gone.png",
            mime_type="image/png",
            path=str(tmp_path / "missing.tmp"),
            size=10,
        )

        metadata = self.service.extract(file)

        assert metadata.title == "Gone"
        assert metadata.description == "Image file"


class TestSplitKeywords:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("mountains, landscape;nature", ["mountains", "landscape", "nature"]),
            (" a ,, b ;", ["a", "b"]),
            ("", []),
            (None, []),
        ],
    )
    def test_split(self, value, expected):
        assert split_keywords(value) == expected
