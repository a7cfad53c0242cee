"""
LitSpark Uploads — Accessibility Metadata Service
====================================================

What:  Derives title, description, keywords, alt text and author for an upload.
Why:   Uploaded images and documents need descriptive text for assistive
       technology; most files already carry some of it (EXIF, PDF info dict).
How:   Two stages:
           read_native(file) -> Optional[RawMetadata]
               Pillow for images, PyPDF2 for PDFs. Returns None when the
               payload can't be parsed or carries no descriptive fields.
           normalize(raw, file) -> AccessibilityMetadata
               Pure mapping with filename-based defaults for everything missing.
Who:   Called by the upload gateway for every accepted file.

Failure model:
    Metadata is advisory. A corrupt EXIF block or an encrypted PDF must never
    fail an upload, so readers log and return None, and `normalize` always
    produces a complete result from the filename alone:

        notes.txt (text/plain) → title="Notes", description="Text file",
                                 keywords=["text"], alt_text="notes"
"""

import logging
import re
from io import BytesIO
from typing import List, Optional

from PIL import Image
from PIL.ExifTags import Base as ExifTag
from PyPDF2 import PdfReader
from pydantic import BaseModel

from litspark.schemas.upload import AccessibilityMetadata, UploadedFile
from litspark.services.filenames import capitalize_first, generate_alt_text, stem_of

logger = logging.getLogger(__name__)

_KEYWORD_SEPARATORS = re.compile(r"[,;]")

# PNG tEXt/iTXt chunk names surfaced by Pillow in Image.info
_PNG_TITLE = "Title"
_PNG_DESCRIPTION = "Description"
_PNG_SUBJECT = "Subject"
_PNG_KEYWORDS = "Keywords"
_PNG_AUTHOR = "Author"


class RawMetadata(BaseModel):
    """Descriptive fields exactly as found in the file, before any defaults."""

    kind: str  # "image" or "pdf"
    title: Optional[str] = None
    subject: Optional[str] = None
    keywords: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(
            (self.title, self.subject, self.keywords, self.description, self.author)
        )


def split_keywords(value: Optional[str]) -> List[str]:
    """Split "mountains, landscape;nature" into ["mountains", "landscape", "nature"]."""
    if not value:
        return []
    return [word.strip() for word in _KEYWORD_SEPARATORS.split(value) if word.strip()]


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).replace("\x00", "").strip()
    return text or None


def _exif_text(value: object, utf16: bool = False) -> Optional[str]:
    """
    Decode an EXIF value to text.

    Windows XP* tags are UTF-16LE byte strings (sometimes surfaced as a tuple
    of ints); ASCII tags already come back as str.
    """
    if isinstance(value, tuple):
        value = bytes(value)
    if isinstance(value, bytes):
        value = value.decode("utf-16le" if utf16 else "utf-8", errors="ignore")
    return _clean(value)


def _info_text(info: dict, key: str) -> Optional[str]:
    value = info.get(key)
    return _clean(value) if isinstance(value, str) else None


def read_image_metadata(payload: bytes) -> Optional[RawMetadata]:
    try:
        with Image.open(BytesIO(payload)) as image:
            exif = image.getexif()
            info = dict(image.info)
    except Exception as e:
        logger.warning("Could not read image metadata: %s", str(e))
        return None

    raw = RawMetadata(
        kind="image",
        title=_exif_text(exif.get(ExifTag.XPTitle), utf16=True) or _info_text(info, _PNG_TITLE),
        subject=_exif_text(exif.get(ExifTag.XPSubject), utf16=True)
        or _info_text(info, _PNG_SUBJECT),
        keywords=_exif_text(exif.get(ExifTag.XPKeywords), utf16=True)
        or _info_text(info, _PNG_KEYWORDS),
        description=_exif_text(exif.get(ExifTag.ImageDescription))
        or _info_text(info, _PNG_DESCRIPTION),
        author=_exif_text(exif.get(ExifTag.Artist))
        or _exif_text(exif.get(ExifTag.XPAuthor), utf16=True)
        or _info_text(info, _PNG_AUTHOR),
    )
    return None if raw.is_empty() else raw


def _pdf_text(info, key: str) -> Optional[str]:
    value = info.get(key)
    if value is not None and hasattr(value, "get_object"):
        value = value.get_object()
    return _clean(value)


def read_pdf_metadata(payload: bytes) -> Optional[RawMetadata]:
    try:
        info = PdfReader(BytesIO(payload)).metadata
    except Exception as e:
        logger.warning("Could not read PDF metadata: %s", str(e))
        return None
    if not info:
        return None

    raw = RawMetadata(
        kind="pdf",
        title=_pdf_text(info, "/Title"),
        subject=_pdf_text(info, "/Subject"),
        keywords=_pdf_text(info, "/Keywords"),
        author=_pdf_text(info, "/Author"),
    )
    return None if raw.is_empty() else raw


class MetadataService:
    """
    Accessibility metadata extraction.

    Stateless: every call is a pure function of the UploadedFile, so one
    instance is shared by all concurrent requests.
    """

    def extract(self, file: Optional[UploadedFile]) -> AccessibilityMetadata:
        if file is None:
            return AccessibilityMetadata(title="", description="", keywords=[], alt_text="")
        return self.normalize(self.read_native(file), file)

    def read_native(self, file: UploadedFile) -> Optional[RawMetadata]:
        mime_type = (file.mime_type or "").lower()
        if not (mime_type.startswith("image/") or mime_type == "application/pdf"):
            return None
        try:
            payload = file.read_bytes()
        except OSError as e:
            logger.warning("Could not read upload payload for %s: %s", file.original_name, str(e))
            return None
        if mime_type == "application/pdf":
            return read_pdf_metadata(payload)
        return read_image_metadata(payload)

    def normalize(
        self, raw: Optional[RawMetadata], file: UploadedFile
    ) -> AccessibilityMetadata:
        name = file.original_name or ""
        default_title = capitalize_first(stem_of(name))

        if raw is not None and raw.kind == "image":
            return AccessibilityMetadata(
                title=raw.title or default_title,
                description=raw.subject or "",
                keywords=split_keywords(raw.keywords),
                alt_text=raw.description or generate_alt_text(name),
                author=raw.author,
            )

        if raw is not None and raw.kind == "pdf":
            return AccessibilityMetadata(
                title=raw.title or default_title,
                description=raw.subject or "",
                keywords=split_keywords(raw.keywords),
                author=raw.author or "",
            )

        # Default path: other types, or nothing usable found in the file.
        # A declared type with no top-level part ("/x") counts as unknown.
        file_type = (file.mime_type or "").split("/")[0].strip().lower() or "unknown"
        return AccessibilityMetadata(
            title=default_title,
            description="File" if file_type == "unknown" else f"{capitalize_first(file_type)} file",
            keywords=[file_type],
            alt_text=generate_alt_text(name),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
metadata_service = MetadataService()
