"""
LitSpark Uploads — Filename Helpers
======================================

What:  Pure string helpers for filenames: sanitization, extension splitting,
       MIME lookup by extension, and human-readable alt text.
Why:   Every path the storage engine touches is built from `sanitize_filename`
       output, so this module is where path traversal and name injection stop.

Sanitization rules:
    "../../etc/My Photo (1).JPG"
        1. keep only the final path segment     → "My Photo (1).JPG"
        2. split stem / extension at the last dot → "My Photo (1)", ".JPG"
        3. stem: drop chars outside [A-Za-z0-9 whitespace . -], whitespace runs
           and dot runs become "-", lower-case     → "my-photo-1"
        4. extension: lower-case, keep [a-z0-9]   → ".jpg"
                                                   = "my-photo-1.jpg"

    The output only contains [a-z0-9-] plus the single extension dot, so
    sanitizing an already sanitized name returns it unchanged. Stored
    filenames are sanitized names, which lets the storage engine run every
    caller-supplied filename back through the sanitizer safely.
"""

import os
import re
from typing import Dict, Tuple

_PATH_SEPARATORS = re.compile(r"[\\/]")
_DISALLOWED_STEM_CHARS = re.compile(r"[^A-Za-z0-9\s.-]")
_WHITESPACE_RUN = re.compile(r"\s+")
_DOT_RUN = re.compile(r"\.+")
_DISALLOWED_EXTENSION_CHARS = re.compile(r"[^a-z0-9]")
_WORD_SEPARATORS = re.compile(r"[_-]")
_UPPERCASE_LETTER = re.compile(r"([A-Z])")

DEFAULT_MIME_TYPE = "application/octet-stream"

# Extension → MIME type. Used for anything read back from storage; the
# client-declared type is never persisted.
MIME_TYPES: Dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".html": "text/html",
    ".htm": "text/html",
    ".json": "application/json",
    ".xml": "application/xml",
    ".zip": "application/zip",
    ".rar": "application/x-rar-compressed",
    ".mp3": "audio/mpeg",
    ".mp4": "video/mp4",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
}


def last_segment(filename: str) -> str:
    """Final path component, treating both / and \\ as separators."""
    return _PATH_SEPARATORS.split(filename)[-1]


def split_extension(name: str) -> Tuple[str, str]:
    """
    Split at the last dot: "a.b.jpg" → ("a.b", ".jpg"), "notes" → ("notes", "").

    Unlike os.path.splitext a leading dot starts an extension too
    (".jpg" → ("", ".jpg")), which keeps `sanitize_filename` idempotent.
    """
    index = name.rfind(".")
    if index == -1:
        return name, ""
    return name[:index], name[index:]


def sanitize_filename(original: str) -> str:
    """
    Normalize an untrusted filename into a safe storage-name fragment.

    Never raises. Returns "" for empty input (callers treat that as invalid).
    """
    if not original:
        return ""

    stem, extension = split_extension(last_segment(original))

    stem = _DISALLOWED_STEM_CHARS.sub("", stem)
    stem = _WHITESPACE_RUN.sub("-", stem)
    stem = _DOT_RUN.sub("-", stem)
    stem = stem.lower()

    extension = _DISALLOWED_EXTENSION_CHARS.sub("", extension[1:].lower())

    return f"{stem}.{extension}" if extension else stem


def extension_of(filename: str) -> str:
    """Lower-cased extension with its dot ("" if none), dotfiles have none."""
    return os.path.splitext(last_segment(filename or ""))[1].lower()


def stem_of(filename: str) -> str:
    return os.path.splitext(last_segment(filename or ""))[0]


def mime_type_for(filename: str) -> str:
    return MIME_TYPES.get(extension_of(filename), DEFAULT_MIME_TYPE)


def capitalize_first(text: str) -> str:
    """Upper-case the first character only ("my photo" → "My photo")."""
    return text[:1].upper() + text[1:]


def generate_alt_text(filename: str, description: str = "") -> str:
    """
    Alt text for an upload.

    A non-blank description wins. Otherwise the filename stem is humanized:
    "sunsetOver_the-bay.jpg" → "sunset over the bay". An empty result
    becomes "Image" so the alt attribute is never blank.
    """
    if description and description.strip():
        return description.strip()

    words = _WORD_SEPARATORS.sub(" ", stem_of(filename))
    words = _UPPERCASE_LETTER.sub(r" \1", words)
    words = " ".join(words.split()).lower()
    return words or "Image"
