"""
LitSpark Uploads — File Validators
=====================================

What:  Three independent, side-effect-free predicates over an UploadedFile:
       MIME type allow-list, extension allow-list, size ceiling.
Why:   Kept as plain booleans so the upload gateway can evaluate all three,
       report every failure at once, and decide how to surface them.

None of these inspect file content. The declared MIME type is advisory; the
extension and size checks are what actually bound what reaches storage.
"""

from typing import Iterable, Optional

from litspark.config import UploadConfig
from litspark.schemas.upload import UploadedFile
from litspark.services.filenames import extension_of


class FileValidator:
    """Allow-list and size checks parameterized by an UploadConfig."""

    def __init__(self, config: UploadConfig):
        self.config = config

    def is_valid_type(
        self,
        file: Optional[UploadedFile],
        allowed_types: Optional[Iterable[str]] = None,
    ) -> bool:
        """
        True iff the declared MIME type is present and allow-listed.

        `allowed_types` narrows the check to the image or document lists;
        it defaults to the general file-type allow-list.
        """
        if file is None or not file.mime_type:
            return False
        allowed = (
            self.config.allowed_file_types if allowed_types is None else tuple(allowed_types)
        )
        return file.mime_type in allowed

    def is_valid_extension(
        self,
        file: Optional[UploadedFile],
        allowed_extensions: Optional[Iterable[str]] = None,
    ) -> bool:
        """
        True iff the lower-cased final extension is allow-listed.

        `allowed_extensions` defaults to the general extension allow-list.
        """
        if file is None or not file.original_name:
            return False
        allowed = (
            self.config.allowed_file_extensions
            if allowed_extensions is None
            else tuple(allowed_extensions)
        )
        return extension_of(file.original_name) in allowed

    def is_valid_size(self, file: Optional[UploadedFile]) -> bool:
        """True iff the size is known, non-negative and within the configured maximum."""
        if file is None or file.size is None:
            return False
        return 0 <= file.size <= self.config.max_file_size
