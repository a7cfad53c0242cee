"""
LitSpark Uploads — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Reusable upload configs, storage roots and real JPEG/PNG/PDF payloads.
How:   Environment variables are set BEFORE any `litspark` import so the
       module-level singletons (settings, file_service, upload_gateway) used
       by the API tests point at a throwaway directory.

Fixture Hierarchy:
    Function-scoped:
    ├── upload_config:        UploadConfig rooted in tmp_path
    ├── storage:              FileService on that config
    ├── gateway:              UploadGateway on that config
    ├── sample_jpeg_bytes:    plain JPEG generated with Pillow
    ├── exif_jpeg_bytes:      JPEG carrying ImageDescription + XPTitle
    ├── titled_png_bytes:     PNG with tEXt Title/Keywords chunks
    ├── sample_pdf_bytes:     one-page PDF with an info dictionary
    └── test_client:          HTTPX AsyncClient over the ASGI app
"""

import os
import tempfile
from io import BytesIO

# Override settings for testing BEFORE any app imports
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="litspark_test_")
os.environ["MAX_FILE_SIZE"] = "1048576"  # 1MB keeps oversize tests cheap
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from PIL.ExifTags import Base as ExifTag
from PIL.PngImagePlugin import PngInfo
from PyPDF2 import PdfWriter

from litspark.config import UploadConfig
from litspark.services.file_service import FileService
from litspark.services.metadata_service import MetadataService
from litspark.services.upload_service import UploadGateway


@pytest.fixture
def upload_config(tmp_path):
    """Config mirroring the service defaults, plus text/plain for metadata tests."""
    return UploadConfig(
        public_dir=str(tmp_path / "uploads" / "public"),
        private_dir=str(tmp_path / "uploads" / "private"),
        max_file_size=5 * 1024 * 1024,
        max_files_per_upload=10,
        max_documents_per_upload=5,
        allowed_file_types=("image/jpeg", "image/png", "application/pdf", "text/plain"),
        allowed_file_extensions=(".jpg", ".jpeg", ".png", ".pdf", ".txt"),
    )


@pytest.fixture
def storage(upload_config):
    return FileService(upload_config)


@pytest.fixture
def gateway(upload_config, storage):
    return UploadGateway(upload_config, storage, MetadataService())


@pytest.fixture
def sample_jpeg_bytes():
    buffer = BytesIO()
    Image.new("RGB", (8, 8), "red").save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def exif_jpeg_bytes():
    """
    JPEG with an EXIF ImageDescription (ASCII) and a Windows XPTitle (UTF-16LE),
    the two fields cameras and photo managers most commonly fill in.
    """
    exif = Image.Exif()
    exif[ExifTag.ImageDescription] = "A beautiful landscape"
    exif[ExifTag.XPTitle] = "Mountain View".encode("utf-16le") + b"\x00\x00"
    buffer = BytesIO()
    Image.new("RGB", (8, 8), "green").save(buffer, format="JPEG", exif=exif)
    return buffer.getvalue()


@pytest.fixture
def titled_png_bytes():
    info = PngInfo()
    info.add_text("Title", "Company Logo")
    info.add_text("Keywords", "logo, brand")
    buffer = BytesIO()
    Image.new("RGB", (8, 8), "blue").save(buffer, format="PNG", pnginfo=info)
    return buffer.getvalue()


@pytest.fixture
def sample_pdf_bytes():
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    writer.add_metadata(
        {
            "/Title": "Important Document",
            "/Subject": "Business proposal",
            "/Keywords": "business,proposal,contract",
            "/Author": "John Doe",
        }
    )
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest_asyncio.fixture
async def test_client():
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from litspark.main import app
    from litspark.services.file_service import file_service

    # ASGITransport skips the lifespan startup hook that creates the partitions
    file_service.ensure_partitions()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
