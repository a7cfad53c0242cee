"""
LitSpark Uploads — Services Layer
====================================

Business logic between the routes (HTTP) and the filesystem.

Service Inventory:
    - filenames:        sanitization, MIME lookup, alt-text helpers (pure functions)
    - FileValidator:    MIME type, extension and size predicates
    - MetadataService:  accessibility metadata from EXIF / PDF info / filename
    - FileService:      public/private partition storage
    - UploadGateway:    multipart ingestion composing the services above
"""
