"""
LitSpark Uploads — Application Package
=========================================

File upload API for the LitSpark agency platform: validation against
allow-lists, public/private partitioned storage, and accessibility metadata
for every uploaded file.

Layers:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, storage, metadata
    ├─────────────────────────────────────┤
    │        Schemas (Pydantic models)    │  ← domain types + API contract
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
