from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field


# =========================
# Uploads
# =========================
class UploadOut(BaseModel):
    # path relative to the document root, usable as a URL path
    path: str
    original_filename: str


class BatchUploadOut(BaseModel):
    # slot index (as sent by the client) -> public path
    paths: Dict[str, str]


class OwnedFilesOut(BaseModel):
    files: List[str]


# =========================
# Deletes
# =========================
class DeleteRequest(BaseModel):
    paths: List[str] = Field(..., min_length=1)


class DeleteOut(BaseModel):
    deleted: bool = True
