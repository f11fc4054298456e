# docvault_backend/app/routers/health.py
from __future__ import annotations

import os

from fastapi import APIRouter

from ..core.config import settings
from ..errors import PathError
from ..paths import get_document_root, resolve_dest_path

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/")
def health():
    status = {
        "document_root": "unknown",
        "upload_path": "unknown",
        "tmp_dir": "unknown",
        "validator": "on" if settings.allowed_mime_types() else "off",
        "serialize_directories": settings.SERIALIZE_DIRECTORIES,
    }

    # 1) Document root must resolve to a real directory
    try:
        get_document_root()
        status["document_root"] = "ok"
    except PathError as e:
        status["document_root"] = f"error: {e}"

    # 2) Default upload path must stay inside it
    try:
        resolve_dest_path(settings.UPLOAD_BASE_PATH)
        status["upload_path"] = "ok"
    except PathError as e:
        status["upload_path"] = f"error: {e}"

    # 3) Spool directory
    tmp_dir = settings.UPLOAD_TMP_DIR
    if os.path.isdir(tmp_dir) and os.access(tmp_dir, os.W_OK):
        status["tmp_dir"] = "ok"
    else:
        status["tmp_dir"] = f"error: {tmp_dir} is not a writable directory"

    return status
