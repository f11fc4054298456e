"""Upload descriptors.

An ``UploadDescriptor`` is the raw record the upload mechanism hands over for
one file slot: client filename, claimed MIME type, where the bytes were
spooled, the platform error code and the size.  Everything in here is a
boundary adapter; the engine itself only ever sees descriptors.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Mapping

from fastapi import UploadFile

logger = logging.getLogger("docvault.descriptors")

_CHUNK_SIZE = 1024 * 1024


class UploadErrorCode(IntEnum):
    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8


@dataclass(frozen=True)
class UploadDescriptor:
    name: str
    type: str
    tmp_name: str
    error: int
    size: int


def descriptor_from_field(field: Mapping[str, Any]) -> UploadDescriptor:
    """Build a descriptor from a single-file upload field."""
    return UploadDescriptor(
        name=field["name"],
        type=field["type"],
        tmp_name=field["tmp_name"],
        error=int(field["error"]),
        size=int(field["size"]),
    )


def descriptors_from_field(field: Mapping[str, Any]) -> Dict[Any, UploadDescriptor]:
    """Normalize a multi-file upload field into one descriptor per slot.

    Multi-file fields arrive as parallel collections, e.g.
    ``{"name": ["a.txt", "b.txt"], "type": [...], "tmp_name": [...], ...}``.
    Each collection may be a list (slots keyed by index) or a mapping
    (slots keyed by the client-supplied key).  The result preserves slot order.
    """
    names = field["name"]
    if isinstance(names, Mapping):
        keys = list(names.keys())
    elif isinstance(names, (list, tuple)):
        keys = list(range(len(names)))
    else:
        raise ValueError("The upload field does not contain multiple files.")

    files: Dict[Any, UploadDescriptor] = {}
    for key in keys:
        files[key] = UploadDescriptor(
            name=names[key],
            type=field["type"][key],
            tmp_name=field["tmp_name"][key],
            error=int(field["error"][key]),
            size=int(field["size"][key]),
        )
    return files


def descriptor_from_upload(upload: UploadFile, tmp_dir: str, max_size: int) -> UploadDescriptor:
    """Spool a FastAPI ``UploadFile`` to ``tmp_dir`` and describe the result.

    Failures while spooling are reported through the error code, the same way
    the platform would, so the engine treats them uniformly.
    """
    name = upload.filename or ""
    mime = upload.content_type or "application/octet-stream"

    if not name:
        return UploadDescriptor(name, mime, "", UploadErrorCode.NO_FILE, 0)
    if not os.path.isdir(tmp_dir):
        return UploadDescriptor(name, mime, "", UploadErrorCode.NO_TMP_DIR, 0)

    try:
        fd, tmp_name = tempfile.mkstemp(prefix="docvault_", dir=tmp_dir)
    except OSError as e:
        logger.warning("Could not create temp file in %s: %s", tmp_dir, e)
        return UploadDescriptor(name, mime, "", UploadErrorCode.CANT_WRITE, 0)

    size = 0
    try:
        with os.fdopen(fd, "wb") as out_f:
            upload.file.seek(0)
            while True:
                contents = upload.file.read(_CHUNK_SIZE)
                if not contents:
                    break
                size += len(contents)
                # stop before the spool file outgrows the ceiling
                if size > max_size:
                    break
                out_f.write(contents)
    except OSError as e:
        logger.warning("Failed to spool %s to %s: %s", name, tmp_name, e)
        return UploadDescriptor(name, mime, tmp_name, UploadErrorCode.CANT_WRITE, 0)

    if size > max_size:
        logger.info("Upload %s exceeds %d bytes, spooling stopped", name, max_size)
        return UploadDescriptor(name, mime, tmp_name, UploadErrorCode.INI_SIZE, size)
    return UploadDescriptor(name, mime, tmp_name, UploadErrorCode.OK, size)
