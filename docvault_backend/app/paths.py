"""Destination path resolution and confinement.

Every directory the engine writes into must sit inside the document root.
This is checked twice: lexically when the destination is resolved (so a
batch containing ``..`` tricks is rejected before anything touches disk) and
again on the real path once the directory exists (symlinks).
"""
from __future__ import annotations

import logging
import os

from .core.config import settings
from .errors import PathError, StorageError

logger = logging.getLogger("docvault.paths")

DIR_MODE = 0o755


def get_document_root() -> str:
    """Return the real, existing document root without a trailing separator."""
    configured = settings.DOCUMENT_ROOT
    if not configured:
        raise PathError("Invalid document root path.")
    root = os.path.realpath(configured)
    if not os.path.isdir(root):
        raise PathError("Invalid document root path.")
    return root.rstrip(os.sep) or os.sep


def is_within(path: str, root: str) -> bool:
    if root == os.sep:
        return path.startswith(os.sep)
    return path == root or path.startswith(root + os.sep)


def resolve_dest_path(upload_path: str, dirname: str = "") -> str:
    """Turn ``upload_path`` (+ optional ``dirname``) into an absolute directory.

    Relative paths are taken relative to the document root.  The directory is
    not created here.
    """
    document_root = get_document_root()
    dest_path = upload_path.rstrip("/")

    if not upload_path.startswith("/"):
        dest_path = os.path.join(document_root, dest_path)
    elif not dest_path:
        dest_path = "/"

    dirname = dirname.strip("/")
    if dirname:
        dest_path = os.path.join(dest_path, dirname)

    dest_path = os.path.normpath(dest_path)
    if not is_within(dest_path, document_root):
        raise PathError("The upload path exceeds the access range.")
    return dest_path


def ensure_confined_dir(dest_path: str) -> str:
    """Create ``dest_path`` if needed and return its confirmed real path."""
    if not os.path.isdir(dest_path):
        try:
            os.makedirs(dest_path, mode=DIR_MODE, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create upload directory: {e.strerror or e}") from e
        logger.info("Created upload directory %s", dest_path)

    real_path = os.path.realpath(dest_path)
    if not os.path.isdir(real_path):
        raise PathError("Invalid dest path")

    if not is_within(real_path, get_document_root()):
        logger.warning("Upload directory %s resolves outside the document root", dest_path)
        raise PathError("The upload path exceeds the access range.")
    return real_path


def public_path(abs_path: str) -> str:
    """Path of ``abs_path`` relative to the document root, as a URL path."""
    document_root = get_document_root()
    if not is_within(abs_path, document_root):
        raise PathError("The upload path exceeds the access range.")
    relative = abs_path[len(document_root.rstrip(os.sep)):]
    return relative.replace(os.sep, "/")
