"""File storage utilities.

This module wraps the raw filesystem calls the engine makes when it moves an
upload into place and when it removes files again.  Failures are translated
into ``StorageError`` so callers never deal with bare ``OSError``.
"""
import logging
import os
import shutil

from .errors import FileMissingError, StorageError

logger = logging.getLogger("docvault.storage")


def move_file(src: str, dest: str) -> None:
    """Move a spooled upload to its final location."""
    if not src or not os.path.isfile(src):
        raise StorageError("Cannot write file to disk.")
    try:
        shutil.move(src, dest)
    except OSError as e:
        logger.error("Moving %s to %s failed: %s", src, dest, e)
        raise StorageError("Cannot write file to disk.") from e


def remove_file(path: str) -> None:
    """Delete a file from the filesystem."""
    if not os.path.isfile(path):
        raise FileMissingError("The file could not be found.")
    try:
        os.remove(path)
    except OSError as e:
        logger.error("Removing %s failed: %s", path, e)
        raise StorageError("The file could not be removed from disk.") from e


def discard_file(path: str) -> bool:
    """Best-effort delete; returns whether the file is gone afterwards."""
    if not path:
        return True
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not clean up %s: %s", path, e)
        return False
    return True
