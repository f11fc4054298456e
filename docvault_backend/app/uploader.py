"""Upload transactions.

``Uploader`` moves one spooled upload into the document tree:

    constructed -> validated -> moved -> registered

Construction checks the platform error code and resolves the destination
without touching the filesystem.  ``upload_file`` runs the validator, makes
sure the destination directory exists inside the document root, picks a
free name, moves the file and records ownership in the session.

``upload_files`` runs a batch in two phases.  If any file cannot even be
constructed nothing is written; if any move fails every file already moved
in the batch is removed again and all errors are reported together.
"""
from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from enum import Enum
from typing import Any, Callable, ContextManager, Dict, Iterable, Mapping, MutableMapping, Optional, Union

from . import ledger
from .descriptors import UploadDescriptor, UploadErrorCode
from .errors import (
    BatchError,
    FilenameError,
    FileTransferError,
    UploadError,
    UploadPlatformError,
    ValidationError,
)
from .filenames import generate_filename, next_free_path, validate_dest_filename
from .paths import ensure_confined_dir, public_path, resolve_dest_path
from .storage import discard_file, move_file
from .validators import FilenameStrategy, UploadValidator

logger = logging.getLogger("docvault.uploader")
logger.setLevel(logging.INFO)

LockFactory = Callable[[str], ContextManager]

PLATFORM_ERROR_MESSAGES = {
    UploadErrorCode.INI_SIZE: "The uploaded file exceeds the maximum size allowed by the server.",
    UploadErrorCode.FORM_SIZE: "The uploaded file exceeds the maximum size specified in the HTML form.",
    UploadErrorCode.PARTIAL: "The uploaded file was only partially uploaded.",
    UploadErrorCode.NO_FILE: "No file was uploaded.",
    UploadErrorCode.NO_TMP_DIR: "Missing a temporary folder.",
    UploadErrorCode.CANT_WRITE: "Failed to write file to disk.",
    UploadErrorCode.EXTENSION: "A server extension stopped the file upload.",
}


class TransferState(Enum):
    CONSTRUCTED = "constructed"
    VALIDATED = "validated"
    MOVED = "moved"
    REGISTERED = "registered"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


class DirectoryLocks:
    """
    Per-directory locks for hosts that want probe+move serialized.

    Only coordinates threads of one process; pass an inter-process lock
    factory instead when several workers share a document root.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def __call__(self, dest_dir: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(dest_dir, threading.Lock())


def _no_lock(dest_dir: str) -> ContextManager:
    return nullcontext(dest_dir)


def platform_error(code: int) -> UploadPlatformError:
    try:
        message = PLATFORM_ERROR_MESSAGES[UploadErrorCode(code)]
    except (ValueError, KeyError):
        message = "Unknown upload error."
    return UploadPlatformError(message, code)


class Uploader:
    def __init__(self, file: UploadDescriptor, upload_path: str, dirname: str = "") -> None:
        self.file = file
        self.dest_file: Optional[str] = None
        self.public_path: Optional[str] = None
        try:
            if file.error != UploadErrorCode.OK:
                raise platform_error(file.error)
            self.dest_path = resolve_dest_path(upload_path, dirname)
        except FileTransferError as e:
            self.state = TransferState.FAILED
            raise UploadError(file.name, e) from e
        self.state = TransferState.CONSTRUCTED

    def _validate(self, validator: UploadValidator) -> None:
        try:
            validator.validate(self.file)
        except FileTransferError:
            raise
        except Exception as e:
            raise ValidationError(str(e) or type(e).__name__) from e

    def _dest_filename(self, naming: Optional[FilenameStrategy]) -> str:
        if naming is None:
            return generate_filename(self.file.name)
        try:
            dest_filename = naming.filename_for(self.file.name)
        except FileTransferError:
            raise
        except Exception as e:
            raise FilenameError(f"Filename callback failed: {e}") from e
        if not isinstance(dest_filename, str):
            raise FilenameError("Filename callback did not return a string.")
        return dest_filename

    def upload_file(
        self,
        session: MutableMapping,
        validator: Optional[UploadValidator] = None,
        naming: Optional[FilenameStrategy] = None,
        lock: Optional[LockFactory] = None,
    ) -> str:
        """Move the file into place and return its public path.

        ``lock``, when given, is called with the destination directory and the
        returned context manager is held from the collision probe until the
        move has finished.
        """
        try:
            if validator is not None:
                self._validate(validator)
            self.state = TransferState.VALIDATED

            dest_dir = ensure_confined_dir(self.dest_path)
            dest_filename = self._dest_filename(naming)
            validate_dest_filename(dest_filename)

            with (lock or _no_lock)(dest_dir):
                dest_file = next_free_path(dest_dir, dest_filename)
                move_file(self.file.tmp_name, dest_file)
            self.dest_file = dest_file
            self.state = TransferState.MOVED

            url_file = public_path(dest_file)
            ledger.register(session, url_file, dest_file)
            self.public_path = url_file
            self.state = TransferState.REGISTERED
        except FileTransferError as e:
            if self.state == TransferState.MOVED:
                self.rollback(session)
            else:
                self.state = TransferState.FAILED
            raise UploadError(self.file.name, e) from e

        logger.info("Stored %s as %s", self.file.name, url_file)
        return url_file

    def rollback(self, session: MutableMapping) -> None:
        """Undo a completed move: drop the file and its ownership record."""
        if self.dest_file is None:
            return
        if not discard_file(self.dest_file):
            logger.warning("Rollback left %s on disk", self.dest_file)
        if self.public_path is not None:
            ledger.unregister(session, self.public_path)
        self.state = TransferState.ROLLED_BACK


def upload_files(
    files: Union[Mapping[Any, UploadDescriptor], Iterable[UploadDescriptor]],
    upload_path: str,
    dirname: str,
    session: MutableMapping,
    validator: Optional[UploadValidator] = None,
    naming: Optional[FilenameStrategy] = None,
    lock: Optional[LockFactory] = None,
) -> Dict[Any, str]:
    """Upload several files with all-or-nothing effect.

    Returns ``{key: public_path}`` keyed like ``files`` (list positions for
    sequences).  Raises ``BatchError`` carrying every per-file ``UploadError``.
    """
    items = files.items() if isinstance(files, Mapping) else enumerate(files)

    uploaders: Dict[Any, Uploader] = {}
    errors = []
    for key, file in items:
        try:
            uploaders[key] = Uploader(file, upload_path, dirname)
        except UploadError as e:
            errors.append(e)

    if errors:
        raise BatchError(errors)

    dest_files: Dict[Any, str] = {}
    for key, uploader in uploaders.items():
        try:
            dest_files[key] = uploader.upload_file(session, validator, naming, lock)
        except UploadError as e:
            errors.append(e)

    if errors:
        for key in dest_files:
            uploaders[key].rollback(session)
        logger.warning(
            "Batch upload failed (%d of %d files), rolled back %d",
            len(errors), len(uploaders), len(dest_files),
        )
        raise BatchError(errors)

    return dest_files
