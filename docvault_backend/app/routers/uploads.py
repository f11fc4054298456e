from __future__ import annotations

import logging
from typing import List, MutableMapping, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from .. import ledger, schemas
from ..core.config import settings
from ..descriptors import UploadDescriptor, descriptor_from_upload
from ..errors import (
    AuthorizationError,
    BatchError,
    FileMissingError,
    FileTransferError,
    StorageError,
    root_cause,
)
from ..filenames import get_original_filename
from ..sessions import get_session
from ..storage import discard_file
from ..uploader import DirectoryLocks, Uploader, upload_files
from ..validators import KeepOriginalName, UploadFileValidator

logger = logging.getLogger("docvault.uploads")

router = APIRouter(prefix="/uploads", tags=["uploads"])

_directory_locks = DirectoryLocks()


def _validator() -> Optional[UploadFileValidator]:
    allowed = settings.allowed_mime_types()
    if not allowed:
        return None
    return UploadFileValidator(allowed, settings.VALIDATOR_MAX_SIZE)


def _lock():
    return _directory_locks if settings.SERIALIZE_DIRECTORIES else None


def _status_for(exc: Exception) -> int:
    cause = root_cause(exc)
    if isinstance(cause, AuthorizationError):
        return status.HTTP_403_FORBIDDEN
    if isinstance(cause, FileMissingError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(cause, StorageError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def _http_error(exc: FileTransferError) -> HTTPException:
    if isinstance(exc, BatchError):
        codes = {_status_for(e) for e in exc.errors}
        code = codes.pop() if len(codes) == 1 else status.HTTP_400_BAD_REQUEST
        return HTTPException(status_code=code, detail=exc.messages())

    code = _status_for(exc)
    if code >= 500:
        logger.error("Upload engine failure: %s", exc)
    return HTTPException(status_code=code, detail=str(exc))


def _spool(upload: UploadFile) -> UploadDescriptor:
    return descriptor_from_upload(upload, settings.UPLOAD_TMP_DIR, settings.MAX_UPLOAD_SIZE)


@router.get("/", response_model=schemas.OwnedFilesOut)
def list_uploads(session: MutableMapping = Depends(get_session)):
    return {"files": sorted(ledger.owned_files(session))}


@router.post("/", response_model=schemas.UploadOut, status_code=status.HTTP_201_CREATED)
def upload_one(
    session: MutableMapping = Depends(get_session),
    file: UploadFile = File(...),
    path: Optional[str] = Query(None, description="Base path, relative to the document root"),
    subdir: str = Query("", description="Optional sub directory under the base path"),
    keep_name: bool = Query(False, description="Store under the client filename"),
):
    """
    Spool -> validate -> move under the document root -> record ownership.
    """
    descriptor = _spool(file)
    try:
        uploader = Uploader(descriptor, path or settings.UPLOAD_BASE_PATH, subdir)
        url_file = uploader.upload_file(
            session,
            validator=_validator(),
            naming=KeepOriginalName() if keep_name else None,
            lock=_lock(),
        )
    except FileTransferError as e:
        raise _http_error(e)
    finally:
        # no-op once the move succeeded
        discard_file(descriptor.tmp_name)

    return {
        "path": url_file,
        "original_filename": get_original_filename(url_file.rsplit("/", 1)[-1]),
    }


@router.post("/batch", response_model=schemas.BatchUploadOut, status_code=status.HTTP_201_CREATED)
def upload_many(
    session: MutableMapping = Depends(get_session),
    files: List[UploadFile] = File(...),
    path: Optional[str] = Query(None, description="Base path, relative to the document root"),
    subdir: str = Query("", description="Optional sub directory under the base path"),
    keep_name: bool = Query(False, description="Store under the client filenames"),
):
    descriptors = [_spool(f) for f in files]
    try:
        dest_files = upload_files(
            descriptors,
            path or settings.UPLOAD_BASE_PATH,
            subdir,
            session,
            validator=_validator(),
            naming=KeepOriginalName() if keep_name else None,
            lock=_lock(),
        )
    except FileTransferError as e:
        raise _http_error(e)
    finally:
        for descriptor in descriptors:
            discard_file(descriptor.tmp_name)

    return {"paths": {str(i): p for i, p in dest_files.items()}}


@router.delete("/", response_model=schemas.DeleteOut)
def delete_upload(
    session: MutableMapping = Depends(get_session),
    path: str = Query(..., description="Public path returned by the upload"),
):
    try:
        ledger.delete_file(session, path)
    except FileTransferError as e:
        raise _http_error(e)
    return {"deleted": True}


@router.post("/delete", response_model=schemas.DeleteOut)
def delete_uploads(
    body: schemas.DeleteRequest,
    session: MutableMapping = Depends(get_session),
):
    try:
        ledger.delete_files(session, body.paths)
    except FileTransferError as e:
        raise _http_error(e)
    return {"deleted": True}
