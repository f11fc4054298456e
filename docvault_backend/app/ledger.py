"""Session-scoped ownership ledger.

The caller's session store (any mutable mapping, usually the server-side
session from ``sessions.get_session``) holds ``{public_path: absolute_path}``
under ``SESSION_KEY``.  A record there is the only thing that authorizes a
delete.  The ledger never keeps state of its own; the store's lifecycle
decides how long ownership lasts.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, MutableMapping

from .errors import AuthorizationError, BatchError, DeleteError, FileTransferError
from .storage import remove_file

logger = logging.getLogger("docvault.ledger")

SESSION_KEY = "uploaded_files"


def owned_files(session: MutableMapping) -> Dict[str, str]:
    records = session.get(SESSION_KEY)
    if not isinstance(records, dict):
        return {}
    return dict(records)


def register(session: MutableMapping, public_path: str, abs_path: str) -> None:
    records = owned_files(session)
    records[public_path] = abs_path
    # reassign so stores that track top-level writes notice the change
    session[SESSION_KEY] = records


def unregister(session: MutableMapping, public_path: str) -> None:
    records = owned_files(session)
    if records.pop(public_path, None) is not None:
        session[SESSION_KEY] = records


def delete_file(session: MutableMapping, public_path: str) -> bool:
    """Delete a file this session uploaded.

    Raises ``DeleteError`` wrapping ``AuthorizationError`` when the session has
    no record for ``public_path`` (whether or not the file exists),
    ``FileMissingError`` when the file is gone from disk, or ``StorageError``
    when removal fails.  The record is dropped only after a successful remove.
    """
    try:
        records = owned_files(session)
        if public_path not in records:
            logger.warning("Rejected unauthorized delete of %s", public_path)
            raise AuthorizationError("Unauthorized deletion attempt.")

        remove_file(records[public_path])
        unregister(session, public_path)
        logger.info("Deleted %s", public_path)
        return True
    except FileTransferError as e:
        raise DeleteError(public_path, e) from e


def delete_files(session: MutableMapping, public_paths: Iterable[str]) -> bool:
    """Delete several files, attempting every one of them.

    Deletions that succeed stay done even when others fail; the failures are
    raised together as a ``BatchError``.
    """
    errors = []
    for public_path in public_paths:
        try:
            delete_file(session, public_path)
        except DeleteError as e:
            errors.append(e)

    if errors:
        raise BatchError(errors)
    return True
