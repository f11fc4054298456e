"""Unique, filesystem-safe destination filenames.

Generated names look like ``20261018093015_042_9f2c4e1ab37d0c55-My_Report.pdf``:
a millisecond timestamp so names sort by upload time, 16 random hex chars so
two uploads in the same millisecond do not collide, then the sanitized
original name with a lowercased extension.
"""
from __future__ import annotations

import os
import re
import secrets
from datetime import datetime
from typing import Optional

from .errors import FilenameError

MAX_FILENAME_BYTES = 255

_WHITESPACE_OR_HYPHEN = re.compile(r"[\s-]+")
_UNDERSCORES = re.compile(r"_+")
_ILLEGAL_CHARS = re.compile(r'[/\\:*?"<>| \x00-\x1f\x7f]')
_GENERATED_PREFIX = re.compile(r"^\d{14}_\d{3}_[0-9a-f]{16}-")

RESERVED_NAMES = ("", ".", "..")


def make_prefix(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return "%s_%03d_%s-" % (
        now.strftime("%Y%m%d%H%M%S"),
        now.microsecond // 1000,
        secrets.token_hex(8),
    )


def sanitize_filename(filename: str) -> str:
    sanitized = _WHITESPACE_OR_HYPHEN.sub("_", filename)
    sanitized = _UNDERSCORES.sub("_", sanitized)
    return sanitized.strip("_")


def split_extension(filename: str) -> tuple[str, str]:
    """Split on the last dot; ``".txt"`` is an empty stem with extension ``txt``."""
    stem, dot, ext = filename.rpartition(".")
    if not dot:
        return filename, ""
    return stem, ext


def generate_filename(filename: str, now: Optional[datetime] = None) -> str:
    """Return a unique destination filename derived from ``filename``.

    Only the last path component of the client name is used.  Raises
    ``FilenameError`` if the result would not fit in a single filesystem
    name component.
    """
    prefix = make_prefix(now)
    limit = MAX_FILENAME_BYTES - len(prefix.encode("utf-8"))

    sanitized = sanitize_filename(filename)
    basename = sanitized.rsplit("/", 1)[-1]
    stem, ext = split_extension(basename)

    dest_filename = prefix + stem
    if ext:
        dest_filename += "." + ext.lower()

    if len(dest_filename.encode("utf-8")) > MAX_FILENAME_BYTES:
        raise FilenameError(f"Filename exceeds the maximum length of {limit} characters.")
    return dest_filename


def validate_dest_filename(filename: str) -> None:
    if filename in RESERVED_NAMES:
        raise FilenameError(
            'Invalid filename: Filename cannot be empty or a reserved name like "." or "..".'
        )
    if _ILLEGAL_CHARS.search(filename):
        raise FilenameError("Invalid filename: Filename contains illegal characters.")
    if len(filename.encode("utf-8")) > MAX_FILENAME_BYTES:
        raise FilenameError(
            f"Filename exceeds the maximum length of {MAX_FILENAME_BYTES} characters."
        )


def get_original_filename(filename: str) -> str:
    """Strip a generated prefix; names without one are returned unchanged."""
    original = _GENERATED_PREFIX.sub("", filename, count=1)
    return original or filename


def next_free_path(dest_dir: str, filename: str) -> str:
    """Return the first non-existing path among ``filename``, ``stem_1.ext``, ...

    Check-then-act: the result can be taken by a concurrent writer before
    it is used unless the caller holds a lock on ``dest_dir``.
    """
    dest_file = os.path.join(dest_dir, filename)
    stem, ext = split_extension(filename)
    count = 1
    while os.path.exists(dest_file):
        candidate = f"{stem}_{count}"
        if ext:
            candidate += f".{ext}"
        dest_file = os.path.join(dest_dir, candidate)
        count += 1
    return dest_file
