import os

import pytest

from docvault_backend.app.core.config import settings
from docvault_backend.app.errors import PathError
from docvault_backend.app.paths import (
    ensure_confined_dir,
    get_document_root,
    is_within,
    public_path,
    resolve_dest_path,
)


def test_document_root_is_real_path(doc_root):
    assert get_document_root() == doc_root


def test_missing_document_root(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DOCUMENT_ROOT", str(tmp_path / "nope"))
    with pytest.raises(PathError, match="Invalid document root path"):
        get_document_root()


def test_empty_document_root(monkeypatch):
    monkeypatch.setattr(settings, "DOCUMENT_ROOT", "")
    with pytest.raises(PathError):
        resolve_dest_path("uploads")


def test_resolve_relative_with_subdir(doc_root):
    assert resolve_dest_path("uploads", "imgs") == os.path.join(doc_root, "uploads", "imgs")


def test_resolve_trims_separators(doc_root):
    assert resolve_dest_path("uploads/docs///", "/2026/10/") == os.path.join(
        doc_root, "uploads", "docs", "2026", "10"
    )


def test_resolve_does_not_create(doc_root):
    resolve_dest_path("uploads", "imgs")
    assert not os.path.exists(os.path.join(doc_root, "uploads"))


def test_resolve_absolute_inside_root(doc_root):
    target = os.path.join(doc_root, "abs")
    assert resolve_dest_path(target) == target


def test_resolve_root_itself(doc_root):
    assert resolve_dest_path("") == doc_root


@pytest.mark.parametrize(
    "upload_path, dirname",
    [
        ("..", ""),
        ("uploads/../../etc", ""),
        ("uploads", "../../.."),
        ("/etc", ""),
        ("/", "tmp"),
    ],
)
def test_resolve_rejects_escape(doc_root, upload_path, dirname):
    with pytest.raises(PathError, match="exceeds the access range"):
        resolve_dest_path(upload_path, dirname)


def test_resolve_normalizes_inner_dotdot(doc_root):
    dest = resolve_dest_path("uploads/tmp/../docs")
    assert dest == os.path.join(doc_root, "uploads", "docs")
    assert ".." not in dest.split(os.sep)


def test_sibling_with_common_prefix_is_outside(doc_root):
    assert not is_within(doc_root + "2", doc_root)
    assert is_within(doc_root, doc_root)
    assert is_within(os.path.join(doc_root, "a"), doc_root)


def test_ensure_confined_dir_creates(doc_root):
    dest = resolve_dest_path("uploads", "docs")
    assert ensure_confined_dir(dest) == dest
    assert os.path.isdir(dest)


def test_ensure_confined_dir_rejects_symlink_escape(doc_root, tmp_path):
    outside = tmp_path / "outside"
    outside.mkdir()
    os.symlink(outside, os.path.join(doc_root, "link"))

    dest = resolve_dest_path("link", "inner")
    with pytest.raises(PathError, match="exceeds the access range"):
        ensure_confined_dir(dest)


def test_public_path_strips_root(doc_root):
    abs_path = os.path.join(doc_root, "uploads", "docs", "a.pdf")
    assert public_path(abs_path) == "/uploads/docs/a.pdf"


def test_public_path_outside_root(doc_root, tmp_path):
    with pytest.raises(PathError):
        public_path(str(tmp_path / "elsewhere.txt"))
