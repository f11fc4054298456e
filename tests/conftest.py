"""
Pytest Configuration File

Every test gets its own document root and spool directory under tmp_path,
wired into the settings singleton the engine reads at call time.
"""
import itertools
import os

import pytest

from docvault_backend.app.core.config import settings
from docvault_backend.app.descriptors import UploadDescriptor, UploadErrorCode


@pytest.fixture
def doc_root(tmp_path, monkeypatch):
    """Real path of a fresh document root"""
    root = tmp_path / "www"
    root.mkdir()
    monkeypatch.setattr(settings, "DOCUMENT_ROOT", str(root))
    return os.path.realpath(root)


@pytest.fixture
def spool_dir(tmp_path, monkeypatch):
    """Directory standing in for the platform's upload temp dir"""
    spool = tmp_path / "spool"
    spool.mkdir()
    monkeypatch.setattr(settings, "UPLOAD_TMP_DIR", str(spool))
    return spool


@pytest.fixture
def make_upload(spool_dir):
    """Factory writing a real temp file and returning its descriptor"""
    counter = itertools.count()

    def _make(name="report.pdf", content=b"0123456789", mime="application/pdf",
              error=UploadErrorCode.OK):
        tmp = spool_dir / f"upload{next(counter)}.tmp"
        tmp.write_bytes(content)
        return UploadDescriptor(name, mime, str(tmp), int(error), len(content))

    return _make


@pytest.fixture
def session():
    """Plain dict standing in for a client session store"""
    return {}


def files_under(root):
    """Relative paths of every regular file below root"""
    found = []
    for dirpath, _, filenames in os.walk(root):
        for filename in filenames:
            found.append(os.path.relpath(os.path.join(dirpath, filename), root))
    return sorted(found)


@pytest.fixture
def list_files():
    return files_under
