"""
DocVault Backend Package

This package contains the FastAPI application and the upload engine behind
it: confined destination paths, unique filenames, all-or-nothing batch
uploads and a session-scoped ownership ledger that gates deletion.
"""

from .main import app  # noqa: F401
