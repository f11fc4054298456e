"""Application configuration settings.

Values can be overridden via environment variables.
"""
import os
import tempfile


class Settings:
    # Filesystem layout
    DOCUMENT_ROOT: str = os.getenv("DOCUMENT_ROOT", "./public")
    UPLOAD_BASE_PATH: str = os.getenv("UPLOAD_BASE_PATH", "uploads")
    UPLOAD_TMP_DIR: str = os.getenv("UPLOAD_TMP_DIR", tempfile.gettempdir())

    # Hard ceiling applied while spooling a request body (bytes)
    MAX_UPLOAD_SIZE: int = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))

    # Content policy – leave ALLOWED_MIME_TYPES empty to accept everything
    ALLOWED_MIME_TYPES: str = os.getenv("ALLOWED_MIME_TYPES", "")
    VALIDATOR_MAX_SIZE: int = int(os.getenv("VALIDATOR_MAX_SIZE", str(1024 * 1024)))

    # Sessions (the cookie carries only a session id; the ledger stays server-side)
    SESSION_SECRET: str = os.getenv("SESSION_SECRET", "CHANGEME_SUPER_SECRET")
    SESSION_COOKIE: str = os.getenv("SESSION_COOKIE", "docvault_session")
    # seconds; also the idle lifetime of server-side ledger entries
    SESSION_MAX_AGE: int = int(os.getenv("SESSION_MAX_AGE", str(14 * 24 * 60 * 60)))

    # "1" serializes probe+move per destination directory inside this process
    SERIALIZE_DIRECTORIES: bool = os.getenv("SERIALIZE_DIRECTORIES", "0") == "1"

    def allowed_mime_types(self) -> list[str]:
        raw = (self.ALLOWED_MIME_TYPES or "").strip()
        return [t.strip().lower() for t in raw.split(",") if t.strip()]


settings = Settings()
