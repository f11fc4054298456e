# docvault_backend/app/main.py
from __future__ import annotations

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from .core.config import settings
from .routers import uploads as uploads_router
from .routers import health as health_router

logger = logging.getLogger("docvault.main")
logger.setLevel(logging.INFO)

app = FastAPI(title="DocVault API", version="0.1.0")

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # you can lock this down later
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- sessions: the signed cookie only holds the id of a server-side session ---
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    session_cookie=settings.SESSION_COOKIE,
    max_age=settings.SESSION_MAX_AGE,
    same_site="lax",
)

# --- basic alive probe that does NOT touch the filesystem ---
@app.get("/health/bootcheck")
def bootcheck():
    return {"status": "starting-ok"}

# include routers
app.include_router(uploads_router.router)
app.include_router(health_router.router)

# lifecycle hooks for debug
@app.on_event("startup")
async def on_startup():
    logger.info(">>>> FASTAPI STARTUP BEGIN")
    logger.info("document root: %s, upload base: %s", settings.DOCUMENT_ROOT, settings.UPLOAD_BASE_PATH)
    if settings.SESSION_SECRET == "CHANGEME_SUPER_SECRET":
        logger.warning("SESSION_SECRET is not set; session cookies are signed with the default key")
    logger.info(">>>> FASTAPI STARTUP COMPLETE")

@app.on_event("shutdown")
async def on_shutdown():
    logger.info(">>>> FASTAPI SHUTDOWN")
