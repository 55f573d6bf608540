"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from counsel.core.config import settings
from counsel.db.session import engine

# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Counsel API",
    description="Counseling session access control: notes, shares and counselor roles",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

# ============================================================================
# Routers
# ============================================================================

from counsel.routers import assignments, notes, sessions, shares  # noqa: E402

app.include_router(sessions.router, tags=["sessions"])  # /sessions/{id}/access|export|notes
app.include_router(notes.router, tags=["notes"])
app.include_router(shares.router)  # Already has /shares prefix
app.include_router(assignments.router, tags=["assignments"])  # /assignments and /coverage-grants


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
