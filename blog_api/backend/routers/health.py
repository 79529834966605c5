# blog_api/backend/routers/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from sqlmodel import text

from blog_api.backend.core.config import settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health_app():
    """Liveness: the process is up and serving."""
    return {
        "ok": True,
        "version": settings.app_version,
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
    }


@router.get("/db")
def health_db():
    # Migration is a deployment concern. Runtime only verifies DB connectivity.
    from blog_api.db.session import engine

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"ok": True}
    except Exception:
        raise HTTPException(status_code=500, detail="Database connection failed")
