from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter

from core.config import get_settings
from db.database import check_db_connection

router = APIRouter(tags=["System"])


@router.get("/health", tags=["Health"])
async def health() -> dict[str, Any]:
    ok = await check_db_connection()
    return {
        "status": "ok" if ok else "degraded",
        "database": ok,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/", tags=["Root"])
async def root() -> dict[str, Any]:
    settings = get_settings()
    return {
        "message": f"Welcome to {settings.api_title}",
        "version": settings.api_version,
        "health": "/health",
    }
