"""
Health endpoint for the workflow engine.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ...core.config import get_app_env
from ...core.db import get_db
from ...core.errors import guarded_call
import logging


router = APIRouter(prefix="/api/v1/health", tags=["health"])

_logger = logging.getLogger("health")


@router.get("")
def health(db: Session = Depends(get_db)) -> dict:
    db_ok = guarded_call(
        "Health database ping",
        lambda: db.execute(text("SELECT 1")).scalar() == 1,
        fallback=False,
        logger=_logger,
    )
    return {
        "status": "ok" if db_ok else "degraded",
        "database": bool(db_ok),
        "env": get_app_env(),
        "timestamp_utc": datetime.utcnow().isoformat() + "Z",
    }
