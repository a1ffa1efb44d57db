from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.deps import get_current_user, get_db
from app.metrics import runtime_metrics
from app.models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/metrics")
async def get_metrics(_: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> dict:
  database = "ok"
  try:
    await db.execute(text("SELECT 1"))
  except SQLAlchemyError:
    logger.exception("Database ping failed")
    database = "unreachable"
  return {
    **runtime_metrics.snapshot(),
    "database": database,
    "rateLimitBackend": "redis" if settings.redis_url else "memory",
    "version": settings.app_version,
  }
