from __future__ import annotations

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.config import settings


def _engine_kwargs() -> dict:
  if settings.is_sqlite():
    # Local/test databases: no server-side pool tuning applies.
    return {"echo": settings.database_echo}
  return {"echo": settings.database_echo, "pool_pre_ping": True, "pool_size": 10, "max_overflow": 10}


engine = create_async_engine(settings.database_url, **_engine_kwargs())
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
