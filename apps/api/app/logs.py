from __future__ import annotations

import logging

from app.config import settings

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
  global _configured
  if _configured:
    return
  name = (level or settings.log_level or "INFO").upper()
  logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)
  _configured = True
