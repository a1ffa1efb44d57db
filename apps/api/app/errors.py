from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

# Same text for "absent" and "not yours" so ids cannot be probed.
ACCESS_DENIED_MESSAGE = "Project not found or access denied."
TASK_ACCESS_DENIED_MESSAGE = "Task not found or access denied."


class ActionError(Exception):
  code = "failed"

  def __init__(self, message: str) -> None:
    super().__init__(message)
    self.message = message


class InvalidInput(ActionError):
  code = "invalid"

  def __init__(self, message: str, errors: dict[str, list[str]] | None = None) -> None:
    super().__init__(message)
    self.errors = errors or {}


class AccessDenied(ActionError):
  code = "denied"

  def __init__(self, message: str = ACCESS_DENIED_MESSAGE) -> None:
    super().__init__(message)


class VersionConflict(ActionError):
  code = "conflict"

  def __init__(self, message: str, task_ids: list[str] | None = None) -> None:
    super().__init__(message)
    self.task_ids = list(task_ids or [])


class StorageFailure(ActionError):
  code = "failed"


def field_errors(errors: Iterable[Mapping[str, Any]]) -> dict[str, list[str]]:
  """Flatten pydantic error entries into {"field.path": [messages]}; request-location prefixes are dropped."""
  out: dict[str, list[str]] = {}
  for err in errors:
    loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
    key = ".".join(loc) or "_form"
    out.setdefault(key, []).append(str(err.get("msg", "Invalid value")))
  return out
