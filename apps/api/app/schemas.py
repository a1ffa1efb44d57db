from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import field_validator

TaskStatus = Literal["todo", "inprogress", "done", "archived"]
ActionCode = Literal["ok", "invalid", "denied", "conflict", "failed"]

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_dt_utc(value: object) -> object:
  if value is None:
    return None
  if isinstance(value, datetime):
    dt = value
  elif isinstance(value, str):
    s = value.strip()
    if not s:
      return None
    if _DATE_ONLY_RE.fullmatch(s):
      dt = datetime.fromisoformat(s)
    else:
      dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
  else:
    return value

  if dt.tzinfo is None:
    return dt.replace(tzinfo=timezone.utc)
  return dt.astimezone(timezone.utc)


def _blank_to_none(value: object) -> object:
  if isinstance(value, str) and not value.strip():
    return None
  return value


class UserOut(BaseModel):
  id: str
  email: str
  name: str
  firstName: str | None = None
  lastName: str | None = None
  imageUrl: str | None = None
  plan: str = "free"


class SignupIn(BaseModel):
  email: str = Field(min_length=3, max_length=320)
  password: str = Field(min_length=8, max_length=200)
  firstName: str | None = Field(default=None, max_length=120)
  lastName: str | None = Field(default=None, max_length=120)


class LoginIn(BaseModel):
  email: str
  password: str


class ProjectCreateIn(BaseModel):
  name: str = Field(min_length=1, max_length=120)
  description: str | None = Field(default=None, max_length=1000)
  address: str | None = Field(default=None, max_length=300)


class ProjectUpdateIn(BaseModel):
  name: str | None = Field(default=None, min_length=1, max_length=120)
  description: str | None = Field(default=None, max_length=1000)
  address: str | None = Field(default=None, max_length=300)
  isArchived: bool | None = None


class ProjectOut(BaseModel):
  id: str
  ownerId: str
  name: str
  description: str | None
  address: str | None
  isArchived: bool
  createdAt: datetime
  updatedAt: datetime


class TeamMemberAddIn(BaseModel):
  email: str = Field(min_length=3, max_length=320)


class AssigneeOut(BaseModel):
  userId: str
  name: str
  email: str
  imageUrl: str | None = None


class TaskCreateIn(BaseModel):
  title: str = Field(min_length=3, max_length=100)
  description: str | None = Field(default=None, max_length=500)
  status: TaskStatus = "todo"
  dueDate: datetime | None = None
  priority: int = Field(default=0, ge=0, le=2)
  assigneeId: str | None = None

  @field_validator("dueDate", mode="before")
  @classmethod
  def _due_to_utc(cls, v: object) -> object:
    return _parse_dt_utc(v)

  @field_validator("description", "assigneeId", mode="before")
  @classmethod
  def _empty_is_none(cls, v: object) -> object:
    return _blank_to_none(v)


class TaskUpdateIn(BaseModel):
  # status/order only move through the board sync.
  model_config = ConfigDict(extra="forbid")

  title: str = Field(min_length=3, max_length=100)
  description: str | None = Field(default=None, max_length=500)
  dueDate: datetime | None = None
  priority: int | None = Field(default=None, ge=0, le=2)
  assigneeId: str | None = None
  version: int | None = Field(default=None, ge=0)

  @field_validator("dueDate", mode="before")
  @classmethod
  def _due_to_utc(cls, v: object) -> object:
    return _parse_dt_utc(v)

  @field_validator("description", "assigneeId", mode="before")
  @classmethod
  def _empty_is_none(cls, v: object) -> object:
    return _blank_to_none(v)


class TaskSyncItemIn(BaseModel):
  id: str = Field(min_length=1)
  status: TaskStatus
  order: int = Field(ge=0)
  version: int | None = Field(default=None, ge=0)


class TaskSyncIn(BaseModel):
  tasks: list[TaskSyncItemIn]

  @field_validator("tasks")
  @classmethod
  def _non_empty_unique(cls, v: list[TaskSyncItemIn]) -> list[TaskSyncItemIn]:
    if not v:
      raise ValueError("At least one task must be provided for syncing.")
    seen: set[str] = set()
    for item in v:
      if item.id in seen:
        raise ValueError(f"Task {item.id} appears more than once.")
      seen.add(item.id)
    return v


class TaskOut(BaseModel):
  id: str
  projectId: str
  ownerId: str
  title: str
  description: str | None
  status: TaskStatus
  priority: int
  assigneeId: str | None
  order: int
  version: int
  dueDate: datetime | None
  createdAt: datetime
  updatedAt: datetime


class BoardColumnOut(BaseModel):
  status: TaskStatus
  title: str
  tasks: list[TaskOut]


class BoardOut(BaseModel):
  projectId: str
  generation: int
  columns: list[BoardColumnOut]


class ActionResult(BaseModel):
  success: bool
  code: ActionCode = "ok"
  message: str | None = None
  error: str | None = None
  errors: dict[str, list[str]] | None = None
  task: TaskOut | None = None
  tasks: list[TaskOut] | None = None
  deletedTaskId: str | None = None
  missingTaskIds: list[str] = Field(default_factory=list)
  conflictTaskIds: list[str] = Field(default_factory=list)


class AuditOut(BaseModel):
  id: str
  projectId: str | None
  taskId: str | None
  actorId: str | None
  eventType: str
  entityType: str
  entityId: str | None
  payload: dict[str, Any]
  createdAt: datetime
