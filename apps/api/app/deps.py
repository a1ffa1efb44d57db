from __future__ import annotations

from datetime import datetime, timezone

from fastapi import Cookie, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import SessionLocal
from app.errors import TASK_ACCESS_DENIED_MESSAGE, AccessDenied
from app.models import Project, Session as DbSession, Task, User, as_utc
from app.security import SESSION_COOKIE_NAME


class NotAuthenticated(Exception):
  """No verified principal on the request; the caller should be sent to sign-in."""

  def __init__(self, detail: str = "Not authenticated") -> None:
    super().__init__(detail)
    self.detail = detail


async def get_db() -> AsyncSession:
  async with SessionLocal() as session:
    yield session


async def get_current_user(
  db: AsyncSession = Depends(get_db),
  session_id: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
) -> User:
  if not session_id:
    raise NotAuthenticated()

  res = await db.execute(select(DbSession).where(DbSession.id == session_id))
  s = res.scalar_one_or_none()
  if not s:
    raise NotAuthenticated("Invalid session")
  if as_utc(s.expires_at) < datetime.now(timezone.utc):
    raise NotAuthenticated("Session expired")

  ures = await db.execute(select(User).where(User.id == s.user_id))
  u = ures.scalar_one_or_none()
  if not u or not u.active:
    raise NotAuthenticated("User not found")
  return u


async def require_project_owner(
  project_id: str,
  principal_id: str,
  db: AsyncSession,
  *,
  lock: bool = False,
) -> Project:
  """
  Ownership guard for every project-scoped mutation.

  Absent and foreign projects raise the same AccessDenied. With lock=True the
  project row is held FOR UPDATE until the surrounding transaction ends, which
  serializes order-changing writes per project on PostgreSQL.
  """
  if not principal_id:
    raise NotAuthenticated()
  q = select(Project).where(Project.id == project_id, Project.owner_id == principal_id)
  if lock:
    q = q.with_for_update()
  res = await db.execute(q)
  p = res.scalar_one_or_none()
  if not p:
    raise AccessDenied()
  return p


async def require_task_owner(
  task_id: str,
  project_id: str,
  principal_id: str,
  db: AsyncSession,
  *,
  lock: bool = False,
) -> Task:
  await require_project_owner(project_id, principal_id, db, lock=lock)
  res = await db.execute(select(Task).where(Task.id == task_id, Task.project_id == project_id))
  t = res.scalar_one_or_none()
  if not t:
    raise AccessDenied(TASK_ACCESS_DENIED_MESSAGE)
  return t
