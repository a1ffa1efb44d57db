from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Project, ProjectTeamMember, User


async def assignee_candidates(db: AsyncSession, project: Project) -> list[User]:
  """Team members plus the owner, once each, sorted by display name."""
  res = await db.execute(
    select(User)
    .join(ProjectTeamMember, ProjectTeamMember.user_id == User.id)
    .where(ProjectTeamMember.project_id == project.id)
  )
  users = {u.id: u for u in res.scalars().all()}
  if project.owner_id not in users:
    ores = await db.execute(select(User).where(User.id == project.owner_id))
    owner = ores.scalar_one_or_none()
    if owner:
      users[owner.id] = owner
  return sorted(users.values(), key=lambda u: (u.display_name.lower(), u.email))


async def is_assignee_candidate(db: AsyncSession, project: Project, user_id: str) -> bool:
  if user_id == project.owner_id:
    return True
  res = await db.execute(
    select(ProjectTeamMember.id).where(ProjectTeamMember.project_id == project.id, ProjectTeamMember.user_id == user_id)
  )
  return res.scalar_one_or_none() is not None
