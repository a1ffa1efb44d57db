from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.audit import write_audit
from app.deps import get_current_user, get_db, require_project_owner
from app.invalidation import invalidator, task_page_path
from app.models import Project, ProjectTeamMember, Task, User
from app.schemas import AssigneeOut, ProjectCreateIn, ProjectOut, ProjectUpdateIn, TeamMemberAddIn
from app.security import normalize_email
from app.team import assignee_candidates

router = APIRouter(prefix="/projects", tags=["projects"])


def _project_out(p: Project) -> ProjectOut:
  return ProjectOut(
    id=p.id,
    ownerId=p.owner_id,
    name=p.name,
    description=p.description,
    address=p.address,
    isArchived=bool(p.is_archived),
    createdAt=p.created_at,
    updatedAt=p.updated_at,
  )


def _clean(value: str | None) -> str | None:
  return (value or "").strip() or None


@router.get("", response_model=list[ProjectOut])
async def list_projects(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[ProjectOut]:
  res = await db.execute(select(Project).where(Project.owner_id == user.id).order_by(Project.updated_at.desc()))
  return [_project_out(p) for p in res.scalars().all()]


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_project(
  payload: ProjectCreateIn, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> ProjectOut:
  name = payload.name.strip()
  if not name:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
  p = Project(owner_id=user.id, name=name, description=_clean(payload.description), address=_clean(payload.address))
  db.add(p)
  await db.flush()
  await write_audit(
    db, event_type="project.created", entity_type="Project", entity_id=p.id, project_id=p.id, actor_id=user.id, payload={"name": p.name}
  )
  await db.commit()
  return _project_out(p)


@router.get("/latest", response_model=ProjectOut)
async def latest_project(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> ProjectOut:
  res = await db.execute(
    select(Project)
    .where(Project.owner_id == user.id, Project.is_archived.is_(False))
    .order_by(Project.created_at.desc())
    .limit(1)
  )
  p = res.scalar_one_or_none()
  if not p:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No projects yet")
  return _project_out(p)


@router.get("/{project_id}", response_model=ProjectOut)
async def get_project(project_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> ProjectOut:
  p = await require_project_owner(project_id, user.id, db)
  return _project_out(p)


@router.patch("/{project_id}", response_model=ProjectOut)
async def update_project(
  project_id: str,
  payload: ProjectUpdateIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ProjectOut:
  p = await require_project_owner(project_id, user.id, db, lock=True)
  fields = payload.model_fields_set
  if "name" in fields:
    name = (payload.name or "").strip()
    if not name:
      raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required")
    p.name = name
  if "description" in fields:
    p.description = _clean(payload.description)
  if "address" in fields:
    p.address = _clean(payload.address)
  if "isArchived" in fields and payload.isArchived is not None:
    p.is_archived = payload.isArchived
  await write_audit(
    db,
    event_type="project.updated",
    entity_type="Project",
    entity_id=p.id,
    project_id=p.id,
    actor_id=user.id,
    payload={"fields": sorted(fields)},
  )
  await db.commit()
  await db.refresh(p)
  return _project_out(p)


@router.delete("/{project_id}")
async def delete_project(project_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> dict:
  await require_project_owner(project_id, user.id, db, lock=True)
  await db.execute(delete(Task).where(Task.project_id == project_id))
  await db.execute(delete(ProjectTeamMember).where(ProjectTeamMember.project_id == project_id))
  await db.execute(delete(Project).where(Project.id == project_id))
  await write_audit(db, event_type="project.deleted", entity_type="Project", entity_id=project_id, project_id=project_id, actor_id=user.id)
  await db.commit()
  invalidator.revalidate(task_page_path(project_id))
  return {"ok": True}


@router.post("/{project_id}/members")
async def add_member(
  project_id: str,
  payload: TeamMemberAddIn,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> dict:
  await require_project_owner(project_id, user.id, db)
  email = normalize_email(payload.email)
  ures = await db.execute(select(User).where(User.email == email))
  u = ures.scalar_one_or_none()
  if not u:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
  if u.id == user.id:
    return {"ok": True, "already": True}
  existing = await db.execute(
    select(ProjectTeamMember.id).where(ProjectTeamMember.project_id == project_id, ProjectTeamMember.user_id == u.id)
  )
  if existing.scalar_one_or_none():
    return {"ok": True, "already": True}
  db.add(ProjectTeamMember(project_id=project_id, user_id=u.id))
  await write_audit(
    db,
    event_type="project.member.added",
    entity_type="ProjectTeamMember",
    entity_id=u.id,
    project_id=project_id,
    actor_id=user.id,
    payload={"email": email},
  )
  await db.commit()
  return {"ok": True}


@router.get("/{project_id}/assignees", response_model=list[AssigneeOut])
async def list_assignees(
  project_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
) -> list[AssigneeOut]:
  p = await require_project_owner(project_id, user.id, db)
  return [
    AssigneeOut(userId=u.id, name=u.display_name, email=u.email, imageUrl=u.profile_image_url)
    for u in await assignee_candidates(db, p)
  ]
