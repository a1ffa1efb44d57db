from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.deps import get_current_user, get_db, require_project_owner
from app.models import AuditEvent, User
from app.schemas import AuditOut

router = APIRouter(prefix="/projects/{project_id}/audit", tags=["audit"])


@router.get("", response_model=list[AuditOut])
async def list_audit(
  project_id: str,
  taskId: str | None = None,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> list[AuditOut]:
  await require_project_owner(project_id, user.id, db)
  q = select(AuditEvent).where(AuditEvent.project_id == project_id).order_by(AuditEvent.created_at.desc()).limit(200)
  if taskId:
    q = q.where(AuditEvent.task_id == taskId)
  res = await db.execute(q)
  out = []
  for ev in res.scalars().all():
    out.append(
      AuditOut(
        id=ev.id,
        projectId=ev.project_id,
        taskId=ev.task_id,
        actorId=ev.actor_id,
        eventType=ev.event_type,
        entityType=ev.entity_type,
        entityId=ev.entity_id,
        payload=ev.payload or {},
        createdAt=ev.created_at,
      )
    )
  return out
