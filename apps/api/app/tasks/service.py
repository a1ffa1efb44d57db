from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.audit import write_audit
from app.deps import require_project_owner, require_task_owner
from app.errors import InvalidInput, StorageFailure, VersionConflict
from app.models import TASK_STATUSES, Project, Task, as_utc, utcnow
from app.schemas import TaskCreateIn, TaskOut, TaskSyncItemIn, TaskUpdateIn
from app.team import is_assignee_candidate

logger = logging.getLogger(__name__)

_STATUS_RANK = {s: i for i, s in enumerate(TASK_STATUSES)}


@dataclass
class SyncOutcome:
  applied: list[str] = field(default_factory=list)
  unchanged: list[str] = field(default_factory=list)
  missing: list[str] = field(default_factory=list)
  tasks: list[Task] = field(default_factory=list)


@dataclass
class DeleteOutcome:
  task_id: str
  tasks: list[Task] = field(default_factory=list)


def task_out(t: Task) -> TaskOut:
  return TaskOut(
    id=t.id,
    projectId=t.project_id,
    ownerId=t.owner_id,
    title=t.title,
    description=t.description,
    status=t.status,
    priority=t.priority,
    assigneeId=t.assignee_id,
    order=t.order_index,
    version=t.version,
    dueDate=as_utc(t.due_date),
    createdAt=as_utc(t.created_at),
    updatedAt=as_utc(t.updated_at),
  )


async def project_tasks(db: AsyncSession, project_id: str) -> list[Task]:
  """All tasks of a project, by board column then rank. Callers have already passed the ownership guard."""
  res = await db.execute(select(Task).where(Task.project_id == project_id).execution_options(populate_existing=True))
  return sorted(res.scalars().all(), key=lambda t: (_STATUS_RANK.get(t.status, len(_STATUS_RANK)), t.order_index))


async def list_tasks(db: AsyncSession, *, project_id: str, principal_id: str) -> list[Task]:
  await require_project_owner(project_id, principal_id, db)
  return await project_tasks(db, project_id)


async def _validate_assignee(db: AsyncSession, project: Project, assignee_id: str | None) -> None:
  if not assignee_id:
    return
  if not await is_assignee_candidate(db, project, assignee_id):
    raise InvalidInput("Invalid assignee.", {"assigneeId": ["Assignee must be the project owner or a team member."]})


async def create_task(db: AsyncSession, *, project_id: str, principal_id: str, data: TaskCreateIn) -> Task:
  project = await require_project_owner(project_id, principal_id, db, lock=True)
  await _validate_assignee(db, project, data.assigneeId)

  # Append to the end of the partition, counted by the INSERT itself.
  next_order = (
    select(func.count(Task.id))
    .where(Task.project_id == project.id, Task.status == data.status)
    .correlate(None)
    .scalar_subquery()
  )
  t = Task(
    project_id=project.id,
    owner_id=project.owner_id,
    title=data.title,
    description=data.description,
    status=data.status,
    priority=data.priority,
    assignee_id=data.assigneeId,
    due_date=data.dueDate,
    order_index=next_order,
    version=0,
  )
  db.add(t)
  await db.flush()
  await db.refresh(t)
  await write_audit(
    db,
    event_type="task.created",
    entity_type="Task",
    entity_id=t.id,
    project_id=project.id,
    task_id=t.id,
    actor_id=principal_id,
    payload={"title": t.title, "status": t.status, "order": t.order_index},
  )
  await db.commit()
  return t


async def update_task_details(
  db: AsyncSession,
  *,
  project_id: str,
  task_id: str,
  principal_id: str,
  data: TaskUpdateIn,
) -> Task:
  t = await require_task_owner(task_id, project_id, principal_id, db)
  if data.version is not None and t.version != data.version:
    raise VersionConflict("Task was changed since it was loaded; reload and try again.", [t.id])

  fields_set = data.model_fields_set
  if "assigneeId" in fields_set:
    project = await require_project_owner(project_id, principal_id, db)
    await _validate_assignee(db, project, data.assigneeId)

  changed: dict = {"title": data.title}
  t.title = data.title
  mapping = [
    ("description", "description"),
    ("due_date", "dueDate"),
    ("priority", "priority"),
    ("assignee_id", "assigneeId"),
  ]
  for model_attr, field_name in mapping:
    if field_name not in fields_set:
      continue
    val = getattr(data, field_name)
    if field_name == "priority" and val is None:
      continue
    setattr(t, model_attr, val)
    changed[field_name] = val

  t.version += 1
  t.updated_at = utcnow()
  await write_audit(
    db,
    event_type="task.updated",
    entity_type="Task",
    entity_id=t.id,
    project_id=project_id,
    task_id=t.id,
    actor_id=principal_id,
    payload={"version": t.version, "changed": list(changed.keys()), "fields": changed},
  )
  await db.commit()
  return t


async def delete_task(db: AsyncSession, *, project_id: str, task_id: str, principal_id: str) -> DeleteOutcome:
  t = await require_task_owner(task_id, project_id, principal_id, db, lock=True)
  status, order, title = t.status, t.order_index, t.title

  res = await db.execute(delete(Task).where(Task.id == task_id, Task.project_id == project_id))
  if not res.rowcount:
    raise StorageFailure("Failed to delete task.")

  # Compaction keeps the partition dense: 0..n-1.
  await db.execute(
    update(Task)
    .where(Task.project_id == project_id, Task.status == status, Task.order_index > order)
    .values(order_index=Task.order_index - 1, version=Task.version + 1, updated_at=utcnow())
  )
  await write_audit(
    db,
    event_type="task.deleted",
    entity_type="Task",
    entity_id=task_id,
    project_id=project_id,
    task_id=task_id,
    actor_id=principal_id,
    payload={"title": title, "status": status, "order": order},
  )
  # Read inside the transaction so a failed read cannot follow a committed delete.
  remaining = await project_tasks(db, project_id)
  await db.commit()
  return DeleteOutcome(task_id=task_id, tasks=remaining)


async def sync_tasks(
  db: AsyncSession,
  *,
  project_id: str,
  principal_id: str,
  items: Sequence[TaskSyncItemIn],
) -> SyncOutcome:
  """
  Apply a board snapshot of (id, status, order) in one transaction.

  Ownership is checked once, up front, with the project row locked; nothing is
  written when it fails. Every row update also filters on project_id, so ids
  from other projects are reported as missing and left untouched. Rows whose
  status and order already match are not rewritten, which makes resubmitting
  a snapshot a no-op. A version mismatch on any item rejects the whole batch.
  """
  await require_project_owner(project_id, principal_id, db, lock=True)

  ids = [i.id for i in items]
  res = await db.execute(
    select(Task.id, Task.status, Task.order_index, Task.version).where(Task.project_id == project_id, Task.id.in_(ids))
  )
  current = {row.id: row for row in res.all()}

  conflicts = [i.id for i in items if i.id in current and i.version is not None and i.version != current[i.id].version]
  if conflicts:
    raise VersionConflict("Task board changed since it was loaded; reload and try again.", conflicts)

  out = SyncOutcome()
  now = utcnow()
  for item in items:
    row = current.get(item.id)
    if row is None:
      out.missing.append(item.id)
      continue
    if row.status == item.status and row.order_index == item.order:
      out.unchanged.append(item.id)
      continue
    ures = await db.execute(
      update(Task)
      .where(Task.id == item.id, Task.project_id == project_id)
      .values(status=item.status, order_index=item.order, version=Task.version + 1, updated_at=now)
    )
    if ures.rowcount:
      out.applied.append(item.id)
    else:
      out.missing.append(item.id)

  await write_audit(
    db,
    event_type="tasks.synced",
    entity_type="Project",
    entity_id=project_id,
    project_id=project_id,
    actor_id=principal_id,
    payload={"count": len(items), "applied": out.applied, "missing": out.missing},
  )
  out.tasks = await project_tasks(db, project_id)
  await db.commit()
  if out.missing:
    logger.warning("Sync for project %s skipped %d task(s) not in the project: %s", project_id, len(out.missing), out.missing)
  return out
