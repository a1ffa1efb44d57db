from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ActionError, InvalidInput, VersionConflict, field_errors
from app.invalidation import invalidator, task_page_path
from app.metrics import runtime_metrics
from app.schemas import ActionResult, TaskCreateIn, TaskSyncIn, TaskUpdateIn
from app.tasks import service

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _parse(model: type[M], payload: M | Mapping[str, Any], message: str) -> M:
  if isinstance(payload, model):
    return payload
  try:
    return model.model_validate(payload)
  except ValidationError as exc:
    raise InvalidInput(message, field_errors(exc.errors())) from exc


async def _recover(
  db: AsyncSession,
  *,
  action: str,
  failure_message: str,
  run: Callable[[], Awaitable[ActionResult]],
) -> ActionResult:
  """Operation boundary: every failure kind comes back as a structured result, never as an exception."""
  try:
    result = await run()
  except InvalidInput as exc:
    await db.rollback()
    logger.warning("%s rejected: %s %s", action, exc.message, exc.errors)
    result = ActionResult(success=False, code=exc.code, error=exc.message, errors=exc.errors or None)
  except VersionConflict as exc:
    await db.rollback()
    logger.info("%s conflict on %s", action, exc.task_ids)
    result = ActionResult(success=False, code=exc.code, error=exc.message, conflictTaskIds=exc.task_ids)
  except ActionError as exc:
    await db.rollback()
    if exc.code == "failed":
      logger.error("%s failed: %s", action, exc.message)
    result = ActionResult(success=False, code=exc.code, error=exc.message)
  except SQLAlchemyError:
    logger.exception("%s failed in storage", action)
    await db.rollback()
    result = ActionResult(success=False, code="failed", error=failure_message)
  runtime_metrics.observe_action(action, result.code)
  return result


async def create_task_action(
  db: AsyncSession,
  *,
  principal_id: str,
  project_id: str,
  payload: TaskCreateIn | Mapping[str, Any],
) -> ActionResult:
  async def run() -> ActionResult:
    data = _parse(TaskCreateIn, payload, "Invalid data provided for new task.")
    t = await service.create_task(db, project_id=project_id, principal_id=principal_id, data=data)
    invalidator.revalidate(task_page_path(project_id))
    return ActionResult(success=True, message="Task created.", task=service.task_out(t))

  return await _recover(db, action="task.create", failure_message="Failed to create task.", run=run)


async def update_task_details_action(
  db: AsyncSession,
  *,
  principal_id: str,
  project_id: str,
  task_id: str,
  payload: TaskUpdateIn | Mapping[str, Any],
) -> ActionResult:
  async def run() -> ActionResult:
    data = _parse(TaskUpdateIn, payload, "Invalid data provided for task update.")
    t = await service.update_task_details(db, project_id=project_id, task_id=task_id, principal_id=principal_id, data=data)
    invalidator.revalidate(task_page_path(project_id))
    return ActionResult(success=True, message="Task updated.", task=service.task_out(t))

  return await _recover(db, action="task.update", failure_message="Failed to update task.", run=run)


async def delete_task_action(
  db: AsyncSession,
  *,
  principal_id: str,
  project_id: str,
  task_id: str,
) -> ActionResult:
  async def run() -> ActionResult:
    outcome = await service.delete_task(db, project_id=project_id, task_id=task_id, principal_id=principal_id)
    invalidator.revalidate(task_page_path(project_id))
    return ActionResult(
      success=True,
      message="Task deleted.",
      deletedTaskId=outcome.task_id,
      tasks=[service.task_out(t) for t in outcome.tasks],
    )

  return await _recover(db, action="task.delete", failure_message="Failed to delete task.", run=run)


async def sync_task_board_state_action(
  db: AsyncSession,
  *,
  principal_id: str,
  project_id: str,
  payload: TaskSyncIn | Mapping[str, Any],
) -> ActionResult:
  async def run() -> ActionResult:
    data = _parse(TaskSyncIn, payload, "Invalid data provided for task sync.")
    outcome = await service.sync_tasks(db, project_id=project_id, principal_id=principal_id, items=data.tasks)
    invalidator.revalidate(task_page_path(project_id))
    logger.info(
      "Synced %d task(s) for project %s (%d written, %d missing)",
      len(data.tasks),
      project_id,
      len(outcome.applied),
      len(outcome.missing),
    )
    message = "Task board updated."
    if outcome.missing:
      message = f"Task board updated; {len(outcome.missing)} task(s) were not found in this project."
    return ActionResult(
      success=True,
      message=message,
      tasks=[service.task_out(t) for t in outcome.tasks],
      missingTaskIds=outcome.missing,
    )

  return await _recover(db, action="tasks.sync", failure_message="Failed to update task board.", run=run)
