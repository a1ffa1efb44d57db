from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.board.projector import BOARD_COLUMNS, BoardProjection
from app.deps import get_current_user, get_db
from app.invalidation import invalidator, task_page_path
from app.models import User
from app.schemas import ActionResult, BoardColumnOut, BoardOut, TaskCreateIn, TaskOut, TaskSyncIn, TaskUpdateIn
from app.tasks import actions, service

router = APIRouter(prefix="/projects/{project_id}", tags=["tasks"])

# "denied" shares 404 with missing projects so ids cannot be probed.
_STATUS_BY_CODE = {"ok": 200, "invalid": 422, "denied": 404, "conflict": 409, "failed": 500}


def _respond(response: Response, result: ActionResult) -> ActionResult:
  response.status_code = _STATUS_BY_CODE.get(result.code, 500)
  return result


@router.get("/tasks", response_model=list[TaskOut])
async def list_tasks(project_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> list[TaskOut]:
  tasks = await service.list_tasks(db, project_id=project_id, principal_id=user.id)
  return [service.task_out(t) for t in tasks]


@router.get("/board", response_model=BoardOut)
async def get_board(project_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> BoardOut:
  tasks = await service.list_tasks(db, project_id=project_id, principal_id=user.id)
  projection = BoardProjection.from_records(service.task_out(t) for t in tasks)
  return BoardOut(
    projectId=project_id,
    generation=invalidator.generation(task_page_path(project_id)),
    columns=[
      BoardColumnOut(status=status, title=title, tasks=[c.payload for c in projection.column(status)])
      for status, title in BOARD_COLUMNS
    ],
  )


@router.post("/tasks", response_model=ActionResult)
async def create_task(
  project_id: str,
  payload: TaskCreateIn,
  response: Response,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ActionResult:
  result = await actions.create_task_action(db, principal_id=user.id, project_id=project_id, payload=payload)
  return _respond(response, result)


@router.post("/tasks/sync", response_model=ActionResult)
async def sync_tasks(
  project_id: str,
  payload: TaskSyncIn,
  response: Response,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ActionResult:
  result = await actions.sync_task_board_state_action(db, principal_id=user.id, project_id=project_id, payload=payload)
  return _respond(response, result)


@router.patch("/tasks/{task_id}", response_model=ActionResult)
async def update_task(
  project_id: str,
  task_id: str,
  payload: TaskUpdateIn,
  response: Response,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ActionResult:
  result = await actions.update_task_details_action(
    db, principal_id=user.id, project_id=project_id, task_id=task_id, payload=payload
  )
  return _respond(response, result)


@router.delete("/tasks/{task_id}", response_model=ActionResult)
async def delete_task(
  project_id: str,
  task_id: str,
  response: Response,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
) -> ActionResult:
  result = await actions.delete_task_action(db, principal_id=user.id, project_id=project_id, task_id=task_id)
  return _respond(response, result)
