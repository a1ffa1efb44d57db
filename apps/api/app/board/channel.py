from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.board.projector import BoardProjection, DropTarget, SnapshotItem

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
  ok: bool
  message: str | None = None
  error: str | None = None
  missing_task_ids: list[str] = field(default_factory=list)
  conflict_task_ids: list[str] = field(default_factory=list)
  refetched: bool = False


def _json_or_empty(res: httpx.Response) -> dict[str, Any]:
  try:
    data = res.json() if res.content else {}
  except ValueError:
    return {}
  return data if isinstance(data, dict) else {}


class ReconciliationChannel:
  """
  Client side of the board sync: sends projection snapshots to
  `POST /projects/{id}/tasks/sync` and keeps the projection honest.

  On success the projection adopts the task list the server returns (fresh
  orders and versions). On any failure the authoritative board is fetched
  again and replaces the projection wholesale.
  """

  def __init__(
    self,
    client: httpx.AsyncClient,
    project_id: str,
    projection: BoardProjection | None = None,
    *,
    send_versions: bool = True,
  ) -> None:
    self._client = client
    self.project_id = project_id
    self.projection = projection if projection is not None else BoardProjection()
    self.send_versions = send_versions

  @property
  def board_url(self) -> str:
    return f"/projects/{self.project_id}/board"

  @property
  def sync_url(self) -> str:
    return f"/projects/{self.project_id}/tasks/sync"

  async def refresh(self) -> BoardProjection:
    res = await self._client.get(self.board_url)
    res.raise_for_status()
    data = _json_or_empty(res)
    tasks: list[dict[str, Any]] = []
    for col in data.get("columns") or []:
      tasks.extend(col.get("tasks") or [])
    self.projection.replace(tasks)
    return self.projection

  async def drop(self, over: DropTarget | None) -> SyncReport | None:
    snapshot = self.projection.drag_end(over)
    if snapshot is None:
      return None
    return await self.push(snapshot)

  async def move(self, task_id: str, status: str, index: int) -> SyncReport | None:
    snapshot = self.projection.move(task_id, status, index)
    if snapshot is None:
      return None
    return await self.push(snapshot)

  async def push(self, snapshot: Sequence[SnapshotItem]) -> SyncReport:
    if not snapshot:
      return SyncReport(ok=False, error="At least one task must be provided for syncing.")
    body = {"tasks": [item.as_payload(include_version=self.send_versions) for item in snapshot]}
    try:
      res = await self._client.post(self.sync_url, json=body)
    except httpx.HTTPError as exc:
      logger.warning("Board sync for project %s did not reach the server: %s", self.project_id, exc)
      return SyncReport(ok=False, error="Could not reach the server.", refetched=await self._refetch())

    data = _json_or_empty(res)
    if res.is_success and data.get("success"):
      if data.get("tasks") is not None:
        self.projection.replace(data["tasks"])
      return SyncReport(
        ok=True,
        message=data.get("message"),
        missing_task_ids=list(data.get("missingTaskIds") or []),
      )

    error = data.get("error") or data.get("detail") or f"Task board sync failed ({res.status_code})."
    return SyncReport(
      ok=False,
      error=str(error),
      conflict_task_ids=list(data.get("conflictTaskIds") or []),
      refetched=await self._refetch(),
    )

  async def _refetch(self) -> bool:
    try:
      await self.refresh()
    except httpx.HTTPError as exc:
      logger.warning("Board refetch for project %s failed; projection left as is: %s", self.project_id, exc)
      return False
    return True
