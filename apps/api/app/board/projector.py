from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from app.models import TASK_STATUSES

BOARD_COLUMNS: tuple[tuple[str, str], ...] = (
  ("todo", "To Do"),
  ("inprogress", "In Progress"),
  ("done", "Done"),
  ("archived", "Archived"),
)


@dataclass
class Card:
  id: str
  status: str
  order: int
  version: int | None = None
  payload: Any = None


@dataclass(frozen=True)
class DropTarget:
  """Where a dragged card was released: a column, or another card."""

  status: str | None = None
  task_id: str | None = None

  @classmethod
  def column(cls, status: str) -> DropTarget:
    return cls(status=status)

  @classmethod
  def task(cls, task_id: str) -> DropTarget:
    return cls(task_id=task_id)


@dataclass(frozen=True)
class SnapshotItem:
  id: str
  status: str
  order: int
  version: int | None = None

  def as_payload(self, *, include_version: bool = True) -> dict[str, Any]:
    out: dict[str, Any] = {"id": self.id, "status": self.status, "order": self.order}
    if include_version and self.version is not None:
      out["version"] = self.version
    return out


def _field(record: Any, *names: str) -> Any:
  for name in names:
    if isinstance(record, Mapping):
      if name in record:
        return record[name]
    elif hasattr(record, name):
      return getattr(record, name)
  return None


def _card_from(record: Any) -> Card:
  if isinstance(record, Card):
    return Card(id=record.id, status=record.status, order=record.order, version=record.version, payload=record.payload)
  task_id = _field(record, "id")
  status = _field(record, "status")
  if not task_id or status not in TASK_STATUSES:
    raise ValueError(f"Not a board task: {record!r}")
  order = _field(record, "order", "order_index")
  version = _field(record, "version")
  return Card(
    id=str(task_id),
    status=str(status),
    order=int(order or 0),
    version=int(version) if version is not None else None,
    payload=record,
  )


class BoardProjection:
  """
  Status columns of one project's tasks, plus the local drag-and-drop state.

  Buckets always follow the fixed status set; within a bucket cards are kept
  in display order and their `order` equals their index once a gesture has
  touched that bucket. Nothing here talks to the server: `drag_end` hands back
  the full snapshot for the reconciliation channel to send.
  """

  def __init__(self, records: Iterable[Any] = ()) -> None:
    self._buckets: dict[str, list[Card]] = {s: [] for s in TASK_STATUSES}
    self._active_id: str | None = None
    self._origin_status: str | None = None
    self.replace(records)

  @classmethod
  def from_records(cls, records: Iterable[Any]) -> BoardProjection:
    return cls(records)

  def replace(self, records: Iterable[Any]) -> None:
    buckets: dict[str, list[Card]] = {s: [] for s in TASK_STATUSES}
    for record in records:
      card = _card_from(record)
      buckets[card.status].append(card)
    for cards in buckets.values():
      cards.sort(key=lambda c: c.order)
    self._buckets = buckets
    self._active_id = None
    self._origin_status = None

  # -- reads

  def column(self, status: str) -> list[Card]:
    return list(self._buckets[status])

  def columns(self) -> dict[str, list[Card]]:
    return {s: list(cards) for s, cards in self._buckets.items()}

  def find(self, task_id: str) -> Card | None:
    for cards in self._buckets.values():
      for c in cards:
        if c.id == task_id:
          return c
    return None

  def status_of(self, task_id: str) -> str | None:
    for status, cards in self._buckets.items():
      if any(c.id == task_id for c in cards):
        return status
    return None

  def layout(self) -> dict[str, list[str]]:
    return {s: [c.id for c in cards] for s, cards in self._buckets.items()}

  @property
  def active_id(self) -> str | None:
    return self._active_id

  @property
  def origin_status(self) -> str | None:
    return self._origin_status

  def snapshot(self) -> list[SnapshotItem]:
    out: list[SnapshotItem] = []
    for status in TASK_STATUSES:
      for idx, c in enumerate(self._buckets[status]):
        out.append(SnapshotItem(id=c.id, status=status, order=idx, version=c.version))
    return out

  # -- gesture

  def drag_start(self, task_id: str) -> Card | None:
    card = self.find(task_id)
    if card is None:
      self._active_id = None
      self._origin_status = None
      return None
    self._active_id = task_id
    self._origin_status = card.status
    return card

  def drag_over(self, over: DropTarget | None) -> bool:
    if self._active_id is None or over is None:
      return False
    return self._cross(self._active_id, over)

  def drag_end(self, over: DropTarget | None) -> list[SnapshotItem] | None:
    task_id = self._active_id
    self._active_id = None
    self._origin_status = None
    if task_id is None or over is None:
      # Dropped outside any target: keep whatever drag_over last projected.
      return None
    final = self.status_of(task_id)
    if final is None:
      return None

    # A drop can land in another column without a preceding drag_over.
    if not self._cross(task_id, over):
      bucket = self._buckets[final]
      active_idx = self._index(final, task_id)
      over_idx = self._index(final, over.task_id) if over.task_id else -1
      if over_idx != -1 and active_idx != over_idx:
        bucket.insert(over_idx, bucket.pop(active_idx))
        self._renumber(final)
    return self.snapshot()

  def move(self, task_id: str, status: str, index: int) -> list[SnapshotItem] | None:
    """Run a whole drag gesture that puts `task_id` at `index` of column `status`."""
    if status not in self._buckets:
      raise ValueError(f"Unknown status: {status}")
    if self.drag_start(task_id) is None:
      return None
    target = self._buckets[status]
    if self.status_of(task_id) == status:
      # Same column: release over whichever card sits at the final index.
      index = max(0, min(index, len(target) - 1))
      return self.drag_end(DropTarget.task(target[index].id))
    index = max(0, min(index, len(target)))
    over = DropTarget.task(target[index].id) if index < len(target) else DropTarget.column(status)
    self.drag_over(over)
    return self.drag_end(DropTarget.task(task_id))

  # -- internals

  def _index(self, status: str, task_id: str | None) -> int:
    for idx, c in enumerate(self._buckets[status]):
      if c.id == task_id:
        return idx
    return -1

  def _target_status(self, over: DropTarget) -> str | None:
    if over.task_id:
      return self.status_of(over.task_id)
    if over.status in self._buckets:
      return over.status
    return None

  def _cross(self, task_id: str, over: DropTarget) -> bool:
    src = self.status_of(task_id)
    dst = self._target_status(over)
    if src is None or dst is None or src == dst:
      return False
    source = self._buckets[src]
    card = source.pop(self._index(src, task_id))
    dest = self._buckets[dst]
    idx = self._index(dst, over.task_id) if over.task_id else -1
    if idx < 0:
      idx = len(dest)
    card.status = dst
    dest.insert(idx, card)
    self._renumber(src)
    self._renumber(dst)
    return True

  def _renumber(self, status: str) -> None:
    for idx, c in enumerate(self._buckets[status]):
      c.order = idx
