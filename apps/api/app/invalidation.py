from __future__ import annotations

import logging
from collections.abc import Callable
from threading import Lock

logger = logging.getLogger(__name__)


def task_page_path(project_id: str) -> str:
  return f"/tasks/{project_id}"


class ViewInvalidator:
  """
  Per-path staleness counters for rendered views.

  Every successful mutation bumps the generation of the affected path; a view
  that rendered at generation N is stale once the counter moves past N.
  Listeners run synchronously after the bump (e.g. a push to connected
  clients). The write they report on is already committed, so a failing
  listener is logged and does not reach the caller.
  """

  def __init__(self) -> None:
    self._lock = Lock()
    self._generations: dict[str, int] = {}
    self._listeners: list[Callable[[str, int], None]] = []

  def generation(self, path: str) -> int:
    with self._lock:
      return self._generations.get(path, 0)

  def revalidate(self, path: str) -> int:
    with self._lock:
      gen = self._generations.get(path, 0) + 1
      self._generations[path] = gen
      listeners = list(self._listeners)
    for fn in listeners:
      try:
        fn(path, gen)
      except Exception:
        logger.exception("Invalidation listener failed for %s", path)
    return gen

  def is_stale(self, path: str, seen_generation: int) -> bool:
    return self.generation(path) > seen_generation

  def subscribe(self, fn: Callable[[str, int], None]) -> Callable[[], None]:
    with self._lock:
      self._listeners.append(fn)

    def _unsubscribe() -> None:
      with self._lock:
        if fn in self._listeners:
          self._listeners.remove(fn)

    return _unsubscribe

  def reset(self) -> None:
    with self._lock:
      self._generations.clear()
      self._listeners.clear()


invalidator = ViewInvalidator()
