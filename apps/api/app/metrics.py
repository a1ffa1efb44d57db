from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from time import monotonic


@dataclass
class RequestSample:
  ts: datetime
  status_code: int
  latency_ms: float


class RuntimeMetrics:
  """In-process request latency window (24h) and per-action outcome counters."""

  def __init__(self) -> None:
    self._started_monotonic = monotonic()
    self._started_at = datetime.now(timezone.utc)
    self._samples: deque[RequestSample] = deque()
    self._outcomes: Counter[tuple[str, str]] = Counter()
    self._lock = Lock()

  @property
  def started_at(self) -> datetime:
    return self._started_at

  def uptime_seconds(self) -> int:
    return max(0, int(monotonic() - self._started_monotonic))

  def observe_request(self, status_code: int, latency_ms: float) -> None:
    now = datetime.now(timezone.utc)
    with self._lock:
      self._samples.append(RequestSample(ts=now, status_code=status_code, latency_ms=latency_ms))
      cutoff = now - timedelta(hours=24)
      while self._samples and self._samples[0].ts < cutoff:
        self._samples.popleft()

  def observe_action(self, action: str, code: str) -> None:
    with self._lock:
      self._outcomes[(action, code)] += 1

  def action_count(self, action: str, code: str) -> int:
    with self._lock:
      return self._outcomes[(action, code)]

  def snapshot(self) -> dict:
    with self._lock:
      samples = list(self._samples)
      outcomes = dict(self._outcomes)

    p95_ms = 0.0
    if samples:
      latencies = sorted(s.latency_ms for s in samples)
      p95_ms = latencies[max(0, int(len(latencies) * 0.95) - 1)]
    errors = sum(1 for s in samples if s.status_code >= 500)

    actions: dict[str, dict[str, int]] = {}
    for (action, code), n in sorted(outcomes.items()):
      actions.setdefault(action, {})[code] = n

    return {
      "startedAt": self._started_at.isoformat(),
      "uptimeSeconds": self.uptime_seconds(),
      "requestCount24h": len(samples),
      "errorCount24h": errors,
      "errorRate24h": round((errors / len(samples)) * 100, 2) if samples else 0.0,
      "p95LatencyMs24h": round(p95_ms, 2),
      "actions": actions,
    }

  def reset(self) -> None:
    with self._lock:
      self._samples.clear()
      self._outcomes.clear()


runtime_metrics = RuntimeMetrics()
