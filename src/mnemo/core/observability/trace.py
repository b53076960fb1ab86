from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Trace:
    task: str
    correlation_id: str | None = None
    events: list[dict[str, Any]] = field(default_factory=list)
    _started: float = field(default_factory=time.perf_counter, repr=False)

    def emit(self, name: str, payload: dict[str, Any] | None = None) -> None:
        enriched_payload = dict(payload or {})
        if self.correlation_id:
            enriched_payload.setdefault("correlation_id", self.correlation_id)
        enriched_payload.setdefault("elapsed_ms", round((time.perf_counter() - self._started) * 1000.0, 3))
        self.events.append({"event": name, "payload": enriched_payload})
