from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TraceContext:
    trace_id: str | None
    request_id: str | None
    actor: str | None = None

    def log_extra(self) -> dict[str, str]:
        if self.actor is None:
            return {}
        return {"actor": self.actor}
