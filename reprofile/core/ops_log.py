from __future__ import annotations

import json
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class OpsLogger:
    """
    Ops log (JSONL): one line per profile-enable phase, keyed by trace id.

    Each record has ts, trace_id, event, outcome and details. Failed phases use
    the error code as outcome and the error's to_dict() as details.
    """

    path: str = os.path.join("logs", "ops.jsonl")
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def log(self, *, trace_id: str, event: str, outcome: str, details: Optional[Dict[str, Any]] = None) -> None:
        record = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "trace_id": trace_id,
            "event": event,
            "outcome": outcome,
            "details": dict(details or {}),
        }
        self._append(json.dumps(record, ensure_ascii=False, sort_keys=True))

    def log_failure(self, *, trace_id: str, event: str, error: Any) -> None:
        self.log(trace_id=trace_id, event=event, outcome=str(error.code), details=error.to_dict())

    def _append(self, line: str) -> None:
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
                f.flush()
                try:
                    os.fsync(f.fileno())
                except OSError:
                    pass
