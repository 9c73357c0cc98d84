from __future__ import annotations

import uuid
from typing import Optional


def new_trace_id() -> str:
    return uuid.uuid4().hex


def resolve_trace_id(trace_id: Optional[str] = None) -> str:
    if trace_id:
        return str(trace_id)
    return new_trace_id()
