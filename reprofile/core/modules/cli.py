from __future__ import annotations

"""
CLI rendering helpers for the modules-list command.

WHY THIS FILE EXISTS:
app.py stays a thin argparse shell; these helpers are the stable, testable
rendering surface for module status.
"""

from typing import Any, List

from reprofile.core.modules.models import ModuleStatus


def modules_list_lines(*, module_manager: Any) -> List[str]:
    """
    Columns: module_id | kind | state | enabled | reason
    """
    statuses: List[ModuleStatus] = list(module_manager.list_status() or [])
    lines = ["module_id | kind | state | enabled | reason"]
    for st in statuses:
        lines.append(f"{st.module_id} | {st.kind or '-'} | {st.state.value} | {str(st.enabled).lower()} | {st.reason_human}")
    return lines
