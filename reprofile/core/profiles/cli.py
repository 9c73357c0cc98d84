from __future__ import annotations

from typing import List

from reprofile.core.errors import ReprofileError
from reprofile.core.profiles.models import EnablementOutcome, EnablementResult


def result_lines(result: EnablementResult) -> List[str]:
    if result.outcome == EnablementOutcome.USER_ABORTED:
        return ["Aborted."]
    if result.outcome == EnablementOutcome.NOTHING_TO_DO:
        lines = [f"Nothing to enable for the {result.profile_id} profile."]
    else:
        lines = [f"Enabled: {', '.join(result.enabled)}"]
        for mid, perms in result.permissions.items():
            lines.append(f"  {mid} permissions: {', '.join(perms)}")
    if result.already_enabled:
        lines.append(f"Already enabled: {', '.join(result.already_enabled)}")
    return lines


def error_lines(err: ReprofileError) -> List[str]:
    return [f"[{err.code}] {err.user_message}"]
