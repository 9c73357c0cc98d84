from __future__ import annotations

"""
Enablement planner (execution phase of profile-enable).

WHY THIS FILE EXISTS:
Once the resolver has produced a validated plan, the user confirms it, the host
enables the modules, and the outcome is checked module by module against the
host's own status. A module the host did not activate fails the run even if the
rest succeeded; nothing is rolled back.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from reprofile.core.errors import PartialFailureError
from reprofile.core.profiles.interfaces import Confirmer, EnableAction, PermissionsLookup, StatusLookup
from reprofile.core.profiles.models import EnablementOutcome, EnablementResult, ResolvedDependencies


def confirmation_prompt(module_ids: List[str]) -> str:
    return f"The following extensions will be enabled: {', '.join(module_ids)}\nDo you really want to continue?"


def _is_active(status: Any) -> bool:
    if status is None:
        return False
    if isinstance(status, Mapping):
        return bool(status.get("active", False))
    return bool(getattr(status, "active", False))


class EnablementPlanner:
    def __init__(
        self,
        *,
        status_lookup: StatusLookup,
        permissions_lookup: Optional[PermissionsLookup] = None,
        logger: Any = None,
    ):
        self.status_lookup = status_lookup
        self.permissions_lookup = permissions_lookup
        self.logger = logger

    def _info(self, msg: str) -> None:
        if self.logger is not None:
            self.logger.info(msg)

    def _permissions(self, module_id: str) -> Tuple[str, ...]:
        if self.permissions_lookup is None:
            return ()
        return tuple(self.permissions_lookup.get_permissions_for(module_id) or ())

    def plan_and_execute(
        self,
        resolved: ResolvedDependencies,
        *,
        confirm: Confirmer,
        enable_action: EnableAction,
    ) -> EnablementResult:
        to_enable = list(resolved.to_enable)
        if not to_enable:
            self._info("There were no extensions that could be enabled.")
            return EnablementResult(
                outcome=EnablementOutcome.NOTHING_TO_DO,
                profile_id=resolved.profile_id,
                already_enabled=resolved.already_enabled,
            )

        if not confirm(confirmation_prompt(to_enable)):
            self._info("Aborting.")
            return EnablementResult(
                outcome=EnablementOutcome.USER_ABORTED,
                profile_id=resolved.profile_id,
                already_enabled=resolved.already_enabled,
            )

        enable_action(to_enable)

        statuses = self.status_lookup.get_status_for(to_enable) or {}
        enabled: List[str] = []
        problem_dependencies: List[str] = []
        permissions: Dict[str, Tuple[str, ...]] = {}
        for mid in to_enable:
            if not _is_active(statuses.get(mid)):
                problem_dependencies.append(mid)
                continue
            enabled.append(mid)
            self._info(f"{mid} was enabled successfully.")
            perms = self._permissions(mid)
            if perms:
                permissions[mid] = perms
                self._info(f"{mid} defines the following permissions: {', '.join(perms)}")

        if problem_dependencies:
            raise PartialFailureError(problem_dependencies, profile_id=resolved.profile_id, enabled=enabled)

        return EnablementResult(
            outcome=EnablementOutcome.ENABLED,
            profile_id=resolved.profile_id,
            enabled=tuple(enabled),
            already_enabled=resolved.already_enabled,
            permissions=permissions,
        )


def plan_and_execute(
    resolved: ResolvedDependencies,
    confirm: Confirmer,
    enable_action: EnableAction,
    *,
    status_lookup: StatusLookup,
    permissions_lookup: Optional[PermissionsLookup] = None,
    logger: Any = None,
) -> EnablementResult:
    planner = EnablementPlanner(status_lookup=status_lookup, permissions_lookup=permissions_lookup, logger=logger)
    return planner.plan_and_execute(resolved, confirm=confirm, enable_action=enable_action)
