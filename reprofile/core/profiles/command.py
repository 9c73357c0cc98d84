from __future__ import annotations

from typing import Any, Optional

from reprofile.core.errors import ReprofileError
from reprofile.core.profiles.interfaces import Confirmer, ExtensionHost, NestedExpander
from reprofile.core.profiles.models import EnablementResult
from reprofile.core.profiles.planner import EnablementPlanner
from reprofile.core.profiles.resolver import DependencyResolver
from reprofile.core.trace import resolve_trace_id


def _ops_log(ops: Any, *, trace_id: str, event: str, outcome: str, details: Optional[dict] = None) -> None:
    if ops is None:
        return
    ops.log(trace_id=trace_id, event=event, outcome=outcome, details=details)


def _ops_fail(ops: Any, *, trace_id: str, event: str, error: ReprofileError) -> None:
    if ops is None:
        return
    ops.log_failure(trace_id=trace_id, event=event, error=error)


def run_profile_enable(
    profile_id: Optional[str],
    *,
    host: ExtensionHost,
    confirm: Confirmer,
    nested_expander: Optional[NestedExpander] = None,
    default_profile: str = "standard",
    logger: Any = None,
    ops: Any = None,
    trace_id: Optional[str] = None,
) -> EnablementResult:
    """
    Validate then enable: the resolver's output goes straight to the planner.
    Any ReprofileError is recorded in the ops log and re-raised.
    """
    trace_id = resolve_trace_id(trace_id)
    resolver = DependencyResolver(
        profile_lookup=host,
        eligibility=host,
        nested_expander=nested_expander,
        default_profile=default_profile,
        logger=logger,
    )
    planner = EnablementPlanner(status_lookup=host, permissions_lookup=host, logger=logger)

    try:
        resolved = resolver.resolve(
            profile_id,
            present_modules=host.list_present_modules(),
            enabled_modules=host.list_enabled_modules(),
        )
    except ReprofileError as e:
        _ops_fail(ops, trace_id=trace_id, event="profile_enable.validate", error=e)
        raise
    _ops_log(
        ops,
        trace_id=trace_id,
        event="profile_enable.validate",
        outcome="ok",
        details={
            "profile_id": resolved.profile_id,
            "inheritance_chain": list(resolved.inheritance_chain),
            "to_enable": list(resolved.to_enable),
            "nested_expanded": resolved.nested_expanded,
        },
    )

    try:
        result = planner.plan_and_execute(resolved, confirm=confirm, enable_action=host.enable_modules)
    except ReprofileError as e:
        _ops_fail(ops, trace_id=trace_id, event="profile_enable.execute", error=e)
        raise
    _ops_log(
        ops,
        trace_id=trace_id,
        event="profile_enable.execute",
        outcome=result.outcome.value,
        details={"profile_id": result.profile_id, "enabled": list(result.enabled)},
    )
    return result
