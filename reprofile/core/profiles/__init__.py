"""
Profile (re)enable core: dependency resolution and enablement planning.

WHY THIS PACKAGE EXISTS:
Re-enabling an installation profile means enabling every module it needs,
including those inherited from base profiles, without leaving the run half
validated. The resolver validates; the planner executes.
"""

from reprofile.core.profiles.command import run_profile_enable
from reprofile.core.profiles.models import EnablementOutcome, EnablementResult, Profile, ResolvedDependencies
from reprofile.core.profiles.planner import EnablementPlanner, plan_and_execute
from reprofile.core.profiles.resolver import DependencyResolver, resolve

__all__ = [
    "DependencyResolver",
    "EnablementOutcome",
    "EnablementPlanner",
    "EnablementResult",
    "Profile",
    "ResolvedDependencies",
    "plan_and_execute",
    "resolve",
    "run_profile_enable",
]
