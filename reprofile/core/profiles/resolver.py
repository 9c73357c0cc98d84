from __future__ import annotations

"""
Dependency resolver (validation phase of profile-enable).

WHY THIS FILE EXISTS:
Before anything is enabled, the full set of modules a profile needs must be
known and checked: the profile's own dependencies, those inherited through its
base profile chain, and (when the host can provide them) every nested module
dependency. Nothing here has side effects; a failure aborts the run before the
host is touched.
"""

from typing import Any, Collection, Dict, Iterable, List, Optional, Tuple

from reprofile.core.errors import (
    CyclicInheritanceError,
    InvalidModuleIdentifierError,
    MissingModulesError,
    RequirementsNotMetError,
    UnknownProfileError,
)
from reprofile.core.modules.models import is_valid_module_id
from reprofile.core.profiles.interfaces import EligibilityCheck, NestedExpander, ProfileLookup
from reprofile.core.profiles.models import ResolvedDependencies


def _add_all(target: Dict[str, None], ids: Iterable[str], *, declared_by: str) -> None:
    for mid in ids:
        if not is_valid_module_id(mid):
            raise InvalidModuleIdentifierError(str(mid), declared_by=declared_by)
        target.setdefault(mid, None)


class DependencyResolver:
    def __init__(
        self,
        *,
        profile_lookup: ProfileLookup,
        eligibility: EligibilityCheck,
        nested_expander: Optional[NestedExpander] = None,
        default_profile: str = "standard",
        logger: Any = None,
    ):
        self.profile_lookup = profile_lookup
        self.eligibility = eligibility
        self.nested_expander = nested_expander
        self.default_profile = str(default_profile)
        self.logger = logger

    def _info(self, msg: str) -> None:
        if self.logger is not None:
            self.logger.info(msg)

    def collect_profile_dependencies(self, profile_id: str) -> Tuple[Dict[str, None], Tuple[str, ...]]:
        """
        Walk the base profile chain starting at `profile_id`.
        Returns (ordered dependency set, inheritance chain).
        """
        profile = self.profile_lookup.fetch_profile_info(profile_id)
        deps: Dict[str, None] = {}
        _add_all(deps, profile.dependencies, declared_by=profile_id)

        chain: List[str] = [profile_id]
        while profile.base_profile:
            base_id = profile.base_profile
            if base_id in chain:
                raise CyclicInheritanceError(chain + [base_id])
            chain.append(base_id)
            profile = self.profile_lookup.fetch_profile_info(base_id)
            _add_all(deps, profile.dependencies, declared_by=base_id)
        return deps, tuple(chain)

    def expand_nested(self, deps: Dict[str, None]) -> bool:
        if self.nested_expander is None:
            return False
        expanded = self.nested_expander.expand_nested_dependencies(list(deps))
        if isinstance(expanded, (set, frozenset)):
            expanded = sorted(expanded)
        _add_all(deps, expanded, declared_by="nested dependencies")
        return True

    def resolve(
        self,
        profile_id: Optional[str] = None,
        *,
        present_modules: Collection[str],
        enabled_modules: Collection[str],
    ) -> ResolvedDependencies:
        profile_id = str(profile_id or self.default_profile)

        if profile_id not in self.profile_lookup.list_known_extensions():
            raise UnknownProfileError(profile_id)

        deps, chain = self.collect_profile_dependencies(profile_id)
        nested = self.expand_nested(deps)

        present = set(present_modules)
        missing = [mid for mid in deps if mid not in present]
        if missing:
            raise MissingModulesError(missing, profile_id=profile_id)

        enabled = set(enabled_modules)
        notices: List[str] = []
        final: Dict[str, None] = {}
        profile_enabled = profile_id in enabled
        if profile_enabled:
            notices.append(f"The {profile_id} profile is already enabled.")
            self._info(notices[-1])
        else:
            final[profile_id] = None
        for mid in deps:
            if mid not in enabled:
                final.setdefault(mid, None)

        batch = tuple(final)
        for mid in batch:
            if not self.eligibility.is_enablement_eligible(mid, batch=batch):
                raise RequirementsNotMetError(mid, profile_id=profile_id)

        return ResolvedDependencies(
            profile_id=profile_id,
            dependencies=tuple(deps),
            to_enable=tuple(final),
            already_enabled=tuple(mid for mid in deps if mid in enabled),
            profile_already_enabled=profile_enabled,
            inheritance_chain=chain,
            nested_expanded=nested,
            notices=tuple(notices),
        )


def resolve(
    profile_id: Optional[str],
    profile_lookup: ProfileLookup,
    present_modules: Collection[str],
    enabled_modules: Collection[str],
    *,
    eligibility: EligibilityCheck,
    nested_expander: Optional[NestedExpander] = None,
    default_profile: str = "standard",
    logger: Any = None,
) -> ResolvedDependencies:
    resolver = DependencyResolver(
        profile_lookup=profile_lookup,
        eligibility=eligibility,
        nested_expander=nested_expander,
        default_profile=default_profile,
        logger=logger,
    )
    return resolver.resolve(profile_id, present_modules=present_modules, enabled_modules=enabled_modules)
