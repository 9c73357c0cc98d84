from __future__ import annotations

"""
Collaborator interfaces for the resolver and planner.

WHY THIS FILE EXISTS:
Module presence, activation state, eligibility and the enable action all belong
to the host module system. The core only reaches them through these narrow
protocols so it can be exercised with fakes.
"""

from typing import Collection, Iterable, List, Mapping, Protocol, Sequence, Set

from reprofile.core.profiles.models import ExtensionStatus, Profile


class ProfileLookup(Protocol):
    def list_known_extensions(self) -> Set[str]: ...

    def fetch_profile_info(self, profile_id: str) -> Profile: ...


class EligibilityCheck(Protocol):
    """
    `batch` is every module the run is about to enable, `module_id` included.
    Conflicts with any of them make the module ineligible.
    """

    def is_enablement_eligible(self, module_id: str, *, batch: Collection[str] = ()) -> bool: ...


class NestedExpander(Protocol):
    def expand_nested_dependencies(self, seed: Sequence[str]) -> Iterable[str]: ...


class StatusLookup(Protocol):
    def get_status_for(self, module_ids: Sequence[str]) -> Mapping[str, ExtensionStatus]: ...


class PermissionsLookup(Protocol):
    def get_permissions_for(self, module_id: str) -> List[str]: ...


class Confirmer(Protocol):
    def __call__(self, prompt: str) -> bool: ...


class EnableAction(Protocol):
    def __call__(self, module_ids: List[str]) -> None: ...


class ExtensionHost(ProfileLookup, EligibilityCheck, StatusLookup, PermissionsLookup, Protocol):
    """
    Everything a host module system provides for one profile-enable run.
    """

    def list_present_modules(self) -> Set[str]: ...

    def list_enabled_modules(self) -> Set[str]: ...

    def enable_modules(self, module_ids: List[str]) -> None: ...
