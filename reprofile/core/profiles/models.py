from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple


@dataclass(frozen=True)
class Profile:
    """
    Profile metadata as returned by the host's profile lookup. Read-only.
    """

    profile_id: str
    base_profile: Optional[str] = None
    dependencies: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ExtensionStatus:
    module_id: str
    active: bool


@dataclass(frozen=True)
class ResolvedDependencies:
    """
    Output of the validation phase, handed straight to the planner.

    `dependencies` is the full ordered dependency set (profile chain plus nested
    expansion); `to_enable` is the ordered plan: the profile first when it is not
    active yet, then every dependency that is not enabled.
    """

    profile_id: str
    dependencies: Tuple[str, ...] = ()
    to_enable: Tuple[str, ...] = ()
    already_enabled: Tuple[str, ...] = ()
    profile_already_enabled: bool = False
    inheritance_chain: Tuple[str, ...] = ()
    nested_expanded: bool = False
    notices: Tuple[str, ...] = ()

    def __iter__(self) -> Iterator[str]:
        return iter(self.to_enable)

    def __len__(self) -> int:
        return len(self.to_enable)

    @property
    def is_empty(self) -> bool:
        return not self.to_enable


class EnablementOutcome(str, Enum):
    ENABLED = "enabled"
    NOTHING_TO_DO = "nothing_to_do"
    USER_ABORTED = "user_aborted"


@dataclass(frozen=True)
class EnablementResult:
    outcome: EnablementOutcome
    profile_id: str
    enabled: Tuple[str, ...] = ()
    already_enabled: Tuple[str, ...] = ()
    permissions: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    @property
    def aborted(self) -> bool:
        return self.outcome == EnablementOutcome.USER_ABORTED
