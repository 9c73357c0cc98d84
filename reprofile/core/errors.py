from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Sequence


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ReprofileError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def __str__(self) -> str:
        return self.user_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": dict(self.context or {}),
        }


def _join(ids: Sequence[str]) -> str:
    return ", ".join(str(i) for i in ids)


# ---- Resolution (validation phase) ----
class UnknownProfileError(ReprofileError):
    def __init__(self, profile_id: str, **ctx: Any):
        super().__init__(
            "unknown_profile",
            f"{profile_id} is not a known extension.",
            severity=Severity.ERROR,
            recoverable=False,
            context={"profile_id": profile_id, **ctx},
        )
        self.profile_id = profile_id


class ProfileInfoNotFoundError(ReprofileError):
    def __init__(self, profile_id: str, reason: str = "", **ctx: Any):
        msg = f"Profile information for {profile_id} could not be found."
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(
            "profile_info_not_found",
            msg,
            severity=Severity.ERROR,
            recoverable=False,
            context={"profile_id": profile_id, "reason": reason, **ctx},
        )
        self.profile_id = profile_id


class CyclicInheritanceError(ReprofileError):
    def __init__(self, chain: Sequence[str], **ctx: Any):
        chain = list(chain)
        super().__init__(
            "cyclic_inheritance",
            f"Base profile chain loops back on itself: {' -> '.join(chain)}.",
            severity=Severity.ERROR,
            recoverable=False,
            context={"chain": chain, **ctx},
        )
        self.chain: List[str] = chain


class InvalidModuleIdentifierError(ReprofileError):
    def __init__(self, module_id: str, *, declared_by: str = "", **ctx: Any):
        msg = f"{module_id!r} is not a valid module identifier."
        if declared_by:
            msg = f"{msg} (declared by {declared_by})"
        super().__init__(
            "invalid_module_identifier",
            msg,
            severity=Severity.ERROR,
            recoverable=False,
            context={"module_id": module_id, "declared_by": declared_by, **ctx},
        )
        self.module_id = module_id


class MissingModulesError(ReprofileError):
    def __init__(self, missing: Sequence[str], **ctx: Any):
        missing = list(missing)
        super().__init__(
            "missing_modules",
            f"The following required modules are missing from the codebase: {_join(missing)}.",
            severity=Severity.ERROR,
            recoverable=True,
            context={"missing": missing, **ctx},
        )
        self.missing: List[str] = missing


class RequirementsNotMetError(ReprofileError):
    def __init__(self, module_id: str, **ctx: Any):
        super().__init__(
            "requirements_not_met",
            f"Module {module_id} does not meet the requirements for being enabled.",
            severity=Severity.ERROR,
            recoverable=False,
            context={"module_id": module_id, **ctx},
        )
        self.module_id = module_id


# ---- Enablement (execution phase) ----
class PartialFailureError(ReprofileError):
    def __init__(self, problem_dependencies: Sequence[str], **ctx: Any):
        problems = list(problem_dependencies)
        super().__init__(
            "partial_failure",
            f"The following modules could not be enabled: {_join(problems)}.",
            severity=Severity.ERROR,
            recoverable=True,
            context={"problem_dependencies": problems, **ctx},
        )
        self.problem_dependencies: List[str] = problems
