from __future__ import annotations

"""
Module contract models (manifest + installed registry).

WHY THIS FILE EXISTS:
The manifest is the contract-of-record for every module and profile on disk:
it declares dependencies, base profile inheritance, conflicts and permissions.
These models validate manifests without importing any module code.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


MODULE_ID_RE = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9._-]{0,127}")


def is_valid_module_id(value: Any) -> bool:
    return isinstance(value, str) and MODULE_ID_RE.fullmatch(value) is not None


def _normalize_id_list(v: Any) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        v = [v]
    if not isinstance(v, list):
        raise ValueError("must be a list of module identifiers")
    out: List[str] = []
    for item in v:
        s = str(item or "").strip()
        if not s:
            continue
        if not is_valid_module_id(s):
            raise ValueError(f"{s!r} is not a valid module identifier")
        if s not in out:
            out.append(s)
    return out


class ExtensionKind(str, Enum):
    module = "module"
    profile = "profile"


class ModuleManifest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    schema_version: int = Field(default=1, ge=1, le=10)
    module_id: str = Field(min_length=1)
    kind: ExtensionKind = ExtensionKind.module
    version: str = Field(default="0.1.0", min_length=1)
    display_name: str = Field(default="", max_length=80)
    description: str = Field(default="", max_length=300)
    core: str = Field(default="1.x", min_length=1)
    dependencies: List[str] = Field(default_factory=list)
    base_profile: Optional[str] = None
    conflicts: List[str] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)

    @field_validator("module_id")
    @classmethod
    def _module_id_safe(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v:
            raise ValueError("module_id required")
        if not is_valid_module_id(v):
            raise ValueError("module_id contains invalid characters")
        return v

    @field_validator("dependencies", "conflicts", mode="before")
    @classmethod
    def _norm_ids(cls, v: Any) -> List[str]:
        return _normalize_id_list(v)

    @field_validator("permissions", mode="before")
    @classmethod
    def _norm_permissions(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x or "").strip()]
        return []

    @field_validator("base_profile", mode="before")
    @classmethod
    def _norm_base_profile(cls, v: Any) -> Optional[str]:
        s = str(v or "").strip()
        if not s:
            return None
        if not is_valid_module_id(s):
            raise ValueError(f"{s!r} is not a valid module identifier")
        return s

    @model_validator(mode="after")
    def _profile_only_fields(self) -> "ModuleManifest":
        if self.base_profile is not None and self.kind != ExtensionKind.profile:
            raise ValueError("base_profile is only allowed on profiles")
        if self.module_id in self.dependencies:
            raise ValueError("a module cannot depend on itself")
        return self


class InstalledModuleRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    installed: bool = True
    enabled: bool = False
    installed_at: str = ""
    enabled_at: Optional[str] = None
    module_path: str = ""
    reason: str = ""


class ModulesRegistryFile(BaseModel):
    """
    Stored in config/modules.json.
    """

    model_config = ConfigDict(extra="forbid")

    schema_version: int = Field(default=1, ge=1, le=10)
    modules: Dict[str, InstalledModuleRecord] = Field(default_factory=dict)


class ModuleState(str, Enum):
    DISCOVERED = "DISCOVERED"
    INSTALLED_DISABLED = "INSTALLED_DISABLED"
    INSTALLED_ENABLED = "INSTALLED_ENABLED"
    BLOCKED = "BLOCKED"
    MISSING_ON_DISK = "MISSING_ON_DISK"


class ModuleStatus(BaseModel):
    """
    Canonical module status row. Safe to display in the CLI.
    """

    model_config = ConfigDict(extra="forbid")

    module_id: str = Field(min_length=1)
    kind: str = ""
    state: ModuleState
    enabled: bool = False
    reason_human: str = Field(default="", max_length=200)
