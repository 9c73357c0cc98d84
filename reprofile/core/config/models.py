from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reprofile.core.modules.models import ModulesRegistryFile, is_valid_module_id


class SiteConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    schema_version: int = Field(default=1, ge=1, le=10)
    default_profile: str = "standard"
    modules_root: str = "modules"
    manifest_filename: str = Field(default="module.json", min_length=1)
    core_version: str = Field(default="1.x", min_length=1)
    nested_dependencies: bool = True
    log_dir: str = "logs"
    backups: Dict[str, Any] = Field(default_factory=lambda: {"max_backups_per_file": 10})

    @field_validator("default_profile")
    @classmethod
    def _default_profile_safe(cls, v: str) -> str:
        v = str(v or "").strip()
        if not is_valid_module_id(v):
            raise ValueError("default_profile is not a valid module identifier")
        return v

    @field_validator("manifest_filename")
    @classmethod
    def _manifest_filename_plain(cls, v: str) -> str:
        v = str(v or "").strip()
        if "/" in v or "\\" in v:
            raise ValueError("manifest_filename must be a bare file name")
        return v


class ReprofileConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    site: SiteConfig
    modules: ModulesRegistryFile
