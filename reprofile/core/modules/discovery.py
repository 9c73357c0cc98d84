from __future__ import annotations

"""
Module discovery (no-import scanning).

WHY THIS FILE EXISTS:
The codebase must be searched for module definitions without importing or
executing anything. Discovery reads only manifest text and directory names.
"""

import json
import os
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from pydantic import ValidationError

from reprofile.core.modules.models import ModuleManifest


@dataclass(frozen=True)
class DiscoveredModule:
    module_id: str
    module_dir: str
    manifest_path: str
    manifest: Optional[ModuleManifest]
    manifest_error: str = ""

    @property
    def manifest_valid(self) -> bool:
        return self.manifest is not None


def load_manifest(manifest_path: str, *, expected_id: str) -> Tuple[Optional[ModuleManifest], str]:
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        return None, f"read_failed: {e}"[:200]
    if not isinstance(raw, dict):
        return None, "manifest is not an object"
    # module_id must match folder name
    if str(raw.get("module_id") or "") != expected_id:
        return None, "module_id does not match folder name"
    try:
        return ModuleManifest.model_validate(raw), ""
    except ValidationError as e:
        return None, f"manifest invalid: {e}"[:200]


class ModuleDiscovery:
    def __init__(self, *, modules_root: str, manifest_filename: str = "module.json"):
        self.modules_root = str(modules_root)
        self.manifest_filename = str(manifest_filename)

    def _candidate_dirs(self) -> Iterator[str]:
        for dirpath, dirnames, filenames in os.walk(self.modules_root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith((".", "_")))
            if dirpath == self.modules_root:
                continue
            if self.manifest_filename in filenames:
                yield dirpath

    def scan(self) -> Dict[str, DiscoveredModule]:
        out: Dict[str, DiscoveredModule] = {}
        if not os.path.isdir(self.modules_root):
            return out

        for mod_dir in self._candidate_dirs():
            name = os.path.basename(mod_dir)
            if name in out:
                # first definition in walk order wins
                continue
            manifest_path = os.path.join(mod_dir, self.manifest_filename)
            manifest, err = load_manifest(manifest_path, expected_id=name)
            out[name] = DiscoveredModule(
                module_id=name,
                module_dir=mod_dir,
                manifest_path=manifest_path,
                manifest=manifest,
                manifest_error=err,
            )
        return out
