from __future__ import annotations

"""
ModuleManager: discovery + registry + enable, backed by the site directory.

WHY THIS FILE EXISTS:
This is the host module system the profile-enable command talks to. It answers
every question the resolver and planner ask (what exists, what is enabled, what
may be enabled, what each module depends on) and performs the enable action by
updating config/modules.json. Module code is never imported.
"""

import os
import time
from typing import Any, Collection, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from reprofile.core.errors import ProfileInfoNotFoundError
from reprofile.core.modules.discovery import DiscoveredModule, ModuleDiscovery
from reprofile.core.modules.models import ExtensionKind, ModuleState, ModuleStatus
from reprofile.core.profiles.models import ExtensionStatus, Profile


def _iso_now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


class ModuleManager:
    def __init__(
        self,
        *,
        config_manager: Any,
        modules_root: Optional[str] = None,
        logger: Any = None,
    ):
        self.config = config_manager
        self.modules_root = str(modules_root or config_manager.modules_root())
        self.logger = logger
        self._snapshot: Optional[Tuple[Tuple[str, ...], Dict[str, DiscoveredModule], Set[str]]] = None

    # ---- helpers ----
    def _site(self) -> Any:
        return self.config.get().site

    def _warn(self, msg: str) -> None:
        if self.logger is not None:
            self.logger.warning(msg)

    def _discover(self) -> Dict[str, DiscoveredModule]:
        return ModuleDiscovery(modules_root=self.modules_root, manifest_filename=self._site().manifest_filename).scan()

    def _load_modules_file_raw(self) -> Dict[str, Any]:
        raw = self.config.read_non_sensitive("modules.json") or {}
        if not isinstance(raw, dict):
            raw = {}
        raw.setdefault("schema_version", 1)
        if not isinstance(raw.get("modules"), dict):
            raw["modules"] = {}
        return raw

    def _save_modules_file_raw(self, raw: Dict[str, Any]) -> None:
        self.config.save_non_sensitive("modules.json", raw)

    @staticmethod
    def _enabled_ids(registry: Dict[str, Any], disc: Dict[str, DiscoveredModule]) -> Set[str]:
        out: Set[str] = set()
        for mid, rec in registry.items():
            if not isinstance(rec, dict):
                continue
            if bool(rec.get("installed")) and bool(rec.get("enabled")) and mid in disc:
                out.add(mid)
        return out

    def _refusal_reason(
        self,
        module_id: str,
        *,
        disc: Dict[str, DiscoveredModule],
        enabled: Set[str],
        batch: Collection[str] = (),
    ) -> str:
        d = disc.get(module_id)
        if d is None:
            return "not present in the codebase"
        if d.manifest is None:
            return d.manifest_error or "manifest invalid"
        core = self._site().core_version
        if d.manifest.core != core:
            return f"incompatible with core {core} (requires {d.manifest.core})"
        pending = [m for m in batch if m != module_id and m not in enabled]
        for other in d.manifest.conflicts:
            if other in enabled:
                return f"conflicts with enabled module {other}"
            if other in pending:
                return f"conflicts with {other}, which is being enabled in the same run"
        for other in sorted(enabled) + pending:
            od = disc.get(other)
            if od is None or od.manifest is None or module_id not in od.manifest.conflicts:
                continue
            if other in enabled:
                return f"enabled module {other} conflicts with it"
            return f"{other}, which is being enabled in the same run, conflicts with it"
        return ""

    # ---- host API: profile lookup ----
    def list_known_extensions(self) -> Set[str]:
        registry = self._load_modules_file_raw().get("modules") or {}
        return set(self._discover().keys()) | set(registry.keys())

    def fetch_profile_info(self, profile_id: str) -> Profile:
        d = self._discover().get(profile_id)
        if d is None:
            raise ProfileInfoNotFoundError(profile_id, "no definition on disk")
        if d.manifest is None:
            raise ProfileInfoNotFoundError(profile_id, d.manifest_error)
        if d.manifest.kind != ExtensionKind.profile:
            raise ProfileInfoNotFoundError(profile_id, "not a profile")
        return Profile(
            profile_id=profile_id,
            base_profile=d.manifest.base_profile,
            dependencies=tuple(d.manifest.dependencies),
        )

    # ---- host API: snapshots ----
    def list_present_modules(self) -> Set[str]:
        return {mid for mid, d in self._discover().items() if d.manifest_valid}

    def list_enabled_modules(self) -> Set[str]:
        registry = self._load_modules_file_raw().get("modules") or {}
        return self._enabled_ids(registry, self._discover())

    # ---- host API: nested dependencies ----
    def nested_expander(self) -> Optional["ModuleManager"]:
        """
        Nested expansion is a capability of the site, switched by
        `nested_dependencies` in site.json.
        """
        return self if bool(self._site().nested_dependencies) else None

    def expand_nested_dependencies(self, seed: Sequence[str]) -> List[str]:
        disc = self._discover()
        out: Dict[str, None] = dict.fromkeys(seed)
        expanded: Set[str] = set()
        for root in list(seed):
            stack = [root]
            while stack:
                mid = stack.pop()
                if mid in expanded:
                    continue
                expanded.add(mid)
                d = disc.get(mid)
                if d is None or d.manifest is None:
                    # unknown or broken modules stay in the set for the presence check
                    continue
                for dep in d.manifest.dependencies:
                    out.setdefault(dep, None)
                stack.extend(dep for dep in reversed(d.manifest.dependencies) if dep not in expanded)
        return list(out)

    # ---- host API: eligibility ----
    def _eligibility_snapshot(self, batch: Tuple[str, ...]) -> Tuple[Dict[str, DiscoveredModule], Set[str]]:
        """
        The resolver asks about every candidate of one plan in turn; the site is
        scanned once per plan rather than once per candidate.
        """
        if batch and self._snapshot is not None and self._snapshot[0] == batch:
            return self._snapshot[1], self._snapshot[2]
        disc = self._discover()
        registry = self._load_modules_file_raw().get("modules") or {}
        enabled = self._enabled_ids(registry, disc)
        self._snapshot = (batch, disc, enabled) if batch else None
        return disc, enabled

    def is_enablement_eligible(self, module_id: str, *, batch: Collection[str] = ()) -> bool:
        batch = tuple(batch)
        disc, enabled = self._eligibility_snapshot(batch)
        reason = self._refusal_reason(module_id, disc=disc, enabled=enabled, batch=batch)
        if reason:
            self._warn(f"Module {module_id} cannot be enabled: {reason}")
            return False
        return True

    # ---- host API: enable ----
    def install_order(self, module_ids: Iterable[str]) -> List[str]:
        """
        Dependencies before dependents. Modules caught in a dependency cycle keep
        their input order at the end.
        """
        disc = self._discover()
        ids = list(dict.fromkeys(module_ids))
        wanted = set(ids)
        ordered: List[str] = []
        placed: Set[str] = set()
        remaining = list(ids)
        while remaining:
            ready = []
            for mid in remaining:
                d = disc.get(mid)
                deps = d.manifest.dependencies if d is not None and d.manifest is not None else []
                if all(dep in placed or dep not in wanted for dep in deps):
                    ready.append(mid)
            if not ready:
                ordered.extend(remaining)
                break
            for mid in ready:
                ordered.append(mid)
                placed.add(mid)
            remaining = [mid for mid in remaining if mid not in placed]
        return ordered

    def enable_modules(self, module_ids: List[str]) -> None:
        self._snapshot = None
        disc = self._discover()
        raw = self._load_modules_file_raw()
        reg: Dict[str, Any] = dict(raw.get("modules") or {})
        enabled = self._enabled_ids(reg, disc)
        now = _iso_now()

        for mid in self.install_order(module_ids):
            rec = dict(reg.get(mid) or {})
            reason = self._refusal_reason(mid, disc=disc, enabled=enabled)
            if not reason:
                d = disc[mid]
                unmet = [dep for dep in d.manifest.dependencies if dep not in enabled]
                if unmet:
                    reason = f"dependencies not enabled: {', '.join(unmet)}"
            rec.setdefault("installed_at", now)
            rec["installed"] = True
            if mid in disc:
                rec["module_path"] = disc[mid].module_dir.replace("\\", "/")
            if reason:
                rec["enabled"] = bool(rec.get("enabled", False))
                rec["reason"] = reason[:200]
                reg[mid] = rec
                self._warn(f"Module {mid} was not enabled: {reason}")
                continue
            rec["enabled"] = True
            rec["enabled_at"] = now
            rec["reason"] = "enabled"
            reg[mid] = rec
            enabled.add(mid)

        raw["modules"] = reg
        self._save_modules_file_raw(raw)

    # ---- host API: status + permissions ----
    def get_status_for(self, module_ids: Sequence[str]) -> Dict[str, ExtensionStatus]:
        enabled = self.list_enabled_modules()
        return {mid: ExtensionStatus(module_id=mid, active=mid in enabled) for mid in module_ids}

    def get_permissions_for(self, module_id: str) -> List[str]:
        d = self._discover().get(module_id)
        if d is None or d.manifest is None:
            return []
        return list(d.manifest.permissions)

    # ---- listing ----
    def list_status(self) -> List[ModuleStatus]:
        """
        Read-only status listing. Must not mutate config.
        """
        disc = self._discover()
        registry = self._load_modules_file_raw().get("modules") or {}
        enabled = self._enabled_ids(registry, disc)

        out: List[ModuleStatus] = []
        for mid in sorted(set(disc) | set(registry)):
            d = disc.get(mid)
            rec = registry.get(mid) if isinstance(registry.get(mid), dict) else None
            kind = d.manifest.kind.value if d is not None and d.manifest is not None else ""
            if d is None:
                state, reason = ModuleState.MISSING_ON_DISK, "Module folder is missing on disk."
            elif d.manifest is None:
                state, reason = ModuleState.BLOCKED, d.manifest_error or "Manifest invalid."
            elif mid in enabled:
                state, reason = ModuleState.INSTALLED_ENABLED, "Enabled."
            elif rec is not None:
                state, reason = ModuleState.INSTALLED_DISABLED, str(rec.get("reason") or "Disabled.")
            else:
                state, reason = ModuleState.DISCOVERED, "Discovered on disk (not in registry)."
            out.append(
                ModuleStatus(
                    module_id=mid,
                    kind=kind,
                    state=state,
                    enabled=mid in enabled,
                    reason_human=reason[:200],
                )
            )
        return out
