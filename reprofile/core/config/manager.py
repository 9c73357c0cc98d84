from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from reprofile.core.config.io import JsonConfigStore
from reprofile.core.config.models import ReprofileConfig, SiteConfig
from reprofile.core.config.paths import ConfigFsPaths
from reprofile.core.modules.models import ModulesRegistryFile


class ConfigError(RuntimeError):
    pass


# file name -> (attribute on ReprofileConfig, model providing defaults)
CONFIG_FILES: Dict[str, Any] = {
    "site.json": ("site", SiteConfig),
    "modules.json": ("modules", ModulesRegistryFile),
}


class ConfigManager:
    def __init__(
        self,
        *,
        fs: Optional[ConfigFsPaths] = None,
        logger=None,
        read_only: bool = False,
    ):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self.store = JsonConfigStore(self.fs)
        self._cfg: Optional[ReprofileConfig] = None

    # ---------- public API ----------
    def load_all(self) -> ReprofileConfig:
        raw: Dict[str, Dict[str, Any]] = {name: self._load_one(name) for name in CONFIG_FILES}
        self.store.keep = _max_backups(raw.get("site.json") or {})

        values: Dict[str, BaseModel] = {}
        for name, (attr, model) in CONFIG_FILES.items():
            values[attr] = self._validate(name, model, raw[name])
        cfg = ReprofileConfig(**values)
        self._cfg = cfg

        if not self.read_only:
            self.store.snapshot_last_known_good(list(CONFIG_FILES))
        return cfg

    def get(self) -> ReprofileConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def site(self) -> SiteConfig:
        return self.get().site

    def modules_root(self) -> str:
        return self.fs.resolve(self.site().modules_root)

    def log_dir(self) -> str:
        return self.fs.resolve(self.site().log_dir)

    def read_non_sensitive(self, filename: str) -> Dict[str, Any]:
        """
        Raw contents of one config file (empty dict when it cannot be read).
        """
        self._check_name(filename)
        rr = self.store.read(filename)
        if rr.ok:
            return rr.data
        if rr.corrupt and not self.read_only:
            self.store.quarantine(filename)
            return self.store.restore_last_known_good(filename) or {}
        return {}

    def save_non_sensitive(self, filename: str, data: Dict[str, Any]) -> None:
        """
        Write one config file, then reload and validate the whole set.
        A rejected write leaves its predecessor in backups/.
        """
        if self.read_only:
            raise ConfigError("Config manager is read-only.")
        self._check_name(filename)
        if not isinstance(data, dict):
            raise ConfigError("Config data must be an object.")
        self.store.write(filename, data)
        self.load_all()

    # ---------- internals ----------
    @staticmethod
    def _check_name(filename: str) -> None:
        if filename not in CONFIG_FILES:
            raise ConfigError(f"Unknown config file: {filename}")

    def _warn(self, msg: str) -> None:
        if self.logger is not None:
            self.logger.warning(msg)

    def _load_one(self, name: str) -> Dict[str, Any]:
        rr = self.store.read(name)
        if rr.ok and rr.data:
            return rr.data
        if rr.error == "not_object":
            raise ConfigError(f"{name} invalid (not an object).")
        if rr.corrupt:
            if self.read_only:
                raise ConfigError(f"{name} is corrupt: {rr.error}")
            self.store.quarantine(name)
            restored = self.store.restore_last_known_good(name)
            self._warn(f"Corrupt config {name} -> recovered={restored is not None}")
            if restored:
                return restored

        _attr, model = CONFIG_FILES[name]
        defaults = model().model_dump(mode="json")
        self._warn(f"Missing config {name}; creating defaults.")
        if not self.read_only:
            self.store.write(name, defaults)
        return defaults

    @staticmethod
    def _validate(name: str, model: Any, data: Dict[str, Any]) -> BaseModel:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"{name}: {e}") from e


def _max_backups(site_raw: Dict[str, Any]) -> int:
    backups = site_raw.get("backups") or {}
    try:
        return int(backups.get("max_backups_per_file", 10))
    except (TypeError, ValueError, AttributeError):
        return 10

