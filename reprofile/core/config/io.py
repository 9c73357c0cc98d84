from __future__ import annotations

"""
Durable JSON storage for the site config directory.

WHY THIS FILE EXISTS:
site.json and modules.json are edited by hand and rewritten by every
profile-enable run. A half-written or hand-broken file must never leave the
site without a usable config, so every write goes through a temp file and
os.replace, the previous version is kept under backups/, and a copy of the
last set that validated is kept under backups/last_known_good/.
"""

import json
import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from reprofile.core.config.paths import ConfigFsPaths


@dataclass(frozen=True)
class ReadResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None

    @property
    def corrupt(self) -> bool:
        return bool(self.error and self.error.startswith("corrupt_json"))


def _stamp() -> str:
    return time.strftime("%Y%m%d_%H%M%S", time.gmtime())


def read_json_file(path: str) -> ReadResult:
    if not os.path.exists(path):
        return ReadResult(ok=False, data={}, error="missing")
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
    except json.JSONDecodeError as e:
        return ReadResult(ok=False, data={}, error=f"corrupt_json:{e}")
    except OSError as e:
        return ReadResult(ok=False, data={}, error=f"unreadable:{e}")
    if not isinstance(obj, dict):
        return ReadResult(ok=False, data={}, error="not_object")
    return ReadResult(ok=True, data=obj)


class JsonConfigStore:
    """
    One config directory: named JSON files plus their backups.

    Backups are named `<file>.<stamp>[-<n>].<reason>.json`, with `n` counting
    backups taken within the same second. At most `keep` prewrite backups are
    retained per file; quarantined corrupt files are never pruned.
    """

    def __init__(self, fs: ConfigFsPaths, *, keep: int = 10):
        self.fs = fs
        self.keep = max(1, int(keep))

    def path_of(self, name: str) -> str:
        return os.path.join(self.fs.config_dir, name)

    def read(self, name: str) -> ReadResult:
        return read_json_file(self.path_of(name))

    def write(self, name: str, data: Dict[str, Any]) -> None:
        path = self.path_of(name)
        os.makedirs(self.fs.config_dir, exist_ok=True)
        self.backup(name, reason="prewrite")
        fd, tmp = tempfile.mkstemp(prefix=".tmp_", suffix=".json", dir=self.fs.config_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
                f.write("\n")
            os.replace(tmp, path)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)

    def backup(self, name: str, *, reason: str) -> Optional[str]:
        src = self.path_of(name)
        if not os.path.exists(src):
            return None
        os.makedirs(self.fs.backups_dir, exist_ok=True)
        dst = self._backup_path(name, reason)
        shutil.copy2(src, dst)
        self._prune(name)
        return dst

    def _backup_path(self, name: str, reason: str) -> str:
        stamp = _stamp()
        dst = os.path.join(self.fs.backups_dir, f"{name}.{stamp}.{reason}.json")
        n = 0
        while os.path.exists(dst):
            n += 1
            dst = os.path.join(self.fs.backups_dir, f"{name}.{stamp}-{n}.{reason}.json")
        return dst

    def backups_of(self, name: str, *, reason: Optional[str] = None) -> List[str]:
        if not os.path.isdir(self.fs.backups_dir):
            return []
        prefix = f"{name}."
        found = [
            os.path.join(self.fs.backups_dir, f)
            for f in os.listdir(self.fs.backups_dir)
            if f.startswith(prefix)
            and (reason is None or f.endswith(f".{reason}.json"))
            and os.path.isfile(os.path.join(self.fs.backups_dir, f))
        ]
        found.sort(key=lambda p: (os.path.getmtime(p), p), reverse=True)
        return found

    def _prune(self, name: str) -> None:
        for old in self.backups_of(name, reason="prewrite")[self.keep:]:
            try:
                os.remove(old)
            except OSError:
                pass

    def quarantine(self, name: str) -> Optional[str]:
        """
        Move a corrupt file out of the way (kept as `<file>.<stamp>.corrupt.json`).
        """
        src = self.path_of(name)
        if not os.path.exists(src):
            return None
        os.makedirs(self.fs.backups_dir, exist_ok=True)
        dst = self._backup_path(name, "corrupt")
        shutil.move(src, dst)
        return dst

    def restore_last_known_good(self, name: str) -> Optional[Dict[str, Any]]:
        rr = read_json_file(os.path.join(self.fs.last_known_good_dir, name))
        if not rr.ok:
            return None
        self.write(name, rr.data)
        return rr.data

    def snapshot_last_known_good(self, names: List[str]) -> None:
        os.makedirs(self.fs.last_known_good_dir, exist_ok=True)
        for name in names:
            src = self.path_of(name)
            if os.path.isfile(src):
                shutil.copy2(src, os.path.join(self.fs.last_known_good_dir, name))
