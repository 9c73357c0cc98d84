from __future__ import annotations

import os

import pytest
from pydantic import ValidationError

from reprofile.core.modules.discovery import ModuleDiscovery
from reprofile.core.modules.models import ExtensionKind, ModuleManifest, is_valid_module_id
from tests.helpers.site import write_module, write_module_json, write_profile


def test_module_id_syntax():
    assert is_valid_module_id("block")
    assert is_valid_module_id("notes.local")
    assert is_valid_module_id("views_ui-2")
    assert not is_valid_module_id("")
    assert not is_valid_module_id("_private")
    assert not is_valid_module_id("has space")
    assert not is_valid_module_id(None)


def test_manifest_normalizes_dependency_lists():
    man = ModuleManifest.model_validate({"module_id": "x", "dependencies": ["a", " a ", "", "b"], "permissions": "do things"})
    assert man.dependencies == ["a", "b"]
    assert man.permissions == ["do things"]
    assert man.kind == ExtensionKind.module


def test_manifest_rejects_bad_dependency_and_unknown_fields():
    with pytest.raises(ValidationError):
        ModuleManifest.model_validate({"module_id": "x", "dependencies": ["bad id"]})
    with pytest.raises(ValidationError):
        ModuleManifest.model_validate({"module_id": "x", "entrypoint": "x:main"})


def test_base_profile_only_on_profiles():
    with pytest.raises(ValidationError):
        ModuleManifest.model_validate({"module_id": "x", "base_profile": "standard"})
    man = ModuleManifest.model_validate({"module_id": "x", "kind": "profile", "base_profile": " standard "})
    assert man.base_profile == "standard"
    assert ModuleManifest.model_validate({"module_id": "y", "kind": "profile", "base_profile": ""}).base_profile is None


def test_manifest_rejects_self_dependency():
    with pytest.raises(ValidationError):
        ModuleManifest.model_validate({"module_id": "x", "dependencies": ["x"]})


def test_scan_finds_nested_module_definitions(modules_root):
    write_module(modules_root, "block")
    write_module(modules_root, "views", subdir="contrib")
    write_profile(modules_root, "minimal", dependencies=["block"])
    os.makedirs(modules_root / "contrib" / "empty_dir")

    disc = ModuleDiscovery(modules_root=str(modules_root)).scan()
    assert sorted(disc) == ["block", "minimal", "views"]
    assert disc["minimal"].manifest.kind == ExtensionKind.profile
    assert disc["views"].module_dir.endswith(os.path.join("contrib", "views"))


def test_scan_skips_hidden_and_private_directories(modules_root):
    write_module(modules_root / ".git", "block")
    write_module(modules_root / "_build", "menu")
    disc = ModuleDiscovery(modules_root=str(modules_root)).scan()
    assert disc == {}


def test_scan_reports_invalid_manifests(modules_root):
    write_module_json(str(modules_root / "wrong"), {"module_id": "other"})
    write_module_json(str(modules_root / "broken"), {"module_id": "broken", "dependencies": ["no good"]})
    bad = modules_root / "corrupt"
    bad.mkdir()
    (bad / "module.json").write_text("{nope", encoding="utf-8")

    disc = ModuleDiscovery(modules_root=str(modules_root)).scan()
    assert disc["wrong"].manifest_valid is False
    assert "does not match folder name" in disc["wrong"].manifest_error
    assert disc["broken"].manifest_error.startswith("manifest invalid")
    assert disc["corrupt"].manifest_error.startswith("read_failed")


def test_scan_uses_configured_manifest_filename(modules_root):
    write_module_json(str(modules_root / "block"), {"module_id": "block"}, filename="block.info.json")
    assert ModuleDiscovery(modules_root=str(modules_root)).scan() == {}
    disc = ModuleDiscovery(modules_root=str(modules_root), manifest_filename="block.info.json").scan()
    assert list(disc) == ["block"]


def test_scan_of_missing_root_is_empty(tmp_path):
    assert ModuleDiscovery(modules_root=str(tmp_path / "nope")).scan() == {}
