import os
import shutil

import pytest

from Harmony.assemblies import (deploy_assemblies, deploy_patcher_assemblies, diff_assemblies,
                                filter_module_assemblies, list_game_assemblies)


def _touch(directory, *names):
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_bytes(b"MZ")


def test_filter_keeps_serialization_assembly_only_among_system():
    listing = ["0Harmony.dll", "System.Core.dll", "System.Runtime.Serialization.dll",
               "readme.txt", "Newtonsoft.Json.dll", "System.dll"]
    assert filter_module_assemblies(listing) == [
        "0Harmony.dll", "System.Runtime.Serialization.dll", "Newtonsoft.Json.dll",
    ]


def test_diff_example():
    bundled = ["A.dll", "System.Core.dll", "System.Runtime.Serialization.dll"]
    assert diff_assemblies(bundled, [], ["A.dll"]) == ["System.Runtime.Serialization.dll"]


def test_diff_excludes_existing_and_game_owned_and_keeps_order():
    bundled = ["c.dll", "a.dll", "b.dll", "d.dll"]
    existing = ["a.dll"]
    owned = ["d.dll"]
    result = diff_assemblies(bundled, existing, owned)
    assert result == ["c.dll", "b.dll"]
    assert not set(result) & set(existing)
    assert not set(result) & set(owned)


def test_list_game_assemblies_skips_symlinks(tmp_path):
    managed = tmp_path / "Managed"
    _touch(managed, "UnityEngine.dll", "notes.txt")
    target = tmp_path / "elsewhere.dll"
    target.write_bytes(b"MZ")
    try:
        os.symlink(target, managed / "Linked.dll")
    except (OSError, NotImplementedError):
        pytest.skip("Symlinks not supported in this environment")
    assert list_game_assemblies(managed) == ["UnityEngine.dll"]


def test_list_game_assemblies_missing_dir(tmp_path):
    assert list_game_assemblies(tmp_path / "missing") == []


def test_deploy_copies_in_order(tmp_path):
    src = tmp_path / "module"
    dst = tmp_path / "dest"
    _touch(src, "a.dll", "b.dll")
    copied = deploy_assemblies(["b.dll", "a.dll"], src, dst)
    assert copied == [dst / "b.dll", dst / "a.dll"]
    assert (dst / "a.dll").is_file() and (dst / "b.dll").is_file()


def test_deploy_rolls_back_and_raises_original_error(tmp_path):
    src = tmp_path / "module"
    dst = tmp_path / "dest"
    _touch(src, "a.dll", "b.dll", "c.dll", "d.dll")
    failure = OSError("disk full")

    def copy(source, target):
        if source.name == "c.dll":
            raise failure
        shutil.copy2(source, target)

    with pytest.raises(OSError) as excinfo:
        deploy_assemblies(["a.dll", "b.dll", "c.dll", "d.dll"], src, dst, copy_fn=copy)

    assert excinfo.value is failure
    assert not (dst / "a.dll").exists()
    assert not (dst / "b.dll").exists()
    assert not (dst / "d.dll").exists()


def test_deploy_cleanup_failure_does_not_replace_original_error(tmp_path, monkeypatch):
    src = tmp_path / "module"
    dst = tmp_path / "dest"
    _touch(src, "a.dll", "b.dll")
    failure = PermissionError("locked")

    def copy(source, target):
        if source.name == "b.dll":
            raise failure
        shutil.copy2(source, target)

    def broken_unlink(self, missing_ok=False):
        raise OSError("cannot remove")

    monkeypatch.setattr(type(dst), "unlink", broken_unlink)
    messages = []
    with pytest.raises(PermissionError) as excinfo:
        deploy_assemblies(["a.dll", "b.dll"], src, dst, copy_fn=copy,
                          log_fn=messages.append)
    assert excinfo.value is failure
    assert any("could not remove a.dll" in m for m in messages)


def test_redeploy_is_idempotent(tmp_path):
    module = tmp_path / "module"
    merge_dir = tmp_path / "merge"
    runtime = tmp_path / "game" / "Data" / "Managed"
    _touch(module, "0Harmony.dll", "System.Core.dll", "System.Runtime.Serialization.dll",
           "UnityEngine.dll")
    _touch(runtime, "UnityEngine.dll")
    rel = "Data/Managed/Assembly-CSharp.dll"

    first = deploy_patcher_assemblies(rel, merge_dir, runtime, module)
    assert sorted(p.name for p in first) == ["0Harmony.dll", "System.Runtime.Serialization.dll"]

    staged = merge_dir / "Data" / "Managed"
    assert diff_assemblies(os.listdir(module), os.listdir(staged),
                           list_game_assemblies(runtime)) == []
    assert deploy_patcher_assemblies(rel, merge_dir, runtime, module) == []
