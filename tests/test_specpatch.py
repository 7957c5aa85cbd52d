import pytest
import semver

from pkgspec.specpatch import (
    PatchError,
    VersionPatch,
    apply_patch,
    patch_for_version,
    resolve_patch,
)

VERSIONS = [
    VersionPatch("2.0.0", [{"op": "remove", "path": "/a"}]),
    VersionPatch("3.0.0", [{"op": "add", "path": "/b", "value": 2}]),
]


def test_patch_for_version_selects_older_targets():
    assert patch_for_version(semver.Version.parse("1.0.0"), VERSIONS) == [
        {"op": "remove", "path": "/a"},
        {"op": "add", "path": "/b", "value": 2},
    ]
    assert patch_for_version("2.0.0", VERSIONS) == [{"op": "add", "path": "/b", "value": 2}]
    assert patch_for_version("3.0.0", VERSIONS) == []


def test_invalid_before_raises():
    with pytest.raises(ValueError):
        patch_for_version("1.0.0", [VersionPatch("nope", [])])


def test_apply_does_not_mutate_input():
    doc = {"a": 1, "list": [1, 2]}
    ops = [
        {"op": "replace", "path": "/a", "value": 5},
        {"op": "add", "path": "/list/-", "value": 3},
        {"op": "move", "from": "/a", "path": "/c"},
    ]
    result = apply_patch(doc, ops)
    assert result == {"list": [1, 2, 3], "c": 5}
    assert doc == {"a": 1, "list": [1, 2]}


def test_remove_missing_raises():
    with pytest.raises(PatchError):
        resolve_patch({"a": 1}, [{"op": "remove", "path": "/missing"}])


def test_failed_test_op_raises():
    with pytest.raises(PatchError):
        apply_patch({"a": 1}, [{"op": "test", "path": "/a", "value": 2}])