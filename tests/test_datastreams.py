from pathlib import Path

import pytest

from pkgspec.fspath import DirFS
from pkgspec.semantic.datastreams import (
    check_prerelease,
    expected_ilm_policy_prefix,
    read_package_name,
    validate_ilm_policy_present,
    validate_prerelease,
    validate_prerelease_tag,
    validate_profiling_non_ga,
    validate_routing_rules_and_dataset,
)


def _write(root: Path, relative: str, content: str) -> None:
    target = root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)


VALID_VERSIONS = [
    "0.1.0",
    "1.0.0-beta",
    "1.0.0-beta1",
    "1.0.0-beta-1.0",
    "1.0.0-beta.42",
    "1.0.0-beta.alpha",
    "1.0.0-beta+20220202",
    "1.0.0-beta2+20220202",
    "1.0.0-rc1",
    "1.0.0-preview1",
    "1.0.0-SNAPSHOT",
    "1.0.0-next",
]

INVALID_VERSIONS = [
    "0.1.0-beta",
    "0.1.0-rc1",
    "1.0.0-betapreview",
    "1.0.0-alphabeta",
    "1.0.0-123",
    "1.0.0-beta.",
    "1.0.0-beta..",
    "1.0.0-beta-",
    "1.0.0-beta--",
    "1.0.0-beta---",
    "1.0.0-beta1.",
    "1.0.0-beta1-",
    "1.0.0-.",
    "1.0.0--",
]


@pytest.mark.parametrize("version", VALID_VERSIONS)
def test_check_prerelease_valid(version):
    assert str(check_prerelease(version)) == version


@pytest.mark.parametrize("version", INVALID_VERSIONS)
def test_check_prerelease_invalid(version):
    with pytest.raises(ValueError):
        check_prerelease(version)


def test_check_prerelease_technical_preview_message():
    with pytest.raises(ValueError, match="technical previews"):
        check_prerelease("0.1.0-beta")


def test_validate_prerelease_tag_message():
    with pytest.raises(ValueError) as info:
        validate_prerelease_tag("alpha")
    assert str(info.value) == (
        "prerelease tag (alpha) should be one of [next, SNAPSHOT], "
        "or one of [beta, rc, preview] followed by numbers"
    )


def test_validate_prerelease_from_manifest(tmp_path):
    _write(tmp_path, "manifest.yml", "name: pkg\nversion: 0.1.0-beta\n")
    errs = validate_prerelease(DirFS(str(tmp_path)))
    assert len(errs) == 1
    assert "technical previews" in str(errs[0])

    _write(tmp_path, "manifest.yml", "name: pkg\nversion: 1.0.0-rc2\n")
    assert validate_prerelease(DirFS(str(tmp_path))) == []


def test_expected_ilm_policy_prefix():
    assert expected_ilm_policy_prefix("logs", "pkg", "foo") == "logs-pkg.foo-"


def test_read_package_name(tmp_path):
    _write(tmp_path, "manifest.yml", "name: my_package\nversion: 1.0.0\n")
    assert read_package_name(DirFS(str(tmp_path))) == "my_package"


def test_read_package_name_missing_manifest(tmp_path):
    with pytest.raises(OSError, match="failed to manifest"):
        read_package_name(DirFS(str(tmp_path)))


def _ilm_package(root: Path, policy: str) -> None:
    _write(root, "manifest.yml", "name: pkg\nversion: 1.0.0\n")
    _write(root, "data_stream/foo/manifest.yml", f"type: logs\nilm_policy: {policy}\n")


def test_ilm_policy_present(tmp_path):
    _ilm_package(tmp_path, "logs-pkg.foo-mypolicy")
    _write(tmp_path, "data_stream/foo/elasticsearch/ilm/mypolicy.json", "{}")
    assert validate_ilm_policy_present(DirFS(str(tmp_path))) == []


def test_ilm_policy_missing_definition(tmp_path):
    _ilm_package(tmp_path, "logs-pkg.foo-mypolicy")
    errs = validate_ilm_policy_present(DirFS(str(tmp_path)))
    assert len(errs) == 1
    assert 'ILM policy "logs-pkg.foo-mypolicy" not found in package' in str(errs[0])


def test_ilm_policy_wrong_prefix(tmp_path):
    _ilm_package(tmp_path, "other-policy")
    errs = validate_ilm_policy_present(DirFS(str(tmp_path)))
    assert len(errs) == 1
    assert 'field ilm_policy must start with "logs-pkg.foo-", found "other-policy"' in str(
        errs[0]
    )


def test_ilm_policy_not_set(tmp_path):
    _write(tmp_path, "data_stream/foo/manifest.yml", "type: logs\n")
    assert validate_ilm_policy_present(DirFS(str(tmp_path))) == []


def _profiling_package(root: Path, version: str) -> None:
    _write(root, "manifest.yml", f"name: pkg\nversion: {version}\n")
    _write(root, "data_stream/prof/manifest.yml", "type: profiling\n")


def test_profiling_in_ga_package(tmp_path):
    _profiling_package(tmp_path, "1.0.0")
    errs = validate_profiling_non_ga(DirFS(str(tmp_path)))
    assert len(errs) == 1
    assert "profiling data type cannot be used in GA packages" in str(errs[0])


@pytest.mark.parametrize("version", ["0.1.0", "1.0.0-beta1"])
def test_profiling_in_non_ga_package(tmp_path, version):
    _profiling_package(tmp_path, version)
    assert validate_profiling_non_ga(DirFS(str(tmp_path))) == []


def test_routing_rules_without_dataset(tmp_path):
    _write(tmp_path, "data_stream/foo/manifest.yml", "type: logs\n")
    _write(tmp_path, "data_stream/foo/routing_rules.yml", "- source_dataset: foo\n  rules: []\n")
    errs = validate_routing_rules_and_dataset(DirFS(str(tmp_path)))
    assert len(errs) == 1
    assert str(errs[0]).startswith(
        'routing rules defined in data stream "foo" but dataset field is missing'
    )


def test_routing_rules_with_dataset(tmp_path):
    _write(tmp_path, "data_stream/foo/manifest.yml", "type: logs\ndataset: foo.bar\n")
    _write(tmp_path, "data_stream/foo/routing_rules.yml", "- source_dataset: foo\n  rules: []\n")
    assert validate_routing_rules_and_dataset(DirFS(str(tmp_path))) == []


def test_routing_rules_empty(tmp_path):
    _write(tmp_path, "data_stream/foo/manifest.yml", "type: logs\n")
    _write(tmp_path, "data_stream/foo/routing_rules.yml", "[]\n")
    assert validate_routing_rules_and_dataset(DirFS(str(tmp_path))) == []