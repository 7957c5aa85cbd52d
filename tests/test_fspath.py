import pytest

from pkgspec.fspath import DirFS


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "b.yml").write_text("x: 1\n")
    (tmp_path / "a.json").write_text("{}")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.json").write_text("[]")
    return tmp_path


def test_path_joins_root():
    fsys = DirFS("testdata/packages")
    assert fsys.path("manifest.yml") == "testdata/packages/manifest.yml"
    assert fsys.path() == "testdata/packages"


def test_read_dir_sorted(tree):
    names = [e.name for e in DirFS(str(tree)).read_dir(".")]
    assert names == sorted(names)
    assert set(names) == {"a.json", "b.yml", "sub"}


def test_read_bytes_and_stat(tree):
    fsys = DirFS(str(tree))
    assert fsys.read_bytes("a.json") == b"{}"
    assert fsys.stat("a.json").st_size == 2


def test_glob(tree):
    fsys = DirFS(str(tree))
    assert fsys.glob("*/*.json") == ["sub/c.json"]
    assert fsys.glob("missing.yml") == []


def test_missing_file_raises(tree):
    with pytest.raises(FileNotFoundError):
        DirFS(str(tree)).read_bytes("nope")