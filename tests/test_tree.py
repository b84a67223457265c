import logging

import pytest

from msipack.errors import PatternMatchedNothingError
from msipack.manifest import Manifest, add_files, insert_file
from msipack.manifest.model import Directory, File

from tests.infrastructure.file_utils import write


def _tree(d: Directory):
    return {
        "files": [f.path for f in d.files],
        "dirs": {sub.name: _tree(sub) for sub in d.directories},
    }


def test_add_files_builds_nested_tree_with_exclusions(dist, monkeypatch):
    monkeypatch.chdir(dist.parent)
    m = Manifest(product="p")
    added = add_files(m, dist.relative_to(dist.parent), ["**"], ["**/*.tmp"])

    assert added == ["dist/a.txt", "dist/sub/b.txt"]
    assert _tree(m.directory) == {
        "files": ["dist/a.txt"],
        "dirs": {"sub": {"files": ["dist/sub/b.txt"], "dirs": {}}},
    }


def test_txt_files_with_single_exclusion(dist):
    m = Manifest(product="p")
    added = add_files(m, dist, ["**/*.txt"], ["sub/c.tmp"])
    assert added == [(dist / "a.txt").as_posix(), (dist / "sub" / "b.txt").as_posix()]
    assert _tree(m.directory) == {
        "files": [(dist / "a.txt").as_posix()],
        "dirs": {"sub": {"files": [(dist / "sub" / "b.txt").as_posix()], "dirs": {}}},
    }


def test_star_include_leaves_nested_files_out(dist):
    write(dist / "sub" / "deep" / "d.txt", "d\n")
    m = Manifest(product="p")
    added = add_files(m, dist, ["sub/*"])
    assert added == [(dist / "sub" / "b.txt").as_posix(), (dist / "sub" / "c.tmp").as_posix()]
    assert m.directory.directories[0].directories == []


def test_exclusion_wins_over_inclusion(dist):
    m = Manifest(product="p")
    added = add_files(m, dist, ["sub/b.txt"], ["sub/*"])
    assert added == []
    assert list(m.directory.iter_files()) == []


def test_add_files_is_idempotent(dist):
    m = Manifest(product="p")
    add_files(m, dist, ["**"])
    before = _tree(m.directory)
    assert add_files(m, dist, ["**"]) == []
    assert _tree(m.directory) == before


def test_merge_is_cumulative(dist):
    m = Manifest(product="p")
    add_files(m, dist, ["a.txt"])
    add_files(m, dist, ["sub/b.txt"])
    assert [f.path for f in m.directory.iter_files()] == [
        (dist / "a.txt").as_posix(), (dist / "sub" / "b.txt").as_posix(),
    ]


def test_include_matching_nothing_fails(dist):
    with pytest.raises(PatternMatchedNothingError):
        add_files(Manifest(product="p"), dist, ["*.exe"])


def test_insert_file_keeps_guid_of_existing_entry(caplog):
    root = Directory()
    insert_file(root, File(path="x/y.txt", guid="G1"), ["x", "y.txt"])
    with caplog.at_level(logging.INFO, logger="msipack"):
        assert insert_file(root, File(path="x/y.txt"), ["x", "y.txt"]) is False
    assert root.directories[0].files == [File(path="x/y.txt", guid="G1")]
    assert "skipping x/y.txt already listed" in caplog.text


def test_directories_matched_by_name_within_parent_only():
    root = Directory()
    insert_file(root, File(path="a/lib/1"), ["a", "lib", "1"])
    insert_file(root, File(path="b/lib/2"), ["b", "lib", "2"])
    assert [d.name for d in root.directories] == ["a", "b"]
    assert root.directories[0].directories[0].files[0].path == "a/lib/1"
    assert root.directories[1].directories[0].files[0].path == "b/lib/2"
