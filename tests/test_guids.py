import re

from msipack.manifest import Manifest, assign_identifiers, needs_identifiers
from msipack.manifest.model import Directory, File

GUID_RE = re.compile(r"^[0-9A-F]{8}-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{12}$")


def _manifest() -> Manifest:
    m = Manifest(product="p")
    m.directory = Directory(files=[File("a")], directories=[Directory("sub", files=[File("sub/b")])])
    return m


def test_assign_fills_everything():
    m = _manifest()
    assert needs_identifiers(m)
    assert assign_identifiers(m) is True
    assert not needs_identifiers(m)
    ids = [m.upgrade_code] + [f.guid for f in m.directory.iter_files()]
    assert all(GUID_RE.match(i) for i in ids)
    assert len(set(ids)) == 3


def test_existing_identifiers_are_stable():
    m = _manifest()
    assign_identifiers(m)
    before = [m.upgrade_code] + [f.guid for f in m.directory.iter_files()]
    assert assign_identifiers(m) is False
    assert [m.upgrade_code] + [f.guid for f in m.directory.iter_files()] == before


def test_only_missing_ones_are_filled():
    m = _manifest()
    m.upgrade_code = "KEEP"
    m.directory.files[0].guid = "KEEP-TOO"
    assert assign_identifiers(m) is True
    assert m.upgrade_code == "KEEP"
    assert m.directory.files[0].guid == "KEEP-TOO"
    assert GUID_RE.match(m.directory.directories[0].files[0].guid)


def test_force_regenerates_all():
    m = _manifest()
    assign_identifiers(m)
    before = [m.upgrade_code] + [f.guid for f in m.directory.iter_files()]
    assert assign_identifiers(m, force=True) is True
    after = [m.upgrade_code] + [f.guid for f in m.directory.iter_files()]
    assert all(a != b for a, b in zip(before, after))
