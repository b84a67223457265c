import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from msipack.manifest import Manifest, save_manifest
from msipack.settings import BuildSettings, packaged_templates_dir

from tests.infrastructure.fake_tools import install_fake_tools
from tests.infrastructure.file_utils import write

posix_only = pytest.mark.skipif(os.name == "nt", reason="fake tools are POSIX shell scripts")


@pytest.fixture
def dist(tmp_path: Path) -> Path:
    """dist/a.txt, dist/sub/b.txt, dist/sub/c.tmp"""
    write(tmp_path / "dist" / "a.txt", "a\n")
    write(tmp_path / "dist" / "sub" / "b.txt", "b\n")
    write(tmp_path / "dist" / "sub" / "c.tmp", "c\n")
    return tmp_path / "dist"


@pytest.fixture
def project(tmp_path: Path, dist: Path, monkeypatch) -> Path:
    """A project root (also the cwd) with dist/, LICENSE and a bare wix.json."""
    write(tmp_path / "LICENSE", "MIT License\n\nCopyright (c) acme\n")
    save_manifest(tmp_path / "wix.json", Manifest(product="hello", company="acme", license="LICENSE"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def fake_bin(tmp_path: Path, monkeypatch) -> Path:
    """Fake candle/light/choco, also put first on PATH."""
    bin_dir = install_fake_tools(tmp_path / "fakebin")
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return bin_dir


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("MSIPACK_TEMPLATES", "MSIPACK_WIX_BIN", "MSIPACK_DEBUG"):
        monkeypatch.delenv(name, raising=False)


def settings_for(root: Path, **kw) -> BuildSettings:
    kw.setdefault("templates_dir", packaged_templates_dir())
    kw.setdefault("out_dir", root / "build")
    return BuildSettings(**kw)


def run_cli(root: Path, *args: str) -> subprocess.CompletedProcess:
    env = os.environ.copy()
    return subprocess.run(
        [sys.executable, "-m", "msipack.cli", *args],
        cwd=root, env=env, capture_output=True, text=True, encoding="utf-8"
    )


def jload(s: str):
    return json.loads(s)
