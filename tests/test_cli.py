import json

from msipack.manifest import load_manifest

from .conftest import jload, posix_only, run_cli
from tests.infrastructure.file_utils import write


def test_cli_version(tmp_path):
    cp = run_cli(tmp_path, "-V")
    assert cp.returncode == 0
    assert cp.stdout.startswith("msipack ")


def test_cli_add_files_saves_manifest(project):
    cp = run_cli(project, "add-files", "--dir", "dist", "-i", "**", "-e", "**/*.tmp")
    assert cp.returncode == 0, cp.stderr
    assert "The file is saved on disk" in cp.stdout
    assert "adding dist/a.txt" in cp.stderr
    assert "excluding dist/sub/c.tmp" in cp.stderr
    paths = [f.path for f in load_manifest(project / "wix.json").directory.iter_files()]
    assert paths == ["dist/a.txt", "dist/sub/b.txt"]


def test_cli_add_files_test_mode(project):
    before = (project / "wix.json").read_text(encoding="utf-8")
    cp = run_cli(project, "add-files", "--dir", "dist", "-i", "**", "--test")
    assert cp.returncode == 1
    assert "file list not up to date" in cp.stderr
    assert (project / "wix.json").read_text(encoding="utf-8") == before

    assert run_cli(project, "add-files", "--dir", "dist", "-i", "**").returncode == 0
    cp = run_cli(project, "add-files", "--dir", "dist", "-i", "*.txt", "-i", "sub/*", "--test")
    assert cp.returncode == 0, cp.stderr


def test_cli_add_files_pattern_without_match(project):
    cp = run_cli(project, "add-files", "--dir", "dist", "-i", "*.exe")
    assert cp.returncode == 1
    assert "do not exist" in cp.stderr


def test_cli_set_guid(project):
    run_cli(project, "add-files", "--dir", "dist", "-i", "*.txt")
    cp = run_cli(project, "set-guid")
    assert cp.returncode == 0, cp.stderr
    assert "The manifest was updated" in cp.stdout
    m = load_manifest(project / "wix.json")
    assert m.upgrade_code and all(f.guid for f in m.directory.iter_files())

    cp = run_cli(project, "set-guid")
    assert "The manifest was not updated" in cp.stdout
    assert load_manifest(project / "wix.json") == m

    run_cli(project, "set-guid", "--force")
    assert load_manifest(project / "wix.json").upgrade_code != m.upgrade_code


def test_cli_missing_manifest(tmp_path):
    cp = run_cli(tmp_path, "set-guid", "-p", "nope.json")
    assert cp.returncode == 1
    assert "Manifest file not found: nope.json" in cp.stderr
    assert "Traceback" not in cp.stderr


def test_cli_generate_templates_needs_guids(project):
    run_cli(project, "add-files", "--dir", "dist", "-i", "*.txt")
    cp = run_cli(project, "generate-templates", "-o", "build")
    assert cp.returncode == 1
    assert "msipack set-guid" in cp.stderr


def test_cli_generate_templates_custom_src(project):
    run_cli(project, "set-guid")
    write(project / "tpl" / "a.wxs", "<P V='${version.msi}' X='${property:X}'/>")
    cp = run_cli(project, "generate-templates", "-s", "tpl", "-o", "build", "--version", "4.5", "-pr", "X=1")
    assert cp.returncode == 0, cp.stderr
    assert "Generated 1 templates" in cp.stdout
    assert (project / "build" / "a.wxs").read_text(encoding="utf-8") == "<P V='4.5.0' X='1'/>"


def test_cli_to_rtf_and_windows(tmp_path):
    write(tmp_path / "in.txt", "héllo")
    assert run_cli(tmp_path, "to-rtf", "-s", "in.txt", "-o", "out.rtf", "-e").returncode == 0
    assert "h\\'e9llo" in (tmp_path / "out.rtf").read_text(encoding="ascii")
    assert run_cli(tmp_path, "to-windows", "-s", "in.txt", "-o", "out.txt").returncode == 0
    assert (tmp_path / "out.txt").read_bytes() == "héllo".encode("cp1252")


def test_cli_to_rtf_requires_paths(tmp_path):
    cp = run_cli(tmp_path, "to-rtf", "-s", "in.txt")
    assert cp.returncode == 1
    assert "--out" in cp.stderr


def test_cli_check_env_json_always_succeeds(tmp_path):
    cp = run_cli(tmp_path, "check-env", "--json")
    assert cp.returncode == 0, cp.stderr
    data = jload(cp.stdout)
    assert [c["name"] for c in data["checks"]] == ["light", "candle", "chocolatey"]


@posix_only
def test_cli_make_and_choco(project, fake_bin):
    assert run_cli(project, "add-files", "--dir", "dist", "-i", "**", "-e", "**/*.tmp").returncode == 0
    assert run_cli(project, "set-guid").returncode == 0

    cp = run_cli(project, "make", "-m", "hello.msi", "-b", str(fake_bin), "--version", "1.0.0",
                 "-o", "build", "-k", "-a", "x64")
    assert cp.returncode == 0, cp.stderr
    assert "All Done!!" in cp.stdout
    assert (project / "hello.msi").exists()
    script = (project / "build" / "build.bat").read_text(encoding="utf-8")
    assert "-arch x64 product.wxs" in script

    cp = run_cli(project, "choco", "-i", "hello.msi", "--version", "1.0.0", "-o", "choco-build")
    assert cp.returncode == 0, cp.stderr
    assert "Package copied to hello.1.0.0.nupkg" in cp.stdout
    assert (project / "hello.1.0.0.nupkg").exists()
    assert not (project / "choco-build").exists()


@posix_only
def test_cli_gen_and_run_wix_cmd(project, fake_bin):
    run_cli(project, "add-files", "--dir", "dist", "-i", "*.txt")
    run_cli(project, "set-guid")
    assert run_cli(project, "generate-templates", "-o", "build").returncode == 0
    cp = run_cli(project, "gen-wix-cmd", "-o", "build", "-m", "app.msi", "-b", str(fake_bin))
    assert cp.returncode == 0, cp.stderr
    cp = run_cli(project, "run-wix-cmd", "-o", "build")
    assert cp.returncode == 0, cp.stderr
    assert (project / "app.msi").exists()


def test_cli_run_wix_cmd_without_script(tmp_path):
    cp = run_cli(tmp_path, "run-wix-cmd", "-o", "build")
    assert cp.returncode == 1
    assert "gen-wix-cmd" in cp.stderr


def test_cli_manifest_is_plain_json(project):
    run_cli(project, "add-files", "--dir", "dist", "-i", "a.txt")
    data = json.loads((project / "wix.json").read_text(encoding="utf-8"))
    assert data["directory"]["files"] == [{"path": "dist/a.txt"}]
