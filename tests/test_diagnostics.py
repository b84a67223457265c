import pytest

from msipack import diagnostics
from msipack.diagnostics import Severity, check_tool, parse_tool_version, run_check_env

from tests.conftest import posix_only, settings_for


@pytest.mark.parametrize("output,expected", [
    ("Windows Installer XML Toolset Compiler version 3.11.2.4516", (3, 11, 2)),
    ("0.10.15", (0, 10, 15)),
    ("Chocolatey v0.10.15", None),
    ("", None),
])
def test_parse_tool_version(output, expected):
    assert parse_tool_version(output) == expected


@pytest.mark.parametrize("output,err,level,details", [
    ("light version 3.11.2", "", Severity.ok, "light found 3.11.2"),
    ("light version 3.10.0", "", Severity.error, "light found 3.10.0 but >3.10.0 is required"),
    ("usage: light", "", Severity.warn, "light probably not found"),
    ("", "No such file", Severity.error, "light not found: No such file"),
])
def test_check_tool_grades(monkeypatch, output, err, level, details):
    monkeypatch.setattr(diagnostics, "probe", lambda argv: (output, err))
    check = check_tool("light", ["light", "-h"], (3, 10, 0))
    assert check.level == level
    assert check.details == details


def test_report_lines_use_marks(monkeypatch, tmp_path):
    monkeypatch.setattr(diagnostics, "probe", lambda argv: ("", "missing"))
    report = run_check_env(settings_for(tmp_path))
    assert [c.name for c in report.checks] == ["light", "candle", "chocolatey"]
    assert all(line.startswith("!!\t") for line in report.text().splitlines())


@posix_only
def test_check_env_with_tools(fake_bin, tmp_path):
    report = run_check_env(settings_for(tmp_path, tool_bin_dir=fake_bin))
    assert [c.level for c in report.checks] == [Severity.ok] * 3
    assert report.model_dump(mode="json")["checks"][2] == {
        "name": "chocolatey", "level": "ok", "details": "chocolatey found 0.10.15", "version": "0.10.15",
    }
