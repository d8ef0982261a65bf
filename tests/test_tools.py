from __future__ import annotations

import json

import pytest

from tools import bump_version, print_log_config


@pytest.mark.parametrize(
    ("current", "bump", "pre", "expected"),
    [
        ("0.3.0", "patch", "", "0.3.1"),
        ("0.3.1", "minor", "", "0.4.0"),
        ("0.4.0", "major", "", "1.0.0"),
        ("0.3.0", "minor", "rc", "0.4.0-rc.1"),
        ("0.4.0-rc.1", "minor", "rc", "0.4.0-rc.2"),
    ],
)
def test_bump_version(current, bump, pre, expected):
    assert bump_version.bump_version(current, bump, pre) == expected


def test_parse_version_rejects_garbage():
    with pytest.raises(ValueError):
        bump_version.parse_version("v1")


def test_update_files(tmp_path):
    package = tmp_path / "actionchat"
    package.mkdir()
    (package / "__version__.py").write_text('__version__ = "0.3.0"\n')
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text('[project]\nname = "actionchat"\nversion = "0.3.0"\n')

    assert bump_version.get_current_version(tmp_path) == "0.3.0"
    bump_version.update_file(pyproject, r'^version\s*=\s*"[^"]+"', 'version = "0.3.1"')
    assert 'version = "0.3.1"' in pyproject.read_text()
    assert 'name = "actionchat"' in pyproject.read_text()


def test_print_log_config(monkeypatch, capsys, tmp_path):
    monkeypatch.setenv("LOG_DIR", str(tmp_path))
    monkeypatch.setenv("LOG_RETENTION_DAYS", "3")
    print_log_config.main()
    data = json.loads(capsys.readouterr().out)
    assert data["retention_days"] == 3
    assert data["log_dir"] == str(tmp_path)
