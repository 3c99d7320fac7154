"""
Tests for the pm CLI.

This test suite covers:
1. Help and argument errors
2. Install, query, load and remove round trip
3. Diagnostics output
4. Settings errors
"""

import json
import sys
import tempfile
from pathlib import Path

import pytest

from pm.cli import main


@pytest.fixture
def pm_env(monkeypatch):
    """Settings file pointing at a temporary app data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        config_file = root / "plughost.toml"
        config_file.write_text(f'[host]\napp_data_dir = "{(root / "data").as_posix()}"\n')

        plugin_dir = root / "src" / "glow-fx"
        plugin_dir.mkdir(parents=True)
        (plugin_dir / "manifest.json").write_text(
            json.dumps({"name": "glow-fx", "version": "1.0.0", "main": "plugin.py"})
        )
        (plugin_dir / "plugin.py").write_text("VALUE = 1\n")

        monkeypatch.chdir(root)
        monkeypatch.setenv("PYTHONPATH", "")
        monkeypatch.setattr(sys, "path", list(sys.path))
        yield str(config_file), plugin_dir


class TestArguments:
    """Test argument handling."""

    def test_help(self, capsys):
        """No operation should print help."""
        assert main([]) == 0
        assert "pm - plughost Plugin Manager" in capsys.readouterr().out

    def test_install_without_targets(self, capsys):
        """-S without targets should fail."""
        assert main(["-S"]) == 1
        assert "No targets specified" in capsys.readouterr().err

    def test_invalid_settings(self, capsys):
        """A broken settings file should be reported."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_file = Path(tmpdir) / "bad.toml"
            config_file.write_text('[host]\nlog_level = "LOUD"\n')

            assert main(["-Q", "-c", str(config_file)]) == 1
            assert "Invalid settings" in capsys.readouterr().err


class TestCommands:
    """Test pm operations end to end."""

    def test_install_query_load_remove(self, pm_env, capsys):
        """A plugin should go through the whole lifecycle from the CLI."""
        config_file, plugin_dir = pm_env

        assert main(["-S", str(plugin_dir), "-c", config_file]) == 0
        assert "installed glow-fx" in capsys.readouterr().out

        assert main(["-Q", "-c", config_file]) == 0
        assert f"glow-fx [enabled] {plugin_dir}" in capsys.readouterr().out

        assert main(["-Qi", "glow-fx", "-c", config_file]) == 0
        info = capsys.readouterr().out
        assert "Valid       : yes" in info
        assert "Version     : 1.0.0" in info

        assert main(["-L", "-c", config_file]) == 0
        assert "ok      glow-fx" in capsys.readouterr().out

        assert main(["-R", "glow-fx", "-c", config_file]) == 0
        assert "removed glow-fx" in capsys.readouterr().out
        assert plugin_dir.exists()

        assert main(["-Q", "-c", config_file]) == 0
        assert capsys.readouterr().out == ""

    def test_remove_purge(self, pm_env):
        """--purge should delete the plugin source."""
        config_file, plugin_dir = pm_env
        main(["-S", str(plugin_dir), "-c", config_file])

        assert main(["-R", "glow-fx", "--purge", "-c", config_file]) == 0
        assert not plugin_dir.exists()

    def test_remove_unknown(self, pm_env, capsys):
        """Removing an unknown plugin should fail."""
        config_file, _ = pm_env

        assert main(["-R", "ghost", "-c", config_file]) == 1
        assert "plugin not found: ghost" in capsys.readouterr().err

    def test_load_nothing(self, pm_env, capsys):
        """-L with nothing configured should succeed."""
        config_file, _ = pm_env

        assert main(["-L", "-c", config_file]) == 0
        assert "no plugins enabled" in capsys.readouterr().out

    def test_diagnostics(self, pm_env, capsys):
        """--diagnostics should print resolution details."""
        config_file, _ = pm_env

        assert main(["--diagnostics", "-c", config_file]) == 0
        out = capsys.readouterr().out
        assert "is_production" in out
        assert "shared_dependency_path" in out
