"""
Tests for the pvctl command-line tool.

This test suite covers:
1. init writes a sample and refuses to overwrite
2. list prints definitions
3. generate writes service files for enabled plugins
4. Error exit codes
"""

import tempfile
from pathlib import Path

import pytest
from loguru import logger

from pvctl.cli import create_parser, main

CONFIG = """
[settings]
install_folder = "/opt/appium"

[variables]
port = "4723"

[plugins.node]
executable = "{installFolder}/bin/node"
arguments = ["server.js", "--port", "{port}"]
restart_policy = "always"

[plugins.idle]
executable = "/bin/true"
enabled = false
"""


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks main() bound to the captured stderr."""
    yield
    logger.remove()


def write_config(directory: str, content: str = CONFIG) -> Path:
    path = Path(directory) / "plugins.toml"
    path.write_text(content, encoding="utf-8")
    return path


class TestParser:
    """Test argument parsing."""

    def test_generate_defaults(self):
        """generate defaults to plugins.toml and enabled plugins only."""
        args = create_parser().parse_args(["generate"])

        assert args.command == "generate"
        assert args.config == "plugins.toml"
        assert args.output is None
        assert args.all is False

    def test_no_command_prints_help(self, capsys):
        """Running without a command prints help and succeeds."""
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()


class TestInitCommand:
    """Test pvctl init."""

    def test_init_writes_sample(self):
        """init creates a loadable sample file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "plugins.toml"

            assert main(["init", str(path)]) == 0
            assert "[plugins.example-plugin]" in path.read_text()

    def test_init_refuses_overwrite(self):
        """init keeps an existing file unless forced."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_config(tmpdir, "# mine\n")

            assert main(["init", str(path)]) == 1
            assert path.read_text() == "# mine\n"

            assert main(["init", str(path), "--force"]) == 0
            assert "[settings]" in path.read_text()


class TestListCommand:
    """Test pvctl list."""

    def test_list(self, capsys):
        """Each definition is printed with type, state and policy."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_config(tmpdir)

            assert main(["list", "-c", str(path)]) == 0

            out = capsys.readouterr().out.splitlines()
            assert out == [
                "node\tprocess\tenabled\talways",
                "idle\tprocess\tdisabled\ton_failure",
            ]


class TestGenerateCommand:
    """Test pvctl generate."""

    def test_generate_enabled_only(self, capsys):
        """Only enabled plugins are generated by default."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_config(tmpdir)
            out_dir = Path(tmpdir) / "out"

            assert main(["generate", "-c", str(path), "-o", str(out_dir)]) == 0

            unit = out_dir / "systemd" / "node.service"
            assert unit.is_file()
            assert "ExecStart=/opt/appium/bin/node server.js --port 4723" in unit.read_text()
            assert not (out_dir / "systemd" / "idle.service").exists()
            assert (out_dir / "install-generated-services.sh").is_file()
            assert str(unit) in capsys.readouterr().out

    def test_generate_all_with_install_folder(self):
        """--all includes disabled plugins and -i overrides the install folder."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_config(tmpdir)
            out_dir = Path(tmpdir) / "out"

            code = main(
                ["generate", "-c", str(path), "-o", str(out_dir), "-i", "/srv", "--all"]
            )

            assert code == 0
            assert (out_dir / "systemd" / "idle.service").is_file()
            assert "/srv/bin/node" in (out_dir / "systemd" / "node.service").read_text()

    def test_missing_config(self, capsys):
        """A missing config file exits with 1."""
        with tempfile.TemporaryDirectory() as tmpdir:
            code = main(["generate", "-c", str(Path(tmpdir) / "missing.toml")])

            assert code == 1
            assert "Error:" in capsys.readouterr().err

    def test_invalid_config(self, capsys):
        """Validation errors exit with 1."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_config(tmpdir, '[plugins.bad]\nrestart_policy = "sometimes"\n')

            assert main(["list", "-c", str(path)]) == 1
            assert "Plugin 'bad'" in capsys.readouterr().err
