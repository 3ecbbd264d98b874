"""Tests for CLI commands."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from hostinstall.bridge import HostBridge
from hostinstall.commands import cli
from hostinstall.commands.check import is_version_satisfied
from hostinstall.commands.install import format_env_delta
from hostinstall.config import TIMEOUT_ENV
from hostinstall.execution import EnvironmentDelta
from hostinstall.installer import InstallerRegistry
from hostinstall.paths import CATALOG_ENV

from .conftest import FakeExecutor


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def host():
    """The fake host every command in a test talks to."""
    return FakeExecutor()


@pytest.fixture
def make_obj(catalog_file, host):
    def factory(platform):
        registry = InstallerRegistry.from_catalog(
            local=host, bridge=HostBridge(host), path=catalog_file, platform=platform
        )
        return {"registry": registry, "platform": platform}

    return factory


class TestCli:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("install", "check", "eligible", "list", "deps", "platform", "pick", "catalog"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestInstallCommand:
    """Tests for the install command."""

    def test_already_installed(self, runner, make_obj, host, debian):
        host.commands.add("jq")
        result = runner.invoke(cli, ["install", "jq"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "⏭️" in result.output
        assert "jq is already installed" in result.output
        assert host.ran == []

    def test_installs(self, runner, make_obj, host, debian):
        host.commands.add("apt-get")
        host.respond("apt-get install", creates_commands={"jq"})
        result = runner.invoke(cli, ["install", "jq"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "✅ jq installed via APT (jq)." in result.output

    def test_passes_version_and_source(self, runner, make_obj, host, debian):
        host.commands.add("apt-get")
        host.respond("apt-get install", creates_commands={"jq"})
        result = runner.invoke(
            cli,
            ["install", "jq", "--version", "1.7.1-3", "--source", "noble-backports", "--interactive"],
            obj=make_obj(debian),
        )
        assert result.exit_code == 0
        assert host.ran_matching("sudo apt-get install -t noble-backports jq=1.7.1-3")

    def test_prints_notes_and_env_changes(self, runner, make_obj, host, debian):
        host.commands.update({"curl", "unzip"})
        host.respond("unzip -o -q", creates_paths={"/opt/bin/terraform"})
        result = runner.invoke(cli, ["install", "terraform"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "Terraform installed via zip archive into /opt/bin." in result.output
        assert 'export PATH="/opt/bin' in result.output

    def test_failure_exits_1_with_remediation(self, runner, make_obj, debian):
        result = runner.invoke(cli, ["install", "jq"], obj=make_obj(debian))
        assert result.exit_code == 1
        assert "❌ MissingPrerequisite: Cannot install jq: APT is not installed." in result.output
        assert "Troubleshooting:" in result.output
        assert "  1. APT ships with Debian-family systems" in result.output

    def test_warns_about_missing_prerequisite_target(self, runner, make_obj, debian):
        result = runner.invoke(cli, ["install", "terraform"], obj=make_obj(debian))
        assert result.exit_code == 1
        assert "Terraform may need unzip: run 'hostinstall install unzip' first" in result.output
        assert "hostinstall install unzip" in result.output.split("Troubleshooting:")[1]

    def test_not_available_is_skipped(self, runner, make_obj, host, rpm):
        result = runner.invoke(cli, ["install", "jq"], obj=make_obj(rpm))
        assert result.exit_code == 0
        assert "jq is not available for RPM-family." in result.output

    def test_unknown_target(self, runner, make_obj, debian):
        result = runner.invoke(cli, ["install", "nope"], obj=make_obj(debian))
        assert result.exit_code == 2
        assert "Error: unknown target 'nope'. Hint:" in result.output

    def test_timeout_must_be_positive(self, runner, make_obj, debian):
        result = runner.invoke(cli, ["install", "jq", "--timeout", "0"], obj=make_obj(debian))
        assert result.exit_code == 2


class TestInstallWithPrerequisites:
    """Tests for install --with-deps."""

    def test_dry_run_lists_plan(self, runner, make_obj, host, debian):
        result = runner.invoke(cli, ["install", "terraform", "--with-deps", "--dry-run"], obj=make_obj(debian))
        assert result.exit_code == 0
        lines = result.output.splitlines()
        start = lines.index("The following will be installed, in this order:")
        assert lines[start + 1:start + 3] == ["  - unzip (unzip)", "  - Terraform (terraform)"]
        assert "[Dry run: nothing was installed]" in result.output
        assert host.ran == []

    def test_dry_run_without_deps_lists_target_only(self, runner, make_obj, host, debian):
        result = runner.invoke(cli, ["install", "terraform", "--dry-run"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "Preparing to install: Terraform" in result.output
        assert "unzip (unzip)" not in result.output
        assert host.ran == []

    def test_installs_prerequisite_first(self, runner, make_obj, host, debian):
        host.commands.update({"apt-get", "snap"})
        host.respond("apt-get install -y unzip", creates_commands={"unzip"})
        host.respond("snap install", creates_commands={"terraform"})
        result = runner.invoke(cli, ["install", "terraform", "--with-deps", "--yes"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "✅ unzip installed via APT (unzip)." in result.output
        assert "✅ Terraform installed via Snap (classic) (terraform)." in result.output
        assert "  Installed: 2" in result.output
        assert host.ran.index("sudo DEBIAN_FRONTEND=noninteractive apt-get install -y unzip") < (
            host.ran.index("sudo snap install terraform --classic")
        )

    def test_prerequisite_failure_stops_chain(self, runner, make_obj, host, debian):
        host.commands.update({"apt-get", "snap"})
        host.respond("apt-get install", exit_code=100, stderr="E: Unable to locate package unzip")
        result = runner.invoke(cli, ["install", "terraform", "--with-deps", "-y"], obj=make_obj(debian))
        assert result.exit_code == 1
        assert "❌ ExecutionFailure: Installing unzip via APT (unzip) failed (exit code 100)." in result.output
        assert "E: Unable to locate package unzip" in result.output
        assert "  Failed: 1" in result.output
        assert "  Not attempted: 1" in result.output
        assert not host.ran_matching("snap install")

    def test_confirmation_declined(self, runner, make_obj, host, debian):
        result = runner.invoke(cli, ["install", "terraform", "--with-deps"], obj=make_obj(debian), input="n\n")
        assert result.exit_code == 0
        assert "Installation cancelled." in result.output
        assert host.ran == []

    def test_pins_apply_to_target_only(self, runner, make_obj, host, debian):
        host.commands.update({"apt-get", "snap"})
        host.respond("apt-get install -y unzip", creates_commands={"unzip"})
        host.respond("snap install", creates_commands={"terraform"})
        result = runner.invoke(
            cli,
            ["install", "terraform", "--with-deps", "-y", "--source", "latest/stable"],
            obj=make_obj(debian),
        )
        assert result.exit_code == 0
        assert host.ran_matching("apt-get install -y unzip") == [
            "sudo DEBIAN_FRONTEND=noninteractive apt-get install -y unzip"
        ]
        assert host.ran_matching("snap install terraform --classic --channel=latest/stable")


class TestRegistryLoading:
    """Tests for building the registry from the environment."""

    def test_bad_catalog_exits_4(self, runner, temp_dir, debian, monkeypatch):
        bad = temp_dir / "bad.json"
        bad.write_text('{"targets": {"x": {}}}')
        monkeypatch.setenv(CATALOG_ENV, str(bad))
        monkeypatch.delenv(TIMEOUT_ENV, raising=False)
        result = runner.invoke(cli, ["list"], obj={"platform": debian})
        assert result.exit_code == 4
        assert "Error: Target 'x' missing required field" in result.output

    def test_bad_timeout_exits_2(self, runner, catalog_file, debian, monkeypatch):
        monkeypatch.setenv(CATALOG_ENV, str(catalog_file))
        monkeypatch.setenv(TIMEOUT_ENV, "forever")
        result = runner.invoke(cli, ["list"], obj={"platform": debian})
        assert result.exit_code == 2
        assert TIMEOUT_ENV in result.output

    def test_catalog_from_env(self, runner, catalog_file, debian, monkeypatch):
        monkeypatch.setenv(CATALOG_ENV, str(catalog_file))
        monkeypatch.delenv(TIMEOUT_ENV, raising=False)
        result = runner.invoke(cli, ["list", "--all"], obj={"platform": debian})
        assert result.exit_code == 0
        assert "terraform" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_not_installed(self, runner, make_obj, debian):
        result = runner.invoke(cli, ["check", "jq"], obj=make_obj(debian))
        assert result.exit_code == 1
        assert "⚪ jq: not installed" in result.output

    def test_installed_with_version(self, runner, make_obj, host, debian):
        host.commands.add("jq")
        host.respond("jq --version", stdout="jq-1.7.1")
        result = runner.invoke(cli, ["check", "jq"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "✅ jq 1.7.1: installed" in result.output

    def test_min_version_not_met(self, runner, make_obj, host, debian):
        host.commands.add("jq")
        host.respond("jq --version", stdout="jq-1.6")
        result = runner.invoke(cli, ["check", "jq", "--min-version", "1.7"], obj=make_obj(debian))
        assert result.exit_code == 1
        assert "1.6 installed, 1.7 or newer required" in result.output

    def test_min_version_met(self, runner, make_obj, host, debian):
        host.commands.add("jq")
        host.respond("jq --version", stdout="jq-1.7.1")
        result = runner.invoke(cli, ["check", "jq", "--min-version", "1.7"], obj=make_obj(debian))
        assert result.exit_code == 0

    def test_invalid_min_version(self, runner, make_obj, debian):
        result = runner.invoke(cli, ["check", "jq", "--min-version", "not a version"], obj=make_obj(debian))
        assert result.exit_code == 2

    @pytest.mark.parametrize(
        "installed,minimum,expected",
        [
            ("1.7.1", "1.7", True),
            ("1.6", "1.7", False),
            (None, "1.0", False),
            ("1.7.1-3build1", "1.7", True),
        ],
    )
    def test_is_version_satisfied(self, installed, minimum, expected):
        assert is_version_satisfied(installed, minimum) is expected


class TestEligibleCommand:
    def test_eligible(self, runner, make_obj, debian):
        result = runner.invoke(cli, ["eligible", "chrome"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "Google Chrome can be installed on Debian-family." in result.output

    def test_wrong_platform(self, runner, make_obj, macos):
        result = runner.invoke(cli, ["eligible", "chrome"], obj=make_obj(macos))
        assert result.exit_code == 1
        assert "Supported: Debian-family, WSL" in result.output

    def test_headless(self, runner, make_obj, debian_headless):
        result = runner.invoke(cli, ["eligible", "chrome"], obj=make_obj(debian_headless))
        assert result.exit_code == 1
        assert "needs a graphical desktop" in result.output


class TestListCommand:
    """Tests for the list command."""

    def test_eligible_only(self, runner, make_obj, macos):
        result = runner.invoke(cli, ["list"], obj=make_obj(macos))
        assert result.exit_code == 0
        assert "jq" in result.output
        assert "terraform" not in result.output

    def test_all(self, runner, make_obj, macos):
        result = runner.invoke(cli, ["list", "--all"], obj=make_obj(macos))
        assert result.exit_code == 0
        assert "➖ terraform" in result.output
        assert "• jq" in result.output

    def test_status(self, runner, make_obj, host, debian):
        host.commands.add("jq")
        result = runner.invoke(cli, ["list", "--status"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "✅ jq" in result.output
        assert "⬜ unzip" in result.output

    def test_nothing_available(self, runner, make_obj, platform_factory):
        from hostinstall.platform import PlatformCategory

        result = runner.invoke(cli, ["list"], obj=make_obj(platform_factory(PlatformCategory.UNKNOWN)))
        assert result.exit_code == 0
        assert "No targets are available for unknown." in result.output


class TestDepsCommand:
    def test_no_prerequisites(self, runner, make_obj, debian):
        result = runner.invoke(cli, ["deps", "jq"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "jq has no prerequisites on Debian-family." in result.output

    def test_pending(self, runner, make_obj, debian):
        result = runner.invoke(cli, ["deps", "terraform"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "⬜ unzip - run 'hostinstall install unzip'" in result.output

    def test_satisfied(self, runner, make_obj, host, debian):
        host.commands.add("unzip")
        result = runner.invoke(cli, ["deps", "terraform"], obj=make_obj(debian))
        assert "✅ unzip" in result.output


class TestPlatformCommand:
    def test_text(self, runner, wsl):
        result = runner.invoke(cli, ["platform"], obj={"platform": wsl})
        assert result.exit_code == 0
        assert "Platform:     WSL (wsl)" in result.output
        assert "Windows host:" in result.output

    def test_json(self, runner, macos):
        result = runner.invoke(cli, ["platform", "--json"], obj={"platform": macos})
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["category"] == "macos"
        assert data["architecture"] == "arm64"
        assert data["nested"] is False


class TestPickCommand:
    """Tests for the interactive pick command."""

    def test_requires_tty(self, runner, make_obj, debian):
        result = runner.invoke(cli, ["pick"], obj=make_obj(debian))
        assert result.exit_code == 2
        assert "requires a TTY" in result.output

    def test_cancelled(self, runner, make_obj, debian):
        with patch("hostinstall.commands.pick.select_target_interactive", return_value=None):
            result = runner.invoke(cli, ["pick"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "Cancelled." in result.output

    def test_installs_choice(self, runner, make_obj, host, debian):
        host.commands.add("apt-get")
        host.respond("apt-get install", creates_commands={"unzip"})
        with patch("hostinstall.commands.pick.select_target_interactive", return_value="unzip") as picker:
            result = runner.invoke(cli, ["pick"], obj=make_obj(debian))
        assert result.exit_code == 0
        assert "unzip installed via APT (unzip)." in result.output
        offered = [i.name for i in picker.call_args[0][0]]
        assert offered == ["chrome", "jq", "terraform", "unzip"]


class TestCatalogCommands:
    """Tests for catalog fmt and catalog validate."""

    def test_validate_ok(self, runner, catalog_file):
        result = runner.invoke(cli, ["catalog", "validate", str(catalog_file)])
        assert result.exit_code == 0
        assert "4 target(s) OK" in result.output
        assert "No target handles:" in result.output

    def test_validate_packaged(self, runner, monkeypatch):
        monkeypatch.delenv(CATALOG_ENV, raising=False)
        result = runner.invoke(cli, ["catalog", "validate"])
        assert result.exit_code == 0
        assert "No target handles" not in result.output

    def test_validate_invalid(self, runner, temp_dir):
        path = temp_dir / "bad.json"
        path.write_text('{"targets": {"x": {"display_name": "X"}}}')
        result = runner.invoke(cli, ["catalog", "validate", str(path)])
        assert result.exit_code == 4
        assert "Error: Target 'x' missing required field: description" in result.output

    UNSORTED = (
        '{\n'
        '  // yq before jq on purpose\n'
        '  "targets": {\n'
        '    "yq": {"display_name": "yq", "description": "YAML processor",\n'
        '           "handlers": {"debian": {"probe": [{"command": "yq"}], "channels": [{"manager": "snap", "id": "yq"}]}}},\n'
        '    "jq": {"display_name": "jq", "description": "JSON processor",\n'
        '           "handlers": {"debian": {"probe": [{"command": "jq"}], "channels": [{"manager": "apt", "id": "jq"}]}}},\n'
        '  },\n'
        '}\n'
    )

    def test_fmt_prints_sorted_targets(self, runner):
        with runner.isolated_filesystem():
            Path("targets.json").write_text(self.UNSORTED)
            result = runner.invoke(cli, ["catalog", "fmt", "targets.json"])
            assert result.exit_code == 0
            assert list(json.loads(result.output)["targets"]) == ["jq", "yq"]

    def test_fmt_write(self, runner):
        with runner.isolated_filesystem():
            path = Path("targets.json")
            path.write_text(self.UNSORTED)
            result = runner.invoke(cli, ["catalog", "fmt", "--write", "targets.json"])
            assert result.exit_code == 0
            assert "Formatted targets.json" in result.output
            written = path.read_text()
            assert "//" not in written
            assert written.endswith("}\n")
            assert list(json.loads(written)["targets"]) == ["jq", "yq"]
            assert list(Path(".").glob("*.tmp.*")) == []

    def test_fmt_check(self, runner):
        with runner.isolated_filesystem():
            path = Path("targets.json")
            path.write_text(self.UNSORTED)
            result = runner.invoke(cli, ["catalog", "fmt", "--check", "targets.json"])
            assert result.exit_code == 1
            assert "is not formatted" in result.output
            assert path.read_text() == self.UNSORTED

            runner.invoke(cli, ["catalog", "fmt", "-w", "targets.json"])
            result = runner.invoke(cli, ["catalog", "fmt", "--check", "targets.json"])
            assert result.exit_code == 0
            assert "targets.json is formatted" in result.output

    def test_fmt_yaml_stays_yaml(self, runner):
        with runner.isolated_filesystem():
            path = Path("targets.yaml")
            path.write_text(
                "targets:\n"
                "  yq:\n    display_name: yq\n    description: YAML processor\n"
                "    handlers:\n      debian:\n        probe: [{command: yq}]\n"
                "        channels: [{manager: snap, id: yq}]\n"
                "  jq:\n    display_name: jq\n    description: JSON processor\n"
                "    handlers:\n      debian:\n        probe: [{command: jq}]\n"
                "        channels: [{manager: apt, id: jq}]\n"
            )
            result = runner.invoke(cli, ["catalog", "fmt", "-w", "targets.yaml"])
            assert result.exit_code == 0
            data = yaml.safe_load(path.read_text())
            assert list(data["targets"]) == ["jq", "yq"]

    def test_fmt_invalid_catalog(self, runner):
        with runner.isolated_filesystem():
            Path("targets.json").write_text('{"targets": {"a": 1,},}')
            result = runner.invoke(cli, ["catalog", "fmt", "-w", "targets.json"])
            assert result.exit_code == 4
            assert "Error: Invalid catalog: 'a' must be an object" in result.output
            assert Path("targets.json").read_text() == '{"targets": {"a": 1,},}'

    def test_fmt_missing_file(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, ["catalog", "fmt", "nope.json"])
            assert result.exit_code == 4
            assert "Catalog file not found" in result.output


class TestFormatEnvDelta:
    def test_lines(self):
        delta = EnvironmentDelta(prepend_path=("/opt/bin",), variables={"ChocolateyInstall": "C:\\x"})
        lines = format_env_delta(delta)
        assert lines[0].startswith('export PATH="/opt/bin')
        assert lines[1] == 'export ChocolateyInstall="C:\\x"'
