"""Integration tests for the destroy and history CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from cluster_teardown.cli.main import app, console
from cluster_teardown.errors import ProviderUnreachable
from cluster_teardown.teardown.audit import AuditStorage
from cluster_teardown.teardown.cleaner import ClusterCleaner
from tests.fixtures.cloud import create_demo_cloud


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point configuration and audit logs at a temporary directory."""
    audit_dir = tmp_path / "audit-logs"
    for var in ("OS_CLOUD", "CLUSTER_TEARDOWN_CONFIG", "CLUSTER_TEARDOWN_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CLUSTER_TEARDOWN_AUDIT_DIR", str(audit_dir))
    monkeypatch.setattr("cluster_teardown.cli.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")
    monkeypatch.setattr(console, "width", 200)
    return audit_dir


@pytest.fixture
def demo_cloud(isolated_config: Path):
    """Patch the CLI to run against the in-memory demo cloud."""
    inventory, mutator = create_demo_cloud()
    cleaner = ClusterCleaner(inventory, mutator, audit_storage=AuditStorage(str(isolated_config)))

    with patch("cluster_teardown.cli.main.build_cleaner", return_value=cleaner):
        yield inventory, mutator


class TestDestroyCommand:
    """Test suite for the destroy command."""

    def test_destroy_with_yes(self, runner: CliRunner, demo_cloud) -> None:
        """Test --yes deletes everything without prompting."""
        _, mutator = demo_cloud

        result = runner.invoke(app, ["destroy", "demo", "--yes"])

        assert result.exit_code == 0
        assert "Are you sure" not in result.stdout
        assert "Teardown Summary" in result.stdout
        assert "All operations finished" in result.stdout
        assert len(mutator.calls) == 13
        assert ("delete_instance", ("i9",)) not in mutator.calls

    def test_destroy_confirmed_interactively(self, runner: CliRunner, demo_cloud) -> None:
        """Test answering y at the prompt proceeds with deletion."""
        _, mutator = demo_cloud

        result = runner.invoke(app, ["destroy", "demo"], input="y\n")

        assert result.exit_code == 0
        assert "Are you sure you want to delete ALL of these resources?" in result.stdout
        assert len(mutator.calls) == 13

    def test_destroy_declined(self, runner: CliRunner, demo_cloud) -> None:
        """Test declining the prompt makes no mutations."""
        _, mutator = demo_cloud

        result = runner.invoke(app, ["destroy", "demo"], input="n\n")

        assert result.exit_code == 0
        assert "Deletion aborted by user." in result.stdout
        assert mutator.calls == []

    def test_destroy_no_matches(self, runner: CliRunner, demo_cloud) -> None:
        """Test zero matches exits successfully without prompting."""
        _, mutator = demo_cloud

        result = runner.invoke(app, ["destroy", "staging"])

        assert result.exit_code == 0
        assert "No instances, load balancers, routers, networks, or security groups found" in result.stdout
        assert "matching 'staging'" in result.stdout
        assert "Are you sure" not in result.stdout
        assert mutator.calls == []

    def test_destroy_dry_run(self, runner: CliRunner, demo_cloud, isolated_config: Path) -> None:
        """Test --dry-run shows the plan, mutates nothing and audits a planned operation."""
        _, mutator = demo_cloud

        result = runner.invoke(app, ["destroy", "demo", "--dry-run"])

        assert result.exit_code == 0
        assert "demo-router" in result.stdout
        assert "Dry run - nothing deleted" in result.stdout
        assert mutator.calls == []
        operations = AuditStorage(str(isolated_config)).query_operations()
        assert [op["operation"]["status"] for op in operations] == ["planned"]

    def test_destroy_failures_exit_zero(self, runner: CliRunner, demo_cloud) -> None:
        """Test failures are reported but do not change the exit code by default."""
        _, mutator = demo_cloud
        mutator.fail("remove_router_subnet", "s2")

        result = runner.invoke(app, ["destroy", "demo", "--yes"])

        assert result.exit_code == 0
        assert "finished with failures" in result.stdout
        assert ("delete_security_group", ("sg1",)) in mutator.calls

    def test_destroy_strict_failures(self, runner: CliRunner, demo_cloud) -> None:
        """Test --strict exits with code 3 when any step failed."""
        _, mutator = demo_cloud
        mutator.fail("delete_instance", "i1")

        result = runner.invoke(app, ["destroy", "demo", "--yes", "--strict"])

        assert result.exit_code == 3

    def test_destroy_unreachable(self, runner: CliRunner) -> None:
        """Test an unreachable provider exits with code 2."""
        with patch(
            "cluster_teardown.cli.main.build_cleaner",
            side_effect=ProviderUnreachable("Unable to authenticate against OpenStack: connection refused"),
        ):
            result = runner.invoke(app, ["destroy", "demo", "--yes"])

        assert result.exit_code == 2
        assert "Cannot reach OpenStack" in result.stdout

    def test_destroy_empty_identifier(self, runner: CliRunner) -> None:
        """Test an empty cluster identifier is a usage error."""
        with patch("cluster_teardown.cli.main.build_cleaner") as mock_build:
            result = runner.invoke(app, ["destroy", ""])

        assert result.exit_code == 1
        mock_build.assert_not_called()

    def test_destroy_no_audit(self, runner: CliRunner, isolated_config: Path) -> None:
        """Test --no-audit is passed through to the cleaner factory."""
        inventory, mutator = create_demo_cloud()

        with patch(
            "cluster_teardown.cli.main.build_cleaner", return_value=ClusterCleaner(inventory, mutator)
        ) as mock_build:
            result = runner.invoke(app, ["destroy", "demo", "--yes", "--no-audit"])

        assert result.exit_code == 0
        mock_build.assert_called_once_with(audit=False)

    def test_destroy_audit_write_failure_still_reports(self, runner: CliRunner, demo_cloud) -> None:
        """Test a failing audit write after deletion still prints the summary and exits 0."""
        _, mutator = demo_cloud

        with patch.object(AuditStorage, "log_operation", side_effect=OSError("No space left on device")):
            result = runner.invoke(app, ["destroy", "demo", "--yes"])

        assert result.exit_code == 0
        assert "Teardown Summary" in result.stdout
        assert "could not write audit log: No space left on device" in result.stdout
        assert len(mutator.calls) == 13

    def test_destroy_interrupted_mid_call(self, runner: CliRunner, demo_cloud, isolated_config: Path) -> None:
        """Test an interrupt during a call still prints the report and audits a cancelled operation."""
        _, mutator = demo_cloud
        mutator.failures[("delete_instance", "i2")] = KeyboardInterrupt()

        result = runner.invoke(app, ["destroy", "demo", "--yes"])

        assert result.exit_code == 0
        assert "Teardown Summary" in result.stdout
        assert "Teardown cancelled" in result.stdout
        assert len(mutator.calls) == 2
        operations = AuditStorage(str(isolated_config)).query_operations()
        assert [op["operation"]["status"] for op in operations] == ["cancelled"]

    def test_log_file_option(self, runner: CliRunner, demo_cloud, tmp_path: Path) -> None:
        """Test --log-file writes debug logs of the run to the given file."""
        log_file = tmp_path / "teardown.log"

        result = runner.invoke(app, ["--log-file", str(log_file), "destroy", "demo", "--dry-run"])

        for handler in logging.getLogger().handlers:
            if isinstance(handler, logging.FileHandler):
                handler.flush()
        assert result.exit_code == 0
        assert "Planned 13 step(s) for 6 resource(s) matching 'demo'" in log_file.read_text()

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test an invalid config file is a usage error."""
        path = tmp_path / "config.yaml"
        path.write_text("max_retries: 0\n")

        result = runner.invoke(app, ["--config", str(path), "destroy", "demo"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.stdout


class TestHistoryCommand:
    """Test suite for the history command."""

    def test_history_empty(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["history"])

        assert result.exit_code == 0
        assert "No teardown operations recorded." in result.stdout

    def test_history_lists_operations(self, runner: CliRunner, demo_cloud) -> None:
        """Test executed teardowns appear in the history."""
        runner.invoke(app, ["destroy", "demo", "--yes"])

        result = runner.invoke(app, ["history"])

        assert result.exit_code == 0
        assert "Teardown History" in result.stdout
        assert "completed" in result.stdout

    def test_history_invalid_date(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["history", "--since", "yesterday"])

        assert result.exit_code == 1


class TestVersionCommand:
    """Test suite for the version command."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "cluster-teardown version 0.1.0" in result.stdout
