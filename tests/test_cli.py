"""Tests for the CLI interface."""
from pathlib import Path
from unittest.mock import patch

import pytest
import sh
from typer.testing import CliRunner

from mbsetup.cli import app, main
from mbsetup.models import Status, StepResult, TargetUser
from mbsetup.report import Ledger

runner = CliRunner()
USER = TargetUser("alice", Path("/home/alice"))


@pytest.fixture(autouse=True)
def no_log_file():
    with patch('mbsetup.utils.setup_logging') as mocked:
        yield mocked


def ledger_of(*results):
    ledger = Ledger()
    for result in results:
        ledger.record(result)
    return ledger


def test_cli_help():
    """Test CLI help command."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "install" in result.stdout
    assert "uninstall" in result.stdout


def test_short_help_option():
    result = runner.invoke(app, ["install", "-h"])
    assert result.exit_code == 0
    assert "--from" in result.stdout
    assert "--only" in result.stdout


class TestList:

    @patch('mbsetup.utils.require_privileges')
    def test_install_list(self, mock_privileges):
        result = runner.invoke(app, ["install", "--list"])

        assert result.exit_code == 0
        assert "03-macbook-drivers" in result.stdout
        mock_privileges.assert_not_called()

    def test_uninstall_list(self):
        result = runner.invoke(app, ["uninstall", "-l"])

        assert result.exit_code == 0
        assert result.stdout.index("09-keyboard-remap") < result.stdout.index("02-macbook-drivers")
        assert "01-system-update is not uninstalled" in result.stdout


class TestInstall:

    @patch('mbsetup.utils.is_root', return_value=False)
    def test_requires_root(self, mock_is_root):
        result = runner.invoke(app, ["install", "--auto"])

        assert result.exit_code == 1
        assert "sudo" in result.output

    @patch('mbsetup.orchestrator.run_plan')
    @patch('mbsetup.utils.require_privileges', return_value=USER)
    def test_unknown_step(self, mock_privileges, mock_run_plan):
        result = runner.invoke(app, ["install", "--only", "kubernetes"])

        assert result.exit_code == 1
        assert "Unknown step: kubernetes" in result.output
        mock_run_plan.assert_not_called()

    @patch('mbsetup.orchestrator.run_plan')
    @patch('mbsetup.utils.require_privileges', return_value=USER)
    def test_only_and_from_conflict(self, mock_privileges, mock_run_plan):
        result = runner.invoke(app, ["install", "--only", "docker", "--from", "ssh"])

        assert result.exit_code == 1
        mock_run_plan.assert_not_called()

    @patch('mbsetup.orchestrator.run_plan')
    @patch('mbsetup.utils.require_privileges', return_value=USER)
    def test_only_plans_one_step(self, mock_privileges, mock_run_plan, no_log_file):
        mock_run_plan.return_value = ledger_of(StepResult("07", Status.OK, 12.0))

        result = runner.invoke(app, ["install", "--only", "docker", "--auto", "--log-file", "/tmp/x.log"])

        assert result.exit_code == 0
        plan, registry, prompt, principal_runner, reporter = mock_run_plan.call_args.args
        assert [step.key for step in plan] == ["07-docker"]
        assert principal_runner.user == USER
        assert principal_runner.dry_run is False
        assert "Total: Ok=1, Failed=0, Skipped=0" in result.stdout
        no_log_file.assert_called_once_with(False, Path("/tmp/x.log"))

    @patch('mbsetup.orchestrator.run_plan')
    @patch('mbsetup.utils.require_privileges', return_value=USER)
    def test_from_plans_tail(self, mock_privileges, mock_run_plan):
        mock_run_plan.return_value = Ledger()

        result = runner.invoke(app, ["install", "--from", "claude-code", "--auto"])

        assert result.exit_code == 0
        plan = mock_run_plan.call_args.args[0]
        assert [step.id for step in plan] == ["04", "05", "06", "07", "08"]

    @patch('mbsetup.orchestrator.run_plan')
    @patch('mbsetup.utils.require_privileges', return_value=USER)
    def test_step_failure_does_not_change_exit_code(self, mock_privileges, mock_run_plan):
        mock_run_plan.return_value = ledger_of(StepResult("01", Status.FAILED, 3.0))

        result = runner.invoke(app, ["install", "--auto"])

        assert result.exit_code == 0
        assert "Failed=1" in result.stdout

    @patch('mbsetup.orchestrator.run_plan')
    @patch('mbsetup.utils.require_privileges', return_value=USER)
    def test_no_summary_when_rebooting(self, mock_privileges, mock_run_plan):
        ledger = ledger_of(StepResult("03", Status.OK, 3.0))
        ledger.rebooting = True
        mock_run_plan.return_value = ledger

        result = runner.invoke(app, ["install"])

        assert result.exit_code == 0
        assert "Summary" not in result.stdout

    @patch('mbsetup.utils.require_privileges', return_value=USER)
    def test_skip_all_interactively(self, mock_privileges):
        result = runner.invoke(app, ["install"], input="s\n")

        assert result.exit_code == 0
        assert "Total: Ok=0, Failed=0, Skipped=8" in result.stdout


class TestUninstall:

    @patch('mbsetup.orchestrator.run_plan')
    @patch('mbsetup.utils.current_user', return_value=USER)
    @patch('mbsetup.utils.require_privileges')
    def test_dry_run_needs_no_root(self, mock_privileges, mock_current_user, mock_run_plan):
        mock_run_plan.return_value = Ledger()

        result = runner.invoke(app, ["uninstall", "--dry-run"])

        assert result.exit_code == 0
        mock_privileges.assert_not_called()
        plan, registry, prompt, principal_runner, reporter = mock_run_plan.call_args.args
        assert [step.id for step in plan] == ["09", "08", "07", "06", "05", "04", "03", "02"]
        assert principal_runner.dry_run is True
        assert "DRY RUN MODE" in result.stdout
        assert "Recommended: sudo reboot" not in result.stdout

    @patch('mbsetup.utils.is_root', return_value=False)
    def test_real_run_requires_root(self, mock_is_root):
        result = runner.invoke(app, ["uninstall", "--auto"])

        assert result.exit_code == 1

    @patch('mbsetup.orchestrator.run_plan')
    @patch('mbsetup.utils.require_privileges', return_value=USER)
    def test_only_by_substring(self, mock_privileges, mock_run_plan):
        mock_run_plan.return_value = ledger_of(StepResult("04", Status.OK, 1.0))

        result = runner.invoke(app, ["uninstall", "--only", "dock", "--auto"])

        assert result.exit_code == 0
        assert [step.key for step in mock_run_plan.call_args.args[0]] == ["04-docker"]
        assert "Recommended: sudo reboot" in result.stdout

    def test_from_is_not_offered(self):
        assert main(["uninstall", "--from", "docker"]) == 1


class TestVerify:

    def test_missing_script(self, tmp_path):
        result = runner.invoke(app, ["verify", "--base-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "Verification script not found" in result.output

    @patch('mbsetup.cli.sh')
    def test_exit_code_is_failure_count(self, mock_sh, tmp_path):
        (tmp_path / "verify.sh").write_text("exit 3\n")
        mock_sh.ErrorReturnCode = sh.ErrorReturnCode
        mock_sh.bash.side_effect = sh.ErrorReturnCode_3("bash verify.sh", b"", b"")

        result = runner.invoke(app, ["verify", "--base-dir", str(tmp_path)])

        assert result.exit_code == 3
        assert mock_sh.bash.call_args.args == (str(tmp_path / "verify.sh"),)

    @patch('mbsetup.cli.sh')
    def test_all_checks_pass(self, mock_sh, tmp_path):
        (tmp_path / "verify.sh").write_text("exit 0\n")
        mock_sh.ErrorReturnCode = sh.ErrorReturnCode

        result = runner.invoke(app, ["verify"], env={"MBSETUP_BASE_DIR": str(tmp_path)})

        assert result.exit_code == 0


class TestMain:

    def test_missing_option_value_is_exit_1(self, capsys):
        assert main(["install", "--only"]) == 1

    def test_unknown_option_is_exit_1(self, capsys):
        assert main(["install", "--bogus"]) == 1

    def test_list_is_exit_0(self, capsys):
        assert main(["install", "--list"]) == 0
        assert "01-system-update" in capsys.readouterr().out

    def test_help_is_exit_0(self, capsys):
        assert main(["--help"]) == 0

    def test_uninstall_from_is_exit_1(self, capsys):
        assert main(["uninstall", "--from", "docker"]) == 1
        assert "--from" in capsys.readouterr().err

    @patch('mbsetup.cli.sh')
    def test_two_failed_checks_keep_exit_2(self, mock_sh, tmp_path):
        (tmp_path / "verify.sh").write_text("exit 2\n")
        mock_sh.ErrorReturnCode = sh.ErrorReturnCode
        mock_sh.bash.side_effect = sh.ErrorReturnCode_2("bash verify.sh", b"", b"")

        assert main(["verify", "--base-dir", str(tmp_path)]) == 2

    @patch('mbsetup.utils.is_root', return_value=False)
    def test_fatal_error_is_exit_1(self, mock_is_root, capsys):
        assert main(["install", "--auto"]) == 1
