"""CLI interface for the setup tool."""
import sys
from pathlib import Path
from typing import List, Optional

import sh
import typer

from . import orchestrator, planner, report, steps, utils
from .errors import CheckFailures, NotFoundError, SetupError
from .models import TargetUser
from .prompt import PromptController
from .runner import PrincipalRunner

app = typer.Typer(
    name="mbsetup",
    help="Turn a 2013 MacBook Pro running Ubuntu into a home server, step by step.",
    add_completion=False,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

VERBOSE = typer.Option(False, "--verbose", "-v", help="Also log invoked commands")
BASE_DIR = typer.Option(None, "--base-dir", envvar="MBSETUP_BASE_DIR",
                        help="Directory holding scripts/, configs/ and verify.sh")
LOG_FILE = typer.Option(utils.DEFAULT_LOG_FILE, "--log-file", envvar="MBSETUP_LOG_FILE",
                        help="Append-only log of every run")
LIST = typer.Option(False, "--list", "-l", help="Print the step list and exit")
AUTO = typer.Option(False, "--auto", help="Skip all prompts, run everything automatically")

# click exits with 2 on bad usage
USAGE_EXIT_CODE = 2


def _print_header(flow: str, user: TargetUser) -> None:
    typer.secho("╔══════════════════════════════════════════╗", fg=typer.colors.CYAN, bold=True)
    typer.secho("║  Ubuntu MacBook Pro Setup                ║", fg=typer.colors.CYAN, bold=True)
    typer.secho("║  2013 MacBook Pro → Home Server          ║", fg=typer.colors.CYAN, bold=True)
    typer.secho("╚══════════════════════════════════════════╝", fg=typer.colors.CYAN, bold=True)
    utils.logger.info("=== Ubuntu MacBook Setup (%s) ===", flow)
    utils.logger.info("User: %s", user.name)


@app.command()
def install(
    auto: bool = AUTO,
    only: Optional[str] = typer.Option(None, "--only", metavar="NAME", help="Run only one step (e.g. --only docker)"),
    start: Optional[str] = typer.Option(None, "--from", metavar="NAME", help="Start from a step, skipping earlier ones"),
    list_steps: bool = LIST,
    verbose: bool = VERBOSE,
    base_dir: Optional[Path] = BASE_DIR,
    log_file: Path = LOG_FILE,
):
    """Run the setup steps in order, prompting before each one."""
    registry = steps.install_registry(base_dir)
    if list_steps:
        report.print_registry(registry)
        return

    try:
        request = planner.build_request(only=only, start=start, auto=auto)
        plan = planner.plan(request, registry)
        user = utils.require_privileges()
    except SetupError as e:
        utils.log_error(str(e))
        if isinstance(e, NotFoundError):
            typer.echo("Run with --list to see the available steps.")
        raise typer.Exit(1)

    utils.setup_logging(verbose, log_file)
    _print_header("install", user)

    reporter = report.Reporter(registry, auto=auto)
    ledger = orchestrator.run_plan(plan, registry, PromptController(auto), PrincipalRunner(user), reporter)
    if ledger.rebooting:
        return
    reporter.summary(ledger)
    typer.secho("Run mbsetup verify after reboot to check installation.", fg=typer.colors.CYAN)


@app.command()
def uninstall(
    auto: bool = AUTO,
    only: Optional[str] = typer.Option(None, "--only", metavar="NAME", help="Remove only one component (e.g. --only docker)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be removed without doing it"),
    list_steps: bool = LIST,
    verbose: bool = VERBOSE,
    base_dir: Optional[Path] = BASE_DIR,
    log_file: Path = LOG_FILE,
):
    """Reverse the setup steps, last step first."""
    registry = steps.uninstall_registry(base_dir)
    if list_steps:
        report.print_registry(registry, reverse=True,
                              note="01-system-update is not uninstalled (base packages are harmless)")
        return

    try:
        request = planner.build_request(only=only, auto=auto, dry_run=dry_run)
        plan = planner.plan(request, registry, reverse=True)
        user = utils.current_user() if dry_run else utils.require_privileges()
    except SetupError as e:
        utils.log_error(str(e))
        if isinstance(e, NotFoundError):
            typer.echo("Run with --list to see the available steps.")
        raise typer.Exit(1)

    utils.setup_logging(verbose, log_file)
    if dry_run:
        typer.secho("=== DRY RUN MODE (no changes will be made) ===", fg=typer.colors.YELLOW)
    _print_header("uninstall", user)

    # nothing is changed in a dry run, so there is nothing to confirm
    prompt = PromptController(auto or dry_run)
    reporter = report.Reporter(registry, auto=auto)
    ledger = orchestrator.run_plan(plan, registry, prompt, PrincipalRunner(user, dry_run=dry_run), reporter)
    reporter.summary(ledger)
    if not dry_run:
        typer.echo("Recommended: sudo reboot")


@app.command()
def verify(
    verbose: bool = VERBOSE,
    base_dir: Optional[Path] = BASE_DIR,
    log_file: Path = LOG_FILE,
):
    """Check the installation; the exit code is the number of failed checks."""
    script = Path(base_dir or steps.get_script_directory()) / "verify.sh"
    if not script.is_file():
        utils.log_error(f"Verification script not found: {script}")
        raise typer.Exit(1)

    utils.setup_logging(verbose, log_file)
    try:
        sh.bash(str(script), _out=utils.log_output, _err_to_out=True)
    except sh.ErrorReturnCode as e:
        raise CheckFailures(e.exit_code)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point; usage errors exit with 1 like every other fatal error."""
    try:
        app(args=argv, prog_name="mbsetup")
    except CheckFailures as e:
        return e.code
    except SystemExit as e:
        if e.code is None:
            return 0
        if not isinstance(e.code, int):
            return 1
        return 1 if e.code == USAGE_EXIT_CODE else e.code
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
