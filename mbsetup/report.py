"""Per-run result ledger and console reporting."""
import time
from collections import OrderedDict
from typing import Callable, Dict, Iterator, Optional, Sequence

import sh
import typer

from mbsetup.models import Status, Step, StepResult
from mbsetup.utils import format_time, log_error, logger

STATUS_STYLE = {
    Status.OK: ("✓", typer.colors.GREEN),
    Status.FAILED: ("✗", typer.colors.RED),
    Status.SKIPPED: ("-", typer.colors.YELLOW),
}


class Ledger:
    """Results of one run, in plan order. Each step is recorded once."""

    def __init__(self):
        self._results: "OrderedDict[str, StepResult]" = OrderedDict()
        self.rebooting = False

    def record(self, result: StepResult) -> None:
        if result.id in self._results:
            raise ValueError(f"Step {result.id} already recorded")
        self._results[result.id] = result

    def get(self, step_id: str) -> Optional[StepResult]:
        return self._results.get(step_id)

    def __iter__(self) -> Iterator[StepResult]:
        return iter(self._results.values())

    def __len__(self) -> int:
        return len(self._results)

    def statuses(self) -> Dict[str, Status]:
        return {step_id: result.status for step_id, result in self._results.items()}

    def totals(self) -> Dict[Status, int]:
        counts = {status: 0 for status in Status}
        for result in self:
            counts[result.status] += 1
        return counts

    def elapsed(self) -> float:
        return sum(result.duration for result in self)


def reboot_recommended(ledger: Ledger, registry: Sequence[Step]) -> bool:
    return any(step.reboot and ledger.get(step.id) is not None
               and ledger.get(step.id).status is Status.OK for step in registry)


def reboot_host() -> None:
    sh.reboot()


class Reporter:
    """Console side of a run: step banners, status lines, reboot gate, summary."""

    def __init__(self, registry: Sequence[Step], auto: bool = False, command: str = "sudo mbsetup install",
                 confirm: Optional[Callable[[str], bool]] = None,
                 reboot: Callable[[], None] = reboot_host):
        self.registry = registry
        self.auto = auto
        self.command = command
        self.confirm = confirm or (lambda text: typer.confirm(text, default=True))
        self.reboot = reboot

    def announce(self, step: Step) -> None:
        typer.echo()
        typer.secho(f"[{step.id}/{self.registry[-1].id}] {step.title}", fg=typer.colors.BLUE, bold=True)
        typer.echo(f"  -> {step.description}")
        if step.warning:
            typer.echo(f"  {typer.style('⚠', fg=typer.colors.YELLOW)}  {step.warning}")
        logger.info("[%s] %s", step.key, step.title)

    def step_finished(self, step: Step, result: StepResult) -> None:
        icon, color = STATUS_STYLE[result.status]
        if result.status is Status.OK:
            text = f"Completed ({format_time(result.duration)})"
        elif result.status is Status.FAILED:
            text = f"Failed ({format_time(result.duration)})"
        else:
            text = "Skipped"
        typer.echo(f"  {typer.style(icon, fg=color)} {text}")
        logger.info("%s %s: %s", icon, step.key, text)

    def reboot_gate(self, step: Step, resume: Optional[Step]) -> bool:
        """Offer a reboot after ``step``. Returns True if the host is rebooting."""
        if self.auto:
            typer.secho("Auto-mode: Skipping reboot prompt", fg=typer.colors.YELLOW)
            return False

        typer.echo()
        typer.secho("*** REBOOT RECOMMENDED ***", fg=typer.colors.YELLOW, bold=True)
        typer.echo(f"{step.title} changes need a reboot to take effect.")
        typer.echo()
        if not self.confirm("Reboot now?"):
            self._continue_without_reboot()
            return False

        if resume is not None:
            typer.echo()
            typer.secho("After reboot, resume with:", fg=typer.colors.CYAN)
            typer.echo(f"  {self.command} --from {resume.slug}")
            typer.echo()
            logger.info("Rebooting after %s; resume with --from %s", step.key, resume.slug)
        else:
            logger.info("Rebooting after %s", step.key)
        time.sleep(2)
        try:
            self.reboot()
        except (sh.ErrorReturnCode, sh.CommandNotFound) as e:
            log_error(f"Reboot failed: {e}")
            self._continue_without_reboot()
            return False
        return True

    def _continue_without_reboot(self) -> None:
        typer.secho("Continuing without reboot...", fg=typer.colors.CYAN)
        typer.secho("Remember to reboot before relying on these changes!", fg=typer.colors.YELLOW)

    def summary(self, ledger: Ledger) -> None:
        titles = {step.id: step.title for step in self.registry}
        typer.echo()
        typer.secho("═══ Summary ═══════════════════════════════", fg=typer.colors.CYAN, bold=True)
        for result in ledger:
            icon, color = STATUS_STYLE[result.status]
            line = f"{titles.get(result.id, result.id):<30} {result.status.value:<10}"
            if result.duration > 0:
                line += f"({format_time(result.duration)})"
            typer.echo(f"  {typer.style(icon, fg=color)} {line.rstrip()}")
            logger.info("%s %s", icon, line.rstrip())

        totals = ledger.totals()
        footer = (f"Total: Ok={totals[Status.OK]}, Failed={totals[Status.FAILED]}, "
                  f"Skipped={totals[Status.SKIPPED]} ({format_time(ledger.elapsed())})")
        typer.echo()
        typer.secho(footer, bold=True)
        logger.info(footer)
        if reboot_recommended(ledger, self.registry):
            typer.secho("⚠  Reboot recommended to apply all changes.", fg=typer.colors.YELLOW)
            logger.info("Reboot recommended")


def print_registry(registry: Sequence[Step], reverse: bool = False, note: Optional[str] = None) -> None:
    """The ``--list`` output."""
    typer.echo("Steps (run in reverse order):" if reverse else "Available steps:")
    typer.echo()
    for step in (reversed(registry) if reverse else registry):
        typer.secho(f"[{step.id}/{registry[-1].id}] {step.title}", bold=True)
        typer.echo(f"  Name: {step.key}")
        typer.echo(f"  Desc: {step.description}")
        if step.warning:
            typer.echo(f"  Note: {step.warning}")
        typer.echo()
    if note:
        typer.echo(f"Note: {note}")
