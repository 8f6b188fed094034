"""Sequential execution of a plan."""
from typing import Sequence

from mbsetup import planner
from mbsetup.models import Status, Step, StepResult
from mbsetup.prompt import Decision, PromptController
from mbsetup.report import Ledger, Reporter
from mbsetup.runner import PrincipalRunner


def run_plan(plan: Sequence[Step], registry: Sequence[Step], prompt: PromptController,
             runner: PrincipalRunner, reporter: Reporter) -> Ledger:
    """Run ``plan`` one step at a time and return a fresh ledger.

    A failed step is recorded and the run moves on; later steps may rely on
    earlier ones, so nothing starts before the previous step has finished.
    The loop stops early only when the reboot gate reboots the host.
    """
    ledger = Ledger()
    for step in plan:
        reporter.announce(step)
        if prompt.decide(step) is Decision.SKIP:
            result = StepResult(step.id, Status.SKIPPED)
        else:
            result = runner.run(step)
        ledger.record(result)
        reporter.step_finished(step, result)

        if step.reboot and result.status is Status.OK and not runner.dry_run:
            if reporter.reboot_gate(step, planner.next_step(step, registry)):
                ledger.rebooting = True
                break
    return ledger
