"""Invoke a step's unit under the right identity and time it."""
import time
from typing import Callable, Optional

from mbsetup.errors import StepExecutionError
from mbsetup.models import Phase, Principal, Status, Step, StepResult, TargetUser
from mbsetup.utils import log_action, log_error, log_output, logger


class PrincipalRunner:
    """Runs steps as root, as the target user, or as both in sequence.

    In dry-run mode units only describe their effects and every step
    reports OK with zero duration.
    """

    def __init__(self, user: Optional[TargetUser], dry_run: bool = False,
                 out: Callable[[str], None] = log_output,
                 clock: Callable[[], float] = time.monotonic):
        self.user = user
        self.dry_run = dry_run
        self.out = out
        self.clock = clock

    def run(self, step: Step) -> StepResult:
        if self.dry_run:
            self._describe(step)
            return StepResult(step.id, Status.OK, 0.0)

        if step.principal is Principal.DUAL:
            log_action(f"Phase 1: Running as user ({self.user.name})")
            user_ok, user_time = self._invoke(step, Principal.USER)
            if not user_ok:
                return StepResult(step.id, Status.FAILED, user_time)
            log_action("Phase 2: Running as root")
            root_ok, root_time = self._invoke(step, Principal.ROOT)
            status = Status.OK if root_ok else Status.FAILED
            return StepResult(step.id, status, user_time + root_time)

        if step.principal is Principal.USER:
            log_action(f"Running as user: {self.user.name}")
        ok, elapsed = self._invoke(step, step.principal)
        return StepResult(step.id, Status.OK if ok else Status.FAILED, elapsed)

    def _phases(self, step: Step):
        if step.principal is Principal.DUAL:
            return [Phase(Principal.USER, self.user), Phase(Principal.ROOT, self.user)]
        return [Phase(step.principal, self.user)]

    def _describe(self, step: Step) -> None:
        for phase in self._phases(step):
            for line in step.unit.describe(phase):
                self.out(f"  [DRY-RUN] {line}")

    def _invoke(self, step: Step, principal: Principal):
        phase = Phase(principal, self.user)
        logger.debug("Invoking %s as %s", step.key, principal.value)
        start = self.clock()
        try:
            step.unit.run(phase, self.out)
        except StepExecutionError as e:
            log_error(f"{step.key}: {e}")
            return False, self.clock() - start
        return True, self.clock() - start
