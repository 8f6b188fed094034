"""Executable units behind each step.

A unit is invoked once per phase. ``run`` performs the work and raises
StepExecutionError on failure; ``describe`` returns one line per effect
without touching the host.
"""
import shlex
from pathlib import Path
from typing import Callable, List

import sh

from mbsetup import actions
from mbsetup.errors import StepExecutionError
from mbsetup.models import Phase


class ScriptUnit:
    """A bash script run as root or through ``su -`` as the target user."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"ScriptUnit({str(self.path)!r})"

    def _command_line(self, phase: Phase) -> List[str]:
        if phase.as_user:
            return ["su", "-", phase.user.name, "-c", f"bash {shlex.quote(str(self.path))}"]
        return ["bash", str(self.path)]

    def describe(self, phase: Phase) -> List[str]:
        return [shlex.join(self._command_line(phase))]

    def run(self, phase: Phase, out: actions.Output) -> None:
        if not self.path.is_file():
            raise StepExecutionError(f"Script not found: {self.path}")
        argv = self._command_line(phase)
        try:
            sh.Command(argv[0])(*argv[1:], _out=out, _err_to_out=True)
        except sh.ErrorReturnCode as e:
            raise StepExecutionError(f"{self.path.name} exited with {e.exit_code}", e.exit_code) from e
        except sh.CommandNotFound as e:
            raise StepExecutionError(f"Command not found: {argv[0]}") from e


class ActionUnit:
    """Builds a list of actions for a phase, then executes or renders them."""

    def __init__(self, plan: Callable[[Phase], List[actions.Action]]):
        self.plan = plan

    def __repr__(self) -> str:
        return f"ActionUnit({getattr(self.plan, '__name__', self.plan)!r})"

    def describe(self, phase: Phase) -> List[str]:
        return [actions.render(action, phase) for action in self.plan(phase)]

    def run(self, phase: Phase, out: actions.Output) -> None:
        for action in self.plan(phase):
            actions.execute(action, phase, out)
