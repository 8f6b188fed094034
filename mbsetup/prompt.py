"""Interactive gate deciding whether each planned step runs."""
from enum import Enum
from typing import Callable, Optional

import typer

from mbsetup.models import Step
from mbsetup.utils import logger


class Decision(Enum):
    RUN = "run"
    SKIP = "skip"


class PromptState(Enum):
    ASKING = "asking"
    AUTO_APPROVE = "auto"
    SKIP_ALL = "skip-all"


def ask_execute(text: str) -> str:
    return typer.prompt(text, default="", show_default=False, prompt_suffix=" ")


class PromptController:
    """Y/n/s prompt whose skip-all answer holds for the rest of the run."""

    def __init__(self, auto: bool = False, ask: Optional[Callable[[str], str]] = None):
        self.state = PromptState.AUTO_APPROVE if auto else PromptState.ASKING
        self.ask = ask or ask_execute

    def decide(self, step: Step) -> Decision:
        if self.state is PromptState.AUTO_APPROVE:
            typer.secho("  Auto-executing...", fg=typer.colors.GREEN)
            return Decision.RUN
        if self.state is PromptState.SKIP_ALL:
            return Decision.SKIP

        while True:
            reply = self.ask("  Execute? [Y/n/s]").strip().lower()
            if reply in ("", "y", "yes"):
                return Decision.RUN
            if reply in ("n", "no"):
                return Decision.SKIP
            if reply in ("s", "skip"):
                logger.info("Skipping step %s and all remaining steps", step.key)
                self.state = PromptState.SKIP_ALL
                return Decision.SKIP
            typer.echo("  Invalid input. Use Y/y (yes), N/n (skip), or S/s (skip all)")
