"""Exceptions raised by the setup tool."""
from typing import Optional


class SetupError(Exception):
    """Base class for errors reported to the operator."""


class UsageError(SetupError):
    """Invalid combination or value of command line options."""


class PrivilegeError(SetupError):
    """Missing root privileges or target user context."""


class NotFoundError(SetupError):
    """A step reference matched nothing in the registry."""

    def __init__(self, ref: str):
        super().__init__(f"Unknown step: {ref}")
        self.ref = ref


class StepExecutionError(SetupError):
    """A step's unit did not complete successfully."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class CheckFailures(SystemExit):
    """Exit status of the verification run: the number of failed checks."""
