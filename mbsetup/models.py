"""Data types shared by the planner, runner and reporter."""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class Principal(Enum):
    """Identity a step's unit is invoked under."""

    ROOT = "root"
    USER = "user"
    DUAL = "dual"


class Status(Enum):
    OK = "OK"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class TargetUser:
    """The unprivileged account that owns user-scoped side effects."""

    name: str
    home: Path


@dataclass(frozen=True)
class Phase:
    """One invocation of a unit: a concrete principal plus the target user."""

    principal: Principal
    user: Optional[TargetUser] = None

    @property
    def as_user(self) -> bool:
        return self.principal is Principal.USER


@dataclass(frozen=True)
class Step:
    """Static descriptor of a provisioning or removal step."""

    id: str
    slug: str
    title: str
    description: str
    principal: Principal
    unit: Any
    warning: Optional[str] = None
    reboot: bool = False

    @property
    def key(self) -> str:
        """Name as typed on the command line, e.g. ``03-macbook-drivers``."""
        return f"{self.id}-{self.slug}"


@dataclass(frozen=True)
class StepResult:
    id: str
    status: Status
    duration: float = 0.0


@dataclass(frozen=True)
class RunRequest:
    """Which steps to run and how.

    ``only`` and ``start`` are unresolved step references; at most one of them
    is set. With neither set the whole registry is planned.
    """

    only: Optional[str] = None
    start: Optional[str] = None
    auto: bool = False
    dry_run: bool = False
