"""Side effects of removal steps, described as data.

An action is either executed or rendered as a one-line description; the
same value drives both, so a dry run shows exactly what a real run does.
"""
import re
import shlex
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

import sh

from mbsetup.errors import StepExecutionError
from mbsetup.models import Phase
from mbsetup.utils import logger

Output = Callable[[str], None]


@dataclass(frozen=True)
class Command:
    argv: Tuple[str, ...]
    check: bool = True


@dataclass(frozen=True)
class RemovePath:
    path: Path
    recursive: bool = False


@dataclass(frozen=True)
class CopyFile:
    src: Path
    dst: Path


@dataclass(frozen=True)
class EditFile:
    """Regex edit applied line by line; ``replacement=None`` deletes the line."""

    path: Path
    pattern: str
    replacement: Optional[str] = None


Action = Union[Command, RemovePath, CopyFile, EditFile]


def cmd(*argv: str, check: bool = True) -> Command:
    return Command(tuple(argv), check=check)


def render(action: Action, phase: Phase) -> str:
    """Describe what ``execute`` would do, as shell-like text."""
    if isinstance(action, Command):
        line = shlex.join(action.argv)
        if phase.as_user:
            line = f"su - {phase.user.name} -c {shlex.quote(line)}"
        return line if action.check else f"{line} || true"
    if isinstance(action, RemovePath):
        flags = "-rf" if action.recursive else "-f"
        return f"rm {flags} {shlex.quote(str(action.path))}"
    if isinstance(action, CopyFile):
        return f"cp {shlex.quote(str(action.src))} {shlex.quote(str(action.dst))}"
    if isinstance(action, EditFile):
        if action.replacement is None:
            expr = f"/{action.pattern}/d"
        else:
            expr = f"s/{action.pattern}/{action.replacement}/"
        return f"sed -i {shlex.quote(expr)} {shlex.quote(str(action.path))}"
    raise TypeError(f"Unknown action: {action!r}")


def execute(action: Action, phase: Phase, out: Output) -> None:
    """Perform ``action``; raises StepExecutionError on failure."""
    logger.debug("exec: %s", render(action, phase))
    try:
        if isinstance(action, Command):
            _run_command(action, phase, out)
        elif isinstance(action, RemovePath):
            _remove(action.path, action.recursive)
        elif isinstance(action, CopyFile):
            shutil.copy2(action.src, action.dst)
        elif isinstance(action, EditFile):
            _edit(action)
        else:
            raise TypeError(f"Unknown action: {action!r}")
    except OSError as e:
        raise StepExecutionError(f"{render(action, phase)}: {e}") from e


def _run_command(action: Command, phase: Phase, out: Output) -> None:
    ok_codes = [0] if action.check else list(range(256))
    try:
        if phase.as_user:
            sh.su("-", phase.user.name, "-c", shlex.join(action.argv),
                  _out=out, _err_to_out=True, _ok_code=ok_codes)
        else:
            program = sh.Command(action.argv[0])
            program(*action.argv[1:], _out=out, _err_to_out=True, _ok_code=ok_codes)
    except sh.ErrorReturnCode as e:
        raise StepExecutionError(f"{shlex.join(action.argv)} exited with {e.exit_code}", e.exit_code) from e
    except sh.CommandNotFound as e:
        if action.check:
            raise StepExecutionError(f"Command not found: {action.argv[0]}") from e
        out(f"Command not found: {action.argv[0]}")


def _remove(path: Path, recursive: bool) -> None:
    if recursive and path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink(missing_ok=True)


def _edit(action: EditFile) -> None:
    regex = re.compile(action.pattern)
    lines = action.path.read_text().splitlines(keepends=True)
    edited = []
    for line in lines:
        if not regex.search(line):
            edited.append(line)
        elif action.replacement is not None:
            edited.append(regex.sub(action.replacement, line))
    action.path.write_text("".join(edited))
