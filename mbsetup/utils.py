"""Utility functions for the setup tool."""
import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Union

import sh
import typer

from mbsetup.errors import PrivilegeError
from mbsetup.models import TargetUser

DEFAULT_LOG_FILE = "/var/log/ubuntu-setup.log"

logger = logging.getLogger("mbsetup")
logger.addHandler(logging.NullHandler())


def command_exists(command: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(command) is not None


def package_installed(package: str) -> bool:
    """Check if a Debian package is installed (dpkg status ``ii``)."""
    try:
        output = str(sh.dpkg("-l", package))
    except (sh.ErrorReturnCode, sh.CommandNotFound):
        return False
    return any(line.startswith("ii") for line in output.splitlines())


def is_root() -> bool:
    """Check if the script is running as root."""
    return os.geteuid() == 0


def get_real_user() -> str:
    """Get the real username (handles sudo)."""
    return os.environ.get('SUDO_USER', os.environ.get('USER', ''))


def get_real_home() -> str:
    """Get the real user's home directory (handles sudo)."""
    sudo_user = os.environ.get('SUDO_USER')
    if sudo_user:
        return os.path.expanduser(f'~{sudo_user}')
    return os.environ.get('HOME', '')


def require_privileges() -> TargetUser:
    """Ensure we run as root via sudo and return the invoking user."""
    if not is_root():
        raise PrivilegeError("This command must be run with sudo")
    sudo_user = os.environ.get('SUDO_USER')
    if not sudo_user or sudo_user == "root":
        raise PrivilegeError("SUDO_USER not set. Please run with sudo, not as root directly.")
    return TargetUser(sudo_user, Path(get_real_home()))


def current_user() -> TargetUser:
    """Best-effort target user for read-only runs."""
    return TargetUser(get_real_user(), Path(get_real_home()))


def _echo(prefix: str, color: Optional[str], message: str, err: bool = False) -> None:
    label = typer.style(prefix, fg=color) if color else prefix
    typer.echo(f"{label} {message}", err=err)


def log_info(message: str) -> None:
    """Log an informational message."""
    _echo("[INFO]", typer.colors.BLUE, message)
    logger.info("[INFO] %s", message)


def log_action(message: str) -> None:
    """Log an action being performed."""
    typer.echo(f"  -> {message}")
    logger.info("  -> %s", message)


def log_warn(message: str) -> None:
    _echo("[WARN]", typer.colors.YELLOW, message)
    logger.warning("[WARN] %s", message)


def log_error(message: str) -> None:
    _echo("[ERROR]", typer.colors.RED, message, err=True)
    logger.error("[ERROR] %s", message)


def log_output(line: str) -> None:
    """Tee one line of a unit's output to the console and the log file."""
    line = line.rstrip("\n")
    typer.echo(line)
    logger.info(line)


def setup_logging(verbose: bool = False, log_file: Union[str, Path, None] = DEFAULT_LOG_FILE) -> bool:
    """Attach the append-only log file.

    Returns False when the file cannot be opened; console output still works.
    """
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()

    if not log_file:
        return False
    try:
        handler = logging.FileHandler(str(log_file), mode="a", encoding="utf-8")
    except OSError as e:
        log_warn(f"Cannot write log file {log_file}: {e}")
        return False
    handler.setFormatter(logging.Formatter("%(asctime)s %(message)s", "%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return True


def format_time(seconds: float) -> str:
    """Render a duration as ``45s`` or ``2m 5s``."""
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    return f"{seconds // 60}m {seconds % 60}s"
