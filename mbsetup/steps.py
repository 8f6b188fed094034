"""Step registries for the setup and uninstall flows."""
from functools import partial
from pathlib import Path
from typing import Iterable, Optional, Tuple

from mbsetup import ubuntu
from mbsetup.models import Principal, Step
from mbsetup.units import ActionUnit, ScriptUnit

Registry = Tuple[Step, ...]


def get_script_directory() -> Path:
    """Get the directory holding scripts/, configs/ and verify.sh."""
    return Path(__file__).parent.parent.resolve()


def make_registry(steps: Iterable[Step]) -> Registry:
    """Freeze ``steps``, enforcing unique, strictly increasing ids."""
    registry = tuple(steps)
    for previous, current in zip(registry, registry[1:]):
        if current.id <= previous.id:
            raise ValueError(f"Step ids must be unique and increasing: {previous.key} -> {current.key}")
    return registry


def install_registry(base_dir: Optional[Path] = None) -> Registry:
    base_dir = Path(base_dir) if base_dir else get_script_directory()

    def step(id, slug, title, description, principal=Principal.ROOT, **extra):
        unit = ScriptUnit(base_dir / "scripts" / f"{id}-{slug}.sh")
        return Step(id, slug, title, description, principal, unit, **extra)

    return make_registry([
        step("01", "system-update", "System Update & Base Packages",
             "Updates system, installs essential tools and kernel headers"),
        step("02", "system-tweaks", "System Tweaks",
             "Forces X11, disables lid suspend, sets timezone, creates swap",
             warning="Reboot required for changes to take effect", reboot=True),
        step("03", "macbook-drivers", "MacBook Drivers",
             "WiFi drivers, fan control, power management",
             warning="REBOOT RECOMMENDED after this step", reboot=True),
        step("04", "claude-code", "Claude Code CLI",
             "Claude Code CLI tool installation", Principal.USER),
        step("05", "korean-input", "Korean Input", "fcitx5 + Hangul input method"),
        # Toshy installs into the user's session, the Fn key option is system-wide
        step("06", "keyboard-remap", "Keyboard Remapping",
             "Toshy key remapping + Fn key configuration", Principal.DUAL),
        step("07", "docker", "Docker & Portainer", "Docker engine + Portainer web UI"),
        step("08", "ssh-firewall", "SSH & Firewall", "SSH server + UFW firewall configuration"),
    ])


def uninstall_registry(base_dir: Optional[Path] = None) -> Registry:
    """Removal steps in install order; the uninstall flow plans them reversed.

    01-system-update has no counterpart: base packages are left installed.
    """
    base_dir = Path(base_dir) if base_dir else get_script_directory()
    compose_file = base_dir / "configs" / "docker-compose.yml"

    def step(id, slug, description, plan, principal=Principal.ROOT):
        return Step(id, slug, slug.replace("-", " ").title(), description, principal, ActionUnit(plan))

    return make_registry([
        step("02", "macbook-drivers", "Broadcom WiFi, mbpfan, thermald, tlp", ubuntu.macbook_drivers),
        step("03", "korean-input", "fcitx5 + hangul", ubuntu.korean_input),
        step("04", "docker", "Docker + Portainer", partial(ubuntu.docker, compose_file=compose_file)),
        step("05", "dev-tools", "VS Code, nvm, ripgrep, etc. (git/python kept)", ubuntu.dev_tools),
        step("06", "ssh", "SSH config (server kept)", ubuntu.ssh),
        step("07", "firewall", "UFW rules", ubuntu.firewall),
        step("08", "system-tweaks", "Lid switch, timezone, Wayland, auto-updates", ubuntu.system_tweaks),
        step("09", "keyboard-remap", "Toshy + Fn key config", ubuntu.keyboard_remap, Principal.DUAL),
    ])
