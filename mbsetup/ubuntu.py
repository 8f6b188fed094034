"""Ubuntu removal plans.

Each function inspects the host (read-only) and returns the actions needed
to undo what the matching setup script did. Nothing here changes the system.
"""
import grp
import re
from pathlib import Path
from typing import List

from mbsetup.actions import Action, CopyFile, EditFile, RemovePath, cmd
from mbsetup.models import Phase
from mbsetup.utils import command_exists, log_info, package_installed

LOGIND_CONF = Path("/etc/systemd/logind.conf")
GDM_CONF = Path("/etc/gdm3/custom.conf")
ENVIRONMENT = Path("/etc/environment")
HID_APPLE_CONF = Path("/etc/modprobe.d/hid_apple.conf")
SSHD_CONFIG = Path("/etc/ssh/sshd_config")
MBPFAN_CONF = Path("/etc/mbpfan.conf")

FCITX_PACKAGES = ("fcitx5", "fcitx5-hangul", "fcitx5-config-qt", "fcitx5-frontend-gtk3",
                  "fcitx5-frontend-gtk4", "fcitx5-frontend-qt5")
DOCKER_PACKAGES = ("docker-ce", "docker-ce-cli", "containerd.io", "docker-buildx-plugin",
                   "docker-compose-plugin")


def _file_contains(path: Path, pattern: str) -> bool:
    try:
        return re.search(pattern, path.read_text(), re.MULTILINE) is not None
    except OSError:
        return False


def _in_group(user: str, group: str) -> bool:
    try:
        return user in grp.getgrnam(group).gr_mem
    except KeyError:
        return False


def keyboard_remap(phase: Phase) -> List[Action]:
    """Toshy (user phase) and the Fn key modprobe option (root phase)."""
    toshy_dir = phase.user.home / ".local" / "share" / "toshy"
    if phase.as_user:
        if (toshy_dir / "setup_toshy.py").is_file():
            return [cmd("bash", "-c", "cd ~/.local/share/toshy && ./setup_toshy.py uninstall", check=False)]
        log_info("Toshy uninstaller not found, skipping")
        return []

    plan: List[Action] = []
    if toshy_dir.is_dir():
        plan.append(RemovePath(toshy_dir, recursive=True))
    if HID_APPLE_CONF.is_file():
        plan.append(RemovePath(HID_APPLE_CONF))
        plan.append(cmd("update-initramfs", "-u", check=False))
    return plan


def system_tweaks(phase: Phase) -> List[Action]:
    """Lid switch, auto-updates and Wayland. Swap and timezone are kept."""
    plan: List[Action] = []
    if _file_contains(LOGIND_CONF, r"^HandleLidSwitch=ignore"):
        plan.append(EditFile(LOGIND_CONF, r"^HandleLidSwitch=ignore", "#HandleLidSwitch=suspend"))
        plan.append(EditFile(LOGIND_CONF, r"^HandleLidSwitchExternalPower=ignore",
                             "#HandleLidSwitchExternalPower=suspend"))
    for unit in ("unattended-upgrades", "apt-daily.timer", "apt-daily-upgrade.timer"):
        plan.append(cmd("systemctl", "enable", unit, check=False))
    if _file_contains(GDM_CONF, r"^WaylandEnable=false"):
        plan.append(EditFile(GDM_CONF, r"^WaylandEnable=false", "#WaylandEnable=false"))
    return plan


def firewall(phase: Phase) -> List[Action]:
    if not command_exists("ufw"):
        log_info("UFW not installed, skipping")
        return []
    return [cmd("ufw", "--force", "disable"), cmd("ufw", "--force", "reset")]


def ssh(phase: Phase) -> List[Action]:
    """Restore sshd_config from backup; openssh-server stays installed."""
    backup = SSHD_CONFIG.with_name("sshd_config.bak")
    if not backup.is_file():
        log_info("No sshd_config backup found, skipping")
        return []
    return [CopyFile(backup, SSHD_CONFIG), cmd("systemctl", "restart", "ssh", check=False)]


def dev_tools(phase: Phase) -> List[Action]:
    """VS Code, nvm and CLI extras. git and python3 are kept."""
    plan: List[Action] = []
    if package_installed("code"):
        plan += [
            cmd("apt", "remove", "-y", "code"),
            RemovePath(Path("/etc/apt/sources.list.d/vscode.list")),
            RemovePath(Path("/etc/apt/keyrings/packages.microsoft.gpg")),
        ]
    nvm_dir = phase.user.home / ".nvm"
    if nvm_dir.is_dir():
        plan.append(RemovePath(nvm_dir, recursive=True))
    plan.append(cmd("apt", "remove", "-y", "ripgrep", "fd-find", "bat", "shellcheck", check=False))
    return plan


def docker(phase: Phase, compose_file: Path) -> List[Action]:
    """Portainer stack, Docker engine and docker group membership."""
    plan: List[Action] = []
    if compose_file.is_file() and command_exists("docker"):
        plan.append(cmd("docker", "compose", "-f", str(compose_file), "down", "-v", check=False))
    if package_installed("docker-ce"):
        plan += [
            cmd("apt", "remove", "-y", *DOCKER_PACKAGES, check=False),
            cmd("apt", "autoremove", "-y"),
            RemovePath(Path("/etc/apt/sources.list.d/docker.list")),
            RemovePath(Path("/etc/apt/keyrings/docker.gpg")),
        ]
    else:
        log_info("Docker not installed, skipping")
    if _in_group(phase.user.name, "docker"):
        plan.append(cmd("gpasswd", "-d", phase.user.name, "docker", check=False))
    return plan


def korean_input(phase: Phase) -> List[Action]:
    plan: List[Action] = [
        cmd("apt", "remove", "-y", *FCITX_PACKAGES, check=False),
        cmd("apt", "autoremove", "-y"),
    ]
    if ENVIRONMENT.is_file():
        for var in ("GTK_IM_MODULE=fcitx", "QT_IM_MODULE=fcitx", "XMODIFIERS=@im=fcitx", "INPUT_METHOD=fcitx"):
            plan.append(EditFile(ENVIRONMENT, f"^{var}"))
    plan.append(RemovePath(Path("/etc/xdg/autostart/fcitx5.desktop")))
    backup = ENVIRONMENT.with_name("environment.backup.pre-fcitx")
    if backup.is_file():
        plan.append(CopyFile(backup, ENVIRONMENT))
    return plan


def macbook_drivers(phase: Phase) -> List[Action]:
    """Broadcom WiFi, mbpfan, thermald and tlp."""
    plan: List[Action] = []
    if package_installed("bcmwl-kernel-source"):
        plan.append(cmd("apt", "remove", "-y", "bcmwl-kernel-source"))
    elif package_installed("broadcom-sta-dkms"):
        plan.append(cmd("apt", "remove", "-y", "broadcom-sta-dkms"))

    if package_installed("mbpfan"):
        plan += [
            cmd("systemctl", "stop", "mbpfan", check=False),
            cmd("systemctl", "disable", "mbpfan", check=False),
            cmd("apt", "remove", "-y", "mbpfan"),
        ]
        backup = MBPFAN_CONF.with_name("mbpfan.conf.backup.orig")
        if backup.is_file():
            plan.append(CopyFile(backup, MBPFAN_CONF))

    plan += [
        cmd("apt", "remove", "-y", "thermald", "tlp", check=False),
        cmd("apt", "autoremove", "-y"),
    ]
    return plan
