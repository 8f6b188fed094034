"""Tests for the step registries."""
from pathlib import Path

import pytest

from mbsetup import ubuntu
from mbsetup.models import Principal, Step
from mbsetup.steps import get_script_directory, install_registry, make_registry, uninstall_registry
from mbsetup.units import ActionUnit, ScriptUnit


def make_step(id, slug):
    return Step(id, slug, slug, slug, Principal.ROOT, unit=None)


class TestMakeRegistry:

    def test_rejects_duplicate_ids(self):
        with pytest.raises(ValueError, match="unique"):
            make_registry([make_step("03", "korean-input"), make_step("03", "macbook-drivers")])

    def test_rejects_decreasing_ids(self):
        with pytest.raises(ValueError):
            make_registry([make_step("02", "b"), make_step("01", "a")])

    def test_is_immutable(self):
        assert isinstance(make_registry([make_step("01", "a")]), tuple)


class TestInstallRegistry:

    def test_order_and_principals(self):
        registry = install_registry()

        assert [step.key for step in registry] == [
            "01-system-update", "02-system-tweaks", "03-macbook-drivers", "04-claude-code",
            "05-korean-input", "06-keyboard-remap", "07-docker", "08-ssh-firewall",
        ]
        principals = {step.slug: step.principal for step in registry}
        assert principals["claude-code"] is Principal.USER
        assert principals["keyboard-remap"] is Principal.DUAL
        assert principals["docker"] is Principal.ROOT

    def test_reboot_flags(self):
        assert [step.slug for step in install_registry() if step.reboot] == ["system-tweaks", "macbook-drivers"]

    def test_units_point_at_scripts(self, tmp_path):
        registry = install_registry(tmp_path)

        assert all(isinstance(step.unit, ScriptUnit) for step in registry)
        assert registry[2].unit.path == tmp_path / "scripts" / "03-macbook-drivers.sh"

    def test_default_base_dir(self):
        assert install_registry()[0].unit.path.parent == get_script_directory() / "scripts"


class TestUninstallRegistry:

    def test_components(self):
        registry = uninstall_registry()

        assert [step.id for step in registry] == ["02", "03", "04", "05", "06", "07", "08", "09"]
        assert "system-update" not in [step.slug for step in registry]
        assert all(isinstance(step.unit, ActionUnit) for step in registry)
        assert not any(step.reboot for step in registry)

    def test_keyboard_remap_is_dual(self):
        keyboard = uninstall_registry()[-1]

        assert keyboard.key == "09-keyboard-remap"
        assert keyboard.principal is Principal.DUAL
        assert keyboard.unit.plan is ubuntu.keyboard_remap

    def test_docker_uses_base_dir_compose_file(self, tmp_path):
        docker = uninstall_registry(tmp_path)[2]

        assert docker.slug == "docker"
        assert docker.unit.plan.keywords == {"compose_file": tmp_path / "configs" / "docker-compose.yml"}


def test_get_script_directory():
    assert get_script_directory() == Path(__file__).parent.parent.resolve()
