from __future__ import annotations

import subprocess

import pytest

from crestscope.deps.packages import (
    PACKAGE_MANAGERS,
    PackageManager,
    detect_package_manager,
    ensure_tools,
    install_commands,
    install_dependency,
    missing_tools,
    package_name_for,
)
from crestscope.errors import DependencyInstallError, NoPackageManagerError


def _which(*available):
    return lambda exe: f"/usr/bin/{exe}" if exe in available else None


def _manager(name):
    return next(m for m in PACKAGE_MANAGERS if m.name == name)


def test_detect_respects_priority():
    assert detect_package_manager(_which("brew", "dnf", "pacman")).name == "dnf"
    assert detect_package_manager(_which("apt", "apt-get")).name == "apt-get"
    assert detect_package_manager(_which("pkg")).name == "pkg"


def test_detect_without_manager_is_fatal():
    with pytest.raises(NoPackageManagerError):
        detect_package_manager(_which())


def test_package_names_per_manager():
    assert package_name_for(_manager("apt-get"), "imagemagick") == "imagemagick"
    assert package_name_for(_manager("dnf"), "imagemagick") == "ImageMagick"
    assert package_name_for(_manager("zypper"), "imagemagick") == "ImageMagick"
    assert package_name_for(_manager("pkg"), "imagemagick") == "ImageMagick7"
    assert package_name_for(_manager("emerge"), "sox") == "media-sound/sox"
    assert package_name_for(_manager("nix-env"), "bc") == "nixpkgs.bc"
    assert package_name_for(_manager("pacman"), "sox") == "sox"


def test_install_commands_refresh_and_sudo():
    assert install_commands(_manager("apt-get"), "sox", as_root=False) == [
        ["sudo", "apt-get", "update", "-y"],
        ["sudo", "apt-get", "install", "-y", "sox"],
    ]
    assert install_commands(_manager("apt-get"), "sox", as_root=True) == [
        ["apt-get", "update", "-y"],
        ["apt-get", "install", "-y", "sox"],
    ]
    assert install_commands(_manager("brew"), "imagemagick", as_root=False) == [
        ["brew", "install", "imagemagick"],
    ]
    assert install_commands(_manager("pacman"), "sox", as_root=False) == [
        ["sudo", "pacman", "-Syu", "--noconfirm", "--needed", "sox"],
    ]


def test_new_manager_needs_no_call_site_changes():
    custom = PackageManager("port", ("port", "install"), packages={"imagemagick": "ImageMagick"})
    found = detect_package_manager(_which("port"), managers=(custom,))
    assert package_name_for(found, "imagemagick") == "ImageMagick"


def test_install_dependency_runs_commands(capsys):
    calls = []
    install_dependency("imagemagick", manager=_manager("brew"), run=lambda cmd, check: calls.append(cmd))
    assert calls == [["brew", "install", "imagemagick"]]
    assert "Installing imagemagick via brew (package: imagemagick)..." in capsys.readouterr().out


def test_install_dependency_failure_is_fatal():
    def failing(cmd, check):
        raise subprocess.CalledProcessError(100, cmd)

    with pytest.raises(DependencyInstallError):
        install_dependency("sox", manager=_manager("brew"), run=failing)


def test_missing_tools_and_no_install():
    assert missing_tools(_which("sox")) == ["imagemagick"]
    assert missing_tools(_which("sox", "magick")) == []
    with pytest.raises(DependencyInstallError):
        ensure_tools(allow_install=False, which=_which("sox", "brew"))


def test_ensure_tools_installs_missing():
    available = {"magick", "brew"}
    calls = []

    def fake_install(cmd, check):
        calls.append(cmd)
        available.add(cmd[-1])

    installed = ensure_tools(
        which=lambda exe: f"/usr/bin/{exe}" if exe in available else None,
        run=fake_install,
    )
    assert installed == ["sox"]
    assert calls == [["brew", "install", "sox"]]


def test_tool_still_missing_after_install_is_fatal():
    calls = []
    with pytest.raises(DependencyInstallError) as exc_info:
        ensure_tools(
            which=_which("sox", "brew"),
            run=lambda cmd, check: calls.append(cmd),
        )
    assert calls == [["brew", "install", "imagemagick"]]
    assert "imagemagick (magick)" in str(exc_info.value)


def test_ensure_tools_nothing_missing():
    assert ensure_tools(which=_which("sox", "magick")) == []
