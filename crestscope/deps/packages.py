"""
System package manager detection and tool installation.

The registry below is the only place that knows about individual package
managers. To support another one, append a ``PackageManager`` entry; its
position in ``PACKAGE_MANAGERS`` is its detection priority.
"""
from __future__ import annotations
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Callable

from crestscope.errors import DependencyInstallError, NoPackageManagerError


@dataclass(frozen=True)
class PackageManager:
    name: str
    install: tuple[str, ...]
    refresh: tuple[str, ...] | None = None
    needs_sudo: bool = True
    packages: dict[str, str] = field(default_factory=dict)

    @property
    def executable(self) -> str:
        return self.install[0]


_IMAGEMAGICK_CAPS = {"imagemagick": "ImageMagick"}

PACKAGE_MANAGERS: tuple[PackageManager, ...] = (
    PackageManager("apt-get", ("apt-get", "install", "-y"), refresh=("apt-get", "update", "-y")),
    PackageManager("apt", ("apt", "install", "-y"), refresh=("apt", "update", "-y")),
    PackageManager("dnf", ("dnf", "install", "-y"), packages=_IMAGEMAGICK_CAPS),
    PackageManager("yum", ("yum", "install", "-y"), packages=_IMAGEMAGICK_CAPS),
    PackageManager("pacman", ("pacman", "-Syu", "--noconfirm", "--needed")),
    PackageManager("zypper", ("zypper", "--non-interactive", "in"), packages=_IMAGEMAGICK_CAPS),
    PackageManager("apk", ("apk", "add", "--no-cache")),
    PackageManager("xbps-install", ("xbps-install", "-y"), packages=_IMAGEMAGICK_CAPS),
    PackageManager(
        "emerge", ("emerge", "-n"),
        packages={
            "sox": "media-sound/sox",
            "imagemagick": "media-gfx/imagemagick",
            "bc": "sys-devel/bc",
        },
    ),
    PackageManager(
        "nix-env", ("nix-env", "-iA"), needs_sudo=False,
        packages={
            "sox": "nixpkgs.sox",
            "imagemagick": "nixpkgs.imagemagick",
            "bc": "nixpkgs.bc",
        },
    ),
    PackageManager("brew", ("brew", "install"), needs_sudo=False),
    PackageManager("pkg", ("pkg", "install", "-y"), packages={"imagemagick": "ImageMagick7"}),
)

# logical tool name -> executable looked up on PATH
REQUIRED_TOOLS: dict[str, str] = {
    "sox": "sox",
    "imagemagick": "magick",
}

Which = Callable[[str], str | None]


def detect_package_manager(
    which: Which = shutil.which,
    managers: tuple[PackageManager, ...] = PACKAGE_MANAGERS
) -> PackageManager:
    """Return the first available package manager in priority order."""
    for mgr in managers:
        if which(mgr.executable):
            return mgr
    raise NoPackageManagerError("No supported package manager found.")


def package_name_for(manager: PackageManager, tool: str) -> str:
    return manager.packages.get(tool, tool)


def _is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return bool(geteuid and geteuid() == 0)


def install_commands(
    manager: PackageManager,
    package: str,
    *,
    as_root: bool | None = None
) -> list[list[str]]:
    """Commands that install ``package`` non-interactively, in order."""
    if as_root is None:
        as_root = _is_root()
    prefix = ["sudo"] if manager.needs_sudo and not as_root else []
    cmds: list[list[str]] = []
    if manager.refresh:
        cmds.append(prefix + list(manager.refresh))
    cmds.append(prefix + list(manager.install) + [package])
    return cmds


def install_dependency(
    tool: str,
    *,
    manager: PackageManager | None = None,
    run: Callable[..., object] = subprocess.run,
    which: Which = shutil.which
) -> None:
    """Install a logical tool through the host package manager."""
    mgr = manager or detect_package_manager(which)
    pkg = package_name_for(mgr, tool)
    print(f"Installing {tool} via {mgr.name} (package: {pkg})...")
    for cmd in install_commands(mgr, pkg):
        try:
            run(cmd, check=True)
        except subprocess.CalledProcessError as exc:
            raise DependencyInstallError(
                f"'{' '.join(cmd)}' exited with status {exc.returncode}"
            ) from exc
        except OSError as exc:
            raise DependencyInstallError(f"could not run '{cmd[0]}': {exc}") from exc


def missing_tools(
    which: Which = shutil.which,
    tools: dict[str, str] = REQUIRED_TOOLS
) -> list[str]:
    """Logical names of required tools whose executables are not on PATH."""
    return [tool for tool, exe in tools.items() if not which(exe)]


def ensure_tools(
    *,
    allow_install: bool = True,
    which: Which = shutil.which,
    run: Callable[..., object] = subprocess.run
) -> list[str]:
    """
    Make sure every required external tool is available.

    Returns the logical names that were installed. Raises
    ``NoPackageManagerError`` or ``DependencyInstallError`` when a tool
    cannot be provided.
    """
    missing = missing_tools(which)
    if not missing:
        return []
    if not allow_install:
        raise DependencyInstallError(
            "missing required tools: " + ", ".join(missing)
        )
    mgr = detect_package_manager(which)
    for tool in missing:
        install_dependency(tool, manager=mgr, run=run, which=which)
    still_missing = missing_tools(which)
    if still_missing:
        raise DependencyInstallError(
            "still not on PATH after install: "
            + ", ".join(f"{tool} ({REQUIRED_TOOLS[tool]})" for tool in still_missing)
        )
    return missing
