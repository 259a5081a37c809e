"""
Linite Backend — Platform Helpers
==================================

What:  Small OS-aware builders shared by install and uninstall synthesis:
       OS detection, the sudo rule, batch lines and script-URL commands.
"""

from enum import Enum
from typing import Iterable

WINDOWS_DISTRO_SLUG = "windows"

# Install prefixes ending with one of these take the identifier glued on,
# e.g. "nix-env -iA nixpkgs." + "firefox"
ATTRIBUTE_PREFIX_SUFFIXES = (".", "#")


class OperatingSystem(str, Enum):
    LINUX = "linux"
    WINDOWS = "windows"


def detect_os(distro_slug: str) -> OperatingSystem:
    """The "windows" distro maps to Windows; every other slug is Linux."""
    if distro_slug == WINDOWS_DISTRO_SLUG:
        return OperatingSystem.WINDOWS
    return OperatingSystem.LINUX


def should_use_sudo(require_sudo: bool, os_type: OperatingSystem) -> bool:
    # Windows has no sudo
    return bool(require_sudo) and os_type is not OperatingSystem.WINDOWS


def with_sudo(command: str, require_sudo: bool, os_type: OperatingSystem) -> str:
    if should_use_sudo(require_sudo, os_type):
        return f"sudo {command}"
    return command


def build_batch_command(
    base_cmd: str,
    identifiers: Iterable[str],
    require_sudo: bool,
    os_type: OperatingSystem,
) -> str:
    """
    Build `[sudo ]<base_cmd> <identifiers...>` for one source.

    Attribute-style prefixes ("nix-env -iA nixpkgs.", "nix profile install
    nixpkgs#") are repeated per identifier instead of being space-separated:

        >>> build_batch_command("nix-env -iA nixpkgs.", ["git", "vim"], False, OperatingSystem.LINUX)
        'nix-env -iA nixpkgs.git nixpkgs.vim'
    """
    base_cmd = base_cmd.strip()
    identifiers = list(identifiers)

    if base_cmd.endswith(ATTRIBUTE_PREFIX_SUFFIXES):
        head, _, prefix = base_cmd.rpartition(" ")
        args = " ".join(f"{prefix}{identifier}" for identifier in identifiers)
        command = f"{head} {args}" if head else args
    else:
        command = f"{base_cmd} {' '.join(identifiers)}"

    return with_sudo(command, require_sudo, os_type)


def build_script_command(script_url: str, os_type: OperatingSystem) -> str:
    """
    Render a script-URL install for the target OS.

    Windows: `.exe` URLs are downloaded then executed, anything else is piped
    to Invoke-Expression. Linux: piped to bash.
    """
    if os_type is OperatingSystem.WINDOWS:
        if script_url.lower().endswith(".exe"):
            return f"irm {script_url} -OutFile installer.exe; .\\installer.exe"
        return f"irm {script_url} | iex"
    return f"curl -fsSL {script_url} | bash"
