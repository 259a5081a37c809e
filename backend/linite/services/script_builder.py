"""
Linite Backend — Script Builder
================================

What:  Renders a generate/uninstall response as a downloadable script.
How:   Bash for Linux distros, PowerShell for Windows. The command lines are
       the same ones that make up the response's `final` text, one per line;
       warnings and manual steps are carried over as comments.
"""

from dataclasses import dataclass
from typing import List

from linite.schemas.commands import GenerateResponse, UninstallResponse
from linite.services.platform import OperatingSystem, detect_os

NIXOS_DISTRO_SLUG = "nixos"
NIXOS_SHEBANG = "#!/run/current-system/sw/bin/bash"
DEFAULT_SHEBANG = "#!/bin/bash"

INSTALL_TITLE = "Linite - Bulk Package Installer"
UNINSTALL_TITLE = "Linite - Bulk Package Uninstaller"


@dataclass(frozen=True)
class Script:
    filename: str
    content: str

    @property
    def media_type(self) -> str:
        return "text/plain"


def _header(distro_slug: str, os_type: OperatingSystem, title: str) -> List[str]:
    if os_type is OperatingSystem.WINDOWS:
        return [
            f"# {title}",
            "",
            'Write-Host ""',
            f'Write-Host " {title}" -ForegroundColor Cyan',
            'Write-Host ""',
        ]
    shebang = NIXOS_SHEBANG if distro_slug == NIXOS_DISTRO_SLUG else DEFAULT_SHEBANG
    return [
        shebang,
        "",
        f"# {title}",
        "echo",
        f'echo "{title}"',
        "echo",
    ]


def _comment_block(heading: str, lines: List[str]) -> List[str]:
    if not lines:
        return []
    block = ["", f"# {heading}:"]
    for line in lines:
        block.extend(f"#   {part}" for part in line.splitlines() or [""])
    return block


def _filename(stem: str, os_type: OperatingSystem) -> str:
    extension = "ps1" if os_type is OperatingSystem.WINDOWS else "sh"
    return f"{stem}.{extension}"


def build_install_script(distro_slug: str, response: GenerateResponse) -> Script:
    """Setup commands first, then one line per source batch."""
    os_type = detect_os(distro_slug)
    lines = _header(distro_slug, os_type, INSTALL_TITLE)

    if response.commands.setup:
        lines += [""] + response.commands.setup
    lines += [""] + [c.command for c in response.commands.by_source]
    lines += _comment_block("Warnings", response.warnings)
    lines += _comment_block("Errors", [e.message for e in response.errors])

    return Script(filename=_filename("linite-install", os_type), content="\n".join(lines) + "\n")


def build_uninstall_script(distro_slug: str, response: UninstallResponse) -> Script:
    """Removal batches, then cleanup, then dependency cleanup."""
    os_type = detect_os(distro_slug)
    commands = response.commands
    lines = _header(distro_slug, os_type, UNINSTALL_TITLE)

    lines += [""] + [c.command for c in commands.by_source]
    if commands.cleanup:
        lines += [""] + commands.cleanup
    if commands.dependency_cleanup:
        lines += [""] + commands.dependency_cleanup

    lines += _comment_block(
        "Manual steps",
        [f"{step.app_name}: {step.instructions}" for step in response.manual_steps],
    )
    lines += _comment_block("Warnings", response.warnings)
    lines += _comment_block("Errors", [e.message for e in response.errors])

    return Script(filename=_filename("linite-uninstall", os_type), content="\n".join(lines) + "\n")
