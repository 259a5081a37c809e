"""
Linite Backend — Command Synthesizer
=====================================

What:  Turns resolved selections into shell commands for one distro.
How:   Selections are grouped by source slug in first-seen order. Each group
       becomes one batch line (`[sudo ]<cmd> <identifiers...>`). Setup
       (install) or cleanup (uninstall) commands are resolved for the distro
       family and emitted once per distinct command. Script-based sources
       bypass grouping and render one command per package.

Install final text:     setup → batches
Uninstall final text:   batches → cleanup → dependency cleanup

Every branch here is total over valid selections: problems with individual
apps become warnings or manual steps, never exceptions.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from linite.schemas.catalog import DistroCatalog, ResolvedSelection
from linite.schemas.commands import (
    InstallCommandSet,
    ManualStep,
    NixInstallMethod,
    SourceCommand,
    UninstallCommandSet,
)
from linite.services.command_templates import get_nix_commands, is_nix_source, resolve_command
from linite.services.platform import (
    OperatingSystem,
    build_batch_command,
    build_script_command,
    detect_os,
    with_sudo,
)

logger = logging.getLogger(__name__)

SCRIPT_SOURCE_SLUG = "script"
NEWLINE_SEPARATOR = "\n"
CHAIN_SEPARATOR = " && "

NIX_SHELL_UNINSTALL_WARNING = "nix-shell environments are ephemeral - no uninstall needed"


@dataclass
class InstallSynthesis:
    commands: InstallCommandSet
    warnings: List[str] = field(default_factory=list)


@dataclass
class UninstallSynthesis:
    commands: UninstallCommandSet
    warnings: List[str] = field(default_factory=list)
    manual_steps: List[ManualStep] = field(default_factory=list)
    # Selections that got a removal command or a manual step
    removed: List[ResolvedSelection] = field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════════

def group_by_source(
    selections: Sequence[ResolvedSelection],
) -> Dict[str, List[ResolvedSelection]]:
    """Group selections by source slug, keeping first-encountered order."""
    grouped: Dict[str, List[ResolvedSelection]] = OrderedDict()
    for selection in selections:
        grouped.setdefault(selection.source_slug, []).append(selection)
    return grouped


def _append_unique(commands: List[str], command: Optional[str]) -> None:
    if command and command not in commands:
        commands.append(command)


def join_commands(commands: Sequence[str], chain: bool = False) -> str:
    separator = CHAIN_SEPARATOR if chain else NEWLINE_SEPARATOR
    return separator.join(c for c in commands if c)


# ══════════════════════════════════════════════════════════════════════════
# Install
# ══════════════════════════════════════════════════════════════════════════

def synthesize_install(
    distro: DistroCatalog,
    selections: Sequence[ResolvedSelection],
    nix_method: Optional[NixInstallMethod] = None,
    chain: bool = False,
) -> InstallSynthesis:
    """
    Build install commands for the resolved selections.

    Args:
        distro: Target distro (slug drives OS detection, family drives templates)
        selections: One resolved package per app, in app order
        nix_method: Nix install method; None behaves as nix-shell
        chain: Join the final text with ' && ' instead of newlines
    """
    os_type = detect_os(distro.slug)
    setup: List[str] = []
    by_source: List[SourceCommand] = []
    warnings: List[str] = []

    for source_slug, group in group_by_source(selections).items():
        source = group[0].source

        if source_slug == SCRIPT_SOURCE_SLUG:
            for selection in group:
                url = selection.package.script_urls.get(os_type.value)
                if not url:
                    warnings.append(
                        f"{selection.app_name}: No install script available for {os_type.value}"
                    )
                    continue
                by_source.append(
                    SourceCommand(source_slug=source_slug, command=build_script_command(url, os_type))
                )
            continue

        install_cmd = source.install_cmd
        source_setup = resolve_command(source.setup_cmd, distro.family)
        if is_nix_source(source_slug):
            nix = get_nix_commands(nix_method)
            install_cmd = nix.install_cmd
            source_setup = nix.setup_cmd

        # Per-package setup (PPAs, COPR repos...) before the source's own setup
        for selection in group:
            _append_unique(setup, resolve_command(selection.package.setup_cmd, distro.family))
        _append_unique(setup, source_setup)

        by_source.append(
            SourceCommand(
                source_slug=source_slug,
                command=build_batch_command(
                    install_cmd,
                    [s.package.identifier for s in group],
                    source.require_sudo,
                    os_type,
                ),
            )
        )

    final = join_commands(setup + [c.command for c in by_source], chain)
    logger.debug(
        "Install synthesis for %s: %d setup, %d batch commands",
        distro.slug,
        len(setup),
        len(by_source),
    )
    return InstallSynthesis(
        commands=InstallCommandSet(setup=setup, by_source=by_source, final=final),
        warnings=warnings,
    )


# ══════════════════════════════════════════════════════════════════════════
# Uninstall
# ══════════════════════════════════════════════════════════════════════════

def _script_uninstall(
    group: Sequence[ResolvedSelection],
    os_type: OperatingSystem,
    by_source: List[SourceCommand],
    warnings: List[str],
    manual_steps: List[ManualStep],
    removed: List[ResolvedSelection],
) -> None:
    for selection in group:
        metadata = selection.package.uninstall_metadata
        if metadata is None:
            warnings.append(
                f"{selection.app_name}: No uninstall metadata available for script-based installation"
            )
            continue

        script = metadata.script_for(os_type.value)
        if script:
            by_source.append(SourceCommand(source_slug=selection.source_slug, command=script))
            removed.append(selection)
        elif metadata.manual_instructions:
            manual_steps.append(
                ManualStep(
                    app_id=selection.app_id,
                    app_name=selection.app_name,
                    instructions=metadata.manual_instructions,
                )
            )
            removed.append(selection)
        else:
            warnings.append(
                f"{selection.app_name}: No uninstall method available for script-based installation"
            )


def synthesize_uninstall(
    distro: DistroCatalog,
    selections: Sequence[ResolvedSelection],
    nix_method: Optional[NixInstallMethod] = None,
    include_dependency_cleanup: bool = False,
    include_setup_cleanup: bool = False,
    chain: bool = False,
) -> UninstallSynthesis:
    """
    Build uninstall commands; the structural mirror of synthesize_install.

    Sources without a remove command (and nix-shell installs) produce
    warnings instead of commands and are left out of `removed`.
    """
    os_type = detect_os(distro.slug)
    by_source: List[SourceCommand] = []
    cleanup: List[str] = []
    dependency_cleanup: List[str] = []
    warnings: List[str] = []
    manual_steps: List[ManualStep] = []
    removed: List[ResolvedSelection] = []

    for source_slug, group in group_by_source(selections).items():
        source = group[0].source

        if source_slug == SCRIPT_SOURCE_SLUG:
            _script_uninstall(group, os_type, by_source, warnings, manual_steps, removed)
            continue

        remove_cmd = source.remove_cmd
        source_cleanup = resolve_command(source.cleanup_cmd, distro.family)
        if is_nix_source(source_slug):
            nix = get_nix_commands(nix_method)
            if nix.remove_cmd is None:
                _append_unique(warnings, NIX_SHELL_UNINSTALL_WARNING)
                continue
            remove_cmd = nix.remove_cmd
            source_cleanup = nix.cleanup_cmd

        if not remove_cmd:
            for selection in group:
                warnings.append(
                    f"{selection.app_name}: Uninstall not supported for {source.name} source"
                )
            continue

        if include_setup_cleanup:
            for selection in group:
                _append_unique(cleanup, resolve_command(selection.package.cleanup_cmd, distro.family))
            _append_unique(cleanup, source_cleanup)

        by_source.append(
            SourceCommand(
                source_slug=source_slug,
                command=build_batch_command(
                    remove_cmd,
                    [s.package.identifier for s in group],
                    source.require_sudo,
                    os_type,
                ),
            )
        )
        removed.extend(group)

        if (
            include_dependency_cleanup
            and source.supports_dependency_cleanup
            and source.dependency_cleanup_cmd
        ):
            _append_unique(
                dependency_cleanup,
                with_sudo(source.dependency_cleanup_cmd, source.require_sudo, os_type),
            )

    final = join_commands(
        [c.command for c in by_source] + cleanup + dependency_cleanup,
        chain,
    )
    return UninstallSynthesis(
        commands=UninstallCommandSet(
            by_source=by_source,
            cleanup=cleanup,
            dependency_cleanup=dependency_cleanup,
            final=final,
        ),
        warnings=warnings,
        manual_steps=manual_steps,
        removed=removed,
    )
