"""
Linite Backend — Command Template Resolver
===========================================

What:  Turns stored command templates into concrete command strings for a
       distro family, and holds the Nix install-method table.
How:   `parse_command_template` runs once per column at catalog load time and
       produces the tagged union from linite.schemas.catalog.
       `resolve_command` picks the string for a family at synthesis time.

Resolution rule:
    None                         → None
    UniversalCommand("x")        → "x" for every family
    FamilyCommand({...})         → map[family], else map["*"], else None

Nix commands depend on the install method the user picked, not on the distro
family, so they live in their own table (NIX_COMMANDS) instead of going
through the generic resolver.
"""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from linite.schemas.catalog import CommandTemplate, FamilyCommand, UniversalCommand
from linite.schemas.commands import NixInstallMethod

logger = logging.getLogger(__name__)

NIX_SOURCE_SLUG = "nix"


# ══════════════════════════════════════════════════════════════════════════
# Family Templates
# ══════════════════════════════════════════════════════════════════════════

def _family_command(mapping: Dict[Any, Any], where: str) -> Optional[FamilyCommand]:
    commands = {
        str(family): cmd
        for family, cmd in mapping.items()
        if isinstance(cmd, str) and cmd
    }
    # null entries are a valid way to say "nothing for this family"
    if any(cmd is not None and not isinstance(cmd, str) for cmd in mapping.values()):
        logger.warning("Ignoring non-string entries in family command map for %s", where)
    if not commands:
        return None
    return FamilyCommand(commands=commands)


def parse_command_template(raw: Any, where: str = "command") -> Optional[CommandTemplate]:
    """
    Parse a stored command value into a CommandTemplate.

    Accepted shapes:
        None / ""                          → None
        dict (already-decoded JSON)        → FamilyCommand
        '{"debian": "...", "*": "..."}'    → FamilyCommand
        '"nix-channel --update"'           → UniversalCommand (JSON string)
        'flatpak remote-add ...'           → UniversalCommand (plain text)

    Malformed JSON objects are logged as warnings and dropped: a broken
    family map cannot be resolved, and running its raw text as a shell
    command would be wrong.

    Args:
        raw: Column value as read from the store
        where: Human-readable location for log messages, e.g. "source apt setup_cmd"
    """
    if raw is None:
        return None

    if isinstance(raw, dict):
        return _family_command(raw, where)

    if not isinstance(raw, str):
        logger.warning("Unsupported command type %s for %s", type(raw).__name__, where)
        return None

    text = raw.strip()
    if not text:
        return None

    if text[0] not in '{"':
        return UniversalCommand(command=text)

    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        if text.startswith("{"):
            logger.warning("Malformed JSON command map for %s dropped: %s", where, e)
            return None
        logger.warning("Malformed JSON string for %s, using raw text: %s", where, e)
        return UniversalCommand(command=text)

    if isinstance(decoded, dict):
        return _family_command(decoded, where)
    if isinstance(decoded, str):
        return UniversalCommand(command=decoded) if decoded else None

    logger.warning("Unexpected JSON %s for %s dropped", type(decoded).__name__, where)
    return None


def resolve_command(template: Optional[CommandTemplate], family: str) -> Optional[str]:
    """Pick the concrete command for `family`, or None when there is none."""
    if template is None:
        return None
    return template.resolve(family)


# ══════════════════════════════════════════════════════════════════════════
# Nix Install Methods
# ══════════════════════════════════════════════════════════════════════════

class NixCommandTemplate(BaseModel):
    """Install/remove/setup/cleanup commands for one Nix install method."""

    model_config = ConfigDict(frozen=True)

    install_cmd: str
    remove_cmd: Optional[str] = None
    setup_cmd: Optional[str] = None
    cleanup_cmd: Optional[str] = None


NIX_COMMANDS: Dict[NixInstallMethod, NixCommandTemplate] = {
    # nix-shell environments are ephemeral; there is nothing to uninstall
    NixInstallMethod.NIX_SHELL: NixCommandTemplate(
        install_cmd="nix-shell -p",
    ),
    NixInstallMethod.NIX_ENV: NixCommandTemplate(
        install_cmd="nix-env -iA nixpkgs.",
        remove_cmd="nix-env -e",
        setup_cmd="nix-channel --update",
        cleanup_cmd="nix-collect-garbage -d",
    ),
    NixInstallMethod.NIX_FLAKES: NixCommandTemplate(
        install_cmd="nix profile install nixpkgs#",
        remove_cmd="nix profile remove",
        setup_cmd=(
            "nix-channel --update && "
            'echo "experimental-features = nix-command flakes" >> ~/.config/nix/nix.conf'
        ),
        cleanup_cmd="nix-collect-garbage -d",
    ),
}

DEFAULT_NIX_METHOD = NixInstallMethod.NIX_SHELL


def get_nix_commands(method: Optional[NixInstallMethod]) -> NixCommandTemplate:
    """Commands for `method`; no method behaves as nix-shell."""
    return NIX_COMMANDS[method or DEFAULT_NIX_METHOD]


def is_nix_source(source_slug: str) -> bool:
    return source_slug == NIX_SOURCE_SLUG
