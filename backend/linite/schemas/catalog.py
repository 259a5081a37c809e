"""
Linite Backend — Catalog Snapshot Models
=========================================

What:  Immutable Pydantic models describing one catalog snapshot: a distro
       with its ranked sources, and apps with their available packages.
How:   Built by the catalog loader from ORM rows; consumed by the priority
       resolver and command synthesizer, which never touch the database.

Command templates are modeled as a two-variant tagged union:
    UniversalCommand  — one command for every distro family
    FamilyCommand     — family → command map with optional "*" fallback
"""

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

WILDCARD_FAMILY = "*"


class UniversalCommand(BaseModel):
    """A command that applies to every distro family unchanged."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["universal"] = "universal"
    command: str

    def resolve(self, family: str) -> Optional[str]:
        return self.command or None


class FamilyCommand(BaseModel):
    """A family-conditional command; "*" is the fallback entry."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["by_family"] = "by_family"
    commands: Dict[str, str]

    def resolve(self, family: str) -> Optional[str]:
        # Empty strings count as "no command" and fall through to the wildcard
        return self.commands.get(family) or self.commands.get(WILDCARD_FAMILY) or None


CommandTemplate = Annotated[
    Union[UniversalCommand, FamilyCommand],
    Field(discriminator="kind"),
]


class SourceConfig(BaseModel):
    """Everything the engine needs to know about one package source."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    slug: str
    install_cmd: str
    remove_cmd: Optional[str] = None
    require_sudo: bool = False
    setup_cmd: Optional[CommandTemplate] = None
    cleanup_cmd: Optional[CommandTemplate] = None
    supports_dependency_cleanup: bool = False
    dependency_cleanup_cmd: Optional[str] = None


class DistroSourceConfig(BaseModel):
    """A source as configured for a specific distro."""

    model_config = ConfigDict(frozen=True)

    source: SourceConfig
    priority: int = 0
    is_default: bool = False


class DistroCatalog(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    slug: str
    family: str
    sources: List[DistroSourceConfig]


class UninstallMetadata(BaseModel):
    """
    Direction-specific data for removing script-installed apps.

    Keys mirror the stored JSON: {"linux": "...", "windows": "...",
    "manualInstructions": "..."}.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    linux: Optional[str] = None
    windows: Optional[str] = None
    manual_instructions: Optional[str] = Field(default=None, alias="manualInstructions")

    def script_for(self, os_name: str) -> Optional[str]:
        return getattr(self, os_name, None) or None


class CatalogPackage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    app_id: str
    source: SourceConfig
    identifier: str
    version: Optional[str] = None
    size: Optional[int] = None
    maintainer: Optional[str] = None
    setup_cmd: Optional[CommandTemplate] = None
    cleanup_cmd: Optional[CommandTemplate] = None
    # os name ("linux" | "windows") → install script URL
    script_urls: Dict[str, str] = Field(default_factory=dict)
    uninstall_metadata: Optional[UninstallMetadata] = None


class CatalogApp(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    packages: List[CatalogPackage] = Field(default_factory=list)


class ResolvedSelection(BaseModel):
    """
    The package chosen for one app on one distro.

    Produced once per generate call by the priority resolver; the installation
    history collaborator persists these rows as "what was actually chosen".
    """

    model_config = ConfigDict(frozen=True)

    app_id: str
    app_name: str
    distro_id: str
    package: CatalogPackage
    calculated_priority: int

    @property
    def package_id(self) -> str:
        return self.package.id

    @property
    def source(self) -> SourceConfig:
        return self.package.source

    @property
    def source_slug(self) -> str:
        return self.package.source.slug
