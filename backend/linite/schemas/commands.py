"""
Linite Backend — Request/Response Schemas
==========================================

What:  Pydantic models defining the generate/uninstall API contract.
How:   Fields are snake_case in Python and camelCase on the wire
       (`alias_generator=to_camel`); requests accept either spelling.
Who:   Route handlers, the generator service and the command synthesizer.

Wire example (POST /api/generate):
    request:  {"distroSlug": "ubuntu", "appIds": ["firefox"], "sourcePreference": "flatpak"}
    response: {"commands": {"setup": [...], "bySource": [...], "final": "..."},
               "breakdown": [...], "errors": [...], "warnings": [...]}
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from linite.config import settings


class CamelModel(BaseModel):
    """Base for every wire model: camelCase JSON, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NixInstallMethod(str, Enum):
    """How Nix packages are installed; changes the commands, not the source."""

    NIX_SHELL = "nix-shell"
    NIX_ENV = "nix-env"
    NIX_FLAKES = "nix-flakes"


class AppErrorReason(str, Enum):
    NO_AVAILABLE_PACKAGE = "NoAvailablePackage"
    APP_NOT_FOUND = "AppNotFound"


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class GenerateRequest(CamelModel):
    """
    Input for install command generation.

    sourcePreference naming a source the distro does not have is accepted and
    simply never boosts anything.
    """

    distro_slug: str = Field(min_length=1, description="Target distro slug, e.g. 'ubuntu'")
    app_ids: List[str] = Field(
        default_factory=list,
        max_length=settings.max_apps_per_request,
        description="Selected app ids; an empty list yields an empty result",
    )
    source_preference: Optional[str] = Field(
        default=None, description="Source slug to favour (+100 priority)"
    )
    nix_install_method: Optional[NixInstallMethod] = Field(
        default=None, description="Nix method; defaults to nix-shell semantics"
    )
    chain_commands: bool = Field(
        default=False,
        description="Join the final command with ' && ' instead of newlines",
    )


class UninstallRequest(GenerateRequest):
    """Input for uninstall command generation."""

    include_dependency_cleanup: bool = Field(
        default=False, description="Append orphan-dependency cleanup for sources that support it"
    )
    include_setup_cleanup: bool = Field(
        default=False, description="Append per-source and per-package cleanup commands"
    )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SourceCommand(CamelModel):
    """One batch command for one source (or one script entry)."""

    source_slug: str
    command: str


class InstallCommandSet(CamelModel):
    setup: List[str] = Field(default_factory=list, description="Run once before the batches")
    by_source: List[SourceCommand] = Field(default_factory=list)
    final: str = Field(default="", description="Everything above, joined for copy/paste")


class UninstallCommandSet(CamelModel):
    by_source: List[SourceCommand] = Field(default_factory=list)
    cleanup: List[str] = Field(default_factory=list, description="Reverse of setup commands")
    dependency_cleanup: List[str] = Field(default_factory=list)
    final: str = Field(default="")


class BreakdownEntry(CamelModel):
    """One resolved (app, package, source, distro) selection."""

    app_id: str
    app_name: str
    package_id: str
    package_identifier: str
    source_id: str
    source_slug: str
    distro_id: str
    calculated_priority: int


class AppError(CamelModel):
    """A per-app failure; the rest of the batch is still generated."""

    app_id: str
    reason: AppErrorReason
    message: str


class ManualStep(CamelModel):
    """Instructions for apps whose removal cannot be scripted."""

    app_id: str
    app_name: str
    instructions: str


class GenerateResponse(CamelModel):
    commands: InstallCommandSet = Field(default_factory=InstallCommandSet)
    breakdown: List[BreakdownEntry] = Field(default_factory=list)
    errors: List[AppError] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class UninstallResponse(CamelModel):
    commands: UninstallCommandSet = Field(default_factory=UninstallCommandSet)
    breakdown: List[BreakdownEntry] = Field(default_factory=list)
    errors: List[AppError] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    manual_steps: List[ManualStep] = Field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standard error body for every failed request.

    Example:
        {
            "error": "not_found",
            "message": "distro 'not-a-distro' was not found",
            "request_id": "1f2e3d4c"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
