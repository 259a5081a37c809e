"""
Linite Backend — Command Generator Service (Orchestrator)
==========================================================

What:  Runs one generate or uninstall request end to end.
Why:   Keeps the route handlers thin and the engine functions pure.
How:   Loader (async, store) → resolver (pure) → synthesizer (pure).
Who:   Called by the /api/generate and /api/uninstall route handlers.

Orchestration Flow:
    ┌────────────┐    ┌────────────┐    ┌────────────┐    ┌──────────────┐
    │  Load      │───▶│  Load      │───▶│  Resolve   │───▶│  Synthesize  │
    │  distro    │    │  apps      │    │  packages  │    │  commands    │
    └────────────┘    └────────────┘    └────────────┘    └──────────────┘

    Fatal (raised):   unknown distro, distro without sources, no app found,
                      store failure
    Per app (listed): AppNotFound, NoAvailablePackage

Design Decision:
    The service is stateless; the session is passed into every call, the same
    as every other service here.
"""

import logging
from typing import Iterable, List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from linite.schemas.catalog import CatalogApp, DistroCatalog, ResolvedSelection
from linite.schemas.commands import (
    AppError,
    AppErrorReason,
    BreakdownEntry,
    GenerateRequest,
    GenerateResponse,
    UninstallRequest,
    UninstallResponse,
)
from linite.services.catalog_loader import catalog_loader
from linite.services.command_synthesizer import synthesize_install, synthesize_uninstall
from linite.services.priority_resolver import ResolutionResult, resolve_selections

logger = logging.getLogger(__name__)


def build_breakdown(selections: Iterable[ResolvedSelection]) -> List[BreakdownEntry]:
    return [
        BreakdownEntry(
            app_id=s.app_id,
            app_name=s.app_name,
            package_id=s.package_id,
            package_identifier=s.package.identifier,
            source_id=s.source.id,
            source_slug=s.source_slug,
            distro_id=s.distro_id,
            calculated_priority=s.calculated_priority,
        )
        for s in selections
    ]


def _ordered_errors(
    app_ids: Sequence[str],
    apps: Sequence[CatalogApp],
    resolution: ResolutionResult,
) -> List[AppError]:
    """Merge not-found and unresolvable apps into one list in request order."""
    found = {app.id for app in apps}
    errors = [
        AppError(
            app_id=app_id,
            reason=AppErrorReason.APP_NOT_FOUND,
            message=f"App '{app_id}' was not found",
        )
        for app_id in dict.fromkeys(app_ids)
        if app_id not in found
    ]
    errors.extend(resolution.errors)

    position = {app_id: i for i, app_id in enumerate(dict.fromkeys(app_ids))}
    return sorted(errors, key=lambda e: position.get(e.app_id, len(position)))


class CommandGeneratorService:
    """
    Business logic for install and uninstall command generation.

    Responsibilities:
        - generate_install(): distro + apps → install commands
        - generate_uninstall(): distro + apps → removal commands, cleanup and
          manual steps
    """

    async def _load_and_resolve(self, db: AsyncSession, request: GenerateRequest):
        distro: DistroCatalog = await catalog_loader.load_distro(db, request.distro_slug)
        if not request.app_ids:
            return distro, [], ResolutionResult()

        apps = await catalog_loader.load_apps(db, request.app_ids)
        resolution = resolve_selections(distro, apps, request.source_preference)
        return distro, apps, resolution

    async def generate_install(
        self, db: AsyncSession, request: GenerateRequest
    ) -> GenerateResponse:
        """
        Generate install commands for the requested apps.

        An empty `app_ids` still validates the distro, then returns an empty
        result.

        Raises:
            NotFoundError: Unknown distro, or none of the apps exist (→ 404)
            ConfigurationError: Distro has no sources (→ 422)
            DatabaseError: Catalog read failed (→ 500)
        """
        distro, apps, resolution = await self._load_and_resolve(db, request)
        if not request.app_ids:
            return GenerateResponse()

        synthesis = synthesize_install(
            distro,
            resolution.selections,
            nix_method=request.nix_install_method,
            chain=request.chain_commands,
        )
        errors = _ordered_errors(request.app_ids, apps, resolution)

        logger.info(
            "Generated install for %s: %d apps, %d resolved, %d errors, %d warnings",
            distro.slug,
            len(request.app_ids),
            len(resolution.selections),
            len(errors),
            len(synthesis.warnings),
        )
        return GenerateResponse(
            commands=synthesis.commands,
            breakdown=build_breakdown(resolution.selections),
            errors=errors,
            warnings=synthesis.warnings,
        )

    async def generate_uninstall(
        self, db: AsyncSession, request: UninstallRequest
    ) -> UninstallResponse:
        """Generate uninstall commands; same failure modes as generate_install."""
        distro, apps, resolution = await self._load_and_resolve(db, request)
        if not request.app_ids:
            return UninstallResponse()

        synthesis = synthesize_uninstall(
            distro,
            resolution.selections,
            nix_method=request.nix_install_method,
            include_dependency_cleanup=request.include_dependency_cleanup,
            include_setup_cleanup=request.include_setup_cleanup,
            chain=request.chain_commands,
        )
        errors = _ordered_errors(request.app_ids, apps, resolution)
        removed_ids = {s.app_id for s in synthesis.removed}
        removed = [s for s in resolution.selections if s.app_id in removed_ids]

        logger.info(
            "Generated uninstall for %s: %d apps, %d resolved, %d errors, %d manual steps",
            distro.slug,
            len(request.app_ids),
            len(resolution.selections),
            len(errors),
            len(synthesis.manual_steps),
        )
        return UninstallResponse(
            commands=synthesis.commands,
            breakdown=build_breakdown(removed),
            errors=errors,
            warnings=synthesis.warnings,
            manual_steps=synthesis.manual_steps,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
generator_service = CommandGeneratorService()
