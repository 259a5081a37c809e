"""
Linite Backend — Uninstall Route Handlers
==========================================

What:  POST /api/uninstall and POST /api/uninstall/script.
How:   Mirrors the install routes with UninstallRequest, which adds the
       includeDependencyCleanup and includeSetupCleanup flags.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from linite.database import get_db_session
from linite.schemas.commands import ErrorResponse, UninstallRequest, UninstallResponse
from linite.services.generator_service import generator_service
from linite.services.script_builder import build_uninstall_script

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Uninstall"])

_ERROR_RESPONSES = {
    404: {"description": "Unknown distro, or none of the apps exist", "model": ErrorResponse},
    422: {"description": "Distro has no package sources, or invalid body", "model": ErrorResponse},
    429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    500: {"description": "Catalog could not be read", "model": ErrorResponse},
}


@router.post(
    "/uninstall",
    response_model=UninstallResponse,
    response_model_by_alias=True,
    responses=_ERROR_RESPONSES,
    summary="Generate uninstall commands",
    description=(
        "Resolves packages exactly like /api/generate and returns removal "
        "commands. Sources that cannot uninstall, and nix-shell installs, are "
        "reported as warnings; script installs without an uninstall script "
        "come back as manual steps."
    ),
)
async def generate_uninstall(
    body: UninstallRequest,
    db: AsyncSession = Depends(get_db_session),
) -> UninstallResponse:
    logger.info(
        "Uninstall request: distro=%s apps=%d dependency_cleanup=%s setup_cleanup=%s",
        body.distro_slug,
        len(body.app_ids),
        body.include_dependency_cleanup,
        body.include_setup_cleanup,
    )
    return await generator_service.generate_uninstall(db, body)


@router.post(
    "/uninstall/script",
    response_class=PlainTextResponse,
    responses=_ERROR_RESPONSES,
    summary="Download an uninstall script",
)
async def generate_uninstall_script(
    body: UninstallRequest,
    db: AsyncSession = Depends(get_db_session),
) -> PlainTextResponse:
    result = await generator_service.generate_uninstall(db, body)
    script = build_uninstall_script(body.distro_slug, result)
    return PlainTextResponse(
        content=script.content,
        media_type=script.media_type,
        headers={"Content-Disposition": f'attachment; filename="{script.filename}"'},
    )
