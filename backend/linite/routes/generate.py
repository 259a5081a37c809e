"""
Linite Backend — Install Route Handlers
========================================

What:  POST /api/generate and POST /api/generate/script.
How:   Validates the body (GenerateRequest), delegates to the generator
       service and returns JSON or a plain-text script attachment.
Who:   Called by the frontend's "generate commands" and "download script"
       actions.

Request Flow:
    1. FastAPI validates the JSON body (422 on schema violations)
    2. The generator service loads the catalog, resolves and synthesizes
    3. Per-app problems come back in `errors` / `warnings` with HTTP 200
    4. Fatal problems (unknown distro, no sources) go to the global handlers
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from linite.database import get_db_session
from linite.schemas.commands import ErrorResponse, GenerateRequest, GenerateResponse
from linite.services.generator_service import generator_service
from linite.services.script_builder import build_install_script

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Generate"])

_ERROR_RESPONSES = {
    404: {"description": "Unknown distro, or none of the apps exist", "model": ErrorResponse},
    422: {"description": "Distro has no package sources, or invalid body", "model": ErrorResponse},
    429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    500: {"description": "Catalog could not be read", "model": ErrorResponse},
}


@router.post(
    "/generate",
    response_model=GenerateResponse,
    response_model_by_alias=True,
    responses=_ERROR_RESPONSES,
    summary="Generate install commands",
    description=(
        "Resolves one package per app for the target distro (highest priority "
        "source wins, sourcePreference adds +100, the distro default +5) and "
        "returns batched install commands grouped by source."
    ),
)
async def generate_install(
    body: GenerateRequest,
    db: AsyncSession = Depends(get_db_session),
) -> GenerateResponse:
    logger.info(
        "Generate request: distro=%s apps=%d preference=%s",
        body.distro_slug,
        len(body.app_ids),
        body.source_preference or "-",
    )
    return await generator_service.generate_install(db, body)


@router.post(
    "/generate/script",
    response_class=PlainTextResponse,
    responses=_ERROR_RESPONSES,
    summary="Download an install script",
    description="Same as /api/generate, rendered as a bash (or PowerShell) script attachment.",
)
async def generate_install_script(
    body: GenerateRequest,
    db: AsyncSession = Depends(get_db_session),
) -> PlainTextResponse:
    result = await generator_service.generate_install(db, body)
    script = build_install_script(body.distro_slug, result)
    return PlainTextResponse(
        content=script.content,
        media_type=script.media_type,
        headers={"Content-Disposition": f'attachment; filename="{script.filename}"'},
    )
