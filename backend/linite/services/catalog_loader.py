"""
Linite Backend — Catalog Loader
================================

What:  Reads one distro and a batch of apps from the package catalog and turns
       the ORM rows into immutable snapshot models.
Why:   The resolver and synthesizer are pure functions over snapshots. All I/O,
       retries and JSON parsing happen here, once per request.
How:   Two async queries with eager loading (selectinload) so nothing lazy-loads
       after the session is gone. Transient store failures are retried with
       tenacity; anything left over becomes a DatabaseError.
Who:   Called by CommandGeneratorService.

Load Flow:
    ┌──────────────┐    ┌───────────────────┐    ┌──────────────────┐
    │  SELECT      │───▶│  Retry transient  │───▶│  Map rows to     │
    │  + eager     │    │  OperationalError │    │  snapshot models │
    │  relations   │    │  (tenacity)       │    │  (parse JSON)    │
    └──────────────┘    └───────────────────┘    └──────────────────┘

A load either fully succeeds or raises; callers never see a partial catalog.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from linite.config import settings
from linite.exceptions import ConfigurationError, DatabaseError, NotFoundError
from linite.models.catalog import App, Distro, DistroSource, Package, Source
from linite.schemas.catalog import (
    CatalogApp,
    CatalogPackage,
    DistroCatalog,
    DistroSourceConfig,
    SourceConfig,
    UninstallMetadata,
)
from linite.services.command_templates import parse_command_template

logger = logging.getLogger(__name__)


def catalog_retry_wait(
    initial: float = settings.catalog_retry_min_wait,
    maximum: float = settings.catalog_retry_max_wait,
    jitter: float = settings.catalog_retry_jitter,
):
    """Exponential backoff from `initial`, capped at `maximum`, plus up to `jitter` seconds."""
    return wait_exponential(multiplier=initial, max=maximum) + wait_random(0, jitter)


_catalog_retry = retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(settings.catalog_retry_attempts),
    wait=catalog_retry_wait(),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


# ══════════════════════════════════════════════════════════════════════════
# Row → Snapshot Mapping
# ══════════════════════════════════════════════════════════════════════════

def _load_json(raw: Optional[str], where: str) -> Any:
    if raw is None or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Malformed JSON in %s ignored: %s", where, e)
        return None


def _script_urls(raw_metadata: Optional[str], where: str) -> Dict[str, str]:
    """Extract `scriptUrl.{linux,windows}` from a package's metadata column."""
    metadata = _load_json(raw_metadata, where)
    if not isinstance(metadata, dict):
        return {}
    urls = metadata.get("scriptUrl")
    if not isinstance(urls, dict):
        return {}
    return {str(os_name): url for os_name, url in urls.items() if isinstance(url, str) and url}


def _uninstall_metadata(raw: Optional[str], where: str) -> Optional[UninstallMetadata]:
    decoded = _load_json(raw, where)
    if decoded is None:
        return None
    if not isinstance(decoded, dict):
        logger.warning("Expected a JSON object in %s, got %s", where, type(decoded).__name__)
        return None
    try:
        return UninstallMetadata.model_validate(decoded)
    except SchemaValidationError as e:
        logger.warning("Invalid uninstall metadata in %s ignored: %s", where, e)
        return None


def to_source_config(source: Source) -> SourceConfig:
    where = f"source '{source.slug}'"
    return SourceConfig(
        id=source.id,
        name=source.name,
        slug=source.slug,
        install_cmd=source.install_cmd,
        remove_cmd=source.remove_cmd or None,
        require_sudo=bool(source.require_sudo),
        setup_cmd=parse_command_template(source.setup_cmd, f"{where} setup_cmd"),
        cleanup_cmd=parse_command_template(source.cleanup_cmd, f"{where} cleanup_cmd"),
        supports_dependency_cleanup=bool(source.supports_dependency_cleanup),
        dependency_cleanup_cmd=source.dependency_cleanup_cmd or None,
    )


def to_distro_catalog(distro: Distro) -> DistroCatalog:
    return DistroCatalog(
        id=distro.id,
        name=distro.name,
        slug=distro.slug,
        family=distro.family,
        sources=[
            DistroSourceConfig(
                source=to_source_config(ds.source),
                priority=ds.priority or 0,
                is_default=bool(ds.is_default),
            )
            for ds in distro.distro_sources
        ],
    )


def to_catalog_package(package: Package, source: SourceConfig) -> CatalogPackage:
    where = f"package '{package.id}'"
    return CatalogPackage(
        id=package.id,
        app_id=package.app_id,
        source=source,
        identifier=package.identifier,
        version=package.version,
        size=package.size,
        maintainer=package.maintainer,
        setup_cmd=parse_command_template(package.package_setup_cmd, f"{where} package_setup_cmd"),
        cleanup_cmd=parse_command_template(
            package.package_cleanup_cmd, f"{where} package_cleanup_cmd"
        ),
        script_urls=_script_urls(package.package_metadata, f"{where} metadata"),
        uninstall_metadata=_uninstall_metadata(
            package.uninstall_metadata, f"{where} uninstall_metadata"
        ),
    )


def to_catalog_app(app: App) -> CatalogApp:
    # Sources are shared between packages; parse each one once
    sources: Dict[str, SourceConfig] = {}
    packages = []
    for package in app.packages:
        if package.source_id not in sources:
            sources[package.source_id] = to_source_config(package.source)
        packages.append(to_catalog_package(package, sources[package.source_id]))
    return CatalogApp(id=app.id, display_name=app.display_name, packages=packages)


# ══════════════════════════════════════════════════════════════════════════
# Loader
# ══════════════════════════════════════════════════════════════════════════

class CatalogLoader:
    """
    Read-only access to the package catalog.

    Error Handling Strategy:
        OperationalError (connection dropped, server restarting) is retried.
        Once retries are exhausted, or for any other SQLAlchemy error, the
        failure is logged with its type and re-raised as DatabaseError so SQL
        never reaches the client.
    """

    async def load_distro(self, db: AsyncSession, slug: str) -> DistroCatalog:
        """
        Load a distro with its configured sources.

        Raises:
            NotFoundError: No distro has this slug (→ 404)
            ConfigurationError: The distro has no sources attached (→ 422)
            DatabaseError: The catalog could not be read (→ 500)
        """
        try:
            distro = await self._fetch_distro(db, slug)
        except SQLAlchemyError as e:
            logger.error("Catalog read failed for distro '%s': %s", slug, type(e).__name__)
            raise DatabaseError(context={"distro_slug": slug, "error_type": type(e).__name__})

        if distro is None:
            raise NotFoundError(resource="distro", resource_id=slug)
        if not distro.distro_sources:
            raise ConfigurationError(
                message=f"Distro '{slug}' has no package sources configured",
                context={"distro_slug": slug},
            )

        return to_distro_catalog(distro)

    async def load_apps(self, db: AsyncSession, app_ids: Sequence[str]) -> List[CatalogApp]:
        """
        Load apps with their available packages, in the order requested.

        Ids that match nothing are left out; the caller decides what to report
        for them.

        Raises:
            NotFoundError: None of the ids matched (→ 404)
            DatabaseError: The catalog could not be read (→ 500)
        """
        unique_ids = list(dict.fromkeys(app_ids))
        if not unique_ids:
            return []

        try:
            rows = await self._fetch_apps(db, unique_ids)
        except SQLAlchemyError as e:
            logger.error("Catalog read failed for %d apps: %s", len(unique_ids), type(e).__name__)
            raise DatabaseError(context={"app_count": len(unique_ids), "error_type": type(e).__name__})

        if not rows:
            raise NotFoundError(
                resource="apps",
                message="None of the requested apps were found",
                context={"app_ids": unique_ids},
            )

        by_id = {row.id: row for row in rows}
        return [to_catalog_app(by_id[app_id]) for app_id in unique_ids if app_id in by_id]

    @_catalog_retry
    async def _fetch_distro(self, db: AsyncSession, slug: str) -> Optional[Distro]:
        query = (
            select(Distro)
            .where(Distro.slug == slug)
            .options(selectinload(Distro.distro_sources).selectinload(DistroSource.source))
        )
        try:
            result = await db.execute(query)
        except OperationalError:
            await db.rollback()
            raise
        return result.scalar_one_or_none()

    @_catalog_retry
    async def _fetch_apps(self, db: AsyncSession, app_ids: List[str]) -> List[App]:
        query = (
            select(App)
            .where(App.id.in_(app_ids))
            .options(
                selectinload(App.packages.and_(Package.is_available.is_(True)))
                .selectinload(Package.source)
            )
            # Rows already in the session would otherwise keep unfiltered packages
            .execution_options(populate_existing=True)
        )
        try:
            result = await db.execute(query)
        except OperationalError:
            await db.rollback()
            raise
        return list(result.scalars().all())


catalog_loader = CatalogLoader()
