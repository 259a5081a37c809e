"""
Linite Backend — Priority Resolver
===================================

What:  Picks exactly one package per app for a distro.
How:   Every available package whose source is configured for the distro is
       a candidate. Each candidate is scored:

           score = distro source priority (absent → 0)
                 + 100  if the source is the user's preferred source
                 +   5  if the source is the distro's default

       The highest score wins. Ties go to the alphabetically first source
       slug, then the lowest package id, so the choice never depends on the
       order rows came back from the store.

Apps with no candidate are reported as per-app errors and skipped; the rest of
the batch is still resolved.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from linite.schemas.catalog import (
    CatalogApp,
    CatalogPackage,
    DistroCatalog,
    DistroSourceConfig,
    ResolvedSelection,
)
from linite.schemas.commands import AppError, AppErrorReason

logger = logging.getLogger(__name__)

USER_PREFERENCE_BOOST = 100
DEFAULT_SOURCE_BOOST = 5


@dataclass
class ResolutionResult:
    selections: List[ResolvedSelection] = field(default_factory=list)
    errors: List[AppError] = field(default_factory=list)


def calculate_priority(
    distro_source_priority: Optional[int],
    is_default: Optional[bool],
    source_slug: str,
    source_preference: Optional[str] = None,
) -> int:
    """
    Score one candidate package.

    >>> calculate_priority(10, True, "apt")
    15
    >>> calculate_priority(5, False, "flatpak", "flatpak")
    105
    """
    score = distro_source_priority or 0
    if source_preference and source_slug == source_preference:
        score += USER_PREFERENCE_BOOST
    if is_default is True:
        score += DEFAULT_SOURCE_BOOST
    return score


def build_source_map(distro: DistroCatalog) -> Dict[str, DistroSourceConfig]:
    """Index the distro's configured sources by slug."""
    return {ds.source.slug: ds for ds in distro.sources}


def select_best_package(
    packages: Sequence[CatalogPackage],
    source_map: Dict[str, DistroSourceConfig],
    source_preference: Optional[str] = None,
) -> Optional[Tuple[CatalogPackage, int]]:
    """
    Return `(package, score)` for the winning candidate, or None.

    Packages from sources the distro does not configure are not candidates.
    """
    scored = []
    for package in packages:
        distro_source = source_map.get(package.source.slug)
        if distro_source is None:
            continue
        score = calculate_priority(
            distro_source.priority,
            distro_source.is_default,
            package.source.slug,
            source_preference,
        )
        scored.append((score, package))

    if not scored:
        return None

    score, package = min(scored, key=lambda c: (-c[0], c[1].source.slug, c[1].id))
    return package, score


def resolve_selections(
    distro: DistroCatalog,
    apps: Sequence[CatalogApp],
    source_preference: Optional[str] = None,
) -> ResolutionResult:
    """
    Resolve one package per app for `distro`.

    Args:
        distro: Distro snapshot with at least one configured source
        apps: Apps in request order
        source_preference: Optional source slug to boost

    Returns:
        ResolutionResult with selections in app order plus per-app errors.
    """
    source_map = build_source_map(distro)
    result = ResolutionResult()

    if source_preference and source_preference not in source_map:
        logger.debug(
            "Source preference '%s' is not configured for %s; ignoring it",
            source_preference,
            distro.slug,
        )

    for app in apps:
        best = select_best_package(app.packages, source_map, source_preference)
        if best is None:
            result.errors.append(
                AppError(
                    app_id=app.id,
                    reason=AppErrorReason.NO_AVAILABLE_PACKAGE,
                    message=f"{app.display_name}: No package available for {distro.name}",
                )
            )
            continue

        package, score = best
        result.selections.append(
            ResolvedSelection(
                app_id=app.id,
                app_name=app.display_name,
                distro_id=distro.id,
                package=package,
                calculated_priority=score,
            )
        )

    logger.debug(
        "Resolved %d/%d apps for %s",
        len(result.selections),
        len(apps),
        distro.slug,
    )
    return result
