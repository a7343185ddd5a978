"""Federated package search across the ordered package sources."""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer, safe_url
from versioning import order_versions
from .errors import FatalProtocolError
from .models import PackageSummary, SearchMetadata, SourceRepository
from .sources import SourceRegistry

logger = logging.getLogger(__name__)


def narrow_exact(results: List[SearchMetadata], term: str) -> List[SearchMetadata]:
    """Keep only the first hit whose id equals ``term`` case-insensitively.

    Exact matching only sees the first page a source returned, so a package
    ranked below the page size is reported as not found.
    """
    wanted = term.strip().lower()
    for hit in results:
        if hit.id.lower() == wanted:
            return [hit]
    return []


class SearchFederator:
    """Queries sources in priority order and stops at the first one with hits."""

    def __init__(self, registry: SourceRegistry, max_results: int = Constants.MAX_SEARCH_RESULTS):
        self._registry = registry
        self._max_results = max_results

    async def search(self, term: str, include_prerelease: bool, exact_match: bool) -> List[PackageSummary]:
        """Search for packages matching ``term``.

        Sources are queried one at a time; a source failing with a protocol
        error counts as empty. The first non-empty result set is hydrated
        with version lists, all packages concurrently, and returned.
        Cancelling the calling task aborts the search at the next await.
        """
        for repository in self._registry.repositories():
            results = await self._search_source(repository, term, include_prerelease)
            if exact_match:
                results = narrow_exact(results, term)
            if results:
                with Timer() as t:
                    summaries = await asyncio.gather(
                        *(self._hydrate(repository, hit, include_prerelease) for hit in results)
                    )
                if is_debug_enabled(logger):
                    logger.debug("Search completed", extra=extra_context(
                        event="complete", component="search", action="search",
                        outcome="success", count=len(summaries), duration_ms=t.duration_ms(),
                        target=safe_url(repository.source.source)
                    ))
                return list(summaries)
        return []

    async def _search_source(
        self, repository: SourceRepository, term: str, include_prerelease: bool
    ) -> List[SearchMetadata]:
        try:
            return await repository.search(term, include_prerelease, self._max_results)
        except FatalProtocolError as exc:
            logger.warning(
                "Skipping package source %s: %s",
                repository.source.name,
                exc,
                extra=extra_context(
                    event="http_response", component="search", action="search",
                    outcome="source_failed", target=safe_url(repository.source.source)
                ),
            )
            return []

    async def _hydrate(
        self, repository: SourceRepository, hit: SearchMetadata, include_prerelease: bool
    ) -> PackageSummary:
        versions: Optional[list] = None
        try:
            versions = await repository.get_versions(hit.id, include_prerelease)
        except FatalProtocolError as exc:
            logger.debug("Version listing failed for %s, using search data: %s", hit.id, exc)
        if not versions:
            versions = list(hit.versions) or [hit.version]
        return PackageSummary(
            id=hit.id,
            version=hit.version,
            other_versions=tuple(order_versions(versions, include_prerelease)),
            description=hit.description,
        )
