"""Source registry: ordered package sources and one repository handle per source."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List

from common.logging_utils import extra_context, is_debug_enabled, safe_url
from .models import PackageSource, SourceRepository

logger = logging.getLogger(__name__)

RepositoryFactory = Callable[[PackageSource], SourceRepository]


def create_repository(source: PackageSource) -> SourceRepository:
    """Build the repository type matching the source location."""
    # Imported here so the registry can be used with a custom factory
    # without pulling in aiohttp
    if source.is_http:
        from .client import HttpSourceRepository  # pylint: disable=import-outside-toplevel
        return HttpSourceRepository(source)
    from .local import LocalFolderRepository  # pylint: disable=import-outside-toplevel
    return LocalFolderRepository(source)


def dedupe_sources(sources: Iterable[PackageSource]) -> List[PackageSource]:
    """Order sources by position and drop repeated locations (first wins)."""
    seen = set()
    result: List[PackageSource] = []
    for source in sorted(sources, key=lambda s: s.position):
        location = source.source.rstrip("/").lower()
        if location in seen:
            logger.debug("Skipping duplicate package source %s", source.name)
            continue
        seen.add(location)
        result.append(source)
    return result


class SourceRegistry:
    """Holds the configured sources and caches repository handles.

    ``handle_for`` is safe to call from any thread: concurrent callers for
    equal sources always observe the same handle.
    """

    def __init__(
        self,
        sources: Iterable[PackageSource],
        repository_factory: RepositoryFactory = create_repository,
    ):
        self._sources = dedupe_sources(sources)
        self._factory = repository_factory
        self._handles: Dict[PackageSource, SourceRepository] = {}
        self._lock = threading.Lock()

    @property
    def sources(self) -> List[PackageSource]:
        """Enabled sources in configured order."""
        return [s for s in self._sources if s.enabled]

    def repositories(self) -> List[SourceRepository]:
        """Return one handle per enabled source, in configured order."""
        return [self.handle_for(source) for source in self.sources]

    def handle_for(self, source: PackageSource) -> SourceRepository:
        """Return the cached handle for ``source``, creating it on first use."""
        handle = self._handles.get(source)
        if handle is not None:
            return handle
        with self._lock:
            handle = self._handles.get(source)
            if handle is None:
                if is_debug_enabled(logger):
                    logger.debug("Creating source repository", extra=extra_context(
                        event="function_entry", component="sources", action="handle_for",
                        target=safe_url(source.source)
                    ))
                handle = self._factory(source)
                self._handles[source] = handle
            return handle

    async def close(self) -> None:
        """Close every repository handle created so far."""
        with self._lock:
            handles = list(self._handles.values())
        for handle in handles:
            await handle.close()
