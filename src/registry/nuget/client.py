"""NuGet V3 HTTP client: search and version listing for a single package source."""
from __future__ import annotations

import asyncio
import logging
import urllib.parse
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer, safe_url
from versioning import NuGetVersion, try_parse_version
from .errors import FatalProtocolError
from .models import PackageSource, SearchMetadata

logger = logging.getLogger(__name__)

# Shared HTTP JSON headers for this module
HEADERS_JSON = {"Accept": "application/json"}


def _parse_search_hit(hit: Dict[str, Any]) -> Optional[SearchMetadata]:
    """Convert one ``data`` entry of a V3 search response."""
    package_id = hit.get("id")
    version = try_parse_version(hit.get("version"))
    if not package_id or version is None:
        return None
    versions = []
    for entry in hit.get("versions") or []:
        if isinstance(entry, dict):
            parsed = try_parse_version(entry.get("version"))
            if parsed is not None:
                versions.append(parsed)
    downloads = hit.get("totalDownloads")
    return SearchMetadata(
        id=package_id,
        version=version,
        versions=tuple(versions),
        description=hit.get("description"),
        total_downloads=downloads if isinstance(downloads, int) else None,
    )


class HttpSourceRepository:
    """Repository handle for a remote NuGet V3 feed.

    The service index is fetched once per handle. The aiohttp session is
    created lazily and re-created when used from a different event loop.
    """

    def __init__(
        self,
        source: PackageSource,
        timeout: int = Constants.REQUEST_TIMEOUT,
        session_factory: Optional[Callable[[], aiohttp.ClientSession]] = None,
    ):
        self.source = source
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session_factory = session_factory or self._create_session
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None
        self._service_index: Optional[Dict[str, Any]] = None

    def _create_session(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(timeout=self._timeout, headers=HEADERS_JSON)

    async def _get_session(self) -> aiohttp.ClientSession:
        loop = asyncio.get_running_loop()
        if self._session is None or self._session.closed or self._session_loop is not loop:
            if self._session is not None and not self._session.closed:
                await self._close_stale_session(self._session)
            self._session = self._session_factory()
            self._session_loop = loop
        return self._session

    async def _close_stale_session(self, session: aiohttp.ClientSession) -> None:
        """Close a session left behind by an earlier event loop.

        Its transports may belong to a loop that is already closed, in which
        case closing fails and the session is dropped as is.
        """
        try:
            await session.close()
        except RuntimeError as exc:
            logger.debug("Could not close stale session for %s: %s", self.source.name, exc)

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, str]] = None,
        allow_missing: bool = False,
    ) -> Any:
        """GET ``url`` and decode JSON, mapping every failure to FatalProtocolError."""
        session = await self._get_session()
        target = safe_url(url)
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug("HTTP request", extra=extra_context(
                    event="http_request", component="client", action="GET", target=target
                ))
            try:
                async with session.get(url, params=params) as response:
                    if allow_missing and response.status == 404:
                        return None
                    if response.status != 200:
                        raise FatalProtocolError(
                            f"{self.source.name}: HTTP {response.status} from {target}",
                            self.source.source,
                        )
                    data = await response.json(content_type=None)
            except aiohttp.ClientError as exc:
                raise FatalProtocolError(
                    f"{self.source.name}: connection error for {target}: {exc}", self.source.source
                ) from exc
            except asyncio.TimeoutError as exc:
                raise FatalProtocolError(
                    f"{self.source.name}: request timed out after {self._timeout.total} seconds",
                    self.source.source,
                ) from exc
            except ValueError as exc:
                raise FatalProtocolError(
                    f"{self.source.name}: malformed JSON from {target}", self.source.source
                ) from exc
            if is_debug_enabled(logger):
                logger.debug("HTTP response ok", extra=extra_context(
                    event="http_response", component="client", action="GET",
                    outcome="success", duration_ms=t.duration_ms(), target=target
                ))
            return data

    async def _resource_url(self, resource_types: List[str]) -> Optional[str]:
        """Find the first advertised resource of the preferred types."""
        if self._service_index is None:
            index = await self._get_json(self.source.source)
            if not isinstance(index, dict):
                raise FatalProtocolError(
                    f"{self.source.name}: service index is not a JSON object", self.source.source
                )
            self._service_index = index
        resources = self._service_index.get("resources") or []
        for resource_type in resource_types:
            for resource in resources:
                if isinstance(resource, dict) and resource.get("@type") == resource_type:
                    url = resource.get("@id")
                    if url:
                        return url
        return None

    async def search(self, term: str, include_prerelease: bool, take: int) -> List[SearchMetadata]:
        search_url = await self._resource_url(Constants.SEARCH_RESOURCE_TYPES)
        if not search_url:
            return []
        params = {
            "q": term,
            "skip": "0",
            "take": str(take),
            "prerelease": "true" if include_prerelease else "false",
            "semVerLevel": Constants.SEMVER_LEVEL,
        }
        data = await self._get_json(search_url, params=params)
        if not isinstance(data, dict) or not isinstance(data.get("data", []), list):
            raise FatalProtocolError(
                f"{self.source.name}: unexpected search response", self.source.source
            )
        hits = [_parse_search_hit(hit) for hit in data.get("data", []) if isinstance(hit, dict)]
        return [hit for hit in hits if hit is not None][:take]

    async def get_versions(self, package_id: str, include_prerelease: bool) -> List[NuGetVersion]:
        base_url = await self._resource_url(Constants.PACKAGE_BASE_ADDRESS_TYPES)
        if not base_url:
            raise FatalProtocolError(
                f"{self.source.name}: no PackageBaseAddress resource", self.source.source
            )
        encoded_id = urllib.parse.quote(package_id.lower(), safe="")
        data = await self._get_json(f"{base_url.rstrip('/')}/{encoded_id}/index.json", allow_missing=True)
        if data is None:
            return []
        if not isinstance(data, dict):
            raise FatalProtocolError(
                f"{self.source.name}: unexpected version index for {package_id}", self.source.source
            )
        versions = [try_parse_version(v) for v in data.get("versions") or [] if isinstance(v, str)]
        return [
            v for v in versions
            if v is not None and (include_prerelease or not v.is_prerelease)
        ]

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None
