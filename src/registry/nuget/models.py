"""Data models shared by NuGet source repositories and search federation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

from versioning import NuGetVersion


@dataclass(frozen=True, eq=False)
class PackageSource:
    """A configured package feed.

    Two sources are equal when their names and locations match
    case-insensitively; ``enabled`` and ``position`` do not take part.
    """
    name: str
    source: str
    enabled: bool = True
    position: int = 0
    protocol_version: Optional[int] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.name.lower(), self.source.lower())

    @property
    def is_http(self) -> bool:
        return self.source.lower().startswith(("http://", "https://"))

    @property
    def is_local(self) -> bool:
        return not self.is_http

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageSource):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


@dataclass(frozen=True)
class SearchMetadata:
    """One search hit as returned by a source, before version hydration."""
    id: str
    version: NuGetVersion
    versions: Tuple[NuGetVersion, ...] = ()
    description: Optional[str] = None
    total_downloads: Optional[int] = None


@dataclass(frozen=True)
class PackageSummary:
    """A search result ready for display.

    ``other_versions`` lists the latest stable version first, then the
    remaining versions in descending order.
    """
    id: str
    version: NuGetVersion
    other_versions: Tuple[NuGetVersion, ...] = field(default_factory=tuple)
    description: Optional[str] = None

    @property
    def versions(self) -> List[str]:
        return [str(v) for v in self.other_versions]


class SourceRepository(Protocol):
    """Connection to a single package source."""

    source: PackageSource

    async def search(self, term: str, include_prerelease: bool, take: int) -> List[SearchMetadata]:
        """Return at most ``take`` hits for ``term``.

        Raises:
            FatalProtocolError: If the source cannot be queried.
        """

    async def get_versions(self, package_id: str, include_prerelease: bool) -> List[NuGetVersion]:
        """Return every published version of ``package_id``.

        Raises:
            FatalProtocolError: If the source cannot be queried.
        """

    async def close(self) -> None:
        """Release network resources held by the repository."""
