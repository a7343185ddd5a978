"""Local folder feeds: flat ``*.nupkg`` directories or ``id/version/`` layouts."""
from __future__ import annotations

import asyncio
import logging
import os
import urllib.parse
from glob import glob
from typing import Dict, List, Optional, Set, Tuple

from versioning import NuGetVersion, try_parse_version
from .errors import FatalProtocolError
from .models import PackageSource, SearchMetadata

logger = logging.getLogger(__name__)


def _source_path(source: str) -> str:
    """Turn a ``file://`` URI or plain path into a filesystem path."""
    if source.lower().startswith("file:"):
        return urllib.parse.unquote(urllib.parse.urlsplit(source).path)
    return os.path.expanduser(source)


def split_nupkg_name(file_name: str) -> Optional[Tuple[str, NuGetVersion]]:
    """Split ``Some.Package.1.2.3-beta.nupkg`` into id and version.

    The id ends at the first dot-separated part that starts a valid version.
    """
    if not file_name.lower().endswith(".nupkg") or file_name.lower().endswith(".symbols.nupkg"):
        return None
    parts = file_name[:-len(".nupkg")].split(".")
    for i in range(1, len(parts)):
        if not parts[i].isdigit():
            continue
        version = try_parse_version(".".join(parts[i:]))
        if version is not None:
            return ".".join(parts[:i]), version
    return None


class LocalFolderRepository:
    """Repository handle backed by a directory on disk."""

    def __init__(self, source: PackageSource):
        self.source = source
        self.root = _source_path(source.source)

    def _scan(self) -> Dict[str, Tuple[str, Set[NuGetVersion]]]:
        """Map lower-cased id to (display id, versions)."""
        if not os.path.isdir(self.root):
            raise FatalProtocolError(
                f"{self.source.name}: local feed not found at {self.root}", self.source.source
            )
        packages: Dict[str, Tuple[str, Set[NuGetVersion]]] = {}

        def _add(package_id: str, version: NuGetVersion) -> None:
            entry = packages.setdefault(package_id.lower(), (package_id, set()))
            entry[1].add(version)

        try:
            for nupkg in glob(os.path.join(self.root, "*.nupkg")):
                parsed = split_nupkg_name(os.path.basename(nupkg))
                if parsed:
                    _add(*parsed)

            for id_dir in sorted(os.listdir(self.root)):
                id_path = os.path.join(self.root, id_dir)
                if not os.path.isdir(id_path):
                    continue
                for version_dir in os.listdir(id_path):
                    version = try_parse_version(version_dir)
                    if version is None or not os.path.isdir(os.path.join(id_path, version_dir)):
                        continue
                    nuspecs = glob(os.path.join(id_path, version_dir, "*.nuspec"))
                    display_id = os.path.splitext(os.path.basename(nuspecs[0]))[0] if nuspecs else id_dir
                    _add(display_id, version)
        except OSError as exc:
            # Unreadable feed or a directory removed mid-scan
            raise FatalProtocolError(
                f"{self.source.name}: cannot read local feed at {self.root}: {exc}", self.source.source
            ) from exc
        return packages

    async def search(self, term: str, include_prerelease: bool, take: int) -> List[SearchMetadata]:
        packages = await asyncio.to_thread(self._scan)
        needle = term.strip().lower()
        results: List[SearchMetadata] = []
        for key in sorted(packages):
            if needle and needle not in key:
                continue
            package_id, versions = packages[key]
            eligible = sorted(
                (v for v in versions if include_prerelease or not v.is_prerelease), reverse=True
            )
            if not eligible:
                continue
            results.append(SearchMetadata(id=package_id, version=eligible[0], versions=tuple(eligible)))
            if len(results) >= take:
                break
        logger.debug("Local feed %s matched %d packages", self.source.name, len(results))
        return results

    async def get_versions(self, package_id: str, include_prerelease: bool) -> List[NuGetVersion]:
        packages = await asyncio.to_thread(self._scan)
        entry = packages.get(package_id.lower())
        if entry is None:
            return []
        return [v for v in entry[1] if include_prerelease or not v.is_prerelease]

    async def close(self) -> None:
        return None
