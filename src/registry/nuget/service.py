"""NuGet service facade: settings, source registry, search and restore requests.

Settings are loaded once at construction. A failure there is kept and
raised again on every later use, leaving the service unusable.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from constants import Constants
from common.logging_utils import extra_context
from restore.models import PackageReference, RestoreRequest
from versioning import TargetFramework
from .models import PackageSummary
from .search import SearchFederator
from .settings import NuGetSettings
from .sources import RepositoryFactory, SourceRegistry, create_repository

logger = logging.getLogger(__name__)

SettingsLoader = Callable[[Optional[str]], NuGetSettings]


class NuGetService:
    """Process-level entry point shared by every document session."""

    def __init__(
        self,
        root: Optional[str] = None,
        settings_loader: SettingsLoader = NuGetSettings.load,
        repository_factory: RepositoryFactory = create_repository,
        max_results: int = Constants.MAX_SEARCH_RESULTS,
    ):
        """Load settings and build the source registry.

        Args:
            root: Directory the NuGet.Config search starts from.
            settings_loader: Loads settings for ``root``.
            repository_factory: Creates a repository handle per source.
            max_results: Page size requested from each source.
        """
        self._initialization_error: Optional[Exception] = None
        self._settings: Optional[NuGetSettings] = None
        self._registry: Optional[SourceRegistry] = None
        self._federator: Optional[SearchFederator] = None
        try:
            self._settings = settings_loader(root)
            self._registry = SourceRegistry(self._settings.package_sources, repository_factory)
            self._federator = SearchFederator(self._registry, max_results)
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("NuGet initialization failed: %s", e, extra=extra_context(
                event="anomaly", component="service", action="initialize", outcome="error"
            ))
            self._initialization_error = e

    def _ensure_initialized(self) -> None:
        if self._initialization_error is not None:
            raise self._initialization_error

    @property
    def initialization_error(self) -> Optional[Exception]:
        """Error raised while loading settings, or None when the service is usable."""
        return self._initialization_error

    @property
    def settings(self) -> NuGetSettings:
        """Loaded NuGet settings.

        Raises:
            Exception: The initialization error, if settings failed to load.
        """
        self._ensure_initialized()
        return self._settings

    @property
    def registry(self) -> SourceRegistry:
        """Source registry built from the enabled package sources.

        Raises:
            Exception: The initialization error, if settings failed to load.
        """
        self._ensure_initialized()
        return self._registry

    @property
    def global_packages_folder(self) -> str:
        """Folder packages are restored into."""
        return self.settings.global_packages_folder

    async def search(self, term: str, include_prerelease: bool, exact_match: bool) -> List[PackageSummary]:
        """Search configured sources in priority order.

        Args:
            term: Search term.
            include_prerelease: Include prerelease versions.
            exact_match: Keep only a package whose id equals the term.

        Returns:
            Summaries from the first source with matching packages.

        Raises:
            Exception: The initialization error, if settings failed to load.
        """
        self._ensure_initialized()
        return await self._federator.search(term, include_prerelease, exact_match)

    def create_restore_request(
        self,
        project_name: str,
        target_framework: TargetFramework,
        output_path: str,
        packages: Iterable[PackageReference],
    ) -> RestoreRequest:
        """Build a fresh request from the current sources and config files.

        Args:
            project_name: Name of the scratch project.
            target_framework: Framework to restore for.
            output_path: Directory the engine writes the project and manifest to.
            packages: Direct package references.

        Returns:
            RestoreRequest with the packages folder, config files and sources filled in.
        """
        settings = self.settings
        return RestoreRequest(
            project_name=project_name,
            target_framework=target_framework,
            output_path=output_path,
            packages_path=settings.global_packages_folder,
            config_file_paths=tuple(settings.config_file_paths),
            sources=tuple(self._registry.sources),
            package_references=tuple(packages),
        )

    async def close(self) -> None:
        """Close every repository handle opened so far."""
        if self._registry is not None:
            await self._registry.close()
