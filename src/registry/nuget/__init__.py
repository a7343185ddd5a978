"""NuGet registry package.

This package provides package-source access for restore sessions:
- settings.py: NuGet.Config discovery (sources, disabled sources, global packages folder)
- sources.py: ordered source registry with one cached repository handle per source
- client.py: HTTP interactions with the NuGet V3 API (search, version listing)
- local.py: local folder feeds
- search.py: federated search across sources in priority order
- service.py: facade owning settings, registry and search (imported directly)
"""

from .errors import FatalProtocolError, RestorePadError, SettingsError
from .models import PackageSource, PackageSummary, SearchMetadata, SourceRepository
from .search import SearchFederator, narrow_exact
from .settings import NuGetSettings
from .sources import SourceRegistry, create_repository

__all__ = [
    # Errors
    "FatalProtocolError",
    "RestorePadError",
    "SettingsError",
    # Models
    "PackageSource",
    "PackageSummary",
    "SearchMetadata",
    "SourceRepository",
    # Sources and search
    "NuGetSettings",
    "SearchFederator",
    "SourceRegistry",
    "create_repository",
    "narrow_exact",
]
