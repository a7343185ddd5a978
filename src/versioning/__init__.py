"""NuGet versions, version ranges and target framework monikers."""

from .models import NuGetVersion, TargetFramework, VersionRange
from .parser import (
    order_versions,
    parse_framework,
    parse_range,
    parse_version,
    try_parse_version,
)

__all__ = [
    "NuGetVersion",
    "TargetFramework",
    "VersionRange",
    "order_versions",
    "parse_framework",
    "parse_range",
    "parse_version",
    "try_parse_version",
]
