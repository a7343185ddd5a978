"""Data models for restore requests, outcomes and resolved references."""

import os
from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple, Tuple

from constants import Constants
from registry.nuget.models import PackageSource
from versioning import TargetFramework, VersionRange, parse_version


class RestoreState(Enum):
    """Restore session states."""
    IDLE = "idle"
    RESTORING = "restoring"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class PackageReference:
    """A requested package: id plus allowed version range."""
    id: str
    version_range: VersionRange

    def __str__(self) -> str:
        return f"{self.id}@{self.version_range}"


@dataclass(frozen=True)
class PackageDependency:
    """A dependency entry of the restore request's target framework."""
    id: str
    version_range: VersionRange
    is_platform: bool = False
    auto_referenced: bool = False


@dataclass(frozen=True)
class RestoreRequest:
    """Everything the restore engine needs for one attempt."""
    project_name: str
    target_framework: TargetFramework
    output_path: str
    packages_path: str
    config_file_paths: Tuple[str, ...] = ()
    sources: Tuple[PackageSource, ...] = ()
    package_references: Tuple[PackageReference, ...] = ()

    @property
    def assets_file_path(self) -> str:
        """Where the engine writes the lock manifest."""
        return os.path.join(self.output_path, Constants.ASSETS_FILE_NAME)

    def dependencies(self) -> Tuple[PackageDependency, ...]:
        """Framework dependencies, including the implicit platform package."""
        deps: List[PackageDependency] = []
        if self.target_framework.is_netcoreapp:
            deps.append(PackageDependency(
                id=Constants.PLATFORM_PACKAGE_NETCOREAPP,
                version_range=VersionRange(min_version=parse_version(self.target_framework.version_string)),
                is_platform=True,
                auto_referenced=True,
            ))
        deps.extend(PackageDependency(ref.id, ref.version_range) for ref in self.package_references)
        return tuple(deps)


@dataclass(frozen=True)
class RestoreOutcome:
    """Result reported by the restore engine."""
    success: bool
    no_op: bool = False
    errors: Tuple[str, ...] = ()


class ResolvedReferences(NamedTuple):
    """Artifact paths extracted from the lock manifest."""
    compile: List[str]
    runtime: List[str]
