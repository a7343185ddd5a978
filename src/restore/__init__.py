"""Restore package: reference tracking, restore engine boundary and manifest reading.

The session and document modules depend on registry.nuget.service and are
imported directly (``from restore.session import RestoreSession``).
"""

from .engine import DotnetRestoreEngine, RestoreEngine, aggregate_outcomes
from .events import SessionListener
from .lockfile import LockManifest, LockManifestError, parse_lock_manifest, read_lock_manifest
from .models import (
    PackageDependency,
    PackageReference,
    ResolvedReferences,
    RestoreOutcome,
    RestoreRequest,
    RestoreState,
)
from .references import ReferenceSetTracker, load_references_file, parse_reference_token

__all__ = [
    "DotnetRestoreEngine",
    "LockManifest",
    "LockManifestError",
    "PackageDependency",
    "PackageReference",
    "ReferenceSetTracker",
    "ResolvedReferences",
    "RestoreEngine",
    "RestoreOutcome",
    "RestoreRequest",
    "RestoreState",
    "SessionListener",
    "aggregate_outcomes",
    "load_references_file",
    "parse_lock_manifest",
    "parse_reference_token",
    "read_lock_manifest",
]
