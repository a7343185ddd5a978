"""Reader for the restore engine's lock manifest (``project.assets.json``).

The manifest is parsed into a small typed form before any paths are
extracted. JSON objects are kept as ordered key/value pairs, so duplicate
target keys survive parsing and the first one wins on lookup.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer
from versioning import TargetFramework
from .models import ResolvedReferences

logger = logging.getLogger(__name__)

SECTION_NAMES = ("compile", "runtime")


class LockManifestError(ValueError):
    """The manifest is not valid JSON or does not have the expected shape."""


class _JsonObject(list):
    """Ordered (key, value) pairs of a JSON object."""


def _object(value: Any, where: str) -> _JsonObject:
    if value is None:
        return _JsonObject()
    if not isinstance(value, _JsonObject):
        raise LockManifestError(f"Expected a JSON object at {where}")
    return value


def _get(obj: _JsonObject, key: str) -> Any:
    for k, v in obj:
        if k == key:
            return v
    return None


@dataclass(frozen=True)
class LockPackage:
    """One resolved package of a target, with the paths of each section."""
    key: str
    compile: Tuple[str, ...] = ()
    runtime: Tuple[str, ...] = ()

    def section(self, name: str) -> Tuple[str, ...]:
        return getattr(self, name)


@dataclass(frozen=True)
class LockTarget:
    framework: str
    packages: Tuple[LockPackage, ...] = ()


@dataclass(frozen=True)
class LockManifest:
    version: Optional[int]
    targets: Tuple[LockTarget, ...] = ()

    def find_target(self, framework_key: str) -> Optional[LockTarget]:
        """Return the first target whose key equals ``framework_key`` exactly."""
        for target in self.targets:
            if target.framework == framework_key:
                return target
        return None


def parse_lock_manifest(text: str) -> LockManifest:
    """Parse manifest text into a LockManifest.

    Raises:
        LockManifestError: If the text is not JSON or has the wrong shape.
    """
    try:
        data = json.loads(text, object_pairs_hook=_JsonObject)
    except json.JSONDecodeError as e:
        raise LockManifestError(f"Invalid lock manifest JSON: {e}") from e
    root = _object(data, "root")

    version = _get(root, "version")
    targets: List[LockTarget] = []
    for framework, packages_value in _object(_get(root, "targets"), "targets"):
        packages: List[LockPackage] = []
        for package_key, package_value in _object(packages_value, f"targets.{framework}"):
            package_obj = _object(package_value, f"targets.{framework}.{package_key}")
            sections = {
                name: tuple(path for path, _ in _object(_get(package_obj, name), f"{package_key}.{name}"))
                for name in SECTION_NAMES
            }
            packages.append(LockPackage(key=package_key, **sections))
        targets.append(LockTarget(framework=framework, packages=tuple(packages)))

    return LockManifest(version=version if isinstance(version, int) else None, targets=tuple(targets))


def is_placeholder(relative_path: str) -> bool:
    """True for the ``_._`` marker meaning "no real asset"."""
    name = relative_path.replace("\\", "/").rsplit("/", 1)[-1]
    return name == Constants.PLACEHOLDER_FILE_NAME


def resolve_references(manifest: LockManifest, root_dir: str, framework_key: str) -> ResolvedReferences:
    """Collect compile and runtime paths for ``framework_key``.

    Each package's install root is ``root_dir/<package key>``. An absent
    target yields empty lists.
    """
    compile_paths: List[str] = []
    runtime_paths: List[str] = []
    target = manifest.find_target(framework_key)
    if target is not None:
        for package in target.packages:
            package_root = os.path.join(root_dir, package.key)
            for name, items in (("compile", compile_paths), ("runtime", runtime_paths)):
                for relative_path in package.section(name):
                    if is_placeholder(relative_path):
                        continue
                    items.append(os.path.normpath(os.path.join(package_root, relative_path)))
    return ResolvedReferences(compile=compile_paths, runtime=runtime_paths)


def load_lock_manifest(manifest_path: str) -> LockManifest:
    """Read and parse the manifest file.

    Raises:
        OSError: If the file cannot be read.
        LockManifestError: If the manifest is malformed.
    """
    with open(manifest_path, "r", encoding="utf-8") as f:
        return parse_lock_manifest(f.read())


def framework_keys(framework: TargetFramework) -> Tuple[str, ...]:
    """Target keys a manifest may use for ``framework``, full name first."""
    return (framework.dotnet_framework_name, framework.short_folder_name)


def read_for_framework(manifest_path: str, root_dir: str, framework: TargetFramework) -> ResolvedReferences:
    """Like read_lock_manifest, trying each key in framework_keys()."""
    with Timer() as t:
        manifest = load_lock_manifest(manifest_path)
        key = next((k for k in framework_keys(framework) if manifest.find_target(k) is not None), None)
        if key is None:
            result = ResolvedReferences(compile=[], runtime=[])
        else:
            result = resolve_references(manifest, root_dir, key)
    if is_debug_enabled(logger):
        logger.debug("Lock manifest read", extra=extra_context(
            event="parse", component="lockfile", action="read_for_framework",
            outcome="success" if key else "no_target",
            count=len(result.compile) + len(result.runtime),
            duration_ms=t.duration_ms(), target=str(framework)
        ))
    return result


def read_lock_manifest(manifest_path: str, root_dir: str, framework_key: str) -> ResolvedReferences:
    """Read ``manifest_path`` and return the compile/runtime paths for one framework.

    Raises:
        OSError: If the file cannot be read.
        LockManifestError: If the manifest is malformed.
    """
    with Timer() as t:
        manifest = load_lock_manifest(manifest_path)
        result = resolve_references(manifest, root_dir, framework_key)
    if is_debug_enabled(logger):
        logger.debug("Lock manifest read", extra=extra_context(
            event="parse", component="lockfile", action="read_lock_manifest",
            outcome="success" if manifest.find_target(framework_key) else "no_target",
            count=len(result.compile) + len(result.runtime),
            duration_ms=t.duration_ms(), target=framework_key
        ))
    return result
