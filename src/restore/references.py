"""Reference set tracking and parsing of package reference inputs."""
from __future__ import annotations

import logging
from typing import Any, Callable, FrozenSet, Iterable, List, Optional, Set, Tuple

import yaml

from versioning import TargetFramework, parse_framework, parse_range
from .models import PackageReference

logger = logging.getLogger(__name__)


def parse_reference_token(token: str) -> PackageReference:
    """Parse ``Id@range`` (or ``Id`` alone, meaning any version from 0.0.0).

    Raises:
        ValueError: If the id is empty or the range is invalid.
    """
    if "@" in token:
        package_id, spec = token.split("@", 1)
    else:
        package_id, spec = token, "0.0.0"
    package_id = package_id.strip()
    if not package_id:
        raise ValueError(f"Package id is required: '{token}'")
    return PackageReference(package_id, parse_range(spec.strip() or "0.0.0"))


def load_references_file(path: str) -> Tuple[Optional[str], List[PackageReference]]:
    """Load a YAML references file.

    Expected shape::

        framework: net8.0
        packages:
          - id: Newtonsoft.Json
            version: "[13.0.1, )"

    Returns:
        Tuple of (framework moniker or None, package references)

    Raises:
        ValueError: If the document does not have the expected shape.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return None, []
    if not isinstance(data, dict):
        raise ValueError(f"References file must contain a mapping: {path}")
    framework = data.get("framework")
    entries = data.get("packages") or []
    if not isinstance(entries, list):
        raise ValueError(f"'packages' must be a list in {path}")
    references: List[PackageReference] = []
    for entry in entries:
        references.append(_reference_from_entry(entry))
    return (str(framework) if framework else None), references


def _reference_from_entry(entry: Any) -> PackageReference:
    if isinstance(entry, str):
        return parse_reference_token(entry)
    if isinstance(entry, dict) and entry.get("id"):
        version = entry.get("version")
        return PackageReference(str(entry["id"]).strip(), parse_range(str(version) if version else "0.0.0"))
    raise ValueError(f"Invalid package entry: {entry!r}")


class ReferenceSetTracker:
    """Holds the requested package references and the target framework.

    ``on_change`` is invoked whenever the set changes and whenever the target
    framework is set. The first ``update`` always counts as a change.
    """

    def __init__(self, on_change: Callable[[], None]):
        self._on_change = on_change
        self._references: Optional[Set[PackageReference]] = None
        self._target_framework: Optional[TargetFramework] = None

    @property
    def references(self) -> FrozenSet[PackageReference]:
        return frozenset(self._references or ())

    @property
    def target_framework(self) -> Optional[TargetFramework]:
        return self._target_framework

    def snapshot(self) -> Tuple[PackageReference, ...]:
        """Copy of the current references in a stable order."""
        return tuple(sorted(self._references or (), key=lambda r: (r.id.lower(), str(r.version_range))))

    def update(self, packages: Optional[Iterable[PackageReference]]) -> bool:
        """Replace the reference set, returning True when it changed."""
        new_set = set(packages or ())
        if self._references is None:
            self._references = new_set
            changed = True
        else:
            removed = self._references - new_set
            added = new_set - self._references
            self._references -= removed
            self._references |= added
            changed = bool(removed or added)
            if changed:
                logger.debug(
                    "Package references changed: %d added, %d removed", len(added), len(removed)
                )
        if changed:
            self._on_change()
        return changed

    def set_target_framework(self, name: str) -> TargetFramework:
        """Parse and store the framework moniker; always triggers ``on_change``.

        Raises:
            ValueError: If the moniker is not recognized.
        """
        self._target_framework = parse_framework(name)
        self._on_change()
        return self._target_framework
