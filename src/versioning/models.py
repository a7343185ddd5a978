"""Data models for NuGet versions, version ranges and target frameworks."""

from dataclasses import dataclass, field
from functools import total_ordering
from typing import Optional, Tuple

import semantic_version

from constants import FrameworkIdentifiers


@total_ordering
@dataclass(frozen=True, eq=False)
class NuGetVersion:
    """A NuGet package version (SemVer 2 plus an optional fourth revision part).

    Equality and ordering ignore build metadata and compare prerelease
    labels case-insensitively. ``original`` keeps the text as published.
    """
    major: int
    minor: int = 0
    patch: int = 0
    revision: int = 0
    release_labels: Tuple[str, ...] = ()
    metadata: Optional[str] = None
    original: Optional[str] = field(default=None, compare=False)

    @property
    def is_prerelease(self) -> bool:
        """True when the version carries prerelease labels."""
        return bool(self.release_labels)

    def _key(self):
        # semantic_version handles label precedence and release > prerelease
        labels = tuple(label.lower() for label in self.release_labels)
        return (
            (self.major, self.minor, self.patch, self.revision),
            semantic_version.Version(major=0, minor=0, patch=0, prerelease=labels),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        labels = tuple(label.lower() for label in self.release_labels)
        return hash((self.major, self.minor, self.patch, self.revision, labels))

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            text = f"{text}.{self.revision}"
        if self.release_labels:
            text = f"{text}-{'.'.join(self.release_labels)}"
        return text


@dataclass(frozen=True)
class VersionRange:
    """A NuGet version range such as ``[1.0, 2.0)`` or a bare minimum ``1.0``.

    ``float_pattern`` holds the raw text of floating ranges (``1.*``); their
    bounds are the range the pattern can float over.
    """
    min_version: Optional[NuGetVersion] = None
    min_inclusive: bool = True
    max_version: Optional[NuGetVersion] = None
    max_inclusive: bool = False
    float_pattern: Optional[str] = None

    @property
    def is_exact(self) -> bool:
        """True for ``[x]`` ranges that admit a single version."""
        return (
            self.min_version is not None
            and self.min_version == self.max_version
            and self.min_inclusive
            and self.max_inclusive
        )

    def satisfies(self, version: NuGetVersion) -> bool:
        """Return True when ``version`` lies within the range."""
        if self.min_version is not None:
            if self.min_inclusive and version < self.min_version:
                return False
            if not self.min_inclusive and version <= self.min_version:
                return False
        if self.max_version is not None:
            if self.max_inclusive and version > self.max_version:
                return False
            if not self.max_inclusive and version >= self.max_version:
                return False
        return True

    def __str__(self) -> str:
        if self.float_pattern:
            return self.float_pattern
        if self.is_exact:
            return f"[{self.min_version}]"
        lower = "[" if self.min_inclusive else "("
        upper = "]" if self.max_inclusive else ")"
        low = str(self.min_version) if self.min_version is not None else ""
        high = str(self.max_version) if self.max_version is not None else ""
        return f"{lower}{low}, {high}{upper}"


@dataclass(frozen=True)
class TargetFramework:
    """A parsed target framework moniker (``net8.0``, ``netstandard2.0``...)."""
    framework: str
    version: Tuple[int, ...]
    platform: Optional[str] = None

    @property
    def is_netcoreapp(self) -> bool:
        """True for managed runtime frameworks that carry a platform package."""
        return self.framework == FrameworkIdentifiers.NETCOREAPP.value

    @property
    def version_string(self) -> str:
        parts = list(self.version)
        while len(parts) > 2 and parts[-1] == 0:
            parts.pop()
        return ".".join(str(p) for p in parts)

    @property
    def dotnet_framework_name(self) -> str:
        """Full name, e.g. ``.NETCoreApp,Version=v8.0``."""
        return f"{self.framework},Version=v{self.version_string}"

    @property
    def short_folder_name(self) -> str:
        """Short moniker, e.g. ``net8.0`` or ``net472``."""
        if self.framework == FrameworkIdentifiers.NETFRAMEWORK.value:
            digits = [str(p) for p in self.version[:3]]
            while len(digits) > 2 and digits[-1] == "0":
                digits.pop()
            return "net" + "".join(digits)
        if self.framework == FrameworkIdentifiers.NETSTANDARD.value:
            return f"netstandard{self.version_string}"
        prefix = "net" if self.version[0] >= 5 else "netcoreapp"
        name = f"{prefix}{self.version_string}"
        if self.platform:
            name = f"{name}-{self.platform}"
        return name

    def __str__(self) -> str:
        return self.short_folder_name
