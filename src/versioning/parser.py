"""Parsing utilities for NuGet versions, version ranges and framework monikers."""

import re
from typing import Iterable, List, Optional, Tuple

from constants import FrameworkIdentifiers
from .models import NuGetVersion, TargetFramework, VersionRange

_VERSION_RE = re.compile(
    r'^\s*(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:\.(\d+))?'
    r'(?:-([0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?'
    r'(?:\+([0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?\s*$'
)

_FLOAT_RE = re.compile(r'^\s*((?:\d+\.){0,3})\*\s*$')

_FULL_FRAMEWORK_RE = re.compile(r'^\s*(\.[A-Za-z]+)\s*,\s*Version\s*=\s*v?(\d+(?:\.\d+){0,3})\s*$')
_NET_RE = re.compile(r'^net(\d+)\.(\d+)(?:-([a-z]+[0-9.]*))?$')
_NETCOREAPP_RE = re.compile(r'^netcoreapp(\d+)\.(\d+)$')
_NETSTANDARD_RE = re.compile(r'^netstandard(\d+)\.(\d+)$')
_NETFRAMEWORK_RE = re.compile(r'^net(\d)(\d)(\d)?$')


def parse_version(text: str) -> NuGetVersion:
    """Parse a NuGet version string.

    Raises:
        ValueError: If ``text`` is not a valid NuGet version.
    """
    if text is None:
        raise ValueError("Version string is required")
    m = _VERSION_RE.match(text)
    if not m:
        raise ValueError(f"Invalid NuGet version: '{text}'")
    labels = tuple(m.group(5).split('.')) if m.group(5) else ()
    version = NuGetVersion(
        major=int(m.group(1)),
        minor=int(m.group(2) or 0),
        patch=int(m.group(3) or 0),
        revision=int(m.group(4) or 0),
        release_labels=labels,
        metadata=m.group(6),
        original=text.strip(),
    )
    # Surface label errors (e.g. leading zeros) at parse time, not on first compare
    version._key()  # pylint: disable=protected-access
    return version


def try_parse_version(text: Optional[str]) -> Optional[NuGetVersion]:
    """Parse a version, returning None instead of raising."""
    if not text:
        return None
    try:
        return parse_version(text)
    except ValueError:
        return None


def _parse_float_range(s: str) -> Optional[VersionRange]:
    m = _FLOAT_RE.match(s)
    if not m:
        return None
    prefix = [int(p) for p in m.group(1).split('.') if p]
    if not prefix:
        return VersionRange(min_version=parse_version("0.0.0"), float_pattern=s)
    lower = prefix + [0] * max(0, 3 - len(prefix))
    upper = list(prefix)
    upper[-1] += 1
    upper += [0] * (3 - len(upper))
    return VersionRange(
        min_version=parse_version(".".join(str(p) for p in lower)),
        min_inclusive=True,
        max_version=parse_version(".".join(str(p) for p in upper)),
        max_inclusive=False,
        float_pattern=s,
    )


def parse_range(text: str) -> VersionRange:
    """Parse NuGet range notation.

    Supports a bare minimum version (``1.0`` means ``>= 1.0``), exact
    ``[1.0]``, intervals such as ``[1.0,2.0)``, ``(,2.0]`` and ``(1.0,)``,
    and floating versions (``1.*``, ``*``).

    Raises:
        ValueError: If ``text`` is not a valid range.
    """
    if text is None or not text.strip():
        raise ValueError("Version range is required")
    s = text.strip()

    floating = _parse_float_range(s)
    if floating is not None:
        return floating

    if s[0] not in "[(":
        return VersionRange(min_version=parse_version(s), min_inclusive=True)

    if len(s) < 3 or s[-1] not in "])":
        raise ValueError(f"Invalid version range: '{text}'")
    min_inclusive = s[0] == "["
    max_inclusive = s[-1] == "]"
    inner = s[1:-1]
    parts = inner.split(",")
    if len(parts) == 1:
        if not (min_inclusive and max_inclusive):
            raise ValueError(f"Exact version range must use brackets: '{text}'")
        exact = parse_version(parts[0])
        return VersionRange(exact, True, exact, True)
    if len(parts) != 2:
        raise ValueError(f"Invalid version range: '{text}'")

    low_text, high_text = parts[0].strip(), parts[1].strip()
    low = parse_version(low_text) if low_text else None
    high = parse_version(high_text) if high_text else None
    if low is None and high is None:
        raise ValueError(f"Version range has no bounds: '{text}'")
    if low is not None and high is not None:
        if high < low or (high == low and not (min_inclusive and max_inclusive)):
            raise ValueError(f"Version range is empty: '{text}'")
    return VersionRange(
        min_version=low,
        min_inclusive=min_inclusive if low is not None else False,
        max_version=high,
        max_inclusive=max_inclusive if high is not None else False,
    )


def order_versions(versions: Iterable[NuGetVersion], include_prerelease: bool = True) -> List[NuGetVersion]:
    """Order versions for display.

    Versions are sorted descending with duplicates removed; the latest
    stable version, when there is one, is promoted to the front.
    Prerelease versions are dropped unless ``include_prerelease`` is set.
    """
    unique = sorted(set(versions), reverse=True)
    if not include_prerelease:
        unique = [v for v in unique if not v.is_prerelease]
    latest_stable = next((v for v in unique if not v.is_prerelease), None)
    if latest_stable is None:
        return unique
    return [latest_stable] + [v for v in unique if v is not latest_stable]


def _version_tuple(parts: Iterable[Optional[str]]) -> Tuple[int, ...]:
    values = [int(p) for p in parts if p is not None]
    while len(values) < 2:
        values.append(0)
    return tuple(values)


def parse_framework(moniker: str) -> TargetFramework:
    """Parse a target framework moniker or full framework name.

    Raises:
        ValueError: If the moniker is not recognized.
    """
    if not moniker or not moniker.strip():
        raise ValueError("Target framework is required")
    s = moniker.strip()

    m = _FULL_FRAMEWORK_RE.match(s)
    if m:
        identifier = m.group(1)
        for known in FrameworkIdentifiers:
            if known.value.lower() == identifier.lower():
                return TargetFramework(known.value, _version_tuple(m.group(2).split('.')))
        raise ValueError(f"Unsupported framework identifier: '{identifier}'")

    s = s.lower()
    m = _NET_RE.match(s)
    if m and int(m.group(1)) >= 5:
        return TargetFramework(
            FrameworkIdentifiers.NETCOREAPP.value,
            _version_tuple([m.group(1), m.group(2)]),
            platform=m.group(3),
        )
    m = _NETCOREAPP_RE.match(s)
    if m:
        return TargetFramework(FrameworkIdentifiers.NETCOREAPP.value, _version_tuple(m.groups()))
    m = _NETSTANDARD_RE.match(s)
    if m:
        return TargetFramework(FrameworkIdentifiers.NETSTANDARD.value, _version_tuple(m.groups()))
    m = _NETFRAMEWORK_RE.match(s)
    if m:
        return TargetFramework(FrameworkIdentifiers.NETFRAMEWORK.value, _version_tuple(m.groups()))

    raise ValueError(f"Unrecognized target framework: '{moniker}'")
