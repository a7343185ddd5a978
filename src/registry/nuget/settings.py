"""NuGet.Config discovery and parsing.

Config files are read from the user-level file first and then from the
filesystem root down to the starting directory, so closer files override
farther ones. Within ``<packageSources>``, ``<clear/>`` drops every source
collected so far.
"""
from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from .errors import SettingsError
from .models import PackageSource

logger = logging.getLogger(__name__)


def _strip_namespaces(root: ET.Element) -> None:
    for elem in root.iter():
        if isinstance(elem.tag, str) and '}' in elem.tag:
            elem.tag = elem.tag.split('}')[1]


def _user_config_path() -> str:
    return os.path.join(os.path.expanduser("~"), *Constants.USER_CONFIG_DIR, Constants.CONFIG_FILE_NAMES[0])


def discover_config_files(root: Optional[str] = None) -> List[str]:
    """Return existing config files, lowest priority first."""
    found: List[str] = []
    user_config = _user_config_path()
    if os.path.isfile(user_config):
        found.append(user_config)

    chain: List[str] = []
    directory = os.path.abspath(root or os.getcwd())
    while True:
        for name in Constants.CONFIG_FILE_NAMES:
            candidate = os.path.join(directory, name)
            if os.path.isfile(candidate):
                chain.append(candidate)
                break
        parent = os.path.dirname(directory)
        if parent == directory:
            break
        directory = parent

    for path in reversed(chain):
        if os.path.normcase(os.path.abspath(path)) != os.path.normcase(os.path.abspath(user_config)):
            found.append(path)
    return found


@dataclass
class _SourceEntry:
    url: str
    protocol_version: Optional[int] = None


@dataclass
class NuGetSettings:
    """Settings merged from the NuGet.Config chain."""
    config_file_paths: List[str] = field(default_factory=list)
    package_sources: List[PackageSource] = field(default_factory=list)
    global_packages_folder: str = ""

    @property
    def enabled_sources(self) -> List[PackageSource]:
        return [s for s in self.package_sources if s.enabled]

    @classmethod
    def load(cls, root: Optional[str] = None, config_files: Optional[List[str]] = None) -> "NuGetSettings":
        """Load settings from ``config_files`` or from the discovered chain.

        Raises:
            SettingsError: If a config file cannot be parsed.
        """
        paths = list(config_files) if config_files is not None else discover_config_files(root)
        sources: Dict[str, _SourceEntry] = {}
        disabled: Dict[str, bool] = {}
        config_values: Dict[str, str] = {}

        for path in paths:
            _apply_config_file(path, sources, disabled, config_values)

        if not sources:
            sources[Constants.NUGET_ORG_NAME] = _SourceEntry(Constants.NUGET_ORG_V3, 3)

        package_sources = [
            PackageSource(
                name=name,
                source=entry.url,
                enabled=not disabled.get(name.lower(), False),
                position=position,
                protocol_version=entry.protocol_version,
            )
            for position, (name, entry) in enumerate(sources.items())
        ]

        settings = cls(
            config_file_paths=paths,
            package_sources=package_sources,
            global_packages_folder=_resolve_global_packages_folder(config_values),
        )
        if is_debug_enabled(logger):
            logger.debug("NuGet settings loaded", extra=extra_context(
                event="function_exit", component="settings", action="load",
                outcome="success", count=len(package_sources),
                target=settings.global_packages_folder
            ))
        return settings


def _apply_config_file(
    path: str,
    sources: Dict[str, _SourceEntry],
    disabled: Dict[str, bool],
    config_values: Dict[str, str],
) -> None:
    try:
        tree = ET.parse(path)
    except (ET.ParseError, IOError) as e:
        raise SettingsError(f"Couldn't parse NuGet config file {path}: {e}", path) from e
    root = tree.getroot()
    _strip_namespaces(root)
    base_dir = os.path.dirname(os.path.abspath(path))

    section = root.find("packageSources")
    if section is not None:
        for elem in section:
            if elem.tag == "clear":
                sources.clear()
                continue
            key = elem.get("key")
            if not key:
                continue
            if elem.tag == "remove":
                _pop_case_insensitive(sources, key)
                continue
            if elem.tag != "add" or not elem.get("value"):
                continue
            value = elem.get("value", "")
            if not value.lower().startswith(("http://", "https://", "file:")) and not os.path.isabs(value):
                value = os.path.normpath(os.path.join(base_dir, value))
            protocol = elem.get("protocolVersion")
            existing = _find_case_insensitive(sources, key)
            entry = _SourceEntry(value, int(protocol) if protocol and protocol.isdigit() else None)
            # Redefining a source keeps its original position
            sources[existing or key] = entry

    section = root.find("disabledPackageSources")
    if section is not None:
        for elem in section:
            if elem.tag == "clear":
                disabled.clear()
            elif elem.tag == "add" and elem.get("key"):
                disabled[elem.get("key", "").lower()] = elem.get("value", "").strip().lower() == "true"

    section = root.find("config")
    if section is not None:
        for elem in section:
            if elem.tag == "add" and elem.get("key"):
                value = elem.get("value", "")
                if elem.get("key", "").lower() == "globalpackagesfolder" and value and not os.path.isabs(value):
                    value = os.path.normpath(os.path.join(base_dir, value))
                config_values[elem.get("key", "").lower()] = value


def _find_case_insensitive(mapping: Dict[str, _SourceEntry], key: str) -> Optional[str]:
    for existing in mapping:
        if existing.lower() == key.lower():
            return existing
    return None


def _pop_case_insensitive(mapping: Dict[str, _SourceEntry], key: str) -> None:
    existing = _find_case_insensitive(mapping, key)
    if existing is not None:
        del mapping[existing]


def _resolve_global_packages_folder(config_values: Dict[str, str]) -> str:
    env_value = os.environ.get(Constants.ENV_NUGET_PACKAGES)
    if env_value:
        return os.path.abspath(os.path.expanduser(env_value))
    configured = config_values.get("globalpackagesfolder")
    if configured:
        return os.path.expanduser(configured)
    return os.path.join(os.path.expanduser("~"), *Constants.DEFAULT_GLOBAL_PACKAGES_DIR)
