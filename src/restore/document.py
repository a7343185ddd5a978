"""Per-document package session: references, target framework, restore and search.

This is the object a host (editor, script runner) talks to. Commands are
plain method calls and property assignments made from the event loop
thread; results arrive through the registered SessionListener.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, List, Optional, Tuple

from common.telemetry import ErrorReporter, LoggingErrorReporter
from registry.nuget.models import PackageSummary
from registry.nuget.service import NuGetService
from versioning import TargetFramework
from .engine import RestoreEngine
from .events import SessionListener
from .models import PackageReference, RestoreState
from .references import ReferenceSetTracker
from .session import RestoreSession

logger = logging.getLogger(__name__)


class PackageDocument:
    """Package state of one editing session."""

    def __init__(
        self,
        service: NuGetService,
        engine: Optional[RestoreEngine] = None,
        listener: Optional[SessionListener] = None,
        error_reporter: Optional[ErrorReporter] = None,
        build_root: Optional[str] = None,
    ):
        self._service = service
        self._listener = listener or SessionListener()
        self._reporter = error_reporter or LoggingErrorReporter()
        self._restore = RestoreSession(
            service,
            engine=engine,
            listener=self._listener,
            error_reporter=self._reporter,
            build_root=build_root,
        )
        self._tracker = ReferenceSetTracker(on_change=self._refresh_packages)

        self._search_term = ""
        self._prerelease = False
        self.exact_match = False
        self._is_searching = False
        self._packages: Optional[List[PackageSummary]] = None
        self._is_packages_menu_open = False
        self._search_task: Optional[asyncio.Task] = None

    # Restore side

    @property
    def restore_session(self) -> RestoreSession:
        return self._restore

    @property
    def is_restoring(self) -> bool:
        return self._restore.is_restoring

    @property
    def restore_state(self) -> RestoreState:
        return self._restore.state

    @property
    def restore_failed(self) -> bool:
        return self._restore.restore_failed

    @property
    def restore_errors(self) -> Tuple[str, ...]:
        return self._restore.restore_errors

    @property
    def references(self) -> Tuple[PackageReference, ...]:
        return self._tracker.snapshot()

    @property
    def target_framework(self) -> Optional[TargetFramework]:
        return self._tracker.target_framework

    def update_package_references(self, packages: Optional[Iterable[PackageReference]]) -> bool:
        """Replace the requested references; restores when the set changed."""
        return self._tracker.update(packages)

    def set_target_framework(self, name: str) -> TargetFramework:
        """Set the framework moniker; always restores."""
        return self._tracker.set_target_framework(name)

    def _refresh_packages(self) -> None:
        self._restore.trigger(self._tracker.snapshot(), self._tracker.target_framework)

    async def wait_for_restore(self) -> None:
        await self._restore.wait()

    # Search side

    def _set(self, name: str, value: Any) -> bool:
        attr = f"_{name}"
        if getattr(self, attr) == value:
            return False
        setattr(self, attr, value)
        self._listener.on_property_changed(name, value)
        return True

    @property
    def search_term(self) -> str:
        return self._search_term

    @search_term.setter
    def search_term(self, value: str) -> None:
        if self._set("search_term", value or ""):
            self._perform_search()

    @property
    def prerelease(self) -> bool:
        return self._prerelease

    @prerelease.setter
    def prerelease(self, value: bool) -> None:
        if self._set("prerelease", bool(value)):
            self._perform_search()

    @property
    def is_searching(self) -> bool:
        return self._is_searching

    @property
    def packages(self) -> Optional[List[PackageSummary]]:
        return self._packages

    @property
    def is_packages_menu_open(self) -> bool:
        return self._is_packages_menu_open

    @is_packages_menu_open.setter
    def is_packages_menu_open(self, value: bool) -> None:
        self._set("is_packages_menu_open", bool(value))

    @property
    def search_task(self) -> Optional[asyncio.Task]:
        return self._search_task

    def install_package(self, package: PackageSummary) -> None:
        """Tell the host the user picked ``package``."""
        self._listener.on_package_installed(package)

    def _perform_search(self) -> None:
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = asyncio.get_running_loop().create_task(
            self._search(self._search_term, self._prerelease, self.exact_match)
        )

    async def _search(self, term: str, include_prerelease: bool, exact_match: bool) -> None:
        if not term or not term.strip():
            self._set("packages", None)
            self._set("is_packages_menu_open", False)
            self._set("is_searching", False)
            return

        self._set("is_searching", True)
        try:
            packages = await self._service.search(term, include_prerelease, exact_match)
            if asyncio.current_task() is not self._search_task:
                return
            self._set("packages", packages)
            self._set("is_packages_menu_open", len(packages) > 0)
            self._listener.on_search_completed(packages)
        except asyncio.CancelledError:
            logger.debug("Search for '%s' cancelled", term)
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._reporter.report_error(e)
            if asyncio.current_task() is self._search_task:
                self._set("packages", [])
                self._set("is_packages_menu_open", False)
        finally:
            if asyncio.current_task() is self._search_task:
                self._set("is_searching", False)

    async def close(self) -> None:
        """Cancel outstanding work."""
        self._restore.cancel()
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
            await asyncio.wait({self._search_task})
