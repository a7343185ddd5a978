"""Restore session: single-flight, cancel-and-restart restores for one document.

All public methods must be called from the event loop thread. Each trigger
cancels the attempt in flight and schedules a new one; attempts run one at
a time behind an asyncio lock. An attempt that is no longer the current one
never publishes results.
"""
from __future__ import annotations

import asyncio
import logging
import os
import tempfile
import uuid
from typing import Any, Iterable, Optional, Tuple

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer
from common.telemetry import ErrorReporter, LoggingErrorReporter
from registry.nuget.service import NuGetService
from versioning import TargetFramework
from .engine import DotnetRestoreEngine, RestoreEngine
from .events import SessionListener
from .lockfile import read_for_framework
from .models import PackageReference, RestoreState

logger = logging.getLogger(__name__)


class RestoreSession:
    """Drives the restore engine for one ephemeral project."""

    def __init__(
        self,
        service: NuGetService,
        engine: Optional[RestoreEngine] = None,
        listener: Optional[SessionListener] = None,
        error_reporter: Optional[ErrorReporter] = None,
        build_root: Optional[str] = None,
    ):
        """Initialize the session and create its build directory.

        Args:
            service: NuGet service that builds restore requests.
            engine: Restore engine; defaults to dotnet restore.
            listener: Receives results and property changes.
            error_reporter: Receives unexpected errors from attempts.
            build_root: Parent of the build directory; defaults to the temp dir.
        """
        self._service = service
        self._engine = engine or DotnetRestoreEngine()
        self._listener = listener or SessionListener()
        self._reporter = error_reporter or LoggingErrorReporter()
        self._lock: Optional[asyncio.Lock] = None
        self._current: Optional[asyncio.Task] = None
        self._state = RestoreState.IDLE
        self._is_restoring = False
        self._restore_failed = False
        self._restore_errors: Tuple[str, ...] = ()

        self.project_id = str(uuid.uuid4())
        self.build_path = self._create_build_path(build_root)

    def _create_build_path(self, build_root: Optional[str]) -> Optional[str]:
        path = os.path.join(build_root or tempfile.gettempdir(), *Constants.BUILD_DIR_PARTS, self.project_id)
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            self._reporter.report_error(e)
            return None
        return path

    @property
    def state(self) -> RestoreState:
        """Current phase of the session."""
        return self._state

    @property
    def is_restoring(self) -> bool:
        """True while an attempt holds the gate."""
        return self._is_restoring

    @property
    def restore_failed(self) -> bool:
        """True when the last finished attempt reported errors."""
        return self._restore_failed

    @property
    def restore_errors(self) -> Tuple[str, ...]:
        """Errors from the last failed attempt, empty after a success."""
        return self._restore_errors

    @property
    def current_attempt(self) -> Optional[asyncio.Task]:
        """Task of the latest attempt, or None."""
        return self._current

    def _set(self, name: str, value: Any) -> None:
        attr = f"_{name}"
        if getattr(self, attr) != value:
            setattr(self, attr, value)
            self._listener.on_property_changed(name, value)

    def trigger(
        self,
        references: Iterable[PackageReference],
        target_framework: Optional[TargetFramework],
    ) -> Optional[asyncio.Task]:
        """Cancel the attempt in flight and schedule a new one.

        ``references`` is copied here, so later changes by the caller do not
        affect the scheduled attempt.

        Args:
            references: Direct package references to restore.
            target_framework: Framework to restore for.

        Returns:
            The scheduled attempt, or None when no restore can run yet (no
            target framework or no build directory).
        """
        if self.build_path is None or target_framework is None:
            return None
        if self._lock is None:
            # Bound to the loop of the first trigger
            self._lock = asyncio.Lock()
        if self._current is not None and not self._current.done():
            self._current.cancel()
        snapshot = tuple(references)
        task = asyncio.get_running_loop().create_task(self._run(snapshot, target_framework))
        self._current = task
        return task

    def cancel(self) -> None:
        """Cancel the attempt in flight without starting another one."""
        if self._current is not None and not self._current.done():
            self._current.cancel()
        self._current = None

    async def wait(self) -> None:
        """Wait until the latest attempt (including any retriggers) has finished."""
        while True:
            task = self._current
            if task is None or task.done():
                return
            await asyncio.wait({task})

    def _is_current(self) -> bool:
        return asyncio.current_task() is self._current

    def _check_current(self) -> None:
        if not self._is_current():
            raise asyncio.CancelledError()

    async def _run(self, references: Tuple[PackageReference, ...], target_framework: TargetFramework) -> None:
        lock = self._lock
        try:
            await lock.acquire()
        except asyncio.CancelledError:
            logger.debug("Restore attempt cancelled while waiting for the previous one")
            return

        try:
            self._check_current()
            self._set("is_restoring", True)
            self._set("state", RestoreState.RESTORING)
            with Timer() as t:
                request = self._service.create_restore_request(
                    self.project_id, target_framework, self.build_path, references
                )
                outcome = await self._engine.restore(request)
                self._check_current()

                if not outcome.success:
                    logger.warning("Restore failed with %d error(s)", len(outcome.errors), extra=extra_context(
                        event="function_exit", component="session", action="restore",
                        outcome="failed", duration_ms=t.duration_ms(), target=self.project_id
                    ))
                    self._set("restore_failed", True)
                    self._set("restore_errors", tuple(outcome.errors))
                    self._set("state", RestoreState.FAILED)
                    self._listener.on_restore_failed(list(outcome.errors))
                    return

                self._set("restore_failed", False)
                self._set("restore_errors", ())

                if outcome.no_op:
                    self._set("state", RestoreState.SUCCEEDED)
                    logger.debug("Restore was a no-op; keeping previous references")
                    return

                self._check_current()
                resolved = await asyncio.to_thread(
                    read_for_framework, request.assets_file_path, request.packages_path, target_framework
                )
                self._check_current()

            if is_debug_enabled(logger):
                logger.debug("Restore completed", extra=extra_context(
                    event="complete", component="session", action="restore", outcome="success",
                    count=len(resolved.compile), duration_ms=t.duration_ms(), target=self.project_id
                ))
            self._set("state", RestoreState.SUCCEEDED)
            self._listener.on_restore_completed(resolved)
        except asyncio.CancelledError:
            logger.debug("Restore attempt cancelled")
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._reporter.report_error(e)
        finally:
            lock.release()
            self._set("is_restoring", False)
            self._set("state", RestoreState.IDLE)
