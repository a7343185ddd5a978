"""Restore engine boundary and the ``dotnet restore`` adapter.

The engine resolves the dependency graph and writes the lock manifest; this
module only describes the request to it and interprets what it reports.
"""
from __future__ import annotations

import asyncio
import logging
import os
import re
import xml.etree.ElementTree as ET
from typing import Iterable, List, Optional, Protocol

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, Timer
from .models import RestoreOutcome, RestoreRequest

logger = logging.getLogger(__name__)

_ERROR_LINE_RE = re.compile(r'(?:^|:\s*)error\s+([A-Z]+\d+)\s*:\s*(.+?)(?:\s+\[[^\]]*\])?\s*$')


class RestoreEngine(Protocol):
    """Resolves a restore request and writes the lock manifest."""

    async def restore(self, request: RestoreRequest) -> RestoreOutcome:
        """Run one restore; cancelling the calling task must stop it promptly."""


def aggregate_outcomes(outcomes: Iterable[RestoreOutcome]) -> RestoreOutcome:
    """Combine sub-restore outcomes.

    Success and no-op require every sub-restore to agree; errors are
    concatenated in sub-restore order.
    """
    items = list(outcomes)
    errors: List[str] = []
    for outcome in items:
        errors.extend(outcome.errors)
    return RestoreOutcome(
        success=all(o.success for o in items),
        no_op=all(o.no_op for o in items),
        errors=tuple(errors),
    )


def parse_error_lines(output: str) -> List[str]:
    """Extract ``error NUxxxx: message`` lines, first occurrence of each kept."""
    errors: List[str] = []
    for line in output.splitlines():
        m = _ERROR_LINE_RE.search(line.strip())
        if not m:
            continue
        message = f"{m.group(1)}: {m.group(2)}"
        if message not in errors:
            errors.append(message)
    return errors


def build_project_xml(request: RestoreRequest) -> str:
    """Render a minimal SDK-style project describing ``request``."""
    project = ET.Element("Project", {"Sdk": "Microsoft.NET.Sdk"})
    props = ET.SubElement(project, "PropertyGroup")
    ET.SubElement(props, "TargetFramework").text = request.target_framework.short_folder_name
    ET.SubElement(props, "RestoreOutputPath").text = request.output_path
    ET.SubElement(props, "RestorePackagesPath").text = request.packages_path
    if request.sources:
        ET.SubElement(props, "RestoreSources").text = ";".join(s.source for s in request.sources)
    ET.SubElement(props, "ValidateRuntimeIdentifierCompatibility").text = "false"

    items = ET.SubElement(project, "ItemGroup")
    for dependency in request.dependencies():
        # The SDK adds the platform package itself
        if dependency.is_platform:
            continue
        ET.SubElement(items, "PackageReference", {
            "Include": dependency.id,
            "Version": str(dependency.version_range),
        })
    ET.indent(project)
    return ET.tostring(project, encoding="unicode")


def _mtime(path: str) -> Optional[int]:
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return None


class DotnetRestoreEngine:
    """Runs ``dotnet restore`` on a generated project in the request's output path.

    A restore counts as no-op when it succeeds without rewriting the assets
    file. HTTP caching stays on and unreachable sources are ignored.
    """

    def __init__(self, dotnet_path: str = Constants.DOTNET_EXECUTABLE, extra_args: Optional[List[str]] = None):
        self._dotnet = dotnet_path
        self._extra_args = list(extra_args or [])

    def _write_project(self, request: RestoreRequest) -> str:
        os.makedirs(request.output_path, exist_ok=True)
        project_path = os.path.join(request.output_path, f"{request.project_name}.csproj")
        with open(project_path, "w", encoding="utf-8") as f:
            f.write(build_project_xml(request))
        return project_path

    async def restore(self, request: RestoreRequest) -> RestoreOutcome:
        project_path = await asyncio.to_thread(self._write_project, request)
        assets_before = _mtime(request.assets_file_path)
        cmd = [self._dotnet, "restore", project_path, "--ignore-failed-sources", *self._extra_args]

        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug("Starting restore engine", extra=extra_context(
                    event="function_entry", component="engine", action="restore",
                    target=request.project_name
                ))
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
            try:
                stdout, _ = await proc.communicate()
            except asyncio.CancelledError:
                if proc.returncode is None:
                    proc.kill()
                    await proc.wait()
                raise

        output = stdout.decode("utf-8", errors="replace") if stdout else ""
        success = proc.returncode == 0
        errors = parse_error_lines(output)
        if not success and not errors:
            tail = [line for line in output.strip().splitlines() if line.strip()][-1:]
            errors = tail or [f"dotnet restore exited with code {proc.returncode}"]
        no_op = success and assets_before is not None and _mtime(request.assets_file_path) == assets_before

        outcome = aggregate_outcomes([RestoreOutcome(success=success, no_op=no_op, errors=tuple(errors))])
        logger.debug("Restore engine finished", extra=extra_context(
            event="function_exit", component="engine", action="restore",
            outcome="no_op" if outcome.no_op else ("success" if outcome.success else "failed"),
            duration_ms=t.duration_ms(), target=request.project_name
        ))
        return outcome
