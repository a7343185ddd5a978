"""RestorePad - search NuGet sources and restore package references for a scratch project.

    Returns:
        int: Exit code
"""
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from constants import Constants, ExitCodes
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from common.telemetry import LoggingErrorReporter
from args import parse_args
from registry.nuget.errors import RestorePadError
from registry.nuget.service import NuGetService
from restore.engine import DotnetRestoreEngine
from restore.events import SessionListener
from restore.models import ResolvedReferences
from restore.references import load_references_file, parse_reference_token
from restore.document import PackageDocument

logger = logging.getLogger(__name__)


class _CollectingListener(SessionListener):
    """Keeps the last restore result for printing."""

    def __init__(self):
        self.resolved: Optional[ResolvedReferences] = None
        self.errors: Optional[List[str]] = None

    def on_restore_completed(self, references: ResolvedReferences) -> None:
        self.resolved = references
        self.errors = None

    def on_restore_failed(self, errors: List[str]) -> None:
        self.resolved = None
        self.errors = list(errors)


class _RecordingReporter(LoggingErrorReporter):
    """Logs unexpected restore errors and remembers them for the exit code."""

    def __init__(self):
        self.errors: List[BaseException] = []

    def report_error(self, exc: BaseException) -> None:
        self.errors.append(exc)
        super().report_error(exc)


def _emit(payload: Dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")


async def run_search(service: NuGetService, args) -> int:
    """Run one federated search and print the summaries."""
    packages = await service.search(args.TERM, args.PRERELEASE, args.EXACT)
    _emit({
        "term": args.TERM,
        "packages": [
            {"id": p.id, "version": str(p.version), "versions": p.versions, "description": p.description}
            for p in packages
        ],
    })
    return ExitCodes.SUCCESS.value


def _load_inputs(args):
    """Return (framework moniker, references) from -p tokens or a references file."""
    framework = args.FRAMEWORK
    if args.REFERENCES_FILE:
        file_framework, references = load_references_file(args.REFERENCES_FILE)
        framework = framework or file_framework
    else:
        references = [parse_reference_token(token) for token in args.PACKAGES or []]
    return framework, references


async def run_restore(service: NuGetService, args) -> int:
    """Restore the requested references once and print the artifact paths."""
    try:
        framework, references = _load_inputs(args)
    except FileNotFoundError as e:
        logger.error("References file not found: %s", e)
        return ExitCodes.FILE_ERROR.value
    except (OSError, ValueError) as e:
        logger.error("Invalid restore input: %s", e)
        return ExitCodes.FILE_ERROR.value
    if not framework:
        logger.error("A target framework is required (--framework or 'framework' in the references file)")
        return ExitCodes.FILE_ERROR.value

    listener = _CollectingListener()
    reporter = _RecordingReporter()
    document = PackageDocument(
        service,
        engine=DotnetRestoreEngine(args.DOTNET),
        listener=listener,
        error_reporter=reporter,
        build_root=args.BUILD_ROOT,
    )
    try:
        document.update_package_references(references)
        try:
            document.set_target_framework(framework)
        except ValueError as e:
            logger.error("Invalid target framework: %s", e)
            return ExitCodes.FILE_ERROR.value
        await document.wait_for_restore()
    finally:
        await document.close()

    summary = {
        "framework": framework,
        "packages": [str(r) for r in document.references],
    }
    if listener.resolved is not None:
        summary["compile"] = listener.resolved.compile
        summary["runtime"] = listener.resolved.runtime
        _emit(summary)
        return ExitCodes.SUCCESS.value
    if listener.errors is not None:
        summary["errors"] = listener.errors
        _emit(summary)
        return ExitCodes.RESTORE_FAILED.value
    if document.restore_session.build_path is None:
        logger.error("Could not create the scratch project directory")
        return ExitCodes.FILE_ERROR.value
    if reporter.errors:
        summary["errors"] = [f"{type(e).__name__}: {e}" for e in reporter.errors]
        _emit(summary)
        return ExitCodes.RESTORE_ABORTED.value
    # No callback and no error: the engine reported a no-op.
    summary["compile"] = []
    summary["runtime"] = []
    _emit(summary)
    return ExitCodes.SUCCESS.value


async def _run(args) -> int:
    service = NuGetService(root=args.ROOT)
    if service.initialization_error is not None:
        logger.error("Unable to load NuGet settings: %s", service.initialization_error)
        return ExitCodes.CONFIG_ERROR.value
    try:
        if args.COMMAND == "search":
            return await run_search(service, args)
        return await run_restore(service, args)
    except RestorePadError as e:
        logger.error("%s", e)
        return ExitCodes.CONNECTION_ERROR.value
    finally:
        await service.close()


def main(argv: Optional[List[str]] = None) -> None:
    """Main function of the program."""
    args = parse_args(argv)
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging(args.LOG_LEVEL)
    if getattr(args, "LOG_FILE", None):
        handler = logging.FileHandler(args.LOG_FILE, encoding="utf-8")
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        logging.getLogger().addHandler(handler)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND)
        )

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
