"""Host-facing notifications from document sessions."""

from typing import Any, List, Sequence

from registry.nuget.models import PackageSummary
from .models import ResolvedReferences


class SessionListener:
    """Callbacks a host registers once per session.

    Every callback runs on the event loop thread. Subclass and override the
    ones you need; the defaults do nothing.
    """

    def on_restore_completed(self, references: ResolvedReferences) -> None:
        pass

    def on_restore_failed(self, errors: List[str]) -> None:
        pass

    def on_package_installed(self, package: PackageSummary) -> None:
        pass

    def on_search_completed(self, packages: Sequence[PackageSummary]) -> None:
        pass

    def on_property_changed(self, name: str, value: Any) -> None:
        pass
