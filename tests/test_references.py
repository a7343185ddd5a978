"""Tests for reference parsing and reference set tracking."""

import os
import tempfile
from unittest.mock import MagicMock

import pytest

from restore.models import PackageReference
from restore.references import ReferenceSetTracker, load_references_file, parse_reference_token
from versioning import parse_range


def _ref(package_id, spec="1.0.0"):
    return PackageReference(package_id, parse_range(spec))


class TestParseReferenceToken:
    """Tests for ``Id@range`` tokens."""

    def test_with_range(self):
        """The part after @ is a NuGet range."""
        ref = parse_reference_token("Newtonsoft.Json@[13.0.1]")
        assert ref.id == "Newtonsoft.Json"
        assert ref.version_range.is_exact
        assert str(ref) == "Newtonsoft.Json@[13.0.1]"

    def test_without_range(self):
        """A bare id accepts any version."""
        ref = parse_reference_token("Serilog")
        assert str(ref.version_range) == "[0.0.0, )"

    def test_empty_id(self):
        """An id is required."""
        with pytest.raises(ValueError):
            parse_reference_token("@1.0.0")


class TestLoadReferencesFile:
    """Tests for YAML references files."""

    def test_loads_framework_and_packages(self):
        """Mapping and string entries are both accepted."""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "refs.yml")
            with open(path, "w", encoding="utf-8") as f:
                f.write(
                    "framework: net8.0\n"
                    "packages:\n"
                    "  - id: Newtonsoft.Json\n"
                    "    version: \"[13.0.1, )\"\n"
                    "  - Dapper@2.1.0\n"
                    "  - id: Serilog\n"
                )
            framework, refs = load_references_file(path)
        assert framework == "net8.0"
        assert [str(r) for r in refs] == [
            "Newtonsoft.Json@[13.0.1, )",
            "Dapper@[2.1.0, )",
            "Serilog@[0.0.0, )",
        ]

    def test_empty_file(self):
        """An empty document has no framework and no packages."""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "refs.yml")
            open(path, "w", encoding="utf-8").close()
            assert load_references_file(path) == (None, [])

    def test_bad_shape(self):
        """Non-mapping documents are rejected."""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "refs.yml")
            with open(path, "w", encoding="utf-8") as f:
                f.write("- just\n- a list\n")
            with pytest.raises(ValueError):
                load_references_file(path)


class TestReferenceSetTracker:
    """Tests for change detection on the reference set."""

    def test_first_update_always_changes(self):
        """The first update restores even when empty."""
        on_change = MagicMock()
        tracker = ReferenceSetTracker(on_change)
        assert tracker.update([]) is True
        on_change.assert_called_once()
        assert tracker.references == frozenset()

    def test_adding_reference_triggers(self):
        """Growing the set is a change."""
        on_change = MagicMock()
        tracker = ReferenceSetTracker(on_change)
        tracker.update([_ref("P1")])
        assert tracker.update([_ref("P1"), _ref("P2")]) is True
        assert on_change.call_count == 2
        assert tracker.references == {_ref("P1"), _ref("P2")}

    def test_same_set_does_not_trigger(self):
        """Re-sending an equal set is not a change."""
        on_change = MagicMock()
        tracker = ReferenceSetTracker(on_change)
        tracker.update([_ref("P1")])
        assert tracker.update([_ref("P1")]) is False
        assert on_change.call_count == 1

    def test_range_change_triggers(self):
        """Same id with another range is a different reference."""
        on_change = MagicMock()
        tracker = ReferenceSetTracker(on_change)
        tracker.update([_ref("P1", "1.0.0")])
        assert tracker.update([_ref("P1", "2.0.0")]) is True
        assert tracker.references == {_ref("P1", "2.0.0")}

    def test_none_means_empty(self):
        """Passing None clears the set."""
        on_change = MagicMock()
        tracker = ReferenceSetTracker(on_change)
        tracker.update([_ref("P1")])
        assert tracker.update(None) is True
        assert tracker.references == frozenset()

    def test_snapshot_is_sorted_copy(self):
        """Snapshots are stable and detached from later updates."""
        tracker = ReferenceSetTracker(MagicMock())
        tracker.update([_ref("beta"), _ref("Alpha")])
        snap = tracker.snapshot()
        tracker.update([_ref("gamma")])
        assert [r.id for r in snap] == ["Alpha", "beta"]

    def test_set_target_framework_always_triggers(self):
        """Setting the framework restores even when unchanged."""
        on_change = MagicMock()
        tracker = ReferenceSetTracker(on_change)
        tracker.set_target_framework("net8.0")
        tracker.set_target_framework("net8.0")
        assert on_change.call_count == 2
        assert tracker.target_framework.short_folder_name == "net8.0"

    def test_invalid_framework(self):
        """Unknown monikers raise and do not trigger."""
        on_change = MagicMock()
        tracker = ReferenceSetTracker(on_change)
        with pytest.raises(ValueError):
            tracker.set_target_framework("nope")
        on_change.assert_not_called()
