"""Tests for reading the restore lock manifest."""

import json
import os
import tempfile

import pytest

from restore.lockfile import (
    LockManifestError,
    framework_keys,
    is_placeholder,
    parse_lock_manifest,
    read_for_framework,
    read_lock_manifest,
    resolve_references,
)
from versioning import parse_framework


def _write_manifest(tmp, text):
    path = os.path.join(tmp, "project.assets.json")
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


SAMPLE = {
    "version": 3,
    "targets": {
        "net8.0": {
            "Foo/1.0": {
                "type": "package",
                "compile": {"lib/foo.dll": {}, "_._": {}},
                "runtime": {"lib/foo.dll": {}},
            }
        }
    },
}


class TestReadLockManifest:
    """Tests for extracting compile and runtime paths."""

    def test_placeholder_excluded(self):
        """Placeholder entries never reach the output lists."""
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_manifest(tmp, json.dumps(SAMPLE))
            result = read_lock_manifest(path, "/pkgs", "net8.0")
        expected = os.path.normpath("/pkgs/Foo/1.0/lib/foo.dll")
        assert result.compile == [expected]
        assert result.runtime == [expected]

    def test_missing_target_is_empty(self):
        """An absent framework key yields empty lists, not an error."""
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_manifest(tmp, json.dumps(SAMPLE))
            result = read_lock_manifest(path, "/pkgs", "net6.0")
        assert result.compile == []
        assert result.runtime == []

    def test_missing_sections_contribute_nothing(self):
        """Packages without compile or runtime sections are fine."""
        manifest = parse_lock_manifest(json.dumps({
            "targets": {"net8.0": {"Meta/1.0": {"type": "package"}, "Bar/2.0": {"runtime": {"lib/b.dll": {}}}}}
        }))
        result = resolve_references(manifest, "/root", "net8.0")
        assert result.compile == []
        assert result.runtime == [os.path.normpath("/root/Bar/2.0/lib/b.dll")]

    def test_manifest_order_is_preserved(self):
        """Output follows document order without sorting."""
        manifest = parse_lock_manifest("""{"targets": {"net8.0": {
            "Zeta/1.0": {"compile": {"lib/z.dll": {}}},
            "Alpha/1.0": {"compile": {"lib/b.dll": {}, "lib/a.dll": {}}}
        }}}""")
        result = resolve_references(manifest, "/r", "net8.0")
        assert result.compile == [
            os.path.normpath("/r/Zeta/1.0/lib/z.dll"),
            os.path.normpath("/r/Alpha/1.0/lib/b.dll"),
            os.path.normpath("/r/Alpha/1.0/lib/a.dll"),
        ]

    def test_first_duplicate_target_wins(self):
        """Later duplicate framework keys are ignored."""
        manifest = parse_lock_manifest("""{"targets": {
            "net8.0": {"First/1.0": {"compile": {"lib/first.dll": {}}}},
            "net8.0": {"Second/1.0": {"compile": {"lib/second.dll": {}}}}
        }}""")
        result = resolve_references(manifest, "/r", "net8.0")
        assert result.compile == [os.path.normpath("/r/First/1.0/lib/first.dll")]

    def test_key_match_is_exact(self):
        """Framework keys are matched with exact string comparison."""
        manifest = parse_lock_manifest(json.dumps(SAMPLE))
        assert resolve_references(manifest, "/r", "NET8.0").compile == []

    def test_invalid_json(self):
        """Malformed documents raise LockManifestError."""
        with pytest.raises(LockManifestError):
            parse_lock_manifest("{not json")

    def test_wrong_shape(self):
        """Non-object targets are rejected."""
        with pytest.raises(LockManifestError):
            parse_lock_manifest('{"targets": []}')

    def test_missing_file(self):
        """A manifest that was never written raises OSError."""
        with tempfile.TemporaryDirectory() as tmp:
            with pytest.raises(OSError):
                read_lock_manifest(os.path.join(tmp, "absent.json"), "/r", "net8.0")


class TestPlaceholder:
    """Tests for the placeholder marker."""

    def test_basename_compare(self):
        """Only an exact ``_._`` file name counts."""
        assert is_placeholder("_._")
        assert is_placeholder("lib/net8.0/_._")
        assert is_placeholder("lib\\net8.0\\_._")
        assert not is_placeholder("lib/_._.dll")
        assert not is_placeholder("lib/x_._")


class TestReadForFramework:
    """Tests for framework-aware manifest lookup."""

    def test_full_name_key(self):
        """Engines writing full framework names are understood."""
        data = {"targets": {".NETCoreApp,Version=v8.0": {"Foo/1.0": {"compile": {"lib/foo.dll": {}}}}}}
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_manifest(tmp, json.dumps(data))
            result = read_for_framework(path, "/pkgs", parse_framework("net8.0"))
        assert result.compile == [os.path.normpath("/pkgs/Foo/1.0/lib/foo.dll")]

    def test_short_name_key(self):
        """Short folder names are tried second."""
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_manifest(tmp, json.dumps(SAMPLE))
            result = read_for_framework(path, "/pkgs", parse_framework("net8.0"))
        assert len(result.runtime) == 1

    def test_keys(self):
        """Full name comes before the short folder name."""
        assert framework_keys(parse_framework("net8.0")) == (".NETCoreApp,Version=v8.0", "net8.0")
