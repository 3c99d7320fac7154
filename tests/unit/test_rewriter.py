"""
Tests for Import Rewriter.

This test suite covers:
1. Rule matching of upward relative imports of the core package
2. Sibling file creation and registration
3. Best-effort fallback on I/O failures
4. Temp file purging
"""

import re
import tempfile
from pathlib import Path

from plughost.plugin.rewriter import (
    ImportRewriter,
    RewriteRule,
    TempFileRegistry,
    core_package_rule,
    fixed_path,
)

BROKEN_SOURCE = """\
import os
from ...site_libs.effectgen.effects import Glow
from ..effectgen import Effect

def register():
    from ....vendor.effectgen.util.color import rgb
    return Glow, Effect, rgb
"""


class TestCorePackageRule:
    """Test the default rewrite rule."""

    def test_rewrites_upward_imports(self):
        """Every upward relative import of the core package should be rewritten."""
        source, count = core_package_rule("effectgen").apply(BROKEN_SOURCE)

        assert count == 3
        assert "from effectgen.effects import Glow" in source
        assert "from effectgen import Effect" in source
        assert "    from effectgen.util.color import rgb" in source
        assert "import os" in source

    def test_leaves_other_imports_alone(self):
        """Local relative imports and absolute imports should not change."""
        source = (
            "from .helpers import blur\n"
            "from ..shared import tools\n"
            "from effectgen import Effect\n"
            "from ..effectgenerator import other\n"
        )

        new_source, count = core_package_rule("effectgen").apply(source)

        assert count == 0
        assert new_source == source

    def test_custom_core_package(self):
        """The rule should follow the configured core package name."""
        _, count = core_package_rule("fxcore").apply("from ..fxcore.nodes import Node\n")
        assert count == 1


class TestImportRewriter:
    """Test ImportRewriter.fix()."""

    def test_no_match_returns_original(self):
        """Clean files should be loaded as they are."""
        with tempfile.TemporaryDirectory() as tmpdir:
            entry = Path(tmpdir) / "plugin.py"
            entry.write_text("from effectgen import Effect\n")
            registry = TempFileRegistry()

            result = ImportRewriter([core_package_rule("effectgen")], registry).fix(entry)

            assert result == entry
            assert len(registry) == 0
            assert sorted(p.name for p in Path(tmpdir).iterdir()) == ["plugin.py"]

    def test_match_creates_sibling(self):
        """Broken files should be rewritten to a hidden sibling."""
        with tempfile.TemporaryDirectory() as tmpdir:
            entry = Path(tmpdir) / "index.py"
            entry.write_text(BROKEN_SOURCE)
            original = entry.read_bytes()
            registry = TempFileRegistry()

            result = ImportRewriter([core_package_rule("effectgen")], registry).fix(entry)

            assert result == Path(tmpdir) / ".index.fixed.py"
            assert result.exists()
            assert registry.paths() == [result]
            assert entry.read_bytes() == original

            fixed = result.read_text()
            assert "..." not in fixed
            assert fixed.count("from effectgen") == 3

    def test_fix_twice_registers_once(self):
        """Fixing the same file twice should register its sibling once."""
        with tempfile.TemporaryDirectory() as tmpdir:
            entry = Path(tmpdir) / "plugin.py"
            entry.write_text(BROKEN_SOURCE)
            registry = TempFileRegistry()
            rewriter = ImportRewriter([core_package_rule("effectgen")], registry)

            rewriter.fix(entry)
            rewriter.fix(entry)

            assert len(registry) == 1

    def test_unreadable_file_falls_back(self):
        """A file that can't be read should be returned unchanged."""
        with tempfile.TemporaryDirectory() as tmpdir:
            entry = Path(tmpdir) / "plugin.py"
            entry.write_bytes(b"\xff\xfe\x00broken")
            registry = TempFileRegistry()

            result = ImportRewriter([core_package_rule("effectgen")], registry).fix(entry)

            assert result == entry
            assert len(registry) == 0

    def test_unwritable_sibling_falls_back(self):
        """If the sibling can't be written the original should be used."""
        with tempfile.TemporaryDirectory() as tmpdir:
            entry = Path(tmpdir) / "plugin.py"
            entry.write_text(BROKEN_SOURCE)
            # A directory in the sibling's place makes the write fail
            fixed_path(entry).mkdir()
            registry = TempFileRegistry()

            result = ImportRewriter([core_package_rule("effectgen")], registry).fix(entry)

            assert result == entry
            assert len(registry) == 0

    def test_custom_rules(self):
        """Injected rules should be applied in order."""
        with tempfile.TemporaryDirectory() as tmpdir:
            entry = Path(tmpdir) / "plugin.py"
            entry.write_text("import legacy_fx\n")
            rule = RewriteRule(
                name="legacy",
                pattern=re.compile(r"^import legacy_fx$", re.MULTILINE),
                replacement="import effectgen as legacy_fx",
            )

            result = ImportRewriter([rule], TempFileRegistry()).fix(entry)

            assert result.read_text() == "import effectgen as legacy_fx\n"


class TestTempFileRegistry:
    """Test TempFileRegistry."""

    def test_purge_deletes_and_clears(self):
        """purge() should delete registered files and forget them."""
        with tempfile.TemporaryDirectory() as tmpdir:
            registry = TempFileRegistry()
            first = Path(tmpdir) / ".a.fixed.py"
            second = Path(tmpdir) / ".b.fixed.py"
            first.write_text("")
            second.write_text("")
            registry.register(first)
            registry.register(second)

            assert registry.purge() == 2
            assert not first.exists()
            assert not second.exists()
            assert len(registry) == 0

    def test_purge_tolerates_missing_files(self):
        """Files already gone should not fail the purge."""
        with tempfile.TemporaryDirectory() as tmpdir:
            registry = TempFileRegistry()
            registry.register(Path(tmpdir) / ".gone.fixed.py")

            assert registry.purge() == 0
            assert registry.paths() == []

    def test_fixed_path_naming(self):
        """Rewritten copies should be hidden siblings with a .fixed infix."""
        assert fixed_path(Path("/p/plugin.py")) == Path("/p/.plugin.fixed.py")
