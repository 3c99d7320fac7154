"""
Import Rewriter.

Plugin authors often develop against a checkout of the core library that sits
a few directories above their plugin, and write relative imports that climb
out of the plugin to reach it:

    from ...site_libs.effectgen.effects import Glow

Once the plugin is installed elsewhere those imports break. The rewriter turns
them into absolute imports of the core package:

    from effectgen.effects import Glow

The original file is never modified. The rewritten source goes to a hidden
sibling (.plugin.fixed.py for plugin.py) which is registered for deletion
when plugins are unloaded.
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from plughost.plugin.errors import ImportRewriteWarning

_log = logging.getLogger(__name__)

FIXED_INFIX = ".fixed"


@dataclass(frozen=True)
class RewriteRule:
    """
    One source rewrite.

    Attributes:
        name: Short identifier for logging
        pattern: Compiled regex to search for
        replacement: re.sub replacement string or callable
    """

    name: str
    pattern: re.Pattern
    replacement: str | Callable[[re.Match], str]

    def apply(self, source: str) -> tuple[str, int]:
        return self.pattern.subn(self.replacement, source)


def core_package_rule(core_package: str) -> RewriteRule:
    """
    Build the rule that turns upward relative imports of the core package into
    absolute ones.

    Matches "from" imports with two or more leading dots, optionally through
    intermediate package segments, whose module path reaches core_package.
    """
    pkg = re.escape(core_package)
    pattern = re.compile(
        rf"^(?P<lead>[ \t]*from[ \t]+)\.{{2,}}(?:[A-Za-z_]\w*\.)*?"
        rf"(?P<target>{pkg}(?:\.[A-Za-z_]\w*)*)(?P<tail>[ \t]+import\b)",
        re.MULTILINE,
    )
    return RewriteRule(
        name=f"relative-{core_package}",
        pattern=pattern,
        replacement=r"\g<lead>\g<target>\g<tail>",
    )


def fixed_path(file_path: Path) -> Path:
    """Sibling path for the rewritten copy of file_path."""
    return file_path.with_name(f".{file_path.stem}{FIXED_INFIX}{file_path.suffix}")


class TempFileRegistry:
    """Rewritten files created during loading, deleted on unload."""

    def __init__(self):
        self._paths: list[Path] = []

    def register(self, path: Path) -> None:
        if path not in self._paths:
            self._paths.append(path)

    def paths(self) -> list[Path]:
        return list(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def purge(self) -> int:
        """
        Delete every registered file and forget them.

        Returns:
            Number of files actually deleted
        """
        deleted = 0
        for path in self._paths:
            try:
                path.unlink()
                deleted += 1
            except FileNotFoundError:
                pass
            except OSError as e:
                _log.warning("could not delete temp file %s: %s", path, e)
        self._paths.clear()
        return deleted


class ImportRewriter:
    def __init__(self, rules: Iterable[RewriteRule], registry: TempFileRegistry):
        self.rules = list(rules)
        self.registry = registry

    def fix(self, file_path: str | Path) -> Path:
        """
        Rewrite broken imports in file_path, if any.

        Returns:
            The path to load: the rewritten sibling when something changed,
            otherwise file_path itself
        """
        file_path = Path(file_path)
        try:
            return self._fix(file_path)
        except ImportRewriteWarning as w:
            _log.warning("%s; loading %s unchanged", w, file_path)
            return file_path

    def _fix(self, file_path: Path) -> Path:
        try:
            source = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ImportRewriteWarning(f"could not read {file_path}: {e}") from e

        total = 0
        for rule in self.rules:
            source, count = rule.apply(source)
            if count:
                _log.debug("rule %s rewrote %d import(s) in %s", rule.name, count, file_path)
            total += count

        if total == 0:
            return file_path

        target = fixed_path(file_path)
        try:
            target.write_text(source, encoding="utf-8")
        except OSError as e:
            raise ImportRewriteWarning(f"could not write {target}: {e}") from e

        self.registry.register(target)
        _log.info("rewrote %d import(s) in %s -> %s", total, file_path, target.name)
        return target
