"""Template selection and tree materialization.

Templates live under ``scaffolder/templates/<framework>/<template>/`` and use
neutral file stems (``gitignore``, ``eslintrc.cjs``, ``README-template.md``)
so that packaging tools never treat them as live config.  On copy those stems
are rewritten to their real names and files belonging to disabled toggles
are left out.
"""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from fnmatch import fnmatchcase
from pathlib import Path

from create_modernfw_app.config import Framework, Toggles
from create_modernfw_app.scaffolder.sources import TemplateNotFoundError

# ---------------------------------------------------------------------------
# Template selection
# ---------------------------------------------------------------------------


class TemplateType(str, Enum):
    """Template variant within a framework directory."""

    APP = "app"
    APP_TAILWIND = "app-tailwind"


def select_template(framework: Framework, tailwind: bool) -> TemplateType:
    """Map a (framework, styling) pair to its template variant.

    Both frameworks ship both variants, so every combination is defined.
    """
    return TemplateType.APP_TAILWIND if tailwind else TemplateType.APP


# ---------------------------------------------------------------------------
# Filename rewriting
# ---------------------------------------------------------------------------

DOT_PREFIXED_STEMS = frozenset({
    "commitlintrc",
    "dockerignore",
    "eslintrc",
    "gitignore",
    "huskyrc",
    "lintstagedrc",
    "prettierignore",
    "prettierrc",
})

RENAMED_STEMS: dict[str, str] = {
    "README-template": "README",
}


def rename_file(name: str) -> str:
    """Return the on-disk name for template file *name*.

    The stem is everything before the first ``.``; the remainder (extension)
    is kept.  Unmapped names, including already-rewritten ones, pass through
    unchanged.
    """
    stem, dot, rest = name.partition(".")
    suffix = dot + rest
    if stem in DOT_PREFIXED_STEMS:
        return f".{stem}{suffix}"
    if stem in RENAMED_STEMS:
        return RENAMED_STEMS[stem] + suffix
    return name


# ---------------------------------------------------------------------------
# Copy plan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CopyRule:
    """A single glob rule.  ``include=False`` is a negation (``!pattern``)."""

    pattern: str
    include: bool = True


def _glob_match(relative: str, pattern: str) -> bool:
    """Match a POSIX relative path against a glob where ``**/`` spans directories."""
    if pattern == "**":
        return True
    if pattern.startswith("**/"):
        tail = pattern[3:]
        if "/" not in tail:
            return fnmatchcase(relative.rsplit("/", 1)[-1], tail)
        return fnmatchcase(relative, tail) or fnmatchcase(relative, pattern)
    return fnmatchcase(relative, pattern)


@dataclass(frozen=True)
class CopyPlan:
    """Ordered include/exclude rules plus the filename rewrite.

    Rules are evaluated in order and the last matching rule decides, so a
    negation listed after ``**`` removes files from the copy.
    """

    rules: tuple[CopyRule, ...]
    rename: Callable[[str], str] = field(default=rename_file)

    def includes(self, relative: str) -> bool:
        included = False
        for rule in self.rules:
            if _glob_match(relative, rule.pattern):
                included = rule.include
        return included

    def target_path(self, relative: str) -> Path:
        """Destination path (relative to the project root) for a template file."""
        parent, _, name = relative.rpartition("/")
        renamed = self.rename(name)
        return Path(parent) / renamed if parent else Path(renamed)

    @property
    def excluded_patterns(self) -> list[str]:
        return [rule.pattern for rule in self.rules if not rule.include]

    @classmethod
    def for_toggles(cls, toggles: Toggles) -> "CopyPlan":
        """Build the plan that leaves out files of every disabled toggle."""
        rules = [CopyRule("**")]
        if not toggles.tailwind:
            rules += [
                CopyRule("**/tailwind.config.*", include=False),
                CopyRule("**/postcss.config.*", include=False),
            ]
        if not toggles.lintstaged:
            rules += [
                CopyRule("**/lintstagedrc.*", include=False),
                CopyRule("**/huskyrc.*", include=False),
            ]
        if not toggles.docker:
            rules += [
                CopyRule("**/Dockerfile", include=False),
                CopyRule("**/dockerignore", include=False),
            ]
        if not toggles.commitlint:
            rules += [CopyRule("**/commitlintrc.*", include=False)]
        return cls(rules=tuple(rules))


# ---------------------------------------------------------------------------
# Materializer
# ---------------------------------------------------------------------------


def _copy_file(src: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(src, dest)
    shutil.copymode(src, dest)


class TreeMaterializer:
    """Copies a template tree into the project directory according to a :class:`CopyPlan`."""

    async def materialize(self, template_root: Path, target: Path, plan: CopyPlan) -> list[Path]:
        """Copy every planned file under *template_root* into *target*.

        Relative directory structure and file contents are preserved exactly.

        Returns:
            The written destination paths, in sorted source order.

        Raises:
            TemplateNotFoundError: *template_root* is not a directory.
            OSError: A file could not be read or written.
        """
        if not template_root.is_dir():
            raise TemplateNotFoundError(template_root)

        sources = await asyncio.to_thread(
            lambda: sorted(p for p in template_root.rglob("*") if p.is_file())
        )

        written: list[Path] = []
        for src in sources:
            relative = src.relative_to(template_root).as_posix()
            if not plan.includes(relative):
                continue
            dest = target / plan.target_path(relative)
            await asyncio.to_thread(_copy_file, src, dest)
            written.append(dest)
        return written
