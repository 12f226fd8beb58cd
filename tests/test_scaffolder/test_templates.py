"""Tests for template selection and tree materialization.

Covers:
- select_template for every (framework, tailwind) pair
- rename_file mapping and idempotence
- CopyPlan rule evaluation for every toggle combination
- TreeMaterializer against a fixture tree and the bundled templates
"""

from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from create_modernfw_app.config import Framework, Toggles
from create_modernfw_app.scaffolder.sources import BundledTemplateSource, TemplateNotFoundError
from create_modernfw_app.scaffolder.templates import (
    CopyPlan,
    CopyRule,
    TemplateType,
    TreeMaterializer,
    rename_file,
    select_template,
)

pytestmark = pytest.mark.unit

ALL_TOGGLES = [
    Toggles(tailwind=tw, lintstaged=ls, docker=d, commitlint=cl)
    for tw, ls, d, cl in itertools.product([True, False], repeat=4)
]


def _tree(root: Path) -> set[str]:
    return {p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file()}


# ---------------------------------------------------------------------------
# select_template
# ---------------------------------------------------------------------------


class TestSelectTemplate:
    @pytest.mark.parametrize("framework", list(Framework))
    def test_tailwind_variant(self, framework):
        assert select_template(framework, True) is TemplateType.APP_TAILWIND

    @pytest.mark.parametrize("framework", list(Framework))
    def test_plain_variant(self, framework):
        assert select_template(framework, False) is TemplateType.APP

    def test_every_selection_is_bundled(self):
        available = BundledTemplateSource().list_templates()
        for framework in Framework:
            for tailwind in (True, False):
                assert f"{framework.value}/{select_template(framework, tailwind).value}" in available


# ---------------------------------------------------------------------------
# rename_file
# ---------------------------------------------------------------------------


class TestRenameFile:
    @pytest.mark.parametrize(
        ("source", "expected"),
        [
            ("gitignore", ".gitignore"),
            ("dockerignore", ".dockerignore"),
            ("prettierignore", ".prettierignore"),
            ("eslintrc.cjs", ".eslintrc.cjs"),
            ("eslintrc.json", ".eslintrc.json"),
            ("prettierrc.json", ".prettierrc.json"),
            ("lintstagedrc.json", ".lintstagedrc.json"),
            ("huskyrc.json", ".huskyrc.json"),
            ("commitlintrc.json", ".commitlintrc.json"),
            ("README-template.md", "README.md"),
        ],
    )
    def test_mapped_names(self, source, expected):
        assert rename_file(source) == expected

    @pytest.mark.parametrize(
        "name", ["index.html", "Dockerfile", "tsconfig.json", "next.config.js", "README.md"]
    )
    def test_unmapped_names_pass_through(self, name):
        assert rename_file(name) == name

    @pytest.mark.parametrize(
        "name", ["gitignore", "eslintrc.cjs", "README-template.md", "vite.config.ts"]
    )
    def test_idempotent(self, name):
        once = rename_file(name)
        assert rename_file(once) == once


# ---------------------------------------------------------------------------
# CopyPlan
# ---------------------------------------------------------------------------


class TestCopyPlan:
    def test_all_enabled_copies_everything(self):
        plan = CopyPlan.for_toggles(Toggles(tailwind=True, lintstaged=True, docker=True, commitlint=True))
        assert plan.excluded_patterns == []
        assert plan.includes("src/deep/file.ts")
        assert plan.includes("Dockerfile")

    def test_last_matching_rule_wins(self):
        plan = CopyPlan(rules=(CopyRule("**"), CopyRule("**/*.md", include=False), CopyRule("keep.md")))
        assert plan.includes("keep.md")
        assert not plan.includes("docs/other.md")
        assert plan.includes("other.txt")

    def test_nothing_included_without_rules(self):
        assert not CopyPlan(rules=()).includes("anything")

    def test_nested_files_matched_by_basename(self):
        plan = CopyPlan.for_toggles(Toggles(docker=False))
        assert not plan.includes("Dockerfile")
        assert not plan.includes("services/api/Dockerfile")
        assert plan.includes("docs/Dockerfile.md")

    @pytest.mark.parametrize("toggles", ALL_TOGGLES)
    def test_exclusions_follow_toggles(self, toggles):
        plan = CopyPlan.for_toggles(toggles)
        assert plan.includes("tailwind.config.js") is toggles.tailwind
        assert plan.includes("postcss.config.js") is toggles.tailwind
        assert plan.includes("lintstagedrc.json") is toggles.lintstaged
        assert plan.includes("huskyrc.json") is toggles.lintstaged
        assert plan.includes("Dockerfile") is toggles.docker
        assert plan.includes("dockerignore") is toggles.docker
        assert plan.includes("commitlintrc.json") is toggles.commitlint
        assert plan.includes("gitignore")
        assert plan.includes("src/index.ts")

    def test_target_path_renames_only_the_basename(self):
        plan = CopyPlan.for_toggles(Toggles())
        assert plan.target_path("gitignore") == Path(".gitignore")
        assert plan.target_path("src/nested/gitignore") == Path("src/nested/.gitignore")
        assert plan.target_path("gitignore/file.txt") == Path("gitignore/file.txt")


# ---------------------------------------------------------------------------
# TreeMaterializer
# ---------------------------------------------------------------------------


class TestTreeMaterializer:
    @pytest.mark.asyncio
    async def test_copies_and_renames(self, template_dir: Path, tmp_path: Path):
        target = tmp_path / "out"
        plan = CopyPlan.for_toggles(Toggles(commitlint=True))
        written = await TreeMaterializer().materialize(template_dir / "react" / "app", target, plan)

        assert _tree(target) == {
            ".gitignore",
            ".eslintrc.json",
            ".prettierrc.json",
            ".prettierignore",
            ".lintstagedrc.json",
            ".huskyrc.json",
            ".commitlintrc.json",
            ".dockerignore",
            "Dockerfile",
            "README.md",
            "src/index.ts",
            "src/nested/.gitignore",
        }
        assert sorted(written) == sorted(target / p for p in _tree(target))
        assert (target / "src" / "nested" / ".gitignore").read_text() == "*.tmp\n"

    @pytest.mark.asyncio
    async def test_disabled_toggles_leave_no_files(self, template_dir: Path, tmp_path: Path):
        target = tmp_path / "out"
        plan = CopyPlan.for_toggles(
            Toggles(tailwind=False, lintstaged=False, docker=False, commitlint=False)
        )
        await TreeMaterializer().materialize(template_dir / "next" / "app-tailwind", target, plan)

        names = _tree(target)
        for missing in (
            "tailwind.config.js",
            "postcss.config.js",
            ".lintstagedrc.json",
            ".huskyrc.json",
            "Dockerfile",
            ".dockerignore",
            ".commitlintrc.json",
        ):
            assert missing not in names
        assert ".gitignore" in names

    @pytest.mark.asyncio
    async def test_contents_preserved_byte_for_byte(self, tmp_path: Path):
        source = tmp_path / "tpl"
        source.mkdir()
        payload = bytes(range(256)) * 4
        (source / "blob.bin").write_bytes(payload)
        target = tmp_path / "out"
        await TreeMaterializer().materialize(source, target, CopyPlan.for_toggles(Toggles()))
        assert (target / "blob.bin").read_bytes() == payload

    @pytest.mark.asyncio
    async def test_existing_allowed_files_kept(self, template_dir: Path, tmp_path: Path):
        target = tmp_path / "out"
        (target / ".git").mkdir(parents=True)
        (target / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
        await TreeMaterializer().materialize(
            template_dir / "react" / "app", target, CopyPlan.for_toggles(Toggles())
        )
        assert (target / ".git" / "HEAD").read_text() == "ref: refs/heads/main\n"

    @pytest.mark.asyncio
    async def test_missing_template_root(self, tmp_path: Path):
        with pytest.raises(TemplateNotFoundError):
            await TreeMaterializer().materialize(
                tmp_path / "nope", tmp_path / "out", CopyPlan.for_toggles(Toggles())
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("framework", list(Framework))
    @pytest.mark.parametrize("tailwind", [True, False])
    async def test_bundled_templates(self, tmp_path: Path, framework, tailwind):
        toggles = Toggles(tailwind=tailwind, commitlint=True)
        template = select_template(framework, tailwind)
        source = BundledTemplateSource()
        root = await source.acquire(framework.value, template.value)
        target = tmp_path / "out"

        await TreeMaterializer().materialize(root, target, CopyPlan.for_toggles(toggles))

        names = _tree(target)
        assert {".gitignore", "README.md", "Dockerfile", ".commitlintrc.json", "tsconfig.json"} <= names
        assert ("tailwind.config.js" in names) is tailwind
        assert not any(Path(n).name in {"gitignore", "README-template.md"} for n in names)
