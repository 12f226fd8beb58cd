"""Shared pytest fixtures for the create-modernfw-app test suite.

Provides reusable fixtures for:
- Scripted prompt answers (``FakePrompter``)
- A miniature template tree that mirrors the bundled layout
- Resolved configurations and settings with the network switched off
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from create_modernfw_app.config import (
    Framework,
    PackageManager,
    ResolvedConfig,
    Settings,
    Toggles,
)
from create_modernfw_app.prompts import PromptAborted


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


class FakePrompter:
    """Prompter returning scripted answers and recording every question.

    ``confirms`` maps a substring of the question to the answer; questions
    without a match get their default.  An answer of ``PromptAborted`` (the
    class) simulates the user cancelling at that prompt.
    """

    def __init__(
        self,
        select: str | None = None,
        text: str | None = None,
        confirms: dict[str, Any] | None = None,
    ) -> None:
        self.select_answer = select
        self.text_answer = text
        self.confirms = confirms or {}
        self.asked: list[tuple[str, str]] = []
        self.validations: list[Any] = []

    def _answer(self, value: Any, default: Any) -> Any:
        if value is PromptAborted:
            raise PromptAborted()
        return default if value is None else value

    def select(self, message: str, choices: Sequence[tuple[str, str]], default: str) -> str:
        self.asked.append(("select", message))
        return self._answer(self.select_answer, default)

    def confirm(self, message: str, default: bool) -> bool:
        self.asked.append(("confirm", message))
        for needle, answer in self.confirms.items():
            if needle in message:
                return self._answer(answer, default)
        return default

    def text(self, message: str, default: str, validate: Callable[[str], Any] | None = None) -> str:
        self.asked.append(("text", message))
        answer = self._answer(self.text_answer, default)
        if validate is not None:
            self.validations.append(validate(answer))
        return answer

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.asked]


@pytest.fixture
def prompter() -> FakePrompter:
    """Prompter that accepts every default."""
    return FakePrompter()


@pytest.fixture
def make_prompter() -> type[FakePrompter]:
    """The ``FakePrompter`` class, for tests that script their own answers."""
    return FakePrompter


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

TEMPLATE_FILES: dict[str, str] = {
    "README-template.md": "# Template readme\n",
    "gitignore": "node_modules\n",
    "eslintrc.json": "{}\n",
    "prettierrc.json": "{}\n",
    "prettierignore": "dist\n",
    "lintstagedrc.json": "{}\n",
    "huskyrc.json": "{}\n",
    "commitlintrc.json": "{}\n",
    "Dockerfile": "FROM node:20-alpine\n",
    "dockerignore": "node_modules\n",
    "src/index.ts": "export {};\n",
    "src/nested/gitignore": "*.tmp\n",
}

TAILWIND_FILES: dict[str, str] = {
    "tailwind.config.js": "module.exports = {};\n",
    "postcss.config.js": "module.exports = {};\n",
}


def write_tree(root: Path, files: dict[str, str]) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A template root with ``<framework>/<variant>`` trees for both frameworks."""
    root = tmp_path / "templates"
    for framework in ("react", "next"):
        write_tree(root / framework / "app", TEMPLATE_FILES)
        write_tree(root / framework / "app-tailwind", {**TEMPLATE_FILES, **TAILWIND_FILES})
    return root


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    """Settings with the update check disabled."""
    return Settings(update_check=False)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., ResolvedConfig]:
    """Factory for ``ResolvedConfig`` rooted under ``tmp_path``."""

    def _make(
        name: str = "my-app",
        framework: Framework = Framework.REACT,
        package_manager: PackageManager = PackageManager.NPM,
        **toggles: bool,
    ) -> ResolvedConfig:
        skip_install = toggles.pop("skip_install", False)
        disable_git = toggles.pop("disable_git", False)
        return ResolvedConfig(
            framework=framework,
            root=tmp_path / name,
            package_manager=package_manager,
            toggles=Toggles(**toggles),
            skip_install=skip_install,
            disable_git=disable_git,
        )

    return _make
