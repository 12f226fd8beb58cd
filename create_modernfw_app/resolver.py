"""Configuration resolution.

Merges three layers into one :class:`~create_modernfw_app.config.ResolvedConfig`,
highest precedence first:

1. explicit command-line flags,
2. answers to interactive prompts,
3. built-in defaults (offered as each prompt's pre-selected answer).

A prompt is only shown when the corresponding flag was not supplied.  The
framework is resolved first because the suggested directory name depends on
it.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from create_modernfw_app.config import (
    DEFAULT_TOGGLES,
    Framework,
    PackageManager,
    ResolvedConfig,
    Toggles,
)
from create_modernfw_app.prompts import Prompter
from create_modernfw_app.validation import DirectoryValidator, validate_npm_name

FRAMEWORK_CHOICES: list[tuple[str, str]] = [
    (Framework.NEXT.value, "Next  (https://nextjs.org/)"),
    (Framework.REACT.value, "React (https://react.dev/)"),
]


class ProjectPathMissing(Exception):
    """No project directory was given on the command line or at the prompt."""


@dataclass(frozen=True)
class CliFlags:
    """Options taken from the command line.  ``None`` means "not supplied"."""

    project_path: str | None = None
    framework: Framework | None = None
    package_manager: PackageManager | None = None
    tailwind: bool | None = None
    lintstaged: bool | None = None
    docker: bool | None = None
    commitlint: bool | None = None
    skip_install: bool = False
    disable_git: bool = False


def get_pkg_manager(env: Mapping[str, str] | None = None) -> PackageManager:
    """Detect the package manager that launched us from ``npm_config_user_agent``."""
    env = os.environ if env is None else env
    user_agent = env.get("npm_config_user_agent", "")
    if user_agent.startswith("yarn"):
        return PackageManager.YARN
    if user_agent.startswith("pnpm"):
        return PackageManager.PNPM
    return PackageManager.NPM


def _validate_typed_path(answer: str) -> bool | str:
    name = Path(os.path.abspath(answer)).name
    validation = validate_npm_name(name)
    if validation.valid:
        return True
    return "Invalid project name: " + validation.problems[0]


class ConfigResolver:
    """Builds the run's :class:`ResolvedConfig` from flags, prompts and defaults."""

    def __init__(
        self,
        prompter: Prompter,
        validator: DirectoryValidator | None = None,
        defaults: Toggles = DEFAULT_TOGGLES,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.prompter = prompter
        self.validator = validator or DirectoryValidator()
        self.defaults = defaults
        self.env = os.environ if env is None else env

    async def resolve(self, flags: CliFlags) -> ResolvedConfig:
        """Resolve every option, prompting only for what the flags left open.

        The project name is validated, and an existing directory checked for
        conflicts, before any toggle prompt so the user is not asked questions
        for a run that cannot proceed.

        Raises:
            PromptAborted: The user cancelled a prompt.
            ProjectPathMissing: No directory was supplied or typed.
            InvalidProjectNameError: The directory name breaks npm naming rules.
            TargetIsFileError: The project path exists and is not a directory.
            DirectoryConflictError: The directory exists and holds conflicting files.
        """
        framework = flags.framework or self._ask_framework()
        root = Path(os.path.abspath(self._resolve_path(flags.project_path, framework)))

        self.validator.check_name(root.name)
        await self.validator.check_empty(root)

        toggles = Toggles(
            tailwind=self._resolve_toggle(flags.tailwind, "Tailwind CSS", self.defaults.tailwind),
            lintstaged=self._resolve_toggle(flags.lintstaged, "Lint Staged", self.defaults.lintstaged),
            docker=self._resolve_toggle(flags.docker, "Docker", self.defaults.docker),
            commitlint=self._resolve_toggle(flags.commitlint, "Commit Lint", self.defaults.commitlint),
        )

        return ResolvedConfig(
            framework=framework,
            root=root,
            package_manager=flags.package_manager or get_pkg_manager(self.env),
            toggles=toggles,
            skip_install=flags.skip_install,
            disable_git=flags.disable_git,
        )

    # -- Individual options ------------------------------------------------

    def _ask_framework(self) -> Framework:
        answer = self.prompter.select(
            "Would you prefer to initiate the project using React or Next?",
            FRAMEWORK_CHOICES,
            default=Framework.NEXT.value,
        )
        return Framework(answer)

    def _resolve_path(self, supplied: str | None, framework: Framework) -> str:
        path = (supplied or "").strip()
        if not path:
            path = self.prompter.text(
                "What is your project named?",
                default=framework.default_project_name,
                validate=_validate_typed_path,
            ).strip()
        if not path:
            raise ProjectPathMissing()
        return path

    def _resolve_toggle(self, supplied: bool | None, label: str, default: bool) -> bool:
        if supplied is not None:
            return supplied
        return bool(
            self.prompter.confirm(f"Would you like to use {label} in this project?", default=default)
        )
