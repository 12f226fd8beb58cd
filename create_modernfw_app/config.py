"""create-modernfw-app configuration.

Two kinds of configuration live here:

* ``ResolvedConfig`` -- the immutable record of user intent for one run
  (framework, target path, package manager, feature toggles).  It is built
  once by :class:`~create_modernfw_app.resolver.ConfigResolver` and passed to
  every later stage; nothing mutates it afterwards.
* ``Settings`` -- tool-level knobs (template mirror, registry URL, timeouts)
  read from ``CMA_*`` environment variables.

All models are Pydantic v2 so they are validated at construction time.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Framework(str, Enum):
    """Application framework the generated project is built on."""

    NEXT = "next"
    REACT = "react"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def default_project_name(self) -> str:
        """Directory name suggested when the user does not supply one."""
        return f"{self.value}-app"


class PackageManager(str, Enum):
    """Node package manager used to install the generated project's dependencies."""

    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"

    def run_command(self, script: str) -> str:
        """Return the command that runs *script* from the generated manifest."""
        if self is PackageManager.NPM:
            return f"npm run {script}"
        return f"{self.value} {script}"


class Toggles(BaseModel):
    """Named feature toggles gating template files and dependency groups."""

    model_config = ConfigDict(frozen=True)

    tailwind: bool = Field(default=True, description="Tailwind CSS styling")
    lintstaged: bool = Field(default=True, description="lint-staged + husky pre-commit hooks")
    docker: bool = Field(default=True, description="Dockerfile and .dockerignore")
    commitlint: bool = Field(default=False, description="Conventional-commit message linting")


DEFAULT_TOGGLES = Toggles()


class ResolvedConfig(BaseModel):
    """Final, immutable configuration for one bootstrap run."""

    model_config = ConfigDict(frozen=True)

    framework: Framework
    root: Path = Field(..., description="Absolute path of the project directory")
    package_manager: PackageManager = Field(default=PackageManager.NPM)
    toggles: Toggles = Field(default_factory=Toggles)
    skip_install: bool = Field(default=False)
    disable_git: bool = Field(default=False)

    @field_validator("root")
    @classmethod
    def _absolute_root(cls, value: Path) -> Path:
        return Path(os.path.abspath(value))

    @property
    def app_name(self) -> str:
        """Project name, derived from the target directory's base name."""
        return self.root.name


class Settings(BaseModel):
    """Tool-level settings, independent of any single run."""

    template_archive_url: str | None = Field(
        default=None,
        description="Archive mirroring the official template set; bundled templates when unset",
    )
    registry_url: str = Field(default="https://pypi.org/pypi")
    update_check: bool = Field(default=True)
    http_timeout: float = Field(default=10.0, ge=1.0, description="HTTP request timeout in seconds")
    install_timeout: int = Field(
        default=900, ge=30, description="Timeout for one package-manager invocation in seconds"
    )
    online_probe_host: str = Field(default="registry.yarnpkg.com")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            CMA_TEMPLATE_URL, CMA_REGISTRY_URL, CMA_NO_UPDATE_CHECK,
            CMA_HTTP_TIMEOUT, CMA_INSTALL_TIMEOUT, CMA_ONLINE_PROBE_HOST.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CMA_TEMPLATE_URL"):
            kwargs["template_archive_url"] = os.environ["CMA_TEMPLATE_URL"]
        if os.environ.get("CMA_REGISTRY_URL"):
            kwargs["registry_url"] = os.environ["CMA_REGISTRY_URL"].rstrip("/")
        if os.environ.get("CMA_NO_UPDATE_CHECK"):
            kwargs["update_check"] = False
        if os.environ.get("CMA_HTTP_TIMEOUT"):
            kwargs["http_timeout"] = float(os.environ["CMA_HTTP_TIMEOUT"])
        if os.environ.get("CMA_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["CMA_INSTALL_TIMEOUT"])
        if os.environ.get("CMA_ONLINE_PROBE_HOST"):
            kwargs["online_probe_host"] = os.environ["CMA_ONLINE_PROBE_HOST"]
        return cls(**kwargs)
