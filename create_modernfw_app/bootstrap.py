"""Bootstrap orchestrator.

Sequences the pipeline for one resolved configuration:

VALIDATING       -- writable parent, valid name, empty-or-new directory.
MATERIALIZING    -- acquire the template and copy it into the project.
SYNTHESIZING     -- write package.json.
INSTALLING       -- run the package manager.
VERSION_CONTROL_INIT -- best-effort ``git init`` and initial commit.

A :class:`~create_modernfw_app.scaffolder.sources.DownloadError` while
materializing leaves the orchestrator in MATERIALIZING so the caller can
retry with another source through :meth:`Bootstrapper.retry_materializing`.
Every other failure moves to FAILED and propagates.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.markup import escape

from create_modernfw_app.config import PackageManager, ResolvedConfig, Settings
from create_modernfw_app.scaffolder.git import try_git_init
from create_modernfw_app.scaffolder.installer import Installer
from create_modernfw_app.scaffolder.manifest import ManifestSynthesizer
from create_modernfw_app.scaffolder.sources import (
    BundledTemplateSource,
    DownloadError,
    RemoteTemplateSource,
    TemplateSource,
)
from create_modernfw_app.scaffolder.templates import CopyPlan, TreeMaterializer, select_template
from create_modernfw_app.utils import console, is_online, print_success
from create_modernfw_app.validation import DirectoryValidator

logger = logging.getLogger(__name__)


class BootstrapState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    MATERIALIZING = "materializing"
    SYNTHESIZING = "synthesizing"
    INSTALLING = "installing"
    VERSION_CONTROL_INIT = "version_control_init"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class BootstrapResult:
    """Outcome of a successful bootstrap."""

    root: Path
    app_name: str
    template: str
    source: str
    files: list[Path] = field(default_factory=list)
    manifest_path: Path | None = None
    installed: bool = False
    git_initialized: bool = False


def default_source(settings: Settings) -> TemplateSource:
    """The template source configured for this installation."""
    if settings.template_archive_url:
        return RemoteTemplateSource(settings.template_archive_url, timeout=settings.http_timeout)
    return BundledTemplateSource()


class Bootstrapper:
    """Drives one project through the bootstrap states.

    Attributes:
        config: The immutable run configuration.
        state: Current :class:`BootstrapState`.
        history: Every state entered, in order.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        settings: Settings | None = None,
        *,
        validator: DirectoryValidator | None = None,
        materializer: TreeMaterializer | None = None,
        synthesizer: ManifestSynthesizer | None = None,
        installer: Installer | None = None,
        online_check: Callable[[str], Awaitable[bool]] = is_online,
        git_init: Callable[[Path], Awaitable[bool]] = try_git_init,
    ) -> None:
        self.config = config
        self.settings = settings or Settings()
        self.validator = validator or DirectoryValidator()
        self.materializer = materializer or TreeMaterializer()
        self.synthesizer = synthesizer or ManifestSynthesizer()
        self.installer = installer or Installer(timeout=self.settings.install_timeout)
        self.online_check = online_check
        self.git_init = git_init
        self.state = BootstrapState.IDLE
        self.history: list[BootstrapState] = [BootstrapState.IDLE]

    def _enter(self, state: BootstrapState) -> None:
        logger.debug("bootstrap: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    @property
    def failed_stage(self) -> BootstrapState | None:
        """The state that was active when the run moved to FAILED."""
        if self.state is not BootstrapState.FAILED:
            return None
        return self.history[-2]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, source: TemplateSource | None = None) -> BootstrapResult:
        """Validate the target and run the remaining stages.

        Raises:
            DirectoryValidationError: A precondition failed (state FAILED).
            DownloadError: The template could not be acquired (state stays
                MATERIALIZING; see :meth:`retry_materializing`).
            InstallError: The package manager failed (state FAILED).
        """
        if self.state is not BootstrapState.IDLE:
            raise RuntimeError(f"Bootstrapper already started (state: {self.state.value})")

        self._enter(BootstrapState.VALIDATING)
        try:
            await self.validator.validate(self.config.root)
        except Exception:
            self._enter(BootstrapState.FAILED)
            raise

        console.print(
            f"Creating a new {self.config.framework.display_name} app in "
            f"[green]{escape(str(self.config.root))}[/green]."
        )
        console.print()
        return await self._from_materializing(source or default_source(self.settings))

    async def retry_materializing(self, source: TemplateSource) -> BootstrapResult:
        """Restart from MATERIALIZING with *source* after a :class:`DownloadError`."""
        if self.state is not BootstrapState.MATERIALIZING:
            raise RuntimeError(
                f"Can only retry after a failed download (state: {self.state.value})"
            )
        return await self._from_materializing(source)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _from_materializing(self, source: TemplateSource) -> BootstrapResult:
        config = self.config
        template = select_template(config.framework, config.toggles.tailwind)
        result = BootstrapResult(
            root=config.root,
            app_name=config.app_name,
            template=template.value,
            source=source.name,
        )

        self._enter(BootstrapState.MATERIALIZING)
        console.print(f"[bold]Using {config.package_manager.value}.[/bold]")
        console.print()
        console.print(f"Initializing project with template: {template.value}")
        console.print()
        try:
            try:
                template_root = await source.acquire(config.framework.value, template.value)
                result.files = await self.materializer.materialize(
                    template_root, config.root, CopyPlan.for_toggles(config.toggles)
                )
            finally:
                await source.release()
        except DownloadError:
            raise
        except Exception:
            self._enter(BootstrapState.FAILED)
            raise

        try:
            self._enter(BootstrapState.SYNTHESIZING)
            result.manifest_path, dependencies = await self.synthesizer.synthesize(config)

            self._enter(BootstrapState.INSTALLING)
            if config.skip_install:
                logger.debug("Skipping install (--skip-install)")
            else:
                online = await self._is_online()
                result.installed = await self.installer.install(
                    config.root, dependencies, config.package_manager, is_online=online
                )
        except Exception:
            self._enter(BootstrapState.FAILED)
            raise

        self._enter(BootstrapState.VERSION_CONTROL_INIT)
        if not config.disable_git:
            result.git_initialized = await self.git_init(config.root)
            if result.git_initialized:
                console.print("Initialized a git repository.")
                console.print()

        self._enter(BootstrapState.SUCCEEDED)
        self._print_next_steps()
        return result

    async def _is_online(self) -> bool:
        # Only yarn can fall back to an offline cache, so only yarn pays for the probe.
        if self.config.package_manager is not PackageManager.YARN:
            return True
        return await self.online_check(self.settings.online_probe_host)

    def _print_next_steps(self) -> None:
        config = self.config
        pm = config.package_manager
        shown = os.path.relpath(config.root)
        if shown.startswith(".."):
            shown = str(config.root)

        print_success("Success!")
        console.print(f"Created {escape(config.app_name)} at {escape(str(config.root))}")
        console.print("Inside that directory, you can run several commands:")
        console.print()
        for script, description in (
            ("dev", "Starts the development server."),
            ("build", "Builds the app for production."),
            ("start", "Runs the built app in production mode."),
        ):
            console.print(f"  [cyan]{pm.run_command(script)}[/cyan]")
            console.print(f"    {description}")
            console.print()
        console.print("We suggest that you begin by typing:")
        console.print()
        if config.root != Path.cwd():
            console.print(f"  [cyan]cd[/cyan] {escape(shown)}")
        console.print(f"  [cyan]{pm.run_command('dev')}[/cyan]")
        console.print()
