"""Dependency installation through the chosen Node package manager."""

from __future__ import annotations

import logging
from pathlib import Path

from create_modernfw_app.config import PackageManager
from create_modernfw_app.scaffolder.manifest import ComposedDependencies, Package
from create_modernfw_app.utils import console, print_warning, run_command

logger = logging.getLogger(__name__)

INSTALL_ENV: dict[str, str] = {
    "ADBLOCK": "1",
    "NODE_ENV": "development",
    "DISABLE_OPENCOLLECTIVE": "1",
}


class InstallError(Exception):
    """The package manager exited with a non-zero status."""

    def __init__(self, command: str, returncode: int | None = None) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(f"{command} has failed")


def build_install_command(
    package_manager: PackageManager,
    root: Path,
    packages: list[Package],
    *,
    dev: bool,
    is_online: bool,
) -> list[str]:
    """Return the argv that adds *packages* to the project at *root*.

    With no packages the command is a plain ``install`` of the manifest.
    """
    command = [package_manager.value]
    specs = [p.spec for p in packages]

    if not specs:
        command.append("install")
        if not is_online and package_manager is PackageManager.YARN:
            command.append("--offline")
        return command

    if package_manager is PackageManager.YARN:
        command += ["add", "--exact"]
        if not is_online:
            command.append("--offline")
        command += ["--cwd", str(root)]
        if dev:
            command.append("--dev")
    elif package_manager is PackageManager.PNPM:
        command += ["add", "--save-exact"]
        if dev:
            command.append("--save-dev")
    else:
        command += ["install", "--save-exact", "--save-dev" if dev else "--save"]
    return command + specs


class Installer:
    """Hands the composed dependency lists to the package manager."""

    def __init__(self, timeout: int = 900) -> None:
        self.timeout = timeout

    async def _run(self, command: list[str], root: Path) -> None:
        logger.debug("Running %s in %s", " ".join(command), root)
        try:
            returncode, _, stderr = await run_command(
                command, cwd=root, timeout=self.timeout, capture=False, env=INSTALL_ENV
            )
        except FileNotFoundError as exc:
            raise InstallError(" ".join(command)) from exc
        if returncode != 0:
            if stderr:
                logger.debug(stderr)
            raise InstallError(" ".join(command), returncode)

    async def install(
        self,
        root: Path,
        dependencies: ComposedDependencies,
        package_manager: PackageManager,
        is_online: bool = True,
    ) -> bool:
        """Install runtime then development dependencies.

        Returns:
            ``False`` when there was nothing to install and no command ran.

        Raises:
            InstallError: The package manager failed; not retried.
        """
        if dependencies.is_empty():
            return False

        console.print()
        console.print("Installing dependencies:")
        for package in dependencies.all:
            console.print(f"- [cyan]{package.spec}[/cyan]")
        console.print()

        if not is_online and package_manager is PackageManager.YARN:
            print_warning("You appear to be offline.")
            console.print("Falling back to the local Yarn cache.")
            console.print()

        for packages, dev in (
            (dependencies.dependencies, False),
            (dependencies.dev_dependencies, True),
        ):
            if not packages:
                continue
            command = build_install_command(
                package_manager, root, packages, dev=dev, is_online=is_online
            )
            await self._run(command, root)
        return True
