"""Command-line entry point.

Usage::

    create-modernfw-app my-app
    create-modernfw-app my-app --react --tailwind --no-docker --use-pnpm
    python -m create_modernfw_app my-app --next --skip-install

This module owns the top-level error policy: every exception is turned into
a diagnostic and an exit status here and nowhere else.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import threading

from rich.logging import RichHandler
from rich.markup import escape

from create_modernfw_app import PACKAGE_NAME, __version__
from create_modernfw_app.bootstrap import (
    BootstrapResult,
    Bootstrapper,
    BootstrapState,
)
from create_modernfw_app.config import Framework, PackageManager, ResolvedConfig, Settings
from create_modernfw_app.prompts import Prompter, PromptAborted, RichPrompter
from create_modernfw_app.resolver import CliFlags, ConfigResolver, ProjectPathMissing
from create_modernfw_app.scaffolder.installer import InstallError
from create_modernfw_app.scaffolder.sources import BundledTemplateSource, DownloadError
from create_modernfw_app.update_check import check_for_update, print_update_notice
from create_modernfw_app.utils import console, print_error, print_summary_table
from create_modernfw_app.validation import (
    DirectoryConflictError,
    DirectoryValidationError,
    InvalidProjectNameError,
    PathNotWritableError,
    TargetIsFileError,
)

logger = logging.getLogger(__name__)

FALLBACK_QUESTION = (
    "Could not download because of a connectivity issue between your machine and "
    "the template host.\nDo you want to use the default template instead?"
)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PACKAGE_NAME,
        description="Bootstrap a React or Next project with optional Tailwind, "
        "lint-staged, Docker and commitlint setup.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            f"  {PACKAGE_NAME} my-app\n"
            f"  {PACKAGE_NAME} my-app --react --no-docker --use-pnpm\n"
            f"  {PACKAGE_NAME} my-app --next --tailwind --skip-install\n"
        ),
    )
    parser.add_argument("project_directory", nargs="?", help="Directory to create the project in")
    parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {__version__}")

    framework = parser.add_mutually_exclusive_group()
    framework.add_argument(
        "--next", dest="framework", action="store_const", const=Framework.NEXT,
        help="Initialize as a Next project.",
    )
    framework.add_argument(
        "--react", dest="framework", action="store_const", const=Framework.REACT,
        help="Initialize as a React project.",
    )

    parser.add_argument(
        "--tw", "--tailwind", dest="tailwind", action=argparse.BooleanOptionalAction,
        default=None, help="Initialize with Tailwind CSS config. (default)",
    )
    parser.add_argument(
        "--ls", "--lint-staged", dest="lintstaged", action=argparse.BooleanOptionalAction,
        default=None, help="Initialize with lint-staged and husky config. (default)",
    )
    parser.add_argument(
        "--d", "--docker", dest="docker", action=argparse.BooleanOptionalAction,
        default=None, help="Initialize with Docker config. (default)",
    )
    parser.add_argument(
        "--clint", "--commitlint", dest="commitlint", action=argparse.BooleanOptionalAction,
        default=None, help="Config enforcing conventional commits.",
    )

    managers = parser.add_mutually_exclusive_group()
    for manager in PackageManager:
        managers.add_argument(
            f"--use-{manager.value}", dest="package_manager", action="store_const",
            const=manager, help=f"Bootstrap the application using {manager.value}.",
        )

    parser.add_argument(
        "--skip-install", action="store_true", help="Write package.json but do not install."
    )
    parser.add_argument(
        "--disable-git", action="store_true", help="Do not initialize a git repository."
    )
    parser.add_argument(
        "--template-url", default=None,
        help="Archive mirroring the official templates (overrides CMA_TEMPLATE_URL).",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Print debug logging.")
    return parser


def flags_from_args(args: argparse.Namespace) -> CliFlags:
    return CliFlags(
        project_path=args.project_directory,
        framework=args.framework,
        package_manager=args.package_manager,
        tailwind=args.tailwind,
        lintstaged=args.lintstaged,
        docker=args.docker,
        commitlint=args.commitlint,
        skip_install=args.skip_install,
        disable_git=args.disable_git,
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _restore_sigint() -> None:
    """Let Ctrl-C raise ``KeyboardInterrupt`` inside blocking terminal prompts.

    ``asyncio.run`` replaces the SIGINT handler with one that only cancels the
    main task, which a thread blocked in ``input()`` never notices.
    """
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGINT, signal.default_int_handler)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def _print_usage() -> None:
    console.print()
    console.print("Please specify the project directory:")
    console.print(f"  [cyan]{PACKAGE_NAME}[/cyan] [green]<project-directory>[/green]")
    console.print("For example:")
    console.print(f"  [cyan]{PACKAGE_NAME}[/cyan] [green]my-next-app[/green]")
    console.print()
    console.print(f"Run [cyan]{PACKAGE_NAME} --help[/cyan] to see all options.")


def report_validation_error(exc: DirectoryValidationError) -> None:
    """Print the remediation text for a failed precondition."""
    if isinstance(exc, PathNotWritableError):
        print_error(
            "The application path is not writable, please check folder permissions and try again."
        )
        console.print("It is likely you do not have write permissions for this folder.")
    elif isinstance(exc, InvalidProjectNameError):
        console.print(
            f'Could not create a project called [red]"{escape(exc.name)}"[/red] '
            "because of npm naming restrictions:"
        )
        for problem in exc.problems:
            console.print(f"    [bold red]*[/bold red] {escape(problem)}")
    elif isinstance(exc, DirectoryConflictError):
        console.print(
            f"The directory [green]{escape(exc.path.name)}[/green] contains files that could conflict:"
        )
        console.print()
        for conflict in exc.conflicts:
            style = "blue" if conflict.endswith("/") else "white"
            console.print(f"  [{style}]{escape(conflict)}[/{style}]")
        console.print()
        console.print("Either try using a new directory name, or remove the files listed above.")
        console.print()
    elif isinstance(exc, TargetIsFileError):
        console.print(
            f"The path [green]{escape(str(exc.path))}[/green] already exists and is not a directory."
        )
        console.print("Either try using a new directory name, or remove that file.")
    else:
        print_error(str(exc))


def _print_config(config: ResolvedConfig) -> None:
    toggles = config.toggles
    print_summary_table(
        {
            "Framework": config.framework.display_name,
            "Directory": escape(str(config.root)),
            "Package manager": config.package_manager.value,
            "Tailwind CSS": "yes" if toggles.tailwind else "no",
            "Lint Staged": "yes" if toggles.lintstaged else "no",
            "Docker": "yes" if toggles.docker else "no",
            "Commit Lint": "yes" if toggles.commitlint else "no",
        },
        title="Project",
    )


# ---------------------------------------------------------------------------
# Pipeline with fallback
# ---------------------------------------------------------------------------


async def create_app(
    config: ResolvedConfig,
    settings: Settings,
    prompter: Prompter,
    bootstrapper: Bootstrapper | None = None,
) -> BootstrapResult:
    """Run the bootstrap, offering the bundled templates once if acquisition fails.

    If the user declines, or the bundled templates also fail to materialize,
    the original :class:`DownloadError` propagates.
    """
    bootstrapper = bootstrapper or Bootstrapper(config, settings)
    try:
        return await bootstrapper.run()
    except DownloadError as download_error:
        logger.debug("Template download failed: %s", download_error)
        if not prompter.confirm(FALLBACK_QUESTION, default=True):
            raise
        try:
            return await bootstrapper.retry_materializing(BundledTemplateSource())
        except Exception as fallback_error:
            if bootstrapper.failed_stage is BootstrapState.MATERIALIZING:
                raise download_error from fallback_error
            raise


async def run(
    argv: list[str] | None = None,
    prompter: Prompter | None = None,
    settings: Settings | None = None,
) -> int:
    """Parse *argv*, run the pipeline and return the process exit status."""
    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)
    _configure_logging(args.verbose)
    if unknown:
        logger.debug("Ignoring unknown options: %s", " ".join(unknown))

    settings = settings or Settings.from_env()
    if args.template_url:
        settings = settings.model_copy(update={"template_archive_url": args.template_url})
    if prompter is None:
        _restore_sigint()
        prompter = RichPrompter(console)

    update = (
        asyncio.create_task(
            check_for_update(settings.registry_url, timeout=settings.http_timeout)
        )
        if settings.update_check
        else None
    )

    try:
        return await _create(flags_from_args(args), settings, prompter)
    finally:
        if update is not None:
            await _report_update(update)


async def _report_update(update: asyncio.Task[str | None]) -> None:
    try:
        latest = await update
    except Exception:
        logger.debug("Update check failed", exc_info=True)
        return
    if latest:
        print_update_notice(latest)


async def _create(flags: CliFlags, settings: Settings, prompter: Prompter) -> int:
    try:
        config = await ConfigResolver(prompter).resolve(flags)
        _print_config(config)
        await create_app(config, settings, prompter)
    except PromptAborted:
        # Leave the terminal usable: show the cursor again and end the line.
        console.show_cursor(True)
        console.print()
        return 1
    except ProjectPathMissing:
        _print_usage()
        return 1
    except DirectoryValidationError as exc:
        report_validation_error(exc)
        return 1
    except InstallError as exc:
        console.print()
        console.print("Aborting installation.")
        console.print(f"  [cyan]{escape(exc.command)}[/cyan] has failed.")
        console.print()
        return 1
    except DownloadError as exc:
        console.print()
        console.print("Aborting installation.")
        print_error(escape(str(exc)))
        console.print()
        return 1
    except Exception as exc:
        logger.debug("Unexpected error", exc_info=True)
        console.print()
        console.print("Aborting installation.")
        console.print("[red]Unexpected error. Please report it as a bug:[/red]")
        console.print(escape(repr(exc)))
        console.print()
        return 1
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``create-modernfw-app``."""
    try:
        code = asyncio.run(run(argv))
    except KeyboardInterrupt:
        code = 130
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
