"""Best-effort git repository initialization for the generated project."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

from create_modernfw_app.utils import run_command

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "Initial commit from Create Modernfw App"


class GitCommandError(Exception):
    """A git command exited with a non-zero status."""

    def __init__(self, command: list[str], stderr: str = "") -> None:
        self.command = " ".join(command)
        self.stderr = stderr
        super().__init__(f"{self.command} failed: {stderr}")


async def _run(cmd: list[str], root: Path) -> tuple[int, str]:
    returncode, stdout, stderr = await run_command(cmd, cwd=root, timeout=60)
    if returncode != 0:
        logger.debug("%s exited with %s: %s", " ".join(cmd), returncode, stderr)
    return returncode, stdout


async def _check(cmd: list[str], root: Path) -> None:
    returncode, stdout, stderr = await run_command(cmd, cwd=root, timeout=60)
    if returncode != 0:
        raise GitCommandError(cmd, stderr)


async def _succeeds(cmd: list[str], root: Path) -> bool:
    try:
        returncode, _ = await _run(cmd, root)
    except OSError:
        return False
    return returncode == 0


async def is_in_git_repository(root: Path) -> bool:
    return await _succeeds(["git", "rev-parse", "--is-inside-work-tree"], root)


async def is_in_mercurial_repository(root: Path) -> bool:
    return await _succeeds(["hg", "--cwd", ".", "root"], root)


async def is_default_branch_set(root: Path) -> bool:
    try:
        returncode, stdout = await _run(["git", "config", "init.defaultBranch"], root)
    except OSError:
        return False
    return returncode == 0 and bool(stdout)


async def try_git_init(root: Path) -> bool:
    """Initialize a repository in *root* and commit the generated files.

    Skipped when git is unavailable or *root* already lives inside a git or
    Mercurial repository.  If anything fails after ``git init``, the new
    ``.git`` directory is removed again.  Never raises.

    Returns:
        ``True`` if a repository with an initial commit was created.
    """
    did_init = False
    try:
        if not await _succeeds(["git", "--version"], root):
            return False
        if await is_in_git_repository(root) or await is_in_mercurial_repository(root):
            logger.debug("%s is already under version control", root)
            return False

        await _check(["git", "init"], root)
        did_init = True

        if not await is_default_branch_set(root):
            await _check(["git", "checkout", "-b", "main"], root)

        await _check(["git", "add", "-A"], root)
        await _check(["git", "commit", "-m", COMMIT_MESSAGE], root)
        return True
    except (GitCommandError, OSError) as exc:
        logger.debug("git init in %s failed: %s", root, exc)
        if did_init:
            await asyncio.to_thread(shutil.rmtree, root / ".git", True)
        return False
