"""Shared utility functions for create-modernfw-app.

Provides async command execution, Rich-based console output and the network
reachability probe used before an offline-capable install.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from urllib.parse import urlsplit

from rich.console import Console
from rich.table import Table

console = Console()
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams, which is what package managers want).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.

    Raises:
        FileNotFoundError: If the program does not exist.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=stdout_pipe,
        stderr=stderr_pipe,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# Network reachability
# ---------------------------------------------------------------------------


async def _resolves(host: str) -> bool:
    loop = asyncio.get_running_loop()
    try:
        await loop.getaddrinfo(host, None)
    except OSError as exc:
        logger.debug("DNS lookup for %s failed: %s", host, exc)
        return False
    return True


async def get_proxy() -> str | None:
    """Return the HTTPS proxy configured for the environment or npm, if any."""
    if os.environ.get("https_proxy"):
        return os.environ["https_proxy"]
    try:
        returncode, stdout, _ = await run_command(
            ["npm", "config", "get", "https-proxy"], timeout=15
        )
    except OSError:
        return None
    if returncode != 0 or not stdout or stdout == "null":
        return None
    return stdout


async def is_online(host: str = "registry.yarnpkg.com") -> bool:
    """Best-effort check that the package registry is reachable.

    Resolves *host*; when that fails, falls back to resolving the configured
    HTTPS proxy's host name, since DNS may only work through the proxy.
    """
    if await _resolves(host):
        return True

    proxy = await get_proxy()
    if not proxy:
        return False
    hostname = urlsplit(proxy).hostname
    if not hostname:
        return False
    return await _resolves(hostname)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Option", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
