"""Advisory check for a newer release of create-modernfw-app."""

from __future__ import annotations

import logging
import re

import httpx

from create_modernfw_app import PACKAGE_NAME, __version__
from create_modernfw_app.utils import console

logger = logging.getLogger(__name__)

_RELEASE = re.compile(r"^(\d+(?:\.\d+)*)")


def parse_release(version: str) -> tuple[int, ...] | None:
    """Return the numeric release tuple of *version* (``"1.2.3rc1"`` -> ``(1, 2, 3)``)."""
    match = _RELEASE.match(version.strip().lstrip("v"))
    if not match:
        return None
    return tuple(int(part) for part in match.group(1).split("."))


def is_newer(candidate: str, current: str) -> bool:
    new, old = parse_release(candidate), parse_release(current)
    if new is None or old is None:
        return False
    width = max(len(new), len(old))
    return new + (0,) * (width - len(new)) > old + (0,) * (width - len(old))


async def check_for_update(
    registry_url: str = "https://pypi.org/pypi",
    current_version: str = __version__,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str | None:
    """Return the latest published version if it is newer than *current_version*.

    Never raises: any network or payload problem is logged and yields ``None``.
    """
    url = f"{registry_url.rstrip('/')}/{PACKAGE_NAME}/json"
    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=3.0), transport=transport
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            latest = response.json()["info"]["version"]
    except (httpx.HTTPError, httpx.InvalidURL, ValueError, KeyError, TypeError) as exc:
        logger.debug("Update check against %s failed: %s", url, exc)
        return None

    if isinstance(latest, str) and is_newer(latest, current_version):
        return latest
    return None


def print_update_notice(latest: str) -> None:
    console.print(
        f"[bold yellow]A new version of `{PACKAGE_NAME}` is available! ({latest})[/bold yellow]"
    )
    console.print(f"You can update by running: [cyan]pip install --upgrade {PACKAGE_NAME}[/cyan]")
    console.print()
