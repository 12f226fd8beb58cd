"""Template acquisition.

A template source turns ``(framework, template)`` into a local directory the
materializer can copy from.  The bundled source ships with the package; the
remote source downloads an archive that mirrors the same layout and is the
only one that can fail with :class:`DownloadError`.
"""

from __future__ import annotations

import asyncio
import logging
import tarfile
import tempfile
from pathlib import Path
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class DownloadError(Exception):
    """Template content could not be acquired.  Recoverable via the bundled templates."""


class TemplateNotFoundError(Exception):
    """A template directory that should exist locally is missing."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Template directory not found: {path}")


class TemplateSource(Protocol):
    name: str

    async def acquire(self, framework: str, template: str) -> Path:
        """Return the local directory holding ``<framework>/<template>``."""
        ...

    async def release(self) -> None:
        """Drop any temporary state created by :meth:`acquire`."""
        ...


class BundledTemplateSource:
    """Templates shipped inside the package."""

    name = "bundled"

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self.template_dir = Path(template_dir) if template_dir is not None else _DEFAULT_TEMPLATE_DIR

    async def acquire(self, framework: str, template: str) -> Path:
        path = self.template_dir / framework / template
        if not path.is_dir():
            raise TemplateNotFoundError(path)
        return path

    async def release(self) -> None:
        return None

    def list_templates(self) -> list[str]:
        """Return ``framework/template`` identifiers available in the bundle."""
        if not self.template_dir.is_dir():
            return []
        return sorted(
            f"{fw.name}/{tpl.name}"
            for fw in self.template_dir.iterdir()
            if fw.is_dir()
            for tpl in fw.iterdir()
            if tpl.is_dir()
        )


def _extract(archive: Path, dest: Path) -> None:
    with tarfile.open(archive, "r:*") as tar:
        tar.extractall(dest, filter="data")


def _locate(extracted: Path, framework: str, template: str) -> Path | None:
    """Find ``templates/<framework>/<template>`` at any depth of an extracted archive."""
    matches = sorted(
        p for p in extracted.glob(f"**/templates/{framework}/{template}") if p.is_dir()
    )
    return matches[0] if matches else None


class RemoteTemplateSource:
    """Templates from a ``.tar.gz`` archive mirroring the bundled layout.

    The archive may carry a top-level prefix (as repository snapshots do);
    the first ``templates/<framework>/<template>`` directory found is used.
    """

    name = "remote"

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport
        self._tmp: tempfile.TemporaryDirectory[str] | None = None

    async def _download(self, dest: Path) -> None:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            async with client.stream("GET", self.url) as response:
                response.raise_for_status()
                with dest.open("wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)

    async def acquire(self, framework: str, template: str) -> Path:
        """Download and unpack the archive, returning the requested template directory.

        Raises:
            DownloadError: The archive could not be fetched or unpacked, or
                does not contain the requested template.
        """
        await self.release()
        self._tmp = tempfile.TemporaryDirectory(prefix="create-modernfw-app-")
        workdir = Path(self._tmp.name)
        archive = workdir / "templates.tar.gz"
        extracted = workdir / "extracted"

        logger.debug("Downloading templates from %s", self.url)
        try:
            await self._download(archive)
        except httpx.HTTPError as exc:
            raise DownloadError(f"Could not download templates from {self.url}: {exc}") from exc

        try:
            await asyncio.to_thread(_extract, archive, extracted)
        except (tarfile.TarError, OSError) as exc:
            raise DownloadError(f"Could not unpack templates from {self.url}: {exc}") from exc

        located = _locate(extracted, framework, template)
        if located is None:
            raise DownloadError(
                f"Archive {self.url} does not contain templates/{framework}/{template}"
            )
        return located

    async def release(self) -> None:
        if self._tmp is not None:
            await asyncio.to_thread(self._tmp.cleanup)
            self._tmp = None
