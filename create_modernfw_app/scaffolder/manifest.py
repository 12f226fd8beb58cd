"""package.json synthesis.

Every framework has a fixed base (scripts plus a mandatory dependency group).
Optional groups are appended in a fixed order, each gated by one toggle, so
identical input always yields byte-identical manifests.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from create_modernfw_app.config import Framework, ResolvedConfig, Toggles

MANIFEST_FILENAME = "package.json"
INITIAL_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Dependency groups
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Package:
    """A package identifier with an optional version constraint."""

    name: str
    version: str | None = None

    @property
    def spec(self) -> str:
        """Install argument, e.g. ``tailwindcss@^3.4.0``."""
        return f"{self.name}@{self.version}" if self.version else self.name

    @property
    def range(self) -> str:
        """Value written to the manifest's dependency table."""
        return self.version or "latest"


def _packages(*specs: str | tuple[str, str]) -> tuple[Package, ...]:
    return tuple(Package(*s) if isinstance(s, tuple) else Package(s) for s in specs)


@dataclass(frozen=True)
class DependencyGroup:
    """A named bundle of runtime and development packages."""

    name: str
    dependencies: tuple[Package, ...] = ()
    dev_dependencies: tuple[Package, ...] = ()

    def __len__(self) -> int:
        return len(self.dependencies) + len(self.dev_dependencies)


@dataclass(frozen=True)
class FrameworkPreset:
    """Scripts and mandatory dependencies of one framework."""

    scripts: dict[str, str]
    base: DependencyGroup


PRESETS: dict[Framework, FrameworkPreset] = {
    Framework.REACT: FrameworkPreset(
        scripts={
            "dev": "vite",
            "build": "tsc && vite build",
            "lint": "eslint src --ext ts,tsx --report-unused-disable-directives --max-warnings 0",
            "start": "vite preview",
        },
        base=DependencyGroup(
            name="react",
            dependencies=_packages("react", "react-dom"),
            dev_dependencies=_packages(
                "@types/react",
                "@types/react-dom",
                "typescript",
                "vite",
                "@typescript-eslint/eslint-plugin",
                "@typescript-eslint/parser",
                "@vitejs/plugin-react-swc",
                ("eslint", "^8.57.0"),
                "eslint-plugin-react-hooks",
                "eslint-plugin-react-refresh",
                "prettier",
            ),
        ),
    ),
    Framework.NEXT: FrameworkPreset(
        scripts={
            "dev": "next dev",
            "build": "next build",
            "start": "next start",
            "lint": "next lint",
        },
        base=DependencyGroup(
            name="next",
            dependencies=_packages("react", "react-dom", "next"),
            dev_dependencies=_packages(
                "typescript",
                "@types/node",
                "@types/react",
                "@types/react-dom",
                ("eslint", "^8.57.0"),
                "eslint-config-next",
                "eslint-config-prettier",
                "eslint-plugin-prettier",
                "prettier",
            ),
        ),
    ),
}

TAILWIND_GROUP = DependencyGroup(
    name="tailwind",
    dev_dependencies=_packages("autoprefixer", "postcss", ("tailwindcss", "^3.4.0")),
)
LINTSTAGED_GROUP = DependencyGroup(
    name="lintstaged",
    dev_dependencies=_packages("lint-staged", "husky"),
)
# Docker support is template files only.
DOCKER_GROUP = DependencyGroup(name="docker")
COMMITLINT_GROUP = DependencyGroup(
    name="commitlint",
    dev_dependencies=_packages("@commitlint/cli", "@commitlint/config-conventional"),
)

# Evaluated in this order; the order is part of the output format.
OPTIONAL_GROUPS: tuple[tuple[Callable[[Toggles], bool], DependencyGroup], ...] = (
    (lambda t: t.tailwind, TAILWIND_GROUP),
    (lambda t: t.lintstaged, LINTSTAGED_GROUP),
    (lambda t: t.docker, DOCKER_GROUP),
    (lambda t: t.commitlint, COMMITLINT_GROUP),
)


@dataclass
class ComposedDependencies:
    """Flattened runtime and development package lists."""

    dependencies: list[Package] = field(default_factory=list)
    dev_dependencies: list[Package] = field(default_factory=list)
    groups: list[str] = field(default_factory=list)

    @property
    def all(self) -> list[Package]:
        return [*self.dependencies, *self.dev_dependencies]

    def is_empty(self) -> bool:
        return not self.dependencies and not self.dev_dependencies


def _extend_unique(target: list[Package], packages: Iterable[Package]) -> None:
    seen = {p.name for p in target}
    for package in packages:
        if package.name not in seen:
            target.append(package)
            seen.add(package.name)


def compose_dependencies(framework: Framework, toggles: Toggles) -> ComposedDependencies:
    """Concatenate the framework's base group with every enabled optional group."""
    groups = [PRESETS[framework].base]
    groups += [group for enabled, group in OPTIONAL_GROUPS if enabled(toggles)]

    composed = ComposedDependencies()
    for group in groups:
        _extend_unique(composed.dependencies, group.dependencies)
        _extend_unique(composed.dev_dependencies, group.dev_dependencies)
        composed.groups.append(group.name)
    return composed


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


class Manifest(BaseModel):
    """The generated project's ``package.json``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    version: str = INITIAL_VERSION
    private: bool = True
    scripts: dict[str, str] = Field(default_factory=dict)
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")

    def to_json(self) -> str:
        """Serialize with two-space indentation and a trailing newline."""
        return json.dumps(self.model_dump(by_alias=True), indent=2) + "\n"


class ManifestSynthesizer:
    """Builds and writes ``package.json`` for a resolved configuration."""

    def build(self, config: ResolvedConfig) -> tuple[Manifest, ComposedDependencies]:
        composed = compose_dependencies(config.framework, config.toggles)
        manifest = Manifest(
            name=config.app_name,
            scripts=dict(PRESETS[config.framework].scripts),
            dependencies={p.name: p.range for p in composed.dependencies},
            dev_dependencies={p.name: p.range for p in composed.dev_dependencies},
        )
        return manifest, composed

    async def write(self, manifest: Manifest, root: Path) -> Path:
        """Overwrite ``<root>/package.json`` with *manifest*."""
        path = root / MANIFEST_FILENAME
        await asyncio.to_thread(path.write_text, manifest.to_json(), "utf-8")
        return path

    async def synthesize(self, config: ResolvedConfig) -> tuple[Path, ComposedDependencies]:
        manifest, composed = self.build(config)
        path = await self.write(manifest, config.root)
        return path, composed
