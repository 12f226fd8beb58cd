"""Target-directory preconditions.

Three checks guard every bootstrap, strictly in this order:

1. the directory that will contain the project is writable,
2. the project name derived from the path is a valid npm package name,
3. the project directory (created if absent) holds nothing but
   allow-listed entries such as VCS metadata or editor config.

Each check assumes the previous one held, so the first failure stops the
sequence and nothing further is touched on disk.
"""

from __future__ import annotations

import asyncio
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DirectoryValidationError(Exception):
    """Base class for target-directory precondition failures."""


class PathNotWritableError(DirectoryValidationError):
    """The directory that would hold the project is not writable."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"The application path is not writable: {path}")


class InvalidProjectNameError(DirectoryValidationError):
    """The project name violates one or more npm naming rules."""

    def __init__(self, name: str, problems: list[str]) -> None:
        self.name = name
        self.problems = problems
        super().__init__(
            f'Could not create a project called "{name}" because of npm naming restrictions: '
            + "; ".join(problems)
        )


class DirectoryConflictError(DirectoryValidationError):
    """The project directory already contains files that could conflict."""

    def __init__(self, path: Path, conflicts: list[str]) -> None:
        self.path = path
        self.conflicts = conflicts
        super().__init__(
            f"The directory {path.name} contains files that could conflict: "
            + ", ".join(conflicts)
        )


class TargetIsFileError(DirectoryValidationError):
    """The project path already exists and is not a directory."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"The path {path} already exists and is not a directory")


# ---------------------------------------------------------------------------
# npm package-name rules
# ---------------------------------------------------------------------------

MAX_NAME_LENGTH = 214

RESERVED_NAMES = frozenset({"node_modules", "favicon.ico"})

NODE_BUILTIN_MODULES = frozenset({
    "assert", "async_hooks", "buffer", "child_process", "cluster", "console",
    "constants", "crypto", "dgram", "diagnostics_channel", "dns", "domain",
    "events", "fs", "http", "http2", "https", "inspector", "module", "net",
    "os", "path", "perf_hooks", "process", "punycode", "querystring",
    "readline", "repl", "stream", "string_decoder", "sys", "timers", "tls",
    "trace_events", "tty", "url", "util", "v8", "vm", "wasi",
    "worker_threads", "zlib",
})

# Characters left untouched by JavaScript's encodeURIComponent.
_URL_SAFE = re.compile(r"^[A-Za-z0-9\-_.!~*'()]*$")
_SCOPED = re.compile(r"^(?:@([^/]+?)/)?([^/]+?)$")
_SPECIAL = re.compile(r"[~'!()*]")


@dataclass
class NameValidation:
    """Outcome of :func:`validate_npm_name`."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def problems(self) -> list[str]:
        """Every violated rule, errors first."""
        return [*self.errors, *self.warnings]


def _url_friendly(name: str) -> bool:
    if _URL_SAFE.match(name):
        return True
    match = _SCOPED.match(name)
    if match and match.group(1) is not None:
        scope, package = match.group(1), match.group(2)
        return bool(_URL_SAFE.match(scope) and _URL_SAFE.match(package))
    return False


def validate_npm_name(name: str) -> NameValidation:
    """Check *name* against npm's rules for new packages.

    Warnings are rules that legacy packages may break; a new project must
    satisfy them too, so any warning makes the name invalid.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not name:
        errors.append("name length must be greater than zero")
    if name.startswith("."):
        errors.append("name cannot start with a period")
    if name.startswith("_"):
        errors.append("name cannot start with an underscore")
    if name.strip() != name:
        errors.append("name cannot contain leading or trailing spaces")
    if name.lower() in RESERVED_NAMES:
        errors.append(f"{name.lower()} is not a valid package name")

    if name.lower() in NODE_BUILTIN_MODULES:
        warnings.append(f"{name} is a core module name")
    if len(name) > MAX_NAME_LENGTH:
        warnings.append(f"name can no longer contain more than {MAX_NAME_LENGTH} characters")
    if name.lower() != name:
        warnings.append("name can no longer contain capital letters")
    if _SPECIAL.search(name.split("/")[-1]):
        warnings.append("name can no longer contain special characters (\"~'!()*\")")

    if not _url_friendly(name):
        errors.append("name can only contain URL-friendly characters")

    return NameValidation(valid=not errors and not warnings, errors=errors, warnings=warnings)


# ---------------------------------------------------------------------------
# Filesystem checks
# ---------------------------------------------------------------------------

# Entries that may already exist in a target directory without conflicting
# with the generated tree.
ALLOWED_ENTRIES = frozenset({
    ".DS_Store",
    ".git",
    ".gitattributes",
    ".github",
    ".gitignore",
    ".gitlab-ci.yml",
    ".hg",
    ".hgcheck",
    ".hgignore",
    ".idea",
    ".npmignore",
    ".travis.yml",
    ".vscode",
    ".yarn",
    "LICENSE",
    "Thumbs.db",
    "docs",
    "mkdocs.yml",
    "npm-debug.log",
    "yarn-debug.log",
    "yarn-error.log",
    "yarnrc.yml",
})


def is_writeable(path: Path) -> bool:
    """Return ``True`` if the current user may create entries in *path*."""
    return os.access(path, os.W_OK)


def nearest_existing_ancestor(path: Path) -> Path:
    """Return *path* itself or its closest ancestor that exists."""
    candidate = path
    while not candidate.exists() and candidate != candidate.parent:
        candidate = candidate.parent
    return candidate


def find_conflicts(root: Path) -> list[str]:
    """List entries of *root* that are not on the allow-list.

    Directories are suffixed with ``/``.  IntelliJ module files (``*.iml``)
    are always tolerated.  A directory that does not exist has no conflicts.
    """
    if not root.is_dir():
        return []
    conflicts: list[str] = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if entry.name in ALLOWED_ENTRIES or entry.name.endswith(".iml"):
            continue
        conflicts.append(f"{entry.name}/" if entry.is_dir() else entry.name)
    return conflicts


# ---------------------------------------------------------------------------
# DirectoryValidator
# ---------------------------------------------------------------------------


class DirectoryValidator:
    """Runs the ordered, short-circuiting precondition checks on a target path."""

    def check_name(self, name: str) -> None:
        """Raise :class:`InvalidProjectNameError` if *name* is not a valid package name."""
        result = validate_npm_name(name)
        if not result.valid:
            raise InvalidProjectNameError(name, result.problems)

    async def check_writable(self, root: Path) -> None:
        container = nearest_existing_ancestor(root.parent)
        if not await asyncio.to_thread(is_writeable, container):
            raise PathNotWritableError(container)

    async def check_not_file(self, root: Path) -> None:
        if await asyncio.to_thread(root.exists) and not await asyncio.to_thread(root.is_dir):
            raise TargetIsFileError(root)

    async def check_empty(self, root: Path) -> None:
        await self.check_not_file(root)
        conflicts = await asyncio.to_thread(find_conflicts, root)
        if conflicts:
            raise DirectoryConflictError(root, conflicts)

    async def validate(self, root: Path) -> None:
        """Validate *root* and create it if absent.

        Raises:
            PathNotWritableError: The containing directory is not writable.
            InvalidProjectNameError: ``root.name`` breaks npm naming rules.
            TargetIsFileError: *root* exists but is not a directory.
            DirectoryConflictError: *root* holds non-allow-listed entries.
        """
        await self.check_writable(root)
        self.check_name(root.name)
        await self.check_not_file(root)
        await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)
        await self.check_empty(root)
