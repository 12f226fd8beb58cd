"""Project scaffolding -- turns a ``ResolvedConfig`` into files on disk.

Key pieces:
    select_template       - (framework, tailwind) -> template variant
    CopyPlan              - include/exclude rules and filename rewrites
    TreeMaterializer      - copies the selected template into the project
    ManifestSynthesizer   - composes and writes package.json
    Installer             - runs npm / yarn / pnpm
    try_git_init          - best-effort initial commit
"""

from .git import try_git_init
from .installer import InstallError, Installer, build_install_command
from .manifest import (
    ComposedDependencies,
    DependencyGroup,
    Manifest,
    ManifestSynthesizer,
    Package,
    compose_dependencies,
)
from .sources import (
    BundledTemplateSource,
    DownloadError,
    RemoteTemplateSource,
    TemplateNotFoundError,
    TemplateSource,
)
from .templates import CopyPlan, CopyRule, TemplateType, TreeMaterializer, rename_file, select_template

__all__ = [
    # Template selection and copy
    "TemplateType",
    "select_template",
    "CopyPlan",
    "CopyRule",
    "rename_file",
    "TreeMaterializer",
    # Template sources
    "TemplateSource",
    "BundledTemplateSource",
    "RemoteTemplateSource",
    "DownloadError",
    "TemplateNotFoundError",
    # Manifest
    "Package",
    "DependencyGroup",
    "ComposedDependencies",
    "Manifest",
    "ManifestSynthesizer",
    "compose_dependencies",
    # Install / VCS
    "Installer",
    "InstallError",
    "build_install_command",
    "try_git_init",
]
