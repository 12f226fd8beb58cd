"""create-modernfw-app -- bootstrap a React or Next project from bundled templates.

Quick usage::

    create-modernfw-app my-app --react --tailwind --no-docker

or programmatically::

    from create_modernfw_app import Bootstrapper, ResolvedConfig

    config = ResolvedConfig(framework="react", root="/tmp/my-app")
    result = asyncio.run(Bootstrapper(config).run())
"""

__version__ = "0.3.0"
PACKAGE_NAME = "create-modernfw-app"

from create_modernfw_app.bootstrap import BootstrapResult, Bootstrapper, BootstrapState  # noqa: E402
from create_modernfw_app.config import (  # noqa: E402
    Framework,
    PackageManager,
    ResolvedConfig,
    Settings,
    Toggles,
)

__all__ = [
    "__version__",
    "PACKAGE_NAME",
    "Bootstrapper",
    "BootstrapResult",
    "BootstrapState",
    "Framework",
    "PackageManager",
    "ResolvedConfig",
    "Settings",
    "Toggles",
]
