"""Package installation."""

import logging
from typing import Iterable, List, Optional

from rich.console import Console

from .errors import ExternalToolError
from .gateway import CommandResult, SystemGateway
from .utils import error, info, success

logger = logging.getLogger(__name__)


def ensure_packages_installed(
    gateway: SystemGateway,
    packages: Iterable[str],
    out: Optional[Console] = None,
) -> List[str]:
    """
    Install every package the package database does not already have.

    Args:
        gateway: Host access
        packages: Package names
        out: Console for progress messages

    Returns:
        Names of the packages that were installed by this call

    Raises:
        ExternalToolError: if at least one install failed; the remaining
            packages are still attempted first
    """
    installed = []
    failures: List[CommandResult] = []

    info("Installing required packages...", out)
    for name in packages:
        if gateway.package_installed(name):
            info(f"{name} is already installed.", out)
            continue

        logger.info("Installing package %s", name)
        result = gateway.install_package(name)
        if result.ok:
            installed.append(name)
            success(f"Installed {name}.", out)
        else:
            failures.append(result)
            error(f"Failed to install {name}: {result.error_text() or f'exit {result.returncode}'}", out)

    if failures:
        raise ExternalToolError("Package installation", failures)
    return installed
