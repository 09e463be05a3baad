"""Server Optimizer - provisioning and tuning for a single RHEL server."""

from .config import get_version

__version__ = get_version()
__author__ = "Regix"

__all__ = ["__version__", "__author__"]
