"""Service configuration: DHCP, FTP and HTTP servers."""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from rich.console import Console

from .config import Settings
from .errors import ExternalToolError
from .gateway import SystemGateway
from .renderer import render_dhcp_config
from .utils import info, success

logger = logging.getLogger(__name__)


class ConfigKind(Enum):
    """Services this tool knows how to bring up."""
    DHCP = "DHCP server"
    FTP = "FTP server"
    HTTP = "Apache (HTTP) server"


def enable_service(gateway: SystemGateway, name: str, label: str) -> None:
    """
    Enable a service at boot and start it.

    Raises:
        ExternalToolError: if systemctl reported a failure
    """
    results = gateway.set_service_state(name, enabled=True, running=True)
    failures = [r for r in results if not r.ok]
    if failures:
        raise ExternalToolError(f"Starting {label}", failures)


def apply_config(
    gateway: SystemGateway,
    kind: ConfigKind,
    settings: Settings,
    out: Optional[Console] = None,
) -> None:
    """
    Configure and start one of the managed servers.

    DHCP gets a freshly rendered dhcpd.conf, replacing whatever was
    there. FTP and HTTP run with their packaged defaults.
    """
    info(f"Configuring {kind.value}...", out)

    if kind is ConfigKind.DHCP:
        path = Path(settings.dhcp.config_path)
        content = render_dhcp_config(settings.dhcp, settings.template_dir)
        gateway.write_config(path, content)
        logger.info("Wrote DHCP configuration to %s", path)

    enable_service(gateway, settings.services[kind.name], kind.value)
    success(f"{kind.value} configured and started.", out)
