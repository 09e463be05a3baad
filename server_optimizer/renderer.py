"""Jinja2 rendering of service configuration files."""

import ipaddress
from pathlib import Path
from typing import Optional

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, StrictUndefined, TemplateError

from .config import TEMPLATES_DIR, DhcpConfig
from .errors import ConfigError

DHCP_TEMPLATE = "dhcpd.conf.j2"


def get_environment(template_dir: Optional[str] = None) -> Environment:
    """Setup Jinja2 environment.

    A user template directory, when given and present, shadows the
    packaged templates file by file.
    """
    loaders = []
    if template_dir and Path(template_dir).exists():
        loaders.append(FileSystemLoader(str(template_dir)))
    loaders.append(FileSystemLoader(str(TEMPLATES_DIR)))

    return Environment(
        loader=ChoiceLoader(loaders),
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def validate_dhcp(dhcp: DhcpConfig) -> None:
    """Check that the DHCP addresses describe a consistent subnet."""
    try:
        network = ipaddress.ip_network(f"{dhcp.subnet}/{dhcp.netmask}")
    except ValueError as e:
        raise ConfigError(f"dhcp: invalid subnet {dhcp.subnet}/{dhcp.netmask}: {e}") from e

    addresses = {}
    for key in ("range_start", "range_end", "routers"):
        value = getattr(dhcp, key)
        try:
            addresses[key] = ipaddress.ip_address(value)
        except ValueError as e:
            raise ConfigError(f"dhcp.{key}: {e}") from e
        if addresses[key] not in network:
            raise ConfigError(f"dhcp.{key}: {value} is outside {network}")

    if addresses["range_start"] > addresses["range_end"]:
        raise ConfigError(f"dhcp: range start {dhcp.range_start} is after range end {dhcp.range_end}")

    for server in dhcp.dns_servers:
        try:
            ipaddress.ip_address(server)
        except ValueError as e:
            raise ConfigError(f"dhcp.dns_servers: {e}") from e

    if dhcp.default_lease_time > dhcp.max_lease_time:
        raise ConfigError("dhcp: default_lease_time exceeds max_lease_time")


def render_dhcp_config(dhcp: DhcpConfig, template_dir: Optional[str] = None) -> str:
    """Render dhcpd.conf for the configured subnet.

    Raises:
        ConfigError: if the template is missing, malformed, or refers to
            a value the settings do not define
    """
    env = get_environment(template_dir)
    try:
        return env.get_template(DHCP_TEMPLATE).render(dhcp=dhcp)
    except TemplateError as e:
        raise ConfigError(f"{DHCP_TEMPLATE}: {e}") from e
