"""Firewall and SELinux policy."""

from typing import Dict, Iterable, Optional

from rich.console import Console

from .errors import ExternalToolError
from .gateway import SystemGateway
from .utils import info, success


def apply_firewall_rules(
    gateway: SystemGateway,
    services: Iterable[str],
    out: Optional[Console] = None,
) -> None:
    """
    Open the firewall for each service profile, then reload.

    Existing rules are left alone. The reload runs even if an addition
    failed so the rules that did succeed take effect.
    """
    info("Configuring firewall rules...", out)

    results = [gateway.add_firewall_rule(service, permanent=True) for service in services]
    results.append(gateway.reload_firewall())

    failures = [r for r in results if not r.ok]
    if failures:
        raise ExternalToolError("Firewall configuration", failures)
    success("Firewall rules applied successfully.", out)


def apply_selinux_policy(
    gateway: SystemGateway,
    booleans: Dict[str, bool],
    out: Optional[Console] = None,
) -> None:
    """Persistently set SELinux booleans."""
    info("Configuring SELinux settings...", out)

    failures = []
    for name, value in booleans.items():
        result = gateway.set_selinux_bool(name, bool(value), persistent=True)
        if not result.ok:
            failures.append(result)

    if failures:
        raise ExternalToolError("SELinux configuration", failures)
    success("SELinux policies adjusted for FTP and HTTP services.", out)
