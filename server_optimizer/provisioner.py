"""Host provisioner: binds settings and host access to each action."""

from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console

from . import firewall, health, packages, services, tuning
from .config import Settings
from .gateway import ShellGateway, SystemGateway
from .services import ConfigKind
from .utils import console as default_console


class HostProvisioner:
    """Runs provisioning actions against one host."""

    def __init__(
        self,
        gateway: SystemGateway,
        settings: Optional[Settings] = None,
        out: Optional[Console] = None,
    ):
        self.gateway = gateway
        self.settings = settings or Settings()
        self.out = out or default_console

    @classmethod
    def from_settings(cls, settings: Settings, out: Optional[Console] = None) -> "HostProvisioner":
        """Build a provisioner that acts on the real host."""
        gateway = ShellGateway(
            package_manager=settings.package_manager,
            timeout=settings.command_timeout,
        )
        return cls(gateway, settings, out)

    def ensure_packages_installed(self, names: Optional[Iterable[str]] = None) -> List[str]:
        if names is None:
            names = self.settings.packages
        return packages.ensure_packages_installed(self.gateway, names, self.out)

    def apply_config(self, kind: ConfigKind) -> None:
        services.apply_config(self.gateway, kind, self.settings, self.out)

    def apply_firewall_rules(self) -> None:
        firewall.apply_firewall_rules(self.gateway, self.settings.firewall_services, self.out)

    def apply_selinux_policy(self) -> None:
        firewall.apply_selinux_policy(self.gateway, self.settings.selinux_booleans, self.out)

    def apply_performance_tuning(self) -> List[Path]:
        return tuning.apply_performance_tuning(self.gateway, self.settings, self.out)

    def report_health(self) -> None:
        health.report_health(self.gateway, self.settings.top_processes, self.out)
