import io
import pathlib
import sys
from typing import Dict, List, Optional

import pytest
from rich.console import Console

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from server_optimizer.config import Settings
from server_optimizer.gateway import CommandResult, SystemGateway
from server_optimizer.provisioner import HostProvisioner

MUTATING = {
    "install_package",
    "set_service_state",
    "write_config",
    "add_firewall_rule",
    "reload_firewall",
    "set_selinux_bool",
    "reload_sysctl",
}


class FakeGateway(SystemGateway):
    """In-memory host: records every call and mutates only its own state."""

    def __init__(self, installed=(), files: Optional[Dict[str, str]] = None):
        self.installed = set(installed)
        self.files: Dict[str, str] = dict(files or {})
        self.services: Dict[str, Dict[str, bool]] = {}
        self.firewall_rules: List[str] = []
        self.selinux: Dict[str, bool] = {}
        self.calls: List[tuple] = []
        self.failing: Dict[str, int] = {}
        self.metrics = {
            "summary": "CPU 3.0%  Memory 41.0% of 7820 MiB  Load 0.10 0.20 0.30\n",
            "processes": "USER PID %CPU %MEM\n" + "".join(f"root {n} 0.0 {10 - n}.0\n" for n in range(1, 9)),
            "disk": "Filesystem Size Used Avail Use% Mounted on\n/dev/sda1 50G 20G 30G 40% /\n",
            "sockets": "Netid State Recv-Q Send-Q Local Address:Port\ntcp LISTEN 0 128 0.0.0.0:22\n",
        }

    def fail(self, operation: str, returncode: int = 1) -> None:
        """Make every later call of an operation exit non-zero."""
        self.failing[operation] = returncode

    def _result(self, operation: str, command: List[str]) -> CommandResult:
        code = self.failing.get(operation, 0)
        return CommandResult(command, code, stderr="simulated failure" if code else "")

    @property
    def mutations(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in MUTATING]

    def package_installed(self, name):
        self.calls.append(("package_installed", name))
        return name in self.installed

    def install_package(self, name):
        self.calls.append(("install_package", name))
        result = self._result("install_package", ["dnf", "install", "-y", name])
        if result.ok:
            self.installed.add(name)
        return result

    def set_service_state(self, name, enabled=True, running=True):
        self.calls.append(("set_service_state", name, enabled, running))
        self.services[name] = {"enabled": enabled, "running": running}
        return [
            self._result("set_service_state", ["systemctl", "enable", name]),
            self._result("set_service_state", ["systemctl", "start", name]),
        ]

    def read_config(self, path):
        self.calls.append(("read_config", str(path)))
        return self.files.get(str(path), "")

    def write_config(self, path, content):
        self.calls.append(("write_config", str(path)))
        self.files[str(path)] = content

    def add_firewall_rule(self, service, permanent=True):
        self.calls.append(("add_firewall_rule", service, permanent))
        self.firewall_rules.append(service)
        return self._result("add_firewall_rule", ["firewall-cmd", "--permanent", f"--add-service={service}"])

    def reload_firewall(self):
        self.calls.append(("reload_firewall",))
        return self._result("reload_firewall", ["firewall-cmd", "--reload"])

    def set_selinux_bool(self, name, value, persistent=True):
        self.calls.append(("set_selinux_bool", name, value, persistent))
        self.selinux[name] = value
        return self._result("set_selinux_bool", ["setsebool", "-P", f"{name}={int(value)}"])

    def reload_sysctl(self, path=None):
        self.calls.append(("reload_sysctl", str(path)))
        return self._result("reload_sysctl", ["sysctl", "-p"])

    def query_metrics(self, kind):
        self.calls.append(("query_metrics", kind))
        code = self.failing.get(f"metrics:{kind}", 0)
        return CommandResult([kind], code, stdout="" if code else self.metrics[kind],
                             stderr="simulated failure" if code else "")


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def out():
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def provisioner(gateway, settings, out):
    return HostProvisioner(gateway, settings, out)
