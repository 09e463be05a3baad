"""Access to host state: packages, services, files, firewall, SELinux, metrics."""

import logging
import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import psutil

from .errors import ConfigWriteError

logger = logging.getLogger(__name__)

METRICS = {
    "processes": ["ps", "aux", "--sort=-%mem"],
    "disk": ["df", "-h"],
    "sockets": ["ss", "-tuln"],
}


@dataclass
class CommandResult:
    """Outcome of one delegated command."""
    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        return " ".join(shlex.quote(part) for part in self.command)

    def error_text(self) -> str:
        """Last meaningful line of output, preferring stderr."""
        for stream in (self.stderr, self.stdout):
            lines = [line.strip() for line in stream.splitlines() if line.strip()]
            if lines:
                return lines[-1]
        return ""


class SystemGateway(ABC):
    """Every operation that touches the host goes through here."""

    @abstractmethod
    def package_installed(self, name: str) -> bool:
        """Return True if the package database has the package."""

    @abstractmethod
    def install_package(self, name: str) -> CommandResult:
        """Install a package at its latest available version."""

    @abstractmethod
    def set_service_state(self, name: str, enabled: bool = True, running: bool = True) -> List[CommandResult]:
        """Enable/disable a service at boot and start/stop it now."""

    @abstractmethod
    def read_config(self, path: Path) -> str:
        """Return file content, or an empty string if the file is absent."""

    @abstractmethod
    def write_config(self, path: Path, content: str) -> None:
        """Replace file content."""

    @abstractmethod
    def add_firewall_rule(self, service: str, permanent: bool = True) -> CommandResult:
        """Allow a named service profile through the firewall."""

    @abstractmethod
    def reload_firewall(self) -> CommandResult:
        """Make permanent firewall rules active."""

    @abstractmethod
    def set_selinux_bool(self, name: str, value: bool, persistent: bool = True) -> CommandResult:
        """Set an SELinux boolean."""

    @abstractmethod
    def reload_sysctl(self, path: Optional[Path] = None) -> CommandResult:
        """Load kernel parameters from the sysctl file."""

    @abstractmethod
    def query_metrics(self, kind: str) -> CommandResult:
        """Read-only host inspection; kind is a METRICS key or 'summary'."""


class ShellGateway(SystemGateway):
    """Gateway that shells out to the standard RHEL tooling."""

    def __init__(self, package_manager: str = "dnf", timeout: int = 900):
        self.package_manager = package_manager
        self.timeout = timeout

    def run(self, cmd: List[str], log_output: bool = True) -> CommandResult:
        """Run a command, capturing its output and exit status.

        Never raises for a failing command: a missing executable is
        reported as exit 127, one that cannot be executed as exit 126,
        and a timeout as exit 124.
        """
        logger.debug("Running command: %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                stdin=subprocess.DEVNULL,
            )
            result = CommandResult(cmd, proc.returncode, proc.stdout or "", proc.stderr or "")
        except FileNotFoundError:
            result = CommandResult(cmd, 127, stderr=f"{cmd[0]}: command not found")
        except PermissionError:
            result = CommandResult(cmd, 126, stderr=f"{cmd[0]}: permission denied")
        except subprocess.TimeoutExpired:
            result = CommandResult(cmd, 124, stderr=f"timed out after {self.timeout}s")

        if not log_output:
            return result

        for stream in (result.stdout, result.stderr):
            if stream.strip():
                logger.info("[%s] %s", cmd[0], stream.rstrip())
        if not result.ok:
            logger.error("Command failed (exit %d): %s", result.returncode, result.command_line)
        return result

    def package_installed(self, name: str) -> bool:
        return self.run(["rpm", "-q", name], log_output=False).ok

    def install_package(self, name: str) -> CommandResult:
        return self.run([self.package_manager, "install", "-y", name])

    def set_service_state(self, name: str, enabled: bool = True, running: bool = True) -> List[CommandResult]:
        return [
            self.run(["systemctl", "enable" if enabled else "disable", name]),
            self.run(["systemctl", "start" if running else "stop", name]),
        ]

    def read_config(self, path: Path) -> str:
        try:
            return path.read_text()
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise ConfigWriteError(path, e.strerror or str(e)) from e

    def write_config(self, path: Path, content: str) -> None:
        logger.info("Writing %s (%d bytes)", path, len(content))
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(content)
            if path.exists():
                os.chmod(tmp, path.stat().st_mode & 0o7777)
            os.replace(tmp, path)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            if tmp.exists():
                try:
                    tmp.unlink()
                except OSError as cleanup:
                    logger.warning("Could not remove %s: %s", tmp, cleanup)
            raise ConfigWriteError(path, e.strerror or str(e)) from e

    def add_firewall_rule(self, service: str, permanent: bool = True) -> CommandResult:
        cmd = ["firewall-cmd"]
        if permanent:
            cmd.append("--permanent")
        cmd.append(f"--add-service={service}")
        return self.run(cmd)

    def reload_firewall(self) -> CommandResult:
        return self.run(["firewall-cmd", "--reload"])

    def set_selinux_bool(self, name: str, value: bool, persistent: bool = True) -> CommandResult:
        cmd = ["setsebool"]
        if persistent:
            cmd.append("-P")
        cmd.append(f"{name}={1 if value else 0}")
        return self.run(cmd)

    def reload_sysctl(self, path: Optional[Path] = None) -> CommandResult:
        cmd = ["sysctl", "-p"]
        if path is not None:
            cmd.append(str(path))
        return self.run(cmd)

    def query_metrics(self, kind: str) -> CommandResult:
        if kind == "summary":
            return self._summary()
        if kind not in METRICS:
            raise ValueError(f"Unknown metric: {kind}")
        return self.run(METRICS[kind], log_output=False)

    def _summary(self) -> CommandResult:
        """CPU, memory and load figures from psutil."""
        cpu = psutil.cpu_percent(interval=0.1)
        mem = psutil.virtual_memory()
        load = psutil.getloadavg()
        line = (
            f"CPU {cpu:.1f}%  "
            f"Memory {mem.percent:.1f}% of {mem.total // (1024 ** 2)} MiB  "
            f"Load {load[0]:.2f} {load[1]:.2f} {load[2]:.2f}"
        )
        return CommandResult(["psutil"], 0, stdout=line + "\n")
