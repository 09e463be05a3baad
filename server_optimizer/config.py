"""Configuration and constants for Server Optimizer."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

# Paths
CONFIG_DIR = Path("/etc/server-optimizer")
DEFAULT_CONFIG_FILE = CONFIG_DIR / "config.yaml"
LOG_FILE = Path("/var/log/server_setup.log")
TEMPLATES_DIR = Path(__file__).parent / "data" / "templates"

REQUIRED_PACKAGES = [
    "dhcp-server",
    "vsftpd",
    "httpd",
    "net-tools",
    "setroubleshoot-server",
    "policycoreutils-python-utils",
]


def get_version() -> str:
    """Get application version."""
    version_file = Path(__file__).parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    return "1.0.0"


@dataclass
class DhcpConfig:
    """DHCP server template values."""
    config_path: str = "/etc/dhcp/dhcpd.conf"
    default_lease_time: int = 600
    max_lease_time: int = 7200
    subnet: str = "192.168.1.0"
    netmask: str = "255.255.255.0"
    range_start: str = "192.168.1.100"
    range_end: str = "192.168.1.200"
    routers: str = "192.168.1.1"
    dns_servers: List[str] = field(default_factory=lambda: ["8.8.8.8", "8.8.4.4"])


@dataclass
class LimitsConfig:
    """Entries ensured in the PAM limits file."""
    path: str = "/etc/security/limits.conf"
    entries: List[List[str]] = field(default_factory=lambda: [
        ["*", "soft", "nofile", "65535"],
        ["*", "hard", "nofile", "65535"],
    ])


@dataclass
class SysctlConfig:
    """Kernel parameters ensured in the sysctl file."""
    path: str = "/etc/sysctl.conf"
    settings: Dict[str, str] = field(default_factory=lambda: {
        "net.core.somaxconn": "1024",
        "net.ipv4.tcp_syncookies": "1",
        "vm.swappiness": "10",
    })


@dataclass
class Settings:
    """Application settings."""
    log_file: str = str(LOG_FILE)
    command_timeout: int = 900
    package_manager: str = "dnf"
    packages: List[str] = field(default_factory=lambda: list(REQUIRED_PACKAGES))
    dhcp: DhcpConfig = field(default_factory=DhcpConfig)
    services: Dict[str, str] = field(default_factory=lambda: {
        "DHCP": "dhcpd",
        "FTP": "vsftpd",
        "HTTP": "httpd",
    })
    firewall_services: List[str] = field(default_factory=lambda: ["http", "ftp", "dhcp"])
    selinux_booleans: Dict[str, bool] = field(default_factory=lambda: {
        "ftp_home_dir": True,
        "httpd_can_network_connect": True,
    })
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    sysctl: SysctlConfig = field(default_factory=SysctlConfig)
    top_processes: int = 5
    template_dir: Optional[str] = None


SECTIONS = {
    "dhcp": DhcpConfig,
    "limits": LimitsConfig,
    "sysctl": SysctlConfig,
}


def _build(cls, data: Dict[str, Any], where: str):
    """Instantiate a settings dataclass, reporting unknown keys."""
    if not isinstance(data, dict):
        raise ConfigError(f"{where}: expected a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{where}: unknown key(s): {', '.join(unknown)}")

    values = dict(data)
    for name, section_cls in SECTIONS.items():
        if cls is Settings and name in values:
            values[name] = _build(section_cls, values[name], f"{where}.{name}")
    return cls(**values)


def load_config(path: Optional[Path] = None) -> Settings:
    """Load settings from a YAML file, falling back to defaults.

    A missing file is not an error; the defaults reproduce the stock
    server layout. Keys present in the file override the defaults.
    """
    if path is None:
        path = DEFAULT_CONFIG_FILE

    if not path.exists():
        return Settings()

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    settings = _build(Settings, data, str(path))
    validate(settings)
    return settings


def dump_config(settings: Settings) -> str:
    """Render effective settings as YAML."""
    return yaml.safe_dump(as_dict(settings), default_flow_style=False, sort_keys=False)


def as_dict(obj) -> Dict[str, Any]:
    """Convert a settings dataclass into plain YAML-friendly data."""
    result = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        result[f.name] = as_dict(value) if is_dataclass(value) else value
    return result


SCALAR = (str, int, float)

_TYPE_NAMES = {
    str: "a string",
    int: "an integer",
    bool: "true or false",
    list: "a list",
    dict: "a mapping",
    SCALAR: "a string or number",
}


def _expect(value, kind, where: str) -> None:
    """Reject a value whose YAML type does not match the setting."""
    # bool is an int subclass; `yes` must not pass as a count
    if kind is int and isinstance(value, bool) or not isinstance(value, kind):
        raise ConfigError(f"{where}: expected {_TYPE_NAMES[kind]}, got {type(value).__name__}")


def _expect_list(value, kind, where: str) -> None:
    _expect(value, list, where)
    for i, item in enumerate(value):
        _expect(item, kind, f"{where}[{i}]")


def _expect_mapping(value, kind, where: str) -> None:
    _expect(value, dict, where)
    for key, item in value.items():
        _expect(item, kind, f"{where}.{key}")


def check_types(settings: Settings) -> None:
    """Check that every setting has the type its handler expects."""
    for name in ("log_file", "package_manager"):
        _expect(getattr(settings, name), str, name)
    for name in ("command_timeout", "top_processes"):
        _expect(getattr(settings, name), int, name)
    if settings.template_dir is not None:
        _expect(settings.template_dir, str, "template_dir")

    _expect_list(settings.packages, str, "packages")
    _expect_list(settings.firewall_services, str, "firewall_services")
    _expect_mapping(settings.services, str, "services")
    _expect_mapping(settings.selinux_booleans, bool, "selinux_booleans")

    dhcp = settings.dhcp
    for name in ("config_path", "subnet", "netmask", "range_start", "range_end", "routers"):
        _expect(getattr(dhcp, name), str, f"dhcp.{name}")
    for name in ("default_lease_time", "max_lease_time"):
        _expect(getattr(dhcp, name), int, f"dhcp.{name}")
    _expect_list(dhcp.dns_servers, str, "dhcp.dns_servers")

    _expect(settings.limits.path, str, "limits.path")
    _expect_list(settings.limits.entries, list, "limits.entries")
    for i, entry in enumerate(settings.limits.entries):
        if len(entry) != 4:
            raise ConfigError(f"limits.entries: expected [domain, type, item, value], got {entry}")
        for j, item in enumerate(entry):
            _expect(item, SCALAR, f"limits.entries[{i}][{j}]")

    _expect(settings.sysctl.path, str, "sysctl.path")
    _expect_mapping(settings.sysctl.settings, SCALAR, "sysctl.settings")


def validate(settings: Settings) -> None:
    """Check settings that would otherwise fail deep inside a handler."""
    from .renderer import validate_dhcp

    check_types(settings)

    if settings.package_manager not in ("dnf", "yum"):
        raise ConfigError(f"package_manager must be 'dnf' or 'yum', not {settings.package_manager!r}")
    if settings.top_processes < 1:
        raise ConfigError("top_processes must be at least 1")
    if settings.command_timeout < 1:
        raise ConfigError("command_timeout must be at least 1 second")

    missing = {"DHCP", "FTP", "HTTP"} - set(settings.services)
    if missing:
        raise ConfigError(f"services: missing entries for {', '.join(sorted(missing))}")

    validate_dhcp(settings.dhcp)
