#!/usr/bin/env python3
"""
Server Optimizer CLI

Provision a RHEL server: DHCP, FTP and Apache services, firewall and
SELinux policy, kernel and file descriptor tuning, and a health report.

Usage:
    sudo server-optimizer                 # interactive menu
    sudo server-optimizer <action>        # run a single action

Examples:
    sudo server-optimizer dhcp
    sudo server-optimizer tune
    sudo server-optimizer --config ./lab.yaml monitor
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_CONFIG_FILE, dump_config, get_version, load_config
from .errors import ConfigError, PrivilegeError
from .menu import MainMenu, run_action
from .provisioner import HostProvisioner
from .services import ConfigKind
from .utils import console, error, require_root, setup_logging, warning

logger = logging.getLogger(__name__)

ACTIONS = {
    "dhcp": lambda p: p.apply_config(ConfigKind.DHCP),
    "ftp": lambda p: p.apply_config(ConfigKind.FTP),
    "http": lambda p: p.apply_config(ConfigKind.HTTP),
    "firewall": lambda p: p.apply_firewall_rules(),
    "selinux": lambda p: p.apply_selinux_policy(),
    "tune": lambda p: p.apply_performance_tuning(),
    "monitor": lambda p: p.report_health(),
    "install": lambda p: p.ensure_packages_installed(),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="server-optimizer",
        description="Linux Server Optimization & Security",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Actions:
  dhcp      Configure and start the DHCP server
  ftp       Enable and start vsftpd
  http      Enable and start Apache
  firewall  Open http, ftp and dhcp in firewalld
  selinux   Set the FTP/HTTP SELinux booleans
  tune      Apply file descriptor and sysctl tuning
  monitor   Show processes, disk usage and sockets
  install   Install the required packages

Without an action the interactive menu is shown.
""",
    )

    parser.add_argument("--version", action="version", version=f"server-optimizer {get_version()}")
    parser.add_argument("action", nargs="?", choices=sorted(ACTIONS), help="Run one action and exit")
    parser.add_argument("-c", "--config", default=str(DEFAULT_CONFIG_FILE),
                        help="Settings file (default: %(default)s)")
    parser.add_argument("--log-file", help="Log file (overrides the settings file)")
    parser.add_argument("--skip-install", action="store_true",
                        help="Do not check required packages before showing the menu")
    parser.add_argument("--show-config", action="store_true", help="Print effective settings and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Echo debug logging to stderr")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_config(Path(args.config))
    except ConfigError as e:
        error(str(e))
        return 1

    if args.show_config:
        console.print(dump_config(settings), markup=False, highlight=False, end="")
        return 0

    try:
        require_root()
    except PrivilegeError as e:
        error(str(e))
        return 1

    log_file = Path(args.log_file or settings.log_file)
    try:
        setup_logging(log_file, args.verbose)
    except OSError as e:
        error(f"Cannot open log file {log_file}: {e}")
        return 1

    logger.info("server-optimizer %s starting", get_version())
    provisioner = HostProvisioner.from_settings(settings)

    try:
        if args.action:
            ok = run_action(lambda: ACTIONS[args.action](provisioner))
            return 0 if ok else 1

        if not args.skip_install:
            run_action(provisioner.ensure_packages_installed)
        return MainMenu(provisioner).run()
    except KeyboardInterrupt:
        console.print()
        warning("Interrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
