"""Utility functions for Server Optimizer."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

from .errors import PrivilegeError

console = Console()


def check_root() -> bool:
    """Check if running as root."""
    return os.geteuid() == 0


def require_root() -> None:
    """Raise PrivilegeError unless running as root."""
    if not check_root():
        raise PrivilegeError("Run this script as root.")


def setup_logging(log_file: Path, verbose: bool = False) -> None:
    """Setup application logging.

    Command output always goes to the log file. With verbose set, log
    records are echoed to stderr as well.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handlers = [logging.FileHandler(log_file)]
    if verbose:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def info(message: str, out: Optional[Console] = None) -> None:
    (out or console).print(Text(f"[INFO] {message}", style="blue"))


def success(message: str, out: Optional[Console] = None) -> None:
    (out or console).print(Text(f"[SUCCESS] {message}", style="green"))


def error(message: str, out: Optional[Console] = None) -> None:
    (out or console).print(Text(f"[ERROR] {message}", style="red"))


def warning(message: str, out: Optional[Console] = None) -> None:
    (out or console).print(Text(f"[WARNING] {message}", style="yellow"))
