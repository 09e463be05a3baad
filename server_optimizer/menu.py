"""Interactive menu for Server Optimizer."""

import logging
from enum import Enum
from typing import Callable, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from .errors import ConfigError, ConfigWriteError, ExternalToolError, InputError
from .services import ConfigKind
from .utils import console as default_console
from .utils import error, info, warning

logger = logging.getLogger(__name__)


class MenuChoice(Enum):
    DHCP = "1"
    FTP = "2"
    HTTP = "3"
    FIREWALL = "4"
    SELINUX = "5"
    TUNING = "6"
    MONITOR = "7"
    EXIT = "8"


LABELS = {
    MenuChoice.DHCP: "Configure DHCP Server",
    MenuChoice.FTP: "Configure FTP Server",
    MenuChoice.HTTP: "Configure Apache Server",
    MenuChoice.FIREWALL: "Configure Firewall Rules",
    MenuChoice.SELINUX: "Configure SELinux Policies",
    MenuChoice.TUNING: "Apply System Optimization",
    MenuChoice.MONITOR: "Monitor Server Performance",
    MenuChoice.EXIT: "Exit",
}


def parse_choice(raw: str) -> MenuChoice:
    """Map raw input to a menu choice."""
    try:
        return MenuChoice(raw.strip())
    except ValueError:
        raise InputError(f"Invalid menu option: {raw!r}") from None


def run_action(action: Callable[[], object], out: Optional[Console] = None) -> bool:
    """
    Run one handler, reporting failures instead of propagating them.

    Returns:
        True if the handler finished without error
    """
    try:
        action()
        return True
    except ExternalToolError as e:
        logger.error("%s", e)
        error(str(e), out)
        for line in e.details():
            error(f"  {line}", out)
    except (ConfigError, ConfigWriteError) as e:
        logger.error("%s", e)
        error(str(e), out)
    return False


class MainMenu:
    """Read a selection, run its handler, repeat."""

    def __init__(self, provisioner, out: Optional[Console] = None, ask: Optional[Callable[[], str]] = None):
        self.provisioner = provisioner
        self.out = out or default_console
        self.ask = ask or self._prompt
        self.handlers: Dict[MenuChoice, Callable[[], object]] = {
            MenuChoice.DHCP: lambda: provisioner.apply_config(ConfigKind.DHCP),
            MenuChoice.FTP: lambda: provisioner.apply_config(ConfigKind.FTP),
            MenuChoice.HTTP: lambda: provisioner.apply_config(ConfigKind.HTTP),
            MenuChoice.FIREWALL: lambda: provisioner.apply_firewall_rules(),
            MenuChoice.SELINUX: lambda: provisioner.apply_selinux_policy(),
            MenuChoice.TUNING: lambda: provisioner.apply_performance_tuning(),
            MenuChoice.MONITOR: lambda: provisioner.report_health(),
        }

    def _prompt(self) -> str:
        return Prompt.ask("Enter your choice [1-8]", console=self.out)

    def show(self) -> None:
        """Print the menu."""
        self.out.print()
        self.out.print(Panel.fit(
            "[bold yellow]  Linux Server Optimization & Security  [/bold yellow]",
            border_style="cyan",
        ))
        for choice in MenuChoice:
            self.out.print(f"  [cyan]{choice.value}[/cyan]. {LABELS[choice]}")
        self.out.print()

    def dispatch(self, raw: str) -> bool:
        """
        Handle one selection.

        Returns:
            False when the user asked to exit, True otherwise
        """
        try:
            choice = parse_choice(raw)
        except InputError:
            warning("Invalid option! Please try again.", self.out)
            return True

        if choice is MenuChoice.EXIT:
            info("Exiting script. Goodbye!", self.out)
            return False

        logger.info("Menu selection: %s", LABELS[choice])
        run_action(self.handlers[choice], self.out)
        return True

    def run(self) -> int:
        """Loop until the user exits. Returns the process exit status."""
        while True:
            self.show()
            try:
                raw = self.ask()
            except EOFError:
                self.out.print()
                info("End of input. Goodbye!", self.out)
                return 0

            if not self.dispatch(raw):
                return 0
