"""Exceptions raised by Server Optimizer."""

from typing import List


class ProvisionerError(Exception):
    """Base class for all provisioning errors."""


class PrivilegeError(ProvisionerError):
    """Raised when the program is not running as root."""


class ConfigError(ProvisionerError):
    """Raised for an unreadable or invalid settings file."""


class InputError(ProvisionerError):
    """Raised for a menu selection that is not one of the offered options."""


class ConfigWriteError(ProvisionerError):
    """Raised when a configuration file cannot be read or written."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot update {path}: {reason}")


class ExternalToolError(ProvisionerError):
    """Raised when one or more delegated commands exit non-zero.

    Carries every failed CommandResult so the caller can show what
    went wrong instead of just that something did.
    """

    def __init__(self, action: str, failures: List["CommandResult"]):
        self.action = action
        self.failures = list(failures)
        super().__init__(f"{action}: {len(self.failures)} command(s) failed")

    def details(self) -> List[str]:
        """One line per failed command."""
        lines = []
        for result in self.failures:
            reason = result.error_text() or "no output"
            lines.append(f"{result.command_line} (exit {result.returncode}): {reason}")
        return lines
