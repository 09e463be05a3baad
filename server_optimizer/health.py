"""Server health report."""

from typing import List, Optional

from rich.console import Console
from rich.text import Text

from .errors import ExternalToolError
from .gateway import CommandResult, SystemGateway
from .utils import console as default_console
from .utils import error, info


def top_lines(output: str, count: int) -> str:
    """Keep the header line plus the first count rows."""
    lines = output.splitlines()
    return "\n".join(lines[:count + 1])


def report_health(
    gateway: SystemGateway,
    top_processes: int = 5,
    out: Optional[Console] = None,
) -> None:
    """
    Print memory-hungry processes, disk usage and listening sockets.

    Only reads host state. Sections whose command fails are reported
    in place; the report still covers the remaining sections.
    """
    out = out or default_console
    failures: List[CommandResult] = []

    info("Monitoring current server performance...", out)

    summary = gateway.query_metrics("summary")
    if summary.ok:
        out.print()
        out.print(Text(summary.stdout.rstrip(), style="bold"))
    else:
        failures.append(summary)

    sections = [
        (f"Top {top_processes} Processes by Memory Usage:", "processes"),
        ("Disk Usage:", "disk"),
        ("Network Statistics:", "sockets"),
    ]

    for title, kind in sections:
        out.print()
        out.print(Text(title, style="yellow"))

        result = gateway.query_metrics(kind)
        if not result.ok:
            failures.append(result)
            error(f"{result.command_line} failed: {result.error_text() or f'exit {result.returncode}'}", out)
            continue

        text = result.stdout
        if kind == "processes":
            text = top_lines(text, top_processes)
        out.print(Text(text.rstrip()))

    if failures:
        raise ExternalToolError("Health report", failures)
