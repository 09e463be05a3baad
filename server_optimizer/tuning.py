"""System performance tuning.

Both the PAM limits file and the sysctl file are updated by key rather
than by appending, so applying the tuning any number of times leaves
the files exactly as applying it once does. An entry for a managed key
with a different value is rewritten in place, and repeated entries for
a managed key are collapsed into the first one.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from rich.console import Console

from .config import Settings
from .errors import ExternalToolError
from .gateway import SystemGateway
from .utils import info, success

logger = logging.getLogger(__name__)

Entry = Tuple[object, str]


def _normalize(value: str) -> str:
    return " ".join(str(value).split())


def parse_limits_line(line: str) -> Optional[Entry]:
    """Return ((domain, type, item), value) for a limits.conf entry."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None
    parts = stripped.split()
    if len(parts) < 4:
        return None
    return (parts[0], parts[1], parts[2]), _normalize(" ".join(parts[3:]))


def parse_sysctl_line(line: str) -> Optional[Entry]:
    """Return (key, value) for a sysctl.conf assignment."""
    stripped = line.strip()
    if not stripped or stripped[0] in "#;" or "=" not in stripped:
        return None
    key, value = stripped.split("=", 1)
    key = key.strip().lstrip("-").strip()
    if not key:
        return None
    return key, _normalize(value)


def merge_entries(
    content: str,
    wanted: Dict[object, Tuple[str, str]],
    parse: Callable[[str], Optional[Entry]],
) -> str:
    """
    Make content carry exactly one line per wanted key.

    Args:
        content: Current file content
        wanted: key -> (value, line to write)
        parse: Turns a line into (key, value), or None for other lines

    Returns:
        The updated content; unchanged lines are kept byte for byte
    """
    seen = set()
    lines: List[str] = []

    for line in content.splitlines():
        entry = parse(line)
        if entry is not None and entry[0] in wanted:
            key, value = entry
            if key in seen:
                continue
            seen.add(key)
            if value != _normalize(wanted[key][0]):
                line = wanted[key][1]
        lines.append(line)

    lines.extend(line for key, (_, line) in wanted.items() if key not in seen)
    return "\n".join(lines) + "\n" if lines else ""


def merge_limits(content: str, entries: Iterable[Sequence[str]]) -> str:
    wanted = {}
    for domain, kind, item, value in entries:
        value = str(value)
        wanted[(str(domain), str(kind), str(item))] = (value, f"{domain} {kind} {item} {value}")
    return merge_entries(content, wanted, parse_limits_line)


def merge_sysctl(content: str, settings: Dict[str, object]) -> str:
    wanted = {key: (str(value), f"{key} = {value}") for key, value in settings.items()}
    return merge_entries(content, wanted, parse_sysctl_line)


def _update_file(gateway: SystemGateway, path: Path, merge: Callable[[str], str]) -> bool:
    """Rewrite a file only if merging changed it. Returns True on change."""
    current = gateway.read_config(path)
    updated = merge(current)
    if updated == current:
        logger.info("%s already up to date", path)
        return False
    gateway.write_config(path, updated)
    return True


def apply_performance_tuning(
    gateway: SystemGateway,
    settings: Settings,
    out: Optional[Console] = None,
) -> List[Path]:
    """
    Raise file descriptor limits and tune kernel parameters.

    Returns:
        The files that had to be changed

    Raises:
        ExternalToolError: if reloading sysctl failed
    """
    info("Applying system performance optimizations...", out)

    limits_path = Path(settings.limits.path)
    sysctl_path = Path(settings.sysctl.path)
    changed = []

    if _update_file(gateway, limits_path, lambda c: merge_limits(c, settings.limits.entries)):
        changed.append(limits_path)
    if _update_file(gateway, sysctl_path, lambda c: merge_sysctl(c, settings.sysctl.settings)):
        changed.append(sysctl_path)

    for path in changed:
        info(f"Updated {path}", out)

    result = gateway.reload_sysctl(sysctl_path)
    if not result.ok:
        raise ExternalToolError("Performance tuning", [result])

    success("Performance tuning applied.", out)
    return changed
