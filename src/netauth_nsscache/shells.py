import logging
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)


def parse_shells(text: str) -> list[str]:
    shells = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        shells.append(line)
    return shells


def read_shells(path: str | Path) -> list[str]:
    """Read the list of login shells this host accepts (normally /etc/shells)."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Error reading {path}: {exc}") from exc
    shells = parse_shells(text)
    logger.info("The system will accept the following shells")
    for shell in shells:
        logger.info("  %s", shell)
    return shells
