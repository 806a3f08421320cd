"""Module-level constants for the vault links server."""

import errno
from pathlib import Path

# Configuration
CONFIG_PATH = Path(__file__).parent.parent / "vaults.yaml"

# Notes
NOTE_SUFFIX = ".md"
FRONTMATTER_DELIMITER = "---"

# Scanning
DEFAULT_MAX_WORKERS = 8

# Transient filesystem errors (sync clients, network mounts)
TRANSIENT_ERRNOS = frozenset(
    {
        errno.EBUSY,
        errno.EAGAIN,
        errno.EINTR,
        errno.EMFILE,
        errno.ENFILE,
        errno.ETIMEDOUT,
    }
)
RETRY_MAX_ATTEMPTS = 3
RETRY_BASE_DELAY_SECS = 0.2
RETRY_MAX_DELAY_SECS = 2.0
RETRY_BACKOFF_MULTIPLIER = 2.0

# Characters that cannot appear in a wikilink target
FORBIDDEN_LINK_CHARACTERS = frozenset("[]|#^")

# Logging
LOG_LEVEL = "INFO"
