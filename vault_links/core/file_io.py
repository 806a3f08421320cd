"""Note file I/O with transient-error retry and atomic writes.

Vaults often live on cloud-synced or network-backed folders where reads and
writes fail briefly under load. Every filesystem call in this module goes
through :func:`retry_transient`; callers only see the added latency.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import tempfile
import time
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Callable, Optional, TypeVar

from vault_links.constants import (
    RETRY_BACKOFF_MULTIPLIER,
    RETRY_BASE_DELAY_SECS,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_DELAY_SECS,
    TRANSIENT_ERRNOS,
)
from vault_links.data_models import Note

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient_error(exc: BaseException) -> bool:
    """Return True for filesystem errors worth retrying."""
    if isinstance(exc, TimeoutError):
        return True
    return isinstance(exc, OSError) and exc.errno in TRANSIENT_ERRNOS


def retry_transient(
    max_attempts: int = RETRY_MAX_ATTEMPTS,
    delay_secs: float = RETRY_BASE_DELAY_SECS,
    backoff_multiplier: float = RETRY_BACKOFF_MULTIPLIER,
    max_delay_secs: float = RETRY_MAX_DELAY_SECS,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator retrying a filesystem operation on transient ``OSError``.

    Non-transient errors propagate immediately. The last transient error is
    re-raised once ``max_attempts`` is exhausted.

    Args:
        max_attempts: Total number of attempts, including the first one.
        delay_secs: Delay before the first retry.
        backoff_multiplier: Factor applied to the delay after each retry.
        max_delay_secs: Upper bound for a single delay.

    Example:
        @retry_transient(max_attempts=5)
        def read_bytes(path):
            return path.read_bytes()
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            attempt = 0
            current_delay = delay_secs

            while True:
                try:
                    return func(*args, **kwargs)
                except OSError as exc:
                    attempt += 1
                    if not is_transient_error(exc) or attempt >= max_attempts:
                        raise

                    logger.warning(
                        "Transient filesystem error in %s (attempt %d/%d): %s. Retrying in %.2fs",
                        func.__name__,
                        attempt,
                        max_attempts,
                        exc,
                        current_delay,
                    )
                    time.sleep(current_delay)
                    current_delay = min(current_delay * backoff_multiplier, max_delay_secs)

        return wrapper

    return decorator


def content_digest(text: str) -> str:
    """Return the SHA-256 hex digest of ``text`` encoded as UTF-8."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


@retry_transient()
def read_text(path: Path) -> str:
    """Read a UTF-8 file without newline translation, so ``\\r\\n`` survives a rewrite."""
    with open(path, encoding="utf-8", newline="") as handle:
        return handle.read()


@retry_transient()
def _modified_ns(path: Path) -> int:
    return path.stat().st_mtime_ns


def read_note(path: Path, identity: str) -> Note:
    """Materialize a read-only :class:`Note` view of ``path``.

    Args:
        path: Absolute path to the note file.
        identity: Vault-relative identifier of the note (no ``.md`` suffix).

    Raises:
        OSError: If the file cannot be read after retries.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    modified_ns = _modified_ns(path)
    content = read_text(path)
    return Note(
        path=path,
        identity=identity,
        name=path.stem,
        content=content,
        modified_ns=modified_ns,
        read_at=datetime.now(),
        digest=content_digest(content),
    )


@retry_transient()
def write_text_atomic(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` via a temp file in the same directory.

    The temp file is renamed over the target, so readers see either the old or
    the new content, never a partial write. Existing file permissions are kept.
    """
    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="",
            dir=path.parent,
            delete=False,
            prefix=f".{path.name}.",
            suffix=".tmp",
        ) as handle:
            tmp_path = Path(handle.name)
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())

        if path.exists():
            shutil.copymode(path, tmp_path)
        tmp_path.replace(path)
    except OSError:
        if tmp_path is not None:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError as cleanup_exc:
                logger.error("Failed to clean up temp file %s: %s", tmp_path, cleanup_exc)
        raise


@retry_transient()
def move_file(source: Path, destination: Path) -> None:
    """Move ``source`` to ``destination``, creating parent folders as needed."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    source.rename(destination)
