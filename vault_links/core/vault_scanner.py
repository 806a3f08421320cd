"""Vault-wide link scanning and reverse index construction."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Optional

from vault_links.core.file_io import read_note
from vault_links.core.link_extraction import scan_text
from vault_links.core.vault_operations import (
    ensure_vault_ready,
    list_note_files,
    note_display_name,
    note_identity,
    notes_named,
    resolve_note_path,
)
from vault_links.data_models import (
    LinkScanResult,
    Note,
    ScanFailure,
    ScanOptions,
    VaultIndex,
    VaultMetadata,
    VaultScan,
)

logger = logging.getLogger(__name__)


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def scan_note(
    path: Path,
    vault_root: Path,
    options: ScanOptions,
) -> tuple[Note, LinkScanResult]:
    """Read one note and scan it for links.

    Raises:
        OSError: If the file cannot be read after retries.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    note = read_note(path, note_identity(vault_root, path))
    return note, scan_text(note.content, options, source_file=note.identity)


def _scan_file_safely(
    path: Path,
    vault_root: Path,
    options: ScanOptions,
) -> tuple[Path, Optional[LinkScanResult], Optional[ScanFailure]]:
    try:
        _, result = scan_note(path, vault_root, options)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not scan note '%s' for links: %s", path, exc)
        return path, None, ScanFailure(path=path, kind="unreadable", error=str(exc))
    return path, result, None


def _worker_count(options: ScanOptions, file_count: int) -> int:
    return max(1, min(options.max_workers, file_count))


# ==============================================================================
# SCAN OPERATIONS
# ==============================================================================


def scan_vault_for_links(
    note_files: Iterable[Path],
    vault: VaultMetadata,
    options: Optional[ScanOptions] = None,
) -> VaultScan:
    """Scan every file in ``note_files`` for wikilinks.

    Files are processed concurrently, bounded by ``options.max_workers``. A file
    that cannot be read is recorded in ``VaultScan.failures`` and the scan
    continues; callers decide whether a partial scan is acceptable.

    Args:
        note_files: Absolute paths of the notes to scan.
        vault: Vault the notes belong to; used to derive note identities.
        options: Scan options; defaults to :class:`ScanOptions` defaults.

    Returns:
        A :class:`VaultScan` with one :class:`LinkScanResult` per readable file.
    """
    options = options or ScanOptions()
    files = list(note_files)
    vault_root = vault.path.resolve(strict=False)
    scan = VaultScan(scanned=len(files))
    started = time.monotonic()

    with ThreadPoolExecutor(max_workers=_worker_count(options, len(files))) as executor:
        outcomes = executor.map(lambda path: _scan_file_safely(path, vault_root, options), files)
        for path, result, failure in outcomes:
            if failure is not None:
                scan.failures.append(failure)
            else:
                scan.results[path] = result

    logger.info(
        "Scanned %d note(s) in vault '%s' in %.0fms (%d failed, skip_frontmatter=%s)",
        scan.scanned,
        vault.name,
        (time.monotonic() - started) * 1000,
        len(scan.failures),
        options.skip_frontmatter,
    )
    return scan


def build_index(results: Mapping[Path, LinkScanResult]) -> VaultIndex:
    """Build the reverse index from link target to referencing files.

    Each result contributes its own partition of targets, merged into one
    index. Target matching is exact and case-sensitive.
    """
    index = VaultIndex()
    for path, result in results.items():
        index.merge({target: (path,) for target in result.targets})
    return index


def scan_note_links(
    vault: VaultMetadata,
    title: str,
    options: Optional[ScanOptions] = None,
) -> dict[str, Any]:
    """Scan a single note and return its link scan result payload.

    Raises:
        FileNotFoundError: If the vault or note cannot be located.
        ValueError: If the note is not UTF-8 encoded or escapes the vault.
    """
    options = options or ScanOptions()
    ensure_vault_ready(vault)
    target_path = resolve_note_path(vault, title)
    if not target_path.is_file():
        raise FileNotFoundError(f"Note '{title}' not found in vault '{vault.name}'.")

    try:
        note, result = scan_note(target_path, vault.path.resolve(strict=False), options)
    except UnicodeDecodeError as exc:
        raise ValueError(
            f"Note '{title}' is not UTF-8 encoded and cannot be processed."
        ) from exc

    return {
        "vault": vault.name,
        "note": note.identity,
        "path": str(target_path),
        "options": options.as_payload(),
        **result.as_payload(),
    }


def find_backlinks(
    vault: VaultMetadata,
    title: str,
    options: Optional[ScanOptions] = None,
) -> dict[str, Any]:
    """Find every reference to a note across the vault.

    A link counts when its target equals the note's display name or its full
    vault-relative identity. The note itself does not need to exist, so
    dangling links can be inspected too.

    Returns:
        A dictionary with matching references grouped per file, the number of
        files scanned, per-file scan failures and whether several notes share
        the display name.
    """
    options = options or ScanOptions()
    note_files = list_note_files(vault)
    scan = scan_vault_for_links(note_files, vault, options)
    index = build_index(scan.results)

    name = note_display_name(title)
    targets = [name] if name == title else [name, title]
    files = sorted({path for target in targets for path in index.files_for(target)})

    grouped = []
    total = 0
    for path in files:
        result = scan.results[path]
        references = sorted(
            (ref for target in targets for ref in result.references_to(target)),
            key=lambda ref: ref.start,
        )
        total += len(references)
        grouped.append(
            {
                "file": references[0].source_file,
                "path": str(path),
                "references": [reference.as_payload() for reference in references],
            }
        )

    ambiguous = len(notes_named(note_files, name)) > 1
    if ambiguous:
        logger.warning("Several notes in vault '%s' share the name '%s'", vault.name, name)

    return {
        "vault": vault.name,
        "note": title,
        "targets": targets,
        "total_references": total,
        "files": grouped,
        "scanned": scan.scanned,
        "failures": [failure.as_payload() for failure in scan.failures],
        "ambiguous_target": ambiguous,
    }
