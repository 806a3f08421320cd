"""Rename planning and application: rewrite wikilinks when a note is renamed or moved.

Workflow:

1. :func:`plan_rename` re-reads every file the :class:`VaultIndex` lists for the
   old name and computes one :class:`RenameEdit` per matching reference.
2. :func:`apply_rename` either returns those edits as a preview (dry run) or
   rewrites each file atomically, reporting a :class:`FileOutcome` per file.

Application is best-effort per file. A failed file never blocks the others and
files already written are not rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import frontmatter
import yaml

from vault_links.constants import FORBIDDEN_LINK_CHARACTERS
from vault_links.core.file_io import (
    content_digest,
    move_file,
    read_text,
    write_text_atomic,
)
from vault_links.core.link_extraction import scan_text
from vault_links.core.skip_regions import BYTE_ORDER_MARK, find_frontmatter_span
from vault_links.core.vault_operations import (
    ensure_vault_ready,
    list_note_files,
    note_display_name,
    note_identity,
    notes_named,
    resolve_note_path,
)
from vault_links.core.vault_scanner import build_index, scan_note, scan_vault_for_links
from vault_links.data_models import (
    FileOutcome,
    FileSnapshot,
    LinkScanResult,
    RenameEdit,
    RenameOutcome,
    RenamePlan,
    ScanFailure,
    ScanOptions,
    VaultIndex,
    VaultMetadata,
)

logger = logging.getLogger(__name__)


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _validate_link_name(name: str) -> None:
    if not name or not name.strip():
        raise ValueError("Link target names cannot be empty.")
    invalid = sorted(FORBIDDEN_LINK_CHARACTERS.intersection(name))
    if invalid:
        raise ValueError(
            f"Link target '{name}' contains characters that break wikilinks: {''.join(invalid)}"
        )


def _edits_for(
    path: Path,
    result: LinkScanResult,
    renames: Mapping[str, str],
) -> list[RenameEdit]:
    return [
        RenameEdit(path=path, reference=reference, replacement=reference.with_target(renames[reference.target]))
        for reference in result.references
        if reference.target in renames
    ]


def _plan_file(
    path: Path,
    vault_root: Path,
    renames: Mapping[str, str],
    options: ScanOptions,
) -> tuple[Path, list[RenameEdit], Optional[FileSnapshot], Optional[ScanFailure]]:
    try:
        note, result = scan_note(path, vault_root, options)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not re-read note '%s' while planning rename: %s", path, exc)
        return path, [], None, ScanFailure(path=path, kind="unreadable", error=str(exc))

    snapshot = FileSnapshot(path=path, digest=note.digest, modified_ns=note.modified_ns)
    return path, _edits_for(path, result, renames), snapshot, None


def _frontmatter_parses(text: str) -> bool:
    if find_frontmatter_span(text) is None:
        return True
    try:
        frontmatter.loads(text.lstrip(BYTE_ORDER_MARK))
    except (yaml.YAMLError, ValueError, TypeError):
        return False
    return True


def apply_edits(text: str, edits: list[RenameEdit]) -> str:
    """Apply ``edits`` to ``text`` as one transformation.

    Edits are applied in descending offset order so earlier offsets stay valid.

    Raises:
        ValueError: If an edit no longer matches the text or two edits overlap.
    """
    updated = text
    previous_start: Optional[int] = None
    for edit in sorted(edits, key=lambda item: item.start, reverse=True):
        if previous_start is not None and edit.end > previous_start:
            raise ValueError(f"Overlapping edits at offset {edit.start}.")
        if updated[edit.start:edit.end] != edit.reference.raw_text:
            raise ValueError(
                f"Edit at offset {edit.start} does not match '{edit.reference.raw_text}'."
            )
        updated = updated[: edit.start] + edit.replacement + updated[edit.end:]
        previous_start = edit.start
    return updated


def _apply_file(plan: RenamePlan, path: Path) -> FileOutcome:
    edits = plan.edits_for(path)
    source_file = edits[0].reference.source_file

    try:
        current = read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not re-read note '%s' before writing: %s", path, exc)
        return FileOutcome(path=path, status="failed", kind="unreadable", error=str(exc))

    replanned = False
    snapshot = plan.snapshots.get(path)
    if snapshot is None or content_digest(current) != snapshot.digest:
        logger.info("Note '%s' changed since the rename was planned; re-planning its edits", path)
        result = scan_text(current, plan.options, source_file=source_file)
        edits = _edits_for(path, result, plan.renames)
        replanned = True

    if not edits:
        return FileOutcome(path=path, status="unchanged", replanned=replanned)

    try:
        updated = apply_edits(current, edits)
    except ValueError as exc:
        logger.warning("Could not apply link edits to '%s': %s", path, exc)
        return FileOutcome(path=path, status="failed", kind="write_failed", error=str(exc), replanned=replanned)

    touches_frontmatter = any(edit.reference.in_frontmatter for edit in edits)
    if touches_frontmatter and _frontmatter_parses(current) and not _frontmatter_parses(updated):
        logger.warning("Skipping '%s': rewritten front-matter would no longer parse as YAML", path)
        return FileOutcome(
            path=path,
            status="failed",
            kind="invalid_frontmatter",
            error="Rewritten front-matter is not valid YAML.",
            replanned=replanned,
        )

    try:
        write_text_atomic(path, updated)
    except OSError as exc:
        logger.warning("Failed to write updated links to '%s': %s", path, exc)
        return FileOutcome(path=path, status="failed", kind="write_failed", error=str(exc), replanned=replanned)

    return FileOutcome(path=path, status="updated", replacements=len(edits), replanned=replanned)


# ==============================================================================
# RENAME OPERATIONS
# ==============================================================================


def plan_rename(
    old_name: str,
    new_name: str,
    vault_index: VaultIndex,
    vault: VaultMetadata,
    options: Optional[ScanOptions] = None,
    also_rename: Optional[Mapping[str, str]] = None,
) -> RenamePlan:
    """Compute the edits that retarget links from ``old_name`` to ``new_name``.

    Every file the index lists for a renamed target is re-read rather than
    reusing earlier scan results, which narrows the window for stale content.
    Only the target portion of each link is replaced; embed markers, anchors,
    aliases, brackets and surrounding YAML quoting are preserved verbatim.

    Args:
        old_name: Current link target name.
        new_name: Replacement link target name.
        vault_index: Reverse index from a fresh vault scan.
        vault: Vault the indexed files belong to.
        options: Scan options used when re-extracting references.
        also_rename: Additional ``{old: new}`` spellings to rewrite in the same
            pass, e.g. the note's full vault-relative path.

    Returns:
        A :class:`RenamePlan`; empty when nothing links to ``old_name``.

    Raises:
        ValueError: If a name is empty, unchanged or contains wikilink syntax.
    """
    options = options or ScanOptions()
    renames = {old_name: new_name, **(also_rename or {})}
    for old, new in renames.items():
        if not old or not old.strip():
            raise ValueError("Link target names cannot be empty.")
        _validate_link_name(new)
        if old == new:
            raise ValueError(f"Old and new link target are both '{old}'.")

    files = sorted({path for target in renames for path in vault_index.files_for(target)})
    vault_root = vault.path.resolve(strict=False)

    edits: list[RenameEdit] = []
    snapshots: dict[Path, FileSnapshot] = {}
    failures: list[ScanFailure] = []
    if files:
        workers = max(1, min(options.max_workers, len(files)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            planned = executor.map(
                lambda path: _plan_file(path, vault_root, renames, options),
                files,
            )
            for path, file_edits, snapshot, failure in planned:
                if failure is not None:
                    failures.append(failure)
                    continue
                edits.extend(file_edits)
                snapshots[path] = snapshot

    logger.info(
        "Planned %d link edit(s) across %d file(s) for '%s' -> '%s'",
        len(edits),
        len(snapshots),
        old_name,
        new_name,
    )
    return RenamePlan(
        old_name=old_name,
        new_name=new_name,
        edits=tuple(edits),
        renames=renames,
        snapshots=snapshots,
        failures=tuple(failures),
        options=options,
    )


def apply_rename(plan: RenamePlan, dry_run: bool) -> RenameOutcome:
    """Apply a :class:`RenamePlan`, or preview it when ``dry_run`` is set.

    Each file is re-read right before writing. If its content changed since
    planning, its edits are recomputed from the fresh text. Edits for one file
    are applied as a single transformation and written atomically.

    Returns:
        A :class:`RenameOutcome`. Planning failures appear as failed files in
        both modes; a real run adds one outcome per planned file.
    """
    planning_failures = [
        FileOutcome(path=failure.path, status="failed", kind=failure.kind, error=failure.error)
        for failure in plan.failures
    ]

    if dry_run:
        return RenameOutcome(
            old_name=plan.old_name,
            new_name=plan.new_name,
            dry_run=True,
            edits=plan.edits,
            files=tuple(planning_failures),
        )

    files = plan.files()
    outcomes = list(planning_failures)
    if files:
        workers = max(1, min(plan.options.max_workers, len(files)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes.extend(executor.map(lambda path: _apply_file(plan, path), files))

    outcome = RenameOutcome(
        old_name=plan.old_name,
        new_name=plan.new_name,
        dry_run=False,
        edits=plan.edits,
        files=tuple(outcomes),
    )
    logger.info(
        "Applied rename '%s' -> '%s': %d file(s) updated, %d failed",
        plan.old_name,
        plan.new_name,
        outcome.updated_count,
        len(outcome.failed),
    )
    return outcome


def rename_note(
    vault: VaultMetadata,
    old_title: str,
    new_title: str,
    dry_run: bool = False,
    update_links: bool = True,
    options: Optional[ScanOptions] = None,
) -> dict[str, Any]:
    """Rename or move a note and retarget the wikilinks that reference it.

    Links written with the note's display name are rewritten to the new display
    name; links written with its full vault-relative path are rewritten to the
    new path. Moving a note between folders without changing its name leaves
    display-name links untouched.

    Args:
        vault: Vault metadata.
        old_title: Current note identifier (without ``.md``).
        new_title: Desired note identifier (without ``.md``).
        dry_run: When ``True`` compute the proposed edits without touching disk.
        update_links: When ``False`` only the note file is moved.
        options: Scan options for the vault scan.

    Returns:
        A dictionary with the old and new note paths, the status (``"preview"`` or
        ``"renamed"``), whether the old name is ambiguous, and the link outcome:
        proposed edits for a dry run, per-file results otherwise.

    Raises:
        FileNotFoundError: If the vault or the original note cannot be located.
        FileExistsError: If a different note already exists at the new location.
        ValueError: If the identifiers are identical or escape the vault.
    """
    options = options or ScanOptions()
    ensure_vault_ready(vault)
    old_path = resolve_note_path(vault, old_title)
    new_path = resolve_note_path(vault, new_title)

    if not old_path.is_file():
        raise FileNotFoundError(f"Note '{old_title}' not found in vault '{vault.name}'.")
    if old_path == new_path:
        raise ValueError("Old and new note paths are identical - no rename needed.")
    if new_path.exists() and not new_path.samefile(old_path):
        raise FileExistsError(f"Note '{new_title}' already exists in vault '{vault.name}'.")

    vault_root = vault.path.resolve(strict=False)
    old_identity = note_identity(vault_root, old_path)
    new_identity = note_identity(vault_root, new_path)
    old_name = note_display_name(old_identity)
    new_name = note_display_name(new_identity)

    note_files = list_note_files(vault)
    ambiguous = len(notes_named(note_files, old_name)) > 1
    if ambiguous:
        logger.warning(
            "Several notes in vault '%s' share the name '%s'; all links to it will be retargeted",
            vault.name,
            old_name,
        )

    renames: dict[str, str] = {}
    if old_name != new_name:
        renames[old_name] = new_name
    if old_identity not in (old_name, new_identity):
        renames.setdefault(old_identity, new_identity)

    plan: Optional[RenamePlan] = None
    if update_links and renames:
        scan = scan_vault_for_links(note_files, vault, options)
        (primary_old, primary_new), *extra = renames.items()
        plan = plan_rename(
            primary_old,
            primary_new,
            build_index(scan.results),
            vault,
            options,
            also_rename=dict(extra),
        )
        if scan.failures:
            plan = replace(plan, failures=tuple(scan.failures) + plan.failures)

    payload: dict[str, Any] = {
        "vault": vault.name,
        "old_path": old_identity,
        "new_path": new_identity,
        "dry_run": dry_run,
        "update_links": update_links,
        "ambiguous_target": ambiguous,
    }

    if dry_run:
        preview = apply_rename(plan, dry_run=True) if plan is not None else None
        payload.update(
            status="preview",
            links_to_update=len(preview.edits) if preview else 0,
            links=preview.as_payload() if preview else None,
        )
        return payload

    move_file(old_path, new_path)
    logger.info("Moved note '%s' to '%s' in vault '%s'", old_identity, new_identity, vault.name)

    outcome = None
    if plan is not None:
        outcome = apply_rename(plan.relocated(old_path, new_path), dry_run=False)

    payload.update(
        status="renamed",
        links_updated=outcome.updated_count if outcome else 0,
        links=outcome.as_payload() if outcome else None,
    )
    return payload
