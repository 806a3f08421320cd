"""Data models for vault metadata, link scanning and rename planning."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, Optional

from vault_links.constants import DEFAULT_MAX_WORKERS

SkipRegionKind = Literal["code-fence", "inline-code", "front-matter"]
LinkForm = Literal["body", "frontmatter-list", "frontmatter-array"]
FailureKind = Literal["unreadable", "write_failed", "invalid_frontmatter"]
FileStatus = Literal["updated", "unchanged", "failed"]


# ==============================================================================
# CONFIGURATION
# ==============================================================================


@dataclass(frozen=True)
class ScanOptions:
    """Options controlling which regions of a note are scanned for links.

    Code blocks are always excluded; ``skip_code_blocks`` exists only so callers
    can read the effective setting.
    """

    skip_frontmatter: bool = True
    include_embeds: bool = True
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1.")

    @property
    def skip_code_blocks(self) -> bool:
        return True

    def as_payload(self) -> dict[str, Any]:
        """Return a serializable payload representation."""
        return {
            "skip_frontmatter": self.skip_frontmatter,
            "skip_code_blocks": self.skip_code_blocks,
            "include_embeds": self.include_embeds,
            "max_workers": self.max_workers,
        }


@dataclass(frozen=True)
class VaultMetadata:
    """Normalized metadata describing a markdown vault."""

    name: str
    path: Path
    description: str
    exists: bool

    def as_payload(self) -> dict[str, Any]:
        """Return a serializable payload representation."""
        return {
            "name": self.name,
            "path": str(self.path),
            "description": self.description,
            "exists": self.path.is_dir(),
        }


class VaultConfiguration:
    """Holds vault metadata, default resolution helpers and scan defaults.

    Loaded lazily from vaults.yaml by :func:`vault_links.config.get_vault_configuration`.
    """

    def __init__(
        self,
        default_vault: str,
        vaults: dict[str, VaultMetadata],
        scan_defaults: Optional[ScanOptions] = None,
    ) -> None:
        self.default_vault = default_vault
        self.vaults = vaults
        self.scan_defaults = scan_defaults or ScanOptions()

    def get(self, name: str) -> VaultMetadata:
        """Get vault metadata by name.

        Raises:
            ValueError: If the vault name is not found in configuration.
        """
        try:
            return self.vaults[name]
        except KeyError as exc:
            raise ValueError(f"Unknown vault '{name}'") from exc

    def as_payload(self) -> dict[str, Any]:
        return {
            "default": self.default_vault,
            "vaults": [vault.as_payload() for vault in self.vaults.values()],
            "scan": self.scan_defaults.as_payload(),
        }


# ==============================================================================
# NOTES AND LINKS
# ==============================================================================


@dataclass(frozen=True)
class Note:
    """Read-only view of a note file, materialized for a single operation.

    Only ``digest`` decides whether a file went stale between planning a rename
    and writing it. ``modified_ns`` and ``read_at`` record when the content was
    read and are never compared.
    """

    path: Path
    identity: str
    name: str
    content: str
    modified_ns: int
    read_at: datetime
    digest: str


@dataclass(frozen=True, order=True)
class SkipRegion:
    """Half-open character range ``[start, end)`` excluded from link extraction."""

    start: int
    end: int
    kind: SkipRegionKind
    start_line: int
    end_line: int

    def as_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "range": {"start": self.start, "end": self.end},
            "lines": {"start": self.start_line, "end": self.end_line},
        }


@dataclass(frozen=True)
class LinkReference:
    """A single wikilink occurrence inside one note."""

    source_file: str
    raw_text: str
    target: str
    location: tuple[int, int]
    target_span: tuple[int, int]
    line_number: int
    column: int
    alias: Optional[str] = None
    heading: Optional[str] = None
    block_ref: Optional[str] = None
    is_embed: bool = False
    in_frontmatter: bool = False
    form: LinkForm = "body"

    @property
    def start(self) -> int:
        return self.location[0]

    @property
    def end(self) -> int:
        return self.location[1]

    def with_target(self, new_target: str) -> str:
        """Return ``raw_text`` with only the target name swapped for ``new_target``.

        Embed marker, anchor, alias, ``.md`` suffix and brackets are kept as written.
        """
        relative_start = self.target_span[0] - self.start
        relative_end = self.target_span[1] - self.start
        return self.raw_text[:relative_start] + new_target + self.raw_text[relative_end:]

    def as_payload(self) -> dict[str, Any]:
        return {
            "source_file": self.source_file,
            "raw_text": self.raw_text,
            "target": self.target,
            "alias": self.alias,
            "heading": self.heading,
            "block_ref": self.block_ref,
            "is_embed": self.is_embed,
            "location": {"start": self.start, "end": self.end},
            "line_number": self.line_number,
            "column": self.column,
            "in_frontmatter": self.in_frontmatter,
            "form": self.form,
        }


@dataclass(frozen=True)
class LinkScanResult:
    """Point-in-time scan of one file: its references and its skip regions."""

    references: tuple[LinkReference, ...] = ()
    skip_regions: frozenset[SkipRegion] = frozenset()

    @property
    def targets(self) -> frozenset[str]:
        return frozenset(reference.target for reference in self.references)

    def references_to(self, target: str) -> tuple[LinkReference, ...]:
        return tuple(ref for ref in self.references if ref.target == target)

    def as_payload(self) -> dict[str, Any]:
        return {
            "references": [reference.as_payload() for reference in self.references],
            "skip_regions": [region.as_payload() for region in sorted(self.skip_regions)],
        }


@dataclass(frozen=True)
class ScanFailure:
    """Per-file failure recorded instead of aborting the surrounding operation."""

    path: Path
    kind: FailureKind
    error: str

    def as_payload(self) -> dict[str, Any]:
        return {"path": str(self.path), "kind": self.kind, "error": self.error}


@dataclass
class VaultScan:
    """Aggregated scan results for a set of note files."""

    results: dict[Path, LinkScanResult] = field(default_factory=dict)
    failures: list[ScanFailure] = field(default_factory=list)
    scanned: int = 0

    @property
    def complete(self) -> bool:
        return not self.failures


class VaultIndex:
    """Reverse index from link target name to the files referencing it.

    Append-only: targets are merged in, never removed. Built fresh per operation.
    """

    def __init__(self) -> None:
        self._files: defaultdict[str, set[Path]] = defaultdict(set)

    def merge(self, partition: Mapping[str, Iterable[Path]]) -> None:
        for target, paths in partition.items():
            self._files[target].update(paths)

    def files_for(self, target: str) -> list[Path]:
        if target not in self._files:
            return []
        return sorted(self._files[target])

    def __contains__(self, target: object) -> bool:
        return target in self._files

    def __len__(self) -> int:
        return len(self._files)


# ==============================================================================
# RENAME PLANNING
# ==============================================================================


@dataclass(frozen=True)
class RenameEdit:
    """One text substitution: replace ``reference.raw_text`` with ``replacement``."""

    path: Path
    reference: LinkReference
    replacement: str

    @property
    def start(self) -> int:
        return self.reference.start

    @property
    def end(self) -> int:
        return self.reference.end

    def as_payload(self) -> dict[str, Any]:
        return {
            "file": self.reference.source_file,
            "path": str(self.path),
            "line_number": self.reference.line_number,
            "column": self.reference.column,
            "original": self.reference.raw_text,
            "replacement": self.replacement,
            "in_frontmatter": self.reference.in_frontmatter,
            "form": self.reference.form,
        }


@dataclass(frozen=True)
class FileSnapshot:
    """Digest of a file as read while planning; ``modified_ns`` is informational."""

    path: Path
    digest: str
    modified_ns: int


@dataclass(frozen=True)
class RenamePlan:
    """Ordered edits needed to rename ``old_name`` to ``new_name`` across a vault.

    ``renames`` maps every spelling being rewritten (at least ``old_name``) to its
    replacement. ``snapshots`` records each file as it was read while planning.
    """

    old_name: str
    new_name: str
    edits: tuple[RenameEdit, ...] = ()
    renames: Mapping[str, str] = field(default_factory=dict)
    snapshots: Mapping[Path, FileSnapshot] = field(default_factory=dict)
    failures: tuple[ScanFailure, ...] = ()
    options: ScanOptions = field(default_factory=ScanOptions)

    @property
    def is_empty(self) -> bool:
        return not self.edits

    def files(self) -> list[Path]:
        seen: dict[Path, None] = {}
        for edit in self.edits:
            seen.setdefault(edit.path, None)
        return list(seen)

    def edits_for(self, path: Path) -> list[RenameEdit]:
        return [edit for edit in self.edits if edit.path == path]

    def relocated(self, old_path: Path, new_path: Path) -> RenamePlan:
        """Return a copy of the plan with edits for ``old_path`` retargeted to ``new_path``."""
        edits = tuple(
            replace(edit, path=new_path) if edit.path == old_path else edit
            for edit in self.edits
        )
        snapshots = {
            (new_path if path == old_path else path): replace(
                snapshot, path=new_path if path == old_path else path
            )
            for path, snapshot in self.snapshots.items()
        }
        return replace(self, edits=edits, snapshots=snapshots)


@dataclass(frozen=True)
class FileOutcome:
    """Result of applying a plan's edits to one file."""

    path: Path
    status: FileStatus
    replacements: int = 0
    kind: Optional[FailureKind] = None
    error: Optional[str] = None
    replanned: bool = False

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "path": str(self.path),
            "status": self.status,
            "replacements": self.replacements,
        }
        if self.replanned:
            payload["replanned"] = True
        if self.status == "failed":
            payload["kind"] = self.kind
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class RenameOutcome:
    """Structured result of :func:`vault_links.core.rename_operations.apply_rename`."""

    old_name: str
    new_name: str
    dry_run: bool
    edits: tuple[RenameEdit, ...] = ()
    files: tuple[FileOutcome, ...] = ()

    @property
    def failed(self) -> list[FileOutcome]:
        return [outcome for outcome in self.files if outcome.status == "failed"]

    @property
    def updated_count(self) -> int:
        return sum(1 for outcome in self.files if outcome.status == "updated")

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def partial_success(self) -> bool:
        return self.updated_count > 0 and bool(self.failed)

    def as_payload(self) -> dict[str, Any]:
        if self.dry_run:
            return {
                "old_name": self.old_name,
                "new_name": self.new_name,
                "dry_run": True,
                "edits": [edit.as_payload() for edit in self.edits],
                "failed": [outcome.as_payload() for outcome in self.failed],
            }
        return {
            "old_name": self.old_name,
            "new_name": self.new_name,
            "dry_run": False,
            "success": self.success,
            "partial_success": self.partial_success,
            "updated_count": self.updated_count,
            "files": [outcome.as_payload() for outcome in self.files],
        }
