"""Core vault operations: readiness checks, note paths and note enumeration."""

from pathlib import Path

from vault_links.constants import NOTE_SUFFIX
from vault_links.data_models import VaultMetadata


def ensure_vault_ready(vault: VaultMetadata) -> None:
    """Ensure the target vault directory is accessible before performing operations.

    Raises:
        FileNotFoundError: If the vault path does not exist or is not a directory.
    """
    if not vault.path.is_dir():
        raise FileNotFoundError(f"Vault '{vault.name}' is not accessible at {vault.path}")


def construct_note_path(identifier: str) -> Path:
    """Construct a relative note path from a pre-validated note identifier.

    Validation (empty, ``.md`` suffix, path traversal, absolute paths) happens at
    the MCP tool boundary in :mod:`vault_links.models`.

    Examples:
        >>> construct_note_path("My Note")
        PosixPath('My Note.md')
        >>> construct_note_path("Folder/My Note")
        PosixPath('Folder/My Note.md')
    """
    parts = identifier.split("/")
    leaf_with_extension = f"{parts[-1]}{NOTE_SUFFIX}"

    if len(parts) == 1:
        return Path(leaf_with_extension)
    return Path(*parts[:-1]) / leaf_with_extension


def resolve_note_path(vault: VaultMetadata, title: str) -> Path:
    """Resolve a pre-validated note title to an absolute path inside ``vault``.

    Raises:
        ValueError: If the resolved path escapes the vault root.
    """
    relative = construct_note_path(title)

    candidate = (vault.path / relative).resolve(strict=False)
    vault_root = vault.path.resolve(strict=False)

    # Filesystem-level sandbox check; symlinks can't be caught by input validation
    if not candidate.is_relative_to(vault_root):
        raise ValueError("Note path escapes the configured vault.")

    return candidate


def note_identity(vault_root: Path, path: Path) -> str:
    """Convert a note path into its vault-relative identity without extension.

    Files outside ``vault_root`` fall back to their bare filename stem.
    """
    try:
        relative = path.relative_to(vault_root)
    except ValueError:
        return path.stem
    return relative.with_suffix("").as_posix()


def note_display_name(identity: str) -> str:
    """Return the display name (last path segment) of a note identity."""
    return identity.rsplit("/", 1)[-1]


def list_note_files(vault: VaultMetadata) -> list[Path]:
    """Return every markdown file in the vault as resolved paths, sorted."""
    ensure_vault_ready(vault)
    root = vault.path.resolve(strict=False)
    return sorted(path for path in root.rglob(f"*{NOTE_SUFFIX}") if path.is_file())


def notes_named(note_files: list[Path], name: str) -> list[Path]:
    """Return the files whose display name equals ``name`` (exact, case-sensitive)."""
    return [path for path in note_files if path.stem == name]
