"""Base Pydantic models for MCP tool input validation.

Base Models:
- BaseNoteInput: Common validation for note-related operations
- BaseScanInput: Adds per-call scan option overrides for link scanning tools
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator


def validate_note_title(value: str) -> str:
    """Validate and normalize a note identifier.

    Enforces:
    - Non-empty title
    - No path traversal attempts (``..``, ``.``)
    - Relative path only (no leading ``/``)
    - Strips a trailing ``.md`` extension

    Raises:
        ValueError: If the title is empty, absolute or contains traversal segments.
    """
    cleaned = value.strip()

    if not cleaned:
        raise ValueError(
            "Note title cannot be empty. "
            "Provide a valid note identifier like 'Projects/Old Note'."
        )

    parts = cleaned.split("/")
    if any(part in {".", ".."} for part in parts):
        raise ValueError(
            "Note title cannot contain '.' or '..' path segments. "
            f"Invalid title: '{cleaned}'"
        )

    if cleaned.startswith("/"):
        raise ValueError(
            "Note title must be a relative path within the vault. "
            "Do not start with '/'. "
            f"Invalid title: '{cleaned}'"
        )

    if cleaned.endswith(".md"):
        cleaned = cleaned[:-3]

    if not cleaned or cleaned.endswith("/"):
        raise ValueError("Note title must name a note, not just '.md' or a folder.")

    return cleaned


def validate_vault_name(value: Optional[str]) -> Optional[str]:
    """Validate an optional vault name, returning ``None`` when omitted."""
    if value is not None and not value.strip():
        raise ValueError(
            "Vault name cannot be empty. "
            "Either omit the vault parameter to use the active vault, "
            "or provide a valid vault name from list_vaults()."
        )
    return value.strip() if value else None


class BaseNoteInput(BaseModel):
    """Base model for note operations with common validation.

    All note-related input models should inherit from this class.
    """

    title: str = Field(
        min_length=1,
        description=(
            "Note identifier (path without .md extension). "
            "Examples: 'Projects/Old Note', 'People/Ada Lovelace'. "
            "Forward slashes for folders, case-sensitive."
        ),
        examples=["Projects/Old Note", "People/Ada Lovelace", "README"]
    )

    vault: Optional[str] = Field(
        None,
        description=(
            "Vault name (omit to use active vault). "
            "Use list_vaults() to discover available vaults."
        )
    )

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        return validate_note_title(v)

    @field_validator('vault')
    @classmethod
    def validate_vault(cls, v: Optional[str]) -> Optional[str]:
        return validate_vault_name(v)


class BaseScanInput(BaseNoteInput):
    """Note input with optional per-call scan option overrides.

    Omitted options fall back to the ``scan`` section of vaults.yaml.
    """

    skip_frontmatter: Optional[bool] = Field(
        None,
        description=(
            "Exclude YAML front-matter from link scanning. "
            "Set False to include links in front-matter lists such as "
            "'people: [\"[[Ada]]\"]'. Default: True."
        )
    )

    include_embeds: Optional[bool] = Field(
        None,
        description="Include embed links (![[Note]]). Default: True."
    )
