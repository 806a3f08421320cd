"""Pydantic input models for link scanning and rename operations.

This module defines input models for the link tools:
- Scan a single note for wikilinks
- Find backlinks to a note across the vault
- Rename a note and retarget the links that reference it
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from vault_links.constants import FORBIDDEN_LINK_CHARACTERS
from .base import BaseScanInput, validate_note_title, validate_vault_name


class ScanNoteLinksInput(BaseScanInput):
    """Input model for scan_note_links tool.

    Examples:
        >>> ScanNoteLinksInput(title="Projects/Roadmap")
        >>> ScanNoteLinksInput(title="People/Ada", skip_frontmatter=False)
    """

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"title": "Projects/Roadmap"},
                {"title": "People/Ada", "skip_frontmatter": False, "vault": "work"}
            ]
        }


class FindBacklinksInput(BaseScanInput):
    """Input model for find_backlinks tool.

    The note does not need to exist; dangling links can be inspected too.

    Examples:
        >>> FindBacklinksInput(title="Old Note")
        >>> FindBacklinksInput(title="Projects/Old Note", include_embeds=False)
    """

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"title": "Old Note"},
                {"title": "Projects/Old Note", "include_embeds": False}
            ]
        }


class RenameNoteInput(BaseModel):
    """Input model for rename_note tool.

    Renames or moves a note and retargets every wikilink that references it.

    Examples:
        >>> RenameNoteInput(old_title="Old Note", new_title="New Note")
        >>> RenameNoteInput(old_title="Inbox/Idea", new_title="Projects/Idea", dry_run=True)
    """

    old_title: str = Field(
        min_length=1,
        description="Current note identifier (without .md)",
        examples=["Old Note", "Inbox/Idea"]
    )

    new_title: str = Field(
        min_length=1,
        description=(
            "New note identifier (without .md). "
            "Must not contain wikilink syntax characters: [ ] | # ^"
        ),
        examples=["New Note", "Projects/Idea"]
    )

    dry_run: bool = Field(
        False,
        description=(
            "Preview the link edits without touching any file. "
            "Recommended before renaming heavily linked notes."
        )
    )

    update_links: bool = Field(
        True,
        description="Retarget wikilinks that reference the note (default: True)"
    )

    skip_frontmatter: Optional[bool] = Field(
        None,
        description=(
            "Leave links inside YAML front-matter untouched. "
            "Set False to also rewrite front-matter links. Default: True."
        )
    )

    vault: Optional[str] = Field(
        None,
        description="Vault name (omit to use active vault)"
    )

    @field_validator('old_title')
    @classmethod
    def validate_old_title(cls, v: str) -> str:
        return validate_note_title(v)

    @field_validator('new_title')
    @classmethod
    def validate_new_title(cls, v: str) -> str:
        cleaned = validate_note_title(v)
        invalid = sorted(FORBIDDEN_LINK_CHARACTERS.intersection(cleaned))
        if invalid:
            raise ValueError(
                "New note title cannot contain wikilink syntax characters "
                f"({' '.join(invalid)}). Invalid title: '{cleaned}'"
            )
        return cleaned

    @field_validator('vault')
    @classmethod
    def validate_vault(cls, v: Optional[str]) -> Optional[str]:
        return validate_vault_name(v)

    @model_validator(mode='after')
    def validate_titles_different(self) -> RenameNoteInput:
        if self.old_title == self.new_title:
            raise ValueError(
                "Old and new titles are identical - no rename needed. "
                f"Both are: '{self.old_title}'"
            )
        return self

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"old_title": "Old Note", "new_title": "New Note"},
                {"old_title": "Inbox/Idea", "new_title": "Projects/Idea", "dry_run": True},
                {"old_title": "Draft", "new_title": "Final", "skip_frontmatter": False}
            ]
        }
