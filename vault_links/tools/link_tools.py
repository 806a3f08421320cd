"""Link management MCP tools.

This module provides MCP tool wrappers for wikilink operations:
- Scan a note for its outgoing links
- Find backlinks to a note across the vault
- Rename a note and retarget the links that reference it

All tools delegate to core operations in vault_links.core.
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import Context

from vault_links.server import mcp
from vault_links.session import resolve_scan_options, resolve_vault
from vault_links.models import (
    ScanNoteLinksInput,
    FindBacklinksInput,
    RenameNoteInput,
)
from vault_links.core.vault_scanner import find_backlinks as find_note_backlinks
from vault_links.core.vault_scanner import scan_note_links as scan_links_in_note
from vault_links.core.rename_operations import rename_note as rename_vault_note


# ==============================================================================
# READ OPERATIONS
# ==============================================================================

@mcp.tool()
async def scan_note_links(
    input: ScanNoteLinksInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """List every wikilink in one note, with the regions excluded from scanning.

    Links inside fenced code blocks, inline code and (by default) YAML
    front-matter are not reported.

    Args:
        input (ScanNoteLinksInput): Validated input containing:
            - title (str): Note identifier (path without .md extension)
            - skip_frontmatter (bool, optional): Override the configured default
            - include_embeds (bool, optional): Override the configured default
            - vault (str, optional): Vault name (omit to use active vault)

    Returns:
        {
            "vault": str,
            "note": str,
            "path": str,
            "options": {...},
            "references": [
                {
                    "source_file": str, "raw_text": str, "target": str,
                    "alias": str | None, "heading": str | None,
                    "block_ref": str | None, "is_embed": bool,
                    "location": {"start": int, "end": int},
                    "line_number": int, "column": int,
                    "in_frontmatter": bool, "form": str
                }
            ],
            "skip_regions": [
                {"kind": str, "range": {"start": int, "end": int},
                 "lines": {"start": int, "end": int}}
            ]
        }

    Error Handling:
        - ValidationError: Invalid title format or path traversal attempt
        - Note not found → FileNotFoundError with title and vault
        - Non UTF-8 note → ValueError
    """
    metadata = resolve_vault(input.vault, ctx)
    options = resolve_scan_options(input.skip_frontmatter, input.include_embeds)
    return scan_links_in_note(metadata, input.title, options)


@mcp.tool()
async def find_backlinks(
    input: FindBacklinksInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Find every note that links to the given note.

    Links match either the note's name ("Ada") or its full vault path
    ("People/Ada"). Matching is exact and case-sensitive.

    Args:
        input (FindBacklinksInput): Validated input containing:
            - title (str): Note identifier; the note does not need to exist
            - skip_frontmatter (bool, optional): Override the configured default
            - include_embeds (bool, optional): Override the configured default
            - vault (str, optional): Vault name (omit to use active vault)

    Returns:
        {
            "vault": str,
            "note": str,
            "targets": [str],
            "total_references": int,
            "files": [{"file": str, "path": str, "references": [...]}],
            "scanned": int,
            "failures": [{"path": str, "kind": str, "error": str}],
            "ambiguous_target": bool   # Several notes share this name
        }

    Examples:
        - Use when: Checking what depends on a note before deleting it
        - Use when: Reviewing the impact of a rename (or use rename_note dry_run)
    """
    metadata = resolve_vault(input.vault, ctx)
    options = resolve_scan_options(input.skip_frontmatter, input.include_embeds)
    return find_note_backlinks(metadata, input.title, options)


# ==============================================================================
# WRITE OPERATIONS
# ==============================================================================

@mcp.tool()
async def rename_note(
    input: RenameNoteInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Rename or move a note and retarget every wikilink that references it.

    Only the target part of each link changes; embeds, headings, block
    references and aliases are kept. Each file is rewritten atomically and
    a file that fails does not stop the others.

    Args:
        input (RenameNoteInput): Validated input containing:
            - old_title (str): Current note path (without .md)
            - new_title (str): New note path (without .md)
            - dry_run (bool): Preview edits without touching disk (default: False)
            - update_links (bool): Retarget links (default: True)
            - skip_frontmatter (bool, optional): Override the configured default
            - vault (str, optional): Vault name (omit to use active vault)

    Returns:
        Dry run:
        {
            "vault": str, "old_path": str, "new_path": str,
            "status": "preview", "links_to_update": int,
            "links": {"edits": [...], "failed": [...]} | None,
            "ambiguous_target": bool
        }
        Otherwise:
        {
            "vault": str, "old_path": str, "new_path": str,
            "status": "renamed", "links_updated": int,
            "links": {"success": bool, "partial_success": bool,
                      "updated_count": int, "files": [...]} | None,
            "ambiguous_target": bool
        }

    Examples:
        - Use dry_run=True: Preview before renaming heavily linked notes
        - Use update_links=False: Only if you manage links manually

    Error Handling:
        - ValidationError: Invalid titles, identical titles, or [ ] | # ^ in new title
        - Old note not found → FileNotFoundError
        - New note already exists → FileExistsError
    """
    metadata = resolve_vault(input.vault, ctx)
    options = resolve_scan_options(skip_frontmatter=input.skip_frontmatter)
    return rename_vault_note(
        metadata,
        input.old_title,
        input.new_title,
        dry_run=input.dry_run,
        update_links=input.update_links,
        options=options,
    )
