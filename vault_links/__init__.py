"""Vault Links MCP Server

Wikilink scanning, backlink lookup and link-safe note renaming for
Obsidian-style markdown vaults via Model Context Protocol.
"""

from vault_links.data_models import VaultMetadata, VaultConfiguration, ScanOptions
from vault_links.session import resolve_vault, set_active_vault, get_active_vault
from vault_links.server import mcp, run_server

# Import tools to register them with the MCP server
from vault_links import tools  # noqa: F401

__version__ = "0.1.0"
__all__ = [
    "VaultMetadata",
    "VaultConfiguration",
    "ScanOptions",
    "resolve_vault",
    "set_active_vault",
    "get_active_vault",
    "mcp",
    "run_server",
]
