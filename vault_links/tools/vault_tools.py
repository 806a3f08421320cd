"""MCP tools for vault management."""

import logging
from typing import Any

from mcp.server.fastmcp import Context

from vault_links.server import mcp
from vault_links.models import ListVaultsInput, SetActiveVaultInput
from vault_links.config import get_vault_configuration
from vault_links.session import (
    set_active_vault as set_active_vault_session,
    get_active_vault,
    get_session_key,
)

logger = logging.getLogger(__name__)


@mcp.tool()
async def list_vaults(
    input: ListVaultsInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """List configured vaults, default scan options and current session state.

    Args:
        input (ListVaultsInput): Validated input (no fields required)
        ctx (Context, optional): FastMCP context for session state

    Returns:
        {
            "default": str,    # Configured default vault name
            "active": str,     # Currently active vault (or None)
            "scan": {          # Default scan options from vaults.yaml
                "skip_frontmatter": bool,
                "include_embeds": bool,
                "skip_code_blocks": bool,
                "max_workers": int
            },
            "vaults": [
                {"name": str, "path": str, "description": str, "exists": bool}
            ]
        }

    Examples:
        - Use when: Starting conversation, need to see available vaults
        - Don't use: Already know vault name and just need to switch

    Error Handling:
        - Config file missing → Error with expected config path
        - Invalid config format → Error describing expected YAML structure
    """
    configuration = get_vault_configuration()
    active = None
    if ctx is not None:
        try:
            active = get_active_vault(ctx).name
        except ValueError:
            active = None

    payload = configuration.as_payload()
    payload["active"] = active
    return payload


@mcp.tool()
async def set_active_vault(
    input: SetActiveVaultInput,
    ctx: Context,
) -> dict[str, Any]:
    """Set the active vault for this conversation session.

    All subsequent tool calls that omit the vault parameter will use the
    active vault.

    Args:
        input (SetActiveVaultInput): Validated input containing:
            - vault (str): Friendly vault name from vaults.yaml
        ctx (Context): FastMCP context for session state

    Returns:
        {"vault": str, "path": str, "status": "active"}

    Error Handling:
        - ValidationError: Empty vault name or only whitespace
        - Unknown vault → Error listing available vaults
    """
    metadata = set_active_vault_session(ctx, input.vault)
    logger.info("Active vault for session %s set to '%s'", get_session_key(ctx), metadata.name)
    return {
        "vault": metadata.name,
        "path": str(metadata.path),
        "status": "active",
    }
