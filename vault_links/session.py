"""Session state management for active vault selection."""

from typing import Dict, Optional

from mcp.server.fastmcp import Context

from vault_links.config import get_vault_configuration
from vault_links.data_models import ScanOptions, VaultMetadata

# Session state storage
_ACTIVE_VAULTS: Dict[int, str] = {}


def get_session_key(ctx: Context) -> int:
    """Produce a stable per-session key for active vault tracking.

    The key is derived from the identity of the underlying session object and
    stays stable for the lifetime of the MCP session.
    """
    return id(ctx.session)


def set_active_vault(ctx: Context, vault_name: str) -> VaultMetadata:
    """Set the active vault for a client session.

    Raises:
        ValueError: If ``vault_name`` is not present in the configuration.
    """
    metadata = get_vault_configuration().get(vault_name)
    _ACTIVE_VAULTS[get_session_key(ctx)] = metadata.name
    return metadata


def get_active_vault(ctx: Context) -> VaultMetadata:
    """Retrieve the active vault for a session, falling back to the default."""
    configuration = get_vault_configuration()
    vault_name = _ACTIVE_VAULTS.get(get_session_key(ctx), configuration.default_vault)
    return configuration.get(vault_name)


def resolve_vault(vault: Optional[str], ctx: Optional[Context] = None) -> VaultMetadata:
    """Resolve which vault metadata should be used for an operation.

    Args:
        vault: Optional friendly vault name provided directly by the caller.
        ctx: Optional FastMCP context used to infer the active vault when ``vault``
            is not supplied.

    Raises:
        ValueError: If the supplied ``vault`` name is not recognized.
    """
    configuration = get_vault_configuration()
    if vault:
        return configuration.get(vault)

    if ctx is not None:
        return get_active_vault(ctx)

    return configuration.get(configuration.default_vault)


def resolve_scan_options(
    skip_frontmatter: Optional[bool] = None,
    include_embeds: Optional[bool] = None,
) -> ScanOptions:
    """Combine per-call overrides with the configured scan defaults."""
    defaults = get_vault_configuration().scan_defaults
    return ScanOptions(
        skip_frontmatter=defaults.skip_frontmatter if skip_frontmatter is None else skip_frontmatter,
        include_embeds=defaults.include_embeds if include_embeds is None else include_embeds,
        max_workers=defaults.max_workers,
    )
