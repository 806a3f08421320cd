"""Configuration loading and vault registry."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from vault_links.constants import CONFIG_PATH, DEFAULT_MAX_WORKERS
from vault_links.data_models import ScanOptions, VaultConfiguration, VaultMetadata

logger = logging.getLogger(__name__)


def _load_scan_defaults(section: Any) -> ScanOptions:
    """Build default :class:`ScanOptions` from the optional ``scan`` section."""
    if section is None:
        return ScanOptions()
    if not isinstance(section, dict):
        raise ValueError("Vault configuration 'scan' section must be a mapping")

    skip_frontmatter = section.get("skip_frontmatter", True)
    include_embeds = section.get("include_embeds", True)
    max_workers = section.get("max_workers", DEFAULT_MAX_WORKERS)

    if not isinstance(skip_frontmatter, bool) or not isinstance(include_embeds, bool):
        raise ValueError("'scan.skip_frontmatter' and 'scan.include_embeds' must be booleans")
    if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
        raise ValueError("'scan.max_workers' must be a positive integer")

    return ScanOptions(
        skip_frontmatter=skip_frontmatter,
        include_embeds=include_embeds,
        max_workers=max_workers,
    )


def load_vault_configuration(config_path: Path = CONFIG_PATH) -> VaultConfiguration:
    """Load and validate the vault configuration file.

    Args:
        config_path: Path to the YAML configuration file. Defaults to ``vaults.yaml``
            at the project root.

    Returns:
        A fully populated :class:`VaultConfiguration` containing normalized vault
        metadata, the configured default vault name and the default scan options.

    Raises:
        FileNotFoundError: If the configuration file is missing.
        ValueError: If the file exists but does not provide the expected structure
            (missing default, empty mapping, invalid entries, etc.).
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Vault configuration file not found at {config_path}")

    raw_config = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    vaults_section = raw_config.get("vaults")
    if not isinstance(vaults_section, dict) or not vaults_section:
        raise ValueError("Vault configuration must include a non-empty 'vaults' mapping")

    processed: dict[str, VaultMetadata] = {}
    for name, entry in vaults_section.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Vault '{name}' must map to a dictionary of settings")

        raw_path = entry.get("path")
        if not isinstance(raw_path, str) or not raw_path.strip():
            raise ValueError(f"Vault '{name}' is missing a valid 'path' string")

        resolved_path = Path(raw_path).expanduser()
        try:
            resolved_path = resolved_path.resolve(strict=False)
        except RuntimeError:
            # resolve can raise on symlink loops; fall back to the expanded path
            pass

        description = (entry.get("description") or "").strip()
        exists = resolved_path.is_dir()
        if not exists:
            logger.warning("Vault '%s' path %s is not an accessible directory", name, resolved_path)

        processed[name] = VaultMetadata(
            name=name,
            path=resolved_path,
            description=description,
            exists=exists,
        )

    default_vault = raw_config.get("default")
    if not isinstance(default_vault, str) or default_vault not in processed:
        raise ValueError("Vault configuration must specify a 'default' vault present in the mapping")

    return VaultConfiguration(
        default_vault=default_vault,
        vaults=processed,
        scan_defaults=_load_scan_defaults(raw_config.get("scan")),
    )


@lru_cache(maxsize=1)
def get_vault_configuration() -> VaultConfiguration:
    """Return the process-wide vault registry, loading it on first use.

    Only the MCP tool layer calls this; core operations receive vault metadata
    and scan options as arguments.
    """
    configuration = load_vault_configuration()
    logger.info(
        "Loaded %d vault(s) from %s (default '%s')",
        len(configuration.vaults),
        CONFIG_PATH,
        configuration.default_vault,
    )
    return configuration
