"""Pydantic input models for MCP tool validation.

Each model represents the input schema for one tool, with field-level
validation and descriptive error messages surfaced to MCP clients.

Architecture:
- base: Shared validators and base models (BaseNoteInput, BaseScanInput)
- link_models: Input models for link scanning and rename operations
- vault_models: Input models for vault management operations

Usage:
    from vault_links.models import ScanNoteLinksInput, RenameNoteInput
    from vault_links.models import ListVaultsInput, SetActiveVaultInput
"""

from .base import BaseNoteInput, BaseScanInput
from .link_models import (
    ScanNoteLinksInput,
    FindBacklinksInput,
    RenameNoteInput,
)
from .vault_models import (
    ListVaultsInput,
    SetActiveVaultInput,
)

__all__ = [
    # Base models
    "BaseNoteInput",
    "BaseScanInput",
    # Link models
    "ScanNoteLinksInput",
    "FindBacklinksInput",
    "RenameNoteInput",
    # Vault models
    "ListVaultsInput",
    "SetActiveVaultInput",
]
