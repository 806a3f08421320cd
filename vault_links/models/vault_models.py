"""Pydantic input models for vault management operations.

This module defines input models for vault management tools:
- List configured vaults
- Set active vault for session
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ListVaultsInput(BaseModel):
    """Input model for list_vaults tool.

    Takes no parameters; the model keeps every tool on a Pydantic input.
    """

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [{}]
        }


class SetActiveVaultInput(BaseModel):
    """Input model for set_active_vault tool.

    Examples:
        >>> SetActiveVaultInput(vault="personal")
    """

    vault: str = Field(
        min_length=1,
        description=(
            "Friendly vault name from vaults.yaml configuration. "
            "Use list_vaults() to discover valid names."
        ),
        examples=["personal", "work"]
    )

    @field_validator('vault')
    @classmethod
    def validate_vault(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError(
                "Vault name cannot be empty. "
                "Use list_vaults() to see available vaults."
            )
        return cleaned

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "examples": [
                {"vault": "personal"},
                {"vault": "work"}
            ]
        }
