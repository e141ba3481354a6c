"""
Shared schema bases.

Records coming from spreadsheets carry stray whitespace, so every schema
trims strings on input.
"""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Mutable schema: trims strings, validates on assignment, and accepts
    ORM/row objects (from_attributes).
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class SnapshotSchema(BaseSchema):
    """Immutable schema for rows of an external snapshot (hashable, read-only)."""
    model_config = ConfigDict(frozen=True)
