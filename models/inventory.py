"""
Inventory record schemas.

An inventory record is one physical asset owned by the system. Records
without an asset tag ("S/T") are the subject of reconciliation.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import Field

from models.base import BaseSchema


# ===================
# ENUMS
# ===================

class ConditionState(str, Enum):
    """Physical condition vocabulary, in matching priority order."""
    NOVO = "Novo"
    BOM = "Bom"
    REGULAR = "Regular"
    AVARIADO = "Avariado"


# ===================
# RECORD SCHEMAS
# ===================

class InventoryRecord(BaseSchema):
    """
    Single asset in the internal inventory.

    asset_tag is None (or "S/T") until the record is reconciled against
    the ledger.
    """

    id: str = Field(..., description="Record ID")
    asset_tag: Optional[str] = Field(None, description="Ledger asset tag, if assigned")
    description: str = Field("", description="Free-text description")
    supplier: str = Field("", description="Supplier name as typed in the system")
    location: str = Field("", description="Room/sector inside the unit")
    unit: str = Field("", description="Owning unit")
    item_type: str = Field("", description="Unit type grouping")
    condition_state: ConditionState = Field(
        ConditionState.REGULAR,
        description="Physical condition"
    )
    donation_origin: str = Field("", description="Donor, when the asset was donated")
    notes: str = Field("", description="Free-text notes")
    invoice_number: str = Field("", description="Purchase invoice (NF) number")
    pending_tag_flag: bool = Field(False, description="Physical tag label still to be applied")
    is_exchange: bool = Field(False, description="Exchange item, never reconciled")

    @property
    def descriptor(self) -> str:
        """Text used when comparing this record against ledger entries."""
        return f"{self.description} {self.supplier}".strip()


class InventoryUpdate(BaseSchema):
    """Changed fields for one record, handed to the persistence layer."""

    record_id: str = Field(..., description="Record ID")
    changes: dict[str, Any] = Field(default_factory=dict, description="Field -> new value")
