"""
Ledger record schemas.

The ledger is the external spreadsheet that owns asset tags. Records are
read-only within a session and replaced wholesale when the snapshot is
refreshed.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import Field

from models.base import BaseSchema, SnapshotSchema


class LedgerRecord(SnapshotSchema):
    """Single entry of the ledger snapshot, keyed by asset tag."""

    asset_tag: str = Field(..., description="Canonical asset tag")
    description: str = Field("", description="Ledger description")
    species: str = Field("", description="Asset species/class")
    supplier_name: str = Field("", description="Supplier on the purchase invoice")
    unit: str = Field("", description="Ledger unit")
    availability_status: str = Field("", description="Ledger status, e.g. Disponível")
    invoice_number: str = Field("", description="Purchase invoice (NF) number")
    registration_date: Optional[date] = Field(None, description="Date the tag was registered")
    invoice_value: Optional[Decimal] = Field(None, description="Invoice value")

    @property
    def descriptor(self) -> str:
        """Description, species and supplier joined for comparison."""
        parts = (self.description, self.species, self.supplier_name)
        return " ".join(part for part in parts if part)

    @property
    def display_description(self) -> str:
        """Description, falling back to species."""
        return self.description or self.species


class LedgerListResponse(BaseSchema):
    """List of ledger records."""

    data: list[LedgerRecord]
    total: int
