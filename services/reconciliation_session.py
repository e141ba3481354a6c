"""
Reconciliation session - one user's working state over a snapshot.

Wraps the inventory records and the ledger snapshot loaded for a
reconciliation run, the pending links the user has proposed, and the
Pattern Memory used to bias suggestions. All state is explicit on the
session object; nothing is kept at module level.

Flow:
1. untagged_items(unit) / candidate_pool(unit) scope the work
2. suggest(item) ranks ledger candidates
3. add_pending_link() / remove_pending_link() build the proposal
4. plan_commit() → CommitPlan, persisted by the caller, then apply_commit()
"""

import uuid
from datetime import datetime
from typing import Iterable, Optional, Sequence

import structlog

from exceptions import (
    AssetTagInUseError,
    LedgerRecordNotFoundError,
    PendingLinkConflictError,
    PendingLinkNotFoundError,
)
from models.inventory import ConditionState, InventoryRecord, InventoryUpdate
from models.ledger import LedgerRecord
from models.reconciliation import (
    BatchMatchStatus,
    BatchPreviewRow,
    BatchPreviewStatus,
    CommitPlan,
    ConfirmedLink,
    PastedRow,
    PendingLink,
    RankResult,
)
from services.batch_match_service import match_batch
from services.candidate_ranker_service import rank_candidates
from services.pattern_memory import PatternMemory
from services.similarity_service import similarity
from utils.text_utils import (
    is_untagged,
    normalize_asset_tag,
    normalize_text,
    parse_condition_and_origin,
)

logger = structlog.get_logger(__name__)

AVAILABLE_STATUS = "disponivel"
EXCHANGE_TAG_MARKER = "permuta"


def _matches_filter(text_filter: str, *fields: str) -> bool:
    needle = normalize_text(text_filter)
    if not needle:
        return True
    return any(needle in normalize_text(value) for value in fields)


class ReconciliationSession:
    """
    Working state for reconciling one inventory snapshot against the ledger.

    Args:
        inventory: Inventory records (all units)
        ledger: Ledger snapshot records
        memory: Pattern Memory shared across sessions; a fresh one if omitted
        unit_mapping: System unit → ledger unit names. Units without an
            entry map to themselves.
    """

    def __init__(
        self,
        inventory: Iterable[InventoryRecord],
        ledger: Iterable[LedgerRecord],
        memory: Optional[PatternMemory] = None,
        unit_mapping: Optional[dict[str, list[str]]] = None,
    ):
        self.inventory: list[InventoryRecord] = list(inventory)
        self.ledger_by_tag: dict[str, LedgerRecord] = {}
        for record in ledger:
            tag = normalize_asset_tag(record.asset_tag)
            if tag:
                self.ledger_by_tag[tag] = record
        self.memory = memory if memory is not None else PatternMemory()
        self.unit_mapping = unit_mapping or {}
        self.pending: list[PendingLink] = []

    # ===================
    # LOOKUPS
    # ===================

    def used_tags(self) -> set[str]:
        """Canonical tags held by inventory records or pending links."""
        tags = {
            normalize_asset_tag(record.asset_tag)
            for record in self.inventory
            if not is_untagged(record.asset_tag)
        }
        tags.update(
            normalize_asset_tag(link.ledger_record.asset_tag)
            for link in self.pending
        )
        return tags

    def tag_holder(self, tag: str) -> Optional[InventoryRecord]:
        """Inventory record holding a tag, if any."""
        canonical = normalize_asset_tag(tag)
        for record in self.inventory:
            if not is_untagged(record.asset_tag) and normalize_asset_tag(record.asset_tag) == canonical:
                return record
        return None

    def ledger_units(self, unit: str) -> set[str]:
        """Normalized ledger unit names for a system unit."""
        names = self.unit_mapping.get(unit) or [unit]
        return {normalize_text(name) for name in names}

    def lookup_tag(self, tag: str) -> LedgerRecord:
        """
        Ledger record for a tag, whatever its availability.

        Raises:
            LedgerRecordNotFoundError: If the tag is not in the snapshot
        """
        canonical = normalize_asset_tag(tag)
        record = self.ledger_by_tag.get(canonical)
        if record is None:
            raise LedgerRecordNotFoundError(canonical or str(tag))
        return record

    # ===================
    # SCOPING
    # ===================

    def untagged_items(self, unit: str, text_filter: str = "") -> list[InventoryRecord]:
        """Untagged, non-exchange records of a unit that are not pending."""
        pending_ids = {link.record.id for link in self.pending}
        return [
            record for record in self.inventory
            if record.unit == unit
            and is_untagged(record.asset_tag)
            and record.id not in pending_ids
            and not record.is_exchange
            and _matches_filter(text_filter, record.description)
        ]

    def _available(self, record: LedgerRecord, used: set[str]) -> bool:
        return (
            normalize_asset_tag(record.asset_tag) not in used
            and AVAILABLE_STATUS in normalize_text(record.availability_status)
        )

    def candidate_pool(self, unit: str, text_filter: str = "") -> list[LedgerRecord]:
        """Available, unconsumed ledger records belonging to a unit."""
        used = self.used_tags()
        units = self.ledger_units(unit)
        return [
            record for record in self.ledger_by_tag.values()
            if self._available(record, used)
            and normalize_text(record.unit) in units
            and _matches_filter(text_filter, record.description, record.species)
        ]

    def leftovers(self, text_filter: str = "") -> list[LedgerRecord]:
        """Available, unconsumed ledger records in any unit, exchange tags excluded."""
        used = self.used_tags()
        return [
            record for record in self.ledger_by_tag.values()
            if self._available(record, used)
            and EXCHANGE_TAG_MARKER not in normalize_text(record.asset_tag)
            and _matches_filter(text_filter, record.description, record.species)
        ]

    def suggest(
        self,
        item: InventoryRecord,
        pool: Optional[Sequence[LedgerRecord]] = None,
    ) -> RankResult:
        """Rank candidates for an item against a pool (default: its unit pool)."""
        if pool is None:
            pool = self.candidate_pool(item.unit)
        return rank_candidates(
            item,
            pool,
            memory=self.memory,
            excluded_tags=self.used_tags()
        )

    # ===================
    # PENDING LINKS
    # ===================

    def add_pending_link(
        self,
        item: InventoryRecord,
        ledger_record: LedgerRecord,
        use_ledger_description: bool = False,
    ) -> PendingLink:
        """
        Propose linking an item to a ledger record.

        Raises:
            AssetTagInUseError: If the tag is held by a record or another pending link
            PendingLinkConflictError: If the item already has a pending link
        """
        tag = normalize_asset_tag(ledger_record.asset_tag)
        if tag in self.used_tags():
            holder = self.tag_holder(tag)
            raise AssetTagInUseError(tag, holder.id if holder else None)

        if any(link.record.id == item.id for link in self.pending):
            raise PendingLinkConflictError(item.id)

        link = PendingLink(
            record=item,
            ledger_record=ledger_record,
            use_ledger_description=use_ledger_description
        )
        self.pending.append(link)

        logger.info(
            "pending_link_added",
            record_id=item.id,
            asset_tag=tag,
            pending=len(self.pending)
        )
        return link

    def remove_pending_link(self, index: int) -> PendingLink:
        """
        Drop a pending link by position.

        Raises:
            PendingLinkNotFoundError: If index is out of range
        """
        if index < 0 or index >= len(self.pending):
            raise PendingLinkNotFoundError(index)
        return self.pending.pop(index)

    def plan_commit(
        self,
        confirmed_at: datetime,
        confirmed_by: Optional[str] = None,
    ) -> CommitPlan:
        """
        Build record updates and confirmed links for all pending links.

        Nothing is changed until apply_commit() is called.
        """
        plan = CommitPlan()

        for link in self.pending:
            item = link.record
            ledger = link.ledger_record

            changes = {
                "asset_tag": normalize_asset_tag(ledger.asset_tag),
                "supplier": ledger.supplier_name or item.supplier,
                "invoice_number": ledger.invoice_number or item.invoice_number,
                "pending_tag_flag": True,
            }
            if link.use_ledger_description:
                changes["description"] = ledger.display_description or item.description

            plan.updates.append(InventoryUpdate(record_id=item.id, changes=changes))
            plan.links.append(ConfirmedLink(
                system_description=item.description,
                system_supplier=item.supplier,
                ledger_description=" ".join(
                    part for part in (ledger.description, ledger.species) if part
                ),
                ledger_supplier=ledger.supplier_name,
                asset_tag=changes["asset_tag"],
                unit=item.unit,
                item_type=item.item_type,
                score=similarity(item.descriptor, ledger.descriptor),
                confirmed_at=confirmed_at,
                confirmed_by=confirmed_by
            ))

        return plan

    def apply_updates(self, updates: Iterable[InventoryUpdate]) -> int:
        """Apply record updates to the in-memory inventory. Returns how many matched."""
        by_id = {update.record_id: update for update in updates}
        applied = 0
        for position, record in enumerate(self.inventory):
            update = by_id.get(record.id)
            if update is None:
                continue
            self.inventory[position] = InventoryRecord.model_validate(
                {**record.model_dump(), **update.changes}
            )
            applied += 1
        return applied

    def apply_commit(self, plan: CommitPlan) -> None:
        """Apply a persisted plan: update records, learn links, clear pending."""
        applied = self.apply_updates(plan.updates)
        for link in plan.links:
            self.memory.append(link)
        self.pending = []

        logger.info(
            "commit_applied",
            updates=applied,
            links=len(plan.links),
            patterns=len(self.memory)
        )

    # ===================
    # LEDGER IMPORT
    # ===================

    def import_ledger_records(
        self,
        records: Iterable[LedgerRecord],
        unit: str,
        item_type: str = "",
        condition: ConditionState = ConditionState.REGULAR,
    ) -> list[InventoryRecord]:
        """
        Create inventory records for ledger entries nobody holds yet.

        Entries whose tag is already in the inventory are skipped.
        New records are added to the session and returned.
        """
        used = self.used_tags()
        created = []

        for ledger in records:
            tag = normalize_asset_tag(ledger.asset_tag)
            if not tag or tag in used:
                continue
            used.add(tag)

            created.append(InventoryRecord(
                id=str(uuid.uuid4()),
                asset_tag=tag,
                description=ledger.display_description,
                supplier=ledger.supplier_name,
                unit=unit,
                item_type=item_type,
                condition_state=condition,
                invoice_number=ledger.invoice_number,
                notes=f"Imported from ledger. Original unit: {ledger.unit}",
                pending_tag_flag=True
            ))

        self.inventory.extend(created)
        logger.info("ledger_records_imported", unit=unit, created=len(created))
        return created

    # ===================
    # BATCH UPDATE
    # ===================

    def _classify_tag(
        self,
        pasted: PastedRow,
        matched: InventoryRecord,
        unit: str,
    ) -> tuple[BatchPreviewStatus, Optional[LedgerRecord]]:
        if is_untagged(pasted.asset_tag):
            return BatchPreviewStatus.OK, None

        tag = normalize_asset_tag(pasted.asset_tag)
        holder = self.tag_holder(tag)
        if holder is not None and holder.id != matched.id:
            return BatchPreviewStatus.TAG_IN_USE, None

        ledger = self.ledger_by_tag.get(tag)
        if ledger is None:
            return BatchPreviewStatus.TAG_NOT_IN_LEDGER, None
        if normalize_text(ledger.unit) not in self.ledger_units(unit):
            return BatchPreviewStatus.TAG_WRONG_LOCATION, ledger
        return BatchPreviewStatus.OK, ledger

    def preview_batch(self, rows: Sequence[PastedRow], unit: str) -> list[BatchPreviewRow]:
        """
        Match pasted rows against the unit's records and classify each.

        Fully empty rows are dropped; row_index keeps the pasted position.
        """
        indexed = [(index, row) for index, row in enumerate(rows) if not row.is_empty]
        described = [(index, row) for index, row in indexed if row.description.strip()]

        unit_records = [record for record in self.inventory if record.unit == unit]
        results = match_batch([row for _, row in described], unit_records)
        result_by_row = {
            index: result for (index, _), result in zip(described, results)
        }

        preview = []
        for index, row in indexed:
            result = result_by_row.get(index)
            if result is None:
                preview.append(BatchPreviewRow(
                    row_index=index,
                    pasted=row,
                    status=BatchPreviewStatus.MISSING_DESCRIPTION
                ))
                continue

            if result.status == BatchMatchStatus.NOT_FOUND:
                status, ledger = BatchPreviewStatus.NOT_FOUND, None
            elif result.status == BatchMatchStatus.AMBIGUOUS:
                status, ledger = BatchPreviewStatus.AMBIGUOUS, None
            else:
                status, ledger = self._classify_tag(row, result.matched_record, unit)

            preview.append(BatchPreviewRow(
                row_index=index,
                pasted=row,
                status=status,
                match_type=result.match_type,
                matched_record=result.matched_record,
                ledger_record=ledger
            ))

        logger.info(
            "batch_preview_built",
            unit=unit,
            rows=len(preview),
            valid=sum(1 for row in preview if row.is_valid)
        )
        return preview

    def build_batch_updates(
        self,
        preview: Iterable[BatchPreviewRow],
        use_ledger_description_rows: Iterable[int] = (),
    ) -> list[InventoryUpdate]:
        """
        Record updates for valid preview rows.

        Location and condition always come from the pasted row (empty
        location is left untouched). The tag is assigned only when the
        ledger knows it; ledger descriptions are used for the row indexes
        listed in use_ledger_description_rows.
        """
        ledger_description_rows = set(use_ledger_description_rows)
        updates = []

        for row in preview:
            if not row.is_valid or row.matched_record is None:
                continue

            parsed = parse_condition_and_origin(row.pasted.condition_state)
            changes = {"condition_state": parsed.state.value}
            if row.pasted.location:
                changes["location"] = row.pasted.location
            if parsed.origin:
                changes["donation_origin"] = parsed.origin

            ledger = row.ledger_record
            if row.status == BatchPreviewStatus.OK and ledger is not None:
                changes["asset_tag"] = normalize_asset_tag(ledger.asset_tag)
                changes["pending_tag_flag"] = True
                if row.row_index in ledger_description_rows and ledger.display_description:
                    changes["description"] = ledger.display_description

            updates.append(InventoryUpdate(record_id=row.matched_record.id, changes=changes))

        return updates
