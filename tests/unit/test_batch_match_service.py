"""
Unit tests for the batch matcher.

Run: pytest tests/unit/test_batch_match_service.py -v
"""

from unittest.mock import patch

from config import settings
from models.reconciliation import BatchMatchStatus, MatchTier, PastedRow
from services.batch_match_service import match_batch, similarity_label
from tests.factories import InventoryRecordFactory


def row(description, location="", condition=""):
    return PastedRow(description=description, location=location, condition_state=condition)


class TestMatchBatchTiers:
    """Deterministic tiers."""

    def test_perfect_match(self):
        pool = [InventoryRecordFactory.build(
            description="Cadeira de escritório", location="Sala 1", condition_state="Bom"
        )]

        results = match_batch([row("cadeira de escritorio", "SALA 1", "bom")], pool)

        assert results[0].tier == MatchTier.PERFECT
        assert results[0].match_type == "Perfect"
        assert results[0].pool_index == 0
        assert results[0].matched_record.id == pool[0].id
        assert results[0].status == BatchMatchStatus.MATCHED

    def test_high_match_when_condition_differs(self):
        pool = [InventoryRecordFactory.build(
            description="Mesa", location="Sala 2", condition_state="Regular"
        )]

        results = match_batch([row("Mesa", "Sala 2", "Novo")], pool)

        assert results[0].tier == MatchTier.HIGH

    def test_exact_match_on_description_only(self):
        pool = [InventoryRecordFactory.build(description="Mesa", location="Sala 2")]

        results = match_batch([row("Mesa", "Pátio")], pool)

        assert results[0].tier == MatchTier.EXACT

    def test_higher_tier_wins_over_pool_order(self):
        pool = [
            InventoryRecordFactory.build(description="Mesa", location="Sala 2"),
            InventoryRecordFactory.build(description="Mesa", location="Sala 1"),
        ]

        results = match_batch([row("Mesa", "Sala 1")], pool)

        assert results[0].tier == MatchTier.HIGH
        assert results[0].pool_index == 1


class TestMatchBatchSimilarity:
    """Similarity fallback and ambiguity."""

    def test_similarity_match_label(self):
        pool = [InventoryRecordFactory.build(description="Cadeira de escritório giratória")]

        results = match_batch([row("Cadeira de escritorio")], pool)

        assert results[0].tier == MatchTier.SIMILARITY
        assert results[0].match_type == "By similarity (92%)"
        assert results[0].score == 0.92

    def test_identical_rows_with_close_candidates_are_ambiguous(self):
        pool = [
            InventoryRecordFactory.build(description="Cadeira de escritório azul"),
            InventoryRecordFactory.build(description="Cadeira de escritório preta"),
        ]
        rows = [row("Cadeira de escritório"), row("Cadeira de escritório")]

        results = match_batch(rows, pool)

        assert [r.status for r in results] == [BatchMatchStatus.AMBIGUOUS] * 2
        assert all(r.matched_record is None for r in results)
        assert all(r.tier == MatchTier.AMBIGUOUS for r in results)

    def test_zero_gap_takes_the_first_best(self):
        pool = [
            InventoryRecordFactory.build(description="Cadeira de escritório azul"),
            InventoryRecordFactory.build(description="Cadeira de escritório preta"),
        ]

        with patch.object(settings, "batch_ambiguity_gap", 0.0):
            results = match_batch([row("Cadeira de escritório")], pool)

        assert results[0].status == BatchMatchStatus.MATCHED
        assert results[0].pool_index == 0

    def test_empty_pool_description_matches_by_containment(self):
        pool = [InventoryRecordFactory.build(description="")]

        results = match_batch([row("Cadeira")], pool)

        assert results[0].status == BatchMatchStatus.MATCHED
        assert results[0].tier == MatchTier.SIMILARITY
        assert results[0].match_type == "By similarity (92%)"

    def test_not_found(self):
        pool = [InventoryRecordFactory.build(description="Mesa escolar")]

        results = match_batch([row("Ventilador")], pool)

        assert results[0].status == BatchMatchStatus.NOT_FOUND
        assert results[0].match_type == "Not found"
        assert results[0].pool_index is None


class TestMatchBatchConsumption:
    """Pool entries are used at most once."""

    def test_second_identical_row_does_not_reuse_record(self):
        pool = [InventoryRecordFactory.build(description="Mesa")]

        results = match_batch([row("Mesa"), row("Mesa")], pool)

        assert results[0].tier == MatchTier.EXACT
        assert results[1].status == BatchMatchStatus.NOT_FOUND

    def test_no_pool_index_assigned_twice(self):
        pool = [
            InventoryRecordFactory.build(description=desc)
            for desc in ["Mesa", "Mesa escolar", "Cadeira", "Cadeira azul"]
        ]
        rows = [row(desc) for desc in ["Mesa", "Mesa", "Mesa", "Cadeira", "Cadeira", "Cadeira"]]

        results = match_batch(rows, pool)

        used = [r.pool_index for r in results if r.pool_index is not None]
        assert len(used) == len(set(used))

    def test_pool_is_not_mutated(self):
        pool = [InventoryRecordFactory.build(description="Mesa")]
        before = [record.model_dump() for record in pool]

        match_batch([row("Mesa")], pool)

        assert [record.model_dump() for record in pool] == before

    def test_empty_inputs(self):
        assert match_batch([], []) == []
        assert match_batch([row("Mesa")], [])[0].status == BatchMatchStatus.NOT_FOUND


def test_similarity_label_rounds_to_percent():
    assert similarity_label(0.874) == "By similarity (87%)"


def test_similarity_label_rounds_halves_up():
    assert similarity_label(0.125) == "By similarity (13%)"
    assert similarity_label(0.005) == "By similarity (1%)"
    assert similarity_label(1.0) == "By similarity (100%)"
