"""
Confirmed link service - persistence for learned patterns.

The confirmed-link log lives in Supabase. It is read once to hydrate
Pattern Memory and appended to after every confirmation. Storage is
best-effort: failures are logged and the in-memory copy stays
authoritative for the session.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.reconciliation import ConfirmedLink

logger = structlog.get_logger(__name__)


class ConfirmedLinkService:
    """
    Confirmed-link log operations.

    Reads newest-first; writes one row per confirmed link.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = settings.patterns_table

    def load_recent(self, limit: Optional[int] = None) -> list[ConfirmedLink]:
        """
        Load the most recent confirmed links.

        Args:
            limit: Max rows (defaults to Pattern Memory capacity)

        Returns:
            Links newest first, or [] if storage is unavailable
        """
        limit = limit or settings.pattern_memory_capacity

        try:
            response = (
                self.db.table(self.table)
                .select("*")
                .order("confirmed_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.warning("confirmed_links_load_failed", error=str(e))
            return []

        links = []
        for row in response.data or []:
            try:
                links.append(ConfirmedLink.model_validate(row))
            except ValueError as e:
                logger.warning(
                    "confirmed_link_row_invalid",
                    row_id=row.get("id"),
                    error=str(e)
                )

        logger.info("confirmed_links_loaded", count=len(links))
        return links

    def save(self, link: ConfirmedLink) -> bool:
        """
        Persist one confirmed link.

        Returns:
            True if written, False if the write failed (logged)
        """
        try:
            self.db.table(self.table).insert(link.model_dump(mode="json")).execute()
        except Exception as e:
            logger.warning(
                "confirmed_link_persist_failed",
                asset_tag=link.asset_tag,
                error=str(e)
            )
            return False

        logger.debug("confirmed_link_persisted", asset_tag=link.asset_tag)
        return True

    def save_many(self, links: list[ConfirmedLink]) -> int:
        """Persist links one by one. Returns how many were written."""
        return sum(1 for link in links if self.save(link))


# Singleton instance
_confirmed_link_service: Optional[ConfirmedLinkService] = None


def get_confirmed_link_service() -> ConfirmedLinkService:
    """Get or create ConfirmedLinkService instance."""
    global _confirmed_link_service
    if _confirmed_link_service is None:
        _confirmed_link_service = ConfirmedLinkService()
    return _confirmed_link_service
