"""
Ledger snapshot service.

Downloads the published ledger export and parses it into LedgerRecords.
The snapshot is refreshed wholesale; records are never edited in place.
"""

from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests
import structlog

from config import settings
from exceptions import ExternalServiceError
from parsers.ledger_parser import LedgerParseResult, parse_ledger_bytes

logger = structlog.get_logger(__name__)


class LedgerSnapshotService:
    """Fetches the external ledger export."""

    def __init__(self, sheet_url: Optional[str] = None, timeout: Optional[int] = None):
        self.sheet_url = sheet_url or settings.ledger_sheet_url
        self.timeout = timeout or settings.ledger_fetch_timeout_seconds

    def fetch(self) -> LedgerParseResult:
        """
        Download and parse the ledger export.

        Returns:
            LedgerParseResult

        Raises:
            ExternalServiceError: If no URL is configured or the download fails
            LedgerParseError: If the downloaded file cannot be parsed
        """
        if not self.sheet_url:
            raise ExternalServiceError("ledger", "Ledger sheet URL is not configured")

        logger.info("ledger_fetch_started", url=self.sheet_url[:60])

        try:
            response = requests.get(self.sheet_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error("ledger_fetch_failed", error=str(e))
            raise ExternalServiceError(
                "ledger",
                f"Failed to download ledger export: {e}"
            ) from e

        filename = Path(urlparse(self.sheet_url).path).name or "ledger.csv"
        result = parse_ledger_bytes(response.content, filename=filename)

        logger.info(
            "ledger_fetch_complete",
            records=len(result.records),
            bytes=len(response.content)
        )
        return result


# Singleton instance
_ledger_snapshot_service: Optional[LedgerSnapshotService] = None


def get_ledger_snapshot_service() -> LedgerSnapshotService:
    """Get or create LedgerSnapshotService instance."""
    global _ledger_snapshot_service
    if _ledger_snapshot_service is None:
        _ledger_snapshot_service = LedgerSnapshotService()
    return _ledger_snapshot_service
