"""
UID redirect service.

Every tap or scan of a display lands here. The scan is recorded, then the
shopper is sent to the display's commerce destination, or to the claim page
when the display is not yet claimed (or has no destination). A failure to
record the scan or to read the UID never blocks the redirect.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from domain.display_token import DisplayToken, claim_url
from domain.time import utc_now
from repositories.scan_repository import ScanRepository
from repositories.uid_repository import UidRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScanContext:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    location: Optional[str] = None


class RedirectService:
    def __init__(self, uids: UidRepository, scans: ScanRepository) -> None:
        self._uids = uids
        self._scans = scans

    def _lookup(self, uid: str) -> Optional[DisplayToken]:
        try:
            return self._uids.get_by_uid(uid)
        except Exception:
            logger.warning("UID lookup failed for %s; sending to claim page", uid, exc_info=True)
            return None

    def _record_scan(self, uid: str, token: Optional[DisplayToken], scan: ScanContext) -> None:
        try:
            self._scans.record_scan(
                uid,
                scanned_at=utc_now(),
                ip_address=scan.ip_address,
                user_agent=scan.user_agent,
                location=scan.location,
                retailer_id=token.retailer_id if token else None,
                business_id=token.business_id if token else None,
            )
        except Exception:
            logger.warning("Failed to record scan for UID %s", uid, exc_info=True)

    def resolve(self, uid: str, scan: ScanContext) -> str:
        """
        Record a scan and return the URL the shopper should be sent to.

        Raises:
            ValueError: if uid is empty
        """

        uid = uid.strip()
        if not uid:
            raise ValueError("Missing UID")

        token = self._lookup(uid)
        self._record_scan(uid, token, scan)

        if token is None:
            logger.info("Unknown UID %s scanned", uid)
            return claim_url(uid)
        return token.redirect_target()


__all__ = ["RedirectService", "ScanContext"]
