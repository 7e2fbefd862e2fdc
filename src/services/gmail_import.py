"""
Import events found in Gmail messages into the user's calendar.

Messages are processed one at a time: fetch, extract, duplicate check, then
maybe insert. The duplicate check relies on each insert being visible to
the next lookup, so the steps are never run concurrently within one import.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from core.config import DEFAULT_TIME_ZONE, GMAIL_EVENT_QUERY, GMAIL_IMPORT_LIMIT
from core.google_client import GoogleClient
from core.log_context import log_context
from services.calendar import insert_if_absent
from services.extraction import extract
from services.mail import get_message, search_messages

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Outcome of one Gmail import run."""

    created: list[dict] = field(default_factory=list)
    skipped_duplicates: list[dict] = field(default_factory=list)
    unmatched: list[str] = field(default_factory=list)  # message ids with no event

    @property
    def scanned(self) -> int:
        return len(self.created) + len(self.skipped_duplicates) + len(self.unmatched)


async def import_gmail_events(
    client: GoogleClient,
    query: str = GMAIL_EVENT_QUERY,
    limit: int = GMAIL_IMPORT_LIMIT,
    now: datetime | None = None,
    time_zone: str = DEFAULT_TIME_ZONE,
) -> ImportResult:
    """Search Gmail and add an event for every message that yields one."""
    result = ImportResult()
    summaries = await search_messages(client, query, limit)

    for summary in summaries:
        with log_context(message_id=summary["id"]):
            message = await get_message(client, summary["id"])
            draft = extract(message, now=now, time_zone=time_zone)
            if draft is None:
                result.unmatched.append(summary["id"])
                continue

            event, created = await insert_if_absent(client, draft)
            if created:
                result.created.append(event)
            else:
                result.skipped_duplicates.append(event)

    logger.info(
        "Gmail import finished",
        extra={
            "scanned": result.scanned,
            "created": len(result.created),
            "skipped": len(result.skipped_duplicates),
        },
    )
    return result
