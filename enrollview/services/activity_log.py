"""Audit trail of enrollment actions, stored in the `activity_logs` collection.

Written in the same request (and, on Postgres, the same transaction) as
the action it records; a failed write fails the request.
"""

from __future__ import annotations

import logging

from enrollview.models.activity_log import ActivityLog
from enrollview.repos.document_store import DocumentStore

logger = logging.getLogger(__name__)

ACTIVITY_LOGS = "activity_logs"


async def record_activity(
    store: DocumentStore,
    *,
    title: str,
    user_id: str,
    ip: str | None,
    desc: str | None = None,
) -> ActivityLog:
    entry = ActivityLog.new(title=title, user_id=user_id, ip=ip, desc=desc)
    await store.save(ACTIVITY_LOGS, entry.to_doc())
    logger.debug("Activity %r by user=%s", title, user_id, extra={"user_id": user_id})
    return entry
