"""Activity log kept in process memory, for development and tests."""

import bisect
import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, List

from pytz import UTC

from ... import domain
from . import check_limit


class MemoryActivityStore(object):
    """
    Thread-safe in-memory activity log.

    Ids are drawn from a single counter shared by all users, so that they
    increase in insertion order as they would in the relational store. Each
    user's entries are kept in ascending id order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_id = 0
        self._logs: Dict[int, List[domain.ActivityLog]] = defaultdict(list)

    def add_log(self, user_id: int, activity: domain.Activity) -> None:
        """Append an entry to the log of ``user_id``."""
        with self._lock:
            self._last_id += 1
            self._logs[user_id].append(domain.ActivityLog(
                log_id=self._last_id,
                created_at=datetime.now(tz=UTC),
                user_id=user_id,
                name=activity.name,
                data=dict(activity.data)
            ))

    def by_user_id(self, user_id: int, before_id: int,
                   limit: int) -> List[domain.ActivityLog]:
        """Get a page of the log of ``user_id``, newest first."""
        check_limit(limit)
        if limit <= 0:
            return []
        with self._lock:
            logs = self._logs.get(user_id, [])
            if before_id < 0:
                end = len(logs)
            else:
                end = bisect.bisect_left([log.log_id for log in logs],
                                         before_id)
            return list(reversed(logs[max(end - limit, 0):end]))
