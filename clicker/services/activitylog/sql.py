"""Activity log kept in the relational store."""

from typing import List

from sqlalchemy.exc import SQLAlchemyError

from ... import domain
from ...logging import getLogger
from ..datastore import util
from ..datastore.models import DBActivityLog
from . import MAX_LOG_ID, ActivityLogUnavailable, check_limit

logger = getLogger(__name__)


class SQLActivityStore(object):
    """Reads and appends :class:`domain.ActivityLog` rows with SQLAlchemy."""

    def add_log(self, user_id: int, activity: domain.Activity) -> None:
        """Append an entry to the log of ``user_id``."""
        try:
            with util.transaction() as dbsession:
                dbsession.add(DBActivityLog(user_id=user_id,
                                            name=activity.name,
                                            data=dict(activity.data)))
        except SQLAlchemyError as e:
            raise ActivityLogUnavailable(f'Could not add log: {e}') from e

    def by_user_id(self, user_id: int, before_id: int,
                   limit: int) -> List[domain.ActivityLog]:
        """
        Get a page of the log of ``user_id``, newest first.

        Parameters
        ----------
        user_id : int
        before_id : int
            Only entries with a smaller id are returned. Negative to start
            from the newest entry.
        limit : int
            Non-positive limits yield an empty page.

        Raises
        ------
        :class:`.LimitExceeded`

        """
        check_limit(limit)
        if limit <= 0:
            return []
        query = util.current_session().query(DBActivityLog) \
            .filter(DBActivityLog.user_id == user_id)
        if 0 <= before_id <= MAX_LOG_ID:
            query = query.filter(DBActivityLog.log_id < before_id)
        try:
            rows = query.order_by(DBActivityLog.log_id.desc()) \
                .limit(limit) \
                .all()
        except SQLAlchemyError as e:
            raise ActivityLogUnavailable(f'Could not read log: {e}') from e
        return [domain.ActivityLog(log_id=row.log_id,
                                   created_at=util.utc(row.created_at),
                                   user_id=row.user_id,
                                   name=row.name,
                                   data=dict(row.data or {}))
                for row in rows]
