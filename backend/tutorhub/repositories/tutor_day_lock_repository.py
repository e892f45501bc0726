"""
Tutor-day lock rows.

Booking and confirmation writes for one tutor on one local day are
serialized by updating a single lock row at the start of the transaction.
The UPDATE takes a row lock on PostgreSQL and the database write lock on
SQLite; either way a second writer waits until the first commits.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.tutor_day_lock import TutorDayLock
from ..monitoring.prometheus_metrics import prometheus_metrics
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 3


def is_lock_contention_error(exc: OperationalError) -> bool:
    """True for deadlocks and SQLite busy timeouts."""
    message = str(getattr(exc, "orig", exc)).lower()
    return "deadlock" in message or "database is locked" in message


class TutorDayLockRepository(BaseRepository[TutorDayLock]):
    def __init__(self, db: Session):
        super().__init__(db, TutorDayLock)

    def _touch(self, tutor_id: str, day: date) -> bool:
        result = self.db.execute(
            update(TutorDayLock)
            .where(TutorDayLock.tutor_id == tutor_id, TutorDayLock.day == day)
            .values(version=TutorDayLock.version + 1, touched_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    def acquire(self, tutor_id: str, day: date) -> None:
        """
        Take the lock for (tutor_id, day) within the current transaction.

        The row is created on first use. When two transactions race to create
        it, the loser's insert fails inside a savepoint and it falls back to
        the UPDATE, which then waits on the winner.
        """
        try:
            for attempt in range(1, _MAX_ATTEMPTS + 1):
                if self._touch(tutor_id, day):
                    prometheus_metrics.record_booking_lock("acquire", "success")
                    return
                try:
                    with self.db.begin_nested():
                        self.db.add(
                            TutorDayLock(
                                tutor_id=tutor_id,
                                day=day,
                                version=1,
                                touched_at=datetime.now(timezone.utc),
                            )
                        )
                    prometheus_metrics.record_booking_lock("acquire", "created")
                    return
                except IntegrityError:
                    logger.info(
                        "tutor_day_lock_insert_race",
                        extra={"tutor_id": tutor_id, "day": day.isoformat(), "attempt": attempt},
                    )
        except OperationalError as e:
            # Contention propagates unwrapped; callers report it as a booking conflict
            if is_lock_contention_error(e):
                prometheus_metrics.record_booking_lock("acquire", "contention")
                raise
            prometheus_metrics.record_booking_lock("acquire", "error")
            self.logger.error(f"Error acquiring tutor-day lock: {str(e)}")
            raise RepositoryException(f"Failed to acquire tutor-day lock: {str(e)}")
        except SQLAlchemyError as e:
            prometheus_metrics.record_booking_lock("acquire", "error")
            self.logger.error(f"Error acquiring tutor-day lock: {str(e)}")
            raise RepositoryException(f"Failed to acquire tutor-day lock: {str(e)}")

        prometheus_metrics.record_booking_lock("acquire", "error")
        raise RepositoryException(f"Could not acquire tutor-day lock for {tutor_id} on {day}")
