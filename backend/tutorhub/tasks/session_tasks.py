"""
Celery tasks for session maintenance.
"""

from datetime import datetime
import logging
from typing import Any, Callable, Optional, ParamSpec, Protocol, TypedDict, TypeVar, cast

from celery.result import AsyncResult
from sqlalchemy.orm import Session

from tutorhub.core.time_utils import ensure_aware_utc
from tutorhub.database import SessionLocal, with_db_retry
from tutorhub.services.session_lifecycle_service import SessionLifecycleService
from tutorhub.tasks.celery_app import celery_app

P = ParamSpec("P")
R = TypeVar("R", covariant=True)

logger = logging.getLogger(__name__)


class TaskWrapper(Protocol[P, R]):
    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R:
        ...

    delay: Callable[..., AsyncResult]
    apply_async: Callable[..., AsyncResult]


def typed_task(
    *task_args: Any, **task_kwargs: Any
) -> Callable[[Callable[P, R]], TaskWrapper[P, R]]:
    """Return a typed Celery task decorator for mypy."""

    return cast(
        Callable[[Callable[P, R]], TaskWrapper[P, R]],
        celery_app.task(*task_args, **task_kwargs),
    )


class AutoCompleteJobResults(TypedDict):
    checked: int
    completed: int
    failed_batches: int
    cutoff: str


def run_auto_complete(
    db: Session, cutoff: Optional[datetime] = None, batch_size: Optional[int] = None
) -> AutoCompleteJobResults:
    """Run the sweep on an open session and shape the result for JSON transport."""
    result = SessionLifecycleService(db).auto_complete_sessions(cutoff, batch_size)
    return {
        "checked": result["checked"],
        "completed": result["completed"],
        "failed_batches": result["failed_batches"],
        "cutoff": result["cutoff"].isoformat(),
    }


@typed_task(bind=True, max_retries=3, name="tutorhub.tasks.session_tasks.auto_complete_sessions")
def auto_complete_sessions(
    self: Any, cutoff: Optional[str] = None, batch_size: Optional[int] = None
) -> AutoCompleteJobResults:
    """
    Complete scheduled and in-progress sessions whose end instant has passed.

    Args:
        cutoff: Optional ISO-8601 instant; defaults to now
        batch_size: Optional chunk size; defaults to settings

    Returns:
        Counts of checked and completed sessions and failed chunks
    """
    parsed = ensure_aware_utc(datetime.fromisoformat(cutoff)) if cutoff else None
    db: Session = SessionLocal()
    try:
        results = with_db_retry(
            "auto_complete_sessions", lambda: run_auto_complete(db, parsed, batch_size)
        )
        logger.info(
            f"Auto-complete sweep finished: checked={results['checked']} "
            f"completed={results['completed']} failed_batches={results['failed_batches']}"
        )
        return results
    finally:
        db.close()
