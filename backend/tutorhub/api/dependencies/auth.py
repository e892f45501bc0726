# backend/tutorhub/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

User lookups run in a worker thread so the sync ORM never blocks the
event loop.
"""

import asyncio
import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ...auth import get_current_user_id
from ...core.config import settings
from ...models.user import User
from ...repositories import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


async def get_current_active_user(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the token subject to an active user.

    Raises:
        HTTPException: 401 if the account is unknown or inactive
    """
    repository = RepositoryFactory.create_user_repository(db)
    user = await asyncio.to_thread(repository.get_active, user_id)
    if user is None:
        logger.warning(f"Token subject {user_id} does not match an active user")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def verify_cron_secret(x_cron_secret: Optional[str] = Header(default=None)) -> None:
    """
    Guard for cron endpoints.

    When no secret is configured the check is skipped (local development).
    """
    configured = settings.cron_secret
    if configured is None:
        return
    expected = configured.get_secret_value()
    if not x_cron_secret or not hmac.compare_digest(x_cron_secret, expected):
        logger.warning("Rejected cron call with missing or invalid X-Cron-Secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid cron secret")
