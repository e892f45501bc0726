# backend/tutorhub/repositories/tutor_profile_repository.py
"""
Tutor Profile Repository for TutorHub

Handles lookups of tutor profiles by either of the two identifiers
clients use for a tutor: the profile id or the owning user id.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.tutor_profile import TutorProfile
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TutorProfileRepository(BaseRepository[TutorProfile]):
    def __init__(self, db: Session):
        super().__init__(db, TutorProfile)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(TutorProfile.user))

    def get_by_user_id(self, user_id: str) -> Optional[TutorProfile]:
        try:
            return self.db.query(TutorProfile).filter(TutorProfile.user_id == user_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting tutor profile for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve tutor profile: {str(e)}")

    def resolve(self, tutor_ref: str) -> Optional[TutorProfile]:
        """
        Resolve a tutor reference.

        Tries the profile id first, then falls back to the owning user's id.
        """
        profile = self.get_by_id(tutor_ref)
        if profile is not None:
            return profile
        return self.get_by_user_id(tutor_ref)

    def replace_availability(
        self, profile: TutorProfile, availability: Dict[str, Any]
    ) -> TutorProfile:
        # JSON columns are not mutation-tracked, so always assign a fresh dict
        profile.availability = dict(availability)
        self.db.flush()
        return profile
