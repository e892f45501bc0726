# backend/tutorhub/services/tutor_profile_service.py
"""
Tutor Profile Service for TutorHub

Write side of tutor availability. Documents are validated strictly before
they are stored so the slot resolver only ever reads well-formed windows.
"""

import logging
from typing import Any, Dict, Mapping, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..models.tutor_profile import TutorProfile
from ..models.user import User
from ..repositories import RepositoryFactory
from ..schemas.availability import WeeklyAvailability
from .availability_resolver import profile_timezone
from .base import BaseService

logger = logging.getLogger(__name__)


class TutorProfileService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_tutor_profile_repository(db)

    def _get_profile(self, tutor_ref: str) -> TutorProfile:
        profile = self.repository.resolve(tutor_ref)
        if profile is None:
            raise NotFoundException("Tutor not found", code="TUTOR_NOT_FOUND")
        return profile

    @BaseService.measure_operation("get_availability")
    def get_availability(self, tutor_ref: str) -> Dict[str, Any]:
        profile = self._get_profile(tutor_ref)
        return {
            "tutor_id": profile.id,
            "timezone": profile_timezone(profile).zone,
            "availability": dict(profile.availability or {}),
        }

    @BaseService.measure_operation("update_availability")
    def update_availability(
        self,
        actor: User,
        profile_id: str,
        weekly: Union[WeeklyAvailability, Mapping[str, Any]],
    ) -> Dict[str, Any]:
        """
        Replace a tutor's weekly availability.

        Existing sessions are untouched; only future slot listings and
        bookings see the new windows.

        Raises:
            NotFoundException: Unknown profile
            ForbiddenException: Actor is neither the owning tutor nor an admin
            ValidationException: Malformed document
        """
        profile = self.repository.get_by_id(profile_id, load_relationships=False)
        if profile is None:
            raise NotFoundException("Tutor not found", code="TUTOR_NOT_FOUND")
        if not actor.is_admin and actor.id != profile.user_id:
            raise ForbiddenException("Only the tutor can change this availability")

        if not isinstance(weekly, WeeklyAvailability):
            try:
                weekly = WeeklyAvailability.model_validate(dict(weekly))
            except ValidationError as exc:
                raise ValidationException(
                    "Invalid availability",
                    code="INVALID_AVAILABILITY",
                    details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
                ) from exc

        with self.transaction():
            self.repository.replace_availability(profile, weekly.to_document())

        self.log_operation("update_availability", tutor_id=profile.id, actor_id=actor.id)
        return self.get_availability(profile.id)
