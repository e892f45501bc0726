# backend/tutorhub/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_resolver import AvailabilityService
from ...services.booking_service import BookingService
from ...services.conflict_checker import ConflictChecker
from ...services.notification_service import NotificationService
from ...services.session_lifecycle_service import SessionLifecycleService
from ...services.tutor_profile_service import TutorProfileService
from .database import get_db


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    return ConflictChecker(db)


def get_availability_service(
    db: Session = Depends(get_db),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> AvailabilityService:
    return AvailabilityService(db, conflict_checker)


def get_booking_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
) -> BookingService:
    """Get booking service instance for dependency injection."""
    return BookingService(db, notification_service, conflict_checker)


def get_session_lifecycle_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> SessionLifecycleService:
    return SessionLifecycleService(db, notification_service)


def get_tutor_profile_service(db: Session = Depends(get_db)) -> TutorProfileService:
    return TutorProfileService(db)
