# backend/tutorhub/core/enums.py
"""
Core enums for the TutorHub platform.

This module contains enumeration types used throughout the application
for type safety and consistency.
"""

from enum import Enum


class RoleName(str, Enum):
    """
    Roles a user account can hold.

    A user holds exactly one role. Role assignment belongs to the external
    user-management concern; the scheduling core only reads it.
    """

    ADMIN = "admin"
    TUTOR = "tutor"
    STUDENT = "student"


class DayKey(str, Enum):
    """Fixed weekday identifiers used as keys of a tutor's weekly availability."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"
