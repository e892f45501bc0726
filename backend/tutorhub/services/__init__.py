"""Service layer for TutorHub scheduling."""
