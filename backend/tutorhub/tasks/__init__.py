"""Celery tasks for TutorHub."""
