# backend/tutorhub/models/subject.py
"""Subject catalog entries (read-only for scheduling)."""

from sqlalchemy import Column, String

from ..database import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<Subject {self.id}>"
