"""User model definitions."""

import enum
import uuid

from sqlalchemy import Column, String
from coachbook.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


class User(Base):
    """Represents an application user (admin, instructor or student)."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(120))
    email = Column(String(255), unique=True, index=True)
    phone = Column(String(40))
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value)
