"""User model definitions."""

from sqlalchemy import Column, Integer, String
from educationelly.database import Base


class User(Base):
    """A teacher account that can sign in."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
