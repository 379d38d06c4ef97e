"""Student model definitions."""

import re
import secrets

from sqlalchemy import Boolean, Column, Date, Integer, String
from educationelly.database import Base

STUDENT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


def generate_record_id() -> str:
    return secrets.token_hex(12)


def is_valid_record_id(value: str) -> bool:
    return bool(STUDENT_ID_PATTERN.fullmatch(value or ""))


class Student(Base):
    """An English Language Learner tracked by a teacher."""
    __tablename__ = "students"

    id = Column(String(24), primary_key=True, default=generate_record_id)
    full_name = Column(String, nullable=False)
    school = Column(String)
    student_id = Column(Integer, nullable=False, index=True)
    teacher = Column(String)
    date_of_birth = Column(Date)
    gender = Column(String)
    race = Column(String)
    grade_level = Column(Integer, nullable=False)
    native_language = Column(String)
    city_of_birth = Column(String)
    country_of_birth = Column(String)
    ell_status = Column(String)
    composite_level = Column(String)
    active = Column(Boolean, default=True, nullable=False)
    designation = Column(String)
