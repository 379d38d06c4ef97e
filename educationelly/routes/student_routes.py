import logging
import time
from datetime import date

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from educationelly.auth.dependencies import get_current_user
from educationelly.core.errors import NotFoundError, StoreError, ValidationError
from educationelly.database import get_db
from educationelly.models.student import Student, is_valid_record_id
from educationelly.models.user import User
from educationelly.services.cache_invalidator import CloudflareCacheInvalidator

logger = logging.getLogger(__name__)

router = APIRouter(tags=['students'])

MAX_TEXT_FIELD_LENGTH = 200
LIST_CACHE_HEADERS = {
    'Cache-Control': 'public, s-maxage=60, stale-while-revalidate=300',
    'CDN-Cache-Control': 'max-age=60',
}
STUDENT_NOT_FOUND = 'Student not found'

TEXT_FIELDS = (
    'school',
    'teacher',
    'gender',
    'race',
    'native_language',
    'city_of_birth',
    'country_of_birth',
    'ell_status',
    'composite_level',
    'designation',
)


class StudentFields(BaseModel):
    full_name: str
    student_id: int = Field(ge=1)
    grade_level: int = Field(ge=0, le=12)
    school: str | None = Field(default=None, max_length=MAX_TEXT_FIELD_LENGTH)
    teacher: str | None = Field(default=None, max_length=MAX_TEXT_FIELD_LENGTH)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=MAX_TEXT_FIELD_LENGTH)
    race: str | None = Field(default=None, max_length=MAX_TEXT_FIELD_LENGTH)
    native_language: str | None = Field(default=None, max_length=MAX_TEXT_FIELD_LENGTH)
    city_of_birth: str | None = Field(default=None, max_length=MAX_TEXT_FIELD_LENGTH)
    country_of_birth: str | None = Field(default=None, max_length=MAX_TEXT_FIELD_LENGTH)
    ell_status: str | None = Field(default=None, max_length=MAX_TEXT_FIELD_LENGTH)
    composite_level: str | None = Field(default=None, max_length=MAX_TEXT_FIELD_LENGTH)
    active: bool = True
    designation: str | None = Field(default=None, max_length=MAX_TEXT_FIELD_LENGTH)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Full name is required')
        return normalized

    @field_validator(*TEXT_FIELDS)
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()

    @field_validator('date_of_birth')
    @classmethod
    def validate_date_of_birth(cls, value: date | None) -> date | None:
        if value is not None and value > date.today():
            raise ValueError('Date of birth cannot be in the future')
        return value


class StudentResponse(StudentFields):
    id: str


class UpdateStudentResponse(BaseModel):
    success: bool
    message: str
    result: StudentResponse


def student_to_dict(student: Student) -> dict:
    payload = {'id': student.id}
    for name in StudentFields.model_fields:
        payload[to_camel(name)] = getattr(student, name)
    return payload


def apply_fields(student: Student, data: StudentFields) -> Student:
    for name, value in data.model_dump().items():
        setattr(student, name, value)
    return student


def valid_student_id(student_id: str) -> str:
    if not is_valid_record_id(student_id):
        raise ValidationError.for_field('id', 'Invalid ID format')
    return student_id.lower()


def get_cache_invalidator(request: Request) -> CloudflareCacheInvalidator:
    return request.app.state.cache_invalidator


def purge_students_cache(invalidator: CloudflareCacheInvalidator) -> None:
    result = invalidator.purge_students_cache()
    if not result.success and result.reason != 'not_configured':
        logger.warning('Student cache purge did not succeed: %s', result)


def find_student(db: Session, student_id: str) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise NotFoundError(STUDENT_NOT_FOUND)
    return student


@router.get('/students', response_model=list[StudentResponse])
def list_students(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    request_start = time.perf_counter()
    try:
        db_start = time.perf_counter()
        students = db.query(Student).all()
        db_duration = (time.perf_counter() - db_start) * 1000
    except SQLAlchemyError as exc:
        raise StoreError('Failed to retrieve students', exc) from exc

    total = (time.perf_counter() - request_start) * 1000
    response.headers['Server-Timing'] = f'db;dur={db_duration:.2f};desc="Database query", total;dur={total:.2f}'
    response.headers.update(LIST_CACHE_HEADERS)
    return [student_to_dict(student) for student in students]


@router.get('/students/{student_id}', response_model=StudentResponse)
def get_student(
    current_user: User = Depends(get_current_user),
    student_id: str = Depends(valid_student_id),
    db: Session = Depends(get_db),
):
    try:
        return student_to_dict(find_student(db, student_id))
    except SQLAlchemyError as exc:
        raise StoreError('Failed to retrieve student', exc) from exc


@router.post('/students', response_model=list[StudentResponse])
def create_student(
    data: StudentFields,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    invalidator: CloudflareCacheInvalidator = Depends(get_cache_invalidator),
):
    try:
        db.add(apply_fields(Student(), data))
        db.commit()
        students = db.query(Student).all()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError('Failed to create student', exc) from exc

    purge_students_cache(invalidator)
    return [student_to_dict(student) for student in students]


@router.put('/students/{student_id}', response_model=UpdateStudentResponse)
def update_student(
    data: StudentFields,
    current_user: User = Depends(get_current_user),
    student_id: str = Depends(valid_student_id),
    db: Session = Depends(get_db),
    invalidator: CloudflareCacheInvalidator = Depends(get_cache_invalidator),
):
    try:
        student = apply_fields(find_student(db, student_id), data)
        db.commit()
        db.refresh(student)
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError('Failed to update student', exc) from exc

    purge_students_cache(invalidator)
    return {
        'success': True,
        'message': 'Updated successfully',
        'result': student_to_dict(student),
    }


@router.delete('/students/{student_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_student(
    current_user: User = Depends(get_current_user),
    student_id: str = Depends(valid_student_id),
    db: Session = Depends(get_db),
    invalidator: CloudflareCacheInvalidator = Depends(get_cache_invalidator),
):
    try:
        db.delete(find_student(db, student_id))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError('Failed to delete student', exc) from exc

    purge_students_cache(invalidator)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
