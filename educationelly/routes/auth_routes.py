import re
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from educationelly.auth import jwt_handler
from educationelly.auth.dependencies import get_current_user
from educationelly.auth.passwords import hash_password, verify_password
from educationelly.core.errors import AuthError, AuthErrorKind, StoreError, ValidationError
from educationelly.database import get_db
from educationelly.models.user import User

router = APIRouter(tags=['auth'])

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 6


def normalize_email(value: str) -> str:
    return value.strip().lower()


class SignupRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = normalize_email(value)
        if not EMAIL_PATTERN.match(normalized):
            raise ValueError('Must be a valid email address')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        return value


class SigninRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    email: str

    class Config:
        from_attributes = True


class SigninResponse(BaseModel):
    token: str
    user: UserResponse


@router.post('/signup', response_model=UserResponse)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    try:
        if db.query(User).filter(User.email == data.email).first():
            raise ValidationError.for_field('email', 'Email is in use')

        user = User(email=data.email, hashed_password=hash_password(data.password))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError as exc:
        db.rollback()
        raise ValidationError.for_field('email', 'Email is in use') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError('Failed to create account', exc) from exc


@router.post('/signin', response_model=SigninResponse)
def signin(data: SigninRequest, db: Session = Depends(get_db)):
    try:
        user = db.query(User).filter(User.email == normalize_email(data.email)).first()
    except SQLAlchemyError as exc:
        raise StoreError('Failed to sign in', exc) from exc

    if user is None or not verify_password(data.password, user.hashed_password):
        raise AuthError(AuthErrorKind.INVALID_CREDENTIALS)

    token = jwt_handler.create_access_token(subject=str(user.id))
    return {'token': token, 'user': {'id': user.id, 'email': user.email}}


@router.get('/whoami', response_model=UserResponse)
def whoami(current_user: User = Depends(get_current_user)):
    return current_user


@router.get('/test-auth')
def auth_check(current_user: User = Depends(get_current_user)):
    return {
        'message': 'Authentication working',
        'user': current_user.email,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }
