from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from educationelly.auth import jwt_handler
from educationelly.core.errors import AuthError, AuthErrorKind, StoreError
from educationelly.database import get_db
from educationelly.models.user import User

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthError(AuthErrorKind.MISSING)

    payload = jwt_handler.decode_access_token(credentials.credentials)

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise AuthError(AuthErrorKind.INVALID, "Invalid token subject") from exc

    try:
        user = db.get(User, user_id)
    except SQLAlchemyError as exc:
        raise StoreError("Failed to verify session", exc) from exc
    if user is None:
        raise AuthError(AuthErrorKind.INVALID, "User not found")
    return user
