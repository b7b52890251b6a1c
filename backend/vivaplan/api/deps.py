from collections.abc import Callable, Generator, Iterable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from vivaplan.core.config import Settings, get_settings
from vivaplan.core.exceptions import AuthenticationError
from vivaplan.core.security import decode_token
from vivaplan.db.session import SessionLocal
from vivaplan.models.user import User, UserRole
from vivaplan.services.identity import GoogleIdentityVerifier

security = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_identity_verifier(settings: Settings = Depends(get_settings)) -> GoogleIdentityVerifier:
    return GoogleIdentityVerifier.from_settings(settings)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    token = credentials.credentials if credentials else request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise AuthenticationError("Unauthorized request: no token provided")
    try:
        payload = decode_token(token)
    except JWTError as exc:
        raise AuthenticationError() from exc

    user_id = payload.get("sub")
    user = db.get(User, user_id) if user_id else None
    if user is None or not user.is_active:
        raise AuthenticationError()
    return user


def require_roles(*roles: UserRole) -> Callable[[User], User]:
    allowed_roles: Iterable[UserRole] = set(roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise AuthenticationError("Insufficient permissions for this action")
        return current_user

    return role_checker
