import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vivaplan.api.deps import get_db, get_identity_verifier
from vivaplan.core.config import Settings, get_settings
from vivaplan.core.security import create_access_token, get_password_hash, verify_password
from vivaplan.models.user import User, UserRole
from vivaplan.schemas.auth import GoogleCredential, Token, UserCreate, UserLogin, UserOut
from vivaplan.schemas.presentation import MessageOut
from vivaplan.services.accounts import get_user_by_email, provision_google_user
from vivaplan.services.identity import GoogleIdentityVerifier
from vivaplan.services.rate_limit import enforce_signin_limit

router = APIRouter()
logger = logging.getLogger(__name__)


def _issue_session(response: Response, user: User, settings: Settings) -> Token:
    token = create_access_token(user.id, extra_claims={"role": user.role.value})
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="strict",
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )
    return Token(access_token=token, user=UserOut.model_validate(user))


@router.post("/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def signup(payload: UserCreate, db: Session = Depends(get_db)) -> UserOut:
    if get_user_by_email(db, payload.email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(
        username=payload.username,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=UserRole.user,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc
    db.refresh(user)
    return UserOut.model_validate(user)


@router.post("/signin", response_model=Token)
def signin(
    payload: UserLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Token:
    enforce_signin_limit(
        request,
        payload.email,
        limit=settings.auth_rate_limit_signin_max_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
    )
    user = get_user_by_email(db, payload.email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Wrong credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User account is inactive")
    return _issue_session(response, user, settings)


def _google_signin(
    id_token: str,
    response: Response,
    db: Session,
    verifier: GoogleIdentityVerifier,
    settings: Settings,
) -> Token:
    identity = verifier.verify(id_token)
    user = provision_google_user(db, identity, settings)
    logger.info("Google sign-in for %s", user.email)
    return _issue_session(response, user, settings)


@router.get("/google/callback", response_model=Token)
def google_callback(
    response: Response,
    token: str = Query(min_length=1, max_length=4096),
    db: Session = Depends(get_db),
    verifier: GoogleIdentityVerifier = Depends(get_identity_verifier),
    settings: Settings = Depends(get_settings),
) -> Token:
    return _google_signin(token, response, db, verifier, settings)


@router.post("/google", response_model=Token)
def google(
    payload: GoogleCredential,
    response: Response,
    db: Session = Depends(get_db),
    verifier: GoogleIdentityVerifier = Depends(get_identity_verifier),
    settings: Settings = Depends(get_settings),
) -> Token:
    return _google_signin(payload.credential, response, db, verifier, settings)


@router.get("/signout", response_model=MessageOut)
def signout(response: Response, settings: Settings = Depends(get_settings)) -> MessageOut:
    response.delete_cookie(settings.auth_cookie_name, path="/")
    return MessageOut(message="Signout success!")
