from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.orm import Session
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import InvalidCredentialsError, UnauthorizedError
from app.core.passwords import verify_password
from app.crm.models import CRMUser


@dataclass
class SessionUser:
    id: int
    email: str
    name: str


def issue_session_token(user_id: int) -> str:
    settings = get_settings()
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=settings.session_max_age_seconds)
    payload = {"sub": str(user_id), "exp": expires_at}
    return jwt.encode(payload, settings.session_secret, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> int | None:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.session_secret, algorithms=[settings.session_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        return None
    return int(subject)


def set_session_cookie(response: Response, user_id: int) -> None:
    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        issue_session_token(user_id),
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(get_settings().session_cookie_name)


def authenticate(session: Session, email: str, password: str) -> SessionUser:
    user = session.scalar(select(CRMUser).where(CRMUser.email == email))
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    return SessionUser(id=user.id, email=user.email, name=user.name)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> SessionUser:
    token = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        raise UnauthorizedError()

    user_id = decode_session_token(token)
    if user_id is None:
        raise UnauthorizedError()

    user = db.scalar(select(CRMUser).where(CRMUser.id == user_id))
    if user is None:
        raise UnauthorizedError()
    return SessionUser(id=user.id, email=user.email, name=user.name)
