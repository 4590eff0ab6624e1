from dataclasses import dataclass
from typing import Optional
from passlib.context import CryptContext
from itsdangerous import URLSafeSerializer, BadSignature
from fastapi import Request, Response, Depends
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .errors import PermissionDenied
from .models import Admin, User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)
serializer = URLSafeSerializer(settings.SECRET_KEY, salt="seru-session")


@dataclass(frozen=True)
class Principal:
    """Identity of the caller, resolved once per request from the session cookie."""

    user_id: Optional[int] = None
    admin_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.admin_id is not None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None or self.admin_id is not None


ANONYMOUS = Principal()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def read_session(request: Request) -> dict:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return {}
    try:
        data = serializer.loads(token)
    except BadSignature:
        return {}
    return data if isinstance(data, dict) else {}


def _write_session(response: Response, data: dict):
    token = serializer.dumps(data)
    is_production = getattr(settings, "ENVIRONMENT", "development") == "production"
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=is_production,
        path="/",
        max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60
    )


def set_user_session(request: Request, response: Response, user_id: int):
    # A browser may hold a user and an admin login at the same time
    data = read_session(request)
    data["uid"] = user_id
    _write_session(response, data)


def set_admin_session(request: Request, response: Response, admin_id: int):
    data = read_session(request)
    data["aid"] = admin_id
    _write_session(response, data)


def clear_session(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")


def _as_id(value) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (ValueError, TypeError):
        return None


def get_principal(request: Request, db: Session = Depends(get_db)) -> Principal:
    """
    Dependency resolving the caller's identity.
    Ids whose account no longer exists are dropped, as if never logged in.
    """
    data = read_session(request)
    user_id = _as_id(data.get("uid"))
    admin_id = _as_id(data.get("aid"))
    if user_id is not None and db.get(User, user_id) is None:
        user_id = None
    if admin_id is not None and db.get(Admin, admin_id) is None:
        admin_id = None
    return Principal(user_id=user_id, admin_id=admin_id)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise PermissionDenied("Admin access required")
    return principal
