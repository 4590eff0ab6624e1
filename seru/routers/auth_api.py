import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db, commit_or_raise
from ..errors import AuthenticationRequired, ConflictError, NotFoundError, ValidationError
from ..limiter import limiter
from ..models import Admin, User
from ..responses import success
from ..security import (
    Principal,
    clear_session,
    get_principal,
    hash_password,
    set_admin_session,
    set_user_session,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# ==== Schemas ====

class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class RegisterIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone_number: Optional[str] = None

class AdminLoginIn(BaseModel):
    admin_name: Optional[str] = None
    password: Optional[str] = None

def _user_out(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email, "phone_number": user.phone_number}

def _require(data: dict, fields: tuple[str, ...]):
    for field in fields:
        value = data.get(field)
        if value is None or not str(value).strip():
            raise ValidationError(f"{field[:1].upper()}{field[1:]} is required")

# ==== Endpoints ====

@router.post("/register")
@limiter.limit(settings.RATE_LIMIT_AUTH)
def register(request: Request, payload: RegisterIn, db: Session = Depends(get_db)):
    data = payload.model_dump()
    _require(data, ("name", "email", "password", "phone_number"))
    email = payload.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("Email already exists")
    user = User(
        name=payload.name.strip(),
        email=email,
        phone_number=payload.phone_number.strip(),
        hashed_password=hash_password(payload.password),
    )
    db.add(user)
    commit_or_raise(db, "Registration")
    logger.info("User %s registered", user.id)
    return success({"message": "User registered successfully", "user_id": user.id})

@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_AUTH)
def login(request: Request, payload: LoginIn, response: Response, db: Session = Depends(get_db)):
    _require(payload.model_dump(), ("email", "password"))
    user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
    if not user:
        raise NotFoundError("User not found")
    if not verify_password(payload.password, user.hashed_password):
        raise AuthenticationRequired("Invalid password")
    set_user_session(request, response, user.id)
    return success({"user": _user_out(user)})

@router.post("/admin_login")
@limiter.limit(settings.RATE_LIMIT_AUTH)
def admin_login(request: Request, payload: AdminLoginIn, response: Response, db: Session = Depends(get_db)):
    _require(payload.model_dump(), ("admin_name", "password"))
    admin = db.query(Admin).filter(Admin.admin_name == payload.admin_name.strip()).first()
    if not admin:
        raise NotFoundError("Admin not found")
    if not verify_password(payload.password, admin.hashed_password):
        raise AuthenticationRequired("Invalid admin credentials")
    set_admin_session(request, response, admin.id)
    return success({"admin": {"id": admin.id, "admin_name": admin.admin_name}})

@router.post("/logout")
def logout(response: Response):
    clear_session(response)
    return success({"message": "Logged out"})

@router.get("/me")
def me(principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    if not principal.is_authenticated:
        raise AuthenticationRequired("Not authenticated")
    user = db.get(User, principal.user_id) if principal.user_id is not None else None
    return success({
        "user": _user_out(user) if user else None,
        "is_admin": principal.is_admin,
    })
