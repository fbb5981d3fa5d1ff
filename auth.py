import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

import crud
from config import Settings
from database import get_db
from errors import InvalidCredentials, Unauthenticated
from schemas import LoginRequest, SignupRequest, ok, user_json

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(days=7)
TOKEN_COOKIE = "token"

INVALID_CREDENTIALS = "Invalid email or password"

router = APIRouter(prefix="/auth", tags=["auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    user_id: str
    email: str


# Password hashing
def make_password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def get_password_hash(context: CryptContext, password: str) -> str:
    return context.hash(password)


def verify_password(context: CryptContext, plain_password: str, hashed_password: str) -> bool:
    return context.verify(plain_password, hashed_password)


# Token creation
def create_access_token(user_id: str, email: str, secret: str, now: Optional[datetime] = None) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {"sub": user_id, "email": email, "exp": issued + TOKEN_LIFETIME}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str) -> CurrentUser:
    """Verify signature and expiry; every failure collapses into Unauthenticated."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        raise Unauthenticated("Invalid or expired token")

    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        raise Unauthenticated("Invalid or expired token")
    return CurrentUser(user_id=user_id, email=email)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_password_context(request: Request) -> CryptContext:
    return request.app.state.pwd_context


# Get current user
def get_current_user(
    bearer: Optional[str] = Depends(oauth2_scheme),
    cookie_token: Optional[str] = Cookie(None, alias=TOKEN_COOKIE),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    token = bearer or cookie_token
    if not token:
        raise Unauthenticated("Authentication required")
    return decode_access_token(token, settings.jwt_secret)


def _session_payload(message: str, user, settings: Settings) -> dict:
    return ok({
        "message": message,
        "token": create_access_token(user.id, user.email, settings.jwt_secret),
        "user": user_json(user),
    })


# Signup
@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(
    body: SignupRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    pwd_context: CryptContext = Depends(get_password_context),
):
    user = crud.create_user(db, body.email, get_password_hash(pwd_context, body.password))
    logger.info("User %s signed up", user.id)
    return _session_payload("User created successfully", user, settings)


# Login
@router.post("/login")
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    pwd_context: CryptContext = Depends(get_password_context),
):
    user = crud.get_user_by_email(db, body.email)

    if not user or not verify_password(pwd_context, body.password, user.password_hash):
        logger.info("Rejected login attempt")
        raise InvalidCredentials(INVALID_CREDENTIALS)

    logger.info("User %s logged in", user.id)
    return _session_payload("Login successful", user, settings)
