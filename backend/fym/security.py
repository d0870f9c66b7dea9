# backend/fym/security.py
"""
Password hashing and token primitives shared by the storage engines and the
auth service.
"""
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt
from passlib.context import CryptContext

from fym.config import Settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def configure_password_hashing(rounds: Optional[int]) -> None:
    if rounds:
        pwd_context.update(pbkdf2_sha256__rounds=rounds)


def hash_password(password):
    if not isinstance(password, (str, bytes)):
        raise TypeError("Password must be a string or bytes.")
    return pwd_context.hash(password)


def verify_password(plain_password, password_hash) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)


def dummy_verify() -> None:
    """Burn the same time as a real verification when the account is unknown."""
    pwd_context.dummy_verify()


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({
        "exp": now + expires_delta,
        "iat": int(now.timestamp()),
        "jti": uuid.uuid4().hex,
    })
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    # raises jose.ExpiredSignatureError / jose.JWTError
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.algorithm])


def generate_refresh_token() -> str:
    return secrets.token_urlsafe(48)
