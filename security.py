"""
Password hashing, access tokens and password-reset tokens.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from config import settings
from errors import AppError

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.JWT_EXPIRES_IN_DAYS))
    to_encode = {"id": str(user_id), "iat": int(now.timestamp()), "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AppError("Your token has expired! Please log in again.", 401)
    except JWTError:
        raise AppError("Invalid token. Please log in again!", 401)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_password_reset_token() -> Tuple[str, str]:
    """Return ``(token, token_hash)``; only the hash is stored."""
    token = secrets.token_hex(32)
    return token, hash_reset_token(token)


def changed_password_after(user: Dict[str, Any], issued_at: Optional[int]) -> bool:
    """Whether the user's password changed after a token issued at ``issued_at``."""
    changed_at: Optional[datetime] = user.get("password_changed_at")
    if changed_at is None:
        return False
    if changed_at.tzinfo is None:
        changed_at = changed_at.replace(tzinfo=timezone.utc)
    return int(issued_at or 0) < int(changed_at.timestamp())
