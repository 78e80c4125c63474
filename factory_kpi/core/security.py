"""
Password hashing and session tokens.

Stored passwords are always bcrypt hashes; a stored value that is not a hash never
verifies (run factory_kpi.db.migrate_passwords to convert old plaintext rows).
The session cookie carries a signed JWT of type "session" naming the user id.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from factory_kpi.core.settings import get_app_settings

SESSION_TOKEN_TYPE = "session"
BCRYPT_PREFIX = "$2"

_pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=get_app_settings().BCRYPT_ROUNDS,
)

# No 0/O or 1/l/I so generated passwords can be read out loud.
_PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz23456789"


# PUBLIC_INTERFACE
def is_password_hash(value: Optional[str]) -> bool:
    """True when the value looks like a bcrypt hash ($2a$/$2b$/$2y$)."""
    return bool(value) and value.startswith(BCRYPT_PREFIX)


# PUBLIC_INTERFACE
def verify_password(plain_password: str, stored_password: str) -> bool:
    """Check a login attempt against the stored hash."""
    return is_password_hash(stored_password) and _pwd_context.verify(plain_password, stored_password)


# PUBLIC_INTERFACE
def get_password_hash(password: str) -> str:
    return _pwd_context.hash(password)


# PUBLIC_INTERFACE
def ensure_password_hash(value: str) -> str:
    """Hash the value unless it is already a bcrypt hash."""
    return value if is_password_hash(value) else get_password_hash(value)


# PUBLIC_INTERFACE
def generate_password(length: int = 8) -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def _create_token(claims: Dict[str, Any], lifetime: timedelta, token_type: str) -> str:
    settings = get_app_settings()
    issued = datetime.now(tz=timezone.utc)
    payload = {**claims, "iat": issued, "exp": issued + lifetime, "type": token_type}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


# PUBLIC_INTERFACE
def create_session_token(
    subject: str,
    role: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Signed token for the session cookie; also accepted as a Bearer token."""
    minutes = expires_minutes or get_app_settings().SESSION_EXPIRE_MINUTES
    return _create_token({"sub": subject, "role": role}, timedelta(minutes=minutes), SESSION_TOKEN_TYPE)


# PUBLIC_INTERFACE
def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT; raises JWTError if invalid/expired."""
    settings = get_app_settings()
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


# PUBLIC_INTERFACE
def get_token_subject(token: str) -> Optional[str]:
    """User id of a valid session token, otherwise None."""
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    if payload.get("type") != SESSION_TOKEN_TYPE:
        return None
    return payload.get("sub")
