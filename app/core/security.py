"""Security utilities: password hashing, reset tokens and JWT helpers."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from app.core.config import get_settings

settings = get_settings()

# ── Password hashing (Argon2) ────────────────────────────────

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ── Password-reset tokens (SHA-256, deterministic for lookups) ──

def generate_reset_token() -> str:
    """Generate a URL-safe 256-bit token sent to the user by email."""
    return secrets.token_urlsafe(32)


def hash_token(raw_token: str) -> str:
    """One-way SHA-256 hash for token storage.

    Reset tokens are looked up by hash, so the hash must be deterministic.
    The raw token has 256 bits of entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(raw_token.encode()).hexdigest()


# ── JWT ───────────────────────────────────────────────────────

def create_jwt(
    subject: str,
    company_id: str,
    role: str = "member",
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    payload = {
        "sub": subject,
        "cid": company_id,
        "role": role,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jose.JWTError on failure."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
