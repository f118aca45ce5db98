"""
Authentication utilities: Password hashing and session token management
"""

import logging
import secrets
import jwt
from datetime import datetime, timedelta
from pathlib import Path
from passlib.context import CryptContext
from typing import Optional

from backend.errors import ConfigurationError
from config.settings import settings, IS_PRODUCTION

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)

# JWT configuration
ALGORITHM = "HS256"
SESSION_TTL_DAYS = 30

# Development signing secret, kept under STATE_DIR
DEV_SECRET_FILENAME = ".session_secret"

_fallback_secret: Optional[str] = None


def hash_password(password: str) -> str:
    """Hash a password using argon2"""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(password, password_hash)


def load_dev_secret(state_dir: Path) -> str:
    """
    Signing secret kept in STATE_DIR so session cookies (and the client state
    behind them) survive restarts when JWT_SECRET_KEY is not set.
    """
    secret_path = Path(state_dir) / DEV_SECRET_FILENAME
    if secret_path.exists():
        secret = secret_path.read_text(encoding="utf-8").strip()
        if secret:
            return secret
    secret_path.parent.mkdir(parents=True, exist_ok=True)
    secret = secrets.token_urlsafe(32)
    secret_path.write_text(secret, encoding="utf-8")
    secret_path.chmod(0o600)
    return secret


def _signing_secret() -> str:
    """
    JWT_SECRET_KEY, or a development secret stored under STATE_DIR.
    Falls back to a per-process secret if STATE_DIR is not writable; session
    cookies then stop verifying after a restart.
    """
    global _fallback_secret
    if settings.jwt_secret_key:
        return settings.jwt_secret_key
    if IS_PRODUCTION:
        raise ConfigurationError("JWT_SECRET_KEY is not set. Cannot sign session tokens.")
    if _fallback_secret is None:
        try:
            _fallback_secret = load_dev_secret(settings.state_dir)
            logger.warning(f"JWT_SECRET_KEY is not set. Using the development secret in {settings.state_dir}.")
        except OSError as e:
            logger.warning(f"JWT_SECRET_KEY is not set and {settings.state_dir} is not writable ({e}). "
                           "Using an ephemeral signing secret; sessions will not survive a restart.")
            _fallback_secret = secrets.token_urlsafe(32)
    return _fallback_secret


def new_client_id() -> str:
    return secrets.token_urlsafe(24)


def create_session_token(client_id: str, ttl_days: int = SESSION_TTL_DAYS) -> str:
    """Create a signed session token carrying the client id"""
    payload = {
        "sub": client_id,
        "exp": datetime.utcnow() + timedelta(days=ttl_days)
    }
    return jwt.encode(payload, _signing_secret(), algorithm=ALGORITHM)


def create_expired_session_token(client_id: str, expired_seconds_ago: int = 1) -> str:
    """Expired token, for tests"""
    payload = {
        "sub": client_id,
        "exp": datetime.utcnow() - timedelta(seconds=expired_seconds_ago)
    }
    return jwt.encode(payload, _signing_secret(), algorithm=ALGORITHM)


def decode_session_token(token: Optional[str]) -> Optional[str]:
    """Return the client id from a session token, or None if invalid/expired"""
    if not token:
        return None
    try:
        payload = jwt.decode(token, _signing_secret(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    return payload.get("sub")
