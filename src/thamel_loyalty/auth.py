"""
Authentication utilities: password hashing, JWT session tokens, and
FastAPI dependencies for member and staff access
"""
import hashlib
import hmac
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from .config import config
from .db.engine import get_db
from .db.models import Account
from .exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

http_bearer = HTTPBearer(auto_error=False)


def _prepare_password(password: str) -> bytes:
    # Bcrypt only reads 72 bytes; longer passwords are pre-hashed with SHA256
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > 72:
        password_bytes = hashlib.sha256(password_bytes).hexdigest().encode("utf-8")
    return password_bytes


def get_password_hash(password: str) -> str:
    """Hash a password, handling bcrypt's 72-byte limit"""
    if not password:
        raise ValueError("Password cannot be empty")
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_prepare_password(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its hash"""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_prepare_password(plain_password), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.warning(f"Password verification failed: {type(e).__name__}")
        return False


def create_access_token(account_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed session token for an account

    The token is stateless: validity is the signature plus the expiry claim.
    """
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(days=config.ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode = {
        "sub": str(account_id),  # JWT requires 'sub' to be a string
        "exp": expire,
        "iat": issued_at,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(to_encode, config.get_secret_key(), algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """Verify and decode a session token"""
    try:
        return jwt.decode(token, config.get_secret_key(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Token verification failed: token has expired")
        return None
    except JWTError as e:
        logger.warning(f"Token verification failed: {type(e).__name__}")
        return None


def account_id_from_token(token: Optional[str]) -> int:
    """Resolve a bearer token to an account id or raise AuthenticationError"""
    if not token or not token.strip():
        raise AuthenticationError("Authentication token is missing. Please log in again.")

    payload = verify_token(token.strip())
    if payload is None:
        raise AuthenticationError("Invalid or expired authentication token. Please log in again.")

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        logger.warning("Token payload has no usable account identifier")
        raise AuthenticationError("Invalid or expired authentication token. Please log in again.")


def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    db: Session = Depends(get_db),
) -> Account:
    """Dependency returning the account behind the bearer token"""
    account_id = account_id_from_token(credentials.credentials if credentials else None)
    account = db.get(Account, account_id)
    if account is None:
        logger.warning(f"Token refers to unknown account {account_id}")
        raise AuthenticationError("Account not found. Please log in again.")
    return account


def require_staff(x_admin_secret: Optional[str] = Header(default=None)) -> None:
    """Dependency guarding staff-only endpoints with the shared admin secret"""
    if not config.ADMIN_SECRET:
        logger.error("ADMIN_SECRET is not configured; staff endpoints are disabled")
        raise AuthorizationError("Staff access is not configured")
    if not x_admin_secret:
        raise AuthenticationError("Staff credential is required")
    if not hmac.compare_digest(x_admin_secret.encode("utf-8"), config.ADMIN_SECRET.encode("utf-8")):
        logger.warning("Rejected staff request with a wrong admin secret")
        raise AuthorizationError("Unauthorized")
