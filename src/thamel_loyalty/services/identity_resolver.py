"""
Identity Resolver
Maps every authentication pathway onto exactly one Account and issues a
session token.

Pathways:
- password login (email + password)
- verification code login/signup (email + emailed six-digit code)
- federated login (Firebase subject id + email)
- mobile hand-off (web creates a one-time code, the app exchanges it)

Every successful resolution returns the same shape:
    {"token": <session token>, "account": {id, name, email, verified, points}}
"""
import logging
import re
from functools import lru_cache
from typing import Optional, Dict, Any

from sqlalchemy.orm import Session

from ..auth import account_id_from_token, create_access_token, get_password_hash, verify_password
from ..config import config
from ..db.models import Account
from ..exceptions import (
    AuthenticationError,
    DeliveryError,
    NotFoundError,
    ValidationError,
    INVALID_CODE_MESSAGE,
)
from .account_registry import AccountRegistry
from .credential_store import CredentialStore, normalize_email
from .email_provider import EmailProvider, send_verification_code

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6
FLOW_LOGIN = "login"
FLOW_SIGNUP = "signup"
PLACEHOLDER_EMAIL_DOMAIN = "firebase.local"

INVALID_LOGIN_MESSAGE = "Invalid email or password"
INVALID_VERIFICATION_MESSAGE = "Invalid or expired verification code"
NO_ACCOUNT_MESSAGE = "No account found for this email. Please sign up first."
MISSING_SIGNUP_FIELDS_MESSAGE = "New user: name and password are required for sign up"
INVALID_REDIRECT_MESSAGE = (
    "redirect_uri is required and must be a custom app scheme (e.g. mobile:// or yourapp://)"
)

_CUSTOM_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_WEB_SCHEMES = ("http://", "https://")


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    # Compared against when the email is unknown so both paths cost one bcrypt check
    return get_password_hash("thamel-loyalty-timing-equalizer")


def is_allowed_redirect_uri(uri: Optional[str]) -> bool:
    """Only custom app schemes are allowed; web origins would be an open redirect"""
    if not uri or not isinstance(uri, str):
        return False
    trimmed = uri.strip()
    if trimmed.lower().startswith(_WEB_SCHEMES):
        return False
    return bool(_CUSTOM_SCHEME.match(trimmed))


def require_email(email: Optional[str]) -> str:
    # Format is checked at the request boundary; only presence here
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("A valid email is required")
    return normalized


def validate_password(password: Optional[str]) -> str:
    password = (password or "").strip()
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    return password


class IdentityResolver:
    """Authenticates members through any supported pathway"""

    def __init__(
        self,
        db: Session,
        email_provider: EmailProvider,
        credentials: Optional[CredentialStore] = None,
        accounts: Optional[AccountRegistry] = None,
    ):
        self.db = db
        self.email_provider = email_provider
        self.credentials = credentials or CredentialStore(db)
        self.accounts = accounts or AccountRegistry(db)

    def _session_for(self, account: Account) -> Dict[str, Any]:
        return {
            "token": create_access_token(account.id),
            "account": AccountRegistry.summary(account),
        }

    def request_code(self, email: str) -> Dict[str, Any]:
        """
        Email a fresh verification code

        The response is identical whether or not an account exists for the
        email, so it cannot be used to enumerate members.
        """
        email = require_email(email)
        code = self.credentials.issue_verification_code(email)
        sent = send_verification_code(
            self.email_provider, email, code, config.VERIFICATION_CODE_EXPIRY_MINUTES
        )
        if not sent:
            raise DeliveryError("Failed to send verification code")
        return {"sent": True}

    def login_with_password(self, email: str, password: str) -> Dict[str, Any]:
        email = normalize_email(email)
        if not email or not password:
            raise ValidationError("Email and password are required")

        account = self.accounts.find_by_email(email)
        if account is None or not account.hashed_password:
            verify_password(password, _dummy_password_hash())
            raise AuthenticationError(INVALID_LOGIN_MESSAGE)
        if not verify_password(password, account.hashed_password):
            logger.info(f"Password mismatch for account {account.id}")
            raise AuthenticationError(INVALID_LOGIN_MESSAGE)

        return self._session_for(account)

    def verify_code(
        self,
        email: str,
        code: str,
        flow: str = FLOW_SIGNUP,
        name: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Redeem an emailed code, then log in or sign up

        Existing accounts are marked verified. Unknown emails are rejected for
        the login flow and require a name and password for the signup flow.
        """
        email = require_email(email)
        if not code:
            raise ValidationError("Email and code are required")

        if not self.credentials.redeem_verification_code(email, code):
            raise AuthenticationError(INVALID_VERIFICATION_MESSAGE, status_code=400)

        account = self.accounts.find_by_email(email)
        if account is not None:
            account = self.accounts.mark_verified(account)
            return self._session_for(account)

        if flow == FLOW_LOGIN:
            raise NotFoundError(NO_ACCOUNT_MESSAGE)

        name = (name or "").strip()
        if not name or not password:
            raise ValidationError(MISSING_SIGNUP_FIELDS_MESSAGE)
        password = validate_password(password)

        account = self.accounts.create_local(email, name, password, verified=True)
        return self._session_for(account)

    def login_federated(self, subject_id: str, email: str, name: Optional[str] = None) -> Dict[str, Any]:
        subject_id = (subject_id or "").strip()
        if not subject_id:
            raise ValidationError("subject_id and email are required")
        email = require_email(email)

        account = self.accounts.upsert_federated(subject_id, email, name)
        return self._session_for(account)

    def create_handoff_code(
        self,
        subject_id: str,
        redirect_uri: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        First phase of the mobile hand-off

        Called by the web app after a federated sign-in; the caller navigates
        to ``redirect_uri?code=...`` so the mobile app can exchange the code.
        """
        subject_id = (subject_id or "").strip()
        if not subject_id:
            raise ValidationError("subject_id is required")
        if not is_allowed_redirect_uri(redirect_uri):
            raise ValidationError(INVALID_REDIRECT_MESSAGE)

        if email and email.strip():
            account = self.accounts.upsert_federated(subject_id, require_email(email), name)
        else:
            account = self.accounts.find_by_provider_uid(subject_id)
            if account is None:
                placeholder = f"{subject_id}@{PLACEHOLDER_EMAIL_DOMAIN}".lower()
                account = self.accounts.upsert_federated(subject_id, placeholder, name)
                logger.info(f"Created federated account {account.id} from mobile hand-off")

        code = self.credentials.issue_handoff_code(account.id)
        return {"code": code, "redirect_uri": redirect_uri.strip()}

    def exchange_handoff_code(self, code: str) -> Dict[str, Any]:
        """Second phase of the mobile hand-off; a code works exactly once"""
        if not code or not str(code).strip():
            raise ValidationError("code is required")

        account_id = self.credentials.redeem_handoff_code(code)
        if account_id is None:
            raise AuthenticationError(INVALID_CODE_MESSAGE, status_code=400)

        account = self.accounts.get(account_id)
        if account is None:
            raise AuthenticationError(INVALID_CODE_MESSAGE, status_code=400)

        return self._session_for(account)

    def reset_password(self, email: str, code: str, new_password: str) -> Dict[str, Any]:
        email = require_email(email)
        if not code or not new_password:
            raise ValidationError("Email, code, and new password are required")
        new_password = validate_password(new_password)

        if not self.credentials.redeem_verification_code(email, code):
            raise AuthenticationError(INVALID_VERIFICATION_MESSAGE, status_code=400)

        account = self.accounts.find_by_email(email)
        if account is None:
            raise NotFoundError("User not found")

        self.accounts.set_password(account, new_password)
        logger.info(f"Password reset for account {account.id}")
        return {"success": True}

    def register_push_token(self, account: Account, push_token: str) -> Dict[str, Any]:
        if not push_token or not push_token.strip():
            raise ValidationError("token is required")
        self.accounts.set_push_token(account, push_token)
        return {"success": True}

    def authenticate_token(self, token: Optional[str]) -> Account:
        """Resolve a session token to its account"""
        account_id = account_id_from_token(token)
        account = self.accounts.get(account_id)
        if account is None:
            raise AuthenticationError("Account not found. Please log in again.")
        return account
