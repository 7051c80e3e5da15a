"""
Account Registry - data access for canonical member accounts
"""
import logging
from typing import Optional, List, Dict, Any

from sqlalchemy import case, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import get_password_hash
from ..db.models import Account, AuthProvider
from ..exceptions import ConflictError
from .credential_store import normalize_email

logger = logging.getLogger(__name__)


def default_name_for(email: str) -> str:
    return email.split("@")[0]


class AccountRegistry:
    """Lookups and mutations on Account rows"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, account_id: int) -> Optional[Account]:
        return self.db.get(Account, account_id)

    def find_by_email(self, email: str) -> Optional[Account]:
        return self.db.query(Account).filter(Account.email == normalize_email(email)).first()

    def find_by_provider_uid(self, provider_uid: str) -> Optional[Account]:
        return self.db.query(Account).filter(Account.provider_uid == provider_uid).first()

    def create_local(self, email: str, name: str, password: str, verified: bool = False) -> Account:
        account = Account(
            email=normalize_email(email),
            name=name.strip(),
            hashed_password=get_password_hash(password.strip()),
            auth_provider=AuthProvider.LOCAL.value,
            verified=verified,
            points=0,
        )
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("An account with this email already exists")
        self.db.refresh(account)
        logger.info(f"Created local account {account.id}")
        return account

    def upsert_federated(self, provider_uid: str, email: str, name: Optional[str] = None) -> Account:
        """
        Find-or-create the account for a federated identity

        A local account registered with the same email is converted in place
        (subject id attached, provider switched, verified), never duplicated.
        If a concurrent request inserts the same identity first, the unique
        indexes reject our insert and we fall back to updating their row.
        """
        email = normalize_email(email)
        name = (name or "").strip()

        for attempt in range(2):
            account = (
                self.db.query(Account)
                .filter(or_(Account.provider_uid == provider_uid, Account.email == email))
                .order_by(case((Account.provider_uid == provider_uid, 0), else_=1))
                .first()
            )
            try:
                if account is not None:
                    if account.provider_uid != provider_uid or not account.is_federated:
                        logger.info(f"Linking federated identity to account {account.id}")
                    account.provider_uid = provider_uid
                    account.email = email
                    if name:
                        account.name = name
                    account.verified = True
                    account.auth_provider = AuthProvider.FEDERATED.value
                else:
                    account = Account(
                        provider_uid=provider_uid,
                        email=email,
                        name=name or default_name_for(email),
                        verified=True,
                        auth_provider=AuthProvider.FEDERATED.value,
                        points=0,
                    )
                    self.db.add(account)
                self.db.commit()
                self.db.refresh(account)
                return account
            except IntegrityError:
                self.db.rollback()
                if attempt:
                    raise ConflictError("This email is already linked to another account")
                logger.warning("Concurrent federated sign-in detected, retrying lookup")

        raise ConflictError("This email is already linked to another account")

    def mark_verified(self, account: Account) -> Account:
        if not account.verified:
            account.verified = True
            self.db.commit()
            self.db.refresh(account)
        return account

    def set_password(self, account: Account, password: str) -> Account:
        account.hashed_password = get_password_hash(password)
        self.db.commit()
        self.db.refresh(account)
        return account

    def set_push_token(self, account: Account, push_token: str) -> Account:
        account.push_token = push_token.strip()
        self.db.commit()
        return account

    def list_accounts(self) -> List[Account]:
        return self.db.query(Account).order_by(Account.created_at.desc(), Account.id.desc()).all()

    def count(self) -> int:
        return self.db.query(Account).count()

    @staticmethod
    def summary(account: Account) -> Dict[str, Any]:
        """Public account shape - never includes password or provider internals"""
        return {
            "id": account.id,
            "name": account.name,
            "email": account.email,
            "verified": bool(account.verified),
            "points": account.points or 0,
        }
