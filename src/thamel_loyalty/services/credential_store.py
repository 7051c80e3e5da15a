"""
Credential Store
Issues and redeems short-lived, single-use secrets.

Every redemption is decided by one atomic statement in the database
(a conditional UPDATE for verification codes, a DELETE for hand-off codes),
so two concurrent callers can never both redeem the same credential. This
holds across server processes because no in-process locking is involved.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import config
from ..db.base import utcnow
from ..db.models import VerificationCode, HandoffCode
from ..exceptions import ConflictError

logger = logging.getLogger(__name__)

VERIFICATION_CODE_LENGTH = 6
HANDOFF_CODE_BYTES = 16


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def generate_verification_code() -> str:
    """Uniformly random six-digit code (no leading zero)"""
    return str(100000 + secrets.randbelow(900000))


def generate_handoff_code() -> str:
    return secrets.token_hex(HANDOFF_CODE_BYTES)


class CredentialStore:
    """Persistence and redemption of verification and hand-off codes"""

    def __init__(
        self,
        db: Session,
        verification_expiry_minutes: Optional[int] = None,
        handoff_expiry_minutes: Optional[int] = None,
    ):
        self.db = db
        self.verification_expiry = timedelta(
            minutes=verification_expiry_minutes or config.VERIFICATION_CODE_EXPIRY_MINUTES
        )
        self.handoff_expiry = timedelta(
            minutes=handoff_expiry_minutes or config.HANDOFF_CODE_EXPIRY_MINUTES
        )

    def issue_verification_code(self, email: str) -> str:
        """
        Replace any outstanding code for the email with a fresh one

        The delete and insert commit together. The unique index on email makes
        a concurrent issuer fail its insert; that caller retries the replace
        once, so only the last committed code can ever validate.
        """
        email = normalize_email(email)
        code = generate_verification_code()

        for attempt in range(2):
            try:
                self.db.execute(
                    delete(VerificationCode)
                    .where(VerificationCode.email == email)
                    .execution_options(synchronize_session=False)
                )
                self.db.add(VerificationCode(
                    email=email,
                    code=code,
                    expires_at=utcnow() + self.verification_expiry,
                    used=False,
                ))
                self.db.commit()
                logger.info("Issued verification code")
                return code
            except IntegrityError:
                self.db.rollback()
                logger.warning(f"Concurrent verification code issue detected (attempt {attempt + 1})")

        raise ConflictError("A verification code is already being issued for this email. Please retry.")

    def redeem_verification_code(self, email: str, code: str) -> bool:
        """
        Consume a verification code

        Returns True only for the single caller whose conditional update flips
        the matching, unused, unexpired row to used.
        """
        email = normalize_email(email)
        code = str(code or "").strip()
        if not email or len(code) != VERIFICATION_CODE_LENGTH or not code.isdigit():
            return False

        result = self.db.execute(
            update(VerificationCode)
            .where(
                VerificationCode.email == email,
                VerificationCode.code == code,
                VerificationCode.used.is_(False),
                VerificationCode.expires_at > utcnow(),
            )
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def issue_handoff_code(self, account_id: int) -> str:
        code = generate_handoff_code()
        self.db.add(HandoffCode(
            code=code,
            account_id=account_id,
            expires_at=utcnow() + self.handoff_expiry,
        ))
        self.db.commit()
        logger.info(f"Issued hand-off code for account {account_id}")
        return code

    def redeem_handoff_code(self, code: str) -> Optional[int]:
        """
        Consume a hand-off code and return the bound account id

        The row is deleted on first lookup whatever the expiry outcome, and
        only the caller whose DELETE actually removed it may proceed.
        """
        code = str(code or "").strip()
        if not code:
            return None

        row = self.db.execute(
            select(HandoffCode.id, HandoffCode.account_id, HandoffCode.expires_at)
            .where(HandoffCode.code == code)
        ).first()
        if row is None:
            self.db.rollback()
            return None

        result = self.db.execute(
            delete(HandoffCode)
            .where(HandoffCode.id == row.id)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

        if result.rowcount != 1:
            logger.warning("Hand-off code already redeemed by a concurrent request")
            return None
        if row.expires_at <= utcnow():
            logger.info("Rejected expired hand-off code")
            return None
        return row.account_id

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete expired credentials; redemption never depends on this having run"""
        now = now or utcnow()
        codes = self.db.execute(
            delete(VerificationCode)
            .where(VerificationCode.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        handoffs = self.db.execute(
            delete(HandoffCode)
            .where(HandoffCode.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        purged = (codes.rowcount or 0) + (handoffs.rowcount or 0)
        if purged:
            logger.info(f"Purged {purged} expired credentials")
        return purged
