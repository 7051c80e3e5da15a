"""
Notification Dispatcher
Staff broadcasts to members by email and/or push.
"""
import logging
from typing import Optional, List, Dict, Any

from sqlalchemy.orm import Session

from ..db.models import Account
from ..exceptions import ValidationError
from .credential_store import normalize_email
from .email_provider import EmailProvider, send_notification_email
from .push_provider import PushProvider

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Fans a staff message out to the selected members"""

    def __init__(self, db: Session, email_provider: EmailProvider, push_provider: PushProvider):
        self.db = db
        self.email_provider = email_provider
        self.push_provider = push_provider

    def broadcast(
        self,
        title: str,
        body: str,
        send_email: bool = False,
        send_push: bool = False,
        emails: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Send to every member, or only to ``emails`` when given

        Individual delivery failures are counted, not raised.
        """
        if not title or not title.strip():
            raise ValidationError("title is required")
        if not send_email and not send_push:
            raise ValidationError("At least one of send_email or send_push is required")

        query = self.db.query(Account)
        if emails is not None:
            normalized = sorted({normalize_email(e) for e in emails if e and e.strip()})
            if not normalized:
                raise ValidationError("emails must contain at least one address")
            query = query.filter(Account.email.in_(normalized))
        recipients = query.all()

        email_count = 0
        if send_email:
            for account in recipients:
                if send_notification_email(self.email_provider, account.email, title, body):
                    email_count += 1

        push_count = 0
        if send_push:
            tokens = [account.push_token for account in recipients if account.push_token]
            push_count = self.push_provider.send(tokens, title, body or "")

        logger.info(
            f"Broadcast '{title}' to {len(recipients)} members (email={email_count}, push={push_count})"
        )
        return {"recipients": len(recipients), "email_count": email_count, "push_count": push_count}
