"""
Points Ledger
Append-only point transactions reconciled against Account.points.

Consistency strategy: the balance increment (``points = points + n``, computed
by the database, never read-modify-write in Python) and the ledger insert are
issued in the same database transaction and committed together. Either both
are durable or neither is, so no reconciliation job is needed; ``reconcile``
exists to check the invariant.

Points are 10 per 100 currency units, truncated: ``floor(amount / 100 * 10)``
is taken from the amount exactly as sent, and only the stored amount is
rounded to cents. The fractional remainder is dropped and never carried to a later
purchase (250.00 -> 25, 49.99 -> 4, 9.999 -> 0, 5.00 -> 0).
"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_FLOOR, ROUND_HALF_UP
from typing import List, Dict, Any, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.models import Account, PointTransaction, TransactionKind
from ..exceptions import NotFoundError, ValidationError
from .account_registry import AccountRegistry
from .push_provider import PushProvider

logger = logging.getLogger(__name__)

POINTS_PER_100 = 10
MAX_BILL_AMOUNT = Decimal("99999999.99")
CENTS = Decimal("0.01")
DEFAULT_TRANSACTION_LIMIT = 50


def parse_bill_amount(value: Any) -> Decimal:
    """Positive bill amount, unrounded"""
    if isinstance(value, bool) or value is None:
        raise ValidationError("Valid bill amount is required")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Valid bill amount is required")
    if not amount.is_finite():
        raise ValidationError("Valid bill amount is required")
    if amount <= 0 or amount > MAX_BILL_AMOUNT:
        raise ValidationError("Valid bill amount is required")
    return amount


def points_for(amount: Decimal) -> int:
    return int((amount * POINTS_PER_100 / 100).to_integral_value(rounding=ROUND_FLOOR))


def stored_amount(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def send_points_earned_push(
    push_provider: PushProvider, push_token: str, account_id: int, points: int, bill_amount: Decimal
) -> None:
    # The award is already committed; delivery problems are only logged
    try:
        push_provider.send(
            [push_token],
            "Points earned",
            f"You earned {points} pts from your ${bill_amount:.2f} purchase!",
        )
    except Exception:
        logger.exception(f"Push notification failed for account {account_id}")


def transaction_to_dict(transaction: PointTransaction) -> Dict[str, Any]:
    return {
        "id": transaction.id,
        "kind": transaction.kind,
        "amount": float(transaction.amount),
        "points": transaction.points,
        "date": transaction.created_at.isoformat() if transaction.created_at else None,
    }


class PointsLedger:
    """Awards points and lists ledger entries"""

    def __init__(self, db: Session, push_provider: Optional[PushProvider] = None):
        self.db = db
        self.push_provider = push_provider
        self.accounts = AccountRegistry(db)

    def earn_points(
        self, email: str, amount: Any, background_tasks: Optional[BackgroundTasks] = None
    ) -> Dict[str, Any]:
        """
        Award points for a bill

        With ``background_tasks`` the push goes out after the response is sent.
        """
        account = self.accounts.find_by_email(email)
        if account is None:
            raise NotFoundError("User not found")

        bill_amount = parse_bill_amount(amount)
        points = points_for(bill_amount)
        bill_amount = stored_amount(bill_amount)

        if points > 0:
            try:
                self.db.execute(
                    update(Account)
                    .where(Account.id == account.id)
                    .values(points=Account.points + points)
                    .execution_options(synchronize_session=False)
                )
                self.db.add(PointTransaction(
                    account_id=account.id,
                    kind=TransactionKind.EARN.value,
                    amount=bill_amount,
                    points=points,
                ))
                self.db.commit()
            except SQLAlchemyError:
                self.db.rollback()
                logger.error(f"Point award failed for account {account.id}; nothing was applied", exc_info=True)
                raise

            self.db.refresh(account)
            logger.info(f"Awarded {points} points to account {account.id} for bill {bill_amount}")
            self._notify_points_earned(account, points, bill_amount, background_tasks)

        return {
            "account": AccountRegistry.summary(account),
            "amount_applied": float(bill_amount),
            "points_added": points,
        }

    def _notify_points_earned(
        self,
        account: Account,
        points: int,
        bill_amount: Decimal,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> None:
        if self.push_provider is None or not account.push_token:
            return
        args = (self.push_provider, account.push_token, account.id, points, bill_amount)
        if background_tasks is not None:
            background_tasks.add_task(send_points_earned_push, *args)
        else:
            send_points_earned_push(*args)

    def list_transactions(self, account_id: int, limit: int = DEFAULT_TRANSACTION_LIMIT) -> List[Dict[str, Any]]:
        transactions = (
            self.db.query(PointTransaction)
            .filter(PointTransaction.account_id == account_id)
            .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
            .limit(limit)
            .all()
        )
        return [transaction_to_dict(t) for t in transactions]

    def reconcile(self, account_id: int) -> Tuple[int, int]:
        """Return (stored balance, sum of ledger deltas) for an account"""
        balance = self.db.query(Account.points).filter(Account.id == account_id).scalar()
        if balance is None:
            raise NotFoundError("User not found")
        ledger_sum = (
            self.db.query(func.coalesce(func.sum(PointTransaction.points), 0))
            .filter(PointTransaction.account_id == account_id)
            .scalar()
        )
        return balance, int(ledger_sum)

    def total_earned_amount(self) -> Decimal:
        total = (
            self.db.query(func.coalesce(func.sum(PointTransaction.amount), 0))
            .filter(PointTransaction.kind == TransactionKind.EARN.value)
            .scalar()
        )
        return Decimal(str(total)).quantize(CENTS)
