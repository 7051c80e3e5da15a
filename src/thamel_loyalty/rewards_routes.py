"""
Rewards API routes
Staff award points at the till; members read their own ledger.
"""
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from .auth import get_current_account, require_staff
from .db import get_db, Account
from .dependencies import get_push_provider
from .schemas import EarnPointsRequest, EarnPointsResponse, TransactionListResponse
from .services.points_ledger import PointsLedger
from .services.push_provider import PushProvider

router = APIRouter(prefix="/rewards", tags=["rewards"])


@router.post("/earn", response_model=EarnPointsResponse, dependencies=[Depends(require_staff)])
def earn_points(
    body: EarnPointsRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    push_provider: PushProvider = Depends(get_push_provider),
):
    return PointsLedger(db, push_provider).earn_points(body.email, body.amount, background_tasks)


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(account: Account = Depends(get_current_account), db: Session = Depends(get_db)):
    return {"transactions": PointsLedger(db).list_transactions(account.id)}
