"""
Identity API routes
Verification codes, password login, federated login and the mobile hand-off.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .auth import get_current_account
from .db import get_db, Account
from .dependencies import get_email_provider
from .schemas import (
    AccountResponse,
    FederatedLoginRequest,
    HandoffCodeRequest,
    HandoffCodeResponse,
    HandoffExchangeRequest,
    PasswordLoginRequest,
    PushTokenRequest,
    RequestCodeRequest,
    RequestCodeResponse,
    ResetPasswordRequest,
    SessionResponse,
    SuccessResponse,
    VerifyCodeRequest,
)
from .services.account_registry import AccountRegistry
from .services.email_provider import EmailProvider
from .services.identity_resolver import IdentityResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/identity", tags=["identity"])


def get_identity_resolver(
    db: Session = Depends(get_db),
    email_provider: EmailProvider = Depends(get_email_provider),
) -> IdentityResolver:
    return IdentityResolver(db, email_provider)


@router.post("/code", response_model=RequestCodeResponse)
def request_code(body: RequestCodeRequest, resolver: IdentityResolver = Depends(get_identity_resolver)):
    """Email a one-time verification code"""
    return resolver.request_code(body.email)


@router.post("/verify", response_model=SessionResponse)
def verify_code(body: VerifyCodeRequest, resolver: IdentityResolver = Depends(get_identity_resolver)):
    """Redeem a verification code to log in or sign up"""
    return resolver.verify_code(
        body.email,
        body.code,
        flow=body.flow,
        name=body.name,
        password=body.password,
    )


@router.post("/federated", response_model=SessionResponse)
def login_federated(body: FederatedLoginRequest, resolver: IdentityResolver = Depends(get_identity_resolver)):
    return resolver.login_federated(body.subject_id, body.email, body.name)


@router.post("/mobile/code", response_model=HandoffCodeResponse)
def create_handoff_code(body: HandoffCodeRequest, resolver: IdentityResolver = Depends(get_identity_resolver)):
    """Issue a short-lived code for the mobile app's deep link"""
    return resolver.create_handoff_code(
        body.subject_id,
        body.redirect_uri,
        email=body.email,
        name=body.name,
    )


@router.post("/mobile/exchange", response_model=SessionResponse)
def exchange_handoff_code(body: HandoffExchangeRequest, resolver: IdentityResolver = Depends(get_identity_resolver)):
    return resolver.exchange_handoff_code(body.code)


@router.post("/login", response_model=SessionResponse)
def login(body: PasswordLoginRequest, resolver: IdentityResolver = Depends(get_identity_resolver)):
    return resolver.login_with_password(body.email, body.password)


@router.post("/reset-password", response_model=SuccessResponse)
def reset_password(body: ResetPasswordRequest, resolver: IdentityResolver = Depends(get_identity_resolver)):
    return resolver.reset_password(body.email, body.code, body.new_password)


@router.get("/me", response_model=AccountResponse)
def get_me(account: Account = Depends(get_current_account)):
    return {"account": AccountRegistry.summary(account)}


@router.post("/push-token", response_model=SuccessResponse)
def register_push_token(
    body: PushTokenRequest,
    account: Account = Depends(get_current_account),
    resolver: IdentityResolver = Depends(get_identity_resolver),
):
    return resolver.register_push_token(account, body.token)
