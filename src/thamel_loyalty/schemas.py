"""
Pydantic request/response schemas for the HTTP API

Request models accept both snake_case and the camelCase names used by the
existing web and mobile clients (e.g. ``subject_id`` / ``subjectId``).
"""
from typing import Optional, List, Literal, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class CodeField(ApiModel):
    """Mixin: clients send codes as strings or bare numbers"""

    code: str

    @field_validator("code", mode="before")
    @classmethod
    def coerce_code(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


# ---- identity ----

class AccountSummary(BaseModel):
    id: int
    name: str
    email: str
    verified: bool
    points: int


class SessionResponse(BaseModel):
    token: str
    account: AccountSummary


class AccountResponse(BaseModel):
    account: AccountSummary


class RequestCodeRequest(ApiModel):
    email: EmailStr


class RequestCodeResponse(BaseModel):
    sent: bool


class VerifyCodeRequest(CodeField):
    email: EmailStr
    name: Optional[str] = None
    password: Optional[str] = None
    flow: Literal["login", "signup"] = "signup"


class FederatedLoginRequest(ApiModel):
    subject_id: str = Field(alias="subjectId")
    email: EmailStr
    name: Optional[str] = None


class HandoffCodeRequest(ApiModel):
    subject_id: str = Field(alias="subjectId")
    email: Optional[EmailStr] = None
    name: Optional[str] = None
    redirect_uri: str = Field(alias="redirectUri")

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class HandoffCodeResponse(BaseModel):
    code: str
    redirect_uri: str


class HandoffExchangeRequest(CodeField):
    pass


class PasswordLoginRequest(ApiModel):
    email: EmailStr
    password: str


class ResetPasswordRequest(CodeField):
    email: EmailStr
    new_password: str = Field(alias="newPassword")


class PushTokenRequest(ApiModel):
    token: str


class SuccessResponse(BaseModel):
    success: bool = True


# ---- bookings ----

class SlotsResponse(BaseModel):
    slots: List[str]


class CreateBookingRequest(ApiModel):
    room: str
    date: str
    slot: str
    contact_number: str = Field(alias="contactNumber")


class BookingOut(BaseModel):
    id: int
    room: str
    date: str
    slot: str
    contact_number: str


class BookingResponse(BaseModel):
    booking: BookingOut


class BookingListResponse(BaseModel):
    bookings: List[BookingOut]


# ---- rewards ----

class EarnPointsRequest(ApiModel):
    email: str
    amount: Union[float, str]


class EarnPointsResponse(BaseModel):
    account: AccountSummary
    amount_applied: float
    points_added: int


class TransactionOut(BaseModel):
    id: int
    kind: str
    amount: float
    points: int
    date: Optional[str] = None


class TransactionListResponse(BaseModel):
    transactions: List[TransactionOut]


# ---- admin ----

class StatsResponse(BaseModel):
    total_accounts: int
    total_amount_transacted: float
    total_karaoke_bookings: int


class AdminAccountOut(AccountSummary):
    created_at: Optional[str] = None


class AdminAccountListResponse(BaseModel):
    accounts: List[AdminAccountOut]


class BookingOwner(BaseModel):
    name: str
    email: str


class AdminBookingOut(BookingOut):
    account: Optional[BookingOwner] = None


class AdminBookingListResponse(BaseModel):
    bookings: List[AdminBookingOut]


class NotifyRequest(ApiModel):
    title: str
    body: str = ""
    send_email: bool = Field(default=False, alias="sendEmail")
    send_push: bool = Field(default=False, alias="sendPush")
    emails: Optional[List[str]] = None


class NotifyResponse(BaseModel):
    recipients: int
    email_count: int
    push_count: int
