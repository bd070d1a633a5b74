from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from app.config import settings
from app.core.ledger import LedgerMember


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    member_names: List[str] = Field(default_factory=list)
    currency: str = Field(default_factory=lambda: settings.default_currency, pattern=r"^[A-Z]{3}$")


class MemberAdd(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class MemberPaymentUpdate(BaseModel):
    paypal_email: Optional[str] = None
    iban: Optional[str] = None


class MemberResponse(LedgerMember):
    model_config = ConfigDict(from_attributes=True)

    paypal_email: Optional[str] = None
    iban: Optional[str] = None


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    currency: str
    members: List[MemberResponse]
    created_at: datetime


class GroupCreatedResponse(BaseModel):
    group: GroupResponse
    token: str
