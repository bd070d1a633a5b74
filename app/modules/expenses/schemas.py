from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Set
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from app.core.ledger import MemberBalance, TransactionKind


class ExpenseBase(BaseModel):
    description: str = Field(min_length=1, max_length=500)
    amount: Decimal
    paid_by: UUID
    split_between: List[UUID] = Field(default_factory=list)
    expense_type: TransactionKind = TransactionKind.EXPENSE
    transfer_to: Optional[UUID] = None
    currency: Optional[str] = Field(default=None, pattern=r"^[A-Z]{3}$")  # defaults to the group's
    exchange_rate: Decimal = Field(default=Decimal(1), gt=0)
    expense_date: Optional[date] = None

    @model_validator(mode="after")
    def check_kind_fields(self):
        if self.expense_type == TransactionKind.TRANSFER:
            if self.transfer_to is None:
                raise ValueError("transfer_to is required for transfers")
            # Transfers are never split
            self.split_between = []
        elif self.transfer_to is not None:
            raise ValueError("transfer_to is only allowed for transfers")
        self.split_between = list(dict.fromkeys(self.split_between))
        return self

    def member_ids(self) -> Set[UUID]:
        ids = {self.paid_by, *self.split_between}
        if self.transfer_to is not None:
            ids.add(self.transfer_to)
        return ids


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(ExpenseBase):
    pass


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    description: str
    amount: float
    paid_by: UUID
    split_between: List[UUID]
    expense_type: TransactionKind
    transfer_to: Optional[UUID] = None
    currency: str
    exchange_rate: float
    expense_date: date
    created_at: datetime


class BalanceResponse(BaseModel):
    member_id: UUID
    member_name: str
    balance: float  # positive = is owed money, negative = owes money

    @classmethod
    def from_ledger(cls, balance: MemberBalance) -> "BalanceResponse":
        return cls(
            member_id=balance.member_id,
            member_name=balance.member_name,
            balance=float(balance.balance),
        )
