"""
Ledger engine: derives every member's net balance from a group's history.

Balances are never stored. They are recomputed from the full transaction
list on each call, so the result only depends on the snapshot passed in and
not on the order of its transactions.

Sign convention: positive = the group owes the member, negative = the member
owes the group.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Sequence, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TransactionKind(str, Enum):
    EXPENSE = "expense"
    TRANSFER = "transfer"
    INCOME = "income"


class LedgerMember(BaseModel):
    id: UUID
    name: str


class _TransactionBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[UUID] = None
    amount: Decimal
    paid_by: UUID
    currency: str
    exchange_rate: Decimal = Decimal(1)
    expense_date: Optional[date] = None

    def amount_in(self, group_currency: str) -> Decimal:
        if self.currency == group_currency:
            return self.amount
        return self.amount * self.exchange_rate


class ExpenseTransaction(_TransactionBase):
    """paid_by fronted the money for everyone in split_between."""

    kind: Literal["expense"] = "expense"
    split_between: List[UUID] = Field(default_factory=list)


class TransferTransaction(_TransactionBase):
    """paid_by handed money directly to transfer_to."""

    kind: Literal["transfer"] = "transfer"
    transfer_to: UUID


class IncomeTransaction(_TransactionBase):
    """paid_by received money that belongs to everyone in split_between."""

    kind: Literal["income"] = "income"
    split_between: List[UUID] = Field(default_factory=list)


Transaction = Annotated[
    Union[ExpenseTransaction, TransferTransaction, IncomeTransaction],
    Field(discriminator="kind"),
]


class MemberBalance(BaseModel):
    member_id: UUID
    member_name: str
    balance: Decimal


def _credit(balances: Dict[UUID, Decimal], member_id: UUID, amount: Decimal) -> None:
    # Members missing from the snapshot are skipped, not reported.
    if member_id in balances:
        balances[member_id] += amount


def _apply_split(
    balances: Dict[UUID, Decimal],
    holder: UUID,
    amount: Decimal,
    split_between: Sequence[UUID],
    sign: int,
) -> None:
    if not split_between:
        return
    share = amount / len(split_between)
    _credit(balances, holder, sign * amount)
    for member_id in split_between:
        _credit(balances, member_id, -sign * share)


def compute_balances(
    members: Sequence[LedgerMember],
    transactions: Sequence[Transaction],
    group_currency: str,
) -> List[MemberBalance]:
    """Compute each member's balance in the group currency.

    Args:
        members: group members, in the order the result should follow
        transactions: the group's full history
        group_currency: ISO code amounts are normalized into

    Returns:
        One MemberBalance per member, in member order
    """
    balances: Dict[UUID, Decimal] = {m.id: Decimal(0) for m in members}

    for tx in transactions:
        amount = tx.amount_in(group_currency)
        if isinstance(tx, TransferTransaction):
            _credit(balances, tx.paid_by, amount)
            _credit(balances, tx.transfer_to, -amount)
        elif isinstance(tx, IncomeTransaction):
            _apply_split(balances, tx.paid_by, amount, tx.split_between, sign=-1)
        else:
            _apply_split(balances, tx.paid_by, amount, tx.split_between, sign=1)

    return [
        MemberBalance(member_id=m.id, member_name=m.name, balance=balances[m.id])
        for m in members
    ]
