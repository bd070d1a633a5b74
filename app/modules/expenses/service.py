from supabase import Client
from app.core.exceptions import ValidationError
from app.core.ledger import (
    ExpenseTransaction, IncomeTransaction, Transaction, TransactionKind,
    TransferTransaction, compute_balances
)
from app.modules.expenses.schemas import (
    BalanceResponse, ExpenseBase, ExpenseCreate, ExpenseResponse, ExpenseUpdate
)
from app.modules.groups.schemas import GroupResponse
from app.modules.groups.service import GroupService
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

EXPENSE_COLUMNS = "*, expense_splits(member_id)"

# Columns a client may change; restored as-is when an update fails halfway
EDITABLE_COLUMNS = (
    "description", "amount", "paid_by", "expense_type", "transfer_to",
    "currency", "exchange_rate", "expense_date",
)


def _split_ids(row: Dict[str, Any]) -> List[str]:
    return [s["member_id"] for s in row.get("expense_splits") or []]


def _stored_rate(row: Dict[str, Any]) -> Any:
    # Only a missing rate defaults to 1; a stored 0 is kept and shows up as 0
    rate = row.get("exchange_rate")
    return 1 if rate is None else rate


def row_to_transaction(row: Dict[str, Any]) -> Optional[Transaction]:
    """Convert a stored expense row into a ledger transaction.

    Unknown expense types count as plain expenses. A transfer without a
    recipient cannot be represented and yields None.
    """
    common = {
        "id": row["id"],
        "amount": Decimal(str(row["amount"])),
        "paid_by": row["paid_by"],
        "currency": row.get("currency") or "",
        "exchange_rate": Decimal(str(_stored_rate(row))),
        "expense_date": row.get("expense_date"),
    }
    kind = row.get("expense_type")
    if kind == TransactionKind.TRANSFER.value:
        if not row.get("transfer_to"):
            return None
        return TransferTransaction(transfer_to=row["transfer_to"], **common)
    if kind == TransactionKind.INCOME.value:
        return IncomeTransaction(split_between=_split_ids(row), **common)
    return ExpenseTransaction(split_between=_split_ids(row), **common)


def row_to_response(row: Dict[str, Any]) -> ExpenseResponse:
    kind = row.get("expense_type")
    if kind not in {k.value for k in TransactionKind}:
        kind = TransactionKind.EXPENSE.value
    return ExpenseResponse(
        id=row["id"],
        group_id=row["group_id"],
        description=row["description"],
        amount=row["amount"],
        paid_by=row["paid_by"],
        split_between=_split_ids(row),
        expense_type=kind,
        transfer_to=row.get("transfer_to"),
        currency=row["currency"],
        exchange_rate=_stored_rate(row),
        expense_date=row["expense_date"],
        created_at=row["created_at"],
    )


class ExpenseService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_expenses(self, group_id: UUID) -> List[ExpenseResponse]:
        """List a group's expenses, newest first"""
        return [row_to_response(row) for row in self._fetch_rows(group_id)]

    def list_transactions(self, group_id: UUID) -> List[Transaction]:
        transactions = []
        for row in self._fetch_rows(group_id):
            tx = row_to_transaction(row)
            if tx is None:
                logger.warning(f"Skipping transfer {row['id']} without recipient")
                continue
            transactions.append(tx)
        return transactions

    def get_expense(self, group_id: UUID, expense_id: UUID) -> ExpenseResponse:
        """Get an expense, scoped to the group"""
        return row_to_response(self._fetch_row(group_id, expense_id))

    def create_expense(self, group_id: UUID, expense_data: ExpenseCreate) -> ExpenseResponse:
        """Record an expense, transfer or income"""
        group = GroupService(self.supabase).get_group(group_id)
        self._check_members(group, expense_data)
        try:
            result = self.supabase.table("expenses")\
                .insert(self._to_row(group, expense_data))\
                .execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create expense")

            expense_id = result.data[0]["id"]
            try:
                self._insert_splits(expense_id, expense_data.split_between)
            except Exception:
                # An expense without its splits would count as a no-op
                self.supabase.table("expenses")\
                    .delete()\
                    .eq("id", str(expense_id))\
                    .execute()
                raise
            return self.get_expense(group_id, expense_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating expense in group {group_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create expense")

    def update_expense(
        self,
        group_id: UUID,
        expense_id: UUID,
        expense_data: ExpenseUpdate
    ) -> ExpenseResponse:
        """Replace an expense and its splits.

        When the new splits cannot be written, the previous row and splits
        are put back before the error is raised.
        """
        previous = self._fetch_row(group_id, expense_id)
        group = GroupService(self.supabase).get_group(group_id)
        self._check_members(group, expense_data)
        try:
            self._write_expense(
                group_id, expense_id,
                self._to_row(group, expense_data), expense_data.split_between,
            )
            return self.get_expense(group_id, expense_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating expense {expense_id}, restoring previous version: {e}")
            self._restore(group_id, expense_id, previous)
            raise HTTPException(status_code=500, detail="Failed to update expense")

    def _write_expense(
        self,
        group_id: UUID,
        expense_id: UUID,
        row: Dict[str, Any],
        split_between: List[Any],
    ) -> None:
        self.supabase.table("expenses")\
            .update(row)\
            .eq("id", str(expense_id))\
            .eq("group_id", str(group_id))\
            .execute()

        # Delete old splits and re-insert
        self.supabase.table("expense_splits")\
            .delete()\
            .eq("expense_id", str(expense_id))\
            .execute()
        self._insert_splits(str(expense_id), split_between)

    def _restore(self, group_id: UUID, expense_id: UUID, previous: Dict[str, Any]) -> None:
        try:
            self._write_expense(
                group_id, expense_id,
                {column: previous.get(column) for column in EDITABLE_COLUMNS},
                _split_ids(previous),
            )
        except Exception as e:
            logger.error(f"Failed to restore expense {expense_id}: {e}")

    def _fetch_row(self, group_id: UUID, expense_id: UUID) -> Dict[str, Any]:
        try:
            result = self.supabase.table("expenses")\
                .select(EXPENSE_COLUMNS)\
                .eq("id", str(expense_id))\
                .eq("group_id", str(group_id))\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Expense not found")

            return result.data[0]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching expense {expense_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch expense")

    def delete_expense(self, group_id: UUID, expense_id: UUID) -> bool:
        """Delete an expense and its splits"""
        self.get_expense(group_id, expense_id)
        try:
            self.supabase.table("expense_splits")\
                .delete()\
                .eq("expense_id", str(expense_id))\
                .execute()

            self.supabase.table("expenses")\
                .delete()\
                .eq("id", str(expense_id))\
                .eq("group_id", str(group_id))\
                .execute()

            return True
        except Exception as e:
            logger.error(f"Error deleting expense {expense_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete expense")

    def get_balances(self, group_id: UUID) -> List[BalanceResponse]:
        """Compute every member's balance from the full history"""
        group = GroupService(self.supabase).get_group(group_id)
        transactions = self.list_transactions(group_id)
        balances = compute_balances(group.members, transactions, group.currency)
        return [BalanceResponse.from_ledger(b) for b in balances]

    def _fetch_rows(self, group_id: UUID) -> List[Dict[str, Any]]:
        try:
            result = self.supabase.table("expenses")\
                .select(EXPENSE_COLUMNS)\
                .eq("group_id", str(group_id))\
                .order("created_at", desc=True)\
                .execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Error fetching expenses of group {group_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch expenses")

    def _check_members(self, group: GroupResponse, expense_data: ExpenseBase) -> None:
        known = {m.id for m in group.members}
        unknown = expense_data.member_ids() - known
        if unknown:
            raise ValidationError(
                f"Not members of this group: {', '.join(sorted(str(m) for m in unknown))}"
            )

    def _to_row(self, group: GroupResponse, expense_data: ExpenseBase) -> Dict[str, Any]:
        return {
            "group_id": str(group.id),
            "description": expense_data.description,
            "amount": str(expense_data.amount),
            "paid_by": str(expense_data.paid_by),
            "expense_type": expense_data.expense_type.value,
            "transfer_to": str(expense_data.transfer_to) if expense_data.transfer_to else None,
            "currency": expense_data.currency or group.currency,
            "exchange_rate": str(expense_data.exchange_rate),
            "expense_date": (expense_data.expense_date or date.today()).isoformat(),
        }

    def _insert_splits(self, expense_id: str, split_between: List[UUID]) -> None:
        if not split_between:
            return
        self.supabase.table("expense_splits").insert([
            {"expense_id": str(expense_id), "member_id": str(member_id)}
            for member_id in split_between
        ]).execute()
