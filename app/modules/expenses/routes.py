from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.core.capabilities import Capability
from app.core.dependencies import get_group_auth, parse_uuid, require_capability
from app.modules.auth.schemas import GroupAuth
from app.modules.expenses.schemas import (
    BalanceResponse, ExpenseCreate, ExpenseResponse, ExpenseUpdate
)
from app.modules.expenses.service import ExpenseService
from supabase import Client
from typing import List

router = APIRouter(prefix="/groups/current", tags=["expenses"])


def get_expense_service(supabase: Client = Depends(get_supabase)) -> ExpenseService:
    return ExpenseService(supabase)


@router.get("/expenses", response_model=List[ExpenseResponse])
async def list_expenses(
    auth: GroupAuth = Depends(get_group_auth),
    service: ExpenseService = Depends(get_expense_service)
):
    """List the group's expenses, newest first"""
    return service.list_expenses(auth.group_id)


@router.post("/expenses", response_model=ExpenseResponse, status_code=201)
async def create_expense(
    expense_data: ExpenseCreate,
    auth: GroupAuth = Depends(require_capability(Capability.ADD_EXPENSES)),
    service: ExpenseService = Depends(get_expense_service)
):
    """Record an expense, transfer or income (requires add_expenses)"""
    return service.create_expense(auth.group_id, expense_data)


@router.put("/expenses/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: str,
    expense_data: ExpenseUpdate,
    auth: GroupAuth = Depends(require_capability(Capability.EDIT_EXPENSES)),
    service: ExpenseService = Depends(get_expense_service)
):
    """Update an expense (requires edit_expenses)"""
    return service.update_expense(
        auth.group_id, parse_uuid(expense_id, "expense_id"), expense_data
    )


@router.delete("/expenses/{expense_id}", status_code=204)
async def delete_expense(
    expense_id: str,
    auth: GroupAuth = Depends(require_capability(Capability.EDIT_EXPENSES)),
    service: ExpenseService = Depends(get_expense_service)
):
    """Delete an expense (requires edit_expenses)"""
    service.delete_expense(auth.group_id, parse_uuid(expense_id, "expense_id"))
    return None


@router.get("/balances", response_model=List[BalanceResponse])
async def get_balances(
    auth: GroupAuth = Depends(get_group_auth),
    service: ExpenseService = Depends(get_expense_service)
):
    """Net balance per member: positive = is owed money, negative = owes money"""
    return service.get_balances(auth.group_id)
