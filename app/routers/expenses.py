import logging
from typing import List, Literal, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException

from app.core.errors import server_errors
from app.dependencies import get_current_user_id, get_expense_gateway
from app.models.expense import ExpenseCreate, ExpenseUpdate
from app.services.gateway import CachedQueryGateway

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/")
def create_expense(
    payload: Union[List[ExpenseCreate], ExpenseCreate] = Body(...),
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_expense_gateway),
):
    """
    Create one expense, or a batch when the body is a list.
    A batch with any invalid item is rejected whole.
    """
    with server_errors("Error while creating expense"):
        if isinstance(payload, list):
            expenses = gateway.create_many(user_id, [e.model_dump(mode="json") for e in payload])
            logger.info(f"Created {len(expenses)} expenses for user {user_id}")
            return {
                "success": True,
                "message": "Expenses created successfully",
                "expenses": expenses,
            }

        expense = gateway.create(user_id, payload.model_dump(mode="json"))
        logger.info(f"Created expense {expense['id']} for user {user_id}")
        return {
            "success": True,
            "message": "Expense created successfully",
            "expense": expense,
        }


@router.get("/")
def list_expenses(
    limit: Optional[int] = None,
    page: Optional[int] = None,
    sort_by: str = "date",
    order: Literal["asc", "desc"] = "desc",
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_expense_gateway),
):
    with server_errors("Error while getting all expenses"):
        result = gateway.list(user_id, limit=limit, page=page, sort_by=sort_by, order=order)

    if result.cached:
        return {
            "success": True,
            "message": "Expenses retrieved from cache successfully",
            "expense_data": result.records,
        }
    return {
        "success": True,
        "message": "Expenses retrieved successfully",
        "user_id": user_id,
        "total_expense": len(result.records),
        "expense_data": result.records,
    }


@router.put("/{expense_id}")
def update_expense(
    expense_id: str,
    expense_update: ExpenseUpdate,
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_expense_gateway),
):
    changes = expense_update.model_dump(mode="json", exclude_none=True)
    if not changes:
        raise HTTPException(
            status_code=400,
            detail="At least one field (item, price, category, or date) is required to update",
        )

    with server_errors("Error while updating expense"):
        expense = gateway.update(user_id, expense_id, changes)
    return {
        "success": True,
        "message": "Expense updated successfully",
        "expense": expense,
    }


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: str,
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_expense_gateway),
):
    with server_errors("Error while deleting expense"):
        gateway.delete(user_id, expense_id)
    return {"success": True, "message": "Expense deleted successfully"}
