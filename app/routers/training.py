import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.errors import server_errors
from app.dependencies import get_current_user_id, get_is_admin, get_training_gateway
from app.models.training import TrainingAppend, TrainingCreate, TrainingPublicUpdate
from app.services.gateway import CachedQueryGateway, ForbiddenError

router = APIRouter()
logger = logging.getLogger(__name__)


def plan_authorizer(user_id: str, is_admin: bool, action: str):
    """
    Public plans may only be changed by admins; private plans only by
    their owner.
    """

    def check(record: dict) -> None:
        if record.get("is_public"):
            if not is_admin:
                raise ForbiddenError(f"Only admins can {action} public training data.")
        elif record.get("user_id") != user_id:
            raise ForbiddenError(f"You are not authorized to {action} this training.")

    return check


@router.post("/")
def create_training(
    training: TrainingCreate,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    gateway: CachedQueryGateway = Depends(get_training_gateway),
):
    data = training.model_dump()
    if not is_admin:
        data["is_public"] = False

    with server_errors("Error while creating training"):
        created = gateway.create(user_id, data)
    logger.info(f"Created training {created['id']} for user {user_id} (public={data['is_public']})")
    return {
        "success": True,
        "message": "Training plan created successfully",
        "training": created,
    }


@router.get("/")
def list_training(
    limit: Optional[int] = None,
    page: Optional[int] = None,
    sort_by: str = "created_at",
    order: Literal["asc", "desc"] = "desc",
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_training_gateway),
):
    with server_errors("Error while getting training"):
        result = gateway.list(user_id, limit=limit, page=page, sort_by=sort_by, order=order)

    if result.cached:
        return {
            "success": True,
            "message": "Training retrieved from cache successfully",
            "training_data": result.records,
        }
    return {
        "success": True,
        "message": "Training data retrieved successfully",
        "user_id": user_id,
        "total_data": len(result.records),
        "training_data": result.records,
    }


@router.get("/public")
def list_public_training(
    limit: int = 10,
    page: int = 1,
    sort_by: str = "created_at",
    order: Literal["asc", "desc"] = "desc",
    gateway: CachedQueryGateway = Depends(get_training_gateway),
):
    """Public plans from every user. Not cached."""
    with server_errors("Error while getting public training data"):
        result = gateway.list_page({"is_public": True}, limit=limit, page=page, sort_by=sort_by, order=order)
    return {
        "success": True,
        "message": "All public training data retrieved successfully",
        "total": result.total,
        "total_pages": result.total_pages,
        "current_page": result.current_page,
        "training_data": result.records,
    }


@router.patch("/{training_id}")
def update_public_field(
    training_id: str,
    update: TrainingPublicUpdate,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    gateway: CachedQueryGateway = Depends(get_training_gateway),
):
    if not is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can update public training data.",
        )

    with server_errors("Error while updating training"):
        updated = gateway.update(
            user_id, training_id, {"is_public": update.is_public}, authorize=lambda record: None
        )
    logger.info(f"Admin {user_id} set is_public={update.is_public} on training {training_id}")
    return {
        "success": True,
        "message": "Training updated successfully",
        "training": updated,
    }


@router.put("/{training_id}")
def add_to_training(
    training_id: str,
    addition: TrainingAppend,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    gateway: CachedQueryGateway = Depends(get_training_gateway),
):
    """Append exercises to an existing plan."""

    def append(record: dict) -> dict:
        return {"training_plan": list(record.get("training_plan") or []) + addition.training_plan}

    with server_errors("Error while updating training"):
        updated = gateway.update(
            user_id, training_id, append, authorize=plan_authorizer(user_id, is_admin, "update")
        )
    return {
        "success": True,
        "message": "Training updated successfully",
        "training": updated,
    }


@router.delete("/{training_id}")
def delete_training(
    training_id: str,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    gateway: CachedQueryGateway = Depends(get_training_gateway),
):
    with server_errors("Error while deleting training"):
        gateway.delete(user_id, training_id, authorize=plan_authorizer(user_id, is_admin, "delete"))
    return {"success": True, "message": "Training deleted successfully"}
