from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import server_errors
from app.dependencies import get_current_user_id, get_todo_gateway
from app.models.todo import TodoCreate, TodoTaskUpdate, TodoUpdate
from app.services.gateway import CachedQueryGateway, NotFoundError

router = APIRouter()


@router.post("/")
def create_todo(
    todo: TodoCreate,
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_todo_gateway),
):
    with server_errors("Error while creating todo"):
        created = gateway.create(user_id, todo.model_dump())
    return {"success": True, "message": "Todo created successfully", "todo": created}


@router.get("/")
def list_todos(
    limit: Optional[int] = None,
    page: Optional[int] = None,
    sort_by: str = "created_at",
    order: Literal["asc", "desc"] = "desc",
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_todo_gateway),
):
    with server_errors("Error while getting todos"):
        result = gateway.list(user_id, limit=limit, page=page, sort_by=sort_by, order=order)

    if result.cached:
        return {
            "success": True,
            "message": "Todos retrieved from cache successfully",
            "todo_data": result.records,
        }
    return {
        "success": True,
        "message": "Todos retrieved successfully",
        "user_id": user_id,
        "total_todo": len(result.records),
        "todo_data": result.records,
    }


@router.put("/{todo_id}")
def update_todo(
    todo_id: str,
    todo_update: TodoUpdate,
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_todo_gateway),
):
    changes = todo_update.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(
            status_code=400,
            detail="At least one field (title, tasks, or completed) is required to update",
        )

    with server_errors("Error while updating todo"):
        updated = gateway.update(user_id, todo_id, changes)
    return {"success": True, "message": "Todo updated successfully", "todo": updated}


@router.patch("/{todo_id}")
def update_todo_task(
    todo_id: str,
    task_update: TodoTaskUpdate,
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_todo_gateway),
):
    fields = task_update.model_dump(exclude_none=True, exclude={"task_id"})
    if not fields:
        raise HTTPException(status_code=400, detail="Task text or completed is required to update")

    def patch_task(record: dict) -> dict:
        tasks = [dict(task) for task in record.get("tasks") or []]
        for task in tasks:
            if task.get("task_id") == task_update.task_id:
                task.update(fields)
                return {"tasks": tasks}
        raise NotFoundError("Task not found")

    with server_errors("Error while updating todo task"):
        updated = gateway.update(user_id, todo_id, patch_task)
    return {"success": True, "message": "Task updated successfully", "todo": updated}


@router.delete("/task/{task_id}")
def delete_todo_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_todo_gateway),
):
    with server_errors("Error while deleting todo task"):
        owner_todos = gateway.store.find({"user_id": user_id})
        todo = next(
            (t for t in owner_todos if any(task.get("task_id") == task_id for task in t.get("tasks") or [])),
            None,
        )
        if todo is None:
            raise NotFoundError("Task not found")

        updated = gateway.update(
            user_id,
            todo["id"],
            lambda record: {"tasks": [t for t in record.get("tasks") or [] if t.get("task_id") != task_id]},
        )
    return {"success": True, "message": "Task deleted successfully", "todo": updated}


@router.delete("/{todo_id}")
def delete_todo(
    todo_id: str,
    user_id: str = Depends(get_current_user_id),
    gateway: CachedQueryGateway = Depends(get_todo_gateway),
):
    with server_errors("Error while deleting todo"):
        gateway.delete(user_id, todo_id)
    return {"success": True, "message": "Todo deleted successfully"}
