from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class TodoTask(BaseModel):
    task_id: str = Field(default_factory=lambda: uuid4().hex)
    text: str = Field(min_length=1)
    completed: bool = False


def tasks_from_strings(value):
    # Plain strings are accepted as task text
    if isinstance(value, list):
        return [{"text": item} if isinstance(item, str) else item for item in value]
    return value


class TodoCreate(BaseModel):
    title: str = Field(min_length=1)
    tasks: List[TodoTask] = Field(default_factory=list)
    completed: bool = False

    @field_validator("tasks", mode="before")
    @classmethod
    def accept_strings(cls, value):
        return tasks_from_strings(value)


class TodoUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    tasks: Optional[List[TodoTask]] = None
    completed: Optional[bool] = None

    @field_validator("tasks", mode="before")
    @classmethod
    def accept_strings(cls, value):
        return tasks_from_strings(value)


class TodoTaskUpdate(BaseModel):
    task_id: str
    text: Optional[str] = Field(default=None, min_length=1)
    completed: Optional[bool] = None
