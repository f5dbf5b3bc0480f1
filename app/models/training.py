from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator

# Exercises are free-form objects (name, sets, reps, weight, ...)
Exercise = Dict[str, Any]


class TrainingCreate(BaseModel):
    training_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    training_plan: List[Exercise] = Field(min_length=1)
    is_public: bool = False

    @field_validator("training_name", "category")
    @classmethod
    def lower(cls, value: str) -> str:
        return value.strip().lower()


class TrainingPublicUpdate(BaseModel):
    is_public: bool


class TrainingAppend(BaseModel):
    """Exercises to add to an existing plan."""

    training_plan: List[Exercise] = Field(min_length=1)
