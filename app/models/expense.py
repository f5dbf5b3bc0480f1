from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ExpenseCreate(BaseModel):
    item: str = Field(min_length=1)
    price: float = Field(gt=0)
    category: str = Field(min_length=1)
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("item", "category")
    @classmethod
    def lower(cls, value: str) -> str:
        return value.strip().lower()


class ExpenseUpdate(BaseModel):
    item: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = Field(default=None, min_length=1)
    date: Optional[datetime] = None

    @field_validator("item", "category")
    @classmethod
    def lower(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value is not None else value
