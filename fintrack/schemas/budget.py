from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List
from datetime import date, datetime
from decimal import Decimal

class BudgetSet(BaseModel):
    category: str = Field(..., min_length=1)
    limit_amount: Decimal = Field(..., ge=0, decimal_places=2)

    @field_validator("category")
    @classmethod
    def category_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Select a category")
        return v

class BudgetResponse(BaseModel):
    id: str
    user_id: str
    category: str
    limit_amount: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class BudgetStatus(BaseModel):
    category: str
    limit: Decimal
    spent: Decimal
    percent_used: int
    exceeded: bool
    remaining: Decimal

class BudgetOverview(BaseModel):
    start: date
    end: date
    budgets: List[BudgetStatus]
    overall: BudgetStatus
