from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date
from decimal import Decimal

class Summary(BaseModel):
    """Totals over a transaction set. ``savings`` equals ``balance``."""
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    savings: Decimal

class CategoryBucket(BaseModel):
    name: str
    value: Decimal
    color: str

class MonthBucket(BaseModel):
    month: str
    key: str
    income: Decimal
    expense: Decimal

class DailyBucket(BaseModel):
    date: str
    income: Decimal
    expense: Decimal

class ExpenseItem(BaseModel):
    id: Optional[str] = None
    date: str
    category: str
    description: str
    amount: Decimal

class ReportResponse(BaseModel):
    start: date
    end: date
    count: int
    summary: Summary
    savings_rate: int
    category_expenses: List[CategoryBucket]
    income_sources: List[CategoryBucket]
    monthly: List[MonthBucket]
    daily: List[DailyBucket]
    top_expenses: List[ExpenseItem]

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "start": "2025-02-01",
            "end": "2025-02-28",
            "count": 3,
            "summary": {"total_income": "5000", "total_expense": "1550", "balance": "3450", "savings": "3450"},
            "savings_rate": 69,
            "category_expenses": [{"name": "Rent", "value": "1200", "color": "hsl(217, 70%, 55%)"}],
            "income_sources": [{"name": "Salary", "value": "5000", "color": "hsl(152, 60%, 42%)"}],
            "monthly": [{"month": "Feb", "key": "2025-02", "income": "5000", "expense": "1550"}],
            "daily": [{"date": "2025-02-01", "income": "5000", "expense": "0"}],
            "top_expenses": [{"id": "9b2f0c1e-7a61-4c1d-9a52-3f6d2e8b1c44", "date": "2025-02-02", "category": "Rent",
                              "description": "Monthly rent", "amount": "1200"}],
        }
    })
