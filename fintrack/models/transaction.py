import uuid

from sqlalchemy import Column, String, Numeric, Date, DateTime, Text, UniqueConstraint, func
from fintrack.core.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)

    type = Column(String(10), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    category = Column(String, index=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    source = Column(String, nullable=True)

    date = Column(Date, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Budget(Base):
    __tablename__ = "budgets"
    __table_args__ = (UniqueConstraint("user_id", "category", name="uq_budgets_user_category"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)

    category = Column(String, nullable=False)
    limit_amount = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
