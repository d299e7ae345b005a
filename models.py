from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base
from periods import local_today


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Record(Base, TimestampMixin):
    __tablename__ = "records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    income: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    expense: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("date", name="uq_records_date"),
        CheckConstraint("income >= 0", name="ck_records_income_positive"),
        CheckConstraint("expense >= 0", name="ck_records_expense_positive"),
    )

    @property
    def balance(self) -> float:
        return self.income - self.expense


class Loan(Base, TimestampMixin):
    __tablename__ = "loans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    person: Mapped[str] = mapped_column(String(120), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    # Percent per month. Stored and exposed only; nothing accrues interest.
    interest_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    monthly_paid: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, default=local_today)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_loans_amount_positive"),
    )
