from datetime import datetime
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class ExpenseCategory(str, Enum):
    food_dining = "Food & Dining"
    transportation = "Transportation"
    shopping = "Shopping"
    entertainment = "Entertainment"
    bills_utilities = "Bills & Utilities"
    healthcare = "Healthcare"
    education = "Education"
    travel = "Travel"
    other = "Other"


class PaymentMethod(str, Enum):
    cash = "Cash"
    credit_card = "Credit Card"
    debit_card = "Debit Card"
    digital_wallet = "Digital Wallet"
    bank_transfer = "Bank Transfer"


EXPENSE_CATEGORY_ENUM = SAEnum(
    ExpenseCategory,
    name="expensecategory",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
)

PAYMENT_METHOD_ENUM = SAEnum(
    PaymentMethod,
    name="paymentmethod",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    monthly_budget_cents: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    expenses: Mapped[list["Expense"]] = relationship(
        "Expense", back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "monthly_budget_cents >= 0", name="ck_user_budget_non_negative"
        ),
    )


class Expense(Base, TimestampMixin):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[ExpenseCategory] = mapped_column(
        EXPENSE_CATEGORY_ENUM, nullable=False
    )
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    payment_method: Mapped[PaymentMethod] = mapped_column(
        PAYMENT_METHOD_ENUM, nullable=False, default=PaymentMethod.credit_card
    )

    user: Mapped["User"] = relationship("User", back_populates="expenses")

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_expense_amount_positive"),
        Index("ix_expenses_user_occurred", "user_id", "occurred_at"),
        Index("ix_expenses_user_category", "user_id", "category"),
    )
