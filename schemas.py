from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models import ExpenseCategory, PaymentMethod


class RegisterIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=254)
    password: str
    monthly_budget: Optional[Decimal] = Field(default=None, alias="monthlyBudget")


class LoginIn(BaseModel):
    email: str
    password: str


class BudgetIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    monthly_budget: Decimal = Field(..., alias="monthlyBudget")


class ExpenseIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(..., max_length=100)
    amount: Decimal
    category: ExpenseCategory
    date: Optional[datetime] = None
    description: Optional[str] = Field(default=None, max_length=500)
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.credit_card, alias="paymentMethod"
    )


class ExpenseUpdate(BaseModel):
    """Partial update. Only fields present in the payload are applied."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, max_length=100)
    amount: Optional[Decimal] = None
    category: Optional[ExpenseCategory] = None
    date: Optional[datetime] = None
    description: Optional[str] = Field(default=None, max_length=500)
    payment_method: Optional[PaymentMethod] = Field(
        default=None, alias="paymentMethod"
    )
