from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aggregation import StatsSnapshot, summarize_month
from config import get_settings
from errors import (
    DuplicateEmail,
    InvalidCredentials,
    NotFoundError,
    ValidationError,
    WeakInputError,
)
from models import Expense, ExpenseCategory, User
from periods import DateWindow, month_window, resolve_month, to_utc_naive
from schemas import ExpenseIn, ExpenseUpdate, RegisterIn
from security import MAX_PASSWORD_BYTES, hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
MAX_AMOUNT = Decimal("1000000000")


def to_cents(amount: Decimal, label: str = "Amount") -> int:
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{label} cannot exceed {MAX_AMOUNT}")
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_amount(cents: int) -> float:
    return cents / 100


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass
class ExpenseFilters:
    category: Optional[ExpenseCategory] = None
    window: DateWindow = field(default_factory=DateWindow)


@dataclass
class ExpensePage:
    items: list[Expense]
    total_count: int
    total_amount_cents: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit)


class UserService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == normalize_email(email))
        return self.session.scalar(stmt)

    def register(self, data: RegisterIn) -> User:
        name = data.name.strip()
        email = normalize_email(data.email)
        if not name or not email or not data.password:
            raise ValidationError("Please provide name, email, and password")
        if len(data.password) < MIN_PASSWORD_LENGTH:
            raise WeakInputError("Password must be at least 6 characters long")
        if len(data.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise WeakInputError("Password must be at most 72 bytes long")
        monthly_budget = data.monthly_budget or Decimal("0")
        if monthly_budget < 0:
            raise ValidationError("Budget cannot be negative")
        budget_cents = to_cents(monthly_budget, "Budget")
        if self.find_by_email(email) is not None:
            raise DuplicateEmail()

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(data.password),
            monthly_budget_cents=budget_cents,
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            # lost a race against another registration for the same email
            self.session.rollback()
            raise DuplicateEmail() from exc
        self.session.refresh(user)
        logger.info(f"user_registered: user_id={user.id}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        if not email or not email.strip() or not password:
            raise ValidationError("Please provide email and password")
        user = self.find_by_email(email)
        if (
            user is None
            or len(password.encode("utf-8")) > MAX_PASSWORD_BYTES
            or not verify_password(password, user.password_hash)
        ):
            logger.info("login_failed")
            raise InvalidCredentials()
        logger.info(f"login_succeeded: user_id={user.id}")
        return user

    def update_budget(self, user: User, monthly_budget: Decimal) -> User:
        if monthly_budget < 0:
            raise ValidationError("Budget cannot be negative")
        user.monthly_budget_cents = to_cents(monthly_budget, "Budget")
        self.session.commit()
        self.session.refresh(user)
        logger.info(
            f"budget_updated: user_id={user.id} cents={user.monthly_budget_cents}"
        )
        return user


class ExpenseService:
    def __init__(self, session: Session, user_id: int) -> None:
        self.session = session
        self.user_id = user_id
        self.timezone = get_settings().timezone

    def _scoped(self, stmt: Select) -> Select:
        return stmt.where(Expense.user_id == self.user_id)

    @staticmethod
    def _filtered(stmt: Select, filters: ExpenseFilters) -> Select:
        if filters.category is not None:
            stmt = stmt.where(Expense.category == filters.category)
        if filters.window.start is not None:
            stmt = stmt.where(Expense.occurred_at >= filters.window.start)
        if filters.window.end is not None:
            stmt = stmt.where(Expense.occurred_at < filters.window.end)
        return stmt

    @staticmethod
    def _newest_first(stmt: Select) -> Select:
        return stmt.order_by(
            Expense.occurred_at.desc(), Expense.created_at.desc(), Expense.id.desc()
        )

    def list(
        self,
        filters: Optional[ExpenseFilters] = None,
        limit: int = DEFAULT_PAGE_SIZE,
        page: int = 1,
    ) -> ExpensePage:
        filters = filters or ExpenseFilters()
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        page = max(page, 1)

        totals_stmt = self._filtered(
            self._scoped(
                select(
                    func.count(Expense.id),
                    func.coalesce(func.sum(Expense.amount_cents), 0),
                )
            ),
            filters,
        )
        total_count, total_amount = self.session.execute(totals_stmt).one()

        stmt = self._newest_first(
            self._filtered(self._scoped(select(Expense)), filters)
        )
        offset = (page - 1) * limit
        items: list[Expense] = []
        # pages past the end are empty; skip the query so OFFSET stays in range
        if offset < total_count:
            stmt = stmt.offset(offset).limit(limit)
            items = list(self.session.scalars(stmt).all())
        return ExpensePage(
            items=items,
            total_count=int(total_count or 0),
            total_amount_cents=int(total_amount or 0),
            page=page,
            limit=limit,
        )

    def all(self, filters: Optional[ExpenseFilters] = None) -> list[Expense]:
        filters = filters or ExpenseFilters()
        stmt = self._newest_first(
            self._filtered(self._scoped(select(Expense)), filters)
        )
        return list(self.session.scalars(stmt).all())

    def get(self, expense_id: int) -> Expense:
        stmt = self._scoped(select(Expense).where(Expense.id == expense_id))
        expense = self.session.scalar(stmt)
        if expense is None:
            raise NotFoundError("Expense not found")
        return expense

    def create(self, data: ExpenseIn) -> Expense:
        title = data.title.strip()
        if not title:
            raise ValidationError("Please provide title, amount, and category")
        amount_cents = to_cents(data.amount)
        if amount_cents <= 0:
            raise ValidationError("Amount must be greater than 0")

        occurred_at = (
            to_utc_naive(data.date, self.timezone) if data.date else datetime.utcnow()
        )
        expense = Expense(
            user_id=self.user_id,
            title=title,
            amount_cents=amount_cents,
            category=data.category,
            occurred_at=occurred_at,
            description=(data.description or "").strip(),
            payment_method=data.payment_method,
        )
        self.session.add(expense)
        self.session.commit()
        self.session.refresh(expense)
        logger.info(f"expense_created: user_id={self.user_id} expense_id={expense.id}")
        return expense

    def update(self, expense_id: int, data: ExpenseUpdate) -> Expense:
        expense = self.get(expense_id)
        changes = data.model_dump(exclude_unset=True)

        title = None
        if "title" in changes:
            title = (changes["title"] or "").strip()
            if not title:
                raise ValidationError("Title cannot be empty")
        amount_cents = None
        if "amount" in changes:
            amount = changes["amount"]
            amount_cents = to_cents(amount) if amount is not None else 0
            if amount_cents <= 0:
                raise ValidationError("Amount must be greater than 0")

        if title is not None:
            expense.title = title
        if amount_cents is not None:
            expense.amount_cents = amount_cents
        if changes.get("category") is not None:
            expense.category = changes["category"]
        if changes.get("date") is not None:
            expense.occurred_at = to_utc_naive(changes["date"], self.timezone)
        if "description" in changes:
            expense.description = (changes["description"] or "").strip()
        if changes.get("payment_method") is not None:
            expense.payment_method = changes["payment_method"]

        self.session.commit()
        self.session.refresh(expense)
        logger.info(
            f"expense_updated: user_id={self.user_id} expense_id={expense.id} "
            f"fields={','.join(sorted(changes))}"
        )
        return expense

    def delete(self, expense_id: int) -> None:
        expense = self.get(expense_id)
        self.session.delete(expense)
        self.session.commit()
        logger.info(f"expense_deleted: user_id={self.user_id} expense_id={expense_id}")


class StatsService:
    def __init__(self, session: Session, user: User) -> None:
        self.session = session
        self.user = user
        self.timezone = get_settings().timezone

    def snapshot(
        self, month: Optional[str] = None, *, now: Optional[datetime] = None
    ) -> StatsSnapshot:
        target = resolve_month(month, self.timezone, now=now)
        window = month_window(target, self.timezone)
        expenses = ExpenseService(self.session, self.user.id).all(
            ExpenseFilters(window=window)
        )
        return summarize_month(
            expenses, self.user.monthly_budget_cents, window, target.label
        )
