import logging
from datetime import timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session

from auth import get_current_user
from aggregation import StatsSnapshot
from config import get_settings
from csv_utils import export_expenses
from database import get_db, storage_errors
from errors import AuthError, TrackerError, ValidationError
from models import Expense, ExpenseCategory, User
from periods import resolve_range
from schemas import BudgetIn, ExpenseIn, ExpenseUpdate, LoginIn, RegisterIn
from security import issue_token
from services import (
    DEFAULT_PAGE_SIZE,
    ExpenseFilters,
    ExpenseService,
    StatsService,
    UserService,
    cents_to_amount,
)

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()

app = FastAPI(title="Expense Tracker API", version=APP_VERSION)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event():
    logger.info(f"startup: version={APP_VERSION} timezone={settings.timezone}")


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code, content={"message": exc.message}, headers=headers
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(status_code=400, content={"message": message})


def user_view(user: User) -> dict[str, object]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "monthlyBudget": cents_to_amount(user.monthly_budget_cents),
    }


def expense_view(expense: Expense) -> dict[str, object]:
    return {
        "id": expense.id,
        "title": expense.title,
        "amount": cents_to_amount(expense.amount_cents),
        "category": expense.category.value,
        "date": expense.occurred_at.replace(tzinfo=timezone.utc).isoformat(),
        "description": expense.description,
        "paymentMethod": expense.payment_method.value,
        "createdAt": expense.created_at.replace(tzinfo=timezone.utc).isoformat(),
        "updatedAt": expense.updated_at.replace(tzinfo=timezone.utc).isoformat(),
    }


def stats_view(snapshot: StatsSnapshot) -> dict[str, object]:
    return {
        "month": snapshot.month,
        "monthlyTotal": cents_to_amount(snapshot.monthly_total_cents),
        "monthlyBudget": cents_to_amount(snapshot.monthly_budget_cents),
        "categoryBreakdown": [
            {
                "category": item.category.value,
                "total": cents_to_amount(item.total_cents),
                "count": item.count,
            }
            for item in snapshot.category_breakdown
        ],
        "budgetRemaining": cents_to_amount(snapshot.budget_remaining_cents),
    }


def filters_from_request(request: Request) -> ExpenseFilters:
    category_param = request.query_params.get("category")
    category = None
    if category_param and category_param != "all":
        try:
            category = ExpenseCategory(category_param)
        except ValueError as exc:
            raise ValidationError(f"Invalid category: {category_param}") from exc
    window = resolve_range(
        request.query_params.get("startDate"),
        request.query_params.get("endDate"),
        settings.timezone,
    )
    return ExpenseFilters(category=category, window=window)


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer") from exc


@app.get("/")
def home():
    return {"message": "Expense Tracker API"}


@app.post("/api/auth/register", status_code=201)
def register(data: RegisterIn, db: Session = Depends(get_db)):
    with storage_errors("during registration"):
        user = UserService(db).register(data)
    return {
        "message": "User created successfully",
        "token": issue_token(user.id),
        "user": user_view(user),
    }


@app.post("/api/auth/login")
def login(data: LoginIn, db: Session = Depends(get_db)):
    with storage_errors("during login"):
        user = UserService(db).authenticate(data.email, data.password)
    return {
        "message": "Login successful",
        "token": issue_token(user.id),
        "user": user_view(user),
    }


@app.get("/api/auth/me")
def me(user: User = Depends(get_current_user)):
    return {"user": user_view(user)}


@app.put("/api/auth/budget")
def update_budget(
    data: BudgetIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    with storage_errors("updating budget"):
        user = UserService(db).update_budget(user, data.monthly_budget)
    return {
        "message": "Budget updated successfully",
        "monthlyBudget": cents_to_amount(user.monthly_budget_cents),
        "user": user_view(user),
    }


@app.get("/api/expenses")
def list_expenses(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    filters = filters_from_request(request)
    limit = _int_param(request, "limit", DEFAULT_PAGE_SIZE)
    page = _int_param(request, "page", 1)
    with storage_errors("fetching expenses"):
        result = ExpenseService(db, user.id).list(filters, limit=limit, page=page)
    return {
        "expenses": [expense_view(expense) for expense in result.items],
        "totalExpenses": result.total_count,
        "totalAmount": cents_to_amount(result.total_amount_cents),
        "currentPage": result.page,
        "totalPages": result.total_pages,
    }


@app.post("/api/expenses", status_code=201)
def add_expense(
    data: ExpenseIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    with storage_errors("adding expense"):
        expense = ExpenseService(db, user.id).create(data)
    return {"message": "Expense added successfully", "expense": expense_view(expense)}


@app.get("/api/expenses/stats")
def expense_stats(
    month: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    with storage_errors("fetching statistics"):
        snapshot = StatsService(db, user).snapshot(month)
    return stats_view(snapshot)


@app.get("/api/expenses/export.csv")
def export_expenses_endpoint(
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    filters = filters_from_request(request)
    with storage_errors("exporting expenses"):
        expenses = ExpenseService(db, user.id).all(filters)
    csv_text = export_expenses(expenses)
    filename = f"expenses_{user.id}.csv"
    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/expenses/{expense_id}")
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    with storage_errors("fetching expense"):
        expense = ExpenseService(db, user.id).get(expense_id)
    return {"expense": expense_view(expense)}


@app.put("/api/expenses/{expense_id}")
def update_expense(
    expense_id: int,
    data: ExpenseUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    with storage_errors("updating expense"):
        expense = ExpenseService(db, user.id).update(expense_id, data)
    return {"message": "Expense updated successfully", "expense": expense_view(expense)}


@app.delete("/api/expenses/{expense_id}")
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    with storage_errors("deleting expense"):
        ExpenseService(db, user.id).delete(expense_id)
    return {"message": "Expense deleted successfully"}


def main():
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    main()
