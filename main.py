import logging
import tomllib
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from sqlalchemy.orm import Session

from auth import InvalidToken, resolve_user_id
from csv_utils import export_expenses
from database import get_db
from errors import ExpenseNotFound, ReportValidationError, StorageError
from schemas import ExpenseIn, ExpenseListQuery, ExpenseOut, ExpenseUpdateIn, QuickExpenseIn
from services import ExpenseService, QuickAddService, ReportService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _load_app_version() -> str:
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()

app = FastAPI(title="Expense Tracker", version=APP_VERSION)


def _error_messages(exc: ValidationError) -> list[str]:
    return [err["msg"] for err in exc.errors()]


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            {
                "detail": "Validation error",
                "errors": [err["msg"] for err in exc.errors()],
            }
        ),
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(
        "storage_error: path=%s error=%s", request.url.path, exc.__cause__ or exc
    )
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def current_user_id(authorization: Optional[str] = Header(default=None)) -> int:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail="Access denied. No token provided or invalid format.",
        )
    token = authorization[len("Bearer ") :].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")
    try:
        return resolve_user_id(token)
    except InvalidToken as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


@app.get("/api/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


@app.get("/api/expenses")
def list_expenses(
    request: Request,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
):
    params = request.query_params
    try:
        query = ExpenseListQuery(
            page=params.get("page") or 1,
            limit=params.get("limit") or 10,
            category=params.get("category") or None,
            start_date=params.get("startDate") or None,
            end_date=params.get("endDate") or None,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=_error_messages(exc)) from exc

    result = ExpenseService(db, user_id).list(query)
    result["items"] = [ExpenseOut.from_model(e) for e in result["items"]]
    return result


@app.post("/api/expenses", status_code=201)
def create_expense(
    data: ExpenseIn,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
):
    expense = ExpenseService(db, user_id).create(data)
    logger.info(
        "expense_created: user_id=%s expense_id=%s category=%s",
        user_id,
        expense.id,
        expense.category.value,
    )
    return ExpenseOut.from_model(expense)


@app.post("/api/expenses/quick", status_code=201)
def quick_add_expense(
    data: QuickExpenseIn,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
):
    try:
        expense = QuickAddService(db, user_id).add(data)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=_error_messages(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info(
        "expense_quick_added: user_id=%s expense_id=%s category=%s",
        user_id,
        expense.id,
        expense.category.value,
    )
    return ExpenseOut.from_model(expense)


@app.get("/api/expenses/stats")
def expense_stats(
    db: Session = Depends(get_db), user_id: int = Depends(current_user_id)
):
    return ExpenseService(db, user_id).stats()


@app.get("/api/expenses/export.csv")
def export_expenses_csv(
    db: Session = Depends(get_db), user_id: int = Depends(current_user_id)
):
    expenses = ExpenseService(db, user_id).store.find_all()
    return Response(
        content=export_expenses(expenses),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=expenses.csv"},
    )


@app.get("/api/expenses/{expense_id}")
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
):
    try:
        expense = ExpenseService(db, user_id).get(expense_id)
    except ExpenseNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return ExpenseOut.from_model(expense)


@app.put("/api/expenses/{expense_id}")
def update_expense(
    expense_id: int,
    data: ExpenseUpdateIn,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
):
    try:
        expense = ExpenseService(db, user_id).update(expense_id, data)
    except ExpenseNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logger.info("expense_updated: user_id=%s expense_id=%s", user_id, expense_id)
    return ExpenseOut.from_model(expense)


@app.delete("/api/expenses/{expense_id}")
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
):
    try:
        expense = ExpenseService(db, user_id).delete(expense_id)
    except ExpenseNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logger.info("expense_deleted: user_id=%s expense_id=%s", user_id, expense_id)
    return ExpenseOut.from_model(expense)


@app.get("/api/reports/category")
def category_report(
    request: Request,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
):
    try:
        return ReportService(db, user_id).category_report(
            request.query_params.get("startDate"),
            request.query_params.get("endDate"),
        )
    except ReportValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/reports/monthly")
def monthly_report(
    request: Request,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
):
    try:
        return ReportService(db, user_id).monthly_report(
            request.query_params.get("year")
        )
    except ReportValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/reports/trends")
def trend_report(
    request: Request,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
):
    return ReportService(db, user_id).trend_report(request.query_params.get("days"))


@app.get("/api/reports/summary")
def summary_report(
    db: Session = Depends(get_db), user_id: int = Depends(current_user_id)
):
    return ReportService(db, user_id).summary_report()
