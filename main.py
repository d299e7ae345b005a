import logging
from datetime import date
from pathlib import Path
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import (
    HTMLResponse,
    JSONResponse,
    RedirectResponse,
)
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from amounts import format_amount, format_balance, sum_amount_expression
from assistant import ExternalAssistant, get_assistant
from config import get_settings
from csrf import generate_csrf_token, validate_csrf_token
from database import SessionLocal
from periods import (
    Granularity,
    group_totals,
    local_today,
    period_summary,
    unique_years,
)
from schemas import (
    BucketOut,
    ChatbotQuery,
    ChatbotReply,
    LoanIn,
    LoanOut,
    RecordIn,
    RecordOut,
    SliceOut,
    SummaryOut,
)
from services import ChatbotService, LoanNotFound, LoanService, RecordService


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
CHATBOT_ERROR_REPLY = "Server error while processing chatbot request"
DASHBOARD_VIEWS = [g.value for g in Granularity] + ["records"]

app = FastAPI(title="Personal Finance Tracker")
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
templates = Jinja2Templates(directory=BASE_DIR / "templates")

templates.env.filters["amount"] = format_amount
templates.env.globals["balance"] = format_balance
templates.env.globals["csrf_token"] = generate_csrf_token


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@app.on_event("startup")
def startup_event():
    settings = get_settings()
    assistant_state = "enabled" if settings.assistant_api_key else "disabled"
    logger.info(f"startup: assistant={assistant_state}")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Rejected inputs may be non-finite floats, which JSON cannot carry
    detail = [
        {"loc": err["loc"], "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "detail": jsonable_encoder(detail)},
    )


def storage_error(db: Session, message: str) -> JSONResponse:
    db.rollback()
    logger.exception(f"storage_error: {message}")
    return JSONResponse(status_code=500, content={"error": message})


def build_summary(records: list[Any], view: Granularity, ref: Optional[str]) -> SummaryOut:
    buckets = group_totals(records, view, ref)
    return SummaryOut(
        view=view,
        date=ref,
        buckets=[
            BucketOut(
                key=bucket.key,
                income=bucket.income,
                expense=bucket.expense,
                balance=format_balance(bucket.income, bucket.expense),
            )
            for bucket in buckets.values()
        ],
        chart=[
            SliceOut(name=s.name, value=s.value)
            for s in period_summary(records, view, ref)
        ],
        years=unique_years(records),
    )


def render(request: Request, template: str, context: dict[str, object]) -> HTMLResponse:
    return templates.TemplateResponse(request, template, context)


@app.get("/", response_class=HTMLResponse)
def dashboard(request: Request, db: Session = Depends(get_db)):
    view = request.query_params.get("view", Granularity.day.value)
    if view not in DASHBOARD_VIEWS:
        view = Granularity.day.value
    ref = request.query_params.get("date") or None
    if ref is None and view == Granularity.day.value:
        ref = local_today().isoformat()

    records = RecordService(db).list_all()
    if view == "records":
        rows = [
            {"key": r.date.isoformat(), "income": r.income, "expense": r.expense}
            for r in records
        ]
        chart = []
        years = unique_years(records)
    else:
        summary = build_summary(records, Granularity(view), ref)
        rows = [b.model_dump() for b in summary.buckets]
        chart = summary.chart
        years = summary.years
    return render(
        request,
        "dashboard.html",
        {
            "view": view,
            "views": DASHBOARD_VIEWS,
            "ref": ref or "",
            "rows": rows,
            "chart": chart,
            "years": years,
            "today": local_today().isoformat(),
        },
    )


@app.post("/records")
async def submit_record(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    if not validate_csrf_token(form.get("csrf_token", "")):
        raise HTTPException(status_code=400, detail="Invalid CSRF token")
    raw_date = form.get("date", "")
    raw_income = form.get("income", "")
    raw_expense = form.get("expense", "")
    if not raw_date or not raw_income or not raw_expense:
        raise HTTPException(
            status_code=400, detail="Enter income, expense, and date"
        )
    try:
        data = RecordIn(
            date=date.fromisoformat(raw_date),
            income=sum_amount_expression(raw_income),
            expense=sum_amount_expression(raw_expense),
        )
    except (ValueError, ValidationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    try:
        RecordService(db).upsert(data)
    except SQLAlchemyError:
        return storage_error(db, "Failed to save record")
    return RedirectResponse(url=request.app.url_path_for("dashboard"), status_code=303)


@app.get("/api/records", response_model=list[RecordOut])
def api_list_records(db: Session = Depends(get_db)):
    try:
        return RecordService(db).list_all()
    except SQLAlchemyError:
        return storage_error(db, "Failed to fetch records")


@app.post("/api/records", response_model=RecordOut)
def api_save_record(payload: RecordIn, db: Session = Depends(get_db)):
    try:
        return RecordService(db).upsert(payload)
    except SQLAlchemyError:
        return storage_error(db, "Failed to save record")


@app.get("/api/summary", response_model=SummaryOut)
def api_summary(
    view: Granularity = Granularity.day,
    ref: Optional[str] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
):
    try:
        records = RecordService(db).list_all()
    except SQLAlchemyError:
        return storage_error(db, "Failed to fetch records")
    return build_summary(records, view, ref)


@app.get("/api/loans", response_model=list[LoanOut])
def api_list_loans(db: Session = Depends(get_db)):
    try:
        return LoanService(db).list_all()
    except SQLAlchemyError:
        return storage_error(db, "Failed to fetch loans")


@app.post("/api/loans", response_model=LoanOut)
def api_create_loan(payload: LoanIn, db: Session = Depends(get_db)):
    try:
        return LoanService(db).create(payload)
    except SQLAlchemyError:
        return storage_error(db, "Failed to save loan")


@app.put("/api/loans/{loan_id}/toggle", response_model=LoanOut)
def api_toggle_loan(loan_id: int, db: Session = Depends(get_db)):
    try:
        return LoanService(db).toggle_paid(loan_id)
    except LoanNotFound as exc:
        return JSONResponse(status_code=404, content={"error": str(exc)})
    except SQLAlchemyError:
        return storage_error(db, "Failed to toggle loan status")


@app.post("/api/chatbot", response_model=ChatbotReply)
def api_chatbot(
    payload: ChatbotQuery,
    db: Session = Depends(get_db),
    assistant: Optional[ExternalAssistant] = Depends(get_assistant),
):
    try:
        reply = ChatbotService(db, assistant).answer(payload.query)
    except Exception:
        db.rollback()
        logger.exception("chatbot_error")
        return JSONResponse(status_code=500, content={"reply": CHATBOT_ERROR_REPLY})
    return ChatbotReply(reply=reply)


def main():
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port, reload=False)


if __name__ == "__main__":
    main()
