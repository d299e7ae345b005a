from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from amounts import format_amount
from assistant import SYSTEM_PROMPT, ExternalAssistant, build_context
from models import Loan, Record
from periods import Bucket, Granularity, group_totals, local_today
from query_router import QueryKind, classify_query
from schemas import LoanIn, RecordIn


logger = logging.getLogger(__name__)

GREETING_REPLY = "Hello! 👋 I'm your finance assistant."
EMPTY_QUERY_REPLY = "Please enter a query."
NO_ASSISTANT_REPLY = "Sorry, I couldn't get a response."


class LoanNotFound(ValueError):
    pass


class RecordService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self, ordered: bool = True) -> list[Record]:
        stmt = select(Record)
        if ordered:
            stmt = stmt.order_by(Record.date)
        return self.session.scalars(stmt).all()

    def get_by_date(self, day: date) -> Optional[Record]:
        stmt = (
            select(Record)
            .where(Record.date == day)
            .execution_options(populate_existing=True)
        )
        return self.session.scalar(stmt)

    def upsert(self, data: RecordIn) -> Record:
        """Insert the record for ``data.date`` or overwrite its amounts.

        Runs as one ``INSERT ... ON CONFLICT (date) DO UPDATE`` statement so two
        writers for the same date cannot both insert.
        """
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            insert = sqlite.insert
        elif dialect == "postgresql":
            insert = postgresql.insert
        else:
            raise ValueError(f"Unsupported database dialect: {dialect}")

        now = datetime.utcnow()
        stmt = insert(Record).values(
            date=data.date,
            income=data.income,
            expense=data.expense,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["date"],
            set_={
                "income": stmt.excluded.income,
                "expense": stmt.excluded.expense,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        self.session.execute(stmt)
        self.session.commit()
        logger.info(f"record_upsert: date={data.date.isoformat()}")
        return self.get_by_date(data.date)

    def totals_for_year(self, year: int) -> Bucket:
        buckets = group_totals(self.list_all(), Granularity.year, f"{year:04d}")
        return buckets.get(str(year), Bucket(str(year)))


class LoanService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[Loan]:
        return self.session.scalars(select(Loan).order_by(Loan.id)).all()

    def get(self, loan_id: int) -> Loan:
        loan = self.session.get(Loan, loan_id)
        if not loan:
            raise LoanNotFound("Loan not found")
        return loan

    def create(self, data: LoanIn) -> Loan:
        loan = Loan(
            person=data.person.strip(),
            amount=data.amount,
            interest_rate=data.interest_rate,
            monthly_paid=data.monthly_paid,
            start_date=data.start_date or local_today(),
        )
        self.session.add(loan)
        self.session.commit()
        self.session.refresh(loan)
        logger.info(f"loan_create: id={loan.id}")
        return loan

    def toggle_paid(self, loan_id: int) -> Loan:
        loan = self.get(loan_id)
        loan.paid = not loan.paid
        self.session.commit()
        self.session.refresh(loan)
        logger.info(f"loan_toggle: id={loan.id} paid={loan.paid}")
        return loan


class ChatbotService:
    def __init__(
        self, session: Session, assistant: Optional[ExternalAssistant] = None
    ) -> None:
        self.session = session
        self.assistant = assistant
        self.records = RecordService(session)
        self.loans = LoanService(session)

    def answer(self, query: Optional[str]) -> str:
        intent = classify_query(query)
        logger.info(f"chatbot_query: kind={intent.kind.value}")

        if intent.kind == QueryKind.empty:
            return EMPTY_QUERY_REPLY
        if intent.kind == QueryKind.greeting:
            return GREETING_REPLY
        if intent.kind == QueryKind.exact_date:
            return self._answer_date(intent.date)
        if intent.kind == QueryKind.year:
            return self._answer_year(intent.year)
        return self._answer_fallback(intent.query)

    def _answer_date(self, day_text: str) -> str:
        try:
            day = date.fromisoformat(day_text)
        except ValueError:
            return f"No records found for {day_text}"
        record = self.records.get_by_date(day)
        if record is None:
            return f"No records found for {day_text}"
        return (
            f"On {day_text}: Income = ₹{format_amount(record.income)}, "
            f"Expense = ₹{format_amount(record.expense)}, "
            f"Balance = ₹{format_amount(record.balance)}"
        )

    def _answer_year(self, year: int) -> str:
        bucket = self.records.totals_for_year(year)
        return (
            f"Year {year}: Income = ₹{format_amount(bucket.income)}, "
            f"Expense = ₹{format_amount(bucket.expense)}, "
            f"Balance = ₹{format_amount(bucket.balance)}"
        )

    def _answer_fallback(self, query: str) -> str:
        if self.assistant is None:
            return f'Sorry, I couldn\'t understand "{query}".'
        context = build_context(self.records.list_all(), self.loans.list_all())
        text = self.assistant.complete(SYSTEM_PROMPT.format(context=context), query)
        return text or NO_ASSISTANT_REPLY
