from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from periods import local_today
from schemas import LoanIn
from services import LoanNotFound, LoanService


def test_create_loan_defaults() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        loan = LoanService(session).create(
            LoanIn(person="  Ravi ", amount=5000, interestRate=2)
        )
        assert loan.person == "Ravi"
        assert loan.interest_rate == 2
        assert loan.paid is False
        assert loan.monthly_paid == 0
        assert loan.start_date == local_today()


def test_create_loan_accepts_snake_case_and_start_date() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        loan = LoanService(session).create(
            LoanIn(
                person="Asha",
                amount=1200,
                interest_rate=1.5,
                monthly_paid=100,
                start_date=date(2025, 2, 1),
            )
        )
        assert loan.start_date == date(2025, 2, 1)
        assert loan.monthly_paid == 100


def test_toggle_flips_paid_back_and_forth() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        service = LoanService(session)
        loan = service.create(LoanIn(person="Ravi", amount=10))

        assert service.toggle_paid(loan.id).paid is True
        assert service.toggle_paid(loan.id).paid is False


def test_toggle_unknown_loan_raises() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        with pytest.raises(LoanNotFound, match="Loan not found"):
            LoanService(session).toggle_paid(42)
