from datetime import date

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session

from database import Base
from models import Record
from schemas import RecordIn
from services import RecordService


def test_upsert_by_date_keeps_a_single_row() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        records = RecordService(session)
        records.upsert(RecordIn(date=date(2025, 1, 1), income=10, expense=5))
        records.upsert(RecordIn(date=date(2025, 1, 1), income=10, expense=5))
        stored = records.upsert(RecordIn(date=date(2025, 1, 1), income=20, expense=5))

        assert stored.income == 20
        assert stored.expense == 5
        count = session.scalar(
            select(func.count(Record.id)).where(Record.date == date(2025, 1, 1))
        )
        assert count == 1


def test_upsert_refreshes_previously_loaded_record() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        records = RecordService(session)
        first = records.upsert(RecordIn(date=date(2025, 3, 3), income=1, expense=1))
        second = records.upsert(RecordIn(date=date(2025, 3, 3), income=7, expense=2))

        assert second.id == first.id
        assert first.income == 7


def test_list_all_orders_by_date() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        records = RecordService(session)
        for day in (date(2025, 5, 3), date(2025, 5, 1), date(2025, 5, 2)):
            records.upsert(RecordIn(date=day, income=1, expense=0))

        assert [r.date.day for r in records.list_all()] == [1, 2, 3]


def test_totals_for_year_excludes_other_years() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        records = RecordService(session)
        records.upsert(RecordIn(date=date(2025, 1, 1), income=100, expense=40))
        records.upsert(RecordIn(date=date(2025, 6, 1), income=50, expense=10))
        records.upsert(RecordIn(date=date(2026, 1, 1), income=999, expense=999))

        bucket = records.totals_for_year(2025)
        assert bucket.income == 150
        assert bucket.expense == 50

        empty = records.totals_for_year(2019)
        assert (empty.income, empty.expense) == (0, 0)


def test_totals_for_year_before_1000() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        records = RecordService(session)
        records.upsert(RecordIn(date=date(999, 3, 1), income=5, expense=2))

        bucket = records.totals_for_year(999)
        assert bucket.income == 5
        assert bucket.expense == 2
