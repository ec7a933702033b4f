from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from interest_accrual import models
from interest_accrual.database import Base
from interest_accrual.services.entity_results import AccrualContext
from interest_accrual.services.fixed_interest_service import (
    ScheduleAdvanceConflict,
    build_fixed_interest_plan,
    execute_fixed_interest_phase,
    load_deposit,
    post_fixed_interest,
)
from interest_accrual.services.rate_resolver import RateQuote

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base.metadata.create_all(bind=engine)

RATE_1_8 = RateQuote(
    rate_id=1,
    rate_code="DEMAND",
    annual_rate_pct=Decimal("1.8"),
    daily_rate=Decimal("0.00005"),
)


def setup_function():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def _seed_company(db):
    company = models.Company(company_code="C001", company_name="Company C001")
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


def _seed_deposit(
    db,
    company_id: int,
    *,
    code: str = "FD-1",
    principal: str = "1000000",
    start: date = date(2024, 1, 1),
    end: date = date(2024, 12, 31),
    term_months: int = 3,
    last_interest_date: date | None = None,
    status=models.FixedDepositStatus.active,
    early_release: bool = False,
    release_date: date | None = None,
):
    deposit = models.FixedDeposit(
        deposit_code=code,
        company_id=company_id,
        principal=Decimal(principal),
        start_date=start,
        end_date=end,
        term_months=term_months,
        status=status,
        early_release=early_release,
        release_date=release_date,
        remaining_amount=Decimal(principal),
        last_interest_date=last_interest_date,
    )
    db.add(deposit)
    db.commit()
    db.refresh(deposit)
    return deposit


def _snapshots(db, code: str = "FD-1"):
    return (
        db.query(models.FixedInterestDetail)
        .filter(models.FixedInterestDetail.deposit_code == code)
        .order_by(models.FixedInterestDetail.interest_date.asc())
        .all()
    )


def _run(db, as_of: date):
    return execute_fixed_interest_phase(AccrualContext(db=db, as_of_date=as_of, rate=RATE_1_8))


def test_not_due_posts_nothing_and_keeps_schedule():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        _seed_deposit(db, company.id, last_interest_date=date(2024, 4, 1))

        phase = _run(db, date(2024, 3, 1))

        assert phase.count("skipped") == 1
        assert phase.results[0].detail == {"reason": "not_due"}
        assert _snapshots(db) == []
        assert load_deposit(db, "FD-1").last_interest_date == date(2024, 4, 1)


def test_null_schedule_reads_as_start_date_and_advances_ninety_days():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        _seed_deposit(db, company.id)

        phase = _run(db, date(2024, 1, 1))

        assert phase.count("posted") == 1
        rows = _snapshots(db)
        assert len(rows) == 1
        row = rows[0]
        assert row.is_estimate is True
        assert row.interest_days == 90
        assert Decimal(row.interest_amount) == Decimal("4500.00")
        assert Decimal(row.current_rate) == Decimal("1.8")
        assert Decimal(row.current_balance) == Decimal("1000000")
        assert load_deposit(db, "FD-1").last_interest_date == date(2024, 3, 31)


def test_short_stub_snaps_next_posting_to_maturity():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        end = date(2024, 12, 31)
        due = end - timedelta(days=80)
        _seed_deposit(db, company.id, end=end, last_interest_date=due)

        phase = _run(db, due)

        assert phase.results[0].detail["next_interest_date"] == end.isoformat()
        assert load_deposit(db, "FD-1").last_interest_date == end


def test_posting_on_maturity_is_final_and_stops_schedule():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        end = date(2024, 12, 31)
        _seed_deposit(db, company.id, end=end, last_interest_date=end)

        phase = _run(db, end)

        assert phase.count("posted") == 1
        rows = _snapshots(db)
        assert [r.is_estimate for r in rows] == [False]
        assert load_deposit(db, "FD-1").last_interest_date == end

        # Nothing further the next day.
        _run(db, end + timedelta(days=1))
        assert len(_snapshots(db)) == 1


def test_full_lifecycle_marks_only_maturity_posting_final():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        start = date(2024, 1, 1)
        end = date(2024, 7, 1)
        _seed_deposit(db, company.id, start=start, end=end, term_months=6)

        day = start
        while day <= end:
            _run(db, day)
            day += timedelta(days=1)

        rows = _snapshots(db)
        assert [r.interest_date for r in rows] == [date(2024, 1, 1), date(2024, 3, 31), end]
        assert [r.is_estimate for r in rows] == [True, True, False]


def test_rerun_same_day_does_not_double_post():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        _seed_deposit(db, company.id, last_interest_date=date(2024, 4, 1))

        first = _run(db, date(2024, 4, 1))
        second = _run(db, date(2024, 4, 1))

        assert first.count("posted") == 1
        assert second.count("posted") == 0
        assert len(_snapshots(db)) == 1


def test_existing_snapshot_for_due_date_is_reused():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        due = date(2024, 4, 1)
        _seed_deposit(db, company.id, last_interest_date=due)
        db.add(
            models.FixedInterestDetail(
                deposit_code="FD-1",
                company_id=company.id,
                interest_date=due,
                current_balance=Decimal("1000000"),
                current_rate=Decimal("1.8"),
                daily_rate=Decimal("0.00005"),
                term_months=3,
                interest_days=90,
                interest_amount=Decimal("4500.00"),
                is_estimate=True,
            )
        )
        db.commit()

        phase = _run(db, due)

        assert phase.count("posted") == 0
        assert len(_snapshots(db)) == 1
        assert load_deposit(db, "FD-1").last_interest_date == due + timedelta(days=90)


def test_schedule_moved_underneath_raises_conflict():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        due = date(2024, 4, 1)
        _seed_deposit(db, company.id, last_interest_date=due)
        deposit = load_deposit(db, "FD-1")

        db.query(models.FixedDeposit).filter(models.FixedDeposit.id == deposit.id).update(
            {"last_interest_date": date(2024, 6, 30)}, synchronize_session=False
        )

        with pytest.raises(ScheduleAdvanceConflict):
            post_fixed_interest(db, deposit=deposit, as_of_date=due, rate=RATE_1_8)
        db.rollback()

        assert _snapshots(db) == []


def test_plan_excludes_early_released_and_inactive_deposits():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        _seed_deposit(db, company.id, code="FD-1")
        _seed_deposit(db, company.id, code="FD-2", status=models.FixedDepositStatus.pending_confirmation)
        _seed_deposit(db, company.id, code="FD-3", status=models.FixedDepositStatus.deleted)
        _seed_deposit(
            db,
            company.id,
            code="FD-4",
            early_release=True,
            release_date=date(2024, 2, 1),
        )

        plan = build_fixed_interest_plan(db, as_of_date=date(2024, 1, 1))
        assert plan.deposit_codes == ["FD-1"]


def test_deposit_invariants_are_enforced_on_insert():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        with pytest.raises(ValueError):
            _seed_deposit(db, company.id, start=date(2024, 2, 1), end=date(2024, 1, 1))
        db.rollback()
        with pytest.raises(ValueError):
            _seed_deposit(db, company.id, early_release=True, release_date=None)
