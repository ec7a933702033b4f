from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from interest_accrual import models
from interest_accrual.database import Base
from interest_accrual.services.early_release_service import (
    build_early_release_plan,
    execute_early_release_phase,
)
from interest_accrual.services.entity_results import AccrualContext
from interest_accrual.services.fixed_interest_service import build_fixed_interest_plan, load_deposit
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


def _seed_released_deposit(
    db,
    *,
    code: str = "FD-ER",
    release_date: date = date(2024, 1, 11),
    release_amount: str = "100000",
    status=models.FixedDepositStatus.active,
):
    company = db.query(models.Company).filter(models.Company.company_code == "C001").first()
    if company is None:
        company = models.Company(company_code="C001", company_name="Company C001")
        db.add(company)
        db.flush()
    deposit = models.FixedDeposit(
        deposit_code=code,
        company_id=company.id,
        principal=Decimal("300000"),
        start_date=date(2024, 1, 1),
        end_date=date(2024, 4, 1),
        term_months=3,
        status=status,
        early_release=True,
        release_date=release_date,
        release_amount=Decimal(release_amount),
        remaining_amount=Decimal("200000"),
    )
    db.add(deposit)
    db.commit()
    db.refresh(deposit)
    return deposit


def _settlements(db, code: str = "FD-ER"):
    return (
        db.query(models.EarlyReleaseInterestDetail)
        .filter(models.EarlyReleaseInterestDetail.deposit_code == code)
        .all()
    )


def _run(db, as_of: date):
    return execute_early_release_phase(AccrualContext(db=db, as_of_date=as_of, rate=RATE_1_8))


def test_settles_actual_calendar_days_on_release_amount():
    with TestingSessionLocal() as db:
        _seed_released_deposit(db)

        phase = _run(db, date(2024, 1, 11))

        assert phase.count("posted") == 1
        rows = _settlements(db)
        assert len(rows) == 1
        row = rows[0]
        assert row.interest_days == 10
        assert row.interest_start_date == date(2024, 1, 1)
        assert row.interest_release_date == date(2024, 1, 11)
        # 100,000 * 0.00005 * 10
        assert Decimal(row.interest_amount) == Decimal("50.00")
        assert load_deposit(db, "FD-ER").last_interest_date == date(2024, 1, 11)


def test_rerun_is_a_no_op():
    with TestingSessionLocal() as db:
        _seed_released_deposit(db)

        _run(db, date(2024, 1, 11))
        second = _run(db, date(2024, 1, 12))

        assert second.count("skipped") == 1
        assert second.results[0].detail == {"reason": "already_settled"}
        assert len(_settlements(db)) == 1
        # The closing date stays at the day of settlement.
        assert load_deposit(db, "FD-ER").last_interest_date == date(2024, 1, 11)


def test_future_release_is_not_eligible_yet():
    with TestingSessionLocal() as db:
        _seed_released_deposit(db, release_date=date(2024, 2, 1))

        plan = build_early_release_plan(db, as_of_date=date(2024, 1, 20))
        assert plan.deposit_codes == []

        plan = build_early_release_plan(db, as_of_date=date(2024, 2, 1))
        assert plan.deposit_codes == ["FD-ER"]


def test_inactive_deposit_is_not_settled():
    with TestingSessionLocal() as db:
        _seed_released_deposit(db, status=models.FixedDepositStatus.deleted)

        phase = _run(db, date(2024, 1, 11))

        assert phase.results == []
        assert _settlements(db) == []


def test_released_deposit_never_enters_fixed_schedule():
    with TestingSessionLocal() as db:
        _seed_released_deposit(db)
        _run(db, date(2024, 1, 11))

        plan = build_fixed_interest_plan(db, as_of_date=date(2024, 1, 11))
        assert plan.deposit_codes == []


def test_release_before_start_fails_only_that_deposit():
    with TestingSessionLocal() as db:
        _seed_released_deposit(db, code="FD-BAD", release_date=date(2023, 12, 25))
        _seed_released_deposit(db, code="FD-OK")

        phase = _run(db, date(2024, 1, 11))

        assert phase.failed_ids == ["FD-BAD"]
        assert phase.count("posted") == 1
        assert _settlements(db, "FD-BAD") == []
        assert len(_settlements(db, "FD-OK")) == 1
