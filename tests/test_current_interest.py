from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from interest_accrual import models
from interest_accrual.database import Base
from interest_accrual.services import current_interest_service
from interest_accrual.services.current_interest_service import (
    accumulate_current_balance,
    build_current_interest_plan,
    execute_current_interest_phase,
    iter_qualifying_movements,
)
from interest_accrual.services.entity_results import AccrualContext
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


def _seed_company(db, code: str = "C001", status=models.CompanyStatus.active):
    company = models.Company(company_code=code, company_name=f"Company {code}", status=status)
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


def _seed_transfer(db, company_id: int, amount: str, on: date, transfer_type=models.TransferType.up):
    db.add(
        models.FundTransfer(
            transfer_code=f"FT-{company_id}-{on.isoformat()}-{amount}",
            company_id=company_id,
            transfer_amount=Decimal(amount),
            transfer_type=transfer_type,
            transfer_date=on,
        )
    )
    db.commit()


def _seed_receipt(db, company_id: int, amount: str | None, on: date, receive_type=models.ReceiveType.bank):
    db.add(
        models.PaymentReceipt(
            company_id=company_id,
            receive_type=receive_type,
            receive_date=on,
            bill_amount=Decimal(amount or "0"),
            account_amount=Decimal(amount) if amount is not None else None,
        )
    )
    db.commit()


def _postings(db, company_id: int):
    return (
        db.query(models.CurrentInterestDetail)
        .filter(models.CurrentInterestDetail.company_id == company_id)
        .order_by(models.CurrentInterestDetail.interest_date.asc())
        .all()
    )


def test_end_to_end_balance_and_interest():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        _seed_transfer(db, company.id, "200000", date(2024, 1, 1))
        _seed_receipt(db, company.id, "50000", date(2024, 1, 2))

        ctx = AccrualContext(db=db, as_of_date=date(2024, 1, 2), rate=RATE_1_8)
        phase = execute_current_interest_phase(ctx)

        assert phase.count("posted") == 1
        rows = _postings(db, company.id)
        assert len(rows) == 1
        assert Decimal(rows[0].current_balance) == Decimal("250000")
        assert Decimal(rows[0].daily_interest) == Decimal("12.50")


def test_rerun_same_date_is_idempotent():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        _seed_transfer(db, company.id, "200000", date(2024, 1, 1))

        ctx = AccrualContext(db=db, as_of_date=date(2024, 1, 2), rate=RATE_1_8)
        first = execute_current_interest_phase(ctx)
        second = execute_current_interest_phase(ctx)

        assert first.count("posted") == 1
        assert second.count("updated") == 1
        rows = _postings(db, company.id)
        assert len(rows) == 1
        assert Decimal(rows[0].current_balance) == Decimal("200000")
        assert Decimal(rows[0].daily_interest) == Decimal("10.00")


def test_full_recompute_picks_up_back_dated_movements():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        _seed_transfer(db, company.id, "1000", date(2024, 1, 1))

        ctx = AccrualContext(db=db, as_of_date=date(2024, 1, 3), rate=RATE_1_8)
        execute_current_interest_phase(ctx)
        assert Decimal(_postings(db, company.id)[0].current_balance) == Decimal("1000")

        _seed_receipt(db, company.id, "500", date(2024, 1, 3))
        execute_current_interest_phase(ctx)

        rows = _postings(db, company.id)
        assert len(rows) == 1
        assert Decimal(rows[0].current_balance) == Decimal("1500")


def test_only_up_transfers_and_bank_receipts_qualify():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        as_of = date(2024, 2, 1)
        _seed_transfer(db, company.id, "1000", date(2024, 1, 1))
        _seed_transfer(db, company.id, "300", date(2024, 1, 5), transfer_type=models.TransferType.down)
        _seed_receipt(db, company.id, "200", date(2024, 1, 6))
        _seed_receipt(db, company.id, "700", date(2024, 1, 7), receive_type=models.ReceiveType.bill)
        _seed_receipt(db, company.id, None, date(2024, 1, 8))
        # After the accrual date.
        _seed_transfer(db, company.id, "9999", date(2024, 2, 2))

        kinds = sorted(m.kind for m in iter_qualifying_movements(db, company.id, as_of))
        assert kinds == ["bank", "bank", "up"]
        assert accumulate_current_balance(db, company.id, as_of) == Decimal("1200.00")


def test_plan_skips_disabled_companies():
    with TestingSessionLocal() as db:
        active = _seed_company(db, "C001")
        _seed_company(db, "C002", status=models.CompanyStatus.disabled)

        plan = build_current_interest_plan(db, as_of_date=date(2024, 1, 2))
        assert plan.company_ids == [active.id]


def test_failing_company_does_not_block_the_others(monkeypatch):
    with TestingSessionLocal() as db:
        good = _seed_company(db, "C001")
        bad = _seed_company(db, "C002")
        _seed_transfer(db, good.id, "1000", date(2024, 1, 1))
        _seed_transfer(db, bad.id, "1000", date(2024, 1, 1))

        real = current_interest_service.accumulate_current_balance

        def _flaky(db_, company_id, as_of_date):
            if company_id == bad.id:
                raise ValueError("malformed movement")
            return real(db_, company_id, as_of_date)

        monkeypatch.setattr(current_interest_service, "accumulate_current_balance", _flaky)

        ctx = AccrualContext(db=db, as_of_date=date(2024, 1, 2), rate=RATE_1_8)
        phase = execute_current_interest_phase(ctx)

        assert phase.count("posted") == 1
        assert phase.failed_ids == [str(bad.id)]
        assert "malformed movement" in phase.results[1].error
        assert len(_postings(db, good.id)) == 1
        assert _postings(db, bad.id) == []


def test_dry_run_writes_nothing():
    with TestingSessionLocal() as db:
        company = _seed_company(db)
        _seed_transfer(db, company.id, "1000", date(2024, 1, 1))

        ctx = AccrualContext(db=db, as_of_date=date(2024, 1, 2), rate=RATE_1_8, dry_run=True)
        phase = execute_current_interest_phase(ctx)

        assert phase.count("posted") == 1
        assert _postings(db, company.id) == []
