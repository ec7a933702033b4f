#!/usr/bin/env python3
"""
Reset development database - creates fresh schema and seeds a demo cash pool.
Run from the project root.
"""
import os
from datetime import date
from decimal import Decimal
from pathlib import Path

project_dir = Path(__file__).parent
os.chdir(project_dir)

# Force load .env before importing package modules
from dotenv import load_dotenv

load_dotenv(project_dir / ".env", override=True)

# Always target the local sqlite dev DB for this script.
os.environ["DATABASE_URL"] = "sqlite:///./interest-accrual-dev.db"

from interest_accrual import models  # noqa: E402
from interest_accrual.database import Base, SessionLocal, engine  # noqa: E402


def main():
    db_path = project_dir / "interest-accrual-dev.db"

    if db_path.exists():
        print(f"Removing existing database: {db_path}")
        db_path.unlink()

    # Alembic stays usable afterwards through the SQLite auto-stamp in alembic/env.py.
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        pool = models.Company(company_code="POOL", company_name="Group treasury pool")
        db.add(pool)
        db.flush()
        sub = models.Company(
            company_code="C001",
            company_name="Demo subsidiary",
            parent_company_id=pool.id,
        )
        db.add(sub)
        db.flush()

        db.add(
            models.FundTransfer(
                transfer_code="FT-0001",
                company_id=sub.id,
                transfer_amount=Decimal("200000.00"),
                transfer_type=models.TransferType.up,
                transfer_date=date(2024, 1, 1),
            )
        )
        db.add(
            models.PaymentReceipt(
                company_id=sub.id,
                receive_type=models.ReceiveType.bank,
                receive_date=date(2024, 1, 2),
                bill_amount=Decimal("50000.00"),
                account_amount=Decimal("50000.00"),
            )
        )
        db.add(
            models.InterestRate(
                rate_type=models.RateType.demand,
                rate_code="DEMAND-2024",
                rate_value=Decimal("1.8000"),
                effective_date=date(2024, 1, 1),
            )
        )
        db.add(
            models.FixedDeposit(
                deposit_code="FD-0001",
                company_id=sub.id,
                principal=Decimal("1000000.00"),
                start_date=date(2024, 1, 2),
                end_date=date(2024, 7, 2),
                term_months=6,
                status=models.FixedDepositStatus.active,
                remaining_amount=Decimal("1000000.00"),
            )
        )
        db.add(
            models.FixedDeposit(
                deposit_code="FD-0002",
                company_id=sub.id,
                principal=Decimal("300000.00"),
                start_date=date(2024, 1, 1),
                end_date=date(2024, 4, 1),
                term_months=3,
                status=models.FixedDepositStatus.active,
                early_release=True,
                release_date=date(2024, 1, 11),
                release_amount=Decimal("100000.00"),
                remaining_amount=Decimal("200000.00"),
            )
        )
        db.commit()
        print("Demo data seeded: 2 companies, 1 transfer, 1 receipt, 1 demand rate, 2 fixed deposits")
        print(f"Database: {db_path}")
        print("Try: run-interest-accrual --as-of 2024-01-02")
    finally:
        db.close()


if __name__ == "__main__":
    main()
