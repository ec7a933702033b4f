from interest_accrual.models.domain import (
    Company,
    CompanyStatus,
    FixedDeposit,
    FixedDepositStatus,
    FundTransfer,
    InterestRate,
    PaymentReceipt,
    RateStatus,
    RateType,
    ReceiveType,
    TransferType,
)
from interest_accrual.models.interest_detail import (
    CurrentInterestDetail,
    EarlyReleaseInterestDetail,
    FixedInterestDetail,
)

__all__ = [
    "Company",
    "CompanyStatus",
    "CurrentInterestDetail",
    "EarlyReleaseInterestDetail",
    "FixedDeposit",
    "FixedDepositStatus",
    "FixedInterestDetail",
    "FundTransfer",
    "InterestRate",
    "PaymentReceipt",
    "RateStatus",
    "RateType",
    "ReceiveType",
    "TransferType",
]
