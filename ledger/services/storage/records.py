"""
Row <-> model conversion for the CSV logs.

Every value is written as plain text: ids as integers, money with
exactly two decimals, dates as ISO-8601.
"""

from datetime import date
from decimal import Decimal

from ledger.models.account import (
    AccountState,
    Loan,
    LoanStatus,
    SavingsSetting,
    SavingsStatus,
    Transaction,
    TransactionKind,
    User,
    quantize_money,
)


# Column mappings, in file order
USER_COLUMNS = ["user_id", "name", "email", "password_hash"]

TRANSACTION_COLUMNS = [
    "transaction_id",
    "user_id",
    "type",
    "amount",
    "description",
    "date",
]

SAVINGS_COLUMNS = ["savings_id", "user_id", "status", "percentage"]

LOAN_COLUMNS = [
    "loan_id",
    "user_id",
    "principal_amount",
    "interest_rate",
    "repayment_period",
    "outstanding_balance",
    "status",
    "created_at",
]

ACCOUNT_COLUMNS = ["user_id", "savings", "diverted_total", "last_activity_date"]


def format_money(value: Decimal) -> str:
    return f"{quantize_money(value):.2f}"


def user_to_row(user: User) -> dict[str, str]:
    return {
        "user_id": str(user.user_id),
        "name": user.name,
        "email": user.email,
        "password_hash": user.password_hash,
    }


def row_to_user(row: dict[str, str]) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
    )


def transaction_to_row(transaction: Transaction) -> dict[str, str]:
    return {
        "transaction_id": str(transaction.transaction_id),
        "user_id": str(transaction.user_id),
        "type": transaction.kind.value,
        "amount": format_money(transaction.amount),
        "description": transaction.description,
        "date": transaction.transaction_date.isoformat(),
    }


def row_to_transaction(row: dict[str, str]) -> Transaction:
    return Transaction(
        transaction_id=int(row["transaction_id"]),
        user_id=int(row["user_id"]),
        kind=TransactionKind(row["type"]),
        amount=Decimal(row["amount"]),
        description=row["description"] or "",
        transaction_date=date.fromisoformat(row["date"]),
    )


def savings_setting_to_row(setting: SavingsSetting) -> dict[str, str]:
    return {
        "savings_id": str(setting.savings_id),
        "user_id": str(setting.user_id),
        "status": setting.status.value,
        "percentage": str(setting.percentage),
    }


def row_to_savings_setting(row: dict[str, str]) -> SavingsSetting:
    return SavingsSetting(
        savings_id=int(row["savings_id"]),
        user_id=int(row["user_id"]),
        status=SavingsStatus(row["status"]),
        percentage=int(row["percentage"]),
    )


def loan_to_row(loan: Loan) -> dict[str, str]:
    return {
        "loan_id": str(loan.loan_id),
        "user_id": str(loan.user_id),
        "principal_amount": format_money(loan.principal_amount),
        "interest_rate": str(loan.interest_rate),
        "repayment_period": str(loan.repayment_period),
        "outstanding_balance": format_money(loan.outstanding_balance),
        "status": loan.status.value,
        "created_at": loan.created_at.isoformat(),
    }


def row_to_loan(row: dict[str, str]) -> Loan:
    return Loan(
        loan_id=int(row["loan_id"]),
        user_id=int(row["user_id"]),
        principal_amount=Decimal(row["principal_amount"]),
        interest_rate=Decimal(row["interest_rate"]),
        repayment_period=int(row["repayment_period"]),
        outstanding_balance=Decimal(row["outstanding_balance"]),
        status=LoanStatus(row["status"]),
        created_at=date.fromisoformat(row["created_at"]),
    )


def account_state_to_row(state: AccountState) -> dict[str, str]:
    return {
        "user_id": str(state.user_id),
        "savings": format_money(state.savings),
        "diverted_total": format_money(state.diverted_total),
        "last_activity_date": state.last_activity_date.isoformat(),
    }


def row_to_account_state(row: dict[str, str]) -> AccountState:
    return AccountState(
        user_id=int(row["user_id"]),
        savings=Decimal(row["savings"]),
        diverted_total=Decimal(row["diverted_total"]),
        last_activity_date=date.fromisoformat(row["last_activity_date"]),
    )
