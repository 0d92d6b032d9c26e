"""
History Queries

DESIGN DECISION: Queries are DETERMINISTIC and read-only.
They work on lists of stored transactions handed over by the session
and never touch the account projection or the store's logs.

The only write here is export_history, which produces a standalone
report file outside the ledger logs.
"""

import csv
from collections import defaultdict
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional, Union

from ledger.errors import ValidationError
from ledger.models.account import (
    ZERO,
    Loan,
    Transaction,
    TransactionKind,
    quantize_money,
)
from ledger.models.reports import (
    HistoryRow,
    LoanProgress,
    SavingsGrowthPoint,
    SpendingShare,
)
from ledger.services.storage import PersistenceError
from ledger.services.storage.records import format_money


HISTORY_COLUMNS = ["Date", "Description", "Debit", "Credit", "Balance"]


# =============================================================================
# FILTERS
# =============================================================================

def filter_by_date_range(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> list[Transaction]:
    """Transactions dated within [start, end], both ends inclusive."""
    if start > end:
        raise ValidationError.single(
            "date_range",
            "out_of_range",
            f"Start date {start.isoformat()} is after end date {end.isoformat()}",
        )
    return [t for t in transactions if start <= t.transaction_date <= end]


def filter_by_kind(
    transactions: Iterable[Transaction],
    kind: Union[str, TransactionKind],
) -> list[Transaction]:
    try:
        kind = TransactionKind(kind)
    except ValueError:
        raise ValidationError.single(
            "kind",
            "invalid_value",
            f"Unknown transaction type: {kind!r}",
        )
    return [t for t in transactions if t.kind == kind]


def filter_by_amount_range(
    transactions: Iterable[Transaction],
    minimum: Optional[Decimal] = None,
    maximum: Optional[Decimal] = None,
) -> list[Transaction]:
    """Transactions with minimum <= amount <= maximum. Either bound may be omitted."""
    if minimum is not None and maximum is not None and minimum > maximum:
        raise ValidationError.single(
            "amount_range",
            "out_of_range",
            f"Minimum {minimum} is greater than maximum {maximum}",
        )
    return [
        t for t in transactions
        if (minimum is None or t.amount >= minimum)
        and (maximum is None or t.amount <= maximum)
    ]


# =============================================================================
# SORTING
# =============================================================================

def sort_by_date(
    transactions: Iterable[Transaction],
    newest_first: bool = False,
) -> list[Transaction]:
    # Stable, so same-day transactions keep log order
    return sorted(transactions, key=lambda t: t.transaction_date, reverse=newest_first)


def sort_by_amount(
    transactions: Iterable[Transaction],
    highest_first: bool = False,
) -> list[Transaction]:
    return sorted(transactions, key=lambda t: t.amount, reverse=highest_first)


# =============================================================================
# REPORTS
# =============================================================================

def export_history(rows: Iterable[HistoryRow], path: Union[str, Path]) -> int:
    """
    Write history rows to a CSV report.

    Amounts are written with two decimals; the unused side of each row
    is left blank.

    Returns:
        Number of rows written

    Raises:
        PersistenceError: If the file could not be written
    """
    path = Path(path)
    count = 0
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle, lineterminator="\n")
            writer.writerow(HISTORY_COLUMNS)
            for row in rows:
                writer.writerow([
                    row.entry_date.isoformat(),
                    row.description,
                    format_money(row.debit) if row.debit is not None else "",
                    format_money(row.credit) if row.credit is not None else "",
                    format_money(row.balance),
                ])
                count += 1
    except OSError as e:
        raise PersistenceError("history", f"failed to export to {path}: {e}")
    return count


def monthly_spending(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Total credits (money out) per YYYY-MM, in month order."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        if t.kind == TransactionKind.CREDIT:
            totals[t.transaction_date.strftime("%Y-%m")] += t.amount
    return {month: totals[month] for month in sorted(totals)}


def spending_distribution(transactions: Iterable[Transaction]) -> list[SpendingShare]:
    """
    Credits grouped by description, largest first.

    Percentages are of total spending and rounded half-up to 2dp, so
    they may not add up to exactly 100.
    """
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        if t.kind == TransactionKind.CREDIT:
            totals[t.description] += t.amount

    grand_total = sum(totals.values(), ZERO)
    if grand_total == 0:
        return []

    shares = [
        SpendingShare(
            description=description,
            amount=amount,
            percentage=quantize_money(amount * Decimal(100) / grand_total),
        )
        for description, amount in totals.items()
    ]
    shares.sort(key=lambda share: share.amount, reverse=True)
    return shares


def loan_progress(loan: Loan) -> LoanProgress:
    """How much of a loan's total repayment has been paid so far."""
    total = loan.total_repayment
    repaid = total - loan.outstanding_balance
    return LoanProgress(
        loan_id=loan.loan_id,
        total_repayment=total,
        repaid_amount=repaid,
        outstanding_balance=loan.outstanding_balance,
        percent_repaid=quantize_money(repaid * Decimal(100) / total),
    )


def savings_growth(
    current_savings: Decimal,
    percentage: int,
    monthly_debit: Decimal = Decimal(1000),
    months: int = 12,
) -> list[SavingsGrowthPoint]:
    """
    Project the savings pot forward, assuming the same debit every month.

    Each month adds monthly_debit x percentage / 100. The pot is assumed
    to keep growing; the monthly sweep is not modelled.
    """
    if months < 1:
        raise ValidationError.single(
            "months", "out_of_range", f"Months must be positive, got {months}"
        )
    increase = quantize_money(monthly_debit * percentage / Decimal(100))
    savings = quantize_money(current_savings)
    points = []
    for month in range(1, months + 1):
        savings += increase
        points.append(SavingsGrowthPoint(month=month, savings=savings))
    return points
