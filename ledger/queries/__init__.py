"""History query package."""

from ledger.queries.executor import (
    HISTORY_COLUMNS,
    export_history,
    filter_by_amount_range,
    filter_by_date_range,
    filter_by_kind,
    loan_progress,
    monthly_spending,
    savings_growth,
    sort_by_amount,
    sort_by_date,
    spending_distribution,
)

__all__ = [
    "HISTORY_COLUMNS",
    "export_history",
    "filter_by_amount_range",
    "filter_by_date_range",
    "filter_by_kind",
    "loan_progress",
    "monthly_spending",
    "savings_growth",
    "sort_by_amount",
    "sort_by_date",
    "spending_distribution",
]
