"""
Deposit interest prediction.

Informational only: the result is shown to the user and never stored.
"""

from decimal import Decimal
from typing import Mapping

from ledger.errors import ValidationError
from ledger.models.account import quantize_money


def predict_monthly_interest(
    balance: Decimal,
    bank_name: str,
    rates: Mapping[str, Decimal],
) -> Decimal:
    """
    One month of simple interest on the balance at the bank's annual rate.

    Raises:
        ValidationError: If the bank is not in the rate table
    """
    rate = rates.get(bank_name)
    if rate is None:
        raise ValidationError.single(
            "bank_name",
            "invalid_value",
            f"Unknown bank: {bank_name!r}. Choose one of: {', '.join(sorted(rates))}",
        )
    return quantize_money(balance * rate / Decimal(100) / Decimal(12))
