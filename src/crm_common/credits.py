"""Decimal arithmetic utilities for credit (fichas) amounts.

Balances are stored as NUMERIC(14, 2). Never use float for amounts.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CREDIT_QUANTUM = Decimal("0.01")


def quantize_credits(amount: Decimal | int | str) -> Decimal:
    """Normalize to two decimal places. Raises ValueError on non-numeric input."""
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a numeric amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Not a finite amount: {amount!r}")
    try:
        return value.quantize(CREDIT_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"Amount out of range: {amount!r}") from exc


def credits_to_display(amount: Decimal) -> str:
    """Format fichas for display: Decimal('1500.00') -> '1,500 fichas', '12.5' -> '12.50 fichas'."""
    value = quantize_credits(amount)
    if value == value.to_integral_value():
        return f"{int(value):,} fichas"
    return f"{value:,.2f} fichas"


def price_to_display(price: int) -> str:
    """Format a package price in ARS: 4500 -> '$4.500,00'."""
    whole = f"{price:,}".replace(",", ".")
    return f"${whole},00"
