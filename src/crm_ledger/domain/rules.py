"""Pre-write validation for ledger operations.

Checked in this order, first failure wins, before anything touches storage:
acting profile is an agent → 0 < amount <= MAX_CREDITS in whole cents →
receipt present.
"""

from decimal import Decimal

from src.crm_common.credits import quantize_credits
from src.crm_common.errors import InvalidAmountError, MissingReceiptError, UnauthorizedError
from src.crm_profile.domain.models import Profile

# Largest value a NUMERIC(14, 2) column holds.
MAX_CREDITS = Decimal("999999999999.99")


def check_acting_agent(actor: Profile) -> None:
    if not actor.is_agent:
        raise UnauthorizedError("Only agents can record credit transactions")


def check_amount(amount: Decimal | int | str | None) -> Decimal:
    """Return the amount quantized to cents.

    Rejects garbage, zero, negatives, sub-cent fractions and anything that
    does not fit the balance column. Nothing is rounded.
    """
    if amount is None:
        raise InvalidAmountError(amount)
    try:
        value = quantize_credits(amount)
    except ValueError:
        raise InvalidAmountError(amount) from None
    if value != Decimal(amount):
        raise InvalidAmountError(amount)
    if value <= 0 or value > MAX_CREDITS:
        raise InvalidAmountError(amount)
    return value


def check_receipt(receipt_number: str | None) -> str:
    receipt = (receipt_number or "").strip()
    if not receipt:
        raise MissingReceiptError()
    return receipt


def validate_ledger_request(
    actor: Profile, amount: Decimal | int | str | None, receipt_number: str | None
) -> tuple[Decimal, str]:
    check_acting_agent(actor)
    value = check_amount(amount)
    receipt = check_receipt(receipt_number)
    return value, receipt
