"""
Validators — top-up amount and required-field checks.

Both entry points reject before any gateway call is made. Rupee bounds and
paise bounds come from the same configured limits, so the two stay in step.
"""
import math
from decimal import Decimal
from typing import Any, Optional

from topup.errors import (
    TopUpValidationError, MISSING_FIELDS, AMOUNT_TOO_LOW, AMOUNT_TOO_HIGH,
)
from topup.models.payment import OrderRequest, PaymentMethod, TopUpRequest, normalize_method
from topup.utils.money import PaiseAmount, RupeeAmount, format_inr, rupees_to_paise

DEFAULT_MIN_RUPEES = 1
DEFAULT_MAX_RUPEES = 200000


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _missing(message: str = "Missing required fields") -> TopUpValidationError:
    return TopUpValidationError(MISSING_FIELDS, message)


def _as_number(amount: Any) -> Optional[Decimal]:
    """Return the amount as a Decimal, or None if it is not a usable number.

    Infinities are returned as-is so the bounds checks reject them.
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        return None
    if isinstance(amount, float) and math.isnan(amount):
        return None
    if isinstance(amount, Decimal) and amount.is_nan():
        return None
    return Decimal(str(amount)) if isinstance(amount, float) else Decimal(amount)


def check_bounds(amount: Decimal, minimum: RupeeAmount, maximum: RupeeAmount, scale: int = 1) -> None:
    """Raise if ``amount`` (in units of 1/scale rupee) is outside [minimum, maximum]."""
    if amount < minimum.value * scale:
        raise TopUpValidationError(AMOUNT_TOO_LOW, f"Minimum amount is {format_inr(minimum)}")
    if amount > maximum.value * scale:
        raise TopUpValidationError(AMOUNT_TOO_HIGH, f"Maximum amount is {format_inr(maximum)}")


def validate_topup(
    amount: Any,
    currency: Optional[str],
    user_id: Optional[str],
    method: Optional[str],
    min_rupees: int = DEFAULT_MIN_RUPEES,
    max_rupees: int = DEFAULT_MAX_RUPEES,
) -> TopUpRequest:
    """Validate a rupee-denominated top-up request from the dashboard.

    Raises:
        TopUpValidationError: with code MISSING_FIELDS, AMOUNT_TOO_LOW or AMOUNT_TOO_HIGH.
    """
    if any(_is_blank(v) for v in (amount, currency, user_id, method)):
        raise _missing()

    value = _as_number(amount)
    if value is None:
        raise _missing("Amount must be a number")

    check_bounds(value, RupeeAmount(min_rupees), RupeeAmount(max_rupees))

    return TopUpRequest(
        amount=RupeeAmount(value),
        currency=currency.strip().upper(),
        user_id=user_id.strip(),
        method=normalize_method(method),
    )


def validate_order_request(
    amount: Any,
    currency: Optional[str],
    receipt: Optional[str],
    user_id: Optional[str],
    method: Optional[str] = None,
    min_rupees: int = DEFAULT_MIN_RUPEES,
    max_rupees: int = DEFAULT_MAX_RUPEES,
) -> OrderRequest:
    """Validate a paise-denominated create-order request.

    With the default limits this accepts ``100 <= amount <= 20000000`` paise.
    """
    if any(_is_blank(v) for v in (amount, currency, receipt, user_id)):
        raise _missing()

    value = _as_number(amount)
    if value is None:
        raise _missing("Amount must be a number")

    minimum, maximum = RupeeAmount(min_rupees), RupeeAmount(max_rupees)
    check_bounds(value, minimum, maximum, scale=rupees_to_paise(RupeeAmount(1)).value)

    if value != value.to_integral_value():
        raise _missing("Amount must be a whole number of paise")

    return OrderRequest(
        amount=PaiseAmount(int(value)),
        currency=currency.strip().upper(),
        receipt=receipt.strip(),
        user_id=user_id.strip(),
        method=normalize_method(method) if not _is_blank(method) else PaymentMethod.UPI.value,
    )
