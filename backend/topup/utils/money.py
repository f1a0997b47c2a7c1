"""
Money Units — rupees (major unit) and paise (minor unit) as distinct types.

The gateway speaks paise; users and the ledger speak rupees. The two
conversion functions below are the only place one becomes the other.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

PAISE_PER_RUPEE = 100
_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True, order=True)
class RupeeAmount:
    value: Decimal

    def __post_init__(self):
        object.__setattr__(self, "value", Decimal(str(self.value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))

    def __float__(self) -> float:
        return float(self.value)

    def __str__(self) -> str:
        return format_inr(self)


@dataclass(frozen=True, order=True)
class PaiseAmount:
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"PaiseAmount must be an int, got {type(self.value).__name__}")

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value} paise"


def rupees_to_paise(amount: RupeeAmount) -> PaiseAmount:
    """Convert rupees to paise, rounding half-up to the nearest paisa."""
    paise = (amount.value * PAISE_PER_RUPEE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return PaiseAmount(int(paise))


def paise_to_rupees(amount: PaiseAmount) -> RupeeAmount:
    return RupeeAmount(Decimal(amount.value) / PAISE_PER_RUPEE)


def format_inr(amount: RupeeAmount) -> str:
    """Render rupees with Indian digit grouping, e.g. ``₹2,00,000``."""
    whole, _, fraction = f"{amount.value:.2f}".partition(".")
    sign = ""
    if whole.startswith("-"):
        sign, whole = "-", whole[1:]
    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    grouped = ",".join(groups + [tail])
    if fraction != "00":
        grouped = f"{grouped}.{fraction}"
    return f"{sign}₹{grouped}"
