from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("1")


@dataclass(frozen=True)
class Money:
    amount_cents: int
    currency: str

    def __post_init__(self) -> None:
        if self.amount_cents < 0:
            raise ValueError("amount_cents must be >= 0")
        if len(self.currency) != 3 or not self.currency.isalpha() or not self.currency.isupper():
            raise ValueError("currency must be a 3-letter uppercase code")

    @classmethod
    def zero(cls, currency: str) -> Money:
        return cls(amount_cents=0, currency=currency)

    @classmethod
    def from_decimal(cls, amount: Decimal, currency: str) -> Money:
        """Convert a major-unit amount (e.g. 5.75) to cents, rounding half up."""
        cents = (Decimal(amount) * 100).quantize(_CENT, rounding=ROUND_HALF_UP)
        return cls(amount_cents=int(cents), currency=currency)

    def to_decimal(self) -> Decimal:
        return Decimal(self.amount_cents) / 100

    def __add__(self, other: Money) -> Money:
        self._ensure_same_currency(other)
        return Money(amount_cents=self.amount_cents + other.amount_cents, currency=self.currency)

    def times(self, quantity: int) -> Money:
        return Money(amount_cents=self.amount_cents * quantity, currency=self.currency)

    def apply_rate(self, rate: Decimal) -> Money:
        cents = (Decimal(self.amount_cents) * rate).quantize(_CENT, rounding=ROUND_HALF_UP)
        return Money(amount_cents=int(cents), currency=self.currency)

    def format(self) -> str:
        return f"${self.amount_cents // 100}.{self.amount_cents % 100:02d}"

    def _ensure_same_currency(self, other: Money) -> None:
        if other.currency != self.currency:
            raise ValueError("currency mismatch")


def sum_money(values: list[Money], currency: str) -> Money:
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total
