"""Symbol trading-rule helpers derived from exchange metadata."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import lru_cache


class SymbolMetadataError(LookupError):
    """Raised when a symbol's quantity step cannot be resolved."""


@lru_cache(maxsize=None)
def precision_from_step(step_size: str) -> int:
    """Return the number of decimal places implied by a step such as ``"0.001"``.

    Steps of one or more (``"1"``, ``"10"``) round to whole units.
    """

    try:
        step = Decimal(step_size)
    except (InvalidOperation, TypeError) as exc:
        raise SymbolMetadataError(f"Invalid quantity step: {step_size!r}") from exc
    if step <= 0:
        raise SymbolMetadataError(f"Quantity step must be positive: {step_size!r}")
    exponent = step.normalize().as_tuple().exponent
    return max(0, -int(exponent))


def round_quantity(quantity: float, precision: int) -> float:
    """Round half-up to ``precision`` decimal places.

    Ties are judged on the exact binary value of ``quantity``, so ``1.005`` (stored
    as 1.00499999...) rounds to ``1.0`` at two places.
    """

    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(quantity).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass(slots=True, frozen=True)
class SymbolSpec:
    """Trading rules for one futures symbol.

    Attributes
    ----------
    symbol:
        Exchange symbol, e.g. ``"BTCUSDT"``.
    quantity_step:
        ``LOT_SIZE`` step size as published by the exchange, e.g. ``"0.001"``.
    """

    symbol: str
    quantity_step: str

    @property
    def quantity_precision(self) -> int:
        return precision_from_step(self.quantity_step)

    def round_quantity(self, quantity: float) -> float:
        return round_quantity(quantity, self.quantity_precision)
