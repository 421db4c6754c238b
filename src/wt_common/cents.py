"""Integer arithmetic utilities for cents-based paper accounts.

All prices, amounts and balances are int cents. Quotes arrive as decimal
dollars and are converted exactly once, at the quote boundary.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


def dollars_to_cents(price: float | str | int) -> int:
    """Convert a dollar amount to cents, rounding half-up: 150.005 -> 15001."""
    try:
        value = Decimal(str(price))
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {price!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Not a finite number: {price!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def notional(quantity: int, price_cents: int) -> int:
    """Cash value of a trade."""
    return quantity * price_cents


def release_cost(cost_basis: int, held: int, quantity: int) -> int:
    """Cost basis released when selling `quantity` out of `held`.

    Closing the whole position releases everything that is left, so rounding
    never strands a residual cost on a zero-quantity position.
    """
    if quantity >= held:
        return cost_basis
    return cost_basis * quantity // held


def percent(numerator: float, denominator: float) -> float:
    """numerator / denominator * 100, or 0.0 when the denominator is zero."""
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100
