"""Exit IRR computation using scipy.

Pure functions. No I/O.
"""

from decimal import Decimal

from scipy.optimize import brentq

from src.models.ratio import Ratio

# Monthly-rate search bracket; wide enough for any realistic off-plan flip
LOWER_RATE = -0.5
UPPER_RATE = 1.0


def compute_irr(cash_flows: list[Decimal]) -> Ratio:
    """Compute the per-period IRR of a cash-flow vector.

    cash_flows[0] is the booking month; outflows are negative.
    The last entry should include sale proceeds.

    Uses Brent's method on the NPV function. Undefined when the flows
    never change sign or no root lies inside the bracket.
    """
    if not cash_flows or len(cash_flows) < 2:
        return Ratio.undefined()

    # Convert to float for scipy
    cf_float = [float(cf) for cf in cash_flows]
    if all(cf >= 0 for cf in cf_float) or all(cf <= 0 for cf in cf_float):
        return Ratio.undefined()

    def npv(rate: float) -> float:
        return sum(cf / (1 + rate) ** t for t, cf in enumerate(cf_float))

    try:
        irr = brentq(npv, LOWER_RATE, UPPER_RATE, xtol=1e-10, maxiter=1000)
    except ValueError:
        # No sign change inside the bracket
        return Ratio.undefined()
    return Ratio.finite(Decimal(str(irr)))


def annualize_monthly(rate: Ratio) -> Ratio:
    """(1 + r)^12 - 1 for a monthly rate; sentinels pass through."""
    if not rate.is_finite:
        return rate
    return Ratio.finite((1 + rate.value) ** 12 - 1)


def exit_irr(monthly_cash_flows: list[Decimal]) -> Ratio:
    """Annualized IRR of a monthly cash-flow vector."""
    return annualize_monthly(compute_irr(monthly_cash_flows))
