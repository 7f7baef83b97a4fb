"""Commission and net income calculations.

All functions are total: anything that is not a finite number counts as 0.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from pydantic import BaseModel


def numeric(value: Any) -> float:
    """Coerce any value to a finite float, defaulting to 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return 0.0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    return n if math.isfinite(n) else 0.0


def clamp_percent(value: Any) -> float:
    """Clamp a percentage into [0, 100]."""
    return min(100.0, max(0.0, numeric(value)))


def commission_amount(gross: Any, rate: Any) -> float:
    return numeric(gross) * clamp_percent(rate) / 100


def net_amount(gross: Any, rate: Any, deductions: Any) -> float:
    """Commission minus deductions, floored at 0."""
    return max(0.0, commission_amount(gross, rate) - numeric(deductions))


def format_rm(amount: Any) -> str:
    """Format an amount as Malaysian Ringgit with no decimals, e.g. ``RM1,800``."""
    value = Decimal(str(numeric(amount))).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}RM{abs(int(value)):,}"


class IncomeBreakdown(BaseModel):
    """Recomputed income figures for one deal."""
    gross: float
    commission_rate: float
    commission: float
    deductions: float
    net: float


def deal_income(deal: Any) -> IncomeBreakdown:
    """Recompute commission and net for a deal, ignoring any stored cache columns."""
    gross = getattr(deal, "gross", None)
    rate = getattr(deal, "commission_rate", None)
    deductions = getattr(deal, "deductions", None)
    return IncomeBreakdown(
        gross=numeric(gross),
        commission_rate=clamp_percent(rate),
        commission=commission_amount(gross, rate),
        deductions=numeric(deductions),
        net=net_amount(gross, rate, deductions),
    )
