"""Data contracts for historical fund performance metrics."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel


class FundMetrics(BaseModel):
    """Return and risk summary of one NAV series.

    Percentages are expressed as numbers (12.5 means 12.5%). ``cagr`` and
    ``annualized_return`` are mutually exclusive: the former is filled for
    periods of at least one whole year, the latter for shorter ones.
    """

    insufficient_data: bool = False
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_nav: Optional[float] = None
    end_nav: Optional[float] = None
    days: int = 0
    period_label: str = ""
    absolute_return: Optional[float] = None
    cagr: Optional[float] = None
    annualized_return: Optional[float] = None
    volatility: Optional[float] = None
    max_drawdown: Optional[float] = None


class FundMetricsComparison(BaseModel):
    scheme_code: int
    scheme_name: str
    metrics: FundMetrics


class CompareResponse(BaseModel):
    funds: List[FundMetricsComparison]
