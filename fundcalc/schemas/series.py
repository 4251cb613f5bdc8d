"""Data contracts for NAV time series and dated cash flows."""

from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Period = Literal["1m", "3m", "6m", "1y", "3y", "5y", "all"]


class RawNavPoint(BaseModel):
    """NAV point as delivered by the NAV API (text dates, text or numeric NAV)."""

    date: str
    nav: Union[str, float]


class NAVPoint(BaseModel):
    """Single parsed NAV observation."""

    model_config = ConfigDict(frozen=True)

    date: date
    nav: float = Field(..., gt=0)


class CashFlow(BaseModel):
    """Dated amount; investments are negative, redemptions positive."""

    model_config = ConfigDict(extra="forbid")

    date: date
    amount: float


class SeriesRequest(BaseModel):
    """A raw NAV series with optional period or date-range filtering."""

    model_config = ConfigDict(extra="forbid")

    data: List[RawNavPoint] = Field(default_factory=list)
    period: Optional[Period] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class NamedSeries(BaseModel):
    model_config = ConfigDict(extra="forbid")

    scheme_code: int
    scheme_name: str = ""
    data: List[RawNavPoint] = Field(default_factory=list)


class CompareRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    funds: List[NamedSeries] = Field(..., min_length=1)
    period: Optional[Period] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
