"""Data contracts for the XIRR endpoint."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from fundcalc.schemas.series import CashFlow


class XIRRRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    flows: List[CashFlow] = Field(..., min_length=2)
    bracket: bool = Field(
        False,
        description="Fall back to bisection when Newton-Raphson does not converge.",
    )


class XIRRResult(BaseModel):
    """Annualized rate in percent, ``None`` when the flows admit no rate."""

    xirr: Optional[float] = None
