"""Price bar (daily OHLCV) data model."""

import datetime as dt

from pydantic import BaseModel, Field, model_validator


class PriceBar(BaseModel):
    """Represents a single daily OHLCV bar."""

    date: dt.date = Field(..., description="Trading day")
    open: float = Field(..., ge=0, description="Opening price")
    high: float = Field(..., ge=0, description="High price")
    low: float = Field(..., ge=0, description="Low price")
    close: float = Field(..., ge=0, description="Closing price")
    volume: float = Field(..., ge=0, description="Traded volume")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_ohlc(self) -> "PriceBar":
        if self.high < self.low:
            raise ValueError(f"high {self.high} is below low {self.low}")
        if self.high < max(self.open, self.close):
            raise ValueError("high must be at least max(open, close)")
        if self.low > min(self.open, self.close):
            raise ValueError("low must be at most min(open, close)")
        return self
