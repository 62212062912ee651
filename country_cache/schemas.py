from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; they are stored as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# --- Source payloads ---
class CurrencyDescriptor(BaseModel):
    code: Optional[str] = None


class CountryDescriptor(BaseModel):
    """One entry of the countries catalog. Unknown fields are ignored."""

    name: Optional[str] = None
    capital: Optional[str] = None
    region: Optional[str] = None
    population: Optional[int] = None
    flag: Optional[str] = None
    currencies: Optional[List[CurrencyDescriptor]] = None


class RatesPayload(BaseModel):
    rates: dict[str, Optional[float]] = Field(default_factory=dict)


# --- Stored records ---
class CountryRecord(BaseModel):
    name: str = Field(..., examples=["Nigeria"])
    source_name: Optional[str] = Field(None, examples=["Nigeria"])
    capital: Optional[str] = Field(None, examples=["Abuja"])
    region: Optional[str] = Field(None, examples=["Africa"])
    population: int = Field(..., examples=[206139589])
    currency_code: Optional[str] = Field(None, examples=["NGN"])
    exchange_rate: Optional[float] = Field(None, examples=[1600.23])
    estimated_gdp: Optional[float] = Field(None, examples=[25767448125.2])
    flag_url: Optional[str] = None
    last_refreshed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("last_refreshed_at")
    @classmethod
    def ensure_utc(cls, value):
        return as_utc(value)


class SortOrder(str, Enum):
    NAME = "name"
    GDP_DESC = "gdp_desc"
    GDP_ASC = "gdp_asc"


class SummarySnapshot(BaseModel):
    """Input of the summary image renderer."""

    total_countries: int
    top_countries: List[CountryRecord]
    last_refreshed_at: Optional[datetime] = None

    @field_validator("last_refreshed_at")
    @classmethod
    def ensure_utc(cls, value):
        return as_utc(value)


# --- API responses ---
class RefreshResult(BaseModel):
    message: str = "Countries refreshed successfully"
    records_processed: int
    last_refreshed_at: datetime


class StatusResponse(BaseModel):
    total_countries: int
    last_refreshed_at: Optional[datetime] = None


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
