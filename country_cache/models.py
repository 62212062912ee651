from sqlalchemy import Column, DateTime, Float, Integer, String

from country_cache.database import Base

LAST_REFRESHED_AT_KEY = "last_refreshed_at"


class Country(Base):
    __tablename__ = "countries"

    id = Column(Integer, primary_key=True, index=True)
    # Canonical form, see core.reconcile.canonical_name
    name = Column(String(255), unique=True, nullable=False, index=True)
    source_name = Column(String(255), nullable=False)
    capital = Column(String(255), nullable=True)
    region = Column(String(100), nullable=True, index=True)
    population = Column(Integer, nullable=False)
    currency_code = Column(String(10), nullable=True, index=True)
    exchange_rate = Column(Float, nullable=True)
    estimated_gdp = Column(Float, nullable=True)
    flag_url = Column(String(500), nullable=True)
    last_refreshed_at = Column(DateTime(timezone=True), nullable=False)


class Metadata(Base):
    """Single-row key/value facts about the dataset."""

    __tablename__ = "metadata"

    key = Column(String(100), primary_key=True)
    value = Column(String(255), nullable=False)
