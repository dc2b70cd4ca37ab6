"""
Global Payroll Portal - Country and Currency Models

The portal operates in exactly three countries. Their numeric ids are fixed
because employee rows, CSV uploads and the reporting view all refer to them.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Country(str, Enum):
    """Supported countries (closed set)."""
    INDIA = "India"
    FRANCE = "France"
    USA = "USA"

    @property
    def country_id(self) -> int:
        return COUNTRY_IDS[self]

    @classmethod
    def from_id(cls, country_id: int) -> Optional["Country"]:
        for country, cid in COUNTRY_IDS.items():
            if cid == country_id:
                return country
        return None


COUNTRY_IDS = {
    Country.INDIA: 1,
    Country.FRANCE: 2,
    Country.USA: 3,
}


class CountryRecord(Base):
    """Row in the countries reference table."""

    __tablename__ = "countries"

    country_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    country_name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    @property
    def country(self) -> Optional[Country]:
        return Country.from_id(self.country_id)

    def __repr__(self) -> str:
        return f"<CountryRecord({self.country_id}, {self.country_name})>"


class Currency(Base):
    """Row in the currencies reference table."""

    __tablename__ = "currencies"

    currency_code: Mapped[str] = mapped_column(String(3), primary_key=True)
    currency_name: Mapped[str] = mapped_column(String(50), nullable=False)

    def __repr__(self) -> str:
        return f"<Currency({self.currency_code})>"
