"""
Global Payroll Portal - Reference Data Schemas
"""

from pydantic import BaseModel


class CountryResponse(BaseModel):
    country_id: int
    country_name: str
    currency_code: str

    class Config:
        from_attributes = True


class CurrencyResponse(BaseModel):
    currency_code: str
    currency_name: str


class PayrollTypeResponse(BaseModel):
    id: int
    type_name: str

    class Config:
        from_attributes = True
