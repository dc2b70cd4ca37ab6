"""
Global Payroll Portal - Employee Models

One base employee record plus exactly one country profile:
- India: Aadhaar, PAN, bank account, IFSC
- France: numéro de sécurité sociale, IBAN, department code
- USA: SSN, bank account, routing number

Employees are never hard-deleted; deactivation keeps payroll history intact.
"""

from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.base import TimestampMixin
from app.models.country import Country, CountryRecord

if TYPE_CHECKING:
    from app.models.payroll import Payroll


class Employee(Base, TimestampMixin):
    """Base employee record (all countries)."""

    __tablename__ = "employees"

    employee_id: Mapped[str] = mapped_column(
        String(50),
        primary_key=True,
        comment="Externally assigned employee number",
    )
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    country_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("countries.country_id"),
        nullable=False,
        index=True,
    )
    currency_code: Mapped[str] = mapped_column(
        String(3),
        ForeignKey("currencies.currency_code"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    country_record: Mapped["CountryRecord"] = relationship(lazy="joined")
    india_profile: Mapped[Optional["EmployeeIndia"]] = relationship(
        back_populates="employee", uselist=False, cascade="all, delete-orphan",
    )
    france_profile: Mapped[Optional["EmployeeFrance"]] = relationship(
        back_populates="employee", uselist=False, cascade="all, delete-orphan",
    )
    usa_profile: Mapped[Optional["EmployeeUSA"]] = relationship(
        back_populates="employee", uselist=False, cascade="all, delete-orphan",
    )
    payrolls: Mapped[List["Payroll"]] = relationship(back_populates="employee")

    @property
    def country(self) -> Optional[Country]:
        return Country.from_id(self.country_id)

    @property
    def country_name(self) -> Optional[str]:
        country = self.country
        return country.value if country else None

    @property
    def profile(self):
        """The profile row matching the employee's country, if any."""
        return {
            Country.INDIA: self.india_profile,
            Country.FRANCE: self.france_profile,
            Country.USA: self.usa_profile,
        }.get(self.country)

    def __repr__(self) -> str:
        return f"<Employee({self.employee_id}, {self.full_name}, country_id={self.country_id})>"


class EmployeeIndia(Base):
    """India compliance profile."""

    __tablename__ = "employee_india"

    employee_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("employees.employee_id", ondelete="CASCADE"),
        primary_key=True,
    )
    aadhar_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    pan: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    bank_account: Mapped[Optional[str]] = mapped_column(String(34), nullable=True)
    ifsc: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    employee: Mapped["Employee"] = relationship(back_populates="india_profile")


class EmployeeFrance(Base):
    """France compliance profile."""

    __tablename__ = "employee_france"

    employee_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("employees.employee_id", ondelete="CASCADE"),
        primary_key=True,
    )
    numero_securite_sociale: Mapped[Optional[str]] = mapped_column(String(21), nullable=True)
    bank_iban: Mapped[Optional[str]] = mapped_column(String(34), nullable=True)
    department_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    employee: Mapped["Employee"] = relationship(back_populates="france_profile")


class EmployeeUSA(Base):
    """USA compliance profile."""

    __tablename__ = "employee_usa"

    employee_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("employees.employee_id", ondelete="CASCADE"),
        primary_key=True,
    )
    ssn: Mapped[Optional[str]] = mapped_column(String(11), nullable=True)
    bank_account: Mapped[Optional[str]] = mapped_column(String(34), nullable=True)
    routing_number: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)

    employee: Mapped["Employee"] = relationship(back_populates="usa_profile")
