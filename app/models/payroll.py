"""
Global Payroll Portal - Payroll Models

A payroll entry belongs to one employee and one pay period, with at most one
entry per (employee, pay period). Every selected payroll type is recorded in
the payroll_payroll_types association; payroll_type_id keeps the first one.

Money columns are Numeric(15, 2); amounts are never stored as floats.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    Column, Date, ForeignKey, Integer, Numeric, String, Table, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.employee import Employee


class PayrollTypeName(str, Enum):
    """Payroll types. Selection gates which inputs contribute to pay."""
    REGULAR = "Regular"
    BONUS = "Bonus"
    COMMISSION = "Commission"
    OVERTIME = "Overtime"


payroll_payroll_types = Table(
    "payroll_payroll_types",
    Base.metadata,
    Column(
        "payroll_id",
        Integer,
        ForeignKey("payrolls.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "payroll_type_id",
        Integer,
        ForeignKey("payroll_types.id"),
        primary_key=True,
    ),
)


class PayPeriod(BaseModel):
    """A pay period. Its day span decides which countries may use it."""

    __tablename__ = "pay_periods"

    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        UniqueConstraint("period_start", "period_end", name="uq_pay_period_range"),
    )

    @property
    def span_days(self) -> int:
        return (self.period_end - self.period_start).days

    def __repr__(self) -> str:
        return f"<PayPeriod({self.period_start} - {self.period_end})>"


class PayrollType(BaseModel):
    """Reference row for a payroll type."""

    __tablename__ = "payroll_types"

    type_name: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)


class Payroll(BaseModel):
    """A payroll entry for one employee in one pay period."""

    __tablename__ = "payrolls"

    employee_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("employees.employee_id"),
        nullable=False,
        index=True,
    )
    pay_period_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("pay_periods.id"),
        nullable=False,
        index=True,
    )
    payroll_type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("payroll_types.id"),
        nullable=False,
    )

    basic_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    bonus: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=Decimal("0"), nullable=False)
    overtime_rate: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"), nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    # Relationships
    employee: Mapped["Employee"] = relationship(back_populates="payrolls")
    pay_period: Mapped["PayPeriod"] = relationship()
    primary_type: Mapped["PayrollType"] = relationship(foreign_keys=[payroll_type_id])
    payroll_types: Mapped[List["PayrollType"]] = relationship(
        secondary=payroll_payroll_types,
        order_by="PayrollType.id",
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "pay_period_id", name="uq_payroll_employee_period"),
    )

    @property
    def type_names(self) -> List[str]:
        return [t.type_name for t in self.payroll_types]

    def __repr__(self) -> str:
        return f"<Payroll(id={self.id}, employee={self.employee_id}, period={self.pay_period_id})>"
