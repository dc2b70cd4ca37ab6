"""Initial payroll portal schema

Revision ID: 20261019_0900
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration creates the portal schema:
- countries, currencies: reference data
- users: portal admins
- employees plus employee_india / employee_france / employee_usa profiles
- pay_periods, payroll_types, payrolls, payroll_payroll_types
- employee_universal: read-only reporting view (PostgreSQL only)
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_0900'
down_revision = None
branch_labels = None
depends_on = None


EMPLOYEE_UNIVERSAL_VIEW = """
CREATE OR REPLACE VIEW employee_universal AS
SELECT
    e.employee_id,
    e.full_name,
    e.date_of_birth,
    e.start_date,
    e.is_active,
    e.country_id,
    c.country_name,
    e.currency_code,
    p.id AS payroll_id,
    pp.period_start,
    pp.period_end,
    pt.type_name AS payroll_type,
    p.basic_salary,
    p.bonus,
    p.overtime_hours,
    p.overtime_rate,
    p.net_pay,
    p.created_at AS payroll_created_at
FROM employees e
JOIN countries c ON c.country_id = e.country_id
LEFT JOIN payrolls p ON p.employee_id = e.employee_id
LEFT JOIN pay_periods pp ON pp.id = p.pay_period_id
LEFT JOIN payroll_types pt ON pt.id = p.payroll_type_id
"""


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ===========================================
    # REFERENCE TABLES
    # ===========================================
    op.create_table('countries',
        sa.Column('country_id', sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column('country_name', sa.String(50), nullable=False),
        sa.UniqueConstraint('country_name', name='uq_countries_country_name'),
    )

    op.create_table('currencies',
        sa.Column('currency_code', sa.String(3), primary_key=True),
        sa.Column('currency_name', sa.String(50), nullable=False),
    )

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', sa.String(30), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # ===========================================
    # EMPLOYEES
    # ===========================================
    op.create_table('employees',
        sa.Column('employee_id', sa.String(50), primary_key=True, comment='Externally assigned employee number'),
        sa.Column('full_name', sa.String(200), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('country_id', sa.Integer(), sa.ForeignKey('countries.country_id'), nullable=False),
        sa.Column('currency_code', sa.String(3), sa.ForeignKey('currencies.currency_code'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_employees_country_id', 'employees', ['country_id'])

    op.create_table('employee_india',
        sa.Column('employee_id', sa.String(50), sa.ForeignKey('employees.employee_id', ondelete='CASCADE'), primary_key=True),
        sa.Column('aadhar_number', sa.String(20), nullable=True),
        sa.Column('pan', sa.String(20), nullable=True),
        sa.Column('bank_account', sa.String(34), nullable=True),
        sa.Column('ifsc', sa.String(20), nullable=True),
    )

    op.create_table('employee_france',
        sa.Column('employee_id', sa.String(50), sa.ForeignKey('employees.employee_id', ondelete='CASCADE'), primary_key=True),
        sa.Column('numero_securite_sociale', sa.String(21), nullable=True),
        sa.Column('bank_iban', sa.String(34), nullable=True),
        sa.Column('department_code', sa.String(10), nullable=True),
    )

    op.create_table('employee_usa',
        sa.Column('employee_id', sa.String(50), sa.ForeignKey('employees.employee_id', ondelete='CASCADE'), primary_key=True),
        sa.Column('ssn', sa.String(11), nullable=True),
        sa.Column('bank_account', sa.String(34), nullable=True),
        sa.Column('routing_number', sa.String(9), nullable=True),
    )

    # ===========================================
    # PAYROLL
    # ===========================================
    op.create_table('pay_periods',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('period_start', sa.Date(), nullable=False),
        sa.Column('period_end', sa.Date(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('period_start', 'period_end', name='uq_pay_period_range'),
    )

    op.create_table('payroll_types',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('type_name', sa.String(30), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('type_name', name='uq_payroll_types_type_name'),
    )

    op.create_table('payrolls',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('employee_id', sa.String(50), sa.ForeignKey('employees.employee_id'), nullable=False),
        sa.Column('pay_period_id', sa.Integer(), sa.ForeignKey('pay_periods.id'), nullable=False),
        sa.Column('payroll_type_id', sa.Integer(), sa.ForeignKey('payroll_types.id'), nullable=False),
        sa.Column('basic_salary', sa.Numeric(15, 2), nullable=False),
        sa.Column('bonus', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('overtime_hours', sa.Numeric(8, 2), nullable=False, server_default='0'),
        sa.Column('overtime_rate', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('net_pay', sa.Numeric(15, 2), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('employee_id', 'pay_period_id', name='uq_payroll_employee_period'),
    )
    op.create_index('ix_payrolls_employee_id', 'payrolls', ['employee_id'])
    op.create_index('ix_payrolls_pay_period_id', 'payrolls', ['pay_period_id'])

    op.create_table('payroll_payroll_types',
        sa.Column('payroll_id', sa.Integer(), sa.ForeignKey('payrolls.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('payroll_type_id', sa.Integer(), sa.ForeignKey('payroll_types.id'), primary_key=True),
    )

    # ===========================================
    # REPORTING VIEW
    # ===========================================
    if op.get_bind().dialect.name == 'postgresql':
        op.execute(EMPLOYEE_UNIVERSAL_VIEW)


def downgrade() -> None:
    if op.get_bind().dialect.name == 'postgresql':
        op.execute("DROP VIEW IF EXISTS employee_universal")

    op.drop_table('payroll_payroll_types')
    op.drop_index('ix_payrolls_pay_period_id', table_name='payrolls')
    op.drop_index('ix_payrolls_employee_id', table_name='payrolls')
    op.drop_table('payrolls')
    op.drop_table('payroll_types')
    op.drop_table('pay_periods')
    op.drop_table('employee_usa')
    op.drop_table('employee_france')
    op.drop_table('employee_india')
    op.drop_index('ix_employees_country_id', table_name='employees')
    op.drop_table('employees')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_table('currencies')
    op.drop_table('countries')
