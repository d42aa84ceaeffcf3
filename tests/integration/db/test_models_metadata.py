from __future__ import annotations

from settlement.database.models import Base


def test_model_metadata_contains_settlement_tables():
    expected = {
        "organizations",
        "users",
        "memberships",
        "projects",
        "contracts",
        "system_settings",
        "invoices",
        "notifications",
        "payouts",
        "org_monthly_invoices",
        "monthly_statements",
    }
    assert expected.issubset(set(Base.metadata.tables.keys()))


def test_invoice_contract_id_is_unique():
    constraints = {constraint.name for constraint in Base.metadata.tables["invoices"].constraints}
    assert "uq_invoices_contract_id" in constraints


def test_org_billing_rows_are_unique_per_period():
    invoice_constraints = {c.name for c in Base.metadata.tables["org_monthly_invoices"].constraints}
    statement_constraints = {c.name for c in Base.metadata.tables["monthly_statements"].constraints}
    assert "uq_org_monthly_invoices_org_month" in invoice_constraints
    assert "uq_monthly_statements_org_period" in statement_constraints
