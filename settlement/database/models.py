from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    contact_person = Column(String)
    address = Column(String)
    phone = Column(String)
    email = Column(String)
    invoice_registration_number = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    display_name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    address = Column(String)
    # Set for corporate contractors; individuals are subject to withholding.
    company_number = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Membership(Base):
    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("user_id", "org_id", "role", name="uq_memberships_user_org_role"),
        Index("idx_memberships_org_role", "org_id", "role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    role = Column(String, nullable=False, default="OrgAdmin")

    user = relationship("User")
    organization = relationship("Organization")


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (Index("idx_projects_org", "org_id"),)

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    contractor_id = Column(Integer, ForeignKey("users.id"))
    title = Column(String, nullable=False)
    description = Column(Text)
    budget = Column(Integer)
    # Client-organization side support opt-in.
    support_enabled = Column(Boolean, default=False, nullable=False)
    status = Column(String, default="bidding")
    start_date = Column(Date)
    end_date = Column(Date)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    organization = relationship("Organization")
    contractor = relationship("User")


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        Index("idx_contracts_project", "project_id"),
        Index("idx_contracts_contractor", "contractor_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    contractor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # Agreed contract price, tax included, in yen.
    bid_amount = Column(Integer, nullable=False, default=0)
    # Contractor side support opt-in.
    support_enabled = Column(Boolean, default=False, nullable=False)
    status = Column(String, default="signed")
    signed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    project = relationship("Project")
    organization = relationship("Organization")
    contractor = relationship("User")


class SystemSettings(Base):
    __tablename__ = "system_settings"

    id = Column(String, primary_key=True, default="global")
    support_fee_percent = Column(Float, nullable=False, default=8)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        Index("idx_invoices_status", "status"),
        Index("idx_invoices_org", "org_id"),
        Index("idx_invoices_contractor_issue_date", "contractor_id", "issue_date"),
        UniqueConstraint("contract_id", name="uq_invoices_contract_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String, unique=True, nullable=False)
    contract_id = Column(Integer, ForeignKey("contracts.id"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    contractor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    direction = Column(String, nullable=False)
    base_amount = Column(Integer, nullable=False, default=0)
    system_fee = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False, default=0)
    withholding_amount = Column(Integer, nullable=False, default=0)
    final_amount = Column(Integer, nullable=False, default=0)
    support_fee_percent = Column(Float, nullable=False, default=8)
    support_applied_to = Column(String, nullable=False, default="none")
    memo = Column(Text)
    status = Column(String, nullable=False, default="draft")
    issue_date = Column(Date)
    due_date = Column(Date)
    paid_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    contract = relationship("Contract")
    project = relationship("Project")
    organization = relationship("Organization")
    contractor = relationship("User")

    @property
    def fee_amount(self) -> int:
        return self.system_fee


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("idx_notifications_user", "user_id"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, nullable=False, default="invoice")
    data = Column(JSON)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Payout(Base):
    __tablename__ = "payouts"
    __table_args__ = (
        UniqueConstraint("contractor_id", "period_start", name="uq_payouts_contractor_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    contractor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    scheduled_pay_date = Column(Date, nullable=False)
    gross_amount = Column(Integer, nullable=False, default=0)
    tax_withholding = Column(Integer, nullable=False, default=0)
    transfer_fee = Column(Integer, nullable=False, default=0)
    net_amount = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="scheduled")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    contractor = relationship("User")


class OrgMonthlyInvoice(Base):
    __tablename__ = "org_monthly_invoices"
    __table_args__ = (
        UniqueConstraint("org_id", "billing_year", "billing_month", name="uq_org_monthly_invoices_org_month"),
    )

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String, unique=True, nullable=False)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    billing_year = Column(Integer, nullable=False)
    billing_month = Column(Integer, nullable=False)
    billing_period = Column(String, nullable=False)
    base_amount = Column(Integer, nullable=False, default=0)
    support_fee = Column(Integer, nullable=False, default=0)
    system_fee = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False, default=0)
    # One entry per completed project billed on this invoice.
    project_list = Column(JSON, nullable=False, default=list)
    status = Column(String, nullable=False, default="issued")
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    memo = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    organization = relationship("Organization")


class MonthlyStatement(Base):
    __tablename__ = "monthly_statements"
    __table_args__ = (
        UniqueConstraint("org_id", "period_start", name="uq_monthly_statements_org_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    org_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    contractors_total = Column(Integer, nullable=False, default=0)
    operator_fee = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="issued")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    organization = relationship("Organization")
