from __future__ import annotations

from pathlib import Path
import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from settlement.core.enums import MembershipRole
from settlement.database.models import (
    Base,
    Contract,
    Membership,
    Organization,
    Project,
    SystemSettings,
    User,
)


@pytest.fixture
def isolated_session_factory():
    tmp_root = Path(".test_tmp")
    tmp_root.mkdir(exist_ok=True)
    db_path = tmp_root / f"settlement_test_{uuid.uuid4().hex}.db"
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture
def session():
    engine = create_engine("sqlite:///:memory:")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    engine.dispose()


def _seed_contract(
    db,
    bid_amount: int = 1_000_000,
    contractor_support: bool = False,
    client_support: bool = False,
    company_number: str | None = None,
    support_fee_percent: float | None = None,
):
    """Insert an organization with one admin, a contractor, a project and a signed contract."""
    suffix = uuid.uuid4().hex[:8]
    organization = Organization(name=f"Kensetsu {suffix}", email=f"org-{suffix}@example.com", address="Osaka")
    admin = User(display_name="Org Admin", email=f"admin-{suffix}@example.com")
    contractor = User(
        display_name="Sato Taro",
        email=f"contractor-{suffix}@example.com",
        address="Nagoya",
        company_number=company_number,
    )
    db.add_all([organization, admin, contractor])
    db.commit()

    db.add(Membership(user_id=admin.id, org_id=organization.id, role=MembershipRole.ORG_ADMIN.value))
    project = Project(
        org_id=organization.id,
        contractor_id=contractor.id,
        title="Bridge inspection",
        support_enabled=client_support,
    )
    db.add(project)
    db.commit()

    contract = Contract(
        project_id=project.id,
        org_id=organization.id,
        contractor_id=contractor.id,
        bid_amount=bid_amount,
        support_enabled=contractor_support,
    )
    db.add(contract)
    if support_fee_percent is not None:
        db.add(SystemSettings(id="global", support_fee_percent=support_fee_percent))
    db.commit()
    db.refresh(contract)
    return {
        "organization": organization,
        "admin": admin,
        "contractor": contractor,
        "project": project,
        "contract": contract,
    }


@pytest.fixture
def seed_contract():
    return _seed_contract
