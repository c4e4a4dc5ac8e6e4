"""Pytest configuration: in-memory database and letting fixtures."""

import os
from datetime import date
from decimal import Decimal

# Set test database URL BEFORE any imports from src
# This ensures the SessionLocal and engine never touch a developer database
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.models import (  # noqa: E402
    Base,
    Landlord,
    Organization,
    Property,
    Tenancy,
    TenancyMember,
    TenancyStatus,
)
from src.services import enable_sqlite_savepoints  # noqa: E402


@pytest.fixture
def engine():
    """Create a fresh in-memory database with the full schema."""
    test_engine = enable_sqlite_savepoints(
        create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    )
    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test database."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create test database session."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def organization(db_session):
    """Create an active organization."""
    org = Organization(name="Test Lettings")
    db_session.add(org)
    db_session.commit()
    return org


class LettingBuilder:
    """Creates properties, tenancies and members with rolling defaults."""

    def __init__(self, db_session, organization):
        self.db = db_session
        self.organization = organization

    def landlord(self, manage_rent: bool = True, name: str = "Landlord") -> Landlord:
        landlord = Landlord(
            organization_id=self.organization.id, name=name, manage_rent=manage_rent
        )
        self.db.add(landlord)
        self.db.flush()
        return landlord

    def property(self, landlord: Landlord | None = None, address: str = "1 Test Street") -> Property:
        prop = Property(
            organization_id=self.organization.id,
            landlord_id=landlord.id if landlord else None,
            address=address,
        )
        self.db.add(prop)
        self.db.flush()
        return prop

    def tenancy(
        self,
        start_date: date,
        end_date: date | None = None,
        rents: tuple = (Decimal("100.00"),),
        landlord: Landlord | None = None,
        status: TenancyStatus = TenancyStatus.ACTIVE,
        is_rolling_monthly: bool = True,
        auto_generate_payments: bool = True,
    ) -> Tenancy:
        prop = self.property(landlord)
        tenancy = Tenancy(
            organization_id=self.organization.id,
            property_id=prop.id,
            start_date=start_date,
            end_date=end_date,
            status=status,
            is_rolling_monthly=is_rolling_monthly,
            auto_generate_payments=auto_generate_payments,
        )
        self.db.add(tenancy)
        self.db.flush()
        for index, rent in enumerate(rents):
            self.db.add(
                TenancyMember(
                    tenancy_id=tenancy.id,
                    name=f"Tenant {index + 1}",
                    rent_pppw=rent,
                    payment_option="monthly",
                )
            )
        self.db.commit()
        return tenancy


@pytest.fixture
def lettings(db_session, organization):
    """Builder for tenancies in the test organization."""
    return LettingBuilder(db_session, organization)
