"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from nexus_gateway.api.main import create_app
from nexus_gateway.api.dependencies import get_cop_registry
from nexus_gateway.infrastructure.clients.cop_registry import StaticCopRegistry
from nexus_gateway.infrastructure.database.models import Base, CoolingPeriodConfigRecord, PayeeRecord
from nexus_gateway.infrastructure.database.session import get_db, get_session_factory


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Accounts known to the test CoP registry
REGISTRY_ACCOUNTS = {
    ("20-00-00", "55779911"): "Jane Smith",
    ("40-47-84", "70872490"): "Acme Plumbing Ltd",
}


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cop_registry() -> StaticCopRegistry:
    return StaticCopRegistry(dict(REGISTRY_ACCOUNTS))


@pytest.fixture
def client(db: Session, cop_registry: StaticCopRegistry) -> TestClient:
    """Create FastAPI test client with test database and a static CoP registry"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_cop_registry] = lambda: cop_registry
    return TestClient(app)


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Actor-Id": "admin_1", "X-Actor-Role": "admin"}


@pytest.fixture
def fps_cooling(db: Session) -> CoolingPeriodConfigRecord:
    """24 hour cooling period on Faster Payments"""
    config = CoolingPeriodConfigRecord(payment_rail="fps", cooling_hours=24, is_active=True)
    db.add(config)
    db.commit()
    return config


@pytest.fixture
def make_payee(db: Session):
    """Factory for saved payees created `age` ago"""

    def _make(
        user_id: str = "user_1",
        name: str = "Jane Smith",
        sort_code: str = "20-00-00",
        account_number: str = "55779911",
        age: timedelta = timedelta(days=7),
        first_used_at: datetime | None = None,
    ) -> PayeeRecord:
        payee = PayeeRecord(
            user_id=user_id,
            name=name,
            sort_code=sort_code,
            account_number=account_number,
            is_favourite=False,
            created_at=datetime.now(timezone.utc) - age,
            first_used_at=first_used_at,
        )
        db.add(payee)
        db.commit()
        return payee

    return _make
