"""
Pytest fixtures for the dispatch backend.

Every test gets a fresh in-memory SQLite database. API tests share the
test's session with the app through a get_db override.
"""
import os
import tempfile
from datetime import timedelta

_tmp = tempfile.mkdtemp(prefix="fieldglow-tests-")
os.environ.setdefault("DATABASE_PATH", os.path.join(_tmp, "test.db"))
os.environ.setdefault("FIELDGLOW_LOG_DIR", os.path.join(_tmp, "logs"))

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, enable_sqlite_savepoints, get_db
from app.core.security import create_access_token
from app.core.time_utils import utcnow
import app.models  # noqa: F401
from app.models import Employee, RoleEnum, Order, OrderStatusEnum, Product


@pytest.fixture(scope='function')
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope='function')
def db(engine):
    """Session bound to the per-test database."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope='function')
def client(db):
    from app.main import app

    def override_get_db():
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_employee(db):
    counter = {"n": 0}

    def _make(name=None, role=RoleEnum.EMPLOYEE, username=None, hashed_password="not-a-real-hash", **kwargs):
        counter["n"] += 1
        employee = Employee(
            name=name or f"Beautician {counter['n']}",
            username=username or f"user{counter['n']}",
            mobile=kwargs.pop("mobile", f"90000000{counter['n']:02d}"),
            hashed_password=hashed_password,
            role=role,
            is_active=kwargs.pop("is_active", True),
            **kwargs,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def employee(make_employee):
    return make_employee(name="Asha")


@pytest.fixture
def admin(make_employee):
    return make_employee(name="Dispatch Admin", role=RoleEnum.ADMIN, username="admin")


@pytest.fixture
def make_product(db):
    def _make(name, unit="pcs", cost_per_unit=Decimal("10"), low_stock_threshold=Decimal("0"), is_active=True):
        product = Product(
            name=name,
            unit=unit,
            cost_per_unit=cost_per_unit,
            low_stock_threshold=low_stock_threshold,
            is_active=is_active,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_order(db):
    def _make(services=None, employee=None, status=OrderStatusEnum.CONFIRMED, external_order_id=None,
              appointment_time=None, **kwargs):
        order = Order(
            customer_name=kwargs.pop("customer_name", "Priya"),
            phone=kwargs.pop("phone", "9876543210"),
            address=kwargs.pop("address", "12 MG Road"),
            services=[{"name": s, "price": 500} for s in (services or [])],
            amount=kwargs.pop("amount", 500 * len(services or [])),
            duration=kwargs.pop("duration", 60),
            appointment_time=appointment_time or utcnow() + timedelta(hours=2),
            payment_mode=kwargs.pop("payment_mode", "cash"),
            status=status,
            employee_id=employee.id if employee is not None else None,
            external_order_id=external_order_id,
            **kwargs,
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make


def auth_headers(employee):
    token = create_access_token(employee.id, employee.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def employee_headers(employee):
    return auth_headers(employee)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def headers_for():
    return auth_headers
