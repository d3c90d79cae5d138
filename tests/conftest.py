from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.database import get_db
from app.core.auth.service import AuthService
from app.main import app
from app.shared.database.models import Base, Product, User

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret123"
PASSWORD_HASH = AuthService.get_password_hash(PASSWORD)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _create_user(db, email, role, is_active=True):
    user = User(
        email=email,
        password_hash=PASSWORD_HASH,
        first_name="Test",
        last_name=role.capitalize(),
        role=role,
        is_active=is_active
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def seller(db):
    return _create_user(db, "vendedor@pdv.com", "seller")


@pytest.fixture
def admin(db):
    return _create_user(db, "admin@pdv.com", "admin")


@pytest.fixture
def make_product(db):
    def factory(code="P001", price="5.00", stock=10, **kwargs):
        kwargs.setdefault("name", f"Producto {code}")
        kwargs.setdefault("minimum_stock", 0)
        product = Product(
            code=code,
            sale_price=Decimal(price),
            current_stock=stock,
            is_active=True,
            **kwargs
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return factory


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user):
    return {"Authorization": f"Bearer {AuthService.token_for(user)}"}


@pytest.fixture
def seller_headers(seller):
    return auth_headers(seller)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
