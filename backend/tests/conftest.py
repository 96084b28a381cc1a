"""
Pytest configuration and shared fixtures for the Marketplace API tests.

Provides an in-memory SQLite session, an httpx AsyncClient bound to the
FastAPI app with get_db overridden, and helpers for users, catalog entries
and bearer tokens.
"""
import pytest
import pytest_asyncio
from decimal import Decimal
from typing import AsyncGenerator

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from database import Base, get_db
from config import settings
from middleware.rate_limit import limiter

# ── Test Configuration ───────────────────────────────────────────────
# Set test-only values for settings that would normally come from .env
settings.jwt_secret = "test-jwt-secret-for-pytest-only"
settings.midtrans_server_key = "test-server-key"
settings.simulation_mode = True
settings.environment = "development"


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    limiter.reset()
    yield
    limiter.reset()


# ── Database Fixtures ────────────────────────────────────────────────


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client for the FastAPI app with the in-memory database.

    Overrides get_db so requests and the test share one session.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ── Users ────────────────────────────────────────────────────────────


async def create_user(db: AsyncSession, *, email: str, name: str = "Test User", role: str = "client"):
    """Register a user (password 'password123') and set its role."""
    from domain.enums import UserRole
    from services import auth_service

    user, _ = await auth_service.register_user(db, name=name, email=email, password="password123")
    if role != UserRole.CLIENT.value:
        await auth_service.set_role(db, email=email, role=UserRole(role))
    await db.commit()
    return user


def auth_headers(user_id: str, role: str = "client") -> dict:
    """Authorization header with a valid JWT for the given user."""
    from middleware.auth import issue_access_token

    token, _ = issue_access_token(user_id=user_id, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def client_user(db_session: AsyncSession):
    return await create_user(db_session, email="client@example.com", name="Casey Client")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession):
    return await create_user(db_session, email="other@example.com", name="Olive Other")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession):
    return await create_user(db_session, email="admin@example.com", name="Ada Admin", role="admin")


@pytest.fixture
def client_headers(client_user) -> dict:
    return auth_headers(client_user.id)


@pytest.fixture
def other_headers(other_user) -> dict:
    return auth_headers(other_user.id)


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return auth_headers(admin_user.id, role="admin")


# ── Catalog ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def sample_category(db_session: AsyncSession, admin_user):
    from db_models import ServiceCategory

    category = ServiceCategory(name="Web Development", sort_order=1, created_by=admin_user.id)
    db_session.add(category)
    await db_session.commit()
    return category


@pytest_asyncio.fixture
async def sample_service(db_session: AsyncSession, sample_category, admin_user):
    from db_models import Service

    service = Service(
        title="Landing Page",
        description="A responsive landing page",
        category_id=sample_category.id,
        price=Decimal("150.00"),
        currency="USD",
        delivery_time=7,
        features=["Responsive", "SEO"],
        created_by=admin_user.id,
    )
    db_session.add(service)
    await db_session.commit()
    return service


@pytest_asyncio.fixture
async def sample_product(db_session: AsyncSession, admin_user):
    from db_models import DigitalProduct

    product = DigitalProduct(
        title="Admin Dashboard Template",
        description="React admin template",
        category="template",
        price=Decimal("49.00"),
        currency="USD",
        download_url="https://files.example.com/dashboard.zip",
        download_limit=3,
        created_by=admin_user.id,
    )
    db_session.add(product)
    await db_session.commit()
    return product


@pytest_asyncio.fixture
async def sample_order(db_session: AsyncSession, client_user, sample_service):
    from services import order_service

    order = await order_service.create_order(
        db_session, user_id=client_user.id, is_admin=False, service_id=sample_service.id
    )
    await db_session.commit()
    return order


@pytest_asyncio.fixture
async def sample_purchase(db_session: AsyncSession, client_user, sample_product):
    from services import purchase_service

    purchase = await purchase_service.create_purchase(
        db_session, user_id=client_user.id, product_id=sample_product.id, license_type="personal"
    )
    await db_session.commit()
    return purchase
