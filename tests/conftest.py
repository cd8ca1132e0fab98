# Standard Library
import os
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

# La configuration doit pointer sur SQLite avant le premier import de crm
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("JWT_SECRET_KEY", "cle-de-test-uniquement")

# Third-Party Libraries
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

# First-Party Libraries
import crm.models  # noqa: E402,F401
from crm.auth.security import create_access_token, get_password_hash  # noqa: E402
from crm.clients.models import Client  # noqa: E402
from crm.database import get_db_session  # noqa: E402
from crm.main import app  # noqa: E402
from crm.materials.models import Material  # noqa: E402
from crm.projects.models import Project  # noqa: E402
from crm.users.models import User  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
API_PREFIX = "/api/v1"


def bearer(user: User) -> dict:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


async def persist(session: AsyncSession, entity):
    session.add(entity)
    await session.commit()
    await session.refresh(entity)
    return entity


# --- Fixtures de Base ---

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Base SQLite en mémoire, créée puis détruite pour chaque test."""
    engine: AsyncEngine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    TestingSessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with TestingSessionLocal() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient httpx branché sur l'application, avec la session de test."""
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db_session, None)


# --- Fixtures Utilisateur et Authentification ---

@pytest_asyncio.fixture(scope="function")
async def test_user(db_session: AsyncSession) -> User:
    return await persist(
        db_session,
        User(
            email="user@example.com",
            password_hash=get_password_hash("userpassword"),
            first_name="Jean",
            last_name="Martin",
            role="user",
        ),
    )


@pytest_asyncio.fixture(scope="function")
async def admin_user(db_session: AsyncSession) -> User:
    return await persist(
        db_session,
        User(
            email="admin@example.com",
            password_hash=get_password_hash("adminpassword"),
            first_name="Admin",
            role="admin",
        ),
    )


@pytest_asyncio.fixture(scope="function")
async def inactive_user(db_session: AsyncSession) -> User:
    return await persist(
        db_session,
        User(
            email="inactive@example.com",
            password_hash=get_password_hash("inactivepassword"),
            role="user",
            is_active=False,
        ),
    )


@pytest_asyncio.fixture(scope="function")
async def auth_headers_user(test_user: User) -> dict:
    return bearer(test_user)


@pytest_asyncio.fixture(scope="function")
async def auth_headers_admin(admin_user: User) -> dict:
    return bearer(admin_user)


# --- Fixtures Métier ---

@pytest_asyncio.fixture(scope="function")
async def sample_client(db_session: AsyncSession) -> Client:
    return await persist(
        db_session,
        Client(name="Dupont Bâtiment", email="contact@dupont.example.com", company="Dupont SARL", contact_type="company"),
    )


@pytest_asyncio.fixture(scope="function")
async def sample_project(db_session: AsyncSession, sample_client: Client) -> Project:
    return await persist(
        db_session,
        Project(
            code="PRJ-20240301-0001",
            name="Extension maison",
            client_id=sample_client.id,
            status="planning",
            budget=Decimal("50000.00"),
            actual_cost=Decimal("12000.00"),
            start_date=date(2024, 3, 1),
        ),
    )


@pytest_asyncio.fixture(scope="function")
async def sample_material(db_session: AsyncSession) -> Material:
    return await persist(
        db_session,
        Material(
            name="Ciment 25kg",
            category="Maçonnerie",
            unit="sac",
            unit_price=Decimal("8.50"),
            stock=Decimal("10.00"),
            min_stock=Decimal("5.00"),
            sku="CIM-25",
        ),
    )
