import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from storefront_auth.adapter.services.in_memory_rate_limiter import InMemoryRateLimiter
from storefront_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from storefront_auth.app.services.audit_logger import AuditLogger
from storefront_auth.depends import (
    get_admin_allow_list,
    get_audit_logger,
    get_email_sender,
    get_unit_of_work,
)
from tests.fixtures.email_outbox import EmailOutbox

ADMIN_EMAIL = "owner@example.com"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def outbox():
    return EmailOutbox()


@pytest_asyncio.fixture
async def app(db_session, session_factory, outbox):
    from storefront_auth.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)
    app.state.rate_limiter = InMemoryRateLimiter()

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    def override_get_audit_logger():
        return AuditLogger(
            lambda: SqlAlchemyUnitOfWork(session_factory(), owns_session=True)
        )

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_audit_logger] = override_get_audit_logger
    app.dependency_overrides[get_email_sender] = lambda: outbox
    app.dependency_overrides[get_admin_allow_list] = lambda: frozenset({ADMIN_EMAIL})
    return app


@pytest_asyncio.fixture
async def client(app):
    from httpx import ASGITransport

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
