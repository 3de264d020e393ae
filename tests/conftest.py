"""pytest fixtures for marketplace backend tests.

Provides:
- utc_timezone: Autouse fixture enforcing UTC timezone
- engine: Function-scoped SQLite database (file in tmp_path) with all tables created
- broker: Realtime change broker shared by every unit of work of a test
- uow_factory: Function-scoped UnitOfWork factory bound to the test database
- settings / app / test_client: FastAPI app wired to the test database
- keypairs and auth_headers: ed25519 wallets and signed access tokens
- seed helpers: make_collection, make_nft
"""

import os

os.environ.setdefault("APP_ENV", "test")

from typing import AsyncGenerator  # noqa: E402

import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from solders.keypair import Keypair  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import animetoken.models  # noqa: E402,F401
from animetoken.app import create_app  # noqa: E402
from animetoken.core.config import Settings  # noqa: E402
from animetoken.models.collection import Collection  # noqa: E402
from animetoken.models.nft import NFT  # noqa: E402
from animetoken.services.realtime import ChangeBroker  # noqa: E402
from animetoken.uow import create_uow_factory  # noqa: E402

JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"


@pytest.fixture(scope="session", autouse=True)
def utc_timezone():
    """Enforce UTC timezone for all tests."""
    os.environ["TZ"] = "UTC"
    yield


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Provide a fresh SQLite database with every table created."""
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with db_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def broker():
    return ChangeBroker()


@pytest.fixture
def uow_factory(session_factory, broker):
    """Provide function-scoped UnitOfWork factory publishing to ``broker``."""
    return create_uow_factory(session_factory, broker)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        APP_ENV="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        SUPABASE_JWT_SECRET=JWT_SECRET,
    )


@pytest.fixture
def app(settings, session_factory, uow_factory, broker):
    """FastAPI app with state injected (ASGITransport does not run the lifespan)."""
    application = create_app(settings)
    application.state.session_factory = session_factory
    application.state.uow_factory = uow_factory
    application.state.broker = broker
    application.state.email_client = None
    return application


@pytest_asyncio.fixture
async def test_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide AsyncClient for testing API endpoints with database access."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def wallet_keypair():
    return Keypair()


@pytest.fixture
def other_keypair():
    return Keypair()


def make_access_token(
    user_id: str,
    wallet_address: str | None = None,
    email: str | None = None,
    secret: str = JWT_SECRET,
    audience: str = "authenticated",
) -> str:
    payload = {"sub": user_id, "aud": audience, "role": "authenticated"}
    if email:
        payload["email"] = email
    if wallet_address:
        payload["user_metadata"] = {"wallet_address": wallet_address}
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def auth_headers():
    """Build ``Authorization`` headers for a user/wallet pair."""

    def _headers(user_id: str, wallet_address: str | None = None, email: str | None = None):
        token = make_access_token(user_id, wallet_address=wallet_address, email=email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def make_collection(uow_factory):
    """Persist a live collection; keyword arguments override the defaults."""

    async def _make(creator_address: str, **overrides) -> Collection:
        values = {
            "name": "Neon Ronin",
            "creator_address": creator_address,
            "max_supply": 1000,
            "items_available": 1000,
            "items_redeemed": 0,
            "mint_price": 0.01,
            "royalty_percentage": 5,
            "category": "art",
            "description": "Cyberpunk samurai",
            "image_url": "https://cdn.example.com/ronin.png",
            "is_active": True,
            "is_live": True,
        }
        values.update(overrides)
        async with await uow_factory() as uow:
            collection = await uow.collections.add(Collection(**values))
        return collection

    return _make


@pytest.fixture
def make_nft(uow_factory):
    """Persist an NFT owned (and created) by ``owner_address``."""
    counter = {"n": 0}

    async def _make(owner_address: str, **overrides) -> NFT:
        counter["n"] += 1
        values = {
            "mint_address": str(Keypair().pubkey()),
            "name": f"Ronin #{counter['n']}",
            "owner_address": owner_address,
            "creator_address": owner_address,
        }
        values.update(overrides)
        async with await uow_factory() as uow:
            nft = await uow.nfts.add(NFT(**values))
        return nft

    return _make
