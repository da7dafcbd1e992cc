"""Shared test fixtures."""

from __future__ import annotations

import os

os.environ["TOPTSP_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TOPTSP_REDIS_URL"] = ""
os.environ["TOPTSP_ADMIN_TOKEN"] = "test-admin-token"
os.environ["TOPTSP_LOG_FORMAT"] = "console"

from collections.abc import AsyncGenerator, AsyncIterator  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from toptsp.competition.settings_service import CURRENT_INSTANCE_KEY, ensure_defaults, set_config  # noqa: E402
from toptsp.config import get_settings  # noqa: E402
from toptsp.database import close_db, create_schema, get_session, init_db  # noqa: E402
from toptsp.db.models import TspInstance, User  # noqa: E402
from toptsp.main import create_app  # noqa: E402

get_settings.cache_clear()

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}

# Corners of a 3x4 rectangle: sides 3 and 4, diagonals 5.
RECT_TSP = """NAME: rect4
TYPE: TSP
COMMENT: 3x4 rectangle
DIMENSION: 4
EDGE_WEIGHT_TYPE: EUC_2D
NODE_COORD_SECTION
1 0 0
2 3 0
3 3 4
4 0 4
EOF
"""

# Explicit 4-node matrix used by the scoring scenarios.
SCENARIO_MATRIX = [
    [0.0, 10.0, 15.0, 20.0],
    [10.0, 0.0, 35.0, 25.0],
    [15.0, 35.0, 0.0, 30.0],
    [20.0, 25.0, 30.0, 0.0],
]


@asynccontextmanager
async def open_session() -> AsyncIterator[AsyncSession]:
    """A session outside the fixtures, e.g. one per concurrent task."""
    sessions = get_session()
    session = await anext(sessions)
    try:
        yield session
    finally:
        await sessions.aclose()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh in-memory database with the schema and default settings."""
    await init_db(get_settings().database_url)
    await create_schema()
    async with open_session() as session:
        await ensure_defaults(session)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for service-level tests."""
    async with open_session() as session:
        yield session


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against a fresh app and database."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return dict(ADMIN_HEADERS)


def user_headers(user_id: int) -> dict[str, str]:
    return {"X-User-Id": str(user_id)}


async def create_user(db: AsyncSession, email: str, *, is_admin: bool = False) -> User:
    user = User(email=email, is_admin=is_admin)
    db.add(user)
    await db.commit()
    return user


async def store_matrix_instance(
    db: AsyncSession, matrix: list[list[float]], *, name: str = "scenario",
) -> TspInstance:
    """Store an instance with an explicit distance matrix and make it active."""
    instance = TspInstance(
        name=name,
        type="TSP",
        comment="",
        dimension=len(matrix),
        edge_weight_type="EXPLICIT",
        coordinates=[{"id": i + 1, "x": 0.0, "y": 0.0} for i in range(len(matrix))],
        distance_matrix=matrix,
        original_data="",
        generation=1,
    )
    db.add(instance)
    await db.flush()
    await set_config(db, CURRENT_INSTANCE_KEY, str(instance.id))
    await db.commit()
    return instance


async def register_users(client: AsyncClient, *emails: str) -> dict[str, int]:
    """Create participants through the admin API; returns email -> id."""
    resp = await client.post("/api/v1/admin/users", json={"emails": ";".join(emails)}, headers=ADMIN_HEADERS)
    assert resp.status_code == 200, resp.text
    listing = await client.get("/api/v1/admin/users", headers=ADMIN_HEADERS)
    return {p["email"]: p["id"] for p in listing.json()}


async def upload_rect(client: AsyncClient, *, replace_existing: bool = False) -> int:
    resp = await client.post(
        "/api/v1/admin/instances",
        json={"tsp_data": RECT_TSP, "replace_existing": replace_existing},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["instance_id"]
