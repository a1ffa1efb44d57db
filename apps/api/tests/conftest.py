from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

# Must be in place before app.config builds its settings.
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{Path(tempfile.gettempdir()) / 'homeplanner_test.db'}")
os.environ.pop("REDIS_URL", None)

from app.config import settings
from app.db import SessionLocal, engine
from app.invalidation import invalidator
from app.main import app
from app.metrics import runtime_metrics
from app.models import Base, User
from app.rate_limit import limiter
from app.security import hash_password

OWNER_EMAIL = "owner@homeplanner.local"
OWNER_PASSWORD = "owner1234"
OTHER_EMAIL = "other@homeplanner.local"
OTHER_PASSWORD = "other1234"

_OWNER_HASH = hash_password(OWNER_PASSWORD)
_OTHER_HASH = hash_password(OTHER_PASSWORD)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


async def _reset_db() -> None:
  limiter.reset_prefix("auth:")
  invalidator.reset()
  runtime_metrics.reset()
  async with engine.begin() as conn:
    await conn.run_sync(Base.metadata.drop_all)
    await conn.run_sync(Base.metadata.create_all)
  async with SessionLocal() as db:
    db.add(User(email=OWNER_EMAIL, first_name="Olive", last_name="Owner", password_hash=_OWNER_HASH))
    db.add(User(email=OTHER_EMAIL, first_name="Oscar", last_name="Other", password_hash=_OTHER_HASH))
    await db.commit()
  await engine.dispose()


@pytest.fixture
async def clean_db() -> None:
  db_name = settings.database_url.rsplit("/", 1)[-1]
  if "test" not in db_name:
    raise RuntimeError(
      "Refusing to run destructive tests against non-test DB. "
      "Set DATABASE_URL to a *_test database (e.g. homeplanner_test)."
    )
  await _reset_db()
  yield
  await engine.dispose()


@pytest.fixture
async def client(clean_db) -> AsyncClient:
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


@pytest.fixture
async def db(clean_db):
  async with SessionLocal() as session:
    yield session


async def login(client: AsyncClient, email: str = OWNER_EMAIL, password: str = OWNER_PASSWORD) -> dict[str, str]:
  res = await client.post("/auth/login", json={"email": email, "password": password})
  assert res.status_code == 200, res.text
  cookie = res.headers.get("set-cookie")
  assert cookie and "hp_session=" in cookie
  return res.json()


async def seeded_user_id(email: str) -> str:
  async with SessionLocal() as db:
    res = await db.execute(select(User).where(User.email == email))
    u = res.scalar_one()
    return u.id


async def create_project(client: AsyncClient, name: str = "Bathroom Remodel") -> dict:
  res = await client.post("/projects", json={"name": name, "address": "1 Test Street"})
  assert res.status_code == 201, res.text
  return res.json()


async def create_task(client: AsyncClient, project_id: str, title: str, status: str = "todo", **extra) -> dict:
  res = await client.post(f"/projects/{project_id}/tasks", json={"title": title, "status": status, **extra})
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["success"] is True, body
  return body["task"]


async def board_layout(client: AsyncClient, project_id: str) -> dict[str, list[tuple[str, int]]]:
  res = await client.get(f"/projects/{project_id}/tasks")
  assert res.status_code == 200, res.text
  out: dict[str, list[tuple[str, int]]] = {}
  for t in res.json():
    out.setdefault(t["status"], []).append((t["title"], t["order"]))
  return out
