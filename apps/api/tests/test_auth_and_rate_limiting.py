from __future__ import annotations

import pytest
from httpx import AsyncClient

from app.config import settings
from conftest import OWNER_EMAIL, OWNER_PASSWORD, login


@pytest.mark.anyio
async def test_login_is_case_insensitive_for_email(client: AsyncClient) -> None:
  res = await client.post("/auth/login", json={"email": "OWNER@HOMEPLANNER.LOCAL", "password": OWNER_PASSWORD})
  assert res.status_code == 200, res.text
  assert res.json()["email"] == OWNER_EMAIL


@pytest.mark.anyio
async def test_me_and_logout(client: AsyncClient) -> None:
  assert (await client.get("/auth/me")).status_code == 401

  await login(client)
  me = await client.get("/auth/me")
  assert me.status_code == 200
  assert me.json()["name"] == "Olive Owner"
  assert me.json()["plan"] == "free"

  out = await client.post("/auth/logout")
  assert out.status_code == 200
  client.cookies.clear()
  assert (await client.get("/auth/me")).status_code == 401


@pytest.mark.anyio
async def test_wrong_password_is_rejected(client: AsyncClient) -> None:
  res = await client.post("/auth/login", json={"email": OWNER_EMAIL, "password": "not-it"})
  assert res.status_code == 401


@pytest.mark.anyio
async def test_signup_starts_a_session(client: AsyncClient) -> None:
  res = await client.post(
    "/auth/signup",
    json={"email": "New.Builder@Example.com", "password": "hammer-time", "firstName": "Nia"},
  )
  assert res.status_code == 201, res.text
  assert res.json()["email"] == "new.builder@example.com"
  assert "hp_session=" in (res.headers.get("set-cookie") or "")

  me = await client.get("/auth/me")
  assert me.status_code == 200
  assert me.json()["firstName"] == "Nia"

  dup = await client.post("/auth/signup", json={"email": "new.builder@example.com", "password": "hammer-time"})
  assert dup.status_code == 409


@pytest.mark.anyio
async def test_signup_rejects_short_password(client: AsyncClient) -> None:
  res = await client.post("/auth/signup", json={"email": "short@example.com", "password": "short"})
  assert res.status_code == 422
  assert "password" in res.json()["errors"]


@pytest.mark.anyio
async def test_login_rate_limited(client: AsyncClient) -> None:
  orig_ip = settings.rate_limit_login_ip_per_minute
  orig_email = settings.rate_limit_login_email_per_minute
  settings.rate_limit_login_ip_per_minute = 3
  settings.rate_limit_login_email_per_minute = 3
  try:
    for _ in range(3):
      r = await client.post("/auth/login", json={"email": "nobody@example.com", "password": "bad"})
      assert r.status_code == 401, r.text
    r = await client.post("/auth/login", json={"email": "nobody@example.com", "password": "bad"})
    assert r.status_code == 429, r.text
    assert r.headers.get("retry-after")
  finally:
    settings.rate_limit_login_ip_per_minute = orig_ip
    settings.rate_limit_login_email_per_minute = orig_email


@pytest.mark.anyio
async def test_signup_rate_limited(client: AsyncClient) -> None:
  orig = settings.rate_limit_signup_ip_per_minute
  settings.rate_limit_signup_ip_per_minute = 1
  try:
    first = await client.post("/auth/signup", json={"email": "one@example.com", "password": "password-one"})
    assert first.status_code == 201, first.text
    second = await client.post("/auth/signup", json={"email": "two@example.com", "password": "password-two"})
    assert second.status_code == 429
  finally:
    settings.rate_limit_signup_ip_per_minute = orig
