from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import OTHER_EMAIL, OTHER_PASSWORD, board_layout, create_project, create_task, login


@pytest.mark.anyio
async def test_create_multiple_tasks_in_same_status_assigns_order_index(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client, "Order Index Project")

  created = [await create_task(client, p["id"], f"Task {i}") for i in range(3)]
  assert [t["order"] for t in created] == [0, 1, 2]
  assert all(t["status"] == "todo" for t in created)
  assert all(t["version"] == 0 for t in created)


@pytest.mark.anyio
async def test_order_index_is_counted_per_status(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)

  await create_task(client, p["id"], "Frame walls")
  await create_task(client, p["id"], "Hang drywall")
  done = await create_task(client, p["id"], "Pull permit", status="done")
  assert done["order"] == 0

  assert await board_layout(client, p["id"]) == {
    "todo": [("Frame walls", 0), ("Hang drywall", 1)],
    "done": [("Pull permit", 0)],
  }


@pytest.mark.anyio
async def test_create_task_optional_fields(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)

  t = await create_task(
    client,
    p["id"],
    "Install vanity",
    description="Double sink",
    priority=2,
    dueDate="2026-11-01",
  )
  assert t["description"] == "Double sink"
  assert t["priority"] == 2
  assert t["dueDate"].startswith("2026-11-01")
  assert t["projectId"] == p["id"]


@pytest.mark.anyio
@pytest.mark.parametrize(("title", "accepted"), [("abc", True), ("ab", False), ("x" * 100, True), ("x" * 101, False)])
async def test_title_length_bounds(client: AsyncClient, title: str, accepted: bool) -> None:
  await login(client)
  p = await create_project(client)

  res = await client.post(f"/projects/{p['id']}/tasks", json={"title": title})
  if accepted:
    assert res.status_code == 200, res.text
    assert res.json()["task"]["title"] == title
  else:
    assert res.status_code == 422, res.text
    body = res.json()
    assert body["success"] is False
    assert body["code"] == "invalid"
    assert "title" in body["errors"]


@pytest.mark.anyio
async def test_create_task_rejects_unknown_status(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)

  res = await client.post(f"/projects/{p['id']}/tasks", json={"title": "Tile shower", "status": "blocked"})
  assert res.status_code == 422, res.text
  assert "status" in res.json()["errors"]


@pytest.mark.anyio
async def test_create_task_in_foreign_project_is_denied(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)

  await login(client, OTHER_EMAIL, OTHER_PASSWORD)
  res = await client.post(f"/projects/{p['id']}/tasks", json={"title": "Sneaky task"})
  assert res.status_code == 404, res.text
  body = res.json()
  assert body["success"] is False
  assert body["code"] == "denied"
  assert body["error"] == "Project not found or access denied."

  missing = await client.post("/projects/does-not-exist/tasks", json={"title": "Lost task"})
  assert missing.status_code == 404
  assert missing.json()["error"] == body["error"]

  await login(client)
  assert await board_layout(client, p["id"]) == {}


@pytest.mark.anyio
async def test_unauthenticated_request_points_to_sign_in(client: AsyncClient) -> None:
  res = await client.post("/projects/anything/tasks", json={"title": "Anonymous"})
  assert res.status_code == 401
  assert res.json()["signInUrl"] == "/sign-in"
