from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import OTHER_EMAIL, OTHER_PASSWORD, board_layout, create_project, create_task, login


@pytest.mark.anyio
async def test_delete_compacts_remaining_orders(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)
  a = await create_task(client, p["id"], "Task A")
  b = await create_task(client, p["id"], "Task B")
  c = await create_task(client, p["id"], "Task C")
  d = await create_task(client, p["id"], "Task D", status="done")

  res = await client.delete(f"/projects/{p['id']}/tasks/{b['id']}")
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["success"] is True
  assert body["deletedTaskId"] == b["id"]

  by_id = {t["id"]: t for t in body["tasks"]}
  assert b["id"] not in by_id
  assert by_id[a["id"]]["order"] == 0
  assert by_id[a["id"]]["version"] == a["version"]
  assert by_id[c["id"]]["order"] == 1
  assert by_id[c["id"]]["version"] == c["version"] + 1
  # Other partitions are untouched.
  assert by_id[d["id"]]["order"] == 0
  assert by_id[d["id"]]["version"] == d["version"]

  assert await board_layout(client, p["id"]) == {"todo": [("Task A", 0), ("Task C", 1)], "done": [("Task D", 0)]}


@pytest.mark.anyio
async def test_create_after_delete_appends_at_dense_end(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)
  first = await create_task(client, p["id"], "First")
  await create_task(client, p["id"], "Second")

  assert (await client.delete(f"/projects/{p['id']}/tasks/{first['id']}")).status_code == 200
  third = await create_task(client, p["id"], "Third")
  assert third["order"] == 1
  assert await board_layout(client, p["id"]) == {"todo": [("Second", 0), ("Third", 1)]}


@pytest.mark.anyio
async def test_delete_unknown_or_foreign_task_is_denied(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)
  other_project = await create_project(client, "Garage")
  t = await create_task(client, p["id"], "Keep me")

  missing = await client.delete(f"/projects/{p['id']}/tasks/not-a-task")
  assert missing.status_code == 404
  assert missing.json()["code"] == "denied"
  assert missing.json()["error"] == "Task not found or access denied."

  # The task exists, but not under this project.
  wrong_project = await client.delete(f"/projects/{other_project['id']}/tasks/{t['id']}")
  assert wrong_project.status_code == 404

  await login(client, OTHER_EMAIL, OTHER_PASSWORD)
  foreign = await client.delete(f"/projects/{p['id']}/tasks/{t['id']}")
  assert foreign.status_code == 404
  assert foreign.json()["error"] == "Project not found or access denied."

  await login(client)
  assert await board_layout(client, p["id"]) == {"todo": [("Keep me", 0)]}


@pytest.mark.anyio
async def test_delete_twice_reports_denied_second_time(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)
  t = await create_task(client, p["id"], "Short lived")

  assert (await client.delete(f"/projects/{p['id']}/tasks/{t['id']}")).status_code == 200
  again = await client.delete(f"/projects/{p['id']}/tasks/{t['id']}")
  assert again.status_code == 404
  assert again.json()["success"] is False
