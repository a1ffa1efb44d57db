from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import OTHER_EMAIL, OTHER_PASSWORD, OWNER_EMAIL, create_project, create_task, login


@pytest.mark.anyio
async def test_project_crud(client: AsyncClient) -> None:
  await login(client)

  none_yet = await client.get("/projects/latest")
  assert none_yet.status_code == 404

  p = await create_project(client, "  Deck Build  ")
  assert p["name"] == "Deck Build"
  assert p["address"] == "1 Test Street"
  assert p["isArchived"] is False

  latest = await client.get("/projects/latest")
  assert latest.status_code == 200
  assert latest.json()["id"] == p["id"]

  listed = (await client.get("/projects")).json()
  assert [x["id"] for x in listed] == [p["id"]]

  patched = await client.patch(f"/projects/{p['id']}", json={"description": "Cedar, 12x16"})
  assert patched.status_code == 200, patched.text
  assert patched.json()["description"] == "Cedar, 12x16"
  assert patched.json()["name"] == "Deck Build"

  archived = await client.patch(f"/projects/{p['id']}", json={"isArchived": True})
  assert archived.json()["isArchived"] is True
  assert (await client.get("/projects/latest")).status_code == 404

  got = await client.get(f"/projects/{p['id']}")
  assert got.status_code == 200


@pytest.mark.anyio
async def test_delete_project_removes_its_tasks(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)
  await create_task(client, p["id"], "Gone soon")

  res = await client.delete(f"/projects/{p['id']}")
  assert res.status_code == 200, res.text

  assert (await client.get(f"/projects/{p['id']}")).status_code == 404
  assert (await client.get(f"/projects/{p['id']}/tasks")).status_code == 404


@pytest.mark.anyio
async def test_projects_are_private_to_their_owner(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)

  await login(client, OTHER_EMAIL, OTHER_PASSWORD)
  assert (await client.get("/projects")).json() == []
  for res in (
    await client.get(f"/projects/{p['id']}"),
    await client.patch(f"/projects/{p['id']}", json={"name": "Mine now"}),
    await client.delete(f"/projects/{p['id']}"),
    await client.get(f"/projects/{p['id']}/tasks"),
    await client.get(f"/projects/{p['id']}/board"),
    await client.get(f"/projects/{p['id']}/assignees"),
  ):
    assert res.status_code == 404, res.text
    assert res.json()["detail"] == "Project not found or access denied."


@pytest.mark.anyio
async def test_team_members_become_assignee_candidates(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)

  only_owner = (await client.get(f"/projects/{p['id']}/assignees")).json()
  assert [a["email"] for a in only_owner] == [OWNER_EMAIL]
  assert only_owner[0]["name"] == "Olive Owner"

  added = await client.post(f"/projects/{p['id']}/members", json={"email": "  Other@HomePlanner.local "})
  assert added.status_code == 200, added.text
  again = await client.post(f"/projects/{p['id']}/members", json={"email": OTHER_EMAIL})
  assert again.json().get("already") is True

  unknown = await client.post(f"/projects/{p['id']}/members", json={"email": "nobody@example.com"})
  assert unknown.status_code == 404

  names = [a["name"] for a in (await client.get(f"/projects/{p['id']}/assignees")).json()]
  assert names == ["Olive Owner", "Oscar Other"]

  # Membership grants no access; ownership stays single.
  await login(client, OTHER_EMAIL, OTHER_PASSWORD)
  assert (await client.get(f"/projects/{p['id']}/tasks")).status_code == 404


@pytest.mark.anyio
async def test_audit_log_records_task_changes(client: AsyncClient) -> None:
  await login(client)
  p = await create_project(client)
  t = await create_task(client, p["id"], "Audited task")
  await client.post(f"/projects/{p['id']}/tasks/sync", json={"tasks": [{"id": t["id"], "status": "done", "order": 0}]})
  await client.delete(f"/projects/{p['id']}/tasks/{t['id']}")

  res = await client.get(f"/projects/{p['id']}/audit")
  assert res.status_code == 200, res.text
  types = {e["eventType"] for e in res.json()}
  assert {"project.created", "task.created", "tasks.synced", "task.deleted"} <= types

  only_task = await client.get(f"/projects/{p['id']}/audit", params={"taskId": t["id"]})
  assert {e["eventType"] for e in only_task.json()} == {"task.created", "task.deleted"}
