from __future__ import annotations

import asyncio
import logging
import os
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.db import SessionLocal
from app.logs import configure_logging
from app.models import Project, ProjectTeamMember, Task, User
from app.security import hash_password

logger = logging.getLogger(__name__)

DEMO_OWNER_EMAIL = "demo.owner@homeplanner.local"
DEMO_CREW_EMAIL = "demo.crew@homeplanner.local"
DEMO_PROJECT_NAME = "Kitchen Renovation"

# (status, title, description, priority, due in days)
DEMO_TASKS = [
  ("todo", "Order cabinets", "Confirm measurements with the supplier before ordering.", 2, 7),
  ("todo", "Pick backsplash tile", None, 1, 10),
  ("todo", "Schedule electrician", "Two new circuits for the island.", 1, 5),
  ("inprogress", "Demo old countertops", None, 2, 1),
  ("inprogress", "Patch drywall", "North wall behind the fridge.", 0, 3),
  ("done", "Pull permits", None, 2, -4),
  ("archived", "Get first contractor quote", "Superseded by the second quote.", 0, -20),
]


def _bootstrap_password(env_key: str) -> tuple[str, bool]:
  configured = (os.getenv(env_key) or "").strip()
  if configured:
    return configured, False
  return secrets.token_urlsafe(14), True


def _truthy(value: str | None) -> bool:
  return (value or "").strip().lower() in ("1", "true", "yes", "y")


async def _ensure_user(db, email: str, first_name: str, env_key: str, boot_lines: list[str]) -> User:
  res = await db.execute(select(User).where(User.email == email))
  u = res.scalar_one_or_none()
  if u:
    return u
  password, generated = _bootstrap_password(env_key)
  u = User(email=email, first_name=first_name, password_hash=hash_password(password))
  db.add(u)
  boot_lines.append(f"{email}={password} (generated={str(generated).lower()})")
  return u


async def seed() -> list[str]:
  """Idempotent: creates the demo users and, with SEED_DEMO_PROJECT=1, one demo project with dense task order."""
  boot_lines: list[str] = []
  async with SessionLocal() as db:
    owner = await _ensure_user(db, DEMO_OWNER_EMAIL, "Olive", "SEED_OWNER_PASSWORD", boot_lines)
    crew = await _ensure_user(db, DEMO_CREW_EMAIL, "Casey", "SEED_CREW_PASSWORD", boot_lines)
    await db.flush()

    if _truthy(os.getenv("SEED_DEMO_PROJECT")):
      pres = await db.execute(select(Project).where(Project.name == DEMO_PROJECT_NAME, Project.owner_id == owner.id))
      project = pres.scalar_one_or_none()
      if not project:
        project = Project(owner_id=owner.id, name=DEMO_PROJECT_NAME, address="12 Example Lane")
        db.add(project)
        await db.flush()
        db.add(ProjectTeamMember(project_id=project.id, user_id=crew.id))

      tres = await db.execute(select(Task.id).where(Task.project_id == project.id).limit(1))
      if not tres.scalar_one_or_none():
        now = datetime.now(timezone.utc)
        next_order: dict[str, int] = {}
        for status, title, description, priority, due_in in DEMO_TASKS:
          order = next_order.get(status, 0)
          next_order[status] = order + 1
          db.add(
            Task(
              project_id=project.id,
              owner_id=owner.id,
              title=title,
              description=description,
              status=status,
              priority=priority,
              assignee_id=crew.id if status == "inprogress" else None,
              order_index=order,
              version=0,
              due_date=now + timedelta(days=due_in),
            )
          )

    await db.commit()

  if boot_lines:
    logger.info("Seed credentials created:")
    for ln in boot_lines:
      logger.info("  %s", ln)
  return boot_lines


def main() -> None:
  configure_logging()
  asyncio.run(seed())


if __name__ == "__main__":
  main()
