"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  op.create_table(
    "users",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("email", sa.String(), nullable=False),
    sa.Column("first_name", sa.String(), nullable=True),
    sa.Column("last_name", sa.String(), nullable=True),
    sa.Column("password_hash", sa.String(), nullable=False),
    sa.Column("profile_image_url", sa.String(), nullable=True),
    sa.Column("plan", sa.String(length=10), nullable=False, server_default="free"),
    sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_users_email", "users", ["email"], unique=True)

  op.create_table(
    "sessions",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("created_ip", sa.String(), nullable=True),
    sa.Column("user_agent", sa.String(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_sessions_user_id", "sessions", ["user_id"], unique=False)

  op.create_table(
    "projects",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("owner_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("address", sa.String(), nullable=True),
    sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_projects_owner_id", "projects", ["owner_id"], unique=False)

  op.create_table(
    "project_team_members",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("project_id", sa.String(length=36), sa.ForeignKey("projects.id"), nullable=False),
    sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("project_id", "user_id", name="ux_project_team_member_project_user"),
  )
  op.create_index("ix_project_team_members_project_id", "project_team_members", ["project_id"], unique=False)

  op.create_table(
    "tasks",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("project_id", sa.String(length=36), sa.ForeignKey("projects.id"), nullable=False),
    sa.Column("owner_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
    sa.Column("title", sa.String(length=100), nullable=False),
    sa.Column("description", sa.Text(), nullable=True),
    sa.Column("status", sa.String(length=16), nullable=False, server_default="todo"),
    sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("assignee_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=True),
    sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_tasks_project_id", "tasks", ["project_id"], unique=False)
  op.create_index("ix_tasks_project_status_order", "tasks", ["project_id", "status", "order_index"], unique=False)
  op.create_index("ix_tasks_due_date", "tasks", ["due_date"], unique=False)

  op.create_table(
    "audit_events",
    sa.Column("id", sa.String(length=36), primary_key=True),
    sa.Column("project_id", sa.String(length=36), nullable=True),
    sa.Column("task_id", sa.String(length=36), nullable=True),
    sa.Column("actor_id", sa.String(length=36), nullable=True),
    sa.Column("event_type", sa.String(), nullable=False),
    sa.Column("entity_type", sa.String(), nullable=False),
    sa.Column("entity_id", sa.String(), nullable=True),
    sa.Column("payload", sa.JSON(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
  )
  op.create_index("ix_audit_events_project_id", "audit_events", ["project_id"], unique=False)


def downgrade() -> None:
  op.drop_table("audit_events")
  op.drop_table("tasks")
  op.drop_table("project_team_members")
  op.drop_table("projects")
  op.drop_table("sessions")
  op.drop_table("users")
