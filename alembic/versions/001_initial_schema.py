"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "users" in existing_tables:
        return

    op.create_table(
        "users",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("github_username", sa.String(200), nullable=False),
        sa.Column("access_token", sa.Text, nullable=True),
        sa.Column("subscription_plan", sa.String(20), default="free"),
        sa.Column("subscription_status", sa.String(30), default="inactive"),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "repositories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id", sa.String(50),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("github_repo_id", sa.BigInteger, nullable=False, unique=True),
        sa.Column("owner", sa.String(200), nullable=False),
        sa.Column("repo_name", sa.String(200), nullable=False),
        sa.Column("full_name", sa.String(400), nullable=False),
        sa.Column("webhook_id", sa.Integer, nullable=True),
        sa.Column("webhook_secret", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, default=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "microservices",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "repository_id", sa.String(36),
            sa.ForeignKey("repositories.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("service_name", sa.String(200), nullable=False),
        sa.Column("manifest_path", sa.String(500), nullable=False),
        sa.Column("status", sa.String(30), default="Backlog"),
        sa.Column("current_task", sa.Text, nullable=True),
        sa.Column("progress", sa.Integer, default=0),
        sa.Column("last_update", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_steps", sa.JSON, nullable=True),
        sa.Column("health_status", sa.String(20), default="Unknown"),
        sa.Column("last_commit_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint(
            "repository_id", "manifest_path", name="uq_microservice_manifest_path"
        ),
    )

    op.create_table(
        "commit_suggestions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "microservice_id", sa.String(36),
            sa.ForeignKey("microservices.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("commit_sha", sa.String(64), nullable=False),
        sa.Column("commit_message", sa.Text, nullable=False),
        sa.Column("parsed_status", sa.String(100), nullable=True),
        sa.Column("parsed_next_steps", sa.JSON, nullable=True),
        sa.Column("suggested_manifest", sa.JSON, nullable=False),
        sa.Column("is_applied", sa.Boolean, default=False),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("microservice_id", "commit_sha", name="uq_suggestion_commit"),
    )
    op.create_index(
        "ix_commit_suggestions_pending", "commit_suggestions", ["microservice_id", "is_applied"]
    )

    op.create_table(
        "team_members",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "owner_id", sa.String(50),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )


def downgrade() -> None:
    op.drop_table("team_members")
    op.drop_index("ix_commit_suggestions_pending", table_name="commit_suggestions")
    op.drop_table("commit_suggestions")
    op.drop_table("microservices")
    op.drop_table("repositories")
    op.drop_table("users")
