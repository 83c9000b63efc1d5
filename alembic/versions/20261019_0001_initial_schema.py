"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("SUPER_ADMIN", "ADMIN", "USER", name="roleenum")
version_status_enum = sa.Enum("ACTIVE", "DRAFT", "ARCHIVED", name="versionstatus")
staged_file_status_enum = sa.Enum("TEMPORARY", "CONFIRMED", "EXPIRED", name="stagedfilestatus")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_created_by"), "users", ["created_by"], unique=False)

    op.create_table(
        "applications",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("app_name", sa.String(length=150), nullable=True),
        sa.Column("app_key", sa.String(length=64), nullable=False),
        sa.Column("download_key", sa.String(length=64), nullable=False),
        sa.Column("platform", sa.String(length=16), nullable=True),
        sa.Column("bundle_id", sa.String(length=255), nullable=True),
        sa.Column("icon", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("version", sa.String(length=64), nullable=True),
        sa.Column("build_number", sa.String(length=32), nullable=True),
        sa.Column("upload_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("download_url", sa.String(length=1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_applications_owner_id"), "applications", ["owner_id"], unique=False)
    op.create_index(op.f("ix_applications_app_key"), "applications", ["app_key"], unique=True)
    op.create_index(op.f("ix_applications_download_key"), "applications", ["download_key"], unique=True)
    op.create_index(op.f("ix_applications_platform"), "applications", ["platform"], unique=False)

    op.create_table(
        "versions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("application_id", sa.String(length=36), nullable=False),
        sa.Column("version", sa.String(length=64), nullable=False),
        sa.Column("build_number", sa.String(length=32), nullable=False),
        sa.Column("release_notes", sa.Text(), nullable=False),
        sa.Column("upload_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("size", sa.String(length=32), nullable=False),
        sa.Column("status", version_status_enum, nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=1024), nullable=False),
        sa.Column("download_url", sa.String(length=1024), nullable=True),
        sa.Column("platform", sa.String(length=16), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "application_id", "version", "build_number", name="uq_versions_application_version_build"
        ),
    )
    op.create_index(op.f("ix_versions_application_id"), "versions", ["application_id"], unique=False)

    op.create_table(
        "staged_files",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("temp_path", sa.String(length=1024), nullable=False),
        sa.Column("final_path", sa.String(length=1024), nullable=True),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("mime_type", sa.String(length=120), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", staged_file_status_enum, nullable=False),
        sa.Column("parsed_info", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_staged_files_uploaded_at"), "staged_files", ["uploaded_at"], unique=False)
    op.create_index(op.f("ix_staged_files_status"), "staged_files", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_staged_files_status"), table_name="staged_files")
    op.drop_index(op.f("ix_staged_files_uploaded_at"), table_name="staged_files")
    op.drop_table("staged_files")

    op.drop_index(op.f("ix_versions_application_id"), table_name="versions")
    op.drop_table("versions")

    op.drop_index(op.f("ix_applications_platform"), table_name="applications")
    op.drop_index(op.f("ix_applications_download_key"), table_name="applications")
    op.drop_index(op.f("ix_applications_app_key"), table_name="applications")
    op.drop_index(op.f("ix_applications_owner_id"), table_name="applications")
    op.drop_table("applications")

    op.drop_index(op.f("ix_users_created_by"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_index(op.f("ix_users_username"), table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    staged_file_status_enum.drop(bind, checkfirst=True)
    version_status_enum.drop(bind, checkfirst=True)
    role_enum.drop(bind, checkfirst=True)
