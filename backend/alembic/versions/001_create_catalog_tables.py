"""Create package catalog tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates sources, distros, distro_sources, apps and packages.
How:   Portable column types only (String ids, Text JSON columns) so the same
       migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops every catalog table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sources",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(50), nullable=False),
        sa.Column(
            "install_cmd",
            sa.Text(),
            nullable=False,
            comment="Batch install prefix, e.g. 'apt install -y'",
        ),
        sa.Column(
            "remove_cmd",
            sa.Text(),
            nullable=True,
            comment="Batch remove prefix; NULL when the source cannot uninstall",
        ),
        sa.Column("require_sudo", sa.Boolean(), nullable=True, server_default=sa.text("false")),
        sa.Column("setup_cmd", sa.Text(), nullable=True),
        sa.Column("cleanup_cmd", sa.Text(), nullable=True),
        sa.Column(
            "supports_dependency_cleanup",
            sa.Boolean(),
            nullable=True,
            server_default=sa.text("false"),
        ),
        sa.Column("dependency_cleanup_cmd", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    op.create_table(
        "distros",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(50), nullable=False),
        sa.Column(
            "family",
            sa.String(50),
            nullable=False,
            comment="debian, rhel, arch, suse, independent",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("idx_distros_family", "distros", ["family"])

    op.create_table(
        "distro_sources",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("distro_id", sa.String(36), nullable=False),
        sa.Column("source_id", sa.String(36), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=True, server_default=sa.text("0")),
        sa.Column("is_default", sa.Boolean(), nullable=True, server_default=sa.text("false")),
        sa.ForeignKeyConstraint(["distro_id"], ["distros.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["source_id"], ["sources.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_distro_sources_distro_source", "distro_sources", ["distro_id", "source_id"]
    )

    op.create_table(
        "apps",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    op.create_table(
        "packages",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("app_id", sa.String(36), nullable=False),
        sa.Column("source_id", sa.String(36), nullable=False),
        sa.Column("identifier", sa.String(255), nullable=False),
        sa.Column("version", sa.String(100), nullable=True),
        sa.Column("size", sa.Integer(), nullable=True),
        sa.Column("maintainer", sa.String(255), nullable=True),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "metadata",
            sa.Text(),
            nullable=True,
            comment="JSON; scriptUrl.{linux,windows} drives script-based sources",
        ),
        sa.Column("package_setup_cmd", sa.Text(), nullable=True),
        sa.Column("package_cleanup_cmd", sa.Text(), nullable=True),
        sa.Column(
            "uninstall_metadata",
            sa.Text(),
            nullable=True,
            comment="JSON: {linux?, windows?, manualInstructions?}",
        ),
        sa.ForeignKeyConstraint(["app_id"], ["apps.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["source_id"], ["sources.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_packages_app_source", "packages", ["app_id", "source_id"])
    op.create_index("idx_packages_is_available", "packages", ["is_available"])


def downgrade() -> None:
    op.drop_index("idx_packages_is_available", table_name="packages")
    op.drop_index("idx_packages_app_source", table_name="packages")
    op.drop_table("packages")
    op.drop_table("apps")
    op.drop_index("idx_distro_sources_distro_source", table_name="distro_sources")
    op.drop_table("distro_sources")
    op.drop_index("idx_distros_family", table_name="distros")
    op.drop_table("distros")
    op.drop_table("sources")
