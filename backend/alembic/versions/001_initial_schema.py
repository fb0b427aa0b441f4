"""Initial schema - organizations, projects, field records, sync log.

Revision ID: 001
Revises: None
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _sync_identity() -> list[sa.Column]:
    return [
        sa.Column("device_id", sa.String(100), nullable=True),
        sa.Column("local_id", sa.String(100), nullable=True),
        sa.Column("sync_status", sa.String(20), nullable=False, server_default="SYNCED"),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("qa_status", sa.String(20), nullable=False, server_default="PENDING"),
    ]


def upgrade() -> None:
    # --- Organization & access ---

    op.create_table(
        "organization",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "project",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(20), unique=True, nullable=False),
        sa.Column("client", sa.String(100), nullable=True),
        sa.Column("region", sa.String(100), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        *_timestamps(),
    )
    op.create_index("ix_project_organization", "project", ["organization_id"])

    op.create_table(
        "user",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        *_timestamps(),
    )
    op.create_index("ix_user_email", "user", ["email"])
    op.create_index("ix_user_organization", "user", ["organization_id"])

    op.create_table(
        "project_assignment",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("project.id"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "project_id", name="uq_project_assignment"),
    )
    op.create_index("ix_project_assignment_user", "project_assignment", ["user_id"])

    # --- Field records ---

    op.create_table(
        "site",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("project.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("location", postgresql.JSONB, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("site_type", sa.String(50), nullable=True),
        sa.Column("access_notes", sa.Text, nullable=True),
        *_sync_identity(),
        *_timestamps(),
        sa.UniqueConstraint("device_id", "local_id", name="uq_site_device_local"),
    )
    op.create_index("ix_site_project", "site", ["project_id"])
    op.create_index("ix_site_updated_at", "site", ["updated_at"])

    op.create_table(
        "borehole",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("site_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("site.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("well_type", sa.String(20), nullable=False),
        sa.Column("total_depth", sa.Float, nullable=False),
        sa.Column("depth_unit", sa.String(10), nullable=False),
        sa.Column("drilling_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("drilling_method", sa.String(100), nullable=True),
        sa.Column("driller", sa.String(100), nullable=True),
        sa.Column("diameter", sa.Float, nullable=True),
        sa.Column("casing_details", postgresql.JSONB, nullable=True),
        sa.Column("screen_intervals", postgresql.JSONB, nullable=True),
        sa.Column("lithology_log", postgresql.JSONB, nullable=True),
        sa.Column("static_water_level", sa.Float, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_sync_identity(),
        *_timestamps(),
        sa.UniqueConstraint("device_id", "local_id", name="uq_borehole_device_local"),
    )
    op.create_index("ix_borehole_site", "borehole", ["site_id"])
    op.create_index("ix_borehole_updated_at", "borehole", ["updated_at"])

    op.create_table(
        "water_level_measurement",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("site_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("site.id"), nullable=False),
        sa.Column("borehole_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("borehole.id"), nullable=True),
        sa.Column("measurement_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("depth_to_water", sa.Float, nullable=False),
        sa.Column("depth_unit", sa.String(10), nullable=False),
        sa.Column("measurement_method", sa.String(30), nullable=False),
        sa.Column("measurement_type", sa.String(10), nullable=False),
        sa.Column("reference_point", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_sync_identity(),
        *_timestamps(),
        sa.UniqueConstraint("device_id", "local_id", name="uq_water_level_device_local"),
    )
    op.create_index("ix_water_level_site", "water_level_measurement", ["site_id"])
    op.create_index("ix_water_level_measurement_updated_at", "water_level_measurement", ["updated_at"])

    op.create_table(
        "pump_test",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("site_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("site.id"), nullable=False),
        sa.Column("borehole_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("borehole.id"), nullable=True),
        sa.Column("test_type", sa.String(20), nullable=False),
        sa.Column("test_name", sa.String(100), nullable=True),
        sa.Column("start_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_datetime", sa.DateTime(timezone=True), nullable=True),
        sa.Column("static_water_level", sa.Float, nullable=True),
        sa.Column("pump_depth", sa.Float, nullable=True),
        sa.Column("pump_type", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_sync_identity(),
        *_timestamps(),
        sa.UniqueConstraint("device_id", "local_id", name="uq_pump_test_device_local"),
    )
    op.create_index("ix_pump_test_site", "pump_test", ["site_id"])
    op.create_index("ix_pump_test_updated_at", "pump_test", ["updated_at"])

    op.create_table(
        "pump_test_entry",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("pump_test_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("pump_test.id"), nullable=False),
        sa.Column("elapsed_minutes", sa.Float, nullable=False),
        sa.Column("elapsed_seconds", sa.Integer, nullable=True),
        sa.Column("depth_to_water", sa.Float, nullable=False),
        sa.Column("drawdown", sa.Float, nullable=True),
        sa.Column("discharge", sa.Float, nullable=True),
        sa.Column("discharge_unit", sa.String(30), nullable=True),
        sa.Column("notes", sa.String(200), nullable=True),
    )
    op.create_index("ix_pump_test_entry_test", "pump_test_entry", ["pump_test_id"])

    op.create_table(
        "pump_test_step",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("pump_test_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("pump_test.id"), nullable=False),
        sa.Column("step_number", sa.Integer, nullable=False),
        sa.Column("start_minutes", sa.Float, nullable=False),
        sa.Column("end_minutes", sa.Float, nullable=False),
        sa.Column("target_discharge", sa.Float, nullable=False),
        sa.Column("actual_discharge", sa.Float, nullable=True),
        sa.UniqueConstraint("pump_test_id", "step_number", name="uq_pump_test_step_number"),
    )

    op.create_table(
        "water_quality_reading",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("site_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("site.id"), nullable=False),
        sa.Column("borehole_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("borehole.id"), nullable=True),
        sa.Column("sample_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sample_id", sa.String(50), nullable=True),
        sa.Column("temperature", sa.Float, nullable=True),
        sa.Column("temperature_unit", sa.String(12), nullable=False, server_default="celsius"),
        sa.Column("ph", sa.Float, nullable=True),
        sa.Column("electrical_conductivity", sa.Float, nullable=True),
        sa.Column("ec_unit", sa.String(8), nullable=False, server_default="uS/cm"),
        sa.Column("total_dissolved_solids", sa.Float, nullable=True),
        sa.Column("tds_unit", sa.String(8), nullable=False, server_default="mg/L"),
        sa.Column("dissolved_oxygen", sa.Float, nullable=True),
        sa.Column("do_unit", sa.String(8), nullable=False, server_default="mg/L"),
        sa.Column("turbidity", sa.Float, nullable=True),
        sa.Column("turbidity_unit", sa.String(8), nullable=False, server_default="NTU"),
        sa.Column("redox_potential", sa.Float, nullable=True),
        sa.Column("instrument_id", sa.String(100), nullable=True),
        sa.Column("calibration_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_sync_identity(),
        *_timestamps(),
        sa.UniqueConstraint("device_id", "local_id", name="uq_water_quality_device_local"),
    )
    op.create_index("ix_water_quality_site", "water_quality_reading", ["site_id"])
    op.create_index("ix_water_quality_reading_updated_at", "water_quality_reading", ["updated_at"])

    # --- Sync log ---

    op.create_table(
        "sync_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("organization.id"), nullable=True),
        sa.Column("device_id", sa.String(100), nullable=True),
        sa.Column("action", sa.String(10), nullable=False),
        sa.Column("entity_count", sa.Integer, nullable=False),
        sa.Column("success_count", sa.Integer, nullable=False),
        sa.Column("failure_count", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_sync_log_user_created", "sync_log", ["user_id", "created_at"])
    op.create_index("ix_sync_log_device", "sync_log", ["device_id"])


def downgrade() -> None:
    for table in (
        "sync_log",
        "water_quality_reading",
        "pump_test_step",
        "pump_test_entry",
        "pump_test",
        "water_level_measurement",
        "borehole",
        "site",
        "project_assignment",
        "user",
        "project",
        "organization",
    ):
        op.drop_table(table)
