"""Initial KPI dashboard schema.

- users, departments, activity_log
- kpi_data, action_items
- production_stations, station_data_entries, station_kpis
- customer_claims, claim_comments, claim_workflow, claim_attachments
- user_preferences, calendar_months

Ids are application-generated UUID strings; timestamps are naive UTC.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1d9e7a5b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), nullable=False)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # Users and organisation
    op.create_table(
        "users",
        _id(),
        sa.Column("username", sa.Unicode(100), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("name", sa.Unicode(255), nullable=False),
        sa.Column("email", sa.Unicode(255), nullable=False),
        sa.Column("department", sa.Unicode(100), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("profile_image", sa.UnicodeText(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "departments",
        _id(),
        sa.Column("name", sa.Unicode(100), nullable=False),
        sa.Column("description", sa.UnicodeText(), nullable=True),
        sa.Column("manager_id", sa.String(36), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_departments"),
        sa.UniqueConstraint("name", name="uq_departments_name"),
    )

    op.create_table(
        "activity_log",
        _id(),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("description", sa.UnicodeText(), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_activity_log"),
    )
    op.create_index("ix_activity_log_user_id", "activity_log", ["user_id"])
    op.create_index("ix_activity_log_timestamp", "activity_log", ["timestamp"])

    # KPIs and actions
    op.create_table(
        "kpi_data",
        _id(),
        sa.Column("department", sa.Unicode(100), nullable=False),
        sa.Column("value", sa.Float(), nullable=True),
        sa.Column("target", sa.Float(), nullable=True),
        sa.Column("percentage", sa.Float(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("month", sa.Integer(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("updated_by", sa.String(36), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_kpi_data"),
    )
    op.create_index("ix_kpi_data_department", "kpi_data", ["department"])

    op.create_table(
        "action_items",
        _id(),
        sa.Column("title", sa.Unicode(255), nullable=False),
        sa.Column("description", sa.UnicodeText(), nullable=True),
        sa.Column("department", sa.Unicode(100), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("assignee_id", sa.String(36), nullable=True),
        sa.Column("created_by", sa.String(36), nullable=True),
        sa.Column("due_date", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_action_items"),
    )
    op.create_index("ix_action_items_department", "action_items", ["department"])
    op.create_index("ix_action_items_status", "action_items", ["status"])

    # Stations
    op.create_table(
        "production_stations",
        _id(),
        sa.Column("name", sa.Unicode(255), nullable=False),
        sa.Column("code", sa.Unicode(50), nullable=False),
        sa.Column("description", sa.UnicodeText(), nullable=True),
        sa.Column("location", sa.Unicode(255), nullable=True),
        sa.Column("responsible_id", sa.String(36), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_production_stations"),
        sa.UniqueConstraint("code", name="uq_production_stations_code"),
    )

    op.create_table(
        "station_data_entries",
        _id(),
        sa.Column("station_id", sa.String(36), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("day", sa.Integer(), nullable=False),
        sa.Column("data_type", sa.String(20), nullable=False),
        sa.Column("event_type", sa.Unicode(100), nullable=False),
        sa.Column("description", sa.UnicodeText(), nullable=True),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("reported_by", sa.String(36), nullable=True),
        sa.Column("assigned_to", sa.String(36), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_station_data_entries"),
        sa.ForeignKeyConstraint(
            ["station_id"],
            ["production_stations.id"],
            name="fk_station_data_entries_station_id_production_stations",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_station_data_entries_station_id", "station_data_entries", ["station_id"])
    op.create_index("ix_station_data_entries_date", "station_data_entries", ["date"])

    op.create_table(
        "station_kpis",
        _id(),
        sa.Column("station_id", sa.String(36), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("title", sa.Unicode(255), nullable=False),
        sa.Column("value", sa.Float(), nullable=True),
        sa.Column("target", sa.Float(), nullable=True),
        sa.Column("unit", sa.Unicode(20), nullable=False),
        sa.Column("updated_by", sa.String(36), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_station_kpis"),
        sa.ForeignKeyConstraint(
            ["station_id"],
            ["production_stations.id"],
            name="fk_station_kpis_station_id_production_stations",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("station_id", "category", name="uq_station_kpis_station_category"),
    )

    # Customer claims
    op.create_table(
        "customer_claims",
        _id(),
        sa.Column("customer_name", sa.Unicode(255), nullable=False),
        sa.Column("defect_type", sa.Unicode(255), nullable=False),
        sa.Column("customer_claim_no", sa.Unicode(100), nullable=False),
        sa.Column("quality_alarm_no", sa.Unicode(100), nullable=True),
        sa.Column("claim_date", sa.DateTime(), nullable=False),
        sa.Column("gas_claim_sap_no", sa.Unicode(100), nullable=True),
        sa.Column("detection_location", sa.Unicode(255), nullable=True),
        sa.Column("claim_creator", sa.String(36), nullable=True),
        sa.Column("gas_part_name", sa.Unicode(255), nullable=True),
        sa.Column("gas_part_ref_no", sa.Unicode(100), nullable=True),
        sa.Column("nok_quantity", sa.Integer(), nullable=True),
        sa.Column("claim_type", sa.String(20), nullable=False),
        sa.Column("cost_amount", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("issue_description", sa.UnicodeText(), nullable=True),
        sa.Column("ppm_type", sa.Unicode(50), nullable=True),
        sa.Column("claim_related_department", sa.Unicode(100), nullable=True),
        sa.Column("customer_ref_no", sa.Unicode(100), nullable=True),
        sa.Column("gpq_no", sa.Unicode(100), nullable=True),
        sa.Column("gpq_responsible_person", sa.Unicode(255), nullable=True),
        sa.Column("supplier_name", sa.Unicode(255), nullable=True),
        sa.Column("hbr_no", sa.Unicode(100), nullable=True),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("assigned_to", sa.String(36), nullable=True),
        sa.Column("resolution_date", sa.DateTime(), nullable=True),
        sa.Column("resolution_notes", sa.UnicodeText(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_customer_claims"),
        sa.UniqueConstraint("customer_claim_no", name="uq_customer_claims_customer_claim_no"),
    )
    op.create_index("ix_customer_claims_claim_date", "customer_claims", ["claim_date"])
    op.create_index("ix_customer_claims_status", "customer_claims", ["status"])

    op.create_table(
        "claim_comments",
        _id(),
        sa.Column("claim_id", sa.String(36), nullable=False),
        sa.Column("comment", sa.UnicodeText(), nullable=False),
        sa.Column("comment_by", sa.String(36), nullable=True),
        sa.Column("is_internal", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_claim_comments"),
        sa.ForeignKeyConstraint(
            ["claim_id"], ["customer_claims.id"], name="fk_claim_comments_claim_id_customer_claims", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_claim_comments_claim_id", "claim_comments", ["claim_id"])

    op.create_table(
        "claim_workflow",
        _id(),
        sa.Column("claim_id", sa.String(36), nullable=False),
        sa.Column("from_status", sa.String(20), nullable=True),
        sa.Column("to_status", sa.String(20), nullable=False),
        sa.Column("changed_by", sa.String(36), nullable=True),
        sa.Column("change_reason", sa.UnicodeText(), nullable=True),
        sa.Column("changed_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_claim_workflow"),
        sa.ForeignKeyConstraint(
            ["claim_id"], ["customer_claims.id"], name="fk_claim_workflow_claim_id_customer_claims", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_claim_workflow_claim_id", "claim_workflow", ["claim_id"])

    op.create_table(
        "claim_attachments",
        _id(),
        sa.Column("claim_id", sa.String(36), nullable=False),
        sa.Column("file_name", sa.Unicode(255), nullable=False),
        sa.Column("file_type", sa.String(100), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("file_path", sa.Unicode(500), nullable=False),
        sa.Column("uploaded_by", sa.String(36), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_claim_attachments"),
        sa.ForeignKeyConstraint(
            ["claim_id"],
            ["customer_claims.id"],
            name="fk_claim_attachments_claim_id_customer_claims",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_claim_attachments_claim_id", "claim_attachments", ["claim_id"])

    # Persisted dashboard state
    op.create_table(
        "user_preferences",
        _id(),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_user_preferences"),
        sa.UniqueConstraint("user_id", "key", name="uq_user_preferences_user_key"),
    )
    op.create_index("ix_user_preferences_user_id", "user_preferences", ["user_id"])

    op.create_table(
        "calendar_months",
        _id(),
        sa.Column("calendar", sa.String(30), nullable=False),
        sa.Column("scope", sa.Unicode(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("days", sa.JSON(), nullable=False),
        sa.Column("updated_by", sa.String(36), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_calendar_months"),
        sa.UniqueConstraint("calendar", "scope", "year", "month", name="uq_calendar_months_key"),
    )


def downgrade() -> None:
    for table in [
        "calendar_months",
        "user_preferences",
        "claim_attachments",
        "claim_workflow",
        "claim_comments",
        "customer_claims",
        "station_kpis",
        "station_data_entries",
        "production_stations",
        "action_items",
        "kpi_data",
        "activity_log",
        "departments",
        "users",
    ]:
        op.drop_table(table)
