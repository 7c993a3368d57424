"""create compliance ledger tables"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_create_compliance_ledger"
down_revision = None
branch_labels = None
depends_on = None

AUDIT_ACTIONS = (
    "view",
    "create",
    "update",
    "delete",
    "export",
    "share",
    "login",
    "logout",
    "consent_grant",
    "consent_withdraw",
    "data_request",
    "data_breach",
)
AUDIT_RESOURCE_TYPES = (
    "patient",
    "appointment",
    "medical_record",
    "prescription",
    "lab_result",
    "transaction",
    "user",
    "consent",
    "document",
    "telemedicine_session",
    "conversation",
    "message",
    "record_version",
    "guia",
    "glosa",
    "task",
    "clinic",
    "operadora",
)
PURPOSES = (
    "healthcare_provision",
    "legal_obligation",
    "vital_interests",
    "legitimate_interest",
    "consent_based",
    "marketing",
    "analytics",
    "research",
)
SUBJECT_RIGHTS = (
    "access",
    "correction",
    "anonymization",
    "portability",
    "deletion",
    "information",
    "revocation",
    "opposition",
)


def _tenant_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("clinic_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    existing = set(sa.inspect(bind).get_table_names())

    if "audit_logs" not in existing:
        op.create_table(
            "audit_logs",
            *_tenant_columns(),
            sa.Column("user_name", sa.String(length=255), nullable=False, server_default=""),
            sa.Column("action", sa.Enum(*AUDIT_ACTIONS, name="audit_action"), nullable=False),
            sa.Column(
                "resource_type",
                sa.Enum(*AUDIT_RESOURCE_TYPES, name="audit_resource_type"),
                nullable=False,
            ),
            sa.Column("resource_id", sa.String(length=128), nullable=False),
            sa.Column("details", sa.JSON(), nullable=True),
            sa.Column("modified_fields", sa.JSON(), nullable=True),
            sa.Column("previous_values", sa.JSON(), nullable=True),
            sa.Column("new_values", sa.JSON(), nullable=True),
            sa.Column("ip_address", sa.String(length=64), nullable=True),
            sa.Column("user_agent", sa.String(length=512), nullable=True),
            sa.Column("location", sa.JSON(), nullable=True),
            sa.Column("session_id", sa.String(length=128), nullable=True),
            sa.Column("request_id", sa.String(length=36), nullable=False),
            sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index("ix_audit_logs_clinic_id", "audit_logs", ["clinic_id"])
        op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
        op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])
        op.create_index("ix_audit_logs_resource", "audit_logs", ["clinic_id", "resource_type", "resource_id"])
        op.create_index("ix_audit_logs_action", "audit_logs", ["clinic_id", "action"])

    if "consents" not in existing:
        op.create_table(
            "consents",
            *_tenant_columns(),
            sa.Column("purpose", sa.Enum(*PURPOSES, name="processing_purpose"), nullable=False),
            sa.Column("data_categories", sa.JSON(), nullable=False),
            sa.Column("status", sa.Enum("granted", "withdrawn", name="consent_status"), nullable=False),
            sa.Column("version", sa.String(length=32), nullable=False, server_default="1.0.0"),
            sa.Column("ip_address", sa.String(length=64), nullable=True),
            sa.Column("user_agent", sa.String(length=512), nullable=True),
            sa.Column("granted_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("withdrawn_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("idempotency_key", sa.String(length=128), nullable=True),
            sa.UniqueConstraint("clinic_id", "idempotency_key", name="uq_consents_idempotency_key"),
        )
        op.create_index("ix_consents_clinic_id", "consents", ["clinic_id"])
        op.create_index("ix_consents_user_id", "consents", ["user_id"])
        op.create_index("ix_consents_user_purpose", "consents", ["clinic_id", "user_id", "purpose"])

    if "data_export_requests" not in existing:
        op.create_table(
            "data_export_requests",
            *_tenant_columns(),
            sa.Column("type", sa.Enum(*SUBJECT_RIGHTS, name="data_subject_right"), nullable=False),
            sa.Column(
                "status",
                sa.Enum("pending", "processing", "completed", "failed", "expired", name="export_status"),
                nullable=False,
            ),
            sa.Column("data_categories", sa.JSON(), nullable=False),
            sa.Column("format", sa.Enum("json", "pdf", "csv", name="export_format"), nullable=False),
            sa.Column("reason", sa.Text(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("error_message", sa.Text(), nullable=True),
            sa.Column("download_url", sa.String(length=2048), nullable=True),
            sa.Column("download_expires_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("idempotency_key", sa.String(length=128), nullable=True),
            sa.UniqueConstraint(
                "clinic_id", "idempotency_key", name="uq_data_export_requests_idempotency_key"
            ),
        )
        op.create_index("ix_data_export_requests_clinic_id", "data_export_requests", ["clinic_id"])
        op.create_index("ix_data_export_requests_user_id", "data_export_requests", ["user_id"])
        op.create_index("ix_data_export_requests_status", "data_export_requests", ["clinic_id", "status"])


def downgrade() -> None:
    bind = op.get_bind()
    existing = set(sa.inspect(bind).get_table_names())

    for table in ("data_export_requests", "consents", "audit_logs"):
        if table in existing:
            op.drop_table(table)
