"""Create initial Rexera schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

"""
import sqlalchemy as sa
from alembic import op

# revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

priority_level = sa.Enum("LOW", "NORMAL", "HIGH", "URGENT", name="priority_level")


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False))
    return columns


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("domain", sa.String(255), nullable=True, unique=True),
        *_timestamps(),
    )

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_type",
            sa.Enum("client_user", "hil_user", name="user_type"),
            nullable=False,
            index=True,
        ),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("company_id", sa.String(36), sa.ForeignKey("clients.id"), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "agents",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("type", sa.String(50), nullable=False, index=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("capabilities", sa.JSON, nullable=False),
        sa.Column("api_endpoint", sa.String(500), nullable=True),
        sa.Column("configuration", sa.JSON, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, index=True),
        *_timestamps(),
    )

    op.create_table(
        "workflows",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("human_readable_id", sa.String(32), nullable=True, unique=True),
        sa.Column(
            "workflow_type",
            sa.Enum(
                "MUNI_LIEN_SEARCH", "HOA_ACQUISITION", "PAYOFF_REQUEST", name="workflow_type"
            ),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "client_id", sa.String(36), sa.ForeignKey("clients.id"), nullable=False, index=True
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING",
                "IN_PROGRESS",
                "AWAITING_REVIEW",
                "BLOCKED",
                "COMPLETED",
                name="workflow_status",
            ),
            nullable=False,
            index=True,
        ),
        sa.Column("priority", priority_level, nullable=False),
        sa.Column("metadata", sa.JSON, nullable=False),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("user_profiles.id"), nullable=True),
        sa.Column(
            "assigned_to",
            sa.String(36),
            sa.ForeignKey("user_profiles.id"),
            nullable=True,
            index=True,
        ),
        *_timestamps(),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("n8n_execution_id", sa.String(100), nullable=True),
        sa.Column("n8n_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("n8n_status", sa.String(20), nullable=False),
    )
    op.create_index("ix_workflows_client_status", "workflows", ["client_id", "status"])
    op.create_index("ix_workflows_created_at", "workflows", ["created_at"])

    op.create_table(
        "task_executions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "workflow_id",
            sa.String(36),
            sa.ForeignKey("workflows.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("agent_id", sa.String(36), sa.ForeignKey("agents.id"), nullable=True, index=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("sequence_order", sa.Integer, nullable=False),
        sa.Column("task_type", sa.String(100), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING",
                "IN_PROGRESS",
                "AWAITING_REVIEW",
                "INTERRUPT",
                "COMPLETED",
                "FAILED",
                name="task_status",
            ),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "interrupt_type",
            sa.Enum(
                "MISSING_DOCUMENT",
                "PAYMENT_REQUIRED",
                "CLIENT_CLARIFICATION",
                "MANUAL_VERIFICATION",
                name="interrupt_type",
            ),
            nullable=True,
        ),
        sa.Column("executor_type", sa.Enum("AI", "HIL", name="executor_type"), nullable=False),
        sa.Column(
            "priority",
            priority_level,
            nullable=False,
        ),
        sa.Column("input_data", sa.JSON, nullable=False),
        sa.Column("output_data", sa.JSON, nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("execution_time_ms", sa.Integer, nullable=True),
        sa.Column("retry_count", sa.Integer, nullable=False),
        sa.Column("sla_hours", sa.Integer, nullable=False),
        sa.Column("sla_due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "sla_status",
            sa.Enum("ON_TIME", "AT_RISK", "BREACHED", name="sla_status"),
            nullable=False,
        ),
        *_timestamps(updated=False),
    )
    op.create_index(
        "ix_task_executions_workflow_type", "task_executions", ["workflow_id", "task_type"]
    )
    op.create_index(
        "ix_task_executions_sla", "task_executions", ["sla_due_at", "sla_status", "status"]
    )

    op.create_table(
        "communications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "workflow_id",
            sa.String(36),
            sa.ForeignKey("workflows.id", ondelete="CASCADE"),
            nullable=True,
            index=True,
        ),
        sa.Column("thread_id", sa.String(36), nullable=True, index=True),
        sa.Column("sender_id", sa.String(36), sa.ForeignKey("user_profiles.id"), nullable=True),
        sa.Column("recipient_email", sa.String(255), nullable=True),
        sa.Column("subject", sa.String(500), nullable=True),
        sa.Column("body", sa.Text, nullable=True),
        sa.Column("communication_type", sa.String(20), nullable=False, index=True),
        sa.Column("direction", sa.Enum("INBOUND", "OUTBOUND", name="email_direction"), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "DRAFT", "SENT", "DELIVERED", "READ", "BOUNCED", "FAILED", name="email_status"
            ),
            nullable=True,
        ),
        sa.Column("metadata", sa.JSON, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "email_metadata",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "communication_id",
            sa.String(36),
            sa.ForeignKey("communications.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("message_id", sa.String(255), nullable=True),
        sa.Column("in_reply_to", sa.String(255), nullable=True),
        sa.Column("email_references", sa.JSON, nullable=False),
        sa.Column("attachments", sa.JSON, nullable=False),
        sa.Column("headers", sa.JSON, nullable=False),
        *_timestamps(updated=False),
    )

    op.create_table(
        "phone_metadata",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "communication_id",
            sa.String(36),
            sa.ForeignKey("communications.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("phone_number", sa.String(50), nullable=True),
        sa.Column("duration_seconds", sa.Integer, nullable=True),
        sa.Column("call_recording_url", sa.String(1000), nullable=True),
        sa.Column("transcript", sa.Text, nullable=True),
        *_timestamps(updated=False),
    )

    op.create_table(
        "client_chat_metadata",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "communication_id",
            sa.String(36),
            sa.ForeignKey("communications.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("external_platform_type", sa.String(50), nullable=True),
        sa.Column("external_platform_id", sa.String(255), nullable=True),
        sa.Column("cc_recipients", sa.JSON, nullable=False),
        sa.Column("bcc_recipients", sa.JSON, nullable=False),
        *_timestamps(updated=False),
    )

    op.create_table(
        "counterparties",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, index=True),
        sa.Column(
            "type",
            sa.Enum(
                "hoa", "lender", "municipality", "utility", "tax_authority",
                name="counterparty_type",
            ),
            nullable=False,
            index=True,
        ),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("contact_info", sa.JSON, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "workflow_counterparties",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "workflow_id",
            sa.String(36),
            sa.ForeignKey("workflows.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "counterparty_id",
            sa.String(36),
            sa.ForeignKey("counterparties.id"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING", "CONTACTED", "RESPONDED", "COMPLETED",
                name="workflow_counterparty_status",
            ),
            nullable=False,
        ),
        *_timestamps(),
        sa.UniqueConstraint("workflow_id", "counterparty_id", name="uq_workflow_counterparty"),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "workflow_id",
            sa.String(36),
            sa.ForeignKey("workflows.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("filename", sa.String(500), nullable=False),
        sa.Column("url", sa.String(2000), nullable=False),
        sa.Column("file_size_bytes", sa.BigInteger, nullable=True),
        sa.Column("mime_type", sa.String(255), nullable=True),
        sa.Column("document_type", sa.String(20), nullable=False, index=True),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("upload_source", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("metadata", sa.JSON, nullable=False),
        sa.Column("deliverable_data", sa.JSON, nullable=False),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("change_summary", sa.Text, nullable=True),
        sa.Column("created_by", sa.String(36), sa.ForeignKey("user_profiles.id"), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "hil_notes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "workflow_id",
            sa.String(36),
            sa.ForeignKey("workflows.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("author_id", sa.String(36), sa.ForeignKey("user_profiles.id"), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column(
            "priority",
            priority_level,
            nullable=False,
        ),
        sa.Column("is_resolved", sa.Boolean, nullable=False),
        sa.Column(
            "parent_note_id",
            sa.String(36),
            sa.ForeignKey("hil_notes.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("mentions", sa.JSON, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "hil_notifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id", sa.String(36), sa.ForeignKey("user_profiles.id"), nullable=False, index=True
        ),
        sa.Column(
            "type",
            sa.Enum(
                "WORKFLOW_UPDATE",
                "TASK_INTERRUPT",
                "HIL_MENTION",
                "CLIENT_MESSAGE_RECEIVED",
                "COUNTERPARTY_MESSAGE_RECEIVED",
                "SLA_WARNING",
                "AGENT_FAILURE",
                name="notification_type",
            ),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "priority",
            priority_level,
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("action_url", sa.String(1000), nullable=True),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("read", sa.Boolean, nullable=False, index=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
    )

    op.create_table(
        "audit_events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "actor_type",
            sa.Enum("human", "agent", "system", name="audit_actor_type"),
            nullable=False,
        ),
        sa.Column("actor_id", sa.String(128), nullable=False, index=True),
        sa.Column("actor_name", sa.String(255), nullable=True),
        sa.Column("event_type", sa.String(50), nullable=False, index=True),
        sa.Column(
            "action",
            sa.Enum(
                "create",
                "read",
                "update",
                "delete",
                "execute",
                "approve",
                "reject",
                "login",
                "logout",
                name="audit_action",
            ),
            nullable=False,
            index=True,
        ),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("resource_id", sa.String(128), nullable=False),
        sa.Column("workflow_id", sa.String(36), nullable=True, index=True),
        sa.Column("client_id", sa.String(36), nullable=True, index=True),
        sa.Column("event_data", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, index=True),
    )
    op.create_index("ix_audit_events_resource", "audit_events", ["resource_type", "resource_id"])
    op.create_index("ix_audit_events_actor", "audit_events", ["actor_type", "actor_id"])
    op.create_index("ix_audit_events_created_type", "audit_events", ["created_at", "event_type"])


def downgrade() -> None:
    for table in (
        "audit_events",
        "hil_notifications",
        "hil_notes",
        "documents",
        "workflow_counterparties",
        "counterparties",
        "client_chat_metadata",
        "phone_metadata",
        "email_metadata",
        "communications",
        "task_executions",
        "workflows",
        "agents",
        "user_profiles",
        "clients",
    ):
        op.drop_table(table)
