"""Add indexes and the one-recipient-per-client constraint for group messages."""
from alembic import op

revision = "20261019_group_messages"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_index(
        "ix_group_messages_status_scheduled",
        "group_messages",
        ["status", "scheduled_at"],
    )
    op.create_index(
        "ix_group_messages_coach",
        "group_messages",
        ["coach_id"],
    )
    op.create_unique_constraint(
        "uq_group_message_recipient",
        "group_message_recipients",
        ["message_id", "client_id"],
    )
    op.create_index(
        "ix_gmr_client",
        "group_message_recipients",
        ["client_id"],
    )
    op.create_index(
        "ix_messages_thread_created",
        "messages",
        ["coach_id", "client_id", "created_at"],
    )
    op.create_index(
        "ix_messages_group_message",
        "messages",
        ["group_message_id"],
    )
    op.create_index(
        "ix_clients_coach_active",
        "clients",
        ["coach_id", "is_active"],
    )


def downgrade() -> None:
    op.drop_index("ix_clients_coach_active", table_name="clients")
    op.drop_index("ix_messages_group_message", table_name="messages")
    op.drop_index("ix_messages_thread_created", table_name="messages")
    op.drop_index("ix_gmr_client", table_name="group_message_recipients")
    op.drop_constraint("uq_group_message_recipient", "group_message_recipients", type_="unique")
    op.drop_index("ix_group_messages_coach", table_name="group_messages")
    op.drop_index("ix_group_messages_status_scheduled", table_name="group_messages")
