from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

RULE_KINDS = ("PRICE_ABOVE", "PRICE_BELOW", "PCT_INCREASE", "PCT_DECREASE")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=32), nullable=True, unique=True),
        sa.Column("quiet_time_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("quiet_time_start", sa.String(length=5), nullable=True),
        sa.Column("quiet_time_end", sa.String(length=5), nullable=True),
        sa.Column("quiet_time_zone", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "assets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("coingecko_id", sa.String(length=100), nullable=False),
        sa.Column("symbol", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
    )
    op.create_index("ix_assets_coingecko_id", "assets", ["coingecko_id"], unique=True)

    op.create_table(
        "tracked_assets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("asset_id", sa.Integer(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "asset_id", name="uq_tracked_assets_user_asset"),
    )
    op.create_index("ix_tracked_assets_user_id", "tracked_assets", ["user_id"])
    op.create_index("ix_tracked_assets_asset_id", "tracked_assets", ["asset_id"])

    op.create_table(
        "notification_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "tracked_asset_id",
            sa.Integer(),
            sa.ForeignKey("tracked_assets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kind", sa.Enum(*RULE_KINDS, name="rule_kind"), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("time_window_hours", sa.Integer(), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_notification_rules_tracked_asset_id", "notification_rules", ["tracked_asset_id"])
    op.create_index("ix_notification_rules_is_enabled", "notification_rules", ["is_enabled"])

    op.create_table(
        "price_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("asset_id", sa.Integer(), sa.ForeignKey("assets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price", sa.Numeric(18, 8), nullable=False),
    )
    op.create_index("ix_price_history_asset_id", "price_history", ["asset_id"])
    op.create_index("ix_price_history_ts", "price_history", ["ts"])
    op.create_index("ix_price_history_asset_ts", "price_history", ["asset_id", "ts"])

    op.create_table(
        "triggered_alerts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "rule_id",
            sa.Integer(),
            sa.ForeignKey("notification_rules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("triggered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("triggering_price", sa.Float(), nullable=False),
    )
    op.create_index(
        "ix_triggered_alerts_rule_triggered_at", "triggered_alerts", ["rule_id", "triggered_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_triggered_alerts_rule_triggered_at", table_name="triggered_alerts")
    op.drop_table("triggered_alerts")

    op.drop_index("ix_price_history_asset_ts", table_name="price_history")
    op.drop_index("ix_price_history_ts", table_name="price_history")
    op.drop_index("ix_price_history_asset_id", table_name="price_history")
    op.drop_table("price_history")

    op.drop_index("ix_notification_rules_is_enabled", table_name="notification_rules")
    op.drop_index("ix_notification_rules_tracked_asset_id", table_name="notification_rules")
    op.drop_table("notification_rules")
    sa.Enum(name="rule_kind").drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_tracked_assets_asset_id", table_name="tracked_assets")
    op.drop_index("ix_tracked_assets_user_id", table_name="tracked_assets")
    op.drop_table("tracked_assets")

    op.drop_index("ix_assets_coingecko_id", table_name="assets")
    op.drop_table("assets")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
