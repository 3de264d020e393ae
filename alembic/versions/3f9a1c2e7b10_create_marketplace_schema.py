"""create_marketplace_schema

Revision ID: 3f9a1c2e7b10
Revises:
Create Date: 2025-11-03 14:22:41.118204

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9a1c2e7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

mint_job_status = sa.Enum(
    "PENDING", "PROCESSING", "COMPLETED", "FAILED", "CANCELLED", name="mintjobstatus"
)
mint_job_item_status = sa.Enum(
    "PENDING", "PROCESSING", "COMPLETED", "FAILED", "RETRYING", name="mintjobitemstatus"
)
supply_mode = sa.Enum("FIXED", "OPEN", name="supplymode")
profile_rank = sa.Enum("DEFAULT", "BRONZE", "SILVER", "GOLD", "DIAMOND", name="profilerank")
wallet_type = sa.Enum("PRIMARY", "SECONDARY", name="wallettype")
subscription_status = sa.Enum("PENDING", "CONFIRMED", "UNSUBSCRIBED", name="subscriptionstatus")


def upgrade() -> None:
    """Create collections, NFTs, mint queue, profiles, wallets, social, newsletter tables."""
    op.create_table(
        "collections",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=32), nullable=False),
        sa.Column("symbol", sa.String(length=10), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("site_description", sa.String(), nullable=True),
        sa.Column("onchain_description", sa.String(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("banner_image_url", sa.String(), nullable=True),
        sa.Column("creator_address", sa.String(length=64), nullable=False),
        sa.Column("creator_user_id", sa.String(length=64), nullable=True),
        sa.Column("treasury_wallet", sa.String(length=64), nullable=True),
        sa.Column("external_links", sa.JSON(), nullable=True),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("explicit_content", sa.Boolean(), nullable=False),
        sa.Column("supply_mode", supply_mode, nullable=False),
        sa.Column("max_supply", sa.Integer(), nullable=True),
        sa.Column("items_available", sa.Integer(), nullable=True),
        sa.Column("items_redeemed", sa.Integer(), nullable=False),
        sa.Column("mint_price", sa.Float(), nullable=False),
        sa.Column("royalty_percentage", sa.Float(), nullable=True),
        sa.Column("whitelist_enabled", sa.Boolean(), nullable=False),
        sa.Column("enable_primary_sales", sa.Boolean(), nullable=False),
        sa.Column("go_live_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("mint_end_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("locked_fields", sa.JSON(), nullable=True),
        sa.Column("attributes", sa.JSON(), nullable=True),
        sa.Column("collection_mint_address", sa.String(length=64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_live", sa.Boolean(), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_collections_creator_address", "collections", ["creator_address"])

    op.create_table(
        "nfts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("mint_address", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("symbol", sa.String(length=10), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("metadata_uri", sa.String(), nullable=True),
        sa.Column("collection_id", sa.Uuid(), nullable=True),
        sa.Column("owner_address", sa.String(length=64), nullable=False),
        sa.Column("creator_address", sa.String(length=64), nullable=False),
        sa.Column("creator_user_id", sa.String(length=64), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("currency", sa.String(length=10), nullable=False),
        sa.Column("is_listed", sa.Boolean(), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("attributes", sa.JSON(), nullable=True),
        sa.Column("views", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["collection_id"], ["collections.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_nfts_mint_address", "nfts", ["mint_address"], unique=True)
    op.create_index("ix_nfts_collection_id", "nfts", ["collection_id"])
    op.create_index("ix_nfts_owner_address", "nfts", ["owner_address"])
    op.create_index("ix_nfts_creator_address", "nfts", ["creator_address"])

    op.create_table(
        "mint_jobs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("wallet_address", sa.String(length=64), nullable=False),
        sa.Column("collection_id", sa.Uuid(), nullable=False),
        sa.Column("total_quantity", sa.Integer(), nullable=False),
        sa.Column("completed_quantity", sa.Integer(), nullable=False),
        sa.Column("failed_quantity", sa.Integer(), nullable=False),
        sa.Column("total_cost", sa.Float(), nullable=False),
        sa.Column("status", mint_job_status, nullable=False),
        sa.Column("error_message", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["collection_id"], ["collections.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mint_jobs_user_id", "mint_jobs", ["user_id"])
    op.create_index("ix_mint_jobs_wallet_address", "mint_jobs", ["wallet_address"])
    op.create_index("ix_mint_jobs_collection_id", "mint_jobs", ["collection_id"])
    op.create_index("ix_mint_jobs_status", "mint_jobs", ["status"])

    op.create_table(
        "mint_job_items",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("mint_job_id", sa.Uuid(), nullable=False),
        sa.Column("batch_number", sa.Integer(), nullable=False),
        sa.Column("status", mint_job_item_status, nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        sa.Column("max_retries", sa.Integer(), nullable=False),
        sa.Column("nft_mint_address", sa.String(length=64), nullable=True),
        sa.Column("transaction_signature", sa.String(length=128), nullable=True),
        sa.Column("error_message", sa.String(), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["mint_job_id"], ["mint_jobs.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("retry_count <= max_retries", name="ck_mint_job_items_retry_budget"),
    )
    op.create_index("ix_mint_job_items_mint_job_id", "mint_job_items", ["mint_job_id"])
    op.create_index("ix_mint_job_items_status", "mint_job_items", ["status"])

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("wallet_address", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("nickname", sa.String(length=15), nullable=True),
        sa.Column("bio", sa.String(length=100), nullable=True),
        sa.Column("profile_image_url", sa.String(), nullable=True),
        sa.Column("banner_image_url", sa.String(), nullable=True),
        sa.Column("current_pfp_nft_mint_address", sa.String(length=64), nullable=True),
        sa.Column("profile_rank", profile_rank, nullable=False),
        sa.Column("trade_count", sa.Integer(), nullable=False),
        sa.Column("nickname_unlock_status", sa.Boolean(), nullable=False),
        sa.Column("bio_unlock_status", sa.Boolean(), nullable=False),
        sa.Column("pfp_unlock_status", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("nickname"),
    )
    op.create_index(
        "ix_user_profiles_wallet_address", "user_profiles", ["wallet_address"], unique=True
    )
    op.create_index("ix_user_profiles_user_id", "user_profiles", ["user_id"])
    # Case-insensitive nickname uniqueness
    op.create_index(
        "uq_user_profiles_nickname_lower",
        "user_profiles",
        [sa.text("lower(nickname)")],
        unique=True,
    )

    op.create_table(
        "user_wallets",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("wallet_address", sa.String(length=64), nullable=False),
        sa.Column("wallet_type", wallet_type, nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("nickname", sa.String(length=50), nullable=True),
        sa.Column("linked_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_wallets_user_id", "user_wallets", ["user_id"])
    op.create_index(
        "ix_user_wallets_wallet_address", "user_wallets", ["wallet_address"], unique=True
    )

    op.create_table(
        "nft_likes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("nft_id", sa.Uuid(), nullable=False),
        sa.Column("user_wallet", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["nft_id"], ["nfts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("nft_id", "user_wallet", name="uq_nft_likes_nft_wallet"),
    )
    op.create_index("ix_nft_likes_nft_id", "nft_likes", ["nft_id"])
    op.create_index("ix_nft_likes_user_wallet", "nft_likes", ["user_wallet"])

    op.create_table(
        "collection_likes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("collection_id", sa.Uuid(), nullable=False),
        sa.Column("user_wallet", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["collection_id"], ["collections.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("collection_id", "user_wallet", name="uq_collection_likes_wallet"),
    )
    op.create_index("ix_collection_likes_collection_id", "collection_likes", ["collection_id"])
    op.create_index("ix_collection_likes_user_wallet", "collection_likes", ["user_wallet"])

    op.create_table(
        "creator_follows",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("creator_wallet", sa.String(length=64), nullable=False),
        sa.Column("follower_wallet", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("creator_wallet", "follower_wallet", name="uq_creator_follows_pair"),
    )
    op.create_index("ix_creator_follows_creator_wallet", "creator_follows", ["creator_wallet"])
    op.create_index("ix_creator_follows_follower_wallet", "creator_follows", ["follower_wallet"])

    op.create_table(
        "newsletter_subscribers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("status", subscription_status, nullable=False),
        sa.Column("opt_in_token", sa.String(length=64), nullable=True),
        sa.Column("subscribed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unsubscribed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_newsletter_subscribers_email", "newsletter_subscribers", ["email"], unique=True
    )
    op.create_index(
        "ix_newsletter_subscribers_opt_in_token", "newsletter_subscribers", ["opt_in_token"]
    )

    op.create_table(
        "rate_limits",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("key", sa.String(length=320), nullable=False),
        sa.Column("endpoint", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_rate_limits_key", "rate_limits", ["key"])
    op.create_index("ix_rate_limits_endpoint", "rate_limits", ["endpoint"])
    op.create_index("ix_rate_limits_created_at", "rate_limits", ["created_at"])


def downgrade() -> None:
    """Drop every marketplace table and enum type."""
    for table in (
        "rate_limits",
        "newsletter_subscribers",
        "creator_follows",
        "collection_likes",
        "nft_likes",
        "user_wallets",
        "user_profiles",
        "mint_job_items",
        "mint_jobs",
        "nfts",
        "collections",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (
        subscription_status,
        wallet_type,
        profile_rank,
        supply_mode,
        mint_job_item_status,
        mint_job_status,
    ):
        enum_type.drop(bind, checkfirst=True)
