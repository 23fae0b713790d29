"""create_swap_tables

Revision ID: 3f8d2b6a91c4
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f8d2b6a91c4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("upc", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("brand", sa.String(length=200), nullable=True),
        sa.Column("company_name", sa.String(length=200), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=200), nullable=True),
        sa.Column("subcategory", sa.String(length=200), nullable=True),
        sa.Column("total_score", sa.Integer(), nullable=True),
        sa.Column("nutriscore_grade", sa.String(length=1), nullable=True),
        sa.Column("nova_group", sa.Integer(), nullable=True),
        sa.Column("is_organic", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("typical_price", sa.Float(), nullable=True),
        sa.Column("swaps_to_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("swap_origin", sa.String(length=20), nullable=False, server_default="none"),
        sa.Column("swap_discovered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("swap_discovery_type", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "total_score IS NULL OR (total_score >= 0 AND total_score <= 100)",
            name="ck_products_total_score_range",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_products_upc"), "products", ["upc"], unique=True)
    op.create_index(op.f("ix_products_category"), "products", ["category"], unique=False)
    op.create_index(op.f("ix_products_subcategory"), "products", ["subcategory"], unique=False)
    op.create_index(op.f("ix_products_total_score"), "products", ["total_score"], unique=False)
    op.create_index(op.f("ix_products_swap_discovery_type"), "products", ["swap_discovery_type"], unique=False)

    op.create_table(
        "local_sightings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("upc", sa.String(length=20), nullable=False),
        sa.Column("store_name", sa.String(length=255), nullable=False),
        sa.Column("store_address", sa.Text(), nullable=True),
        sa.Column("store_zip", sa.String(length=10), nullable=True),
        sa.Column("aisle", sa.String(length=50), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("in_stock", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("verified_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("reported_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("last_verified_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_local_sightings_upc"), "local_sightings", ["upc"], unique=False)
    op.create_index(op.f("ix_local_sightings_store_zip"), "local_sightings", ["store_zip"], unique=False)

    op.create_table(
        "flyer_availability",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("upc", sa.String(length=20), nullable=True),
        sa.Column("merchant", sa.String(length=100), nullable=False),
        sa.Column("flyer_product_name", sa.String(length=500), nullable=True),
        sa.Column("flyer_item_id", sa.String(length=50), nullable=False, server_default="unknown"),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("price_text", sa.String(length=100), nullable=True),
        sa.Column("valid_to", sa.DateTime(timezone=True), nullable=True),
        sa.Column("crawled_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("upc", "merchant", "flyer_item_id", name="uq_flyer_upc_merchant_item"),
    )
    op.create_index(op.f("ix_flyer_availability_upc"), "flyer_availability", ["upc"], unique=False)
    op.create_index(op.f("ix_flyer_availability_merchant"), "flyer_availability", ["merchant"], unique=False)
    op.create_index(op.f("ix_flyer_availability_expires_at"), "flyer_availability", ["expires_at"], unique=False)

    op.create_table(
        "curated_availability",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("upc", sa.String(length=20), nullable=False),
        sa.Column("store_name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("upc", "store_name", name="uq_curated_upc_store"),
    )
    op.create_index(op.f("ix_curated_availability_upc"), "curated_availability", ["upc"], unique=False)

    op.create_table(
        "recipes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("replaces_category", sa.String(length=100), nullable=True),
        sa.Column("replaces_products_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("prep_minutes", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_recipes_replaces_category"), "recipes", ["replaces_category"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_recipes_replaces_category"), table_name="recipes")
    op.drop_table("recipes")
    op.drop_index(op.f("ix_curated_availability_upc"), table_name="curated_availability")
    op.drop_table("curated_availability")
    op.drop_index(op.f("ix_flyer_availability_expires_at"), table_name="flyer_availability")
    op.drop_index(op.f("ix_flyer_availability_merchant"), table_name="flyer_availability")
    op.drop_index(op.f("ix_flyer_availability_upc"), table_name="flyer_availability")
    op.drop_table("flyer_availability")
    op.drop_index(op.f("ix_local_sightings_store_zip"), table_name="local_sightings")
    op.drop_index(op.f("ix_local_sightings_upc"), table_name="local_sightings")
    op.drop_table("local_sightings")
    op.drop_index(op.f("ix_products_swap_discovery_type"), table_name="products")
    op.drop_index(op.f("ix_products_total_score"), table_name="products")
    op.drop_index(op.f("ix_products_subcategory"), table_name="products")
    op.drop_index(op.f("ix_products_category"), table_name="products")
    op.drop_index(op.f("ix_products_upc"), table_name="products")
    op.drop_table("products")
