"""round_data table

Revision ID: 001
Revises:
Create Date: 2026-10-19

The round history store as defined in mindmeld/models/database_models.py:
one row per finished round, with a cosine HNSW index on the embedding.
"""
from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

VECTOR_DIM = 768


def upgrade() -> None:
    # pgvector extension
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    # ── round_data ────────────────────────────────────────────────────────
    op.create_table(
        "round_data",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("roundNumber", sa.Integer, nullable=True),
        sa.Column("userWord", sa.Text, nullable=False),
        sa.Column("aiWord", sa.Text, nullable=False),
        sa.Column("correctGuess", sa.Text, nullable=False),
        sa.Column("vector", Vector(VECTOR_DIM), nullable=False),
    )

    op.create_index(
        "round_data_vector_idx",
        "round_data",
        ["vector"],
        postgresql_using="hnsw",
        postgresql_ops={"vector": "vector_cosine_ops"},
    )


def downgrade() -> None:
    op.drop_index("round_data_vector_idx", table_name="round_data")
    op.drop_table("round_data")
