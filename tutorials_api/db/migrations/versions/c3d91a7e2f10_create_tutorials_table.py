"""Create tutorials table.

- tutorials (id, title, description, level, created_at, published)
- indexes on level and published
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "c3d91a7e2f10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "tutorials",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("level", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_tutorials_level", "tutorials", ["level"])
    op.create_index("ix_tutorials_published", "tutorials", ["published"])


def downgrade() -> None:
    op.drop_index("ix_tutorials_published", table_name="tutorials")
    op.drop_index("ix_tutorials_level", table_name="tutorials")
    op.drop_table("tutorials")
