"""baseline schema

Revision ID: 4c2e9a1f7b30
Revises:
Create Date: 2026-10-19 09:12:41.508113

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy.engine import Connection

from questlog.database.base import Base
import questlog.database.init  # noqa: F401

# revision identifiers, used by Alembic.
revision: str = "4c2e9a1f7b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, user_progress, courses and achievements."""
    bind: Connection = op.get_bind()
    Base.metadata.create_all(bind)


def downgrade() -> None:
    """Drop all database objects managed by the metadata."""
    bind: Connection = op.get_bind()
    Base.metadata.drop_all(bind)
