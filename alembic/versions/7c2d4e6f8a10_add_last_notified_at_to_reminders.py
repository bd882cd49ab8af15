"""add last_notified_at to reminders

Revision ID: 7c2d4e6f8a10
Revises: 5e1a9c7d2b40
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '7c2d4e6f8a10'
down_revision: Union[str, None] = '5e1a9c7d2b40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table('reminders') as batch_op:
        batch_op.add_column(sa.Column('last_notified_at', sa.DateTime(timezone=True), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('reminders') as batch_op:
        batch_op.drop_column('last_notified_at')
