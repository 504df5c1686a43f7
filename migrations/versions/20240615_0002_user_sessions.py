"""server-side user sessions

Revision ID: 20240615_0002
Revises: 20240601_0001
Create Date: 2024-06-15 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20240615_0002'
down_revision: Union[str, Sequence[str], None] = '20240601_0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        'usersession',
        sa.Column('jti', sa.String(length=64), primary_key=True),
        sa.Column('user_id', sa.Uuid(),
                  sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_usersession_user_id', 'usersession', ['user_id'])
    op.create_index('ix_usersession_expires_at', 'usersession', ['expires_at'])


def downgrade():
    op.drop_index('ix_usersession_expires_at', table_name='usersession')
    op.drop_index('ix_usersession_user_id', table_name='usersession')
    op.drop_table('usersession')
