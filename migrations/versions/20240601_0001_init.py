"""initial schema: users, dropdown options, materials, material images

Revision ID: 20240601_0001
Revises:
Create Date: 2024-06-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20240601_0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('role', sa.Enum('USER', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)
    op.create_index('ix_user_created_at', 'user', ['created_at'])

    op.create_table(
        'dropdownoption',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('type', sa.Enum('DIVISION', 'PLACEMENT', name='dropdowntype'), nullable=False),
        sa.Column('label', sa.String(), nullable=False),
        sa.Column('value', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('type', 'value', name='uq_dropdownoption_type_value'),
    )
    op.create_index('ix_dropdownoption_type', 'dropdownoption', ['type'])
    op.create_index('ix_dropdownoption_created_at', 'dropdownoption', ['created_at'])

    op.create_table(
        'material',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('material_name', sa.String(), nullable=False),
        sa.Column('material_number', sa.String(), nullable=False),
        sa.Column('division_id', sa.Uuid(), sa.ForeignKey('dropdownoption.id'), nullable=False),
        sa.Column('placement_id', sa.Uuid(), sa.ForeignKey('dropdownoption.id'), nullable=False),
        sa.Column('function', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_material_material_name', 'material', ['material_name'])
    op.create_index('ix_material_material_number', 'material', ['material_number'], unique=True)
    op.create_index('ix_material_division_id', 'material', ['division_id'])
    op.create_index('ix_material_placement_id', 'material', ['placement_id'])
    op.create_index('ix_material_created_at', 'material', ['created_at'])

    op.create_table(
        'materialimage',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('material_id', sa.Uuid(),
                  sa.ForeignKey('material.id', ondelete='CASCADE'), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_materialimage_material_id', 'materialimage', ['material_id'])
    # At most one primary image per material
    op.create_index(
        'uq_materialimage_primary',
        'materialimage',
        ['material_id'],
        unique=True,
        sqlite_where=sa.text('is_primary'),
        postgresql_where=sa.text('is_primary'),
    )


def downgrade():
    op.drop_index('uq_materialimage_primary', table_name='materialimage')
    op.drop_index('ix_materialimage_material_id', table_name='materialimage')
    op.drop_table('materialimage')

    op.drop_index('ix_material_created_at', table_name='material')
    op.drop_index('ix_material_placement_id', table_name='material')
    op.drop_index('ix_material_division_id', table_name='material')
    op.drop_index('ix_material_material_number', table_name='material')
    op.drop_index('ix_material_material_name', table_name='material')
    op.drop_table('material')

    op.drop_index('ix_dropdownoption_created_at', table_name='dropdownoption')
    op.drop_index('ix_dropdownoption_type', table_name='dropdownoption')
    op.drop_table('dropdownoption')

    op.drop_index('ix_user_created_at', table_name='user')
    op.drop_index('ix_user_email', table_name='user')
    op.drop_table('user')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        op.execute("DROP TYPE IF EXISTS dropdowntype")
        op.execute("DROP TYPE IF EXISTS userrole")
