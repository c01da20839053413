"""create users, geography and addresses tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(50), nullable=False, server_default='customer'),
        sa.Column('status', sa.String(50), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
        sa.CheckConstraint("role IN ('customer', 'admin', 'super_admin')", name='ck_users_check_user_role'),
        sa.CheckConstraint("status IN ('active', 'suspended', 'deleted')", name='ck_users_check_user_status'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_status', 'users', ['status'])

    op.create_table(
        'states',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('code', sa.String(2), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
    )

    op.create_table(
        'cities',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('state_id', sa.Uuid, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['state_id'], ['states.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('name', 'state_id', name='uq_cities_name_state'),
    )
    op.create_index('ix_cities_state_id', 'cities', ['state_id'])

    op.create_table(
        'localities',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('pincode', sa.String(10), nullable=False),
        sa.Column('city_id', sa.Uuid, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['city_id'], ['cities.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('name', 'city_id', name='uq_localities_name_city'),
    )
    op.create_index('ix_localities_city_id', 'localities', ['city_id'])
    op.create_index('ix_localities_pincode', 'localities', ['pincode'])

    op.create_table(
        'addresses',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('user_id', sa.Uuid, nullable=False),
        sa.Column('locality_id', sa.Uuid, nullable=False),
        sa.Column('address_line1', sa.String(255), nullable=False),
        sa.Column('address_line2', sa.String(255), nullable=True),
        sa.Column('landmark', sa.String(255), nullable=True),
        sa.Column('contact_name', sa.String(100), nullable=False),
        sa.Column('contact_phone', sa.String(10), nullable=False),
        sa.Column('address_type', sa.String(10), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('NOW()')),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['locality_id'], ['localities.id'], ondelete='RESTRICT'),
        sa.CheckConstraint("address_type IN ('HOME', 'WORK', 'OTHER')", name='ck_addresses_address_type'),
    )
    op.create_index('ix_addresses_id', 'addresses', ['id'])
    op.create_index('ix_addresses_user_id', 'addresses', ['user_id'])
    op.create_index('ix_addresses_locality_id', 'addresses', ['locality_id'])
    op.create_index('idx_addresses_user', 'addresses', ['user_id', 'is_default', 'created_at'])

    # One default address per user
    op.create_index('idx_addresses_user_default', 'addresses', ['user_id'],
                    unique=True, postgresql_where=sa.text('is_default = true'))


def downgrade() -> None:
    op.drop_index('idx_addresses_user_default', table_name='addresses')
    op.drop_index('idx_addresses_user', table_name='addresses')
    op.drop_index('ix_addresses_locality_id', table_name='addresses')
    op.drop_index('ix_addresses_user_id', table_name='addresses')
    op.drop_index('ix_addresses_id', table_name='addresses')
    op.drop_table('addresses')
    op.drop_index('ix_localities_pincode', table_name='localities')
    op.drop_index('ix_localities_city_id', table_name='localities')
    op.drop_table('localities')
    op.drop_index('ix_cities_state_id', table_name='cities')
    op.drop_table('cities')
    op.drop_table('states')
    op.drop_index('ix_users_status', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
