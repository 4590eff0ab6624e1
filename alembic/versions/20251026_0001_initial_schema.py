"""Create initial schema

Revision ID: 20251026_0001
Revises: 
Create Date: 2025-10-26 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '20251026_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

def _has_table(bind, name: str) -> bool:
    try:
        insp = inspect(bind)
        return insp.has_table(name)
    except Exception:
        return False

def upgrade() -> None:
    bind = op.get_bind()

    roomstatus_enum = sa.Enum('available', 'unavailable', name='roomstatus')
    paymentstatus_enum = sa.Enum('pending', 'completed', 'refunded', name='paymentstatus')
    bookingstatus_enum = sa.Enum('pending', 'confirmed', 'cancelled', name='bookingstatus')

    if not _has_table(bind, 'users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('phone_number', sa.String(length=50), server_default='', nullable=False),
            sa.Column('hashed_password', sa.String(length=255), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    if not _has_table(bind, 'admins'):
        op.create_table('admins',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('admin_name', sa.String(length=100), nullable=False),
            sa.Column('hashed_password', sa.String(length=255), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_admins_admin_name'), 'admins', ['admin_name'], unique=True)

    if not _has_table(bind, 'rooms'):
        op.create_table('rooms',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('room_name', sa.String(length=200), nullable=False),
            sa.Column('price', sa.Integer(), nullable=False),
            sa.Column('description', sa.Text(), server_default='', nullable=False),
            sa.Column('status', roomstatus_enum, server_default='available', nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )

    if not _has_table(bind, 'payments'):
        op.create_table('payments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('price', sa.Integer(), nullable=False),
            sa.Column('payment_method', sa.String(length=50), server_default='pending', nullable=False),
            sa.Column('status', paymentstatus_enum, server_default='pending', nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_payments_id'), 'payments', ['id'], unique=False)

    if not _has_table(bind, 'bookings'):
        op.create_table('bookings',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=True),
            sa.Column('room_id', sa.Integer(), nullable=False),
            sa.Column('payment_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('phone_number', sa.String(length=50), nullable=False),
            sa.Column('start_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date(), nullable=False),
            sa.Column('price', sa.Integer(), nullable=False),
            sa.Column('payment', sa.String(length=50), server_default='pending', nullable=False),
            sa.Column('status', bookingstatus_enum, server_default='pending', nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id']),
            sa.ForeignKeyConstraint(['room_id'], ['rooms.id']),
            sa.ForeignKeyConstraint(['payment_id'], ['payments.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('payment_id')
        )
        op.create_index(op.f('ix_bookings_id'), 'bookings', ['id'], unique=False)
        op.create_index(op.f('ix_bookings_user_id'), 'bookings', ['user_id'], unique=False)
        op.create_index(op.f('ix_bookings_room_id'), 'bookings', ['room_id'], unique=False)
        op.create_index(op.f('ix_bookings_start_date'), 'bookings', ['start_date'], unique=False)
        op.create_index(op.f('ix_bookings_end_date'), 'bookings', ['end_date'], unique=False)
        op.create_index(op.f('ix_bookings_created_at'), 'bookings', ['created_at'], unique=False)
        op.create_index('ix_bookings_room_start_end', 'bookings', ['room_id', 'start_date', 'end_date'], unique=False)
        op.create_index('ix_bookings_name_email', 'bookings', ['name', 'email'], unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    op.drop_table('bookings')
    op.drop_table('payments')
    op.drop_table('rooms')
    op.drop_table('admins')
    op.drop_table('users')

    if bind.dialect.name == 'postgresql':
        sa.Enum(name='bookingstatus').drop(bind, checkfirst=True)
        sa.Enum(name='paymentstatus').drop(bind, checkfirst=True)
        sa.Enum(name='roomstatus').drop(bind, checkfirst=True)
