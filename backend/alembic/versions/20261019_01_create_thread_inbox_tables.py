"""create thread inbox tables

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '20261019_01'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ROLE_VALUES = ('customer', 'agent')
_KIND_VALUES = ('booking', 'campaign')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)
    tables = set(insp.get_table_names())

    if 'users' not in tables:
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=True),
            sa.Column('first_name', sa.String(), nullable=True),
            sa.Column('last_name', sa.String(), nullable=True),
            sa.Column('role', sa.Enum(*_ROLE_VALUES, name='userrole'), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=True),
            sa.Column('profile_picture_url', sa.String(), nullable=True),
            *_timestamps(),
        )
        op.create_index('ix_users_id', 'users', ['id'])
        op.create_index('ix_users_username', 'users', ['username'], unique=True)
        op.create_index('ix_users_email', 'users', ['email'], unique=True)

    if 'celebrities' not in tables:
        op.create_table(
            'celebrities',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('image_url', sa.String(), nullable=True),
            *_timestamps(),
        )
        op.create_index('ix_celebrities_id', 'celebrities', ['id'])

    if 'bookings' not in tables:
        op.create_table(
            'bookings',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
            sa.Column('celebrity_id', sa.Integer(), sa.ForeignKey('celebrities.id'), nullable=False),
            sa.Column('status', sa.String(), nullable=False, server_default='pending'),
            sa.Column('event_date', sa.DateTime(), nullable=True),
            *_timestamps(),
        )
        op.create_index('ix_bookings_id', 'bookings', ['id'])
        op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])

    if 'campaigns' not in tables:
        op.create_table(
            'campaigns',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
            sa.Column('celebrity_id', sa.Integer(), sa.ForeignKey('celebrities.id'), nullable=False),
            sa.Column('title', sa.String(), nullable=True),
            sa.Column('status', sa.String(), nullable=False, server_default='pending'),
            *_timestamps(),
        )
        op.create_index('ix_campaigns_id', 'campaigns', ['id'])
        op.create_index('ix_campaigns_user_id', 'campaigns', ['user_id'])

    if 'messages' not in tables:
        op.create_table(
            'messages',
            sa.Column('thread_id', sa.String(length=64), nullable=False),
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=False),
            sa.Column('thread_kind', sa.Enum(*_KIND_VALUES, name='threadkind'), nullable=False),
            sa.Column('reference_id', sa.Integer(), nullable=False),
            sa.Column('sender_role', sa.Enum(*_ROLE_VALUES, name='senderrole'), nullable=False),
            sa.Column('sender_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
            sa.Column('text', sa.Text(), nullable=True),
            sa.Column('image_url', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('thread_id', 'id', name='pk_messages'),
            sa.CheckConstraint(
                'text IS NOT NULL OR image_url IS NOT NULL',
                name='ck_messages_text_or_image',
            ),
        )
        op.create_index('ix_messages_thread_created', 'messages', ['thread_id', 'created_at'])
        op.create_index('ix_messages_reference', 'messages', ['thread_kind', 'reference_id'])

    if 'read_watermarks' not in tables:
        op.create_table(
            'read_watermarks',
            sa.Column('thread_id', sa.String(length=64), nullable=False),
            sa.Column('actor_id', sa.Integer(), nullable=False),
            sa.Column('last_read_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('thread_id', 'actor_id', name='pk_read_watermarks'),
        )
        op.create_index('ix_read_watermarks_actor_id', 'read_watermarks', ['actor_id'])


def downgrade() -> None:
    bind = op.get_bind()
    tables = set(sa.inspect(bind).get_table_names())
    for name in ('read_watermarks', 'messages', 'campaigns', 'bookings', 'celebrities', 'users'):
        if name in tables:
            op.drop_table(name)
    if bind.dialect.name == 'postgresql':
        for enum_name in ('senderrole', 'threadkind', 'userrole'):
            op.execute(f'DROP TYPE IF EXISTS {enum_name}')
