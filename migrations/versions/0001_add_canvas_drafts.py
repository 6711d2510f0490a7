"""Add canvas drafts

Revision ID: 0001_add_canvas_drafts
Revises: 0000_initial
Create Date: 2026-10-17

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_add_canvas_drafts'
down_revision = '0000_initial'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'canvas_drafts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('map_id', sa.Integer(), nullable=True),
        sa.Column('map_name', sa.String(length=200), nullable=True),
        sa.Column('nodes', sa.JSON(), nullable=False),
        sa.Column('connections', sa.JSON(), nullable=False),
        sa.Column('pending_source', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_canvas_drafts_user_id', 'canvas_drafts', ['user_id'], unique=True)


def downgrade():
    op.drop_index('ix_canvas_drafts_user_id', table_name='canvas_drafts')
    op.drop_table('canvas_drafts')
