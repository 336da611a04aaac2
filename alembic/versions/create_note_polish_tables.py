"""Create generations, style presets, stored blobs and user sessions tables

Revision ID: 4e2a9c71d0b8
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4e2a9c71d0b8'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the four tables the note polish core needs."""
    op.create_table(
        'generations',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('input_text', sa.Text(), nullable=True),
        sa.Column('input_files', sa.JSON(), nullable=False),
        sa.Column('style', sa.JSON(), nullable=False),
        sa.Column('output_files', sa.JSON(), nullable=True),
        sa.Column('preview_images', sa.JSON(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('is_favourite', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_downloaded', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_generations_id', 'generations', ['id'])
    op.create_index('ix_generations_owner_id', 'generations', ['owner_id'])
    op.create_index('ix_generations_status', 'generations', ['status'])
    op.create_index('ix_generations_created_at', 'generations', ['created_at'])
    op.create_index('ix_generations_updated_at', 'generations', ['updated_at'])

    op.create_table(
        'style_presets',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('image_url', sa.String(), nullable=False, server_default=''),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_style_presets_id', 'style_presets', ['id'])
    op.create_index('ix_style_presets_key', 'style_presets', ['key'], unique=True)
    op.create_index('ix_style_presets_sort_order', 'style_presets', ['sort_order'])
    op.create_index('ix_style_presets_is_active', 'style_presets', ['is_active'])

    op.create_table(
        'stored_blobs',
        sa.Column('key', sa.String(length=32), primary_key=True),
        sa.Column('content_type', sa.String(), nullable=False),
        sa.Column('filename', sa.String(), nullable=True),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('data', sa.LargeBinary(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_stored_blobs_created_at', 'stored_blobs', ['created_at'])

    op.create_table(
        'user_sessions',
        sa.Column('token', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_user_sessions_user_id', 'user_sessions', ['user_id'])


def downgrade() -> None:
    """Drop the note polish tables."""
    op.drop_index('ix_user_sessions_user_id', table_name='user_sessions')
    op.drop_table('user_sessions')
    op.drop_index('ix_stored_blobs_created_at', table_name='stored_blobs')
    op.drop_table('stored_blobs')
    op.drop_index('ix_style_presets_is_active', table_name='style_presets')
    op.drop_index('ix_style_presets_sort_order', table_name='style_presets')
    op.drop_index('ix_style_presets_key', table_name='style_presets')
    op.drop_index('ix_style_presets_id', table_name='style_presets')
    op.drop_table('style_presets')
    op.drop_index('ix_generations_updated_at', table_name='generations')
    op.drop_index('ix_generations_created_at', table_name='generations')
    op.drop_index('ix_generations_status', table_name='generations')
    op.drop_index('ix_generations_owner_id', table_name='generations')
    op.drop_index('ix_generations_id', table_name='generations')
    op.drop_table('generations')
