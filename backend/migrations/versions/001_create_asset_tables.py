"""Create vault, midpoint, cable and photo tables

Revision ID: 001
Revises:
Create Date: 2026-03-01 00:00:00.000000

Soft-delete columns (is_deleted, deleted_at) on the three asset tables,
photos cascade with their owner.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _soft_delete_columns():
    return [
        sa.Column('is_deleted', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('deleted_at', sa.TIMESTAMP(timezone=True), nullable=True),
    ]


def upgrade():
    """Create asset tables with soft-delete support."""

    op.execute("""
        CREATE TYPE vaultstatus AS ENUM ('Pending', 'Review', 'Complete', 'Rejected')
    """)
    op.execute("""
        CREATE TYPE midpointstatus AS ENUM ('New', 'Review', 'Complete', 'Issue')
    """)

    op.create_table(
        'vaults',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), server_default='', nullable=False),
        sa.Column('color', sa.Text(), server_default='Blue', nullable=False),
        sa.Column('status', postgresql.ENUM('Pending', 'Review', 'Complete', 'Rejected',
                                           name='vaultstatus', create_type=False),
                 nullable=False, server_default='Pending'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'midpoints',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), server_default='', nullable=False),
        sa.Column('color', sa.Text(), server_default='Black', nullable=False),
        sa.Column('status', postgresql.ENUM('New', 'Review', 'Complete', 'Issue',
                                           name='midpointstatus', create_type=False),
                 nullable=False, server_default='New'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'cables',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), server_default='', nullable=False),
        sa.Column('color', sa.Text(), server_default='Black', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        # Ordered [longitude, latitude] pairs
        sa.Column('path', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_soft_delete_columns(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'photos',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('file_name', sa.Text(), server_default='', nullable=False),
        sa.Column('uploaded_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('vault_id', sa.Integer(), nullable=True),
        sa.Column('midpoint_id', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['vault_id'], ['vaults.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['midpoint_id'], ['midpoints.id'], ondelete='CASCADE'),
    )

    # Purge scans filter on (is_deleted, deleted_at)
    op.create_index('ix_vaults_is_deleted_deleted_at', 'vaults', ['is_deleted', 'deleted_at'])
    op.create_index('ix_midpoints_is_deleted_deleted_at', 'midpoints', ['is_deleted', 'deleted_at'])
    op.create_index('ix_cables_is_deleted_deleted_at', 'cables', ['is_deleted', 'deleted_at'])
    op.create_index('ix_photos_vault_id', 'photos', ['vault_id'])
    op.create_index('ix_photos_midpoint_id', 'photos', ['midpoint_id'])


def downgrade():
    """Drop asset tables and enums."""

    op.drop_index('ix_photos_midpoint_id', table_name='photos')
    op.drop_index('ix_photos_vault_id', table_name='photos')
    op.drop_index('ix_cables_is_deleted_deleted_at', table_name='cables')
    op.drop_index('ix_midpoints_is_deleted_deleted_at', table_name='midpoints')
    op.drop_index('ix_vaults_is_deleted_deleted_at', table_name='vaults')

    op.drop_table('photos')
    op.drop_table('cables')
    op.drop_table('midpoints')
    op.drop_table('vaults')

    op.execute('DROP TYPE midpointstatus')
    op.execute('DROP TYPE vaultstatus')
