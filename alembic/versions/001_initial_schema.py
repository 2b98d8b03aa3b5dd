"""Initial schema for the spare parts catalog

Revision ID: 001_initial_schema
Revises: 
Create Date: 2025-10-14

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create spare_parts table
    op.create_table(
        'spare_parts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False, comment='Product name'),
        sa.Column('part_number', sa.String(length=100), nullable=False,
                  comment='Part ID, the natural key used by imports'),
        sa.Column('description', sa.Text(), nullable=True,
                  comment='HSN code, application, model and manufacturing unit'),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('base_price', sa.Numeric(precision=12, scale=2), server_default='0',
                  nullable=False, comment='Base price'),
        sa.Column('image_url', sa.String(length=512), nullable=True,
                  comment='Public URL of the stored picture'),
        sa.Column('specifications', postgresql.JSONB(astext_type=sa.Text()), nullable=True,
                  comment='Technical sheet and other structured specs'),
        sa.Column('status', sa.String(length=20), server_default='ACTIVE', nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=True,
                  comment='User or API key that created the part'),
        sa.Column('updated_by', sa.String(length=255), nullable=True,
                  comment='User or API key that last updated the part'),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'),
                  nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'),
                  nullable=False, comment='Last modification timestamp'),
        sa.CheckConstraint("status IN ('ACTIVE', 'INACTIVE')", name='spare_parts_status_check'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('part_number'),
        comment='Spare parts catalog'
    )

    # Create indexes on spare_parts table
    op.create_index('idx_spare_parts_status', 'spare_parts', ['status'])
    op.create_index('idx_spare_parts_name', 'spare_parts', ['name'])

    # Imports match part numbers case-insensitively
    op.create_index(
        'idx_spare_parts_part_number_lower',
        'spare_parts',
        [sa.text('lower(part_number)')],
        unique=True
    )


def downgrade() -> None:
    op.drop_index('idx_spare_parts_part_number_lower', table_name='spare_parts')
    op.drop_index('idx_spare_parts_name', table_name='spare_parts')
    op.drop_index('idx_spare_parts_status', table_name='spare_parts')
    op.drop_table('spare_parts')
