"""warehouses, sections, daily utilization and deletion records

Revision ID: 3c1d9a7e5b20
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1d9a7e5b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if "warehouses" not in existing_tables:
        op.create_table(
            'warehouses',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('letter', sa.String(length=8), nullable=False),
            sa.Column('name', sa.String(length=120), nullable=False),
            sa.Column('type', sa.String(length=16), nullable=False, server_default='indoor'),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('last_modified', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.UniqueConstraint('letter', name='uq_warehouses_letter'),
        )
        op.create_index('ix_warehouses_letter', 'warehouses', ['letter'])

    if "warehouse_sections" not in existing_tables:
        op.create_table(
            'warehouse_sections',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('warehouse_id', sa.Integer(), sa.ForeignKey('warehouses.id'), nullable=False),
            sa.Column('section_number', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='available'),
            sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.UniqueConstraint('warehouse_id', 'section_number', name='uq_warehouse_sections_number'),
        )
        op.create_index('ix_warehouse_sections_warehouse_id', 'warehouse_sections', ['warehouse_id'])

    if "daily_utilization" not in existing_tables:
        op.create_table(
            'daily_utilization',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('warehouse_id', sa.Integer(), sa.ForeignKey('warehouses.id', ondelete='CASCADE'), nullable=True),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('total_space', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('utilized_space', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('utilization_percent', sa.Float(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.UniqueConstraint('warehouse_id', 'date', name='uq_daily_utilization_warehouse_date'),
        )
        op.create_index('ix_daily_utilization_warehouse_id', 'daily_utilization', ['warehouse_id'])
        op.create_index('ix_daily_utilization_date', 'daily_utilization', ['date'])

    if "deletion_records" not in existing_tables:
        op.create_table(
            'deletion_records',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('token', sa.String(length=64), nullable=False),
            sa.Column('kind', sa.String(length=16), nullable=False),
            sa.Column('warehouse_letter', sa.String(length=8), nullable=False),
            sa.Column('payload', sa.Text(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('expires_at', sa.DateTime(), nullable=False),
            sa.Column('restored_at', sa.DateTime(), nullable=True),
            sa.UniqueConstraint('token', name='uq_deletion_records_token'),
        )
        op.create_index('ix_deletion_records_token', 'deletion_records', ['token'])


def downgrade():
    op.drop_index('ix_deletion_records_token', table_name='deletion_records')
    op.drop_table('deletion_records')

    op.drop_index('ix_daily_utilization_date', table_name='daily_utilization')
    op.drop_index('ix_daily_utilization_warehouse_id', table_name='daily_utilization')
    op.drop_table('daily_utilization')

    op.drop_index('ix_warehouse_sections_warehouse_id', table_name='warehouse_sections')
    op.drop_table('warehouse_sections')

    op.drop_index('ix_warehouses_letter', table_name='warehouses')
    op.drop_table('warehouses')
