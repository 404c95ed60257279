"""initial compliance schema

Revision ID: s1a2b3c4d5e6
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete schema from scratch:
- stores: locations plus their ordered temperature equipment list
- items / current_stock: stock configuration and the latest-known cache
- stock_submissions (+ revisions): one end-of-shift count per store per day
- temperature_checks (+ revisions): the two authored slots per day
- temperature_logs: derived day summary, rebuilt from the slots
- users: acting principals, with store grants and bcrypt-hashed PINs
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 's1a2b3c4d5e6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # stores
    # ============================================================================
    op.create_table(
        'stores',
        sa.Column('id', sa.String(length=40), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('timezone', sa.String(length=64), nullable=True),
        sa.Column('temperature_equipment', sa.JSON(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stores_active', 'stores', ['is_active'])

    # ============================================================================
    # items: configured per store, soft-disabled rather than deleted
    # ============================================================================
    op.create_table(
        'items',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('store_id', sa.String(length=40), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False, server_default='Uncategorized'),
        sa.Column('category_order', sa.Integer(), nullable=True),
        sa.Column('default_unit', sa.String(length=32), nullable=False, server_default='piece'),
        sa.Column('low_stock_threshold', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_items_store_id', 'items', ['store_id'])
    op.create_index('ix_items_store_active', 'items', ['store_id', 'is_active'])
    op.create_index('ix_items_store_sort', 'items', ['store_id', 'sort_order'])

    # ============================================================================
    # current_stock: last-writer-wins cache, no FK on item_id
    # ============================================================================
    op.create_table(
        'current_stock',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.String(length=40), nullable=False),
        sa.Column('item_id', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=32), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_by_employee_id', sa.String(length=64), nullable=True),
        sa.Column('updated_by_name', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'item_id', name='uq_current_stock_store_item'),
    )
    op.create_index('ix_current_stock_store_id', 'current_stock', ['store_id'])
    op.create_index('ix_current_stock_item_id', 'current_stock', ['item_id'])

    # ============================================================================
    # stock_submissions: unique per (store, day)
    # ============================================================================
    op.create_table(
        'stock_submissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.String(length=40), nullable=False),
        sa.Column('day_key', sa.String(length=10), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('submitted_by_employee_id', sa.String(length=64), nullable=True),
        sa.Column('submitted_by_name', sa.String(length=255), nullable=True),
        sa.Column('last_edited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_edited_by_employee_id', sa.String(length=64), nullable=True),
        sa.Column('last_edited_by_name', sa.String(length=255), nullable=True),
        sa.Column('is_read_by_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('needs_admin_review', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('admin_confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('low_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('out_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'day_key', name='uq_stock_submissions_store_day'),
    )
    op.create_index('ix_stock_submissions_store_id', 'stock_submissions', ['store_id'])
    op.create_index('ix_stock_submissions_store_submitted', 'stock_submissions', ['store_id', 'submitted_at'])
    op.create_index('ix_stock_submissions_store_read', 'stock_submissions', ['store_id', 'is_read_by_admin'])
    op.create_index('ix_stock_submissions_store_review', 'stock_submissions', ['store_id', 'needs_admin_review'])

    # Append-only: never updated or deleted
    op.create_table(
        'stock_submission_revisions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('submission_id', sa.Integer(), nullable=False),
        sa.Column('edited_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('edited_by_employee_id', sa.String(length=64), nullable=True),
        sa.Column('edited_by_name', sa.String(length=255), nullable=True),
        sa.Column('low_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('out_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['submission_id'], ['stock_submissions.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stock_submission_revisions_submission_id', 'stock_submission_revisions', ['submission_id'])

    # ============================================================================
    # temperature_logs: derived day summary
    # ============================================================================
    op.create_table(
        'temperature_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.String(length=40), nullable=False),
        sa.Column('day_key', sa.String(length=10), nullable=False),
        sa.Column('check_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('has_out_of_range', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_check_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_read_by_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('needs_admin_review', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('admin_confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_by_name', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'day_key', name='uq_temperature_logs_store_day'),
    )
    op.create_index('ix_temperature_logs_store_id', 'temperature_logs', ['store_id'])
    op.create_index('ix_temperature_logs_store_read', 'temperature_logs', ['store_id', 'is_read_by_admin'])
    op.create_index('ix_temperature_logs_store_review', 'temperature_logs', ['store_id', 'needs_admin_review'])

    # ============================================================================
    # temperature_checks: authored slots "log1" / "log2"
    # ============================================================================
    op.create_table(
        'temperature_checks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.String(length=40), nullable=False),
        sa.Column('day_key', sa.String(length=10), nullable=False),
        sa.Column('slot', sa.String(length=8), nullable=False),
        sa.Column('check_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by_employee_id', sa.String(length=64), nullable=True),
        sa.Column('created_by_name', sa.String(length=255), nullable=True),
        sa.Column('last_edited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_edited_by_employee_id', sa.String(length=64), nullable=True),
        sa.Column('last_edited_by_name', sa.String(length=255), nullable=True),
        sa.Column('equipment', sa.JSON(), nullable=False),
        sa.Column('has_out_of_range', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('store_id', 'day_key', 'slot', name='uq_temperature_checks_store_day_slot'),
        sa.CheckConstraint("slot IN ('log1', 'log2')", name='ck_temperature_checks_slot'),
    )
    op.create_index('ix_temperature_checks_store_id', 'temperature_checks', ['store_id'])
    op.create_index('ix_temperature_checks_day_key', 'temperature_checks', ['day_key'])

    op.create_table(
        'temperature_check_revisions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('check_id', sa.Integer(), nullable=False),
        sa.Column('edited_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('edited_by_employee_id', sa.String(length=64), nullable=True),
        sa.Column('edited_by_name', sa.String(length=255), nullable=True),
        sa.Column('equipment', sa.JSON(), nullable=False),
        sa.Column('has_out_of_range', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(['check_id'], ['temperature_checks.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_temperature_check_revisions_check_id', 'temperature_check_revisions', ['check_id'])

    # ============================================================================
    # users: acting principals
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='employee'),
        sa.Column('employee_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('store_ids', sa.JSON(), nullable=False),
        sa.Column('default_store_id', sa.String(length=40), nullable=True),
        sa.Column('pin_hash', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['default_store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('employee_id', name='uq_users_employee_id'),
    )
    op.create_index('ix_users_employee_id', 'users', ['employee_id'])


def downgrade():
    op.drop_table('users')
    op.drop_table('temperature_check_revisions')
    op.drop_table('temperature_checks')
    op.drop_table('temperature_logs')
    op.drop_table('stock_submission_revisions')
    op.drop_table('stock_submissions')
    op.drop_table('current_stock')
    op.drop_table('items')
    op.drop_table('stores')
