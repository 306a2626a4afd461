"""initial_schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('organizers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('discord_webhook', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_organizers_id', 'organizers', ['id'])

    op.create_table('participants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('iiit_participant', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_participants_id', 'participants', ['id'])

    op.create_table('events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organizer_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('event_type', sa.String(length=20), nullable=False),
        sa.Column('non_iiit_eligibility', sa.Boolean(), nullable=False),
        sa.Column('registration_deadline', sa.DateTime(), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('registration_limit', sa.Integer(), nullable=True),
        sa.Column('registration_fee', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('form_locked', sa.Boolean(), nullable=False),
        sa.Column('registered_count', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('registered_count >= 0', name='ck_events_registered_count_non_negative'),
        sa.ForeignKeyConstraint(['organizer_id'], ['organizers.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_events_id', 'events', ['id'])
    op.create_index('ix_events_organizer_id', 'events', ['organizer_id'])
    op.create_index('ix_events_status', 'events', ['status'])

    op.create_table('form_fields',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('choices', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'name', name='uq_form_fields_event_name')
    )
    op.create_index('ix_form_fields_id', 'form_fields', ['id'])
    op.create_index('ix_form_fields_event_id', 'form_fields', ['event_id'])

    op.create_table('merchandise_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sizes', sa.JSON(), nullable=True),
        sa.Column('colors', sa.JSON(), nullable=True),
        sa.Column('variants', sa.JSON(), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=False),
        sa.Column('purchase_limit_per_participant', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('stock_quantity >= 0', name='ck_merchandise_stock_non_negative'),
        sa.CheckConstraint('purchase_limit_per_participant >= 0', name='ck_merchandise_limit_non_negative'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_merchandise_items_id', 'merchandise_items', ['id'])
    op.create_index('ix_merchandise_items_event_id', 'merchandise_items', ['event_id'])

    op.create_table('registrations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('participant_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('form_responses', sa.JSON(), nullable=True),
        sa.Column('ticket_id', sa.String(length=64), nullable=True),
        sa.Column('ticket_qr', sa.LargeBinary(), nullable=True),
        sa.Column('ticket_qr_content_type', sa.String(length=50), nullable=True),
        sa.Column('payment_status', sa.String(length=30), nullable=True),
        sa.Column('item_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('payment_proof_url', sa.String(length=500), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('attended', sa.Boolean(), nullable=False),
        sa.Column('first_scan_at', sa.DateTime(), nullable=True),
        sa.Column('scanned_by', sa.Integer(), nullable=True),
        sa.Column('scan_method', sa.String(length=20), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "payment_status IS NULL OR status != 'CANCELLED'",
            name='ck_registrations_order_not_cancelled',
        ),
        sa.ForeignKeyConstraint(['participant_id'], ['participants.id']),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['item_id'], ['merchandise_items.id']),
        sa.ForeignKeyConstraint(['scanned_by'], ['organizers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('participant_id', 'event_id', name='uq_registrations_participant_event'),
        sa.UniqueConstraint('ticket_id')
    )
    op.create_index('ix_registrations_id', 'registrations', ['id'])
    op.create_index('ix_registrations_participant_id', 'registrations', ['participant_id'])
    op.create_index('ix_registrations_event_id', 'registrations', ['event_id'])

    op.create_table('scan_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('registration_id', sa.Integer(), nullable=False),
        sa.Column('scanner_id', sa.Integer(), nullable=True),
        sa.Column('scanner_name', sa.String(length=255), nullable=True),
        sa.Column('method', sa.String(length=20), nullable=False),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('ts', sa.DateTime(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['registration_id'], ['registrations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['scanner_id'], ['organizers.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_scan_history_id', 'scan_history', ['id'])
    op.create_index('ix_scan_history_registration_id', 'scan_history', ['registration_id'])

    op.create_table('manual_overrides',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('registration_id', sa.Integer(), nullable=False),
        sa.Column('by_id', sa.Integer(), nullable=False),
        sa.Column('by_name', sa.String(length=255), nullable=True),
        sa.Column('ts', sa.DateTime(), nullable=False),
        sa.Column('action', sa.String(length=10), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['registration_id'], ['registrations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['by_id'], ['organizers.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_manual_overrides_id', 'manual_overrides', ['id'])
    op.create_index('ix_manual_overrides_registration_id', 'manual_overrides', ['registration_id'])


def downgrade() -> None:
    op.drop_table('manual_overrides')
    op.drop_table('scan_history')
    op.drop_table('registrations')
    op.drop_table('merchandise_items')
    op.drop_table('form_fields')
    op.drop_table('events')
    op.drop_table('participants')
    op.drop_table('organizers')
