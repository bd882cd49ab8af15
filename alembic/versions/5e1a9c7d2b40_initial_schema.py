"""initial_schema

Revision ID: 5e1a9c7d2b40
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '5e1a9c7d2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

REQUEST_STATUSES = ('PENDING', 'APPROVED', 'IN_PROGRESS', 'COMPLETED', 'REJECTED', 'CANCELLED')


def _request_columns():
    return [
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('item_serial', sa.String(length=128), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum(*REQUEST_STATUSES, name='requeststatus'), nullable=False),
        sa.Column('notes', sa.String(length=2000), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['item_serial'], ['items.serial_number']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    ]


def _status_log_table(name: str, fk: str, parent: str) -> None:
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column(fk, sa.String(length=36), nullable=False),
        sa.Column('status', sa.Enum(*REQUEST_STATUSES, name='requeststatus'), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('notes', sa.String(length=2000), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint([fk], [f'{parent}.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f(f'ix_{name}_id'), name, ['id'], unique=False)
    op.create_index(op.f(f'ix_{name}_{fk}'), name, [fk], unique=False)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'items',
        sa.Column('serial_number', sa.String(length=128), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=128), nullable=True),
        sa.Column('description', sa.String(length=2000), nullable=True),
        sa.Column(
            'status',
            sa.Enum('AVAILABLE', 'IN_CALIBRATION', 'RENTED', 'IN_MAINTENANCE', 'DAMAGED', name='itemstatus'),
            nullable=False,
        ),
        sa.Column('last_verified', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('serial_number'),
    )

    op.create_table(
        'calibrations',
        *_request_columns(),
        sa.Column('calibration_date', sa.Date(), nullable=True),
        sa.Column('valid_until', sa.Date(), nullable=True),
        sa.Column('certificate_number', sa.String(length=64), nullable=True),
        sa.UniqueConstraint('certificate_number'),
    )
    op.create_table(
        'rentals',
        *_request_columns(),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('return_date', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        'maintenances',
        *_request_columns(),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
    )
    for table in ('calibrations', 'rentals', 'maintenances'):
        op.create_index(op.f(f'ix_{table}_item_serial'), table, ['item_serial'], unique=False)
        op.create_index(op.f(f'ix_{table}_user_id'), table, ['user_id'], unique=False)

    _status_log_table('calibration_status_logs', 'calibration_id', 'calibrations')
    _status_log_table('rental_status_logs', 'rental_id', 'rentals')
    _status_log_table('maintenance_status_logs', 'maintenance_id', 'maintenances')

    op.create_table(
        'document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('doc_type', sa.Enum('CAL', 'CSR', 'TCR', name='documenttype'), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('doc_type', 'year', 'month', name='uq_document_sequence_period'),
    )

    op.create_table(
        'calibration_certificates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('calibration_id', sa.String(length=36), nullable=False),
        sa.Column('number', sa.String(length=64), nullable=False),
        sa.Column('manufacturer', sa.String(length=255), nullable=True),
        sa.Column('instrument_name', sa.String(length=255), nullable=True),
        sa.Column('model_number', sa.String(length=128), nullable=True),
        sa.Column('configuration', sa.String(length=255), nullable=True),
        sa.Column('approved_by', sa.String(length=255), nullable=True),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['calibration_id'], ['calibrations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('calibration_id'),
        sa.UniqueConstraint('number'),
    )
    op.create_index(op.f('ix_calibration_certificates_id'), 'calibration_certificates', ['id'], unique=False)

    op.create_table(
        'gas_calibration_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('certificate_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('gas_type', sa.String(length=128), nullable=False),
        sa.Column('gas_concentration', sa.String(length=64), nullable=False),
        sa.Column('gas_balance', sa.String(length=64), nullable=False),
        sa.Column('gas_batch_number', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['certificate_id'], ['calibration_certificates.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_gas_calibration_entries_certificate_id'), 'gas_calibration_entries', ['certificate_id'], unique=False
    )
    op.create_table(
        'test_result_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('certificate_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('test_sensor', sa.String(length=128), nullable=False),
        sa.Column('test_span', sa.String(length=64), nullable=False),
        sa.Column('test_result', sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(['certificate_id'], ['calibration_certificates.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_test_result_entries_certificate_id'), 'test_result_entries', ['certificate_id'], unique=False
    )

    op.create_table(
        'service_reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('maintenance_id', sa.String(length=36), nullable=False),
        sa.Column('report_number', sa.String(length=64), nullable=False),
        sa.Column('customer', sa.String(length=255), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('brand', sa.String(length=128), nullable=True),
        sa.Column('model', sa.String(length=128), nullable=True),
        sa.Column('reason_for_return', sa.String(length=2000), nullable=True),
        sa.Column('findings', sa.String(length=2000), nullable=True),
        sa.Column('action', sa.String(length=2000), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['maintenance_id'], ['maintenances.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('maintenance_id'),
        sa.UniqueConstraint('report_number'),
    )
    op.create_index(op.f('ix_service_reports_id'), 'service_reports', ['id'], unique=False)
    op.create_table(
        'service_report_parts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('report_id', sa.Integer(), nullable=False),
        sa.Column('item_number', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('sn_pn_old', sa.String(length=128), nullable=True),
        sa.Column('sn_pn_new', sa.String(length=128), nullable=True),
        sa.ForeignKeyConstraint(['report_id'], ['service_reports.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_service_report_parts_report_id'), 'service_report_parts', ['report_id'], unique=False)

    op.create_table(
        'technical_reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('maintenance_id', sa.String(length=36), nullable=False),
        sa.Column('report_number', sa.String(length=64), nullable=False),
        sa.Column('delivery_to', sa.String(length=255), nullable=True),
        sa.Column('tech_support', sa.String(length=255), nullable=True),
        sa.Column('reason_for_return', sa.String(length=2000), nullable=True),
        sa.Column('findings', sa.String(length=2000), nullable=True),
        sa.Column('estimate_work', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['maintenance_id'], ['maintenances.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('maintenance_id'),
        sa.UniqueConstraint('report_number'),
    )
    op.create_index(op.f('ix_technical_reports_id'), 'technical_reports', ['id'], unique=False)
    op.create_table(
        'technical_report_parts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('report_id', sa.Integer(), nullable=False),
        sa.Column('item_number', sa.Integer(), nullable=False),
        sa.Column('unit_name', sa.String(length=255), nullable=True),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('total_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.ForeignKeyConstraint(['report_id'], ['technical_reports.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_technical_report_parts_report_id'), 'technical_report_parts', ['report_id'], unique=False
    )

    op.create_table(
        'item_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_serial', sa.String(length=128), nullable=False),
        sa.Column('action', sa.Enum('CALIBRATED', 'RENTED', 'MAINTAINED', name='historyaction'), nullable=False),
        sa.Column(
            'related_kind', sa.Enum('calibration', 'rental', 'maintenance', name='workflowkind'), nullable=False
        ),
        sa.Column('related_id', sa.String(length=36), nullable=False),
        sa.Column('details', sa.String(length=2000), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['item_serial'], ['items.serial_number']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_item_history_id'), 'item_history', ['id'], unique=False)
    op.create_index(op.f('ix_item_history_item_serial'), 'item_history', ['item_serial'], unique=False)
    op.create_index(op.f('ix_item_history_related_id'), 'item_history', ['related_id'], unique=False)
    op.create_index(
        'uq_item_history_open', 'item_history', ['item_serial'], unique=True,
        sqlite_where=sa.text('end_date IS NULL'),
        postgresql_where=sa.text('end_date IS NULL'),
    )

    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('details', sa.String(length=2000), nullable=True),
        sa.Column('item_serial', sa.String(length=128), nullable=True),
        sa.Column('related_kind', sa.String(length=32), nullable=True),
        sa.Column('related_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_activity_logs_id'), 'activity_logs', ['id'], unique=False)
    op.create_index(op.f('ix_activity_logs_user_id'), 'activity_logs', ['user_id'], unique=False)
    op.create_index(op.f('ix_activity_logs_action'), 'activity_logs', ['action'], unique=False)
    op.create_index(op.f('ix_activity_logs_item_serial'), 'activity_logs', ['item_serial'], unique=False)

    op.create_table(
        'reminders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.Enum('CALIBRATION', 'RENTAL', 'MAINTENANCE', name='remindertype'), nullable=False),
        sa.Column('related_id', sa.String(length=36), nullable=False),
        sa.Column('item_serial', sa.String(length=128), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('fire_date', sa.Date(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.String(length=2000), nullable=False),
        sa.Column(
            'status', sa.Enum('PENDING', 'SENT', 'ACKNOWLEDGED', name='reminderstatus'), nullable=False
        ),
        sa.Column('email_sent', sa.Boolean(), nullable=False),
        sa.Column('email_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('acknowledged_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['item_serial'], ['items.serial_number']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_reminders_related_id'), 'reminders', ['related_id'], unique=False)
    op.create_index(op.f('ix_reminders_item_serial'), 'reminders', ['item_serial'], unique=False)
    op.create_index(op.f('ix_reminders_user_id'), 'reminders', ['user_id'], unique=False)
    op.create_index(op.f('ix_reminders_fire_date'), 'reminders', ['fire_date'], unique=False)
    op.create_index(
        'uq_reminder_pending', 'reminders', ['type', 'related_id'], unique=True,
        sqlite_where=sa.text("status = 'PENDING'"),
        postgresql_where=sa.text("status = 'PENDING'"),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('reminder_id', sa.String(length=36), nullable=True),
        sa.Column(
            'type', sa.Enum('STATUS_CHANGE', 'REQUEST_CREATED', 'REMINDER', name='notificationtype'), nullable=False
        ),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.String(length=2000), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['reminder_id'], ['reminders.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'], unique=False)
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)
    op.create_index(op.f('ix_notifications_reminder_id'), 'notifications', ['reminder_id'], unique=False)


def downgrade() -> None:
    for table in (
        'notifications', 'reminders', 'activity_logs', 'item_history',
        'technical_report_parts', 'technical_reports', 'service_report_parts', 'service_reports',
        'test_result_entries', 'gas_calibration_entries', 'calibration_certificates',
        'document_sequences',
        'maintenance_status_logs', 'rental_status_logs', 'calibration_status_logs',
        'maintenances', 'rentals', 'calibrations', 'items', 'users',
    ):
        op.drop_table(table)
    # Drop the enum types (needed for PostgreSQL, no-op for SQLite)
    for enum_name in (
        'notificationtype', 'reminderstatus', 'remindertype', 'workflowkind', 'historyaction',
        'documenttype', 'requeststatus', 'itemstatus',
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
