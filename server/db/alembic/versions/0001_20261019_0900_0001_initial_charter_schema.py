"""Initial charter schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Create operators table
    op.create_table('operators',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('length(name) > 0', name='ck_operator_name_not_empty'),
        sa.CheckConstraint('length(slug) > 0', name='ck_operator_slug_not_empty'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_operators_slug'), 'operators', ['slug'], unique=True)
    op.create_index(op.f('ix_operators_email'), 'operators', ['email'], unique=True)

    # Create vessels table
    op.create_table('vessels',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('operator_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('vessel_type', sa.String(length=20), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('capacity >= 1', name='ck_vessel_capacity_positive'),
        sa.CheckConstraint('length(name) > 0', name='ck_vessel_name_not_empty'),
        sa.CheckConstraint(
            "vessel_type IN ('FISHING_BOAT', 'ZODIAC', 'COVERED_VESSEL')",
            name='ck_vessel_type_valid'
        ),
        sa.ForeignKeyConstraint(['operator_id'], ['operators.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('operator_id', 'name', name='uq_vessel_operator_name')
    )
    op.create_index(op.f('ix_vessels_operator_id'), 'vessels', ['operator_id'], unique=False)

    # Create tours table
    op.create_table('tours',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('operator_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('duration_in_minutes', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('price >= 0', name='ck_tour_price_non_negative'),
        sa.CheckConstraint(
            'duration_in_minutes >= 30 AND duration_in_minutes <= 1440',
            name='ck_tour_duration_range'
        ),
        sa.CheckConstraint('length(title) > 0', name='ck_tour_title_not_empty'),
        sa.ForeignKeyConstraint(['operator_id'], ['operators.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('operator_id', 'title', name='uq_tour_operator_title')
    )
    op.create_index(op.f('ix_tours_operator_id'), 'tours', ['operator_id'], unique=False)

    # Create scheduled_tours table
    op.create_table('scheduled_tours',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tour_id', sa.Uuid(), nullable=False),
        sa.Column('vessel_id', sa.Uuid(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['vessel_id'], ['vessels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_scheduled_tours_tour_id'), 'scheduled_tours', ['tour_id'], unique=False)
    op.create_index(op.f('ix_scheduled_tours_vessel_id'), 'scheduled_tours', ['vessel_id'], unique=False)
    op.create_index(op.f('ix_scheduled_tours_start_time'), 'scheduled_tours', ['start_time'], unique=False)
    op.create_index('ix_scheduled_tours_vessel_start', 'scheduled_tours', ['vessel_id', 'start_time'], unique=False)

    # Create bookings table
    op.create_table('bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('scheduled_tour_id', sa.Uuid(), nullable=False),
        sa.Column('passenger_count', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(length=200), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('passenger_count > 0', name='ck_booking_passenger_count_positive'),
        sa.CheckConstraint('length(customer_name) > 0', name='ck_booking_customer_name_not_empty'),
        sa.CheckConstraint('length(customer_email) > 0', name='ck_booking_customer_email_not_empty'),
        sa.ForeignKeyConstraint(['scheduled_tour_id'], ['scheduled_tours.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_scheduled_tour_id'), 'bookings', ['scheduled_tour_id'], unique=False)
    op.create_index(op.f('ix_bookings_customer_email'), 'bookings', ['customer_email'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index(op.f('ix_bookings_customer_email'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_scheduled_tour_id'), table_name='bookings')
    op.drop_table('bookings')

    op.drop_index('ix_scheduled_tours_vessel_start', table_name='scheduled_tours')
    op.drop_index(op.f('ix_scheduled_tours_start_time'), table_name='scheduled_tours')
    op.drop_index(op.f('ix_scheduled_tours_vessel_id'), table_name='scheduled_tours')
    op.drop_index(op.f('ix_scheduled_tours_tour_id'), table_name='scheduled_tours')
    op.drop_table('scheduled_tours')

    op.drop_index(op.f('ix_tours_operator_id'), table_name='tours')
    op.drop_table('tours')

    op.drop_index(op.f('ix_vessels_operator_id'), table_name='vessels')
    op.drop_table('vessels')

    op.drop_index(op.f('ix_operators_email'), table_name='operators')
    op.drop_index(op.f('ix_operators_slug'), table_name='operators')
    op.drop_table('operators')
