"""Initial migration

Revision ID: 001
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    user_role = sa.Enum('DOCTOR', 'PATIENT', name='userrole')
    prescription_status = sa.Enum('ACTIVE', 'CANCELLED', 'COMPLETED', name='prescriptionstatus')

    # Create profiles table
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'], unique=True)

    # Create doctors table
    op.create_table(
        'doctors',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('specialization', sa.String(length=100), nullable=False),
        sa.Column('license_number', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['id'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    # Create patients table
    op.create_table(
        'patients',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('medical_record_number', sa.String(length=50), nullable=True),
        sa.Column('emergency_contact', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['id'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    # Create prescriptions table
    op.create_table(
        'prescriptions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('doctor_id', sa.String(length=36), nullable=False),
        sa.Column('patient_id', sa.String(length=36), nullable=False),
        sa.Column('date_issued', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('diagnosis', sa.Text(), nullable=False),
        sa.Column('medications', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('pdf_url', sa.String(length=500), nullable=True),
        sa.Column('status', prescription_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['doctor_id'], ['doctors.id'], name='prescriptions_doctor_id_fkey'),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], name='prescriptions_patient_id_fkey'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_prescriptions_doctor_id', 'prescriptions', ['doctor_id'], unique=False)
    op.create_index('ix_prescriptions_patient_id', 'prescriptions', ['patient_id'], unique=False)
    op.create_index('ix_prescriptions_created_at', 'prescriptions', ['created_at'], unique=False)


def downgrade() -> None:
    # Drop all tables in reverse order of creation
    op.drop_table('prescriptions')
    op.drop_table('patients')
    op.drop_table('doctors')
    op.drop_table('profiles')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS prescriptionstatus')
    op.execute('DROP TYPE IF EXISTS userrole')
