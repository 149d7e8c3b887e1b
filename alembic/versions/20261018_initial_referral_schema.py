"""Initial schema for cases, case_documents and case_timeline

Revision ID: 001_initial_referral
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_referral'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'animal_species': ('dog', 'cat', 'horse', 'bird', 'rabbit', 'other'),
    'spay_neuter_status': ('spayed', 'neutered', 'intact'),
    'case_status': (
        'submitted', 'reviewing', 'in_progress', 'completed', 'follow_up_needed', 'declined',
    ),
    'case_urgency': ('routine', 'urgent', 'emergency'),
    'specialty_area': (
        'anesthesia', 'cardiology', 'dermatology', 'emergency', 'internal_medicine',
        'neurology', 'oncology', 'ophthalmology', 'orthopedics', 'surgery',
    ),
    'document_category': ('blood_test_image', 'medical_record'),
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*ENUMS[name], name=name)


def upgrade() -> None:
    """Create the case graph tables."""
    op.create_table(
        'cases',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('referring_vet_id', sa.String(length=100), nullable=False),
        sa.Column('specialist_id', sa.String(length=100), nullable=True),
        sa.Column('patient_name', sa.String(length=200), nullable=False),
        sa.Column('species', _enum('animal_species'), nullable=False),
        sa.Column('other_species_type', sa.String(length=100), nullable=True),
        sa.Column('breed', sa.String(length=100), nullable=True),
        sa.Column('age_years', sa.Integer(), nullable=True),
        sa.Column('age_months', sa.Integer(), nullable=True),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('spay_neuter_status', _enum('spay_neuter_status'), nullable=True),
        sa.Column('chief_complaint', sa.Text(), nullable=False),
        sa.Column('presenting_complaint', sa.Text(), nullable=False),
        sa.Column('anesthesia_history', sa.JSON(), nullable=True),
        sa.Column('physical_examination', sa.JSON(), nullable=True),
        sa.Column('vital_signs', sa.JSON(), nullable=True),
        sa.Column('current_medications', sa.JSON(), nullable=False),
        sa.Column('status', _enum('case_status'), nullable=False),
        sa.Column('urgency', _enum('case_urgency'), nullable=False),
        sa.Column('specialty_requested', _enum('specialty_area'), nullable=False),
        sa.Column('working_diagnosis', sa.Text(), nullable=True),
        sa.Column('differential_diagnoses', sa.Text(), nullable=True),
        sa.Column('diagnostic_results', sa.Text(), nullable=True),
        sa.Column('questions_for_specialist', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_cases_referring_vet_id'), 'cases', ['referring_vet_id'], unique=False)
    op.create_index(op.f('ix_cases_specialist_id'), 'cases', ['specialist_id'], unique=False)
    op.create_index(op.f('ix_cases_status'), 'cases', ['status'], unique=False)
    op.create_index(op.f('ix_cases_created_at'), 'cases', ['created_at'], unique=False)

    op.create_table(
        'case_documents',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('case_id', sa.String(length=36), nullable=False),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('file_path', sa.String(length=1024), nullable=False),
        sa.Column('file_type', _enum('document_category'), nullable=False),
        sa.Column('mime_type', sa.String(length=255), nullable=True),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.Column('uploaded_by', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['case_id'], ['cases.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_case_documents_case_id'), 'case_documents', ['case_id'], unique=False)

    # Append-only: the service never issues UPDATE or DELETE against this table
    op.create_table(
        'case_timeline',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('case_id', sa.String(length=36), nullable=False),
        sa.Column('actor_id', sa.String(length=100), nullable=False),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['case_id'], ['cases.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_case_timeline_case_id'), 'case_timeline', ['case_id'], unique=False)
    op.create_index(op.f('ix_case_timeline_created_at'), 'case_timeline', ['created_at'], unique=False)


def downgrade() -> None:
    """Drop the case graph tables."""
    op.drop_index(op.f('ix_case_timeline_created_at'), table_name='case_timeline')
    op.drop_index(op.f('ix_case_timeline_case_id'), table_name='case_timeline')
    op.drop_table('case_timeline')

    op.drop_index(op.f('ix_case_documents_case_id'), table_name='case_documents')
    op.drop_table('case_documents')

    op.drop_index(op.f('ix_cases_created_at'), table_name='cases')
    op.drop_index(op.f('ix_cases_status'), table_name='cases')
    op.drop_index(op.f('ix_cases_specialist_id'), table_name='cases')
    op.drop_index(op.f('ix_cases_referring_vet_id'), table_name='cases')
    op.drop_table('cases')

    # Drop enum types (PostgreSQL only)
    # SQLite will ignore these
    for name in ENUMS:
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
