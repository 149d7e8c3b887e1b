"""Add case_responses for specialist consultation responses

Revision ID: 002_case_responses
Revises: 001_initial_referral
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_case_responses'
down_revision: Union[str, None] = '001_initial_referral'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'case_responses',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('case_id', sa.String(length=36), nullable=False),
        sa.Column('specialist_id', sa.String(length=100), nullable=False),
        sa.Column('response_text', sa.Text(), nullable=False),
        sa.Column('diagnosis', sa.Text(), nullable=True),
        sa.Column('treatment_recommendations', sa.Text(), nullable=True),
        sa.Column('prognosis', sa.Text(), nullable=True),
        sa.Column('referral_recommendations', sa.Text(), nullable=True),
        sa.Column('follow_up_needed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('follow_up_date', sa.Date(), nullable=True),
        sa.Column('is_final_response', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['case_id'], ['cases.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_case_responses_case_id'), 'case_responses', ['case_id'], unique=False)
    op.create_index(
        op.f('ix_case_responses_specialist_id'), 'case_responses', ['specialist_id'], unique=False
    )
    op.create_index(
        op.f('ix_case_responses_created_at'), 'case_responses', ['created_at'], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f('ix_case_responses_created_at'), table_name='case_responses')
    op.drop_index(op.f('ix_case_responses_specialist_id'), table_name='case_responses')
    op.drop_index(op.f('ix_case_responses_case_id'), table_name='case_responses')
    op.drop_table('case_responses')
