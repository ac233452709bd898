"""create question table

Revision ID: 3c9d41a7e2b0
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9d41a7e2b0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # Tables created by `flask db-reset` already match; no-op then.
    if 'question' in set(insp.get_table_names()):
        return

    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('options', sa.Text(), nullable=False),
        sa.Column('correct_answer', sa.String(length=256), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False, server_default='10'),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade():
    op.drop_table('question')
