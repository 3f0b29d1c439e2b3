"""grade level assignments, questions and newsroom

Revision ID: b41d07e3c9a2
Revises: 7c2e91b4f0a1
Create Date: 2026-10-19 14:03:27.551902

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b41d07e3c9a2'
down_revision: Union[str, Sequence[str], None] = '7c2e91b4f0a1'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    with op.batch_alter_table("assignments") as batch_op:
        batch_op.alter_column("class_id", existing_type=sa.Integer(), nullable=True)
        batch_op.add_column(sa.Column("target_grade", sa.String(2), nullable=True))
        batch_op.create_index("ix_assignments_target_grade", ["target_grade"])
        batch_op.create_check_constraint(
            "ck_assignment_has_audience",
            "class_id IS NOT NULL OR target_grade IS NOT NULL",
        )

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("question_type", sa.String(20), nullable=False),
        sa.Column("points", sa.Float(), nullable=False),
        sa.Column("order_number", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_questions_id", "questions", ["id"])
    op.create_index("ix_questions_assignment_id", "questions", ["assignment_id"])

    op.create_table(
        "answers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("submission_id", sa.Integer(), sa.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("answer_text", sa.Text(), nullable=True),
        sa.Column("file_url", sa.String(1024), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.Column("points_earned", sa.Float(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("submission_id", "question_id", name="uq_answer_submission_question"),
    )
    op.create_index("ix_answers_id", "answers", ["id"])
    op.create_index("ix_answers_submission_id", "answers", ["submission_id"])
    op.create_index("ix_answers_question_id", "answers", ["question_id"])

    op.create_table(
        "newsroom",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(1024), nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("target_audience", sa.String(20), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("updated_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_newsroom_id", "newsroom", ["id"])
    op.create_index("ix_newsroom_type", "newsroom", ["type"])
    op.create_index("ix_newsroom_status", "newsroom", ["status"])


def downgrade() -> None:
    """Downgrade schema."""
    for table in ("newsroom", "answers", "questions"):
        op.drop_table(table)

    with op.batch_alter_table("assignments") as batch_op:
        batch_op.drop_constraint("ck_assignment_has_audience", type_="check")
        batch_op.drop_index("ix_assignments_target_grade")
        batch_op.drop_column("target_grade")
        batch_op.alter_column("class_id", existing_type=sa.Integer(), nullable=False)
