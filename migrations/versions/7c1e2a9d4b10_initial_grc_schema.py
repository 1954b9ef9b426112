"""initial_grc_schema

Create risks, treatments, treatment_extensions, workshops and
workshop_agenda_items.

Revision ID: 7c1e2a9d4b10
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = "7c1e2a9d4b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa_inspect(bind).get_table_names())

    if "risks" not in existing_tables:
        op.create_table(
            "risks",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("risk_id", sa.String(length=20), nullable=False, comment="Natural key: RISK-###"),
            sa.Column("current_phase", sa.String(length=30), nullable=True),
            sa.Column("risk_statement", sa.Text(), nullable=True),
            sa.Column("threat", sa.Text(), nullable=True),
            sa.Column("vulnerability", sa.Text(), nullable=True),
            sa.Column("risk_owner", sa.String(length=150), nullable=True),
            sa.Column("raised_by", sa.String(length=150), nullable=True),
            sa.Column("functional_unit", sa.String(length=150), nullable=True),
            sa.Column("jira_ticket", sa.String(length=50), nullable=True),
            sa.Column("date_risk_raised", sa.Date(), nullable=True),
            sa.Column("information_asset", sa.JSON(), nullable=True, comment="List of asset id strings"),
            sa.Column("impact_cia", sa.String(length=100), nullable=True),
            sa.Column("consequence", sa.String(length=30), nullable=True),
            sa.Column("likelihood", sa.String(length=30), nullable=True),
            sa.Column("current_risk_rating", sa.String(length=20), nullable=True),
            sa.Column("risk_action", sa.String(length=20), nullable=True),
            sa.Column("residual_risk_rating", sa.String(length=20), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_risks_risk_id", "risks", ["risk_id"], unique=True)
        op.create_index("ix_risks_current_phase", "risks", ["current_phase"])

    if "treatments" not in existing_tables:
        op.create_table(
            "treatments",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("treatment_id", sa.String(length=30), nullable=False, comment="TREAT-<risknum>-<seq>"),
            sa.Column("risk_id", sa.String(length=20), nullable=False),
            sa.Column("treatment_jira_ticket", sa.String(length=50), nullable=True),
            sa.Column("risk_treatment", sa.Text(), nullable=True),
            sa.Column("risk_treatment_owner", sa.String(length=150), nullable=True),
            sa.Column("date_risk_treatment_due", sa.Date(), nullable=True),
            sa.Column("extended_due_date", sa.Date(), nullable=True),
            sa.Column("number_of_extensions", sa.Integer(), nullable=False),
            sa.Column("completion_date", sa.Date(), nullable=True),
            sa.Column("closure_approval", sa.String(length=20), nullable=False),
            sa.Column("closure_approved_by", sa.String(length=150), nullable=True),
            sa.Column("date_closure_approved", sa.Date(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("risk_id", "treatment_id", name="uq_treatment_risk_treatment"),
        )
        op.create_index("ix_treatments_risk_id", "treatments", ["risk_id"])
        op.create_index("ix_treatments_closure_approval", "treatments", ["closure_approval"])

    if "treatment_extensions" not in existing_tables:
        op.create_table(
            "treatment_extensions",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("treatment_pk", sa.Integer(), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("extended_due_date", sa.Date(), nullable=False),
            sa.Column("justification", sa.Text(), nullable=False),
            sa.Column("approver", sa.String(length=150), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=True),
            sa.Column("date_approved", sa.Date(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["treatment_pk"], ["treatments.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_treatment_extensions_treatment_pk", "treatment_extensions", ["treatment_pk"])

    if "workshops" not in existing_tables:
        op.create_table(
            "workshops",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("workshop_id", sa.String(length=30), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("status", sa.String(length=40), nullable=False),
            sa.Column("facilitator", sa.String(length=150), nullable=True),
            sa.Column("security_steering_committee", sa.String(length=60), nullable=True),
            sa.Column("participants", sa.JSON(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_workshops_workshop_id", "workshops", ["workshop_id"], unique=True)
        op.create_index("ix_workshops_status", "workshops", ["status"])

    if "workshop_agenda_items" not in existing_tables:
        op.create_table(
            "workshop_agenda_items",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("workshop_pk", sa.Integer(), nullable=False),
            sa.Column("topic", sa.String(length=20), nullable=False),
            sa.Column("risk_id", sa.String(length=20), nullable=False),
            sa.Column("selected_treatments", sa.JSON(), nullable=True),
            sa.Column("actions_taken", sa.Text(), nullable=True),
            sa.Column("to_do", sa.Text(), nullable=True),
            sa.Column("outcome", sa.Text(), nullable=True),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(["workshop_pk"], ["workshops.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("workshop_pk", "topic", "risk_id", name="uq_agenda_topic_risk"),
        )
        op.create_index("ix_workshop_agenda_items_workshop_pk", "workshop_agenda_items", ["workshop_pk"])


def downgrade():
    existing_tables = set(sa_inspect(op.get_bind()).get_table_names())

    for table, indexes in (
        ("workshop_agenda_items", ["ix_workshop_agenda_items_workshop_pk"]),
        ("workshops", ["ix_workshops_status", "ix_workshops_workshop_id"]),
        ("treatment_extensions", ["ix_treatment_extensions_treatment_pk"]),
        ("treatments", ["ix_treatments_closure_approval", "ix_treatments_risk_id"]),
        ("risks", ["ix_risks_current_phase", "ix_risks_risk_id"]),
    ):
        if table in existing_tables:
            for name in indexes:
                op.drop_index(name, table_name=table)
            op.drop_table(table)
