"""create intake tables

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-02-02 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "3f1c9a7e2b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _scope_columns():
    return [
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("company_id", sa.String(length=36), nullable=False),
        sa.Column("workflow", sa.String(length=80), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "issuances",
        *_scope_columns(),
        sa.Column("purchased_date", sa.String(length=40), nullable=True),
        sa.Column("plate_no", sa.String(length=40), nullable=True),
        sa.Column("customer", sa.String(length=200), nullable=True),
        sa.Column("instant_quotation", sa.String(length=80), nullable=True),
        sa.Column("insurer", sa.String(length=120), nullable=True),
        sa.Column("coverage", sa.String(length=120), nullable=True),
        sa.Column("time_lapsed", sa.String(length=40), nullable=True),
        sa.Column("partner", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_issuances_company_workflow", "issuances", ["company_id", "workflow"], unique=False)

    op.create_table(
        "insurer_billing_data",
        *_scope_columns(),
        sa.Column("insurer", sa.String(length=120), nullable=True),
        sa.Column("row_number", sa.String(length=40), nullable=True),
        sa.Column("policy_no", sa.String(length=80), nullable=True),
        sa.Column("client_name", sa.String(length=200), nullable=True),
        sa.Column("vehicle_no", sa.String(length=40), nullable=True),
        sa.Column("status", sa.String(length=60), nullable=True),
        sa.Column("sum_insured", sa.Float(), nullable=True),
        sa.Column("cn_no", sa.String(length=80), nullable=True),
        sa.Column("account_no", sa.String(length=80), nullable=True),
        sa.Column("issue_date", sa.Date(), nullable=True),
        sa.Column("issued_by", sa.String(length=120), nullable=True),
        sa.Column("type", sa.String(length=60), nullable=True),
        sa.Column("effective_date", sa.Date(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("vehicle_type", sa.String(length=80), nullable=True),
        sa.Column("coverage_type", sa.String(length=80), nullable=True),
        sa.Column("chassis", sa.String(length=80), nullable=True),
        sa.Column("jpj_status", sa.String(length=60), nullable=True),
        sa.Column("gross_premium", sa.Float(), nullable=True),
        sa.Column("rebate", sa.Float(), nullable=True),
        sa.Column("gst", sa.Float(), nullable=True),
        sa.Column("service_tax", sa.Float(), nullable=True),
        sa.Column("stamp", sa.Float(), nullable=True),
        sa.Column("premium_due", sa.Float(), nullable=True),
        sa.Column("commission", sa.Float(), nullable=True),
        sa.Column("gst_commission", sa.Float(), nullable=True),
        sa.Column("nett_premium", sa.Float(), nullable=True),
        sa.Column("amount_payable", sa.Float(), nullable=True),
        sa.Column("ptv_amount", sa.Float(), nullable=True),
        sa.Column("premium_due_after_ptv", sa.Float(), nullable=True),
        sa.Column("agent_code", sa.String(length=60), nullable=True),
        sa.Column("user_id", sa.String(length=80), nullable=True),
        sa.Column("transaction_date", sa.Date(), nullable=True),
        sa.Column("transaction_time", sa.String(length=20), nullable=True),
        sa.Column("class_product", sa.String(length=120), nullable=True),
        sa.Column("quotation", sa.String(length=80), nullable=True),
        sa.Column("repl_prev_no", sa.String(length=80), nullable=True),
        sa.Column("trx_status", sa.String(length=60), nullable=True),
        sa.Column("total_amount", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_insurer_billing_data_company_workflow",
        "insurer_billing_data",
        ["company_id", "workflow"],
        unique=False,
    )
    op.create_index("ix_insurer_billing_data_issue_date", "insurer_billing_data", ["issue_date"], unique=False)

    op.create_table(
        "ocr_data",
        *_scope_columns(),
        sa.Column("date_issue", sa.String(length=40), nullable=True),
        sa.Column("vehicle_no", sa.String(length=40), nullable=True),
        sa.Column("insured_name", sa.String(length=200), nullable=True),
        sa.Column("insured_ic_no", sa.String(length=40), nullable=True),
        sa.Column("insurer_contact_no", sa.String(length=40), nullable=True),
        sa.Column("insured_email", sa.String(length=200), nullable=True),
        sa.Column("vehicle_make_model", sa.String(length=120), nullable=True),
        sa.Column("type_of_cover", sa.String(length=120), nullable=True),
        sa.Column("sum_insured", sa.Float(), nullable=True),
        sa.Column("premium", sa.Float(), nullable=True),
        sa.Column("ncd", sa.String(length=20), nullable=True),
        sa.Column("total_base_premium", sa.Float(), nullable=True),
        sa.Column("total_extra_coverage", sa.Float(), nullable=True),
        sa.Column("gross_premium", sa.Float(), nullable=True),
        sa.Column("service_tax", sa.Float(), nullable=True),
        sa.Column("stamp_duty", sa.Float(), nullable=True),
        sa.Column("total_amount_payable_rounded", sa.Float(), nullable=True),
        sa.Column("insurer", sa.String(length=120), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("created_timestamp", sa.String(length=60), nullable=True),
        sa.Column("formatted_timestamp", sa.String(length=60), nullable=True),
        sa.Column("process_duration", sa.String(length=40), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ocr_data_company_workflow", "ocr_data", ["company_id", "workflow"], unique=False)
    op.create_index("ix_ocr_data_vehicle_date", "ocr_data", ["vehicle_no", "date_issue"], unique=False)

    op.create_table(
        "upload_errors",
        *_scope_columns(),
        sa.Column("source", sa.String(length=40), nullable=False),
        sa.Column("rejection_reason", sa.String(length=200), nullable=False),
        sa.Column("raw_data", sa.JSON(), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_upload_errors_company_workflow", "upload_errors", ["company_id", "workflow"], unique=False)
    op.create_index("ix_upload_errors_created_at", "upload_errors", ["created_at"], unique=False)

    op.create_table(
        "audit_logs",
        *_scope_columns(),
        sa.Column("event_type", sa.String(length=80), nullable=False),
        sa.Column("actor", sa.String(length=40), nullable=False),
        sa.Column("reason", sa.String(length=200), nullable=True),
        sa.Column("before_state", sa.JSON(), nullable=True),
        sa.Column("after_state", sa.JSON(), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_company_id", "audit_logs", ["company_id"], unique=False)
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_created_at", table_name="audit_logs")
    op.drop_index("ix_audit_logs_company_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_upload_errors_created_at", table_name="upload_errors")
    op.drop_index("ix_upload_errors_company_workflow", table_name="upload_errors")
    op.drop_table("upload_errors")

    op.drop_index("ix_ocr_data_vehicle_date", table_name="ocr_data")
    op.drop_index("ix_ocr_data_company_workflow", table_name="ocr_data")
    op.drop_table("ocr_data")

    op.drop_index("ix_insurer_billing_data_issue_date", table_name="insurer_billing_data")
    op.drop_index("ix_insurer_billing_data_company_workflow", table_name="insurer_billing_data")
    op.drop_table("insurer_billing_data")

    op.drop_index("ix_issuances_company_workflow", table_name="issuances")
    op.drop_table("issuances")

    op.drop_table("companies")
