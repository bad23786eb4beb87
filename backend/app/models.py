from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db import Base


# -------------------------
# Helpers
# -------------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def uuid_str() -> str:
    return str(uuid.uuid4())


# -------------------------
# Tenants
# -------------------------

class Company(Base):
    """
    Tenant. Every imported row belongs to exactly one company; workflows
    (e.g. "imotorbike") resolve to a company by name.
    """
    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    issuances = relationship("Issuance", back_populates="company", cascade="all, delete-orphan", passive_deletes=True)
    billing_rows = relationship(
        "InsurerBillingRecord",
        back_populates="company",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    ocr_rows = relationship("OcrRecord", back_populates="company", cascade="all, delete-orphan", passive_deletes=True)


# -------------------------
# Imported records
# -------------------------

class Issuance(Base):
    __tablename__ = "issuances"
    __table_args__ = (
        Index("ix_issuances_company_workflow", "company_id", "workflow"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    workflow: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    # kept as text: carries time-of-day in several vendor formats
    purchased_date: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    plate_no: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    customer: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    instant_quotation: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    insurer: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    coverage: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    time_lapsed: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    partner: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    company = relationship("Company", back_populates="issuances")


class InsurerBillingRecord(Base):
    """
    One line of an insurer billing statement. Repeat lines are legitimate,
    so there is no uniqueness constraint here.
    """
    __tablename__ = "insurer_billing_data"
    __table_args__ = (
        Index("ix_insurer_billing_data_company_workflow", "company_id", "workflow"),
        Index("ix_insurer_billing_data_issue_date", "issue_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    workflow: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    insurer: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    row_number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    policy_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    client_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    vehicle_no: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    sum_insured: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cn_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    account_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    issue_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    issued_by: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    type: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    effective_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    vehicle_type: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    coverage_type: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    chassis: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    jpj_status: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    gross_premium: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    rebate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    gst: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    service_tax: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    stamp: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    premium_due: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    commission: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    gst_commission: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    nett_premium: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    amount_payable: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    ptv_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    premium_due_after_ptv: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    agent_code: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    transaction_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    transaction_time: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    class_product: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    quotation: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    repl_prev_no: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    trx_status: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    total_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    company = relationship("Company", back_populates="billing_rows")


class OcrRecord(Base):
    """
    Fields extracted from scanned cover notes. (vehicle_no, date_issue) is the
    dedup key; it is enforced at import time, not by the database.
    """
    __tablename__ = "ocr_data"
    __table_args__ = (
        Index("ix_ocr_data_company_workflow", "company_id", "workflow"),
        Index("ix_ocr_data_vehicle_date", "vehicle_no", "date_issue"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    workflow: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    # YYYY-MM-DD when the extracted text was a recognisable date, raw text otherwise
    date_issue: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    vehicle_no: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    insured_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    insured_ic_no: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    insurer_contact_no: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    insured_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    vehicle_make_model: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    type_of_cover: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    sum_insured: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    premium: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    ncd: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    total_base_premium: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_extra_coverage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    gross_premium: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    service_tax: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    stamp_duty: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_amount_payable_rounded: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    insurer: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_timestamp: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    formatted_timestamp: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    process_duration: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    company = relationship("Company", back_populates="ocr_rows")


# -------------------------
# Quarantine + audit
# -------------------------

class UploadError(Base):
    """
    Quarantined CSV row. raw_data is the row exactly as read from the file;
    the pipeline never edits these rows after insert.
    """
    __tablename__ = "upload_errors"
    __table_args__ = (
        Index("ix_upload_errors_company_workflow", "company_id", "workflow"),
        Index("ix_upload_errors_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)
    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    workflow: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    source: Mapped[str] = mapped_column(String(40), nullable=False)  # issuance/insurer_billing/ocr
    rejection_reason: Mapped[str] = mapped_column(String(200), nullable=False)
    raw_data: Mapped[dict] = mapped_column(JSON, nullable=False)
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class AuditLog(Base):
    """
    Append-only audit log for imports.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_company_id", "company_id"),
        Index("ix_audit_logs_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=uuid_str)

    company_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    workflow: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)

    event_type: Mapped[str] = mapped_column(String(80), nullable=False)
    actor: Mapped[str] = mapped_column(String(40), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    before_state: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    after_state: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
