"""SQLAlchemy ORM models for payees, payments, card tokens and the audit trail"""

import uuid
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base

from nexus_gateway.utils.date_utils import utc_now

Base = declarative_base()


class PayeeRecord(Base):
    """Saved transfer counterparty"""

    __tablename__ = "payees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    sort_code = Column(Text, nullable=False)  # canonical XX-XX-XX
    account_number = Column(Text, nullable=False)  # 8 digits
    reference = Column(Text, nullable=True)
    is_favourite = Column(Boolean, nullable=False, default=False)
    first_used_at = Column(DateTime(timezone=True), nullable=True)
    cooling_waived_at = Column(DateTime(timezone=True), nullable=True)
    cooling_waived_by = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class CoolingPeriodConfigRecord(Base):
    """Cooling policy per payment rail"""

    __tablename__ = "cooling_period_config"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    payment_rail = Column(Text, nullable=False, unique=True)
    cooling_hours = Column(Integer, nullable=False, default=24)
    is_active = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)


class TransactionLimitRecord(Base):
    """Payment limits per KYC level, in pence"""

    __tablename__ = "transaction_limits"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    kyc_level = Column(Text, nullable=False, unique=True)
    single_transaction_limit_pence = Column(BigInteger, nullable=False)
    daily_limit_pence = Column(BigInteger, nullable=False)
    monthly_limit_pence = Column(BigInteger, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)


class KycVerificationRecord(Base):
    """KYC outcome per user. Written by the onboarding service, read here for limits."""

    __tablename__ = "kyc_verifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    verification_level = Column(Text, nullable=False)
    status = Column(Text, nullable=False)  # pending | verified | rejected
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class PaymentSubmissionRecord(Base):
    """Outbound payment accepted by the gateway and handed to a rail"""

    __tablename__ = "payment_submissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    payee_id = Column(Uuid, ForeignKey("payees.id"), nullable=False)
    rail = Column(Text, nullable=False)
    rail_status = Column(Text, nullable=False, default="submitted")
    amount_pence = Column(BigInteger, nullable=False)
    fee_pence = Column(BigInteger, nullable=False, default=0)
    currency_code = Column(Text, nullable=False, default="GBP")
    payee_name = Column(Text, nullable=True)
    payee_sort_code = Column(Text, nullable=True)
    payee_account_number = Column(Text, nullable=True)
    reference = Column(Text, nullable=True)
    cop_result = Column(Text, nullable=True)
    cop_matched_name = Column(Text, nullable=True)
    settlement_date = Column(Date, nullable=True)
    failure_reason = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    settled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class CardTokenRecord(Base):
    """Tokenized card reference. Never stores a PAN."""

    __tablename__ = "card_tokens"
    __table_args__ = (UniqueConstraint("token", name="uq_card_tokens_token"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    token = Column(Text, nullable=False)
    card_id = Column(Text, nullable=True)
    token_type = Column(Text, nullable=False)
    last_four = Column(Text, nullable=False)
    expiry_month = Column(Integer, nullable=True)
    expiry_year = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    expires_at = Column(DateTime(timezone=True), nullable=True)


class PciAccessLogRecord(Base):
    """Append-only PCI-DSS card data access trail"""

    __tablename__ = "pci_access_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_id = Column(Text, nullable=True)
    actor_role = Column(Text, nullable=True)
    access_type = Column(Text, nullable=False)
    card_id = Column(Text, nullable=True)
    token_id = Column(Text, nullable=True)
    reason = Column(Text, nullable=True)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)


class AuditLogRecord(Base):
    """Append-only audit trail for compliance-relevant actions"""

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(Text, nullable=False)
    actor_id = Column(Text, nullable=True)
    actor_role = Column(Text, nullable=True)
    target_table = Column(Text, nullable=True)
    target_id = Column(Text, nullable=True)
    action = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
