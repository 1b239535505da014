"""Data access layer for payees, payments, limits and card tokens"""

import logging
import uuid
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nexus_gateway.domain.exceptions import TokenizationError
from nexus_gateway.domain.models import (
    CardToken,
    CoolingPeriodConfig,
    Payee,
    RailSelection,
    TransactionLimit,
)
from nexus_gateway.domain.ports import CardTokenStore, CoolingStore
from nexus_gateway.infrastructure.database.context import SCOPE_ADMIN, SCOPE_PAYMENTS, SCOPE_PCI, PrivilegedContext
from nexus_gateway.infrastructure.database.models import (
    CardTokenRecord,
    CoolingPeriodConfigRecord,
    KycVerificationRecord,
    PayeeRecord,
    PaymentSubmissionRecord,
    TransactionLimitRecord,
)

logger = logging.getLogger(__name__)

INACTIVE_RAIL_STATUSES = ("failed", "returned")


def payee_to_domain(record: PayeeRecord) -> Payee:
    return Payee(
        id=record.id,
        user_id=record.user_id,
        name=record.name,
        sort_code=record.sort_code,
        account_number=record.account_number,
        is_favourite=record.is_favourite,
        created_at=record.created_at,
        first_used_at=record.first_used_at,
        reference=record.reference,
        cooling_waived_at=record.cooling_waived_at,
    )


def token_to_domain(record: CardTokenRecord) -> CardToken:
    return CardToken(
        id=record.id,
        user_id=record.user_id,
        token=record.token,
        card_id=record.card_id,
        token_type=record.token_type,
        last_four=record.last_four,
        is_active=record.is_active,
        created_at=record.created_at,
        expires_at=record.expires_at,
        expiry_month=record.expiry_month,
        expiry_year=record.expiry_year,
    )


class PayeeRepository:
    """Repository for a customer's saved payees"""

    def __init__(self, db: Session):
        self.db = db

    def create_payee(
        self,
        user_id: str,
        name: str,
        sort_code: str,
        account_number: str,
        reference: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> PayeeRecord:
        """Persist a payee; sort code and account number must already be canonical"""
        db_payee = PayeeRecord(
            user_id=user_id,
            name=name,
            sort_code=sort_code,
            account_number=account_number,
            reference=reference,
            is_favourite=False,
        )
        if created_at is not None:
            db_payee.created_at = created_at
        self.db.add(db_payee)
        self.db.flush()
        return db_payee

    def get_payee(self, payee_id: uuid.UUID) -> Optional[PayeeRecord]:
        return self.db.query(PayeeRecord).filter(PayeeRecord.id == payee_id).first()

    def get_payees_by_user(self, user_id: str) -> List[PayeeRecord]:
        return (
            self.db.query(PayeeRecord)
            .filter(PayeeRecord.user_id == user_id)
            .order_by(PayeeRecord.created_at.desc())
            .all()
        )


class CoolingRepository(CoolingStore):
    """Cooling policy and payee first-use state"""

    def __init__(self, ctx: PrivilegedContext):
        ctx.require(SCOPE_PAYMENTS)
        self.ctx = ctx
        self.db = ctx.db

    def get_cooling_config(self, rail: str) -> Optional[CoolingPeriodConfig]:
        record = (
            self.db.query(CoolingPeriodConfigRecord)
            .filter(CoolingPeriodConfigRecord.payment_rail == rail)
            .first()
        )
        if record is None:
            return None
        return CoolingPeriodConfig(
            payment_rail=record.payment_rail,
            cooling_hours=record.cooling_hours,
            is_active=record.is_active,
            description=record.description,
        )

    def get_payee(self, payee_id: uuid.UUID) -> Optional[Payee]:
        record = self.db.query(PayeeRecord).filter(PayeeRecord.id == payee_id).first()
        return payee_to_domain(record) if record else None

    def get_payees_by_user(self, user_id: str) -> List[Payee]:
        return [payee_to_domain(p) for p in PayeeRepository(self.db).get_payees_by_user(user_id)]

    def set_first_used_if_unset(self, payee_id: uuid.UUID, used_at: datetime) -> bool:
        # Conditional update so concurrent settlements cannot overwrite the first value
        updated = (
            self.db.query(PayeeRecord)
            .filter(PayeeRecord.id == payee_id, PayeeRecord.first_used_at.is_(None))
            .update({PayeeRecord.first_used_at: used_at})
        )
        return updated > 0

    def set_cooling_waived(self, payee_id: uuid.UUID, waived_at: datetime, waived_by: Optional[str]) -> None:
        self.ctx.require(SCOPE_ADMIN)
        (
            self.db.query(PayeeRecord)
            .filter(PayeeRecord.id == payee_id)
            .update({PayeeRecord.cooling_waived_at: waived_at, PayeeRecord.cooling_waived_by: waived_by})
        )

    def upsert_cooling_config(
        self,
        rail: str,
        cooling_hours: int,
        is_active: bool,
        description: Optional[str] = None,
    ) -> CoolingPeriodConfigRecord:
        self.ctx.require(SCOPE_ADMIN)
        record = (
            self.db.query(CoolingPeriodConfigRecord)
            .filter(CoolingPeriodConfigRecord.payment_rail == rail)
            .first()
        )
        if record is None:
            record = CoolingPeriodConfigRecord(payment_rail=rail)
            self.db.add(record)

        record.cooling_hours = cooling_hours
        record.is_active = is_active
        record.description = description
        self.db.flush()
        return record


class LimitRepository:
    """KYC levels, limit configuration and payment usage totals"""

    def __init__(self, ctx: PrivilegedContext):
        ctx.require(SCOPE_PAYMENTS)
        self.ctx = ctx
        self.db = ctx.db

    def get_user_kyc_level(self, user_id: str) -> str:
        """Latest verified KYC level, falling back to 'basic'"""
        record = (
            self.db.query(KycVerificationRecord)
            .filter(KycVerificationRecord.user_id == user_id, KycVerificationRecord.status == "verified")
            .order_by(KycVerificationRecord.created_at.desc())
            .first()
        )
        return record.verification_level if record else "basic"

    def get_limit(self, kyc_level: str) -> Optional[TransactionLimit]:
        record = (
            self.db.query(TransactionLimitRecord)
            .filter(TransactionLimitRecord.kyc_level == kyc_level, TransactionLimitRecord.is_active.is_(True))
            .first()
        )
        if record is None:
            return None
        return TransactionLimit(
            kyc_level=record.kyc_level,
            single_transaction_limit_pence=record.single_transaction_limit_pence,
            daily_limit_pence=record.daily_limit_pence,
            monthly_limit_pence=record.monthly_limit_pence,
            is_active=record.is_active,
        )

    def upsert_limit(self, limit: TransactionLimit) -> TransactionLimitRecord:
        self.ctx.require(SCOPE_ADMIN)
        record = (
            self.db.query(TransactionLimitRecord)
            .filter(TransactionLimitRecord.kyc_level == limit.kyc_level)
            .first()
        )
        if record is None:
            record = TransactionLimitRecord(kyc_level=limit.kyc_level)
            self.db.add(record)

        record.single_transaction_limit_pence = limit.single_transaction_limit_pence
        record.daily_limit_pence = limit.daily_limit_pence
        record.monthly_limit_pence = limit.monthly_limit_pence
        record.is_active = limit.is_active
        self.db.flush()
        return record

    def get_used_pence(self, user_id: str, since: datetime) -> int:
        """Sum of outgoing payments since `since`, in pence"""
        total = (
            self.db.query(func.coalesce(func.sum(PaymentSubmissionRecord.amount_pence), 0))
            .filter(
                PaymentSubmissionRecord.user_id == user_id,
                PaymentSubmissionRecord.rail_status.notin_(INACTIVE_RAIL_STATUSES),
                PaymentSubmissionRecord.created_at >= since,
            )
            .scalar()
        )
        return int(total)


class PaymentRepository:
    """Repository for payment submissions"""

    def __init__(self, ctx: PrivilegedContext):
        ctx.require(SCOPE_PAYMENTS)
        self.db = ctx.db

    def create_submission(
        self,
        user_id: str,
        payee: Payee,
        amount_pence: int,
        fee_pence: int,
        selection: RailSelection,
        cop_result: str,
        cop_matched_name: Optional[str],
        settlement_date: date,
        submitted_at: datetime,
        reference: Optional[str] = None,
    ) -> PaymentSubmissionRecord:
        """Persist an accepted payment"""
        db_submission = PaymentSubmissionRecord(
            user_id=user_id,
            payee_id=payee.id,
            rail=selection.rail,
            rail_status="submitted",
            amount_pence=amount_pence,
            fee_pence=fee_pence,
            payee_name=payee.name,
            payee_sort_code=payee.sort_code,
            payee_account_number=payee.account_number,
            reference=reference,
            cop_result=cop_result,
            cop_matched_name=cop_matched_name,
            settlement_date=settlement_date,
            submitted_at=submitted_at,
            created_at=submitted_at,
        )
        self.db.add(db_submission)
        self.db.flush()
        return db_submission

    def get_submission(self, submission_id: uuid.UUID) -> Optional[PaymentSubmissionRecord]:
        return (
            self.db.query(PaymentSubmissionRecord)
            .filter(PaymentSubmissionRecord.id == submission_id)
            .first()
        )

    def mark_settled(self, submission: PaymentSubmissionRecord, settled_at: datetime) -> None:
        submission.rail_status = "settled"
        submission.settled_at = settled_at
        self.db.flush()

    def mark_failed(self, submission: PaymentSubmissionRecord, reason: str) -> None:
        submission.rail_status = "failed"
        submission.failure_reason = reason
        self.db.flush()


class CardTokenRepository(CardTokenStore):
    """Card token storage, reachable only from a PCI-scoped context"""

    def __init__(self, ctx: PrivilegedContext):
        ctx.require(SCOPE_PCI)
        self.db = ctx.db

    def create_token(
        self,
        user_id: str,
        token: str,
        card_id: str,
        token_type: str,
        last_four: str,
        expiry_month: Optional[int],
        expiry_year: Optional[int],
        created_at: datetime,
        expires_at: Optional[datetime],
    ) -> CardToken:
        db_token = CardTokenRecord(
            user_id=user_id,
            token=token,
            card_id=card_id,
            token_type=token_type,
            last_four=last_four,
            expiry_month=expiry_month,
            expiry_year=expiry_year,
            is_active=True,
            created_at=created_at,
            expires_at=expires_at,
        )
        try:
            self.db.add(db_token)
            self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            # Storage detail stays in the server log
            logger.error("Tokenization error: %s", e, extra={"step": "tokenize", "card_id": card_id})
            raise TokenizationError("Tokenization failed. Please try again.") from e

        return token_to_domain(db_token)

    def find_active_token(self, token: str) -> Optional[CardToken]:
        record = (
            self.db.query(CardTokenRecord)
            .filter(CardTokenRecord.token == token, CardTokenRecord.is_active.is_(True))
            .first()
        )
        return token_to_domain(record) if record else None

    def deactivate(self, token_id: uuid.UUID) -> None:
        (
            self.db.query(CardTokenRecord)
            .filter(CardTokenRecord.id == token_id)
            .update({CardTokenRecord.is_active: False})
        )
