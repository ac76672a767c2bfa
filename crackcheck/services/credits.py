"""Prepaid credit ledger: balance row per user plus an append-only transaction history."""
import logging
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from crackcheck.core.config import settings
from crackcheck.models import CreditTransaction, PDFExport, UserCredits

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ("add", "deduct", "refund", "initial")


class CreditsError(Exception):
    pass


class CreditsNotInitialized(CreditsError):
    def __init__(self, user_id: str):
        super().__init__(f"User credits not initialized: {user_id}")
        self.user_id = user_id


class InsufficientCredits(CreditsError):
    def __init__(self, required: int, current: int):
        super().__init__(f"Insufficient credits: {current} available, {required} required")
        self.required = required
        self.current = current


@dataclass
class ExportResult:
    export: PDFExport
    already_exported: bool
    remaining_credits: int | None = None


def get_user_credits(db: Session, user_id: str) -> UserCredits | None:
    return db.exec(select(UserCredits).where(UserCredits.user_id == user_id)).first()


def record_credit_transaction(
    db: Session,
    user_id: str,
    transaction_type: str,
    amount: int,
    description: str,
    related_analysis_id: int | None = None,
    pdf_export_id: int | None = None,
    model_used: str | None = None,
) -> CreditTransaction:
    if transaction_type not in TRANSACTION_TYPES:
        raise ValueError(f"Invalid transaction type: {transaction_type}")
    tx = CreditTransaction(
        user_id=user_id,
        transaction_type=transaction_type,
        amount=amount,
        description=description,
        related_analysis_id=related_analysis_id,
        pdf_export_id=pdf_export_id,
        model_used=model_used,
    )
    db.add(tx)
    db.commit()
    db.refresh(tx)
    return tx


def initialize_user_credits(db: Session, user_id: str, initial_credits: int | None = None) -> UserCredits:
    """Creates the balance row with free starter credits. Safe to call twice."""
    existing = get_user_credits(db, user_id)
    if existing:
        return existing
    amount = settings.initial_credits if initial_credits is None else initial_credits
    row = UserCredits(user_id=user_id, credits_remaining=amount)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Another request initialised the same user first
        db.rollback()
        return get_user_credits(db, user_id)
    db.refresh(row)
    record_credit_transaction(db, user_id, "initial", amount, "Welcome credits")
    logger.info("Initialized %s credits for new user %s", amount, user_id)
    return row


def ensure_user_credits(db: Session, user_id: str) -> UserCredits:
    return get_user_credits(db, user_id) or initialize_user_credits(db, user_id)


def check_credits(db: Session, user_id: str, required: int) -> tuple[bool, int]:
    """(has_enough, current_balance)."""
    row = get_user_credits(db, user_id)
    if row is None:
        raise CreditsNotInitialized(user_id)
    return row.credits_remaining >= required, row.credits_remaining


def deduct_credits(db: Session, user_id: str, amount: int) -> int:
    """
    Debits `amount` in one conditional UPDATE so two concurrent requests can never
    take the balance below zero. Returns the remaining balance.
    """
    if amount < 0:
        raise ValueError("amount must be >= 0")
    stmt = (
        update(UserCredits)
        .where(UserCredits.user_id == user_id, UserCredits.credits_remaining >= amount)
        .values(credits_remaining=UserCredits.credits_remaining - amount)
    )
    result = db.execute(stmt)
    if result.rowcount == 0:
        db.rollback()
        row = get_user_credits(db, user_id)
        if row is None:
            raise CreditsNotInitialized(user_id)
        raise InsufficientCredits(amount, row.credits_remaining)
    db.commit()
    row = get_user_credits(db, user_id)
    return row.credits_remaining


def _increment_balance(db: Session, user_id: str, amount: int, creem_id: str | None = None) -> int:
    values: dict = {"credits_remaining": UserCredits.credits_remaining + amount}
    if creem_id:
        values["creem_id"] = creem_id
    result = db.execute(update(UserCredits).where(UserCredits.user_id == user_id).values(**values))
    if result.rowcount == 0:
        db.add(UserCredits(user_id=user_id, credits_remaining=amount, creem_id=creem_id))
    db.commit()
    return get_user_credits(db, user_id).credits_remaining


def add_credits(
    db: Session,
    user_id: str,
    amount: int,
    description: str = "Credits added",
    creem_id: str | None = None,
) -> int:
    """Purchase or support grant. Creates the balance row if missing. Returns the new balance."""
    if amount <= 0:
        raise ValueError("amount must be positive")
    balance = _increment_balance(db, user_id, amount, creem_id)
    record_credit_transaction(db, user_id, "add", amount, description)
    return balance


def refund_credits(
    db: Session,
    user_id: str,
    amount: int,
    description: str,
    analysis_id: int | None = None,
    model_used: str | None = None,
) -> int:
    balance = _increment_balance(db, user_id, amount)
    record_credit_transaction(
        db, user_id, "refund", amount, description, related_analysis_id=analysis_id, model_used=model_used
    )
    logger.info("Refunded %s credits to %s: %s", amount, user_id, description)
    return balance


def get_credit_transaction_history(db: Session, user_id: str, limit: int = 50) -> list[CreditTransaction]:
    stmt = (
        select(CreditTransaction)
        .where(CreditTransaction.user_id == user_id)
        .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
        .limit(limit)
    )
    return list(db.exec(stmt).all())


def get_pdf_export(db: Session, user_id: str, analysis_id: int) -> PDFExport | None:
    stmt = select(PDFExport).where(PDFExport.user_id == user_id, PDFExport.analysis_id == analysis_id)
    return db.exec(stmt).first()


def export_pdf_and_deduct_credits(
    db: Session,
    user_id: str,
    analysis_id: int,
    model_used: str,
    credits_required: int,
) -> ExportResult:
    """Charges once per (user, analysis); repeated exports are free."""
    existing = get_pdf_export(db, user_id, analysis_id)
    if existing:
        return ExportResult(export=existing, already_exported=True)

    has_enough, current = check_credits(db, user_id, credits_required)
    if not has_enough:
        raise InsufficientCredits(credits_required, current)

    pdf_export = PDFExport(
        user_id=user_id,
        analysis_id=analysis_id,
        model_used=model_used,
        credits_charged=credits_required,
    )
    db.add(pdf_export)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return ExportResult(export=get_pdf_export(db, user_id, analysis_id), already_exported=True)
    db.refresh(pdf_export)

    try:
        remaining = deduct_credits(db, user_id, credits_required)
    except CreditsError:
        db.delete(pdf_export)
        db.commit()
        raise

    record_credit_transaction(
        db,
        user_id,
        "deduct",
        credits_required,
        f"PDF export for analysis ({model_used})",
        related_analysis_id=analysis_id,
        pdf_export_id=pdf_export.id,
        model_used=model_used,
    )
    db.refresh(pdf_export)
    return ExportResult(export=pdf_export, already_exported=False, remaining_credits=remaining)
