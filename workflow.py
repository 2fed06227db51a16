"""
Multi-row operations: borrowing creation, approval decisions and stock usage.

Each public function here is one unit of work: it either commits every row it
touches or rolls the session back and re-raises.
"""
from __future__ import annotations

import logging
from uuid import uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crud import classify_stock, utcnow
from errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from models import (
    APPROVER_ROLES,
    Approval,
    ApprovalDecision,
    ApprovalOutcome,
    Borrowing,
    BorrowingIn,
    StockUsage,
    StockUsageIn,
    User,
)
from orm import ApprovalORM, BorrowingDetailORM, BorrowingORM, StockItemORM, StockUsageORM, ToolORM

logger = logging.getLogger("app.workflow")


# ---------- Borrowing ----------
def create_borrowing(db: Session, body: BorrowingIn, *, borrower: User) -> Borrowing:
    exists = db.execute(
        select(BorrowingORM.id).where(BorrowingORM.borrowing_id == body.borrowing_id)
    ).first()
    if exists:
        raise ConflictError("Borrowing ID already exists")

    tool_ids = list(dict.fromkeys(body.tool_ids))
    found = set(db.execute(select(ToolORM.id).where(ToolORM.id.in_(tool_ids))).scalars().all())
    missing = [t for t in tool_ids if t not in found]
    if missing:
        raise NotFoundError(f"tool(s) not found: {', '.join(str(t) for t in missing)}")

    now = utcnow()
    try:
        b = BorrowingORM(
            borrowing_id=body.borrowing_id,
            borrower_id=borrower.id,
            borrow_date=body.borrow_date,
            expected_return_date=body.expected_return_date,
            purpose=body.purpose,
            notes=body.notes,
            status="pending_approval",
            created_at=now,
            updated_at=now,
        )
        db.add(b)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning("borrowing %s lost a uniqueness race", body.borrowing_id)
            raise ConflictError("Borrowing ID already exists")

        for tool_pk in tool_ids:
            db.add(BorrowingDetailORM(
                borrowing_id=b.id,
                tool_id=tool_pk,
                quantity=1,
                returned_quantity=0,
                created_at=now,
            ))

        for role in APPROVER_ROLES:
            db.add(ApprovalORM(
                borrowing_id=b.id,
                approver_role=role,
                status="pending",
                created_at=now,
                updated_at=now,
            ))

        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("borrowing %s rejected by the store: %s", body.borrowing_id, exc.orig)
        raise ConflictError("Borrowing conflicts with a concurrent change")
    except Exception:
        db.rollback()
        raise

    db.refresh(b)
    logger.info(
        "borrowing created borrowing_id=%s pk=%s borrower=%s tools=%s",
        b.borrowing_id, b.id, borrower.id, tool_ids,
    )
    return Borrowing.model_validate(b)


# ---------- Approval ----------
def _check_approver(actor: User, role: str) -> None:
    if actor.role not in ("admin", role):
        raise ForbiddenError(f"role {actor.role} cannot decide for {role}")


def _load_approval(db: Session, borrowing_pk: int, role: str) -> ApprovalORM:
    row = db.execute(
        select(ApprovalORM)
        .where(ApprovalORM.borrowing_id == borrowing_pk, ApprovalORM.approver_role == role)
        .limit(1)
    ).scalars().first()
    if row is None:
        raise NotFoundError("approval not found")
    return row


def _sign(row: ApprovalORM, decision: ApprovalDecision, actor: User, status: str) -> None:
    now = utcnow()
    row.status = status
    row.approver_id = actor.id
    row.signed_at = now
    row.notes = decision.notes
    if decision.signature_data is not None:
        row.signature_data = decision.signature_data
    row.updated_at = now


def approve(db: Session, decision: ApprovalDecision, *, actor: User) -> ApprovalOutcome:
    _check_approver(actor, decision.approver_role)
    row = _load_approval(db, decision.borrowing_id, decision.approver_role)
    borrowing = db.get(BorrowingORM, decision.borrowing_id)

    try:
        # approvals are independent; the borrowing status is left as it is
        _sign(row, decision, actor, "approved")
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(row)
    db.refresh(borrowing)
    logger.info(
        "approval approved borrowing=%s role=%s by=%s",
        borrowing.id, row.approver_role, actor.id,
    )
    return ApprovalOutcome(
        approval=Approval.model_validate(row),
        borrowing=Borrowing.model_validate(borrowing),
    )


def reject(db: Session, decision: ApprovalDecision, *, actor: User) -> ApprovalOutcome:
    _check_approver(actor, decision.approver_role)
    row = _load_approval(db, decision.borrowing_id, decision.approver_role)
    borrowing = db.get(BorrowingORM, decision.borrowing_id)

    try:
        _sign(row, decision, actor, "rejected")
        borrowing.status = "rejected"
        borrowing.updated_at = utcnow()
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(row)
    db.refresh(borrowing)
    logger.info(
        "approval rejected borrowing=%s role=%s by=%s",
        borrowing.id, row.approver_role, actor.id,
    )
    return ApprovalOutcome(
        approval=Approval.model_validate(row),
        borrowing=Borrowing.model_validate(borrowing),
    )


# ---------- Stock usage ----------
def record_stock_usage(db: Session, body: StockUsageIn, *, actor: User) -> StockUsage:
    item = db.get(StockItemORM, body.item_id)
    if item is None:
        raise NotFoundError("Stock item not found")
    if item.quantity < body.quantity:
        raise BadRequestError("Insufficient stock")

    usage_id = body.usage_id or f"USE-{uuid4().hex[:8].upper()}"
    taken = db.execute(select(StockUsageORM.id).where(StockUsageORM.usage_id == usage_id)).first()
    if taken:
        raise ConflictError("Usage ID already exists")

    now = utcnow()
    try:
        usage = StockUsageORM(
            usage_id=usage_id,
            item_id=item.id,
            used_by=actor.id,
            quantity=body.quantity,
            usage_date=body.usage_date,
            purpose=body.purpose,
            notes=body.notes,
            created_at=now,
        )
        db.add(usage)

        # the quantity guard lives in the UPDATE so concurrent usages cannot overdraw
        result = db.execute(
            update(StockItemORM)
            .where(StockItemORM.id == item.id, StockItemORM.quantity >= body.quantity)
            .values(quantity=StockItemORM.quantity - body.quantity, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise BadRequestError("Insufficient stock")

        db.refresh(item)
        item.status = classify_stock(item.quantity, item.min_threshold)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Usage ID already exists")
    except Exception:
        db.rollback()
        raise

    db.refresh(usage)
    logger.info(
        "stock used item=%s qty=%s remaining=%s status=%s by=%s",
        item.item_id, body.quantity, item.quantity, item.status, actor.id,
    )
    return StockUsage.model_validate(usage)
