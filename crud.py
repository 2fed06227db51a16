from __future__ import annotations

from datetime import datetime, timezone
from functools import wraps
import logging

from typing import Optional

from sqlalchemy import select, delete, func
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from models import (
    AppSetting,
    AppSettingIn,
    Approval,
    Borrowing,
    BorrowingDetail,
    Calibration,
    CalibrationIn,
    StockItem,
    StockItemIn,
    StockItemUpdate,
    StockUsage,
    Tool,
    ToolIn,
    ToolUpdate,
    User,
    UserIn,
)
from orm import (
    AppSettingORM,
    ApprovalORM,
    BorrowingDetailORM,
    BorrowingORM,
    CalibrationORM,
    StockItemORM,
    StockUsageORM,
    ToolORM,
    UserORM,
)

logger = logging.getLogger("app.crud")

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def persist(db: Session, *, commit: bool) -> None:
    if commit:
        db.commit()
    else:
        db.flush()

def empty_on_db_error(fn=None, *, empty=list):
    """
    Reads degrade to an empty result when the store is unreachable.

    Bare use returns []; pass `empty=dict` for reads that return a mapping.
    """
    def decorate(fn):
        @wraps(fn)
        def wrapper(db: Session, *args, **kwargs):
            try:
                return fn(db, *args, **kwargs)
            except OperationalError as exc:
                logger.warning("database unavailable in %s: %s", fn.__name__, exc)
                return empty()
        return wrapper

    if fn is None:
        return decorate
    return decorate(fn)

def classify_stock(quantity: int, min_threshold: int) -> str:
    if quantity <= 0:
        return "out_of_stock"
    if quantity <= min_threshold:
        return "low_stock"
    return "available"


# ---------- User ----------
def get_user(db: Session, user_id: int) -> Optional[User]:
    row = db.get(UserORM, user_id)
    return User.model_validate(row) if row else None


def open_id_exists(db: Session, open_id: str) -> bool:
    return db.execute(select(UserORM.id).where(UserORM.open_id == open_id)).first() is not None


def create_user(db: Session, body: UserIn, *, commit: bool = True) -> User:
    now = utcnow()
    u = UserORM(
        open_id=body.open_id,
        name=body.name,
        email=body.email,
        role=body.role,
        created_at=now,
        updated_at=now,
        last_signed_in=now,
    )
    db.add(u)
    persist(db, commit=commit)
    if commit:
        db.refresh(u)
    return User.model_validate(u)


@empty_on_db_error
def list_users(db: Session) -> list[User]:
    rows = db.execute(select(UserORM).order_by(UserORM.name.asc(), UserORM.id.asc())).scalars().all()
    return [User.model_validate(u) for u in rows]


# ---------- Tool ----------
def tool_code_exists(db: Session, tool_id: str) -> bool:
    return db.execute(select(ToolORM.id).where(ToolORM.tool_id == tool_id)).first() is not None


def serial_no_exists(db: Session, serial_no: str, exclude_pk: Optional[int] = None) -> bool:
    stmt = select(ToolORM.id).where(ToolORM.serial_no == serial_no)
    if exclude_pk is not None:
        stmt = stmt.where(ToolORM.id != exclude_pk)
    return db.execute(stmt).first() is not None


def get_tool(db: Session, pk: int) -> Optional[Tool]:
    row = db.get(ToolORM, pk)
    return Tool.model_validate(row) if row else None


def get_tool_by_code(db: Session, tool_id: str) -> Optional[Tool]:
    row = db.execute(select(ToolORM).where(ToolORM.tool_id == tool_id)).scalars().first()
    return Tool.model_validate(row) if row else None


@empty_on_db_error
def list_tools(db: Session, *, status: str | None = None) -> list[Tool]:
    stmt = select(ToolORM)
    if status:
        stmt = stmt.where(ToolORM.status == status)
    rows = db.execute(stmt.order_by(ToolORM.tool_id.asc())).scalars().all()
    return [Tool.model_validate(t) for t in rows]


def create_tool(db: Session, body: ToolIn, *, assigned_to: int | None = None, commit: bool = True) -> Tool:
    now = utcnow()
    t = ToolORM(
        **body.model_dump(),
        assigned_to=assigned_to,
        created_at=now,
        updated_at=now,
    )
    db.add(t)
    persist(db, commit=commit)
    if commit:
        db.refresh(t)
    return Tool.model_validate(t)


def update_tool(db: Session, pk: int, body: ToolUpdate, *, commit: bool = True) -> Optional[Tool]:
    t = db.get(ToolORM, pk)
    if not t:
        return None

    data = body.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(t, k, v)
    t.updated_at = utcnow()

    persist(db, commit=commit)
    if commit:
        db.refresh(t)
    return Tool.model_validate(t)


def tool_in_use(db: Session, pk: int) -> bool:
    used = db.execute(
        select(func.count()).select_from(BorrowingDetailORM).where(BorrowingDetailORM.tool_id == pk)
    ).scalar_one()
    return int(used) > 0


def delete_tool(db: Session, pk: int, *, commit: bool = True) -> bool:
    result = db.execute(delete(ToolORM).where(ToolORM.id == pk))
    persist(db, commit=commit)
    return result.rowcount > 0


# ---------- Calibration ----------
def create_calibration(db: Session, tool_pk: int, body: CalibrationIn, *, commit: bool = True) -> Optional[Calibration]:
    t = db.get(ToolORM, tool_pk)
    if not t:
        return None

    now = utcnow()
    c = CalibrationORM(tool_id=tool_pk, **body.model_dump(), created_at=now)
    db.add(c)

    t.last_calibration_date = body.calibration_date
    t.next_calibration_date = body.next_calibration_date
    if body.certificate_url:
        t.calibration_certificate_url = body.certificate_url
    if body.result == "failed":
        t.status = "needs_calibration"
    t.updated_at = now

    persist(db, commit=commit)
    if commit:
        db.refresh(c)
    return Calibration.model_validate(c)


@empty_on_db_error
def list_calibrations(db: Session, tool_pk: int) -> list[Calibration]:
    rows = db.execute(
        select(CalibrationORM)
        .where(CalibrationORM.tool_id == tool_pk)
        .order_by(CalibrationORM.calibration_date.desc())
    ).scalars().all()
    return [Calibration.model_validate(c) for c in rows]


# ---------- Stock ----------
def item_code_exists(db: Session, item_id: str) -> bool:
    return db.execute(select(StockItemORM.id).where(StockItemORM.item_id == item_id)).first() is not None


def get_stock_item(db: Session, pk: int) -> Optional[StockItem]:
    row = db.get(StockItemORM, pk)
    return StockItem.model_validate(row) if row else None


@empty_on_db_error
def list_stock_items(db: Session) -> list[StockItem]:
    rows = db.execute(select(StockItemORM).order_by(StockItemORM.item_id.asc())).scalars().all()
    return [StockItem.model_validate(s) for s in rows]


@empty_on_db_error
def list_low_stock_items(db: Session) -> list[StockItem]:
    rows = db.execute(
        select(StockItemORM)
        .where(StockItemORM.quantity <= StockItemORM.min_threshold)
        .order_by(StockItemORM.quantity.asc(), StockItemORM.item_id.asc())
    ).scalars().all()
    return [StockItem.model_validate(s) for s in rows]


def create_stock_item(db: Session, body: StockItemIn, *, commit: bool = True) -> StockItem:
    now = utcnow()
    s = StockItemORM(
        **body.model_dump(),
        status=classify_stock(body.quantity, body.min_threshold),
        created_at=now,
        updated_at=now,
    )
    db.add(s)
    persist(db, commit=commit)
    if commit:
        db.refresh(s)
    return StockItem.model_validate(s)


def update_stock_item(db: Session, pk: int, body: StockItemUpdate, *, commit: bool = True) -> Optional[StockItem]:
    s = db.get(StockItemORM, pk)
    if not s:
        return None

    data = body.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(s, k, v)
    if "quantity" in data or "min_threshold" in data:
        s.status = classify_stock(s.quantity, s.min_threshold)
    s.updated_at = utcnow()

    persist(db, commit=commit)
    if commit:
        db.refresh(s)
    return StockItem.model_validate(s)


def stock_item_in_use(db: Session, pk: int) -> bool:
    used = db.execute(
        select(func.count()).select_from(StockUsageORM).where(StockUsageORM.item_id == pk)
    ).scalar_one()
    return int(used) > 0


def delete_stock_item(db: Session, pk: int, *, commit: bool = True) -> bool:
    result = db.execute(delete(StockItemORM).where(StockItemORM.id == pk))
    persist(db, commit=commit)
    return result.rowcount > 0


# ---------- Borrowing (reads) ----------
def get_borrowing(db: Session, pk: int) -> Optional[Borrowing]:
    row = db.get(BorrowingORM, pk)
    return Borrowing.model_validate(row) if row else None


def get_borrowing_by_code(db: Session, borrowing_id: str) -> Optional[Borrowing]:
    row = db.execute(
        select(BorrowingORM).where(BorrowingORM.borrowing_id == borrowing_id)
    ).scalars().first()
    return Borrowing.model_validate(row) if row else None


@empty_on_db_error
def list_borrowings(
    db: Session,
    *,
    borrower_id: int | None = None,
    status: str | None = None,
) -> list[Borrowing]:
    stmt = select(BorrowingORM)
    if borrower_id is not None:
        stmt = stmt.where(BorrowingORM.borrower_id == borrower_id)
    if status:
        stmt = stmt.where(BorrowingORM.status == status)
    rows = db.execute(stmt.order_by(BorrowingORM.borrow_date.desc())).scalars().all()
    return [Borrowing.model_validate(b) for b in rows]


@empty_on_db_error
def list_pending_borrowings(db: Session) -> list[Borrowing]:
    rows = db.execute(
        select(BorrowingORM)
        .where(BorrowingORM.status == "pending_approval")
        .order_by(BorrowingORM.borrow_date.asc())
    ).scalars().all()
    return [Borrowing.model_validate(b) for b in rows]


@empty_on_db_error
def list_borrowing_details(db: Session, borrowing_pk: int) -> list[BorrowingDetail]:
    rows = db.execute(
        select(BorrowingDetailORM)
        .where(BorrowingDetailORM.borrowing_id == borrowing_pk)
        .order_by(BorrowingDetailORM.id.asc())
    ).scalars().all()
    return [BorrowingDetail.model_validate(d) for d in rows]


def update_borrowing_status(db: Session, pk: int, status: str, *, commit: bool = True) -> Optional[Borrowing]:
    b = db.get(BorrowingORM, pk)
    if not b:
        return None

    now = utcnow()
    b.status = status
    if status == "returned" and b.actual_return_date is None:
        b.actual_return_date = now
    b.updated_at = now

    persist(db, commit=commit)
    if commit:
        db.refresh(b)
    return Borrowing.model_validate(b)


# ---------- Approval (reads) ----------
@empty_on_db_error
def list_approvals(db: Session, borrowing_pk: int) -> list[Approval]:
    rows = db.execute(
        select(ApprovalORM)
        .where(ApprovalORM.borrowing_id == borrowing_pk)
        .order_by(ApprovalORM.approver_role.asc())
    ).scalars().all()
    return [Approval.model_validate(a) for a in rows]


def get_approval(db: Session, borrowing_pk: int, role: str) -> Optional[Approval]:
    row = db.execute(
        select(ApprovalORM)
        .where(ApprovalORM.borrowing_id == borrowing_pk, ApprovalORM.approver_role == role)
        .limit(1)
    ).scalars().first()
    return Approval.model_validate(row) if row else None


@empty_on_db_error
def list_pending_approvals_for_role(db: Session, role: str) -> list[Approval]:
    rows = db.execute(
        select(ApprovalORM)
        .where(ApprovalORM.approver_role == role, ApprovalORM.status == "pending")
        .order_by(ApprovalORM.created_at.asc(), ApprovalORM.id.asc())
    ).scalars().all()
    return [Approval.model_validate(a) for a in rows]


# ---------- Stock usage (reads) ----------
@empty_on_db_error
def list_stock_usages(db: Session, *, item_pk: int | None = None, used_by: int | None = None) -> list[StockUsage]:
    stmt = select(StockUsageORM)
    if item_pk is not None:
        stmt = stmt.where(StockUsageORM.item_id == item_pk)
    if used_by is not None:
        stmt = stmt.where(StockUsageORM.used_by == used_by)
    rows = db.execute(
        stmt.order_by(StockUsageORM.usage_date.desc(), StockUsageORM.id.desc())
    ).scalars().all()
    return [StockUsage.model_validate(u) for u in rows]


# ---------- Settings ----------
def get_setting(db: Session, key: str) -> Optional[AppSetting]:
    row = db.execute(select(AppSettingORM).where(AppSettingORM.key == key)).scalars().first()
    return AppSetting.model_validate(row) if row else None


def set_setting(db: Session, key: str, body: AppSettingIn, *, commit: bool = True) -> AppSetting:
    now = utcnow()
    row = db.execute(select(AppSettingORM).where(AppSettingORM.key == key)).scalars().first()
    if row:
        row.value = body.value
        if body.description is not None:
            row.description = body.description
        row.updated_at = now
    else:
        row = AppSettingORM(
            key=key,
            value=body.value,
            description=body.description,
            created_at=now,
            updated_at=now,
        )
        db.add(row)

    persist(db, commit=commit)
    if commit:
        db.refresh(row)
    return AppSetting.model_validate(row)
