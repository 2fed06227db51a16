from __future__ import annotations

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from crud import empty_on_db_error
from models import MostUsedTool
from orm import BorrowingDetailORM, BorrowingORM, StockItemORM, StockUsageORM, ToolORM


@empty_on_db_error
def most_used_tools(db: Session, *, limit: int = 10) -> list[MostUsedTool]:
    borrow_count = func.count(BorrowingDetailORM.id).label("borrow_count")
    stmt = (
        select(
            ToolORM.id,
            ToolORM.tool_id,
            ToolORM.name,
            borrow_count,
            func.max(BorrowingORM.borrow_date).label("last_borrowed_at"),
        )
        .join(BorrowingDetailORM, BorrowingDetailORM.tool_id == ToolORM.id)
        .join(BorrowingORM, BorrowingORM.id == BorrowingDetailORM.borrowing_id)
        .group_by(ToolORM.id, ToolORM.tool_id, ToolORM.name)
        .order_by(borrow_count.desc(), ToolORM.tool_id.asc())
        .limit(limit)
    )
    return [
        MostUsedTool(
            tool_id=r[0],
            tool_code=r[1],
            name=r[2],
            borrow_count=int(r[3]),
            last_borrowed_at=r[4],
        )
        for r in db.execute(stmt).all()
    ]


@empty_on_db_error(empty=dict)
def tool_borrowing_stats(db: Session) -> dict[int, int]:
    """Borrowing-detail count per tool pk; tools never borrowed are omitted."""
    rows = db.execute(
        select(BorrowingDetailORM.tool_id, func.count(BorrowingDetailORM.id))
        .group_by(BorrowingDetailORM.tool_id)
    ).all()
    return {r[0]: int(r[1]) for r in rows}


@empty_on_db_error(empty=dict)
def stock_usage_stats(db: Session) -> dict[int, int]:
    """Usage record count per stock item pk, zero for items never used."""
    rows = db.execute(
        select(StockItemORM.id, func.count(StockUsageORM.id))
        .outerjoin(StockUsageORM, StockUsageORM.item_id == StockItemORM.id)
        .group_by(StockItemORM.id)
    ).all()
    return {r[0]: int(r[1]) for r in rows}
