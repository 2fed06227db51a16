from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import analytics
from dependencies import get_current_user, get_db
from filter_helpers import normalize_limit
from models import MostUsedTool, User

router = APIRouter(tags=["analytics"])


@router.get("/analytics/most-used-tools", response_model=list[MostUsedTool])
def most_used_tools_api(
    limit: int = 10,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return analytics.most_used_tools(db, limit=normalize_limit(limit))


@router.get("/analytics/tool-borrowing-stats", response_model=dict[int, int])
def tool_borrowing_stats_api(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return analytics.tool_borrowing_stats(db)


@router.get("/analytics/stock-usage-stats", response_model=dict[int, int])
def stock_usage_stats_api(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return analytics.stock_usage_stats(db)
