from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import crud
import workflow
from dependencies import get_current_user, get_db
from models import StockUsage, StockUsageIn, User

router = APIRouter(tags=["stock-usages"])


@router.post("/stock-usages", response_model=StockUsage, status_code=201)
def create_stock_usage_api(
    body: StockUsageIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return workflow.record_stock_usage(db, body, actor=user)


@router.get("/stock-usages/mine", response_model=list[StockUsage])
def my_stock_usages_api(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return crud.list_stock_usages(db, used_by=user.id)


@router.get("/stock-usages/item/{item_pk}", response_model=list[StockUsage])
def stock_usages_for_item_api(
    item_pk: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return crud.list_stock_usages(db, item_pk=item_pk)
