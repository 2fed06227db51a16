from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
from dependencies import get_current_user, get_db, require_roles
from models import StockItem, StockItemIn, StockItemUpdate, User

router = APIRouter(tags=["stock"])

STOCK_EDITORS = ("admin", "lab_supervisor")


@router.get("/stock", response_model=list[StockItem])
def list_stock_api(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return crud.list_stock_items(db)


@router.get("/stock/low", response_model=list[StockItem])
def list_low_stock_api(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return crud.list_low_stock_items(db)


@router.post("/stock", response_model=StockItem, status_code=201)
def create_stock_api(
    body: StockItemIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*STOCK_EDITORS)),
):
    if crud.item_code_exists(db, body.item_id):
        raise HTTPException(status_code=409, detail="item_id already exists")
    return crud.create_stock_item(db, body)


@router.get("/stock/{item_pk}", response_model=StockItem)
def get_stock_api(
    item_pk: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    item = crud.get_stock_item(db, item_pk)
    if not item:
        raise HTTPException(status_code=404, detail="stock item not found")
    return item


@router.patch("/stock/{item_pk}", response_model=StockItem)
def update_stock_api(
    item_pk: int,
    body: StockItemUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*STOCK_EDITORS)),
):
    updated = crud.update_stock_item(db, item_pk, body)
    if not updated:
        raise HTTPException(status_code=404, detail="stock item not found")
    return updated


@router.delete("/stock/{item_pk}", status_code=204)
def delete_stock_api(
    item_pk: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("admin")),
):
    if crud.stock_item_in_use(db, item_pk):
        raise HTTPException(status_code=409, detail="stock item has usage records")
    ok = crud.delete_stock_item(db, item_pk)
    if not ok:
        raise HTTPException(status_code=404, detail="stock item not found")
    return None
