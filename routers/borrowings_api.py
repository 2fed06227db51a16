from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
import workflow
from dependencies import get_current_user, get_db, require_roles
from filter_helpers import blank_to_none, normalize_borrowing_status
from models import Borrowing, BorrowingDetail, BorrowingIn, BorrowingStatusUpdate, User

router = APIRouter(tags=["borrowings"])


@router.get("/borrowings", response_model=list[Borrowing])
def list_borrowings_api(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    status = normalize_borrowing_status(blank_to_none(status))
    return crud.list_borrowings(db, status=status)


@router.get("/borrowings/mine", response_model=list[Borrowing])
def my_borrowings_api(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return crud.list_borrowings(db, borrower_id=user.id)


@router.get("/borrowings/pending", response_model=list[Borrowing])
def pending_borrowings_api(
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("admin", "coordinator", "sm_operasi")),
):
    return crud.list_pending_borrowings(db)


@router.get("/borrowings/by-borrowing-id/{borrowing_id}", response_model=Borrowing)
def get_borrowing_by_code_api(
    borrowing_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    borrowing = crud.get_borrowing_by_code(db, borrowing_id)
    if not borrowing:
        raise HTTPException(status_code=404, detail="borrowing not found")
    return borrowing


@router.post("/borrowings", response_model=Borrowing, status_code=201)
def create_borrowing_api(
    body: BorrowingIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return workflow.create_borrowing(db, body, borrower=user)


@router.get("/borrowings/{borrowing_pk}", response_model=Borrowing)
def get_borrowing_api(
    borrowing_pk: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    borrowing = crud.get_borrowing(db, borrowing_pk)
    if not borrowing:
        raise HTTPException(status_code=404, detail="borrowing not found")
    return borrowing


@router.get("/borrowings/{borrowing_pk}/details", response_model=list[BorrowingDetail])
def borrowing_details_api(
    borrowing_pk: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return crud.list_borrowing_details(db, borrowing_pk)


@router.patch("/borrowings/{borrowing_pk}/status", response_model=Borrowing)
def update_borrowing_status_api(
    borrowing_pk: int,
    body: BorrowingStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("admin", "coordinator")),
):
    updated = crud.update_borrowing_status(db, borrowing_pk, body.status)
    if not updated:
        raise HTTPException(status_code=404, detail="borrowing not found")
    return updated
