from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
import workflow
from dependencies import get_current_user, get_db
from filter_helpers import normalize_approver_role
from models import Approval, ApprovalDecision, ApprovalOutcome, User

router = APIRouter(tags=["approvals"])


@router.get("/approvals/pending", response_model=list[Approval])
def pending_for_user_api(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    role = normalize_approver_role(user.role)
    if role is None:
        return []
    return crud.list_pending_approvals_for_role(db, role)


@router.get("/approvals/borrowing/{borrowing_pk}", response_model=list[Approval])
def approvals_for_borrowing_api(
    borrowing_pk: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return crud.list_approvals(db, borrowing_pk)


@router.get("/approvals/borrowing/{borrowing_pk}/role/{role}", response_model=Approval)
def approval_by_role_api(
    borrowing_pk: int,
    role: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    role = normalize_approver_role(role)
    approval = crud.get_approval(db, borrowing_pk, role) if role else None
    if not approval:
        raise HTTPException(status_code=404, detail="approval not found")
    return approval


@router.post("/approvals/approve", response_model=ApprovalOutcome)
def approve_api(
    body: ApprovalDecision,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return workflow.approve(db, body, actor=user)


@router.post("/approvals/reject", response_model=ApprovalOutcome)
def reject_api(
    body: ApprovalDecision,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return workflow.reject(db, body, actor=user)
