from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
from dependencies import get_current_user, get_db, require_roles
from filter_helpers import blank_to_none, normalize_tool_status
from models import Calibration, CalibrationIn, Tool, ToolIn, ToolStatus, ToolUpdate, User

router = APIRouter(tags=["tools"])

CATALOGUE_EDITORS = ("admin", "lab_supervisor")


@router.get("/tools", response_model=list[Tool])
def list_tools_api(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    status = normalize_tool_status(blank_to_none(status))
    return crud.list_tools(db, status=status)


@router.get("/tools/by-status/{status}", response_model=list[Tool])
def list_tools_by_status_api(
    status: ToolStatus,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return crud.list_tools(db, status=status)


@router.get("/tools/by-tool-id/{tool_id}", response_model=Tool)
def get_tool_by_code_api(
    tool_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    tool = crud.get_tool_by_code(db, tool_id)
    if not tool:
        raise HTTPException(status_code=404, detail="tool not found")
    return tool


@router.post("/tools", response_model=Tool, status_code=201)
def create_tool_api(
    body: ToolIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*CATALOGUE_EDITORS)),
):
    if crud.tool_code_exists(db, body.tool_id):
        raise HTTPException(status_code=409, detail="tool_id already exists")
    if body.serial_no and crud.serial_no_exists(db, body.serial_no):
        raise HTTPException(status_code=409, detail="serial_no already exists")
    return crud.create_tool(db, body, assigned_to=user.id)


@router.get("/tools/{tool_pk}", response_model=Tool)
def get_tool_api(
    tool_pk: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    tool = crud.get_tool(db, tool_pk)
    if not tool:
        raise HTTPException(status_code=404, detail="tool not found")
    return tool


@router.patch("/tools/{tool_pk}", response_model=Tool)
def update_tool_api(
    tool_pk: int,
    body: ToolUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*CATALOGUE_EDITORS)),
):
    if body.serial_no and crud.serial_no_exists(db, body.serial_no, exclude_pk=tool_pk):
        raise HTTPException(status_code=409, detail="serial_no already exists")
    updated = crud.update_tool(db, tool_pk, body)
    if not updated:
        raise HTTPException(status_code=404, detail="tool not found")
    return updated


@router.delete("/tools/{tool_pk}", status_code=204)
def delete_tool_api(
    tool_pk: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("admin")),
):
    if crud.tool_in_use(db, tool_pk):
        raise HTTPException(status_code=409, detail="tool is referenced by a borrowing")
    ok = crud.delete_tool(db, tool_pk)
    if not ok:
        raise HTTPException(status_code=404, detail="tool not found")
    return None


@router.get("/tools/{tool_pk}/calibrations", response_model=list[Calibration])
def list_calibrations_api(
    tool_pk: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return crud.list_calibrations(db, tool_pk)


@router.post("/tools/{tool_pk}/calibrations", response_model=Calibration, status_code=201)
def create_calibration_api(
    tool_pk: int,
    body: CalibrationIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*CATALOGUE_EDITORS)),
):
    created = crud.create_calibration(db, tool_pk, body)
    if not created:
        raise HTTPException(status_code=404, detail="tool not found")
    return created
