from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
from dependencies import get_current_user, get_db, require_roles
from models import AppSetting, AppSettingIn, User

router = APIRouter(tags=["settings"])


@router.get("/settings/{key}", response_model=AppSetting)
def get_setting_api(
    key: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    setting = crud.get_setting(db, key)
    if not setting:
        raise HTTPException(status_code=404, detail="setting not found")
    return setting


@router.put("/settings/{key}", response_model=AppSetting)
def set_setting_api(
    key: str,
    body: AppSettingIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("admin")),
):
    return crud.set_setting(db, key, body)
