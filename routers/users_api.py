from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import crud
from dependencies import get_current_user, get_db, get_optional_user, require_roles
from models import User, UserIn

router = APIRouter()


@router.get("/auth/me", response_model=Optional[User], tags=["auth"])
def me_api(user: Optional[User] = Depends(get_optional_user)):
    return user


@router.post("/auth/logout", tags=["auth"])
def logout_api():
    return {"success": True}


@router.get("/users", response_model=list[User], tags=["users"])
def list_users_api(
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("admin")),
):
    return crud.list_users(db)


@router.post("/users", response_model=User, status_code=201, tags=["users"])
def create_user_api(
    body: UserIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("admin")),
):
    if crud.open_id_exists(db, body.open_id):
        raise HTTPException(status_code=409, detail="open_id already exists")
    return crud.create_user(db, body)


@router.get("/users/{user_id}", response_model=User, tags=["users"])
def get_user_api(
    user_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    found = crud.get_user(db, user_id)
    if not found:
        raise HTTPException(status_code=404, detail="user not found")
    return found
