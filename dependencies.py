from collections.abc import Callable, Generator
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

import crud
from db import SessionLocal
from models import User


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_optional_user(
    x_user_id: Optional[int] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[User]:
    if x_user_id is None:
        return None
    return crud.get_user(db, x_user_id)


def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    """The caller, identified by the X-User-Id header. Unknown ids are rejected."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="unknown or missing caller",
        )
    return user


def require_roles(*allowed_roles: str) -> Callable[[User], User]:
    """
    Dependency factory enforcing a fixed role allow-list.

        @router.post("/tools")
        def create_tool(user: User = Depends(require_roles("admin", "lab_supervisor"))):
            ...
    """
    allowed = frozenset(allowed_roles)

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient privileges",
            )
        return user

    return dependency
