from typing import Optional

from models import APPROVER_ROLES

VALID_TOOL_STATUSES = {"available", "in_use", "needs_calibration", "damaged", "maintenance"}
VALID_BORROWING_STATUSES = {"pending_approval", "approved", "borrowed", "returned", "overdue", "rejected"}


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value == "":
        return None
    return value


def normalize_tool_status(status: Optional[str]) -> Optional[str]:
    if status in VALID_TOOL_STATUSES:
        return status
    return None


def normalize_borrowing_status(status: Optional[str]) -> Optional[str]:
    if status in VALID_BORROWING_STATUSES:
        return status
    return None


def normalize_approver_role(role: Optional[str]) -> Optional[str]:
    if role in APPROVER_ROLES:
        return role
    return None


def normalize_limit(limit: int, *, min_value: int = 1, max_value: int = 100) -> int:
    if limit < min_value:
        return min_value
    if limit > max_value:
        return max_value
    return limit
