from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, Literal
from datetime import datetime

Role = Literal["user", "admin", "lab_supervisor", "coordinator", "sm_operasi"]
ToolStatus = Literal["available", "in_use", "needs_calibration", "damaged", "maintenance"]
StockStatus = Literal["available", "low_stock", "out_of_stock"]
BorrowingStatus = Literal["pending_approval", "approved", "borrowed", "returned", "overdue", "rejected"]
ApproverRole = Literal["lab_supervisor", "coordinator", "sm_operasi"]
ApprovalStatus = Literal["pending", "approved", "rejected"]
CalibrationResult = Literal["passed", "failed", "conditional"]

APPROVER_ROLES: tuple[ApproverRole, ...] = ("lab_supervisor", "coordinator", "sm_operasi")
MAX_TOOLS_PER_BORROWING = 5


class _FromRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------- User ----------
class UserIn(BaseModel):
    open_id: str = Field(..., min_length=1, max_length=64)
    name: Optional[str] = None
    email: Optional[str] = None
    role: Role = "user"

class User(_FromRow):
    id: int
    open_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Role
    created_at: datetime
    updated_at: datetime
    last_signed_in: datetime


# ---------- Tool ----------
class ToolIn(BaseModel):
    tool_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    serial_no: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    specification: Optional[str] = None
    last_calibration_date: Optional[datetime] = None
    next_calibration_date: Optional[datetime] = None
    calibration_certificate_url: Optional[str] = None
    usage_procedure_url: Optional[str] = None
    status: ToolStatus = "available"
    location: Optional[str] = None
    notes: Optional[str] = None

class ToolUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    serial_no: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    specification: Optional[str] = None
    status: Optional[ToolStatus] = None
    location: Optional[str] = None
    notes: Optional[str] = None

class Tool(ToolIn, _FromRow):
    id: int
    assigned_to: Optional[int] = None
    created_at: datetime
    updated_at: datetime


# ---------- Stock ----------
class StockItemIn(BaseModel):
    item_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    unit: Optional[str] = None
    quantity: int = Field(0, ge=0)
    min_threshold: int = Field(5, ge=0)
    max_threshold: int = Field(100, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None

class StockItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    unit: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    min_threshold: Optional[int] = Field(None, ge=0)
    max_threshold: Optional[int] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None

class StockItem(StockItemIn, _FromRow):
    id: int
    status: StockStatus
    created_at: datetime
    updated_at: datetime


# ---------- Borrowing ----------
class BorrowingIn(BaseModel):
    borrowing_id: str = Field(..., min_length=1, max_length=50)
    tool_ids: list[int] = Field(..., min_length=1, max_length=MAX_TOOLS_PER_BORROWING)
    borrow_date: datetime
    expected_return_date: datetime
    purpose: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_dates(self):
        if self.expected_return_date < self.borrow_date:
            raise ValueError("expected_return_date must not be before borrow_date")
        return self

class BorrowingStatusUpdate(BaseModel):
    status: BorrowingStatus

class Borrowing(_FromRow):
    id: int
    borrowing_id: str
    borrower_id: int
    borrow_date: datetime
    expected_return_date: datetime
    actual_return_date: Optional[datetime] = None
    purpose: Optional[str] = None
    status: BorrowingStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class BorrowingDetail(_FromRow):
    id: int
    borrowing_id: int
    tool_id: int
    quantity: int
    returned_quantity: int
    condition: Optional[str] = None
    created_at: datetime


# ---------- Approval ----------
class ApprovalDecision(BaseModel):
    borrowing_id: int
    approver_role: ApproverRole
    signature_data: Optional[str] = None
    notes: Optional[str] = None

class Approval(_FromRow):
    id: int
    borrowing_id: int
    approver_role: ApproverRole
    approver_id: Optional[int] = None
    status: ApprovalStatus
    signature_data: Optional[str] = None
    signed_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class ApprovalOutcome(BaseModel):
    approval: Approval
    borrowing: Borrowing


# ---------- Stock usage ----------
class StockUsageIn(BaseModel):
    item_id: int
    quantity: int = Field(..., ge=1)
    usage_date: datetime
    usage_id: Optional[str] = Field(None, min_length=1, max_length=50)
    purpose: Optional[str] = None
    notes: Optional[str] = None

class StockUsage(_FromRow):
    id: int
    usage_id: str
    item_id: int
    used_by: int
    quantity: int
    usage_date: datetime
    purpose: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


# ---------- Calibration ----------
class CalibrationIn(BaseModel):
    calibration_date: datetime
    next_calibration_date: datetime
    calibration_provider: Optional[str] = None
    certificate_no: Optional[str] = None
    certificate_url: Optional[str] = None
    result: CalibrationResult
    notes: Optional[str] = None

class Calibration(CalibrationIn, _FromRow):
    id: int
    tool_id: int
    created_at: datetime


# ---------- Settings ----------
class AppSettingIn(BaseModel):
    value: Optional[str] = None
    description: Optional[str] = None

class AppSetting(_FromRow):
    key: str
    value: Optional[str] = None
    description: Optional[str] = None
    updated_at: datetime


# ---------- Analytics ----------
class MostUsedTool(BaseModel):
    tool_id: int
    tool_code: str
    name: str
    borrow_count: int
    last_borrowed_at: Optional[datetime] = None