"""Pydantic schemas for API."""
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel

from escala.models import CellRef


class LocationCreate(BaseModel):
    name: str
    nickname: str = ""
    logo: str = ""
    theme: str = "slate"


class LocationUpdate(BaseModel):
    name: Optional[str] = None
    nickname: Optional[str] = None
    logo: Optional[str] = None
    theme: Optional[str] = None


class ShiftIn(BaseModel):
    name: str


class DoctorFields(BaseModel):
    full_name: Optional[str] = None
    nickname: Optional[str] = None
    crm: Optional[str] = None
    specialty: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    receive_notifications: Optional[bool] = None


class DoctorCreate(DoctorFields):
    name: str
    type: str = "Normal"


class DoctorUpdate(DoctorFields):
    name: Optional[str] = None


class RuleCreate(BaseModel):
    hospital_name: str
    shift_name: str
    value: float
    is_dif: bool = False


class RuleUpdate(BaseModel):
    value: float


class MonthCreate(BaseModel):
    month_key: str  # YYYY-MM


class ApplyTemplateRequest(BaseModel):
    month_keys: List[str]
    mode: str = "fill_empty"  # or "overwrite"


class CellIn(BaseModel):
    """A template cell (day_index) or a month cell (date_key, optionally stored under month_key)."""
    location_id: str
    shift_id: str
    date_key: Optional[str] = None
    day_index: Optional[int] = None
    month_key: Optional[str] = None

    def to_cell(self) -> CellRef:
        if (self.date_key is None) == (self.day_index is None):
            raise ValueError("Give either date_key or day_index")
        if self.day_index is not None and not 0 <= self.day_index <= 6:
            raise ValueError("day_index must be between 0 and 6")
        return CellRef(self.location_id, self.shift_id, self.date_key, self.day_index, self.month_key)


class AssignmentIn(BaseModel):
    name: str
    time: Optional[str] = None
    period: Optional[str] = None
    is_bold: Optional[bool] = None
    is_red: Optional[bool] = None
    sub_name: Optional[str] = None
    note: Optional[str] = None
    is_flagged: Optional[bool] = None
    value: Optional[float] = None
    is_verified: Optional[bool] = None
    extra_value: Optional[float] = None
    extra_value_reason: Optional[str] = None


class AssignmentSave(CellIn):
    index: Optional[int] = None  # None creates a new assignment
    assignment: AssignmentIn


class AssignmentDelete(CellIn):
    index: int


class MoveRequest(BaseModel):
    source: CellIn
    index: int
    target: CellIn


class UserCreate(BaseModel):
    username: str
    password: str
    name: str
    role: str
    linked_doctor_id: Optional[str] = None


class CompanySettingsUpdate(BaseModel):
    name: Optional[str] = None
    cnpj: Optional[str] = None
    logo1: Optional[str] = None
    logo2: Optional[str] = None


class NotificationSettingsUpdate(BaseModel):
    enable_daily_reminders: Optional[bool] = None
    enable_change_notifications: Optional[bool] = None
    reminder_time: Optional[str] = None
    admin_emails: Optional[List[str]] = None


class TimesheetCreate(BaseModel):
    doctor_id: str
    hospital_id: str
    month_key: str


class TimesheetEntry(BaseModel):
    id: str
    date: str
    entry1: str
    exit1: str
    entry2: Optional[str] = None
    exit2: Optional[str] = None
    total_hours: float
    value: float = 0
    description: Optional[str] = None


class TimesheetIn(BaseModel):
    id: str
    doctor_id: str
    doctor_name: str
    doctor_crm: str = ""
    doctor_specialty: str = ""
    hospital_id: str
    hospital_name: str
    month: str
    company_name: str
    company_cnpj: str
    entries: List[TimesheetEntry] = []
    total_value: float = 0
    created_at: int
    status: str = "draft"


class ProfileCreate(BaseModel):
    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    name: str
    role: str = "Medico"
    linked_doctor_id: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    linked_doctor_id: Optional[str] = None


class ProfileOut(BaseModel):
    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    linked_doctor_id: Optional[str] = None
    custom_claims: Optional[dict] = None
    is_bootstrap_admin: Optional[bool] = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminClaimRequest(BaseModel):
    target_uid: Optional[str] = None
    is_admin: bool = False


class InitializeAdminRequest(BaseModel):
    name: Optional[str] = None
