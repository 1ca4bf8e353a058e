"""
Data shapes for the Escala store.

The store itself is a plain dict (it is persisted as one JSON document), so
the records below describe the keys rather than wrap them. Dataclasses are
used for values computed from the store.

Store layout:
  structure        [ {id, name, nickname, logo, theme, shifts: [{id, name}]} ]
  template         {location_id: {shift_id: {"0".."6": [assignment, ...]}}}
  months           {"YYYY-MM": {location_id: {shift_id: {"YYYY-MM-DD": [...]}}}}
  doctors          [ {id, name, full_name, nickname, type, email, phone_number,
                      receive_notifications, crm, specialty} ]
  financial_rules  [ {id, hospital_name, shift_name, is_dif, value} ]
  users            [ {id, username, name, role, linked_doctor_id, password} ]
  history          [ history entry, newest first ]
  notification_logs, notification_settings, timesheets, company_settings
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Doctor types
DOCTOR_NORMAL = "Normal"
DOCTOR_DIF = "Dif"
DOCTOR_TYPES = (DOCTOR_NORMAL, DOCTOR_DIF)

# User roles
ROLE_ADMIN = "ADM"
ROLE_COORDINATOR = "Coordenador"
ROLE_DOCTOR = "Medico"
ROLE_ASSISTANT = "Assistente"
ROLES = (ROLE_ADMIN, ROLE_COORDINATOR, ROLE_DOCTOR, ROLE_ASSISTANT)

# History actions
ACTION_CREATE = "create"
ACTION_EDIT = "edit"
ACTION_DELETE = "delete"
ACTION_MOVE = "move"
CHANGE_ACTIONS = (ACTION_CREATE, ACTION_EDIT, ACTION_DELETE, ACTION_MOVE)

# Notification types
NOTIFY_REMINDER = "schedule_reminder"  # 24h before shift
NOTIFY_CHANGE = "schedule_change"
NOTIFY_DELETE = "schedule_delete"
NOTIFY_FLAG = "schedule_flag"
NOTIFY_CREATE = "schedule_create"

STATUS_PENDING = "pending"
STATUS_SENT = "sent"
STATUS_FAILED = "failed"

TIMESHEET_DRAFT = "draft"
TIMESHEET_FINALIZED = "finalized"

THEMES = (
    "green", "purple", "slate", "blue", "orange", "pink", "indigo", "sky",
    "yellow", "neutral", "emerald", "lime", "fuchsia", "red", "rose", "amber",
    "teal", "cyan", "violet", "gray", "zinc", "stone",
)

MAX_HISTORY_ENTRIES = 1000
DEFAULT_COMPANY = {"name": "ISM HEALTH SOLUTIONS", "cnpj": "29.732.524/0001-59"}

# Fields an assignment may carry; anything else is dropped on save.
ASSIGNMENT_FIELDS = (
    "id", "name", "doctor_id", "time", "period", "is_bold", "is_red",
    "sub_name", "note", "is_flagged", "value", "is_verified", "extra_value",
    "extra_value_reason",
)


@dataclass
class WeekDate:
    """One day of the month grid."""
    day_name: str
    date: str               # DD/MM/YYYY
    date_key: str           # YYYY-MM-DD
    is_out_of_month: bool = False


@dataclass
class CellRef:
    """
    Address of one schedule cell.
    Template cells use day_index (0 = Monday); month cells use date_key.
    A month's grid also holds the padding days of its neighbours, so `month`
    names the month the cell is stored under when it differs from date_key's.
    """
    location_id: str
    shift_id: str
    date_key: Optional[str] = None
    day_index: Optional[int] = None
    month: Optional[str] = None

    @property
    def is_template(self) -> bool:
        return self.date_key is None

    @property
    def month_key(self) -> Optional[str]:
        if self.month:
            return self.month
        return self.date_key[:7] if self.date_key else None


@dataclass
class DoctorShift:
    """A doctor's booking found while scanning a day (used by reminders)."""
    location_id: str
    location_name: str
    shift_id: str
    shift_name: str
    assignment: Dict


@dataclass
class FinancialRow:
    """One line of the monthly financial report: a doctor at a hospital on a day."""
    date_key: str
    date: str               # DD/MM/YYYY
    hospital_name: str
    in1: str
    out1: str
    in2: str
    out2: str
    duration_label: str
    value: float
    doctor_name: str
    obs: str = ""
    total_hours: int = 0


@dataclass
class ReportSummary:
    total: float
    by_hospital: List[Dict] = field(default_factory=list)
    by_doctor: List[Dict] = field(default_factory=list)
