"""
Shift reminders and change notifications.

Notifications are queued as logs on the store (newest first) and sent later
by process_pending_notifications, which marks each log sent or failed.
E-mail goes out through the Resend HTTP API.
"""

import logging
import time
import uuid
from datetime import date
from typing import Dict, List, Optional

import requests

from .dates import format_date_pt, tomorrow_date_key
from .models import (
    NOTIFY_CHANGE, NOTIFY_CREATE, NOTIFY_DELETE, NOTIFY_FLAG, NOTIFY_REMINDER,
    STATUS_FAILED, STATUS_PENDING, STATUS_SENT, DoctorShift,
)

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"
SYSTEM_SIGNATURE = "Sistema de Gestão de Escalas"
NO_TIME_TEXT = "Horário não especificado"
SEND_FAILED = "Failed to send email"

ACTION_TEXT = {
    "create": "criou um novo plantão",
    "edit": "editou um plantão",
    "delete": "removeu um plantão",
    "flag": "sinalizou um plantão",
}
ACTION_COLOR = {
    "create": "#10b981",
    "edit": "#3b82f6",
    "delete": "#ef4444",
    "flag": "#f59e0b",
}
NOTIFY_TYPE_FOR_ACTION = {
    "flag": NOTIFY_FLAG,
    "create": NOTIFY_CREATE,
    "delete": NOTIFY_DELETE,
}

SETTINGS_FIELDS = ("enable_daily_reminders", "enable_change_notifications", "reminder_time", "admin_emails")

_HTML_PAGE = """<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: {color}; color: white; padding: 20px; border-radius: 10px 10px 0 0;">
      <h2 style="margin: 0;">{title}</h2>
    </div>
    <div style="background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px;">
{content}
    </div>
    <div style="text-align: center; margin-top: 20px; color: #666; font-size: 12px;">
      Este é um email automático. Por favor, não responda.
    </div>
  </div>
</body>
</html>
"""


def initialize_notification_settings(settings: Optional[dict] = None) -> dict:
    """Defaults for any setting not given."""
    defaults = {
        "enable_daily_reminders": True,
        "enable_change_notifications": True,
        "reminder_time": "18:00",
        "admin_emails": [],
    }
    return {**defaults, **(settings or {})}


def update_notification_settings(store: dict, **fields) -> dict:
    unknown = set(fields) - set(SETTINGS_FIELDS)
    if unknown:
        raise ValueError(f"Unknown notification settings: {', '.join(sorted(unknown))}")
    current = initialize_notification_settings(store.get("notification_settings"))
    current.update({k: v for k, v in fields.items() if v is not None})
    return {**store, "notification_settings": current}


def find_doctor_shifts_for_date(store: dict, doctor_name: str, date_key: str) -> List[DoctorShift]:
    month = (store.get("months") or {}).get(date_key[:7])
    if not month:
        return []
    found = []
    for loc in store.get("structure") or []:
        for shift in loc.get("shifts", []):
            cells = (month.get(loc["id"]) or {}).get(shift["id"]) or {}
            for a in cells.get(date_key) or []:
                if a.get("name") == doctor_name:
                    found.append(DoctorShift(loc["id"], loc["name"], shift["id"], shift["name"], a))
    return found


def generate_reminder_email(doctor_name: str, date_text: str, shifts: List[Dict]) -> Dict[str, str]:
    """shifts: [{location_name, shift_name, time}]"""
    lines = "\n".join(f"- {s['location_name']} das {s['time']} no {s['shift_name']}" for s in shifts)
    body = (
        f"Olá Dr(a). {doctor_name}, tudo bem?\n\n"
        f"Amanhã {date_text} o(a) senhor(a) está escalado(a) em:\n"
        f"{lines}\n\n"
        f"Atenciosamente,\n{SYSTEM_SIGNATURE}"
    )
    items = "\n".join(
        f'      <div style="background: white; padding: 15px; margin: 10px 0; '
        f'border-left: 4px solid #667eea;"><strong>{s["location_name"]}</strong><br>'
        f'{s["time"]} - {s["shift_name"]}</div>'
        for s in shifts
    )
    content = (
        f"      <p>Olá <strong>Dr(a). {doctor_name}</strong>, tudo bem?</p>\n"
        f"      <p>Amanhã <strong>{date_text}</strong> o(a) senhor(a) está escalado(a) em:</p>\n"
        f"{items}\n"
        f"      <p>Atenciosamente,<br><strong>{SYSTEM_SIGNATURE}</strong></p>"
    )
    return {
        "subject": f"Lembrete: Plantão amanhã {date_text}",
        "body": body,
        "html": _HTML_PAGE.format(color="#667eea", title="Lembrete de Plantão", content=content),
    }


def generate_change_notification_email(
    action: str,
    user_name: str,
    doctor_name: str,
    location_name: str,
    shift_name: str,
    date_text: str,
    details: Optional[str] = None,
) -> Dict[str, str]:
    if action not in ACTION_TEXT:
        raise ValueError(f"Unknown notification action: {action}")
    text = ACTION_TEXT[action]
    body = (
        f"Alteração na Escala\n\n"
        f"{user_name} {text}:\n\n"
        f"Médico: {doctor_name}\n"
        f"Hospital: {location_name}\n"
        f"Turno: {shift_name}\n"
        f"Data: {date_text}\n"
        + (f"\nDetalhes: {details}\n" if details else "")
        + f"\n{SYSTEM_SIGNATURE}"
    )
    rows = [("Médico", doctor_name), ("Hospital", location_name), ("Turno", shift_name), ("Data", date_text)]
    if details:
        rows.append(("Detalhes", details))
    content = f"      <p><strong>{user_name}</strong> {text}:</p>\n" + "\n".join(
        f'      <div><span style="font-weight: bold; color: #666;">{label}:</span> {value}</div>'
        for label, value in rows
    )
    return {
        "subject": f"Alteração na Escala: {text}",
        "body": body,
        "html": _HTML_PAGE.format(color=ACTION_COLOR[action], title="Alteração na Escala", content=content),
    }


def create_notification_log(
    notify_type: str,
    recipient_email: str,
    recipient_name: str,
    email: Dict[str, str],
    **context,
) -> dict:
    log = {
        "id": f"notif-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}",
        "timestamp": int(time.time() * 1000),
        "type": notify_type,
        "recipient_email": recipient_email,
        "recipient_name": recipient_name,
        "subject": email["subject"],
        "body": email["body"],
        "html": email.get("html"),
        "status": STATUS_PENDING,
    }
    log.update({k: v for k, v in context.items() if v is not None})
    return log


def queue_notification(store: dict, log: dict) -> dict:
    return {**store, "notification_logs": [log] + list(store.get("notification_logs") or [])}


def send_daily_reminders(store: dict, today: Optional[date] = None) -> dict:
    """Queue a reminder for every doctor booked tomorrow who has an e-mail and has not opted out."""
    settings = initialize_notification_settings(store.get("notification_settings"))
    if not settings["enable_daily_reminders"]:
        return store

    date_key = tomorrow_date_key(today)
    date_text = format_date_pt(date_key)
    queued = 0
    for doctor in store.get("doctors") or []:
        if not doctor.get("email") or doctor.get("receive_notifications") is False:
            continue
        shifts = find_doctor_shifts_for_date(store, doctor["name"], date_key)
        if not shifts:
            continue
        email = generate_reminder_email(doctor["name"], date_text, [
            {
                "location_name": s.location_name,
                "shift_name": s.shift_name,
                "time": s.assignment.get("time") or NO_TIME_TEXT,
            }
            for s in shifts
        ])
        log = create_notification_log(
            NOTIFY_REMINDER, doctor["email"], doctor["name"], email,
            date_key=date_key, doctor_name=doctor["name"],
        )
        store = queue_notification(store, log)
        queued += 1

    logger.info("Queued %d reminders for %s", queued, date_key)
    return store


def send_change_notification(
    store: dict,
    action: str,
    user_name: str,
    doctor_name: str,
    location_name: str,
    shift_name: str,
    date_key: str,
    details: Optional[str] = None,
) -> dict:
    """Queue one change e-mail per admin address."""
    settings = initialize_notification_settings(store.get("notification_settings"))
    if not settings["enable_change_notifications"] or not settings["admin_emails"]:
        return store

    email = generate_change_notification_email(
        action, user_name, doctor_name, location_name, shift_name, format_date_pt(date_key), details,
    )
    notify_type = NOTIFY_TYPE_FOR_ACTION.get(action, NOTIFY_CHANGE)
    for address in settings["admin_emails"]:
        log = create_notification_log(
            notify_type, address, "Administrador", email,
            date_key=date_key, location_name=location_name,
            shift_name=shift_name, doctor_name=doctor_name,
        )
        store = queue_notification(store, log)
    return store


class ResendSender:
    """Sends e-mail through the Resend API; without an API key sends are simulated."""

    def __init__(self, api_key: Optional[str], from_email: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.from_email = from_email
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
        if not self.api_key:
            logger.warning("No Resend API key configured, simulating e-mail to %s: %s", to, subject)
            return True

        try:
            response = self.session.post(
                RESEND_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": self.from_email,
                    "to": [to],
                    "subject": subject,
                    "html": html or text,
                    "text": text,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Error sending e-mail to %s: %s", to, e)
            return False

        if not response.ok:
            logger.error("Resend rejected e-mail to %s: %s %s", to, response.status_code, response.text)
            return False
        logger.info("E-mail sent to %s (id %s)", to, response.json().get("id"))
        return True


def process_pending_notifications(store: dict, sender) -> dict:
    """Send every pending log and mark it sent or failed."""
    logs = []
    for log in store.get("notification_logs") or []:
        if log.get("status") == STATUS_PENDING:
            ok = sender.send(log["recipient_email"], log["subject"], log["body"], log.get("html"))
            log = {**log, "status": STATUS_SENT if ok else STATUS_FAILED}
            if ok:
                log.pop("error", None)
            else:
                log["error"] = SEND_FAILED
        logs.append(log)
    return {**store, "notification_logs": logs}
