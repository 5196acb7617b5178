"""Reminder items and reminder text for patients with doses coming due.

Builds the reminder work list across a roster of patients and composes the
subject and body of each reminder. Delivery (email, SMS) belongs to the
surrounding application; nothing here sends anything.

**Ordering:** overdue items first, then ascending ``days_until``.
**Urgency:** an item is urgent when ``days_until`` is at or below the
configured window (overdue items are always urgent since their
``days_until`` is negative or zero).
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .data_models import (
    CatalogEntry,
    PatientProfile,
    ReminderItem,
    ReminderMessage,
    VaccineRecommendation,
)
from .dates import days_between, format_display_date, resolve_today
from .engine import get_recommendations
from .enums import DoseStatus, Language

LOG = logging.getLogger(__name__)

DEFAULT_URGENT_WINDOW_DAYS = 10

_TEXT = {
    Language.ENGLISH: {
        "subject": "Vaccination Reminder: {vaccine} - Due {due}",
        "greeting": "Hello {name},",
        "intro": "This is a friendly reminder that you have an upcoming vaccination:",
        "vaccine": "Vaccine",
        "dose": "Dose",
        "due": "Due Date",
        "closing": (
            "Please schedule an appointment with your healthcare provider "
            "to receive this vaccination."
        ),
        "signature": "Sent by {sender}",
        "fallback_name": "patient",
    },
    Language.FRENCH: {
        "subject": "Rappel de vaccination : {vaccine} - prévu le {due}",
        "greeting": "Bonjour {name},",
        "intro": "Ceci est un rappel amical concernant une vaccination à venir :",
        "vaccine": "Vaccin",
        "dose": "Dose",
        "due": "Date prévue",
        "closing": (
            "Veuillez prendre rendez-vous avec votre professionnel de la santé "
            "pour recevoir ce vaccin."
        ),
        "signature": "Envoyé par {sender}",
        "fallback_name": "patient",
    },
}


def reminder_items_from(
    results: Iterable[Tuple[PatientProfile, Sequence[VaccineRecommendation]]],
    today: date,
) -> List[ReminderItem]:
    """Reminder items from recommendations already computed per patient.

    A recommendation qualifies when it still owes a dose, has a due date and
    is not completed.
    """
    items: List[ReminderItem] = []

    for patient, recommendations in results:
        for rec in recommendations:
            if (
                rec.next_due_date is None
                or rec.remaining_doses <= 0
                or rec.status is DoseStatus.COMPLETED
            ):
                continue
            items.append(
                ReminderItem(
                    patient_id=patient.patient_id,
                    patient_name=patient.full_name,
                    patient_email=patient.email,
                    vaccine_name=rec.vaccine_name,
                    due_date=rec.next_due_date,
                    dose_number=rec.completed_doses + 1,
                    days_until=days_between(today, rec.next_due_date),
                    status=rec.status,
                )
            )

    items.sort(key=lambda item: (item.status is not DoseStatus.OVERDUE, item.days_until))
    return items


def build_reminder_items(
    patients: Iterable[PatientProfile],
    today: Optional[date] = None,
    catalog: Optional[Sequence[CatalogEntry]] = None,
) -> List[ReminderItem]:
    """One reminder item per open recommendation across all patients."""
    today = resolve_today(today)
    results = (
        (patient, get_recommendations(patient, today, catalog)) for patient in patients
    )
    return reminder_items_from(results, today)


def split_urgent(
    items: Sequence[ReminderItem], window_days: int = DEFAULT_URGENT_WINDOW_DAYS
) -> Tuple[List[ReminderItem], List[ReminderItem]]:
    """Partition items into (urgent, later), keeping their order."""
    urgent = [item for item in items if item.days_until <= window_days]
    later = [item for item in items if item.days_until > window_days]
    return urgent, later


def days_label(days: int) -> str:
    """Short relative-due label.

    Examples
    --------
    >>> days_label(-3)
    '3 days overdue'
    >>> days_label(1)
    'Due tomorrow'
    """
    if days < 0:
        return f"{abs(days)} days overdue"
    if days == 0:
        return "Due today"
    if days == 1:
        return "Due tomorrow"
    return f"In {days} days"


def compose_reminder(
    item: ReminderItem,
    language: str | Language = Language.ENGLISH,
    sender_name: str = "Vaccine Reminders",
) -> ReminderMessage:
    """Render the subject and plain-text body for one reminder item."""
    lang = language if isinstance(language, Language) else Language.from_string(language)
    text = _TEXT[lang]
    due = format_display_date(item.due_date, lang.locale)

    body_lines = [
        text["greeting"].format(name=item.patient_name or text["fallback_name"]),
        "",
        text["intro"],
        "",
        f"  {text['vaccine']}: {item.vaccine_name}",
        f"  {text['dose']}: #{item.dose_number}",
        f"  {text['due']}: {due}",
        "",
        text["closing"],
        "",
        text["signature"].format(sender=sender_name),
    ]

    return ReminderMessage(
        to=item.patient_email,
        subject=text["subject"].format(vaccine=item.vaccine_name, due=due),
        body="\n".join(body_lines),
    )


def reminders_frame(
    items: Sequence[ReminderItem], window_days: int = DEFAULT_URGENT_WINDOW_DAYS
) -> pd.DataFrame:
    """Tabulate reminder items, one row each, with urgency and label columns."""
    columns = [
        "patient_id",
        "patient_name",
        "patient_email",
        "vaccine",
        "due_date",
        "dose_number",
        "days_until",
        "label",
        "status",
        "urgent",
    ]
    rows = [
        {
            "patient_id": item.patient_id,
            "patient_name": item.patient_name,
            "patient_email": item.patient_email,
            "vaccine": item.vaccine_name,
            "due_date": item.due_date.isoformat(),
            "dose_number": item.dose_number,
            "days_until": item.days_until,
            "label": days_label(item.days_until),
            "status": item.status.value,
            "urgent": item.days_until <= window_days,
        }
        for item in items
    ]
    missing_email = sum(1 for item in items if not item.patient_email)
    if missing_email:
        LOG.warning("%d reminder(s) have no patient email address", missing_email)
    return pd.DataFrame(rows, columns=columns)
