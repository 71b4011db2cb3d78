from __future__ import annotations
from typing import Literal, Union

from pydantic import BaseModel

from hospital_bot.services.records import (
    AppointmentRecord,
    FeedbackRecord,
    MedicineReminderRecord,
    PatientRecord,
)


class PersistAppointment(BaseModel):
    kind: Literal["persist_appointment"] = "persist_appointment"
    record: AppointmentRecord


class PersistPatient(BaseModel):
    kind: Literal["persist_patient"] = "persist_patient"
    record: PatientRecord


class PersistFeedback(BaseModel):
    kind: Literal["persist_feedback"] = "persist_feedback"
    record: FeedbackRecord


class PersistReminder(BaseModel):
    kind: Literal["persist_reminder"] = "persist_reminder"
    record: MedicineReminderRecord


class NotifyAppointment(BaseModel):
    kind: Literal["notify_appointment"] = "notify_appointment"
    record: AppointmentRecord


class NotifyPatient(BaseModel):
    kind: Literal["notify_patient"] = "notify_patient"
    record: PatientRecord


class NotifyFeedback(BaseModel):
    kind: Literal["notify_feedback"] = "notify_feedback"
    record: FeedbackRecord


class NotifyEmergency(BaseModel):
    kind: Literal["notify_emergency"] = "notify_emergency"
    user_id: str
    name: str
    text: str


SideEffect = Union[
    PersistAppointment,
    PersistPatient,
    PersistFeedback,
    PersistReminder,
    NotifyAppointment,
    NotifyPatient,
    NotifyFeedback,
    NotifyEmergency,
]
