from __future__ import annotations
from typing import Literal, Optional

from pydantic import BaseModel

AppointmentStatus = Literal["scheduled", "confirmed", "cancelled", "completed"]


class AppointmentRecord(BaseModel):
    user_id: str
    patient_name: str
    doctor_key: str
    doctor_name: str
    department: str
    date: str  # yyyy-mm-dd
    time: str  # "2:10 PM"
    token: int
    problem: Optional[str] = None
    status: AppointmentStatus = "confirmed"


class PatientRecord(BaseModel):
    user_id: str
    full_name: str
    age: Optional[int] = None
    gender: Optional[str] = None
    address: Optional[str] = None


class FeedbackRecord(BaseModel):
    user_id: str
    patient_name: str
    rating: int
    comment: str = ""


class LabTestRecord(BaseModel):
    test_name: str
    test_date: str
    status: str


class MedicineReminderRecord(BaseModel):
    user_id: str
    patient_name: str
    medicine_name: str
    reminder_time: str
    active: bool = True


class DoctorSuggestion(BaseModel):
    doctor: str
    confidence: float = 0.0
    reason: str = ""
    source: Literal["ai", "rules"] = "rules"


class IntentResult(BaseModel):
    intent: str = "general"
    confidence: float = 0.0
