from __future__ import annotations
from typing import List, Optional, Protocol

from hospital_bot.doctors import Doctor
from hospital_bot.messages import Button, ListSection
from hospital_bot.services.records import (
    AppointmentRecord,
    DoctorSuggestion,
    FeedbackRecord,
    IntentResult,
    LabTestRecord,
    MedicineReminderRecord,
    PatientRecord,
)


class NotificationGateway(Protocol):
    async def send_text(self, user_id: str, text: str) -> None: ...

    async def send_list(self, user_id: str, body: str, button_label: str, sections: List[ListSection]) -> None: ...

    async def send_buttons(self, user_id: str, body: str, buttons: List[Button]) -> None: ...

    async def mark_read(self, message_id: str) -> None: ...


class SuggestionGateway(Protocol):
    async def suggest_doctor(self, problem: str, catalog: List[Doctor]) -> DoctorSuggestion: ...

    async def analyze_intent(self, text: str) -> IntentResult: ...


class PersistenceGateway(Protocol):
    async def save_appointment(self, record: AppointmentRecord) -> None: ...

    async def list_tokens(self, doctor_key: str, date: str) -> List[int]: ...

    async def save_patient(self, record: PatientRecord) -> None: ...

    async def get_patient_by_user_id(self, user_id: str) -> Optional[PatientRecord]: ...

    async def save_feedback(self, record: FeedbackRecord) -> None: ...

    async def get_lab_tests(self, user_id: str, limit: int = 5) -> List[LabTestRecord]: ...

    async def get_medicine_reminders(self, user_id: str) -> List[MedicineReminderRecord]: ...

    async def add_medicine_reminder(self, record: MedicineReminderRecord) -> None: ...
