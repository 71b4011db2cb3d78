"""
Shared fixtures: in-memory gateways and a router wired to them.
"""

import random
from datetime import date
from typing import List, Optional

import pytest

from hospital_bot.config import Settings
from hospital_bot.flows.base import FlowServices
from hospital_bot.messages import InboundMessage
from hospital_bot.router import FlowRouter
from hospital_bot.services.records import (
    AppointmentRecord,
    FeedbackRecord,
    LabTestRecord,
    MedicineReminderRecord,
    PatientRecord,
)
from hospital_bot.services.suggestion import SuggestionService
from hospital_bot.session.store import MemorySessionStore

TODAY = date(2026, 10, 20)  # Tuesday
USER = "919800000001"
STAFF = "919800009999"


class FakeGateway:
    """Records every outgoing message as (kind, user_id, body)."""

    def __init__(self):
        self.sent = []
        self.read = []
        self.fail = False

    async def send_text(self, user_id, text):
        if self.fail:
            raise RuntimeError("gateway down")
        self.sent.append(("text", user_id, text))

    async def send_list(self, user_id, body, button_label, sections):
        if self.fail:
            raise RuntimeError("gateway down")
        self.sent.append(("list", user_id, body))

    async def send_buttons(self, user_id, body, buttons):
        if self.fail:
            raise RuntimeError("gateway down")
        self.sent.append(("buttons", user_id, body))

    async def mark_read(self, message_id):
        self.read.append(message_id)

    def bodies(self, user_id: str) -> List[str]:
        return [body for _, uid, body in self.sent if uid == user_id]

    def last(self, user_id: str) -> str:
        return self.bodies(user_id)[-1]


class FakePersistence:
    def __init__(self):
        self.appointments: List[AppointmentRecord] = []
        self.patients: List[PatientRecord] = []
        self.feedback: List[FeedbackRecord] = []
        self.reminders: List[MedicineReminderRecord] = []
        self.lab_tests: List[LabTestRecord] = []
        self.fail_writes = False
        self.fail_reads = False

    def _check_write(self):
        if self.fail_writes:
            raise RuntimeError("database unavailable")

    def _check_read(self):
        if self.fail_reads:
            raise RuntimeError("database unavailable")

    async def save_appointment(self, record):
        self._check_write()
        self.appointments.append(record)

    async def list_tokens(self, doctor_key, date):
        self._check_read()
        return [a.token for a in self.appointments if a.doctor_key == doctor_key and a.date == date]

    async def save_patient(self, record):
        self._check_write()
        self.patients.append(record)

    async def get_patient_by_user_id(self, user_id) -> Optional[PatientRecord]:
        self._check_read()
        return next((p for p in self.patients if p.user_id == user_id), None)

    async def save_feedback(self, record):
        self._check_write()
        self.feedback.append(record)

    async def get_lab_tests(self, user_id, limit=5):
        self._check_read()
        return self.lab_tests[:limit]

    async def get_medicine_reminders(self, user_id):
        self._check_read()
        return [r for r in self.reminders if r.user_id == user_id and r.active]

    async def add_medicine_reminder(self, record):
        self._check_write()
        self.reminders.append(record)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        hospital_name="Test Hospital",
        hospital_phone="+91-1111111111",
        hospital_address="1 Test Road",
        staff_notification_number=STAFF,
        openai_api_key=None,
        redis_url=None,
        session_ttl_minutes=30,
        slot_minutes=10,
        slot_display_limit=10,
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def persistence():
    return FakePersistence()


@pytest.fixture
def store():
    return MemorySessionStore(ttl_minutes=30)


@pytest.fixture
def services(settings, persistence):
    return FlowServices(
        persistence=persistence,
        suggestions=SuggestionService(llm=None, threshold=settings.ai_confidence_threshold),
        settings=settings,
        today=lambda: TODAY,
        rng=random.Random(1234),
    )


@pytest.fixture
def router(store, gateway, services, settings):
    return FlowRouter(store=store, gateway=gateway, services=services, settings=settings)


@pytest.fixture
def send(router):
    """Sends a text message from USER (or another sender) through the router."""
    counter = {"n": 0}

    async def _send(text: str, user: str = USER, **kwargs):
        counter["n"] += 1
        message = InboundMessage(
            type=kwargs.pop("type", "text"),
            sender_id=user,
            message_id=f"wamid.{counter['n']}",
            sender_name=kwargs.pop("sender_name", "Ravi"),
            text=text,
            **kwargs,
        )
        await router.handle_message(message)

    return _send
