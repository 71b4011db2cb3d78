from __future__ import annotations
import logging
from typing import Optional

from hospital_bot.flows.base import Flow, FlowResult, FlowServices
from hospital_bot.flows.effects import NotifyPatient, PersistPatient
from hospital_bot.messages import Button, Reply
from hospital_bot.services.records import PatientRecord
from hospital_bot.session.models import START_STEP, FlowId, Session
from hospital_bot.utils.text import contains_any, normalize
from hospital_bot.utils.validators import parse_age

logger = logging.getLogger(__name__)

GET_NAME = "get_name"
GET_AGE = "get_age"
GET_GENDER = "get_gender"
GET_ADDRESS = "get_address"

GENDER_BUTTONS = [
    Button(id="gender_male", title="Male"),
    Button(id="gender_female", title="Female"),
    Button(id="gender_other", title="Other"),
]


def parse_gender(text: str) -> Optional[str]:
    t = normalize(text)
    if t in ("1", "m") or contains_any(t, ["gender_male", "male", "man", "purush", "पुरुष"]):
        return "male"
    if t in ("2", "f") or contains_any(t, ["gender_female", "female", "woman", "mahila", "महिला"]):
        return "female"
    if t in ("3", "o") or contains_any(t, ["gender_other", "other", "anya", "अन्य"]):
        return "other"
    return None


class RegistrationFlow(Flow):
    flow_id = FlowId.REGISTRATION

    def __init__(self, services: FlowServices):
        super().__init__(services)
        self.steps = {
            START_STEP: self.step_start,
            GET_NAME: self.step_get_name,
            GET_AGE: self.step_get_age,
            GET_GENDER: self.step_get_gender,
            GET_ADDRESS: self.step_get_address,
        }

    async def step_start(self, text: str, session: Session) -> FlowResult:
        intro = "📝 *New registration*"
        try:
            existing = await self.services.persistence.get_patient_by_user_id(session.user_id)
        except Exception as e:
            logger.warning(f"Patient lookup failed: {e}")
            existing = None
        if existing is not None:
            intro += f"\n\nYou are already registered as {existing.full_name}. Your details will be updated."
        return self.advance(session, GET_NAME, f"{intro}\n\nPlease tell me your full name:")

    async def step_get_name(self, text: str, session: Session) -> FlowResult:
        # text arrives lower-cased from the router
        full_name = " ".join(text.split()).title()
        if len(full_name) < 2:
            return self.stay(session, "Please send your full name.")
        return self.advance(session, GET_AGE, "Your age?", full_name=full_name)

    async def step_get_age(self, text: str, session: Session) -> FlowResult:
        age = parse_age(text)
        if age is None:
            return self.stay(session, "Please send a valid age (1-120).")
        return self.advance(
            session,
            GET_GENDER,
            Reply.with_buttons("Gender:\n1. Male\n2. Female\n3. Other", GENDER_BUTTONS),
            age=age,
        )

    async def step_get_gender(self, text: str, session: Session) -> FlowResult:
        gender = parse_gender(text)
        if gender is None:
            return self.stay(session, Reply.with_buttons("Please choose 1, 2 or 3.", GENDER_BUTTONS))
        return self.advance(session, GET_ADDRESS, "Your address?", gender=gender)

    async def step_get_address(self, text: str, session: Session) -> FlowResult:
        address = text.strip()
        if not address:
            return self.stay(session, "Please send your address.")

        ctx = session.context
        record = PatientRecord(
            user_id=session.user_id,
            full_name=ctx["full_name"],
            age=ctx.get("age"),
            gender=ctx.get("gender"),
            address=address,
        )
        reply = (
            "✅ *Registration successful!*\n\n"
            f"👤 Name: {record.full_name}\n"
            f"📞 Phone: {record.user_id}\n"
            f"🎂 Age: {record.age}\n"
            f"⚧ Gender: {record.gender}\n"
            f"📍 Address: {record.address}\n\n"
            'You can now book an appointment: send "appointment".'
        )
        return self.done(
            session,
            self.with_menu_hint(reply),
            side_effects=[PersistPatient(record=record), NotifyPatient(record=record)],
            patient_name=record.full_name,
        )
