from __future__ import annotations
import logging

from hospital_bot.flows.base import Flow, FlowResult, FlowServices
from hospital_bot.flows.effects import PersistReminder
from hospital_bot.services.records import MedicineReminderRecord
from hospital_bot.session.models import START_STEP, FlowId, Session
from hospital_bot.utils.text import contains_any

logger = logging.getLogger(__name__)

SHOW_OPTIONS = "show_options"
GET_MEDICINE_NAME = "get_medicine_name"
GET_REMINDER_TIME = "get_reminder_time"

ADD_WORDS = ["add", "new", "dawa", "दवा", "जोड़ें"]


class PrescriptionFlow(Flow):
    flow_id = FlowId.PRESCRIPTION

    def __init__(self, services: FlowServices):
        super().__init__(services)
        self.steps = {
            START_STEP: self.step_start,
            SHOW_OPTIONS: self.step_show_options,
            GET_MEDICINE_NAME: self.step_get_medicine_name,
            GET_REMINDER_TIME: self.step_get_reminder_time,
        }

    async def step_start(self, text: str, session: Session) -> FlowResult:
        try:
            reminders = await self.services.persistence.get_medicine_reminders(session.user_id)
        except Exception as e:
            logger.error(f"Reminder lookup failed: {e}")
            reminders = []

        if reminders:
            lines = "\n\n".join(
                f"{i}. {r.medicine_name}\n   ⏰ Time: {r.reminder_time}" for i, r in enumerate(reminders, start=1)
            )
            body = f"💊 *Your medicines:*\n\n{lines}"
        else:
            body = f"No prescription records were found.\nFor details call: {self.settings.hospital_phone}"
        body += '\n\n📝 Send "add" to set a new medicine reminder.'
        return self.advance(session, SHOW_OPTIONS, self.with_menu_hint(body))

    async def step_show_options(self, text: str, session: Session) -> FlowResult:
        if contains_any(text, ADD_WORDS):
            return self.advance(session, GET_MEDICINE_NAME, "Name of the medicine:")
        return self.done(session, self.with_menu_hint("OK."))

    async def step_get_medicine_name(self, text: str, session: Session) -> FlowResult:
        medicine = text.strip()
        if not medicine:
            return self.stay(session, "Please send the name of the medicine.")
        return self.advance(
            session,
            GET_REMINDER_TIME,
            'When should I remind you? (e.g. "8 am" or "morning and night")',
            medicine=medicine,
        )

    async def step_get_reminder_time(self, text: str, session: Session) -> FlowResult:
        when = text.strip()
        if not when:
            return self.stay(session, "Please send the reminder time.")
        record = MedicineReminderRecord(
            user_id=session.user_id,
            patient_name=self.patient_name(session),
            medicine_name=session.context["medicine"],
            reminder_time=when,
        )
        reply = f"✅ Medicine reminder added!\n\n💊 {record.medicine_name}\n⏰ {record.reminder_time}"
        return self.done(session, self.with_menu_hint(reply), side_effects=[PersistReminder(record=record)])
