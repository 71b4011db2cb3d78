from __future__ import annotations

from hospital_bot.doctors import Doctor, match_doctor
from hospital_bot.flows.base import Flow, FlowResult, FlowServices
from hospital_bot.messages import ListRow, ListSection, Reply
from hospital_bot.session.models import START_STEP, FlowId, Session
from hospital_bot.utils.text import contains_any

SELECT_DOCTOR = "select_doctor"

ALL_WORDS = ["all", "sabhi", "सभी", "doctors_all"]
BOOK_HINT = 'To book an appointment send "appointment".'


class DoctorInfoFlow(Flow):
    flow_id = FlowId.DOCTOR_INFO

    def __init__(self, services: FlowServices):
        super().__init__(services)
        self.steps = {
            START_STEP: self.step_start,
            SELECT_DOCTOR: self.step_select_doctor,
        }

    def details(self, doctor: Doctor) -> str:
        return (
            f"👨‍⚕️ *{doctor.name}*\n\n"
            f"🏥 Department: {doctor.department}\n"
            f"💼 Specialty: {doctor.specialty}\n"
            f"📅 Available: {doctor.availability_text}\n"
            f"⏰ Timing: {doctor.timing_text}\n"
            f"🎓 Experience: {doctor.experience}"
        )

    async def step_start(self, text: str, session: Session) -> FlowResult:
        catalog = self.services.catalog
        lines = "\n".join(f"{i}. {d.short_label}" for i, d in enumerate(catalog, start=1))
        body = (
            f"👨‍⚕️ *Our doctors*\n\n{lines}\n\n"
            f"Which doctor do you want to know about? (1-{len(catalog)})\n\n"
            'Or send "all" for everyone.'
        )
        rows = [ListRow(id=d.key, title=d.name, description=d.specialty) for d in catalog]
        rows.append(ListRow(id="doctors_all", title="All doctors"))
        reply = Reply.with_list(body, "Doctors", [ListSection(title="Doctors", rows=rows)])
        return self.advance(session, SELECT_DOCTOR, reply)

    async def step_select_doctor(self, text: str, session: Session) -> FlowResult:
        catalog = self.services.catalog
        if contains_any(text, ALL_WORDS):
            blocks = [
                f"{i}. *{d.name}*\n   {d.specialty}\n   📅 {d.availability_text}\n   ⏰ {d.timing_text}"
                for i, d in enumerate(catalog, start=1)
            ]
            reply = f"👨‍⚕️ *{self.settings.hospital_name} - our doctors*\n\n" + "\n\n".join(blocks)
            return self.done(session, self.with_menu_hint(f"{reply}\n\n{BOOK_HINT}"))

        doctor = match_doctor(text, catalog)
        if doctor is None:
            return self.stay(session, f"Please choose a number between 1 and {len(catalog)}, or send \"all\".")
        return self.done(session, self.with_menu_hint(f"{self.details(doctor)}\n\n{BOOK_HINT}"))
