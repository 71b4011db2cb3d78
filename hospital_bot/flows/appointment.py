from __future__ import annotations
import asyncio
import logging
from datetime import date
from typing import Optional

from cachetools import TTLCache

from hospital_bot.doctors import Doctor, get_doctor, match_doctor
from hospital_bot.flows.base import Flow, FlowResult, FlowServices
from hospital_bot.flows.effects import NotifyAppointment, PersistAppointment
from hospital_bot.messages import Button, ListRow, ListSection, Reply
from hospital_bot.services.records import AppointmentRecord
from hospital_bot.session.models import START_STEP, FlowId, Session
from hospital_bot.utils.schedule import format_clock, generate_slots, parse_clock, to_24h
from hospital_bot.utils.text import is_no, is_yes, normalize, numbered, first_number
from hospital_bot.utils.validators import is_past, parse_date

logger = logging.getLogger(__name__)

# start -> ask_problem -> select_doctor -> select_date -> select_time -> confirm_booking -> main-menu
ASK_PROBLEM = "ask_problem"
SELECT_DOCTOR = "select_doctor"
SELECT_DATE = "select_date"
SELECT_TIME = "select_time"
CONFIRM_BOOKING = "confirm_booking"

TOKEN_MIN, TOKEN_MAX = 1000, 9999
ISSUED_TOKEN_TTL_SECONDS = 24 * 60 * 60

CONFIRM_BUTTONS = [
    Button(id="confirm_yes", title="✅ Confirm"),
    Button(id="confirm_no", title="❌ Cancel"),
]


def format_date(day: date) -> str:
    return day.strftime("%d %B %Y").lstrip("0")


class AppointmentFlow(Flow):
    flow_id = FlowId.APPOINTMENT

    def __init__(self, services: FlowServices):
        super().__init__(services)
        self.steps = {
            START_STEP: self.step_start,
            ASK_PROBLEM: self.step_ask_problem,
            SELECT_DOCTOR: self.step_select_doctor,
            SELECT_DATE: self.step_select_date,
            SELECT_TIME: self.step_select_time,
            CONFIRM_BOOKING: self.step_confirm_booking,
        }
        self._token_lock = asyncio.Lock()
        self._issued: TTLCache = TTLCache(maxsize=4096, ttl=ISSUED_TOKEN_TTL_SECONDS)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _doctor(self, session: Session) -> Optional[Doctor]:
        return get_doctor(session.context.get("doctor"), self.services.catalog)

    def _slots(self, doctor: Doctor) -> list[str]:
        return generate_slots(doctor.start_hour, doctor.end_hour, self.settings.slot_minutes)

    def doctor_picker(self, body: str) -> Reply:
        rows = [
            ListRow(id=d.key, title=f"{i}. {d.name}", description=f"{d.specialty} ({d.availability_text})")
            for i, d in enumerate(self.services.catalog, start=1)
        ]
        labels = [d.short_label for d in self.services.catalog]
        text = f"{body}\n\n📋 *Our doctors:*\n{numbered(labels)}\n\nWhich doctor would you like to see? (1-{len(labels)})"
        return Reply.with_list(text, "Doctors", [ListSection(title="Doctors", rows=rows)])

    def date_prompt(self, doctor: Doctor) -> str:
        return (
            f"OK! You will see {doctor.name} ({doctor.specialty}), available {doctor.availability_text}.\n\n"
            "When would you like to come?\n"
            '• "today"\n'
            '• "tomorrow"\n'
            "• or send a date (dd/mm/yyyy)"
        )

    def slot_at(self, doctor: Doctor, slots: list[str], text: str) -> Optional[str]:
        """Slot label for a typed clock time such as "4:30"; am/pm comes from the doctor's hours if omitted."""
        clock = parse_clock(text)
        if clock is None:
            return None
        hour, minute, period = clock
        for h in to_24h(hour, period):
            if doctor.is_within_hours(h, minute):
                label = format_clock(h, minute)
                if label in slots:
                    return label
        return None

    def slot_prompt(self, day: date, slots: list[str]) -> str:
        shown = slots[: self.settings.slot_display_limit]
        return (
            f"📅 Date: {format_date(day)}\n\n"
            f"⏰ *Choose a time:*\n{numbered(shown)}\n\n"
            f"Which time? (1-{len(shown)})"
        )

    async def issue_token(self, doctor_key: str, day: str) -> Optional[int]:
        """
        Random 4-digit token not yet given out for this doctor and date, or None
        when every number is taken.

        Checked against stored tokens and against tokens this flow issued in the
        last day, whose bookings may not be saved yet.
        """
        async with self._token_lock:
            issued = self._issued.setdefault((doctor_key, day), set())
            taken = set(issued)
            try:
                taken.update(await self.services.persistence.list_tokens(doctor_key, day))
            except Exception as e:
                logger.warning(f"Could not load issued tokens for {doctor_key} on {day}: {e}")
            free = [t for t in range(TOKEN_MIN, TOKEN_MAX + 1) if t not in taken]
            if not free:
                logger.error(f"All tokens used for {doctor_key} on {day}")
                return None
            token = self.services.rng.choice(free)
            issued.add(token)
            return token

    # ------------------------------------------------------------------
    # steps
    # ------------------------------------------------------------------
    async def step_start(self, text: str, session: Session) -> FlowResult:
        name = session.patient_name or "there"
        return self.advance(
            session,
            ASK_PROBLEM,
            f"Sure {name}! I will help you book an appointment.\n\nWhat problem are you facing? Please describe it briefly.",
        )

    async def step_ask_problem(self, text: str, session: Session) -> FlowResult:
        problem = text.strip()
        if not problem:
            return self.stay(session, "Please tell me your problem in a few words.")

        suggestion = await self.services.suggestions.suggest_doctor(problem, self.services.catalog)
        suggested = get_doctor(suggestion.doctor, self.services.catalog)

        body = "Understood."
        if suggested is not None:
            body += f"\n\n💡 {suggested.name} would be the right doctor for you."
            if suggestion.reason:
                body += f"\n{suggestion.reason}"
        return FlowResult(
            replies=[self.doctor_picker(body)],
            session=session.advance(SELECT_DOCTOR, problem=problem, suggested=suggestion.doctor),
        )

    async def step_select_doctor(self, text: str, session: Session) -> FlowResult:
        doctor = match_doctor(text, self.services.catalog)
        if doctor is None:
            return self.stay(session, f"Please choose a number between 1 and {len(self.services.catalog)}.")
        return self.advance(session, SELECT_DATE, self.date_prompt(doctor), doctor=doctor.key)

    async def step_select_date(self, text: str, session: Session) -> FlowResult:
        doctor = self._doctor(session)
        if doctor is None:
            return FlowResult(
                replies=[self.doctor_picker("Please choose your doctor again.")],
                session=session.advance(SELECT_DOCTOR),
            )

        today = self.services.today()
        day = parse_date(text, today)
        if day is None:
            return self.stay(session, 'Please send "today", "tomorrow" or a date like 25/12/2025.')
        if is_past(day, today):
            return self.stay(session, "That date has already passed. Please choose another date.")
        if not doctor.is_available_on(day):
            return self.stay(session, f"{doctor.unavailable_message()}\n\nPlease choose another date.")

        return self.advance(session, SELECT_TIME, self.slot_prompt(day, self._slots(doctor)), date=day.isoformat())

    async def step_select_time(self, text: str, session: Session) -> FlowResult:
        doctor = self._doctor(session)
        if doctor is None or not session.context.get("date"):
            return FlowResult(
                replies=[self.doctor_picker("Please choose your doctor again.")],
                session=session.advance(SELECT_DOCTOR),
            )
        slots = self._slots(doctor)

        chosen = next((s for s in slots if normalize(s) == normalize(text)), None)
        if chosen is None and parse_clock(text) is not None:
            chosen = self.slot_at(doctor, slots, text)
            if chosen is None:
                return self.stay(
                    session,
                    f"{doctor.name} sees patients {doctor.timing_text} every {self.settings.slot_minutes} minutes. "
                    "Please choose one of the listed times.",
                )
        if chosen is None:
            n = first_number(text)
            if n is None:
                return self.stay(session, f"Please send the number of the time slot (1-{min(len(slots), self.settings.slot_display_limit)}).")
            chosen = slots[n - 1] if 1 <= n <= len(slots) else slots[0]

        day = date.fromisoformat(session.context["date"])
        summary = (
            "Please confirm your appointment:\n\n"
            f"👤 {self.patient_name(session)}\n"
            f"🏥 {doctor.name}\n"
            f"📅 {format_date(day)}\n"
            f"⏰ {chosen}\n\n"
            "Confirm? (yes/no)"
        )
        return self.advance(session, CONFIRM_BOOKING, Reply.with_buttons(summary, CONFIRM_BUTTONS), time=chosen)

    async def step_confirm_booking(self, text: str, session: Session) -> FlowResult:
        if is_no(text):
            return self.done(session, self.with_menu_hint("OK, the booking was not made."))
        if not is_yes(text):
            return self.stay(session, Reply.with_buttons("Please reply yes or no.", CONFIRM_BUTTONS))

        doctor = self._doctor(session)
        ctx = session.context
        if doctor is None or not ctx.get("date") or not ctx.get("time"):
            return FlowResult(
                replies=[self.doctor_picker("Some booking details were lost. Please choose your doctor again.")],
                session=session.advance(SELECT_DOCTOR),
            )

        token = await self.issue_token(doctor.key, ctx["date"])
        if token is None:
            return self.advance(
                session,
                SELECT_DATE,
                f"Sorry, {doctor.name} is fully booked on {format_date(date.fromisoformat(ctx['date']))}. Please choose another date.",
            )
        record = AppointmentRecord(
            user_id=session.user_id,
            patient_name=self.patient_name(session),
            doctor_key=doctor.key,
            doctor_name=doctor.name,
            department=doctor.department,
            date=ctx["date"],
            time=ctx["time"],
            token=token,
            problem=ctx.get("problem"),
        )
        reply = (
            "✅ *Appointment booked!*\n\n"
            f"👤 {record.patient_name}\n"
            f"🏥 {doctor.name}\n"
            f"📅 {format_date(date.fromisoformat(record.date))}\n"
            f"⏰ {record.time}\n"
            f"🎫 Token: *{token}*\n\n"
            "Please arrive on time. Thank you! 🙏"
        )
        logger.info(f"Booking {doctor.key} on {record.date} {record.time} token={token}")
        return self.done(
            session,
            self.with_menu_hint(reply),
            side_effects=[PersistAppointment(record=record), NotifyAppointment(record=record)],
        )
