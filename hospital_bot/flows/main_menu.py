from __future__ import annotations
from typing import Dict, List, Optional, Tuple

from hospital_bot.flows.base import Flow, FlowResult, FlowServices
from hospital_bot.messages import ListRow, ListSection, Reply
from hospital_bot.session.models import START_STEP, FlowId, Session
from hospital_bot.utils.text import first_number, normalize

# (row id / intent, title, target flow, acknowledgement)
MENU: List[Tuple[str, str, FlowId, str]] = [
    ("appointment", "Book appointment", FlowId.APPOINTMENT, "Sure! Let's book your appointment."),
    ("lab_report", "Lab reports", FlowId.LAB_REPORT, "OK, let me check your lab reports."),
    ("prescription", "Prescriptions", FlowId.PRESCRIPTION, "Let's look at your prescriptions."),
    ("bill", "Bill information", FlowId.BILL, "Here is the billing information."),
    ("doctor_info", "Doctor information", FlowId.DOCTOR_INFO, "Here are our doctors."),
    ("feedback", "Give feedback", FlowId.FEEDBACK, "Your feedback matters to us."),
    ("registration", "New registration", FlowId.REGISTRATION, "Let's register you as a new patient."),
    ("emergency", "🚨 Emergency", FlowId.EMERGENCY, ""),
]

_BY_INTENT: Dict[str, Tuple[str, str, FlowId, str]] = {m[0]: m for m in MENU}


class MainMenuFlow(Flow):
    """
    Resting state of every conversation. The single `start` step both shows
    the menu and understands a selection (number, list id or free text).
    """

    flow_id = FlowId.MAIN_MENU

    def __init__(self, services: FlowServices):
        super().__init__(services)
        self.steps = {START_STEP: self.step_start}

    def menu_reply(self, session: Session, intro: str = "") -> Reply:
        name = session.patient_name or "there"
        lines = "\n".join(f"{i}. {title}" for i, (_, title, _, _) in enumerate(MENU, start=1))
        body = (
            f"{intro}Namaste {name}! 🏥\n\n"
            f"Welcome to *{self.settings.hospital_name}*.\n"
            "How can I help you?\n\n"
            f"{lines}\n\n"
            "Please send a number or the name of the service."
        )
        rows = [ListRow(id=intent, title=title) for intent, title, _, _ in MENU]
        return Reply.with_list(body, "Services", [ListSection(title="Services", rows=rows)])

    def show_menu(self, session: Session, intro: str = "") -> FlowResult:
        """Main menu from any state; whatever flow was active is dropped."""
        return FlowResult(replies=[self.menu_reply(session, intro)], session=session.reset())

    async def selection(self, text: str) -> Optional[str]:
        t = normalize(text)
        if t in _BY_INTENT:
            return t
        n = first_number(t)
        if n is not None and t == str(n):
            return MENU[n - 1][0] if 1 <= n <= len(MENU) else None
        result = await self.services.suggestions.analyze_intent(t)
        return result.intent if result.intent in _BY_INTENT else None

    async def step_start(self, text: str, session: Session) -> FlowResult:
        intent = await self.selection(text)
        if intent is None:
            return self.stay(session, self.menu_reply(session))
        _, _, target, ack = _BY_INTENT[intent]
        replies = [Reply.text(ack)] if ack else []
        return FlowResult(replies=replies, session=session.enter(target), handoff=True)
