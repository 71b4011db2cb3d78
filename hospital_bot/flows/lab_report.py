from __future__ import annotations
import logging

from hospital_bot.flows.base import Flow, FlowResult, FlowServices
from hospital_bot.session.models import START_STEP, FlowId, Session

logger = logging.getLogger(__name__)

REPORT_LIMIT = 5

STATUS_MARKS = {
    "booked": "📝",
    "processing": "⏳",
    "ready": "✅",
    "delivered": "📧",
}


class LabReportFlow(Flow):
    flow_id = FlowId.LAB_REPORT

    def __init__(self, services: FlowServices):
        super().__init__(services)
        self.steps = {START_STEP: self.step_start}

    async def step_start(self, text: str, session: Session) -> FlowResult:
        try:
            tests = await self.services.persistence.get_lab_tests(session.user_id, REPORT_LIMIT)
        except Exception as e:
            logger.error(f"Lab test lookup failed: {e}")
            tests = []

        call_us = f"For more details call: {self.settings.hospital_phone}"
        if not tests:
            return self.done(session, self.with_menu_hint(f"No lab reports were found for you.\n\n{call_us}"))

        lines = [
            f"{i}. {t.test_name}\n   📅 {t.test_date}\n   Status: {STATUS_MARKS.get(t.status, '📋')} {t.status}"
            for i, t in enumerate(tests, start=1)
        ]
        reply = "🔬 *Your lab reports:*\n\n" + "\n\n".join(lines) + f"\n\n{call_us}"
        return self.done(session, self.with_menu_hint(reply))
