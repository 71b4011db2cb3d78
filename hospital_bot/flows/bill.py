from __future__ import annotations

from hospital_bot.flows.base import Flow, FlowResult, FlowServices
from hospital_bot.session.models import START_STEP, FlowId, Session


class BillFlow(Flow):
    flow_id = FlowId.BILL

    def __init__(self, services: FlowServices):
        super().__init__(services)
        self.steps = {START_STEP: self.step_start}

    async def step_start(self, text: str, session: Session) -> FlowResult:
        reply = (
            "💰 *Bill information*\n\n"
            "For details about your bill please call:\n"
            f"📞 {self.settings.hospital_phone}\n\n"
            "or visit the reception desk.\n\n"
            f"📍 {self.settings.hospital_address}"
        )
        return self.done(session, self.with_menu_hint(reply))
