from __future__ import annotations
import logging

from hospital_bot.flows.base import Flow, FlowResult, FlowServices
from hospital_bot.flows.effects import NotifyEmergency
from hospital_bot.log import hash_user_id
from hospital_bot.session.models import START_STEP, FlowId, Session

logger = logging.getLogger(__name__)


class EmergencyFlow(Flow):
    """Single step: tell the patient to come in or call, alert staff, reset."""

    flow_id = FlowId.EMERGENCY

    def __init__(self, services: FlowServices):
        super().__init__(services)
        self.steps = {START_STEP: self.step_start}

    def alert_text(self) -> str:
        return (
            "🚨 *EMERGENCY* 🚨\n\n"
            "Come to the hospital immediately or call:\n"
            f"*{self.settings.hospital_phone}*\n\n"
            f"📍 {self.settings.hospital_address}\n\n"
            "We are available 24/7."
        )

    async def step_start(self, text: str, session: Session) -> FlowResult:
        logger.warning(f"Emergency raised by {hash_user_id(session.user_id)}")
        return self.done(
            session,
            self.alert_text(),
            side_effects=[NotifyEmergency(user_id=session.user_id, name=self.patient_name(session), text=text)],
        )
