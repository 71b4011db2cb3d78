from __future__ import annotations
import logging
import random
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, Dict, List, Optional

from hospital_bot.config import Settings, settings as default_settings
from hospital_bot.doctors import DOCTORS, Doctor
from hospital_bot.flows.effects import SideEffect
from hospital_bot.messages import Reply
from hospital_bot.services.gateways import PersistenceGateway, SuggestionGateway
from hospital_bot.session.models import START_STEP, FlowId, Session
from hospital_bot.utils.text import MENU_HINT

logger = logging.getLogger(__name__)

StepHandler = Callable[[str, Session], Awaitable["FlowResult"]]


@dataclass
class FlowServices:
    """Collaborators shared by every flow."""

    persistence: PersistenceGateway
    suggestions: SuggestionGateway
    settings: Settings = field(default_factory=lambda: default_settings)
    catalog: List[Doctor] = field(default_factory=lambda: list(DOCTORS))
    today: Callable[[], date] = date.today
    rng: random.Random = field(default_factory=random.Random)


@dataclass
class FlowResult:
    replies: List[Reply]
    session: Session
    side_effects: List[SideEffect] = field(default_factory=list)
    # run the new flow's start step right away (menu selection -> chosen flow)
    handoff: bool = False


class Flow:
    """
    One dialogue as a set of named steps.

    A step either re-prompts and keeps the session as it is, or merges what it
    collected into the context and moves on. Terminal steps return the session
    to main-menu/start with an empty context.
    """

    flow_id: FlowId

    def __init__(self, services: FlowServices):
        self.services = services
        self.steps: Dict[str, StepHandler] = {}

    @property
    def settings(self) -> Settings:
        return self.services.settings

    async def handle(self, text: str, session: Session) -> FlowResult:
        step = self.steps.get(session.current_step)
        if step is None:
            logger.debug(f"{self.flow_id.value}: unknown step {session.current_step!r}, restarting flow")
            step = self.steps[START_STEP]
        return await step(text, session)

    # result helpers
    def stay(self, session: Session, reply: Reply | str) -> FlowResult:
        return FlowResult(replies=[_as_reply(reply)], session=session)

    def advance(self, session: Session, step: str, reply: Reply | str, **values) -> FlowResult:
        return FlowResult(replies=[_as_reply(reply)], session=session.advance(step, **values))

    def done(
        self,
        session: Session,
        reply: Reply | str,
        side_effects: Optional[List[SideEffect]] = None,
        patient_name: Optional[str] = None,
    ) -> FlowResult:
        final = session.reset()
        if patient_name:
            final = final.model_copy(update={"patient_name": patient_name})
        return FlowResult(replies=[_as_reply(reply)], session=final, side_effects=side_effects or [])

    def with_menu_hint(self, text: str) -> str:
        return f"{text}\n\n{MENU_HINT}"

    def patient_name(self, session: Session) -> str:
        return session.patient_name or "Patient"


def _as_reply(reply: Reply | str) -> Reply:
    return reply if isinstance(reply, Reply) else Reply.text(reply)
