from __future__ import annotations
import logging
import weakref
import asyncio
from typing import Dict, List, Optional

from hospital_bot.config import Settings, settings as default_settings
from hospital_bot.flows.appointment import AppointmentFlow
from hospital_bot.flows.base import Flow, FlowResult, FlowServices
from hospital_bot.flows.bill import BillFlow
from hospital_bot.flows.doctor_info import DoctorInfoFlow
from hospital_bot.flows.effects import (
    NotifyAppointment,
    NotifyEmergency,
    NotifyFeedback,
    NotifyPatient,
    PersistAppointment,
    PersistFeedback,
    PersistPatient,
    PersistReminder,
    SideEffect,
)
from hospital_bot.flows.emergency import EmergencyFlow
from hospital_bot.flows.feedback import FeedbackFlow
from hospital_bot.flows.lab_report import LabReportFlow
from hospital_bot.flows.main_menu import MainMenuFlow
from hospital_bot.flows.prescription import PrescriptionFlow
from hospital_bot.flows.registration import RegistrationFlow
from hospital_bot.log import hash_user_id
from hospital_bot.messages import InboundMessage, Reply
from hospital_bot.security.guardrails import is_emergency
from hospital_bot.services.gateways import NotificationGateway
from hospital_bot.services.notification import StaffNotifier
from hospital_bot.session.models import FlowId, Session, default_session
from hospital_bot.session.store import SessionStore

logger = logging.getLogger(__name__)

MENU_COMMANDS = {"menu", "home", "start", "main", "0", "hi", "hello", "namaste", "मेनू", "नमस्ते", "शुरू"}
CANCEL_COMMANDS = {"cancel", "back", "रद्द"}
HELP_COMMANDS = {"help", "मदद"}
GLOBAL_COMMANDS = MENU_COMMANDS | CANCEL_COMMANDS | HELP_COMMANDS

FLOW_CLASSES = (
    MainMenuFlow,
    AppointmentFlow,
    RegistrationFlow,
    FeedbackFlow,
    LabReportFlow,
    BillFlow,
    DoctorInfoFlow,
    PrescriptionFlow,
    EmergencyFlow,
)


def build_flows(services: FlowServices) -> Dict[FlowId, Flow]:
    flows = {cls.flow_id: cls(services) for cls in FLOW_CLASSES}
    missing = set(FlowId) - set(flows)
    if missing:
        raise ValueError(f"No flow registered for: {sorted(f.value for f in missing)}")
    return flows


class FlowRouter:
    """
    Entry point for every inbound message.

    Order per message: emergency interrupt, global commands, then the active
    flow. Messages from the same user are processed one at a time.
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: NotificationGateway,
        services: FlowServices,
        settings: Settings = default_settings,
    ):
        self.store = store
        self.gateway = gateway
        self.services = services
        self.settings = settings
        self.flows = build_flows(services)
        self.notifier = StaffNotifier(gateway, settings.staff_notification_number)
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @property
    def main_menu(self) -> MainMenuFlow:
        return self.flows[FlowId.MAIN_MENU]  # type: ignore[return-value]

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def handle_message(self, message: InboundMessage) -> None:
        if not message.is_supported:
            logger.debug(f"Ignoring unsupported message type={message.type!r}")
            return
        text = message.normalized_text()
        if not text:
            logger.debug("Ignoring empty message")
            return

        user_id = message.sender_id
        if message.message_id:
            try:
                await self.gateway.mark_read(message.message_id)
            except Exception as e:
                logger.warning(f"Mark read failed: {e}")

        async with self._lock_for(user_id):
            try:
                await self._process(user_id, text, message.sender_name)
            except Exception:
                logger.exception(f"Unhandled error while processing message from {hash_user_id(user_id)}")
                await self._send_fallback(user_id)

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    async def _process(self, user_id: str, text: str, sender_name: Optional[str]) -> None:
        session = await self.store.get(user_id)
        if sender_name and not session.patient_name:
            session = session.model_copy(update={"patient_name": sender_name})

        if is_emergency(text):
            result = await self.flows[FlowId.EMERGENCY].handle(text, session)
            await self.store.set(user_id, default_session(user_id, session.patient_name))
            await self._send_all(user_id, result.replies)
            await self._run_side_effects(result.side_effects)
            return

        if text in GLOBAL_COMMANDS:
            result = self._global_command(text, session)
            await self.store.set(user_id, default_session(user_id, session.patient_name))
            await self._send_all(user_id, result.replies)
            return

        result = await self._dispatch(text, session)
        saved = await self.store.set(user_id, result.session)
        logger.info(
            f"{hash_user_id(user_id)}: {session.current_flow.value}/{session.current_step} -> "
            f"{saved.current_flow.value}/{saved.current_step}"
        )
        await self._send_all(user_id, result.replies)
        await self._run_side_effects(result.side_effects)

    def _global_command(self, command: str, session: Session) -> FlowResult:
        if command in HELP_COMMANDS:
            result = self.main_menu.show_menu(session)
            help_text = (
                f"🏥 *{self.settings.hospital_name} help*\n\n"
                "Send:\n"
                "• *menu* - main menu\n"
                "• *help* - this help\n"
                "• *cancel* - cancel the current action\n\n"
                f"Emergency? Call {self.settings.hospital_phone}"
            )
            result.replies.insert(0, Reply.text(help_text))
            return result
        if command in CANCEL_COMMANDS:
            return self.main_menu.show_menu(session, "Cancelled.\n\n")
        return self.main_menu.show_menu(session)

    async def _dispatch(self, text: str, session: Session) -> FlowResult:
        flow = self.flows.get(session.current_flow, self.main_menu)
        result = await flow.handle(text, session)
        if result.handoff:
            target = self.flows.get(result.session.current_flow, self.main_menu)
            follow = await target.handle(text, result.session)
            result = FlowResult(
                replies=result.replies + follow.replies,
                session=follow.session,
                side_effects=result.side_effects + follow.side_effects,
            )
        return result

    async def _send(self, user_id: str, reply: Reply) -> None:
        if reply.kind == "buttons":
            await self.gateway.send_buttons(user_id, reply.body, reply.buttons)
        elif reply.kind == "list":
            await self.gateway.send_list(user_id, reply.body, reply.button_label, reply.sections)
        else:
            await self.gateway.send_text(user_id, reply.body)

    async def _send_all(self, user_id: str, replies: List[Reply]) -> None:
        for reply in replies:
            try:
                await self._send(user_id, reply)
            except Exception as e:
                logger.error(f"Reply to {hash_user_id(user_id)} failed: {e}")

    async def _send_fallback(self, user_id: str) -> None:
        try:
            await self.gateway.send_text(
                user_id,
                f"Sorry, we are facing a technical problem. Please try again or call {self.settings.hospital_phone}.",
            )
        except Exception as e:
            logger.error(f"Failed to send error message: {e}")

    async def _run_side_effects(self, effects: List[SideEffect]) -> None:
        persistence = self.services.persistence
        unsaved: set[int] = set()
        for effect in effects:
            try:
                if isinstance(effect, PersistAppointment):
                    try:
                        await persistence.save_appointment(effect.record)
                    except Exception:
                        unsaved.add(effect.record.token)
                        raise
                elif isinstance(effect, PersistPatient):
                    await persistence.save_patient(effect.record)
                elif isinstance(effect, PersistFeedback):
                    await persistence.save_feedback(effect.record)
                elif isinstance(effect, PersistReminder):
                    await persistence.add_medicine_reminder(effect.record)
                elif isinstance(effect, NotifyAppointment):
                    await self.notifier.notify_new_appointment(effect.record, saved=effect.record.token not in unsaved)
                elif isinstance(effect, NotifyPatient):
                    await self.notifier.notify_new_patient(effect.record)
                elif isinstance(effect, NotifyFeedback):
                    await self.notifier.notify_feedback(effect.record)
                elif isinstance(effect, NotifyEmergency):
                    await self.notifier.notify_emergency(effect.user_id, effect.name, effect.text)
            except Exception as e:
                logger.error(f"Side effect {effect.kind} failed: {e}")
