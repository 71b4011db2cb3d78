from __future__ import annotations
import logging
from typing import Optional

from hospital_bot.services.gateways import NotificationGateway
from hospital_bot.services.records import AppointmentRecord, FeedbackRecord, PatientRecord
from hospital_bot.utils.validators import is_valid_phone

logger = logging.getLogger(__name__)


class StaffNotifier:
    """Formats staff alerts and sends them to the hospital's notification number."""

    def __init__(self, gateway: NotificationGateway, staff_number: Optional[str]):
        self.gateway = gateway
        self.staff_number = staff_number

    async def notify_staff(self, message: str) -> bool:
        if not self.staff_number:
            logger.warning("Staff notification number not configured; alert dropped")
            return False
        if not is_valid_phone(self.staff_number):
            logger.warning("Staff notification number looks invalid; alert dropped")
            return False
        try:
            await self.gateway.send_text(self.staff_number, message)
            return True
        except Exception as e:
            logger.error(f"Staff notification failed: {e}")
            return False

    async def notify_new_appointment(self, record: AppointmentRecord, saved: bool = True) -> bool:
        message = (
            "📅 *New appointment*\n\n"
            f"👤 Patient: {record.patient_name}\n"
            f"📞 Phone: {record.user_id}\n"
            f"🏥 Doctor: {record.doctor_name} ({record.department})\n"
            f"📅 Date: {record.date}\n"
            f"⏰ Time: {record.time}\n"
            f"🎫 Token: {record.token}\n"
            f"📝 Problem: {record.problem or 'N/A'}"
        )
        if not saved:
            message += "\n\n⚠️ NOT SAVED to the database - please record it manually."
        return await self.notify_staff(message)

    async def notify_emergency(self, user_id: str, name: str, text: str) -> bool:
        alert = (
            "🚨 *EMERGENCY* 🚨\n\n"
            f"👤 Patient: {name}\n"
            f"📞 Phone: {user_id}\n"
            f"📝 Message: {text}\n\n"
            "Please contact immediately!"
        )
        return await self.notify_staff(alert)

    async def notify_new_patient(self, record: PatientRecord) -> bool:
        message = (
            "👤 *New patient registered*\n\n"
            f"Name: {record.full_name}\n"
            f"Phone: {record.user_id}\n"
            f"Age: {record.age or '-'}\n"
            f"Gender: {record.gender or '-'}"
        )
        return await self.notify_staff(message)

    async def notify_feedback(self, record: FeedbackRecord) -> bool:
        message = (
            "⭐ *New feedback*\n\n"
            f"👤 Patient: {record.patient_name}\n"
            f"📞 Phone: {record.user_id}\n"
            f"Rating: {'⭐' * record.rating} ({record.rating}/5)\n"
            f"📝 Feedback: {record.comment or 'No comment'}"
        )
        return await self.notify_staff(message)
