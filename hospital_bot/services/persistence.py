from __future__ import annotations
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hospital_bot.db.models import Appointment, Feedback, LabTest, MedicineReminder, Patient
from hospital_bot.log import hash_user_id
from hospital_bot.services.records import (
    AppointmentRecord,
    FeedbackRecord,
    LabTestRecord,
    MedicineReminderRecord,
    PatientRecord,
)

logger = logging.getLogger(__name__)


class SqlPersistenceGateway:
    """SQLAlchemy-backed store for records produced by the flows. Errors propagate to the caller."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self.sessionmaker = sessionmaker

    async def save_appointment(self, record: AppointmentRecord) -> None:
        async with self.sessionmaker() as session:
            session.add(
                Appointment(
                    phone_number=record.user_id,
                    patient_name=record.patient_name,
                    doctor_key=record.doctor_key,
                    doctor_name=record.doctor_name,
                    department=record.department,
                    appointment_date=record.date,
                    appointment_time=record.time,
                    token_number=record.token,
                    problem=record.problem,
                    status=record.status,
                )
            )
            await session.commit()
        logger.info(f"Appointment saved for {hash_user_id(record.user_id)} token={record.token}")

    async def list_tokens(self, doctor_key: str, date: str) -> List[int]:
        async with self.sessionmaker() as session:
            rows = await session.execute(
                select(Appointment.token_number).where(
                    Appointment.doctor_key == doctor_key,
                    Appointment.appointment_date == date,
                )
            )
            return [r for r in rows.scalars()]

    async def save_patient(self, record: PatientRecord) -> None:
        async with self.sessionmaker() as session:
            existing = await session.scalar(select(Patient).where(Patient.phone_number == record.user_id))
            if existing:
                existing.name = record.full_name
                existing.age = record.age
                existing.gender = record.gender
                existing.address = record.address
                existing.last_visit = datetime.utcnow()
                existing.total_visits = (existing.total_visits or 0) + 1
            else:
                session.add(
                    Patient(
                        phone_number=record.user_id,
                        name=record.full_name,
                        age=record.age,
                        gender=record.gender,
                        address=record.address,
                    )
                )
            await session.commit()

    async def get_patient_by_user_id(self, user_id: str) -> Optional[PatientRecord]:
        async with self.sessionmaker() as session:
            p = await session.scalar(select(Patient).where(Patient.phone_number == user_id))
            if p is None:
                return None
            return PatientRecord(user_id=p.phone_number, full_name=p.name, age=p.age, gender=p.gender, address=p.address)

    async def save_feedback(self, record: FeedbackRecord) -> None:
        async with self.sessionmaker() as session:
            session.add(
                Feedback(
                    phone_number=record.user_id,
                    patient_name=record.patient_name,
                    rating=record.rating,
                    feedback_text=record.comment,
                )
            )
            await session.commit()

    async def get_lab_tests(self, user_id: str, limit: int = 5) -> List[LabTestRecord]:
        async with self.sessionmaker() as session:
            rows = await session.scalars(
                select(LabTest)
                .where(LabTest.phone_number == user_id)
                .order_by(LabTest.created_at.desc(), LabTest.id.desc())
                .limit(limit)
            )
            return [LabTestRecord(test_name=t.test_name, test_date=t.test_date, status=t.status) for t in rows]

    async def get_medicine_reminders(self, user_id: str) -> List[MedicineReminderRecord]:
        async with self.sessionmaker() as session:
            rows = await session.scalars(
                select(MedicineReminder).where(
                    MedicineReminder.phone_number == user_id,
                    MedicineReminder.active.is_(True),
                )
            )
            return [
                MedicineReminderRecord(
                    user_id=m.phone_number,
                    patient_name=m.patient_name,
                    medicine_name=m.medicine_name,
                    reminder_time=m.reminder_time,
                    active=m.active,
                )
                for m in rows
            ]

    async def add_medicine_reminder(self, record: MedicineReminderRecord) -> None:
        # one reminder per (patient, medicine): re-adding updates the time
        async with self.sessionmaker() as session:
            existing = await session.scalar(
                select(MedicineReminder).where(
                    MedicineReminder.phone_number == record.user_id,
                    MedicineReminder.medicine_name == record.medicine_name,
                )
            )
            if existing:
                existing.reminder_time = record.reminder_time
                existing.active = True
            else:
                session.add(
                    MedicineReminder(
                        phone_number=record.user_id,
                        patient_name=record.patient_name,
                        medicine_name=record.medicine_name,
                        reminder_time=record.reminder_time,
                        active=record.active,
                    )
                )
            await session.commit()
