from __future__ import annotations
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import Boolean, String, Integer, DateTime, Text, UniqueConstraint
from datetime import datetime

class Base(DeclarativeBase):
    pass

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (UniqueConstraint("doctor_key", "appointment_date", "token_number"),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone_number: Mapped[str] = mapped_column(String(32), index=True)
    patient_name: Mapped[str] = mapped_column(String(120))
    doctor_key: Mapped[str] = mapped_column(String(32), index=True)
    doctor_name: Mapped[str] = mapped_column(String(120))
    department: Mapped[str] = mapped_column(String(60))
    appointment_date: Mapped[str] = mapped_column(String(10), index=True)  # yyyy-mm-dd
    appointment_time: Mapped[str] = mapped_column(String(10))
    token_number: Mapped[int] = mapped_column(Integer)
    problem: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), default="confirmed")  # scheduled/confirmed/cancelled/completed
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

class Patient(Base):
    __tablename__ = "patients"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone_number: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(120))
    age: Mapped[int | None] = mapped_column(Integer)
    gender: Mapped[str | None] = mapped_column(String(16))
    address: Mapped[str | None] = mapped_column(Text)
    total_visits: Mapped[int] = mapped_column(Integer, default=1)
    first_visit: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    last_visit: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

class Feedback(Base):
    __tablename__ = "feedback"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone_number: Mapped[str] = mapped_column(String(32), index=True)
    patient_name: Mapped[str] = mapped_column(String(120))
    rating: Mapped[int] = mapped_column(Integer)
    feedback_text: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

class LabTest(Base):
    __tablename__ = "lab_tests"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone_number: Mapped[str] = mapped_column(String(32), index=True)
    test_name: Mapped[str] = mapped_column(String(120))
    test_date: Mapped[str] = mapped_column(String(10))
    status: Mapped[str] = mapped_column(String(16))  # booked/processing/ready/delivered
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

class MedicineReminder(Base):
    __tablename__ = "medicine_reminders"
    __table_args__ = (UniqueConstraint("phone_number", "medicine_name"),)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone_number: Mapped[str] = mapped_column(String(32), index=True)
    patient_name: Mapped[str] = mapped_column(String(120))
    medicine_name: Mapped[str] = mapped_column(String(120))
    reminder_time: Mapped[str] = mapped_column(String(60))
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
