from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

START_STEP = "start"


class FlowId(str, Enum):
    MAIN_MENU = "main-menu"
    APPOINTMENT = "appointment"
    REGISTRATION = "registration"
    FEEDBACK = "feedback"
    LAB_REPORT = "lab-report"
    BILL = "bill"
    DOCTOR_INFO = "doctor-info"
    PRESCRIPTION = "prescription"
    EMERGENCY = "emergency"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Session(BaseModel):
    # main-menu/start is the resting state; terminal steps always return here
    user_id: str
    current_flow: FlowId = FlowId.MAIN_MENU
    current_step: str = START_STEP

    # values collected by the active flow (doctor, date, time, problem, ...)
    context: Dict[str, Any] = Field(default_factory=dict)

    # survives flow resets
    patient_name: Optional[str] = None

    last_activity: datetime = Field(default_factory=utcnow)

    @property
    def is_default(self) -> bool:
        return (
            self.current_flow == FlowId.MAIN_MENU
            and self.current_step == START_STEP
            and not self.context
        )

    def advance(self, step: str, **values: Any) -> "Session":
        """Move to `step` inside the current flow, merging `values` into context."""
        return self.model_copy(update={"current_step": step, "context": {**self.context, **values}})

    def enter(self, flow: FlowId, step: str = START_STEP) -> "Session":
        return self.model_copy(update={"current_flow": flow, "current_step": step, "context": {}})

    def reset(self) -> "Session":
        return self.enter(FlowId.MAIN_MENU)


def default_session(user_id: str, patient_name: Optional[str] = None) -> Session:
    return Session(user_id=user_id, patient_name=patient_name)
