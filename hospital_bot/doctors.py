from __future__ import annotations
import calendar
from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from hospital_bot.utils.schedule import format_clock
from hospital_bot.utils.text import contains_any, first_number


class AvailabilityRule(str, Enum):
    DAILY = "daily"
    WEEKDAY = "weekday"        # rule_value: 0=Monday .. 6=Sunday
    MONTH_DAY = "month_day"    # rule_value: calendar day of month


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


class Doctor(BaseModel):
    key: str
    name: str
    specialty: str
    department: str
    rule: AvailabilityRule = AvailabilityRule.DAILY
    rule_value: Optional[int] = None
    start_hour: int
    end_hour: int
    experience: str = ""
    aliases: List[str] = []
    keywords: List[str] = []
    reason: str = ""

    def is_available_on(self, day: date) -> bool:
        if self.rule == AvailabilityRule.WEEKDAY:
            return day.weekday() == self.rule_value
        if self.rule == AvailabilityRule.MONTH_DAY:
            return day.day == self.rule_value
        return True

    def is_within_hours(self, hour: int, minute: int = 0) -> bool:
        return self.start_hour * 60 <= hour * 60 + minute < self.end_hour * 60

    @property
    def availability_text(self) -> str:
        if self.rule == AvailabilityRule.WEEKDAY:
            return f"{calendar.day_name[self.rule_value]}s only"
        if self.rule == AvailabilityRule.MONTH_DAY:
            return f"only on the {ordinal(self.rule_value)} of every month"
        return "every day"

    @property
    def timing_text(self) -> str:
        return f"{format_clock(self.start_hour)} - {format_clock(self.end_hour)}"

    def unavailable_message(self) -> str:
        if self.rule == AvailabilityRule.WEEKDAY:
            return f"{self.name} is available on {calendar.day_name[self.rule_value]}s only."
        if self.rule == AvailabilityRule.MONTH_DAY:
            return f"{self.name} is available only on the {ordinal(self.rule_value)} of every month."
        return f"{self.name} is not available on that date."

    @property
    def short_label(self) -> str:
        return f"{self.name} - {self.specialty}"


DOCTORS: List[Doctor] = [
    Doctor(
        key="akhilesh",
        name="Dr. Akhilesh Kumar Kasaudhan",
        specialty="Sugar & General Medicine",
        department="General",
        start_hour=14,
        end_hour=19,
        experience="15+ years",
        aliases=["akhilesh", "kasaudhan", "अखिलेश"],
        keywords=["sugar", "diabetes", "शुगर", "मधुमेह"],
        reason="Specialist for sugar and general illness",
    ),
    Doctor(
        key="ankit",
        name="Dr. Ankit Shukla",
        specialty="Brain & Nerves",
        department="Neurology",
        rule=AvailabilityRule.MONTH_DAY,
        rule_value=15,
        start_hour=14,
        end_hour=19,
        experience="10+ years",
        aliases=["ankit", "shukla", "अंकित"],
        keywords=["sir", "head", "headache", "dimag", "brain", "nerve", "सिर", "दिमाग"],
        reason="Specialist for brain and nerve problems",
    ),
    Doctor(
        key="singh",
        name="Dr. A.K. Singh",
        specialty="Ear, Nose & Throat",
        department="ENT",
        rule=AvailabilityRule.WEEKDAY,
        rule_value=0,
        start_hour=15,
        end_hour=18,
        experience="20+ years",
        aliases=["singh", "a.k. singh", "सिंह"],
        keywords=["nose", "ear", "throat", "नाक", "कान", "गला"],
        reason="Specialist for ear, nose and throat",
    ),
    Doctor(
        key="anand",
        name="Dr. Anand Mishra",
        specialty="Teeth",
        department="Dental",
        start_hour=15,
        end_hour=18,
        experience="12+ years",
        aliases=["anand", "mishra", "आनन्द", "आनंद"],
        keywords=["tooth", "teeth", "dental", "दांत"],
        reason="Specialist for teeth",
    ),
]

DEFAULT_DOCTOR_KEY = "akhilesh"


def get_doctor(key: str | None, catalog: List[Doctor] = DOCTORS) -> Optional[Doctor]:
    for d in catalog:
        if d.key == key:
            return d
    return None


def default_doctor(catalog: List[Doctor] = DOCTORS) -> Doctor:
    return get_doctor(DEFAULT_DOCTOR_KEY, catalog) or catalog[0]


def match_doctor(text: str, catalog: List[Doctor] = DOCTORS) -> Optional[Doctor]:
    """
    Number 1..N picks by position; otherwise name/alias match.
    Several name matches fall back to the default doctor, no match gives None.
    """
    n = first_number(text)
    if n is not None:
        if 1 <= n <= len(catalog):
            return catalog[n - 1]
        return None

    matches = [d for d in catalog if d.key == text or contains_any(text, d.aliases)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        return default_doctor(catalog)
    return None
