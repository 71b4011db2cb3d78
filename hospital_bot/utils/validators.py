from __future__ import annotations
import re
from datetime import date, datetime, timedelta
from typing import Optional

from hospital_bot.utils.text import contains_any, normalize

PHONE_REGEX = re.compile(r"^\d{10,}$")
DATE_ISO_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DATE_DMY_REGEX = re.compile(r"\b(\d{1,2})[/\-.](\d{1,2})(?:[/\-.](\d{2,4}))?\b")
DATE_ISO_SEARCH = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")

TODAY_WORDS = ("today", "aaj", "आज")
TOMORROW_WORDS = ("tomorrow", "kal", "कल")

MIN_AGE, MAX_AGE = 1, 120


def sanitize_digits(value: str) -> str:
    return re.sub(r"\D+", "", value or "")


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_REGEX.match(sanitize_digits(phone)))


def to_iso_date(date_str: str) -> str:
    # accepts yyyy-mm-dd, dd/mm/yyyy or dd-mm-yyyy
    if DATE_ISO_REGEX.match(date_str):
        datetime.strptime(date_str, "%Y-%m-%d")
        return date_str
    for fmt in ("%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y"):
        try:
            return datetime.strptime(date_str, fmt).date().isoformat()
        except ValueError:
            continue
    raise ValueError("Invalid date; use dd/mm/yyyy or yyyy-mm-dd")


def parse_date(text: str, today: date) -> Optional[date]:
    """
    Relative words (today/tomorrow, Hindi and Hinglish too) or an explicit date.
    A day/month without a year means the next occurrence of it.
    """
    t = normalize(text)
    if not t:
        return None
    if contains_any(t, TOMORROW_WORDS):
        return today + timedelta(days=1)
    if contains_any(t, TODAY_WORDS):
        return today

    m = DATE_ISO_SEARCH.search(t)
    try:
        if m:
            return date.fromisoformat(to_iso_date(m.group(1)))
        m = DATE_DMY_REGEX.search(t)
        if not m:
            return None
        day, month, year = int(m.group(1)), int(m.group(2)), m.group(3)
        if year is None:
            candidate = date(today.year, month, day)
            if candidate < today:
                candidate = date(today.year + 1, month, day)
            return candidate
        y = int(year)
        if y < 100:
            y += 2000
        return date(y, month, day)
    except ValueError:
        return None


def parse_age(text: str) -> Optional[int]:
    digits = re.search(r"\d{1,3}", text or "")
    if not digits:
        return None
    age = int(digits.group(0))
    if MIN_AGE <= age <= MAX_AGE:
        return age
    return None


def is_past(day: date, today: date) -> bool:
    return day < today
