"""
Doctor catalog: availability predicates, doctor matching and time slots.
"""

from datetime import date

import pytest

from hospital_bot.doctors import DOCTORS, AvailabilityRule, Doctor, default_doctor, get_doctor, match_doctor, ordinal
from hospital_bot.utils.schedule import format_clock, generate_slots, parse_clock, to_24h

MONDAY = date(2026, 10, 26)
TUESDAY = date(2026, 10, 20)
FIFTEENTH = date(2026, 11, 15)


def test_daily_doctor_is_always_available():
    akhilesh = get_doctor("akhilesh")
    assert all(akhilesh.is_available_on(d) for d in (MONDAY, TUESDAY, FIFTEENTH))
    assert akhilesh.availability_text == "every day"


def test_weekday_rule():
    singh = get_doctor("singh")
    assert singh.rule == AvailabilityRule.WEEKDAY
    assert singh.is_available_on(MONDAY)
    assert not singh.is_available_on(TUESDAY)
    assert "Monday" in singh.unavailable_message()
    assert singh.availability_text == "Mondays only"


def test_month_day_rule():
    ankit = get_doctor("ankit")
    assert ankit.is_available_on(FIFTEENTH)
    assert not ankit.is_available_on(TUESDAY)
    assert "15th" in ankit.unavailable_message()


def test_hour_window():
    singh = get_doctor("singh")
    assert singh.is_within_hours(15, 0)
    assert singh.is_within_hours(17, 50)
    assert not singh.is_within_hours(18, 0)
    assert not singh.is_within_hours(14, 59)
    assert singh.timing_text == "3:00 PM - 6:00 PM"


@pytest.mark.parametrize("n,expected", [(1, "1st"), (2, "2nd"), (3, "3rd"), (11, "11th"), (15, "15th"), (22, "22nd")])
def test_ordinal(n, expected):
    assert ordinal(n) == expected


@pytest.mark.parametrize(
    "text,key",
    [
        ("1", "akhilesh"),
        ("doctor 3", "singh"),
        ("4", "anand"),
        ("ankit", "ankit"),
        ("dr. a.k. singh", "singh"),
        ("अंकित", "ankit"),
        ("anand", "anand"),
    ],
)
def test_match_doctor(text, key):
    assert match_doctor(text).key == key


def test_match_doctor_rejects_unknown_input():
    assert match_doctor("someone else") is None
    assert match_doctor("7") is None
    assert match_doctor("0") is None


def test_ambiguous_name_falls_back_to_default_doctor():
    assert match_doctor("ankit or anand") == default_doctor()


def test_slots_cover_the_window_in_fixed_steps():
    slots = generate_slots(14, 19, 10)
    assert len(slots) == 30
    assert slots[0] == "2:00 PM"
    assert slots[1] == "2:10 PM"
    assert slots[-1] == "6:50 PM"

    assert generate_slots(15, 18, 15) == [format_clock(h, m) for h in (15, 16, 17) for m in (0, 15, 30, 45)]


def test_slot_width_must_be_positive():
    with pytest.raises(ValueError):
        generate_slots(9, 10, 0)


def test_format_clock():
    assert format_clock(9, 5) == "9:05 AM"
    assert format_clock(12, 0) == "12:00 PM"
    assert format_clock(19, 30) == "7:30 PM"


def test_catalog_keys_are_unique():
    keys = [d.key for d in DOCTORS]
    assert len(keys) == len(set(keys))


def test_custom_catalog():
    only = Doctor(key="x", name="Dr. X", specialty="Skin", department="Derma", start_hour=9, end_hour=10, aliases=["x"])
    assert match_doctor("1", [only]) is only
    assert get_doctor("akhilesh", [only]) is None


@pytest.mark.parametrize(
    "text,expected",
    [("4:30", (4, 30, None)), ("at 5.10 pm", (5, 10, "pm")), ("11:00am", (11, 0, "am")), ("slot 4", None), ("25:00", None)],
)
def test_parse_clock(text, expected):
    assert parse_clock(text) == expected


def test_to_24h():
    assert to_24h(4, None) == [4, 16]
    assert to_24h(4, "pm") == [16]
    assert to_24h(12, "am") == [0]
    assert to_24h(12, None) == [12]
    assert to_24h(18, None) == [18]
