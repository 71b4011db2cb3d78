"""
Appointment booking end to end through the router:
problem -> doctor -> date -> time slot -> confirmation.
"""

import asyncio
from unittest.mock import AsyncMock

from conftest import STAFF, TODAY, USER

from hospital_bot.flows.appointment import CONFIRM_BOOKING, SELECT_DATE, SELECT_DOCTOR, SELECT_TIME, AppointmentFlow
from hospital_bot.session.models import FlowId

OTHER_USER = "919800000002"


async def book(send, doctor="1", day="today", slot="2", answer="yes"):
    for text in ("1", "fever since yesterday", doctor, day, slot, answer):
        await send(text)


async def test_full_booking(send, store, gateway, persistence):
    await book(send)

    assert len(persistence.appointments) == 1
    record = persistence.appointments[0]
    assert record.doctor_key == "akhilesh"
    assert record.date == TODAY.isoformat()
    assert record.time == "2:10 PM"
    assert record.problem == "fever since yesterday"
    assert record.patient_name == "Ravi"
    assert 1000 <= record.token <= 9999

    confirmation = gateway.last(USER)
    assert "Appointment booked" in confirmation
    assert f"Token: *{record.token}*" in confirmation

    staff = gateway.last(STAFF)
    assert "New appointment" in staff
    assert str(record.token) in staff
    assert "NOT SAVED" not in staff

    session = await store.get(USER)
    assert session.is_default
    assert session.patient_name == "Ravi"


async def test_steps_are_recorded_in_session(send, store):
    await send("1")
    assert (await store.get(USER)).current_flow == FlowId.APPOINTMENT

    await send("headache")
    session = await store.get(USER)
    assert session.current_step == SELECT_DOCTOR
    assert session.context["problem"] == "headache"
    assert session.context["suggested"] == "ankit"

    await send("2")
    session = await store.get(USER)
    assert session.current_step == SELECT_DATE
    assert session.context["doctor"] == "ankit"

    await send("15/11/2026")
    session = await store.get(USER)
    assert session.current_step == SELECT_TIME
    assert session.context["date"] == "2026-11-15"

    await send("3")
    session = await store.get(USER)
    assert session.current_step == CONFIRM_BOOKING
    assert session.context["time"] == "2:20 PM"


async def test_suggested_doctor_is_named(send, gateway):
    await send("1")
    await send("my tooth hurts")
    assert "Dr." in gateway.last(USER)
    assert "teeth" in gateway.last(USER).lower()


async def test_doctor_unavailable_on_date(send, store, gateway, persistence):
    await send("1")
    await send("ear pain")
    await send("3")  # Monday-only doctor
    await send("20/10/2026")  # Tuesday

    reply = gateway.last(USER)
    assert "Monday" in reply
    assert "choose another date" in reply
    session = await store.get(USER)
    assert session.current_step == SELECT_DATE
    assert "date" not in session.context

    await send("26/10/2026")
    assert (await store.get(USER)).current_step == SELECT_TIME
    assert "3:00 PM" in gateway.last(USER)
    assert persistence.appointments == []


async def test_past_date_is_rejected(send, store, gateway):
    await send("1")
    await send("fever")
    await send("1")
    await send("01/10/2026")
    assert "already passed" in gateway.last(USER)
    assert (await store.get(USER)).current_step == SELECT_DATE


async def test_unparseable_date_reprompts(send, store, gateway):
    await send("1")
    await send("fever")
    await send("1")
    await send("sometime soon")
    assert "dd" in gateway.last(USER) or "25/12" in gateway.last(USER)
    assert (await store.get(USER)).current_step == SELECT_DATE


async def test_unknown_doctor_reprompts(send, store, gateway):
    await send("1")
    await send("fever")
    await send("9")
    assert "between 1 and 4" in gateway.last(USER)
    assert (await store.get(USER)).current_step == SELECT_DOCTOR


async def test_out_of_range_slot_picks_first(send, store):
    await send("1")
    await send("fever")
    await send("1")
    await send("tomorrow")
    await send("99")
    session = await store.get(USER)
    assert session.current_step == CONFIRM_BOOKING
    assert session.context["time"] == "2:00 PM"


async def test_slot_by_label(send, store):
    await send("1")
    await send("fever")
    await send("1")
    await send("tomorrow")
    await send("4:30 pm")
    assert (await store.get(USER)).context["time"] == "4:30 PM"


async def test_declined_confirmation(send, store, gateway, persistence):
    await book(send, answer="no")
    assert persistence.appointments == []
    assert "not made" in gateway.last(USER)
    assert (await store.get(USER)).is_default


async def test_confirmation_button_ids(send, persistence):
    for text in ("1", "fever", "1", "today", "1"):
        await send(text)
    await send("", type="interactive", button_reply_id="confirm_yes")
    assert len(persistence.appointments) == 1


async def test_unclear_confirmation_reprompts(send, store, gateway):
    await book(send, answer="hmm")
    assert "yes or no" in gateway.last(USER)
    assert (await store.get(USER)).current_step == CONFIRM_BOOKING


async def test_repeated_yes_does_not_book_twice(send, persistence):
    await book(send)
    await send("yes")
    await send("yes")
    assert len(persistence.appointments) == 1


async def test_persistence_failure_still_confirms(send, gateway, persistence, store):
    persistence.fail_writes = True
    await book(send)

    assert persistence.appointments == []
    assert "Appointment booked" in gateway.last(USER)
    assert "NOT SAVED" in gateway.last(STAFF)
    assert (await store.get(USER)).is_default


async def test_token_not_reused_for_same_doctor_and_day(services, persistence):
    persistence.list_tokens = AsyncMock(return_value=list(range(1000, 9999)))
    flow = AppointmentFlow(services)
    assert await flow.issue_token("akhilesh", TODAY.isoformat()) == 9999
    persistence.list_tokens.assert_awaited_once_with("akhilesh", TODAY.isoformat())


async def test_token_lookup_failure_still_issues_token(services, persistence):
    persistence.fail_reads = True
    token = await AppointmentFlow(services).issue_token("akhilesh", TODAY.isoformat())
    assert 1000 <= token <= 9999


async def test_two_bookings_get_different_tokens(send, persistence):
    await book(send)
    await book(send, slot="5")
    first, second = persistence.appointments
    assert first.token != second.token


async def test_typed_clock_time_picks_matching_slot(send, store):
    for text in ("1", "fever", "1", "tomorrow", "4:30"):
        await send(text)
    session = await store.get(USER)
    assert session.current_step == CONFIRM_BOOKING
    assert session.context["time"] == "4:30 PM"


async def test_typed_clock_time_uses_doctors_half_of_day(send, store):
    for text in ("1", "ear pain", "3", "26/10/2026", "5.10"):
        await send(text)
    assert (await store.get(USER)).context["time"] == "5:10 PM"


async def test_typed_time_outside_hours_reprompts(send, store, gateway):
    for text in ("1", "fever", "1", "tomorrow", "9:30"):
        await send(text)
    session = await store.get(USER)
    assert session.current_step == SELECT_TIME
    assert "time" not in session.context
    assert "2:00 PM - 7:00 PM" in gateway.last(USER)


async def test_typed_time_between_slots_reprompts(send, store):
    for text in ("1", "fever", "1", "tomorrow", "4:35 pm"):
        await send(text)
    assert (await store.get(USER)).current_step == SELECT_TIME


async def reach_confirmation(send, user):
    for text in ("1", "fever", "1", "today", "2"):
        await send(text, user=user)


async def test_concurrent_bookings_get_distinct_tokens(send, persistence):
    await reach_confirmation(send, USER)
    await reach_confirmation(send, OTHER_USER)

    async def tokens_with_io(doctor_key, day):
        await asyncio.sleep(0)
        return list(range(1000, 9998))

    persistence.list_tokens = tokens_with_io
    await asyncio.gather(send("yes"), send("yes", user=OTHER_USER))

    tokens = sorted(a.token for a in persistence.appointments)
    assert tokens == [9998, 9999]


async def test_last_free_token_goes_to_one_patient_only(send, store, gateway, persistence):
    await reach_confirmation(send, USER)
    await reach_confirmation(send, OTHER_USER)

    async def one_token_left(doctor_key, day):
        await asyncio.sleep(0)
        return list(range(1000, 9999))

    persistence.list_tokens = one_token_left
    await asyncio.gather(send("yes"), send("yes", user=OTHER_USER))

    assert [a.token for a in persistence.appointments] == [9999]
    assert persistence.appointments[0].user_id == USER
    assert "fully booked" in gateway.last(OTHER_USER)
    assert (await store.get(OTHER_USER)).current_step == SELECT_DATE


async def test_issued_tokens_are_not_reissued_before_saving(services, persistence):
    persistence.list_tokens = AsyncMock(return_value=list(range(1000, 9998)))
    flow = AppointmentFlow(services)
    first = await flow.issue_token("akhilesh", TODAY.isoformat())
    second = await flow.issue_token("akhilesh", TODAY.isoformat())
    assert {first, second} == {9998, 9999}
    assert await flow.issue_token("akhilesh", TODAY.isoformat()) is None
    assert await flow.issue_token("anand", TODAY.isoformat()) in (9998, 9999)
